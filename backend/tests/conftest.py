"""
backend/tests/conftest.py

Purpose:
    Shared pytest bootstrap for import paths plus sample analysis texts used
    across the pipeline tests.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_THIS_FILE = Path(__file__).resolve()
_BACKEND_DIR = _THIS_FILE.parents[1]

if str(_BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(_BACKEND_DIR))


SECTION_LINES = (
    "1) Context și mize: Meciul nu a început, iar ambele echipe au nevoie de puncte în lupta pentru primele locuri.",
    "2) Dinamica tactică: Gazdele presează sus, oaspeții preferă contraatacul pe flancuri.",
    "3) Factori critici: absențe în apărare la oaspeți și un ritm ridicat al gazdelor pe teren propriu.",
    "4) Scenarii posibile: scenariul principal este un meci controlat de gazde, iar scenariul alternativ este un gol rapid al oaspeților.",
    "5) Interpretare și nivel de incertitudine: Mediu, deoarece formele recente sunt apropiate și riscul de surpriză rămâne real.",
)


@pytest.fixture
def complete_analysis() -> str:
    return "\n".join(SECTION_LINES)


@pytest.fixture
def analysis_without_section_four() -> str:
    return "\n".join(line for line in SECTION_LINES if not line.startswith("4)"))


@pytest.fixture
def truncated_analysis() -> str:
    """Sections 1-3 plus the start of section 4, cut mid-sentence."""
    return "\n".join(SECTION_LINES[:3]) + "\n4) Scenarii posibile: scenariul principal este"
