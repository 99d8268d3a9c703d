"""
backend/app/services/prompt_templates.py

Purpose:
    Prompt-template strategies for the analysis pipeline. A template knows how
    to build the base prompt for a fixture, the stricter retry prompt, and the
    continuation prompt for a truncated answer. Selected by name through
    ``ANALYSIS_PROMPT_TEMPLATE``.

Dependencies:
    - app.models.analysis
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from app.models.analysis import AnalysisRequest

UNAVAILABLE_SENTINEL = "ANALIZA_INDISPONIBILA"

_RO_MATCH_ANALYSIS = """
Acționează ca un Analist Sportiv Senior și Specialist în Evaluarea Riscului Competitiv.
Generează o analiză tehnică, concisă și informativă pentru meciul specificat, bazată pe date, context sportiv și scenarii posibile.

INSTRUCȚIUNI DE LIMBĂ ȘI STATUS (OBLIGATORIU):
- LIMBĂ: Scrie în limba română perfectă, naturală și cursivă.
- FĂRĂ CODURI: Tradu orice status tehnic în română clară (ex: "NS" -> "Meciul nu a început"; "1H" -> "Prima Repriză"; "HT" -> "Pauză"; "FT" -> "Final de meci").

INSTRUCȚIUNI DE FORMAT (CRITIC):
- Output: DOAR text simplu (plain text).
- STRICT INTERZIS: Markdown, bold, italic, simboluri (#, *, _, `), liste cu bullet-uri.
- STRUCTURĂ: Folosește exact numerotarea 1), 2), 3) etc.
- STIL: Analitic, neutru, precis, fără limbaj promoțional sau promisiuni.

DATE DE INTRARE:
Meci: $teams_label
Liga: $league
Status curent: $match_status

OBIECTIVUL ANALIZEI:
Oferă o evaluare obiectivă a contextului sportiv și a dinamicii meciului, evidențiind factori relevanți și riscuri competitive.
Analiza are scop STRICT INFORMATIV și nu reprezintă o recomandare de pariere.

STRUCTURA ANALIZEI:

1) CONTEXT ȘI MIZE:
Maxim 2 fraze. Menționează clar stadiul meciului (tradus în română) și contextul competițional al echipelor (obiective, presiune, importanța meciului).

2) DINAMICA TACTICĂ:
Maxim 3-4 fraze. Descrie interacțiunea stilurilor de joc și zonele-cheie unde se poate decide meciul.

3) FACTORI CRITICI DE ANALIZĂ:
Include exact 3 puncte numerotate distinct:
1) Situația lotului și impactul sportiv: explică influența absențelor sau revenirilor asupra jocului.
2) Tendințe statistice relevante: evidențiază pattern-uri observabile (ritm, eficiență, momente-cheie).
3) Factori externi sau contextuali: elemente care pot influența desfășurarea meciului.

4) SCENARII POSIBILE:
A) Scenariu principal: evoluția logică a meciului pe baza datelor disponibile.
B) Scenariu alternativ: condiții sau evenimente care pot modifica cursul estimat.

5) INTERPRETARE ȘI NIVEL DE INCERTITUDINE:
Evaluează nivelul general de incertitudine al meciului (Scăzut / Mediu / Ridicat) și explică într-o singură propoziție de ce rezultatul poate fi previzibil sau volatil.

NOTĂ FINALĂ (OBLIGATORIU):
Analiza este generată automat pe baza datelor disponibile și are scop exclusiv informativ.
Nu garantează niciun rezultat și nu constituie o recomandare de pariere.
"""

_RO_STRICT_ADDON = (
    "\n\nIMPORTANT: Ai returnat un output invalid anterior. Acum respectă STRICT:\n"
    "- DOAR text simplu cu secțiuni 1) ... 5)\n"
    "- Fără cod/JSON/HTML/Markdown\n"
    "- Fără caractere { } < > sau backticks\n"
    f"- Dacă nu poți respecta, răspunde exact: {UNAVAILABLE_SENTINEL}"
)

_RO_CONTINUATION_ADDON = (
    "\n\nTEXTUL GENERAT PÂNĂ ACUM (incomplet):\n"
    "$partial"
    "\n\nContinuă EXACT de unde ai rămas. Nu repeta secțiunile deja scrise, "
    "nu reîncepe de la 1). Completează toate secțiunile până la 5) inclusiv "
    "și încheie cu o propoziție completă."
)

_PLACEHOLDER = re.compile(r"\$(teams_label|league|match_status|partial)")


@dataclass(frozen=True)
class PromptTemplate:
    name: str
    base: str
    strict_addon: str
    continuation_addon: str
    sentinel: str = UNAVAILABLE_SENTINEL

    @staticmethod
    def _render(template: str, values: dict[str, str]) -> str:
        # single pass, so values containing "$..." are never re-expanded
        return _PLACEHOLDER.sub(lambda m: values[m.group(1)], template)

    def base_prompt(self, request: AnalysisRequest) -> str:
        return self._render(self.base, {
            "teams_label": request.teams_label,
            "league": request.league,
            "match_status": request.match_status,
        })

    def strict_prompt(self, request: AnalysisRequest) -> str:
        return self.base_prompt(request) + self.strict_addon

    def continuation_prompt(self, request: AnalysisRequest, partial: str) -> str:
        return self.base_prompt(request) + self._render(
            self.continuation_addon, {"partial": partial},
        )

    def is_sentinel(self, text: str) -> bool:
        return re.fullmatch(rf"{re.escape(self.sentinel)}\s*", text.strip(), re.I) is not None


RO_MATCH_ANALYSIS = PromptTemplate(
    name="ro_match_analysis",
    base=_RO_MATCH_ANALYSIS,
    strict_addon=_RO_STRICT_ADDON,
    continuation_addon=_RO_CONTINUATION_ADDON,
)

PROMPT_TEMPLATES: dict[str, PromptTemplate] = {
    RO_MATCH_ANALYSIS.name: RO_MATCH_ANALYSIS,
}


def get_prompt_template(name: str) -> PromptTemplate:
    key = str(name or "").strip().lower()
    try:
        return PROMPT_TEMPLATES[key]
    except KeyError:
        raise ValueError(f"Unknown prompt template: {name!r}") from None
