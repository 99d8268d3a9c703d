"""
backend/tests/test_analysis_validator.py

Purpose:
    Each heuristic rule on its own, plus the composed predicates that gate
    acceptance, completeness and continuation.
"""

from __future__ import annotations

import pytest

from app.services.analysis_validator import (
    CODE_MARKUP_RULES,
    classify,
    first_failing_rule,
    has_code_signals,
    is_complete,
    is_structured_analysis,
    is_valid_analysis,
    looks_like_code_or_markup,
    missing_sections,
)

RULES = {rule.name: rule for rule in CODE_MARKUP_RULES}

RULE_SAMPLES = {
    "fenced_code": "```\nx = 1\n```",
    "html_tag": "<div>Analiza</div>",
    "php_open_tag": "<?php echo 1 ?>",
    "xml_declaration": '<?xml version="1.0"?><analysis/>',
    "import_export": "import os",
    "function_or_class": "function analyze(match)",
    "variable_declaration": "const score = 2",
    "return_statement": "return result",
    "console_log": "console.log(x)",
    "sql_select": "SELECT * FROM matches",
    "json_object": '{"analysis": "text"}',
    "json_array": '[{"team": "A"}]',
    "heading_residue": "## Titlu",
    "bullet_residue": "intro\n- punct",
    "too_short": "Analiză scurtă.",
    "brace_semicolon_density": "{};" * 5,
    "provider_error_echo": "OpenRouter error: rate limited",
    "missing_key_echo": "Missing API key for provider",
}


def test_every_rule_has_a_sample():
    assert set(RULE_SAMPLES) == set(RULES)


@pytest.mark.parametrize("name", sorted(RULE_SAMPLES))
def test_rule_fires_on_its_sample(name):
    assert RULES[name].check(RULE_SAMPLES[name]) is True


@pytest.mark.parametrize("name", sorted(RULE_SAMPLES))
def test_rule_is_silent_on_a_clean_analysis(name, complete_analysis):
    assert RULES[name].check(complete_analysis) is False


def test_fenced_block_inside_analysis_is_code(complete_analysis):
    text = complete_analysis + "\n```\nconsole.log('x')\n```"
    assert looks_like_code_or_markup(text) is True
    assert first_failing_rule(text).name == "fenced_code"


def test_density_threshold_boundary(complete_analysis):
    assert not looks_like_code_or_markup(complete_analysis + " {}" * 6 + ";")  # 13
    assert looks_like_code_or_markup(complete_analysis + " {}" * 7)  # 14


def test_complete_analysis_is_valid_and_complete(complete_analysis):
    assert is_structured_analysis(complete_analysis)
    assert is_valid_analysis(complete_analysis)
    assert is_complete(complete_analysis)
    assert classify(complete_analysis).ok


def test_dot_numbering_is_accepted(complete_analysis):
    dotted = complete_analysis.replace("1) ", "1. ").replace("3) ", "3. ")
    assert is_complete(dotted)


def test_missing_section_four_is_structured_but_not_complete(analysis_without_section_four):
    text = analysis_without_section_four
    assert missing_sections(text) == [4]
    assert is_structured_analysis(text)
    assert not is_valid_analysis(text)
    assert not is_complete(text)
    assert classify(text).category == "missing_sections"


def test_missing_terminal_punctuation_is_truncated(complete_analysis):
    text = complete_analysis.rstrip(".") + " pe"
    assert is_valid_analysis(text)
    assert not is_complete(text)
    assert classify(text).category == "truncated"


def test_keyword_cue_is_required(complete_analysis):
    text = (
        complete_analysis.replace("Scenarii", "Variante")
        .replace("scenariul", "varianta")
        .replace("riscul", "pericolul")
        .replace("incertitudine", "claritate")
    )
    assert not is_structured_analysis(text)
    assert not is_valid_analysis(text)
    assert classify(text).category == "missing_keywords"


def test_empty_text_is_rejected():
    assert not is_valid_analysis("")
    assert not is_complete(None)
    assert classify("  ").category == "empty"


def test_code_signals_ignore_length_floor():
    fragment = "5) Incertitudine ridicată."
    assert looks_like_code_or_markup(fragment)
    assert not has_code_signals(fragment)
    assert has_code_signals("return 1")
