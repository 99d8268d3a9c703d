"""
backend/app/services/analysis_validator.py

Purpose:
    Heuristic acceptance checks for sanitized model output. The checks are a
    versioned table of named rules so each one can be tested and logged on
    its own; the public predicates are compositions of that table.

Dependencies:
    - dataclasses
    - re
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional

RULES_VERSION = "3"

MIN_ANALYSIS_LENGTH = 120
CODE_DENSITY_THRESHOLD = 14
REQUIRED_SECTIONS = (1, 2, 3, 4, 5)
TERMINAL_PUNCTUATION = ".!?…"

_PROVIDER_NAMES = ("openrouter", "openai")

_SECTION_MARKERS = {
    n: re.compile(rf"^[ \t]*{n}[.)]\s", re.M) for n in REQUIRED_SECTIONS
}
_ANY_SECTION_MARKER = re.compile(r"^[ \t]*\d[.)]\s", re.M)
_KEYWORD_CUES = re.compile(r"scenari|risc|incertitudin|volatil|recomand|selec", re.I)
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class ValidationRule:
    name: str
    category: str
    check: Callable[[str], bool]


@dataclass(frozen=True)
class ValidationVerdict:
    ok: bool
    category: Optional[str] = None
    rule: Optional[str] = None


def _regex_rule(name: str, category: str, pattern: str, flags: int = 0) -> ValidationRule:
    compiled = re.compile(pattern, flags)
    return ValidationRule(name, category, lambda s: compiled.search(s) is not None)


def _normalized_length(text: str) -> int:
    return len(_WHITESPACE.sub(" ", text).strip())


def _code_density(text: str) -> int:
    return sum(text.count(ch) for ch in "{};")


def _echoes_provider_error(text: str) -> bool:
    lower = text.lower()
    return "error" in lower and any(name in lower for name in _PROVIDER_NAMES)


def _echoes_missing_key(text: str) -> bool:
    lower = text.lower()
    return "missing" in lower and "key" in lower


CODE_MARKUP_RULES: tuple[ValidationRule, ...] = (
    _regex_rule("fenced_code", "code_or_markup", r"```[\s\S]*?```"),
    _regex_rule(
        "html_tag", "code_or_markup",
        r"</?(html|head|body|script|style|div|span|pre|code)[\s>]", re.I,
    ),
    _regex_rule("php_open_tag", "code_or_markup", r"<\?php", re.I),
    _regex_rule("xml_declaration", "code_or_markup", r"^\s*<\?xml\b", re.I),
    _regex_rule("import_export", "code_or_markup", r"\b(import|export)\b\s+", re.I),
    _regex_rule(
        "function_or_class", "code_or_markup",
        r"\b(function|class)\b\s+[a-z0-9_]+\s*\(", re.I,
    ),
    _regex_rule(
        "variable_declaration", "code_or_markup",
        r"\b(const|let|var)\b\s+[a-z0-9_]+\s*=", re.I,
    ),
    _regex_rule("return_statement", "code_or_markup", r"\breturn\b\s+", re.I),
    _regex_rule("console_log", "code_or_markup", r"\bconsole\.log\b", re.I),
    _regex_rule("sql_select", "code_or_markup", r"\bSELECT\b\s+.*\bFROM\b", re.I),
    _regex_rule("json_object", "code_or_markup", r'^\s*\{\s*"[^"]+"\s*:', re.M),
    _regex_rule("json_array", "code_or_markup", r'^\s*\[\s*\{\s*"[^"]+"\s*:', re.M),
    _regex_rule("heading_residue", "markdown_residue", r"(^|\n)\s*#{1,6}\s+"),
    _regex_rule("bullet_residue", "markdown_residue", r"(^|\n)\s*[-•]\s+"),
    ValidationRule(
        "too_short", "too_short",
        lambda s: _normalized_length(s) < MIN_ANALYSIS_LENGTH,
    ),
    ValidationRule(
        "brace_semicolon_density", "code_density",
        lambda s: _code_density(s) >= CODE_DENSITY_THRESHOLD,
    ),
    ValidationRule("provider_error_echo", "upstream_error_echo", _echoes_provider_error),
    ValidationRule("missing_key_echo", "upstream_error_echo", _echoes_missing_key),
)


def first_failing_rule(
    text: str, *, skip_categories: tuple[str, ...] = (),
) -> Optional[ValidationRule]:
    for rule in CODE_MARKUP_RULES:
        if rule.category in skip_categories:
            continue
        if rule.check(text):
            return rule
    return None


def looks_like_code_or_markup(text: str | None) -> bool:
    return first_failing_rule(str(text or "")) is not None


def has_code_signals(text: str | None) -> bool:
    """Like looks_like_code_or_markup but without the length floor.

    Used for continuation fragments, which are legitimately short.
    """
    return first_failing_rule(str(text or ""), skip_categories=("too_short",)) is not None


def missing_sections(text: str) -> list[int]:
    return [n for n, marker in _SECTION_MARKERS.items() if not marker.search(text)]


def has_keyword_cue(text: str) -> bool:
    return _KEYWORD_CUES.search(text) is not None


def ends_with_terminal_punctuation(text: str) -> bool:
    stripped = text.rstrip()
    return bool(stripped) and stripped[-1] in TERMINAL_PUNCTUATION


def is_structured_analysis(text: str | None) -> bool:
    """Acceptance gate: a plain-text analysis, possibly cut short."""
    s = str(text or "").strip()
    if not s or looks_like_code_or_markup(s):
        return False
    return _ANY_SECTION_MARKER.search(s) is not None and has_keyword_cue(s)


def is_valid_analysis(text: str | None) -> bool:
    s = str(text or "").strip()
    if not s or looks_like_code_or_markup(s):
        return False
    return not missing_sections(s) and has_keyword_cue(s)


def is_complete(text: str | None) -> bool:
    return is_valid_analysis(text) and ends_with_terminal_punctuation(str(text))


def classify(text: str | None) -> ValidationVerdict:
    """Return the first reason ``text`` is not a complete analysis."""
    s = str(text or "").strip()
    if not s:
        return ValidationVerdict(ok=False, category="empty")
    rule = first_failing_rule(s)
    if rule is not None:
        return ValidationVerdict(ok=False, category=rule.category, rule=rule.name)
    if missing_sections(s):
        return ValidationVerdict(ok=False, category="missing_sections")
    if not has_keyword_cue(s):
        return ValidationVerdict(ok=False, category="missing_keywords")
    if not ends_with_terminal_punctuation(s):
        return ValidationVerdict(ok=False, category="truncated")
    return ValidationVerdict(ok=True)
