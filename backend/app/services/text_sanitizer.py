"""
backend/app/services/text_sanitizer.py

Purpose:
    Strip markdown artifacts from free-form model output and normalize
    whitespace, leaving plain text.

Dependencies:
    - re
"""

from __future__ import annotations

import re

# Order matters: line-level markers go before inline emphasis so that a
# "* item" bullet is not read as the opening of an italic span.
_SUBSTITUTIONS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"```[\s\S]*?```"), ""),  # fenced blocks are dropped, not unwrapped
    (re.compile(r"`+"), ""),
    (re.compile(r"^[ \t]{0,3}#{1,6}[ \t]+", re.M), ""),
    (re.compile(r"^[ \t]*>[ \t]?", re.M), ""),
    (re.compile(r"^[ \t]*[-•*][ \t]+", re.M), ""),
    (re.compile(r"\*\*([^*]+)\*\*"), r"\1"),
    (re.compile(r"__([^_]+)__"), r"\1"),
    (re.compile(r"\*([^*]+)\*"), r"\1"),
    (re.compile(r"_([^_]+)_"), r"\1"),
    (re.compile(r"\[(.*?)\]\((.*?)\)"), r"\1"),
)

_CRLF = re.compile(r"\r\n?")
_BLANK_RUN = re.compile(r"\n[ \t]*\n(?:[ \t]*\n)+")


def _single_pass(text: str) -> str:
    for pattern, replacement in _SUBSTITUTIONS:
        text = pattern.sub(replacement, text)
    text = _CRLF.sub("\n", text)
    text = _BLANK_RUN.sub("\n\n", text)
    return text.strip()


def sanitize(raw_text: str | None) -> str:
    """Return ``raw_text`` as plain text.

    Every substitution shortens the text (or turns a lone CR into LF), so
    repeating the pass until nothing changes terminates at a fixed point:
    ``sanitize(sanitize(x)) == sanitize(x)``.
    """
    if not raw_text:
        return ""
    text = str(raw_text)
    while True:
        cleaned = _single_pass(text)
        if cleaned == text:
            return cleaned
        text = cleaned
