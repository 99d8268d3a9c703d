"""
backend/app/services/analysis_service.py

Purpose:
    Retry/continuation pipeline behind POST /analyze. Drives at most three
    sequential upstream calls per request:

        first attempt -> (invalid) strict retry -> (truncated) continuation

    Every raw answer is sanitized and gated by the validator; only complete
    analyses are cached and returned. Unusable output surfaces as
    OutputInvalid / OutputTruncated for the caller to resubmit.

Dependencies:
    - app.providers.base
    - app.services.analysis_cache
    - app.services.analysis_validator
    - app.services.prompt_templates
    - app.services.text_sanitizer
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

import httpx

from app.config import Settings
from app.errors import (
    ConfigurationError,
    OutputInvalid,
    OutputTruncated,
    UpstreamError,
    UpstreamFatal,
    UpstreamTransient,
)
from app.models.analysis import AnalysisRequest
from app.providers.base import LLMProvider, UpstreamFailure
from app.providers.http_client import is_retryable_status
from app.providers.llm_client import build_llm_provider
from app.services.analysis_cache import AnalysisCache
from app.services.analysis_validator import (
    classify,
    has_code_signals,
    is_complete,
    is_structured_analysis,
)
from app.services.prompt_templates import PromptTemplate, RO_MATCH_ANALYSIS, get_prompt_template
from app.services.text_sanitizer import sanitize
from app.utils import truncate

logger = logging.getLogger("betlogic.analysis")

FIRST_ATTEMPT = 1
STRICT_RETRY_ATTEMPT = 2
CONTINUATION_ATTEMPT = 3

INVALID_OUTPUT_MESSAGE = "Nu am putut genera o analiză validă. Încearcă din nou."
TRUNCATED_OUTPUT_MESSAGE = "Analiza generată este incompletă. Încearcă din nou."

_SECTION_NUMBER = re.compile(r"^[ \t]*(\d)[.)]\s", re.M)
_SECTION_ONE_WORD = re.compile(r"^[ \t]*1[.)]\s+(\w+)", re.M)


@dataclass(frozen=True)
class AnalysisResult:
    text: str
    cached: bool = False


def _upstream_error(failure: UpstreamFailure, stage: str) -> UpstreamError:
    debug = {
        "stage": stage,
        "upstream_status": failure.status,
        "kind": failure.kind,
        "raw": truncate(failure.raw, 2000),
    }
    if failure.kind == "timeout":
        return UpstreamTransient(
            failure.error, status_code=504, reason="upstream_timeout", debug=debug,
        )
    if failure.kind != "http" or is_retryable_status(failure.status):
        return UpstreamTransient(failure.error, debug=debug)
    return UpstreamFatal(failure.error, debug=debug)


def _opening_word(text: str) -> Optional[str]:
    """First word of section 1, casefolded; None when there is no section 1."""
    match = _SECTION_ONE_WORD.search(text)
    return match.group(1).casefold() if match else None


def _is_restart(partial: str, continuation: str) -> bool:
    """True when ``continuation`` rewrites the analysis from section 1.

    A leading ``1)`` alone is not enough: sub-points inside section 3 are
    numbered from 1 as well, so the opening word has to match the partial's.
    """
    first = _SECTION_NUMBER.match(continuation)
    if not first or first.group(1) != "1":
        return False
    opening = _opening_word(partial)
    return opening is not None and opening == _opening_word(continuation)


def merge_continuation(partial: str, continuation: str) -> str:
    """Append ``continuation`` to ``partial`` without repeating sections.

    When the model restarted from section 1, the partial is cut back to just
    before its highest section marker (that section may be cut off) and the
    continuation resumes at the first marker numbered at least as high.
    """
    head = continuation.strip()
    markers = list(_SECTION_NUMBER.finditer(partial))
    if markers and _is_restart(partial, head):
        highest = max(int(m.group(1)) for m in markers)
        cut = next(m for m in markers if int(m.group(1)) == highest)
        resume = next(
            (m for m in _SECTION_NUMBER.finditer(head) if int(m.group(1)) >= highest),
            None,
        )
        if resume is None:
            return partial
        partial = partial[:cut.start()]
        head = head[resume.start():].strip()
    if not head:
        return partial
    joiner = "\n" if _SECTION_NUMBER.match(head) else " "
    return sanitize(partial.rstrip() + joiner + head)


def choose_continuation(partial: str, continuation: str) -> str:
    """Pick merged, then continuation alone, then the untouched partial."""
    if not continuation or has_code_signals(continuation):
        return partial
    merged = merge_continuation(partial, continuation)
    if is_complete(merged):
        return merged
    if is_complete(continuation):
        return continuation
    return partial


class AnalysisService:
    def __init__(
        self,
        provider: LLMProvider,
        cache: AnalysisCache,
        template: PromptTemplate = RO_MATCH_ANALYSIS,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._template = template

    @property
    def provider(self) -> LLMProvider:
        return self._provider

    @property
    def cache(self) -> AnalysisCache:
        return self._cache

    def ensure_configured(self) -> None:
        if not self._provider.configured:
            raise ConfigurationError(f"Missing {self._provider.name} API key")

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        key = request.cache_key()
        cached = self._cache.get(key)
        if cached is not None:
            logger.info("Analysis cache hit for %s", key)
            return AnalysisResult(text=cached, cached=True)

        self.ensure_configured()

        text = await self._generate(
            self._template.base_prompt(request), FIRST_ATTEMPT, "first_attempt",
        )

        if not is_structured_analysis(text):
            verdict = classify(text)
            logger.warning(
                "Invalid output for %s (%s/%s), retrying with strict prompt",
                key, verdict.category, verdict.rule,
            )
            text = await self._generate(
                self._template.strict_prompt(request), STRICT_RETRY_ATTEMPT, "strict_retry",
            )
            if self._template.is_sentinel(text) or not is_structured_analysis(text):
                verdict = classify(text)
                logger.error(
                    "Invalid output after strict retry for %s (%s/%s): %s",
                    key, verdict.category, verdict.rule, truncate(text, 300),
                )
                raise OutputInvalid(
                    INVALID_OUTPUT_MESSAGE,
                    debug={"category": verdict.category, "rule": verdict.rule,
                           "text": truncate(text, 2000)},
                )

        if not is_complete(text):
            logger.warning(
                "Incomplete output for %s (%s), requesting continuation",
                key, classify(text).category,
            )
            continuation = await self._generate(
                self._template.continuation_prompt(request, text),
                CONTINUATION_ATTEMPT,
                "continuation",
            )
            text = choose_continuation(text, continuation)

        if not is_complete(text):
            verdict = classify(text)
            logger.error("Output still truncated for %s (%s)", key, verdict.category)
            raise OutputTruncated(
                TRUNCATED_OUTPUT_MESSAGE,
                debug={"category": verdict.category, "text": truncate(text, 2000)},
            )

        self._cache.set(key, text)
        return AnalysisResult(text=text)

    async def _generate(self, prompt: str, attempt: int, stage: str) -> str:
        result = await self._provider.send(prompt, attempt)
        if not result.ok:
            logger.error(
                "Upstream failure during %s: status=%d kind=%s error=%s raw=%s",
                stage, result.status, result.kind, result.error, truncate(result.raw),
            )
            raise _upstream_error(result, stage)
        return sanitize(result.raw_text)

    async def aclose(self) -> None:
        await self._provider.aclose()


def build_analysis_service(
    settings: Settings,
    *,
    cache: Optional[AnalysisCache] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AnalysisService:
    provider = build_llm_provider(settings, transport=transport)
    if cache is None:
        cache = AnalysisCache(ttl_seconds=settings.ANALYSIS_CACHE_TTL_SECONDS)
    template = get_prompt_template(settings.ANALYSIS_PROMPT_TEMPLATE)
    return AnalysisService(provider, cache, template)
