"""
backend/app/providers/llm_client.py

Purpose:
    Chat-completion adapters for the analysis pipeline. One ``send`` call
    performs up to ``max_attempts`` HTTP requests with progressive timeouts,
    lower temperature on retries and linear backoff, and reports the outcome
    as an UpstreamResult instead of raising.

Dependencies:
    - httpx
    - app.providers.base
    - app.providers.http_client
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from app.config import Settings
from app.providers.base import LLMProvider, UpstreamFailure, UpstreamResult, UpstreamSuccess
from app.providers.http_client import (
    attempt_timeout,
    backoff_delay,
    is_retryable_status,
    safe_url,
)
from app.utils import truncate

logger = logging.getLogger("betlogic.llm_client")

_RAW_BODY_LIMIT = 8000


def _error_message(data: Any) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    err = data.get("error")
    if isinstance(err, dict):
        return err.get("message") or None
    if isinstance(err, str):
        return err or None
    return None


def _extract_content(data: Any) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return content if isinstance(content, str) else ""


class ChatCompletionsProvider(LLMProvider):
    """OpenAI-style ``/chat/completions`` client with bounded retries."""

    name = "chat_completions"
    display_name = "LLM provider"

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str,
        max_attempts: int = 3,
        base_timeout: float = 22.0,
        timeout_step: float = 4.0,
        backoff: float = 0.35,
        temperature: float = 0.5,
        retry_temperature: float = 0.2,
        max_tokens: int = 650,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._model = model
        self._url = f"{base_url.rstrip('/')}/chat/completions"
        self._max_attempts = max(1, int(max_attempts))
        self._base_timeout = base_timeout
        self._timeout_step = timeout_step
        self._backoff = backoff
        self._temperature = temperature
        self._retry_temperature = retry_temperature
        self._max_tokens = max_tokens
        self._client = httpx.AsyncClient(timeout=base_timeout, transport=transport)

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    def _payload(self, prompt: str, attempt: int) -> dict[str, Any]:
        return {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self._temperature if attempt == 1 else self._retry_temperature,
            "max_tokens": self._max_tokens,
        }

    async def send(self, prompt: str, attempt: int = 1) -> UpstreamResult:
        start = min(max(1, int(attempt)), self._max_attempts)
        last: Optional[UpstreamFailure] = None

        for i in range(start, self._max_attempts + 1):
            timeout = attempt_timeout(self._base_timeout, self._timeout_step, i)
            result = await self._attempt(prompt, i, timeout)
            if result.ok:
                return result

            last = result
            retryable = result.kind != "http" or is_retryable_status(result.status)
            if not retryable:
                logger.error(
                    "[%s] Fatal status %d from %s: %s",
                    self.name, result.status, safe_url(self._url), result.error,
                )
                return result

            logger.warning(
                "[%s] %s failure (status %d) on attempt %d/%d: %s",
                self.name, result.kind, result.status, i, self._max_attempts,
                result.error,
            )
            if i < self._max_attempts:
                await asyncio.sleep(backoff_delay(self._backoff, i))

        logger.error(
            "[%s] All attempts failed for %s (last status: %d)",
            self.name, safe_url(self._url), last.status,
        )
        return last

    async def _attempt(self, prompt: str, attempt: int, timeout: float) -> UpstreamResult:
        label = self.display_name
        try:
            # wait_for cancels the in-flight request once the attempt budget is spent
            resp = await asyncio.wait_for(
                self._client.post(
                    self._url,
                    json=self._payload(prompt, attempt),
                    headers=self._headers(),
                    timeout=timeout,
                ),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            return UpstreamFailure(
                status=504,
                error=f"{label} timeout",
                raw=str(exc) or f"no response within {timeout:.0f}s",
                kind="timeout",
            )
        except httpx.HTTPError as exc:
            return UpstreamFailure(
                status=502,
                error=f"{label} fetch failed",
                raw=str(exc),
                kind="network",
            )

        status = resp.status_code
        content_type = resp.headers.get("content-type", "")
        data: Any = None
        if "application/json" in content_type:
            try:
                data = resp.json()
            except ValueError:
                content_type = ""

        # HTML error pages from the provider/CDN are transient
        if "application/json" not in content_type:
            return UpstreamFailure(
                status=status if is_retryable_status(status) else 502,
                error=f"Non-JSON response from {label}",
                raw=resp.text[:_RAW_BODY_LIMIT],
                kind="non_json",
            )

        if not resp.is_success:
            return UpstreamFailure(
                status=status,
                error=_error_message(data) or f"{label} request failed",
                raw=data,
            )

        if isinstance(data, dict) and not data.get("choices") and data.get("error"):
            code = data["error"].get("code") if isinstance(data["error"], dict) else None
            return UpstreamFailure(
                status=code if isinstance(code, int) and is_retryable_status(code) else 502,
                error=_error_message(data) or f"{label} request failed",
                raw=data,
            )

        return UpstreamSuccess(raw_text=_extract_content(data))

    async def aclose(self) -> None:
        await self._client.aclose()


class OpenRouterProvider(ChatCompletionsProvider):
    name = "openrouter"
    display_name = "OpenRouter"

    def __init__(self, *, referer: str = "", title: str = "", **kwargs):
        super().__init__(**kwargs)
        self._referer = referer
        self._title = title

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        if self._referer:
            headers["HTTP-Referer"] = self._referer
        if self._title:
            headers["X-Title"] = self._title
        return headers


class OpenAIProvider(ChatCompletionsProvider):
    name = "openai"
    display_name = "OpenAI"


def _policy_kwargs(settings: Settings) -> dict[str, Any]:
    return {
        "max_attempts": settings.LLM_MAX_ATTEMPTS,
        "base_timeout": settings.LLM_BASE_TIMEOUT_SECONDS,
        "timeout_step": settings.LLM_TIMEOUT_STEP_SECONDS,
        "backoff": settings.LLM_BACKOFF_SECONDS,
        "temperature": settings.LLM_TEMPERATURE,
        "retry_temperature": settings.LLM_RETRY_TEMPERATURE,
        "max_tokens": settings.LLM_MAX_TOKENS,
    }


def build_llm_provider(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ChatCompletionsProvider:
    """Instantiate the adapter named by ``LLM_PROVIDER``."""
    provider = str(settings.LLM_PROVIDER or "").strip().lower()
    if provider == "openrouter":
        return OpenRouterProvider(
            api_key=settings.OPENROUTER_API_KEY,
            model=settings.OPENROUTER_MODEL,
            base_url=settings.OPENROUTER_BASE_URL,
            referer=settings.HTTP_REFERER,
            title=settings.APP_TITLE,
            transport=transport,
            **_policy_kwargs(settings),
        )
    if provider == "openai":
        return OpenAIProvider(
            api_key=settings.OPENAI_API_KEY,
            model=settings.OPENAI_MODEL,
            base_url=settings.OPENAI_BASE_URL,
            transport=transport,
            **_policy_kwargs(settings),
        )
    raise ValueError(f"Unknown LLM_PROVIDER: {truncate(provider, 40)!r}")
