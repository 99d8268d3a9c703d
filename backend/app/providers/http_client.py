import asyncio
import logging
from typing import Optional
from urllib.parse import urlparse

import httpx

logger = logging.getLogger("betlogic.http_client")

# Retryable HTTP status codes
RETRYABLE_STATUSES = frozenset({408, 409, 425, 429, 500, 502, 503, 504})


def is_retryable_status(status: int) -> bool:
    return status in RETRYABLE_STATUSES


def attempt_timeout(base: float, step: float, attempt: int) -> float:
    """Progressive timeout: later attempts get more time, not less."""
    return base + step * max(0, attempt - 1)


def backoff_delay(step: float, attempt: int) -> float:
    """Linear backoff proportional to the (1-based) attempt index."""
    return step * max(1, attempt)


def _parse_retry_after(response: httpx.Response) -> Optional[float]:
    """Extract wait time from Retry-After or X-RateLimit-Retry-After headers."""
    for header in ("retry-after", "x-ratelimit-retry-after"):
        value = response.headers.get(header)
        if value is None:
            continue
        try:
            return float(value)
        except (ValueError, TypeError):
            continue
    return None


def safe_url(url: str) -> str:
    """Strip query params (may contain API keys) for safe logging."""
    parsed = urlparse(str(url))
    return f"{parsed.scheme}://{parsed.netloc}{parsed.path}"


class ResilientClient:
    """httpx.AsyncClient wrapper with progressive timeouts and linear backoff."""

    def __init__(
        self,
        name: str,
        timeout: float = 15.0,
        max_attempts: int = 3,
        timeout_step: float = 0.0,
        backoff: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._name = name
        self._timeout = timeout
        self._timeout_step = timeout_step
        self._max_attempts = max(1, max_attempts)
        self._backoff = backoff

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Execute an HTTP request with retry/backoff on transient failures."""
        last_exc: Optional[Exception] = None
        last_resp: Optional[httpx.Response] = None

        for attempt in range(1, self._max_attempts + 1):
            timeout = attempt_timeout(self._timeout, self._timeout_step, attempt)
            try:
                resp = await self._client.request(method, url, timeout=timeout, **kwargs)

                if not is_retryable_status(resp.status_code):
                    return resp

                # Retryable status — log and maybe retry
                last_resp = resp
                logger.warning(
                    "[%s] Retryable status %d on %s %s (attempt %d/%d)",
                    self._name, resp.status_code, method, safe_url(url),
                    attempt, self._max_attempts,
                )

                if attempt < self._max_attempts:
                    delay = _parse_retry_after(resp)
                    if delay is None:
                        delay = backoff_delay(self._backoff, attempt)
                    # Cap delay at 60s
                    await asyncio.sleep(min(delay, 60.0))

            except (httpx.TimeoutException, httpx.ConnectError, httpx.RemoteProtocolError) as exc:
                last_exc = exc
                logger.warning(
                    "[%s] Network error on %s %s (attempt %d/%d): %s",
                    self._name, method, safe_url(url),
                    attempt, self._max_attempts, exc,
                )
                if attempt < self._max_attempts:
                    await asyncio.sleep(backoff_delay(self._backoff, attempt))

        # All retries exhausted
        if last_resp is not None:
            logger.error(
                "[%s] All %d attempts failed for %s %s (last status: %d)",
                self._name, self._max_attempts, method, safe_url(url),
                last_resp.status_code,
            )
            return last_resp

        # Network error on all attempts
        logger.error(
            "[%s] All %d attempts failed for %s %s: %s",
            self._name, self._max_attempts, method, safe_url(url), last_exc,
        )
        raise last_exc  # type: ignore[misc]

    async def get(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()
