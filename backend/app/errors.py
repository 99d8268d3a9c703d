"""
backend/app/errors.py

Purpose:
    Error taxonomy for the analysis API. Every class carries the HTTP status
    and the machine-readable ``reason`` rendered by the exception handler in
    app.main.

Dependencies:
    - typing
"""

from __future__ import annotations

from typing import Any, Optional


class BetlogicError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    reason = "internal"

    def __init__(
        self,
        error: str,
        *,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
        debug: Optional[dict[str, Any]] = None,
    ):
        super().__init__(error)
        self.error = error
        if status_code is not None:
            self.status_code = status_code
        if reason is not None:
            self.reason = reason
        self.debug = debug

    def to_dict(self, *, include_debug: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error, "reason": self.reason}
        if include_debug and self.debug:
            payload["debug"] = self.debug
        return payload


class BadRequest(BetlogicError):
    status_code = 400
    reason = "bad_request"


class Unauthorized(BetlogicError):
    status_code = 401
    reason = "unauthorized"


class ConfigurationError(BetlogicError):
    """A required credential is missing; needs operator intervention."""

    status_code = 500
    reason = "configuration"


class UpstreamError(BetlogicError):
    status_code = 502
    reason = "upstream_unavailable"


class UpstreamTransient(UpstreamError):
    """Timeouts, 5xx, 429 and non-JSON bodies, after retries ran out."""


class UpstreamFatal(UpstreamError):
    """Non-retryable rejection by the provider (e.g. 401, 400)."""

    reason = "upstream_rejected"


class OutputInvalid(BetlogicError):
    """The model answered, but not with a usable analysis."""

    status_code = 502
    reason = "invalid_output"


class OutputTruncated(BetlogicError):
    status_code = 502
    reason = "truncated_output"
