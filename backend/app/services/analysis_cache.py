"""
backend/app/services/analysis_cache.py

Purpose:
    Process-local TTL cache for finished analyses, keyed by fixture identity.
    One instance is created per process in the app lifespan and injected into
    the analysis service. Best-effort only: no persistence, no cross-process
    sharing, entries are evicted lazily on read.

Dependencies:
    - threading
    - time
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

DEFAULT_TTL_SECONDS = 600.0


@dataclass
class CacheEntry:
    value: str
    expires_at: float


class AnalysisCache:
    """Key -> text map with per-entry expiry and an injectable clock."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() > entry.expires_at:
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: str, ttl_seconds: Optional[float] = None) -> None:
        ttl = self._ttl if ttl_seconds is None else float(ttl_seconds)
        with self._lock:
            self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)

    def evict(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
