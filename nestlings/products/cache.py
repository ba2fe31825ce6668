"""
In-memory TTL cache for product queries.

One instance is built at application start and handed to whoever needs
it; nothing here is a module-level singleton. Expired entries count as
misses and are evicted when read; writes also sweep expired entries and,
at ``max_entries``, drop the oldest insertion.
"""
from __future__ import annotations

import hashlib
import json
import threading
import time
from collections.abc import Callable
from typing import Any

DEFAULT_TTL_SECONDS = 300.0  # 5 minutes
DEFAULT_MAX_ENTRIES = 1024


class TTLCache:
    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> None:
        self.default_ttl = default_ttl
        self.max_entries = max(max_entries, 1)
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @staticmethod
    def make_key(prefix: str, payload: Any) -> str:
        normalized = json.dumps(payload, sort_keys=True, default=str)
        digest = hashlib.sha256(normalized.encode()).hexdigest()[:16]
        return f"{prefix}:{digest}"

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry and self._clock() < entry[1]:
                self._hits += 1
                return entry[0]
            if entry:
                del self._entries[key]
            self._misses += 1
            return None

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        now = self._clock()
        expires_at = now + (self.default_ttl if ttl is None else ttl)
        with self._lock:
            self._entries.pop(key, None)
            self._sweep(now)
            while len(self._entries) >= self.max_entries:
                del self._entries[next(iter(self._entries))]
            self._entries[key] = (value, expires_at)

    def _sweep(self, now: float) -> None:
        expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> int:
        """Drop every entry whose key starts with ``prefix``."""
        with self._lock:
            stale = [k for k in self._entries if k.startswith(prefix)]
            for key in stale:
                del self._entries[key]
            return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "size": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
            }
