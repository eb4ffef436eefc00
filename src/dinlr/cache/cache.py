"""In-memory response cache for GET requests.

Each :class:`~dinlr.client.DinlrClient` owns one :class:`ResponseCache`.
Entries hold the decoded response payload and an absolute expiry time and
are never shared between clients or processes. Payloads are deep-copied on
the way in and out, so callers can modify what they get back without
changing later cache hits.

Cache keys are the literal ``(endpoint_id, canonical_params)`` pair, where
``canonical_params`` is the parameter dict serialised with sorted keys, so
identical requests resolve to the same entry regardless of parameter order
and different requests can never collide.

Expired entries are evicted when a lookup touches them, on :meth:`sweep`,
and whenever the store reaches ``max_entries``.
"""

from __future__ import annotations

import copy
import json
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from dinlr.models import CacheConfig

CacheKey = tuple[str, str]


@dataclass
class CacheEntry:
    """A stored payload and the clock value after which it is stale."""

    payload: Any
    expires_at: float


class ResponseCache:
    """Short-lived store of successful read results.

    Args:
        config: Cache settings (``enabled``, ``ttl_seconds``, ``max_entries``).
            Defaults to :class:`~dinlr.models.CacheConfig`.
        clock: Callable returning the current time in seconds. Defaults to
            :func:`time.monotonic`; tests pass a fake clock.

    Example::

        cache = ResponseCache()
        cache.lookup("GET /items", {})            # -> None
        cache.store("GET /items", {}, [{"id": 1}], ttl_seconds=300)
        cache.lookup("GET /items", {})            # -> [{"id": 1}]
        cache.clear()
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or CacheConfig()
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, endpoint_id: str, params: Optional[dict[str, Any]] = None) -> Any:
        """Return a copy of the cached payload for a request, or ``None`` on a miss.

        An entry is fresh while the clock is strictly before its expiry. A
        stale entry is removed as part of the lookup.
        """
        if not self._config.enabled:
            return None

        key = self.make_key(endpoint_id, params)
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if entry.expires_at <= self._clock():
            del self._entries[key]
            self._misses += 1
            return None

        self._hits += 1
        return copy.deepcopy(entry.payload)

    def store(
        self,
        endpoint_id: str,
        params: Optional[dict[str, Any]],
        payload: Any,
        ttl_seconds: Optional[float] = None,
    ) -> None:
        """Insert or overwrite the entry for a request.

        Args:
            endpoint_id: Request identity, e.g. ``"GET /locations"``.
            params: Request parameters; part of the key.
            payload: Decoded response body.
            ttl_seconds: Lifetime of the entry. Defaults to
                ``config.ttl_seconds``.
        """
        if not self._config.enabled:
            return

        ttl = self._config.ttl_seconds if ttl_seconds is None else ttl_seconds
        key = self.make_key(endpoint_id, params)

        # Re-insert so overwritten keys move to the back of the eviction order.
        self._entries.pop(key, None)
        if len(self._entries) >= self._config.max_entries:
            self._make_room()
        self._entries[key] = CacheEntry(
            payload=copy.deepcopy(payload), expires_at=self._clock() + ttl
        )

    def invalidate(self, endpoint_id: str, params: Optional[dict[str, Any]] = None) -> None:
        """Remove the single entry for exactly this request, if present."""
        self._entries.pop(self.make_key(endpoint_id, params), None)

    def clear(self) -> None:
        """Remove all entries."""
        self._entries.clear()

    def sweep(self) -> int:
        """Remove every expired entry and return how many were dropped."""
        now = self._clock()
        stale = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            A ``dict`` with ``enabled``, ``size``, ``ttl_seconds``,
            ``max_entries``, ``hits`` and ``misses``.
        """
        return {
            "enabled": self._config.enabled,
            "size": len(self._entries),
            "ttl_seconds": self._config.ttl_seconds,
            "max_entries": self._config.max_entries,
            "hits": self._hits,
            "misses": self._misses,
        }

    @staticmethod
    def make_key(endpoint_id: str, params: Optional[dict[str, Any]]) -> CacheKey:
        """Build the literal cache key for a request."""
        canonical = json.dumps(params or {}, sort_keys=True, separators=(",", ":"), default=str)
        return endpoint_id, canonical

    def _make_room(self) -> None:
        """Sweep expired entries, then evict oldest-inserted until one slot is free."""
        self.sweep()
        while len(self._entries) >= self._config.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
