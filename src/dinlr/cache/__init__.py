"""In-memory response caching for dinlr.

This package provides :class:`ResponseCache`, the per-client store of
successful GET results consulted by :meth:`~dinlr.client.DinlrClient.request`
before any network call. Its behaviour is controlled by
:class:`~dinlr.models.CacheConfig`.
"""

from dinlr.cache.cache import CacheEntry, ResponseCache

__all__ = ["CacheEntry", "ResponseCache"]
