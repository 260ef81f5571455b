"""
Test-friendly helpers for caching derived data.

Browse pages are recomputed from the database on every request unless we
cache them, but they go stale as soon as the underlying tree changes. Rather
than tracking every key that depends on a tree, each cached value lives in a
*namespace* with a generation number. Bumping the generation makes every key
in that namespace unreachable at once; the orphaned entries age out on their
own timeout.

All namespaces we create are tracked so tests can reset them.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Hashable

from django.core.cache import cache

log = logging.getLogger(__name__)

# Prefixes of every namespace created through VersionedCache
_namespaces: list[str] = []


class VersionedCache:
    """
    A group of cache entries that can be invalidated together, per scope.

    ``scope`` is typically the id of the thing the cached data was derived
    from (e.g. a vocabulary's field id).
    """

    def __init__(self, prefix: str, timeout: int | Callable[[], int] = 300):
        self.prefix = prefix
        self._timeout = timeout
        _namespaces.append(prefix)

    @property
    def timeout(self) -> int:
        return self._timeout() if callable(self._timeout) else self._timeout

    def _generation_key(self, scope: Hashable) -> str:
        return f"{self.prefix}:gen:{scope}"

    def _generation(self, scope: Hashable) -> int:
        # Generations never expire; only the values do.
        key = self._generation_key(scope)
        cache.add(key, 1, timeout=None)
        return cache.get(key, 1)

    def make_key(self, scope: Hashable, *parts: Hashable) -> str:
        suffix = ":".join(str(part) for part in parts)
        return f"{self.prefix}:{scope}:{self._generation(scope)}:{suffix}"

    def get_or_set(self, scope: Hashable, parts: tuple, default: Callable[[], Any]) -> Any:
        """
        Return the cached value for ``parts`` within ``scope``, computing and
        storing it with ``default()`` on a miss.
        """
        key = self.make_key(scope, *parts)
        value = cache.get(key)
        if value is None:
            value = default()
            cache.set(key, value, timeout=self.timeout)
        return value

    def invalidate(self, scope: Hashable) -> None:
        """
        Make every entry cached so far for ``scope`` unreachable.
        """
        key = self._generation_key(scope)
        try:
            cache.incr(key)
        except ValueError:
            # Key was evicted (or never created); any new generation will do.
            cache.set(key, 2, timeout=None)
        log.debug(f"Invalidated cache namespace {self.prefix} for {scope}")


def clear_versioned_caches():
    """
    Invalidate all values stored through any VersionedCache.

    Useful for tests; the default cache is cleared wholesale.
    """
    if _namespaces:
        cache.clear()
