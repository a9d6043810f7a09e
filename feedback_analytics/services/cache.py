"""Content-addressed cache for computed analytics."""

import hashlib
import json
import logging
from typing import Any, Callable, Iterable, Optional

from cachetools import LRUCache

from ..config import CACHE_MAX_ENTRIES
from ..models.snapshot import FeedbackSnapshot
from .filters import AnalyticsFilters

logger = logging.getLogger(__name__)


def generate_cache_key(prefix: str, **params: Any) -> str:
    """
    Build a key for one analytics computation.

    ``prefix`` names the view family ("analytics:processed",
    "analytics:summary") and ``params`` hold the scope it was computed for,
    usually the set filters plus the snapshot version. Unset (None) params
    are left out so that an absent filter and a None filter share a key.
    """
    scope = {name: value for name, value in params.items() if value is not None}
    digest = hashlib.md5(json.dumps(scope, sort_keys=True, default=str).encode()).hexdigest()
    return f"{prefix}:{digest}"


def snapshot_version(snapshots: Iterable[FeedbackSnapshot]) -> str:
    """Hash of the snapshot contents; equal collections give equal versions."""
    digest = hashlib.md5()
    for snapshot in snapshots:
        digest.update(json.dumps(snapshot.to_dict(), sort_keys=True, default=str).encode())
        digest.update(b'\n')
    return digest.hexdigest()


class AnalyticsCache:
    """
    Get-or-compute cache keyed by filter set and snapshot version.

    Least recently used entries are evicted once ``max_entries`` is reached.
    """

    def __init__(self, max_entries: int = CACHE_MAX_ENTRIES):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._entries = LRUCache(maxsize=max_entries)
        self.hits = 0
        self.misses = 0

    def key_for(self, prefix: str, filters: Optional[AnalyticsFilters], version: str) -> str:
        params = filters.to_dict() if filters else {}
        return generate_cache_key(prefix, version=version, **params)

    def get_or_compute(self, prefix: str, filters: Optional[AnalyticsFilters],
                       snapshots, compute: Callable[[], Any]):
        key = self.key_for(prefix, filters, snapshot_version(snapshots))
        if key in self._entries:
            self.hits += 1
            logger.debug("Cache hit: %s", key)
            return self._entries[key]

        self.misses += 1
        logger.debug("Cache miss: %s", key)
        value = compute()
        self._entries[key] = value
        return value

    def invalidate(self, prefix: Optional[str] = None) -> int:
        """Drop every entry, or only those under ``prefix``. Returns the count removed."""
        if prefix is None:
            removed = len(self._entries)
            self._entries.clear()
        else:
            keys = [k for k in self._entries if k.startswith(f"{prefix}:")]
            for key in keys:
                self._entries.pop(key, None)
            removed = len(keys)
        logger.info(f"Invalidated {removed} cached analytics entries")
        return removed

    def stats(self):
        return {'entries': len(self._entries), 'hits': self.hits, 'misses': self.misses}

    def __len__(self):
        return len(self._entries)
