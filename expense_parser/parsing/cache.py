"""
Result cache for parsed messages.

Keys are normalized message texts; values are CachedExtraction entries
that keep the paid date as an unresolved expression.

Unbounded by default (process-lifetime map). Pass max_entries to get
LRU eviction for long-running deployments.
"""

import threading
from collections import OrderedDict
from typing import Any, Optional

from expense_parser.models.expense import CachedExtraction


def normalize_key(raw: str) -> str:
    """
    Canonical cache key for a message: trimmed and lower-cased.

    Internal whitespace and punctuation are kept, so "ăn trưa 150k" and
    "ăn  trưa 150k" are different keys.
    """
    return raw.strip().lower()


class ResultCache:
    """
    Thread-safe map from normalized message to CachedExtraction.
    """

    def __init__(self, max_entries: Optional[int] = None):
        """
        Initialize the cache.

        Args:
            max_entries: LRU bound. None keeps every entry for the
                        lifetime of the process.
        """
        if max_entries is not None and max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self.max_entries = max_entries
        self._entries: OrderedDict[str, CachedExtraction] = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[CachedExtraction]:
        """Return the entry for key, or None."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            self._hits += 1
            if self.max_entries is not None:
                self._entries.move_to_end(key)
            return entry

    def put(self, key: str, entry: CachedExtraction) -> None:
        """Store entry under key, evicting the least recently used if full."""
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            self._entries[key] = entry

            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            return {
                "size": len(self._entries),
                "max_entries": self.max_entries,
                "hits": self._hits,
                "misses": self._misses,
            }
