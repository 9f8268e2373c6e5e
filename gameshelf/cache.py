"""
Expiring Cache Module for GameShelf
Generic time-boxed key/value cache shared by the IGDB token cache and the
IGDB response cache. Entries can optionally be persisted to a JSON file so
they survive restarts.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from gameshelf.utils import read_json, safe_write_json

logger = logging.getLogger(__name__)

_MISSING = object()


class ExpiringCache:
    def __init__(self, path: Optional[str] = None, default_ttl: float = 24 * 60 * 60,
                 clock: Callable[[], float] = time.time):
        self.path = path
        self.default_ttl = default_ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Dict[str, Any]] = {}
        self._stats = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "deletes": 0,
        }
        if self.path:
            self._entries = read_json(self.path, default={}) or {}

    def _persist(self):
        if self.path:
            safe_write_json(self.path, self._entries)

    def set(self, key: str, value: Any, ttl: Optional[float] = None):
        """
        Store a value with a time to live

        Args:
            key: Cache key
            value: Value to cache (JSON-serializable when the cache is persisted)
            ttl: Time to live in seconds (defaults to ``default_ttl``)
        """
        ttl = self.default_ttl if ttl is None else ttl
        with self._lock:
            self._entries[key] = {"value": value, "expiry": self._clock() + ttl}
            self._stats["sets"] += 1
            self._persist()
        logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Value for ``key`` while ``now <= expiry``; expired entries are removed
        and reported as a miss
        """
        with self._lock:
            entry = self._entries.get(key, _MISSING)
            if entry is _MISSING:
                self._stats["misses"] += 1
                logger.debug(f"Cache MISS: {key}")
                return default
            if self._clock() > entry["expiry"]:
                del self._entries[key]
                self._stats["misses"] += 1
                self._persist()
                logger.debug(f"Cache EXPIRED: {key}")
                return default
            self._stats["hits"] += 1
            logger.debug(f"Cache HIT: {key}")
            return entry["value"]

    def get_expiry(self, key: str) -> Optional[float]:
        with self._lock:
            entry = self._entries.get(key)
            return entry["expiry"] if entry else None

    def is_valid(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and self._clock() <= entry["expiry"]

    def delete(self, key: str) -> bool:
        with self._lock:
            removed = self._entries.pop(key, None) is not None
            if removed:
                self._stats["deletes"] += 1
                self._persist()
        if removed:
            logger.debug(f"Cache DELETE: {key}")
        return removed

    def clear_pattern(self, pattern: str) -> int:
        """Delete every key containing ``pattern``"""
        with self._lock:
            keys = [key for key in self._entries if pattern in key]
            for key in keys:
                del self._entries[key]
            if keys:
                self._stats["deletes"] += len(keys)
                self._persist()
        if keys:
            logger.info(f"Cache DELETE: {pattern} ({len(keys)} keys)")
        return len(keys)

    def clear(self):
        with self._lock:
            count = len(self._entries)
            self._entries = {}
            self._stats["deletes"] += count
            self._persist()
        logger.info(f"Cleared all cache entries ({count} keys)")

    def get_stats(self) -> Dict:
        with self._lock:
            return {**self._stats, "size": len(self._entries)}

    def reset_stats(self):
        with self._lock:
            for name in self._stats:
                self._stats[name] = 0
