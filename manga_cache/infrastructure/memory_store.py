from __future__ import annotations

import logging
import time
from collections import OrderedDict
from threading import Event, Lock, Thread
from typing import Any, Callable, Optional

from manga_cache.domain.models import BYTES_PER_MB, CacheEntry, CacheStatistics, estimate_size

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE_BYTES = 50 * 1024 * 1024
DEFAULT_TTL_SECONDS = 24 * 60 * 60
DEFAULT_CLEANUP_INTERVAL = 5 * 60
LOW_WATER_RATIO = 0.8


class CacheStore:
    """Thread-safe in-memory store with TTL expiry and a byte budget.

    Entries are kept in insertion order, which is also ``created_at`` order
    because a replaced key is re-appended at the end.
    """

    def __init__(
        self,
        max_size_bytes: Optional[int] = None,
        default_ttl: Optional[float] = None,
        cleanup_interval: Optional[float] = None,
        clock: Optional[Callable[[], float]] = None,
        start_cleaner: bool = True,
    ):
        resolved_max_size = DEFAULT_MAX_SIZE_BYTES if max_size_bytes is None else max_size_bytes
        if resolved_max_size < 1:
            raise ValueError(f"max_size_bytes must be >= 1, got {resolved_max_size}")

        resolved_default_ttl = DEFAULT_TTL_SECONDS if default_ttl is None else default_ttl
        if resolved_default_ttl <= 0:
            raise ValueError(f"default_ttl must be > 0, got {resolved_default_ttl}")

        resolved_cleanup_interval = (
            DEFAULT_CLEANUP_INTERVAL if cleanup_interval is None else cleanup_interval
        )
        if resolved_cleanup_interval <= 0:
            raise ValueError(f"cleanup_interval must be > 0, got {resolved_cleanup_interval}")

        self.max_size_bytes = resolved_max_size
        self.default_ttl = resolved_default_ttl
        self.cleanup_interval = resolved_cleanup_interval

        self.store: OrderedDict[str, CacheEntry] = OrderedDict()
        self.current_size_bytes = 0
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.expirations = 0
        self.lock = Lock()
        self._clock = clock or time.monotonic

        self._stop_event = Event()
        self.cleaner_thread: Optional[Thread] = None
        if start_cleaner:
            self.cleaner_thread = Thread(
                target=self._background_cleanup, name="cache-ttl-sweep", daemon=True
            )
            self.cleaner_thread.start()

    @property
    def low_water_bytes(self) -> float:
        return self.max_size_bytes * LOW_WATER_RATIO

    def _resolve_ttl(self, ttl: Optional[float]) -> float:
        if ttl is None or ttl <= 0:
            return self.default_ttl
        return ttl

    def get(self, key: str) -> Optional[Any]:
        with self.lock:
            entry = self.store.get(key)
            if entry is None:
                self.misses += 1
                return None

            if entry.is_expired(self._clock()):
                self._remove_entry(key)
                self.expirations += 1
                self.misses += 1
                return None

            self.hits += 1
            return entry.value

    def has(self, key: str) -> bool:
        with self.lock:
            entry = self.store.get(key)
            if entry is None:
                return False
            if entry.is_expired(self._clock()):
                self._remove_entry(key)
                self.expirations += 1
                return False
            return True

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        resolved_ttl = self._resolve_ttl(ttl)
        size_bytes = estimate_size(value)
        with self.lock:
            entry = CacheEntry.create(
                key, value, now=self._clock(), ttl=resolved_ttl, size_bytes=size_bytes
            )
            self._remove_entry(key)
            self.store[key] = entry
            self.current_size_bytes += entry.size_bytes
            self._enforce_size_limit()

    def delete(self, key: str) -> bool:
        with self.lock:
            if key in self.store:
                self._remove_entry(key)
                return True
            return False

    def _remove_entry(self, key: str) -> Optional[CacheEntry]:
        """Remove entry and update size tracking"""
        entry = self.store.pop(key, None)
        if entry is not None:
            self.current_size_bytes -= entry.size_bytes
        return entry

    def _enforce_size_limit(self) -> None:
        """Evict oldest entries until usage is back under the low-water mark"""
        if self.current_size_bytes <= self.max_size_bytes:
            return

        removed = 0
        freed = 0
        while self.store and self.current_size_bytes > self.low_water_bytes:
            _, entry = self.store.popitem(last=False)
            self.current_size_bytes -= entry.size_bytes
            freed += entry.size_bytes
            removed += 1

        self.evictions += removed
        logger.info(
            "Cache size limit: removed %d items, freed %.2fMB",
            removed,
            freed / BYTES_PER_MB,
            extra={"cache": {"evicted": removed, "freed_bytes": freed}},
        )

    def cleanup_expired(self) -> int:
        """Remove every entry whose expiry time has passed. Returns count removed."""
        with self.lock:
            items = list(self.store.items())

        now = self._clock()
        expired_keys = [k for k, v in items if v.expires_at <= now]
        if not expired_keys:
            return 0

        removed = 0
        freed = 0
        with self.lock:
            for k in expired_keys:
                entry = self.store.get(k)
                if entry is not None and entry.expires_at <= now:
                    self._remove_entry(k)
                    freed += entry.size_bytes
                    removed += 1
            self.expirations += removed

        if removed:
            logger.info(
                "Cache cleanup: removed %d expired items, freed %.2fMB",
                removed,
                freed / BYTES_PER_MB,
                extra={"cache": {"expired": removed, "freed_bytes": freed}},
            )
        return removed

    def stats(self) -> CacheStatistics:
        """
        Return cache stats.

        Note: sizes are the same two-bytes-per-character estimate used for
        eviction, not measured memory.
        """
        with self.lock:
            return CacheStatistics(
                total_items=len(self.store),
                total_size=self.current_size_bytes,
                hits=self.hits,
                misses=self.misses,
                evictions=self.evictions,
                expirations=self.expirations,
                max_size=self.max_size_bytes,
            )

    def _background_cleanup(self) -> None:
        """Background thread to clean up expired entries"""
        while not self._stop_event.wait(self.cleanup_interval):
            try:
                self.cleanup_expired()
            except Exception:
                logger.exception("Error in background cleanup")

    def clear(self) -> None:
        """Clear all cache entries and reset counters"""
        with self.lock:
            self.store.clear()
            self.current_size_bytes = 0
            self.hits = 0
            self.misses = 0
            self.evictions = 0
            self.expirations = 0

    def stop(self) -> None:
        """Stop the background cleanup thread"""
        self._stop_event.set()
        if self.cleaner_thread is not None and self.cleaner_thread.is_alive():
            self.cleaner_thread.join(timeout=5)
