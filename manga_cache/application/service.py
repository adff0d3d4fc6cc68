from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional

from manga_cache.domain.keys import build_key
from manga_cache.domain.models import CacheStatistics

from .ports import CacheStorePort

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheApplicationService:
    """Prefix + params front end over a key-level store.

    Keys are built before the store lock is taken, so a params object that
    cannot be serialized fails here without touching the store.
    """

    store: CacheStorePort

    def get(self, prefix: str, params: Mapping[str, Any]) -> Optional[Any]:
        key = build_key(prefix, params)
        value = self.store.get(key)
        logger.debug("cache lookup prefix=%s value_present=%s", prefix, value is not None)
        return value

    def has(self, prefix: str, params: Mapping[str, Any]) -> bool:
        return self.store.has(build_key(prefix, params))

    def set(
        self,
        prefix: str,
        params: Mapping[str, Any],
        value: Any,
        ttl: Optional[float] = None,
    ) -> None:
        self.store.set(build_key(prefix, params), value, ttl=ttl)

    def delete(self, prefix: str, params: Mapping[str, Any]) -> bool:
        return self.store.delete(build_key(prefix, params))

    def get_or_set(
        self,
        prefix: str,
        params: Mapping[str, Any],
        factory: Callable[[], Any],
        ttl: Optional[float] = None,
    ) -> Any:
        key = build_key(prefix, params)
        cached = self.store.get(key)
        if cached is not None:
            return cached

        value = factory()
        if value is not None:
            self.store.set(key, value, ttl=ttl)
        return value

    def clear(self) -> None:
        self.store.clear()
        logger.info("Cache cleared")

    def get_stats(self) -> CacheStatistics:
        return self.store.stats()
