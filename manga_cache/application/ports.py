from __future__ import annotations

from typing import Any, Optional, Protocol

from manga_cache.domain.models import CacheStatistics


class CacheStorePort(Protocol):
    max_size_bytes: int
    default_ttl: float

    def get(self, key: str) -> Optional[Any]: ...

    def has(self, key: str) -> bool: ...

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None: ...

    def delete(self, key: str) -> bool: ...

    def clear(self) -> None: ...

    def stats(self) -> CacheStatistics: ...
