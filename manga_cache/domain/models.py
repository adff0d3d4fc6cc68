"""Cache entry and statistics models."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

BYTES_PER_CHAR = 2
BYTES_PER_MB = 1024 * 1024


def estimate_size(value: Any) -> int:
    """Approximate storage cost of a value: two bytes per serialized character.

    Raw bytes are counted as-is. Values json cannot encode (including mapping
    keys it rejects and circular structures) are measured by their repr, since
    the estimate only drives eviction timing and must never fail a store.
    """
    if isinstance(value, str):
        return len(value) * BYTES_PER_CHAR
    if isinstance(value, (bytes, bytearray, memoryview)):
        return len(value)
    try:
        rendered = json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=repr)
    except (TypeError, ValueError):
        rendered = repr(value)
    return len(rendered) * BYTES_PER_CHAR


@dataclass
class CacheEntry:
    key: str
    value: Any
    created_at: float
    expires_at: float
    size_bytes: int = 0

    @classmethod
    def create(
        cls,
        key: str,
        value: Any,
        *,
        now: float,
        ttl: float,
        size_bytes: Optional[int] = None,
    ) -> "CacheEntry":
        return cls(
            key=key,
            value=value,
            created_at=now,
            expires_at=now + ttl,
            size_bytes=estimate_size(value) if size_bytes is None else size_bytes,
        )

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class CacheStatistics(BaseModel):
    """Point-in-time snapshot of the cache counters."""

    model_config = ConfigDict(frozen=True)

    total_items: int = Field(default=0, ge=0)
    total_size: int = Field(default=0, ge=0)
    hits: int = Field(default=0, ge=0)
    misses: int = Field(default=0, ge=0)
    evictions: int = Field(default=0, ge=0)
    expirations: int = Field(default=0, ge=0)
    max_size: int = Field(default=0, ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def miss_rate(self) -> float:
        total = self.hits + self.misses
        return self.misses / total if total > 0 else 0.0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def size_readable(self) -> str:
        return f"{self.total_size / BYTES_PER_MB:.2f}MB"
