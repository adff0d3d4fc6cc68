from __future__ import annotations

import os
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from manga_cache.domain.models import BYTES_PER_MB


def get_env_int(
    env_name: str,
    default_value: int,
    *,
    min_value: Optional[int] = None,
    max_value: Optional[int] = None,
) -> int:
    raw_value = os.getenv(env_name)
    if raw_value is None:
        value = default_value
    else:
        try:
            value = int(raw_value)
        except ValueError as exc:
            raise ValueError(
                f"{env_name} must be an integer, got {raw_value!r}"
            ) from exc

    if min_value is not None and value < min_value:
        raise ValueError(f"{env_name} must be >= {min_value}, got {value}")
    if max_value is not None and value > max_value:
        raise ValueError(f"{env_name} must be <= {max_value}, got {value}")
    return value


def get_env_choice(env_name: str, default_value: str, choices: set[str]) -> str:
    value = os.getenv(env_name, default_value).strip().lower()
    if value not in choices:
        raise ValueError(
            f"{env_name} must be one of {sorted(choices)}, got {value!r}"
        )
    return value


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_size_mb: int = Field(ge=1)
    default_ttl: int = Field(ge=1)
    cleanup_interval: int = Field(ge=1)
    http_host: str
    http_port: int = Field(ge=1, le=65535)
    log_level: str
    log_format: Literal["text", "json"]

    @property
    def max_size_bytes(self) -> int:
        return self.max_size_mb * BYTES_PER_MB


def load_settings() -> Settings:
    return Settings(
        max_size_mb=get_env_int("CACHE_MAX_SIZE_MB", 50, min_value=1),
        default_ttl=get_env_int("CACHE_DEFAULT_TTL", 24 * 60 * 60, min_value=1),
        cleanup_interval=get_env_int("CACHE_CLEANUP_INTERVAL", 5 * 60, min_value=1),
        http_host=os.getenv("CACHE_HTTP_HOST", "0.0.0.0"),
        http_port=get_env_int("CACHE_HTTP_PORT", 8080, min_value=1, max_value=65535),
        log_level=os.getenv("CACHE_LOG_LEVEL", "INFO").upper(),
        log_format=get_env_choice("CACHE_LOG_FORMAT", "text", {"text", "json"}),
    )
