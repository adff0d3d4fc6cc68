from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def validate_prefix(prefix: str) -> None:
    if not isinstance(prefix, str):
        raise TypeError("Prefix must be a string")


def validate_params(params: Mapping[str, Any]) -> None:
    if not isinstance(params, Mapping):
        raise TypeError("Params must be a mapping")
    for name in params:
        if not isinstance(name, str):
            raise TypeError(f"Param names must be strings, got {name!r}")
