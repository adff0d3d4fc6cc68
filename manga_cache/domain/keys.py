"""Fingerprint keys for cacheable generation artifacts."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from typing import Any

from .validation import validate_params, validate_prefix

PARAM_SEPARATOR = "|"


def to_json(value: Any, *, default: Callable[[Any], Any] | None = None) -> str:
    """Compact JSON with sorted object keys, non-ASCII kept verbatim.

    Without ``default`` this raises TypeError for values json cannot encode.
    Circular references always raise ValueError.
    """
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=default,
    )


def build_key(prefix: str, params: Mapping[str, Any]) -> str:
    """Build ``prefix:name1:<json>|name2:<json>`` with names in sorted order.

    The result depends only on the content of ``params``, never on the order
    its fields were set in.
    """
    validate_prefix(prefix)
    validate_params(params)
    rendered = PARAM_SEPARATOR.join(
        f"{name}:{to_json(params[name])}" for name in sorted(params)
    )
    return f"{prefix}:{rendered}"
