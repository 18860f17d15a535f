"""
Canonical JSON serialization of resource projections.

Provides a stable serialization so that two structurally equal projections
always render to the same string:
- Keys are sorted recursively
- No insignificant whitespace
- Datetimes rendered the way the API renders them
- Objects exposing ``to_dict`` are serialized through it
"""

import hashlib
import json
from datetime import datetime
from typing import Any

from .dates import format_date_for_json


def canonicalize(obj: Any) -> str:
    """
    Canonicalize a Python object to a stable JSON string.

    Args:
        obj: The object to canonicalize

    Returns:
        Canonical JSON string
    """
    return json.dumps(
        obj,
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
        default=_canonical_default,
    )


def _canonical_default(obj: Any) -> Any:
    """
    Default handler for JSON serialization of non-standard types.
    """
    if isinstance(obj, datetime):
        return format_date_for_json(obj)

    if hasattr(obj, "to_dict"):
        return obj.to_dict()

    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def compute_content_hash(obj: Any) -> str:
    """
    Compute the SHA256 hash of an object's canonical projection.

    Useful to persistence layers that materialize sync deltas and want to
    skip upserts whose content did not change.

    Args:
        obj: A resource or any JSON-compatible value

    Returns:
        Hex-encoded SHA256 hash string
    """
    return hashlib.sha256(canonicalize(obj).encode("utf-8")).hexdigest()
