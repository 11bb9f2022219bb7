"""JSON sanitisation shared by the WebSocket ingest channel and the replay CLI.

Snapshots are plain dicts of floats, but integration drift or a corrupt
input stream can put NaN / Inf in them; those are not valid JSON.
"""

from __future__ import annotations

import enum
import json
import logging
import math
from typing import Any

import numpy as np

__all__ = [
    "safe_json_dumps",
    "safe_json_loads",
    "sanitize_for_json",
    "sanitize_value",
]

LOGGER = logging.getLogger(__name__)


def sanitize_for_json(obj: Any) -> tuple[Any, bool]:
    """Return a JSON-safe copy of *obj* and whether it held NaN or Inf.

    Non-finite floats become ``None``.  Enums collapse to their value, records
    with ``to_dict()`` to dicts, numpy arrays to lists and numpy scalars to
    Python numbers.
    """
    non_finite = [False]

    def _clean(value: Any) -> Any:
        if isinstance(value, enum.Enum):
            return _clean(value.value)
        if callable(getattr(value, "to_dict", None)):
            return _clean(value.to_dict())
        if isinstance(value, np.ndarray):
            return _clean(value.tolist())
        if isinstance(value, np.generic):
            return _clean(value.item())
        if isinstance(value, float) and not math.isfinite(value):
            non_finite[0] = True
            return None
        if isinstance(value, dict):
            return {key: _clean(item) for key, item in value.items()}
        if isinstance(value, (list, tuple)):
            return [_clean(item) for item in value]
        return value

    return _clean(obj), non_finite[0]


def sanitize_value(value: Any) -> Any:
    cleaned, had_non_finite = sanitize_for_json(value)
    if had_non_finite:
        LOGGER.debug("Non-finite values in payload were serialised as null")
    return cleaned


def safe_json_dumps(value: Any, *, indent: int | None = None) -> str:
    """Sanitise *value* and serialise it (``allow_nan=False``)."""
    return json.dumps(sanitize_value(value), ensure_ascii=False, allow_nan=False, indent=indent)


def safe_json_loads(value: str | None, *, context: str) -> Any | None:
    """Deserialise a JSON string, returning ``None`` on empty/invalid input.

    *context* identifies the source in the warning::

        safe_json_loads(message, context="ws ingest")
    """
    if not value:
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        LOGGER.warning("Ignoring malformed JSON from %s", context, exc_info=True)
        return None
