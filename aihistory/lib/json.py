"""Central JSON utilities using orjson."""

from __future__ import annotations

from typing import Any

import orjson

from aihistory.lib.log import get_logger

logger = get_logger(__name__)

# orjson.JSONDecodeError subclasses ValueError
JSONDecodeError = ValueError


def dumps(obj: Any, *, sort_keys: bool = False) -> str:
    """Dump object to a JSON string."""
    option = orjson.OPT_SORT_KEYS if sort_keys else None
    if option is None:
        return orjson.dumps(obj).decode("utf-8")
    return orjson.dumps(obj, option=option).decode("utf-8")


def loads(obj: str | bytes) -> Any:
    """Load object from JSON string or bytes."""
    return orjson.loads(obj)


def parse_json_safe(raw: str | bytes | None) -> Any:
    """Parse JSON, returning None for empty or malformed input."""
    if not raw:
        return None
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError as exc:
        logger.debug("json_parse_failed", error=str(exc))
        return None


__all__ = ["JSONDecodeError", "dumps", "loads", "parse_json_safe"]
