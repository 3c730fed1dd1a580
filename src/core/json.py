"""Fast JSON encoding/decoding for project documents and generated manifests."""

from typing import Any

import orjson


class JSONParseError(Exception):
    """JSON parsing failed."""

    def __init__(self, message: str, original: Exception | None = None) -> None:
        super().__init__(message)
        self.original = original


def loads_object(text: str | bytes) -> dict[str, Any]:
    """
    Parse a JSON document that must be an object.

    Args:
        text: JSON text

    Returns:
        Parsed dictionary

    Raises:
        JSONParseError: If the text is not valid JSON or not an object
    """
    try:
        result = orjson.loads(text)
    except orjson.JSONDecodeError as e:
        raise JSONParseError(f"Invalid JSON: {e}", e) from e

    if not isinstance(result, dict):
        raise JSONParseError(f"Expected object, got {type(result).__name__}")
    return result


def dumps_compact(obj: Any, sort_keys: bool = False) -> str:
    """Encode to a compact JSON string."""
    option = orjson.OPT_SORT_KEYS if sort_keys else 0
    return orjson.dumps(obj, option=option).decode("utf-8")


def dumps_pretty(obj: Any) -> str:
    """
    Encode to deterministic, human-readable JSON.

    Two-space indentation, sorted keys and a trailing newline, so identical
    input always yields byte-identical output.
    """
    return orjson.dumps(obj, option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS).decode("utf-8") + "\n"


__all__ = ["JSONParseError", "loads_object", "dumps_compact", "dumps_pretty"]
