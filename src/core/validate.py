"""Payload limits and the Result-pattern error value.

Depth is limited in two units. Component trees are limited in component
levels (a root is level 1), which is what the node store enforces on every
add and move. Raw JSON nesting is only a pre-parse guard, derived from the
component limit so that any tree the store accepts dumps to a document that
parses back.
"""

from dataclasses import dataclass
from typing import Any

from .errors import ValidationError


MAX_PROJECT_BYTES = 5 * 1024 * 1024  # 5MB
MAX_TREE_DEPTH = 64  # component levels
MAX_VALUE_DEPTH = 16  # nesting inside a single property value

# metadata -> screens -> screen -> components, and props -> value
_DOCUMENT_OVERHEAD = 8


@dataclass(frozen=True)
class ValidationResult:
    """Validation error with details (for Result pattern)."""

    message: str
    field: str | None = None
    value: Any | None = None

    @classmethod
    def from_error(cls, error: ValidationError) -> "ValidationResult":
        return cls(message=error.message, field=error.field)


def validate_json_size(data: str | bytes, max_size: int = MAX_PROJECT_BYTES, name: str = "JSON") -> None:
    """
    Validate payload size before parsing.

    Raises:
        ValidationError: If size exceeds limit
    """
    size = len(data.encode("utf-8")) if isinstance(data, str) else len(data)
    if size > max_size:
        raise ValidationError(f"{name} size {size} bytes exceeds maximum {max_size} bytes")


def validate_json_depth(obj: Any, max_depth: int = MAX_VALUE_DEPTH, current_depth: int = 0) -> None:
    """
    Validate nesting depth of a parsed JSON value.

    Raises:
        ValidationError: If depth exceeds limit
    """
    if current_depth > max_depth:
        raise ValidationError(f"JSON nesting depth {current_depth} exceeds maximum {max_depth}")

    if isinstance(obj, dict):
        for value in obj.values():
            validate_json_depth(value, max_depth, current_depth + 1)
    elif isinstance(obj, list):
        for item in obj:
            validate_json_depth(item, max_depth, current_depth + 1)


def validate_tree_depth(depth: int, max_depth: int = MAX_TREE_DEPTH, node_id: str | None = None) -> None:
    """
    Validate the component level of a node (roots are level 1).

    Raises:
        ValidationError: If the level exceeds the limit
    """
    if depth > max_depth:
        raise ValidationError(
            f"Component nesting depth {depth} exceeds maximum {max_depth}",
            node_id=node_id,
            field="children",
        )


def document_depth_limit(max_tree_depth: int = MAX_TREE_DEPTH) -> int:
    """Raw JSON nesting a project document reaches with ``max_tree_depth`` component levels."""
    # Each component level adds the node object and its children list.
    return 2 * max_tree_depth + MAX_VALUE_DEPTH + _DOCUMENT_OVERHEAD
