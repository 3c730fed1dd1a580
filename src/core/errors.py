"""Error taxonomy shared by the node store, history and code generator."""

from typing import Any


class StudioError(Exception):
    """Base class for builder and generator failures."""

    code = "STUDIO_ERROR"

    def __init__(self, message: str, *, node_id: str | None = None, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.node_id = node_id
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        """Export as an API-style error payload."""
        details: dict[str, Any] = {}
        if self.node_id is not None:
            details["node_id"] = self.node_id
        if self.field is not None:
            details["field"] = self.field
        return {"code": self.code, "message": self.message, "details": details or None}


class ValidationError(StudioError):
    """Unknown component kind, or a property/style that violates its schema."""

    code = "VALIDATION_ERROR"


class NotFoundError(StudioError):
    """Operation referenced a node id that is not in the store."""

    code = "NOT_FOUND"


class CycleError(StudioError):
    """Move would make a node its own descendant."""

    code = "CYCLE"


class InternalInvariantError(StudioError):
    """Corrupted document: file-name collision, orphaned child reference, drifted roots."""

    code = "INTERNAL_INVARIANT"


__all__ = [
    "StudioError",
    "ValidationError",
    "NotFoundError",
    "CycleError",
    "InternalInvariantError",
]
