"""Core utilities and infrastructure."""

from .config import Settings, get_settings
from .errors import (
    StudioError,
    ValidationError,
    NotFoundError,
    CycleError,
    InternalInvariantError,
)
from .validate import (
    ValidationResult,
    validate_json_size,
    validate_json_depth,
    validate_tree_depth,
    document_depth_limit,
)
from .logging_config import configure_logging, get_logger, LogContext
from .json import JSONParseError, loads_object, dumps_compact, dumps_pretty
from .hash import Algorithm, hash_string, hash_fields, fingerprint_files


def create_container(settings: Settings | None = None):
    """Create dependency injection container (lazy import to avoid circular deps)."""
    from .container import create_container as _create_container

    return _create_container(settings)


__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Errors
    "StudioError",
    "ValidationError",
    "NotFoundError",
    "CycleError",
    "InternalInvariantError",
    # Validation
    "ValidationResult",
    "validate_json_size",
    "validate_json_depth",
    "validate_tree_depth",
    "document_depth_limit",
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
    # JSON
    "JSONParseError",
    "loads_object",
    "dumps_compact",
    "dumps_pretty",
    # Hashing
    "Algorithm",
    "hash_string",
    "hash_fields",
    "fingerprint_files",
    # DI
    "create_container",
]
