"""Project Parser - JSON to ProjectDefinition with validation."""

import pydantic
from returns.result import Failure, Result, Success

from core import Settings, get_logger, get_settings
from core.errors import ValidationError
from core.json import JSONParseError, dumps_pretty, loads_object
from core.validate import (
    ValidationResult,
    document_depth_limit,
    validate_json_depth,
    validate_json_size,
    validate_tree_depth,
)
from models import ProjectDefinition

logger = get_logger(__name__)


def parse_project(text: str | bytes, settings: Settings | None = None) -> ProjectDefinition:
    """
    Parse a project document.

    Args:
        text: JSON document with ``metadata``, ``settings``, ``screens`` and
            ``globalState``
        settings: Size and depth limits (defaults to the environment)

    Returns:
        Validated project definition

    Raises:
        ValidationError: Oversized, too deeply nested, not JSON, or not a
            valid project definition
    """
    settings = settings or get_settings()
    validate_json_size(text, settings.max_project_bytes, "Project")

    try:
        document = loads_object(text)
    except JSONParseError as e:
        logger.error("json_parse_failed", error=str(e))
        raise ValidationError(f"Invalid JSON: {e}") from e

    validate_json_depth(document, document_depth_limit(settings.max_tree_depth))

    try:
        project = ProjectDefinition.model_validate(document)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        logger.error("invalid_project", field=field, error=first["msg"], count=e.error_count())
        raise ValidationError(f"Invalid project: {field}: {first['msg']}", field=field) from e

    for screen in project.screens:
        for root in screen.components:
            for node, level in root.walk_with_depth():
                validate_tree_depth(level, settings.max_tree_depth, node.id)

    logger.info(
        "project_parsed",
        project_id=project.metadata.id,
        screens=len(project.screens),
        nodes=sum(1 for screen in project.screens for _ in screen.walk()),
    )
    return project


def parse_project_result(
    text: str | bytes, settings: Settings | None = None
) -> Result[ProjectDefinition, ValidationResult]:
    """Parse a project document (Result pattern version)."""
    try:
        return Success(parse_project(text, settings))
    except ValidationError as e:
        return Failure(ValidationResult.from_error(e))


def dump_project(project: ProjectDefinition) -> str:
    """Serialize to the persisted JSON shape (camelCase keys, sorted, indented)."""
    return dumps_pretty(project.to_document())


__all__ = ["dump_project", "parse_project", "parse_project_result"]
