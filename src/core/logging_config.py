"""
Structured Logging Configuration
structlog setup for the builder session, node store and code generator.

Events are snake_case names with keyword fields (``node_added``,
``mutation_rejected``, ``generation_complete``). Project and screen ids are
bound once per generation run or edit block through ``LogContext`` instead of
being passed to every call.
"""

import logging
import sys
from typing import Any, MutableMapping

import structlog
from pythonjsonlogger import jsonlogger


def drop_unset_fields(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Remove ``None`` fields so optional ids (``node_id``, ``field``) only show when set."""
    for key in [k for k, v in event_dict.items() if v is None]:
        del event_dict[key]
    return event_dict


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """
    Configure structured logging for the builder.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: One JSON object per line instead of console output
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if json_logs:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(jsonlogger.JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logging.basicConfig(level=log_level, handlers=[handler], force=True)
    else:
        logging.basicConfig(level=log_level, format="%(message)s", stream=sys.stdout, force=True)

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            drop_unset_fields,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Logger for a builder module (pass ``__name__``)."""
    return structlog.get_logger(name)


class LogContext:
    """
    Bind ids such as ``project_id`` and ``screen_id`` for the duration of a block.

    Contexts nest: on exit the keys go back to whatever an enclosing context
    bound, so a generation run inside an edit block keeps the outer screen id.
    """

    def __init__(self, **fields: Any):
        self.fields = {k: v for k, v in fields.items() if v is not None}
        self._previous: dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        bound = structlog.contextvars.get_contextvars()
        self._previous = {k: bound[k] for k in self.fields if k in bound}
        structlog.contextvars.bind_contextvars(**self.fields)
        return self

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.unbind_contextvars(*self.fields)
        if self._previous:
            structlog.contextvars.bind_contextvars(**self._previous)
