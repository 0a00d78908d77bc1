"""Structured logging with structlog and request_id context.

structlog events and stdlib records (uvicorn, SQLAlchemy) share one handler
and one renderer, so engine echo and access logs land in the same JSON
stream as ``query.*`` and ``cache.*`` events.

Query events carry the rendered SQL under the ``sql`` key; it is collapsed
to one line and truncated so dashboard fan-outs stay readable.
"""

import logging
from collections.abc import MutableMapping
from contextvars import ContextVar
from typing import Any

import structlog

from salesboard.core.config import get_settings

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

MAX_SQL_LOG_CHARS = 600


def add_request_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Add request_id from context to log events."""
    request_id = request_id_ctx.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def compact_sql(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Collapse whitespace in the ``sql`` field and cap its length."""
    sql = event_dict.get("sql")
    if isinstance(sql, str):
        flat = " ".join(sql.split())
        if len(flat) > MAX_SQL_LOG_CHARS:
            flat = flat[:MAX_SQL_LOG_CHARS] + "..."
        event_dict["sql"] = flat
    return event_dict


def configure_logging() -> None:
    """Configure structlog and route stdlib loggers through the same renderer."""
    settings = get_settings()
    level = getattr(logging, settings.log_level)

    shared_processors: list[structlog.types.Processor] = [
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        add_request_id,
        compact_sql,
    ]

    if settings.log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                renderer,
            ],
        )
    )
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Get a logger; call after ``configure_logging`` for the app's format."""
    logger: structlog.typing.FilteringBoundLogger = structlog.get_logger(name)
    return logger
