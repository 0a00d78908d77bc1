"""Core infrastructure: config, database, logging, middleware, exceptions, cache."""

from salesboard.core.cache import ResponseCache
from salesboard.core.config import Settings, get_settings
from salesboard.core.database import Base, get_db
from salesboard.core.logging import get_logger, request_id_ctx

__all__ = [
    "Base",
    "ResponseCache",
    "Settings",
    "get_db",
    "get_logger",
    "get_settings",
    "request_id_ctx",
]
