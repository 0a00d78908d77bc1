"""Async execution of named, read-only aggregate statements.

Two strategies:

- ``fetch_all``: fan-out. One session (one pooled connection) per statement,
  all awaited together under one deadline.
- ``fetch_sequential``: one shared session, statements run strictly one
  after another. Bounds pool usage for views with many small queries.

Either way the whole batch fails if any statement fails or the deadline
passes; callers never see partial results.
"""

import asyncio
import time
from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql import Executable

from salesboard.core.config import get_settings
from salesboard.core.database import get_session_maker
from salesboard.core.exceptions import DatabaseError, QueryTimeoutError
from salesboard.core.logging import get_logger

logger = get_logger(__name__)

Rows = list[dict[str, Any]]


class QueryExecutor:
    """Runs batches of named statements and returns plain dict rows."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        timeout_seconds: float = 30.0,
    ) -> None:
        self._session_maker = session_maker
        self.timeout_seconds = timeout_seconds

    async def _execute(self, session: AsyncSession, name: str, statement: Executable) -> Rows:
        start = time.perf_counter()
        try:
            result = await session.execute(statement)
            rows = [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as e:
            logger.error(
                "query.failed",
                query=name,
                sql=str(statement),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DatabaseError(
                message=f"Query '{name}' failed",
                details={"query": name},
            ) from e

        logger.debug(
            "query.completed",
            query=name,
            rows=len(rows),
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return rows

    async def _execute_isolated(self, name: str, statement: Executable) -> Rows:
        async with self._session_maker() as session:
            return await self._execute(session, name, statement)

    async def _execute_shared(self, statements: Mapping[str, Executable]) -> dict[str, Rows]:
        results: dict[str, Rows] = {}
        async with self._session_maker() as session:
            for name, statement in statements.items():
                results[name] = await self._execute(session, name, statement)
        return results

    async def fetch_all(self, statements: Mapping[str, Executable]) -> dict[str, Rows]:
        """Run statements concurrently, one session each.

        Args:
            statements: Statements keyed by name.

        Returns:
            Rows keyed by the same names.

        Raises:
            DatabaseError: If any statement fails.
            QueryTimeoutError: If the batch exceeds the deadline.
        """
        names = list(statements)
        tasks = [
            asyncio.ensure_future(self._execute_isolated(name, statements[name]))
            for name in names
        ]
        try:
            results = await asyncio.wait_for(asyncio.gather(*tasks), timeout=self.timeout_seconds)
        except TimeoutError as e:
            logger.error("query.timeout", queries=names, timeout_seconds=self.timeout_seconds)
            raise QueryTimeoutError(self.timeout_seconds, details={"queries": names}) from e
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        logger.debug("query.batch_completed", queries=len(names), strategy="concurrent")
        return dict(zip(names, results, strict=True))

    async def fetch_sequential(self, statements: Mapping[str, Executable]) -> dict[str, Rows]:
        """Run statements one after another on a single session.

        Args:
            statements: Statements keyed by name, executed in mapping order.

        Returns:
            Rows keyed by the same names.

        Raises:
            DatabaseError: If any statement fails.
            QueryTimeoutError: If the batch exceeds the deadline.
        """
        names = list(statements)
        try:
            results = await asyncio.wait_for(
                self._execute_shared(statements), timeout=self.timeout_seconds
            )
        except TimeoutError as e:
            logger.error("query.timeout", queries=names, timeout_seconds=self.timeout_seconds)
            raise QueryTimeoutError(self.timeout_seconds, details={"queries": names}) from e

        logger.debug("query.batch_completed", queries=len(names), strategy="sequential")
        return results


@lru_cache
def get_query_executor() -> QueryExecutor:
    """FastAPI dependency: executor bound to the shared session maker."""
    settings = get_settings()
    return QueryExecutor(get_session_maker(), timeout_seconds=settings.query_timeout_seconds)
