"""Database configuration and query execution.

Provides the async SQLAlchemy engine, the declarative base for the catalog
tables, and QueryExecutor, which runs parameterized statements with retry
on connection and timeout failures.
"""

import asyncio
import time
from collections.abc import Callable
from typing import Any

import structlog
from sqlalchemy import exc as sa_exc
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import Executable

from parts_catalog.infrastructure.config import settings

logger = structlog.get_logger()

# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

# Base class for models
Base = declarative_base()


# ============================================================================
# Errors
# ============================================================================


class DatabaseError(Exception):
    """Base class for failures reported by the query executor."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize database error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class DatabaseConnectionError(DatabaseError):
    """The store could not be reached or the connection was lost."""


class DatabaseTimeoutError(DatabaseError):
    """The statement or the pool checkout took too long."""


class QueryError(DatabaseError):
    """The store rejected the statement."""


def classify_error(error: BaseException) -> type[DatabaseError]:
    """Map a driver/SQLAlchemy failure onto the executor's error classes."""
    if isinstance(error, (asyncio.TimeoutError, sa_exc.TimeoutError)):
        return DatabaseTimeoutError
    if isinstance(error, sa_exc.DBAPIError) and error.connection_invalidated:
        return DatabaseConnectionError
    if isinstance(error, (sa_exc.OperationalError, sa_exc.InterfaceError, ConnectionError, OSError)):
        return DatabaseConnectionError
    return QueryError


# ============================================================================
# Query Executor
# ============================================================================


class QueryExecutor:
    """Runs parameterized statements against the store.

    Connection and timeout failures are retried with exponential backoff;
    anything else is raised at once. Every failure reaches the caller as a
    DatabaseError subclass chained to the original exception.

    Example usage:
        executor = QueryExecutor(engine)
        rows = await executor.execute(select(ProdutoModel.codigo_abr))
    """

    def __init__(
        self,
        engine: AsyncEngine,
        retry_attempts: int = settings.db_retry_attempts,
        backoff_seconds: float = settings.db_retry_backoff_seconds,
        timeout_seconds: float | None = settings.db_query_timeout_seconds,
        sql_debug: bool = settings.sql_debug,
    ) -> None:
        """Initialize executor.

        Args:
            engine: Async SQLAlchemy engine.
            retry_attempts: Retries after the first failed attempt.
            backoff_seconds: Delay before the first retry; doubles each time.
            timeout_seconds: Per-attempt timeout, None to disable.
            sql_debug: Log every statement with its duration.
        """
        self.engine = engine
        self.retry_attempts = max(0, retry_attempts)
        self.backoff_seconds = backoff_seconds
        self.timeout_seconds = timeout_seconds
        self.sql_debug = sql_debug

    async def execute(self, statement: Executable) -> list[dict[str, Any]]:
        """Execute a statement inside a transaction.

        Args:
            statement: SQLAlchemy statement; values are always bound.

        Returns:
            Result rows as dictionaries, empty for statements without rows.

        Raises:
            DatabaseError: When the statement fails after all retries.
        """
        return await self._with_retry(self._execute_once, statement)

    async def run_sync(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run a synchronous connection callable (DDL helpers) with retry."""
        return await self._with_retry(self._run_sync_once, fn, *args, **kwargs)

    async def _execute_once(self, statement: Executable) -> list[dict[str, Any]]:
        async with self.engine.begin() as conn:
            result = await conn.execute(statement)
            if not result.returns_rows:
                return []
            return [dict(row._mapping) for row in result]

    async def _run_sync_once(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        async with self.engine.begin() as conn:
            return await conn.run_sync(fn, *args, **kwargs)

    async def _with_retry(self, operation: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        attempt = 0
        while True:
            start = time.perf_counter()
            try:
                if self.timeout_seconds:
                    result = await asyncio.wait_for(
                        operation(*args, **kwargs), timeout=self.timeout_seconds
                    )
                else:
                    result = await operation(*args, **kwargs)
            except DatabaseError:
                raise
            except Exception as e:
                error_class = classify_error(e)
                retryable = error_class is not QueryError
                if retryable and attempt < self.retry_attempts:
                    delay = self.backoff_seconds * (2**attempt)
                    attempt += 1
                    logger.warning(
                        "Database call failed, retrying",
                        error_type=error_class.__name__,
                        error=str(e),
                        attempt=attempt,
                        delay_seconds=delay,
                    )
                    await asyncio.sleep(delay)
                    continue

                logger.error(
                    "Database call failed",
                    error_type=error_class.__name__,
                    error=str(e),
                    attempts=attempt + 1,
                )
                raise error_class(
                    str(e) or error_class.__name__,
                    details={"attempts": attempt + 1, "cause": type(e).__name__},
                ) from e

            if self.sql_debug:
                logger.debug(
                    "SQL OK",
                    operation=getattr(operation, "__name__", "statement"),
                    duration_ms=round((time.perf_counter() - start) * 1000, 2),
                )
            return result


_executor: QueryExecutor | None = None


def get_query_executor() -> QueryExecutor:
    """Get query executor singleton bound to the application engine."""
    global _executor
    if _executor is None:
        _executor = QueryExecutor(engine)
    return _executor
