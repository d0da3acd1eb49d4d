"""Storage engine: the single owner of the notes database connection.

All access to the store goes through :class:`StorageEngine`. The engine is
created lazily on first use, shared for the lifetime of the process, and
every statement runs under one ``asyncio.Lock`` so there is at most one
active transaction (one writer) at a time.
"""

from __future__ import annotations

import asyncio
import contextvars
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Mapping, Optional, Union

from sqlalchemy import event, text
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql import Executable

from .errors import StorageError
from .models import Base
from .settings import NotesSettings, normalize_database_url

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

__all__ = [
    "ExecuteResult",
    "StorageHandle",
    "StorageEngine",
    "Executor",
    "init_engine",
    "get_storage",
    "reset_storage",
]

Statement = Union[Executable, str]
Parameters = Optional[Mapping[str, Any]]

_active_handle: contextvars.ContextVar[Optional["StorageHandle"]] = contextvars.ContextVar(
    "notes_active_handle", default=None
)


@dataclass(frozen=True, slots=True)
class ExecuteResult:
    """Outcome of a mutating statement."""

    rows_affected: int
    inserted_id: Optional[int] = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def init_engine(settings: NotesSettings) -> AsyncEngine:
    """Create the async SQLAlchemy engine described by *settings*."""

    database_url = normalize_database_url(settings.database_url)
    engine_kwargs: dict[str, Any] = {"echo": settings.echo}
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        # One shared connection for the whole process.
        engine_kwargs["poolclass"] = StaticPool
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    else:
        engine_kwargs["pool_pre_ping"] = True

    engine = create_async_engine(database_url, **engine_kwargs)
    if is_sqlite and settings.enforce_foreign_keys:
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


# OverflowError comes from the sqlite3 driver binding an int outside 64 bits.
_STATEMENT_ERRORS = (SQLAlchemyError, OverflowError)


def _describe(exc: Exception) -> str:
    orig = getattr(exc, "orig", None)
    return f"{exc.__class__.__name__}: {orig if orig is not None else exc}"


def _as_executable(statement: Statement) -> Executable:
    if isinstance(statement, str):
        return text(statement)
    return statement


class StorageHandle:
    """Statement executor bound to one open transaction."""

    def __init__(self, storage: "StorageEngine", connection: AsyncConnection) -> None:
        self.storage = storage
        self._connection = connection
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise StorageError("transaction handle used after its transaction ended")

    async def execute(self, statement: Statement, parameters: Parameters = None) -> ExecuteResult:
        """Run a mutating statement and report affected rows and the new id."""

        self._check_open()
        try:
            result = await self._connection.execute(_as_executable(statement), parameters)
        except _STATEMENT_ERRORS as exc:
            raise StorageError(f"statement rejected: {_describe(exc)}") from exc

        inserted_id = None
        if result.is_insert and result.inserted_primary_key:
            inserted_id = result.inserted_primary_key[0]
        return ExecuteResult(rows_affected=result.rowcount, inserted_id=inserted_id)

    async def query(self, statement: Statement, parameters: Parameters = None) -> list[RowMapping]:
        """Run a read-only statement and return its rows as mappings."""

        self._check_open()
        try:
            result = await self._connection.execute(_as_executable(statement), parameters)
            return list(result.mappings().all())
        except _STATEMENT_ERRORS as exc:
            raise StorageError(f"query failed: {_describe(exc)}") from exc

    async def run_sync(self, fn: Callable[..., Any]) -> Any:
        """Run a synchronous ``fn(connection)`` (DDL helpers) in this transaction."""

        self._check_open()
        try:
            return await self._connection.run_sync(fn)
        except SQLAlchemyError as exc:
            raise StorageError(f"schema operation failed: {_describe(exc)}") from exc

    def close(self) -> None:
        self._closed = True


class StorageEngine:
    """Process-wide access point to the notes database.

    Args:
        settings: Connection settings; defaults to :meth:`NotesSettings.from_env`.

    Example::

        storage = StorageEngine(NotesSettings(database_url="sqlite:///notes.db"))
        async with storage.transaction() as handle:
            await handle.execute(insert(Workspace).values(name="Inbox"))
    """

    def __init__(self, settings: Optional[NotesSettings] = None) -> None:
        self.settings = settings or NotesSettings.from_env()
        self._engine: Optional[AsyncEngine] = None
        self._init_error: Optional[BaseException] = None
        self._disposed = False
        self._cascade_enforced = False
        self._init_lock = asyncio.Lock()
        self._lock = asyncio.Lock()

    # ---------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------

    @property
    def cascade_enforced(self) -> bool:
        """Whether the live store deletes descendants through foreign keys."""

        return self._cascade_enforced

    async def initialize(self) -> None:
        """Open the connection and create the schema if this has not happened yet."""

        await self._ensure_ready()

    async def _ensure_ready(self) -> AsyncEngine:
        if self._engine is not None:
            return self._engine
        async with self._init_lock:
            if self._disposed:
                raise StorageError("storage has been disposed")
            if self._init_error is not None:
                raise StorageError("storage initialization failed") from self._init_error
            if self._engine is not None:
                return self._engine

            engine: Optional[AsyncEngine] = None
            try:
                engine = init_engine(self.settings)
                async with engine.begin() as connection:
                    await connection.run_sync(Base.metadata.create_all)
                    self._cascade_enforced = await self._check_cascade(connection)
            except Exception as exc:
                self._init_error = exc
                logger.error(
                    "notes_storage_init_failed",
                    extra={"error": repr(exc)},
                )
                if engine is not None:
                    await engine.dispose()
                raise StorageError("storage initialization failed") from exc

            self._engine = engine
            logger.info(
                "notes_storage_initialized",
                extra={
                    "dialect": engine.dialect.name,
                    "cascade_enforced": self._cascade_enforced,
                },
            )
            return engine

    @staticmethod
    async def _check_cascade(connection: AsyncConnection) -> bool:
        if connection.dialect.name != "sqlite":
            return True
        result = await connection.exec_driver_sql("PRAGMA foreign_keys")
        return bool(result.scalar())

    async def create_schema(self) -> None:
        """Create any missing tables and indexes."""

        async with self.transaction() as handle:
            await handle.run_sync(Base.metadata.create_all)

    async def drop_schema(self) -> None:
        """Drop every notes table and index (markdowns, pages, workspaces)."""

        async with self.transaction() as handle:
            await handle.run_sync(Base.metadata.drop_all)
        logger.warning("notes_schema_dropped")

    async def dispose(self) -> None:
        """Close the shared connection. The instance cannot be reused afterwards."""

        async with self._init_lock:
            self._disposed = True
            if self._engine is not None:
                await self._engine.dispose()
                self._engine = None

    # ---------------------------------------------------------------
    # Statements
    # ---------------------------------------------------------------

    def _joined_handle(self) -> Optional[StorageHandle]:
        handle = _active_handle.get()
        if handle is not None and handle.storage is self:
            return handle
        return None

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[StorageHandle]:
        """Open a transaction; commit on normal exit, roll back on any failure.

        Failures raised by the body propagate unchanged after the rollback.
        Nested transactions are not supported.
        """

        if self._joined_handle() is not None:
            raise StorageError("nested transactions are not supported")

        engine = await self._ensure_ready()
        async with self._lock:
            try:
                connection = await engine.connect()
                transaction = await connection.begin()
            except SQLAlchemyError as exc:
                raise StorageError("could not open a transaction") from exc

            handle = StorageHandle(self, connection)
            token = _active_handle.set(handle)
            try:
                try:
                    yield handle
                except BaseException:
                    await self._rollback(transaction)
                    raise
                else:
                    try:
                        await transaction.commit()
                    except SQLAlchemyError as exc:
                        await self._rollback(transaction)
                        raise StorageError("commit failed") from exc
                finally:
                    _active_handle.reset(token)
                    handle.close()
            finally:
                await connection.close()

    @staticmethod
    async def _rollback(transaction) -> None:
        if not transaction.is_active:
            return
        try:
            await transaction.rollback()
        except SQLAlchemyError:
            logger.exception("notes_rollback_failed")

    async def execute(self, statement: Statement, parameters: Parameters = None) -> ExecuteResult:
        """Run one mutating statement in its own transaction (or the active one)."""

        handle = self._joined_handle()
        if handle is not None:
            return await handle.execute(statement, parameters)
        async with self.transaction() as handle:
            return await handle.execute(statement, parameters)

    async def query(self, statement: Statement, parameters: Parameters = None) -> list[RowMapping]:
        """Run one read-only statement in its own transaction (or the active one)."""

        handle = self._joined_handle()
        if handle is not None:
            return await handle.query(statement, parameters)
        async with self.transaction() as handle:
            return await handle.query(statement, parameters)


Executor = Union[StorageEngine, StorageHandle]


# -------------------------------------------------------------------
# Process-wide instance
# -------------------------------------------------------------------

_storage: Optional[StorageEngine] = None


def get_storage(settings: Optional[NotesSettings] = None) -> StorageEngine:
    """Return the process-wide :class:`StorageEngine`, creating it on first call.

    *settings* only applies to the first call; the connection itself is
    opened lazily by the first statement.
    """

    global _storage
    if _storage is None:
        _storage = StorageEngine(settings)
    return _storage


async def reset_storage() -> None:
    """Dispose the process-wide instance (process exit and tests)."""

    global _storage
    if _storage is not None:
        await _storage.dispose()
        _storage = None
