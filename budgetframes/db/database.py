"""
Database Access

A thin layer over a SQLAlchemy engine. Every request runs its statements
inside exactly one transaction:

    with db.transaction() as tx:
        row = tx.one_or_none("select * from frames where gid = :gid", {"gid": gid})
        tx.none("update frames set ghost = :ghost where gid = :gid", {...})

The block commits when it exits normally and rolls back on any exception.
Statements are plain SQL with named parameters; rows come back as dicts.
"""

from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Iterator, Optional, Union

import structlog
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import Executable
from sqlalchemy.pool import StaticPool
from tenacity import retry, stop_after_attempt, wait_exponential

from budgetframes.config import get_settings
from budgetframes.config.settings import DatabaseSettings
from budgetframes.db.interface import ConnectionError, NotFoundError
from budgetframes.db.schema import metadata


logger = structlog.get_logger(__name__)

Params = Optional[dict[str, Any]]
Statement = Union[str, Executable]


class Tx:
    """
    Statement helpers bound to one open transaction.

    Statements are SQL text with named parameters, or SQLAlchemy Core
    constructs where the SQL differs between dialects.
    """

    def __init__(self, conn: Connection):
        self._conn = conn

    @property
    def dialect(self) -> str:
        return self._conn.dialect.name

    def _execute(self, sql: Statement, params: Params):
        statement = text(sql) if isinstance(sql, str) else sql
        if params:
            return self._conn.execute(statement, params)
        return self._conn.execute(statement)

    def none(self, sql: Statement, params: Params = None) -> int:
        """Execute a statement that returns no rows. Returns the affected row count."""
        result = self._execute(sql, params)
        return result.rowcount

    def one_or_none(self, sql: Statement, params: Params = None) -> Optional[dict]:
        row = self._execute(sql, params).mappings().first()
        return dict(row) if row is not None else None

    def one(self, sql: Statement, params: Params = None) -> dict:
        row = self.one_or_none(sql, params)
        if row is None:
            raise NotFoundError(f"Expected a row for: {sql}")
        return row

    def many_or_none(self, sql: Statement, params: Params = None) -> list[dict]:
        rows = self._execute(sql, params).mappings().all()
        return [dict(row) for row in rows]


class Database:
    """
    Owns the engine and hands out transactions.

    The engine is created on first use, so constructing a Database never
    touches the network.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        settings: Optional[DatabaseSettings] = None,
    ):
        self._settings = settings or get_settings().database
        self._url = url or self._settings.url
        self._engine: Optional[Engine] = None

    @property
    def url(self) -> str:
        return self._url

    def _create_engine(self) -> Engine:
        kwargs: dict[str, Any] = {"echo": self._settings.echo}
        if self._url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if self._url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection, otherwise each checkout sees an empty database
                kwargs["poolclass"] = StaticPool
        return create_engine(self._url, **kwargs)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> Engine:
        """
        Establish the engine and check the database answers.

        Raises:
            ConnectionError: If the database cannot be reached
        """
        if self._engine is None:
            try:
                engine = self._create_engine()
                with engine.connect() as conn:
                    conn.execute(text("select 1"))
            except SQLAlchemyError as e:
                raise ConnectionError(f"Failed to connect to database: {e}") from e
            self._engine = engine
            logger.info("database_connected", dialect=engine.dialect.name)
        return self._engine

    def create_schema(self) -> None:
        """Create any missing tables."""
        metadata.create_all(self.connect())

    @contextmanager
    def transaction(self) -> Iterator[Tx]:
        """Run a block inside one database transaction."""
        with self.connect().begin() as conn:
            yield Tx(conn)

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None


@lru_cache()
def get_database() -> Database:
    """
    Get the application database (cached).

    Call get_database.cache_clear() after changing DATABASE_URL.
    """
    return Database()
