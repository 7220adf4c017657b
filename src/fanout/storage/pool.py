"""
Module: pool.py
Description: Process-wide pooled resources.

Key Components:
- LazyResource: Initialise-once holder for pools and clients
- QueryRunner: Protocol of the relational store collaborator
- PostgresPool: psycopg2 threaded connection pool

Handlers own one LazyResource per process. The first invocation builds
the resource, later invocations of the same process reuse it.
"""

import asyncio
import threading
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, Protocol, Sequence, TypeVar, Union

import psycopg2
import psycopg2.extras
import psycopg2.pool
from pydantic import BaseModel, ConfigDict, Field

from fanout.errors import DownstreamError
from fanout.storage.credentials import DatabaseCredentials
from fanout.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar('T')

QueryParams = Union[Sequence[Any], Mapping[str, Any]]


class LazyResource(Generic[T]):
    """
    Holds a resource built on first use.

    get() runs the factory at most once per successful initialisation,
    also when concurrent cold invocations race for it. A factory that
    raises leaves the holder empty, so the next call tries again.
    """

    def __init__(self, factory: Callable[[], T], name: str = "resource"):
        self._factory = factory
        self._name = name
        self._lock = threading.Lock()
        self._value: Optional[T] = None
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def get(self) -> T:
        if self._initialized:
            return self._value

        with self._lock:
            if not self._initialized:
                logger.debug("No cached resource, initializing", resource=self._name)
                self._value = self._factory()
                self._initialized = True
                logger.info("Initialized cached resource", resource=self._name)

        return self._value

    def reset(self) -> None:
        """Drop the cached resource; the next get() rebuilds it."""
        with self._lock:
            self._value = None
            self._initialized = False


class QueryResult(BaseModel):
    """Rows returned by a statement and the number of rows it affected."""

    model_config = ConfigDict(frozen=True)

    rows: List[Dict[str, Any]] = Field(default_factory=list)
    rowcount: int = 0


class QueryRunner(Protocol):
    """Executes one SQL statement."""

    async def query(self, sql: str, params: QueryParams = ()) -> QueryResult:
        ...


class PostgresPool:
    """
    psycopg2 threaded connection pool.

    Each statement runs on its own pooled connection and is committed
    when it succeeds.
    """

    def __init__(
        self,
        credentials: DatabaseCredentials,
        application_name: str,
        max_connections: int = 2,
        host: Optional[str] = None,
        database: Optional[str] = None
    ):
        self.host = host or credentials.host
        self.database = database or credentials.dbname

        try:
            self.pool = psycopg2.pool.ThreadedConnectionPool(
                1,
                max_connections,
                host=self.host,
                port=credentials.port,
                user=credentials.username,
                password=credentials.password,
                dbname=self.database,
                application_name=application_name,
                sslmode='require',
            )
        except psycopg2.OperationalError as e:
            logger.error("Failed to create database pool", host=self.host, error=str(e))
            raise DownstreamError("Failed to create database pool") from e

        logger.info(
            "Database pool created",
            host=self.host,
            database=self.database,
            max_connections=max_connections
        )

    async def query(self, sql: str, params: QueryParams = ()) -> QueryResult:
        """
        Execute a statement.

        The blocking driver call runs in a worker thread, so callers can
        abandon it with asyncio.wait_for. An abandoned statement still
        finishes in its thread and returns its connection to the pool.

        Raises:
            DownstreamError: If the statement or the connection fails
        """
        return await asyncio.to_thread(self._execute, sql, params)

    def _execute(self, sql: str, params: QueryParams) -> QueryResult:
        conn = self.pool.getconn()
        try:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(sql, params)
                rows = [dict(row) for row in cur.fetchall()] if cur.description else []
                rowcount = cur.rowcount
            conn.commit()
            return QueryResult(rows=rows, rowcount=max(rowcount, 0))

        except psycopg2.Error as e:
            conn.rollback()
            logger.error(
                "Database statement failed",
                error=str(e),
                error_type=type(e).__name__
            )
            raise DownstreamError("Database statement failed") from e

        finally:
            self.pool.putconn(conn)

    def close(self) -> None:
        self.pool.closeall()
