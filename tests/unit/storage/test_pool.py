"""
Module: test_pool.py
Description: Unit tests for lazily initialised resources and the Postgres pool.
"""

import asyncio
import threading
import time
from unittest.mock import MagicMock, patch

import psycopg2
import pytest

from fanout.errors import DownstreamError
from fanout.storage.credentials import DatabaseCredentials
from fanout.storage.pool import LazyResource, PostgresPool

CREDENTIALS = DatabaseCredentials(
    host="db.cluster-abc.us-east-1.rds.amazonaws.com",
    username="fanout",
    password="s3cr3t",
    dbname="devices",
)


class TestLazyResource:
    """Test cases for LazyResource."""

    def test_initialised_once(self):
        calls = []
        resource = LazyResource(lambda: calls.append(1) or object(), name="pool")

        first = resource.get()

        assert resource.get() is first
        assert len(calls) == 1
        assert resource.initialized

    def test_concurrent_first_use(self):
        """Test concurrent cold callers share one initialisation."""
        calls = []

        def factory():
            calls.append(1)
            time.sleep(0.05)
            return object()

        resource = LazyResource(factory, name="pool")
        barrier = threading.Barrier(8)
        results = []

        def worker():
            barrier.wait()
            results.append(resource.get())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(calls) == 1
        assert len({id(r) for r in results}) == 1

    def test_failed_initialisation_is_retried(self):
        """Test a failing factory leaves the holder empty for the next call."""
        attempts = []

        def factory():
            attempts.append(1)
            if len(attempts) == 1:
                raise DownstreamError("secret unavailable")
            return "pool"

        resource = LazyResource(factory)

        with pytest.raises(DownstreamError):
            resource.get()
        assert not resource.initialized
        assert resource.get() == "pool"

    def test_reset(self):
        resource = LazyResource(object)
        first = resource.get()

        resource.reset()

        assert resource.get() is not first


@pytest.fixture
def connection():
    conn = MagicMock()
    cursor = conn.cursor.return_value.__enter__.return_value
    cursor.description = [("pushtoken",)]
    cursor.fetchall.return_value = [{"pushtoken": "t1"}, {"pushtoken": "t2"}]
    cursor.rowcount = 2
    return conn


@pytest.fixture
def pg_pool(connection):
    with patch('fanout.storage.pool.psycopg2.pool.ThreadedConnectionPool') as pool_cls:
        pool_cls.return_value.getconn.return_value = connection
        yield pool_cls


class TestPostgresPool:
    """Test cases for PostgresPool."""

    def test_pool_settings(self, pg_pool):
        """Test the pool connects with the credentials and overrides."""
        pool = PostgresPool(CREDENTIALS, "test-queuer", max_connections=3, host="reader.example.com")

        args, kwargs = pg_pool.call_args
        assert args == (1, 3)
        assert kwargs['host'] == "reader.example.com"
        assert kwargs['dbname'] == "devices"
        assert kwargs['application_name'] == "test-queuer"
        assert kwargs['sslmode'] == "require"
        assert pool.host == "reader.example.com"

    @pytest.mark.asyncio
    async def test_query(self, pg_pool, connection):
        """Test rows and row count are returned and the statement committed."""
        pool = PostgresPool(CREDENTIALS, "test")

        result = await pool.query("SELECT pushtoken FROM devices", {"limit": 2})

        assert result.rows == [{"pushtoken": "t1"}, {"pushtoken": "t2"}]
        assert result.rowcount == 2
        connection.commit.assert_called_once()
        pg_pool.return_value.putconn.assert_called_once_with(connection)

    @pytest.mark.asyncio
    async def test_statement_without_rows(self, pg_pool, connection):
        connection.cursor.return_value.__enter__.return_value.description = None

        result = await PostgresPool(CREDENTIALS, "test").query("DELETE FROM devices WHERE deviceid = %s", ("A",))

        assert result.rows == []

    @pytest.mark.asyncio
    async def test_query_error(self, pg_pool, connection):
        """Test failed statements are rolled back and the connection returned."""
        connection.cursor.return_value.__enter__.return_value.execute.side_effect = psycopg2.Error("boom")

        with pytest.raises(DownstreamError, match="Database statement failed"):
            await PostgresPool(CREDENTIALS, "test").query("SELECT 1")

        connection.rollback.assert_called_once()
        pg_pool.return_value.putconn.assert_called_once_with(connection)

    @pytest.mark.asyncio
    async def test_hung_statement_can_be_abandoned(self, pg_pool, connection):
        """Test a deadline interrupts the caller while the statement keeps its thread."""
        release = threading.Event()
        returned = threading.Event()
        connection.cursor.return_value.__enter__.return_value.execute.side_effect = \
            lambda sql, params: release.wait(5)
        pg_pool.return_value.putconn.side_effect = lambda conn: returned.set()

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(PostgresPool(CREDENTIALS, "test").query("SELECT pg_sleep(60)"), timeout=0.05)

        release.set()
        assert returned.wait(5)

    def test_connection_error(self, pg_pool):
        pg_pool.side_effect = psycopg2.OperationalError("connection refused")

        with pytest.raises(DownstreamError, match="Failed to create database pool"):
            PostgresPool(CREDENTIALS, "test")
