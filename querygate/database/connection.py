"""
QueryGate Connection Pool

Bounded SQLAlchemy pool over PyMySQL for the target MySQL database.

The pool is owned by the process entry point: it is initialized once at
startup, injected into the executor and closed at shutdown after every
session has been closed.

Usage:
    pool = ConnectionPool()
    pool.initialize()

    with pool.connection() as conn:
        conn.exec_driver_sql("SELECT 1")
"""
from __future__ import annotations

import ssl
import threading
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, make_url, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DBAPIError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from querygate.core.config import Settings, settings
from querygate.core.exceptions import DatabaseConnectionError
from querygate.core.logging import get_logger
from querygate.database.ssh_tunnel import TunnelEndpoint

logger = get_logger(__name__)


def _build_connect_args(config: Settings, tunnel: TunnelEndpoint | None = None) -> dict:
    """Driver-level options passed to pymysql.connect(); TLS is off behind a tunnel."""
    connect_args: dict = {"connect_timeout": config.db_connect_timeout}

    if config.db_ssl and tunnel is None:
        connect_args["ssl"] = ssl.create_default_context(cafile=config.db_ssl_ca)

    return connect_args


class ConnectionPool:
    """
    Bounded pool of database connections.

    `pool_size` is the connection ceiling and overflow is disabled, so at most
    `db_connection_limit` statements run at once. With `pool_timeout=0` an
    exhausted pool raises immediately instead of queueing.
    """

    def __init__(
        self,
        config: Settings | None = None,
        engine: Engine | None = None,
        tunnel: TunnelEndpoint | None = None,
    ):
        self._settings = config or settings
        self._engine = engine
        self._tunnel = tunnel
        self._lock = threading.Lock()

    @property
    def database(self) -> str:
        """Name of the database this pool connects to"""
        return self._settings.db_name

    @property
    def url(self) -> str:
        """Connection URL, pointed at the local tunnel endpoint when there is one"""
        if self._tunnel is None:
            return self._settings.database_url
        url = make_url(self._settings.database_url).set(host=self._tunnel.host, port=self._tunnel.port)
        return url.render_as_string(hide_password=False)

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    def _create_engine(self) -> Engine:
        engine_kwargs = {
            "pool_size": self._settings.db_connection_limit,
            "max_overflow": 0,
            "pool_timeout": self._settings.db_pool_timeout,
            "pool_recycle": self._settings.db_pool_recycle,
            "pool_pre_ping": True,  # Verify connections on checkout (handles DB restarts)
            "echo": False,
            "connect_args": _build_connect_args(self._settings, self._tunnel),
        }
        return create_engine(self.url, **engine_kwargs)

    def initialize(self) -> None:
        """
        Create the engine and verify connectivity with a ping.

        Raises:
            DatabaseConnectionError: If the database cannot be reached
        """
        with self._lock:
            if self._engine is None:
                self._engine = self._create_engine()

        try:
            with self.connection() as conn:
                conn.execute(text("SELECT 1"))
        except DatabaseConnectionError:
            raise
        except Exception as e:
            raise DatabaseConnectionError(f"Database ping failed: {e}") from e

        logger.info(
            f"Connection pool ready: {self._settings.db_host}:{self._settings.db_port}/"
            f"{self._settings.db_name} (limit {self._settings.db_connection_limit})"
        )
        if self._tunnel is not None:
            logger.info(f"Database traffic tunnelled through {self._tunnel.host}:{self._tunnel.port}")

    @contextmanager
    def connection(self) -> Generator[Connection, None, None]:
        """
        Check out a connection for the duration of the block.

        The connection is returned to the pool on every exit path.

        Raises:
            DatabaseConnectionError: Pool not initialized, exhausted, or the
                connection could not be established
        """
        if self._engine is None:
            raise DatabaseConnectionError("Connection pool is not initialized")

        try:
            conn = self._engine.connect()
        except PoolTimeoutError as e:
            logger.warning(f"Connection pool exhausted: {e}")
            raise DatabaseConnectionError("Connection pool exhausted") from e
        except DBAPIError as e:
            logger.error(f"Database connection failed: {e}")
            raise DatabaseConnectionError(str(e.orig or e)) from e

        try:
            yield conn
        finally:
            conn.close()

    def close(self) -> None:
        """Dispose the engine and release every pooled connection."""
        with self._lock:
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None
                logger.info("Connection pool closed")
