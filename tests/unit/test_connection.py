"""
Unit tests for the connection pool wrapper

The SQLAlchemy engine is mocked; no database required.
"""
import ssl
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from querygate.core.config import Settings
from querygate.core.exceptions import DatabaseConnectionError
from querygate.database.connection import ConnectionPool, _build_connect_args
from querygate.database.ssh_tunnel import TunnelEndpoint


class TestConnectArgs:
    def test_ssl_enabled(self):
        args = _build_connect_args(Settings(db_ssl=True, db_connect_timeout=7))
        assert args["connect_timeout"] == 7
        assert isinstance(args["ssl"], ssl.SSLContext)

    def test_ssl_verifies_server_certificate(self):
        context = _build_connect_args(Settings(db_ssl=True))["ssl"]
        assert context.verify_mode == ssl.CERT_REQUIRED
        assert context.check_hostname is True

    def test_private_ca_bundle(self):
        with patch("querygate.database.connection.ssl.create_default_context") as mock_context:
            args = _build_connect_args(Settings(db_ssl=True, db_ssl_ca="/etc/ssl/db-ca.pem"))

        mock_context.assert_called_once_with(cafile="/etc/ssl/db-ca.pem")
        assert args["ssl"] is mock_context.return_value

    def test_no_tls_through_tunnel(self):
        args = _build_connect_args(Settings(db_ssl=True), TunnelEndpoint("127.0.0.1", 13306))
        assert "ssl" not in args

    def test_ssl_disabled(self):
        assert "ssl" not in _build_connect_args(Settings(db_ssl=False))


class TestConnectionPool:
    """Test checkout, release and shutdown"""

    def test_engine_created_with_bounded_pool(self):
        config = Settings(db_connection_limit=4, db_pool_timeout=0.0, db_ssl=False)
        pool = ConnectionPool(config)

        with patch("querygate.database.connection.create_engine") as mock_create:
            pool.initialize()

        kwargs = mock_create.call_args.kwargs
        assert mock_create.call_args.args[0].startswith("mysql+pymysql://")
        assert kwargs["pool_size"] == 4
        assert kwargs["max_overflow"] == 0
        assert kwargs["pool_timeout"] == 0.0
        assert kwargs["pool_pre_ping"] is True
        assert pool.is_initialized

    def test_connection_released_on_success_and_error(self):
        engine = MagicMock()
        conn = engine.connect.return_value
        pool = ConnectionPool(Settings(), engine=engine)

        with pool.connection() as c:
            assert c is conn
        assert conn.close.call_count == 1

        with pytest.raises(RuntimeError):
            with pool.connection():
                raise RuntimeError("boom")
        assert conn.close.call_count == 2

    def test_not_initialized(self):
        pool = ConnectionPool(Settings())
        with pytest.raises(DatabaseConnectionError):
            with pool.connection():
                pass

    def test_exhausted_pool_fails_fast(self):
        engine = MagicMock()
        engine.connect.side_effect = PoolTimeoutError("QueuePool limit of size 10 overflow 0 reached")
        pool = ConnectionPool(Settings(), engine=engine)

        with pytest.raises(DatabaseConnectionError, match="exhausted"):
            with pool.connection():
                pass

    def test_connect_failure_is_connection_error(self):
        engine = MagicMock()
        engine.connect.side_effect = OperationalError("connect", None, Exception(2003, "Can't connect"))
        pool = ConnectionPool(Settings(), engine=engine)

        with pytest.raises(DatabaseConnectionError):
            with pool.connection():
                pass

    def test_initialize_ping_failure(self):
        engine = MagicMock()
        engine.connect.return_value.execute.side_effect = Exception("server has gone away")
        pool = ConnectionPool(Settings(), engine=engine)

        with pytest.raises(DatabaseConnectionError, match="ping failed"):
            pool.initialize()

    def test_close_disposes_engine(self):
        engine = MagicMock()
        pool = ConnectionPool(Settings(), engine=engine)

        pool.close()
        pool.close()

        engine.dispose.assert_called_once()
        assert pool.is_initialized is False


class TestTunnelledPool:
    def test_engine_points_at_tunnel_endpoint(self):
        config = Settings(db_host="db.internal", db_port=3306, db_user="ro", db_password="p@ss", db_ssl=True)
        pool = ConnectionPool(config, tunnel=TunnelEndpoint("127.0.0.1", 13306))

        with patch("querygate.database.connection.create_engine") as mock_create:
            pool.initialize()

        url = mock_create.call_args.args[0]
        assert "@127.0.0.1:13306/bos" in url
        assert "db.internal" not in url
        assert "ssl" not in mock_create.call_args.kwargs["connect_args"]

    def test_direct_url_without_tunnel(self):
        config = Settings(db_host="db.internal", db_port=3307)
        assert ConnectionPool(config).url == config.database_url
