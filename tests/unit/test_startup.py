"""
Unit tests for application startup

The tunnel, pool and object graph are mocked; only the ordering is real.
"""
from unittest.mock import patch

import pytest

from querygate.api import main
from querygate.core.exceptions import DatabaseConnectionError
from querygate.database.ssh_tunnel import TunnelEndpoint

ENDPOINT = TunnelEndpoint("127.0.0.1", 13306)


@pytest.fixture
def startup_mocks():
    with (
        patch.object(main, "SshTunnel") as tunnel_cls,
        patch.object(main, "ConnectionPool") as pool_cls,
        patch.object(main, "build_resources") as build,
    ):
        tunnel_cls.return_value.start.return_value = ENDPOINT
        yield tunnel_cls, pool_cls, build


class TestOpenResources:
    @pytest.mark.asyncio
    async def test_without_tunnel(self, startup_mocks):
        tunnel_cls, pool_cls, build = startup_mocks

        with patch.object(main.settings, "ssh_enabled", False):
            resources = await main.open_resources()

        tunnel_cls.assert_not_called()
        pool_cls.assert_called_once_with(tunnel=None)
        build.assert_called_once_with(pool=pool_cls.return_value, tunnel=None)
        resources.pool.initialize.assert_called_once()

    @pytest.mark.asyncio
    async def test_pool_connects_through_tunnel(self, startup_mocks):
        tunnel_cls, pool_cls, build = startup_mocks

        with patch.object(main.settings, "ssh_enabled", True):
            await main.open_resources()

        tunnel_cls.return_value.start.assert_called_once()
        pool_cls.assert_called_once_with(tunnel=ENDPOINT)
        build.assert_called_once_with(pool=pool_cls.return_value, tunnel=tunnel_cls.return_value)

    @pytest.mark.asyncio
    async def test_tunnel_closed_when_database_unreachable(self, startup_mocks):
        tunnel_cls, _, build = startup_mocks
        build.return_value.pool.initialize.side_effect = DatabaseConnectionError("Database ping failed")

        with patch.object(main.settings, "ssh_enabled", True):
            with pytest.raises(DatabaseConnectionError):
                await main.open_resources()

        tunnel_cls.return_value.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_tunnel_failure_stops_startup(self, startup_mocks):
        tunnel_cls, pool_cls, _ = startup_mocks
        tunnel_cls.return_value.start.side_effect = DatabaseConnectionError("SSH connection failed: refused")

        with patch.object(main.settings, "ssh_enabled", True):
            with pytest.raises(DatabaseConnectionError, match="SSH"):
                await main.open_resources()

        pool_cls.assert_not_called()
