"""
QueryGate SSH Tunnel

Forwards a local port to the database host through an SSH bastion so the
pool can reach a MySQL server that is not exposed directly.

Started before the pool is initialized and stopped after it is closed.
"""
from __future__ import annotations

from dataclasses import dataclass

from sshtunnel import SSHTunnelForwarder

from querygate.core.config import Settings, settings
from querygate.core.exceptions import DatabaseConnectionError
from querygate.core.logging import get_logger

logger = get_logger(__name__)

LOCAL_HOST = "127.0.0.1"
KEEPALIVE_SECONDS = 10.0


@dataclass(frozen=True)
class TunnelEndpoint:
    """Local address the pool connects to instead of the database host"""

    host: str
    port: int


class SshTunnel:
    """Local port forward to `db_host:db_port` over SSH (key authentication)."""

    def __init__(self, config: Settings | None = None, forwarder_factory=SSHTunnelForwarder):
        self._settings = config or settings
        self._forwarder_factory = forwarder_factory
        self._forwarder = None

    @property
    def is_active(self) -> bool:
        return self._forwarder is not None

    def start(self) -> TunnelEndpoint:
        """
        Open the SSH connection and start listening on the local port.

        Raises:
            DatabaseConnectionError: If the bastion cannot be reached or the
                local port cannot be bound
        """
        config = self._settings
        forwarder = self._forwarder_factory(
            (config.ssh_host, config.ssh_port),
            ssh_username=config.ssh_user,
            ssh_pkey=config.ssh_key_path,
            ssh_private_key_password=config.ssh_key_passphrase or None,
            remote_bind_address=(config.db_host, config.db_port),
            local_bind_address=(LOCAL_HOST, config.ssh_local_port),
            set_keepalive=KEEPALIVE_SECONDS,
        )

        try:
            forwarder.start()
        except Exception as e:
            logger.error(f"SSH connection error: {e}")
            raise DatabaseConnectionError(f"SSH connection failed: {e}") from e

        self._forwarder = forwarder
        endpoint = TunnelEndpoint(host=LOCAL_HOST, port=forwarder.local_bind_port)
        logger.info(
            f"SSH tunnel listening on {endpoint.host}:{endpoint.port} via "
            f"{config.ssh_user}@{config.ssh_host}:{config.ssh_port}"
        )
        return endpoint

    def close(self) -> None:
        """Stop forwarding and disconnect; safe to call more than once."""
        if self._forwarder is None:
            return
        forwarder, self._forwarder = self._forwarder, None
        forwarder.stop()
        logger.info("SSH tunnel closed")
