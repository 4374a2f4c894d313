"""
MCP Session Registry

Maps session ids to their transports. A session is inserted only after its
initialize request has been answered and is removed exactly once.

Sessions whose client goes away without a DELETE are dropped once they have
seen no request for `idle_timeout` seconds.
"""
from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Callable

from querygate.core.config import settings
from querygate.core.logging import get_logger
from querygate.mcp.session import SessionTransport
from querygate.tools.surface import ToolSurface

logger = get_logger(__name__)


class SessionRegistry:
    """
    Concurrent session map guarded by an asyncio.Lock.

    The lock only covers map mutations; request handling happens outside it.
    """

    def __init__(
        self,
        tool_surface: ToolSurface,
        idle_timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.tool_surface = tool_surface
        self.idle_timeout = settings.session_idle_timeout if idle_timeout is None else idle_timeout
        self._clock = clock
        self._sessions: dict[str, SessionTransport] = {}
        self._last_seen: dict[str, float] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def create_transport(self) -> SessionTransport:
        """New, not yet registered, transport with a fresh UUID session id."""
        return SessionTransport(str(uuid.uuid4()), self.tool_surface)

    async def add(self, transport: SessionTransport) -> None:
        await self.expire_idle()
        async with self._lock:
            self._sessions[transport.session_id] = transport
            self._last_seen[transport.session_id] = self._clock()
        logger.info(f"MCP session initialized: {transport.session_id}")

    async def get(self, session_id: str | None) -> SessionTransport | None:
        """Look up a live session and mark it active."""
        if not session_id:
            return None
        await self.expire_idle()
        async with self._lock:
            transport = self._sessions.get(session_id)
            if transport is not None:
                self._last_seen[session_id] = self._clock()
            return transport

    async def remove(self, session_id: str) -> SessionTransport | None:
        """Drop a session from the map. Removing an unknown id is a no-op."""
        async with self._lock:
            transport = self._sessions.pop(session_id, None)
            self._last_seen.pop(session_id, None)
        if transport is not None:
            logger.info(f"MCP session closed: {session_id}")
        return transport

    async def close(self, session_id: str) -> bool:
        """
        Close one session.

        Returns:
            True if the session existed
        """
        transport = await self.remove(session_id)
        if transport is None:
            return False
        await transport.close()
        return True

    async def expire_idle(self) -> int:
        """
        Close sessions idle for longer than `idle_timeout`.

        Returns:
            Number of sessions closed
        """
        if not self.idle_timeout:
            return 0

        cutoff = self._clock() - self.idle_timeout
        async with self._lock:
            idle_ids = [sid for sid, seen in self._last_seen.items() if seen < cutoff]
            expired = [(sid, self._sessions.pop(sid)) for sid in idle_ids if sid in self._sessions]
            for sid in idle_ids:
                del self._last_seen[sid]

        for session_id, _ in expired:
            logger.info(f"MCP session expired after {self.idle_timeout:.0f}s idle: {session_id}")
        await self._close_transports(expired, settings.session_close_timeout)
        return len(expired)

    async def close_all(self, timeout: float | None = None) -> None:
        """
        Close every session, each bounded by `timeout` seconds.

        Failures are logged and do not stop the remaining closes.
        """
        timeout = timeout or settings.session_close_timeout

        async with self._lock:
            sessions = list(self._sessions.items())
            self._sessions.clear()
            self._last_seen.clear()

        await self._close_transports(sessions, timeout)

        if sessions:
            logger.info(f"Closed {len(sessions)} MCP session(s)")

    async def _close_transports(self, sessions: list[tuple[str, SessionTransport]], timeout: float) -> None:
        for session_id, transport in sessions:
            try:
                await asyncio.wait_for(transport.close(), timeout=timeout)
            except TimeoutError:
                logger.warning(f"Closing session {session_id} timed out after {timeout}s")
            except Exception as e:
                logger.warning(f"Failed to close transport for session {session_id}: {e}")
