"""
MCP HTTP Client

Calls QueryGate tools over JSON-RPC on a remote /mcp endpoint.

The session is created lazily with an initialize handshake and reused.
Before each call the cached session is pinged; a failed ping (expired or
restarted server) closes it and opens a new one.
"""
from __future__ import annotations

import asyncio
import itertools
from typing import Any

import httpx

from querygate.core.config import settings
from querygate.core.exceptions import ProtocolError
from querygate.core.logging import get_logger
from querygate.mcp.protocol import JSONRPC_VERSION, PROTOCOL_VERSION, SESSION_HEADER
from querygate.tools.base import TextContent, ToolResult

logger = get_logger(__name__)

MCP_TIMEOUT_DEFAULT = 60.0
CLIENT_INFO = {"name": "querygate-web-client", "version": "1.0.0"}

CONNECTION_FAILED = "Database connection failed. Please try again later."


class McpHttpToolClient:
    """
    JSON-RPC tool client for a streamable-HTTP MCP endpoint.

    Accepts an optional pre-built httpx.AsyncClient so tests can inject a
    MockTransport.
    """

    def __init__(
        self,
        url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = MCP_TIMEOUT_DEFAULT,
    ):
        self.url = url or settings.mcp_server_url
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None
        self._session_id: str | None = None
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    @property
    def session_id(self) -> str | None:
        return self._session_id

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json, text/event-stream"}
        if self._session_id:
            headers[SESSION_HEADER] = self._session_id
        return headers

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        return await self._http.post(self.url, json=payload, headers=self._headers())

    async def _request(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "id": next(self._ids), "method": method}
        if params is not None:
            payload["params"] = params

        response = await self._post(payload)
        if response.status_code >= 400:
            try:
                error = response.json().get("error", {})
                message = error.get("message", f"HTTP {response.status_code}")
                code = error.get("code", -32000)
            except Exception:
                message, code = f"HTTP {response.status_code}", -32000
            raise ProtocolError(message, code=code)

        body = response.json()
        if "error" in body:
            raise ProtocolError(body["error"].get("message", "Unknown error"), code=body["error"].get("code", -32000))
        return body.get("result", {})

    async def _connect(self) -> None:
        self._session_id = None
        payload = {
            "jsonrpc": JSONRPC_VERSION,
            "id": next(self._ids),
            "method": "initialize",
            "params": {"protocolVersion": PROTOCOL_VERSION, "capabilities": {}, "clientInfo": CLIENT_INFO},
        }
        response = await self._post(payload)
        response.raise_for_status()

        session_id = response.headers.get(SESSION_HEADER)
        if not session_id:
            raise ProtocolError("Server did not return a session id")
        self._session_id = session_id

        await self._http.post(
            self.url,
            json={"jsonrpc": JSONRPC_VERSION, "method": "notifications/initialized"},
            headers=self._headers(),
        )
        logger.info(f"Connected to MCP server at {self.url}")

    async def _ensure_session(self) -> None:
        async with self._lock:
            if self._session_id:
                try:
                    await self._request("ping")
                    return
                except (ProtocolError, httpx.HTTPError):
                    logger.info("Stale MCP session detected, reconnecting...")
                    await self._close_session()
            await self._connect()

    async def _close_session(self) -> None:
        if not self._session_id:
            return
        try:
            await self._http.delete(self.url, headers=self._headers())
        except httpx.HTTPError as e:
            logger.debug(f"Ignoring close error on stale session: {e}")
        self._session_id = None

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        """
        Call a remote tool.

        Transport and protocol failures come back as an error ToolResult.
        """
        try:
            await self._ensure_session()
            result = await self._request("tools/call", {"name": name, "arguments": arguments})
        except (ProtocolError, httpx.HTTPError) as e:
            logger.error(f"MCP tool call '{name}' failed: {e}")
            return ToolResult.error(CONNECTION_FAILED)

        content = [
            TextContent(text=item["text"])
            for item in result.get("content", [])
            if item.get("type") == "text" and isinstance(item.get("text"), str)
        ]
        return ToolResult(content=content, is_error=bool(result.get("isError", False)))

    async def close(self) -> None:
        async with self._lock:
            await self._close_session()
        if self._owns_http:
            await self._http.aclose()
