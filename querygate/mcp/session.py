"""
MCP Session Transport

Per-session JSON-RPC dispatcher. Each session owns one transport; tool
calls run in worker threads so one session never blocks another.
"""
from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any

from pydantic import ValidationError

from querygate.core.config import settings
from querygate.core.exceptions import ProtocolError
from querygate.core.logging import get_logger
from querygate.mcp.protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PROTOCOL_VERSION,
    JsonRpcRequest,
    error_response,
    success_response,
)
from querygate.tools.surface import ToolSurface

logger = get_logger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    CLOSED = "closed"


class SessionTransport:
    """
    JSON-RPC channel bound to one session id.

    Lifecycle: UNINITIALIZED -> ACTIVE (initialize answered) -> CLOSED.
    """

    def __init__(self, session_id: str, tool_surface: ToolSurface):
        self.session_id = session_id
        self.tool_surface = tool_surface
        self.state = SessionState.UNINITIALIZED
        self.client_info: dict[str, Any] = {}

    @property
    def is_closed(self) -> bool:
        return self.state == SessionState.CLOSED

    async def handle(self, body: Any) -> dict | list | None:
        """
        Handle one POSTed body (single message or batch).

        Returns:
            Response object, list of responses, or None when the body held
            only notifications
        """
        if isinstance(body, list):
            if not body:
                return error_response(None, INVALID_REQUEST, "Invalid Request: empty batch")
            responses = [r for r in [await self._handle_message(m) for m in body] if r is not None]
            return responses or None
        return await self._handle_message(body)

    async def _handle_message(self, message: Any) -> dict | None:
        request_id = message.get("id") if isinstance(message, dict) else None

        try:
            request = JsonRpcRequest.model_validate(message)
        except ValidationError:
            return error_response(request_id, INVALID_REQUEST, "Invalid Request")

        if self.is_closed:
            return error_response(request.id, INVALID_REQUEST, "Session is closed")

        try:
            result = await self._dispatch(request)
        except ProtocolError as e:
            return None if request.is_notification else error_response(request.id, e.code, e.message)
        except Exception as e:
            logger.error(f"MCP request '{request.method}' failed: {e}", exc_info=True)
            return None if request.is_notification else error_response(request.id, INTERNAL_ERROR, "Internal error")

        if request.is_notification:
            return None
        return success_response(request.id, result)

    async def _dispatch(self, request: JsonRpcRequest) -> dict[str, Any]:
        method = request.method
        params = request.params or {}

        if method == "initialize":
            return self._initialize(params)
        if method == "notifications/initialized":
            return {}
        if method == "ping":
            return {}
        if self.state != SessionState.ACTIVE:
            raise ProtocolError("Session not initialized", code=INVALID_REQUEST)

        if method == "tools/list":
            return {"tools": self.tool_surface.list_tools()}
        if method == "tools/call":
            name = params.get("name")
            if not isinstance(name, str):
                raise ProtocolError("Invalid params: 'name' is required", code=INVALID_PARAMS)
            arguments = params.get("arguments") or {}
            if not isinstance(arguments, dict):
                raise ProtocolError("Invalid params: 'arguments' must be an object", code=INVALID_PARAMS)
            result = await asyncio.to_thread(self.tool_surface.call, name, arguments)
            return result.model_dump(by_alias=True)
        if method == "resources/list":
            resources = await asyncio.to_thread(self.tool_surface.list_resources)
            return {"resources": resources}
        if method == "resources/templates/list":
            return {"resourceTemplates": self.tool_surface.list_resource_templates()}
        if method == "resources/read":
            uri = params.get("uri")
            if not isinstance(uri, str):
                raise ProtocolError("Invalid params: 'uri' is required", code=INVALID_PARAMS)
            contents = await asyncio.to_thread(self.tool_surface.read_resource, uri)
            return {"contents": contents}

        raise ProtocolError(f"Method not found: {method}", code=METHOD_NOT_FOUND)

    def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        self.client_info = params.get("clientInfo") or {}
        self.state = SessionState.ACTIVE
        logger.debug(f"Session {self.session_id} initialized by {self.client_info.get('name', 'unknown client')}")
        return {
            "protocolVersion": params.get("protocolVersion") or PROTOCOL_VERSION,
            "capabilities": {"tools": {}, "resources": {}},
            "serverInfo": {"name": settings.mcp_server_name, "version": settings.mcp_server_version},
        }

    async def close(self) -> None:
        """Close the transport; closing twice is a no-op."""
        if self.is_closed:
            return
        self.state = SessionState.CLOSED
        logger.debug(f"Session transport {self.session_id} closed")
