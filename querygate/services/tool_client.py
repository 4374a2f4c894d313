"""
Tool access for the natural-language query service.

`LocalToolClient` calls the in-process ToolSurface; the HTTP variant in
`querygate.clients.mcp_client` talks to a remote /mcp endpoint. Both return
a ToolResult and never raise for tool-level failures.
"""
from __future__ import annotations

import asyncio
from typing import Any, Protocol

from querygate.tools.base import ToolResult
from querygate.tools.surface import ToolSurface


class ToolClient(Protocol):
    async def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolResult: ...

    async def close(self) -> None: ...


class LocalToolClient:
    """In-process tool calls, run in a worker thread."""

    def __init__(self, surface: ToolSurface):
        self.surface = surface

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        return await asyncio.to_thread(self.surface.call, name, arguments)

    async def close(self) -> None:
        return None
