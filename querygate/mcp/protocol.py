"""
JSON-RPC 2.0 message models for the MCP endpoint.
"""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2025-03-26"
SESSION_HEADER = "mcp-session-id"

# Error codes
BAD_REQUEST = -32000
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

BAD_REQUEST_MESSAGE = "Bad Request: missing session ID or not an initialize request"

RequestId = str | int | None


class JsonRpcRequest(BaseModel):
    """Request or notification (a notification has no id)"""

    model_config = ConfigDict(extra="allow")

    jsonrpc: Literal["2.0"]
    method: str
    id: RequestId = None
    params: dict[str, Any] | None = None

    @property
    def is_notification(self) -> bool:
        return "id" not in self.model_fields_set


class JsonRpcError(BaseModel):
    code: int
    message: str
    data: Any | None = None


def success_response(request_id: RequestId, result: dict[str, Any]) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def error_response(request_id: RequestId, code: int, message: str) -> dict[str, Any]:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "error": JsonRpcError(code=code, message=message).model_dump(exclude_none=True),
    }


def _is_initialize(message: Any) -> bool:
    return (
        isinstance(message, dict)
        and message.get("jsonrpc") == JSONRPC_VERSION
        and message.get("method") == "initialize"
        and "id" in message
    )


def is_initialize_request(body: Any) -> bool:
    """True if the body (or any message of a batch) is an initialize request."""
    if isinstance(body, list):
        return any(_is_initialize(message) for message in body)
    return _is_initialize(body)
