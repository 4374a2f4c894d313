"""
QueryGate MCP Router

Streamable-HTTP style JSON-RPC endpoint. Sessions are created by an
`initialize` request without a session id and addressed afterwards with the
`mcp-session-id` header.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from querygate.api.dependencies import get_session_registry
from querygate.core.logging import get_logger
from querygate.mcp.protocol import (
    BAD_REQUEST,
    BAD_REQUEST_MESSAGE,
    PARSE_ERROR,
    SESSION_HEADER,
    error_response,
    is_initialize_request,
)
from querygate.mcp.registry import SessionRegistry
from querygate.mcp.session import SessionState

logger = get_logger(__name__)

router = APIRouter(tags=["MCP"])

INVALID_SESSION = {"error": "Invalid or missing session ID"}


def _bad_request() -> JSONResponse:
    return JSONResponse(status_code=400, content=error_response(None, BAD_REQUEST, BAD_REQUEST_MESSAGE))


@router.post("/mcp")
async def handle_mcp_post(request: Request, registry: SessionRegistry = Depends(get_session_registry)):
    """Route a JSON-RPC message (or batch) to its session, creating one on initialize."""
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content=error_response(None, PARSE_ERROR, "Parse error"))

    session_id = request.headers.get(SESSION_HEADER)
    headers: dict[str, str] = {}

    if session_id:
        transport = await registry.get(session_id)
        if transport is None:
            return _bad_request()
        response = await transport.handle(body)
    elif is_initialize_request(body):
        transport = registry.create_transport()
        response = await transport.handle(body)
        # Only a session whose handshake succeeded is registered
        if transport.state == SessionState.ACTIVE:
            await registry.add(transport)
            headers[SESSION_HEADER] = transport.session_id
    else:
        return _bad_request()

    if response is None:
        return Response(status_code=202, headers=headers)
    return JSONResponse(content=response, headers=headers)


@router.get("/mcp")
async def handle_mcp_get(request: Request, registry: SessionRegistry = Depends(get_session_registry)):
    """Server-initiated streams are not offered; known sessions get 405."""
    transport = await registry.get(request.headers.get(SESSION_HEADER))
    if transport is None:
        return JSONResponse(status_code=400, content=INVALID_SESSION)
    return JSONResponse(
        status_code=405,
        content={"error": "Method Not Allowed: server does not offer an SSE stream"},
        headers={"Allow": "POST, DELETE"},
    )


@router.delete("/mcp")
async def handle_mcp_delete(request: Request, registry: SessionRegistry = Depends(get_session_registry)):
    """Close a session."""
    session_id = request.headers.get(SESSION_HEADER)
    if not session_id or not await registry.close(session_id):
        return JSONResponse(status_code=400, content=INVALID_SESSION)
    return Response(status_code=200)
