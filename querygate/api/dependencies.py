"""
QueryGate FastAPI Dependencies

Process-wide resources (pool, tool surface, session registry, orchestrator)
and the request-level dependencies that hand them to routers.
"""
from __future__ import annotations

from dataclasses import dataclass

from fastapi import Header, HTTPException, Request, status

from querygate.clients.mcp_client import McpHttpToolClient
from querygate.core.config import settings
from querygate.database.connection import ConnectionPool
from querygate.database.query_executor import QueryExecutor
from querygate.database.schema_catalog import SchemaCatalog
from querygate.database.ssh_tunnel import SshTunnel
from querygate.mcp.registry import SessionRegistry
from querygate.services.llm_service import get_language_model
from querygate.services.nl_query_service import NaturalLanguageQueryService
from querygate.services.query_memory import QueryMemory
from querygate.services.tool_client import LocalToolClient, ToolClient
from querygate.tools.surface import ToolSurface


@dataclass
class AppResources:
    """Everything the lifespan owns; built once at startup and injected."""

    pool: ConnectionPool
    tool_surface: ToolSurface
    registry: SessionRegistry
    query_memory: QueryMemory
    nl_query_service: NaturalLanguageQueryService
    tool_client: ToolClient
    tunnel: SshTunnel | None = None


def build_resources(
    pool: ConnectionPool | None = None,
    tool_client: ToolClient | None = None,
    tunnel: SshTunnel | None = None,
) -> AppResources:
    """
    Wire the default object graph around a connection pool.

    The orchestrator calls tools in-process unless a tool client is given
    (e.g. an McpHttpToolClient pointing at a separate server).
    """
    pool = pool or ConnectionPool()
    executor = QueryExecutor(pool)
    catalog = SchemaCatalog(executor)
    surface = ToolSurface(executor, catalog)
    query_memory = QueryMemory()
    if tool_client is None:
        tool_client = McpHttpToolClient() if settings.tool_transport == "mcp" else LocalToolClient(surface)

    return AppResources(
        pool=pool,
        tool_surface=surface,
        registry=SessionRegistry(surface),
        query_memory=query_memory,
        nl_query_service=NaturalLanguageQueryService(
            llm=get_language_model(),
            tool_client=tool_client,
            schema=catalog,
            query_memory=query_memory,
        ),
        tool_client=tool_client,
        tunnel=tunnel,
    )


def get_resources(request: Request) -> AppResources:
    resources = getattr(request.app.state, "resources", None)
    if resources is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service is starting up")
    return resources


def get_tool_surface(request: Request) -> ToolSurface:
    return get_resources(request).tool_surface


def get_session_registry(request: Request) -> SessionRegistry:
    return get_resources(request).registry


def get_query_memory(request: Request) -> QueryMemory:
    return get_resources(request).query_memory


def get_nl_query_service(request: Request) -> NaturalLanguageQueryService:
    return get_resources(request).nl_query_service


async def verify_api_key(x_api_key: str | None = Header(default=None)) -> bool:
    """
    Verify the X-API-Key header against the configured key.

    When no key is configured the check is skipped.

    Raises:
        HTTPException: 401 if a key is configured and the header does not match
    """
    if not settings.api_key:
        return True
    if x_api_key != settings.api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or missing API key")
    return True
