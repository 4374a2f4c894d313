"""
Integration fixtures: the real FastAPI app wired around fake infrastructure

The pool, the executor and the language model are doubles; everything
between the HTTP layer and them is the production code.
"""
import pytest
from fastapi.testclient import TestClient

from querygate.api.dependencies import AppResources
from querygate.api.main import create_app
from querygate.database.schema_catalog import SchemaCatalog
from querygate.mcp.registry import SessionRegistry
from querygate.services.nl_query_service import NaturalLanguageQueryService
from querygate.services.query_memory import QueryMemory
from querygate.services.tool_client import LocalToolClient
from querygate.tools.surface import ToolSurface

INITIALIZE = {
    "jsonrpc": "2.0",
    "id": 1,
    "method": "initialize",
    "params": {"protocolVersion": "2025-03-26", "capabilities": {}, "clientInfo": {"name": "pytest"}},
}


@pytest.fixture
def llm(make_llm):
    return make_llm([])


@pytest.fixture
def resources(fake_pool, mock_executor, fake_schema, llm) -> AppResources:
    surface = ToolSurface(mock_executor, SchemaCatalog(mock_executor, core_tables=["cases"]))
    query_memory = QueryMemory(ttl_seconds=300)
    tool_client = LocalToolClient(surface)
    service = NaturalLanguageQueryService(
        llm=llm,
        tool_client=tool_client,
        schema=fake_schema,
        query_memory=query_memory,
        business_rules="RULES",
    )
    return AppResources(
        pool=fake_pool,
        tool_surface=surface,
        registry=SessionRegistry(surface),
        query_memory=query_memory,
        nl_query_service=service,
        tool_client=tool_client,
    )


@pytest.fixture
def client(resources):
    """TestClient with the lifespan running"""
    with TestClient(create_app(resources)) as test_client:
        yield test_client


@pytest.fixture
def session_id(client) -> str:
    """An initialized MCP session"""
    response = client.post("/mcp", json=INITIALIZE)
    assert response.status_code == 200
    return response.headers["mcp-session-id"]
