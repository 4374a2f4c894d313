"""
MCP Endpoint Integration Tests

Drives /mcp over HTTP through session creation, tool calls and teardown.
"""
import json
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from querygate.api.main import create_app
from querygate.database.query_executor import QueryResult

INITIALIZE = {
    "jsonrpc": "2.0",
    "id": 1,
    "method": "initialize",
    "params": {"protocolVersion": "2025-03-26", "capabilities": {}, "clientInfo": {"name": "pytest"}},
}


def rpc(method, request_id=2, params=None):
    message = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return message


class TestSessionLifecycle:
    """Test session creation, addressing and deletion"""

    def test_initialize_returns_session_header(self, client, resources):
        response = client.post("/mcp", json=INITIALIZE)

        assert response.status_code == 200
        assert response.json()["result"]["serverInfo"]["name"] == "querygate-db-server"
        assert len(resources.registry) == 1
        assert response.headers["mcp-session-id"]

    def test_sessions_are_independent(self, client, resources):
        first = client.post("/mcp", json=INITIALIZE).headers["mcp-session-id"]
        second = client.post("/mcp", json=INITIALIZE).headers["mcp-session-id"]

        assert first != second
        assert len(resources.registry) == 2

    def test_missing_session_is_bad_request(self, client):
        response = client.post("/mcp", json=rpc("tools/list"))

        assert response.status_code == 400
        assert response.json()["error"]["code"] == -32000

    def test_unknown_session_is_bad_request(self, client):
        response = client.post("/mcp", json=rpc("tools/list"), headers={"mcp-session-id": "not-a-session"})
        assert response.status_code == 400

    def test_malformed_json(self, client):
        response = client.post("/mcp", content=b"{not json", headers={"content-type": "application/json"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == -32700

    def test_notification_is_accepted(self, client, session_id):
        response = client.post(
            "/mcp",
            json={"jsonrpc": "2.0", "method": "notifications/initialized"},
            headers={"mcp-session-id": session_id},
        )
        assert response.status_code == 202

    def test_delete_then_reuse(self, client, resources, session_id):
        headers = {"mcp-session-id": session_id}

        assert client.delete("/mcp", headers=headers).status_code == 200
        assert len(resources.registry) == 0
        assert client.post("/mcp", json=rpc("ping"), headers=headers).status_code == 400
        assert client.delete("/mcp", headers=headers).status_code == 400

    def test_get_stream(self, client, session_id):
        assert client.get("/mcp").status_code == 400

        response = client.get("/mcp", headers={"mcp-session-id": session_id})
        assert response.status_code == 405
        assert response.headers["allow"] == "POST, DELETE"


class TestToolCalls:
    def test_tools_list(self, client, session_id):
        response = client.post("/mcp", json=rpc("tools/list"), headers={"mcp-session-id": session_id})

        names = [tool["name"] for tool in response.json()["result"]["tools"]]
        assert names == ["list_tables", "describe_table", "query_database"]

    def test_query_database(self, client, session_id, mock_executor):
        response = client.post(
            "/mcp",
            json=rpc("tools/call", params={"name": "query_database", "arguments": {"sql": "SELECT 1"}}),
            headers={"mcp-session-id": session_id},
        )

        result = response.json()["result"]
        assert result["isError"] is False
        assert json.loads(result["content"][0]["text"])["rowCount"] == 1
        mock_executor.execute.assert_called_once()

    def test_rejected_query(self, client, session_id, mock_executor):
        response = client.post(
            "/mcp",
            json=rpc("tools/call", params={"name": "query_database", "arguments": {"sql": "DELETE FROM cases"}}),
            headers={"mcp-session-id": session_id},
        )

        result = response.json()["result"]
        assert result["isError"] is True
        assert result["content"][0]["text"].startswith("Query rejected:")
        mock_executor.execute.assert_not_called()

    def test_read_resource(self, client, session_id, mock_executor):
        mock_executor.execute.side_effect = [QueryResult(rows=[{"COLUMN_NAME": "id"}]), QueryResult(rows=[])]

        response = client.post(
            "/mcp",
            json=rpc("resources/read", params={"uri": "schema://tables/cases"}),
            headers={"mcp-session-id": session_id},
        )

        contents = response.json()["result"]["contents"]
        assert contents[0]["mimeType"] == "application/json"

    def test_read_unknown_resource(self, client, session_id):
        response = client.post(
            "/mcp",
            json=rpc("resources/read", params={"uri": "file:///etc/passwd"}),
            headers={"mcp-session-id": session_id},
        )
        assert response.json()["error"]["code"] == -32602


def test_shutdown_closes_sessions_then_pool(resources, fake_pool):
    with TestClient(create_app(resources)) as client:
        client.post("/mcp", json=INITIALIZE)
        client.post("/mcp", json=INITIALIZE)
        transports = [resources.registry._sessions[sid] for sid in list(resources.registry._sessions)]
        assert len(transports) == 2

    assert len(resources.registry) == 0
    assert all(t.is_closed for t in transports)
    assert fake_pool.closed is True


def test_shutdown_closes_tunnel_after_pool(resources, fake_pool):
    pool_closed_first = []
    tunnel = MagicMock()
    tunnel.close.side_effect = lambda: pool_closed_first.append(fake_pool.closed)
    resources.tunnel = tunnel

    with TestClient(create_app(resources)):
        pass

    assert pool_closed_first == [True]
