"""
Query API Integration Tests

Tests the front-end endpoints: health, direct SQL, natural language and
query memory.
"""
from unittest.mock import patch

from querygate.api import dependencies

ROW_SQL = "<message>One case.</message><sql>SELECT id FROM cases</sql>"


class TestHealth:
    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["server"] == "querygate-db-server"
        assert "timestamp" in body

    def test_root(self, client):
        assert client.get("/").json()["status"] == "running"


class TestSqlEndpoint:
    def test_select(self, client, mock_executor):
        response = client.post("/api/v1/query/sql", json={"sql": "SELECT 1"})

        assert response.status_code == 200
        assert response.json()["isError"] is False
        mock_executor.execute.assert_called_once_with("SELECT 1 LIMIT 1000", None)

    def test_mutation_rejected(self, client, mock_executor):
        response = client.post("/api/v1/query/sql", json={"sql": "UPDATE cases SET x = 1"})

        assert response.json()["isError"] is True
        mock_executor.execute.assert_not_called()

    def test_api_key_required_when_configured(self, client):
        with patch.object(dependencies.settings, "api_key", "secret"):
            assert client.post("/api/v1/query/sql", json={"sql": "SELECT 1"}).status_code == 401
            ok = client.post("/api/v1/query/sql", json={"sql": "SELECT 1"}, headers={"X-API-Key": "secret"})
            assert ok.status_code == 200


class TestNaturalLanguageEndpoint:
    def test_answer(self, client, llm, mock_executor):
        llm.responses.append(ROW_SQL)

        response = client.post("/api/v1/query/natural-language", json={"prompt": "How many cases?"})

        body = response.json()
        assert body["success"] is True
        assert body["tier"] == 1
        assert body["generated_sql"] == "SELECT id FROM cases"
        assert body["ai_message"] == "One case."
        mock_executor.execute.assert_called_once_with("SELECT id FROM cases LIMIT 1000", None)

    def test_history_forwarded(self, client, llm):
        llm.responses.append("<message>Hi</message>")
        history = [{"role": "user", "content": "earlier"}, {"role": "assistant", "content": "answer"}]

        client.post("/api/v1/query/natural-language", json={"prompt": "again", "history": history})

        assert [m["content"] for m in llm.calls[0][1]] == ["earlier", "answer", "again"]

    def test_empty_prompt(self, client):
        body = client.post("/api/v1/query/natural-language", json={"prompt": ""}).json()
        assert body["success"] is False
        assert body["error"] == "Please enter a question"

    def test_invalid_history_role(self, client):
        response = client.post(
            "/api/v1/query/natural-language",
            json={"prompt": "q", "history": [{"role": "system", "content": "x"}]},
        )
        assert response.status_code == 422


class TestQueryMemoryEndpoints:
    def test_remember_list_forget(self, client):
        created = client.post(
            "/api/v1/query-memory",
            json={"natural_language": "open cases", "generated_sql": "SELECT id FROM cases", "tier": 1},
        ).json()

        assert created["category"] == "cases"
        assert created["tables"] == ["cases"]

        listed = client.get("/api/v1/query-memory").json()
        assert [q["id"] for q in listed] == [created["id"]]

        assert client.delete(f"/api/v1/query-memory/{created['id']}").status_code == 200
        assert client.delete(f"/api/v1/query-memory/{created['id']}").status_code == 404
        assert client.get("/api/v1/query-memory").json() == []

    def test_remembered_query_reaches_prompt(self, client, llm):
        client.post(
            "/api/v1/query-memory",
            json={"natural_language": "open cases", "generated_sql": "SELECT id FROM cases WHERE open = 1"},
        )
        llm.responses.append("<message>ok</message>")

        client.post("/api/v1/query/natural-language", json={"prompt": "q"})

        assert "Q: open cases" in llm.calls[0][0]
