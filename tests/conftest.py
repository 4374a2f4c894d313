"""
Shared pytest fixtures - no database or network required
"""
from __future__ import annotations

from contextlib import contextmanager
from unittest.mock import MagicMock

import pytest

from querygate.database.query_executor import QueryResult
from querygate.tools.base import ToolResult


class FakeLanguageModel:
    """Returns scripted responses in order and records every call."""

    def __init__(self, responses: list, configured: bool = True):
        self.responses = list(responses)
        self.calls: list[tuple[str, list[dict]]] = []
        self.is_configured = configured

    async def generate(self, system_prompt, messages):
        self.calls.append((system_prompt, messages))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeToolClient:
    """Returns scripted ToolResults in order and records every call."""

    def __init__(self, results: list[ToolResult] | None = None):
        self.results = list(results or [])
        self.calls: list[tuple[str, dict]] = []
        self.closed = False

    async def call_tool(self, name, arguments):
        self.calls.append((name, arguments))
        return self.results.pop(0)

    async def close(self):
        self.closed = True


class FakeSchema:
    def __init__(self):
        self.core_calls = 0
        self.full_calls = 0

    def core_schema(self):
        self.core_calls += 1
        return "Database: bos\nTables:\ncases(id,number,client_id)\n"

    def full_schema(self):
        self.full_calls += 1
        return "Database: bos\nTables:\ncases(id,number,client_id)\njudges(id,name)\n"


class FakePool:
    """Hands out one shared connection and counts checkouts."""

    database = "bos"

    def __init__(self, conn=None):
        self.conn = conn or MagicMock()
        self.checkouts = 0
        self.closed = False

    @contextmanager
    def connection(self):
        self.checkouts += 1
        yield self.conn

    def close(self):
        self.closed = True


@pytest.fixture
def make_llm():
    """Factory for a scripted language model"""
    return FakeLanguageModel


@pytest.fixture
def make_tool_client():
    """Factory for a scripted tool client"""
    return FakeToolClient


@pytest.fixture
def fake_schema() -> FakeSchema:
    return FakeSchema()


@pytest.fixture
def fake_pool() -> FakePool:
    return FakePool()


@pytest.fixture
def mock_executor() -> MagicMock:
    """Executor double returning a single-row result"""
    executor = MagicMock()
    executor.database = "bos"
    executor.execute.return_value = QueryResult(rows=[{"1": 1}], execution_time_ms=3)
    return executor
