"""
Query Memory

Verified natural-language/SQL pairs that users chose to remember, rendered
into a prompt block so the model can reuse working join patterns.

The persistent store is an interface; `InMemoryQueryMemoryStore` is the
process-local implementation used by default and in tests.
"""
from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from querygate.core.config import settings
from querygate.core.logging import get_logger
from querygate.utils.sql_helpers import CATEGORY_LABELS, detect_category, extract_joins
from querygate.utils.sql_parser import get_referenced_tables

logger = get_logger(__name__)

SUMMARY_HEADER = (
    "QUERY MEMORY — Previously verified working queries. Use these as reference for similar questions:"
)
EXAMPLES_PER_CATEGORY = 5
MAX_SUMMARY_SQL_CHARS = 200


@dataclass
class RememberedQuery:
    natural_language: str
    generated_sql: str
    tables: list[str]
    joins: list[str]
    category: str
    tier: int
    remembered_by: str | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class QueryMemoryStore(Protocol):
    def find_by_sql(self, sql: str) -> RememberedQuery | None: ...

    def add(self, query: RememberedQuery) -> None: ...

    def delete(self, query_id: str) -> bool: ...

    def list_recent(self) -> list[RememberedQuery]: ...


class InMemoryQueryMemoryStore:
    """Thread-safe process-local store"""

    def __init__(self):
        self._queries: dict[str, RememberedQuery] = {}
        self._lock = threading.Lock()

    def find_by_sql(self, sql: str) -> RememberedQuery | None:
        with self._lock:
            return next((q for q in self._queries.values() if q.generated_sql == sql), None)

    def add(self, query: RememberedQuery) -> None:
        with self._lock:
            self._queries[query.id] = query

    def delete(self, query_id: str) -> bool:
        with self._lock:
            return self._queries.pop(query_id, None) is not None

    def list_recent(self) -> list[RememberedQuery]:
        """All queries, most recent first."""
        with self._lock:
            queries = list(self._queries.values())
        return sorted(queries, key=lambda q: q.created_at, reverse=True)


def _truncate_sql(sql: str) -> str:
    return f"{sql[:MAX_SUMMARY_SQL_CHARS]}..." if len(sql) > MAX_SUMMARY_SQL_CHARS else sql


def build_summary(queries: list[RememberedQuery]) -> str:
    """
    Render remembered queries as a prompt block.

    Args:
        queries: Remembered queries, most recent first

    Returns:
        Summary text, or "" when there is nothing to show
    """
    if not queries:
        return ""

    lines = [SUMMARY_HEADER]

    all_joins: list[str] = []
    for query in queries:
        for join in query.joins:
            if join not in all_joins:
                all_joins.append(join)

    if all_joins:
        lines.append("")
        lines.append("Known working join patterns: " + ", ".join(all_joins))

    grouped: dict[str, list[RememberedQuery]] = {}
    for query in queries:
        grouped.setdefault(query.category, []).append(query)

    for category, items in grouped.items():
        lines.append("")
        lines.append(f"[{CATEGORY_LABELS.get(category, CATEGORY_LABELS['general'])}]")
        for item in items[:EXAMPLES_PER_CATEGORY]:
            lines.append(f"Q: {item.natural_language}")
            lines.append(f"SQL: {_truncate_sql(item.generated_sql)}")

    return "\n".join(lines)


class QueryMemory:
    """
    Remember/forget operations plus the cached prompt summary.

    The summary is rebuilt at most once per TTL and invalidated whenever a
    query is remembered or forgotten.
    """

    def __init__(self, store: QueryMemoryStore | None = None, ttl_seconds: float | None = None):
        self.store = store or InMemoryQueryMemoryStore()
        self.ttl_seconds = settings.query_memory_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._lock = threading.Lock()
        self._cached_summary: str | None = None
        self._cached_at = 0.0

    def invalidate(self) -> None:
        with self._lock:
            self._cached_summary = None
            self._cached_at = 0.0

    def remember(
        self, natural_language: str, generated_sql: str, tier: int, remembered_by: str | None = None
    ) -> RememberedQuery:
        """
        Store a verified query; an identical SQL text already stored is returned as-is.
        """
        existing = self.store.find_by_sql(generated_sql)
        if existing is not None:
            return existing

        tables = get_referenced_tables(generated_sql)
        query = RememberedQuery(
            natural_language=natural_language,
            generated_sql=generated_sql,
            tables=tables,
            joins=extract_joins(generated_sql),
            category=detect_category(tables),
            tier=tier,
            remembered_by=remembered_by,
        )
        self.store.add(query)
        self.invalidate()
        logger.info(f"Remembered query in category '{query.category}' ({len(tables)} tables)")
        return query

    def forget(self, query_id: str) -> bool:
        removed = self.store.delete(query_id)
        if removed:
            self.invalidate()
        return removed

    def list_queries(self) -> list[RememberedQuery]:
        return self.store.list_recent()

    def summary(self) -> str:
        with self._lock:
            if self._cached_summary is not None and (time.monotonic() - self._cached_at) < self.ttl_seconds:
                return self._cached_summary

        queries = self.store.list_recent()
        text = build_summary(queries)

        with self._lock:
            self._cached_summary = text
            self._cached_at = time.monotonic()

        if queries:
            logger.debug(f"Built query memory summary: {len(queries)} queries, {len(text)} chars")
        return text
