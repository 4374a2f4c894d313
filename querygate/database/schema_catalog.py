"""
Schema Catalog

Introspection queries against information_schema and the compact
`table(col1,col2,...)` schema text handed to the language model.

The compact format keeps only column names (no types, no spaces) so that
the full schema of a large database still fits in a prompt.
"""
from __future__ import annotations

import threading
import time
from typing import Any

from querygate.core.config import settings
from querygate.core.logging import get_logger
from querygate.database.query_executor import QueryExecutor, QueryResult

logger = get_logger(__name__)

LIST_TABLES_SQL = """
SELECT TABLE_NAME, TABLE_TYPE, TABLE_ROWS, TABLE_COMMENT
FROM information_schema.TABLES
WHERE TABLE_SCHEMA = ?
ORDER BY TABLE_NAME
"""

TABLE_NAMES_SQL = (
    "SELECT TABLE_NAME FROM information_schema.TABLES WHERE TABLE_SCHEMA = ? ORDER BY TABLE_NAME"
)

COLUMNS_SQL = """
SELECT COLUMN_NAME, DATA_TYPE, IS_NULLABLE, COLUMN_KEY,
       COLUMN_DEFAULT, EXTRA, COLUMN_COMMENT, ORDINAL_POSITION
FROM information_schema.COLUMNS
WHERE TABLE_SCHEMA = ? AND TABLE_NAME = ?
ORDER BY ORDINAL_POSITION
"""

INDEXES_SQL = """
SELECT INDEX_NAME, COLUMN_NAME, NON_UNIQUE, INDEX_TYPE
FROM information_schema.STATISTICS
WHERE TABLE_SCHEMA = ? AND TABLE_NAME = ?
ORDER BY INDEX_NAME, SEQ_IN_INDEX
"""

ALL_COLUMNS_SQL = """
SELECT TABLE_NAME, COLUMN_NAME
FROM information_schema.COLUMNS
WHERE TABLE_SCHEMA = ?
ORDER BY TABLE_NAME, ORDINAL_POSITION
"""


def format_compact_schema(database: str, columns: list[dict[str, Any]], tables: list[str] | None = None) -> str:
    """
    Render `Database: x\\nTables:\\nt(c1,c2)\\n` from (TABLE_NAME, COLUMN_NAME) rows.

    Args:
        database: Database name for the header line
        columns: Rows with TABLE_NAME and COLUMN_NAME keys
        tables: Optional subset of tables to include (case-insensitive)

    Returns:
        Compact schema text, tables sorted by name
    """
    wanted = {t.lower() for t in tables} if tables is not None else None
    grouped: dict[str, list[str]] = {}

    for row in columns:
        table = str(row["TABLE_NAME"])
        if wanted is not None and table.lower() not in wanted:
            continue
        grouped.setdefault(table, []).append(str(row["COLUMN_NAME"]))

    lines = [f"Database: {database}", "Tables:"]
    for table in sorted(grouped):
        lines.append(f"{table}({','.join(grouped[table])})")
    return "\n".join(lines) + "\n"


class SchemaCatalog:
    """
    Table listings, table descriptions and compact schema text.

    The compact schemas are cached for `ttl_seconds`; everything else hits
    information_schema on each call.
    """

    def __init__(
        self,
        executor: QueryExecutor,
        core_tables: list[str] | None = None,
        ttl_seconds: float | None = None,
    ):
        self.executor = executor
        self.core_tables = core_tables if core_tables is not None else list(settings.core_tables)
        self.ttl_seconds = settings.schema_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._lock = threading.Lock()
        self._columns: list[dict[str, Any]] | None = None
        self._loaded_at = 0.0

    @property
    def database(self) -> str:
        return self.executor.database

    def list_tables(self) -> QueryResult:
        return self.executor.execute(LIST_TABLES_SQL, [self.database])

    def table_names(self) -> list[str]:
        result = self.executor.execute(TABLE_NAMES_SQL, [self.database])
        return [str(row["TABLE_NAME"]) for row in result.rows]

    def describe_table(self, table_name: str) -> tuple[QueryResult, QueryResult]:
        """
        Columns and indexes of one table.

        Returns:
            Tuple of (columns_result, indexes_result)
        """
        columns = self.executor.execute(COLUMNS_SQL, [self.database, table_name])
        indexes = self.executor.execute(INDEXES_SQL, [self.database, table_name])
        return columns, indexes

    def _all_columns(self) -> list[dict[str, Any]]:
        with self._lock:
            fresh = self._columns is not None and (time.monotonic() - self._loaded_at) < self.ttl_seconds
            if fresh:
                return self._columns

        rows = self.executor.execute(ALL_COLUMNS_SQL, [self.database]).rows
        with self._lock:
            self._columns = rows
            self._loaded_at = time.monotonic()
        logger.info(f"Schema catalog refreshed: {len(rows)} columns")
        return rows

    def core_schema(self) -> str:
        """Compact schema restricted to the configured core tables."""
        return format_compact_schema(self.database, self._all_columns(), self.core_tables)

    def full_schema(self) -> str:
        """Compact schema of every table in the database."""
        return format_compact_schema(self.database, self._all_columns())

    def invalidate(self) -> None:
        with self._lock:
            self._columns = None
            self._loaded_at = 0.0
