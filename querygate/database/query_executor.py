"""
Query Executor

Runs already-validated SQL against the pool under a per-statement
execution-time ceiling and returns rows as plain dicts.
"""
from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import DBAPIError

from querygate.core.config import settings
from querygate.core.exceptions import DatabaseConnectionError, QueryExecutionError
from querygate.core.logging import get_logger
from querygate.database.connection import ConnectionPool

logger = get_logger(__name__)

# Quoted literals are copied through; bare `?` placeholders are rewritten
_LITERAL_OR_PLACEHOLDER = re.compile(r"""('(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*"|`[^`]*`)|(\?)""")


@dataclass(frozen=True)
class QueryResult:
    """Rows and field metadata of one executed statement."""

    rows: list[dict[str, Any]]
    fields: list[dict[str, Any]] = field(default_factory=list)
    execution_time_ms: int = 0

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_json(self) -> str:
        """Serialize in the shape returned to tool callers."""
        return json.dumps(
            {
                "rowCount": self.row_count,
                "executionTimeMs": self.execution_time_ms,
                "rows": self.rows,
            },
            default=str,
            indent=2,
        )


def to_driver_placeholders(sql: str) -> tuple[str, int]:
    """
    Rewrite `?` placeholders to the driver's `%s` paramstyle.

    PyMySQL always %-formats the statement, so literal `%` characters are
    doubled everywhere, including inside quoted strings.

    Returns:
        Tuple of (driver_sql, placeholder_count)
    """
    count = 0
    parts: list[str] = []
    pos = 0

    for match in _LITERAL_OR_PLACEHOLDER.finditer(sql):
        parts.append(sql[pos:match.start()].replace("%", "%%"))
        if match.group(1) is not None:
            parts.append(match.group(1).replace("%", "%%"))
        else:
            parts.append("%s")
            count += 1
        pos = match.end()

    parts.append(sql[pos:].replace("%", "%%"))
    return "".join(parts), count


def _mysql_error_code(error: DBAPIError) -> int | None:
    args = getattr(error.orig, "args", None)
    if args and isinstance(args[0], int):
        return args[0]
    return None


class QueryExecutor:
    """
    Execute validated statements on pooled connections.

    Every checkout gets `SET SESSION MAX_EXECUTION_TIME` before the statement
    runs; the connection goes back to the pool on every exit path.
    """

    def __init__(self, pool: ConnectionPool, timeout_ms: int | None = None):
        self.pool = pool
        self.timeout_ms = timeout_ms or settings.query_timeout_ms

    @property
    def database(self) -> str:
        return self.pool.database

    def execute(self, sql: str, params: list | tuple | None = None) -> QueryResult:
        """
        Execute a statement with positional `?` parameters.

        Args:
            sql: Validated SQL text
            params: Values bound out-of-band by the driver

        Returns:
            QueryResult

        Raises:
            DatabaseConnectionError: Pool exhausted, network or auth failure
            QueryExecutionError: Database-reported fault
        """
        driver_sql, placeholder_count = to_driver_placeholders(sql)
        args = tuple(params or ())
        if placeholder_count != len(args):
            raise QueryExecutionError(
                f"Statement expects {placeholder_count} parameter(s), got {len(args)}"
            )

        with self.pool.connection() as conn:
            try:
                conn.exec_driver_sql(f"SET SESSION MAX_EXECUTION_TIME = {int(self.timeout_ms)}")

                start = time.perf_counter()
                result = conn.exec_driver_sql(driver_sql, args)
                description = result.cursor.description if result.cursor is not None else None
                rows = [dict(row._mapping) for row in result]
                elapsed_ms = int((time.perf_counter() - start) * 1000)
            except DBAPIError as e:
                if e.connection_invalidated:
                    logger.error(f"Connection lost during query: {e.orig}")
                    raise DatabaseConnectionError(str(e.orig)) from e
                code = _mysql_error_code(e)
                logger.warning(f"Query failed (code {code}): {e.orig}")
                raise QueryExecutionError(str(e.orig), code=code) from e

        fields = [{"name": col[0], "type": col[1]} for col in description or []]

        logger.debug(f"Query returned {len(rows)} rows in {elapsed_ms}ms")
        return QueryResult(rows=rows, fields=fields, execution_time_ms=elapsed_ms)
