"""list_tables tool"""
from __future__ import annotations

import json

from querygate.database.schema_catalog import LIST_TABLES_SQL, SchemaCatalog
from querygate.middleware.audit_logger import audit_log
from querygate.middleware.error_handler import handle_tool_error
from querygate.tools.base import ListTablesArgs, ToolResult


def list_tables(catalog: SchemaCatalog, args: ListTablesArgs | None = None) -> ToolResult:
    """
    List all tables with type, approximate row count and comment.

    Returns:
        ToolResult whose text is `{database, tableCount, tables}` JSON
    """
    try:
        result = catalog.list_tables()
        audit_log("list_tables", LIST_TABLES_SQL, result.row_count, result.execution_time_ms)

        return ToolResult.text(
            json.dumps(
                {
                    "database": catalog.database,
                    "tableCount": result.row_count,
                    "tables": result.rows,
                },
                default=str,
                indent=2,
            )
        )
    except Exception as e:
        return handle_tool_error(e)
