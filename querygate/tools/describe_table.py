"""describe_table tool"""
from __future__ import annotations

import json

from querygate.database.schema_catalog import SchemaCatalog
from querygate.middleware.audit_logger import audit_log
from querygate.middleware.error_handler import handle_tool_error
from querygate.tools.base import VALID_TABLE_NAME, DescribeTableArgs, ToolResult

INVALID_TABLE_NAME = "Invalid table name. Only alphanumeric characters and underscores are allowed."


def describe_table(catalog: SchemaCatalog, args: DescribeTableArgs) -> ToolResult:
    """
    Describe columns and indexes of one table.

    The name is checked against `^[A-Za-z0-9_]+$` before any query runs.
    """
    table_name = args.table_name
    if not VALID_TABLE_NAME.match(table_name):
        return ToolResult.error(INVALID_TABLE_NAME)

    try:
        columns, indexes = catalog.describe_table(table_name)

        if columns.row_count == 0:
            return ToolResult.error(f"Table '{table_name}' not found in database '{catalog.database}'.")

        audit_log("describe_table", f"DESCRIBE {table_name}", columns.row_count, columns.execution_time_ms)

        return ToolResult.text(
            json.dumps(
                {
                    "table": table_name,
                    "database": catalog.database,
                    "columnCount": columns.row_count,
                    "columns": columns.rows,
                    "indexes": indexes.rows,
                },
                default=str,
                indent=2,
            )
        )
    except Exception as e:
        return handle_tool_error(e)
