"""query_database tool"""
from __future__ import annotations

from querygate.database.query_executor import QueryExecutor
from querygate.middleware.audit_logger import audit_log
from querygate.middleware.error_handler import handle_tool_error
from querygate.tools.base import QueryDatabaseArgs, ToolResult
from querygate.utils.sql_validator import Rejected, validate_query


def query_database(executor: QueryExecutor, args: QueryDatabaseArgs) -> ToolResult:
    """
    Validate then execute a read-only statement.

    Rejected SQL never checks out a connection.
    """
    validation = validate_query(args.sql)
    if isinstance(validation, Rejected):
        return ToolResult.error(f"Query rejected: {validation.reason}")

    try:
        result = executor.execute(validation.sanitized_sql, args.params)
        audit_log("query_database", args.sql, result.row_count, result.execution_time_ms)
        return ToolResult.text(result.to_json())
    except Exception as e:
        return handle_tool_error(e)
