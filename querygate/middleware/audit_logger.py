"""
Audit Trail

Records every successful tool execution that reached the database.
Audit failures are logged and never propagate to the caller.
"""
from __future__ import annotations

import json
from datetime import UTC, datetime

from querygate.core.config import settings
from querygate.core.logging import get_audit_logger, get_logger

logger = get_logger(__name__)

MAX_AUDIT_QUERY_CHARS = 500


def truncate_query(query: str, limit: int = MAX_AUDIT_QUERY_CHARS) -> str:
    """Cut the query to `limit` characters, marking the cut with '...'."""
    return f"{query[:limit]}..." if len(query) > limit else query


def audit_log(tool_name: str, query: str, row_count: int, execution_time_ms: int) -> None:
    """
    Write one audit record when auditing is enabled.

    Args:
        tool_name: Tool that ran the statement
        query: Statement text (truncated to 500 characters)
        row_count: Rows returned
        execution_time_ms: Execution time in milliseconds
    """
    if not settings.audit_log_enabled:
        return

    try:
        record = {
            "toolName": tool_name,
            "query": truncate_query(query),
            "rowCount": row_count,
            "executionTimeMs": execution_time_ms,
            "timestamp": datetime.now(UTC).isoformat(),
        }
        get_audit_logger().info(f"AUDIT {json.dumps(record)}")
    except Exception as e:
        logger.warning(f"Failed to write audit record: {e}")
