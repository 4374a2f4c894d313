"""
Tool Error Translation

Converts any exception raised inside a tool handler into a ToolResult with
a fixed, user-safe message. Full detail is logged with the traceback and
never returned to the caller.
"""
from __future__ import annotations

from querygate.core.exceptions import DatabaseConnectionError, QueryExecutionError
from querygate.core.logging import get_logger
from querygate.tools.base import ToolResult

logger = get_logger(__name__)

CONNECTION_FAILED = "Database connection failed. Please try again later."
QUERY_TIMED_OUT = "Query timed out. Try a simpler or more specific query."
SYNTAX_ERROR = "SQL syntax error. Please check your query."
ACCESS_DENIED = "Database access denied."
UNEXPECTED_ERROR = "An unexpected error occurred. Please try again."

# MySQL server error codes
ER_PARSE_ERROR = 1064
ER_QUERY_TIMEOUT = 3024
ACCESS_DENIED_CODES = {1044, 1045, 1142}
CONNECTION_CODES = {2002, 2003, 2006, 2013}


def classify_error(error: BaseException) -> str:
    """
    Pick the user-facing message for an error.

    Args:
        error: Exception raised by a tool handler

    Returns:
        One of the fixed user-safe messages
    """
    message = str(error)
    code = error.code if isinstance(error, QueryExecutionError) else None

    if (
        isinstance(error, (DatabaseConnectionError, ConnectionError))
        or code in CONNECTION_CODES
        or "ETIMEDOUT" in message
        or "ECONNREFUSED" in message
    ):
        return CONNECTION_FAILED
    if code == ER_QUERY_TIMEOUT or "MAX_EXECUTION_TIME" in message:
        return QUERY_TIMED_OUT
    if code == ER_PARSE_ERROR or "ER_PARSE_ERROR" in message or "error in your SQL syntax" in message:
        return SYNTAX_ERROR
    if code in ACCESS_DENIED_CODES or "ER_ACCESS_DENIED_ERROR" in message:
        return ACCESS_DENIED
    return UNEXPECTED_ERROR


def handle_tool_error(error: BaseException) -> ToolResult:
    """
    Log an exception in full and return an error ToolResult.

    Args:
        error: Exception raised by a tool handler

    Returns:
        ToolResult with is_error=True and a user-safe message
    """
    logger.error(f"Tool execution error: {error}", exc_info=error)
    return ToolResult.error(classify_error(error))
