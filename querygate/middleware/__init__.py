"""
Tool middleware: audit trail and error translation.
"""

from querygate.middleware.audit_logger import audit_log
from querygate.middleware.error_handler import handle_tool_error

__all__ = ["audit_log", "handle_tool_error"]
