"""
Utility modules for QueryGate.

- sql_parser: sqlglot wrapper and lexical SQL helpers
- sql_validator: read-only statement classifier and sanitizer
- sql_helpers: table/join extraction and category detection for query memory
- response_parser: <message>/<sql> extraction from model output
"""

from querygate.utils.sql_validator import Accepted, Rejected, validate_query

__all__ = ["Accepted", "Rejected", "validate_query"]
