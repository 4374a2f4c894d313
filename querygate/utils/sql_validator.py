"""
SQL Validator

Classifies and sanitizes caller-supplied SQL before it can reach the database.

Checks run in order and the first failure rejects:
1. empty input
2. length limit (checked before any parsing)
3. multiple statements (semicolon outside quoted literals, on the original text)
4. comment stripping
5. forbidden keyword scan on the comment-stripped text
6. AST parse (MySQL dialect); only SELECT roots are accepted
7. LIMIT appended when the statement has none
"""
from __future__ import annotations

from dataclasses import dataclass

from querygate.core.config import settings
from querygate.core.logging import get_logger
from querygate.utils.sql_parser import (
    MultipleStatementsError,
    find_dangerous_keyword,
    get_statement_type,
    has_limit,
    has_multiple_statements,
    parse_sql,
    strip_comments,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class Accepted:
    """SQL passed every check; `sanitized_sql` is safe to hand to the executor."""

    sanitized_sql: str
    valid: bool = True


@dataclass(frozen=True)
class Rejected:
    """SQL failed a check; `reason` is safe to show the caller."""

    reason: str
    valid: bool = False


ValidationOutcome = Accepted | Rejected


def first_keyword(sql: str) -> str:
    """First whitespace-delimited token, upper-cased ("" for blank input)."""
    parts = sql.split()
    return parts[0].upper() if parts else ""


def ensure_limit(sql: str, max_rows: int) -> str:
    """Append a LIMIT clause to already-cleaned SQL."""
    return f"{sql.rstrip()} LIMIT {max_rows}"


def validate_query(
    sql: str,
    max_length: int | None = None,
    max_rows: int | None = None,
) -> ValidationOutcome:
    """
    Validate that SQL is a single read-only SELECT and bound its row count.

    Args:
        sql: Raw SQL text from the caller
        max_length: Maximum accepted length (default from settings)
        max_rows: Row cap appended when the query has no LIMIT (default from settings)

    Returns:
        Accepted with the sanitized SQL, or Rejected with a reason
    """
    max_length = max_length or settings.max_query_length
    max_rows = max_rows or settings.max_query_rows

    trimmed = (sql or "").strip()

    if not trimmed:
        return Rejected("Query cannot be empty")

    if len(trimmed) > max_length:
        return Rejected(f"Query exceeds maximum length of {max_length} characters")

    if has_multiple_statements(trimmed):
        return Rejected("Multiple statements are not allowed")

    cleaned = strip_comments(trimmed).strip()

    keyword = find_dangerous_keyword(cleaned)
    if keyword:
        return Rejected(f"Forbidden keyword detected: {keyword}")

    try:
        expression = parse_sql(cleaned)
    except MultipleStatementsError:
        return Rejected("Multiple statements are not allowed")
    except Exception as e:
        logger.debug(f"SQL parse failed: {e}")
        return Rejected("Failed to parse SQL query. Please check the syntax.")

    statement_type = get_statement_type(expression)
    if statement_type != "select":
        return Rejected(f"Only SELECT queries are allowed. Got: {statement_type.upper()}")

    if not has_limit(expression):
        cleaned = ensure_limit(cleaned, max_rows)

    return Accepted(cleaned)
