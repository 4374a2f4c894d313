"""
Model Response Parser

Extracts the user-facing message and the SQL candidate from free-form model
output that uses `<message>` and `<sql>` tags.
"""

import re
from dataclasses import dataclass

_MESSAGE_TAG = re.compile(r"<message>([\s\S]*?)</message>", re.I)
_SQL_TAG = re.compile(r"<sql>([\s\S]*?)</sql>", re.I)
_CODE_FENCE = re.compile(r"^```(?:sql)?\s*\n?([\s\S]*?)\n?```$", re.I)
_LINE_COMMENT = re.compile(r"^\s*--.*$", re.M)


@dataclass(frozen=True)
class ParsedResponse:
    """Message and SQL pulled out of one model response (either may be None)."""

    message: str | None
    sql: str | None


def parse_ai_response(raw: str) -> ParsedResponse:
    """
    Split a model response into message and SQL.

    Each tag is matched independently (first occurrence, case-insensitive) and
    its body trimmed. When neither tag is present the whole raw text is treated
    as the SQL candidate.

    Args:
        raw: Text returned by the language model

    Returns:
        ParsedResponse
    """
    text = raw or ""
    message_match = _MESSAGE_TAG.search(text)
    sql_match = _SQL_TAG.search(text)

    message = message_match.group(1).strip() if message_match else None
    sql = sql_match.group(1).strip() if sql_match else None

    if message_match is None and sql_match is None:
        stripped = text.strip()
        sql = stripped or None

    return ParsedResponse(message=message or None, sql=sql or None)


def clean_generated_sql(sql: str) -> str:
    """
    Remove a surrounding markdown code fence and one trailing semicolon.

    Examples:
        "```sql\\nSELECT 1;\\n```" -> "SELECT 1"
        "SELECT 1;" -> "SELECT 1"
    """
    cleaned = sql.strip()
    fence = _CODE_FENCE.match(cleaned)
    if fence:
        cleaned = fence.group(1).strip()
    if cleaned.endswith(";"):
        cleaned = cleaned[:-1].rstrip()
    return cleaned


def is_comment_only(sql: str) -> bool:
    """True when nothing but `--` comment lines and whitespace remain."""
    return not _LINE_COMMENT.sub("", sql).strip()


def comment_text(sql: str) -> str:
    """Join the bodies of `--` comment lines into a readable message."""
    lines = []
    for line in sql.splitlines():
        stripped = line.strip()
        if stripped.startswith("--"):
            body = stripped[2:].strip()
            if body:
                lines.append(body)
    return " ".join(lines)
