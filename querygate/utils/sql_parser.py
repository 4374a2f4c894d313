"""
SQL Parser

Thin layer over sqlglot (MySQL dialect) plus the lexical helpers the
validator needs: comment stripping, quoted-literal removal and the
forbidden-keyword scan.
"""
from __future__ import annotations

import re

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

SQL_DIALECT = "mysql"

# Ordered: the first match names the rejection
DANGEROUS_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"\b(INSERT)\b", re.I), "INSERT"),
    (re.compile(r"\b(UPDATE)\b", re.I), "UPDATE"),
    (re.compile(r"\b(DELETE)\b", re.I), "DELETE"),
    (re.compile(r"\b(DROP)\b", re.I), "DROP"),
    (re.compile(r"\b(ALTER)\b", re.I), "ALTER"),
    (re.compile(r"\b(TRUNCATE)\b", re.I), "TRUNCATE"),
    (re.compile(r"\b(CREATE)\b", re.I), "CREATE"),
    (re.compile(r"\b(GRANT)\b", re.I), "GRANT"),
    (re.compile(r"\b(REVOKE)\b", re.I), "REVOKE"),
    (re.compile(r"\b(EXEC|EXECUTE)\b", re.I), "EXEC/EXECUTE"),
    (re.compile(r"\b(CALL)\b", re.I), "CALL"),
    (re.compile(r"\bINTO\s+(OUTFILE|DUMPFILE)\b", re.I), "INTO OUTFILE/DUMPFILE"),
    (re.compile(r"\bLOAD_FILE\b", re.I), "LOAD_FILE"),
    (re.compile(r"\bSLEEP\s*\(", re.I), "SLEEP()"),
    (re.compile(r"\bBENCHMARK\s*\(", re.I), "BENCHMARK()"),
    (re.compile(r"\bLOCK\s+IN\s+SHARE\s+MODE\b|\bFOR\s+SHARE\b", re.I), "LOCKING READ"),
]

# Literals are matched first so comment markers inside strings survive
_LITERAL_OR_COMMENT = re.compile(
    r"""('(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*"|`[^`]*`)"""
    r"|(/\*.*?\*/|--[^\n]*|#[^\n]*)",
    re.S,
)

_READ_ROOTS = (exp.Select, exp.Union, exp.Intersect, exp.Except)


class MultipleStatementsError(SqlglotError):
    """The text parsed into more than one statement."""


def remove_quoted_literals(sql: str) -> str:
    """
    Drop quoted literals and backtick identifiers in one left-to-right pass.

    Comment text is kept, so a semicolon inside a comment still counts.
    An unterminated quote is left in place.
    """

    def _replace(match: re.Match) -> str:
        return "" if match.group(1) is not None else match.group(2)

    return _LITERAL_OR_COMMENT.sub(_replace, sql)


def has_multiple_statements(sql: str) -> bool:
    """True when a semicolon survives outside quoted literals."""
    return ";" in remove_quoted_literals(sql)


def strip_comments(sql: str) -> str:
    """
    Remove `/* ... */`, `-- ...` and `# ...` comments.

    Block comments become a single space, which is how MySQL itself treats
    them. MySQL executable comments (`/*! ... */`) are removed with their body.
    """

    def _replace(match: re.Match) -> str:
        if match.group(1) is not None:
            return match.group(1)
        return " " if match.group(2).startswith("/*") else ""

    return _LITERAL_OR_COMMENT.sub(_replace, sql)


def find_dangerous_keyword(sql: str) -> str | None:
    """
    Scan for mutation/DDL/DCL keywords and exfiltration or DoS primitives.

    Returns:
        Display name of the first matching pattern, or None
    """
    for pattern, name in DANGEROUS_PATTERNS:
        if pattern.search(sql):
            return name
    return None


def parse_sql(sql: str) -> exp.Expression:
    """
    Parse a single statement with the MySQL dialect.

    Raises:
        MultipleStatementsError: If more than one statement comes back
        SqlglotError: If the text cannot be parsed
    """
    expressions = [e for e in sqlglot.parse(sql, read=SQL_DIALECT) if e is not None]
    if not expressions:
        raise SqlglotError("No expression was parsed")
    if len(expressions) > 1:
        raise MultipleStatementsError(f"Expected one statement, got {len(expressions)}")
    return expressions[0]


def _unwrap(expression: exp.Expression) -> exp.Expression:
    while isinstance(expression, (exp.Subquery, exp.Paren)) and expression.this is not None:
        expression = expression.this
    return expression


def get_statement_type(expression: exp.Expression) -> str:
    """
    Name the root statement kind in lower case.

    CTEs and set operations over SELECTs report "select".
    """
    root = _unwrap(expression)
    if isinstance(root, _READ_ROOTS):
        return "select"
    if isinstance(root, exp.Command):
        return str(root.this or "unknown").split()[0].lower()
    return (root.key or "unknown").lower()


def has_limit(expression: exp.Expression) -> bool:
    """True if the outermost query already carries a LIMIT."""
    if expression.args.get("limit") is not None:
        return True
    root = _unwrap(expression)
    return root is not expression and root.args.get("limit") is not None


def get_referenced_tables(sql: str) -> list[str]:
    """
    Tables named in FROM/JOIN clauses, excluding CTE names.

    Returns an empty list when the SQL does not parse.
    """
    try:
        expression = parse_sql(sql)
    except SqlglotError:
        return []

    cte_names = {cte.alias_or_name.lower() for cte in expression.find_all(exp.CTE)}
    tables: list[str] = []
    for table in expression.find_all(exp.Table):
        name = table.name.lower()
        if name and name not in cte_names and name not in tables:
            tables.append(name)
    return tables
