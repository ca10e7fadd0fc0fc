"""Read-only SQL guard for model-generated queries."""

import re

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

FORBIDDEN_KEYWORDS = (
    "DROP",
    "DELETE",
    "UPDATE",
    "INSERT",
    "ALTER",
    "TRUNCATE",
    "CREATE",
    "GRANT",
    "REVOKE",
)

_FENCE_SQL = re.compile(r"```sql\n?")
_FENCE = re.compile(r"```\n?")

_READ_ONLY_ROOTS = (exp.Select, exp.Union, exp.Intersect, exp.Except)


class UnsafeQueryError(ValueError):
    """Generated SQL was rejected by the guard."""

    def __init__(self, message: str, keyword: str | None = None):
        super().__init__(message)
        self.keyword = keyword


def strip_code_fences(text: str) -> str:
    """Remove Markdown code fences and surrounding whitespace."""
    return _FENCE.sub("", _FENCE_SQL.sub("", text)).strip()


def validate_sql(sql: str, dialect: str = "postgres") -> None:
    """Reject anything that is not a single read-only SELECT.

    The keyword check is a plain substring scan over the upper-cased text,
    so a forbidden word inside an identifier, literal or comment rejects
    the whole query. The parser check runs afterwards and can only reject
    more.

    Raises:
        UnsafeQueryError: If the query is rejected
    """
    upper = sql.upper().strip()

    for keyword in FORBIDDEN_KEYWORDS:
        if keyword in upper:
            raise UnsafeQueryError(f"Requête SQL non autorisée: {keyword} détecté", keyword=keyword)

    if not upper.startswith("SELECT"):
        raise UnsafeQueryError("Seules les requêtes SELECT sont autorisées")

    try:
        statements = [s for s in sqlglot.parse(sql, read=dialect) if s is not None]
    except SqlglotError as e:
        raise UnsafeQueryError(f"Requête SQL invalide: {e}") from e

    if len(statements) != 1:
        raise UnsafeQueryError("Une seule requête SQL est autorisée")

    statement = statements[0]
    if not isinstance(statement, _READ_ONLY_ROOTS):
        raise UnsafeQueryError("Seules les requêtes SELECT sont autorisées")

    # SELECT ... INTO creates a table
    if any(select.args.get("into") for select in statement.find_all(exp.Select)):
        raise UnsafeQueryError("SELECT INTO n'est pas autorisé")
