"""
Read-only statement policy.

A statement may run on a target database only if it starts with SELECT and
names no write or DDL keyword as a standalone token. The check is purely
lexical and runs before any connection is opened.
"""

import re

from askdb.errors import StatementNotAllowed

FORBIDDEN_KEYWORDS = (
    "insert",
    "update",
    "delete",
    "drop",
    "alter",
    "truncate",
    "create",
    "grant",
    "revoke",
)

_LEADING_SELECT = re.compile(r"^\s*select\b", re.IGNORECASE)
_FORBIDDEN_TOKEN = re.compile(
    r"\b(" + "|".join(FORBIDDEN_KEYWORDS) + r")\b",
    re.IGNORECASE,
)


def assert_read_only(sql: str) -> None:
    """
    Reject anything that is not a plain SELECT.

    Raises:
        StatementNotAllowed: If the statement does not start with SELECT or
            contains a forbidden keyword
    """
    if not sql or not _LEADING_SELECT.match(sql):
        raise StatementNotAllowed("Only SELECT queries are allowed")

    match = _FORBIDDEN_TOKEN.search(sql)
    if match:
        keyword = match.group(1).lower()
        raise StatementNotAllowed(
            f"Only SELECT queries are allowed (found '{keyword.upper()}')",
            keyword=keyword,
        )
