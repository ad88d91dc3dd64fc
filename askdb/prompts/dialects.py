"""Per-engine SQL dialect hints used in prompts."""

from __future__ import annotations

from typing import NamedTuple

from askdb.errors import UnsupportedEngine


class DialectProfile(NamedTuple):
    """Dialect facts the model needs to write valid SQL for one engine."""

    label: str
    schema_filter: str
    syntax_hint: str


_SYNTAX_HINTS: dict[str, str] = {
    "postgresql": "Use PostgreSQL-specific features like LIMIT, OFFSET, and proper casting (::type).",
    "mysql": "Use MySQL-specific features like LIMIT with offset syntax (LIMIT offset, count).",
}

_LABELS: dict[str, str] = {
    "postgresql": "PostgreSQL",
    "mysql": "MySQL",
}


def dialect_for(engine: str, database: str = "") -> DialectProfile:
    """Build the dialect profile for an engine and target database name."""
    key = (engine or "").strip().lower()
    if key not in _LABELS:
        raise UnsupportedEngine(engine)

    if key == "postgresql":
        schema_filter = "table_schema = 'public'"
    else:
        schema_filter = f"table_schema = '{database}'"

    return DialectProfile(
        label=_LABELS[key],
        schema_filter=schema_filter,
        syntax_hint=_SYNTAX_HINTS[key],
    )
