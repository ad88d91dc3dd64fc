"""System database storage."""

from askdb.storage.system_db import SCHEMA_STATEMENTS, SystemDatabase, normalize_postgres_url

__all__ = ["SCHEMA_STATEMENTS", "SystemDatabase", "normalize_postgres_url"]
