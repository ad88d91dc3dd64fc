"""SQL text utilities."""

from askdb.sql.extractor import extract

__all__ = ["extract"]
