"""Connection registry for target databases."""

from askdb.database.registry import ConnectionRegistry

__all__ = ["ConnectionRegistry"]
