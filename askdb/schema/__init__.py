"""Schema snapshot capture and storage."""

from askdb.schema.snapshot import SchemaSnapshotStore

__all__ = ["SchemaSnapshotStore"]
