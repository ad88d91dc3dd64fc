"""
Schema snapshot models.

A snapshot is a point-in-time copy of a target database's table/column
metadata. Table order and column order are fixed at introspection time
(tables lexical, columns declared) and preserved through persistence.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field


class ColumnSnapshot(BaseModel):
    """One column observed during introspection."""

    column_name: str = Field(..., description="Column name")
    data_type: str = Field(..., description="Engine data type")
    is_nullable: bool = Field(..., description="Whether column can be NULL")


class SchemaSnapshot(BaseModel):
    """Mapping of table name to ordered columns."""

    tables: dict[str, list[ColumnSnapshot]] = Field(
        default_factory=dict, description="Table name -> ordered columns"
    )

    @property
    def is_empty(self) -> bool:
        return not self.tables

    @property
    def table_names(self) -> list[str]:
        return list(self.tables.keys())

    def column_count(self) -> int:
        return sum(len(columns) for columns in self.tables.values())

    def to_mapping(self) -> dict[str, list[dict[str, Any]]]:
        """Plain nested mapping, insertion order preserved."""
        return {
            table: [column.model_dump() for column in columns]
            for table, columns in self.tables.items()
        }

    def to_prompt_json(self) -> str:
        """Deterministic JSON used as prompt grounding."""
        return json.dumps(self.to_mapping(), ensure_ascii=False)
