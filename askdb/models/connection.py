"""
Target database connection models.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, SecretStr, field_validator

Engine = Literal["mysql", "postgresql"]

SUPPORTED_ENGINES: tuple[str, ...] = ("mysql", "postgresql")

DEFAULT_PORTS: dict[str, int] = {
    "mysql": 3306,
    "postgresql": 5432,
}

REDACTED_PASSWORD = "********"


class ConnectionCreate(BaseModel):
    """Payload for registering a target database connection."""

    engine: Engine = Field(..., description="Database engine type")
    host: str = Field(..., description="Database host")
    port: int = Field(..., ge=1, le=65535, description="Database port")
    user: str = Field(..., description="Database user")
    password: SecretStr = Field(..., description="Database password")
    database: str = Field(..., description="Target database name")

    @field_validator("engine", mode="before")
    @classmethod
    def normalize_engine(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("host", "user", "database")
    @classmethod
    def require_text(cls, v: str) -> str:
        value = v.strip()
        if not value:
            raise ValueError("must be a non-empty string")
        return value

    @field_validator("password")
    @classmethod
    def require_password(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("must be a non-empty string")
        return v

    @field_validator("port", mode="before")
    @classmethod
    def reject_non_integral_port(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("must be an integer")
        if isinstance(v, float) and not v.is_integer():
            raise ValueError("must be an integer")
        return v


class Connection(BaseModel):
    """Stored target database connection."""

    connection_id: UUID = Field(default_factory=uuid4, description="Connection identifier")
    engine: Engine = Field(..., description="Database engine type")
    host: str = Field(..., description="Database host")
    port: int = Field(..., description="Database port")
    user: str = Field(..., description="Database user")
    password: SecretStr = Field(..., description="Decrypted password, never echoed")
    database: str = Field(..., description="Target database name")
    owner_id: str | None = Field(None, description="Registering user")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Creation timestamp"
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Last activity timestamp"
    )

    def to_public_dict(self) -> dict[str, Any]:
        """Outward-facing representation with the password redacted."""
        return {
            "connection_id": str(self.connection_id),
            "engine": self.engine,
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": REDACTED_PASSWORD,
            "database": self.database,
            "owner_id": self.owner_id,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
