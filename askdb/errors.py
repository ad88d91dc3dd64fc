"""
Error Taxonomy

Closed set of error kinds raised across the AskDB pipeline. Every error
carries a stable machine-readable code, a human-readable message and a
structured ``detail`` payload whose keys are fixed per kind.

Usage:
    from askdb.errors import QueryError

    try:
        rows = await sandbox.execute(connection_id, sql)
    except QueryError as e:
        print(e.code, e.native_code, e.native_message)
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Machine-readable error codes surfaced at the caller boundary."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    LIKELY_WRONG_ENGINE = "LIKELY_WRONG_ENGINE"
    NOT_FOUND = "NOT_FOUND"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    INTROSPECTION_ERROR = "INTROSPECTION_ERROR"
    QUERY_ERROR = "QUERY_ERROR"
    STATEMENT_NOT_ALLOWED = "STATEMENT_NOT_ALLOWED"
    UNSUPPORTED_ENGINE = "UNSUPPORTED_ENGINE"
    LLM_ERROR = "LLM_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class AskDBError(Exception):
    """
    Base exception for all AskDB errors.

    Attributes:
        code: Stable error code
        message: Error description
        detail: Structured payload specific to the error kind
    """

    code: ErrorCode = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, **detail: Any):
        self.message = message
        self.detail = detail
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging and caller responses."""
        return {
            "code": self.code.value,
            "message": self.message,
            "detail": self.detail,
            "type": self.__class__.__name__,
        }


class ValidationError(AskDBError):
    """Bad input shape (missing question, invalid port, ...)."""

    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, field=field)
        self.field = field


class LikelyWrongEngine(AskDBError):
    """Port belongs to the other supported engine (3306 vs 5432)."""

    code = ErrorCode.LIKELY_WRONG_ENGINE

    def __init__(self, engine: str, port: int, expected_port: int):
        super().__init__(
            f"Port {port} is the default for a different engine; "
            f"{engine} usually listens on {expected_port}. Check db_type and port.",
            engine=engine,
            port=port,
            expected_port=expected_port,
        )
        self.engine = engine
        self.port = port
        self.expected_port = expected_port


class NotFound(AskDBError):
    """Requested resource does not exist (or is not owned by the caller)."""

    code = ErrorCode.NOT_FOUND

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            f"{resource.capitalize()} not found: {identifier}",
            resource=resource,
            identifier=str(identifier),
        )
        self.resource = resource
        self.identifier = identifier


class DatabaseError(AskDBError):
    """Base for errors raised at the target database boundary."""

    def __init__(
        self,
        message: str,
        engine: str | None = None,
        native_code: str | None = None,
        native_message: str | None = None,
        **detail: Any,
    ):
        super().__init__(
            message,
            engine=engine,
            native_code=native_code,
            native_message=native_message,
            **detail,
        )
        self.engine = engine
        self.native_code = native_code
        self.native_message = native_message if native_message is not None else message


class ConnectionError(DatabaseError):
    """Transient connection to the target database could not be opened."""

    code = ErrorCode.CONNECTION_ERROR


class IntrospectionError(DatabaseError):
    """Metadata queries against the target database failed."""

    code = ErrorCode.INTROSPECTION_ERROR


class QueryError(DatabaseError):
    """Sandboxed statement failed on the target database."""

    code = ErrorCode.QUERY_ERROR

    def __init__(
        self,
        message: str,
        engine: str | None = None,
        native_code: str | None = None,
        native_message: str | None = None,
        sql: str | None = None,
    ):
        super().__init__(
            message,
            engine=engine,
            native_code=native_code,
            native_message=native_message,
            sql=sql,
        )
        self.sql = sql


class StatementNotAllowed(AskDBError):
    """Statement violates the read-only allow-list policy."""

    code = ErrorCode.STATEMENT_NOT_ALLOWED

    def __init__(self, message: str = "Only SELECT queries are allowed", keyword: str | None = None):
        super().__init__(message, keyword=keyword)
        self.keyword = keyword


class UnsupportedEngine(AskDBError):
    """Engine is outside the supported set."""

    code = ErrorCode.UNSUPPORTED_ENGINE

    def __init__(self, engine: str):
        super().__init__(f"Unsupported database engine: {engine}", engine=engine)
        self.engine = engine


class LLMError(AskDBError):
    """Language model call failed (credentials, upstream, timeout, parse)."""

    code = ErrorCode.LLM_ERROR

    def __init__(self, message: str, provider: str | None = None, reason: str = "upstream"):
        super().__init__(message, provider=provider, reason=reason)
        self.provider = provider
        self.reason = reason


class ConfigurationError(AskDBError):
    """Required configuration is missing or invalid."""

    code = ErrorCode.CONFIGURATION_ERROR

    def __init__(self, message: str, setting: str | None = None):
        super().__init__(message, setting=setting)
        self.setting = setting


def is_sql_error(exc: BaseException) -> bool:
    """Return True for failures rendered as an informative SQL payload."""
    return isinstance(exc, QueryError)
