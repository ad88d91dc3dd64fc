"""Caller-facing error payloads."""

from __future__ import annotations

from typing import Any

from askdb.errors import AskDBError, is_sql_error
from askdb.models.pipeline import SQLErrorResponse


def render_error(exc: AskDBError) -> dict[str, Any]:
    """
    Render a pipeline failure for the caller.

    SQL failures become ``{message, code, error: true}`` carrying the
    engine's own message and code; everything else uses the generic
    ``{error: {code, message, detail}}`` envelope.
    """
    if is_sql_error(exc):
        return SQLErrorResponse(
            message=getattr(exc, "native_message", None) or exc.message,
            code=getattr(exc, "native_code", None) or exc.code.value,
        ).model_dump()

    return {
        "error": {
            "code": exc.code.value,
            "message": exc.message,
            "detail": exc.detail,
        }
    }
