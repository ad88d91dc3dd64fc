"""
SQL prompt assembly.

Builds the ordered message lists sent to the SQL provider: one system block,
the replayed conversation history, then the user turn. Pure and
deterministic for identical inputs.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from askdb.llm.models import LLMMessage
from askdb.models.schema import SchemaSnapshot
from askdb.prompts.dialects import DialectProfile, dialect_for
from askdb.prompts.loader import PromptLoader

DEFAULT_HISTORY_LIMIT = 10
UNKNOWN_ERROR_CODE = "UNKNOWN"


class SQLPromptBuilder:
    """Render generation and correction prompts for one engine."""

    def __init__(
        self,
        loader: PromptLoader | None = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        self.loader = loader or PromptLoader()
        self.history_limit = history_limit

    def build_generation(
        self,
        question: str,
        engine: str,
        database: str,
        snapshot: SchemaSnapshot | None = None,
        history: Iterable[Any] | None = None,
    ) -> list[LLMMessage]:
        """System block, replayed history (oldest first), then the question."""
        dialect = dialect_for(engine, database)
        messages = [self._system_message(dialect)]
        messages.extend(self._history_messages(history))
        messages.append(
            LLMMessage(
                role="user",
                content=self.loader.render(
                    "agents/sql_question.md",
                    question=question.strip(),
                    schema_json=self._schema_json(snapshot),
                ),
            )
        )
        return messages

    def build_correction(
        self,
        failed_sql: str,
        error_message: str,
        error_code: str | None,
        engine: str,
        database: str,
        snapshot: SchemaSnapshot | None = None,
    ) -> list[LLMMessage]:
        """
        Corrective turn: the failed statement and the engine error replace
        the question. History is not replayed.
        """
        dialect = dialect_for(engine, database)
        return [
            self._system_message(dialect),
            LLMMessage(
                role="user",
                content=self.loader.render(
                    "agents/sql_correction.md",
                    sql=failed_sql,
                    error_message=error_message,
                    error_code=error_code or UNKNOWN_ERROR_CODE,
                    schema_json=self._schema_json(snapshot),
                ),
            ),
        ]

    def _system_message(self, dialect: DialectProfile) -> LLMMessage:
        return LLMMessage(
            role="system",
            content=self.loader.render(
                "system/sql_generator.md",
                dialect=dialect.label,
                schema_filter=dialect.schema_filter,
                syntax_hint=dialect.syntax_hint,
            ),
        )

    def _history_messages(self, history: Iterable[Any] | None) -> list[LLMMessage]:
        if not history or self.history_limit <= 0:
            return []
        replay = []
        for entry in list(history)[-self.history_limit:]:
            role = entry["role"] if isinstance(entry, dict) else entry.role
            content = entry["content"] if isinstance(entry, dict) else entry.content
            # Assistant turns with an empty summary carry nothing to replay
            if content and content.strip():
                replay.append(LLMMessage(role=role, content=content))
        return replay

    @staticmethod
    def _schema_json(snapshot: SchemaSnapshot | None) -> str:
        if snapshot is None or snapshot.is_empty:
            return ""
        return snapshot.to_prompt_json()
