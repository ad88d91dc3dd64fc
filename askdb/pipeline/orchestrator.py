"""
AskDB Query Orchestrator

Turns one natural-language question into an executed SQL statement and a
shaped answer:

    GENERATING → EXECUTING → DONE
                     ↓
                CORRECTING → GENERATING

A failed execution feeds the engine's error back to the model for a bounded
number of corrective regenerations. Policy, connection and model failures
are never retried.
"""

import logging
from enum import Enum
from typing import Any

from askdb.config import PipelineSettings
from askdb.conversations.ledger import ConversationLedger
from askdb.database.registry import ConnectionRegistry
from askdb.errors import QueryError, ValidationError
from askdb.llm.base import BaseLLMProvider
from askdb.llm.models import LLMMessage
from askdb.models.connection import Connection
from askdb.models.pipeline import AskRequest, AskResult
from askdb.models.schema import SchemaSnapshot
from askdb.pipeline.classifier import ResultClassifier
from askdb.prompts.builder import SQLPromptBuilder
from askdb.sandbox.executor import ExecutionSandbox
from askdb.schema.snapshot import SchemaSnapshotStore
from askdb.sql.extractor import extract

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    """States of the generate/execute/correct loop."""

    GENERATING = "generating"
    EXECUTING = "executing"
    CORRECTING = "correcting"
    DONE = "done"


class QueryOrchestrator:
    """
    Answer questions against registered connections.

    Usage:
        orchestrator = QueryOrchestrator(
            registry=registry,
            snapshots=snapshots,
            sandbox=sandbox,
            ledger=ledger,
            sql_provider=sql_provider,
            classifier=classifier,
        )
        result = await orchestrator.answer(
            AskRequest(question="Revenue by month", connection_id=connection_id)
        )
    """

    def __init__(
        self,
        *,
        registry: ConnectionRegistry,
        snapshots: SchemaSnapshotStore,
        sandbox: ExecutionSandbox,
        ledger: ConversationLedger,
        sql_provider: BaseLLMProvider,
        classifier: ResultClassifier,
        prompt_builder: SQLPromptBuilder | None = None,
        settings: PipelineSettings | None = None,
    ) -> None:
        self.registry = registry
        self.snapshots = snapshots
        self.sandbox = sandbox
        self.ledger = ledger
        self.sql_provider = sql_provider
        self.classifier = classifier
        self.settings = settings or PipelineSettings()
        self.prompt_builder = prompt_builder or SQLPromptBuilder(
            history_limit=self.settings.history_limit
        )

    async def answer(self, request: AskRequest) -> AskResult:
        """
        Run the full pipeline for one question.

        Raises:
            ValidationError: If the question or connection id is missing
            NotFound: If the connection or conversation does not exist
            QueryError: If the statement still fails after the correction budget
            StatementNotAllowed: If the model produced a non-read-only statement
            ConnectionError: If the target database is unreachable
            LLMError: If SQL generation fails
        """
        question = (request.question or "").strip()
        if not question:
            raise ValidationError("question is required", field="question")
        if not request.connection_id:
            raise ValidationError("connection_id is required", field="connection_id")

        connection = await self.registry.resolve(request.connection_id)
        conversation_id = await self.ledger.ensure(
            request.conversation_id,
            request.user_id,
            connection.connection_id,
            question,
        )
        snapshot = await self.snapshots.retrieve(connection.connection_id)

        history = []
        if conversation_id is not None:
            history = await self.ledger.recent_history(
                conversation_id, limit=self.settings.history_limit
            )
            await self.ledger.append_user(conversation_id, question)

        sql, rows, attempts = await self._generate_and_execute(
            question, connection, snapshot, history
        )

        classification = await self.classifier.classify(question, rows)

        if conversation_id is not None:
            await self.ledger.append_assistant(
                conversation_id,
                classification.summary.text,
                sql,
                classification.visual.type,
            )
            await self.ledger.touch(conversation_id)
        await self.registry.touch(connection.connection_id)

        logger.info(
            f"Answered question on connection {connection.connection_id}",
            extra={
                "connection_id": str(connection.connection_id),
                "conversation_id": str(conversation_id) if conversation_id else None,
                "attempts": attempts,
                "row_count": len(rows),
                "visual_type": classification.visual.type,
            },
        )

        return AskResult(
            sql=sql,
            visual=classification.visual,
            data=classification.data,
            summary=classification.summary,
            conversation_id=conversation_id,
            attempts=attempts,
        )

    async def _generate_and_execute(
        self,
        question: str,
        connection: Connection,
        snapshot: SchemaSnapshot,
        history: list[Any],
    ) -> tuple[str, list[dict[str, Any]], int]:
        budget = self.settings.max_correction_attempts
        corrections = 0
        attempts = 0

        messages = self.prompt_builder.build_generation(
            question,
            connection.engine,
            connection.database,
            snapshot=snapshot,
            history=history,
        )
        state = PipelineState.GENERATING

        while True:
            logger.debug(f"Pipeline state: {state.value}", extra={"attempt": attempts + 1})
            sql = await self._generate_sql(messages)

            state = PipelineState.EXECUTING
            attempts += 1
            try:
                rows = await self.sandbox.execute(connection.connection_id, sql)
            except QueryError as e:
                if corrections >= budget:
                    logger.warning(
                        f"SQL failed after {attempts} attempt(s), giving up: {e.native_message}",
                        extra={"native_code": e.native_code, "sql": sql[:200]},
                    )
                    raise

                corrections += 1
                state = PipelineState.CORRECTING
                logger.info(
                    f"SQL error (attempt {attempts}), requesting correction: {e.native_message}",
                    extra={"state": state.value, "native_code": e.native_code},
                )
                messages = self.prompt_builder.build_correction(
                    sql,
                    e.native_message,
                    e.native_code,
                    connection.engine,
                    connection.database,
                    snapshot=snapshot,
                )
                state = PipelineState.GENERATING
                continue

            state = PipelineState.DONE
            logger.debug(f"Pipeline reached {state.value} after {attempts} attempt(s)")
            return sql, rows, attempts

    async def _generate_sql(self, messages: list[LLMMessage]) -> str:
        raw = await self.sql_provider.chat(
            messages, temperature=self.settings.generation_temperature
        )
        sql = extract(raw)
        logger.debug(f"Generated SQL: {sql[:200]}")
        return sql
