"""
Application context.

Builds every long-lived resource once at process start and hands it to the
components that need it. Nothing here is a module-level singleton: callers
create an ``AppContext`` and close it when done.

Usage:
    async with await AppContext.create() as app:
        result = await app.orchestrator.answer(request)
"""

from __future__ import annotations

import logging

from askdb.config import Settings, get_settings
from askdb.conversations.ledger import ConversationLedger
from askdb.database.registry import ConnectionRegistry
from askdb.llm.factory import LLMProviderFactory
from askdb.pipeline.classifier import ResultClassifier
from askdb.pipeline.orchestrator import QueryOrchestrator
from askdb.prompts.builder import SQLPromptBuilder
from askdb.prompts.loader import PromptLoader
from askdb.sandbox.executor import ExecutionSandbox
from askdb.schema.snapshot import SchemaSnapshotStore
from askdb.storage.system_db import SystemDatabase

logger = logging.getLogger(__name__)


class AppContext:
    """Owner of the system database pool and the components built on it."""

    def __init__(self, settings: Settings, database: SystemDatabase) -> None:
        self.settings = settings
        self.database = database
        self.prompt_loader = PromptLoader()
        self.snapshots = SchemaSnapshotStore(database, settings.sandbox)
        self.registry = ConnectionRegistry(
            database,
            self.snapshots,
            encryption_key=settings.database_credentials_key,
        )
        self.sandbox = ExecutionSandbox(self.registry, settings.sandbox)
        self.ledger = ConversationLedger(
            database, title_max_chars=settings.pipeline.title_max_chars
        )
        self._orchestrator: QueryOrchestrator | None = None

    @classmethod
    async def create(
        cls,
        settings: Settings | None = None,
        *,
        database: SystemDatabase | None = None,
    ) -> AppContext:
        """Build the context and open the system database pool."""
        settings = settings or get_settings()
        database = database or SystemDatabase.from_settings(settings.system_database)
        await database.connect()
        return cls(settings, database)

    @property
    def orchestrator(self) -> QueryOrchestrator:
        """Query pipeline; language model providers are created on first use."""
        if self._orchestrator is None:
            llm_settings = self.settings.llm
            pipeline_settings = self.settings.pipeline
            classifier = ResultClassifier(
                LLMProviderFactory.create_agent_provider("classifier", llm_settings),
                loader=self.prompt_loader,
                preview_rows=pipeline_settings.classifier_preview_rows,
                temperature=pipeline_settings.classifier_temperature,
            )
            self._orchestrator = QueryOrchestrator(
                registry=self.registry,
                snapshots=self.snapshots,
                sandbox=self.sandbox,
                ledger=self.ledger,
                sql_provider=LLMProviderFactory.create_agent_provider("sql", llm_settings),
                classifier=classifier,
                prompt_builder=SQLPromptBuilder(
                    loader=self.prompt_loader,
                    history_limit=pipeline_settings.history_limit,
                ),
                settings=pipeline_settings,
            )
        return self._orchestrator

    async def close(self) -> None:
        await self.database.close()
        logger.debug("Application context closed")

    async def __aenter__(self) -> AppContext:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False
