"""
Result Classifier

Asks the language model to pick a visualization for a result set and to
summarize it. Any failure degrades to a plain table with a fixed summary.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import pydantic

from askdb.errors import LLMError
from askdb.llm.base import BaseLLMProvider
from askdb.llm.models import LLMMessage
from askdb.models.pipeline import Classification
from askdb.prompts.loader import PromptLoader

logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_ROWS = 50


class ResultClassifier:
    """Shape query rows into {visual, data, summary}."""

    def __init__(
        self,
        llm_provider: BaseLLMProvider,
        loader: PromptLoader | None = None,
        preview_rows: int = DEFAULT_PREVIEW_ROWS,
        temperature: float = 0.2,
    ) -> None:
        self.llm = llm_provider
        self.loader = loader or PromptLoader()
        self.preview_rows = preview_rows
        self.temperature = temperature

    async def classify(self, question: str, rows: list[dict[str, Any]]) -> Classification:
        """Return the model's classification, or the table fallback. Never raises."""
        preview = list(rows[: self.preview_rows])
        messages = [
            LLMMessage(role="system", content=self.loader.render("system/result_classifier.md")),
            LLMMessage(
                role="user",
                content=f"Question: {question}\nData: {json.dumps(preview, default=str)}",
            ),
        ]

        try:
            response = await self.llm.chat(messages, temperature=self.temperature)
            classification = self._parse_response(response)
        except LLMError as e:
            logger.warning(f"Result classification failed, using table fallback: {e}")
            return Classification.fallback(rows)
        except (json.JSONDecodeError, pydantic.ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Unparseable classification response, using table fallback: {e}")
            return Classification.fallback(rows)

        if not classification.data:
            classification.data = list(rows)

        logger.debug(
            f"Classified result as {classification.visual.type}",
            extra={"visual_type": classification.visual.type, "row_count": len(rows)},
        )
        return classification

    def _parse_response(self, response: str) -> Classification:
        """
        Parse one JSON object out of the model response.

        Raises:
            ValueError: If no JSON object is present
            json.JSONDecodeError: If the object is malformed
            pydantic.ValidationError: If the object breaks the response contract
        """
        response_text = response.replace("```json", "").replace("```", "").strip()

        start_idx = response_text.find("{")
        end_idx = response_text.rfind("}") + 1
        if start_idx == -1 or end_idx == 0:
            raise ValueError("No JSON found in response")

        data = json.loads(response_text[start_idx:end_idx])
        if not isinstance(data, dict):
            raise ValueError("Classification response is not a JSON object")
        return Classification.model_validate(data)
