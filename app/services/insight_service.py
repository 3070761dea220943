"""
app/services/insight_service.py

Narrative insight generation and the insight cache.

Generation reads the latest quarter's metrics, builds the prompt, calls the
narrative generator and then saves a snapshot. The snapshot save is
best-effort: a storage failure there is logged and the generated narrative
is still returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from app.config import get_external_http_settings, get_llm_settings
from app.services.metric_analysis_service import extract_key_metrics
from db.models.insight import InsightSnapshot
from db.repositories.errors import StorageError
from db.repositories.metric_store import MetricStore
from llm_synthesis.adapter import BaseLLMAdapter, build_llm_adapter
from llm_synthesis.prompt_builder import InsightPromptBuilder
from llm_synthesis.schema import GenerateInsightsRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedInsights:
    text: str
    usage: dict[str, Any] | None
    snapshot_id: int | None


class InsightService:
    """
    Coordinates key-metric extraction, prompt building and generation.
    """

    def __init__(
        self,
        *,
        adapter: BaseLLMAdapter,
        prompt_builder: InsightPromptBuilder | None = None,
    ) -> None:
        self._adapter = adapter
        self._prompt_builder = prompt_builder or InsightPromptBuilder()

    def generate(self, *, store: MetricStore, request: GenerateInsightsRequest) -> GeneratedInsights:
        """
        Generate a narrative. Raises ``ExternalServiceError`` when the model
        call fails and ``StorageError`` when metrics cannot be read.
        """

        key_metrics = extract_key_metrics(store)
        prompt = self._prompt_builder.build_prompt(
            key_metrics.metrics,
            qoq_comparisons=request.qoq_comparisons,
            current_quarter=request.current_quarter,
            metrics_quarter=key_metrics.quarter.key if key_metrics.quarter else None,
        )
        completion = self._adapter.generate(prompt)

        snapshot_id: int | None = None
        current_quarter = (
            request.current_quarter.model_dump(mode="json") if request.current_quarter else None
        )
        try:
            snapshot = store.save_insight_snapshot(
                completion.text,
                qoq_data=request.qoq_document(),
                current_quarter=current_quarter,
            )
            snapshot_id = snapshot.id
        except StorageError as exc:
            logger.warning("Insight snapshot save failed; returning unsaved narrative: %s", exc)

        return GeneratedInsights(text=completion.text, usage=completion.usage, snapshot_id=snapshot_id)

    @staticmethod
    def latest(store: MetricStore) -> InsightSnapshot | None:
        return store.latest_insight_snapshot()


@lru_cache(maxsize=1)
def get_insight_service() -> InsightService:
    """
    Build and cache the insight service with env-driven settings.
    """
    http_settings = get_external_http_settings()
    return InsightService(
        adapter=build_llm_adapter(get_llm_settings(), timeout_seconds=http_settings.timeout_seconds),
    )
