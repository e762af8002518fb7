"""Dispatch, score and reconcile: the compare/consensus entry point."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .config import Settings, settings
from .consensus import ConsensusStrategy, build_consensus
from .dispatch import Dispatcher
from .errors import InvalidRequestError
from .models import ConsensusResult, GenerationRequest, ScoredResult, TaskType
from .registry import get_model_info
from .scoring import score_result, score_results

logger = logging.getLogger(__name__)


@dataclass
class OrchestrationResult:
    results: list[ScoredResult]
    consensus: ConsensusResult

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "consensus": self.consensus.to_dict(),
        }


class Orchestrator:
    def __init__(self, dispatcher: Dispatcher | None = None, *, config: Settings | None = None):
        self._config = config or settings
        self._dispatcher = dispatcher or Dispatcher(config=self._config)

    async def run(
        self,
        request: GenerationRequest,
        *,
        task_type: TaskType | str = TaskType.TEXT,
        strategy: ConsensusStrategy | str = ConsensusStrategy.HYBRID,
    ) -> OrchestrationResult:
        logger.info("Running %d model(s): %s", len(request.models), ", ".join(request.models))
        raw = await self._dispatcher.dispatch(request)
        scored = score_results(raw, task_type)
        consensus = build_consensus(scored, strategy, config=self._config)
        logger.info(
            "Consensus (%s): %.0f%% agreement, %.0f%% confidence",
            consensus.strategy,
            consensus.agreement * 100,
            consensus.confidence * 100,
        )
        return OrchestrationResult(results=scored, consensus=consensus)

    async def run_single(
        self,
        model: str,
        prompt: str,
        *,
        task_type: TaskType | str = TaskType.TEXT,
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> ScoredResult:
        """Query one model and score its answer; no consensus step."""
        if get_model_info(model) is None:
            raise InvalidRequestError(f"Unknown model: {model}")

        request = GenerationRequest(
            prompt=prompt,
            models=(model,),
            system=system,
            temperature=self._config.default_temperature if temperature is None else temperature,
            max_tokens=max_tokens,
        )
        [raw] = await self._dispatcher.dispatch(request)
        scored = score_result(raw, task_type)
        logger.info("%s completed with score %.2f", model, scored.score)
        return scored
