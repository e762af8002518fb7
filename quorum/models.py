"""
Core records passed between the dispatch, scoring, consensus and packaging stages.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field, fields
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from .errors import InvalidRequestError

MAX_MODELS = 10


class ResultStatus(StrEnum):
    OK = "ok"
    ERROR = "error"
    TIMEOUT = "timeout"


class OutputKind(StrEnum):
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"


class TaskType(StrEnum):
    CODE = "code"
    TEXT = "text"


@dataclass(frozen=True)
class GenerationRequest:
    """A prompt fanned out to several models. Immutable once dispatched."""

    prompt: str
    models: tuple[str, ...]
    system: str | None = None
    images: tuple[str, ...] = ()
    temperature: float = 0.2
    max_tokens: int | None = None
    max_parallel: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "models", tuple(self.models))
        object.__setattr__(self, "images", tuple(self.images or ()))

        if not isinstance(self.prompt, str) or not self.prompt.strip():
            raise InvalidRequestError("Prompt must not be empty")
        if not self.models:
            raise InvalidRequestError("At least one model is required")
        if len(self.models) > MAX_MODELS:
            raise InvalidRequestError(f"At most {MAX_MODELS} models are allowed")
        if any(not isinstance(m, str) or not m.strip() for m in self.models):
            raise InvalidRequestError("Model identifiers must be non-empty strings")
        if not 0 <= self.temperature <= 2:
            raise InvalidRequestError(f"Temperature must be within [0, 2], got {self.temperature}")
        if self.max_tokens is not None and self.max_tokens <= 0:
            raise InvalidRequestError("max_tokens must be positive")
        if self.max_parallel is not None and self.max_parallel < 1:
            raise InvalidRequestError("max_parallel must be at least 1")

    def cache_key(self) -> str:
        """Canonical key for the result cache."""
        payload = {
            "prompt": self.prompt,
            "system": self.system,
            "images": list(self.images),
            "models": sorted(self.models),
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        digest = hashlib.sha256(json.dumps(payload, sort_keys=True).encode("utf-8"))
        return f"quorum:results:{digest.hexdigest()}"


@dataclass(frozen=True)
class RawResult:
    """Normalized output of exactly one adapter call."""

    provider: str
    model: str
    status: ResultStatus
    kind: OutputKind = OutputKind.TEXT
    text: str | None = None
    url: str | None = None
    error: str | None = None
    response_time_ms: int | None = None
    tokens_used: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == ResultStatus.OK

    @classmethod
    def failure(
        cls,
        provider: str,
        model: str,
        error: str,
        *,
        status: ResultStatus = ResultStatus.ERROR,
        kind: OutputKind = OutputKind.TEXT,
        response_time_ms: int | None = None,
    ) -> RawResult:
        return cls(
            provider=provider,
            model=model,
            status=status,
            kind=kind,
            error=error,
            response_time_ms=response_time_ms,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "model": self.model,
            "status": self.status.value,
            "kind": self.kind.value,
            "text": self.text,
            "url": self.url,
            "error": self.error,
            "response_time_ms": self.response_time_ms,
            "tokens_used": self.tokens_used,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RawResult:
        return cls(
            provider=data["provider"],
            model=data["model"],
            status=ResultStatus(data["status"]),
            kind=OutputKind(data.get("kind", OutputKind.TEXT.value)),
            text=data.get("text"),
            url=data.get("url"),
            error=data.get("error"),
            response_time_ms=data.get("response_time_ms"),
            tokens_used=data.get("tokens_used"),
            metadata=data.get("metadata") or {},
        )


@dataclass(frozen=True)
class ScoredResult(RawResult):
    """A raw result plus its heuristic quality score."""

    score: float = 0.0
    confidence: float | None = None
    reasoning: str = ""
    index: int = 0

    @classmethod
    def from_raw(
        cls,
        raw: RawResult,
        *,
        score: float,
        confidence: float | None,
        reasoning: str,
        index: int = 0,
    ) -> ScoredResult:
        values = {f.name: getattr(raw, f.name) for f in fields(RawResult)}
        return cls(**values, score=score, confidence=confidence, reasoning=reasoning, index=index)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "score": round(self.score, 4),
                "confidence": None if self.confidence is None else round(self.confidence, 4),
                "reasoning": self.reasoning,
            }
        )
        return data


@dataclass(frozen=True)
class ConsensusResult:
    """The reconciled answer for one orchestration call."""

    consensus: str
    confidence: float
    agreement: float
    results: tuple[ScoredResult, ...]
    winner: ScoredResult
    reasoning: str
    strategy: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "consensus": self.consensus,
            "confidence": round(self.confidence, 4),
            "agreement": round(self.agreement, 4),
            "reasoning": self.reasoning,
            "strategy": self.strategy,
            "winner": self.winner.to_dict(),
            "results": [r.to_dict() for r in self.results],
        }


@dataclass(frozen=True)
class CodeBlock:
    language: str
    filename: str
    content: str


@dataclass(frozen=True)
class ArtifactFile:
    path: str
    content: str
    language: str


@dataclass
class AppMeta:
    models: list[str]
    total_tokens: int = 0
    total_cost: float = 0.0
    generated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "generatedAt": self.generated_at.isoformat(),
            "models": list(self.models),
            "totalTokens": self.total_tokens,
            "totalCost": self.total_cost,
        }


@dataclass
class GeneratedApp:
    """Aggregate root for one generation run."""

    name: str
    description: str
    files: list[ArtifactFile]
    dependencies: dict[str, str]
    env_vars: list[str]
    setup_instructions: str
    meta: AppMeta
    framework: str = "unknown"

    def summary(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "framework": self.framework,
            "filesCount": len(self.files),
            "dependenciesCount": len(self.dependencies),
            "envVarsCount": len(self.env_vars),
            "meta": self.meta.to_dict(),
        }
