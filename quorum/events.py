"""
Progress frames emitted by streaming generation.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class ProgressStage(StrEnum):
    INITIALIZING = "initializing"
    GENERATING = "generating"
    VALIDATING = "validating"
    PACKAGING = "packaging"
    COMPLETE = "complete"
    ERROR = "error"


STAGE_PROGRESS: dict[ProgressStage, int] = {
    ProgressStage.INITIALIZING: 10,
    ProgressStage.GENERATING: 30,
    ProgressStage.VALIDATING: 70,
    ProgressStage.PACKAGING: 90,
    ProgressStage.COMPLETE: 100,
    ProgressStage.ERROR: 100,
}


@dataclass
class ProgressEvent:
    """One frame of a staged generation stream."""

    stage: ProgressStage
    progress: int
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def at(cls, stage: ProgressStage, message: str, **data: Any) -> ProgressEvent:
        return cls(stage=stage, progress=STAGE_PROGRESS[stage], message=message, data=data)

    @classmethod
    def error(cls, message: str) -> ProgressEvent:
        return cls.at(ProgressStage.ERROR, f"Error: {message}", error=message)

    @property
    def terminal(self) -> bool:
        return self.stage in (ProgressStage.COMPLETE, ProgressStage.ERROR)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "stage": self.stage.value,
            "progress": self.progress,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.data:
            payload["data"] = self.data
        return payload

    def to_sse(self) -> str:
        return f"data: {json.dumps(self.to_dict())}\n\n"
