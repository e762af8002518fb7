"""
Heuristic quality scoring of raw provider results.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence

from .models import RawResult, ScoredResult, TaskType

_FENCED = re.compile(r"```[\s\S]*?```")
_FENCE_MARKER = re.compile(r"```(\w+)?\n?")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

_FUNCTIONS = re.compile(r"function\s+\w+|const\s+\w+\s*=\s*\(|\bdef\s+\w+")
_CLASSES = re.compile(r"class\s+\w+")
_IMPORTS = re.compile(r"import\s+.*from|^\s*from\s+\S+\s+import\s", re.MULTILINE)
_TYPES = re.compile(r"\btype\b|\binterface\b|->")
_COMMENTS = re.compile(r"//|/\*|^\s*#\s|\s#\s", re.MULTILINE)
_HEADING = re.compile(r"^#{1,6}\s+", re.MULTILINE)
_SENTENCE_SPLIT = re.compile(r"[.!?]+")

MAX_LINE_LENGTH = 120


def extract_fenced_bodies(text: str) -> list[str]:
    return [_FENCE_MARKER.sub("", block).strip() for block in _FENCED.findall(text)]


def has_valid_json(text: str) -> bool:
    match = _JSON_OBJECT.search(text)
    if not match:
        return False
    try:
        json.loads(match.group(0))
    except ValueError:
        return False
    return True


def code_complexity(code: str) -> float:
    """Blend of size, function, class and import counts, capped at 1."""
    lines = len(code.split("\n"))
    functions = len(_FUNCTIONS.findall(code))
    classes = len(_CLASSES.findall(code))
    imports = len(_IMPORTS.findall(code))
    return min((lines / 50 + functions / 5 + classes / 2 + imports / 10) / 4, 1.0)


def code_quality(code: str) -> float:
    score = 0.5
    if "export" in code:
        score += 0.1
    if _TYPES.search(code):
        score += 0.1
    if "async" in code or "await" in code:
        score += 0.05
    if "try" in code and ("catch" in code or "except" in code):
        score += 0.1
    if _COMMENTS.search(code):
        score += 0.05
    if any(len(line) > MAX_LINE_LENGTH for line in code.split("\n")):
        score -= 0.1
    return max(0.0, min(1.0, score))


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _unscored(result: RawResult, index: int) -> ScoredResult:
    return ScoredResult.from_raw(
        result,
        score=0.0,
        confidence=0.0,
        reasoning=result.error or "No valid output",
        index=index,
    )


def score_code_result(result: RawResult, index: int = 0) -> ScoredResult:
    if not result.ok or not result.text:
        return _unscored(result, index)

    text = result.text
    bodies = extract_fenced_bodies(text)
    score = 0.3
    reasoning: list[str] = []

    if bodies:
        score += 0.2
        reasoning.append(f"Contains {len(bodies)} code block(s)")

        joined = "\n".join(bodies)
        complexity = code_complexity(joined)
        score += complexity * 0.2
        reasoning.append(f"Complexity: {complexity * 100:.0f}%")

        quality = code_quality(joined)
        score += quality * 0.2
        reasoning.append(f"Code quality: {quality * 100:.0f}%")

    if has_valid_json(text):
        score += 0.1
        reasoning.append("Contains valid JSON")

    if len(text) > 100:
        score += min(len(text) / 2000, 0.2)
        reasoning.append(f"Length: {len(text)} chars")

    ceiling = 0.9 if (result.response_time_ms or 0) < 10_000 else 0.5
    confidence = min((result.tokens_used or 0) / 1000, ceiling)

    return ScoredResult.from_raw(
        result,
        score=_clamp(score),
        confidence=_clamp(confidence),
        reasoning="; ".join(reasoning),
        index=index,
    )


def score_text_result(result: RawResult, index: int = 0) -> ScoredResult:
    if not result.ok or not result.text:
        return _unscored(result, index)

    text = result.text
    score = 0.5
    reasoning: list[str] = []

    words = len(text.split())
    if words > 50:
        score += min(words / 500, 0.3)
        reasoning.append(f"{words} words")

    sentences = len([s for s in _SENTENCE_SPLIT.split(text) if s.strip()])
    if sentences > 3:
        score += min(sentences / 20, 0.2)
        reasoning.append(f"{sentences} sentences")

    if has_valid_json(text):
        score += 0.15
        reasoning.append("Contains structured data")

    if _HEADING.search(text):
        score += 0.05
        reasoning.append("Well-structured with headings")

    return ScoredResult.from_raw(
        result,
        score=_clamp(score),
        confidence=_clamp((result.tokens_used or 0) / 1000),
        reasoning="; ".join(reasoning),
        index=index,
    )


def score_result(
    result: RawResult, task_type: TaskType | str = TaskType.TEXT, index: int = 0
) -> ScoredResult:
    if TaskType(task_type) == TaskType.CODE:
        return score_code_result(result, index)
    return score_text_result(result, index)


def score_results(
    results: Sequence[RawResult], task_type: TaskType | str = TaskType.TEXT
) -> list[ScoredResult]:
    """Score every result, recording its dispatch position for tie-breaks."""
    return [score_result(r, task_type, index=i) for i, r in enumerate(results)]
