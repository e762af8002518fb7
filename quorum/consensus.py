"""
Consensus over scored results: similarity clustering, weighted voting, or both.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from enum import StrEnum

from .config import Settings, settings
from .errors import EmptyInputError
from .models import ConsensusResult, ScoredResult

DEFAULT_CONFIDENCE = 0.5


class ConsensusStrategy(StrEnum):
    CLUSTER = "cluster"
    WEIGHTED = "weighted"
    HYBRID = "hybrid"


def tokenize(text: str | None) -> set[str]:
    return set((text or "").lower().split())


def jaccard(words_a: set[str], words_b: set[str]) -> float:
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def text_similarity(text_a: str | None, text_b: str | None) -> float:
    """Jaccard similarity of the lowercase whitespace-separated word sets."""
    return jaccard(tokenize(text_a), tokenize(text_b))


def _confidence(result: ScoredResult) -> float:
    return DEFAULT_CONFIDENCE if result.confidence is None else result.confidence


def valid_results(results: Sequence[ScoredResult]) -> list[ScoredResult]:
    return [r for r in results if r.ok and r.text]


def find_clusters(
    results: Sequence[ScoredResult], threshold: float | None = None
) -> list[list[ScoredResult]]:
    """Single-pass single-link clustering.

    Each result, in the given order, joins the first cluster holding any member
    at or above ``threshold``; clusters it bridges are merged into that one.
    Returned largest first, ties broken by earliest member index.
    """
    threshold = settings.similarity_threshold if threshold is None else threshold
    clusters: list[list[tuple[ScoredResult, set[str]]]] = []

    for result in results:
        words = tokenize(result.text)
        matches = [
            ci
            for ci, cluster in enumerate(clusters)
            if any(jaccard(words, other) >= threshold for _, other in cluster)
        ]
        if not matches:
            clusters.append([(result, words)])
            continue

        target = clusters[matches[0]]
        target.append((result, words))
        for ci in reversed(matches[1:]):
            target.extend(clusters.pop(ci))

    ordered = [[r for r, _ in cluster] for cluster in clusters]
    ordered.sort(key=lambda c: (-len(c), min(r.index for r in c)))
    return ordered


def _best(results: Sequence[ScoredResult]) -> ScoredResult:
    return min(results, key=lambda r: (-r.score, r.index))


def weighted_average(results: Sequence[ScoredResult]) -> float:
    total_weight = sum(_confidence(r) for r in results)
    if total_weight == 0:
        return 0.0
    return sum(r.score * _confidence(r) for r in results) / total_weight


def _require(results: Sequence[ScoredResult]) -> list[ScoredResult]:
    if not results:
        raise EmptyInputError()
    return list(results)


def _no_valid_output(results: list[ScoredResult], strategy: ConsensusStrategy) -> ConsensusResult:
    fallback = results[0]
    return ConsensusResult(
        consensus=fallback.text or "",
        confidence=0.0,
        agreement=0.0,
        results=tuple(results),
        winner=fallback,
        reasoning="No valid results available",
        strategy=strategy.value,
    )


def cluster_consensus(
    results: Sequence[ScoredResult], threshold: float | None = None
) -> ConsensusResult:
    """Pick the best member of the largest agreeing cluster."""
    results = _require(results)
    valid = valid_results(results)
    if not valid:
        return _no_valid_output(results, ConsensusStrategy.CLUSTER)

    largest = find_clusters(valid, threshold)[0]
    winner = _best(largest)
    avg_score = sum(r.score for r in largest) / len(largest)
    agreement = len(largest) / len(valid)
    confidence = sum(_confidence(r) for r in largest) / len(largest)
    providers = list(dict.fromkeys(r.provider for r in largest))

    reasoning = "; ".join(
        [
            f"Consensus from {len(largest)}/{len(valid)} models",
            f"Average score: {avg_score * 100:.0f}%",
            f"Agreement: {agreement * 100:.0f}%",
            f"Providers: {', '.join(providers)}",
        ]
    )
    return ConsensusResult(
        consensus=winner.text or "",
        confidence=confidence,
        agreement=agreement,
        results=tuple(results),
        winner=winner,
        reasoning=reasoning,
        strategy=ConsensusStrategy.CLUSTER.value,
    )


def weighted_consensus(results: Sequence[ScoredResult]) -> ConsensusResult:
    """Pick the top-scoring valid result."""
    results = _require(results)
    valid = valid_results(results)
    if not valid:
        return _no_valid_output(results, ConsensusStrategy.WEIGHTED)

    ranked = sorted(valid, key=lambda r: (-r.score, r.index))
    winner = ranked[0]
    top_half = math.ceil(len(ranked) / 2)
    agreement = top_half / len(valid)

    reasoning = "; ".join(
        [
            f"Best result from {len(valid)} models",
            f"Weighted score: {weighted_average(valid) * 100:.0f}%",
            f"Winner: {winner.provider} ({winner.score * 100:.0f}%)",
            f"Response time: {winner.response_time_ms}ms",
        ]
    )
    return ConsensusResult(
        consensus=winner.text or "",
        confidence=_confidence(winner),
        agreement=agreement,
        results=tuple(results),
        winner=winner,
        reasoning=reasoning,
        strategy=ConsensusStrategy.WEIGHTED.value,
    )


def hybrid_consensus(
    results: Sequence[ScoredResult],
    threshold: float | None = None,
    config: Settings | None = None,
) -> ConsensusResult:
    """Cluster when a majority agrees, otherwise fall back to weighted voting."""
    config = config or settings
    results = _require(results)
    valid = valid_results(results)
    if not valid:
        return _no_valid_output(results, ConsensusStrategy.HYBRID)

    if len(valid) < config.hybrid_min_results:
        return weighted_consensus(results)

    threshold = config.similarity_threshold if threshold is None else threshold
    largest = find_clusters(valid, threshold)[0]
    if len(largest) >= len(valid) * config.cluster_majority_cutoff:
        return cluster_consensus(results, threshold)
    return weighted_consensus(results)


def build_consensus(
    results: Sequence[ScoredResult],
    strategy: ConsensusStrategy | str = ConsensusStrategy.HYBRID,
    threshold: float | None = None,
    config: Settings | None = None,
) -> ConsensusResult:
    config = config or settings
    threshold = config.similarity_threshold if threshold is None else threshold
    strategy = ConsensusStrategy(strategy)
    if strategy == ConsensusStrategy.CLUSTER:
        return cluster_consensus(results, threshold)
    if strategy == ConsensusStrategy.WEIGHTED:
        return weighted_consensus(results)
    return hybrid_consensus(results, threshold, config)
