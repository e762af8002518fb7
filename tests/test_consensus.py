import pytest

from quorum.consensus import (
    ConsensusStrategy,
    build_consensus,
    cluster_consensus,
    find_clusters,
    hybrid_consensus,
    text_similarity,
    weighted_consensus,
)
from quorum.errors import EmptyInputError
from quorum.models import ResultStatus, ScoredResult


def _scored(
    text: str | None,
    *,
    index: int,
    score: float = 0.5,
    confidence: float | None = 0.5,
    provider: str = "openai",
    status: ResultStatus = ResultStatus.OK,
) -> ScoredResult:
    return ScoredResult(
        provider=provider,
        model=f"model-{index}",
        status=status,
        text=text,
        error=None if status == ResultStatus.OK else "failed",
        response_time_ms=1000,
        score=score,
        confidence=confidence,
        index=index,
    )


def _words(prefix: str, start: int, stop: int) -> str:
    return " ".join(f"{prefix}{i}" for i in range(start, stop))


def test_text_similarity() -> None:
    assert text_similarity("The cat sat", "the CAT sat") == 1.0
    assert text_similarity("a b", "c d") == 0.0
    assert text_similarity("", "") == 0.0
    assert text_similarity(None, "a") == 0.0


def test_cluster_consensus_over_similar_answers() -> None:
    first = _words("w", 0, 40)
    second = f"{_words('w', 0, 30)} {_words('x', 0, 10)}"
    assert text_similarity(first, second) == pytest.approx(0.6)

    results = [
        _scored(first, index=0, score=0.7, confidence=0.8, provider="openai"),
        _scored(second, index=1, score=0.6, confidence=0.6, provider="anthropic"),
        _scored(None, index=2, score=0.0, confidence=0.0, status=ResultStatus.ERROR),
    ]

    consensus = cluster_consensus(results)

    assert consensus.agreement == 1.0
    assert consensus.confidence == pytest.approx(0.7)
    assert consensus.winner.index == 0
    assert consensus.consensus == first
    assert consensus.strategy == "cluster"
    assert len(consensus.results) == 3
    assert "Consensus from 2/2 models" in consensus.reasoning
    assert "Providers: openai, anthropic" in consensus.reasoning


def test_cluster_consensus_without_agreement_takes_earliest() -> None:
    results = [
        _scored(_words("a", 0, 5), index=0, score=0.4),
        _scored(_words("b", 0, 5), index=1, score=0.9),
        _scored(_words("c", 0, 5), index=2, score=0.6),
    ]

    consensus = cluster_consensus(results)

    assert consensus.agreement == pytest.approx(1 / 3)
    assert consensus.winner.index == 0


def test_find_clusters_merges_bridged_groups() -> None:
    a = _scored(_words("w", 0, 10), index=0)
    b = _scored(_words("w", 5, 15), index=1)
    c = _scored(_words("w", 10, 20), index=2)

    # c arrives before the member that links it to a.
    clusters = find_clusters([a, c, b], threshold=0.3)

    assert len(clusters) == 1
    assert {r.index for r in clusters[0]} == {0, 1, 2}


def test_find_clusters_orders_largest_first() -> None:
    lone = _scored("completely unrelated words", index=0)
    pair_a = _scored("red green blue", index=1)
    pair_b = _scored("red green blue yellow", index=2)

    clusters = find_clusters([lone, pair_a, pair_b], threshold=0.5)

    assert [len(c) for c in clusters] == [2, 1]
    assert clusters[1][0].index == 0


def test_threshold_controls_clustering() -> None:
    results = [
        _scored("alpha beta gamma delta", index=0),
        _scored("alpha beta epsilon zeta", index=1),
    ]
    # Jaccard is 2/6.
    assert cluster_consensus(results, threshold=0.3).agreement == 1.0
    assert cluster_consensus(results, threshold=0.5).agreement == 0.5


def test_weighted_consensus_picks_top_score() -> None:
    results = [
        _scored("one", index=0, score=0.5),
        _scored("two", index=1, score=0.9, confidence=None, provider="gemini"),
        _scored("three", index=2, score=0.7),
    ]

    consensus = weighted_consensus(results)

    assert consensus.winner.index == 1
    assert consensus.consensus == "two"
    assert consensus.agreement == pytest.approx(2 / 3)
    assert consensus.confidence == 0.5
    assert "Winner: gemini (90%)" in consensus.reasoning
    assert consensus.strategy == "weighted"


def test_weighted_consensus_ties_go_to_earliest_index() -> None:
    results = [
        _scored("later", index=3, score=0.8),
        _scored("earlier", index=1, score=0.8),
    ]

    assert weighted_consensus(results).winner.index == 1


@pytest.mark.parametrize("strategy", list(ConsensusStrategy))
def test_all_failed_results(strategy: ConsensusStrategy) -> None:
    results = [
        _scored(None, index=0, score=0.0, status=ResultStatus.ERROR),
        _scored(None, index=1, score=0.0, status=ResultStatus.TIMEOUT),
    ]

    consensus = build_consensus(results, strategy)

    assert consensus.consensus == ""
    assert consensus.confidence == 0.0
    assert consensus.agreement == 0.0
    assert consensus.reasoning == "No valid results available"
    assert len(consensus.results) == 2


@pytest.mark.parametrize("strategy", list(ConsensusStrategy))
def test_empty_input_raises(strategy: ConsensusStrategy) -> None:
    with pytest.raises(EmptyInputError):
        build_consensus([], strategy)


def test_hybrid_uses_clusters_when_majority_agrees(test_settings) -> None:
    results = [
        _scored("the answer is forty two", index=0, score=0.6),
        _scored("the answer is forty two indeed", index=1, score=0.8),
        _scored("something else entirely", index=2, score=0.9),
    ]

    consensus = hybrid_consensus(results, config=test_settings)

    assert consensus.strategy == "cluster"
    assert consensus.winner.index == 1
    assert consensus.agreement == pytest.approx(2 / 3)


def test_hybrid_falls_back_to_weighted_without_majority(test_settings) -> None:
    results = [
        _scored(_words("a", 0, 5), index=0, score=0.6),
        _scored(_words("b", 0, 5), index=1, score=0.8),
        _scored(_words("c", 0, 5), index=2, score=0.9),
    ]

    consensus = hybrid_consensus(results, config=test_settings)

    assert consensus.strategy == "weighted"
    assert consensus.winner.index == 2


def test_hybrid_with_few_results_is_weighted(test_settings) -> None:
    results = [
        _scored("same words here", index=0, score=0.4),
        _scored("same words here", index=1, score=0.8),
    ]

    consensus = build_consensus(results, "hybrid", config=test_settings)

    assert consensus.strategy == "weighted"
    assert consensus.winner.index == 1
