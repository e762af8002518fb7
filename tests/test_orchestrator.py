import pytest

from quorum.errors import InvalidRequestError
from quorum.models import GenerationRequest, ResultStatus
from quorum.orchestrator import Orchestrator


@pytest.mark.asyncio
async def test_run_scores_and_reconciles(
    dispatcher, openai_fake, anthropic_fake, test_settings
) -> None:
    openai_fake.responses["gpt-4o"] = "Paris is the capital of France."
    openai_fake.responses["gpt-4o-mini"] = "The capital of France is Paris."
    anthropic_fake.responses["claude-3-haiku-20240307"] = RuntimeError("overloaded")
    request = GenerationRequest(
        prompt="What is the capital of France?",
        models=("gpt-4o", "gpt-4o-mini", "claude-3-haiku-20240307"),
    )

    outcome = await Orchestrator(dispatcher, config=test_settings).run(request, strategy="cluster")

    assert [r.index for r in outcome.results] == [0, 1, 2]
    assert outcome.results[2].status == ResultStatus.ERROR
    assert outcome.consensus.strategy == "cluster"
    assert outcome.consensus.agreement == 1.0
    assert outcome.consensus.winner.model in {"gpt-4o", "gpt-4o-mini"}

    data = outcome.to_dict()
    assert len(data["results"]) == 3
    assert data["consensus"]["strategy"] == "cluster"


@pytest.mark.asyncio
async def test_run_single(dispatcher, openai_fake, test_settings) -> None:
    openai_fake.responses["gpt-4o"] = "```py\nprint('hi')\n```"

    scored = await Orchestrator(dispatcher, config=test_settings).run_single(
        "gpt-4o", "Write hello world", task_type="code"
    )

    assert scored.ok
    assert scored.score > 0.5
    assert openai_fake.calls == ["gpt-4o"]


@pytest.mark.asyncio
async def test_run_single_rejects_unknown_model(dispatcher, openai_fake, test_settings) -> None:
    with pytest.raises(InvalidRequestError):
        await Orchestrator(dispatcher, config=test_settings).run_single("mystery", "Hi")
    assert openai_fake.calls == []
