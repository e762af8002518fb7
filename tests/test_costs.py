from decimal import Decimal

from quorum.costs import ModelCost, get_cost, result_cost, total_cost, total_tokens
from quorum.models import RawResult, ResultStatus


def _result(model: str, tokens: int | None) -> RawResult:
    return RawResult(
        provider="x", model=model, status=ResultStatus.OK, text="t", tokens_used=tokens
    )


def test_model_cost_calculate_cost() -> None:
    cost = ModelCost(per_thousand=Decimal("5"))
    assert cost.calculate_cost(2000) == Decimal("10")


def test_get_cost_uses_registry_units() -> None:
    assert get_cost("gpt-4o").per_thousand == Decimal("5")
    assert get_cost("gpt5").per_thousand == Decimal("5")
    assert get_cost("llama3.2").per_thousand == Decimal("0")
    assert get_cost("unheard-of").per_thousand == Decimal("1")


def test_result_cost_treats_missing_tokens_as_zero() -> None:
    assert result_cost(_result("gpt-4o", None)) == Decimal("0")


def test_totals() -> None:
    results = [
        _result("gpt-4o", 500),
        _result("claude-3-haiku-20240307", 500),
        RawResult.failure("openai", "o1-mini", "boom"),
    ]

    assert total_tokens(results) == 1000
    assert total_cost(results) == 3.0


def test_total_cost_per_model() -> None:
    assert total_cost([_result("unheard-of", 1)]) == 0.001
    assert total_cost([_result("gemini-1.5-flash", 333)]) == 0.666
    assert total_cost([_result("deepseek-chat", 123456)]) == 123.456
    assert total_cost([_result("claude-3-haiku-20240307", 7)]) == 0.007
    assert total_cost([]) == 0.0
