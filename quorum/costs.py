"""
Relative cost accounting for generation runs.

Costs are expressed in registry units: tokens / 1000 x the model's relative
cost. They rank runs against each other; they are not a currency.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from .models import RawResult
from .registry import get_model_info

UNKNOWN_MODEL_COST = Decimal("1")


@dataclass
class ModelCost:
    """Relative cost per thousand tokens of one model."""

    per_thousand: Decimal

    def calculate_cost(self, tokens: int) -> Decimal:
        return (Decimal(tokens) / Decimal(1000)) * self.per_thousand


def get_cost(model: str) -> ModelCost:
    info = get_model_info(model)
    if info is None:
        return ModelCost(per_thousand=UNKNOWN_MODEL_COST)
    return ModelCost(per_thousand=Decimal(str(info.capabilities.cost)))


def result_cost(result: RawResult) -> Decimal:
    return get_cost(result.model).calculate_cost(result.tokens_used or 0)


def total_tokens(results: Iterable[RawResult]) -> int:
    return sum(r.tokens_used or 0 for r in results)


def total_cost(results: Iterable[RawResult]) -> float:
    """Summed cost of every result, rounded to 4 decimal places."""
    total = sum((result_cost(r) for r in results), Decimal(0))
    return float(total.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP))
