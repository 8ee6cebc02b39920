from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from numbers import Real
from typing import Any

from .matching import match_facets
from .models import CatalogItem, DomainPack, ScoredCandidate

BUDGET_BONUS = 0.5


def is_number(value: Any) -> bool:
    """Real, non-NaN number (booleans excluded)."""
    return isinstance(value, Real) and not isinstance(value, bool) and not math.isnan(value)


def budget_delta(price: float | None, budget: float | None) -> float:
    """Distance from the budget, infinite when either side is missing."""
    if not is_number(price) or not is_number(budget):
        return math.inf
    return abs(price - budget)


def score_item(
    item: CatalogItem,
    filters: Mapping[str, Sequence[str]] | None,
    budget: float | None,
    pack: DomainPack | None = None,
) -> ScoredCandidate:
    """One point per satisfied facet, plus a bonus when the price fits the budget."""
    match = match_facets(item, filters, pack)
    score: float = match.matched

    price_ok = True
    if is_number(budget) and is_number(item.price):
        if item.price <= budget:
            score += BUDGET_BONUS
        else:
            price_ok = False

    return ScoredCandidate(
        item=item,
        score=score,
        matched_count=match.matched,
        total_asked=match.total_asked,
        price_within_budget=price_ok,
        budget_delta=budget_delta(item.price, budget),
    )
