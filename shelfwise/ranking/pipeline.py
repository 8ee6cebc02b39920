from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from typing import Any

from .diagnostics import compute_diagnostics
from .matching import filters_active
from .models import (
    CatalogItem,
    Criteria,
    DomainPack,
    EmptyCatalogResult,
    NoMatchResult,
    RankedResult,
    RankingResult,
    ScoredCandidate,
)
from .scoring import is_number, score_item
from .vocabulary import coerce_pack

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MIN_LIMIT = 1
MAX_LIMIT = 50


def clamp_limit(raw: Any = DEFAULT_LIMIT) -> int:
    """Coerce any requested cap into [MIN_LIMIT, MAX_LIMIT]; never rejects."""
    if raw is None:
        raw = DEFAULT_LIMIT
    try:
        value = int(float(raw))
    except (TypeError, ValueError, OverflowError):
        value = 0
    return max(MIN_LIMIT, min(MAX_LIMIT, value))


def _requested_values(values: Any) -> list[Any]:
    if values is None:
        return []
    if isinstance(values, (list, tuple)):
        return list(values)
    return [values]


def _sort_key(candidate: ScoredCandidate) -> tuple[float, float, float, str]:
    price = candidate.item.price if is_number(candidate.item.price) else math.inf
    return (-candidate.score, candidate.budget_delta, price, candidate.item.name)


def sort_candidates(candidates: Sequence[ScoredCandidate]) -> list[ScoredCandidate]:
    """Score desc, budget delta asc, price asc (missing last), name asc."""
    return sorted(candidates, key=_sort_key)


def score_candidates(
    items: Sequence[CatalogItem],
    filters: Mapping[str, Sequence[str]] | None,
    budget: float | None,
    pack: DomainPack | None = None,
    *,
    enforce_budget: bool,
) -> list[ScoredCandidate]:
    """Score every item and keep those passing the match and budget gates."""
    must_match = filters_active(filters)
    budget_given = is_number(budget)

    kept: list[ScoredCandidate] = []
    for item in items:
        candidate = score_item(item, filters, budget, pack)
        if must_match and candidate.matched_count == 0:
            continue
        if budget_given and enforce_budget and not candidate.price_within_budget:
            continue
        kept.append(candidate)

    return sort_candidates(kept)


def rank(
    items: Sequence[CatalogItem | Mapping[str, Any]],
    filters: Mapping[str, Sequence[str]] | None = None,
    budget: float | None = None,
    pack: DomainPack | Mapping[str, Any] | None = None,
    limit: Any = DEFAULT_LIMIT,
) -> RankingResult:
    """Rank *items* against facet *filters* and an optional *budget*.

    Runs a strict pass that enforces the budget; if that keeps nothing and
    a budget was given, runs a relaxed pass that drops the budget gate but
    keeps the same scoring and ordering.
    """
    filters = {key: _requested_values(values) for key, values in (filters or {}).items()}
    budget = budget if is_number(budget) else None
    pack = coerce_pack(pack)
    limit_used = clamp_limit(limit)
    diagnostics = compute_diagnostics(filters, pack)

    if not items:
        return EmptyCatalogResult(diagnostics=diagnostics, limit_used=limit_used)

    catalog = [
        item if isinstance(item, CatalogItem) else CatalogItem.model_validate(item)
        for item in items
    ]
    criteria = Criteria(filters=filters, budget=budget)

    kept = score_candidates(catalog, filters, budget, pack, enforce_budget=True)

    budget_relaxed = False
    if not kept and budget is not None:
        logger.debug("No item within budget %s, relaxing budget", budget)
        kept = score_candidates(catalog, filters, budget, pack, enforce_budget=False)
        budget_relaxed = True

    if not kept:
        return NoMatchResult(
            criteria=criteria,
            diagnostics=diagnostics,
            budget_relaxed=budget_relaxed,
            limit_used=limit_used,
        )

    window = kept[:limit_used]
    return RankedResult(
        criteria=criteria,
        diagnostics=diagnostics,
        total=len(kept),
        items=[c.item for c in window],
        debug=[c.to_debug() for c in window],
        budget_relaxed=budget_relaxed,
        limit_used=limit_used,
    )
