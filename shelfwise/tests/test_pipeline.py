from __future__ import annotations

import pytest

from shelfwise.ranking.models import (
    CatalogItem,
    DomainPack,
    EmptyCatalogResult,
    FacetVocabulary,
    NoMatchResult,
    RankedResult,
)
from shelfwise.ranking.pipeline import (
    clamp_limit,
    rank,
    score_candidates,
    sort_candidates,
)
from shelfwise.ranking.scoring import score_item

CATALOG = [
    CatalogItem(sku="W1", name="Alpha", price=12, facets={"color": "red", "taste": ["light"]}),
    CatalogItem(sku="W2", name="Beta", price=20, facets={"color": "red"}),
]
EMPTY_PACK = DomainPack()


def _skus(result) -> list[str]:
    return [item.sku for item in result.items]


# ── Reference scenarios ──────────────────────────────────────────────────


class TestScenarios:
    def test_within_budget_item_ranks_first(self):
        result = rank(CATALOG, {"color": ["red"]}, budget=15, pack=EMPTY_PACK)

        assert isinstance(result, RankedResult)
        assert result.budget_relaxed is False
        assert _skus(result) == ["W1"]
        assert result.debug[0].score == 1.5
        assert result.debug[0].matched_count == 1

        # Over-budget item scores without bonus and fails the strict gate
        over = score_item(CATALOG[1], {"color": ["red"]}, 15, EMPTY_PACK)
        assert over.score == 1
        assert over.matched_count == 1
        assert over.price_within_budget is False

    def test_budget_below_every_price_relaxes(self):
        result = rank(CATALOG, {"color": ["red"]}, budget=5, pack=EMPTY_PACK)

        assert isinstance(result, RankedResult)
        assert result.budget_relaxed is True
        assert _skus(result) == ["W1", "W2"]
        assert [d.score for d in result.debug] == [1, 1]
        assert [d.budget_delta for d in result.debug] == [7, 15]

    def test_unknown_facet_key_is_no_match(self):
        pack = DomainPack(facets={"color": FacetVocabulary(values=["red"])})
        result = rank(CATALOG, {"vintage": ["2020"]}, pack=pack)

        assert isinstance(result, NoMatchResult)
        assert result.reason == "no_match"
        assert result.diagnostics.unknown_facet_keys == ["vintage"]
        assert result.budget_relaxed is False
        assert result.criteria.filters == {"vintage": ["2020"]}
        assert result.items == []
        assert result.total == 0

    def test_empty_catalog(self):
        result = rank([], {"color": ["red"]}, budget=15, pack=EMPTY_PACK)

        assert isinstance(result, EmptyCatalogResult)
        assert result.ok is False
        assert result.reason == "empty_catalog"
        assert result.total == 0
        assert result.items == []


# ── Ordering ─────────────────────────────────────────────────────────────


class TestOrdering:
    def test_deterministic(self):
        first = rank(CATALOG, {"color": ["red"]}, budget=5)
        second = rank(CATALOG, {"color": ["red"]}, budget=5)
        assert first.model_dump() == second.model_dump()

    def test_name_breaks_full_ties_case_sensitively(self):
        items = [
            CatalogItem(sku=name, name=name, price=10, facets={})
            for name in ("beta", "alpha", "Alpha")
        ]
        result = rank(items)
        assert [item.name for item in result.items] == ["Alpha", "alpha", "beta"]

    def test_budget_delta_before_price(self):
        items = [
            CatalogItem(sku="cheap", name="A", price=5, facets={}),
            CatalogItem(sku="close", name="B", price=9, facets={}),
        ]
        result = rank(items, budget=10)
        assert _skus(result) == ["close", "cheap"]

    def test_priceless_items_sort_after_priced(self):
        items = [
            CatalogItem(sku="over", name="A", price=30, facets={}),
            CatalogItem(sku="none", name="B", facets={}),
            CatalogItem(sku="fits", name="C", price=10, facets={}),
        ]
        result = rank(items, budget=20)
        assert _skus(result) == ["fits", "none"]
        assert result.total == 2

    def test_priceless_last_without_budget(self):
        items = [
            CatalogItem(sku="none", name="A", facets={}),
            CatalogItem(sku="dear", name="B", price=40, facets={}),
            CatalogItem(sku="cheap", name="C", price=4, facets={}),
        ]
        assert _skus(rank(items)) == ["cheap", "dear", "none"]

    def test_score_dominates(self):
        items = [
            CatalogItem(sku="one", name="A", price=1, facets={"color": "red"}),
            CatalogItem(sku="two", name="B", price=99, facets={"color": "red", "taste": "dry"}),
        ]
        result = rank(items, {"color": ["red"], "taste": ["dry"]})
        assert _skus(result) == ["two", "one"]

    def test_sort_candidates_is_stable_for_identical_keys(self):
        item = CatalogItem(sku="x", name="Same", price=1, facets={})
        twin = CatalogItem(sku="y", name="Same", price=1, facets={})
        candidates = [score_item(item, {}, None), score_item(twin, {}, None)]
        assert [c.item.sku for c in sort_candidates(candidates)] == ["x", "y"]


# ── Gates and passes ─────────────────────────────────────────────────────


class TestGates:
    def test_no_filters_pass_everything(self):
        items = CATALOG + [CatalogItem(sku="W3", name="Gamma", facets={})]
        result = rank(items, {})
        assert result.total == 3
        assert all(d.matched_count == 0 and d.total_asked == 0 for d in result.debug)

    def test_empty_value_lists_do_not_constrain(self):
        result = rank(CATALOG, {"color": []})
        assert isinstance(result, RankedResult)
        assert result.total == 2

    def test_soft_match_keeps_items_missing_one_facet(self):
        result = rank(CATALOG, {"color": ["red"], "taste": ["light"]})
        assert _skus(result) == ["W1", "W2"]
        assert [d.matched_count for d in result.debug] == [2, 1]

    def test_strict_pass_filters_over_budget(self):
        kept = score_candidates(CATALOG, {"color": ["red"]}, 15, None, enforce_budget=True)
        assert [c.item.sku for c in kept] == ["W1"]

    def test_relaxed_pass_keeps_over_budget(self):
        kept = score_candidates(CATALOG, {"color": ["red"]}, 15, None, enforce_budget=False)
        assert [c.item.sku for c in kept] == ["W1", "W2"]

    def test_no_relaxation_without_budget(self):
        result = rank(CATALOG, {"color": ["white"]})
        assert isinstance(result, NoMatchResult)
        assert result.budget_relaxed is False

    def test_relaxed_but_still_no_match(self):
        result = rank(CATALOG, {"color": ["white"]}, budget=5)
        assert isinstance(result, NoMatchResult)
        assert result.budget_relaxed is True

    def test_nan_budget_is_ignored(self):
        result = rank(CATALOG, {"color": ["red"]}, budget=float("nan"))
        assert result.total == 2
        assert result.budget_relaxed is False
        assert result.criteria.budget is None

    @pytest.mark.parametrize("budget", ["abc", [], "15", True])
    def test_non_numeric_budget_is_ignored(self, budget):
        result = rank(CATALOG, {"color": ["red"]}, budget=budget)

        assert isinstance(result, RankedResult)
        assert result.criteria.budget is None
        assert result.budget_relaxed is False
        assert _skus(result) == ["W1", "W2"]
        assert [d.score for d in result.debug] == [1, 1]

    def test_none_filter_values_are_tolerated(self):
        result = rank(CATALOG, {"color": ["red", None], "taste": None})

        assert _skus(result) == ["W1", "W2"]
        assert result.criteria.filters == {"color": ["red", None], "taste": []}
        assert result.debug[0].total_asked == 1

    def test_scalar_filter_value_is_wrapped(self):
        result = rank(CATALOG, {"color": "red", "taste": "light"})
        assert result.criteria.filters == {"color": ["red"], "taste": ["light"]}
        assert result.debug[0].matched_count == 2


# ── Limit, totals and trace ──────────────────────────────────────────────


class TestLimit:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            (0, 1),
            (1000, 50),
            (7, 7),
            (7.9, 7),
            (-3, 1),
            ("12", 12),
            ("abc", 1),
            (float("nan"), 1),
            (float("inf"), 1),
            (None, 10),
        ],
    )
    def test_clamp(self, raw, expected):
        assert clamp_limit(raw) == expected

    def test_total_counts_candidates_before_cap(self):
        items = [CatalogItem(sku=f"S{i}", name=f"N{i}", price=i, facets={}) for i in range(5)]
        result = rank(items, limit=2)
        assert result.total == 5
        assert result.limit_used == 2
        assert _skus(result) == ["S0", "S1"]
        assert [d.sku for d in result.debug] == ["S0", "S1"]

    def test_limit_used_reported_on_failures(self):
        assert rank([], limit=0).limit_used == 1
        assert rank(CATALOG, {"color": ["white"]}, limit=999).limit_used == 50


def test_accepts_plain_mappings():
    items = [{"sku": "W9", "name": "Raw", "price_eur": 9, "facets": {"color": "red"}}]
    pack = {"synonyms": {"rouge": "red"}}
    result = rank(items, {"color": ["Rouge"]}, pack=pack)
    assert _skus(result) == ["W9"]
    assert result.items[0].price == 9


def test_infinite_delta_serializes_as_null():
    result = rank(CATALOG, {"color": ["red"]})
    dumped = result.model_dump(mode="json")
    assert dumped["debug"][0]["budget_delta"] is None
    assert dumped["criteria"]["budget"] is None


def test_inputs_are_not_mutated():
    filters = {"color": ["Red"]}
    pack = DomainPack(synonyms={"rouge": "red"})
    before = (dict(filters), pack.model_dump(), [i.model_dump() for i in CATALOG])
    rank(CATALOG, filters, budget=5, pack=pack)
    assert before == (filters, pack.model_dump(), [i.model_dump() for i in CATALOG])
