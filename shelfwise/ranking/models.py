from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Literal, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_serializer,
    field_validator,
)

FacetValue = Union[str, int, float, list[Any], None]


def _finite_or_none(value: float | None) -> float | None:
    if value is None or not math.isfinite(value):
        return None
    return value


# ── Catalog & vocabulary ─────────────────────────────────────────────────


class CatalogItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sku: str
    name: str = ""
    price: float | None = Field(
        default=None,
        validation_alias=AliasChoices("price", "price_eur"),
    )
    facets: dict[str, FacetValue] = Field(default_factory=dict)


class FacetVocabulary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    description: str | None = None
    values: list[str] = Field(default_factory=list)
    value_synonyms: dict[str, str] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("value_synonyms", "valueSynonyms"),
    )

    @field_validator("values", "value_synonyms", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return [] if info.field_name == "values" else {}
        return value


class DomainPack(BaseModel):
    """Synonym tables and controlled vocabulary for one business domain."""

    synonyms: dict[str, str] = Field(default_factory=dict)
    facets: dict[str, FacetVocabulary] = Field(default_factory=dict)

    @field_validator("synonyms", "facets", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value


# ── Ranking outputs ──────────────────────────────────────────────────────


class Diagnostics(BaseModel):
    unknown_facet_keys: list[str] = Field(default_factory=list)
    unknown_facet_values: dict[str, list[Any]] = Field(default_factory=dict)


class Criteria(BaseModel):
    filters: dict[str, list[Any]] = Field(default_factory=dict)
    budget: float | None = None

    @field_serializer("budget", when_used="json")
    def _budget_json(self, value: float | None) -> float | None:
        return _finite_or_none(value)


class DebugRecord(BaseModel):
    sku: str
    score: float
    matched_count: int
    total_asked: int
    budget_delta: float

    @field_serializer("budget_delta", when_used="json")
    def _delta_json(self, value: float) -> float | None:
        return _finite_or_none(value)


class EmptyCatalogResult(BaseModel):
    ok: Literal[False] = False
    reason: Literal["empty_catalog"] = "empty_catalog"
    diagnostics: Diagnostics
    total: int = 0
    items: list[CatalogItem] = Field(default_factory=list)
    limit_used: int


class NoMatchResult(BaseModel):
    ok: Literal[False] = False
    reason: Literal["no_match"] = "no_match"
    criteria: Criteria
    diagnostics: Diagnostics
    total: int = 0
    items: list[CatalogItem] = Field(default_factory=list)
    budget_relaxed: bool = False
    limit_used: int


class RankedResult(BaseModel):
    ok: Literal[True] = True
    criteria: Criteria
    diagnostics: Diagnostics
    total: int
    items: list[CatalogItem]
    debug: list[DebugRecord]
    budget_relaxed: bool = False
    limit_used: int


RankingResult = Union[RankedResult, NoMatchResult, EmptyCatalogResult]


# ── Transient scoring state ──────────────────────────────────────────────


@dataclass(frozen=True)
class FacetMatch:
    matched: int
    total_asked: int


@dataclass(frozen=True)
class ScoredCandidate:
    item: CatalogItem
    score: float
    matched_count: int
    total_asked: int
    price_within_budget: bool
    budget_delta: float

    def to_debug(self) -> DebugRecord:
        return DebugRecord(
            sku=self.item.sku,
            score=self.score,
            matched_count=self.matched_count,
            total_asked=self.total_asked,
            budget_delta=self.budget_delta,
        )


# ── Service request / response ───────────────────────────────────────────


class RecommendationRequest(BaseModel):
    domain_id: str = Field(default="wine", min_length=1, description="Catalog and domain pack id")
    tenant_id: str | None = Field(default=None, description="Tenant whose pack overlay applies")
    filters: dict[str, list[str]] = Field(default_factory=dict)
    budget: float | None = Field(default=None, description="Budget in the catalog currency")
    limit: float | None = Field(default=10, description="Result cap, clamped to [1, 50]")
    explain: bool = False


class RecommendationResponse(BaseModel):
    domain_id: str
    tenant_id: str | None = None
    catalog_source: str
    explanation: str | None = None
    result: RankingResult
