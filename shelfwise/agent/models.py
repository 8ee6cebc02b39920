from __future__ import annotations

from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, Field

from ..analytics.aggregator import DEFAULT_EVENT, DEFAULT_PROPERTY


class IntentName(str, Enum):
    recommend = "recommend"
    top_values = "top_values"
    timeseries = "timeseries"
    fallback = "fallback"


class RecommendParams(BaseModel):
    query: str = ""
    filters: dict[str, list[str]] = Field(default_factory=dict)
    budget: float | None = None


class TopValuesParams(BaseModel):
    query: str = ""
    days: int = Field(default=30, ge=1, le=365)
    top: int = Field(default=10, ge=1, le=50)
    event: str = DEFAULT_EVENT
    property: str = DEFAULT_PROPERTY


class TimeseriesParams(BaseModel):
    query: str = ""
    days: int = Field(default=30, ge=1, le=365)
    granularity: Literal["day", "week", "month"] = "day"
    top: int = Field(default=5, ge=1, le=50)
    values: list[str] | None = None
    event: str = DEFAULT_EVENT
    property: str = DEFAULT_PROPERTY


class FallbackParams(BaseModel):
    query: str = ""


PARAMS_BY_INTENT: dict[IntentName, type[BaseModel]] = {
    IntentName.recommend: RecommendParams,
    IntentName.top_values: TopValuesParams,
    IntentName.timeseries: TimeseriesParams,
    IntentName.fallback: FallbackParams,
}


class RoutedIntent(BaseModel):
    intent: IntentName
    params: Union[RecommendParams, TimeseriesParams, TopValuesParams, FallbackParams]
    source: Literal["regex", "groq", "regex_fallback"] = "regex"
    model: str | None = None
    reason: str | None = None
