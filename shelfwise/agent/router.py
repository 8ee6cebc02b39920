"""
Deterministic FR/EN router, used directly or as the LLM router's fallback.

Rules are tried in order: explicit comparison, trend wording, facet or
budget mentions, top/best wording, generic product-advice wording.
"""
from __future__ import annotations

import re
import unicodedata

from ..ranking.models import DomainPack
from ..ranking.vocabulary import apply_facet_value_synonyms, normalize_value
from .models import (
    FallbackParams,
    IntentName,
    RecommendParams,
    RoutedIntent,
    TimeseriesParams,
    TopValuesParams,
)

DEFAULT_DAYS = 30
MAX_DAYS = 365
MAX_TOP = 50

_NUMBER = r"(\d+(?:[.,]\d+)?)"

_DAYS_EXPLICIT_RE = re.compile(
    r"(?:last|past|sur|sur les|durant|pendant)\s+(\d{1,3})\s*(?:j|jours|days?)\b"
)
_DAYS_BARE_RE = re.compile(r"\b(\d{1,3})\s*(?:j|jours|days?)\b")
_TOP_N_RE = re.compile(r"\btop\s*(\d{1,2})\b")
_COMPARE_RE = re.compile(
    r"\b(?:compare[rz]?|comparaison)\s+([a-z0-9_-]{2,})\s*"
    r"(?:,|\bet\b|\band\b|\bavec\b|\bwith\b|\bvs\b|\bversus\b)\s*([a-z0-9_-]{2,})\b"
)
_VERSUS_RE = re.compile(r"\b([a-z0-9_-]{2,})\s+(?:vs|versus)\.?\s+([a-z0-9_-]{2,})\b")
_TIMESERIES_RE = re.compile(
    r"\b(evolution|tendance|trend|over time|au fil du temps|serie temporelle|timeseries"
    r"|par jour|par semaine|par mois|daily|weekly|monthly)\b"
)
_TOP_RE = re.compile(
    r"\b(meilleur|meilleure|meilleurs|top|best|most|plus frequent\w*|classement|ranking"
    r"|le plus|the most)\b"
)
_ADVICE_RE = re.compile(
    r"\b(recommand\w*|recommend\w*|conseil\w*|suggest\w*|suggere\w*|propose\w*"
    r"|cherche|looking for|je veux|i want|bouteille|bottle)\b"
)
_BUDGET_CURRENCY_RE = re.compile(_NUMBER + r"\s*(?:€|eur\b|euros?\b)")
_BUDGET_WORDING_RE = re.compile(
    r"\b(?:under|below|less than|max|maximum|up to|around|about|budget(?: de| of)?"
    r"|moins de|autour de|environ|jusqu'a)\s*" + _NUMBER
)


def normalize_text(text: str) -> str:
    """Lower-case and strip accents so 'Évolution' matches 'evolution'."""
    decomposed = unicodedata.normalize("NFD", text.lower())
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def extract_days(text: str) -> int | None:
    t = normalize_text(text)
    match = _DAYS_EXPLICIT_RE.search(t) or _DAYS_BARE_RE.search(t)
    if match:
        return max(1, int(match.group(1)))
    if re.search(r"\b(hier|yesterday)\b", t):
        return 1
    if re.search(r"\b(semaine|week)\b", t):
        return 7
    if re.search(r"\b(mois|month)\b", t):
        return 30
    return None


def extract_granularity(text: str) -> str | None:
    t = normalize_text(text)
    if re.search(r"\b(jour|daily|day|quotidien)\b", t):
        return "day"
    if re.search(r"\b(semaine|hebdo|weekly|week)\b", t):
        return "week"
    if re.search(r"\b(mois|mensuel|monthly|month)\b", t):
        return "month"
    return None


def extract_top_n(text: str) -> int | None:
    match = _TOP_N_RE.search(normalize_text(text))
    if not match or int(match.group(1)) == 0:
        return None
    return min(int(match.group(1)), MAX_TOP)


def extract_compare_values(text: str) -> list[str] | None:
    t = normalize_text(text)
    match = _COMPARE_RE.search(t) or _VERSUS_RE.search(t)
    if not match:
        return None
    first, second = match.group(1), match.group(2)
    return [first, second] if first != second else None


def extract_budget(text: str) -> float | None:
    t = normalize_text(text)
    match = _BUDGET_CURRENCY_RE.search(t) or _BUDGET_WORDING_RE.search(t)
    if not match:
        return None
    return float(match.group(1).replace(",", "."))


def _facet_terms(facet_key: str, pack: DomainPack) -> dict[str, str]:
    """Every surface term that resolves to an allowed value of *facet_key*."""
    vocabulary = pack.facets[facet_key]
    allowed = {normalize_value(v, pack) for v in vocabulary.values}

    terms: dict[str, str] = {}
    candidates = (
        list(vocabulary.values)
        + list(vocabulary.value_synonyms)
        + list(pack.synonyms)
    )
    for term in candidates:
        canonical = apply_facet_value_synonyms(normalize_value(term, pack), facet_key, pack)
        if canonical in allowed:
            terms.setdefault(normalize_text(term).strip(), canonical)
    return terms


def extract_filters(text: str, pack: DomainPack | None) -> dict[str, list[str]]:
    """Facet filters whose vocabulary terms appear in *text*."""
    if pack is None:
        return {}
    t = normalize_text(text)

    filters: dict[str, list[str]] = {}
    for facet_key in pack.facets:
        found: list[str] = []
        for term, canonical in _facet_terms(facet_key, pack).items():
            if not term:
                continue
            if re.search(rf"(?<![\w-]){re.escape(term)}(?![\w-])", t) and canonical not in found:
                found.append(canonical)
        if found:
            filters[facet_key] = found
    return filters


def route_query(query: str, pack: DomainPack | None = None) -> RoutedIntent:
    t = normalize_text(query)
    days = min(extract_days(query) or DEFAULT_DAYS, MAX_DAYS)

    compare_values = extract_compare_values(query)
    if compare_values:
        return RoutedIntent(
            intent=IntentName.timeseries,
            params=TimeseriesParams(
                query=query,
                days=days,
                granularity=extract_granularity(query) or "day",
                values=compare_values,
            ),
        )

    if _TIMESERIES_RE.search(t):
        return RoutedIntent(
            intent=IntentName.timeseries,
            params=TimeseriesParams(
                query=query,
                days=days,
                granularity=extract_granularity(query) or "day",
                top=extract_top_n(query) or 5,
            ),
        )

    filters = extract_filters(query, pack)
    budget = extract_budget(query)
    if filters or budget is not None:
        return RoutedIntent(
            intent=IntentName.recommend,
            params=RecommendParams(query=query, filters=filters, budget=budget),
        )

    if _TOP_RE.search(t):
        return RoutedIntent(
            intent=IntentName.top_values,
            params=TopValuesParams(query=query, days=days, top=extract_top_n(query) or 10),
        )

    if _ADVICE_RE.search(t):
        return RoutedIntent(
            intent=IntentName.recommend,
            params=RecommendParams(query=query),
        )

    return RoutedIntent(intent=IntentName.fallback, params=FallbackParams(query=query))
