from __future__ import annotations

import logging
from typing import Any, Literal

from fastapi import FastAPI, HTTPException, Query
from pydantic import ValidationError

from .agent.llm_router import llm_route
from .agent.models import IntentName
from .analytics.aggregator import (
    DEFAULT_EVENT,
    DEFAULT_PROPERTY,
    compute_analytics,
    timeseries,
    top_values,
)
from .analytics.store import get_events, record_event
from .catalog.data_store import load_catalog
from .domain.config import DEFAULT_DOMAIN_CONFIG
from .domain.loader import DomainPackNotFoundError, load_domain_pack
from .domain.schema import DomainPackSchema
from .ranking.models import RecommendationRequest, RecommendationResponse
from .ranking.service import recommend_products

logger = logging.getLogger(__name__)

app = FastAPI(title="Shelfwise Recommendation API", version="1.0.0")

_ASK_HINT = (
    "Mention products and a budget (\"un rouge leger autour de 15€\"), "
    "'top' / 'meilleurs', or 'evolution' / 'over time'."
)


def _load_pack_or_http_error(domain_id: str, tenant_id: str | None) -> DomainPackSchema:
    try:
        return load_domain_pack(domain_id, tenant_id)
    except DomainPackNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False)) from exc


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata(domain_id: str = DEFAULT_DOMAIN_CONFIG.default_domain) -> dict:
    pack = _load_pack_or_http_error(domain_id, None)
    catalog = load_catalog(domain_id)
    return {
        "domain_id": domain_id,
        "catalog_source": catalog.source,
        "count": catalog.count,
        "facets": {key: facet.values for key, facet in pack.facets.items()},
    }


@app.get("/domain-pack")
def domain_pack(
    id: str = DEFAULT_DOMAIN_CONFIG.default_domain,
    tenant_id: str | None = None,
) -> dict:
    pack = _load_pack_or_http_error(id, tenant_id)
    return {"ok": True, "id": id, "tenant_id": tenant_id, "pack": pack.model_dump(mode="json")}


@app.post("/recommendations", response_model=RecommendationResponse)
def recommendations(body: RecommendationRequest) -> RecommendationResponse:
    return recommend_products(body)


# ── Natural-language entry point ─────────────────────────────────────────


@app.get("/ask")
def ask(
    q: str = "",
    domain: str | None = None,
    tenant_id: str | None = None,
) -> dict:
    question = q.strip()
    if not question:
        raise HTTPException(status_code=400, detail="Missing query param: q")

    # 1. Optional domain pack, used for routing and normalization
    pack = None
    if domain:
        try:
            pack = load_domain_pack(domain, tenant_id)
        except (DomainPackNotFoundError, ValidationError):
            logger.warning("Domain pack %r failed to load for /ask", domain, exc_info=True)

    # 2. Route the question
    routed = llm_route(question, pack)
    base: dict[str, Any] = {
        "intent": routed.intent.value,
        "source": routed.source,
        "question": question,
        "domain": domain,
        "tenant_id": tenant_id,
    }
    if routed.reason:
        base["reason"] = routed.reason

    # 3. Dispatch
    params = routed.params
    if routed.intent is IntentName.recommend:
        response = recommend_products(
            RecommendationRequest(
                domain_id=domain or DEFAULT_DOMAIN_CONFIG.default_domain,
                tenant_id=tenant_id,
                filters=params.filters,
                budget=params.budget,
            ),
            pack=pack,
        )
        payload = {
            **base,
            "recommend": {"filters": params.filters, "budget": params.budget},
            "result": response.model_dump(mode="json"),
        }
    elif routed.intent is IntentName.top_values:
        items = top_values(
            get_events(), params.event, params.property, days=params.days, top=params.top,
        )
        payload = {**base, "used": params.model_dump(exclude={"query"}), "items": items}
    elif routed.intent is IntentName.timeseries:
        payload = {
            **base,
            **timeseries(
                get_events(),
                params.event,
                params.property,
                days=params.days,
                granularity=params.granularity,
                top=params.top,
                values=params.values,
            ),
        }
    else:
        payload = None

    # 4. Record the question once it has been answered
    record_event("question", {
        "question": question,
        "intent": routed.intent.value,
        "source": routed.source,
        "domain_id": domain,
    })

    if payload is None:
        raise HTTPException(status_code=400, detail={**base, "hint": _ASK_HINT})
    return payload


# ── Analytics endpoints ──────────────────────────────────────────────────


@app.get("/analytics")
def analytics() -> dict:
    return compute_analytics(get_events())


@app.get("/analytics/top")
def analytics_top(
    event: str = DEFAULT_EVENT,
    property: str = DEFAULT_PROPERTY,
    days: int = Query(default=30, ge=1, le=365),
    top: int = Query(default=10, ge=1, le=50),
) -> dict:
    return {
        "used": {"event": event, "property": property, "days": days, "top": top},
        "items": top_values(get_events(), event, property, days=days, top=top),
    }


@app.get("/analytics/timeseries")
def analytics_timeseries(
    event: str = DEFAULT_EVENT,
    property: str = DEFAULT_PROPERTY,
    days: int = Query(default=30, ge=1, le=365),
    granularity: Literal["day", "week", "month"] = "day",
    top: int = Query(default=5, ge=1, le=50),
    values: list[str] | None = Query(default=None),
) -> dict:
    return timeseries(
        get_events(),
        event,
        property,
        days=days,
        granularity=granularity,
        top=top,
        values=values,
    )
