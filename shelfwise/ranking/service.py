from __future__ import annotations

import logging
import time

from pydantic import ValidationError

from ..analytics.store import record_event
from ..catalog.config import DEFAULT_CATALOG_CONFIG, CatalogConfig
from ..catalog.data_store import load_catalog
from ..domain.config import DEFAULT_DOMAIN_CONFIG, DomainConfig
from ..domain.loader import DomainPackNotFoundError, load_domain_pack
from ..domain.schema import DomainPackSchema
from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..llm.groq_client import explain_recommendations
from .models import RankedResult, RecommendationRequest, RecommendationResponse
from .pipeline import rank

logger = logging.getLogger(__name__)


def _load_pack_or_none(
    domain_id: str,
    tenant_id: str | None,
    config: DomainConfig,
) -> DomainPackSchema | None:
    try:
        return load_domain_pack(domain_id, tenant_id, config)
    except (DomainPackNotFoundError, ValidationError, ValueError):
        logger.warning(
            "Domain pack %r unavailable, ranking without vocabulary", domain_id, exc_info=True,
        )
        return None


def recommend_products(
    request: RecommendationRequest,
    pack: DomainPackSchema | None = None,
    catalog_config: CatalogConfig = DEFAULT_CATALOG_CONFIG,
    domain_config: DomainConfig = DEFAULT_DOMAIN_CONFIG,
    llm_config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> RecommendationResponse:
    """Load the catalog and pack for ``request.domain_id`` and rank it."""
    start_time = time.time()

    catalog = load_catalog(request.domain_id, catalog_config)
    if pack is None:
        pack = _load_pack_or_none(request.domain_id, request.tenant_id, domain_config)

    result = rank(
        catalog.items,
        filters=request.filters,
        budget=request.budget,
        pack=pack,
        limit=request.limit,
    )

    explanation = None
    if request.explain and isinstance(result, RankedResult):
        explanation = explain_recommendations(result.criteria, result.items, llm_config)

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    record_event("recommend", {
        "domain_id": request.domain_id,
        "tenant_id": request.tenant_id,
        "facet_keys": sorted(k for k, v in request.filters.items() if v),
        "budget": request.budget,
        "ok": result.ok,
        "reason": getattr(result, "reason", None),
        "total": result.total,
        "budget_relaxed": getattr(result, "budget_relaxed", False),
        "response_time_ms": elapsed_ms,
    })

    return RecommendationResponse(
        domain_id=request.domain_id,
        tenant_id=request.tenant_id,
        catalog_source=catalog.source,
        explanation=explanation,
        result=result,
    )
