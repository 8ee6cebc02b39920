from __future__ import annotations

import logging
from collections.abc import Sequence

from groq import Groq

from ..ranking.models import CatalogItem, Criteria
from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a shop assistant. Given the customer's criteria and the products "
    "a ranking engine selected, write two or three friendly sentences that "
    "explain why the first products fit. Mention prices when they are known. "
    "Only talk about the listed products. Reply in the customer's language."
)


def _format_facet(value) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value if v is not None)
    return "" if value is None else str(value)


def _build_user_message(criteria: Criteria, items: Sequence[CatalogItem]) -> str:
    lines = ["## Criteria"]
    for facet, values in criteria.filters.items():
        if values:
            lines.append(f"- {facet}: {_format_facet(values)}")
    if criteria.budget is not None:
        lines.append(f"- Budget: {criteria.budget}")

    lines.append("\n## Selected Products")
    lines.append("| SKU | Name | Price | Facets |")
    lines.append("|---|---|---|---|")
    for item in items:
        facets = "; ".join(f"{k}={_format_facet(v)}" for k, v in item.facets.items())
        price = item.price if item.price is not None else "N/A"
        lines.append(f"| {item.sku} | {item.name} | {price} | {facets} |")

    return "\n".join(lines)


def explain_recommendations(
    criteria: Criteria,
    items: Sequence[CatalogItem],
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> str | None:
    """
    Ask Groq for a short explanation of a ranked selection.

    Returns ``None`` when disabled, without items, or on any failure.
    """
    if not config.enabled or not config.api_key:
        return None

    if not items:
        return None

    try:
        client = Groq(api_key=config.api_key, timeout=config.timeout)
        response = client.chat.completions.create(
            model=config.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": _build_user_message(criteria, items)},
            ],
            max_tokens=config.max_tokens,
            temperature=0.3,
        )
        text = (response.choices[0].message.content or "").strip()
        return text or None

    except Exception:
        logger.warning("Groq explanation failed, returning ranking without it", exc_info=True)
        return None
