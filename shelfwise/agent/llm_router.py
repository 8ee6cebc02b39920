from __future__ import annotations

import json
import logging
import re
from typing import Any

from groq import Groq

from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..ranking.models import DomainPack
from .models import PARAMS_BY_INTENT, IntentName, RoutedIntent
from .router import route_query

logger = logging.getLogger(__name__)

_MAX_PACK_CHARS = 8000
_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)

ROUTER_PROMPT = """\
You route shop-assistant questions to one intent. Reply with ONLY valid JSON.

Supported intents and their params:
- "recommend": product advice. params: {"filters": {"<facet>": ["<value>"]}, "budget": <number or null>}
  Use the domain pack facets, values and synonyms to build filters. Only set a
  budget when an amount is explicit.
- "top_values": most frequent values. params: {"days": <int>, "top": <int>}
- "timeseries": evolution over time. params: {"days": <int>, "granularity": "day|week|month", "top": <int>, "values": ["<value>", ...]}
  Use "values" only when the user compares explicit values.

Defaults: days=30, top=10 for top_values and 5 for timeseries, granularity="day".
"yesterday"/"hier" means days=1, "week"/"semaine" days=7, "month"/"mois" days=30.

Answer shape: {"intent": "<intent>", "params": {...}}"""


def _pack_snippet(pack: DomainPack | None) -> str:
    if pack is None:
        return "No domain pack."
    text = pack.model_dump_json(exclude_none=True)
    if len(text) > _MAX_PACK_CHARS:
        text = text[:_MAX_PACK_CHARS] + "...(truncated)"
    return f"Domain pack (JSON): {text}"


def extract_json(text: str) -> Any:
    """Parse JSON even when wrapped in a code fence or surrounding prose."""
    raw = text.strip()
    fence = _FENCE_RE.search(raw)
    if fence:
        raw = fence.group(1).strip()
    else:
        start, end = raw.find("{"), raw.rfind("}")
        if start != -1 and end > start:
            raw = raw[start:end + 1]
    return json.loads(raw)


def parse_routing(question: str, payload: Any) -> RoutedIntent:
    """Validate an LLM routing payload; raises ``ValueError`` on any mismatch."""
    if not isinstance(payload, dict):
        raise ValueError("Routing payload is not an object")
    intent = IntentName(payload.get("intent"))
    if intent is IntentName.fallback:
        raise ValueError("LLM declined to route the question")
    params = dict(payload.get("params") or {})
    params["query"] = question
    return RoutedIntent(
        intent=intent,
        params=PARAMS_BY_INTENT[intent].model_validate(params),
    )


def _fallback(question: str, pack: DomainPack | None, reason: str) -> RoutedIntent:
    routed = route_query(question, pack)
    return routed.model_copy(update={"source": "regex_fallback", "reason": reason})


def llm_route(
    question: str,
    pack: DomainPack | None = None,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> RoutedIntent:
    """Route *question* with Groq, or with the regex rules when that fails."""
    if not config.enabled or not config.api_key:
        return _fallback(question, pack, "LLM routing disabled or GROQ_API_KEY missing")

    try:
        client = Groq(api_key=config.api_key, timeout=config.timeout)
        response = client.chat.completions.create(
            model=config.model,
            messages=[
                {"role": "system", "content": ROUTER_PROMPT},
                {"role": "user", "content": f"{_pack_snippet(pack)}\n\nQuestion: {question}"},
            ],
            max_tokens=config.max_tokens,
            temperature=0.1,
            response_format={"type": "json_object"},
        )
        content = response.choices[0].message.content or "{}"
        routed = parse_routing(question, extract_json(content))
        return routed.model_copy(update={"source": "groq", "model": config.model})

    except Exception as exc:
        logger.warning("LLM routing failed, using regex router", exc_info=True)
        return _fallback(question, pack, str(exc) or type(exc).__name__)
