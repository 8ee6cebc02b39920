"""
Two-level vocabulary resolution: global term synonyms first, then the
facet-scoped value synonyms of the domain pack.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .models import DomainPack


def coerce_pack(pack: DomainPack | Mapping[str, Any] | None) -> DomainPack | None:
    """Accept a pack model, a raw pack mapping, or nothing."""
    if pack is None or isinstance(pack, DomainPack):
        return pack
    return DomainPack.model_validate(pack)


def normalize_value(raw: Any, pack: DomainPack | None = None) -> str:
    """Lower-case and trim *raw*, then map it through the global synonyms."""
    value = "" if raw is None else str(raw).lower().strip()
    if pack is None:
        return value
    return pack.synonyms.get(value, value)


def apply_facet_value_synonyms(
    value: str,
    facet_key: str,
    pack: DomainPack | None = None,
) -> str:
    if pack is None:
        return value
    vocabulary = pack.facets.get(facet_key)
    if vocabulary is None:
        return value
    return vocabulary.value_synonyms.get(value, value)


def canonical_value(raw: Any, facet_key: str, pack: DomainPack | None = None) -> str:
    return apply_facet_value_synonyms(normalize_value(raw, pack), facet_key, pack)
