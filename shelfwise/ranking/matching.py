from __future__ import annotations

from collections.abc import Mapping, Sequence

from .models import CatalogItem, DomainPack, FacetMatch
from .vocabulary import canonical_value


def _as_list(value) -> list:
    # Facets can be scalar ("red") or multi-valued (["light", "fruity"])
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def filters_active(filters: Mapping[str, Sequence[str]] | None) -> bool:
    """True when at least one facet key carries a requested value."""
    return any(values for values in (filters or {}).values())


def match_facets(
    item: CatalogItem,
    filters: Mapping[str, Sequence[str]] | None,
    pack: DomainPack | None = None,
) -> FacetMatch:
    """Count how many requested facets *item* satisfies.

    A facet the item does not carry contributes no match but does not
    exclude the item.
    """
    matched = 0
    total_asked = 0

    for facet_key, wanted_values in (filters or {}).items():
        if not wanted_values:
            continue
        total_asked += 1

        wanted = {canonical_value(v, facet_key, pack) for v in wanted_values}

        item_value = item.facets.get(facet_key)
        if item_value is None:
            continue

        have = {canonical_value(v, facet_key, pack) for v in _as_list(item_value)}
        if wanted & have:
            matched += 1

    return FacetMatch(matched=matched, total_asked=total_asked)
