from __future__ import annotations

from collections.abc import Mapping, Sequence

from .models import Diagnostics, DomainPack
from .vocabulary import apply_facet_value_synonyms, normalize_value


def compute_diagnostics(
    filters: Mapping[str, Sequence[str]] | None,
    pack: DomainPack | None = None,
) -> Diagnostics:
    """Check requested filters against the pack's declared vocabulary.

    Reports facet keys the pack does not declare and, for declared facets,
    the raw requested values that do not resolve to an allowed value. The
    catalog plays no part, so the same filters always yield the same report.
    """
    facets = pack.facets if pack is not None else {}
    diagnostics = Diagnostics()

    for facet_key, values in (filters or {}).items():
        vocabulary = facets.get(facet_key)
        if vocabulary is None:
            diagnostics.unknown_facet_keys.append(facet_key)
            continue

        allowed = {normalize_value(v, pack) for v in vocabulary.values}
        unknowns = [
            raw
            for raw in values or []
            if apply_facet_value_synonyms(normalize_value(raw, pack), facet_key, pack)
            not in allowed
        ]
        if unknowns:
            diagnostics.unknown_facet_values[facet_key] = unknowns

    return diagnostics
