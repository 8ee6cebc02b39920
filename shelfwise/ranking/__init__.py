"""
Facet ranking engine.

Responsibilities:
- Normalize filter and catalog values through a domain pack's vocabulary.
- Count satisfied facets per catalog item and add a budget bonus.
- Rank candidates deterministically, relaxing the budget when nothing fits.
- Report unknown facet keys and values back to the caller.
"""
from .pipeline import clamp_limit, rank

__all__ = ["clamp_limit", "rank"]
