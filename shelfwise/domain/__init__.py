"""
Domain packs.

A domain pack is the controlled vocabulary for one business domain: global
term synonyms, per-facet allowed values and value synonyms, plus intent and
pattern hints for query routing. A base pack ships with the package; tenants
may layer an overlay on top of it.
"""
