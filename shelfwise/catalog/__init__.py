"""
Catalog provider.

Responsibilities:
- Locate a catalog file by identifier (full catalog first, then sample).
- Validate items into the CatalogItem schema.
- Keep loaded catalogs in memory for subsequent requests.
"""
