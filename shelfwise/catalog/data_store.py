from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field

from ..ranking.models import CatalogItem
from .config import DEFAULT_CATALOG_CONFIG, CatalogConfig

logger = logging.getLogger(__name__)

FALLBACK_SOURCE = "demo_fallback"


class Catalog(BaseModel):
    id: str
    source: str
    count: int
    items: list[CatalogItem] = Field(default_factory=list)


_catalogs: dict[Path, list[CatalogItem]] = {}


def _read_items(path: Path) -> list[CatalogItem]:
    raw = json.loads(path.read_text(encoding="utf-8"))
    items = raw.get("items") if isinstance(raw, dict) else None
    if not isinstance(items, list):
        logger.warning("Catalog %s has no item list, treating it as empty", path)
        return []
    return [CatalogItem.model_validate(item) for item in items]


def _get_items(path: Path) -> list[CatalogItem]:
    if path not in _catalogs:
        _catalogs[path] = _read_items(path)
    return _catalogs[path]


def load_catalog(
    catalog_id: str,
    config: CatalogConfig = DEFAULT_CATALOG_CONFIG,
) -> Catalog:
    """Return the catalog ``<id>.json``, else ``<id>.sample.json``, else an empty one."""
    for path in (config.primary_path(catalog_id), config.sample_path(catalog_id)):
        if path.is_file():
            items = _get_items(path)
            return Catalog(id=catalog_id, source=str(path), count=len(items), items=items)

    logger.info("No catalog file for %r in %s", catalog_id, config.catalogs_dir)
    return Catalog(id=catalog_id, source=FALLBACK_SOURCE, count=0, items=[])


def clear_catalog_cache() -> None:
    _catalogs.clear()
