from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DATA_DIR = Path(
    os.getenv("SHELFWISE_DATA_DIR", Path(__file__).resolve().parent.parent / "data")
)


@dataclass(frozen=True)
class CatalogConfig:
    catalogs_dir: Path = DATA_DIR / "catalogs"
    catalog_suffix: str = ".json"
    sample_suffix: str = ".sample.json"

    def primary_path(self, catalog_id: str) -> Path:
        return self.catalogs_dir / f"{catalog_id}{self.catalog_suffix}"

    def sample_path(self, catalog_id: str) -> Path:
        return self.catalogs_dir / f"{catalog_id}{self.sample_suffix}"


DEFAULT_CATALOG_CONFIG = CatalogConfig()
