from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

_PACKAGE_DIR = Path(__file__).resolve().parent
_DATA_DIR = Path(os.getenv("SHELFWISE_DATA_DIR", _PACKAGE_DIR.parent / "data"))


@dataclass(frozen=True)
class DomainConfig:
    """
    Where base packs and tenant overlays live.

    Overlays are searched in priority order:
    ``<overlay_dir>/<tenant>/<domain>.overlay.json``,
    ``<overlay_dir>/<domain>.overlay.json``, then
    ``<base_dir>/<domain>.overlay.json``.
    """

    base_dir: Path = _PACKAGE_DIR / "packs"
    overlay_dir: Path = _DATA_DIR / "domains"
    default_domain: str = os.getenv("SHELFWISE_DEFAULT_DOMAIN", "wine")

    def base_path(self, domain: str) -> Path:
        return self.base_dir / f"{domain}.base.json"


DEFAULT_DOMAIN_CONFIG = DomainConfig()
