from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import DEFAULT_DOMAIN_CONFIG, DomainConfig
from .schema import DomainPackSchema

logger = logging.getLogger(__name__)


class DomainPackNotFoundError(FileNotFoundError):
    """Raised when no base pack exists for the requested domain."""

    def __init__(self, domain: str, path: Path) -> None:
        super().__init__(f"Base domain file not found: {path}")
        self.domain = domain
        self.path = path


def deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Merge *overlay* into a copy of *base*.

    Nested dicts merge key by key; lists and scalars from the overlay
    replace the base value; ``None`` overlay values are ignored.
    """
    out = dict(base)
    for key, value in (overlay or {}).items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = deep_merge(out[key], value)
        else:
            out[key] = value
    return out


def find_overlay_path(
    domain: str,
    tenant_id: str | None = None,
    config: DomainConfig = DEFAULT_DOMAIN_CONFIG,
) -> Path | None:
    candidates = [
        config.overlay_dir / tenant_id / f"{domain}.overlay.json" if tenant_id else None,
        config.overlay_dir / f"{domain}.overlay.json",
        config.base_dir / f"{domain}.overlay.json",
    ]
    for path in candidates:
        if path is not None and path.is_file():
            return path
    return None


def _read_json(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text(encoding="utf-8"))


def load_domain_pack(
    domain: str,
    tenant_id: str | None = None,
    config: DomainConfig = DEFAULT_DOMAIN_CONFIG,
) -> DomainPackSchema:
    """
    Load the base pack for *domain*, layer the best overlay on top and validate.

    Raises ``DomainPackNotFoundError`` when the base pack is missing and
    ``pydantic.ValidationError`` when the merged pack is malformed.
    """
    base_path = config.base_path(domain)
    if not base_path.is_file():
        raise DomainPackNotFoundError(domain, base_path)
    base = _read_json(base_path)

    overlay_path = find_overlay_path(domain, tenant_id, config)
    overlay = _read_json(overlay_path) if overlay_path else {}
    if overlay_path:
        logger.debug("Merging overlay %s into %s", overlay_path, base_path)

    merged = deep_merge(base, overlay)

    meta = dict(merged.get("meta") or {})
    added_at = meta.pop("addedAt", None) or meta.get("added_at")
    stored_tenant = meta.pop("tenantId", None) or meta.get("tenant_id")
    meta.update(
        source="merged" if overlay_path else "base",
        tenant_id=tenant_id or stored_tenant,
        added_at=added_at or datetime.now(timezone.utc).isoformat(),
    )
    merged["meta"] = meta

    return DomainPackSchema.model_validate(merged)
