from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ..ranking.models import DomainPack


class IntentHint(BaseModel):
    description: str | None = None
    examples: list[str] = Field(default_factory=list)
    constraints: dict[str, Any] = Field(default_factory=dict)


class PackMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source: Literal["base", "merged"] = "base"
    added_at: str | None = Field(
        default=None, validation_alias=AliasChoices("added_at", "addedAt"),
    )
    tenant_id: str | None = Field(
        default=None, validation_alias=AliasChoices("tenant_id", "tenantId"),
    )
    confidence: float | None = None


class DomainPackSchema(DomainPack):
    """A versioned, validated domain pack as stored on disk."""

    domain: str
    version: str
    language: str = "fr"
    intents: dict[str, IntentHint] = Field(default_factory=dict)
    patterns: dict[str, str] = Field(default_factory=dict)
    meta: PackMeta = Field(default_factory=PackMeta)
