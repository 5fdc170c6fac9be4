"""Persisted release records: per-version metadata and the global binary map."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

from binrelay.models.platforms import PlatformTarget


class BinaryRef(BaseModel):
    """Where one platform's binary for a release can be downloaded.

    ``reused_from`` names the release whose binaries were reused and is set
    exactly when the object was not freshly uploaded in this release.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    reused_from: str | None = None
    last_updated_version: str
    newly_built: bool

    @model_validator(mode="before")
    @classmethod
    def _default_newly_built(cls, data: Any) -> Any:
        # Older records omit the flag on reused entries.
        if isinstance(data, dict) and "newly_built" not in data:
            return {**data, "newly_built": data.get("reused_from") is None}
        return data

    @model_validator(mode="after")
    def _check_provenance(self) -> BinaryRef:
        if self.newly_built == (self.reused_from is not None):
            raise ValueError(
                "reused_from must be set exactly when newly_built is false"
            )
        return self


class ReleaseMetadata(BaseModel):
    """One record per published version, stored at ``releases/v<version>/metadata.json``.

    Written once and never modified.
    """

    model_config = ConfigDict(frozen=True)

    version: str
    created_at: datetime
    content_hash: str
    release_summary: str | None = None
    release_description: str | None = None
    binaries: dict[str, BinaryRef] = {}
    binary_source_versions: dict[str, str] = {}

    @property
    def fully_reused(self) -> bool:
        return bool(self.binaries) and all(
            not ref.newly_built for ref in self.binaries.values()
        )


class GlobalBinaryMapping(BaseModel):
    """Singleton ``binary-mapping.json``: platform -> version folder holding its binary.

    Treated as a value: each run loads it, computes a replacement, and writes
    the whole record back once. Unknown top-level keys written by other
    tools are kept.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    last_updated: datetime | None = None
    latest_version: str | None = None
    binary_sources: dict[str, str] = {}

    @property
    def is_empty(self) -> bool:
        return self.latest_version is None and not self.binary_sources

    def claim_for(self, platform: PlatformTarget | str) -> str | None:
        """Version the mapping currently claims for *platform*, if any."""
        key = platform.value if isinstance(platform, PlatformTarget) else platform
        return self.binary_sources.get(key)
