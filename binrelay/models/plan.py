"""Resolution plan and outcome models produced by the reuse resolver."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from binrelay.models.platforms import ALL_PLATFORMS, PlatformTarget
from binrelay.models.release import GlobalBinaryMapping, ReleaseMetadata


class PlanAction(str, Enum):
    """What a release does for one platform."""

    BUILD = "build"
    REUSE = "reuse"


class ReuseReason(str, Enum):
    """Why a release reuses the previous binaries."""

    FORCED = "forced"
    CONTENT_UNCHANGED = "content_unchanged"


class AuthoritySource(str, Enum):
    """How a platform's authoritative version was established."""

    UPLOADED = "uploaded"
    VERIFIED_CLAIM = "verified_claim"
    REPAIRED = "repaired"
    FALLBACK = "fallback"


class PlatformDecision(BaseModel):
    """Build, or ReuseFrom(``reuse_from``)."""

    model_config = ConfigDict(frozen=True)

    platform: PlatformTarget
    action: PlanAction
    reuse_from: str | None = None

    @classmethod
    def build(cls, platform: PlatformTarget) -> PlatformDecision:
        return cls(platform=platform, action=PlanAction.BUILD)

    @classmethod
    def reuse(cls, platform: PlatformTarget, version: str) -> PlatformDecision:
        return cls(platform=platform, action=PlanAction.REUSE, reuse_from=version)


class ResolutionPlan(BaseModel):
    """Per-platform decisions for one release, in ``ALL_PLATFORMS`` order."""

    model_config = ConfigDict(frozen=True)

    content_hash: str
    decisions: tuple[PlatformDecision, ...]
    reuse_reason: ReuseReason | None = None

    @classmethod
    def build_all(cls, content_hash: str) -> ResolutionPlan:
        return cls(
            content_hash=content_hash,
            decisions=tuple(PlatformDecision.build(p) for p in ALL_PLATFORMS),
        )

    @classmethod
    def reuse_all(
        cls, content_hash: str, version: str, reason: ReuseReason
    ) -> ResolutionPlan:
        return cls(
            content_hash=content_hash,
            decisions=tuple(PlatformDecision.reuse(p, version) for p in ALL_PLATFORMS),
            reuse_reason=reason,
        )

    @property
    def requires_build(self) -> bool:
        return any(d.action == PlanAction.BUILD for d in self.decisions)

    def builds(self) -> list[PlatformTarget]:
        """Platforms that need a fresh upload."""
        return [d.platform for d in self.decisions if d.action == PlanAction.BUILD]

    def decision_for(self, platform: PlatformTarget) -> PlatformDecision:
        for decision in self.decisions:
            if decision.platform == platform:
                return decision
        raise KeyError(platform.value)


class AuthorityResolution(BaseModel):
    """The authoritative version chosen for a platform, and how."""

    model_config = ConfigDict(frozen=True)

    platform: PlatformTarget
    version: str
    source: AuthoritySource
    previous_claim: str | None = None


class ReleaseOutcome(BaseModel):
    """Everything a release writes back to the store."""

    model_config = ConfigDict(frozen=True)

    metadata: ReleaseMetadata
    mapping: GlobalBinaryMapping
    resolutions: tuple[AuthorityResolution, ...]

    @property
    def repaired(self) -> list[AuthorityResolution]:
        return [r for r in self.resolutions if r.source == AuthoritySource.REPAIRED]

    @property
    def fallbacks(self) -> list[AuthorityResolution]:
        return [r for r in self.resolutions if r.source == AuthoritySource.FALLBACK]


class PublishReport(BaseModel):
    """Summary of one publish run."""

    model_config = ConfigDict(frozen=True)

    version: str
    plan: ResolutionPlan
    outcome: ReleaseOutcome
    uploaded_keys: tuple[str, ...] = ()
    install_script_mirrored: bool = False
    dry_run: bool = False
