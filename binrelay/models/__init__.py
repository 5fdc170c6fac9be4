"""binrelay data models: all Pydantic v2, all frozen (immutable)."""

from binrelay.models.plan import (
    AuthorityResolution,
    AuthoritySource,
    PlanAction,
    PlatformDecision,
    PublishReport,
    ReleaseOutcome,
    ResolutionPlan,
    ReuseReason,
)
from binrelay.models.platforms import ALL_PLATFORMS, PlatformTarget
from binrelay.models.release import BinaryRef, GlobalBinaryMapping, ReleaseMetadata

__all__ = [
    # platforms
    "ALL_PLATFORMS",
    "PlatformTarget",
    # release records
    "BinaryRef",
    "GlobalBinaryMapping",
    "ReleaseMetadata",
    # plan
    "AuthorityResolution",
    "AuthoritySource",
    "PlanAction",
    "PlatformDecision",
    "PublishReport",
    "ReleaseOutcome",
    "ResolutionPlan",
    "ReuseReason",
]
