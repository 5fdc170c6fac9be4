"""Reuse resolver: decides per platform whether a release builds or reuses.

Two passes:

1. ``resolve`` compares the current fingerprint with the latest release and
   produces a ``ResolutionPlan`` (Build everywhere, or ReuseFrom(latest)
   everywhere).
2. ``finalize`` establishes every platform's authoritative version against
   the global binary map, verifying claims and repairing stale ones, and
   returns the new metadata record and the replacement mapping.

Platforms are always processed in ``ALL_PLATFORMS`` order, one store call at
a time, so identical store state yields identical plans and logs.
"""

from __future__ import annotations

import logging
import warnings
from datetime import datetime, timezone

from binrelay.core.binary_map import GlobalBinaryMap
from binrelay.core.metadata_store import ReleaseMetadataStore
from binrelay.errors import IntegrityWarning, PreconditionError
from binrelay.models.plan import (
    AuthorityResolution,
    AuthoritySource,
    PlanAction,
    PlatformDecision,
    ReleaseOutcome,
    ResolutionPlan,
    ReuseReason,
)
from binrelay.models.platforms import PlatformTarget
from binrelay.models.release import BinaryRef, GlobalBinaryMapping, ReleaseMetadata

logger = logging.getLogger(__name__)


def decide_authority(
    claim: str | None,
    claim_verified: bool,
    repaired: str | None,
    fallback: str,
) -> tuple[str, AuthoritySource]:
    """Pick a reused platform's authoritative version.

    A verified claim wins even when it is older than *fallback*. An absent
    claim behaves like one that failed verification.
    """
    if claim is not None and claim_verified:
        return claim, AuthoritySource.VERIFIED_CLAIM
    if repaired is not None:
        return repaired, AuthoritySource.REPAIRED
    return fallback, AuthoritySource.FALLBACK


class ReuseResolver:
    """Plans releases and keeps the global binary map pointing at real objects.

    Parameters
    ----------
    metadata_store:
        Source of the latest release record.
    binary_map:
        The global binary map used for verification and repair.
    public_base_url:
        Prefix for download URLs recorded in metadata.
    """

    def __init__(
        self,
        metadata_store: ReleaseMetadataStore,
        binary_map: GlobalBinaryMap,
        *,
        public_base_url: str,
    ) -> None:
        self.metadata_store = metadata_store
        self.binary_map = binary_map
        self.public_base_url = public_base_url.rstrip("/")

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def resolve(self, content_hash: str, force_reuse: bool = False) -> ResolutionPlan:
        """Decide Build vs ReuseFrom for every platform.

        *force_reuse* is set when an external diff check established that no
        build-relevant file changed. It requires a previous release.
        """
        latest = self.metadata_store.latest()

        if force_reuse:
            if latest is None:
                raise PreconditionError(
                    "Forced reuse requested but no previous release exists to reuse from"
                )
            logger.info("No build inputs changed; reusing all binaries from v%s", latest.version)
            return ResolutionPlan.reuse_all(content_hash, latest.version, ReuseReason.FORCED)

        if latest is not None and latest.content_hash == content_hash:
            logger.info(
                "Content unchanged (hash %s); reusing all binaries from v%s",
                content_hash[:8],
                latest.version,
            )
            return ResolutionPlan.reuse_all(
                content_hash, latest.version, ReuseReason.CONTENT_UNCHANGED
            )

        if latest is None:
            logger.info("No previous release found; building all platforms")
        else:
            logger.info(
                "Content changed since v%s (%s -> %s); building all platforms",
                latest.version,
                latest.content_hash[:8],
                content_hash[:8],
            )
        return ResolutionPlan.build_all(content_hash)

    # ------------------------------------------------------------------
    # Authority resolution
    # ------------------------------------------------------------------

    def resolve_authoritative_version(
        self,
        decision: PlatformDecision,
        claim: str | None,
        new_version: str,
    ) -> AuthorityResolution:
        """Establish which version folder holds *decision.platform*'s binary."""
        platform = decision.platform

        if decision.action == PlanAction.BUILD:
            return AuthorityResolution(
                platform=platform,
                version=new_version,
                source=AuthoritySource.UPLOADED,
                previous_claim=claim,
            )

        fallback = decision.reuse_from or new_version
        claim_verified = claim is not None and self.binary_map.verify(platform, claim)
        repaired = None
        if not claim_verified:
            if claim is not None:
                warnings.warn(
                    f"Binary map claims {platform.value} lives in v{claim} "
                    "but the object is missing",
                    IntegrityWarning,
                    stacklevel=2,
                )
            repaired = self.binary_map.repair(platform)

        version, source = decide_authority(claim, claim_verified, repaired, fallback)
        if source == AuthoritySource.REPAIRED:
            logger.info("Found %s binary in v%s", platform.value, version)
        elif source == AuthoritySource.FALLBACK:
            logger.warning("No existing %s binary found, using v%s", platform.value, version)

        return AuthorityResolution(
            platform=platform,
            version=version,
            source=source,
            previous_claim=claim,
        )

    # ------------------------------------------------------------------
    # Outcome
    # ------------------------------------------------------------------

    def binary_url(self, platform: PlatformTarget, version: str) -> str:
        return f"{self.public_base_url}/{self.binary_map.key_for(platform, version)}"

    def finalize(
        self,
        plan: ResolutionPlan,
        version: str,
        *,
        release_summary: str | None = None,
        release_description: str | None = None,
        now: datetime | None = None,
    ) -> ReleaseOutcome:
        """Build the new metadata record and replacement mapping for *version*.

        Loads the current mapping once. Entries for platforms outside the
        current target set and unknown top-level keys are carried over unchanged.
        """
        now = now or datetime.now(timezone.utc)
        current = self.binary_map.load()

        resolutions: list[AuthorityResolution] = []
        binaries: dict[str, BinaryRef] = {}
        source_versions: dict[str, str] = {}

        for decision in plan.decisions:
            claim = current.claim_for(decision.platform)
            resolution = self.resolve_authoritative_version(decision, claim, version)
            resolutions.append(resolution)

            key = decision.platform.value
            binaries[key] = self._binary_ref(decision, resolution)
            source_versions[key] = resolution.version

        metadata = ReleaseMetadata(
            version=version,
            created_at=now,
            content_hash=plan.content_hash,
            release_summary=release_summary,
            release_description=release_description,
            binaries=binaries,
            binary_source_versions=source_versions,
        )
        mapping = GlobalBinaryMapping(
            **(current.model_extra or {}),
            last_updated=now,
            latest_version=version,
            binary_sources={**current.binary_sources, **source_versions},
        )
        return ReleaseOutcome(
            metadata=metadata,
            mapping=mapping,
            resolutions=tuple(resolutions),
        )

    def _binary_ref(
        self, decision: PlatformDecision, resolution: AuthorityResolution
    ) -> BinaryRef:
        url = self.binary_url(decision.platform, resolution.version)
        if decision.action == PlanAction.BUILD:
            return BinaryRef(
                url=url,
                last_updated_version=resolution.version,
                newly_built=True,
            )
        return BinaryRef(
            url=url,
            reused_from=decision.reuse_from,
            last_updated_version=resolution.version,
            newly_built=False,
        )
