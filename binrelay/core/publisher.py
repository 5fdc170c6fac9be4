"""Release publisher: runs one release end to end.

Order of operations:

1. Fingerprint the build inputs.
2. Resolve the plan (Build everywhere, or ReuseFrom the latest release).
3. Upload fresh binaries for every Build platform.
4. Resolve authoritative versions and build the new records.
5. Write the metadata record, the binary map, the latest-version marker,
   mirror ``install.sh``, and export the map locally.

The metadata and mapping writes are independent. A crash between them
leaves an older mapping in place, which the next run's verification pass
repairs.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from binrelay.config import ReleaseConfig
from binrelay.core.binary_map import GlobalBinaryMap
from binrelay.core.build import BuildOrchestrator, DirectoryArtifacts
from binrelay.core.fingerprint import Fingerprinter
from binrelay.core.keyspace import INSTALL_SCRIPT_KEY, check_version
from binrelay.core.metadata_store import ReleaseExistsError, ReleaseMetadataStore
from binrelay.core.object_store import ObjectStore, build_object_store
from binrelay.core.resolver import ReuseResolver
from binrelay.errors import BuildError
from binrelay.models.plan import PublishReport, ResolutionPlan
from binrelay.models.platforms import PlatformTarget

logger = logging.getLogger(__name__)


class ReleasePublisher:
    """Wires the fingerprinter, stores, resolver and build collaborator together.

    Parameters
    ----------
    store:
        Object store holding releases.
    fingerprinter:
        Computes the current content hash.
    builder:
        Supplies binaries when a release needs fresh uploads.
    artifact_prefix:
        Binary name prefix.
    public_base_url:
        Prefix for download URLs recorded in metadata.
    install_script:
        Local installer mirrored to ``install.sh``; skipped if absent.
    mapping_export_path:
        Where to write a local copy of the final mapping, or None.
    """

    def __init__(
        self,
        store: ObjectStore,
        fingerprinter: Fingerprinter,
        builder: BuildOrchestrator,
        *,
        artifact_prefix: str,
        public_base_url: str,
        install_script: Path | None = None,
        mapping_export_path: Path | None = None,
    ) -> None:
        self.store = store
        self.fingerprinter = fingerprinter
        self.builder = builder
        self.metadata_store = ReleaseMetadataStore(store)
        self.binary_map = GlobalBinaryMap(store, artifact_prefix)
        self.resolver = ReuseResolver(
            self.metadata_store,
            self.binary_map,
            public_base_url=public_base_url,
        )
        self.install_script = install_script
        self.mapping_export_path = mapping_export_path

    @classmethod
    def from_config(
        cls,
        config: ReleaseConfig,
        *,
        store: ObjectStore | None = None,
        builder: BuildOrchestrator | None = None,
    ) -> ReleasePublisher:
        root = config.project_root

        def _under_root(path: Path | None) -> Path | None:
            if path is None or path.is_absolute():
                return path
            return root / path

        return cls(
            store or build_object_store(config),
            Fingerprinter.from_config(config),
            builder or DirectoryArtifacts(_under_root(config.bin_dir), config.artifact_prefix),
            artifact_prefix=config.artifact_prefix,
            public_base_url=config.public_base_url(),
            install_script=_under_root(config.install_script),
            mapping_export_path=_under_root(config.mapping_export_path),
        )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def plan(self, force_reuse: bool = False) -> ResolutionPlan:
        """Fingerprint and resolve without touching the store's contents."""
        return self.resolver.resolve(self.fingerprinter.compute(), force_reuse)

    def publish(
        self,
        version: str,
        *,
        release_summary: str | None = None,
        release_description: str | None = None,
        force_reuse: bool = False,
        dry_run: bool = False,
        now: datetime | None = None,
    ) -> PublishReport:
        """Publish *version*. With *dry_run*, nothing is written to the store."""
        check_version(version)
        if self.metadata_store.exists(version):
            raise ReleaseExistsError(f"Release v{version} is already published")

        plan = self.plan(force_reuse)

        uploaded: list[str] = []
        if plan.requires_build:
            if dry_run:
                logger.info("Dry run: skipping upload for %d platforms", len(plan.builds()))
            else:
                uploaded = self._upload(self._collect_artifacts(plan, version), version)

        outcome = self.resolver.finalize(
            plan,
            version,
            release_summary=release_summary,
            release_description=release_description,
            now=now,
        )

        if dry_run:
            logger.info("Dry run: skipping metadata, mapping and marker writes")
            return PublishReport(version=version, plan=plan, outcome=outcome, dry_run=True)

        self.metadata_store.put(outcome.metadata)
        self.binary_map.save(outcome.mapping)
        self.metadata_store.set_latest_version(version)
        mirrored = self._mirror_install_script()
        if self.mapping_export_path is not None:
            self.binary_map.export(outcome.mapping, self.mapping_export_path)
            logger.info("Binary mapping exported to %s", self.mapping_export_path)

        return PublishReport(
            version=version,
            plan=plan,
            outcome=outcome,
            uploaded_keys=tuple(uploaded),
            install_script_mirrored=mirrored,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _collect_artifacts(
        self, plan: ResolutionPlan, version: str
    ) -> dict[PlatformTarget, Path]:
        produced = self.builder.build(version)
        missing = [p.value for p in plan.builds() if p not in produced]
        if missing:
            raise BuildError(
                f"No built binary for v{version} on: {', '.join(missing)}"
            )
        return {p: produced[p] for p in plan.builds()}

    def _upload(self, artifacts: dict[PlatformTarget, Path], version: str) -> list[str]:
        uploaded = []
        for platform, path in artifacts.items():
            key = self.binary_map.key_for(platform, version)
            logger.info("Uploading %s -> %s", path.name, key)
            self.store.put(key, path.read_bytes())
            uploaded.append(key)
        return uploaded

    def _mirror_install_script(self) -> bool:
        if self.install_script is None or not self.install_script.is_file():
            logger.info("No install script at %s; skipping mirror", self.install_script)
            return False
        self.store.put(INSTALL_SCRIPT_KEY, self.install_script.read_bytes())
        logger.info("Mirrored %s to %s", self.install_script, INSTALL_SCRIPT_KEY)
        return True
