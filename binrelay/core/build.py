"""Build artifacts collaborator.

binrelay never runs a compiler. A ``BuildOrchestrator`` hands over one
binary per platform for a version; ``DirectoryArtifacts`` picks up binaries a
previous CI step left in ``bin/`` under their artifact names.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

from binrelay.models.platforms import ALL_PLATFORMS, PlatformTarget

logger = logging.getLogger(__name__)


class BuildOrchestrator(Protocol):
    def build(self, version: str) -> Mapping[PlatformTarget, Path]:
        """Return the built binary file for each platform that has one."""
        ...


class DirectoryArtifacts:
    """Pre-built binaries named ``<prefix>-<platform>`` inside *bin_dir*."""

    def __init__(self, bin_dir: Path, artifact_prefix: str) -> None:
        self.bin_dir = Path(bin_dir)
        self.artifact_prefix = artifact_prefix

    def build(self, version: str) -> dict[PlatformTarget, Path]:
        artifacts: dict[PlatformTarget, Path] = {}
        for platform in ALL_PLATFORMS:
            path = self.bin_dir / platform.artifact_name(self.artifact_prefix)
            if path.is_file():
                artifacts[platform] = path
        logger.info(
            "Found %d/%d binaries for v%s in %s",
            len(artifacts),
            len(ALL_PLATFORMS),
            version,
            self.bin_dir,
        )
        return artifacts
