"""Global binary map: which version folder holds each platform's binary.

``binary-mapping.json`` is the only long-lived mutable record. Installers
read it to locate downloads, so every entry must name a folder where the
platform's object really exists. ``verify`` checks a claim; ``repair`` finds
the newest version that still has the object by listing release history.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from binrelay.core.keyspace import (
    MAPPING_KEY,
    RELEASES_PREFIX,
    binary_key,
    binary_key_pattern,
)
from binrelay.core.object_store import ObjectStore
from binrelay.core.versioning import sort_versions_desc
from binrelay.errors import ObjectNotFoundError, ParseError
from binrelay.models.platforms import PlatformTarget
from binrelay.models.release import GlobalBinaryMapping

logger = logging.getLogger(__name__)


def encode_mapping(mapping: GlobalBinaryMapping) -> bytes:
    return (mapping.model_dump_json(indent=2) + "\n").encode("utf-8")


def decode_mapping(data: bytes) -> GlobalBinaryMapping:
    try:
        return GlobalBinaryMapping.model_validate(json.loads(data.decode("utf-8")))
    except ValueError as exc:
        raise ParseError(f"Invalid binary mapping: {exc}") from exc


class GlobalBinaryMap:
    """Load, save, verify and repair the ``binary-mapping.json`` singleton.

    Parameters
    ----------
    store:
        Object store holding the releases.
    artifact_prefix:
        Binary name prefix, e.g. ``mytool`` for ``mytool-linux-amd64``.
    """

    def __init__(self, store: ObjectStore, artifact_prefix: str) -> None:
        self._store = store
        self.artifact_prefix = artifact_prefix

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    def load(self) -> GlobalBinaryMapping:
        """Current mapping; missing or corrupt yields an empty mapping."""
        try:
            raw = self._store.get(MAPPING_KEY)
        except ObjectNotFoundError:
            logger.debug("No %s in store; starting with an empty mapping", MAPPING_KEY)
            return GlobalBinaryMapping()
        try:
            return decode_mapping(raw)
        except ParseError as exc:
            logger.warning("Ignoring corrupt %s: %s", MAPPING_KEY, exc)
            return GlobalBinaryMapping()

    def save(self, mapping: GlobalBinaryMapping) -> None:
        """Overwrite the stored mapping. Last writer wins."""
        self._store.put(MAPPING_KEY, encode_mapping(mapping))
        logger.info("Saved %s (latest v%s)", MAPPING_KEY, mapping.latest_version)

    def export(self, mapping: GlobalBinaryMapping, path: Path) -> None:
        """Write a local copy of the mapping, e.g. for committing to the repo."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(encode_mapping(mapping))

    # ------------------------------------------------------------------
    # Verify / repair
    # ------------------------------------------------------------------

    def key_for(self, platform: PlatformTarget, version: str) -> str:
        return binary_key(version, platform, self.artifact_prefix)

    def verify(self, platform: PlatformTarget, version: str) -> bool:
        """Whether ``releases/v<version>/<artifact>`` exists for *platform*."""
        return self._store.exists(self.key_for(platform, version))

    def available_versions(self, platform: PlatformTarget) -> list[str]:
        """Every version that has *platform*'s binary, newest first."""
        pattern = binary_key_pattern(platform, self.artifact_prefix)
        versions = set()
        for obj in self._store.list(RELEASES_PREFIX):
            match = pattern.match(obj.key)
            if match:
                versions.add(match.group("version"))
        return sort_versions_desc(versions)

    def repair(self, platform: PlatformTarget) -> str | None:
        """Newest version that actually holds *platform*'s binary, or None."""
        candidates = self.available_versions(platform)
        if not candidates:
            logger.info("History search found no %s binary in any release", platform.value)
            return None
        logger.info(
            "History search found %s binary in %d release(s); newest is v%s",
            platform.value,
            len(candidates),
            candidates[0],
        )
        return candidates[0]
