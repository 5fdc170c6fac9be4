"""Release metadata store: one immutable JSON record per published version.

The ``latest-version.txt`` pointer names the most recent release. A missing
or unparsable pointer or record is reported as ``None`` so callers treat it as
"no previous release"; transport failures still propagate.
"""

from __future__ import annotations

import json
import logging

from binrelay.core.keyspace import LATEST_VERSION_KEY, metadata_key
from binrelay.core.object_store import ObjectStore
from binrelay.errors import ObjectNotFoundError, ParseError, PreconditionError
from binrelay.models.release import ReleaseMetadata

logger = logging.getLogger(__name__)


class ReleaseExistsError(PreconditionError):
    """Raised when a metadata record for the version is already published."""


def encode_metadata(metadata: ReleaseMetadata) -> bytes:
    return (metadata.model_dump_json(indent=2) + "\n").encode("utf-8")


def decode_metadata(data: bytes) -> ReleaseMetadata:
    """Parse a stored record. Raises ``ParseError`` if it is not valid metadata."""
    try:
        return ReleaseMetadata.model_validate(json.loads(data.decode("utf-8")))
    except ValueError as exc:
        raise ParseError(f"Invalid release metadata: {exc}") from exc


class ReleaseMetadataStore:
    """Reads and writes ``releases/v<version>/metadata.json`` records."""

    def __init__(self, store: ObjectStore) -> None:
        self._store = store

    def latest_version(self) -> str | None:
        """The version named by ``latest-version.txt``, or None."""
        try:
            raw = self._store.get(LATEST_VERSION_KEY)
        except ObjectNotFoundError:
            logger.debug("No %s in store; treating as first release", LATEST_VERSION_KEY)
            return None
        try:
            version = raw.decode("utf-8").strip()
        except UnicodeDecodeError:
            logger.warning("Ignoring unreadable %s", LATEST_VERSION_KEY)
            return None
        return version or None

    def latest(self) -> ReleaseMetadata | None:
        version = self.latest_version()
        if version is None:
            return None
        return self.get(version)

    def get(self, version: str) -> ReleaseMetadata | None:
        key = metadata_key(version)
        try:
            raw = self._store.get(key)
        except ObjectNotFoundError:
            logger.debug("No metadata record at %s", key)
            return None
        try:
            return decode_metadata(raw)
        except ParseError as exc:
            logger.warning("Ignoring corrupt metadata at %s: %s", key, exc)
            return None

    def exists(self, version: str) -> bool:
        return self._store.exists(metadata_key(version))

    def put(self, metadata: ReleaseMetadata) -> None:
        """Write the record for a new release. Each version is written once."""
        if self.exists(metadata.version):
            raise ReleaseExistsError(
                f"Release v{metadata.version} already has a metadata record"
            )
        self._store.put(metadata_key(metadata.version), encode_metadata(metadata))
        logger.info("Wrote metadata for v%s", metadata.version)

    def set_latest_version(self, version: str) -> None:
        self._store.put(LATEST_VERSION_KEY, version.encode("utf-8"))
        logger.info("Latest version marker set to v%s", version)
