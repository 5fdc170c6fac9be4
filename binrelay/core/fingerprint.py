"""Content fingerprinting of build-relevant source files.

The fingerprint is a SHA-256 digest over the canonical byte stream

    path_0 ++ content_0 ++ path_1 ++ content_1 ++ ...

where paths are POSIX-style, relative to the project root, deduplicated and
sorted ascending. Identical file sets with identical bytes always produce the
same digest regardless of filesystem enumeration order. Renaming a file
changes the digest.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path, PurePosixPath

from binrelay.config import ReleaseConfig

logger = logging.getLogger(__name__)


def _relative_posix(root: Path, path: Path | str) -> str:
    candidate = Path(path)
    if candidate.is_absolute():
        candidate = candidate.relative_to(root)
    return PurePosixPath(*candidate.parts).as_posix()


def fingerprint(root: Path, files: Iterable[Path | str]) -> str:
    """Digest the given file set under *root*.

    Files that cannot be read (deleted mid-scan, permission denied, a
    directory) are skipped rather than aborting the computation.
    """
    root = Path(root)
    hasher = hashlib.sha256()
    for rel_path in sorted({_relative_posix(root, f) for f in files}):
        try:
            content = (root / rel_path).read_bytes()
        except OSError as exc:
            logger.debug("Skipping unreadable build input %s: %s", rel_path, exc)
            continue
        hasher.update(rel_path.encode("utf-8"))
        hasher.update(content)
    return hasher.hexdigest()


def collect_build_files(
    root: Path,
    source_patterns: Sequence[str],
    exclude_dirs: Sequence[str] = (),
    manifest_files: Sequence[str] = (),
) -> list[str]:
    """Enumerate build-relevant files as sorted relative POSIX paths.

    Source files match any glob in *source_patterns* and have no path
    component in *exclude_dirs*. Manifest and lock files are included only
    when present.
    """
    root = Path(root)
    excluded = set(exclude_dirs)
    found: set[str] = set()

    for pattern in source_patterns:
        for path in root.glob(pattern):
            rel = path.relative_to(root)
            if excluded.intersection(rel.parts[:-1]):
                continue
            if path.is_file():
                found.add(_relative_posix(root, rel))

    for name in manifest_files:
        if (root / name).is_file():
            found.add(_relative_posix(root, name))

    return sorted(found)


class Fingerprinter:
    """Computes the content fingerprint of a project tree."""

    def __init__(
        self,
        root: Path,
        *,
        source_patterns: Sequence[str] = ("**/*.go",),
        exclude_dirs: Sequence[str] = ("test-files",),
        manifest_files: Sequence[str] = ("go.mod", "go.sum"),
    ) -> None:
        self.root = Path(root)
        self.source_patterns = tuple(source_patterns)
        self.exclude_dirs = tuple(exclude_dirs)
        self.manifest_files = tuple(manifest_files)

    @classmethod
    def from_config(cls, config: ReleaseConfig) -> Fingerprinter:
        return cls(
            config.project_root,
            source_patterns=config.source_patterns,
            exclude_dirs=config.exclude_dirs,
            manifest_files=config.manifest_files,
        )

    def files(self) -> list[str]:
        return collect_build_files(
            self.root, self.source_patterns, self.exclude_dirs, self.manifest_files
        )

    def compute(self) -> str:
        files = self.files()
        digest = fingerprint(self.root, files)
        logger.info("Fingerprinted %d build inputs: %s", len(files), digest[:12])
        return digest
