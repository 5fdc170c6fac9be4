"""Shared test fixtures for binrelay."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from pathlib import Path

import pytest

from binrelay.core.binary_map import GlobalBinaryMap
from binrelay.core.keyspace import LATEST_VERSION_KEY, binary_key
from binrelay.core.metadata_store import ReleaseMetadataStore
from binrelay.core.object_store import LocalObjectStore
from binrelay.core.resolver import ReuseResolver
from binrelay.models.platforms import ALL_PLATFORMS, PlatformTarget
from binrelay.models.release import BinaryRef, GlobalBinaryMapping, ReleaseMetadata

ARTIFACT_PREFIX = "tool"
BASE_URL = "https://dl.example.com"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep CI secrets and a developer's .env out of config-driven tests."""
    for name in list(os.environ):
        if name.startswith(("R2_", "BINRELAY_")):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def object_store(tmp_dir: Path) -> LocalObjectStore:
    """Provide an empty LocalObjectStore in a temp directory."""
    return LocalObjectStore(tmp_dir / "store")


@pytest.fixture
def metadata_store(object_store: LocalObjectStore) -> ReleaseMetadataStore:
    return ReleaseMetadataStore(object_store)


@pytest.fixture
def binary_map(object_store: LocalObjectStore) -> GlobalBinaryMap:
    return GlobalBinaryMap(object_store, ARTIFACT_PREFIX)


@pytest.fixture
def resolver(
    metadata_store: ReleaseMetadataStore, binary_map: GlobalBinaryMap
) -> ReuseResolver:
    return ReuseResolver(metadata_store, binary_map, public_base_url=BASE_URL)


@pytest.fixture
def project_dir(tmp_dir: Path) -> Path:
    """A small Go-style project tree with sources, fixtures and manifests."""
    root = tmp_dir / "project"
    (root / "internal" / "parser").mkdir(parents=True)
    (root / "test-files").mkdir()
    (root / "main.go").write_text("package main\n\nfunc main() {}\n")
    (root / "internal" / "parser" / "parser.go").write_text("package parser\n")
    (root / "test-files" / "sample.go").write_text("package fixture\n")
    (root / "README.md").write_text("# project\n")
    (root / "go.mod").write_text("module example.com/tool\n\ngo 1.22\n")
    return root


# ---------------------------------------------------------------------------
# Store seeding helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def upload_binaries(object_store: LocalObjectStore) -> Callable[..., None]:
    """Factory fixture: place binary objects under ``releases/v<version>/``."""

    def _upload(version: str, platforms: Iterable[PlatformTarget] = ALL_PLATFORMS) -> None:
        for platform in platforms:
            object_store.put(
                binary_key(version, platform, ARTIFACT_PREFIX),
                f"{platform.value}@{version}".encode(),
            )

    return _upload


@pytest.fixture
def seed_release(
    object_store: LocalObjectStore,
    metadata_store: ReleaseMetadataStore,
    upload_binaries: Callable[..., None],
) -> Callable[..., ReleaseMetadata]:
    """Factory fixture: a fully built release with metadata and latest pointer."""

    def _seed(
        version: str,
        content_hash: str,
        *,
        with_binaries: bool = True,
        set_latest: bool = True,
    ) -> ReleaseMetadata:
        if with_binaries:
            upload_binaries(version)
        metadata = ReleaseMetadata(
            version=version,
            created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
            content_hash=content_hash,
            binaries={
                p.value: BinaryRef(
                    url=f"{BASE_URL}/{binary_key(version, p, ARTIFACT_PREFIX)}",
                    last_updated_version=version,
                    newly_built=True,
                )
                for p in ALL_PLATFORMS
            },
            binary_source_versions={p.value: version for p in ALL_PLATFORMS},
        )
        metadata_store.put(metadata)
        if set_latest:
            object_store.put(LATEST_VERSION_KEY, version.encode())
        return metadata

    return _seed


@pytest.fixture
def save_mapping(binary_map: GlobalBinaryMap) -> Callable[..., GlobalBinaryMapping]:
    """Factory fixture: store a mapping with the given platform sources."""

    def _save(sources: dict[str, str], latest_version: str | None = None) -> GlobalBinaryMapping:
        mapping = GlobalBinaryMapping(
            last_updated=datetime(2026, 1, 1, tzinfo=timezone.utc),
            latest_version=latest_version,
            binary_sources=sources,
        )
        binary_map.save(mapping)
        return mapping

    return _save
