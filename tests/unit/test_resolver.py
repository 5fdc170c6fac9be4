"""Tests for the reuse resolver: planning, authority resolution and outcomes."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

import pytest

from binrelay.core.binary_map import GlobalBinaryMap
from binrelay.core.object_store import LocalObjectStore
from binrelay.core.resolver import ReuseResolver, decide_authority
from binrelay.errors import IntegrityWarning, PreconditionError
from binrelay.models.plan import (
    AuthoritySource,
    PlatformDecision,
    ResolutionPlan,
    ReuseReason,
)
from binrelay.models.platforms import ALL_PLATFORMS, PlatformTarget

HASH_A = "aa" * 32
HASH_B = "bb" * 32
NOW = datetime(2026, 5, 1, tzinfo=timezone.utc)
LINUX = PlatformTarget.LINUX_AMD64


class TestDecideAuthority:
    def test_verified_claim_wins(self):
        assert decide_authority("0.8.0", True, "0.9.0", "1.0.0") == (
            "0.8.0",
            AuthoritySource.VERIFIED_CLAIM,
        )

    def test_repaired_when_claim_fails(self):
        assert decide_authority("0.8.0", False, "0.9.0", "1.0.0") == (
            "0.9.0",
            AuthoritySource.REPAIRED,
        )

    def test_absent_claim_uses_repair(self):
        assert decide_authority(None, False, "0.9.0", "1.0.0") == (
            "0.9.0",
            AuthoritySource.REPAIRED,
        )

    def test_fallback_when_nothing_found(self):
        assert decide_authority(None, False, None, "1.0.0") == ("1.0.0", AuthoritySource.FALLBACK)
        assert decide_authority("0.8.0", False, None, "1.0.0") == (
            "1.0.0",
            AuthoritySource.FALLBACK,
        )


class TestResolve:
    def test_first_release_builds_everything(self, resolver: ReuseResolver):
        plan = resolver.resolve(HASH_A)
        assert plan.builds() == list(ALL_PLATFORMS)
        assert plan.content_hash == HASH_A

    def test_unchanged_content_reuses_latest(self, resolver: ReuseResolver, seed_release):
        seed_release("1.0.0", HASH_A)
        plan = resolver.resolve(HASH_A)
        assert not plan.requires_build
        assert plan.reuse_reason == ReuseReason.CONTENT_UNCHANGED
        assert {d.reuse_from for d in plan.decisions} == {"1.0.0"}

    def test_changed_content_builds(self, resolver: ReuseResolver, seed_release):
        seed_release("1.0.0", HASH_A)
        plan = resolver.resolve(HASH_B)
        assert plan.builds() == list(ALL_PLATFORMS)

    def test_forced_reuse(self, resolver: ReuseResolver, seed_release):
        seed_release("1.0.0", HASH_A)
        plan = resolver.resolve(HASH_B, force_reuse=True)
        assert plan.reuse_reason == ReuseReason.FORCED
        assert all(d.reuse_from == "1.0.0" for d in plan.decisions)

    def test_forced_reuse_without_history(self, resolver: ReuseResolver):
        with pytest.raises(PreconditionError):
            resolver.resolve(HASH_A, force_reuse=True)

    def test_corrupt_latest_treated_as_first_release(
        self, resolver: ReuseResolver, object_store: LocalObjectStore
    ):
        object_store.put("latest-version.txt", b"1.0.0")
        object_store.put("releases/v1.0.0/metadata.json", b"garbage")
        assert resolver.resolve(HASH_A).requires_build

    def test_resolve_is_deterministic(self, resolver: ReuseResolver, seed_release):
        seed_release("1.0.0", HASH_A)
        assert resolver.resolve(HASH_A) == resolver.resolve(HASH_A)


class TestResolveAuthoritativeVersion:
    def test_build_is_uploaded(self, resolver: ReuseResolver):
        resolution = resolver.resolve_authoritative_version(
            PlatformDecision.build(LINUX), "0.9.0", "1.0.0"
        )
        assert resolution.version == "1.0.0"
        assert resolution.source == AuthoritySource.UPLOADED
        assert resolution.previous_claim == "0.9.0"

    def test_verified_older_claim_kept(self, resolver: ReuseResolver, upload_binaries):
        upload_binaries("0.8.0", [LINUX])
        upload_binaries("1.0.0", [LINUX])
        resolution = resolver.resolve_authoritative_version(
            PlatformDecision.reuse(LINUX, "1.0.0"), "0.8.0", "1.1.0"
        )
        assert resolution.version == "0.8.0"
        assert resolution.source == AuthoritySource.VERIFIED_CLAIM

    def test_missing_claim_repaired(self, resolver: ReuseResolver, upload_binaries):
        upload_binaries("0.9.5", [LINUX])
        with pytest.warns(IntegrityWarning, match="linux-amd64"):
            resolution = resolver.resolve_authoritative_version(
                PlatformDecision.reuse(LINUX, "1.0.0"), "1.0.0", "1.1.0"
            )
        assert resolution.version == "0.9.5"
        assert resolution.source == AuthoritySource.REPAIRED

    def test_no_claim_repaired_without_warning(
        self, resolver: ReuseResolver, upload_binaries, recwarn: pytest.WarningsRecorder
    ):
        upload_binaries("0.9.5", [LINUX])
        resolution = resolver.resolve_authoritative_version(
            PlatformDecision.reuse(LINUX, "1.0.0"), None, "1.1.0"
        )
        assert resolution.version == "0.9.5"
        assert not [w for w in recwarn if issubclass(w.category, IntegrityWarning)]

    def test_unrepairable_falls_back_to_reuse_source(
        self, resolver: ReuseResolver, caplog: pytest.LogCaptureFixture
    ):
        with caplog.at_level(logging.WARNING, logger="binrelay.core.resolver"):
            with pytest.warns(IntegrityWarning):
                resolution = resolver.resolve_authoritative_version(
                    PlatformDecision.reuse(LINUX, "1.0.0"), "1.0.0", "1.1.0"
                )
        assert resolution.version == "1.0.0"
        assert resolution.source == AuthoritySource.FALLBACK
        assert "No existing linux-amd64 binary found" in caplog.text


class TestFinalize:
    def test_scenario_first_release(self, resolver: ReuseResolver):
        plan = resolver.resolve(HASH_A)
        outcome = resolver.finalize(plan, "1.0.0", release_summary="Initial", now=NOW)

        for platform in ALL_PLATFORMS:
            ref = outcome.metadata.binaries[platform.value]
            assert ref.newly_built
            assert ref.reused_from is None
            assert ref.last_updated_version == "1.0.0"
        assert set(outcome.mapping.binary_sources.values()) == {"1.0.0"}
        assert outcome.mapping.latest_version == "1.0.0"
        assert outcome.metadata.release_summary == "Initial"
        assert outcome.metadata.created_at == NOW

    def test_scenario_unchanged_content(self, resolver: ReuseResolver, seed_release, save_mapping):
        seed_release("1.0.0", HASH_A)
        save_mapping({p.value: "1.0.0" for p in ALL_PLATFORMS}, latest_version="1.0.0")

        outcome = resolver.finalize(resolver.resolve(HASH_A), "1.0.1", now=NOW)

        for platform in ALL_PLATFORMS:
            ref = outcome.metadata.binaries[platform.value]
            assert ref.reused_from == "1.0.0"
            assert not ref.newly_built
        assert outcome.metadata.content_hash == HASH_A
        assert outcome.metadata.fully_reused
        assert outcome.mapping.latest_version == "1.0.1"
        assert set(outcome.mapping.binary_sources.values()) == {"1.0.0"}

    def test_scenario_stale_mapping_repairable(
        self,
        resolver: ReuseResolver,
        object_store: LocalObjectStore,
        binary_map: GlobalBinaryMap,
        seed_release,
        upload_binaries,
        save_mapping,
    ):
        upload_binaries("0.9.5", [LINUX])
        seed_release("1.0.0", HASH_A)
        object_store.delete(binary_map.key_for(LINUX, "1.0.0"))
        save_mapping({p.value: "1.0.0" for p in ALL_PLATFORMS}, latest_version="1.0.0")

        with pytest.warns(IntegrityWarning):
            outcome = resolver.finalize(resolver.resolve(HASH_A), "1.0.1", now=NOW)

        assert outcome.mapping.binary_sources["linux-amd64"] == "0.9.5"
        ref = outcome.metadata.binaries["linux-amd64"]
        assert ref.url.endswith("/releases/v0.9.5/tool-linux-amd64")
        assert ref.reused_from == "1.0.0"
        assert ref.last_updated_version == "0.9.5"
        assert [r.platform for r in outcome.repaired] == [LINUX]
        assert outcome.fallbacks == []

    def test_scenario_stale_mapping_unrepairable(
        self,
        resolver: ReuseResolver,
        object_store: LocalObjectStore,
        binary_map: GlobalBinaryMap,
        seed_release,
        save_mapping,
    ):
        seed_release("1.0.0", HASH_A)
        object_store.delete(binary_map.key_for(LINUX, "1.0.0"))
        save_mapping({p.value: "1.0.0" for p in ALL_PLATFORMS}, latest_version="1.0.0")

        with pytest.warns(IntegrityWarning):
            outcome = resolver.finalize(resolver.resolve(HASH_A), "1.0.1", now=NOW)

        assert outcome.mapping.binary_sources["linux-amd64"] == "1.0.0"
        assert [r.platform for r in outcome.fallbacks] == [LINUX]
        assert outcome.metadata.binary_source_versions["linux-amd64"] == "1.0.0"

    def test_reuse_with_empty_mapping_repairs_from_history(
        self, resolver: ReuseResolver, seed_release
    ):
        seed_release("1.0.0", HASH_A)
        outcome = resolver.finalize(resolver.resolve(HASH_A), "1.0.1", now=NOW)
        assert set(outcome.mapping.binary_sources.values()) == {"1.0.0"}
        assert len(outcome.repaired) == len(ALL_PLATFORMS)

    def test_unknown_platform_entries_carried_over(self, resolver: ReuseResolver, save_mapping):
        save_mapping({"freebsd-amd64": "0.3.0"}, latest_version="0.3.0")
        outcome = resolver.finalize(resolver.resolve(HASH_A), "1.0.0", now=NOW)
        assert outcome.mapping.binary_sources["freebsd-amd64"] == "0.3.0"
        assert outcome.mapping.binary_sources["linux-amd64"] == "1.0.0"

    def test_build_overrides_existing_claims(
        self, resolver: ReuseResolver, seed_release, save_mapping
    ):
        seed_release("1.0.0", HASH_A)
        save_mapping({p.value: "1.0.0" for p in ALL_PLATFORMS}, latest_version="1.0.0")
        outcome = resolver.finalize(resolver.resolve(HASH_B), "1.1.0", now=NOW)
        assert set(outcome.mapping.binary_sources.values()) == {"1.1.0"}
        assert all(r.source == AuthoritySource.UPLOADED for r in outcome.resolutions)

    def test_urls_use_public_base(self, resolver: ReuseResolver):
        plan = ResolutionPlan.build_all(HASH_A)
        outcome = resolver.finalize(plan, "2.0.0", now=NOW)
        ref = outcome.metadata.binaries["windows-amd64.exe"]
        assert ref.url == "https://dl.example.com/releases/v2.0.0/tool-windows-amd64.exe"

    def test_resolutions_in_platform_order(self, resolver: ReuseResolver):
        outcome = resolver.finalize(ResolutionPlan.build_all(HASH_A), "2.0.0", now=NOW)
        assert [r.platform for r in outcome.resolutions] == list(ALL_PLATFORMS)


class TestLegacyStore:
    def _seed_legacy_reuse(self, object_store: LocalObjectStore) -> None:
        record = {
            "version": "0.4.9",
            "created_at": "2025-11-02T10:15:00.000Z",
            "content_hash": HASH_A,
            "binaries": {
                p.value: {
                    "url": f"https://dl.example.com/releases/v0.4.8/tool-{p.value}",
                    "reused_from": "0.4.8",
                    "last_updated_version": "0.4.8",
                }
                for p in ALL_PLATFORMS
            },
            "binary_source_versions": {p.value: "0.4.8" for p in ALL_PLATFORMS},
        }
        object_store.put("releases/v0.4.9/metadata.json", json.dumps(record).encode())
        object_store.put("latest-version.txt", b"0.4.9")

    def test_reused_latest_release_is_readable(
        self, resolver: ReuseResolver, object_store: LocalObjectStore
    ):
        self._seed_legacy_reuse(object_store)
        plan = resolver.resolve(HASH_A)
        assert not plan.requires_build
        assert {d.reuse_from for d in plan.decisions} == {"0.4.9"}

    def test_forced_reuse_from_legacy_record(
        self, resolver: ReuseResolver, object_store: LocalObjectStore
    ):
        self._seed_legacy_reuse(object_store)
        plan = resolver.resolve(HASH_B, force_reuse=True)
        assert plan.reuse_reason == ReuseReason.FORCED

    def test_finalize_keeps_unknown_mapping_keys(
        self, resolver: ReuseResolver, object_store: LocalObjectStore
    ):
        object_store.put(
            "binary-mapping.json",
            json.dumps({"latest_version": "0.4.9", "binary_sources": {}, "channel": "stable"}).encode(),
        )
        outcome = resolver.finalize(ResolutionPlan.build_all(HASH_A), "0.5.0", now=NOW)
        assert outcome.mapping.model_extra == {"channel": "stable"}
        assert outcome.mapping.latest_version == "0.5.0"
