from __future__ import annotations

import json

import pytest

from pltsync.models import PRELOADED, LoadedArtifact
from pltsync.services.registry_service import (
    EbinModuleRegistry,
    StaticModuleRegistry,
    load_registry_snapshot,
    registry_from_mapping,
)


def test_static_registry_resolves_origins():
    registry = StaticModuleRegistry(
        [LoadedArtifact("a", "/w/a.beam"), LoadedArtifact("erlang", PRELOADED)]
    )
    assert registry.origin_of("a") == "/w/a.beam"
    assert registry.origin_of("erlang") is PRELOADED
    assert registry.origin_of("missing") is None
    assert [artifact.identifier for artifact in registry.all_loaded()] == ["a", "erlang"]


def test_ebin_registry_scans_beam_files(tmp_path):
    first = tmp_path / "app" / "ebin"
    second = tmp_path / "dep" / "ebin"
    first.mkdir(parents=True)
    second.mkdir(parents=True)
    (first / "a.beam").write_bytes(b"")
    (first / "a.app").write_text("{application, a, []}.")
    (second / "a.beam").write_bytes(b"")
    (second / "b.beam").write_bytes(b"")

    registry = EbinModuleRegistry([first, second, tmp_path / "missing"])

    assert sorted(artifact.identifier for artifact in registry.all_loaded()) == ["a", "b"]
    assert registry.origin_of("a") == str((first / "a.beam").resolve())
    assert registry.origin_of("b") == str((second / "b.beam").resolve())


def test_snapshot_marks_preloaded_modules(tmp_path):
    snapshot = tmp_path / "loaded.json"
    snapshot.write_text(
        json.dumps({"erlang": "preloaded", "cover_me": "cover_compiled", "x": None, "a": "/w/a.beam"})
    )
    registry = load_registry_snapshot(snapshot)
    assert registry.origin_of("erlang") is PRELOADED
    assert registry.origin_of("cover_me") is PRELOADED
    assert registry.origin_of("x") is PRELOADED
    assert registry.origin_of("a") == "/w/a.beam"


def test_snapshot_keeps_unusual_origins_for_classifier():
    registry = registry_from_mapping({"weird": 3})
    assert registry.origin_of("weird") == 3


def test_snapshot_rejects_non_objects(tmp_path):
    snapshot = tmp_path / "loaded.json"
    snapshot.write_text("[1, 2]")
    with pytest.raises(ValueError):
        load_registry_snapshot(snapshot)
    snapshot.write_text("{not json")
    with pytest.raises(ValueError):
        load_registry_snapshot(snapshot)
