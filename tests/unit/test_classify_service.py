from __future__ import annotations

from pathlib import Path

from pltsync.models import PRELOADED, LoadedArtifact
from pltsync.services.classify_service import classify


def _otp_dir(tmp_path: Path) -> str:
    return str(tmp_path / "otp" / "lib")


def test_classify_skips_preloaded(tmp_path):
    otp = _otp_dir(tmp_path)
    artifacts = [LoadedArtifact("erlang", PRELOADED), LoadedArtifact("init", PRELOADED)]
    assert classify(otp, artifacts) == frozenset()


def test_classify_skips_otp_root_itself(tmp_path):
    otp = _otp_dir(tmp_path)
    assert classify(otp, [LoadedArtifact("test", otp)]) == frozenset()


def test_classify_skips_files_without_beam_extension(tmp_path):
    otp = _otp_dir(tmp_path)
    assert classify(otp, [LoadedArtifact("test", "test")]) == frozenset()
    assert classify(otp, [LoadedArtifact("test", "src/test.erl")]) == frozenset()


def test_classify_keeps_project_beam(tmp_path):
    otp = _otp_dir(tmp_path)
    assert classify(otp, [LoadedArtifact("test", "test.beam")]) == {"test.beam"}


def test_classify_skips_beams_under_otp_root(tmp_path):
    otp = _otp_dir(tmp_path)
    artifacts = [
        LoadedArtifact("lists", f"{otp}/stdlib-5.0/ebin/lists.beam"),
        LoadedArtifact("mine", "/work/app/ebin/mine.beam"),
    ]
    assert classify(otp, artifacts) == {"/work/app/ebin/mine.beam"}


def test_classify_deduplicates_paths():
    artifacts = [
        LoadedArtifact("a", "/work/ebin/a.beam"),
        LoadedArtifact("a_alias", "/work/ebin/a.beam"),
    ]
    assert classify("/usr/lib/erlang/lib", artifacts) == {"/work/ebin/a.beam"}


def test_classify_prefix_is_plain_text_by_default():
    artifacts = [LoadedArtifact("x", "/opt/library-foo/x.beam")]
    assert classify("/opt/lib", artifacts) == frozenset()


def test_classify_strict_prefix_compares_path_components():
    artifacts = [
        LoadedArtifact("x", "/opt/library-foo/x.beam"),
        LoadedArtifact("y", "/opt/lib/stdlib/ebin/y.beam"),
    ]
    assert classify("/opt/lib", artifacts, strict_prefix=True) == {"/opt/library-foo/x.beam"}
    assert classify("/opt/lib/", artifacts, strict_prefix=True) == {"/opt/library-foo/x.beam"}


def test_classify_skips_malformed_origins(caplog):
    artifacts = [
        LoadedArtifact("bad", 42),  # type: ignore[arg-type]
        LoadedArtifact("good", "/work/good.beam"),
    ]
    with caplog.at_level("DEBUG", logger="pltsync.services.classify_service"):
        result = classify("/usr/lib/erlang/lib", artifacts)
    assert result == {"/work/good.beam"}
    assert "bad" in caplog.text
