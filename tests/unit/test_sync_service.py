from __future__ import annotations

import gc
import threading
import time

import pytest

from pltsync.engine import AddToPlt, BuildPlt, RemoveFromPlt
from pltsync.errors import CacheStateInconsistency, SynchronizationError
from pltsync.services import sync_service
from pltsync.services.sync_service import SyncStatus, diff, plt_lock, synchronize


@pytest.mark.parametrize(
    ("classified", "recorded"),
    [
        (set(), set()),
        ({"a.beam"}, set()),
        (set(), {"a.beam"}),
        ({"a.beam", "b.beam"}, {"b.beam", "c.beam"}),
        ({"a.beam", "b.beam"}, {"a.beam", "b.beam"}),
    ],
)
def test_diff_partitions_the_change(classified, recorded):
    result = diff(classified, recorded)
    assert result.to_add.isdisjoint(result.to_remove)
    assert result.to_add == classified - recorded
    assert result.to_remove == recorded - classified
    assert (recorded | result.to_add) - result.to_remove == classified


def test_normalize_base_plts_accepts_none_single_and_many(tmp_path):
    assert sync_service.normalize_base_plts(None) == ()
    assert sync_service.normalize_base_plts("otp.plt") == ("otp.plt",)
    assert sync_service.normalize_base_plts(tmp_path / "a.plt") == (str(tmp_path / "a.plt"),)
    assert sync_service.normalize_base_plts(["a.plt", "b.plt"]) == ("a.plt", "b.plt")


def test_synchronize_builds_missing_plt(tmp_path, fake_engine):
    plt = tmp_path / "project.plt"
    result = synchronize({"a.beam", "b.beam"}, plt, ["otp.plt"], engine=fake_engine)

    assert result.status == SyncStatus.BUILT
    assert fake_engine.operations == [
        BuildPlt(files=("a.beam", "b.beam"), output_plt=str(plt), plts=("otp.plt",))
    ]


def test_synchronize_adds_and_removes_delta(tmp_path, fake_engine):
    plt = tmp_path / "project.plt"
    fake_engine.seed(plt, {"a.beam", "old.beam"})

    result = synchronize({"a.beam", "new.beam"}, plt, None, engine=fake_engine)

    assert result.status == SyncStatus.UPDATED
    assert result.diff.to_add == {"new.beam"}
    assert result.diff.to_remove == {"old.beam"}
    assert fake_engine.operations == [
        AddToPlt(files=("new.beam",), init_plt=str(plt), output_plt=str(plt)),
        RemoveFromPlt(files=("old.beam",), init_plt=str(plt), output_plt=str(plt)),
    ]
    assert fake_engine.recorded[str(plt)] == {"a.beam", "new.beam"}


def test_synchronize_only_adds_when_nothing_went_away(tmp_path, fake_engine):
    plt = tmp_path / "project.plt"
    fake_engine.seed(plt, {"a.beam"})

    synchronize({"a.beam", "b.beam"}, plt, None, engine=fake_engine)

    assert [type(op) for op in fake_engine.operations] == [AddToPlt]


def test_synchronize_is_idempotent(tmp_path, fake_engine):
    plt = tmp_path / "project.plt"
    files = {"a.beam", "b.beam"}

    first = synchronize(files, plt, None, engine=fake_engine)
    issued = len(fake_engine.operations)
    second = synchronize(files, plt, None, engine=fake_engine)

    assert first.status == SyncStatus.BUILT
    assert second.status == SyncStatus.UP_TO_DATE
    assert second.diff.is_empty
    assert len(fake_engine.operations) == issued


def test_synchronize_wraps_engine_failure(tmp_path, make_engine):
    engine = make_engine(fail_on="plt_add")
    plt = tmp_path / "project.plt"
    engine.seed(plt, {"a.beam", "gone.beam"})

    with pytest.raises(SynchronizationError) as exc:
        synchronize({"a.beam", "b.beam"}, plt, None, engine=engine)

    assert exc.value.stage == "synchronize"
    assert exc.value.cause.operation == "plt_add"
    # aborted before the removal
    assert [type(op) for op in engine.operations] == [AddToPlt]


def test_synchronize_propagates_unreadable_plt(tmp_path, make_engine):
    engine = make_engine(unreadable=True)
    plt = tmp_path / "project.plt"
    plt.write_bytes(b"garbage")

    with pytest.raises(CacheStateInconsistency):
        synchronize({"a.beam"}, plt, None, engine=engine)
    assert engine.operations == []


def test_plt_lock_serializes_same_path(tmp_path):
    plt = tmp_path / "project.plt"
    events: list[str] = []

    def worker(name: str) -> None:
        with plt_lock(plt):
            events.append(f"{name}-enter")
            time.sleep(0.05)
            events.append(f"{name}-exit")

    threads = [threading.Thread(target=worker, args=(name,)) for name in ("a", "b")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert events[0].endswith("-enter")
    assert events[1] == events[0].replace("enter", "exit")


def test_plt_lock_is_shared_for_equivalent_paths(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with plt_lock("project.plt"):
        key = str((tmp_path / "project.plt").resolve())
        lock = sync_service._PLT_LOCKS[key]
        assert lock.locked()
    assert not lock.locked()


def test_plt_lock_registry_releases_unused_locks(tmp_path):
    plt = tmp_path / "gone.plt"
    key = str(plt.resolve())
    with plt_lock(plt):
        assert key in sync_service._PLT_LOCKS
    gc.collect()
    assert key not in sync_service._PLT_LOCKS
