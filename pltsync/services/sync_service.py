"""Keep a PLT's recorded file set equal to the classified beam files."""

from __future__ import annotations

import logging
import os
import threading
import weakref
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import AbstractSet, Iterable, Iterator, Sequence

from ..engine import AnalysisEngine, add_to_plt, build_plt, remove_from_plt
from ..errors import EngineInvocationError, SynchronizationError
from ..models import DiffResult

logger = logging.getLogger(__name__)

# entries drop out once no caller holds the lock
_PLT_LOCKS: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
_PLT_LOCKS_GUARD = threading.Lock()


class SyncStatus(str, Enum):
    BUILT = "built"
    UPDATED = "updated"
    UP_TO_DATE = "up_to_date"


@dataclass(frozen=True, slots=True)
class SyncResult:
    status: SyncStatus
    plt: str
    diff: DiffResult


def normalize_base_plts(base_plts: str | os.PathLike | Iterable | None) -> tuple[str, ...]:
    """Accept ``None``, a single path or a sequence of paths."""

    if base_plts is None:
        return ()
    if isinstance(base_plts, (str, os.PathLike)):
        return (os.fspath(base_plts),)
    return tuple(os.fspath(item) for item in base_plts)


def diff(classified: AbstractSet[str], recorded: AbstractSet[str]) -> DiffResult:
    classified_set = frozenset(classified)
    recorded_set = frozenset(recorded)
    return DiffResult(
        to_add=classified_set - recorded_set,
        to_remove=recorded_set - classified_set,
    )


def _lock_key(plt: str | os.PathLike) -> str:
    return str(Path(plt).expanduser().resolve())


@contextmanager
def plt_lock(plt: str | os.PathLike) -> Iterator[None]:
    """Hold the in-process lock for ``plt`` for the duration of the block."""

    key = _lock_key(plt)
    with _PLT_LOCKS_GUARD:
        lock = _PLT_LOCKS.setdefault(key, threading.Lock())
    with lock:
        yield


def synchronize(
    classified: AbstractSet[str],
    plt: str | os.PathLike,
    base_plts: Sequence[str] | str | None = None,
    *,
    engine: AnalysisEngine,
) -> SyncResult:
    """Build ``plt`` when absent, otherwise add and remove the changed files.

    A failed engine call leaves the PLT as the engine left it.
    """

    plt_path = os.fspath(plt)
    if not os.path.isfile(plt_path):
        files = frozenset(classified)
        logger.info("Building PLT %s from %d files", plt_path, len(files))
        _invoke(engine, build_plt(files, plt_path, normalize_base_plts(base_plts)))
        return SyncResult(
            status=SyncStatus.BUILT,
            plt=plt_path,
            diff=DiffResult(to_add=files, to_remove=frozenset()),
        )

    recorded = engine.included_files(plt_path)
    delta = diff(classified, recorded)
    if delta.is_empty:
        logger.debug("PLT %s is up to date", plt_path)
        return SyncResult(status=SyncStatus.UP_TO_DATE, plt=plt_path, diff=delta)
    if delta.to_add:
        logger.info("Adding %d files to PLT %s", len(delta.to_add), plt_path)
        _invoke(engine, add_to_plt(delta.to_add, plt_path))
    if delta.to_remove:
        logger.info("Removing %d files from PLT %s", len(delta.to_remove), plt_path)
        _invoke(engine, remove_from_plt(delta.to_remove, plt_path))
    return SyncResult(status=SyncStatus.UPDATED, plt=plt_path, diff=delta)


def _invoke(engine: AnalysisEngine, operation) -> None:
    try:
        engine.run(operation)
    except EngineInvocationError as exc:
        raise SynchronizationError(exc) from exc
