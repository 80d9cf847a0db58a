"""Data records shared by the classifier, synchronizer and checker."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import AbstractSet, Union


class _Preloaded:
    """Origin of an artifact that was not loaded from a file."""

    _instance: "_Preloaded | None" = None

    def __new__(cls) -> "_Preloaded":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "PRELOADED"

    def __reduce__(self):
        return (_Preloaded, ())


class _AllArtifacts:
    """Selector matching every loaded artifact."""

    _instance: "_AllArtifacts | None" = None

    def __new__(cls) -> "_AllArtifacts":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ALL"

    def __reduce__(self):
        return (_AllArtifacts, ())


PRELOADED = _Preloaded()
ALL = _AllArtifacts()
BEAM_EXTENSION = ".beam"

Origin = Union[str, _Preloaded]
ArtifactSelector = Union[_AllArtifacts, AbstractSet[str]]


def is_preloaded(origin: object) -> bool:
    return origin is PRELOADED


def is_all(selector: object) -> bool:
    return selector is ALL


def normalize_selector(selector: object) -> ArtifactSelector:
    """Return ``ALL`` or a frozenset of module names from loose caller input.

    A bare string ``"all"`` (any case) means every module. A module that is
    really named ``all`` must be passed inside a collection, e.g. ``["all"]``.
    """

    if selector is ALL or selector is None:
        return ALL
    if isinstance(selector, str):
        if selector.strip().lower() == "all":
            return ALL
        return frozenset({selector})
    return frozenset(str(item) for item in selector)


@dataclass(frozen=True, slots=True)
class LoadedArtifact:
    identifier: str
    origin: Origin

    @property
    def file_backed(self) -> bool:
        return isinstance(self.origin, str)


@dataclass(frozen=True, slots=True)
class DiffResult:
    to_add: frozenset[str]
    to_remove: frozenset[str]

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove


@dataclass(frozen=True, slots=True)
class DiagnosticRecord:
    """Raw finding produced by a check run.

    ``kind`` and ``payload`` are engine specific and only interpreted by the
    engine that produced them.
    """

    kind: str
    file: str
    line: int
    payload: object

    @property
    def location(self) -> tuple[str, int]:
        return (self.file, self.line)


class Severity(str, Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    severity: Severity
    file: str
    line: int
    message: str

    def as_tuple(self) -> tuple[str, str, int, str]:
        return (self.severity.value, self.file, self.line, self.message)


def module_of(path: str) -> str:
    """Return the module name implied by a source or beam file path."""
    name = PurePath(path).name
    stem, dot, _ext = name.rpartition(".")
    if not dot or not stem:
        return name
    return stem
