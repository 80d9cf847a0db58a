from __future__ import annotations

from pathlib import Path

import pytest

from pltsync.engine import AddToPlt, BuildPlt, CheckPlt, RemoveFromPlt
from pltsync.errors import CacheStateInconsistency, EngineInvocationError
from pltsync.models import DiagnosticRecord


class FakeEngine:
    """In-memory stand-in for dialyzer that records every operation."""

    def __init__(self, warnings=None, fail_on=None, unreadable=False):
        self.operations = []
        self.recorded: dict[str, set[str]] = {}
        self.warnings = list(warnings or [])
        self.fail_on = fail_on
        self.unreadable = unreadable

    def run(self, operation):
        self.operations.append(operation)
        if self.fail_on == operation.analysis_type:
            raise EngineInvocationError(operation.analysis_type, "boom")
        if isinstance(operation, BuildPlt):
            Path(operation.output_plt).write_bytes(b"plt")
            self.recorded[operation.output_plt] = set(operation.files)
        elif isinstance(operation, AddToPlt):
            self.recorded[operation.output_plt] |= set(operation.files)
        elif isinstance(operation, RemoveFromPlt):
            self.recorded[operation.output_plt] -= set(operation.files)
        elif isinstance(operation, CheckPlt):
            return list(self.warnings)
        return []

    def included_files(self, plt):
        if self.unreadable:
            raise CacheStateInconsistency(plt, "corrupt")
        return frozenset(self.recorded.get(plt, set()))

    def format_warning(self, record: DiagnosticRecord) -> str:
        return str(record.payload)

    def mutating(self):
        return [op for op in self.operations if not isinstance(op, CheckPlt)]

    def seed(self, plt: Path, files):
        plt.write_bytes(b"plt")
        self.recorded[str(plt)] = set(files)


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def make_engine():
    return FakeEngine
