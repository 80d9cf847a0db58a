"""Check a synchronized PLT and shape its findings for display."""

from __future__ import annotations

import logging
import os
from typing import Iterable, Sequence

from ..engine import AnalysisEngine, check_plt
from ..errors import CheckError, EngineInvocationError
from ..models import (
    ArtifactSelector,
    Diagnostic,
    DiagnosticRecord,
    Severity,
    is_all,
    module_of,
)
from .registry_service import ModuleRegistry

logger = logging.getLogger(__name__)


def _selected_identifiers(
    selector: ArtifactSelector, registry: ModuleRegistry
) -> list[str]:
    if is_all(selector):
        return [artifact.identifier for artifact in registry.all_loaded()]
    return sorted(selector)  # type: ignore[arg-type]


def files_to_check(
    selector: ArtifactSelector,
    recorded: Iterable[str],
    registry: ModuleRegistry,
) -> list[str]:
    """Return beam files of selected modules that are loaded and in the PLT."""

    recorded_set = frozenset(recorded)
    files: list[str] = []
    for identifier in _selected_identifiers(selector, registry):
        origin = registry.origin_of(identifier)
        if not isinstance(origin, str):
            continue
        if origin not in recorded_set:
            logger.debug("Module %s is not in the PLT yet; skipping", identifier)
            continue
        if origin not in files:
            files.append(origin)
    return files


def check(
    selector: ArtifactSelector,
    plt: str | os.PathLike,
    *,
    engine: AnalysisEngine,
    registry: ModuleRegistry,
) -> list[DiagnosticRecord]:
    plt_path = os.fspath(plt)
    recorded = engine.included_files(plt_path)
    files = files_to_check(selector, recorded, registry)
    logger.info("Checking %d files against PLT %s", len(files), plt_path)
    try:
        return list(engine.run(check_plt(files, plt_path)))
    except EngineInvocationError as exc:
        raise CheckError(exc) from exc


def filter_diagnostics(
    selector: ArtifactSelector,
    diagnostics: Sequence[DiagnosticRecord],
) -> list[DiagnosticRecord]:
    if is_all(selector):
        return list(diagnostics)
    wanted = frozenset(selector)  # type: ignore[arg-type]
    return [record for record in diagnostics if module_of(record.file) in wanted]


def format_diagnostics(
    diagnostics: Sequence[DiagnosticRecord],
    *,
    engine: AnalysisEngine,
) -> list[Diagnostic]:
    return [
        Diagnostic(
            severity=Severity.WARNING,
            file=record.file,
            line=record.line,
            message=engine.format_warning(record),
        )
        for record in diagnostics
    ]
