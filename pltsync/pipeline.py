"""End-to-end synchronize-then-check pipeline."""

from __future__ import annotations

import logging
import os
from typing import Iterable

from .engine import AnalysisEngine
from .models import ArtifactSelector, Diagnostic, normalize_selector
from .services.check_service import check, filter_diagnostics, format_diagnostics
from .services.classify_service import classify
from .services.registry_service import ModuleRegistry
from .services.sync_service import SyncResult, plt_lock, synchronize

logger = logging.getLogger(__name__)


def sync(
    base_plts: str | os.PathLike | Iterable | None,
    output_plt: str | os.PathLike,
    *,
    engine: AnalysisEngine,
    registry: ModuleRegistry,
    otp_lib_dir: str,
    strict_prefix: bool = False,
) -> SyncResult:
    """Bring ``output_plt`` in line with the loaded project modules."""

    classified = classify(otp_lib_dir, registry.all_loaded(), strict_prefix=strict_prefix)
    with plt_lock(output_plt):
        return synchronize(classified, output_plt, base_plts, engine=engine)


def run(
    base_plts: str | os.PathLike | Iterable | None,
    output_plt: str | os.PathLike,
    selector: ArtifactSelector | Iterable[str] | str,
    *,
    engine: AnalysisEngine,
    registry: ModuleRegistry,
    otp_lib_dir: str,
    strict_prefix: bool = False,
) -> list[Diagnostic]:
    """Synchronize ``output_plt``, check it and return diagnostics for ``selector``.

    Raises SynchronizationError or CheckError when the engine fails and
    CacheStateInconsistency when the existing PLT cannot be read.
    """

    modules = normalize_selector(selector)
    classified = classify(otp_lib_dir, registry.all_loaded(), strict_prefix=strict_prefix)
    with plt_lock(output_plt):
        result = synchronize(classified, output_plt, base_plts, engine=engine)
        logger.debug("Synchronization finished: %s", result.status.value)
        records = check(modules, output_plt, engine=engine, registry=registry)
    return format_diagnostics(filter_diagnostics(modules, records), engine=engine)
