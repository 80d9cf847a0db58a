"""Public Python API for pltsync."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from . import pipeline
from .config import (
    Config,
    load_config,
    resolve_dialyzer,
    resolve_otp_lib_dir,
    resolve_output_plt,
)
from .engine import AnalysisEngine, DialyzerEngine, detect_otp_lib_dir
from .errors import PltSyncConfigError
from .models import Diagnostic, normalize_selector
from .services.registry_service import (
    EbinModuleRegistry,
    ModuleRegistry,
    load_registry_snapshot,
)
from .services.sync_service import SyncResult, normalize_base_plts
from .text import Messages


@dataclass(frozen=True, slots=True)
class RuntimeSettings:
    engine: AnalysisEngine
    registry: ModuleRegistry
    otp_lib_dir: str
    output_plt: Path
    base_plts: tuple[str, ...]
    strict_prefix: bool


def resolve_settings(
    *,
    output_plt: Path | str | None = None,
    base_plts: Path | str | Iterable | None = None,
    ebin_dirs: Sequence[Path | str] | None = None,
    loaded_snapshot: Path | str | None = None,
    otp_lib_dir: str | None = None,
    strict_prefix: bool | None = None,
    engine: AnalysisEngine | None = None,
    registry: ModuleRegistry | None = None,
    config: Config | None = None,
) -> RuntimeSettings:
    """Fill every argument left as None from the stored configuration."""

    cfg = config if config is not None else load_config()
    if registry is None:
        registry = _resolve_registry(ebin_dirs, loaded_snapshot, cfg)
    if engine is None:
        engine = DialyzerEngine(executable=resolve_dialyzer(cfg.dialyzer), timeout=cfg.timeout)
    lib_dir = otp_lib_dir or resolve_otp_lib_dir(cfg.otp_lib_dir)
    if not lib_dir:
        lib_dir = detect_otp_lib_dir(cfg.erl)
    plts = normalize_base_plts(base_plts) if base_plts is not None else tuple(cfg.base_plts)
    return RuntimeSettings(
        engine=engine,
        registry=registry,
        otp_lib_dir=lib_dir,
        output_plt=(
            Path(output_plt).expanduser()
            if output_plt is not None
            else resolve_output_plt(cfg.output_plt)
        ),
        base_plts=plts,
        strict_prefix=cfg.strict_prefix if strict_prefix is None else bool(strict_prefix),
    )


def _resolve_registry(
    ebin_dirs: Sequence[Path | str] | None,
    loaded_snapshot: Path | str | None,
    cfg: Config,
) -> ModuleRegistry:
    if loaded_snapshot is not None:
        try:
            return load_registry_snapshot(loaded_snapshot)
        except (OSError, ValueError) as exc:
            raise PltSyncConfigError(
                Messages.ERROR_SNAPSHOT_LOAD.format(path=loaded_snapshot, reason=exc)
            ) from exc
    directories = list(ebin_dirs) if ebin_dirs else list(cfg.ebin_dirs)
    if not directories:
        raise PltSyncConfigError(Messages.ERROR_NO_MODULE_SOURCE)
    return EbinModuleRegistry(directories)


def run_analysis(
    modules: Iterable[str] | str | None = None,
    **kwargs,
) -> list[Diagnostic]:
    """Synchronize the PLT and return diagnostics for ``modules`` (all when None)."""

    settings = resolve_settings(**kwargs)
    return pipeline.run(
        settings.base_plts,
        settings.output_plt,
        normalize_selector(modules),
        engine=settings.engine,
        registry=settings.registry,
        otp_lib_dir=settings.otp_lib_dir,
        strict_prefix=settings.strict_prefix,
    )


def sync_plt(**kwargs) -> SyncResult:
    """Synchronize the PLT without checking it."""

    settings = resolve_settings(**kwargs)
    return pipeline.sync(
        settings.base_plts,
        settings.output_plt,
        engine=settings.engine,
        registry=settings.registry,
        otp_lib_dir=settings.otp_lib_dir,
        strict_prefix=settings.strict_prefix,
    )


def plt_files(
    plt: Path | str | None = None,
    *,
    engine: AnalysisEngine | None = None,
    config: Config | None = None,
) -> list[str]:
    """Return the sorted files recorded in ``plt``."""

    cfg = config if config is not None else load_config()
    plt_path = Path(plt).expanduser() if plt is not None else resolve_output_plt(cfg.output_plt)
    if not plt_path.is_file():
        raise PltSyncConfigError(Messages.ERROR_PLT_MISSING.format(plt=plt_path))
    if engine is None:
        engine = DialyzerEngine(executable=resolve_dialyzer(cfg.dialyzer), timeout=cfg.timeout)
    return sorted(engine.included_files(os.fspath(plt_path)))
