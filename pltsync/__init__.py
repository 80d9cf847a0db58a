"""pltsync package initialization."""

from __future__ import annotations

from .api import plt_files, run_analysis, sync_plt
from .errors import (
    CacheStateInconsistency,
    CheckError,
    EngineInvocationError,
    PltSyncConfigError,
    PltSyncError,
    SynchronizationError,
)
from .models import ALL, PRELOADED, Diagnostic, DiagnosticRecord, LoadedArtifact

__all__ = [
    "__version__",
    "ALL",
    "PRELOADED",
    "CacheStateInconsistency",
    "CheckError",
    "Diagnostic",
    "DiagnosticRecord",
    "EngineInvocationError",
    "LoadedArtifact",
    "PltSyncConfigError",
    "PltSyncError",
    "SynchronizationError",
    "get_version",
    "plt_files",
    "run_analysis",
    "sync_plt",
]

__version__ = "0.1.0"


def get_version() -> str:
    """Return the current package version."""
    return __version__
