"""Exception hierarchy for PLT synchronization and checking."""

from __future__ import annotations

from typing import Sequence

from .text import Messages


class PltSyncError(Exception):
    """Base class for every error raised by pltsync."""


class PltSyncConfigError(PltSyncError, ValueError):
    """Raised when public API input or configuration is invalid."""


class ClassificationError(PltSyncError):
    """A loaded artifact reported an origin that is neither a path nor preloaded."""

    def __init__(self, identifier: str, origin: object) -> None:
        self.identifier = identifier
        self.origin = origin
        super().__init__(
            Messages.ERROR_ORIGIN_INVALID.format(identifier=identifier, origin=origin)
        )


class EngineInvocationError(PltSyncError):
    """The analysis engine failed to carry out an operation."""

    def __init__(
        self,
        operation: str,
        reason: str,
        *,
        command: Sequence[str] | None = None,
        returncode: int | None = None,
        output: str = "",
    ) -> None:
        self.operation = operation
        self.reason = reason
        self.command = tuple(command or ())
        self.returncode = returncode
        self.output = output
        super().__init__(
            Messages.ERROR_ENGINE_FAILED.format(operation=operation, reason=reason)
        )


class CacheStateInconsistency(PltSyncError):
    """An existing PLT could not be introspected."""

    def __init__(self, plt: str, reason: str) -> None:
        self.plt = plt
        self.reason = reason
        super().__init__(Messages.ERROR_PLT_UNREADABLE.format(plt=plt, reason=reason))


class StageError(PltSyncError):
    """A pipeline stage failed; ``cause`` holds the engine error."""

    stage = "unknown"

    def __init__(self, cause: PltSyncError) -> None:
        self.cause = cause
        super().__init__(
            Messages.ERROR_STAGE_FAILED.format(stage=self.stage, reason=str(cause))
        )


class SynchronizationError(StageError):
    stage = "synchronize"


class CheckError(StageError):
    stage = "check"
