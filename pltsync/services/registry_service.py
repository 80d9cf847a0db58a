"""Sources of the loaded-module snapshot consumed by the pipeline."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Protocol, Sequence

from ..models import BEAM_EXTENSION, PRELOADED, LoadedArtifact, Origin
from ..text import Messages

logger = logging.getLogger(__name__)

PRELOADED_MARKERS = frozenset({"preloaded", "cover_compiled"})


class ModuleRegistry(Protocol):
    def all_loaded(self) -> list[LoadedArtifact]:
        raise NotImplementedError

    def origin_of(self, identifier: str) -> Origin | None:
        """Return the origin of a loaded module, or None when it is not loaded."""
        raise NotImplementedError


class StaticModuleRegistry:
    """Registry backed by a fixed snapshot."""

    def __init__(self, artifacts: Iterable[LoadedArtifact]) -> None:
        self._artifacts: dict[str, LoadedArtifact] = {}
        for artifact in artifacts:
            self._artifacts.setdefault(artifact.identifier, artifact)

    def all_loaded(self) -> list[LoadedArtifact]:
        return list(self._artifacts.values())

    def origin_of(self, identifier: str) -> Origin | None:
        artifact = self._artifacts.get(identifier)
        return None if artifact is None else artifact.origin


class EbinModuleRegistry(StaticModuleRegistry):
    """Treat every beam file under the given ebin directories as loaded."""

    def __init__(self, directories: Sequence[Path | str]) -> None:
        self.directories = tuple(Path(item).expanduser().resolve() for item in directories)
        super().__init__(self._scan())

    def _scan(self) -> list[LoadedArtifact]:
        artifacts: list[LoadedArtifact] = []
        for directory in self.directories:
            if not directory.is_dir():
                logger.debug("Skipping missing ebin directory %s", directory)
                continue
            for beam in sorted(directory.glob(f"*{BEAM_EXTENSION}")):
                if beam.is_file():
                    artifacts.append(LoadedArtifact(beam.stem, str(beam)))
        return artifacts


def _coerce_origin(value: object) -> object:
    if value is None:
        return PRELOADED
    if isinstance(value, str) and value.strip().lower() in PRELOADED_MARKERS:
        return PRELOADED
    return value


def registry_from_mapping(payload: object) -> StaticModuleRegistry:
    """Build a registry from ``{module: origin}`` as dumped by a running node.

    Origins other than strings are kept as-is so the classifier can skip them.
    """

    if not isinstance(payload, dict):
        raise ValueError(Messages.ERROR_SNAPSHOT_INVALID)
    return StaticModuleRegistry(
        LoadedArtifact(str(name), _coerce_origin(origin))  # type: ignore[arg-type]
        for name, origin in payload.items()
    )


def load_registry_snapshot(path: Path | str) -> StaticModuleRegistry:
    snapshot = Path(path).expanduser()
    try:
        payload = json.loads(snapshot.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(Messages.ERROR_SNAPSHOT_INVALID) from exc
    return registry_from_mapping(payload)
