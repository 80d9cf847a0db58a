"""Select the project-owned, file-backed artifacts among the loaded ones."""

from __future__ import annotations

import logging
import os
from typing import Iterable

from ..errors import ClassificationError
from ..models import BEAM_EXTENSION, LoadedArtifact, is_preloaded

logger = logging.getLogger(__name__)


def _under_root(path: str, root: str, *, strict: bool) -> bool:
    if not strict:
        # Plain text prefix: "/opt/lib" also covers "/opt/library-x/m.beam".
        return path.startswith(root)
    trimmed = root.rstrip("/\\") or root
    if path == trimmed:
        return True
    return path.startswith(trimmed + "/") or path.startswith(trimmed + os.sep)


def _origin_path(artifact: LoadedArtifact) -> str | None:
    origin = artifact.origin
    if is_preloaded(origin):
        return None
    if not isinstance(origin, str):
        raise ClassificationError(artifact.identifier, origin)
    return origin


def classify(
    standard_library_root: str,
    loaded_artifacts: Iterable[LoadedArtifact],
    *,
    strict_prefix: bool = False,
) -> frozenset[str]:
    """Return beam files of loaded artifacts that live outside the standard library."""

    files: set[str] = set()
    for artifact in loaded_artifacts:
        try:
            path = _origin_path(artifact)
        except ClassificationError as exc:
            logger.debug("Skipping artifact: %s", exc)
            continue
        if path is None:
            continue
        if os.path.splitext(path)[1] != BEAM_EXTENSION:
            continue
        if _under_root(path, standard_library_root, strict=strict_prefix):
            continue
        files.add(path)
    return frozenset(files)
