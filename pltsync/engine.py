"""Analysis engine operations and the Dialyzer command line adapter."""

from __future__ import annotations

import logging
import re
import subprocess
from dataclasses import dataclass, field
from typing import Iterable, Protocol, Sequence, Union

from .errors import CacheStateInconsistency, EngineInvocationError
from .models import DiagnosticRecord
from .text import Messages

logger = logging.getLogger(__name__)

DEFAULT_DIALYZER = "dialyzer"
DEFAULT_ERL = "erl"
# dialyzer exits with 2 when the analysis succeeded but emitted warnings
_EXIT_OK = 0
_EXIT_WARNINGS = 2

_WARNING_LINE = re.compile(r"^(?P<file>.+?):(?P<line>\d+)(?::\d+)?: (?P<message>.*)$")
_PLT_INFO_HEADER = re.compile(r"includes the following files:", re.IGNORECASE)
_QUOTED_PATH = re.compile(r"\"((?:[^\"\\]|\\.)*)\"|'((?:[^'\\]|\\.)*)'")
_PROGRESS_LINE = re.compile(
    r"^\s*(?:done\b|Proceeding with|Checking whether|Compiling some key modules"
    r"|Creating PLT|Adding information|Removing information|Unknown (?:functions|types):)"
)


def _frozen(files: Iterable[str]) -> tuple[str, ...]:
    return tuple(sorted(set(files)))


@dataclass(frozen=True, slots=True)
class BuildPlt:
    files: tuple[str, ...]
    output_plt: str
    plts: tuple[str, ...] = ()
    analysis_type = "plt_build"


@dataclass(frozen=True, slots=True)
class AddToPlt:
    files: tuple[str, ...]
    init_plt: str
    output_plt: str
    analysis_type = "plt_add"


@dataclass(frozen=True, slots=True)
class RemoveFromPlt:
    files: tuple[str, ...]
    init_plt: str
    output_plt: str
    analysis_type = "plt_remove"


@dataclass(frozen=True, slots=True)
class CheckPlt:
    files: tuple[str, ...]
    init_plt: str
    output_plt: str
    analysis_type = "plt_check"


EngineOperation = Union[BuildPlt, AddToPlt, RemoveFromPlt, CheckPlt]


def build_plt(files: Iterable[str], output_plt: str, plts: Iterable[str] = ()) -> BuildPlt:
    return BuildPlt(files=_frozen(files), output_plt=output_plt, plts=tuple(plts))


def add_to_plt(files: Iterable[str], plt: str) -> AddToPlt:
    return AddToPlt(files=_frozen(files), init_plt=plt, output_plt=plt)


def remove_from_plt(files: Iterable[str], plt: str) -> RemoveFromPlt:
    return RemoveFromPlt(files=_frozen(files), init_plt=plt, output_plt=plt)


def check_plt(files: Iterable[str], plt: str) -> CheckPlt:
    return CheckPlt(files=_frozen(files), init_plt=plt, output_plt=plt)


class AnalysisEngine(Protocol):
    def run(self, operation: EngineOperation) -> list[DiagnosticRecord]:
        raise NotImplementedError

    def included_files(self, plt: str) -> frozenset[str]:
        raise NotImplementedError

    def format_warning(self, record: DiagnosticRecord) -> str:
        raise NotImplementedError


def build_command(executable: str, operation: EngineOperation) -> list[str]:
    """Return the dialyzer argv that carries out ``operation``."""

    if isinstance(operation, BuildPlt):
        command = [executable, "--build_plt", "--output_plt", operation.output_plt]
        if operation.plts:
            command.append("--plts")
            command.extend(operation.plts)
    elif isinstance(operation, AddToPlt):
        command = [
            executable,
            "--add_to_plt",
            "--plt",
            operation.init_plt,
            "--output_plt",
            operation.output_plt,
        ]
    elif isinstance(operation, RemoveFromPlt):
        command = [
            executable,
            "--remove_from_plt",
            "--plt",
            operation.init_plt,
            "--output_plt",
            operation.output_plt,
        ]
    elif isinstance(operation, CheckPlt):
        command = [
            executable,
            "--plt",
            operation.init_plt,
            "--fullpath",
            "--no_check_plt",
            "--quiet",
        ]
    else:
        raise TypeError(f"Unsupported engine operation: {operation!r}")
    command.append("--")
    command.extend(operation.files)
    return command


def parse_warnings(text: str) -> list[DiagnosticRecord]:
    """Parse dialyzer's ``file:line: message`` output into records.

    Indented lines continue the preceding warning's message. A progress
    line or a section header such as ``Unknown functions:`` ends it, and the
    indented lines listed under such a header are dropped.
    """

    records: list[DiagnosticRecord] = []
    current: dict | None = None
    for raw_line in text.splitlines():
        if not raw_line.strip():
            continue
        if _PROGRESS_LINE.match(raw_line):
            if current is not None:
                records.append(_record_from(current))
            current = None
            continue
        match = _WARNING_LINE.match(raw_line)
        if match and not raw_line[:1].isspace():
            if current is not None:
                records.append(_record_from(current))
            current = {
                "file": match.group("file"),
                "line": int(match.group("line")),
                "message": [match.group("message").strip()],
            }
            continue
        if current is not None and raw_line[:1].isspace():
            current["message"].append(raw_line.strip())
    if current is not None:
        records.append(_record_from(current))
    return records


def _record_from(entry: dict) -> DiagnosticRecord:
    return DiagnosticRecord(
        kind="warning",
        file=entry["file"],
        line=entry["line"],
        payload=" ".join(part for part in entry["message"] if part),
    )


def parse_plt_info(plt: str, text: str) -> frozenset[str]:
    """Return the file paths listed by ``dialyzer --plt_info``."""

    header = _PLT_INFO_HEADER.search(text)
    if header is None:
        raise CacheStateInconsistency(plt, Messages.ERROR_PLT_INFO_HEADER)
    body = text[header.end() :]
    files: set[str] = set()
    for match in _QUOTED_PATH.finditer(body):
        value = match.group(1) if match.group(1) is not None else match.group(2)
        files.add(value.replace('\\"', '"').replace("\\'", "'").replace("\\\\", "\\"))
    return frozenset(files)


@dataclass(slots=True)
class DialyzerEngine:
    """Run dialyzer as a subprocess for every engine primitive."""

    executable: str = DEFAULT_DIALYZER
    timeout: float | None = None
    extra_args: tuple[str, ...] = field(default_factory=tuple)

    def run(self, operation: EngineOperation) -> list[DiagnosticRecord]:
        if isinstance(operation, CheckPlt) and not operation.files:
            logger.debug("Nothing to check in %s", operation.init_plt)
            return []
        command = build_command(self.executable, operation)
        if self.extra_args:
            command[1:1] = list(self.extra_args)
        completed = self._invoke(operation.analysis_type, command)
        if isinstance(operation, CheckPlt):
            return parse_warnings(completed.stdout)
        return []

    def included_files(self, plt: str) -> frozenset[str]:
        command = [self.executable, "--plt_info", "--plt", plt]
        try:
            completed = self._invoke("plt_info", command)
        except EngineInvocationError as exc:
            raise CacheStateInconsistency(plt, exc.reason) from exc
        return parse_plt_info(plt, completed.stdout)

    def format_warning(self, record: DiagnosticRecord) -> str:
        return str(record.payload)

    def _invoke(self, operation: str, command: Sequence[str]) -> subprocess.CompletedProcess:
        logger.debug("Running %s: %s", operation, " ".join(command))
        try:
            completed = subprocess.run(
                list(command),
                check=False,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise EngineInvocationError(
                operation,
                Messages.ERROR_ENGINE_MISSING.format(executable=command[0]),
                command=command,
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise EngineInvocationError(
                operation,
                Messages.ERROR_ENGINE_TIMEOUT.format(timeout=self.timeout),
                command=command,
            ) from exc
        if completed.returncode not in (_EXIT_OK, _EXIT_WARNINGS):
            output = (completed.stderr or "") + (completed.stdout or "")
            raise EngineInvocationError(
                operation,
                Messages.ERROR_ENGINE_EXIT.format(
                    code=completed.returncode,
                    detail=_last_line(output),
                ),
                command=command,
                returncode=completed.returncode,
                output=output,
            )
        return completed


def _last_line(output: str) -> str:
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    return lines[-1] if lines else "no output"


def detect_otp_lib_dir(erl: str = DEFAULT_ERL, *, timeout: float = 30.0) -> str:
    """Ask the Erlang runtime for its library root (``code:lib_dir()``)."""

    command = [
        erl,
        "-noshell",
        "-eval",
        'io:format("~s", [code:lib_dir()]), halt().',
    ]
    try:
        completed = subprocess.run(
            command,
            check=False,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as exc:
        raise EngineInvocationError(
            "lib_dir",
            Messages.ERROR_ENGINE_MISSING.format(executable=erl),
            command=command,
        ) from exc
    except subprocess.TimeoutExpired as exc:
        raise EngineInvocationError(
            "lib_dir",
            Messages.ERROR_ENGINE_TIMEOUT.format(timeout=timeout),
            command=command,
        ) from exc
    lib_dir = completed.stdout.strip()
    if completed.returncode != 0 or not lib_dir:
        raise EngineInvocationError(
            "lib_dir",
            Messages.ERROR_ENGINE_EXIT.format(
                code=completed.returncode,
                detail=_last_line(completed.stderr or completed.stdout),
            ),
            command=command,
            returncode=completed.returncode,
        )
    return lib_dir
