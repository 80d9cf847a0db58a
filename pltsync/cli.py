"""Command line interface for pltsync."""

from __future__ import annotations

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import NoReturn, Sequence

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from . import __version__
from .api import plt_files, run_analysis, sync_plt
from .config import load_config, resolve_output_plt, update_config
from .errors import PltSyncError
from .models import Diagnostic
from .output import format_location, format_porcelain, format_status_icon
from .services.sync_service import SyncResult, SyncStatus
from .text import Messages, Styles

console = Console()

app = typer.Typer(
    help=Messages.APP_HELP,
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


class OutputFormat(str, Enum):
    rich = "rich"
    porcelain = "porcelain"


def _styled(text: str, style: str) -> str:
    return f"[{style}]{escape(text)}[/{style}]"


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"pltsync v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _fail(message: str, output_format: OutputFormat = OutputFormat.rich) -> NoReturn:
    if output_format == OutputFormat.rich:
        console.print(_styled(message, Styles.ERROR))
    else:
        typer.echo(message, err=True)
    raise typer.Exit(code=1)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(False, "--verbose", help=Messages.HELP_VERBOSE),
) -> None:
    """Global Typer callback for shared options."""
    _configure_logging(verbose)


@app.command("run")
def run_command(
    modules: list[str] | None = typer.Option(
        None,
        "--module",
        "-m",
        help=Messages.HELP_MODULE,
    ),
    plt: Path | None = typer.Option(None, "--plt", "-p", help=Messages.HELP_PLT),
    base_plts: list[Path] | None = typer.Option(
        None,
        "--base-plt",
        "-b",
        help=Messages.HELP_BASE_PLT,
    ),
    ebin_dirs: list[Path] | None = typer.Option(
        None,
        "--ebin",
        "-e",
        help=Messages.HELP_EBIN,
    ),
    loaded: Path | None = typer.Option(None, "--loaded", help=Messages.HELP_LOADED),
    otp_lib_dir: str | None = typer.Option(
        None,
        "--otp-lib-dir",
        help=Messages.HELP_OTP_LIB_DIR,
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.rich,
        "--format",
        help=Messages.HELP_FORMAT,
    ),
) -> None:
    """Synchronize the PLT, check it and print diagnostics."""
    if output_format == OutputFormat.rich:
        console.print(_styled(Messages.INFO_RUN_STARTED, Styles.INFO))
    try:
        diagnostics = run_analysis(
            modules or None,
            output_plt=plt,
            base_plts=base_plts or None,
            ebin_dirs=ebin_dirs or None,
            loaded_snapshot=loaded,
            otp_lib_dir=otp_lib_dir,
        )
    except PltSyncError as exc:
        _fail(str(exc), output_format)
    if output_format == OutputFormat.porcelain:
        _render_porcelain(diagnostics)
        return
    if not diagnostics:
        console.print(_styled(Messages.INFO_NO_DIAGNOSTICS, Styles.SUCCESS))
        return
    _render_diagnostics(diagnostics)


@app.command()
def sync(
    plt: Path | None = typer.Option(None, "--plt", "-p", help=Messages.HELP_PLT),
    base_plts: list[Path] | None = typer.Option(
        None,
        "--base-plt",
        "-b",
        help=Messages.HELP_BASE_PLT,
    ),
    ebin_dirs: list[Path] | None = typer.Option(
        None,
        "--ebin",
        "-e",
        help=Messages.HELP_EBIN,
    ),
    loaded: Path | None = typer.Option(None, "--loaded", help=Messages.HELP_LOADED),
    otp_lib_dir: str | None = typer.Option(
        None,
        "--otp-lib-dir",
        help=Messages.HELP_OTP_LIB_DIR,
    ),
) -> None:
    """Bring the PLT in line with the project's beam files without checking."""
    try:
        result = sync_plt(
            output_plt=plt,
            base_plts=base_plts or None,
            ebin_dirs=ebin_dirs or None,
            loaded_snapshot=loaded,
            otp_lib_dir=otp_lib_dir,
        )
    except PltSyncError as exc:
        _fail(str(exc))
    _render_sync_result(result)


@app.command()
def info(
    plt: Path | None = typer.Option(None, "--plt", "-p", help=Messages.HELP_PLT),
) -> None:
    """List the files recorded in the PLT."""
    try:
        files = plt_files(plt)
    except PltSyncError as exc:
        _fail(str(exc))
    target = plt if plt is not None else resolve_output_plt(load_config().output_plt)
    console.print(_styled(Messages.INFO_PLT_HEADER.format(plt=target), Styles.TITLE))
    if not files:
        console.print(_styled(Messages.INFO_PLT_EMPTY, Styles.WARNING))
        return
    for path in files:
        console.print(path, markup=False, highlight=False)
    console.print(_styled(Messages.INFO_PLT_COUNT.format(count=len(files)), Styles.INFO))


@app.command("config")
def config_command(
    show: bool = typer.Option(False, "--show", help=Messages.HELP_SHOW_CONFIG),
    set_dialyzer: str | None = typer.Option(
        None, "--set-dialyzer", help=Messages.HELP_SET_DIALYZER
    ),
    set_otp_lib_dir: str | None = typer.Option(
        None, "--set-otp-lib-dir", help=Messages.HELP_SET_OTP_LIB_DIR
    ),
    set_plt: str | None = typer.Option(None, "--set-plt", help=Messages.HELP_SET_PLT),
    add_base_plt: list[str] | None = typer.Option(
        None, "--add-base-plt", help=Messages.HELP_ADD_BASE_PLT
    ),
    clear_base_plts: bool = typer.Option(
        False, "--clear-base-plts", help=Messages.HELP_CLEAR_BASE_PLTS
    ),
    add_ebin: list[str] | None = typer.Option(None, "--add-ebin", help=Messages.HELP_ADD_EBIN),
    clear_ebin: bool = typer.Option(False, "--clear-ebin", help=Messages.HELP_CLEAR_EBIN),
    strict_prefix: bool | None = typer.Option(
        None,
        "--strict-prefix/--loose-prefix",
        help=Messages.HELP_STRICT_PREFIX,
    ),
    set_timeout: float | None = typer.Option(
        None, "--set-timeout", help=Messages.HELP_SET_TIMEOUT
    ),
) -> None:
    """Manage pltsync configuration."""
    current = load_config()
    changes: dict[str, object] = {}
    if set_dialyzer is not None:
        changes["dialyzer"] = set_dialyzer
    if set_otp_lib_dir is not None:
        changes["otp_lib_dir"] = set_otp_lib_dir
    if set_plt is not None:
        changes["output_plt"] = set_plt
    if clear_base_plts or add_base_plt:
        base = [] if clear_base_plts else list(current.base_plts)
        changes["base_plts"] = base + list(add_base_plt or [])
    if clear_ebin or add_ebin:
        dirs = [] if clear_ebin else list(current.ebin_dirs)
        changes["ebin_dirs"] = dirs + list(add_ebin or [])
    if strict_prefix is not None:
        changes["strict_prefix"] = strict_prefix
    if set_timeout is not None:
        changes["timeout"] = set_timeout

    if changes:
        try:
            current = update_config(**changes)
        except ValueError as exc:
            _fail(str(exc))
        console.print(_styled(Messages.INFO_CONFIG_SAVED, Styles.SUCCESS))
    if show or not changes:
        console.print(
            _styled(
                Messages.INFO_CONFIG_SUMMARY.format(
                    dialyzer=current.dialyzer,
                    erl=current.erl,
                    otp_lib_dir=current.otp_lib_dir or "auto",
                    plt=resolve_output_plt(current.output_plt),
                    base_plts=_format_list(current.base_plts),
                    ebin_dirs=_format_list(current.ebin_dirs),
                    strict="yes" if current.strict_prefix else "no",
                    timeout=current.timeout if current.timeout is not None else "none",
                ),
                Styles.INFO,
            )
        )


def _format_list(values: Sequence[str]) -> str:
    if not values:
        return "none"
    return ", ".join(values)


def _render_sync_result(result: SyncResult) -> None:
    if result.status == SyncStatus.BUILT:
        message = Messages.INFO_PLT_BUILT.format(plt=result.plt, count=len(result.diff.to_add))
    elif result.status == SyncStatus.UPDATED:
        message = Messages.INFO_PLT_UPDATED.format(
            plt=result.plt,
            added=len(result.diff.to_add),
            removed=len(result.diff.to_remove),
        )
    else:
        message = Messages.INFO_PLT_UP_TO_DATE.format(plt=result.plt)
    console.print(f"{format_status_icon(True, console)} {escape(message)}")


def _render_diagnostics(diagnostics: Sequence[Diagnostic]) -> None:
    table = Table(title=Messages.TABLE_TITLE, header_style=Styles.TABLE_HEADER)
    table.add_column(Messages.TABLE_HEADER_SEVERITY, style=Styles.WARNING, no_wrap=True)
    table.add_column(Messages.TABLE_HEADER_LOCATION, overflow="fold")
    table.add_column(Messages.TABLE_HEADER_MESSAGE, overflow="fold")
    for diagnostic in diagnostics:
        table.add_row(
            diagnostic.severity.value,
            Text(format_location(diagnostic)),
            Text(diagnostic.message),
        )
    console.print(table)
    console.print(
        _styled(Messages.INFO_DIAGNOSTIC_COUNT.format(count=len(diagnostics)), Styles.INFO)
    )


def _render_porcelain(diagnostics: Sequence[Diagnostic]) -> None:
    for diagnostic in diagnostics:
        typer.echo(format_porcelain(diagnostic))


def run(argv: list[str] | None = None) -> None:
    """Entry point wrapper allowing optional argument override."""
    args = list(argv) if argv is not None else sys.argv[1:]
    app(args=args, prog_name="pltsync")
