"""Helpers for formatting CLI output safely across terminals."""

from __future__ import annotations

import sys

from rich.console import Console

from .models import Diagnostic


def _encoding_supports(text: str, encoding: str | None) -> bool:
    if not encoding:
        return False
    try:
        text.encode(encoding)
    except (LookupError, UnicodeEncodeError):
        return False
    return True


def supports_unicode_output(console: Console | None = None) -> bool:
    sample = "✓✗"
    if console is not None and _encoding_supports(sample, console.encoding):
        return True
    return _encoding_supports(sample, sys.stdout.encoding)


def format_status_icon(passed: bool, console: Console | None = None) -> str:
    if supports_unicode_output(console):
        return "[green]✓[/green]" if passed else "[red]✗[/red]"
    return "[green]OK[/green]" if passed else "[red]X[/red]"


def format_location(diagnostic: Diagnostic) -> str:
    return f"{diagnostic.file}:{diagnostic.line}"


def format_porcelain(diagnostic: Diagnostic) -> str:
    """Return a single ``file:line: severity: message`` line, as compilers print."""
    message = " ".join(diagnostic.message.split())
    return f"{format_location(diagnostic)}: {diagnostic.severity.value}: {message}"
