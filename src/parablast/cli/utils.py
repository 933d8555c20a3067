"""
Shared CLI utilities for parablast commands.

Provides common functionality used across CLI modules.
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from parablast.core.exceptions import ParablastError
from parablast.external.base import ExternalToolError, ProcessSpawnError


@contextmanager
def spinner_progress(
    description: str,
    console: Console | None = None,
    quiet: bool = False,
) -> Generator[Progress, None, None]:
    """Context manager for spinner-style progress display.

    The spinner is suppressed when quiet mode is enabled.

    Args:
        description: Task description to display.
        console: Rich Console instance. If None and not quiet, creates one.
        quiet: If True, suppress the progress display entirely.

    Yields:
        Progress instance (even when quiet, for API consistency).
    """
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console if not quiet else None,
        disable=quiet,
    ) as progress:
        progress.add_task(description=description, total=None)
        yield progress


def configure_logging(verbose: bool, console: Console | None = None) -> None:
    """Route library log records through Rich when --verbose is given."""
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def parse_option_pairs(pairs: list[str]) -> dict[str, str | None]:
    """Parse ``flag=value`` strings from the command line.

    A pair without ``=`` becomes a bare flag. Leading dashes are optional.

    Example:
        >>> parse_option_pairs(["evalue=1e-5", "-ungapped"])
        {'evalue': '1e-5', '-ungapped': None}
    """
    options: dict[str, str | None] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        options[key] = value if sep else None
    return options


def exit_with_error(console: Console, error: ParablastError) -> NoReturn:
    """Print a parablast error with its suggestion and exit with code 1."""
    console.print(f"\n[red]Error: {escape(error.message)}[/red]")
    if isinstance(error, (ProcessSpawnError, ExternalToolError)) and error.batch_index is not None:
        console.print(f"[red]Failed batch: {error.batch_index}[/red]")
    if error.suggestion:
        console.print(f"\n[dim]{escape(error.suggestion)}[/dim]")
    raise typer.Exit(code=1) from None


class QuietConsole:
    """Console wrapper that suppresses output in quiet mode.

    This class wraps a Rich Console instance and conditionally suppresses
    print output when quiet mode is enabled. All other console methods
    are delegated to the wrapped instance.
    """

    def __init__(self, console: Console, quiet: bool = False):
        self._console = console
        self._quiet = quiet

    @property
    def console(self) -> Console:
        """Access the underlying Rich Console instance."""
        return self._console

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Print to console unless quiet mode is enabled."""
        if not self._quiet:
            self._console.print(*args, **kwargs)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._console, name)
