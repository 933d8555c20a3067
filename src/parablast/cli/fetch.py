"""
Fetch command: retrieve sequence records from NCBI by accession.
"""

from __future__ import annotations

import shutil
from pathlib import Path

import typer
from rich.console import Console

from parablast.cli.utils import exit_with_error, spinner_progress
from parablast.clients.entrez import EntrezClient
from parablast.core.exceptions import ParablastError

console = Console(stderr=True)


def fetch_records(
    accessions: list[str] = typer.Argument(
        ...,
        help="Accession or GI identifiers",
    ),
    db: str = typer.Option(
        "protein",
        "--db", "-d",
        help="NCBI database: protein, nuccore, nucest, nucgss or popset",
    ),
    fmt: str = typer.Option(
        "fasta",
        "--format", "-f",
        help="Record format: fasta or xml (GenBank XML)",
    ),
    output: Path | None = typer.Option(
        None,
        "--output", "-o",
        help="Write records to this file instead of standard output",
    ),
    timeout: float = typer.Option(
        60.0,
        "--timeout",
        help="Request timeout in seconds",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet", "-q",
        help="Suppress progress output",
    ),
) -> None:
    """
    Fetch records from NCBI E-utilities.

    Example:

        parablast fetch --db protein --format fasta P12345 Q8HY10 -o seqs.fasta
    """
    try:
        with (
            spinner_progress(
                f"Fetching {len(accessions)} records from {db}...",
                console=console,
                quiet=quiet or output is None,
            ),
            EntrezClient(timeout=timeout) as client,
        ):
            stream = client.fetch(accessions, db, fmt)
    except ParablastError as e:
        exit_with_error(console, e)

    if output is None:
        typer.echo(stream.getvalue(), nl=False)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w") as handle:
        shutil.copyfileobj(stream, handle)
    if not quiet:
        console.print(f"[green]Saved records to {output}[/green]")
