"""
Database commands: read entries from local BLAST databases.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from parablast.cli.utils import exit_with_error
from parablast.core.exceptions import ParablastError
from parablast.external.blast import get_sequence
from parablast.models.database import BlastDatabase

app = typer.Typer(
    name="db",
    help="Read entries from local BLAST databases",
    no_args_is_help=True,
)

console = Console()


@app.command(name="get")
def get(
    database: Path = typer.Option(
        ...,
        "--db", "-d",
        help="BLAST database path or prefix",
    ),
    molecule_type: str = typer.Option(
        "protein",
        "--type", "-t",
        help="Database type: protein or nucleotide",
    ),
    entry: str = typer.Option(
        ...,
        "--entry", "-e",
        help="Sequence identifier to retrieve",
    ),
) -> None:
    """
    Print one database entry as FASTA using blastdbcmd.
    """
    try:
        db = BlastDatabase.open(database, molecule_type)
        record = get_sequence(db, entry)
    except ParablastError as e:
        exit_with_error(console, e)

    if record is None:
        console.print("[red]Error: No entry identifier given[/red]")
        raise typer.Exit(code=1)

    typer.echo(record.format("fasta"), nl=False)
