"""
Main CLI entry point for parablast.

Provides subcommands for:
- search: Run batched BLAST searches and inspect merged results
- db: Read entries from local BLAST databases
- fetch: Retrieve records from NCBI by accession
"""

from __future__ import annotations

import typer
from rich import print as rprint
from rich.console import Console

from parablast import __version__

app = typer.Typer(
    name="parablast",
    help="Parallel batched BLAST searches with merged, streamable results",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        rprint(f"parablast version {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """
    Parablast: run BLAST over large query sets in parallel batches.

    Query sequences are split into batches, each batch is searched by its
    own BLAST process, and the per-batch XML results are merged into one
    document that can be read as if a single search had been run.
    """


# Import subcommands
from parablast.cli import db, fetch, search

# Register subcommands
app.add_typer(search.app, name="search")
app.add_typer(db.app, name="db")
app.command(name="fetch")(fetch.fetch_records)


if __name__ == "__main__":
    app()
