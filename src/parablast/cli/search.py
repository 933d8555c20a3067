"""
Search commands: run batched BLAST searches and inspect merged results.

Query sequences are split into batches that are searched concurrently,
and the per-batch XML outputs are merged into one BLAST XML document.
"""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from parablast.cli.utils import (
    QuietConsole,
    configure_logging,
    exit_with_error,
    parse_option_pairs,
    spinner_progress,
)
from parablast.core.exceptions import ParablastError
from parablast.core.io_utils import write_dataframe
from parablast.core.partition import partition_records
from parablast.core.records import read_records
from parablast.core.runner import BatchArtifact
from parablast.core.search import check_database, run_search
from parablast.external.blast import BlastProgram
from parablast.models.config import SearchConfig, SearchParameters
from parablast.results.reader import SearchResult
from parablast.results.tabulate import tabulate_hits

app = typer.Typer(
    name="search",
    help="Run batched BLAST searches and inspect merged results",
    no_args_is_help=True,
)

console = Console()

OUTPUT_FORMATS = ("csv", "tsv", "parquet")


def _build_config(
    config_file: Path | None,
    batch_size: int | None,
    workers: int | None,
    timeout: float | None,
    temp_dir: Path | None,
) -> SearchConfig:
    """Load execution settings, letting explicit CLI flags win over the file."""
    config = SearchConfig.from_yaml(config_file) if config_file else SearchConfig()
    overrides = {
        "batch_size": batch_size,
        "max_workers": workers,
        "timeout": timeout,
        "temp_dir": temp_dir,
    }
    updates = {key: value for key, value in overrides.items() if value is not None}
    if not updates:
        return config
    # Re-validate through the constructor; model_copy skips validators
    return SearchConfig(**{**config.model_dump(), **updates})


@app.command(name="run")
def run(
    query: Path = typer.Option(
        ...,
        "--query", "-i",
        help="Query sequences (FASTA, FASTQ or GenBank)",
        exists=True,
        dir_okay=False,
    ),
    database: Path = typer.Option(
        ...,
        "--db", "-d",
        help="BLAST database path or prefix (bare names are resolved via BLASTDB)",
    ),
    output: Path = typer.Option(
        ...,
        "--output", "-o",
        help="Merged BLAST XML output file",
    ),
    program: str = typer.Option(
        "blastp",
        "--program", "-p",
        help="BLAST+ program (blastp, blastn, blastx, tblastn, tblastx)",
    ),
    batch_size: int | None = typer.Option(
        None,
        "--batch-size", "-b",
        help="Query records per BLAST process [default: 1000]",
    ),
    workers: int | None = typer.Option(
        None,
        "--workers", "-w",
        help="Maximum concurrent BLAST processes [default: one per batch]",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        help="Per-batch time limit in seconds",
    ),
    option: list[str] | None = typer.Option(
        None,
        "--option", "-O",
        help="Extra BLAST flag as key=value (repeatable), e.g. -O evalue=1e-5",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config", "-c",
        help="YAML file with an 'execution' section",
        exists=True,
        dir_okay=False,
    ),
    temp_dir: Path | None = typer.Option(
        None,
        "--temp-dir",
        help="Directory for temporary batch files",
        exists=True,
        file_okay=False,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose output",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet", "-q",
        help="Suppress progress output",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show the batch plan and first command without executing",
    ),
) -> None:
    """
    Search query sequences against a BLAST database in parallel batches.

    Each batch is searched by its own BLAST process writing XML output.
    The outputs are merged into a single document with one header and
    every query's results in input order.

    Example:

        parablast search run -i queries.fasta -d db/swissprot -o merged.xml \\
            -p blastp -b 500 -w 8 -O evalue=1e-5
    """
    out = QuietConsole(console, quiet=quiet)
    configure_logging(verbose, console)

    try:
        config = _build_config(config_file, batch_size, workers, timeout, temp_dir)
        params = SearchParameters(
            program=program,
            database=database,
            options=parse_option_pairs(option or []),
        )
    except ParablastError as e:
        exit_with_error(console, e)
    except ValidationError as e:
        console.print("\n[red]Error: Invalid search settings[/red]")
        console.print(str(e), markup=False)
        raise typer.Exit(code=1) from None

    out.print("\n[bold blue]Parablast Search[/bold blue]\n")
    out.print(f"  Query:      {query}")
    out.print(f"  Database:   {database}")
    out.print(f"  Program:    {params.program}")
    out.print(f"  Batch size: {config.batch_size}")
    out.print(f"  Workers:    {config.max_workers or 'one per batch'}")
    out.print(f"  Output:     {output}\n")

    if dry_run:
        try:
            check_database(params.database)
            batch_count = sum(
                1 for _ in partition_records(read_records(query), config.batch_size)
            )
            result = BlastProgram(params.program).run(
                dry_run=True,
                query=Path("query_batch.fasta"),
                database=params.database,
                output=Path("result_batch.xml"),
                options=params.options,
            )
        except ParablastError as e:
            exit_with_error(console, e)
        out.print(f"[dim]Batches: {batch_count}[/dim]")
        out.print(f"[dim]Command: {result.command_string}[/dim]")
        out.print("\n[yellow][dry-run] No searches executed[/yellow]")
        return

    output.parent.mkdir(parents=True, exist_ok=True)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console if not quiet else None,
        disable=quiet,
    ) as progress:
        task_id = progress.add_task(description="Searching batches...", total=None)

        def on_batch_complete(artifact: BatchArtifact, completed: int, total: int) -> None:
            progress.update(task_id, completed=completed, total=total)

        try:
            merged = run_search(
                read_records(query),
                output,
                params,
                config,
                on_batch_complete=on_batch_complete,
            )
        except ParablastError as e:
            progress.stop()
            exit_with_error(console, e)

    out.print(f"\n[bold green]Search complete![/bold green] Results: {merged.path}\n")


@app.command(name="show")
def show(
    result: Path = typer.Option(
        ...,
        "--result", "-r",
        help="Merged BLAST XML file",
        exists=True,
        dir_okay=False,
    ),
    query_id: str | None = typer.Option(
        None,
        "--query-id",
        help="Only show this query",
    ),
    limit: int | None = typer.Option(
        None,
        "--limit", "-n",
        help="Show at most this many queries",
        min=1,
    ),
) -> None:
    """
    Print the top hit and its alignment for each query.
    """
    search_result = SearchResult(result)
    try:
        if query_id is not None:
            iteration = search_result.get_iteration(query_id)
            if iteration is None:
                console.print(f"[red]Error: Query not found: {escape(query_id)}[/red]")
                raise typer.Exit(code=1)
            console.print(f"[bold]Query: {escape(iteration.query_id)}[/bold]")
            console.print(iteration.top_hit().hit_string(), markup=False, highlight=False)
            return

        with search_result.iterations() as iterations:
            for shown, iteration in enumerate(iterations):
                if limit is not None and shown >= limit:
                    break
                console.print(f"[bold]Query: {escape(iteration.query_id)}[/bold]")
                console.print(
                    iteration.top_hit().hit_string(), markup=False, highlight=False
                )
    except ParablastError as e:
        exit_with_error(console, e)


@app.command(name="tabulate")
def tabulate(
    result: Path = typer.Option(
        ...,
        "--result", "-r",
        help="Merged BLAST XML file",
        exists=True,
        dir_okay=False,
    ),
    output: Path = typer.Option(
        ...,
        "--output", "-o",
        help="Output table file",
    ),
    output_format: str = typer.Option(
        "csv",
        "--format", "-f",
        help="Output format: csv, tsv or parquet",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet", "-q",
        help="Suppress progress output",
    ),
) -> None:
    """
    Write one row per query/hit pair with top-alignment statistics.
    """
    out = QuietConsole(console, quiet=quiet)
    if output_format not in OUTPUT_FORMATS:
        console.print(
            f"[red]Error: Invalid format '{output_format}'. "
            f"Choose from: {', '.join(OUTPUT_FORMATS)}[/red]"
        )
        raise typer.Exit(code=1) from None

    try:
        with spinner_progress("Reading results...", console=console, quiet=quiet):
            df = tabulate_hits(SearchResult(result))
    except ParablastError as e:
        exit_with_error(console, e)

    output.parent.mkdir(parents=True, exist_ok=True)
    write_dataframe(df, output, output_format)  # type: ignore[arg-type]
    out.print(f"[green]Wrote {df.height} rows to {output}[/green]")
