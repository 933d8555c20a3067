"""
Top-level batched BLAST search.

Runs the whole pipeline for one search: records are cut into batches,
every batch is searched by its own BLAST process, and the per-batch XML
documents are merged into a single result file. Every temporary file is
gone by the time ``run_search`` returns or raises.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Generator, Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path

from parablast.core.dispatch import ProgressCallback, dispatch_batches
from parablast.core.exceptions import NotFoundError
from parablast.core.io_utils import discard_file, temporary_file
from parablast.core.merge import merge_results
from parablast.core.partition import partition_records
from parablast.core.records import SequenceRecord
from parablast.core.runner import BatchArtifact, BatchRunner
from parablast.external.base import CancellationToken
from parablast.models.config import SearchConfig, SearchParameters
from parablast.models.database import database_exists
from parablast.results.reader import SearchResult
from parablast.results.views import IterationView

logger = logging.getLogger(__name__)


def check_database(database: Path) -> None:
    """Fail early when a database given as a path does not exist.

    Bare names (``swissprot``) are resolved by BLAST through the BLASTDB
    environment variable and are not checked here.
    """
    if database.parent == Path("."):
        return
    if not database_exists(database):
        raise NotFoundError(
            "BLAST database",
            database,
            "Build the database with makeblastdb or check the path prefix.",
        )


def run_search(
    records: Iterable[SequenceRecord],
    output: Path,
    params: SearchParameters,
    config: SearchConfig | None = None,
    *,
    cancel_token: CancellationToken | None = None,
    on_batch_complete: ProgressCallback | None = None,
) -> SearchResult:
    """
    Search all records and write the merged BLAST XML to ``output``.

    Args:
        records: Query records in search order.
        output: Destination of the merged document.
        params: Program, database and tool options shared by all batches.
        config: Batch size, parallelism, timeout and temp directory.
        cancel_token: Cancelling it kills running BLAST processes.
        on_batch_complete: Progress callback, see ``dispatch_batches``.

    Returns:
        SearchResult for ``output``; the caller owns the file.

    Raises:
        NotFoundError: If the database path does not exist.
        ProcessSpawnError: If BLAST could not be started for a batch.
        ExternalToolError: If BLAST failed for a batch.
        MalformedResultError: If a batch output could not be merged.
        SearchCancelledError: If cancel_token fired.
    """
    return _search(
        records,
        output,
        params,
        config or SearchConfig(),
        cancel_token=cancel_token,
        on_batch_complete=on_batch_complete,
        discard_output_on_failure=True,
    )


def _search(
    records: Iterable[SequenceRecord],
    output: Path,
    params: SearchParameters,
    config: SearchConfig,
    *,
    cancel_token: CancellationToken | None,
    on_batch_complete: ProgressCallback | None,
    discard_output_on_failure: bool,
) -> SearchResult:
    """Partition, dispatch and merge into ``output``.

    A partly written ``output`` is deleted on failure only when
    ``discard_output_on_failure`` is set; otherwise whoever created the
    path is responsible for it.
    """
    check_database(params.database)

    start_time = time.perf_counter()
    runner = BatchRunner(params, config, cancel_token=cancel_token)
    batches = partition_records(records, config.batch_size)

    artifacts: list[BatchArtifact] = dispatch_batches(
        batches,
        runner,
        max_workers=config.max_workers,
        on_complete=on_batch_complete,
    )

    succeeded = False
    try:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        with output.open("w", encoding="utf-8") as handle:
            summary = merge_results(
                [artifact.path for artifact in artifacts],
                handle,
                verify_headers=config.verify_headers,
            )
        succeeded = True
    finally:
        for artifact in artifacts:
            discard_file(artifact.path)
        if not succeeded and discard_output_on_failure:
            discard_file(output)

    logger.info(
        "Searched %d records in %d batches (%d query results) in %.1fs",
        sum(artifact.record_count for artifact in artifacts),
        summary.batches,
        summary.iterations,
        time.perf_counter() - start_time,
    )
    return SearchResult(output)


@contextmanager
def blast_results(
    records: Iterable[SequenceRecord],
    params: SearchParameters,
    config: SearchConfig | None = None,
    *,
    cancel_token: CancellationToken | None = None,
) -> Generator[Iterator[IterationView], None, None]:
    """Run a search into a temporary file and yield its query results.

    The merged file is deleted when the block exits, so views must not be
    used after it.

    Example:
        >>> with blast_results(records, params) as iterations:
        ...     for iteration in iterations:
        ...         print(iteration.top_hit().hit_string())
    """
    config = config or SearchConfig()
    # temporary_file deletes the merged path on every exit
    with temporary_file("parablast_merged_", ".xml", config.temp_dir) as merged:
        result = _search(
            records,
            merged,
            params,
            config,
            cancel_token=cancel_token,
            on_batch_complete=None,
            discard_output_on_failure=False,
        )
        with result.iterations() as iterations:
            yield iterations
