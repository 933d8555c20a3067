"""
Execution of one BLAST invocation for one batch of query records.

The runner owns both temporary files of its batch: the FASTA query file
is always deleted before returning, and the XML output file is deleted
on every failure path. On success the output file is handed to the
caller, who becomes responsible for deleting it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from parablast.core.io_utils import discard_file, make_temp_file, temporary_file
from parablast.core.records import SequenceRecord, write_fasta
from parablast.external.base import (
    CancellationToken,
    ExternalTool,
    ExternalToolError,
    ProcessSpawnError,
)
from parablast.external.blast import BlastProgram
from parablast.models.config import SearchConfig, SearchParameters

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchArtifact:
    """Location of one batch's BLAST XML output.

    Attributes:
        index: Zero-based batch position in the search.
        path: XML output file (owned by the caller once returned).
        record_count: Number of query records in the batch.
        elapsed_seconds: Wall-clock time of the BLAST process.
    """

    index: int
    path: Path
    record_count: int
    elapsed_seconds: float


class BatchRunner:
    """Runs the configured BLAST program against single batches.

    Instances are safe to call from several threads at once: each call
    creates its own temporary files and child process.

    Example:
        >>> runner = BatchRunner(params, SearchConfig())
        >>> artifact = runner(0, batch)
    """

    def __init__(
        self,
        params: SearchParameters,
        config: SearchConfig,
        *,
        cancel_token: CancellationToken | None = None,
        tool: ExternalTool | None = None,
    ):
        self.params = params
        self.config = config
        self.cancel_token = cancel_token
        self.tool = tool or BlastProgram(params.program)

    def __call__(self, index: int, batch: Sequence[SequenceRecord]) -> BatchArtifact:
        return self.run_batch(index, batch)

    def run_batch(self, index: int, batch: Sequence[SequenceRecord]) -> BatchArtifact:
        """Search one batch and return the location of its XML output.

        Raises:
            ProcessSpawnError: If BLAST could not be started.
            ExternalToolError: If BLAST exited with a non-zero status.
            SearchCancelledError: If the cancel token fired.
        """
        if self.cancel_token is not None:
            self.cancel_token.raise_if_cancelled(index)

        temp_dir = self.config.temp_dir
        with temporary_file(f"parablast_q{index:05d}_", ".fasta", temp_dir) as query_path:
            with query_path.open("w") as handle:
                record_count = write_fasta(batch, handle)

            output_path = make_temp_file(f"parablast_r{index:05d}_", ".xml", temp_dir)
            succeeded = False
            try:
                result = self.tool.run(
                    query=query_path,
                    database=self.params.database,
                    output=output_path,
                    options=self.params.options,
                    timeout=self.config.timeout,
                    cancel_token=self.cancel_token,
                )
                if not result.success:
                    raise ExternalToolError(
                        self.tool.tool_name,
                        list(result.command),
                        result.return_code,
                        result.stderr,
                    )
                succeeded = True
            except (ProcessSpawnError, ExternalToolError) as e:
                e.batch_index = index
                raise
            finally:
                if not succeeded:
                    discard_file(output_path)

        logger.debug(
            "Batch %d: %d records searched in %.1fs -> %s",
            index,
            record_count,
            result.elapsed_seconds,
            output_path,
        )
        return BatchArtifact(
            index=index,
            path=output_path,
            record_count=record_count,
            elapsed_seconds=result.elapsed_seconds,
        )
