"""
I/O utilities for temporary artifacts and DataFrame serialization.

Temporary files are handed out through context managers so every exit
path, including errors and cancellation, deletes them exactly once.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Literal

import polars as pl

logger = logging.getLogger(__name__)

OutputFormat = Literal["csv", "tsv", "parquet"]


def make_temp_file(
    prefix: str,
    suffix: str = "",
    directory: Path | None = None,
) -> Path:
    """Create an empty, uniquely named temporary file and return its path.

    The caller owns the file and must remove it with ``discard_file``.
    """
    fd, name = tempfile.mkstemp(
        prefix=prefix,
        suffix=suffix,
        dir=str(directory) if directory is not None else None,
    )
    os.close(fd)
    return Path(name)


def discard_file(path: Path) -> None:
    """Delete a temporary file, logging instead of raising on failure.

    Cleanup runs on error paths, where raising here would hide the
    original exception.
    """
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not delete temporary file %s: %s", path, e)
    else:
        logger.debug("Deleted temporary file %s", path)


@contextmanager
def temporary_file(
    prefix: str,
    suffix: str = "",
    directory: Path | None = None,
) -> Generator[Path, None, None]:
    """Context manager for a temporary file deleted on exit.

    Example:
        >>> with temporary_file("batch_", ".fasta") as path:
        ...     path.write_text(">q1\\nACGT\\n")
    """
    path = make_temp_file(prefix, suffix, directory)
    try:
        yield path
    finally:
        discard_file(path)


def write_dataframe(
    df: pl.DataFrame,
    path: Path,
    output_format: OutputFormat = "csv",
) -> None:
    """
    Write DataFrame to file in specified format.

    For Parquet output, uses zstd compression.

    Args:
        df: Polars DataFrame to write.
        path: Output file path.
        output_format: Output format - 'csv', 'tsv' or 'parquet'.
    """
    if output_format == "parquet":
        df.write_parquet(path, compression="zstd")
    elif output_format == "tsv":
        df.write_csv(path, separator="\t")
    else:
        df.write_csv(path)
