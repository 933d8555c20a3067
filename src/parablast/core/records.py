"""
Query record sources.

Any object with a ``format("fasta")`` method can be searched; Biopython
``SeqRecord`` objects satisfy this directly.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Protocol, TextIO, runtime_checkable

from Bio import SeqIO

from parablast.core.exceptions import NotFoundError

_FORMAT_BY_SUFFIX = {
    ".fa": "fasta",
    ".faa": "fasta",
    ".fna": "fasta",
    ".fasta": "fasta",
    ".fastq": "fastq",
    ".fq": "fastq",
    ".gb": "genbank",
    ".gbk": "genbank",
}


@runtime_checkable
class SequenceRecord(Protocol):
    """A record that can serialize itself as FASTA text."""

    def format(self, format: str) -> str: ...


def write_fasta(records: Iterable[SequenceRecord], handle: TextIO) -> int:
    """Write records to an open text handle in FASTA format.

    Returns:
        Number of records written.
    """
    count = 0
    for record in records:
        text = record.format("fasta")
        handle.write(text if text.endswith("\n") else text + "\n")
        count += 1
    return count


def guess_format(path: Path) -> str:
    """Infer a Bio.SeqIO format name from the file extension (FASTA default)."""
    return _FORMAT_BY_SUFFIX.get(path.suffix.lower(), "fasta")


def read_records(path: Path, file_format: str | None = None) -> Iterator[SequenceRecord]:
    """
    Lazily read sequence records from a file.

    Args:
        path: Sequence file.
        file_format: Bio.SeqIO format name; inferred from the extension if None.

    Raises:
        NotFoundError: If the file does not exist.
    """
    if not path.is_file():
        raise NotFoundError("Sequence file", path)
    return _iter_records(path, file_format or guess_format(path))


def _iter_records(path: Path, file_format: str) -> Iterator[SequenceRecord]:
    with path.open() as handle:
        yield from SeqIO.parse(handle, file_format)
