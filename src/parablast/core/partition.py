"""
Splitting of query records into fixed-size batches.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from itertools import islice
from typing import TypeVar

from parablast.core.exceptions import InvalidBatchSizeError

T = TypeVar("T")


def partition_records(records: Iterable[T], batch_size: int) -> Iterator[tuple[T, ...]]:
    """
    Lazily split records into contiguous batches of ``batch_size``.

    Every batch holds exactly ``batch_size`` records except possibly the
    last. Record order is preserved and the input is consumed only as
    batches are requested.

    Args:
        records: Ordered, possibly lazy, sequence of records.
        batch_size: Records per batch.

    Returns:
        Iterator of immutable batches.

    Raises:
        InvalidBatchSizeError: If batch_size is not positive. Raised on
            call, before any record is read.

    Example:
        >>> list(partition_records("abcde", 2))
        [('a', 'b'), ('c', 'd'), ('e',)]
    """
    if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size <= 0:
        raise InvalidBatchSizeError(batch_size)
    return _batches(iter(records), batch_size)


def _batches(iterator: Iterator[T], batch_size: int) -> Iterator[tuple[T, ...]]:
    while batch := tuple(islice(iterator, batch_size)):
        yield batch
