"""
Concurrent execution of batch searches.

One task is submitted per batch. Results are written into slots addressed
by batch index, so the returned list follows input order no matter which
process finishes first. Failures are collected rather than raised while
tasks are still running: every in-flight task is joined, the outputs of
successful batches are deleted, and only then is the failure of the
lowest-numbered failing batch raised. An error raised while collecting
results, such as one from the progress callback or a KeyboardInterrupt,
joins the running tasks and deletes every produced artifact before it
propagates.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import TypeVar

from parablast.core.io_utils import discard_file
from parablast.core.runner import BatchArtifact

logger = logging.getLogger(__name__)

T = TypeVar("T")

BatchFunction = Callable[[int, Sequence[T]], BatchArtifact]
ProgressCallback = Callable[[BatchArtifact, int, int], None]


def dispatch_batches(
    batches: Iterable[Sequence[T]],
    run_batch: BatchFunction,
    *,
    max_workers: int | None = None,
    on_complete: ProgressCallback | None = None,
) -> list[BatchArtifact]:
    """Run ``run_batch`` once per batch, concurrently.

    Args:
        batches: Batches in search order.
        run_batch: Callable taking (batch_index, batch) and returning the
            batch's output artifact.
        max_workers: Maximum concurrent invocations; None starts every
            batch at once.
        on_complete: Called as (artifact, completed, total) after each
            successful batch, in completion order.

    Returns:
        Artifacts in batch order.

    Raises:
        Exception: The error of the lowest-numbered failing batch, after
            all running batches have finished and all produced artifacts
            have been deleted.
    """
    batch_list = list(batches)
    total = len(batch_list)
    if total == 0:
        return []

    workers = total if max_workers is None else max(1, min(max_workers, total))
    logger.info("Dispatching %d batches with %d parallel workers", total, workers)

    slots: list[BatchArtifact | None] = [None] * total
    errors: dict[int, Exception] = {}
    completed = 0
    future_to_index: dict[Future[BatchArtifact], int] = {}

    try:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="parablast") as executor:
            for index, batch in enumerate(batch_list):
                future_to_index[executor.submit(run_batch, index, batch)] = index
            # Drop the references so finished batches can be garbage collected
            del batch_list

            try:
                for future in as_completed(future_to_index):
                    if future.cancelled():
                        continue
                    index = future_to_index[future]
                    try:
                        artifact = future.result()
                    except Exception as e:
                        logger.error("Batch %d failed: %s", index, getattr(e, "message", e))
                        if not errors:
                            # Batches that have not started yet are skipped
                            _cancel_pending(future_to_index)
                        errors[index] = e
                        continue

                    slots[index] = artifact
                    completed += 1
                    logger.info("Completed %d/%d batches", completed, total)
                    if on_complete is not None:
                        on_complete(artifact, completed, total)
            except BaseException:
                _cancel_pending(future_to_index)
                raise
    except BaseException:
        # Leaving the executor joined every running batch
        logger.warning("Batch collection interrupted, deleting batch outputs")
        _discard_outputs(slots, future_to_index)
        raise

    if errors:
        _discard_outputs(slots, future_to_index)
        first_index = min(errors)
        raise errors[first_index]

    return [artifact for artifact in slots if artifact is not None]


def _cancel_pending(futures: Iterable[Future[BatchArtifact]]) -> None:
    for future in futures:
        future.cancel()


def _discard_outputs(
    slots: Sequence[BatchArtifact | None],
    future_to_index: dict[Future[BatchArtifact], int],
) -> None:
    """Delete collected artifacts and those of batches finished but never collected."""
    for artifact in slots:
        if artifact is not None:
            discard_file(artifact.path)
    for future, index in future_to_index.items():
        if slots[index] is not None or not future.done() or future.cancelled():
            continue
        if future.exception() is None:
            discard_file(future.result().path)
