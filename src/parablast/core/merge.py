"""
Merging of per-batch BLAST XML outputs into one document.

The merged document carries the first batch's header (program, version,
database and parameters) followed by a single iterations section holding
every batch's Iteration elements in batch order. Batches are streamed one
Iteration at a time; the merger reads its inputs but never deletes them.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from parablast.core.exceptions import InconsistentHeaderError
from parablast.results.stream import ITERATIONS_TAG, ROOT_TAG, scan_document

logger = logging.getLogger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


@dataclass(frozen=True)
class MergeSummary:
    """Counts reported after a merge.

    Attributes:
        batches: Number of batch documents merged.
        iterations: Number of Iteration elements written.
    """

    batches: int
    iterations: int


def _fingerprint(elem: ET.Element) -> str:
    """Canonical text of an element, insensitive to formatting whitespace."""
    return ET.canonicalize(ET.tostring(elem, encoding="unicode"), strip_text=True)


def merge_results(
    artifact_paths: Sequence[Path],
    handle: TextIO,
    *,
    verify_headers: bool = True,
) -> MergeSummary:
    """Write the merged document for ``artifact_paths`` to ``handle``.

    Args:
        artifact_paths: Per-batch BLAST XML files in batch order.
        handle: Text handle receiving the merged document.
        verify_headers: Require every batch header to match the first.

    Returns:
        MergeSummary with batch and iteration counts.

    Raises:
        MalformedResultError: If a batch document cannot be parsed.
        InconsistentHeaderError: If verify_headers is set and a batch's
            header differs from the first batch's.
    """
    logger.info("Merging %d batch results", len(artifact_paths))
    handle.write(XML_DECLARATION)
    handle.write(f"<{ROOT_TAG}>\n")

    reference: dict[str, str] = {}
    iteration_count = 0

    for batch_index, path in enumerate(artifact_paths):
        header: list[ET.Element] = []
        for event, elem in scan_document(path, batch_index=batch_index):
            if event == "header":
                header.append(elem)
            elif event == "iterations":
                if batch_index == 0:
                    for part in header:
                        handle.write(ET.tostring(part, encoding="unicode"))
                        handle.write("\n")
                    handle.write(f"<{ITERATIONS_TAG}>\n")
                    reference = {part.tag: _fingerprint(part) for part in header}
                elif verify_headers:
                    _check_header(path, batch_index, header, reference)
            else:
                handle.write(ET.tostring(elem, encoding="unicode"))
                handle.write("\n")
                iteration_count += 1

    if not artifact_paths:
        handle.write(f"<{ITERATIONS_TAG}>\n")
    handle.write(f"</{ITERATIONS_TAG}>\n")
    handle.write(f"</{ROOT_TAG}>\n")

    logger.info(
        "Merged %d iterations from %d batches", iteration_count, len(artifact_paths)
    )
    return MergeSummary(batches=len(artifact_paths), iterations=iteration_count)


def _check_header(
    path: Path,
    batch_index: int,
    header: list[ET.Element],
    reference: dict[str, str],
) -> None:
    current = {part.tag: _fingerprint(part) for part in header}
    for tag in sorted(set(reference) | set(current)):
        if reference.get(tag) != current.get(tag):
            raise InconsistentHeaderError(path, batch_index, tag)
