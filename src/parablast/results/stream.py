"""
Incremental scanning of BLAST XML (-outfmt 5) documents.

The scanner walks a document with ``iterparse`` and reports header
elements and complete ``Iteration`` elements one at a time. Each
Iteration is detached from the tree once the consumer has moved past
it, so memory stays bounded by the largest single query section.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Iterator
from pathlib import Path
from typing import Literal

from parablast.core.exceptions import MalformedResultError

logger = logging.getLogger(__name__)

ROOT_TAG = "BlastOutput"
ITERATIONS_TAG = "BlastOutput_iterations"
ITERATION_TAG = "Iteration"

# Search-level metadata kept in a merged document, in BLAST's order
HEADER_TAGS = (
    "BlastOutput_program",
    "BlastOutput_version",
    "BlastOutput_db",
    "BlastOutput_param",
)

ScanEvent = Literal["header", "iterations", "iteration"]


def scan_document(
    path: Path,
    *,
    batch_index: int | None = None,
) -> Iterator[tuple[ScanEvent, ET.Element]]:
    """Yield the structural parts of a BLAST XML document in order.

    Events:
        ("header", elem): a completed header element (see HEADER_TAGS)
        ("iterations", elem): the iterations section has started; every
            header element has been reported by now
        ("iteration", elem): one complete Iteration element

    The file is closed when the generator finishes or is closed early.

    Raises:
        MalformedResultError: If the document is not well-formed, has a
            root other than BlastOutput, or lacks an iterations section.
    """
    depth = 0
    iterations: ET.Element | None = None
    seen_iterations = False

    try:
        with path.open("rb") as handle:
            for event, elem in ET.iterparse(handle, events=("start", "end")):
                if event == "start":
                    depth += 1
                    if depth == 1 and elem.tag != ROOT_TAG:
                        raise MalformedResultError(
                            path, f"unexpected root element <{elem.tag}>", batch_index
                        )
                    if depth == 2 and elem.tag == ITERATIONS_TAG:
                        iterations = elem
                        seen_iterations = True
                        yield "iterations", elem
                    continue

                depth -= 1
                if depth == 1:
                    if elem.tag in HEADER_TAGS:
                        elem.tail = None
                        yield "header", elem
                    elif elem.tag == ITERATIONS_TAG:
                        iterations = None
                elif depth == 2 and iterations is not None and elem.tag == ITERATION_TAG:
                    elem.tail = None
                    yield "iteration", elem
                    iterations.remove(elem)
    except ET.ParseError as e:
        raise MalformedResultError(path, str(e), batch_index) from e

    if not seen_iterations:
        raise MalformedResultError(
            path, f"no <{ITERATIONS_TAG}> section", batch_index
        )


def read_header(path: Path) -> dict[str, ET.Element]:
    """Return the header elements of a document, keyed by tag.

    Parsing stops at the start of the iterations section.
    """
    header: dict[str, ET.Element] = {}
    scanner = scan_document(path)
    try:
        for event, elem in scanner:
            if event == "header":
                header[elem.tag] = elem
            else:
                break
    finally:
        scanner.close()
    return header


def iter_iteration_elements(path: Path) -> Iterator[ET.Element]:
    """Yield the Iteration elements of a document in order."""
    for event, elem in scan_document(path):
        if event == "iteration":
            yield elem
