"""
Streaming access to a merged BLAST XML result.

A SearchResult names the file holding a merged search. Query results are
read lazily and strictly forward: each traversal opens the file, and the
file is closed when the traversal ends, whether it ran to completion, the
consumer stopped early, or an error was raised.
"""

from __future__ import annotations

import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from parablast.core.exceptions import NotFoundError
from parablast.core.io_utils import discard_file
from parablast.results.fragment import ElementFragment, child_text
from parablast.results.stream import iter_iteration_elements, read_header
from parablast.results.views import IterationView

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchResult:
    """Handle to a merged BLAST XML document.

    The caller owns the file; ``discard()`` deletes it.

    Example:
        >>> result = SearchResult(Path("merged.xml"))
        >>> with result.iterations() as iterations:
        ...     for iteration in iterations:
        ...         print(iteration.query_id, iteration.top_hit().bit_score())
    """

    path: Path

    def _require(self) -> None:
        if not self.path.is_file():
            raise NotFoundError("Search result", self.path)

    @contextmanager
    def iterations(self) -> Generator[Iterator[IterationView], None, None]:
        """Open the result and yield a lazy iterator of query results.

        The iterator is single-pass; open the result again to restart.
        The underlying file is released when the block exits.
        """
        self._require()
        elements = iter_iteration_elements(self.path)
        try:
            yield (IterationView(ElementFragment(elem)) for elem in elements)
        finally:
            elements.close()

    def __iter__(self) -> Iterator[IterationView]:
        """Iterate over all query results, closing the file at the end."""
        with self.iterations() as iterations:
            yield from iterations

    def get_iteration(self, query_id: str) -> IterationView | None:
        """Return the results for ``query_id``, or None if absent.

        Scans the document from the start; no index is kept.
        """
        with self.iterations() as iterations:
            for iteration in iterations:
                if iteration.query_id == query_id:
                    return iteration
        return None

    def _header_text(self, *tags: str) -> str | None:
        self._require()
        header = read_header(self.path)
        element = header.get(tags[0])
        if element is None:
            return None
        return child_text(ElementFragment(element), *tags[1:])

    def program(self) -> str | None:
        """BLAST program that produced the result (e.g. ``blastp``)."""
        return self._header_text("BlastOutput_program")

    def database(self) -> str | None:
        """Database searched, as recorded by BLAST."""
        return self._header_text("BlastOutput_db")

    def version(self) -> str | None:
        """BLAST version string."""
        return self._header_text("BlastOutput_version")

    def parameter(self, key: str) -> str | None:
        """Value of a search parameter such as ``Parameters_expect``.

        The ``Parameters_`` prefix may be omitted.
        """
        if not key.startswith("Parameters_"):
            key = "Parameters_" + key
        return self._header_text("BlastOutput_param", "Parameters", key)

    def discard(self) -> None:
        """Delete the result file."""
        discard_file(self.path)
