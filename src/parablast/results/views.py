"""
Read-only views over the parts of a BLAST XML result.

Each view wraps one StructuredFragment (an Iteration, Hit or Hsp node)
and answers keyed lookups with the raw text of the matching child
element. Keys are BLAST XML tag names such as ``Hsp_bit-score``; the
tag prefix may be omitted (``bit-score``). Conversion to numbers is left
to the caller.

A view built from ``None`` is an empty view: it stands for a query with
no hits or a hit with no alignments. Lookups on an empty view return
None, scores return 0 and summaries return a fixed message.
"""

from __future__ import annotations

from collections.abc import Iterator

from parablast.results.fragment import StructuredFragment, child_text

# Column width of one alignment block line
ALIGNMENT_WIDTH = 58
# Width of the position fields either side of an alignment line
POSITION_WIDTH = 7
# Characters of the hit definition shown by hit_string()
DEFINITION_WIDTH = 67

NO_HITS_MESSAGE = "No hits in search.\n"

HSP_FIELDS = (
    "Hsp_num",
    "Hsp_bit-score",
    "Hsp_score",
    "Hsp_evalue",
    "Hsp_query-from",
    "Hsp_query-to",
    "Hsp_hit-from",
    "Hsp_hit-to",
    "Hsp_pattern-from",
    "Hsp_pattern-to",
    "Hsp_query-frame",
    "Hsp_hit-frame",
    "Hsp_identity",
    "Hsp_positive",
    "Hsp_gaps",
    "Hsp_align-len",
    "Hsp_density",
    "Hsp_qseq",
    "Hsp_hseq",
    "Hsp_midline",
)

HIT_FIELDS = ("Hit_num", "Hit_id", "Hit_def", "Hit_accession", "Hit_len")

ITERATION_FIELDS = (
    "Iteration_iter-num",
    "Iteration_query-ID",
    "Iteration_query-def",
    "Iteration_query-len",
    "Iteration_message",
)


def _qualify(key: str, prefix: str) -> str:
    return key if key.startswith(prefix) else prefix + key


def _split_aligned(sequence: str, start: int) -> list[str]:
    """Cut an aligned sequence into blocks labelled with sequence positions.

    Each line shows the position of its first residue left-aligned and the
    position of its last residue right-aligned. Gap characters do not
    advance the position.
    """
    lines = []
    position = start
    for offset in range(0, len(sequence), ALIGNMENT_WIDTH):
        chunk = sequence[offset:offset + ALIGNMENT_WIDTH]
        residues = len(chunk) - chunk.count("-")
        end = position + residues - 1
        lines.append(
            f"{position:<{POSITION_WIDTH}}{chunk}{end:>{POSITION_WIDTH}}"
        )
        position += residues
    return lines


class HspView:
    """One high-scoring segment pair (local alignment) of a hit."""

    __slots__ = ("fragment",)

    def __init__(self, fragment: StructuredFragment | None):
        self.fragment = fragment

    @property
    def is_empty(self) -> bool:
        return self.fragment is None

    def value(self, key: str) -> str | None:
        """Raw text of an Hsp field (e.g. ``Hsp_evalue``), or None."""
        return child_text(self.fragment, _qualify(key, "Hsp_"))

    def alignment_string(self) -> str:
        """Format the alignment as numbered query/midline/hit blocks.

        Example output::

            72     QAQQRDIEKEIESQKTSLTESWKKIIAEDIENRTNR-----SELKMEGQLSDLQEALT    124
                   +++Q++I +E+   K ++ E  +K   ++I     R      EL  + +   + + LT
            198    KSKQQEIYQELTRLKAAVGELPEKSKQQEIYQELTRLKAAVGELPDQSKQQQIYQELT    255

        Returns an empty string for an empty view.
        """
        if self.fragment is None:
            return ""

        qseq = self.value("Hsp_qseq") or ""
        hseq = self.value("Hsp_hseq") or ""
        midline = self.value("Hsp_midline") or ""
        query_lines = _split_aligned(qseq, int(self.value("Hsp_query-from") or 1))
        hit_lines = _split_aligned(hseq, int(self.value("Hsp_hit-from") or 1))
        padding = " " * POSITION_WIDTH
        mid_lines = [
            f"{padding}{midline[offset:offset + ALIGNMENT_WIDTH]}{padding}"
            for offset in range(0, len(midline), ALIGNMENT_WIDTH)
        ]

        blocks = []
        for query_line, mid_line, hit_line in zip(query_lines, mid_lines, hit_lines):
            blocks.append(f"{query_line}\n{mid_line}\n{hit_line}\n\n")
        return "".join(blocks)

    def __repr__(self) -> str:
        if self.fragment is None:
            return "HspView(empty)"
        return f"HspView(num={self.value('Hsp_num')}, bit_score={self.value('Hsp_bit-score')})"


class HitView:
    """One database sequence matched by a query."""

    __slots__ = ("fragment",)

    def __init__(self, fragment: StructuredFragment | None):
        self.fragment = fragment

    @property
    def is_empty(self) -> bool:
        return self.fragment is None

    def value(self, key: str) -> str | None:
        """Raw text of a Hit field (e.g. ``Hit_accession``), or None."""
        return child_text(self.fragment, _qualify(key, "Hit_"))

    def hsps(self) -> Iterator[HspView]:
        """Alignments of this hit in the order BLAST reported them."""
        if self.fragment is None:
            return
        hsps = self.fragment.child("Hit_hsps")
        if hsps is None:
            return
        for hsp in hsps.children("Hsp"):
            yield HspView(hsp)

    def top_hsp(self) -> HspView:
        """Highest-scoring alignment, or an empty view if there is none."""
        return next(self.hsps(), HspView(None))

    def bit_score(self) -> float:
        """Bit score of the top alignment; 0 for an empty hit."""
        score = self.top_hsp().value("Hsp_bit-score")
        return float(score) if score else 0.0

    def hit_string(self) -> str:
        """Summary of the hit and its top alignment.

        Example output::

            Accession: sp|Q8HY10|CLC4M_NOMCO
            Bit score: 50.0617822382917
            Def: C-type lectin domain family 4 member M OS=Nomascus concolor GN=CLEC
            Alignment:

            72     QAQQRDIEKEIESQKTSLTESWKKIIAEDIENRTNR-----SELKMEGQLSDLQEALT    124
            ...
        """
        if self.fragment is None:
            return NO_HITS_MESSAGE

        hsp = self.top_hsp()
        definition = self.value("Hit_def") or ""
        return (
            f"Accession: {self.value('Hit_id') or ''}\n"
            f"Bit score: {hsp.value('Hsp_bit-score') or 0}\n"
            f"Def: {definition[:DEFINITION_WIDTH]}\n"
            f"Alignment:\n\n"
            f"{hsp.alignment_string()}"
        )

    def __repr__(self) -> str:
        if self.fragment is None:
            return "HitView(empty)"
        return f"HitView(id={self.value('Hit_id')!r})"


class IterationView:
    """The results for one query sequence."""

    __slots__ = ("fragment",)

    def __init__(self, fragment: StructuredFragment):
        self.fragment = fragment

    def value(self, key: str) -> str | None:
        """Raw text of an Iteration field (e.g. ``Iteration_query-len``), or None."""
        return child_text(self.fragment, _qualify(key, "Iteration_"))

    @property
    def query_id(self) -> str:
        """First word of the query definition line."""
        definition = self.value("Iteration_query-def") or ""
        words = definition.split()
        if words:
            return words[0]
        return self.value("Iteration_query-ID") or ""

    def hits(self) -> Iterator[HitView]:
        """Hits for this query in the order BLAST reported them."""
        hits = self.fragment.child("Iteration_hits")
        if hits is None:
            return
        for hit in hits.children("Hit"):
            yield HitView(hit)

    def top_hit(self) -> HitView:
        """Highest-scoring hit, or an empty view if the query had none."""
        return next(self.hits(), HitView(None))

    def __repr__(self) -> str:
        return f"IterationView(query_id={self.query_id!r})"
