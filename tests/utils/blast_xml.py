"""
Builders for small BLAST XML (-outfmt 5) documents used in tests.

Documents follow the layout BLAST+ writes: a header (program, version,
database, parameters) followed by one Iteration per query.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from xml.sax.saxutils import escape


@dataclass
class Hsp:
    bit_score: float = 50.5
    evalue: float = 1e-10
    query_from: int = 1
    hit_from: int = 1
    qseq: str = "MKVLA"
    hseq: str = "MKVLA"
    midline: str = "MKVLA"

    @property
    def residues(self) -> int:
        return len(self.qseq) - self.qseq.count("-")


@dataclass
class Hit:
    hit_id: str = "sp|P12345|TEST_HUMAN"
    definition: str = "Test protein OS=Homo sapiens"
    accession: str = "P12345"
    length: int = 120
    hsps: list[Hsp] = field(default_factory=lambda: [Hsp()])


@dataclass
class Query:
    definition: str = "q1 test query"
    length: int = 100
    hits: list[Hit] = field(default_factory=list)


def _hsp_xml(num: int, hsp: Hsp) -> str:
    return (
        "<Hsp>\n"
        f"  <Hsp_num>{num}</Hsp_num>\n"
        f"  <Hsp_bit-score>{hsp.bit_score}</Hsp_bit-score>\n"
        f"  <Hsp_score>{int(hsp.bit_score * 2)}</Hsp_score>\n"
        f"  <Hsp_evalue>{hsp.evalue}</Hsp_evalue>\n"
        f"  <Hsp_query-from>{hsp.query_from}</Hsp_query-from>\n"
        f"  <Hsp_query-to>{hsp.query_from + hsp.residues - 1}</Hsp_query-to>\n"
        f"  <Hsp_hit-from>{hsp.hit_from}</Hsp_hit-from>\n"
        f"  <Hsp_hit-to>{hsp.hit_from + len(hsp.hseq) - hsp.hseq.count('-') - 1}</Hsp_hit-to>\n"
        f"  <Hsp_identity>{len(hsp.midline) - hsp.midline.count(' ')}</Hsp_identity>\n"
        f"  <Hsp_positive>{len(hsp.midline)}</Hsp_positive>\n"
        f"  <Hsp_gaps>{hsp.qseq.count('-') + hsp.hseq.count('-')}</Hsp_gaps>\n"
        f"  <Hsp_align-len>{len(hsp.qseq)}</Hsp_align-len>\n"
        f"  <Hsp_qseq>{hsp.qseq}</Hsp_qseq>\n"
        f"  <Hsp_hseq>{hsp.hseq}</Hsp_hseq>\n"
        f"  <Hsp_midline>{hsp.midline}</Hsp_midline>\n"
        "</Hsp>\n"
    )


def _hit_xml(num: int, hit: Hit) -> str:
    hsps = "".join(_hsp_xml(i, hsp) for i, hsp in enumerate(hit.hsps, start=1))
    return (
        "<Hit>\n"
        f"  <Hit_num>{num}</Hit_num>\n"
        f"  <Hit_id>{escape(hit.hit_id)}</Hit_id>\n"
        f"  <Hit_def>{escape(hit.definition)}</Hit_def>\n"
        f"  <Hit_accession>{escape(hit.accession)}</Hit_accession>\n"
        f"  <Hit_len>{hit.length}</Hit_len>\n"
        f"  <Hit_hsps>\n{hsps}</Hit_hsps>\n"
        "</Hit>\n"
    )


def iteration_xml(num: int, query: Query) -> str:
    hits = "".join(_hit_xml(i, hit) for i, hit in enumerate(query.hits, start=1))
    message = "" if query.hits else "  <Iteration_message>No hits found</Iteration_message>\n"
    return (
        "<Iteration>\n"
        f"  <Iteration_iter-num>{num}</Iteration_iter-num>\n"
        f"  <Iteration_query-ID>Query_{num}</Iteration_query-ID>\n"
        f"  <Iteration_query-def>{escape(query.definition)}</Iteration_query-def>\n"
        f"  <Iteration_query-len>{query.length}</Iteration_query-len>\n"
        f"  <Iteration_hits>\n{hits}</Iteration_hits>\n"
        f"{message}"
        "</Iteration>\n"
    )


def blast_xml(
    queries: list[Query],
    *,
    program: str = "blastp",
    version: str = "BLASTP 2.15.0+",
    db: str = "testdb",
    expect: str = "10",
    first_iteration: int = 1,
) -> str:
    """Return a complete BLAST XML document for ``queries``."""
    iterations = "".join(
        iteration_xml(num, query)
        for num, query in enumerate(queries, start=first_iteration)
    )
    return (
        '<?xml version="1.0"?>\n'
        '<!DOCTYPE BlastOutput PUBLIC "-//NCBI//NCBI BlastOutput/EN" '
        '"http://www.ncbi.nlm.nih.gov/dtd/NCBI_BlastOutput.dtd">\n'
        "<BlastOutput>\n"
        f"  <BlastOutput_program>{program}</BlastOutput_program>\n"
        f"  <BlastOutput_version>{version}</BlastOutput_version>\n"
        "  <BlastOutput_reference>Stephen F. Altschul et al.</BlastOutput_reference>\n"
        f"  <BlastOutput_db>{db}</BlastOutput_db>\n"
        "  <BlastOutput_query-ID>Query_1</BlastOutput_query-ID>\n"
        "  <BlastOutput_query-def>q1</BlastOutput_query-def>\n"
        "  <BlastOutput_query-len>100</BlastOutput_query-len>\n"
        "  <BlastOutput_param>\n"
        "    <Parameters>\n"
        "      <Parameters_matrix>BLOSUM62</Parameters_matrix>\n"
        f"      <Parameters_expect>{expect}</Parameters_expect>\n"
        "      <Parameters_gap-open>11</Parameters_gap-open>\n"
        "      <Parameters_gap-extend>1</Parameters_gap-extend>\n"
        "      <Parameters_filter>F</Parameters_filter>\n"
        "    </Parameters>\n"
        "  </BlastOutput_param>\n"
        f"<BlastOutput_iterations>\n{iterations}</BlastOutput_iterations>\n"
        "</BlastOutput>\n"
    )


def write_blast_xml(path: Path, queries: list[Query], **kwargs: str | int) -> Path:
    path.write_text(blast_xml(queries, **kwargs))  # type: ignore[arg-type]
    return path
