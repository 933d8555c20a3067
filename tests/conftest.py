"""
Shared pytest fixtures for parablast tests.

Provides query records, BLAST XML documents, a fake BLAST executable and
a CLI runner for unit and integration testing.
"""

from __future__ import annotations

import stat
import sys
import tempfile
from pathlib import Path

import pytest
from Bio.SeqRecord import SeqRecord

from parablast.external.base import ExternalTool
from parablast.models.config import SearchConfig, SearchParameters
from tests.utils.blast_xml import Hit, Hsp, Query, write_blast_xml
from tests.utils.records import make_records

# =============================================================================
# Fake BLAST executable
# =============================================================================

# Stand-in for a BLAST+ search program. It reads the FASTA query, writes one
# Iteration per record to -out, and changes behaviour on marker record ids:
#   SLOW*  sleep before writing (reverses completion order)
#   HANG*  sleep long enough to trip timeouts and cancellation
#   FAIL*  exit 2 with a message on stderr
#   BAD*   write a document that is not XML
# Every invocation appends its argument list to $FAKE_BLAST_LOG when set.
FAKE_BLAST_SCRIPT = '''\
import os
import sys
import time
from xml.sax.saxutils import escape

args = sys.argv[1:]
flags = {}
i = 0
while i < len(args):
    key = args[i]
    if i + 1 < len(args) and not args[i + 1].startswith("-"):
        flags[key] = args[i + 1]
        i += 2
    else:
        flags[key] = None
        i += 1

log = os.environ.get("FAKE_BLAST_LOG")
if log:
    with open(log, "a") as handle:
        handle.write(" ".join(args) + "\\n")

definitions = []
with open(flags["-query"]) as handle:
    for line in handle:
        if line.startswith(">"):
            definitions.append(line[1:].strip())

ids = [d.split()[0] for d in definitions]
if any(x.startswith("FAIL") for x in ids):
    sys.stderr.write("BLAST query/options error: forced failure\\n")
    sys.exit(2)
if any(x.startswith("HANG") for x in ids):
    time.sleep(30)
if any(x.startswith("SLOW") for x in ids):
    time.sleep(0.6)

out = open(flags["-out"], "w")
if any(x.startswith("BAD") for x in ids):
    out.write("this is not xml")
    out.close()
    sys.exit(0)

out.write('<?xml version="1.0"?>\\n<BlastOutput>\\n')
out.write("  <BlastOutput_program>blastp</BlastOutput_program>\\n")
out.write("  <BlastOutput_version>BLASTP 2.15.0+</BlastOutput_version>\\n")
out.write("  <BlastOutput_db>%s</BlastOutput_db>\\n" % escape(flags["-db"]))
out.write("  <BlastOutput_query-ID>Query_1</BlastOutput_query-ID>\\n")
out.write("  <BlastOutput_param>\\n    <Parameters>\\n")
out.write("      <Parameters_expect>%s</Parameters_expect>\\n" % flags.get("-evalue"))
out.write("    </Parameters>\\n  </BlastOutput_param>\\n")
out.write("<BlastOutput_iterations>\\n")
for num, (qid, definition) in enumerate(zip(ids, definitions), start=1):
    out.write("<Iteration>\\n")
    out.write("  <Iteration_iter-num>%d</Iteration_iter-num>\\n" % num)
    out.write("  <Iteration_query-ID>Query_%d</Iteration_query-ID>\\n" % num)
    out.write("  <Iteration_query-def>%s</Iteration_query-def>\\n" % escape(definition))
    out.write("  <Iteration_query-len>8</Iteration_query-len>\\n")
    out.write("  <Iteration_hits>\\n<Hit>\\n")
    out.write("  <Hit_num>1</Hit_num>\\n")
    out.write("  <Hit_id>sp|%s_HIT|</Hit_id>\\n" % escape(qid))
    out.write("  <Hit_def>Match for %s</Hit_def>\\n" % escape(qid))
    out.write("  <Hit_accession>%s_HIT</Hit_accession>\\n" % escape(qid))
    out.write("  <Hit_len>8</Hit_len>\\n  <Hit_hsps>\\n<Hsp>\\n")
    out.write("  <Hsp_num>1</Hsp_num>\\n  <Hsp_bit-score>16.2</Hsp_bit-score>\\n")
    out.write("  <Hsp_evalue>0.001</Hsp_evalue>\\n")
    out.write("  <Hsp_query-from>1</Hsp_query-from>\\n  <Hsp_query-to>8</Hsp_query-to>\\n")
    out.write("  <Hsp_hit-from>1</Hsp_hit-from>\\n  <Hsp_hit-to>8</Hsp_hit-to>\\n")
    out.write("  <Hsp_qseq>MKVLAAGT</Hsp_qseq>\\n  <Hsp_hseq>MKVLAAGT</Hsp_hseq>\\n")
    out.write("  <Hsp_midline>MKVLAAGT</Hsp_midline>\\n")
    out.write("</Hsp>\\n  </Hit_hsps>\\n</Hit>\\n  </Iteration_hits>\\n</Iteration>\\n")
out.write("</BlastOutput_iterations>\\n</BlastOutput>\\n")
out.close()
'''


@pytest.fixture
def fake_blast(temp_dir: Path):
    """Install a fake BLAST program as the executable for every tool name.

    Yields:
        Path to the fake executable.
    """
    bin_dir = temp_dir / "bin"
    bin_dir.mkdir()
    script = bin_dir / "fake_blast"
    script.write_text(f"#!{sys.executable}\n{FAKE_BLAST_SCRIPT}")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    ExternalTool.set_executable_resolver(lambda name: str(script))
    yield script
    ExternalTool.reset_executable_resolver()


@pytest.fixture
def blast_log(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """File that the fake BLAST program appends its arguments to."""
    log = temp_dir / "blast_args.log"
    monkeypatch.setenv("FAKE_BLAST_LOG", str(log))
    return log


# =============================================================================
# Search Fixtures
# =============================================================================


@pytest.fixture
def records() -> list[SeqRecord]:
    """Five small query records."""
    return make_records(5)


@pytest.fixture
def blast_db(temp_dir: Path) -> Path:
    """Database prefix with a single index file on disk."""
    db_dir = temp_dir / "db"
    db_dir.mkdir()
    (db_dir / "testdb.pin").write_bytes(b"")
    return db_dir / "testdb"


@pytest.fixture
def work_dir(temp_dir: Path) -> Path:
    """Empty directory used as the temp_dir of a search."""
    path = temp_dir / "work"
    path.mkdir()
    return path


@pytest.fixture
def search_params(blast_db: Path) -> SearchParameters:
    return SearchParameters(program="blastp", database=blast_db)


@pytest.fixture
def search_config(work_dir: Path) -> SearchConfig:
    return SearchConfig(batch_size=2, temp_dir=work_dir)


# =============================================================================
# BLAST XML Fixtures
# =============================================================================


@pytest.fixture
def alignment_hit() -> Hit:
    """A hit whose top alignment contains a gap in the query."""
    return Hit(
        hit_id="sp|Q8HY10|CLC4M_NOMCO",
        definition=(
            "C-type lectin domain family 4 member M OS=Nomascus concolor "
            "GN=CLEC4M PE=2 SV=1"
        ),
        accession="Q8HY10",
        hsps=[
            Hsp(
                bit_score=50.0617822382917,
                query_from=10,
                hit_from=100,
                qseq="MKV-LA",
                hseq="MKVQLA",
                midline="MKV LA",
            ),
            Hsp(bit_score=20.0, query_from=40, hit_from=7),
        ],
    )


@pytest.fixture
def blast_xml_file(temp_dir: Path, alignment_hit: Hit) -> Path:
    """BLAST XML with three queries: two hits, no hits, one hit."""
    queries = [
        Query(
            definition="q1 first query",
            hits=[alignment_hit, Hit(hit_id="sp|P99999|OTHER", accession="P99999")],
        ),
        Query(definition="q2 second query", hits=[]),
        Query(definition="q3", hits=[Hit()]),
    ]
    return write_blast_xml(temp_dir / "result.xml", queries)


# =============================================================================
# Temporary File Fixtures
# =============================================================================


@pytest.fixture
def temp_dir() -> Path:
    """Temporary directory that is cleaned up after tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def _clear_executable_cache():
    """Ensure executable lookups do not leak between tests."""
    ExternalTool.clear_cache()
    yield
    ExternalTool.clear_cache()


# =============================================================================
# CLI Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Typer CLI runner for testing commands."""
    from typer.testing import CliRunner

    return CliRunner()
