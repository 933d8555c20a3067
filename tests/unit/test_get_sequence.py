"""Unit tests for reading entries from a BLAST database."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from parablast.core.exceptions import NotFoundError
from parablast.external.base import ExternalToolError, ToolResult
from parablast.external.blast import BlastDbCmd, get_sequence
from parablast.models.database import BlastDatabase


def _result(return_code: int = 0, stdout: str = "", stderr: str = "") -> ToolResult:
    return ToolResult(("blastdbcmd",), return_code, stdout, stderr, 0.01)


@pytest.fixture
def database(blast_db: Path) -> BlastDatabase:
    return BlastDatabase.open(blast_db, "protein")


class TestGetSequence:
    """Tests for get_sequence output handling."""

    def test_returns_seqrecord(self, database: BlastDatabase):
        fasta = ">sp|P12345|TEST_HUMAN Test protein\nMKVLAAGT\nQQRR\n"
        with patch.object(BlastDbCmd, "run", return_value=_result(stdout=fasta)) as run:
            record = get_sequence(database, "P12345")

        assert record.id == "sp|P12345|TEST_HUMAN"
        assert str(record.seq) == "MKVLAAGTQQRR"
        assert run.call_args.kwargs["entry"] == "P12345"
        assert run.call_args.kwargs["database"] == database.path

    @pytest.mark.parametrize("accession", ["", None])
    def test_empty_accession(self, database: BlastDatabase, accession):
        with patch.object(BlastDbCmd, "run") as run:
            assert get_sequence(database, accession) is None
        run.assert_not_called()

    def test_entry_not_found(self, database: BlastDatabase):
        stderr = "BLAST query/options error: Entry not found in BLAST database"
        with patch.object(BlastDbCmd, "run", return_value=_result(1, stderr=stderr)):
            with pytest.raises(NotFoundError, match="Q00000"):
                get_sequence(database, "Q00000")

    def test_other_failure(self, database: BlastDatabase):
        with patch.object(BlastDbCmd, "run", return_value=_result(2, stderr="BLAST Database error")):
            with pytest.raises(ExternalToolError) as exc_info:
                get_sequence(database, "P12345")
        assert exc_info.value.return_code == 2

    def test_empty_output(self, database: BlastDatabase):
        with patch.object(BlastDbCmd, "run", return_value=_result(stdout="")):
            with pytest.raises(NotFoundError):
                get_sequence(database, "P12345")
