"""Unit tests for Iteration, Hit and HSP views."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterator
from pathlib import Path

import pytest

from parablast.results.fragment import ElementFragment, child_text
from parablast.results.stream import iter_iteration_elements
from parablast.results.views import NO_HITS_MESSAGE, HitView, HspView, IterationView
from tests.utils.blast_xml import Hit, Hsp, Query, iteration_xml

ALIGNMENT = (
    "10     MKV-LA     14\n"
    "       MKV LA       \n"
    "100    MKVQLA    105\n"
    "\n"
)


@pytest.fixture
def iterations(blast_xml_file: Path) -> list[IterationView]:
    return [IterationView(ElementFragment(e)) for e in iter_iteration_elements(blast_xml_file)]


def _iteration(query: Query) -> IterationView:
    return IterationView(ElementFragment(ET.fromstring(iteration_xml(1, query))))


class _DictFragment:
    """StructuredFragment over nested dicts, standing in for another backend."""

    def __init__(self, node: dict | str):
        self.node = node

    def child(self, tag: str):
        if isinstance(self.node, dict) and tag in self.node:
            value = self.node[tag]
            return _DictFragment(value[0] if isinstance(value, list) else value)
        return None

    def children(self, tag: str) -> Iterator[_DictFragment]:
        value = self.node.get(tag, []) if isinstance(self.node, dict) else []
        for item in value if isinstance(value, list) else [value]:
            yield _DictFragment(item)

    def text(self) -> str | None:
        return self.node if isinstance(self.node, str) else None


class TestIterationView:
    """Tests for per-query accessors."""

    def test_query_id_is_first_word(self, iterations: list[IterationView]):
        assert [it.query_id for it in iterations] == ["q1", "q2", "q3"]

    def test_query_id_falls_back_to_query_number(self):
        assert _iteration(Query(definition="")).query_id == "Query_1"

    def test_value_with_and_without_prefix(self, iterations: list[IterationView]):
        assert iterations[0].value("Iteration_query-len") == "100"
        assert iterations[0].value("query-len") == "100"
        assert iterations[0].value("no-such-field") is None

    def test_hits_in_order(self, iterations: list[IterationView]):
        ids = [hit.value("Hit_id") for hit in iterations[0].hits()]
        assert ids == ["sp|Q8HY10|CLC4M_NOMCO", "sp|P99999|OTHER"]

    def test_hits_repeatable(self, iterations: list[IterationView]):
        first = [hit.value("id") for hit in iterations[0].hits()]
        second = [hit.value("id") for hit in iterations[0].hits()]
        assert first == second

    def test_top_hit(self, iterations: list[IterationView]):
        assert iterations[0].top_hit().value("accession") == "Q8HY10"

    def test_no_hits(self, iterations: list[IterationView]):
        assert list(iterations[1].hits()) == []
        top = iterations[1].top_hit()
        assert top.is_empty
        assert iterations[1].value("message") == "No hits found"


class TestHitView:
    """Tests for hit accessors and summaries."""

    def test_hsps_in_order(self, iterations: list[IterationView]):
        scores = [hsp.value("bit-score") for hsp in iterations[0].top_hit().hsps()]
        assert scores == ["50.0617822382917", "20.0"]

    def test_top_hsp_and_bit_score(self, iterations: list[IterationView]):
        hit = iterations[0].top_hit()
        assert hit.top_hsp().value("Hsp_query-from") == "10"
        assert hit.bit_score() == pytest.approx(50.0617822382917)

    def test_hit_string(self, iterations: list[IterationView]):
        expected = (
            "Accession: sp|Q8HY10|CLC4M_NOMCO\n"
            "Bit score: 50.0617822382917\n"
            "Def: C-type lectin domain family 4 member M OS=Nomascus concolor GN=CLEC\n"
            "Alignment:\n"
            "\n"
            + ALIGNMENT
        )
        assert iterations[0].top_hit().hit_string() == expected

    def test_hit_without_hsps(self):
        hit = _iteration(Query(hits=[Hit(hsps=[])])).top_hit()
        assert not hit.is_empty
        assert hit.top_hsp().is_empty
        assert hit.bit_score() == 0.0
        assert hit.hit_string().endswith("Alignment:\n\n")


class TestEmptyViews:
    """Tests for the views standing in for missing hits and alignments."""

    def test_empty_hit(self):
        hit = HitView(None)
        assert hit.value("Hit_id") is None
        assert list(hit.hsps()) == []
        assert hit.top_hsp().is_empty
        assert hit.bit_score() == 0
        assert hit.hit_string() == NO_HITS_MESSAGE == "No hits in search.\n"

    def test_empty_hsp(self):
        hsp = HspView(None)
        assert hsp.value("Hsp_qseq") is None
        assert hsp.alignment_string() == ""


class TestHspView:
    """Tests for alignment formatting."""

    def test_alignment_string(self, iterations: list[IterationView]):
        assert iterations[0].top_hit().top_hsp().alignment_string() == ALIGNMENT

    def test_alignment_wraps_at_58_columns(self):
        seq = "A" * 60
        hsp = _iteration(
            Query(hits=[Hit(hsps=[Hsp(qseq=seq, hseq=seq, midline=seq)])])
        ).top_hit().top_hsp()
        expected = (
            f"1      {'A' * 58}     58\n"
            f"       {'A' * 58}       \n"
            f"1      {'A' * 58}     58\n"
            "\n"
            "59     AA     60\n"
            "       AA       \n"
            "59     AA     60\n"
            "\n"
        )
        assert hsp.alignment_string() == expected

    def test_gaps_do_not_advance_position(self):
        qseq = "-" * 58 + "MK"
        hseq = "A" * 60
        hsp = _iteration(
            Query(hits=[Hit(hsps=[Hsp(qseq=qseq, hseq=hseq, midline=" " * 58 + "  ", query_from=5)])])
        ).top_hit().top_hsp()
        lines = hsp.alignment_string().split("\n")
        assert lines[0] == f"5      {'-' * 58}      4"
        assert lines[4] == "5      MK      6"

    def test_midline_read_verbatim(self):
        hsp = _iteration(
            Query(hits=[Hit(hsps=[Hsp(qseq="MKVQLA", hseq="MKVQLA", midline=" KV L ")])])
        ).top_hit().top_hsp()
        assert hsp.value("midline") == " KV L "


class TestFragmentBackend:
    """Views should work over any StructuredFragment implementation."""

    def test_dict_backend(self):
        node = {
            "Iteration_query-def": "qx something",
            "Iteration_hits": {
                "Hit": [
                    {
                        "Hit_id": "h1",
                        "Hit_def": "first",
                        "Hit_hsps": {"Hsp": [{"Hsp_bit-score": "42.5"}]},
                    }
                ]
            },
        }
        iteration = IterationView(_DictFragment(node))
        assert iteration.query_id == "qx"
        assert iteration.top_hit().value("id") == "h1"
        assert iteration.top_hit().bit_score() == 42.5

    def test_child_text_missing_path(self):
        element = ET.fromstring("<a><b>text</b></a>")
        assert child_text(ElementFragment(element), "b") == "text"
        assert child_text(ElementFragment(element), "c", "d") is None
        assert child_text(None, "b") is None
