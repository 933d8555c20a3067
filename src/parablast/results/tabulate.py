"""
Tabular summaries of merged BLAST results using Polars.
"""

from __future__ import annotations

import logging
from typing import ClassVar

import polars as pl

from parablast.results.reader import SearchResult
from parablast.results.views import HspView

logger = logging.getLogger(__name__)


class HitTable:
    """Builds one row per query/hit pair from the hit's top alignment.

    Queries without hits are kept as a single row with null hit columns,
    so the table accounts for every query searched.
    """

    SCHEMA: ClassVar[dict[str, pl.DataType]] = {
        "query_id": pl.Utf8,
        "query_len": pl.Int64,
        "hit_num": pl.Int64,
        "hit_id": pl.Utf8,
        "hit_accession": pl.Utf8,
        "hit_def": pl.Utf8,
        "hit_len": pl.Int64,
        "hsp_count": pl.Int64,
        "bit_score": pl.Float64,
        "evalue": pl.Float64,
        "identity": pl.Int64,
        "positive": pl.Int64,
        "gaps": pl.Int64,
        "align_len": pl.Int64,
        "query_from": pl.Int64,
        "query_to": pl.Int64,
        "hit_from": pl.Int64,
        "hit_to": pl.Int64,
    }

    def __init__(self, result: SearchResult):
        self.result = result

    def rows(self):
        with self.result.iterations() as iterations:
            for iteration in iterations:
                base = {
                    "query_id": iteration.query_id,
                    "query_len": _to_int(iteration.value("Iteration_query-len")),
                }
                found = False
                for hit in iteration.hits():
                    found = True
                    hsps = list(hit.hsps())
                    top = hsps[0] if hsps else HspView(None)
                    yield {
                        **base,
                        "hit_num": _to_int(hit.value("Hit_num")),
                        "hit_id": hit.value("Hit_id"),
                        "hit_accession": hit.value("Hit_accession"),
                        "hit_def": hit.value("Hit_def"),
                        "hit_len": _to_int(hit.value("Hit_len")),
                        "hsp_count": len(hsps),
                        "bit_score": _to_float(top.value("Hsp_bit-score")),
                        "evalue": _to_float(top.value("Hsp_evalue")),
                        "identity": _to_int(top.value("Hsp_identity")),
                        "positive": _to_int(top.value("Hsp_positive")),
                        "gaps": _to_int(top.value("Hsp_gaps")),
                        "align_len": _to_int(top.value("Hsp_align-len")),
                        "query_from": _to_int(top.value("Hsp_query-from")),
                        "query_to": _to_int(top.value("Hsp_query-to")),
                        "hit_from": _to_int(top.value("Hsp_hit-from")),
                        "hit_to": _to_int(top.value("Hsp_hit-to")),
                    }
                if not found:
                    yield {**base, "hsp_count": 0}

    def to_dataframe(self) -> pl.DataFrame:
        """Materialize the table as a DataFrame with a fixed schema."""
        df = pl.DataFrame(list(self.rows()), schema=self.SCHEMA)
        logger.debug("Tabulated %d rows from %s", df.height, self.result.path)
        return df


def tabulate_hits(result: SearchResult) -> pl.DataFrame:
    """Return one row per query/hit with typed top-alignment columns."""
    return HitTable(result).to_dataframe()


def _to_int(value: str | None) -> int | None:
    return int(value) if value not in (None, "") else None


def _to_float(value: str | None) -> float | None:
    return float(value) if value not in (None, "") else None
