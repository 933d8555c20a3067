"""Testing utilities for parablast."""

from tests.utils.blast_xml import Hit, Hsp, Query, blast_xml, write_blast_xml
from tests.utils.records import make_records

__all__ = [
    "Hit",
    "Hsp",
    "Query",
    "blast_xml",
    "make_records",
    "write_blast_xml",
]
