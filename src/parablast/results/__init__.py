"""
Streaming access to merged BLAST XML results.
"""

from parablast.results.reader import SearchResult
from parablast.results.tabulate import tabulate_hits
from parablast.results.views import HitView, HspView, IterationView

__all__ = [
    "HitView",
    "HspView",
    "IterationView",
    "SearchResult",
    "tabulate_hits",
]
