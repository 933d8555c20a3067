"""
Parablast: parallel batched BLAST searches with merged, streamable results.

Large query sets are split into fixed-size batches, each batch is searched
by its own BLAST+ process, and the per-batch XML outputs are merged into a
single document that reads like the output of one search.
"""

__version__ = "0.1.0"
__author__ = "Parablast Team"

from parablast.core.search import blast_results, run_search
from parablast.models.config import SearchConfig, SearchParameters
from parablast.results.reader import SearchResult
from parablast.results.views import HitView, HspView, IterationView

__all__ = [
    "HitView",
    "HspView",
    "IterationView",
    "SearchConfig",
    "SearchParameters",
    "SearchResult",
    "__version__",
    "blast_results",
    "run_search",
]
