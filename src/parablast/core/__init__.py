"""
Core pipeline for batched BLAST searches.

This module contains the partitioner, the per-batch runner, the
concurrent dispatcher and the XML result merger.
"""

from parablast.core.dispatch import dispatch_batches
from parablast.core.merge import MergeSummary, merge_results
from parablast.core.partition import partition_records
from parablast.core.runner import BatchArtifact, BatchRunner
from parablast.core.search import blast_results, run_search

__all__ = [
    "BatchArtifact",
    "BatchRunner",
    "MergeSummary",
    "blast_results",
    "dispatch_batches",
    "merge_results",
    "partition_records",
    "run_search",
]
