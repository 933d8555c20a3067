"""
CLI commands for parablast.

Provides command-line access to batched searches, result inspection,
local database lookups and remote record retrieval.
"""

__all__ = ["db", "fetch", "main", "search"]
