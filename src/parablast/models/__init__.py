"""
Pydantic data models for parablast.

Provides type-safe models for search parameters, execution settings
and BLAST databases.
"""

from parablast.models.config import SearchConfig, SearchParameters
from parablast.models.database import BlastDatabase

__all__ = [
    "BlastDatabase",
    "SearchConfig",
    "SearchParameters",
]
