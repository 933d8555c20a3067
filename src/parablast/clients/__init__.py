"""
API clients for external services.

Provides a client for NCBI E-utilities record retrieval.
"""

from parablast.clients.entrez import EntrezClient, EntrezError

__all__ = [
    "EntrezClient",
    "EntrezError",
]
