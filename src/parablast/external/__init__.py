"""
Wrappers for external bioinformatics tools.

Provides Python interfaces to the BLAST+ search programs and blastdbcmd.
"""

from parablast.external.base import (
    CancellationToken,
    ExternalTool,
    ExternalToolError,
    ProcessSpawnError,
    ToolNotFoundError,
    ToolResult,
    ToolTimeoutError,
)
from parablast.external.blast import BlastDbCmd, BlastProgram, get_sequence

__all__ = [
    "BlastDbCmd",
    "BlastProgram",
    "CancellationToken",
    "ExternalTool",
    "ExternalToolError",
    "ProcessSpawnError",
    "ToolNotFoundError",
    "ToolResult",
    "ToolTimeoutError",
    "get_sequence",
]
