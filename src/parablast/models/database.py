"""
Pydantic model for a local BLAST database.
"""

from __future__ import annotations

import glob
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from parablast.core.exceptions import InvalidConfigurationError, NotFoundError

MOLECULE_TYPES = ("protein", "nucleotide")


class BlastDatabase(BaseModel):
    """
    A BLAST database on disk.

    Attributes:
        path: Database path or prefix as passed to ``-db``
        molecule_type: "protein" or "nucleotide"
    """

    path: Path = Field(description="Database path or prefix")
    molecule_type: str = Field(description="'protein' or 'nucleotide'")

    @field_validator("molecule_type")
    @classmethod
    def validate_molecule_type(cls, v: str) -> str:
        if v not in MOLECULE_TYPES:
            raise InvalidConfigurationError(
                "molecule_type",
                v,
                "BLAST database type can be 'protein' or 'nucleotide' only",
            )
        return v

    @classmethod
    def open(cls, path: Path, molecule_type: str) -> BlastDatabase:
        """
        Validate and return a database reference.

        Raises:
            InvalidConfigurationError: If molecule_type is not supported.
            NotFoundError: If neither the path nor any index file exists.
        """
        db = cls(path=path, molecule_type=molecule_type)
        if not db.exists():
            raise NotFoundError(
                "BLAST database",
                path,
                "Build the database with makeblastdb or check the path prefix.",
            )
        return db

    def exists(self) -> bool:
        """Return True if the path or one of its index files is present."""
        return database_exists(self.path)

    model_config = {"frozen": True}


def database_exists(path: Path) -> bool:
    """Return True if a database path or prefix has files on disk."""
    if path.exists():
        return True
    if not path.parent.is_dir():
        return False
    # Index files (.pin, .nsq, .00.phr, .pal, ...) share the prefix
    return next(path.parent.glob(glob.escape(path.name) + ".*"), None) is not None
