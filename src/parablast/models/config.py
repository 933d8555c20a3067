"""
Pydantic configuration models for parablast.

These models define what a batched search runs (program, database and
tool options) and how it is executed (batch size, parallelism, timeouts,
temporary storage). Configuration can be loaded from YAML files or CLI
arguments.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from parablast.core.exceptions import (
    InvalidBatchSizeError,
    InvalidConfigurationError,
    NotFoundError,
)
from parablast.external.blast import (
    OptionValue,
    check_reserved_options,
    normalize_option_key,
)

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000


class SearchParameters(BaseModel):
    """
    What one top-level search runs.

    Supplied once per search and shared by every batch, which is what lets
    the merged result carry a single header.

    Attributes:
        program: BLAST+ program name (blastp, blastn, blastx, ...)
        database: BLAST database path or prefix
        options: Tool flags mapped to values; overrides the runner defaults
    """

    program: str = Field(min_length=1, description="BLAST+ program name")
    database: Path = Field(description="BLAST database path or prefix")
    options: dict[str, OptionValue] = Field(
        default_factory=dict,
        description="BLAST flags mapped to values (None/True = bare flag, False = omit)",
    )

    @field_validator("program")
    @classmethod
    def strip_program(cls, v: str) -> str:
        if not v.strip():
            raise InvalidConfigurationError("program", v, "program name is empty")
        return v.strip()

    @field_validator("options")
    @classmethod
    def normalize_options(cls, v: dict[str, OptionValue]) -> dict[str, OptionValue]:
        """Prefix every flag with a dash and reject runner-owned flags."""
        normalized = {normalize_option_key(key): value for key, value in v.items()}
        check_reserved_options(normalized)
        return normalized

    @classmethod
    def from_yaml(cls, path: Path) -> SearchParameters:
        """
        Load search parameters from the ``search`` section of a YAML file.

        Raises:
            FileNotFoundError: If YAML file does not exist.
            InvalidConfigurationError: If the section is missing or not a mapping.
        """
        raw = _load_yaml_mapping(path)
        section = raw.get("search")
        if not isinstance(section, dict):
            raise InvalidConfigurationError(
                "search", section, f"{path} has no 'search' mapping"
            )
        return cls(**section)

    model_config = {"frozen": True}


class SearchConfig(BaseModel):
    """
    How a search is executed.

    Attributes:
        batch_size: Records per external tool invocation (default: 1000)
        max_workers: Concurrent invocations; None runs one worker per batch
        timeout: Per-invocation time limit in seconds (None for no limit)
        temp_dir: Directory for batch artifacts (None = system temp dir)
        verify_headers: Fail when batches report different search headers
    """

    batch_size: int = Field(
        default=DEFAULT_BATCH_SIZE,
        description="Number of query records per BLAST invocation",
    )
    max_workers: int | None = Field(
        default=None,
        description="Maximum concurrent BLAST processes (None = one per batch)",
    )
    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Per-invocation timeout in seconds",
    )
    temp_dir: Path | None = Field(
        default=None,
        description="Directory for temporary batch files",
    )
    verify_headers: bool = Field(
        default=True,
        description="Require identical program/database/parameters across batches",
    )

    @field_validator("batch_size")
    @classmethod
    def validate_batch_size(cls, v: int) -> int:
        if v <= 0:
            raise InvalidBatchSizeError(v)
        return v

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise InvalidConfigurationError("max_workers", v, "must be at least 1")
        return v

    @field_validator("temp_dir")
    @classmethod
    def validate_temp_dir(cls, v: Path | None) -> Path | None:
        if v is None:
            return v
        if not v.exists():
            raise NotFoundError(
                "Temporary directory",
                v,
                "Create the directory or point temp_dir at an existing one.",
            )
        if not v.is_dir():
            raise InvalidConfigurationError("temp_dir", str(v), "must be a directory")
        return v

    @classmethod
    def from_yaml(cls, path: Path) -> SearchConfig:
        """
        Load execution settings from the ``execution`` section of a YAML file.

        Missing keys keep their defaults; unknown keys are ignored.
        """
        raw = _load_yaml_mapping(path)
        section = raw.get("execution") or {}
        if not isinstance(section, dict):
            raise InvalidConfigurationError(
                "execution", section, f"{path} 'execution' must be a mapping"
            )
        known = {k: v for k, v in section.items() if k in cls.model_fields}
        return cls(**known)

    def to_yaml_str(self) -> str:
        """Serialize execution settings to a YAML string."""
        import yaml

        data = {
            "execution": {
                "batch_size": self.batch_size,
                "max_workers": self.max_workers,
                "timeout": self.timeout,
                "temp_dir": str(self.temp_dir) if self.temp_dir else None,
                "verify_headers": self.verify_headers,
            }
        }
        return yaml.dump(data, default_flow_style=False, sort_keys=False)

    model_config = {"frozen": True}


def _load_yaml_mapping(path: Path) -> dict[str, Any]:
    import yaml

    raw = yaml.safe_load(path.read_text())
    if not isinstance(raw, dict):
        msg = f"YAML config must be a mapping, got {type(raw).__name__}"
        raise InvalidConfigurationError("config", str(path), msg)
    return raw
