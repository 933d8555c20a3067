"""
Custom exceptions with actionable guidance.

Provides specific error types for the failure scenarios of a batched
search, each with helpful suggestions for resolution.
"""

from __future__ import annotations

from pathlib import Path


class ParablastError(Exception):
    """Base exception for parablast errors."""

    def __init__(self, message: str, suggestion: str | None = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.full_message)

    @property
    def full_message(self) -> str:
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message


class ConfigurationError(ParablastError):
    """Base class for configuration errors."""


class InvalidConfigurationError(ConfigurationError):
    """Raised when a search setting is rejected before any work starts."""

    def __init__(self, param_name: str, value: object, reason: str):
        super().__init__(
            message=f"Invalid {param_name} = {value!r}: {reason}",
            suggestion=f"Correct the value of {param_name} and run the search again.",
        )
        self.param_name = param_name
        self.value = value


class InvalidBatchSizeError(InvalidConfigurationError):
    """Raised when the batch size is not a positive integer."""

    def __init__(self, value: object):
        super().__init__("batch_size", value, "must be a positive integer")


class NotFoundError(ParablastError):
    """Raised when a requested database, file or sequence does not exist."""

    def __init__(self, what: str, name: str | Path, suggestion: str | None = None):
        super().__init__(
            message=f"{what} not found: {name}",
            suggestion=suggestion,
        )
        self.what = what
        self.name = str(name)


class MalformedResultError(ParablastError):
    """Raised when a result artifact does not have the expected document shape."""

    def __init__(
        self,
        path: str | Path,
        reason: str,
        batch_index: int | None = None,
    ):
        where = f" (batch {batch_index})" if batch_index is not None else ""
        super().__init__(
            message=f"Malformed BLAST XML result '{path}'{where}: {reason}",
            suggestion=(
                "BLAST must write XML output (-outfmt 5). Check that no option "
                "overrides -outfmt and that the tool was not interrupted mid-write."
            ),
        )
        self.path = str(path)
        self.reason = reason
        self.batch_index = batch_index


class InconsistentHeaderError(MalformedResultError):
    """Raised when batches of one search report different search headers."""

    def __init__(self, path: str | Path, batch_index: int, field: str):
        super().__init__(
            path,
            f"header field '{field}' differs from the first batch",
            batch_index=batch_index,
        )
        self.field = field


class SearchCancelledError(ParablastError):
    """Raised when a running search is cancelled by its caller."""

    def __init__(self, batch_index: int | None = None):
        where = f" while running batch {batch_index}" if batch_index is not None else ""
        super().__init__(message=f"Search cancelled{where}")
        self.batch_index = batch_index
