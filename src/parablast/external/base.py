"""
Base classes for wrapping external bioinformatics tools.

Provides a consistent interface for executing command-line tools
with proper error handling, timeout and cancellation support, and
dry-run capability.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from parablast.core.exceptions import ParablastError, SearchCancelledError

logger = logging.getLogger(__name__)

# Pattern for safe path characters (alphanumeric, underscore, hyphen, dot, slash)
_SAFE_PATH_PATTERN = re.compile(r"^[\w\-./]+$")

# How often a waiting invocation checks its cancellation token
_POLL_INTERVAL = 0.1


class UnsafePathError(ParablastError):
    """Raised when a file path contains potentially unsafe characters."""

    def __init__(self, path: Path, reason: str = ""):
        detail = f": {reason}" if reason else ""
        super().__init__(
            message=f"Unsafe path detected: {path}{detail}",
            suggestion=(
                "Ensure file paths contain only alphanumeric characters, "
                "underscores, hyphens, and periods. Avoid spaces and special characters."
            ),
        )
        self.path = path


def validate_path_safe(
    path: Path,
    *,
    must_exist: bool = False,
    resolve: bool = True,
) -> Path:
    """Validate that a path is safe for use in subprocess commands.

    Args:
        path: Path to validate
        must_exist: If True, raise error if path doesn't exist
        resolve: If True, resolve the path to its absolute form

    Returns:
        The validated (and optionally resolved) path

    Raises:
        UnsafePathError: If path contains a null byte
        FileNotFoundError: If must_exist=True and path doesn't exist
    """
    if resolve:
        path = path.resolve()

    path_str = str(path)

    if "\x00" in path_str:
        raise UnsafePathError(path, "contains null byte")

    if not _SAFE_PATH_PATTERN.match(path_str):
        logger.warning(
            "Path contains unusual characters (may cause issues): %s",
            path,
        )

    if must_exist and not path.exists():
        raise FileNotFoundError(f"Path does not exist: {path}")

    return path


class ProcessSpawnError(ParablastError):
    """Raised when an external tool process could not be started."""

    def __init__(self, tool_name: str, reason: str, suggestion: str | None = None):
        super().__init__(
            message=f"Could not start '{tool_name}': {reason}",
            suggestion=suggestion,
        )
        self.tool_name = tool_name
        self.reason = reason
        self.batch_index: int | None = None


class ToolNotFoundError(ProcessSpawnError):
    """Raised when a required external tool is not installed or not in PATH."""

    def __init__(self, tool_name: str, install_hint: str = ""):
        suggestion = f"Install {tool_name} and ensure it is in your PATH."
        if install_hint:
            suggestion = f"{suggestion}\n\nInstallation:\n  {install_hint}"

        super().__init__(
            tool_name,
            "executable not found in PATH",
            suggestion=suggestion,
        )


class ExternalToolError(ParablastError):
    """Raised when an external tool returns a non-zero exit code."""

    def __init__(
        self,
        tool_name: str,
        command: list[str],
        return_code: int,
        stderr: str,
    ):
        # Truncate long commands and stderr for display
        cmd_str = " ".join(command)
        if len(cmd_str) > 200:
            cmd_str = cmd_str[:200] + "..."

        stderr_display = stderr.strip()
        if len(stderr_display) > 500:
            stderr_display = stderr_display[:500] + "\n...[truncated]"

        super().__init__(
            message=(
                f"{tool_name} failed with exit code {return_code}\n\n"
                f"Command: {cmd_str}\n\n"
                f"Error output:\n{stderr_display}"
            ),
            suggestion=(
                "Check the search options, the database path and the input "
                "sequences. Run with --verbose for detailed output."
            ),
        )
        self.tool_name = tool_name
        self.command = command
        self.return_code = return_code
        self.stderr = stderr
        self.batch_index: int | None = None


class ToolTimeoutError(ExternalToolError):
    """Raised when an external tool exceeds the specified timeout."""

    def __init__(self, tool_name: str, timeout_seconds: float, command: list[str]):
        super().__init__(
            tool_name,
            command,
            -1,
            f"timed out after {timeout_seconds:.0f} seconds",
        )
        self.timeout_seconds = timeout_seconds


class CancellationToken:
    """Thread-safe flag used to abort running tool invocations.

    Example:
        >>> token = CancellationToken()
        >>> token.cancel()
        >>> token.cancelled
        True
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation of every invocation watching this token."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, batch_index: int | None = None) -> None:
        if self._event.is_set():
            raise SearchCancelledError(batch_index)


@dataclass(frozen=True)
class ToolResult:
    """Result from running an external tool.

    Attributes:
        command: The command that was executed.
        return_code: Exit code from the process.
        stdout: Standard output from the process.
        stderr: Standard error from the process.
        elapsed_seconds: Wall-clock time for execution.
    """

    command: tuple[str, ...]
    return_code: int
    stdout: str
    stderr: str
    elapsed_seconds: float

    @property
    def success(self) -> bool:
        """Return True if the tool exited with code 0."""
        return self.return_code == 0

    @property
    def command_string(self) -> str:
        """Return the command as a space-separated string."""
        return " ".join(self.command)


class ExternalTool(ABC):
    """Abstract base class for wrapping external command-line tools.

    Subclasses must define:
        TOOL_NAME: Default executable name (e.g., "blastdbcmd")
        build_command: Method to construct the command arguments

    The executable name may also be chosen per instance (BLAST programs
    share one wrapper), so lookups go through ``self.tool_name``.

    Dependency injection:
        Use set_executable_resolver() to inject a custom resolver for testing.
        This allows tests to point lookups at fake executables.
    """

    TOOL_NAME: ClassVar[str]
    INSTALL_HINT: ClassVar[str] = ""

    _executable_cache: ClassVar[dict[str, Path | None]] = {}
    _executable_resolver: ClassVar[Callable[[str], str | None]] = staticmethod(
        shutil.which
    )

    @property
    def tool_name(self) -> str:
        return self.TOOL_NAME

    def check_available(self) -> bool:
        """Check if the tool is installed and available in PATH."""
        try:
            self.get_executable()
            return True
        except ToolNotFoundError:
            return False

    def get_executable(self) -> Path:
        """Find the tool executable using the configured resolver.

        Returns:
            Path to the executable.

        Raises:
            ToolNotFoundError: If the tool cannot be found.
        """
        name = self.tool_name
        if name in ExternalTool._executable_cache:
            cached = ExternalTool._executable_cache[name]
            if cached is not None:
                return cached
            raise ToolNotFoundError(name, self.INSTALL_HINT)

        exe_path = ExternalTool._executable_resolver(name)
        if exe_path:
            path = Path(exe_path)
            ExternalTool._executable_cache[name] = path
            return path

        ExternalTool._executable_cache[name] = None
        raise ToolNotFoundError(name, self.INSTALL_HINT)

    @classmethod
    def clear_cache(cls) -> None:
        """Clear the executable location cache."""
        ExternalTool._executable_cache.clear()

    @classmethod
    def set_executable_resolver(
        cls,
        resolver: Callable[[str], str | None],
    ) -> None:
        """Inject a custom executable resolver for testing.

        Args:
            resolver: Function that takes a tool name and returns
                the path to the executable or None if not found.

        Example:
            def fake_resolver(name):
                return "/tmp/fake_blast.py"

            ExternalTool.set_executable_resolver(fake_resolver)
            # Run tests...
            ExternalTool.reset_executable_resolver()
        """
        ExternalTool._executable_resolver = staticmethod(resolver)
        cls.clear_cache()

    @classmethod
    def reset_executable_resolver(cls) -> None:
        """Reset the executable resolver to the default (shutil.which)."""
        ExternalTool._executable_resolver = staticmethod(shutil.which)
        cls.clear_cache()

    @abstractmethod
    def build_command(self, **kwargs: object) -> list[str]:
        """Build the command-line arguments for this tool.

        Returns:
            List of command-line arguments (including the executable).
        """
        ...

    def run(
        self,
        *,
        timeout: float | None = None,
        dry_run: bool = False,
        cancel_token: CancellationToken | None = None,
        **kwargs: object,
    ) -> ToolResult:
        """Execute the tool with the specified arguments.

        Args:
            timeout: Maximum execution time in seconds (None for no limit).
            dry_run: If True, return command without execution.
            cancel_token: Token whose cancellation kills the child process.
            **kwargs: Arguments passed to build_command().

        Returns:
            ToolResult with command, exit code, and output.

        Raises:
            ProcessSpawnError: If the process cannot be started.
            ToolTimeoutError: If execution exceeds timeout.
            SearchCancelledError: If the token is cancelled while running.
        """
        command = self.build_command(**kwargs)
        command_tuple = tuple(command)

        if dry_run:
            return ToolResult(
                command=command_tuple,
                return_code=0,
                stdout="[dry-run] Command not executed",
                stderr="",
                elapsed_seconds=0.0,
            )

        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        logger.debug("Running: %s", " ".join(command))
        start_time = time.perf_counter()

        try:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except FileNotFoundError as e:
            # The executable can disappear between lookup and spawn
            raise ToolNotFoundError(self.tool_name, self.INSTALL_HINT) from e
        except OSError as e:
            raise ProcessSpawnError(self.tool_name, str(e)) from e

        stdout, stderr = self._wait(process, command, timeout, cancel_token)
        elapsed = time.perf_counter() - start_time

        return ToolResult(
            command=command_tuple,
            return_code=process.returncode,
            stdout=stdout,
            stderr=stderr,
            elapsed_seconds=elapsed,
        )

    def _wait(
        self,
        process: subprocess.Popen[str],
        command: list[str],
        timeout: float | None,
        cancel_token: CancellationToken | None,
    ) -> tuple[str, str]:
        """Wait for the child, killing it on timeout or cancellation."""
        if cancel_token is None and timeout is None:
            return process.communicate()

        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            try:
                return process.communicate(timeout=_POLL_INTERVAL)
            except subprocess.TimeoutExpired:
                pass

            if cancel_token is not None and cancel_token.cancelled:
                self._kill(process)
                raise SearchCancelledError()

            if deadline is not None and time.monotonic() >= deadline:
                self._kill(process)
                raise ToolTimeoutError(self.tool_name, timeout or 0, command)

    @staticmethod
    def _kill(process: subprocess.Popen[str]) -> None:
        process.kill()
        # Reap the child and drain its pipes
        process.communicate()

    def run_or_raise(
        self,
        *,
        timeout: float | None = None,
        dry_run: bool = False,
        cancel_token: CancellationToken | None = None,
        **kwargs: object,
    ) -> ToolResult:
        """Execute the tool and raise an exception on failure.

        Same as run() but raises ExternalToolError if exit code is non-zero.
        """
        result = self.run(
            timeout=timeout,
            dry_run=dry_run,
            cancel_token=cancel_token,
            **kwargs,
        )

        if not result.success and not dry_run:
            raise ExternalToolError(
                self.tool_name,
                list(result.command),
                result.return_code,
                result.stderr,
            )

        return result
