"""
BLAST+ wrapper classes.

Provides Python interfaces for:
- BlastProgram: any BLAST+ search program (blastp, blastn, blastx, ...)
  writing XML output for one query batch
- BlastDbCmd: Retrieving entries from a BLAST database
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from io import StringIO
from pathlib import Path
from typing import TYPE_CHECKING

from Bio import SeqIO
from Bio.SeqRecord import SeqRecord

from parablast.core.exceptions import InvalidConfigurationError, NotFoundError
from parablast.external.base import (
    CancellationToken,
    ExternalTool,
    ExternalToolError,
    validate_path_safe,
)

if TYPE_CHECKING:
    from parablast.models.database import BlastDatabase

logger = logging.getLogger(__name__)

OptionValue = str | int | float | bool | None

# Applied to every batch unless the caller supplies the same flag.
# -outfmt 5 is BLAST XML, the only format the merger understands.
DEFAULT_BLAST_OPTIONS: dict[str, OptionValue] = {
    "-evalue": "10",
    "-outfmt": "5",
    "-max_target_seqs": "10",
}

# Flags owned by the batch runner; callers may not set them.
RESERVED_FLAGS = frozenset({"-query", "-out", "-db"})


def normalize_option_key(key: str) -> str:
    """Return a BLAST flag with exactly one leading dash.

    Example:
        >>> normalize_option_key("evalue")
        '-evalue'
        >>> normalize_option_key("-num_threads")
        '-num_threads'
    """
    key = key.strip()
    if not key.lstrip("-"):
        raise InvalidConfigurationError("option", key, "empty option flag")
    return "-" + key.lstrip("-")


def check_reserved_options(options: Mapping[str, OptionValue]) -> None:
    """Reject caller options that collide with the runner-owned flags."""
    clashes = sorted(
        normalize_option_key(key) for key in options
        if normalize_option_key(key) in RESERVED_FLAGS
    )
    if clashes:
        raise InvalidConfigurationError(
            "options",
            clashes,
            "-query, -out and -db are set for each batch and cannot be overridden",
        )


def build_blast_args(
    defaults: Mapping[str, OptionValue],
    overrides: Mapping[str, OptionValue],
) -> list[str]:
    """Merge default and caller options into an ordered argument list.

    Caller values win for the same flag. Flags keep the position of their
    first appearance: defaults first, then new caller flags in caller order.
    A value of ``None`` or ``True`` emits the bare flag, ``False`` drops it.

    Args:
        defaults: Default flag -> value mapping.
        overrides: Caller-supplied flag -> value mapping.

    Returns:
        Flat argument list, e.g. ``["-evalue", "1e-5", "-outfmt", "5"]``.

    Example:
        >>> build_blast_args({"-evalue": "10"}, {"evalue": 0.001, "ungapped": True})
        ['-evalue', '0.001', '-ungapped']
    """
    merged: dict[str, OptionValue] = {}
    for key, value in defaults.items():
        merged[normalize_option_key(key)] = value
    for key, value in overrides.items():
        merged[normalize_option_key(key)] = value

    args: list[str] = []
    for flag, value in merged.items():
        if value is False:
            continue
        args.append(flag)
        if value is None or value is True:
            continue
        args.append(str(value))
    return args


class BlastProgram(ExternalTool):
    """Wrapper for one BLAST+ search program writing XML output.

    The program name is chosen per instance so that blastp, blastn,
    blastx, tblastn and tblastx share one wrapper.

    Example:
        >>> blastp = BlastProgram("blastp")
        >>> result = blastp.run_or_raise(
        ...     query=Path("batch_0001.fasta"),
        ...     database=Path("db/swissprot"),
        ...     output=Path("batch_0001.xml"),
        ...     options={"-evalue": "1e-5"},
        ... )
    """

    TOOL_NAME = "blastp"
    INSTALL_HINT = "conda install -c bioconda blast"

    def __init__(self, program: str = TOOL_NAME):
        if not program or not program.strip():
            raise InvalidConfigurationError("program", program, "program name is empty")
        self._program = program.strip()

    @property
    def tool_name(self) -> str:
        return self._program

    def build_command(
        self,
        *,
        query: Path,
        database: Path,
        output: Path,
        options: Mapping[str, OptionValue] | None = None,
        defaults: Mapping[str, OptionValue] = DEFAULT_BLAST_OPTIONS,
    ) -> list[str]:
        """Build the BLAST command for one batch.

        Args:
            query: Batch FASTA file.
            database: BLAST database path or prefix.
            output: XML output file.
            options: Caller options overriding the defaults.
            defaults: Default options.

        Returns:
            Command as list of strings.
        """
        options = options or {}
        check_reserved_options(options)

        query = validate_path_safe(query, must_exist=False)
        output = validate_path_safe(output, must_exist=False)

        exe = str(self.get_executable())
        cmd = [exe]
        cmd.extend(["-query", str(query)])
        cmd.extend(["-out", str(output)])
        cmd.extend(["-db", str(database)])
        cmd.extend(build_blast_args(defaults, options))
        return cmd


class BlastDbCmd(ExternalTool):
    """Wrapper for blastdbcmd entry retrieval.

    Example:
        >>> cmd = BlastDbCmd()
        >>> result = cmd.run_or_raise(entry="P12345", database=Path("db/swissprot"))
    """

    TOOL_NAME = "blastdbcmd"
    INSTALL_HINT = "conda install -c bioconda blast"

    def build_command(
        self,
        *,
        entry: str,
        database: Path,
        outfmt: str = "%f",
    ) -> list[str]:
        """Build blastdbcmd command.

        Args:
            entry: Sequence identifier to retrieve.
            database: BLAST database path or prefix.
            outfmt: Output format (default FASTA).

        Returns:
            Command as list of strings.
        """
        exe = str(self.get_executable())
        return [exe, "-entry", entry, "-db", str(database), "-outfmt", outfmt]


def get_sequence(
    db: BlastDatabase,
    accession: str | None,
    *,
    timeout: float | None = None,
    cancel_token: CancellationToken | None = None,
) -> SeqRecord | None:
    """Return one sequence from a BLAST database as a SeqRecord.

    Args:
        db: Database to read from.
        accession: Entry identifier; an empty value returns None.

    Raises:
        NotFoundError: If the database has no such entry.
        ExternalToolError: If blastdbcmd fails for another reason.
    """
    if not accession:
        return None

    tool = BlastDbCmd()
    result = tool.run(
        entry=accession,
        database=db.path,
        timeout=timeout,
        cancel_token=cancel_token,
    )
    if not result.success:
        if "not found" in result.stderr.lower():
            raise NotFoundError("Sequence", accession, f"No entry in database {db.path}")
        raise ExternalToolError(
            tool.tool_name,
            list(result.command),
            result.return_code,
            result.stderr,
        )

    records = list(SeqIO.parse(StringIO(result.stdout), "fasta"))
    if not records:
        raise NotFoundError("Sequence", accession, f"No entry in database {db.path}")
    return records[0]
