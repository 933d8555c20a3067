"""
NCBI E-utilities client for retrieving sequence records by accession.

Provides access to the efetch and esearch endpoints for the sequence
databases supported by parablast.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from io import StringIO
from typing import Any, Self

import httpx

from parablast.core.exceptions import InvalidConfigurationError, ParablastError

logger = logging.getLogger(__name__)

EUTILS_BASE = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"

SUPPORTED_DATABASES = ("protein", "nuccore", "nucest", "nucgss", "popset")

# Output shape -> (rettype, retmode)
RECORD_FORMATS: dict[str, tuple[str, str]] = {
    "xml": ("gb", "xml"),
    "fasta": ("fasta", "text"),
}

# Retry configuration defaults
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0  # seconds
DEFAULT_RETRY_BACKOFF = 2.0  # exponential multiplier


class EntrezError(ParablastError):
    """Error communicating with NCBI E-utilities."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        suggestion = "Check your internet connection and try again."
        if status_code == 400:
            suggestion = "Check the accession list and database name."
        elif status_code and status_code >= 500:
            suggestion = "NCBI server error. Try again later."

        super().__init__(message=message, suggestion=suggestion)


def check_database(db: str) -> str:
    if db not in SUPPORTED_DATABASES:
        raise InvalidConfigurationError(
            "db",
            db,
            f"only {', '.join(SUPPORTED_DATABASES)} are supported",
        )
    return db


def check_format(fmt: str) -> tuple[str, str]:
    if fmt not in RECORD_FORMATS:
        raise InvalidConfigurationError(
            "format",
            fmt,
            f"only {', '.join(RECORD_FORMATS)} are allowed",
        )
    return RECORD_FORMATS[fmt]


class EntrezClient:
    """Client for NCBI E-utilities requests.

    Attributes:
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        timeout: float = 60.0,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize E-utilities client.

        Args:
            timeout: Request timeout in seconds.
            max_retries: Maximum retry attempts for transient failures.
            retry_delay: Initial delay between retries in seconds.
            retry_backoff: Exponential backoff multiplier for retries.
            transport: Optional httpx transport (used by tests).
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.retry_backoff = retry_backoff
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=EUTILS_BASE,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def fetch(self, accessions: Sequence[str], db: str, fmt: str = "fasta") -> StringIO:
        """Fetch records for a list of accessions.

        Args:
            accessions: Accession or GI identifiers.
            db: One of SUPPORTED_DATABASES.
            fmt: "fasta" for FASTA text or "xml" for GenBank XML.

        Returns:
            Readable text stream of the matching records.

        Raises:
            InvalidConfigurationError: If db or fmt is not supported.
            EntrezError: If the request fails.
        """
        check_database(db)
        rettype, retmode = check_format(fmt)
        if not accessions:
            return StringIO("")

        params = {
            "db": db,
            "id": ",".join(accessions),
            "rettype": rettype,
            "retmode": retmode,
        }
        response = self._request("/efetch.fcgi", params)
        logger.info("Fetched %d %s records from %s", len(accessions), fmt, db)
        return StringIO(response.text)

    def search(self, term: str, db: str, *, retmax: int = 10000) -> list[str]:
        """Return identifiers matching an Entrez search term.

        Example:
            >>> client.search("txid6183[Organism:noexp]", "protein")
        """
        check_database(db)
        params = {
            "db": db,
            "term": term,
            "retmax": str(retmax),
            "retmode": "json",
        }
        data: Any = self._request("/esearch.fcgi", params).json()
        return list(data.get("esearchresult", {}).get("idlist", []))

    def _request(self, endpoint: str, params: dict[str, str]) -> httpx.Response:
        """Make GET request with retry logic.

        Implements exponential backoff for transient failures (5xx errors
        and connection errors). Client errors are not retried.

        Raises:
            EntrezError: If request fails after all retries
        """
        client = self._get_client()
        last_exception: Exception | None = None
        delay = self.retry_delay

        for attempt in range(self.max_retries + 1):
            try:
                response = client.get(endpoint, params=params)
                response.raise_for_status()
                return response

            except httpx.HTTPStatusError as e:
                last_exception = e
                status_code = e.response.status_code

                if 400 <= status_code < 500:
                    raise EntrezError(
                        f"E-utilities request failed: {status_code}",
                        status_code=status_code,
                    ) from e

                if attempt < self.max_retries:
                    logger.warning(
                        "E-utilities request failed (attempt %d/%d): %s. Retrying in %.1fs...",
                        attempt + 1,
                        self.max_retries + 1,
                        status_code,
                        delay,
                    )
                    time.sleep(delay)
                    delay *= self.retry_backoff

            except httpx.RequestError as e:
                last_exception = e
                if attempt < self.max_retries:
                    logger.warning(
                        "E-utilities connection error (attempt %d/%d): %s. Retrying in %.1fs...",
                        attempt + 1,
                        self.max_retries + 1,
                        str(e),
                        delay,
                    )
                    time.sleep(delay)
                    delay *= self.retry_backoff

        if isinstance(last_exception, httpx.HTTPStatusError):
            raise EntrezError(
                f"E-utilities request failed after {self.max_retries + 1} attempts: "
                f"{last_exception.response.status_code}",
                status_code=last_exception.response.status_code,
            ) from last_exception
        raise EntrezError(
            f"E-utilities request failed after {self.max_retries + 1} attempts: "
            f"{last_exception}"
        ) from last_exception
