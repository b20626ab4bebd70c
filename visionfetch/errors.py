"""Exception hierarchy for the fetch-extract-parse pipeline.

Every terminal failure raised by the downloader, the archive parser, or the
connector derives from :class:`VisionFetchError`. Per-row data problems are
never raised; malformed rows are dropped by the parser.
"""

from __future__ import annotations


class VisionFetchError(Exception):
    """Base class for all visionfetch errors.

    The connector stamps ``symbol`` and ``date`` onto errors raised while
    fetching so callers can log which request failed.
    """

    symbol: str | None = None
    date: str | None = None

    def with_context(self, *, symbol: str, date: str) -> VisionFetchError:
        self.symbol = symbol
        self.date = date
        return self

    def __str__(self) -> str:
        message = super().__str__()
        if self.symbol is None:
            return message
        return f"{self.symbol} {self.date}: {message}"


class DownloadError(VisionFetchError):
    """Raised when the remote archive cannot be retrieved."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class FetchTimeoutError(DownloadError):
    """Raised when the download deadline elapses or the transport times out."""


class FetchCancelledError(DownloadError):
    """Raised when the caller cancels an in-flight download."""


class HTTPStatusError(DownloadError):
    """Raised when the archive host answers with anything other than 200."""

    def __init__(self, status_code: int, *, url: str) -> None:
        super().__init__(f"unexpected status code {status_code} for {url}", url=url)
        self.status_code = status_code


class EmptyArchiveError(DownloadError):
    """Raised when a 200 response carries an empty body."""


class ResponseTooLargeError(DownloadError):
    """Raised when the response body exceeds the configured byte ceiling."""

    def __init__(self, limit: int, *, url: str) -> None:
        super().__init__(f"response from {url} exceeds {limit} bytes", url=url)
        self.limit = limit


class ArchiveFormatError(VisionFetchError):
    """Raised when the downloaded bytes are not a readable zip archive."""


class NoCsvMembersError(ArchiveFormatError):
    """Raised when an archive contains no CSV members."""


class MemberParseError(VisionFetchError):
    """Raised when one or more archive members cannot be read at all.

    All failing members are collected before raising so a multi-member archive
    reports every broken member, not only the first.
    """

    def __init__(self, failures: list[tuple[str, BaseException]]) -> None:
        self.failures = failures
        details = "; ".join(f"{name}: {exc}" for name, exc in failures)
        super().__init__(f"failed to parse {len(failures)} archive member(s): {details}")

    @property
    def member_names(self) -> list[str]:
        return [name for name, _ in self.failures]


class ValidationError(VisionFetchError, ValueError):
    """Raised when a symbol or date does not pass request validation."""
