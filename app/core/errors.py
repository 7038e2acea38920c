"""Error types shared by the resolver, the fetcher and the client.

Only ``InvalidInput`` is ever surfaced to a caller. Every other error is
caught inside the pipeline and turned into "no title".
"""

from typing import Optional


class TitleResolverError(Exception):
    """Base error for title resolution failures."""


class InvalidInput(TitleResolverError):
    """Malformed request payload."""


class NetworkFailure(TitleResolverError):
    """Connection error, timeout or unusable response."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class ResponseNotOK(NetworkFailure):
    """Response status outside the 2xx/3xx range."""

    def __init__(self, status_code: int, url: Optional[str] = None):
        super().__init__(f"HTTP error {status_code} for {url}", url=url)
        self.status_code = status_code


class FetchTimeout(NetworkFailure):
    """The whole fetch did not finish within the configured timeout."""


class DecodeAmbiguous(TitleResolverError):
    """Encoding hints are missing or disagree."""


class SchemaMismatch(TitleResolverError):
    """Provider response does not have the expected shape."""


class PersistenceFailure(TitleResolverError):
    """Cache read or write error."""
