"""
Error taxonomy for the place extraction pipeline.

Every failure that crosses the pipeline boundary is one of these classes.
``error_kind`` is what callers see in the failure envelope and
``http_status`` is what the HTTP layer answers with.
"""
from typing import Optional


class PlaceScraperError(Exception):
    """Base class for all pipeline failures."""

    http_status: int = 500

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.url = url

    @property
    def error_kind(self) -> str:
        return type(self).__name__


class InvalidInputError(PlaceScraperError):
    """The request did not carry a usable URL string."""

    http_status = 400


class InvalidUrlError(PlaceScraperError):
    """The URL does not belong to the supported domain family."""

    http_status = 400


class RedirectResolutionError(PlaceScraperError):
    """A short link produced no usable redirect target."""

    http_status = 400


class NetworkError(PlaceScraperError):
    """Transport-level failure (DNS, connect, timeout)."""


class FetchError(PlaceScraperError):
    """The detail page answered with a non-2xx status."""

    def __init__(self, message: str, status: int, url: Optional[str] = None):
        super().__init__(message, url=url)
        self.status = status


class NoEmbeddedDataError(PlaceScraperError):
    """No usable embedded state graph. Recovered by the markup fallback."""


class NoRecordError(PlaceScraperError):
    """Every extraction strategy came up empty."""
