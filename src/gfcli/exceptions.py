"""
Custom exceptions for the gfcli application.

This module defines domain-specific exceptions so callers can branch on the
kind of failure instead of inspecting error messages.
"""

from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:
    from gfcli.fonts.interfaces import RetrievalResult
    from gfcli.fonts.search import CatalogView


class GfcliError(Exception):
    """
    Base exception for all gfcli errors.

    All custom exceptions in gfcli should inherit from this class
    to allow for easy catching of all application-specific errors.
    """

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(GfcliError):
    """Exception raised when configuration is invalid or missing."""

    pass


class ConfigFileError(ConfigurationError):
    """Exception raised when the configuration file cannot be read or parsed."""

    pass


# =============================================================================
# Transport Errors
# =============================================================================


class TransportError(GfcliError):
    """
    Base exception for failures of a single logical HTTP GET.

    Attributes:
        url: The URL that was being fetched when the error occurred.
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url


class InvalidURLError(TransportError):
    """Exception raised when a URL is not an absolute http(s) URL with a host."""

    pass


class ConnectionFailedError(TransportError):
    """
    Exception raised when the connection to the remote host fails.

    Attributes:
        host: Host name that could not be reached.
    """

    def __init__(
        self,
        message: str,
        host: Optional[str] = None,
        url: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, url, details)
        self.host = host


class RequestTimeoutError(TransportError):
    """Exception raised when no data arrives within the inactivity timeout."""

    pass


class HTTPStatusError(TransportError):
    """
    Exception raised when the final response status is not 200.

    This also covers redirects that could not be followed, either because
    the redirect budget ran out or because the response had no Location.

    Attributes:
        status_code: The HTTP status code returned by the server.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, url, details)
        self.status_code = status_code


# =============================================================================
# Catalog Errors
# =============================================================================


class CatalogFormatError(GfcliError):
    """Exception raised when the catalog body is not a JSON array."""

    is_invalid_json = True


class FontDetailError(GfcliError):
    """
    Exception raised when the per-font detail document cannot be used.

    Attributes:
        family: Family whose detail document was requested.
        status_code: HTTP status code, when the failure was a bad response.
    """

    def __init__(
        self,
        message: str,
        family: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.family = family
        self.status_code = status_code


class NoSingleMatchError(GfcliError):
    """
    Exception raised when a family name does not resolve to exactly one entry.

    Attributes:
        term: The family name that was looked up.
        view: The exact-match view that was produced for the term.
    """

    def __init__(self, message: str, term: str, view: "CatalogView") -> None:
        super().__init__(message)
        self.term = term
        self.view = view


class FontNotFoundError(NoSingleMatchError):
    """Exception raised when no catalog entry matches the requested family."""

    pass


class AmbiguousFontError(NoSingleMatchError):
    """Exception raised when several catalog entries match the requested family."""

    pass


# =============================================================================
# Placement Errors
# =============================================================================


class PlacementError(GfcliError):
    """
    Exception raised when a font file cannot be staged, moved or registered.

    Attributes:
        path: The file or folder involved in the failure.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.path = path


class CorruptedFontError(PlacementError):
    """Exception raised when a downloaded file is neither a known font type nor extension."""

    pass


class UnsupportedPlatformError(PlacementError):
    """Exception raised when no system font location is known for the platform."""

    pass


class VariantRetrievalError(GfcliError):
    """
    Aggregate failure of a multi-variant retrieval batch.

    Attributes:
        results: Variants that were retrieved and placed before and after the failures.
        failures: Ordered mapping of normalized variant id to the exception it raised.
    """

    def __init__(
        self,
        results: List["RetrievalResult"],
        failures: Dict[str, Exception],
        family: Optional[str] = None,
    ) -> None:
        attempted = len(results) + len(failures)
        message = f"{len(failures)} of {attempted} variant(s) failed"
        if family:
            message = f"{message} for {family}"
        details = "; ".join(
            f"{variant}: {error}" for variant, error in failures.items()
        )
        super().__init__(message, details or None)
        self.results = results
        self.failures = failures
        self.family = family

    @property
    def failure_count(self) -> int:
        return len(self.failures)
