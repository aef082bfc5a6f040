"""Custom exceptions for Lelang.

This module defines the exception hierarchy used throughout Lelang.
Every class carries a machine-readable ``kind`` used in structured
log events and failure reports, and a ``retryable`` flag that the
retry executor honours.
"""


class LelangError(Exception):
    """Base exception for all Lelang errors.

    All Lelang-specific exceptions inherit from this class,
    allowing users to catch all Lelang errors with a single except clause.
    """

    kind = "error"
    retryable = False

    def __init__(self, message: str, details: dict | None = None) -> None:
        """Initialize LelangError.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ConfigurationError(LelangError):
    """Raised when configuration is invalid."""

    kind = "configuration"

    def __init__(
        self,
        message: str,
        setting_name: str | None = None,
        setting_value: str | None = None,
    ) -> None:
        """Initialize ConfigurationError.

        Args:
            message: Human-readable error message
            setting_name: Name of the problematic setting
            setting_value: Value that caused the error
        """
        details = {}
        if setting_name:
            details["setting_name"] = setting_name
        if setting_value:
            details["setting_value"] = setting_value
        super().__init__(message, details)
        self.setting_name = setting_name
        self.setting_value = setting_value


class AcquisitionError(LelangError):
    """Raised when data acquisition fails.

    Base class for everything that can go wrong between issuing a
    request and holding a usable payload.
    """

    kind = "acquisition"

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: dict | None = None,
    ) -> None:
        """Initialize AcquisitionError.

        Args:
            message: Human-readable error message
            url: The URL involved, if any
            details: Optional dictionary with additional error details
        """
        details = dict(details or {})
        if url:
            details["url"] = url
        super().__init__(message, details)
        self.url = url


class TokenNotFound(AcquisitionError):
    """Raised when no extraction rule yielded a plausible token."""

    kind = "token_not_found"

    def __init__(self, message: str = "No token found on any page", pages: list[str] | None = None) -> None:
        details = {"pages": pages} if pages else None
        super().__init__(message, details=details)
        self.pages = pages or []


class ChallengeDetected(AcquisitionError):
    """Raised when a response is an anti-bot interstitial.

    Retrying the same call is never productive; only falling back to
    another strategy can help.
    """

    kind = "challenge"

    def __init__(self, url: str | None = None, marker: str | None = None) -> None:
        """Initialize ChallengeDetected.

        Args:
            url: The URL that answered with a challenge
            marker: The literal marker that was recognised
        """
        details = {"marker": marker} if marker else None
        super().__init__("Blocked by anti-bot protection", url=url, details=details)
        self.marker = marker


class TransportError(AcquisitionError):
    """Raised on low-level connection failures (DNS, refusal, reset)."""

    kind = "transport"
    retryable = True

    def __init__(
        self,
        message: str,
        url: str | None = None,
        method: str | None = None,
    ) -> None:
        """Initialize TransportError.

        Args:
            message: Human-readable error message
            url: The URL that failed
            method: HTTP method of the failed request
        """
        details = {"method": method} if method else None
        super().__init__(message, url=url, details=details)
        self.method = method


class TransportTimeout(TransportError):
    """Raised when a request exceeded its deadline."""

    kind = "timeout"


class TooManyRedirects(TransportError):
    """Raised when a GET redirects more often than allowed."""

    kind = "too_many_redirects"
    retryable = False


class DecodeError(AcquisitionError):
    """Raised when a body cannot be decompressed with its declared encoding."""

    kind = "decode"

    def __init__(self, message: str, encoding: str | None = None) -> None:
        details = {"encoding": encoding} if encoding else None
        super().__init__(message, details=details)
        self.encoding = encoding


class ParseError(AcquisitionError):
    """Raised when a body is not the structured data that was expected."""

    kind = "parse"

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        snippet: str | None = None,
    ) -> None:
        """Initialize ParseError.

        Args:
            message: Human-readable error message
            url: The URL whose response failed to parse
            status_code: HTTP status code of that response
            snippet: Leading part of the offending body
        """
        details = {}
        if status_code is not None:
            details["status_code"] = status_code
        if snippet:
            details["snippet"] = snippet[:500]
        super().__init__(message, url=url, details=details)
        self.status_code = status_code
        self.snippet = snippet


class SessionError(AcquisitionError):
    """Raised when a session is reused after backing a data request."""

    kind = "session"


class StrategyError(AcquisitionError):
    """Raised when a strategy exhausted its own options."""

    kind = "strategy"

    def __init__(self, message: str, strategy: str | None = None) -> None:
        details = {"strategy": strategy} if strategy else None
        super().__init__(message, details=details)
        self.strategy = strategy


class AllStrategiesExhausted(AcquisitionError):
    """Terminal error: every acquisition strategy failed."""

    kind = "exhausted"

    def __init__(
        self,
        message: str = "All fallback strategies failed",
        last_error: str | None = None,
        attempts: list | None = None,
    ) -> None:
        """Initialize AllStrategiesExhausted.

        Args:
            message: Human-readable error message
            last_error: Message of the last strategy failure
            attempts: Ordered per-strategy failure records
        """
        details = {}
        if last_error:
            details["last_error"] = last_error
        super().__init__(message, details=details)
        self.last_error = last_error
        self.attempts = attempts or []
