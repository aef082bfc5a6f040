"""Core data types for Lelang.

This module defines the fundamental data structures used throughout Lelang:
- AcquisitionRequest: What to fetch (year, page, page size, proxy)
- Session: Token and cookie harvested from one page fetch
- HttpResponse: One buffered HTTP response, body still encoded
- StrategyFailure: Why a single strategy failed
- Success / Failure: The tagged AcquisitionOutcome
- StrategyDescriptor: A named acquisition recipe
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

import httpx

from lelang.core.exceptions import AllStrategiesExhausted, SessionError

REDIRECT_STATUSES = (301, 302)


@dataclass(frozen=True)
class AcquisitionRequest:
    """One page of tender listings to acquire.

    Attributes:
        year: Listing year (``tahun``)
        page_number: 1-based page index
        page_size: Rows per page
        proxy: Optional forward proxy URL for every request
    """
    year: int
    page_number: int = 1
    page_size: int = 10
    proxy: str | None = None

    def __post_init__(self) -> None:
        """Validate paging values."""
        if self.page_number < 1:
            raise ValueError(f"page_number must be >= 1, got {self.page_number}")
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {self.page_size}")

    @property
    def offset(self) -> int:
        """Row offset of the first listing on this page."""
        return (self.page_number - 1) * self.page_size

    def metadata(self) -> dict[str, int]:
        """Metadata echoed in every outcome."""
        return {
            "year": self.year,
            "pageNumber": self.page_number,
            "pageSize": self.page_size,
        }


@dataclass
class Session:
    """Security token and cookie harvested from a page fetch.

    A session backs exactly one data request; :meth:`consume` enforces it.
    """
    token: str
    cookie: str
    base_url: str
    consumed: bool = False

    def consume(self) -> tuple[str, str]:
        """Mark the session used and return ``(token, cookie)``.

        Raises:
            SessionError: If the session already backed a request
        """
        if self.consumed:
            raise SessionError("Session already consumed", url=self.base_url)
        self.consumed = True
        return self.token, self.cookie


@dataclass
class HttpResponse:
    """A fully buffered HTTP response.

    Attributes:
        status_code: HTTP status code
        headers: Case-insensitive header map (repeated keys preserved)
        body: Raw body bytes, still content-encoded
        url: URL that produced this response
    """
    status_code: int
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: bytes = b""
    url: str = ""

    @property
    def content_encoding(self) -> str:
        """Declared content-encoding, ``identity`` when absent."""
        return self.headers.get("content-encoding", "identity").strip() or "identity"

    @property
    def cookie(self) -> str:
        """All ``set-cookie`` values joined with ``"; "``."""
        return "; ".join(self.headers.get_list("set-cookie"))

    @property
    def session_cookie(self) -> str:
        """``name=value`` pairs of every ``set-cookie``, ready for a Cookie header."""
        pairs = [value.split(";", 1)[0].strip() for value in self.headers.get_list("set-cookie")]
        return "; ".join(pair for pair in pairs if pair)

    @property
    def is_success(self) -> bool:
        """Check if request was successful."""
        return 200 <= self.status_code < 300

    @property
    def is_redirect(self) -> bool:
        """Check if this is a redirect the transport follows."""
        return self.status_code in REDIRECT_STATUSES

    @property
    def location(self) -> str | None:
        """Value of the ``Location`` header, if any."""
        return self.headers.get("location")


@dataclass
class StrategyFailure:
    """Why one strategy failed.

    Attributes:
        strategy: Strategy name
        kind: Error kind slug (``challenge``, ``timeout``, ...)
        message: Human-readable message
    """
    strategy: str
    kind: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"strategy": self.strategy, "kind": self.kind, "message": self.message}


@dataclass
class AcquisitionOutcome:
    """Base for the tagged acquisition result."""
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        raise NotImplementedError

    def to_dict(self) -> dict[str, Any]:
        raise NotImplementedError


@dataclass
class Success(AcquisitionOutcome):
    """A strategy produced a valid payload.

    Attributes:
        payload: Parsed response (dict with a ``data`` key)
        strategy_name: Name of the strategy that produced it
    """
    payload: Any = None
    strategy_name: str = ""

    @property
    def success(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "data": self.payload,
            "strategy": self.strategy_name,
            "metadata": self.metadata,
        }


@dataclass
class Failure(AcquisitionOutcome):
    """Every strategy failed.

    Attributes:
        reason: Summary message
        last_error: Message of the last strategy's failure
        attempts: Every strategy failure, in the order attempted
    """
    reason: str = "All fallback strategies failed"
    last_error: str | None = None
    attempts: list[StrategyFailure] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return False

    @property
    def error(self) -> str:
        """Human-readable error, naming the last failure."""
        if self.last_error:
            return f"{self.reason}: {self.last_error}"
        return self.reason

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": self.error,
            "lastError": self.last_error,
            "attempts": [a.to_dict() for a in self.attempts],
            "metadata": self.metadata,
        }

    def to_exception(self) -> AllStrategiesExhausted:
        """Convert to an exception for callers that prefer raising."""
        return AllStrategiesExhausted(
            self.reason,
            last_error=self.last_error,
            attempts=self.attempts,
        )


@dataclass
class StrategyDescriptor:
    """A named acquisition recipe.

    Attributes:
        name: Name used in logs and outcomes
        execute: Coroutine function producing a payload or raising
    """
    name: str
    execute: Callable[[AcquisitionRequest], Awaitable[Any]]
