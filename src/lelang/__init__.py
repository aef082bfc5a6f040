"""Lelang - resilient tender listing acquisition.

Extract. Detect. Retry. Fall back.

Lelang fetches pages of tender listings from a DataTables endpoint
guarded by an anti-forgery token and, at times, an anti-bot challenge.
It tries a fixed list of acquisition strategies and reports either the
first success or every failure.

Example:
    >>> from lelang.acquire import acquire
    >>>
    >>> outcome = await acquire(2024, page=1, page_size=10)
    >>> if outcome.success:
    ...     print(outcome.strategy_name, len(outcome.payload["data"]))
    ... else:
    ...     print(outcome.error)
"""

from lelang._version import __version__
from lelang.core.config import LelangSettings, configure, get_settings
from lelang.core.exceptions import (
    AcquisitionError,
    AllStrategiesExhausted,
    ChallengeDetected,
    ConfigurationError,
    DecodeError,
    LelangError,
    ParseError,
    TokenNotFound,
    TransportError,
    TransportTimeout,
)
from lelang.core.logging import get_logger, setup_logging
from lelang.core.types import (
    AcquisitionOutcome,
    AcquisitionRequest,
    Failure,
    Session,
    StrategyFailure,
    Success,
)

__all__ = [
    # Version
    "__version__",
    # Core types
    "AcquisitionOutcome",
    "AcquisitionRequest",
    "Failure",
    "Session",
    "StrategyFailure",
    "Success",
    # Config
    "LelangSettings",
    "configure",
    "get_settings",
    # Exceptions
    "LelangError",
    "AcquisitionError",
    "AllStrategiesExhausted",
    "ChallengeDetected",
    "ConfigurationError",
    "DecodeError",
    "ParseError",
    "TokenNotFound",
    "TransportError",
    "TransportTimeout",
    # Logging
    "get_logger",
    "setup_logging",
    # Acquisition (lazy)
    "acquire_sync",
    "FallbackOrchestrator",
    "HtmlTokenExtractor",
    "ChallengeDetector",
    "create_app",
]


def __getattr__(name: str):
    """Lazy import for the engine and API modules."""
    if name == "acquire_sync":
        from lelang.acquire.orchestrator import acquire_sync
        return acquire_sync

    if name == "FallbackOrchestrator":
        from lelang.acquire.orchestrator import FallbackOrchestrator
        return FallbackOrchestrator

    if name == "HtmlTokenExtractor":
        from lelang.detect.tokens import HtmlTokenExtractor
        return HtmlTokenExtractor

    if name == "ChallengeDetector":
        from lelang.detect.challenge import ChallengeDetector
        return ChallengeDetector

    if name == "create_app":
        from lelang.api.app import create_app
        return create_app

    raise AttributeError(f"module 'lelang' has no attribute {name!r}")
