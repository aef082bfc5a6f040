"""Core module for Lelang - types, configuration, and utilities."""

from lelang.core.types import (
    AcquisitionOutcome,
    AcquisitionRequest,
    Failure,
    HttpResponse,
    Session,
    StrategyDescriptor,
    StrategyFailure,
    Success,
)
from lelang.core.config import LelangSettings
from lelang.core.exceptions import (
    AcquisitionError,
    AllStrategiesExhausted,
    ChallengeDetected,
    ConfigurationError,
    DecodeError,
    LelangError,
    ParseError,
    SessionError,
    StrategyError,
    TokenNotFound,
    TooManyRedirects,
    TransportError,
    TransportTimeout,
)

__all__ = [
    # Types
    "AcquisitionOutcome",
    "AcquisitionRequest",
    "Failure",
    "HttpResponse",
    "Session",
    "StrategyDescriptor",
    "StrategyFailure",
    "Success",
    # Config
    "LelangSettings",
    # Exceptions
    "LelangError",
    "ConfigurationError",
    "AcquisitionError",
    "AllStrategiesExhausted",
    "ChallengeDetected",
    "DecodeError",
    "ParseError",
    "SessionError",
    "StrategyError",
    "TokenNotFound",
    "TooManyRedirects",
    "TransportError",
    "TransportTimeout",
]
