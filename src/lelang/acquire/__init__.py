"""Acquisition layer for Lelang.

This module provides the resilient acquisition engine:
- HTTP transport with timeouts, proxying and bounded redirects
- Content-encoding decoding (identity, gzip, deflate, brotli)
- Retry with exponential backoff and jitter
- Ordered acquisition strategies and the fallback orchestrator
"""

from lelang.acquire.decoding import BodyDecoder
from lelang.acquire.orchestrator import (
    FallbackOrchestrator,
    acquire,
    acquire_sync,
    build_strategies,
)
from lelang.acquire.retry import JitterWait, RetryExecutor, is_retryable
from lelang.acquire.strategies import (
    COMMON_TOKENS,
    AcquisitionStrategy,
    CommonTokensStrategy,
    HarvestedTokenStrategy,
    ParameterizedGetStrategy,
    WithoutTokenStrategy,
    is_valid_payload,
)
from lelang.acquire.transport import TransportClient

__all__ = [
    # Transport
    "TransportClient",
    "BodyDecoder",
    # Retry
    "RetryExecutor",
    "JitterWait",
    "is_retryable",
    # Strategies
    "AcquisitionStrategy",
    "WithoutTokenStrategy",
    "ParameterizedGetStrategy",
    "CommonTokensStrategy",
    "HarvestedTokenStrategy",
    "COMMON_TOKENS",
    "is_valid_payload",
    # Orchestration
    "FallbackOrchestrator",
    "build_strategies",
    "acquire",
    "acquire_sync",
]
