"""Fallback orchestration across acquisition strategies.

This module provides the FallbackOrchestrator, which tries strategies
in a fixed order and stops at the first one producing a valid payload,
and :func:`acquire`, the engine's single entry point.
"""

import asyncio
import logging
import random
from typing import Any, Sequence

import httpx

from lelang.acquire.decoding import BodyDecoder
from lelang.acquire.retry import RetryExecutor, Sleep
from lelang.acquire.strategies import DEFAULT_STRATEGIES, is_valid_payload
from lelang.acquire.transport import TransportClient
from lelang.core.config import LelangSettings, get_settings
from lelang.core.exceptions import LelangError
from lelang.core.logging import LogContext, event, get_logger
from lelang.core.types import (
    AcquisitionOutcome,
    AcquisitionRequest,
    Failure,
    StrategyDescriptor,
    StrategyFailure,
    Success,
)
from lelang.detect.challenge import ChallengeDetector
from lelang.detect.tokens import HtmlTokenExtractor

EXHAUSTED_REASON = "All fallback strategies failed"


class FallbackOrchestrator:
    """Run strategies in order until one succeeds.

    Never raises: every strategy failure is recorded and the result is
    always a Success or a Failure.

    Example:
        >>> orchestrator = FallbackOrchestrator(build_strategies())
        >>> outcome = await orchestrator.run(AcquisitionRequest(year=2024))
        >>> outcome.success
        True
    """

    def __init__(
        self,
        strategies: Sequence[StrategyDescriptor],
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize FallbackOrchestrator.

        Args:
            strategies: Strategies in priority order
            logger: Logger receiving structured events
        """
        self.strategies = list(strategies)
        self.logger = logger or get_logger(__name__)

    async def run(self, request: AcquisitionRequest) -> AcquisitionOutcome:
        """Acquire ``request`` with the first strategy that works."""
        metadata = request.metadata()
        failures: list[StrategyFailure] = []

        with LogContext(self.logger, **metadata):
            for strategy in self.strategies:
                self.logger.info("strategy.start", extra=event(strategy=strategy.name))
                try:
                    payload = await strategy.execute(request)
                except LelangError as e:
                    failure = StrategyFailure(strategy.name, e.kind, e.message)
                except Exception as e:
                    self.logger.exception("strategy.crashed", extra=event(strategy=strategy.name))
                    failure = StrategyFailure(strategy.name, "unexpected", str(e) or type(e).__name__)
                else:
                    if is_valid_payload(payload):
                        self.logger.info("strategy.succeeded", extra=event(strategy=strategy.name))
                        return Success(payload=payload, strategy_name=strategy.name, metadata=metadata)
                    failure = StrategyFailure(
                        strategy.name,
                        "invalid_payload",
                        "Response carried no data or an error marker",
                    )

                failures.append(failure)
                self.logger.warning(
                    "strategy.failed",
                    extra=event(strategy=failure.strategy, kind=failure.kind, error=failure.message),
                )

        last_error = failures[-1].message if failures else None
        self.logger.error("acquire.exhausted", extra=event(attempts=len(failures), **metadata))
        return Failure(
            reason=EXHAUSTED_REASON,
            last_error=last_error,
            attempts=failures,
            metadata=metadata,
        )


def build_strategies(
    config: LelangSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    sleep: Sleep | None = None,
    rng: random.Random | None = None,
) -> list[StrategyDescriptor]:
    """Build the default strategy list sharing one set of collaborators.

    Args:
        config: Lelang settings
        transport: Optional httpx transport for every request
        sleep: Awaitable sleep used for backoff and pauses
        rng: Random source for jitter and pauses

    Returns:
        Strategy descriptors in priority order
    """
    config = config or get_settings()
    shared: dict[str, Any] = {
        "transport": TransportClient(config=config, transport=transport),
        "retry": RetryExecutor(config=config, sleep=sleep, rng=rng),
        "decoder": BodyDecoder(),
        "detector": ChallengeDetector(),
        "extractor": HtmlTokenExtractor(min_length=config.token_min_length),
        "config": config,
        "sleep": sleep,
        "rng": rng,
    }
    descriptors = []
    for strategy_cls in DEFAULT_STRATEGIES:
        strategy = strategy_cls(**shared)
        descriptors.append(StrategyDescriptor(name=strategy.name, execute=strategy.execute))
    return descriptors


async def acquire(
    year: int,
    page: int = 1,
    page_size: int = 10,
    proxy: str | None = None,
    *,
    config: LelangSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    sleep: Sleep | None = None,
    rng: random.Random | None = None,
    logger: logging.Logger | None = None,
) -> AcquisitionOutcome:
    """Acquire one page of tender listings.

    Args:
        year: Listing year
        page: 1-based page number
        page_size: Rows per page
        proxy: Optional forward proxy URL

    Returns:
        Success with the payload, or Failure describing every strategy failure
    """
    try:
        request = AcquisitionRequest(year=year, page_number=page, page_size=page_size, proxy=proxy)
    except ValueError as e:
        return Failure(
            reason="Invalid acquisition request",
            last_error=str(e),
            metadata={"year": year, "pageNumber": page, "pageSize": page_size},
        )

    strategies = build_strategies(config=config, transport=transport, sleep=sleep, rng=rng)
    return await FallbackOrchestrator(strategies, logger=logger).run(request)


def acquire_sync(year: int, page: int = 1, page_size: int = 10, proxy: str | None = None, **kwargs: Any) -> AcquisitionOutcome:
    """Synchronous wrapper for acquire()."""
    return asyncio.run(acquire(year, page, page_size, proxy, **kwargs))
