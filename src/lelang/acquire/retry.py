"""Bounded retry with exponential backoff and jitter.

Built on tenacity. Failures that declare ``retryable = False``
(challenge pages, decode and parse failures, missing tokens) are
re-raised at once, as is anything that is not a LelangError.
"""

import asyncio
import random
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from lelang.core.config import LelangSettings, get_settings
from lelang.core.exceptions import LelangError
from lelang.core.logging import event, get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[Any]]


class JitterWait(wait_base):
    """Uniform jitter in ``[0, jitter]`` seconds from an injectable source."""

    def __init__(self, jitter: float, rng: random.Random | None = None) -> None:
        self.jitter = jitter
        self.rng = rng

    def __call__(self, retry_state: RetryCallState) -> float:
        return (self.rng or random).uniform(0, self.jitter)


def is_retryable(error: BaseException) -> bool:
    """True for Lelang errors flagged as transient."""
    return isinstance(error, LelangError) and error.retryable


def _log_scheduled(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.warning(
        "retry.scheduled",
        extra=event(
            attempt=retry_state.attempt_number,
            kind=getattr(error, "kind", None),
            delay=round(delay, 3),
        ),
    )


class RetryExecutor:
    """Run an idempotent async operation with bounded retries.

    The delay after failed attempt ``k`` is ``base_delay * 2 ** (k - 1)``
    plus uniform jitter in ``[0, jitter]``.

    Example:
        >>> executor = RetryExecutor(max_attempts=3, base_delay=1.0)
        >>> data = await executor.run(lambda: client.get(url, headers))
    """

    def __init__(
        self,
        max_attempts: int | None = None,
        base_delay: float | None = None,
        jitter: float | None = None,
        sleep: Sleep | None = None,
        rng: random.Random | None = None,
        config: LelangSettings | None = None,
    ) -> None:
        """Initialize RetryExecutor.

        Args:
            max_attempts: Attempts per operation, defaults to settings
            base_delay: Backoff base in seconds, defaults to settings
            jitter: Upper bound of random jitter in seconds, defaults to settings
            sleep: Awaitable sleep function (asyncio.sleep by default)
            rng: Random source for jitter
            config: Lelang settings
        """
        config = config or get_settings()
        self.max_attempts = max_attempts if max_attempts is not None else config.retry_attempts
        self.base_delay = base_delay if base_delay is not None else config.retry_base_delay
        self.jitter = jitter if jitter is not None else config.retry_jitter
        self.sleep = sleep or asyncio.sleep
        self.rng = rng

    def retrying(self, max_attempts: int, base_delay: float) -> AsyncRetrying:
        """Build the tenacity controller for one call."""
        return AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=base_delay, exp_base=2) + JitterWait(self.jitter, self.rng),
            retry=retry_if_exception(is_retryable),
            sleep=self.sleep,
            before_sleep=_log_scheduled,
            reraise=True,
        )

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        max_attempts: int | None = None,
        base_delay: float | None = None,
    ) -> T:
        """Run ``operation`` until it succeeds or attempts run out.

        Args:
            operation: Zero-argument coroutine function
            max_attempts: Override for this call
            base_delay: Override for this call

        Returns:
            The operation's result

        Raises:
            LelangError: The last failure, unchanged, once attempts are
                exhausted, or immediately when it is not retryable
        """
        attempts = max_attempts if max_attempts is not None else self.max_attempts
        delay_base = base_delay if base_delay is not None else self.base_delay
        if attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {attempts}")

        return await self.retrying(attempts, delay_base)(operation)
