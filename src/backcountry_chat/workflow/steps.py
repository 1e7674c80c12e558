"""Retryable, timeout-bounded units of work."""

import asyncio
import logging
from typing import Awaitable, Callable, Literal, Optional, TypeVar

from pydantic import BaseModel, Field
from tenacity import (
    AsyncRetrying, RetryCallState, stop_after_attempt,
    wait_exponential, wait_fixed, wait_incrementing
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Backoff = Literal["constant", "linear", "exponential"]


class StepPolicy(BaseModel):
    """Retry and timeout policy of one step."""
    max_attempts: int = Field(..., ge=1, description="Attempts including the first one")
    base_delay: float = Field(..., ge=0, description="Delay before the first retry, in seconds")
    backoff: Backoff = Field("exponential", description="How the delay grows between retries")
    timeout: float = Field(..., gt=0, description="Time limit of a single attempt, in seconds")
    max_delay: Optional[float] = Field(None, ge=0, description="Upper bound for the retry delay")

    def wait_strategy(self):
        """tenacity wait strategy for this policy."""
        max_delay = self.max_delay if self.max_delay is not None else float("inf")
        if self.backoff == "constant":
            return wait_fixed(min(self.base_delay, max_delay))
        if self.backoff == "linear":
            return wait_incrementing(start=self.base_delay, increment=self.base_delay, max=max_delay)
        return wait_exponential(multiplier=self.base_delay, max=max_delay)


async def run_step(name: str, policy: StepPolicy, fn: Callable[[], Awaitable[T]]) -> T:
    """Run an async callable until it succeeds or the policy is exhausted.

    Each attempt is cancelled when it exceeds policy.timeout.

    Args:
        name: Step name for logging
        policy: Retry and timeout policy
        fn: Zero-argument coroutine function doing the work

    Returns:
        The value of the first successful attempt

    Raises:
        Exception: The last attempt's exception, asyncio.TimeoutError included
    """
    def log_retry(retry_state: RetryCallState) -> None:
        logger.warning(
            f"Step '{name}' attempt {retry_state.attempt_number}/{policy.max_attempts} failed: "
            f"{retry_state.outcome.exception()!r}; retrying in {retry_state.next_action.sleep:.1f}s"
        )

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=policy.wait_strategy(),
        before_sleep=log_retry,
        reraise=True
    )

    async for attempt in retrying:
        with attempt:
            logger.info(f"Step '{name}' attempt {attempt.retry_state.attempt_number}")
            result = await asyncio.wait_for(fn(), timeout=policy.timeout)
    logger.info(f"Step '{name}' succeeded")
    return result
