"""
Retry mechanism for resilient operations.
"""

import asyncio
import random
from typing import Any, Optional, Callable, Awaitable

from shared.logging import get_logger


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(self,
                 max_attempts: int = 2,
                 base_delay: float = 0.5,
                 max_delay: float = 2.0,
                 exponential_base: float = 2.0,
                 jitter: bool = False,
                 backoff_strategy: str = "linear"):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.backoff_strategy = backoff_strategy


class RetryError(Exception):
    """Exception raised when all retry attempts are exhausted."""
    def __init__(self, message: str, last_exception: Exception, attempts: int):
        super().__init__(message)
        self.last_exception = last_exception
        self.attempts = attempts


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """Calculate delay after a failed attempt (1-based)."""
    if config.backoff_strategy == "exponential":
        delay = config.base_delay * (config.exponential_base ** (attempt - 1))
    elif config.backoff_strategy == "linear":
        delay = config.base_delay * attempt
    elif config.backoff_strategy == "fixed":
        delay = config.base_delay
    else:
        delay = config.base_delay

    delay = min(delay, config.max_delay)

    if config.jitter:
        jitter_amount = delay * 0.1  # 10% jitter
        delay += random.uniform(-jitter_amount, jitter_amount)

    return max(0.0, delay)


class RetryPolicy:
    """Max attempts, a backoff function and a retryable-error predicate."""

    def __init__(self,
                 config: Optional[RetryConfig] = None,
                 retryable: Any = (Exception,),
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
                 name: str = "default"):
        self.config = config or RetryConfig()
        # Either a tuple of exception types or a predicate
        self._retryable = retryable
        self._sleep = sleep
        self.name = name
        self.logger = get_logger(f"retry.{name}")

    @property
    def max_attempts(self) -> int:
        return self.config.max_attempts

    def is_retryable(self, exc: BaseException) -> bool:
        if isinstance(self._retryable, tuple):
            return isinstance(exc, self._retryable)
        return bool(self._retryable(exc))

    def delay_for(self, attempt: int) -> float:
        return calculate_delay(attempt, self.config)

    async def run(self,
                  func: Callable[..., Awaitable[Any]],
                  *args,
                  on_retry: Optional[Callable[[int, Exception], None]] = None,
                  **kwargs) -> Any:
        """Call ``func`` until it succeeds, fails non-retryably or attempts run out.

        Non-retryable exceptions propagate unchanged. Exhaustion raises
        RetryError wrapping the last exception.
        """
        for attempt in range(1, self.config.max_attempts + 1):
            try:
                result = await func(*args, **kwargs)

                if attempt > 1:
                    self.logger.info("Retry succeeded", attempt=attempt)

                return result

            except Exception as e:
                if not self.is_retryable(e):
                    raise

                if attempt == self.config.max_attempts:
                    self.logger.error(
                        "All retry attempts exhausted",
                        attempt=attempt,
                        max_attempts=self.config.max_attempts,
                        error=str(e) or e.__class__.__name__
                    )
                    raise RetryError(
                        f"{self.name} failed after {self.config.max_attempts} attempts",
                        last_exception=e,
                        attempts=attempt
                    ) from e

                delay = self.delay_for(attempt)

                self.logger.warning(
                    "Retry attempt failed, waiting before next attempt",
                    attempt=attempt,
                    delay=delay,
                    error=str(e) or e.__class__.__name__
                )
                if on_retry is not None:
                    on_retry(attempt, e)

                await self._sleep(delay)

        raise AssertionError("unreachable")  # pragma: no cover
