"""
Retry utilities with exponential backoff for handling rate limits and transient errors.
"""

import time
import logging
from typing import Callable, Mapping, Optional, TypeVar
from functools import wraps
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

T = TypeVar('T')


class RateLimitExceeded(Exception):
    """Raised when GitHub API rate limit is exceeded."""
    def __init__(self, reset_at: datetime):
        self.reset_at = reset_at
        super().__init__(f"Rate limit exceeded. Resets at {reset_at}")


def exponential_backoff(
    max_retries: int = 5,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    retry_on: tuple = (Exception,),
    max_rate_limit_wait: float = 3600.0,
) -> Callable:
    """
    Decorator for exponential backoff retry logic.

    Args:
        max_retries: Maximum number of retry attempts
        base_delay: Initial delay in seconds
        max_delay: Maximum delay between retries
        exponential_base: Multiplier for exponential growth
        retry_on: Exception types that are worth retrying
        max_rate_limit_wait: Longest wait for a rate limit reset before giving up
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            last_exception = None

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except RateLimitExceeded as e:
                    last_exception = e
                    wait_time = (e.reset_at - datetime.now(timezone.utc)).total_seconds()
                    if attempt == max_retries or wait_time > max_rate_limit_wait:
                        raise
                    if wait_time > 0:
                        logger.warning(
                            f"Rate limit exceeded. Waiting {wait_time:.1f}s until reset"
                        )
                        time.sleep(wait_time + 1)  # Add 1s buffer
                except retry_on as e:
                    last_exception = e

                    if attempt == max_retries:
                        logger.error(
                            f"Max retries ({max_retries}) reached for {func.__name__}"
                        )
                        raise

                    delay = min(
                        base_delay * (exponential_base ** attempt),
                        max_delay
                    )

                    logger.warning(
                        f"Attempt {attempt + 1}/{max_retries} failed for "
                        f"{func.__name__}: {str(e)}. Retrying in {delay:.1f}s..."
                    )
                    time.sleep(delay)

            raise last_exception

        return wrapper
    return decorator


class RateLimiter:
    """
    Tracks the REST rate limit headers and pauses when close to the limit.
    """

    def __init__(self, min_remaining: int = 10):
        """
        Args:
            min_remaining: Wait for the reset once fewer requests remain
        """
        self.min_remaining = min_remaining
        self.remaining: Optional[int] = None
        self.reset_at: Optional[datetime] = None

    def update_from_headers(self, headers: Mapping[str, str]):
        """
        Update rate limiter state from API response headers.

        Args:
            headers: Response headers containing X-RateLimit-* fields
        """
        remaining = headers.get("X-RateLimit-Remaining")
        reset = headers.get("X-RateLimit-Reset")

        if remaining is not None:
            self.remaining = int(remaining)
        if reset is not None:
            self.reset_at = datetime.fromtimestamp(int(reset), tz=timezone.utc)

        if self.remaining is not None and self.remaining < 500:
            logger.info(f"Rate limit status: {self.remaining} requests remaining")

    def wait_if_needed(self):
        """Sleep until the reset time if the remaining budget is nearly spent."""
        if self.remaining is None or self.remaining >= self.min_remaining:
            return
        if self.reset_at is None:
            return

        wait_time = (self.reset_at - datetime.now(timezone.utc)).total_seconds()
        if wait_time > 0:
            logger.warning(
                f"Approaching rate limit ({self.remaining} remaining). "
                f"Waiting {wait_time:.1f}s"
            )
            time.sleep(wait_time + 1)
