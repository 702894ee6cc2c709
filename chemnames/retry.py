"""
Retry logic with linear backoff for transient lookup failures.

The policy never raises: it hands back the last outcome once the lookup
succeeds, fails permanently, runs out of attempts, or is cancelled.
"""

import time
from typing import Callable, Optional

from .outcome import LookupOutcome


RETRYABLE_STATUS_CODES = {
    408,  # Request Timeout
    429,  # Too Many Requests
    500,  # Internal Server Error
    502,  # Bad Gateway
    503,  # Service Unavailable
    504,  # Gateway Timeout
}


def is_retryable_status(status_code: int) -> bool:
    """
    Check if HTTP status code indicates a retryable error.

    Args:
        status_code: HTTP status code

    Returns:
        True if the request should be retried
    """
    return status_code in RETRYABLE_STATUS_CODES


def linear_backoff(attempt: int, base_delay: float) -> float:
    """Delay to wait after failed attempt number `attempt` (1-based)."""
    if attempt < 1:
        raise ValueError("attempt numbers start at 1")
    return base_delay * attempt


class RetryPolicy:
    """
    Bounded retries for a lookup callable.

    Sleeping goes through the injected `sleep` so tests can record delays
    instead of waiting them out.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 0.4,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            max_attempts: Total attempts including the first (>= 1)
            base_delay: Seconds multiplied by the attempt number between tries
            sleep: Function used to wait between attempts
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if base_delay < 0:
            raise ValueError("base_delay must not be negative")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.sleep = sleep

    def delay_for(self, attempt: int) -> float:
        return linear_backoff(attempt, self.base_delay)

    def resolve(
        self,
        identifier: str,
        lookup: Callable[[str], LookupOutcome],
        cancelled: Optional[Callable[[], bool]] = None,
        on_retry: Optional[Callable[[int, LookupOutcome, float], None]] = None,
    ) -> LookupOutcome:
        """
        Run `lookup(identifier)` until it stops failing transiently.

        Args:
            identifier: Key passed through to the lookup
            lookup: Single-attempt lookup returning a LookupOutcome
            cancelled: Optional predicate checked before every retry
            on_retry: Optional callback(attempt, outcome, delay) before sleeping

        Returns:
            The last outcome, annotated with the number of attempts made
        """
        outcome = None
        for attempt in range(1, self.max_attempts + 1):
            outcome = lookup(identifier)

            if not outcome.is_transient or attempt == self.max_attempts:
                return outcome.with_attempts(attempt)

            if cancelled is not None and cancelled():
                return outcome.with_attempts(attempt)

            delay = self.delay_for(attempt)
            if on_retry:
                on_retry(attempt, outcome, delay)
            self.sleep(delay)

            # Cancellation may arrive while sleeping
            if cancelled is not None and cancelled():
                return outcome.with_attempts(attempt)

        return outcome
