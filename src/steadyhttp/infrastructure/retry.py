"""Bounded retry with jittered exponential backoff, driven by tenacity.

The engine knows nothing about HTTP: it runs an attempt function that
returns True when it wants another try, and sleeps between attempts.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Callable, Dict, Optional

from tenacity import RetryCallState, Retrying, retry_if_result, stop_after_attempt

logger = logging.getLogger(__name__)

RandomFactory = Callable[[], random.Random]


def _time_seeded_random() -> random.Random:
    return random.Random(time.time_ns())


class RetryState:
    """Delay bookkeeping for one terminal call.

    The first retry waits ``min_retry_delay`` plus a uniform draw from
    ``[0, retry_delay_range)``; every later retry waits the previous delay
    times ``backoff``. Used as a tenacity wait strategy.
    """

    def __init__(
        self,
        max_attempts: int,
        backoff: float,
        min_retry_delay: float,
        retry_delay_range: float,
        rng: random.Random,
    ):
        self.attempt = 0
        self.delay = 0.0
        self.max_attempts = max_attempts
        self.backoff = backoff
        self.min_retry_delay = min_retry_delay
        self.retry_delay_range = retry_delay_range
        self._rng = rng

    def next_delay(self) -> float:
        """Advance to the next retry and return its delay in seconds"""
        if self.attempt == 0:
            self.delay = self.min_retry_delay + self._rng.random() * self.retry_delay_range
        else:
            self.delay = self.delay * self.backoff
        self.attempt += 1
        return self.delay

    def __call__(self, retry_state: RetryCallState) -> float:
        # tenacity may ask more than once per attempt
        while self.attempt < retry_state.attempt_number:
            self.next_delay()
        return self.delay


class RetryEngine:
    """Run an attempt function up to ``max_retries + 1`` times.

    Args:
        max_retries: Retries allowed after the first attempt (>= 0)
        backoff: Multiplier for every delay after the first (>= 0)
        min_retry_delay: Lower bound of the first delay in seconds
        retry_delay_range: Jitter width of the first delay in seconds
        rng_factory: Returns a fresh random source per run (time-seeded by default)
        sleep: Sleep function (tenacity's by default)
    """

    def __init__(
        self,
        max_retries: int,
        backoff: float,
        min_retry_delay: float = 0.1,
        retry_delay_range: float = 0.2,
        *,
        rng_factory: Optional[RandomFactory] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        if max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if backoff < 0:
            raise ValueError("backoff must be non-negative")
        self.max_retries = max_retries
        self.backoff = backoff
        self.min_retry_delay = min_retry_delay
        self.retry_delay_range = retry_delay_range
        self._rng_factory = rng_factory or _time_seeded_random
        self._sleep = sleep

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def new_state(self) -> RetryState:
        return RetryState(
            max_attempts=self.max_attempts,
            backoff=self.backoff,
            min_retry_delay=self.min_retry_delay,
            retry_delay_range=self.retry_delay_range,
            rng=self._rng_factory(),
        )

    def run(
        self,
        attempt: Callable[[], bool],
        describe: Optional[Callable[[], str]] = None,
    ) -> int:
        """Drive attempts until one returns False or attempts run out

        Args:
            attempt: Callable returning True when another attempt is wanted
            describe: Callable summarizing the last attempt for retry logs

        Returns:
            Number of attempts made

        Raises:
            Exception: Whatever the attempt function raises, unchanged
        """
        state = self.new_state()
        attempts = 0

        def _attempt() -> bool:
            nonlocal attempts
            attempts += 1
            return attempt()

        def _before_sleep(retry_state: RetryCallState) -> None:
            sleep_for = retry_state.next_action.sleep if retry_state.next_action else state.delay
            detail = f": {describe()}" if describe is not None else ""
            logger.warning(
                f"Attempt {retry_state.attempt_number}/{state.max_attempts} failed{detail}. "
                f"Retrying in {sleep_for:.3f}s"
            )

        def _exhausted(retry_state: RetryCallState) -> bool:
            logger.warning(f"Giving up after {retry_state.attempt_number} attempts")
            return retry_state.outcome.result()

        kwargs: Dict[str, Any] = {}
        if self._sleep is not None:
            kwargs["sleep"] = self._sleep

        retrying = Retrying(
            stop=stop_after_attempt(state.max_attempts),
            wait=state,
            retry=retry_if_result(bool),
            before_sleep=_before_sleep,
            retry_error_callback=_exhausted,
            **kwargs,
        )
        retrying(_attempt)
        return attempts
