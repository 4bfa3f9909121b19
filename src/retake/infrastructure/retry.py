"""Retry decorator for handlers using tenacity.

``RetryingHandler`` wraps a delegate handler and retries transient I/O failures
a fixed number of times with a fixed delay between attempts. Per call::

    START -> ATTEMPTING -> SUCCESS
                        -> WAITING -> ATTEMPTING
                        -> EXHAUSTED (last failure re-raised)
                        -> FATAL (non-retryable failure re-raised)
"""

from __future__ import annotations

import logging
import math
import threading
import time
from datetime import timedelta
from typing import Any, Callable, Dict, Optional, Union

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from retake.domain.config.retry import RetryConfig
from retake.domain.errors import RetryCancelled, is_retryable, never_retry_fatal
from retake.domain.models.request import Request, Response
from retake.infrastructure.handlers.base import Handler

logger = logging.getLogger(__name__)


def create_retry_decorator(
    max_attempts: int,
    delay: float,
    retry_condition: Callable[[BaseException], bool],
    before_sleep: Callable[[RetryCallState], None],
    sleep: Callable[[float], None],
) -> Callable[[Callable], Callable]:
    """Create a fixed-delay retry decorator with tenacity.

    Args:
        max_attempts: Total number of calls allowed, first one included
        delay: Pause between two attempts in seconds
        retry_condition: Function that returns True if exception should be retried
        before_sleep: Callback invoked before each pause
        sleep: Blocking wait primitive

    Returns:
        Retry decorator. Once attempts are exhausted the last exception is
        re-raised unchanged; nothing waits after the final attempt.
    """

    def decorator(func: Callable) -> Callable:
        return retry(
            stop=stop_after_attempt(max_attempts),
            wait=wait_fixed(delay),
            retry=retry_if_exception(retry_condition),
            reraise=True,
            before_sleep=before_sleep,
            sleep=sleep,
        )(func)

    return decorator


class RetryingHandler(Handler):
    """Handler that retries its delegate on I/O failures.

    The same request object is passed to the delegate on every attempt. The
    delegate is invoked at most ``max_attempts`` times per call, and the caller
    sees either the first successful response or exactly one exception: the
    last retryable failure, or the first fatal one.

    Instances hold no per-call state and may be shared between threads.
    """

    def __init__(
        self,
        max_attempts: int,
        delay: Union[float, timedelta],
        delegate: Handler,
        retry_on: Callable[[BaseException], bool] = is_retryable,
        cancel_event: Optional[threading.Event] = None,
    ):
        """Initialize retrying handler

        Args:
            max_attempts: Total number of delegate invocations (>= 1)
            delay: Pause between attempts, seconds or timedelta (>= 0)
            delegate: Wrapped handler
            retry_on: Predicate deciding which failures are retryable
            cancel_event: When set, interrupts a pending wait with RetryCancelled

        Raises:
            ValueError: If max_attempts < 1, or delay is negative or not finite
        """
        if isinstance(delay, timedelta):
            delay = delay.total_seconds()
        super().__init__({"max_attempts": max_attempts, "delay": delay})
        self._max_attempts = max_attempts
        self._delay = float(delay)
        self._delegate = delegate
        self._retry_on = never_retry_fatal(retry_on)
        self._cancel_event = cancel_event

    @classmethod
    def from_config(cls, retry_config: RetryConfig, delegate: Handler, **kwargs: Any) -> "RetryingHandler":
        """Create from validated retry configuration"""
        return cls(retry_config.max_attempts, retry_config.delay, delegate, **kwargs)

    def _validate_config(self, config: Dict[str, Any]) -> None:
        max_attempts = config["max_attempts"]
        if isinstance(max_attempts, bool) or not isinstance(max_attempts, int):
            raise ValueError("max_attempts must be an integer")
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if not isinstance(config["delay"], (int, float)):
            raise ValueError("delay must be a number")
        if not math.isfinite(config["delay"]):
            raise ValueError("delay must be finite")
        if config["delay"] < 0:
            raise ValueError("delay must be non-negative")

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def delegate(self) -> Handler:
        return self._delegate

    def act(self, request: Request) -> Response:
        # A fresh tenacity controller per call keeps attempt state local
        attempt = create_retry_decorator(
            self._max_attempts,
            self._delay,
            self._retry_on,
            self._before_sleep_log,
            self._wait,
        )(self._delegate.act)
        try:
            return attempt(request)
        except Exception as e:
            if self._retry_on(e):
                logger.error(f"{self._delegate!r} failed after {self._max_attempts} attempts: {e}")
            else:
                logger.debug(f"{self._delegate!r} failed with non-retryable error: {e!r}")
            raise

    def _before_sleep_log(self, retry_state: RetryCallState) -> None:
        if retry_state.outcome is None:
            return
        exception = retry_state.outcome.exception()
        attempt = retry_state.attempt_number
        logger.warning(
            f"{self._delegate!r} failed (attempt {attempt}/{self._max_attempts}): {exception}. "
            f"Retrying in {self._delay}s..."
        )

    def _wait(self, seconds: float) -> None:
        if self._cancel_event is None:
            time.sleep(seconds)
        elif self._cancel_event.wait(seconds):
            logger.warning(f"Retry of {self._delegate!r} cancelled")
            raise RetryCancelled(f"Retry of {self._delegate!r} cancelled while waiting")

    def __repr__(self) -> str:
        return f"RetryingHandler({self._max_attempts}, {self._delay}, {self._delegate!r})"
