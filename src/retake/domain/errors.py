"""Failure classification shared by handlers and the retry decorator.

Any ``OSError`` (``ConnectionError``, ``TimeoutError``, and most
``requests.RequestException``) is treated as a transient I/O failure and
therefore retryable. Everything else is fatal.
"""

from typing import Callable


class FatalError(RuntimeError):
    """Failure that must never be retried."""

    pass


class RetryCancelled(FatalError):
    """The wait between two attempts was cancelled."""

    pass


def is_retryable(exception: BaseException) -> bool:
    """Check if a delegate failure should be retried."""
    if isinstance(exception, FatalError):
        return False
    # requests.MissingSchema, InvalidURL, InvalidSchema: a bad target never recovers
    if isinstance(exception, ValueError):
        return False
    return isinstance(exception, OSError)


def never_retry_fatal(predicate: Callable[[BaseException], bool]) -> Callable[[BaseException], bool]:
    """Restrict a retry predicate so fatal failures and interrupts always propagate."""

    def guarded(exception: BaseException) -> bool:
        if not isinstance(exception, Exception) or isinstance(exception, FatalError):
            return False
        return predicate(exception)

    return guarded
