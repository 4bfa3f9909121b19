"""Tests for RetryingHandler"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest
import requests

from retake.domain.config import RetryConfig
from retake.domain.errors import FatalError, RetryCancelled, is_retryable
from retake.domain.models.request import Request, Response
from retake.infrastructure.handlers.base import Handler
from retake.infrastructure.handlers.text import TextHandler
from retake.infrastructure.retry import RetryingHandler


class ScriptedHandler(Handler):
    """Replays a list of outcomes: exceptions are raised, responses returned"""

    def __init__(self, *outcomes):
        super().__init__()
        self.outcomes = list(outcomes)
        self.requests = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def act(self, request: Request) -> Response:
        self.requests.append(request)
        outcome = self.outcomes[min(len(self.requests), len(self.outcomes)) - 1]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def sleeps(monkeypatch):
    calls = []
    monkeypatch.setattr("retake.infrastructure.retry.time.sleep", lambda s: calls.append(s))
    return calls


class TestRetryingHandler:
    """Retry loop behaviour"""

    def test_just_works(self, sleeps):
        """Test a healthy delegate is called once and never delayed"""
        response = RetryingHandler(2, 2, TextHandler({"text": "test"})).act(Request())
        assert "test" in response.text
        assert sleeps == []

    def test_success_without_retry(self, sleeps):
        delegate = ScriptedHandler(Response(body=b"ok"))
        response = RetryingHandler(5, 1.0, delegate).act(Request())
        assert response.body == b"ok"
        assert delegate.calls == 1
        assert sleeps == []

    def test_retries_till_count_and_raises_last_failure(self, sleeps):
        failures = [ConnectionError("first"), ConnectionError("second"), ConnectionError("third")]
        delegate = ScriptedHandler(*failures)

        with pytest.raises(ConnectionError) as exc_info:
            RetryingHandler(3, 1.0, delegate).act(Request())

        assert exc_info.value is failures[-1]
        assert delegate.calls == 3
        # No wait after the final attempt
        assert sleeps == [1.0, 1.0]

    def test_retries_till_success(self, sleeps):
        delegate = ScriptedHandler(OSError("boom"), TimeoutError("slow"), Response(body=b"done"))
        response = RetryingHandler(3, 0.5, delegate).act(Request())
        assert response.body == b"done"
        assert delegate.calls == 3
        assert sleeps == [0.5, 0.5]

    def test_single_attempt_never_sleeps(self, sleeps):
        failure = ConnectionError("down")
        delegate = ScriptedHandler(failure)
        with pytest.raises(ConnectionError) as exc_info:
            RetryingHandler(1, 10.0, delegate).act(Request())
        assert exc_info.value is failure
        assert delegate.calls == 1
        assert sleeps == []

    def test_fatal_failure_not_retried(self, sleeps):
        failure = ValueError("bad request")
        delegate = ScriptedHandler(failure, Response())
        with pytest.raises(ValueError) as exc_info:
            RetryingHandler(3, 1.0, delegate).act(Request())
        assert exc_info.value is failure
        assert delegate.calls == 1
        assert sleeps == []

    def test_fatal_after_retryable_stops_immediately(self, sleeps):
        delegate = ScriptedHandler(ConnectionError("flaky"), KeyError("broken"), Response())
        with pytest.raises(KeyError):
            RetryingHandler(5, 1.0, delegate).act(Request())
        assert delegate.calls == 2
        assert sleeps == [1.0]

    def test_keyboard_interrupt_propagates(self, sleeps):
        delegate = ScriptedHandler(KeyboardInterrupt(), Response())
        with pytest.raises(KeyboardInterrupt):
            RetryingHandler(3, 1.0, delegate).act(Request())
        assert delegate.calls == 1

    def test_same_request_reused(self, sleeps):
        delegate = ScriptedHandler(ConnectionError(), ConnectionError(), Response())
        request = Request(method="POST", uri="/items", body=b"payload")
        RetryingHandler(3, 0, delegate).act(request)
        assert all(r is request for r in delegate.requests)

    def test_requests_exceptions_are_retried(self, sleeps):
        delegate = ScriptedHandler(
            requests.exceptions.ConnectionError("refused"),
            requests.exceptions.ReadTimeout("timeout"),
            Response(status=204, reason="No Content"),
        )
        response = RetryingHandler(3, 0.1, delegate).act(Request())
        assert response.status == 204
        assert delegate.calls == 3

    def test_custom_retry_predicate(self, sleeps):
        delegate = ScriptedHandler(ValueError("retry me"), Response(body=b"ok"))
        handler = RetryingHandler(2, 0.1, delegate, retry_on=lambda e: isinstance(e, ValueError))
        assert handler.act(Request()).body == b"ok"
        assert delegate.calls == 2

    @pytest.mark.parametrize("failure", [FatalError("fatal"), KeyboardInterrupt()])
    def test_custom_predicate_never_retries_fatal(self, sleeps, failure):
        delegate = ScriptedHandler(failure, Response(body=b"ok"))
        handler = RetryingHandler(3, 0.1, delegate, retry_on=lambda e: True)
        with pytest.raises(type(failure)) as exc_info:
            handler.act(Request())
        assert exc_info.value is failure
        assert delegate.calls == 1
        assert sleeps == []

    @pytest.mark.parametrize(
        "failure",
        [
            requests.exceptions.MissingSchema("No scheme supplied"),
            requests.exceptions.InvalidURL("bad url"),
            requests.exceptions.InvalidSchema("No connection adapters"),
        ],
    )
    def test_invalid_target_not_retried(self, sleeps, failure):
        delegate = ScriptedHandler(failure, Response())
        with pytest.raises(type(failure)):
            RetryingHandler(3, 1.0, delegate).act(Request())
        assert delegate.calls == 1
        assert sleeps == []

    def test_handlers_can_be_nested(self, sleeps):
        delegate = ScriptedHandler(ConnectionError())
        with pytest.raises(ConnectionError):
            RetryingHandler(2, 0.1, RetryingHandler(3, 0.1, delegate)).act(Request())
        assert delegate.calls == 6


class TestRetryingHandlerConfig:
    """Construction and validation"""

    @pytest.mark.parametrize("max_attempts", [0, -1])
    def test_rejects_non_positive_attempts(self, max_attempts):
        with pytest.raises(ValueError, match="max_attempts"):
            RetryingHandler(max_attempts, 1.0, TextHandler())

    @pytest.mark.parametrize("max_attempts", ["3", 2.5, True])
    def test_rejects_non_integer_attempts(self, max_attempts):
        with pytest.raises(ValueError, match="max_attempts"):
            RetryingHandler(max_attempts, 1.0, TextHandler())

    def test_rejects_negative_delay(self):
        with pytest.raises(ValueError, match="delay"):
            RetryingHandler(3, -0.1, TextHandler())

    @pytest.mark.parametrize("delay", [float("nan"), float("inf")])
    def test_rejects_non_finite_delay(self, delay):
        with pytest.raises(ValueError, match="finite"):
            RetryingHandler(3, delay, TextHandler())

    def test_accepts_timedelta_delay(self):
        handler = RetryingHandler(3, timedelta(milliseconds=250), TextHandler())
        assert handler.delay == 0.25

    def test_from_config(self):
        delegate = TextHandler()
        handler = RetryingHandler.from_config(RetryConfig(max_attempts=4, delay=0.2), delegate)
        assert handler.max_attempts == 4
        assert handler.delay == 0.2
        assert handler.delegate is delegate

    def test_repr(self):
        assert repr(RetryingHandler(2, 1.0, TextHandler())) == "RetryingHandler(2, 1.0, TextHandler)"


class TestRetryingHandlerTiming:
    """Real waits with small delays"""

    def test_eventual_success_waits_between_attempts(self):
        delay = 0.05
        delegate = ScriptedHandler(ConnectionError(), ConnectionError(), Response())
        start = time.monotonic()
        RetryingHandler(3, delay, delegate).act(Request())
        assert time.monotonic() - start >= 2 * delay
        assert delegate.calls == 3

    def test_exhaustion_waits_between_attempts(self):
        delay = 0.05
        delegate = ScriptedHandler(ConnectionError())
        start = time.monotonic()
        with pytest.raises(ConnectionError):
            RetryingHandler(3, delay, delegate).act(Request())
        assert time.monotonic() - start >= 2 * delay
        assert delegate.calls == 3


class TestCancellation:
    """Cancellable waits"""

    def test_cancelled_before_wait(self):
        event = threading.Event()
        event.set()
        delegate = ScriptedHandler(ConnectionError(), Response())
        with pytest.raises(RetryCancelled):
            RetryingHandler(3, 1.0, delegate, cancel_event=event).act(Request())
        assert delegate.calls == 1

    def test_cancelled_during_wait(self):
        event = threading.Event()
        delegate = ScriptedHandler(ConnectionError(), Response())
        timer = threading.Timer(0.05, event.set)
        timer.start()
        start = time.monotonic()
        try:
            with pytest.raises(RetryCancelled):
                RetryingHandler(3, 30.0, delegate, cancel_event=event).act(Request())
        finally:
            timer.cancel()
        assert time.monotonic() - start < 10.0
        assert delegate.calls == 1

    def test_unset_event_waits_full_delay(self):
        event = threading.Event()
        delegate = ScriptedHandler(ConnectionError(), Response(body=b"ok"))
        start = time.monotonic()
        response = RetryingHandler(2, 0.05, delegate, cancel_event=event).act(Request())
        assert response.body == b"ok"
        assert time.monotonic() - start >= 0.05

    def test_cancellation_is_fatal(self):
        assert not is_retryable(RetryCancelled("stop"))
        assert isinstance(RetryCancelled("stop"), FatalError)


class TestConcurrency:
    """Concurrent calls share no attempt state"""

    def test_concurrent_calls_are_independent(self, sleeps):
        seen = set()
        lock = threading.Lock()
        calls = []

        class FailOncePerUri(Handler):
            def act(self, request):
                with lock:
                    calls.append(request.uri)
                    first = request.uri not in seen
                    seen.add(request.uri)
                if first:
                    raise ConnectionError(request.uri)
                return Response(body=request.uri.encode())

        handler = RetryingHandler(2, 0.01, FailOncePerUri())
        uris = [f"/{i}" for i in range(16)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            responses = list(pool.map(lambda uri: handler.act(Request(uri=uri)), uris))

        assert [r.text for r in responses] == uris
        assert len(calls) == 32


class TestRetryLogging:
    def test_logs_each_retry_and_exhaustion(self, sleeps, caplog):
        delegate = ScriptedHandler(ConnectionError("refused"))
        with caplog.at_level(logging.DEBUG, logger="retake.infrastructure.retry"):
            with pytest.raises(ConnectionError):
                RetryingHandler(3, 0.1, delegate).act(Request())

        warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
        errors = [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]
        assert len(warnings) == 2
        assert "attempt 1/3" in warnings[0]
        assert "attempt 2/3" in warnings[1]
        assert errors == ["ScriptedHandler failed after 3 attempts: refused"]

    def test_fatal_failure_not_logged_as_error(self, sleeps, caplog):
        delegate = ScriptedHandler(ValueError("nope"))
        with caplog.at_level(logging.DEBUG, logger="retake.infrastructure.retry"):
            with pytest.raises(ValueError):
                RetryingHandler(3, 0.1, delegate).act(Request())
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]
