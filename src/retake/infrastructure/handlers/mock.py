"""Mock handler simulating a flaky downstream peer"""

import logging
import threading
import time
from typing import Any, Dict

from retake.domain.models.request import Request, Response
from retake.infrastructure.handlers.text import TextHandler

logger = logging.getLogger(__name__)


class MockHandler(TextHandler):
    """Fails the first N calls with ConnectionError, then answers with text"""

    def __init__(self, config: Dict[str, Any] = None):
        """Initialize mock handler

        Args:
            config: Optional configuration with:
                - failures: Number of initial calls that fail (default: 0)
                - latency: Simulated latency in seconds (default: 0)
                - text: Response body once the handler recovers
        """
        config = dict(config or {})
        config.setdefault("text", "Mock response")
        super().__init__(config)
        self.failures = config.get("failures", 0)
        self.latency = config.get("latency", 0.0)
        self.calls = 0
        self._lock = threading.Lock()

    def _validate_config(self, config: Dict[str, Any]) -> None:
        super()._validate_config(config)
        for key in ("failures", "latency"):
            if key in config and not isinstance(config[key], (int, float)):
                raise ValueError(f"{key} must be a number")
            if key in config and config[key] < 0:
                raise ValueError(f"{key} must be non-negative")

    def act(self, request: Request) -> Response:
        with self._lock:
            self.calls += 1
            call = self.calls

        if self.latency:
            time.sleep(self.latency)

        if call <= self.failures:
            logger.debug(f"Mock failure {call}/{self.failures} for {request.method} {request.uri}")
            raise ConnectionError(f"Simulated connection failure ({call}/{self.failures})")
        return super().act(request)
