"""Request and Response models - what flows through a handler"""

from dataclasses import dataclass, field
from typing import Dict


@dataclass(frozen=True)
class Request:
    """Incoming request passed to a handler"""

    method: str = "GET"
    uri: str = "/"
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""


@dataclass(frozen=True)
class Response:
    """Response produced by a handler"""

    status: int = 200
    reason: str = "OK"
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def text(self) -> str:
        """Body decoded as UTF-8"""
        return self.body.decode("utf-8", errors="replace")

    @property
    def is_successful(self) -> bool:
        """Check if status is 2xx"""
        return 200 <= self.status < 300

    def status_line(self) -> str:
        """Render the HTTP status line"""
        return f"HTTP/1.1 {self.status} {self.reason}"
