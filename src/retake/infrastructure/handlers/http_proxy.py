"""Handler forwarding requests to a remote HTTP peer (requests based)."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from retake.domain.models.request import Request, Response
from retake.infrastructure.handlers.base import Handler

logger = logging.getLogger(__name__)

PROXY_HEADER = "X-Retake-Proxy"

# Recomputed by requests for the outgoing message
_HOP_HEADERS = {"host", "content-length", "transfer-encoding", "connection"}

# requests has already decoded the body
_DECODED_HEADERS = _HOP_HEADERS | {"content-encoding"}


class HttpHandler(Handler):
    """Forwards every request to ``url`` and relays the answer.

    Transport failures surface as ``requests.RequestException``, which is an
    ``OSError`` and therefore retryable. HTTP error statuses are relayed as
    ordinary responses.
    """

    def __init__(self, config: Dict[str, Any], session: Optional[requests.Session] = None):
        super().__init__(config)
        self.url = config["url"].rstrip("/")
        self.timeout = config.get("timeout", 10.0)
        self.session = session

    def _validate_config(self, config: Dict[str, Any]) -> None:
        if not config.get("url"):
            raise ValueError("url is required for http handler")
        if "timeout" in config and config["timeout"] <= 0:
            raise ValueError("timeout must be positive")

    def act(self, request: Request) -> Response:
        target = f"{self.url}{request.uri}"
        headers = {k: v for k, v in request.headers.items() if k.lower() not in _HOP_HEADERS}
        logger.debug(f"HTTP {request.method} {target}")

        send = self.session.request if self.session is not None else requests.request
        resp = send(
            request.method,
            target,
            headers=headers,
            data=request.body or None,
            timeout=self.timeout,
            allow_redirects=False,
        )

        relayed = {k: v for k, v in resp.headers.items() if k.lower() not in _DECODED_HEADERS}
        relayed[PROXY_HEADER] = f"from {request.uri} to {target}"
        return Response(
            status=resp.status_code,
            reason=resp.reason or "",
            headers=relayed,
            body=resp.content,
        )
