"""Handler answering with a fixed text"""

from typing import Any, Dict

from retake.domain.models.request import Request, Response
from retake.infrastructure.handlers.base import Handler


class TextHandler(Handler):
    """Always responds 200 OK with a plain text body"""

    def _validate_config(self, config: Dict[str, Any]) -> None:
        if "text" in config and not isinstance(config["text"], str):
            raise ValueError("text must be a string")

    def act(self, request: Request) -> Response:
        body = self.config.get("text", "").encode("utf-8")
        return Response(
            headers={
                "Content-Type": "text/plain",
                "Content-Length": str(len(body)),
            },
            body=body,
        )
