"""Request handlers"""

from retake.infrastructure.handlers.base import Handler
from retake.infrastructure.handlers.http_proxy import HttpHandler
from retake.infrastructure.handlers.mock import MockHandler
from retake.infrastructure.handlers.text import TextHandler

__all__ = ["Handler", "HttpHandler", "MockHandler", "TextHandler"]
