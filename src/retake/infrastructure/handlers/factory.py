"""Factory for creating delegate handlers"""

import logging
from typing import Any, Dict

from retake.infrastructure.handlers.base import Handler
from retake.infrastructure.handlers.http_proxy import HttpHandler
from retake.infrastructure.handlers.mock import MockHandler
from retake.infrastructure.handlers.text import TextHandler

logger = logging.getLogger(__name__)


class HandlerFactory:
    """Factory for creating handler instances"""

    HANDLERS = {
        "mock": MockHandler,
        "text": TextHandler,
        "http": HttpHandler,
    }

    @classmethod
    def create(cls, handler_type: str, config: Dict[str, Any] = None) -> Handler:
        """Create handler instance

        Args:
            handler_type: Type of handler (mock, text, http)
            config: Handler configuration

        Returns:
            Handler instance

        Raises:
            ValueError: If handler type is not supported or config is invalid
        """
        if config is None:
            config = {}

        handler_type_lower = handler_type.lower()

        if handler_type_lower not in cls.HANDLERS:
            available = ", ".join(cls.HANDLERS.keys())
            raise ValueError(
                f"Unknown handler: {handler_type}. "
                f"Available handlers: {available}"
            )

        handler_class = cls.HANDLERS[handler_type_lower]
        logger.info(f"Creating {handler_type_lower} handler")
        return handler_class(config)
