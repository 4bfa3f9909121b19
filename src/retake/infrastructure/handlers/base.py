"""Base handler interface"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from retake.domain.models.request import Request, Response


class Handler(ABC):
    """Abstract base class for request handlers"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize handler with configuration

        Args:
            config: Handler configuration dictionary

        Raises:
            ValueError: If configuration is invalid
        """
        if config is None:
            config = {}
        self._validate_config(config)
        self.config = config

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Validate handler configuration

        Args:
            config: Configuration dictionary

        Raises:
            ValueError: If configuration is invalid
        """
        # Override in subclasses for specific validation
        pass

    @abstractmethod
    def act(self, request: Request) -> Response:
        """Process a request

        Args:
            request: Request to process

        Returns:
            Response

        Raises:
            OSError: On a transient I/O failure
        """
        pass

    def __repr__(self) -> str:
        return self.__class__.__name__
