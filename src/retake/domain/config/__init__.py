"""Configuration models with Pydantic validation."""

from retake.domain.config.app import AppConfig
from retake.domain.config.handler import HandlerConfig
from retake.domain.config.retry import RetryConfig

__all__ = [
    "AppConfig",
    "HandlerConfig",
    "RetryConfig",
]
