"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from retake.domain.config.handler import HandlerConfig
from retake.domain.config.retry import RetryConfig


class AppConfig(BaseModel):
    """Main application configuration.

    Root model aggregating all configuration sections. Validation is performed
    at load time to fail fast on configuration errors.

    Attributes:
        retry: Retry logic configuration
        handler: Delegate handler configuration
    """

    retry: RetryConfig = Field(default_factory=RetryConfig)
    handler: HandlerConfig = Field(default_factory=HandlerConfig)

    model_config = ConfigDict(
        validate_assignment=True,  # Validate on attribute assignment
        extra="forbid",  # Reject unknown fields
        json_schema_extra={
            "example": {
                "retry": {
                    "max_attempts": 3,
                    "delay": 1.0,
                },
                "handler": {
                    "type": "http",
                    "url": "http://localhost:8080",
                    "timeout": 10.0,
                },
            }
        },
    )
