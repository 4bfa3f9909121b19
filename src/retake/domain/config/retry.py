"""Retry configuration model."""

from pydantic import BaseModel, ConfigDict, Field


class RetryConfig(BaseModel):
    """Configuration for retry logic.

    Attributes:
        max_attempts: Total number of delegate invocations, first call included
        delay: Fixed pause between two attempts, in seconds
    """

    max_attempts: int = Field(3, gt=0)
    delay: float = Field(1.0, ge=0.0, allow_inf_nan=False)  # Allow 0 for tests

    model_config = ConfigDict(extra="forbid")
