"""Handler configuration model."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class HandlerConfig(BaseModel):
    """Configuration for the wrapped (delegate) handler.

    Attributes:
        type: Handler type
        url: Target base URL (http only)
        timeout: Request timeout in seconds (http only)
        text: Response body (text and mock)
        failures: Number of initial calls that fail (mock only)
        latency: Simulated latency in seconds (mock only)
    """

    type: Literal["mock", "text", "http"] = "mock"
    url: Optional[str] = None
    timeout: float = Field(10.0, gt=0.0)
    text: str = "Hello, world!"
    failures: int = Field(0, ge=0)
    latency: float = Field(0.0, ge=0.0)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _require_url_for_http(self) -> "HandlerConfig":
        if self.type == "http" and not self.url:
            raise ValueError("url is required for http handler")
        return self
