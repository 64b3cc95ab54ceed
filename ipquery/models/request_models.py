from enum import Enum

import limits
from limits import RateLimitItem
from pydantic import BaseModel, Field, PositiveInt, field_validator


class ResponseFormat(str, Enum):
    """Serialization formats supported by the ipquery.io API."""

    json = "json"
    xml = "xml"
    yaml = "yaml"


class ThrottlePolicy(str, Enum):
    """Supported client-side rate limiting policies."""

    fixed_window = "fixed_window"
    sliding_window = "sliding_window"
    token_bucket = "token_bucket"


class ThrottleOptions(BaseModel):
    """Validated configuration for the in-process rate limiter.

    `interval` is a number followed by a unit, e.g. "3 seconds", "10 hours" or "1 day".
    The defaults match the public rate limits of the API.
    """

    id: str = Field(default="ipquery", min_length=1)
    policy: ThrottlePolicy = ThrottlePolicy.fixed_window
    limit: PositiveInt = 2
    interval: str = "3 seconds"

    @field_validator("interval")
    @classmethod
    def _validate_interval(cls, value: str) -> str:
        """Reject intervals the rate limit parser cannot express."""
        value = value.strip()
        try:
            limits.parse(f"1 per {value}")
        except ValueError as exc:
            raise ValueError(f"interval must look like '3 seconds' or '1 day', got {value!r}") from exc
        return value

    @property
    def rate_limit_item(self) -> RateLimitItem:
        return limits.parse(f"{self.limit} per {self.interval}")
