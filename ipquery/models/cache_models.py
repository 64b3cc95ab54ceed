from collections.abc import Callable

import httpx
from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat, field_validator

# Headers describing the wire encoding of the body; cached bodies are stored decoded.
_ENCODING_HEADERS = frozenset({"content-encoding", "content-length", "transfer-encoding"})


class CacheConfig(BaseModel):
    """Options for the response cache stage.

    Unknown keys are accepted and ignored so callers can pass a shared options mapping.
    """

    model_config = ConfigDict(extra="ignore", arbitrary_types_allowed=True)

    default_ttl: NonNegativeFloat | None = None
    methods: list[str] = Field(default_factory=lambda: ["GET", "HEAD"])
    cache_key_generator: Callable[[httpx.Request], str] | None = None
    respect_cache_headers: bool = False

    @field_validator("methods")
    @classmethod
    def _upper_methods(cls, value: list[str]) -> list[str]:
        return [method.upper() for method in value]


class CachedResponse(BaseModel):
    """Serializable snapshot of a response held by a cache store."""

    status_code: int
    headers: list[tuple[str, str]] = Field(default_factory=list)
    content: bytes = b""

    @classmethod
    def from_response(cls, response: httpx.Response) -> "CachedResponse":
        headers = [(k, v) for k, v in response.headers.multi_items() if k.lower() not in _ENCODING_HEADERS]
        return cls(status_code=response.status_code, headers=headers, content=response.content)

    def to_response(self, request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            self.status_code,
            headers=self.headers,
            content=self.content,
            request=request,
            extensions={"from_cache": True},
        )
