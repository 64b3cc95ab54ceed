from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


class IpQueryError(Exception):
    """Base error for the ipquery client."""


class InvalidInputError(IpQueryError):
    """Raised before dispatch when the format token or an IP address is rejected."""


class HttpStatusError(IpQueryError):
    """Raised when the API answers with a 4xx or 5xx status code.

    The original status code and reason phrase are preserved on the exception,
    together with the response itself for callers that want to inspect the body.
    """

    def __init__(self, code: int, reason_phrase: str, response: "httpx.Response | None" = None) -> None:
        super().__init__(reason_phrase)
        self.code = code
        self.reason_phrase = reason_phrase
        self.response = response


class RateLimitExceededError(IpQueryError):
    """Raised when permits cannot be granted within the accepted waiting time."""


class UnsupportedOperationError(IpQueryError):
    """Raised when a limiter implementation cannot reserve permits ahead of use."""


class InvalidConfigurationError(IpQueryError):
    """Raised for invalid throttle, cache or host configuration."""
