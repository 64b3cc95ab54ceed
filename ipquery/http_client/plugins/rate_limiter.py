import httpx

from ipquery.http_client.plugins.base import Next, Plugin, PluginKind
from ipquery.throttling.limiter import Limiter


class RateLimiter(Plugin):
    """Wait for rate limiter permits before forwarding the request.

    Args:
        limiter: limiter granting the permits.
        tokens: amount of permits required per request.
        max_time: maximum accepted waiting time in seconds, None to wait as long as needed.

    Raises:
        RateLimitExceededError: if the request would have to wait longer than `max_time`.
        UnsupportedOperationError: if the limiter cannot reserve permits.
        InvalidConfigurationError: if `tokens` is larger than the burst size of the limiter.
    """

    kind = PluginKind.rate_limiter

    def __init__(self, limiter: Limiter, tokens: int = 1, max_time: float | None = None) -> None:
        self.limiter = limiter
        self.tokens = tokens
        self.max_time = max_time

    async def handle_request(self, request: httpx.Request, next_: Next) -> httpx.Response:
        reservation = await self.limiter.reserve(self.tokens, self.max_time)
        await reservation.wait()
        return await next_(request)
