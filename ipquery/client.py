from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import httpx

from ipquery.cache.store import CacheStore
from ipquery.http_client.builder import Builder
from ipquery.http_client.methods_client import HttpMethodsClient
from ipquery.http_client.plugins.add_host import AddHostPlugin
from ipquery.http_client.plugins.exception_thrower import ExceptionThrower
from ipquery.http_client.plugins.header_defaults import HeaderDefaultsPlugin
from ipquery.http_client.plugins.history import History, HistoryPlugin
from ipquery.http_client.plugins.rate_limiter import RateLimiter
from ipquery.logger import logger
from ipquery.models.cache_models import CacheConfig
from ipquery.throttling.limiter import RateLimiterFactory

if TYPE_CHECKING:
    from ipquery.api.ip import IP

API_URL = "https://api.ipquery.io"

USER_AGENT = "ipquery-python/1.0.0"


class Client:
    """Client for the https://api.ipquery.io API.

    Every request goes through the same plugin chain: HTTP errors are turned into
    exceptions, the last response is kept for inspection, a User-Agent header is set
    and the request is sent to the API host.

    To enforce rate limits on the client side, set `throttle` to True and optionally
    pass `throttle_options`:

        id: str
        policy: "fixed_window", "sliding_window" or "token_bucket"
        limit: int
        interval: a number followed by a unit (e.g. "3 seconds", "10 hours", "1 day")

    Missing options fall back to 2 requests per 3 seconds with a fixed window.
    """

    def __init__(
        self,
        http_client_builder: Builder | None = None,
        throttle: bool = False,
        throttle_options: Mapping[str, Any] | None = None,
    ) -> None:
        self.http_client_builder = http_client_builder or Builder()
        self.throttle = throttle
        self._response_history = History()

        self.http_client_builder.add_plugin(ExceptionThrower())
        self.http_client_builder.add_plugin(HistoryPlugin(self._response_history))
        self.http_client_builder.add_plugin(HeaderDefaultsPlugin({"User-Agent": USER_AGENT}))

        if throttle:
            limiter = RateLimiterFactory(throttle_options).create()
            self.http_client_builder.add_plugin(RateLimiter(limiter))
            logger.debug(f"Client-side throttling enabled id={limiter.identifier}")

        self.set_api_url(API_URL)

    @property
    def ip(self) -> "IP":
        """IP lookup API bound to this client."""
        from ipquery.api.ip import IP

        return IP(self)

    def add_cache(self, store: CacheStore, config: CacheConfig | dict | None = None) -> None:
        self.http_client_builder.add_cache(store, config)

    def remove_cache(self) -> None:
        self.http_client_builder.remove_cache()

    def get_http_client(self) -> HttpMethodsClient:
        return self.http_client_builder.get_http_client()

    def get_last_response(self) -> httpx.Response | None:
        return self._response_history.get_last_response()

    def set_api_url(self, url: str) -> None:
        """Point the client at another host, replacing the previous one."""
        self.http_client_builder.remove_plugin(AddHostPlugin)
        self.http_client_builder.add_plugin(AddHostPlugin(url))

    async def aclose(self) -> None:
        await self.http_client_builder.aclose()

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    @classmethod
    def create_with_http_client(cls, http_client: httpx.AsyncClient) -> "Client":
        """Build a client sending requests through the given httpx.AsyncClient."""
        return cls(Builder(http_client))
