import hashlib

import httpx

from ipquery.cache.store import CacheStore
from ipquery.http_client.plugins.base import Next, Plugin, PluginKind
from ipquery.models.cache_models import CacheConfig, CachedResponse


def generate_cache_key(request: httpx.Request) -> str:
    """Default cache key: SHA256 of the method and the absolute URL."""
    key = f"{request.method.upper()} {request.url}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def _parse_cache_control(response: httpx.Response) -> dict[str, str | None]:
    directives: dict[str, str | None] = {}
    for part in response.headers.get("Cache-Control", "").split(","):
        name, _, value = part.strip().partition("=")
        if name:
            directives[name.lower()] = value.strip('"') or None
    return directives


class CachePlugin(Plugin):
    """Serve responses from a cache store, storing successful responses on a miss.

    Always the innermost plugin of the chain, so lookups see the fully decorated request
    and hits never reach the network.
    """

    kind = PluginKind.cache

    def __init__(self, store: CacheStore, config: CacheConfig | None = None) -> None:
        self.store = store
        self.config = config or CacheConfig()

    def _cache_key(self, request: httpx.Request) -> str:
        generator = self.config.cache_key_generator or generate_cache_key
        return generator(request)

    def _ttl_for(self, response: httpx.Response) -> tuple[bool, float | None]:
        """Return whether the response may be stored and for how long."""
        if not self.config.respect_cache_headers:
            return True, self.config.default_ttl

        directives = _parse_cache_control(response)
        if "no-store" in directives or "no-cache" in directives or "private" in directives:
            return False, None

        max_age = directives.get("max-age")
        if max_age is not None and max_age.isdigit():
            return True, float(max_age)
        return True, self.config.default_ttl

    async def handle_request(self, request: httpx.Request, next_: Next) -> httpx.Response:
        if request.method.upper() not in self.config.methods:
            return await next_(request)

        key = self._cache_key(request)
        cached = self.store.get(key)
        if cached is not None:
            return cached.to_response(request)

        response = await next_(request)

        if response.is_success:
            cacheable, ttl = self._ttl_for(response)
            if cacheable and ttl != 0:
                await response.aread()
                self.store.set(key, CachedResponse.from_response(response), ttl)

        return response
