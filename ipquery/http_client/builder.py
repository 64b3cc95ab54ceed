import threading

import httpx
from pydantic import ValidationError

from ipquery.cache.store import CacheStore
from ipquery.errors import InvalidConfigurationError
from ipquery.http_client.methods_client import HttpMethodsClient, compose
from ipquery.http_client.plugins.base import Plugin, PluginKind
from ipquery.http_client.plugins.cache import CachePlugin
from ipquery.logger import logger
from ipquery.models.cache_models import CacheConfig

DEFAULT_TIMEOUT_SECONDS = 5.0


class Builder:
    """Owns the transport and the plugin chain, and compiles them into an HttpMethodsClient.

    The compiled client is memoized and dropped whenever the chain changes, so the next
    `get_http_client()` call rebuilds it. All reads and mutations of the chain run under
    one lock, so a caller never gets a client built from a half-applied change.

    Args:
        http_client: transport used to send requests. Defaults to a new
            `httpx.AsyncClient` with a 5 second timeout, created on first use.
    """

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        self._http_client = http_client
        self._plugins: list[Plugin] = []
        self._cache_plugin: CachePlugin | None = None
        self._http_methods_client: HttpMethodsClient | None = None
        self._lock = threading.Lock()
        self._transport_lock = threading.Lock()

    @property
    def http_client(self) -> httpx.AsyncClient:
        with self._transport_lock:
            if self._http_client is None:
                self._http_client = httpx.AsyncClient(timeout=DEFAULT_TIMEOUT_SECONDS)
            return self._http_client

    @property
    def plugins(self) -> tuple[Plugin, ...]:
        with self._lock:
            return tuple(self._plugins)

    @property
    def cache_plugin(self) -> CachePlugin | None:
        with self._lock:
            return self._cache_plugin

    def add_plugin(self, plugin: Plugin) -> None:
        with self._lock:
            self._plugins.append(plugin)
            self._http_methods_client = None

    def remove_plugin(self, kind: PluginKind | type[Plugin]) -> int:
        """Remove every plugin of the given kind or class and return how many were removed."""
        with self._lock:
            if isinstance(kind, PluginKind):
                kept = [plugin for plugin in self._plugins if plugin.kind is not kind]
            else:
                kept = [plugin for plugin in self._plugins if not isinstance(plugin, kind)]

            removed = len(self._plugins) - len(kept)
            if removed:
                self._plugins = kept
                self._http_methods_client = None
                logger.debug(f"Removed {removed} plugin(s) of kind {kind!r}")
            return removed

    def add_cache(self, store: CacheStore, config: CacheConfig | dict | None = None) -> None:
        if not isinstance(config, CacheConfig):
            try:
                config = CacheConfig.model_validate(config or {})
            except ValidationError as exc:
                raise InvalidConfigurationError(f"Invalid cache configuration: {exc}") from exc

        with self._lock:
            self._cache_plugin = CachePlugin(store, config)
            self._http_methods_client = None
        logger.debug(f"Installed response cache store={type(store).__name__}")

    def remove_cache(self) -> None:
        with self._lock:
            self._cache_plugin = None
            self._http_methods_client = None
        logger.debug("Removed response cache")

    def get_http_client(self) -> HttpMethodsClient:
        with self._lock:
            if self._http_methods_client is None:
                plugins = list(self._plugins)

                if self._cache_plugin is not None:
                    plugins.append(self._cache_plugin)

                self._http_methods_client = HttpMethodsClient(compose(self.http_client, plugins), plugins)
                logger.debug(f"Compiled HTTP client with plugins={[type(p).__name__ for p in plugins]}")

            return self._http_methods_client

    async def aclose(self) -> None:
        with self._transport_lock:
            http_client = self._http_client
        if http_client is not None:
            await http_client.aclose()

    async def __aenter__(self) -> "Builder":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
