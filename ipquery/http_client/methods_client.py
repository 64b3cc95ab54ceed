from collections.abc import Mapping, Sequence

import httpx

from ipquery.http_client.plugins.base import Next, Plugin


def compose(http_client: httpx.AsyncClient, plugins: Sequence[Plugin]) -> Next:
    """Wrap the transport in the plugins.

    Requests flow through the plugins in order, responses in reverse order.
    """

    async def send(request: httpx.Request) -> httpx.Response:
        return await http_client.send(request)

    handler: Next = send
    for plugin in reversed(plugins):
        handler = _bind(plugin, handler)
    return handler


def _bind(plugin: Plugin, next_: Next) -> Next:
    async def handle(request: httpx.Request) -> httpx.Response:
        return await plugin.handle_request(request, next_)

    return handle


class HttpMethodsClient:
    """Compiled pipeline exposing HTTP verbs.

    Instances are built by the Builder and must be treated as immutable: any change to
    the plugin chain produces a new client.
    """

    def __init__(self, handler: Next, plugins: Sequence[Plugin]) -> None:
        self._handler = handler
        self.plugins: tuple[Plugin, ...] = tuple(plugins)

    async def send_request(self, request: httpx.Request) -> httpx.Response:
        return await self._handler(request)

    async def send(
        self,
        method: str,
        uri: httpx.URL | str,
        headers: Mapping[str, str] | None = None,
        content: bytes | str | None = None,
    ) -> httpx.Response:
        """Build a request from the given parts and send it through the plugin chain."""
        return await self.send_request(httpx.Request(method, uri, headers=headers, content=content))

    async def get(self, uri: httpx.URL | str, headers: Mapping[str, str] | None = None) -> httpx.Response:
        """Send a GET request."""
        return await self.send("GET", uri, headers=headers)

    async def head(self, uri: httpx.URL | str, headers: Mapping[str, str] | None = None) -> httpx.Response:
        """Send a HEAD request."""
        return await self.send("HEAD", uri, headers=headers)
