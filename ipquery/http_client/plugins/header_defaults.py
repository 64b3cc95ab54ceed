from collections.abc import Mapping

import httpx

from ipquery.http_client.plugins.base import Next, Plugin, PluginKind


class HeaderDefaultsPlugin(Plugin):
    """Set headers on the request unless the request already carries them."""

    kind = PluginKind.header_defaults

    def __init__(self, headers: Mapping[str, str]) -> None:
        self.headers = dict(headers)

    async def handle_request(self, request: httpx.Request, next_: Next) -> httpx.Response:
        for name, value in self.headers.items():
            if name not in request.headers:
                request.headers[name] = value
        return await next_(request)
