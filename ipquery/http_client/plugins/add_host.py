import httpx

from ipquery.errors import InvalidConfigurationError
from ipquery.http_client.plugins.base import Next, Plugin, PluginKind


class AddHostPlugin(Plugin):
    """Send requests to the configured host.

    Only requests without a host are rewritten, unless `replace` is set, in which case
    every request is pointed at the host.
    """

    kind = PluginKind.add_host

    def __init__(self, host: httpx.URL | str, replace: bool = False) -> None:
        host = httpx.URL(host)
        if not host.scheme or not host.host:
            raise InvalidConfigurationError(f"Host URL must be absolute, got {str(host)!r}")
        self.host = host
        self.replace = replace

    async def handle_request(self, request: httpx.Request, next_: Next) -> httpx.Response:
        if self.replace or not request.url.host:
            request.url = request.url.copy_with(scheme=self.host.scheme, host=self.host.host, port=self.host.port)
            request.headers["Host"] = request.url.netloc.decode("ascii")
        return await next_(request)
