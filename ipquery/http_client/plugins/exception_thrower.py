import httpx

from ipquery.errors import HttpStatusError
from ipquery.http_client.plugins.base import Next, Plugin, PluginKind


class ExceptionThrower(Plugin):
    """Turn 4xx and 5xx responses into HttpStatusError."""

    kind = PluginKind.exception_thrower

    async def handle_request(self, request: httpx.Request, next_: Next) -> httpx.Response:
        response = await next_(request)
        status_code = response.status_code

        if 400 <= status_code < 600:
            raise HttpStatusError(status_code, response.reason_phrase, response)

        return response
