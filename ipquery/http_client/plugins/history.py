import httpx

from ipquery.http_client.plugins.base import Next, Plugin, PluginKind


class History:
    """Journal keeping the last response seen by the HistoryPlugin."""

    def __init__(self) -> None:
        self._last_response: httpx.Response | None = None

    def add_success(self, request: httpx.Request, response: httpx.Response) -> None:
        self._last_response = response

    def add_failure(self, request: httpx.Request, exc: Exception) -> None:
        """Failures leave the previously recorded response in place."""

    def get_last_response(self) -> httpx.Response | None:
        return self._last_response


class HistoryPlugin(Plugin):
    """Record every response (or failure) flowing back through the chain in a journal."""

    kind = PluginKind.history

    def __init__(self, journal: History) -> None:
        self.journal = journal

    async def handle_request(self, request: httpx.Request, next_: Next) -> httpx.Response:
        try:
            response = await next_(request)
        except Exception as exc:
            self.journal.add_failure(request, exc)
            raise

        self.journal.add_success(request, response)
        return response
