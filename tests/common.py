from collections.abc import Callable
from http import HTTPStatus

import httpx

from ipquery.throttling.limiter import Limiter, Reservation


class RecordingTransport:
    """Callable for httpx.MockTransport answering with a fixed response and recording requests."""

    def __init__(self, status_code: int = HTTPStatus.OK, text: str = "{}", headers: dict | None = None) -> None:
        self.status_code = status_code
        self.text = text
        self.headers = headers or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, text=self.text, headers=self.headers)


class FailingTransport:
    """Callable for httpx.MockTransport that raises a network error."""

    def __init__(self) -> None:
        self.calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        raise httpx.ConnectError("Network failure", request=request)


def make_http_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def make_next(response: httpx.Response) -> Callable:
    """Build a `next_` continuation returning `response` and remembering the request it got."""
    seen: list[httpx.Request] = []

    async def _next(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        response.request = request
        return response

    _next.seen = seen  # type: ignore[attr-defined]
    return _next


class FakeReservation(Reservation):
    def __init__(self) -> None:
        super().__init__(None, 1, 0.0)
        self.waited = False

    async def wait(self) -> None:
        self.waited = True


class FakeLimiter(Limiter):
    """Limiter double recording reserve() calls, optionally raising a configured exception."""

    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc
        self.reserve_calls: list[tuple[int, float | None]] = []
        self.reservation = FakeReservation()

    async def consume(self, tokens: int = 1) -> bool:
        return True

    async def reserve(self, tokens: int = 1, max_time: float | None = None) -> Reservation:
        self.reserve_calls.append((tokens, max_time))
        if self.exc is not None:
            raise self.exc
        return self.reservation
