from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import ClassVar

import httpx

Next = Callable[[httpx.Request], Awaitable[httpx.Response]]


class PluginKind(str, Enum):
    """Tag identifying what a plugin does, used to remove plugins by category."""

    exception_thrower = "exception_thrower"
    history = "history"
    header_defaults = "header_defaults"
    add_host = "add_host"
    rate_limiter = "rate_limiter"
    cache = "cache"
    custom = "custom"


class Plugin(ABC):
    """Abstract base for all request/response interceptors of the HTTP pipeline.

    A plugin receives the in-flight request and `next_`, the rest of the chain. It may
    forward the request unchanged, decorate it first, wait before forwarding, or
    inspect and transform the response (or error) that comes back.
    """

    kind: ClassVar[PluginKind] = PluginKind.custom

    @abstractmethod
    async def handle_request(self, request: httpx.Request, next_: Next) -> httpx.Response:
        """Handle the request and return the eventual response."""
        raise NotImplementedError
