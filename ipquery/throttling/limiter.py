"""In-process rate limiters used by the RateLimiter plugin.

Window accounting is delegated to the `limits` library; the classes here add the
reservation semantics the pipeline needs: reserve permits, wait for them, or fail
fast when the wait would exceed the accepted duration.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Protocol

from limits import RateLimitItem
from limits.aio.storage import MemoryStorage, Storage
from limits.aio.strategies import FixedWindowRateLimiter, MovingWindowRateLimiter
from limits.util import WindowStats
from pydantic import ValidationError

from ipquery.errors import InvalidConfigurationError, RateLimitExceededError, UnsupportedOperationError
from ipquery.logger import logger
from ipquery.models.request_models import ThrottleOptions, ThrottlePolicy
from ipquery.util import validated_throttle_options


class WindowStrategy(Protocol):
    """Subset of the `limits` async strategy interface used by WindowLimiter."""

    async def hit(self, item: RateLimitItem, *identifiers: str, cost: int = 1) -> bool: ...

    async def get_window_stats(self, item: RateLimitItem, *identifiers: str) -> WindowStats: ...

    async def clear(self, item: RateLimitItem, *identifiers: str) -> None: ...


class TokenBucketRateLimiter:
    """Token bucket with the same coroutine interface as the `limits` strategies.

    The bucket holds at most `item.amount` tokens and refills them evenly over
    `item.get_expiry()` seconds.
    """

    def __init__(self) -> None:
        self._buckets: dict[str, tuple[float, float]] = {}
        self._lock = asyncio.Lock()

    def _refill(self, item: RateLimitItem, key: str, now: float) -> float:
        tokens, last_refill = self._buckets.get(key, (float(item.amount), now))
        refill_rate = item.amount / item.get_expiry()
        return min(float(item.amount), tokens + (now - last_refill) * refill_rate)

    async def hit(self, item: RateLimitItem, *identifiers: str, cost: int = 1) -> bool:
        key = item.key_for(*identifiers)
        async with self._lock:
            now = time.time()
            tokens = self._refill(item, key, now)
            if tokens >= cost:
                self._buckets[key] = (tokens - cost, now)
                return True
            self._buckets[key] = (tokens, now)
            return False

    async def get_window_stats(self, item: RateLimitItem, *identifiers: str, cost: int = 1) -> WindowStats:
        """`reset_time` is when the bucket will hold `cost` tokens."""
        key = item.key_for(*identifiers)
        async with self._lock:
            now = time.time()
            tokens = self._refill(item, key, now)
            refill_rate = item.amount / item.get_expiry()
            reset_time = now + max(0.0, cost - tokens) / refill_rate
            return WindowStats(reset_time, int(tokens))

    async def clear(self, item: RateLimitItem, *identifiers: str) -> None:
        async with self._lock:
            self._buckets.pop(item.key_for(*identifiers), None)


class Reservation:
    """A pending grant of `tokens` permits.

    `wait()` suspends the calling task until the permits are actually taken. When the
    reservation was granted immediately, waiting returns at once.
    """

    def __init__(
        self,
        limiter: "WindowLimiter | None",
        tokens: int,
        wait_duration: float,
        deadline: float | None = None,
    ) -> None:
        self._limiter = limiter
        self.tokens = tokens
        self.wait_duration = wait_duration
        self.deadline = deadline

    @property
    def granted(self) -> bool:
        return self._limiter is None

    async def wait(self) -> None:
        if self._limiter is None:
            return
        if self.wait_duration > 0:
            await asyncio.sleep(self.wait_duration)
        await self._limiter._acquire(self.tokens, self.deadline)
        self._limiter = None


class Limiter(ABC):
    """Base class for limiters the RateLimiter plugin can orchestrate."""

    @abstractmethod
    async def consume(self, tokens: int = 1) -> bool:
        """Take `tokens` permits without waiting; return False when they are not available."""
        raise NotImplementedError

    async def reserve(self, tokens: int = 1, max_time: float | None = None) -> Reservation:
        """Reserve `tokens` permits, accepting to wait at most `max_time` seconds."""
        raise UnsupportedOperationError(f"Reserving tokens is not supported by {type(self).__name__}.")

    async def reset(self) -> None:
        """Forget every permit taken so far."""


class WindowLimiter(Limiter):
    """Limiter for one identifier over a `limits` strategy."""

    def __init__(self, strategy: WindowStrategy, item: RateLimitItem, identifier: str) -> None:
        self._strategy = strategy
        self._item = item
        self.identifier = identifier

    @property
    def limit(self) -> int:
        return self._item.amount

    def _check_tokens(self, tokens: int) -> None:
        if tokens < 1:
            raise InvalidConfigurationError(f"Cannot reserve {tokens} tokens, at least 1 is required.")
        if tokens > self._item.amount:
            raise InvalidConfigurationError(
                f"Cannot reserve more tokens ({tokens}) than the burst size of the rate limiter ({self._item.amount})."
            )

    async def _estimate_wait(self, tokens: int) -> float:
        if isinstance(self._strategy, TokenBucketRateLimiter):
            stats = await self._strategy.get_window_stats(self._item, self.identifier, cost=tokens)
        else:
            stats = await self._strategy.get_window_stats(self._item, self.identifier)
        return max(0.0, stats.reset_time - time.time())

    async def consume(self, tokens: int = 1) -> bool:
        self._check_tokens(tokens)
        return await self._strategy.hit(self._item, self.identifier, cost=tokens)

    async def reserve(self, tokens: int = 1, max_time: float | None = None) -> Reservation:
        self._check_tokens(tokens)

        if await self._strategy.hit(self._item, self.identifier, cost=tokens):
            return Reservation(None, tokens, 0.0)

        wait_duration = await self._estimate_wait(tokens)
        if max_time is not None and wait_duration > max_time:
            raise RateLimitExceededError(
                f"The rate limiter wait time ({wait_duration:.2f}s) is longer than the provided maximum ({max_time}s)."
            )

        logger.info(f"Rate limit reached for id={self.identifier}, waiting {wait_duration:.2f}s")
        deadline = None if max_time is None else time.time() + max_time
        return Reservation(self, tokens, wait_duration, deadline)

    async def _acquire(self, tokens: int, deadline: float | None) -> None:
        """Keep hitting the window until the permits are granted or the deadline passes."""
        while not await self._strategy.hit(self._item, self.identifier, cost=tokens):
            wait_duration = await self._estimate_wait(tokens)
            if deadline is not None and time.time() + wait_duration > deadline:
                raise RateLimitExceededError(
                    f"The rate limiter could not grant {tokens} token(s) before the maximum wait time."
                )
            # Other tasks may have taken the freed permits; retry after the next reset.
            await asyncio.sleep(max(wait_duration, 0.01))

    async def reset(self) -> None:
        await self._strategy.clear(self._item, self.identifier)


class RateLimiterFactory:
    """Build limiters from throttle options, sharing one storage between them.

    Example:
        >>> factory = RateLimiterFactory({"policy": "sliding_window", "limit": 10, "interval": "1 minute"})
        >>> limiter = factory.create()
    """

    def __init__(
        self,
        throttle_options: ThrottleOptions | Mapping[str, Any] | None = None,
        storage: Storage | None = None,
    ) -> None:
        if not isinstance(throttle_options, ThrottleOptions):
            try:
                throttle_options = ThrottleOptions(**validated_throttle_options(throttle_options))
            except ValidationError as exc:
                raise InvalidConfigurationError(f"Invalid throttle options: {exc}") from exc

        self.options = throttle_options
        self._storage = storage or MemoryStorage()

    def _build_strategy(self) -> WindowStrategy:
        policy = self.options.policy
        if policy is ThrottlePolicy.fixed_window:
            return FixedWindowRateLimiter(self._storage)
        if policy is ThrottlePolicy.sliding_window:
            return MovingWindowRateLimiter(self._storage)
        return TokenBucketRateLimiter()

    def create(self, key: str | None = None) -> WindowLimiter:
        identifier = self.options.id if key is None else f"{self.options.id}-{key}"
        logger.debug(
            f"Creating rate limiter id={identifier} policy={self.options.policy.value} "
            f"limit={self.options.limit} interval={self.options.interval!r}"
        )
        return WindowLimiter(self._build_strategy(), self.options.rate_limit_item, identifier)
