from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from threading import Lock
from typing import Callable

DEFAULT_LIMIT = 20
DEFAULT_WINDOW_SECONDS = 900
DEFAULT_SWEEP_EVERY = 256

Clock = Callable[[], float]


@dataclass
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: int


class RateLimiterService(ABC):
    @abstractmethod
    def check(self, *, client_key: str, endpoint: str) -> RateLimitDecision:
        """Decide whether a client may call the endpoint right now."""


def _drop_expired(bucket: deque[float], cutoff: float) -> None:
    while bucket and bucket[0] <= cutoff:
        bucket.popleft()


class InMemoryRateLimiterService(RateLimiterService):
    """Sliding-window limiter per client+endpoint.

    State lives in the process; each Lambda container keeps its own window.
    Every ``sweep_every`` checks, clients whose window has fully expired are
    forgotten so the map only holds clients seen inside the current window.
    """

    def __init__(
        self,
        *,
        limit: int = DEFAULT_LIMIT,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        sweep_every: int = DEFAULT_SWEEP_EVERY,
        clock: Clock = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self.sweep_every = max(1, sweep_every)
        self._clock = clock
        self._store: dict[tuple[str, str], deque[float]] = {}
        self._checks_since_sweep = 0
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def check(self, *, client_key: str, endpoint: str) -> RateLimitDecision:
        now = self._clock()
        cutoff = now - self.window_seconds
        key = (client_key, endpoint)

        with self._lock:
            self._checks_since_sweep += 1
            if self._checks_since_sweep >= self.sweep_every:
                self._sweep(cutoff)

            bucket = self._store.setdefault(key, deque())
            _drop_expired(bucket, cutoff)

            if len(bucket) >= self.limit:
                retry_after = max(1, int(self.window_seconds - (now - bucket[0])))
                return RateLimitDecision(allowed=False, limit=self.limit, remaining=0, retry_after_seconds=retry_after)

            bucket.append(now)
            return RateLimitDecision(
                allowed=True,
                limit=self.limit,
                remaining=max(0, self.limit - len(bucket)),
                retry_after_seconds=0,
            )

    def _sweep(self, cutoff: float) -> None:
        # chamado com o lock adquirido
        self._checks_since_sweep = 0
        for key in list(self._store):
            bucket = self._store[key]
            _drop_expired(bucket, cutoff)
            if not bucket:
                del self._store[key]
