"""In-process stores for service-wide shared state.

The Steam Web API call window and the Steam link CSRF tokens are the only
mutable state shared between requests. Both are accessed through the small
protocols below so a deployment with several instances can swap in the Redis
implementations from ``gametracker.core.redis_client``.
"""

import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID


@dataclass(frozen=True)
class RateLimitStatus:
    """Remaining capacity in the current window."""

    remaining: int
    reset_at: float


@dataclass(frozen=True)
class CsrfEntry:
    """Account bound to a pending Steam link attempt."""

    account_id: UUID
    expires_at: float


class RateLimitStore(Protocol):
    """Sliding-window call counter."""

    limit: int
    window: float

    def try_acquire(self) -> bool: ...

    def status(self) -> RateLimitStatus: ...


class CsrfTokenStore(Protocol):
    """Short-lived anti-forgery tokens for the Steam OpenID round trip."""

    def put(self, token: str, account_id: UUID, expires_at: float) -> None: ...

    def pop(self, token: str) -> CsrfEntry | None: ...

    def sweep(self, now: float | None = None) -> int: ...


class InMemoryRateLimitStore:
    """Sliding-window limiter backed by an ordered list of call timestamps."""

    def __init__(
        self,
        limit: int = 200,
        window: float = 60.0,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize limiter with capacity, window length in seconds and clock."""
        self.limit = limit
        self.window = window
        self._clock = clock
        self._calls: deque[float] = deque()

    def _trim(self, now: float) -> None:
        cutoff = now - self.window
        while self._calls and self._calls[0] < cutoff:
            self._calls.popleft()

    def try_acquire(self) -> bool:
        """Record a call if the window has room; return False when refused."""
        now = self._clock()
        self._trim(now)

        if len(self._calls) >= self.limit:
            return False

        self._calls.append(now)
        return True

    def status(self) -> RateLimitStatus:
        """Get remaining calls and when the oldest call leaves the window."""
        now = self._clock()
        self._trim(now)
        reset_at = self._calls[0] + self.window if self._calls else now
        return RateLimitStatus(remaining=max(0, self.limit - len(self._calls)), reset_at=reset_at)


class InMemoryCsrfTokenStore:
    """Dictionary of pending CSRF tokens."""

    def __init__(self, clock: Callable[[], float] = time.time):
        """Initialize an empty token map."""
        self._clock = clock
        self._tokens: dict[str, CsrfEntry] = {}

    def __len__(self) -> int:
        return len(self._tokens)

    def put(self, token: str, account_id: UUID, expires_at: float) -> None:
        self._tokens[token] = CsrfEntry(account_id=account_id, expires_at=expires_at)

    def pop(self, token: str) -> CsrfEntry | None:
        return self._tokens.pop(token, None)

    def sweep(self, now: float | None = None) -> int:
        """Delete expired tokens and return how many were removed."""
        now = self._clock() if now is None else now
        expired = [key for key, entry in self._tokens.items() if entry.expires_at < now]
        for key in expired:
            del self._tokens[key]
        return len(expired)
