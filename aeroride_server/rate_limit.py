# Copyright (C) 2024 AeroRide Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""In-memory rate limiting: login code issuance per email, and verification per client."""

import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import HTTPException, Request

from aeroride_server.config import settings
from aeroride_server.errors import RateLimited


@dataclass
class RateLimitEntry:
    count: int
    last_attempt: float


class IssueRateLimiter:
    """
    Allow at most ``max_attempts`` code issuances per identifier within ``window`` seconds.

    The window restarts ``window`` seconds after the last allowed attempt. Entries live in
    a bounded LRU map; the least recently touched identifier is evicted when full.
    State is per process and lost on restart.
    """

    def __init__(
        self,
        window: float = 30.0,
        max_attempts: int = 3,
        capacity: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window = window
        self.max_attempts = max_attempts
        self.capacity = capacity
        self._clock = clock
        self._entries: OrderedDict[str, RateLimitEntry] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def hit(self, identifier: str) -> None:
        """Record an issuance attempt. Raises RateLimited if the identifier is over its limit."""
        with self._lock:
            now = self._clock()
            entry = self._entries.get(identifier)
            if entry is None or now - entry.last_attempt > self.window:
                self._entries[identifier] = RateLimitEntry(count=1, last_attempt=now)
                self._entries.move_to_end(identifier)
                self._evict()
                return
            self._entries.move_to_end(identifier)
            if entry.count >= self.max_attempts:
                raise RateLimited(retry_after=self.window - (now - entry.last_attempt))
            entry.count += 1
            entry.last_attempt = now

    def reset(self, identifier: str | None = None) -> None:
        with self._lock:
            if identifier is None:
                self._entries.clear()
            else:
                self._entries.pop(identifier, None)

    def _evict(self) -> None:
        while len(self._entries) > self.capacity:
            self._entries.popitem(last=False)


def build_issue_limiter() -> IssueRateLimiter:
    return IssueRateLimiter(
        window=settings.otp_resend_window_seconds,
        max_attempts=settings.otp_max_per_window,
        capacity=settings.otp_rate_limit_capacity,
    )


def get_issue_limiter(request: Request) -> IssueRateLimiter:
    """FastAPI dependency: the limiter owned by the running application."""
    return request.app.state.issue_limiter


# Brute-force protection for code verification, keyed by client address.
# (client_key, endpoint) -> request timestamps in window, least recently used first
_buckets: OrderedDict[tuple[str, str], list[float]] = OrderedDict()
_buckets_lock = threading.Lock()
WINDOW = 60
LIMITS: dict[str, int] = {
    "/api/v1/auth/verify-otp": settings.verify_attempts_per_minute,
}


def _client_key(request: Request) -> str:
    """Peer address; the first X-Forwarded-For hop only when trusted_proxy is set."""
    if settings.trusted_proxy:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host or "unknown"
    return "unknown"


def _clean_old(bucket: list[float], now: float) -> None:
    cutoff = now - WINDOW
    while bucket and bucket[0] < cutoff:
        bucket.pop(0)


def _evict_buckets(now: float) -> None:
    """Drop expired buckets from the cold end, then the oldest ones over capacity."""
    for key in list(_buckets):
        bucket = _buckets[key]
        _clean_old(bucket, now)
        if bucket:
            break
        del _buckets[key]
    while len(_buckets) > settings.verify_rate_limit_capacity:
        _buckets.popitem(last=False)


def check_rate_limit(request: Request, path: str) -> None:
    """Raise 429 if the client has exceeded the limit for this path."""
    limit = LIMITS.get(path)
    if limit is None:
        return
    key = (_client_key(request), path)
    with _buckets_lock:
        now = time.monotonic()
        bucket = _buckets.setdefault(key, [])
        _buckets.move_to_end(key)
        _clean_old(bucket, now)
        if len(bucket) >= limit:
            raise HTTPException(
                status_code=429,
                detail="Too many requests. Please try again later.",
            )
        bucket.append(now)
        _evict_buckets(now)


async def rate_limit_auth_dep(request: Request) -> None:
    """FastAPI dependency: rate limit auth endpoints listed in LIMITS."""
    check_rate_limit(request, request.url.path.rstrip("/"))


def clear_buckets() -> None:
    with _buckets_lock:
        _buckets.clear()


def bucket_count() -> int:
    return len(_buckets)
