"""
Per-IP Fixed-Window Rate Limiter
================================
In-memory rate limiting for a single process.

Two layers:
  - ``RateLimiterMiddleware``: request-count buckets by path prefix.
  - ``SummonerMissLimiter``: counts only Riot-bound cache misses per IP;
    more than 4 misses in 10 minutes bans the IP for 10 minutes.

Both use fixed windows: the counter starts on the first hit and expires
``window`` seconds later. Counters and bans live in ``cachetools.TTLCache``,
so idle IPs are evicted once their window or ban has passed.
"""

import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from cachetools import TTLCache
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from gamerstation.core.config import flag

logger = logging.getLogger(__name__)

# Paths that are NEVER rate-limited
_BYPASS_PATHS = frozenset({
    "/",
    "/health",
    "/healthz",
    "/favicon.ico",
})


@dataclass(frozen=True)
class Bucket:
    name: str
    limit: int
    window: int  # seconds


DEFAULT_BUCKET = Bucket("default", 120, 60)

# First matching prefix wins
DEFAULT_PREFIX_BUCKETS: Tuple[Tuple[str, Bucket], ...] = (
    ("/api/osrs/hiscores", Bucket("osrs_hiscores", 10, 30)),
    ("/api/tools/lol/summoner", Bucket("summoner", 20, 600)),
    ("/api/lol/resolve-riot-id", Bucket("summoner", 20, 600)),
)


def get_client_ip(request: Request) -> str:
    """Client IP, respecting X-Forwarded-For / X-Real-IP from the load balancer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # First IP in chain is the original client
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = (request.headers.get("X-Real-IP") or "").strip()
    if real_ip:
        return real_ip
    if request.client:
        return request.client.host
    return "unknown"


class FixedWindowCounter:
    """
    Thread-safe ``key -> [count, window_start]`` store.

    One ``TTLCache`` per window length. An entry is written once when its
    window opens and mutated in place afterwards, so it is evicted
    ``window`` seconds after the first hit.

    ``clock`` is injectable so tests can move time without sleeping.
    """

    MAX_KEYS = 100_000

    def __init__(self, clock: Callable[[], float] = time.monotonic, max_keys: int = MAX_KEYS):
        self._clock = clock
        self._max_keys = max_keys
        self._windows: Dict[int, TTLCache] = {}
        self._lock = threading.Lock()

    def _cache_for(self, window: int) -> TTLCache:
        cache = self._windows.get(window)
        if cache is None:
            cache = TTLCache(maxsize=self._max_keys, ttl=window, timer=self._clock)
            self._windows[window] = cache
        return cache

    def hit(self, key: str, window: int) -> Tuple[int, int]:
        """
        Count one hit.

        Returns:
            (count in the current window, seconds until the window resets)
        """
        now = self._clock()
        with self._lock:
            cache = self._cache_for(window)
            entry: Optional[List[float]] = cache.get(key)
            if entry is None or now - entry[1] >= window:
                entry = [0, now]
                cache[key] = entry
            entry[0] += 1
            count, started = int(entry[0]), entry[1]
        reset_in = max(1, int(round(started + window - now)))
        return count, reset_in

    def key_count(self) -> int:
        with self._lock:
            for cache in self._windows.values():
                cache.expire()
            return sum(len(cache) for cache in self._windows.values())

    def reset(self):
        with self._lock:
            self._windows.clear()


class RateLimiterMiddleware(BaseHTTPMiddleware):
    """
    Per-client-IP fixed-window limiter.

    Buckets:
      - /api/osrs/hiscores:          10 requests per 30 seconds
      - /api/tools/lol/summoner,
        /api/lol/resolve-riot-id:    20 requests per 600 seconds
      - everything else:             120 requests per 60 seconds

    Disabled entirely when FEATURE_RATE_LIMITER is off.
    """

    def __init__(
        self,
        app,
        default_bucket: Bucket = DEFAULT_BUCKET,
        prefix_buckets: Tuple[Tuple[str, Bucket], ...] = DEFAULT_PREFIX_BUCKETS,
        counter: Optional[FixedWindowCounter] = None,
    ):
        super().__init__(app)
        self.default_bucket = default_bucket
        self.prefix_buckets = prefix_buckets
        self.counter = counter if counter is not None else FixedWindowCounter()

    def bucket_for(self, path: str) -> Bucket:
        for prefix, bucket in self.prefix_buckets:
            if path.startswith(prefix):
                return bucket
        return self.default_bucket

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if path in _BYPASS_PATHS or request.method == "OPTIONS":
            return await call_next(request)
        if not flag("FEATURE_RATE_LIMITER"):
            return await call_next(request)

        client_ip = get_client_ip(request)
        bucket = self.bucket_for(path)
        current, reset_in = self.counter.hit(f"rl:{client_ip}:{bucket.name}", bucket.window)

        if current <= bucket.limit:
            response = await call_next(request)
            response.headers["X-RateLimit-Limit"] = str(bucket.limit)
            response.headers["X-RateLimit-Remaining"] = str(max(0, bucket.limit - current))
            response.headers["X-RateLimit-Window"] = str(bucket.window)
            return response

        logger.warning(json.dumps({
            "event": "rate_limit_exceeded",
            "client_ip": client_ip,
            "path": path,
            "method": request.method,
            "bucket": bucket.name,
            "current": current,
            "limit": bucket.limit,
            "window": bucket.window,
        }))

        return JSONResponse(
            status_code=429,
            content={
                "ok": False,
                "error": "Too many requests. Please try again later.",
                "retry_after": reset_in,
                "limit": bucket.limit,
                "window": bucket.window,
            },
            headers={
                "Retry-After": str(reset_in),
                "X-RateLimit-Limit": str(bucket.limit),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Window": str(bucket.window),
            },
        )


# ---------------------------------------------------------------------------
# Summoner cache-miss limiter
# ---------------------------------------------------------------------------

MISS_LIMIT = 4
MISS_WINDOW_S = 10 * 60
BAN_S = 10 * 60


@dataclass
class MissCheck:
    ok: bool
    ip: str
    reason: Optional[str] = None  # "banned" | "too_many_misses"
    misses: Optional[int] = None
    remaining: Optional[int] = None


class SummonerMissLimiter:
    """
    Call ``enforce`` ONLY right before doing Riot work (a cache miss).
    Cache hits must not count.
    """

    def __init__(
        self,
        miss_limit: int = MISS_LIMIT,
        window_s: int = MISS_WINDOW_S,
        ban_s: int = BAN_S,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.miss_limit = miss_limit
        self.window_s = window_s
        self.ban_s = ban_s
        self._clock = clock
        self._counter = FixedWindowCounter(clock)
        self._bans = self._new_bans()
        self._lock = threading.Lock()

    def _new_bans(self) -> TTLCache:
        return TTLCache(maxsize=FixedWindowCounter.MAX_KEYS, ttl=self.ban_s, timer=self._clock)

    def enforce(self, ip: str) -> MissCheck:
        with self._lock:
            if ip in self._bans:
                return MissCheck(ok=False, ip=ip, reason="banned")

        misses, _ = self._counter.hit(f"rl:summoner:miss:{ip}", self.window_s)
        if misses > self.miss_limit:
            with self._lock:
                self._bans[ip] = True
            logger.warning("[ratelimit] %s banned for %ds after %d summoner misses", ip, self.ban_s, misses)
            return MissCheck(ok=False, ip=ip, reason="too_many_misses", misses=misses)

        return MissCheck(ok=True, ip=ip, misses=misses, remaining=max(0, self.miss_limit - misses))

    def ban_count(self) -> int:
        with self._lock:
            self._bans.expire()
            return len(self._bans)

    def reset(self):
        self._counter.reset()
        with self._lock:
            self._bans = self._new_bans()


_miss_limiter = SummonerMissLimiter()


def get_miss_limiter() -> SummonerMissLimiter:
    return _miss_limiter
