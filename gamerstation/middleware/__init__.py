from gamerstation.middleware.bot_guard import is_bot_request
from gamerstation.middleware.rate_limiter import (
    RateLimiterMiddleware,
    SummonerMissLimiter,
    get_client_ip,
    get_miss_limiter,
)

__all__ = [
    "RateLimiterMiddleware",
    "SummonerMissLimiter",
    "get_client_ip",
    "get_miss_limiter",
    "is_bot_request",
]
