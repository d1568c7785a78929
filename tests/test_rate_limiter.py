"""
Rate Limiter Tests
==================
RateLimiterMiddleware against a minimal app, plus the summoner miss limiter.

a) 429 after a bucket's limit is exceeded
b) bypass paths (/health, /healthz, /) are never rate-limited
c) buckets are independent per path prefix and per client IP
d) windows reset once the clock moves past them
e) FEATURE_RATE_LIMITER=false disables limiting entirely
f) more than 4 summoner misses in 10 minutes bans the IP for 10 minutes
g) idle counters and expired bans are evicted
"""

import os
from unittest.mock import patch

from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from gamerstation.middleware.rate_limiter import (
    Bucket,
    FixedWindowCounter,
    RateLimiterMiddleware,
    SummonerMissLimiter,
    get_client_ip,
)


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def _build_app(default_limit=100, hiscores_limit=2, clock=None):
    """Build a minimal FastAPI app with RateLimiterMiddleware for testing."""
    app = FastAPI()

    @app.get("/api/test")
    def test_route():
        return {"ok": True}

    @app.get("/api/osrs/hiscores")
    def hiscores_route():
        return {"ok": True}

    @app.get("/api/whoami")
    def whoami(request: Request):
        return {"ip": get_client_ip(request)}

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    @app.get("/healthz")
    def healthz():
        return {"healthy": True}

    @app.get("/")
    def root():
        return {"service": "test"}

    app.add_middleware(
        RateLimiterMiddleware,
        default_bucket=Bucket("default", default_limit, 60),
        prefix_buckets=(("/api/osrs/hiscores", Bucket("osrs_hiscores", hiscores_limit, 30)),),
        counter=FixedWindowCounter(clock or FakeClock()),
    )
    return app


# ─── Test a: 429 after limit exceeded ───────────────────────────────────────

def test_rate_limit_429_after_exceeded():
    client = TestClient(_build_app(hiscores_limit=2))

    for i in range(2):
        resp = client.get("/api/osrs/hiscores")
        assert resp.status_code == 200, f"Request {i + 1} should pass but got {resp.status_code}"
    assert client.get("/api/osrs/hiscores").status_code == 429

    resp = client.get("/api/osrs/hiscores")
    assert resp.status_code == 429
    assert resp.headers["Retry-After"] == "30"
    assert resp.headers["X-RateLimit-Remaining"] == "0"
    body = resp.json()
    assert body["ok"] is False
    assert body["error"] == "Too many requests. Please try again later."
    assert body["limit"] == 2
    assert body["window"] == 30


def test_rate_limit_headers_on_success():
    client = TestClient(_build_app(default_limit=5))
    resp = client.get("/api/test")
    assert resp.headers["X-RateLimit-Limit"] == "5"
    assert resp.headers["X-RateLimit-Remaining"] == "4"
    assert resp.headers["X-RateLimit-Window"] == "60"


# ─── Test b: Bypass paths never rate-limited ────────────────────────────────

def test_bypass_paths_not_rate_limited():
    client = TestClient(_build_app(default_limit=1))
    for _ in range(5):
        for path in ["/health", "/healthz", "/"]:
            resp = client.get(path)
            assert resp.status_code == 200, f"{path} should bypass rate limiter but got {resp.status_code}"
            assert "X-RateLimit-Limit" not in resp.headers


# ─── Test c: Independent buckets ────────────────────────────────────────────

def test_buckets_are_independent_per_prefix():
    client = TestClient(_build_app(default_limit=100, hiscores_limit=1))
    client.get("/api/osrs/hiscores")
    assert client.get("/api/osrs/hiscores").status_code == 429
    assert client.get("/api/test").status_code == 200


def test_buckets_are_independent_per_ip():
    client = TestClient(_build_app(hiscores_limit=1))
    assert client.get("/api/osrs/hiscores", headers={"X-Forwarded-For": "1.1.1.1"}).status_code == 200
    assert client.get("/api/osrs/hiscores", headers={"X-Forwarded-For": "1.1.1.1"}).status_code == 429
    assert client.get("/api/osrs/hiscores", headers={"X-Forwarded-For": "2.2.2.2"}).status_code == 200


def test_client_ip_resolution():
    client = TestClient(_build_app())
    assert client.get("/api/whoami", headers={"X-Forwarded-For": "1.2.3.4, 10.0.0.1"}).json()["ip"] == "1.2.3.4"
    assert client.get("/api/whoami", headers={"X-Real-IP": "5.6.7.8"}).json()["ip"] == "5.6.7.8"
    assert client.get("/api/whoami").json()["ip"] == "testclient"


# ─── Test d: Window reset ───────────────────────────────────────────────────

def test_window_resets():
    clock = FakeClock()
    client = TestClient(_build_app(hiscores_limit=1, clock=clock))
    assert client.get("/api/osrs/hiscores").status_code == 200
    assert client.get("/api/osrs/hiscores").status_code == 429

    clock.advance(29)
    assert client.get("/api/osrs/hiscores").status_code == 429
    clock.advance(1)
    assert client.get("/api/osrs/hiscores").status_code == 200


def test_counter_reports_reset_in():
    clock = FakeClock()
    counter = FixedWindowCounter(clock)
    assert counter.hit("k", 60) == (1, 60)
    clock.advance(45)
    assert counter.hit("k", 60) == (2, 15)
    clock.advance(15)
    assert counter.hit("k", 60) == (1, 60)


# ─── Test e: Feature flag ───────────────────────────────────────────────────

def test_flag_disables_limiter():
    client = TestClient(_build_app(hiscores_limit=1))
    with patch.dict(os.environ, {"FEATURE_RATE_LIMITER": "false"}):
        for _ in range(3):
            resp = client.get("/api/osrs/hiscores")
            assert resp.status_code == 200
            assert "X-RateLimit-Limit" not in resp.headers


# ─── Test f: Summoner miss limiter ──────────────────────────────────────────

def test_miss_limiter_bans_after_four_misses():
    clock = FakeClock()
    limiter = SummonerMissLimiter(clock=clock)

    for i in range(4):
        check = limiter.enforce("9.9.9.9")
        assert check.ok, f"miss {i + 1} should be allowed"
    assert check.remaining == 0

    check = limiter.enforce("9.9.9.9")
    assert not check.ok
    assert check.reason == "too_many_misses"
    assert check.misses == 5

    clock.advance(300)
    check = limiter.enforce("9.9.9.9")
    assert not check.ok
    assert check.reason == "banned"

    # other IPs are unaffected
    assert limiter.enforce("8.8.8.8").ok


def test_miss_limiter_ban_expires():
    clock = FakeClock()
    limiter = SummonerMissLimiter(clock=clock)
    for _ in range(5):
        limiter.enforce("9.9.9.9")
    assert limiter.enforce("9.9.9.9").reason == "banned"

    clock.advance(601)
    check = limiter.enforce("9.9.9.9")
    assert check.ok
    assert check.misses == 1


def test_miss_limiter_reset():
    limiter = SummonerMissLimiter(clock=FakeClock())
    for _ in range(5):
        limiter.enforce("9.9.9.9")
    limiter.reset()
    assert limiter.enforce("9.9.9.9").ok


# ─── Test g: Idle keys are evicted ──────────────────────────────────────────

def test_counter_evicts_idle_keys():
    clock = FakeClock()
    counter = FixedWindowCounter(clock)
    for i in range(500):
        counter.hit(f"rl:10.0.{i // 256}.{i % 256}:default", 60)
    counter.hit("rl:1.1.1.1:osrs_hiscores", 30)
    assert counter.key_count() == 501

    clock.advance(3600)
    counter.hit("rl:2.2.2.2:default", 60)
    assert counter.key_count() == 1


def test_counter_window_not_extended_by_hits():
    clock = FakeClock()
    counter = FixedWindowCounter(clock)
    for _ in range(5):
        counter.hit("k", 30)
        clock.advance(5)
    # window opened at t=1000; this hit lands at t=1030
    clock.advance(5)
    assert counter.hit("k", 30) == (1, 30)


def test_miss_limiter_evicts_expired_bans():
    clock = FakeClock()
    limiter = SummonerMissLimiter(clock=clock)
    for i in range(200):
        ip = f"10.1.0.{i}"
        for _ in range(5):
            limiter.enforce(ip)
    assert limiter.ban_count() == 200

    clock.advance(86400)
    assert limiter.ban_count() == 0
    assert limiter.enforce("10.1.0.7").ok
