"""
GamerStation API Entry Point
============================
FastAPI server for the GamerStation calculators and game-data proxies.

Routers:
  /api/calculators/*          pure calculator endpoints (calc_core)
  /api/lol/*, /api/tools/lol  Data Dragon, Riot API, meta builds
  /api/osrs/hiscores          OSRS combat-level import
  /api/wow-*                  Battle.net realm list + character stats

Environment:
  - PORT: listen port (default 8080)
  - RIOT_API_KEY, BNET_CLIENT_ID, BNET_CLIENT_SECRET: upstream credentials
  - ALLOWED_ORIGINS: comma separated CORS origins
"""
import logging
import os
from datetime import datetime, timezone

import requests
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from gamerstation.api import calculator_routes, lol_routes, osrs_routes, wow_routes
from gamerstation.api.http import json_response
from gamerstation.core import config
from gamerstation.middleware.rate_limiter import RateLimiterMiddleware
from gamerstation.services.errors import (
    BlizzardApiError,
    MissingCredentialsError,
    UpstreamError,
)
from gamerstation.services.response_cache import all_cache_metrics
from gamerstation.services.riot_client import get_riot_client

# Configure logging (MUST BE FIRST)
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# connection-reset chatter from the HTTP stack
logging.getLogger("h11").setLevel(logging.ERROR)
logging.getLogger("urllib3").setLevel(logging.WARNING)

SERVICE_NAME = "GamerStation API"
SERVICE_VERSION = "1.0.0"


app = FastAPI(
    title=SERVICE_NAME,
    description="Gaming calculators and game-data proxies",
    version=SERVICE_VERSION,
)

app.include_router(calculator_routes.router)
app.include_router(lol_routes.router)
app.include_router(osrs_routes.router)
app.include_router(wow_routes.router)
logger.info("✅ Routers registered (calculators, lol, osrs, wow)")

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
    allow_methods=["*"],
    allow_headers=["*"],
)
# Added LAST so it executes FIRST
app.add_middleware(RateLimiterMiddleware)


# ================== ERROR MAPPING ==================

@app.exception_handler(MissingCredentialsError)
async def missing_credentials_handler(request: Request, exc: MissingCredentialsError):
    logger.error("[main] missing credentials on %s: %s", request.url.path, exc)
    return json_response({"ok": False, "error": str(exc)}, 500)


@app.exception_handler(BlizzardApiError)
async def blizzard_error_handler(request: Request, exc: BlizzardApiError):
    logger.error("[main] Battle.net error on %s: %s", request.url.path, exc)
    return json_response({"error": "Battle.net request failed", "details": str(exc)}, 500)


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError):
    # CircuitOpenError and RiotHttpError land here too
    logger.warning("[main] upstream failure on %s: %s", request.url.path, exc)
    return json_response({"ok": False, "error": str(exc)}, 502)


@app.exception_handler(requests.RequestException)
async def request_exception_handler(request: Request, exc: requests.RequestException):
    logger.warning("[main] network failure on %s: %s", request.url.path, exc)
    return json_response({"ok": False, "error": "Upstream request failed"}, 502)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Validators of ``Depends()`` query models raise outside FastAPI's own validation."""
    return json_response(
        {"detail": exc.errors(include_url=False, include_context=False, include_input=False)},
        422,
    )


# ================== SERVICE ==================

@app.get("/")
def root():
    return {"service": SERVICE_NAME, "version": SERVICE_VERSION, "status": "running"}


@app.get("/health")
def health_check():
    """Flags, cache hit rates and the Riot circuit breaker. Never calls upstream."""
    riot = get_riot_client().get_circuit_status()
    return {
        "status": "degraded" if riot["circuit_open"] else "healthy",
        "flags": config.flag_defaults(),
        "credentials": {
            "riot": bool(config.get_riot_api_key()),
            "battle_net": all(config.get_bnet_credentials()),
        },
        "riot_circuit": riot,
        "caches": all_cache_metrics(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/healthz", include_in_schema=False)
def healthz():
    return Response(status_code=200, content="OK")


@app.get("/favicon.ico", include_in_schema=False)
def favicon():
    return Response(status_code=204)


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", "8080"))
    uvicorn.run(app, host="0.0.0.0", port=port)
