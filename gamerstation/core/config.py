"""
Core Configuration
Central source of truth for application constants.

Secrets are read from the environment at call time (not at import time) so
tests and container env overrides take effect without a reload.
"""
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()

# --- Paths ---
PACKAGE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = Path(os.getenv("GAMERSTATION_DATA_DIR", str(PACKAGE_DIR / "data")))

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- HTTP ---
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10"))
USER_AGENT = "GamerStation/1.0 (+https://gamerstation.gg)"

# Optional public blob store mirroring the static JSON in DATA_DIR
BLOB_BASE_URL = os.getenv("BLOB_BASE_URL", "").rstrip("/")

DDRAGON_BASE_URL = "https://ddragon.leagueoflegends.com"
OSRS_HISCORES_URL = "https://secure.runescape.com/m=hiscore_oldschool/index_lite.ws"

# --- Cache TTLs (seconds) ---
VERSION_CACHE_TTL = 600
CHAMPION_CACHE_TTL = 3600
SUMMONER_CACHE_TTL = 300
META_CACHE_TTL = 300
REALM_CACHE_TTL = 86400

# --- Cache-Control headers ---
CACHE_HISCORES = "public, s-maxage=300, stale-while-revalidate=3600"
CACHE_REALMS = "public, s-maxage=86400, stale-while-revalidate=3600"
CACHE_CHARACTER_STATS = "public, s-maxage=600, stale-while-revalidate=60"
CACHE_PATCH = "public, s-maxage=600, stale-while-revalidate=86400"
CACHE_MATCH = "public, max-age=60, s-maxage=600, stale-while-revalidate=86400"
CACHE_META = "public, s-maxage=300, stale-while-revalidate=3600"
CACHE_NO_STORE = "no-store"

# ---------------------------------------------------------------------------
# Feature flags
# ---------------------------------------------------------------------------
_FLAG_DEFAULTS: dict = {
    "FEATURE_RATE_LIMITER":   True,    # per-IP fixed-window limiter
    "FEATURE_BOT_GUARD":      True,    # skip upstream work for crawler user agents
    "FEATURE_BLOB_VERSION":   True,    # try BLOB_BASE_URL before disk for version.json
}

_TRUTHY = {"1", "true", "yes", "on"}


def flag(name: str, default: Optional[bool] = None) -> bool:
    """
    Read a feature flag from the environment.

    Args:
        name:    Environment variable name (e.g. "FEATURE_RATE_LIMITER")
        default: Override the registry default

    Returns:
        True if flag is enabled, False otherwise.
    """
    resolved_default = default if default is not None else _FLAG_DEFAULTS.get(name, False)
    raw = os.environ.get(name)
    if raw is None:
        result = resolved_default
    else:
        result = raw.strip().lower() in _TRUTHY

    logger.debug("[config] flag %s=%s (raw=%r, default=%s)", name, result, raw, resolved_default)
    return result


def flag_defaults() -> dict:
    """Resolved state of all registered flags (for the health endpoint)."""
    return {name: flag(name) for name in _FLAG_DEFAULTS}


# ---------------------------------------------------------------------------
# Secrets
# ---------------------------------------------------------------------------

def get_riot_api_key() -> Optional[str]:
    return os.getenv("RIOT_API_KEY") or None


def get_bnet_credentials() -> tuple:
    """(client_id, client_secret); either may be None."""
    return os.getenv("BNET_CLIENT_ID") or None, os.getenv("BNET_CLIENT_SECRET") or None
