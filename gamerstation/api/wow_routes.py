"""
World of Warcraft Routes
Realm list and character statistics via the Battle.net APIs.
"""
import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter

from gamerstation.api.http import json_response
from gamerstation.core import config
from gamerstation.services.blizzard_client import REGIONS, get_blizzard_client
from gamerstation.services.errors import UpstreamError

logger = logging.getLogger(__name__)
router = APIRouter(tags=["wow"])


@router.get("/api/wow-realms")
def wow_realms(region: str = "us"):
    """Realm index for ``region`` sorted by name."""
    region = region.strip().lower()
    if region not in REGIONS:
        return json_response({"error": "Invalid region"}, 400)

    try:
        realms = get_blizzard_client().fetch_realms(region)
    except UpstreamError as e:
        logger.error("[wow] realm fetch failed for %s: %s", region, e)
        return json_response({"error": "Failed to fetch realms", "details": str(e)}, 500)

    return json_response(
        {"region": region, "realms": [asdict(r) for r in realms]},
        cache_control=config.CACHE_REALMS,
    )


@router.get("/api/wow-character-stats")
def wow_character_stats(region: str = "us", realmSlug: Optional[str] = None, name: Optional[str] = None):
    """Primary and secondary stats of one character (stat-impact tools)."""
    region = region.strip().lower()
    if region not in REGIONS:
        return json_response({"error": "Invalid region"}, 400)
    if not realmSlug or not name:
        return json_response({"error": "Missing realmSlug or name"}, 400)

    try:
        stats = get_blizzard_client().fetch_character_stats(region, realmSlug, name)
    except UpstreamError as e:
        logger.error("[wow] character stats failed for %s/%s/%s: %s", region, realmSlug, name, e)
        return json_response({"error": "Failed to fetch character stats", "details": str(e)}, 500)

    return json_response(stats.to_dict(), cache_control=config.CACHE_CHARACTER_STATS)
