"""
OSRS Hiscores Route
Imports combat levels into the DPS calculator.
"""
import logging

from fastapi import APIRouter, Request

from calc_core.utils.identity import normalize_osrs_player
from gamerstation.api.http import json_response
from gamerstation.core import config
from gamerstation.middleware.bot_guard import is_bot_request
from gamerstation.services.errors import UpstreamError
from gamerstation.services.osrs_hiscores import fetch_combat_skills

logger = logging.getLogger(__name__)
router = APIRouter(tags=["osrs"])


@router.get("/api/osrs/hiscores")
def osrs_hiscores(request: Request, player: str = ""):
    """
    Attack / strength / ranged / magic levels for ``player``.

    Per-IP limiting (10 requests / 30s) is applied by RateLimiterMiddleware.
    """
    # bots get a cacheable 200 and never reach Jagex
    if is_bot_request(request):
        return json_response({"ok": False, "error": "Bot requests disabled."}, cache_control=config.CACHE_HISCORES)

    name = normalize_osrs_player(player)
    if not name:
        return json_response({"ok": False, "error": "Invalid player name."}, 400)

    try:
        skills = fetch_combat_skills(name)
    except UpstreamError as e:
        return json_response({"ok": False, "error": str(e)}, 502)

    logger.info("[osrs] imported hiscores for %s", name)
    return json_response(
        {"ok": True, "player": name, "skills": skills.to_dict()},
        cache_control=config.CACHE_HISCORES,
    )
