"""
League of Legends Data Routes
=============================
Patch version, champion detail, Riot ID resolution, match details, summoner
profiles and the meta-build browser.

Routes that spend Riot quota (resolve-riot-id, summoner) are guarded twice:
bot user agents get a cheap ``200 {"ok": false}`` and real cache misses go
through the per-IP miss limiter.
"""

import logging
from typing import Optional

import requests
from fastapi import APIRouter, Depends, Query, Request

from calc_core.utils.identity import (
    is_platform,
    looks_valid_riot_id,
    normalize_game_name,
    normalize_tag_line,
    platform_to_cluster,
    safe_decode,
)
from gamerstation.api.http import json_response
from gamerstation.api.query_models import MetaQuery
from gamerstation.core import config
from gamerstation.middleware.bot_guard import is_bot_request
from gamerstation.middleware.rate_limiter import get_client_ip, get_miss_limiter
from gamerstation.services.ddragon_service import get_ddragon_service
from gamerstation.services.errors import RiotHttpError, UpstreamError
from gamerstation.services.meta_builds import get_meta_builds_service
from gamerstation.services.riot_client import get_riot_client
from gamerstation.services import summoner_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["lol"])

# Match-V5 is only served from these routing values
MATCH_CLUSTERS = ("americas", "europe", "asia")


# ================== PATCH / CHAMPIONS ==================

@router.get("/api/lol/patch")
def lol_patch():
    """Current patch: blob -> disk -> Data Dragon realms -> "unknown"."""
    info = get_ddragon_service().get_lol_version()
    return json_response(info, cache_control=config.CACHE_PATCH)


@router.get("/api/lol/champion/{key}")
def lol_champion(key: str):
    """CommunityDragon champion detail with normalised spell damage."""
    key = key.strip()
    if not key:
        return json_response({"error": "Missing champion key"}, 400)
    try:
        detail = get_ddragon_service().get_champion_detail(key)
    except LookupError:
        return json_response({"error": f"Unknown champion key {key}"}, 404)
    return json_response(detail, cache_control=config.CACHE_PATCH)


# ================== RIOT ID ==================

@router.get("/api/lol/resolve-riot-id")
def resolve_riot_id(
    request: Request,
    region: str = "na1",
    game_name: str = Query("", alias="gameName"),
    tag_line: str = Query("", alias="tagLine"),
):
    """
    Riot ID -> PUUID. Never cached.

    Order: bot guard, param validation, miss limiter, Riot call.
    """
    if is_bot_request(request, require_json=True):
        return json_response({"ok": False, "reason": "bot_blocked"})

    game_name = game_name.strip()
    tag_line = tag_line.strip()
    if not game_name or not tag_line:
        return json_response({"ok": False, "reason": "missing_params"}, 400)
    if not looks_valid_riot_id(game_name, tag_line) or not is_platform(region):
        return json_response({"ok": False, "reason": "invalid_params"}, 400)

    rl = get_miss_limiter().enforce(get_client_ip(request))
    if not rl.ok:
        return json_response({"ok": False, "reason": rl.reason or "rate_limited"}, 429, headers={"Retry-After": "600"})

    if not config.get_riot_api_key():
        return json_response({"ok": False, "reason": "missing_riot_api_key"}, 500)

    try:
        account = get_riot_client().get_account_by_riot_id(
            platform_to_cluster(region), game_name, tag_line, soft_fail=False
        )
    except (UpstreamError, requests.RequestException) as e:
        logger.warning("[lol] resolve-riot-id failed for %s#%s: %s", game_name, tag_line, e)
        return json_response({"ok": False, "reason": "riot_error", "status": getattr(e, "status", None)}, 502)

    if not account or not account.get("puuid"):
        return json_response({"ok": False, "reason": "not_found"}, 404)

    return json_response({
        "ok": True,
        "puuid": account["puuid"],
        "gameName": account.get("gameName") or game_name,
        "tagLine": account.get("tagLine") or tag_line,
    })


# ================== MATCHES ==================

@router.get("/api/tools/lol/match-details")
def match_details(
    match_id: str = Query("", alias="matchId"),
    cluster: str = "",
    puuid: Optional[str] = None,
):
    """Match-V5 proxy trimmed to ``info`` + ``metadata``."""
    match_id = match_id.strip()
    cluster = cluster.strip()
    if not match_id:
        return json_response({"error": "Missing matchId"}, 400)
    if not cluster:
        return json_response({"error": "Missing cluster"}, 400)
    if cluster not in MATCH_CLUSTERS:
        return json_response({"error": "Invalid cluster (use americas|europe|asia)"}, 400)
    if not config.get_riot_api_key():
        return json_response({"error": "Server missing RIOT_API_KEY"}, 500)

    try:
        match = get_riot_client().get_match(cluster, match_id, soft_fail=False)
    except RiotHttpError as e:
        return json_response(
            {
                "error": f"Riot match-details failed ({e.status})",
                "status": e.status,
                "matchId": match_id,
                "cluster": cluster,
                "puuid": puuid or None,
                "riotBody": (e.body_text or "")[:500] or None,
            },
            e.status,
        )

    if match is None:
        return json_response({"error": "Riot match-details failed (404)", "status": 404, "matchId": match_id}, 404)

    return json_response(
        {
            "matchId": match_id,
            "cluster": cluster,
            "info": match.get("info"),
            "metadata": match.get("metadata"),
        },
        cache_control=config.CACHE_MATCH,
    )


# ================== SUMMONER ==================

@router.get("/api/tools/lol/summoner/{region}/{game_name}/{tag_line}")
def summoner_profile(request: Request, region: str, game_name: str, tag_line: str):
    """
    Summoner profile: ranked entry, last 12 matches, recent-form summary.

    Cache hits are served without touching the miss limiter.
    """
    if is_bot_request(request):
        return json_response({"ok": False, "reason": "bot_blocked"})

    region = region.strip().lower()
    game_name = normalize_game_name(safe_decode(game_name))
    tag_line = normalize_tag_line(safe_decode(tag_line))
    if not is_platform(region) or not looks_valid_riot_id(game_name, tag_line):
        return json_response({"ok": False, "reason": "invalid_params"}, 400)

    cached = summoner_service.get_cached_profile(region, game_name, tag_line)
    if cached is not None:
        return json_response({"ok": True, "cached": True, **cached})

    rl = get_miss_limiter().enforce(get_client_ip(request))
    if not rl.ok:
        return json_response({"ok": False, "reason": rl.reason or "rate_limited"}, 429, headers={"Retry-After": "600"})

    if not config.get_riot_api_key():
        return json_response({"ok": False, "reason": "missing_riot_api_key"}, 500)

    try:
        profile = summoner_service.build_profile(region, game_name, tag_line)
    except summoner_service.SummonerNotFound:
        return json_response({"ok": False, "reason": "not_found"}, 404)
    return json_response({"ok": True, "cached": False, **profile})


# ================== META BUILDS ==================

@router.get("/api/lol/meta")
def lol_meta(query: MetaQuery = Depends()):
    """Best builds per champion/role for ``mode`` + ``patch`` (newest by default)."""
    try:
        result = get_meta_builds_service().query(
            mode=query.mode,
            patch=query.patch,
            role=query.role,
            champ=query.champ,
        )
    except ValueError as e:
        return json_response({"error": str(e)}, 400)
    return json_response(result, cache_control=config.CACHE_META)

