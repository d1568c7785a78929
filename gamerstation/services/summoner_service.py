"""
Summoner Profile Service
========================
Builds a LoL summoner profile from the Riot APIs:

  1. PUUID via Account-V1 (Riot ID), falling back to Summoner-V4 by-name
  2. Summoner-V4 (icon, level) and League-V4 (ranked entries)
  3. Match-V5: 20 recent match IDs, details for the first 12 fetched with
     4 workers, then reduced to rows + a summary

Profiles are cached for 5 minutes keyed by region + Riot ID slug.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from calc_core.calculators.match_summary import (
    derive_dd_version,
    match_row_for,
    pick_ranked,
    summarize_matches,
)
from calc_core.utils.identity import platform_to_cluster, slugify_riot_id
from gamerstation.core import config
from gamerstation.services.response_cache import get_cache
from gamerstation.services.riot_client import RiotClient, get_riot_client

logger = logging.getLogger(__name__)

MATCH_ID_COUNT = 20
MATCH_DETAIL_COUNT = 12
MATCH_DETAIL_WORKERS = 4


class SummonerNotFound(LookupError):
    """Neither the Riot ID nor the summoner name resolved to a PUUID."""


def _cache():
    return get_cache("summoner", config.SUMMONER_CACHE_TTL)


def profile_cache_key(region: str, game_name: str, tag_line: str) -> str:
    return f"summoner:{region}:{slugify_riot_id(game_name, tag_line)}"


def get_cached_profile(region: str, game_name: str, tag_line: str) -> Optional[Dict[str, Any]]:
    return _cache().get(profile_cache_key(region, game_name, tag_line))


def fetch_match_details(client: RiotClient, cluster: str, match_ids: List[str]) -> List[Dict]:
    """Fetch matches with bounded concurrency; order follows ``match_ids``."""
    if not match_ids:
        return []
    with ThreadPoolExecutor(max_workers=min(MATCH_DETAIL_WORKERS, len(match_ids))) as pool:
        results = list(pool.map(lambda mid: client.get_match(cluster, mid), match_ids))
    return [m for m in results if m]


def resolve_puuid(client: RiotClient, region: str, game_name: str, tag_line: str) -> Dict[str, Any]:
    """
    Returns:
        {"puuid", "display_name", "used_fallback_by_name"}

    Raises:
        SummonerNotFound
    """
    cluster = platform_to_cluster(region)
    account = client.get_account_by_riot_id(cluster, game_name, tag_line)
    if account and account.get("puuid"):
        return {
            "puuid": account["puuid"],
            "display_name": f"{account.get('gameName', game_name)}#{account.get('tagLine', tag_line)}",
            "used_fallback_by_name": False,
        }

    logger.info("[summoner] Riot ID %s#%s not found on %s, trying by-name", game_name, tag_line, cluster)
    by_name = client.get_summoner_by_name(region, game_name)
    if by_name and by_name.get("puuid"):
        return {
            "puuid": by_name["puuid"],
            "display_name": by_name.get("name") or game_name,
            "used_fallback_by_name": True,
        }
    raise SummonerNotFound(f"{game_name}#{tag_line}")


def build_profile(
    region: str,
    game_name: str,
    tag_line: str,
    client: Optional[RiotClient] = None,
) -> Dict[str, Any]:
    """
    Build (and cache) a profile.

    Raises:
        SummonerNotFound: the player does not exist.
        MissingCredentialsError: RIOT_API_KEY is unset.
    """
    client = client or get_riot_client()
    cluster = platform_to_cluster(region)

    who = resolve_puuid(client, region, game_name, tag_line)
    puuid = who["puuid"]

    summoner = client.get_summoner_by_puuid(region, puuid) or {}
    ranked = pick_ranked(client.get_league_entries(region, puuid))

    match_ids = client.get_match_ids(cluster, puuid, count=MATCH_ID_COUNT)
    matches = fetch_match_details(client, cluster, match_ids[:MATCH_DETAIL_COUNT])

    dd_version = derive_dd_version(((matches[0] if matches else {}).get("info") or {}).get("gameVersion"))
    rows = [row for row in (match_row_for(m, puuid) for m in matches) if row is not None]
    summary = summarize_matches(rows)

    profile = {
        "region": region,
        "riot_id": who["display_name"],
        "puuid": puuid,
        "summoner": {
            "profile_icon_id": summoner.get("profileIconId"),
            "summoner_level": summoner.get("summonerLevel"),
        },
        "ranked": dict(ranked) if ranked else None,
        "summary": summary.to_dict(),
        "matches": [asdict(row) for row in rows],
        "meta": {
            "used_fallback_by_name": who["used_fallback_by_name"],
            "attempted_riot_id": f"{game_name}#{tag_line}",
            "dd_version": dd_version,
            "match_ids_found": len(match_ids),
        },
    }

    logger.info(
        "[summoner] built %s on %s: %d matches, %d wins",
        who["display_name"], region, summary.games, summary.wins,
    )
    _cache().set(profile_cache_key(region, game_name, tag_line), profile)
    return profile
