"""
Match Summary Calculator - Pure Functions
=========================================
Turns Riot Match-V5 payloads into per-match rows and a recent-form summary
for the summoner profile.
"""

from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

RANKED_SOLO = "RANKED_SOLO_5x5"
RANKED_FLEX = "RANKED_FLEX_SR"
TOP_CHAMPS = 5


def kda(kills: int, deaths: int, assists: int) -> str:
    """
    KDA ratio with two decimals. Deathless games report ``k + a``.

    Example:
        >>> kda(10, 2, 5)
        '7.50'
        >>> kda(3, 0, 4)
        '7.00'
    """
    if deaths == 0:
        return f"{kills + assists:.2f}"
    return f"{(kills + assists) / deaths:.2f}"


def derive_dd_version(game_version: Optional[str]) -> Optional[str]:
    """
    Data Dragon version for icons, derived from a match ``gameVersion``.

    Example:
        >>> derive_dd_version("15.3.123.456")
        '15.3.1'
    """
    if not game_version:
        return None
    parts = game_version.split(".")
    if len(parts) < 2:
        return None
    return f"{parts[0]}.{parts[1]}.1"


def pick_ranked(entries: Optional[Sequence[Mapping[str, Any]]]) -> Optional[Mapping[str, Any]]:
    """Solo queue entry, else flex, else whatever comes first."""
    if not entries:
        return None
    for queue in (RANKED_SOLO, RANKED_FLEX):
        for entry in entries:
            if entry.get("queueType") == queue:
                return entry
    return entries[0]


@dataclass
class MatchRow:
    match_id: str
    created_at: int
    duration_sec: int
    mode: str
    queue_id: int
    game_version: str
    win: bool
    champ: str
    role: str
    kills: int
    deaths: int
    assists: int
    kda: str
    cs: int
    gold: int
    dmg_to_champs: int
    vision: int
    items: List[int] = field(default_factory=list)


def match_row_for(match: Mapping[str, Any], puuid: str) -> Optional[MatchRow]:
    """The player's row in a Match-V5 payload, or None if they are absent."""
    info = match.get("info") or {}
    me = next((p for p in info.get("participants") or [] if p.get("puuid") == puuid), None)
    if me is None:
        return None

    kills = int(me.get("kills") or 0)
    deaths = int(me.get("deaths") or 0)
    assists = int(me.get("assists") or 0)

    return MatchRow(
        match_id=str((match.get("metadata") or {}).get("matchId") or ""),
        created_at=int(info.get("gameCreation") or 0),
        duration_sec=int(info.get("gameDuration") or 0),
        mode=str(info.get("gameMode") or ""),
        queue_id=int(info.get("queueId") or 0),
        game_version=str(info.get("gameVersion") or ""),
        win=bool(me.get("win")),
        champ=str(me.get("championName") or ""),
        role=str(me.get("teamPosition") or me.get("lane") or me.get("role") or ""),
        kills=kills,
        deaths=deaths,
        assists=assists,
        kda=kda(kills, deaths, assists),
        cs=int(me.get("totalMinionsKilled") or 0) + int(me.get("neutralMinionsKilled") or 0),
        gold=int(me.get("goldEarned") or 0),
        dmg_to_champs=int(me.get("totalDamageDealtToChampions") or 0),
        vision=int(me.get("visionScore") or 0),
        items=[int(me.get(f"item{i}") or 0) for i in range(7)],
    )


@dataclass
class ProfileSummary:
    games: int
    wins: int
    losses: int
    win_rate: int  # whole percent
    kills: int
    deaths: int
    assists: int
    kda: str
    avg_cs: int
    avg_gold: int
    avg_dmg_to_champs: int
    avg_vision: int
    top_champs: List[Dict[str, Any]]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _round_half_up(x: float) -> int:
    return int(x + 0.5) if x >= 0 else -int(-x + 0.5)


def summarize_matches(rows: Sequence[MatchRow]) -> ProfileSummary:
    """
    Recent-form summary. Averages divide by at least 1 so an empty history
    reports zeros.
    """
    total = len(rows) or 1
    wins = sum(1 for r in rows if r.win)

    k = sum(r.kills for r in rows)
    d = sum(r.deaths for r in rows)
    a = sum(r.assists for r in rows)

    counts = Counter(r.champ for r in rows)
    # Counter.most_common keeps first-seen order on ties
    top = [{"champ": champ, "games": games} for champ, games in counts.most_common(TOP_CHAMPS)]

    return ProfileSummary(
        games=len(rows),
        wins=wins,
        losses=len(rows) - wins,
        win_rate=_round_half_up(wins / len(rows) * 100) if rows else 0,
        kills=k,
        deaths=d,
        assists=a,
        kda=kda(k, d, a),
        avg_cs=_round_half_up(sum(r.cs for r in rows) / total),
        avg_gold=_round_half_up(sum(r.gold for r in rows) / total),
        avg_dmg_to_champs=_round_half_up(sum(r.dmg_to_champs for r in rows) / total),
        avg_vision=_round_half_up(sum(r.vision for r in rows) / total),
        top_champs=top,
    )
