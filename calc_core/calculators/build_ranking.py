"""
Meta Build Ranking - Pure Functions
===================================
Ranks LoL item builds per champion/role.

Two scores are in play:
    - ``score``: Bayesian-smoothed win rate computed when the meta JSON is
      generated (``bayes_score``). Stored on each entry.
    - Wilson lower bound: computed at read time to pick the single "best"
      build so that a 100% win rate over 3 games never beats a solid
      55% over 400.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from calc_core.utils.numeric import PLACEHOLDER, clamp, is_finite

Z_95 = 1.96
FALLBACK_MIN_GAMES = 10
DEFAULT_MIN_DISPLAY_SAMPLE = 25
DEFAULT_BAYES_K = 100
DEFAULT_PRIOR_WINRATE = 0.5
TOP_BUILDS_PER_ROLE = 10
MAX_CORE_ITEMS = 3

ROLES = ("TOP", "JUNGLE", "MIDDLE", "BOTTOM", "UTILITY")

_ROLE_ALIASES = {
    "TOP": "TOP",
    "JUNGLE": "JUNGLE",
    "MIDDLE": "MIDDLE",
    "MID": "MIDDLE",
    "BOTTOM": "BOTTOM",
    "BOT": "BOTTOM",
    "UTILITY": "UTILITY",
    "SUPPORT": "UTILITY",
}

_SHORT_ROLE = {
    "TOP": "Top",
    "JUNGLE": "Jg",
    "MIDDLE": "Mid",
    "BOTTOM": "Bot",
    "UTILITY": "Sup",
}

# Data Dragon items tagged "Boots"
DEFAULT_BOOT_IDS = frozenset({1001, 3006, 3009, 3020, 3047, 3111, 3158, 2422, 3117})


@dataclass(frozen=True)
class MetaRoleEntry:
    """One build row from the meta JSON."""
    boots: Optional[int]
    core: Tuple[int, ...]
    games: int
    wins: int
    winrate: float  # 0..1
    score: float
    build_sig: str
    items: Tuple[int, ...] = ()
    summoners: Tuple[int, ...] = ()
    runes_sig: Optional[str] = None
    low_sample: bool = False

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "MetaRoleEntry":
        games = int(raw.get("games") or 0)
        wins = int(raw.get("wins") or 0)
        winrate = raw.get("winrate")
        if not is_finite(winrate):
            winrate = wins / games if games > 0 else 0.0
        boots = raw.get("boots")
        return cls(
            boots=int(boots) if boots else None,
            core=tuple(int(x) for x in raw.get("core") or ()),
            games=games,
            wins=wins,
            winrate=float(winrate),
            score=float(raw.get("score") or 0.0),
            build_sig=str(raw.get("buildSig") or raw.get("build_sig") or ""),
            items=tuple(int(x) for x in raw.get("items") or ()),
            summoners=tuple(int(x) for x in raw.get("summoners") or ()),
            runes_sig=raw.get("runesSig") or raw.get("runes_sig"),
            low_sample=bool(raw.get("lowSample") or raw.get("low_sample")),
        )

    @property
    def display_items(self) -> Tuple[int, ...]:
        """Full item list if present, else boots + core."""
        if self.items:
            return self.items
        return ((self.boots,) if self.boots else ()) + self.core


def wilson_lower_bound(p: float, n: float, z: float = Z_95) -> float:
    """
    Lower bound of the Wilson score interval for a binomial proportion.

    Args:
        p: Observed win rate (0..1, clamped)
        n: Number of games
        z: Normal quantile (1.96 ~ 95% confidence)

    Returns:
        Lower bound in [0, 1], or -1 when ``n <= 0`` / inputs are not finite.

    Example:
        >>> round(wilson_lower_bound(0.6, 100), 4)
        0.502
        >>> wilson_lower_bound(1.0, 0)
        -1
    """
    if not is_finite(p) or not is_finite(n) or n <= 0:
        return -1
    p = clamp(p, 0, 1)
    z2 = z * z
    denom = 1 + z2 / n
    center = p + z2 / (2 * n)
    adj = z * math.sqrt((p * (1 - p)) / n + z2 / (4 * n * n))
    return (center - adj) / denom


def bayes_score(
    wins: float,
    games: float,
    k: float = DEFAULT_BAYES_K,
    prior: float = DEFAULT_PRIOR_WINRATE,
) -> float:
    """Win rate smoothed toward ``prior`` with ``k`` pseudo-games."""
    a = prior * k + wins
    b = (1 - prior) * k + (games - wins)
    if a + b <= 0:
        return prior
    return a / (a + b)


def pick_best_build(
    entries: Optional[Sequence[MetaRoleEntry]],
    preferred_min: int = DEFAULT_MIN_DISPLAY_SAMPLE,
    fallback_min: int = FALLBACK_MIN_GAMES,
) -> Optional[MetaRoleEntry]:
    """
    Best build of a role by Wilson lower bound.

    Builds under ``fallback_min`` games are ignored. If any build reaches
    ``preferred_min`` games, only those compete. Ties go to more games,
    then the stored score.
    """
    if not entries:
        return None

    viable = [e for e in entries if e.games >= fallback_min]
    if not viable:
        return None

    strong = [e for e in viable if e.games >= preferred_min]
    pool = strong or viable

    best = pool[0]
    best_lb = wilson_lower_bound(best.winrate, best.games)
    for entry in pool[1:]:
        lb = wilson_lower_bound(entry.winrate, entry.games)
        if lb > best_lb:
            best, best_lb = entry, lb
        elif lb == best_lb:
            if entry.games > best.games or (entry.games == best.games and entry.score > best.score):
                best, best_lb = entry, lb
    return best


def pick_best_role(
    role_map: Mapping[str, Sequence[MetaRoleEntry]],
    preferred_min: int = DEFAULT_MIN_DISPLAY_SAMPLE,
) -> Optional[Tuple[str, MetaRoleEntry]]:
    """Best (role, build) across the five roles, ties to more games."""
    best: Optional[Tuple[str, MetaRoleEntry, float]] = None
    for role in ROLES:
        entry = pick_best_build(role_map.get(role), preferred_min, FALLBACK_MIN_GAMES)
        if entry is None:
            continue
        lb = wilson_lower_bound(entry.winrate, entry.games)
        if best is None or lb > best[2] or (lb == best[2] and entry.games > best[1].games):
            best = (role, entry, lb)
    return (best[0], best[1]) if best else None


def is_stat_sig(entry: Optional[MetaRoleEntry], min_display_sample: int = DEFAULT_MIN_DISPLAY_SAMPLE) -> bool:
    if entry is None or entry.low_sample:
        return False
    return entry.games >= min_display_sample


def patch_from_game_version(game_version: Optional[str], major_minor_only: bool = True) -> str:
    """
    Example:
        >>> patch_from_game_version("14.3.562.1234")
        '14.3'
    """
    s = str(game_version or "").strip()
    if not s:
        return "unknown"
    if not major_minor_only:
        return s
    parts = s.split(".")
    if len(parts) >= 2:
        return f"{parts[0]}.{parts[1]}"
    return s


def patch_sort_key(patch: str) -> int:
    """'14.3' -> 14003. Non-numeric parts count as 0."""
    parts = str(patch).split(".")

    def _part(i: int) -> int:
        try:
            return int(parts[i])
        except (IndexError, ValueError):
            return 0

    return _part(0) * 1000 + _part(1)


def normalize_role(team_position: Any) -> Optional[str]:
    return _ROLE_ALIASES.get(str(team_position or "").upper())


def short_role(role: str) -> str:
    return _SHORT_ROLE.get(role, "Top")


def build_sig(boots: Optional[int], core: Iterable[int]) -> str:
    """
    Example:
        >>> build_sig(3047, [3071, 6333])
        'b=3047|c=3071,6333'
    """
    return f"b={boots or 0}|c={','.join(str(c) for c in core)}"


def _uniq_keep_order(values: Iterable[int]) -> List[int]:
    seen = set()
    out = []
    for v in values:
        if not v or v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out


def _to_int(v: Any) -> int:
    try:
        n = int(v or 0)
    except (TypeError, ValueError):
        return 0
    return n


@dataclass
class BuildParts:
    boots: Optional[int]
    core: List[int] = field(default_factory=list)
    items: List[int] = field(default_factory=list)
    summoners: List[int] = field(default_factory=list)

    @property
    def sig(self) -> str:
        return build_sig(self.boots, self.core)


def extract_boots_and_core(participant: Mapping[str, Any], boot_ids: Iterable[int] = DEFAULT_BOOT_IDS) -> BuildParts:
    """
    Boots and first three non-boot items from a Match-V5 participant.

    Item slots 0..5 are read in order, zeros and duplicates dropped.
    Summoner spells are sorted so D/F order does not split builds.
    """
    boot_set = set(boot_ids)
    raw = [_to_int(participant.get(f"item{i}")) for i in range(6)]
    items = _uniq_keep_order(x for x in raw if x > 0)

    boots = next((i for i in items if i in boot_set), None)

    core: List[int] = []
    for item_id in items:
        if boots and item_id == boots:
            continue
        core.append(item_id)
        if len(core) >= MAX_CORE_ITEMS:
            break

    summoners = sorted(
        x for x in (_to_int(participant.get("summoner1Id")), _to_int(participant.get("summoner2Id"))) if x > 0
    )
    display = ([boots] if boots else []) + core
    return BuildParts(boots=boots, core=core, items=display, summoners=summoners)


@dataclass
class BuildTally:
    """Aggregated games for one build signature."""
    build: BuildParts
    games: int = 0
    wins: int = 0

    def add(self, win: bool) -> None:
        self.games += 1
        if win:
            self.wins += 1


def top_builds_for_role(
    role_map: Mapping[str, BuildTally],
    min_display_sample: int = DEFAULT_MIN_DISPLAY_SAMPLE,
    bayes_k: float = DEFAULT_BAYES_K,
    prior_winrate: float = DEFAULT_PRIOR_WINRATE,
    limit: int = TOP_BUILDS_PER_ROLE,
) -> List[MetaRoleEntry]:
    """
    Turn aggregated tallies into display rows.

    Builds under ``min_display_sample`` games are suppressed entirely.
    Sorted by games desc, then score desc.
    """
    rows = []
    for sig, tally in role_map.items():
        if tally.games < min_display_sample:
            continue
        winrate = tally.wins / tally.games if tally.games > 0 else 0.0
        rows.append(MetaRoleEntry(
            boots=tally.build.boots,
            core=tuple(tally.build.core),
            items=tuple(tally.build.items),
            summoners=tuple(tally.build.summoners),
            games=tally.games,
            wins=tally.wins,
            winrate=round(winrate, 4),
            score=round(bayes_score(tally.wins, tally.games, bayes_k, prior_winrate), 6),
            build_sig=sig,
        ))
    rows.sort(key=lambda e: (-e.games, -e.score))
    return rows[:limit]


def _format_pct(x: float) -> str:
    if not is_finite(x):
        return PLACEHOLDER
    return f"{round(x * 100)}%"


def build_share_text(
    champ_name: str,
    role: str,
    entry: MetaRoleEntry,
    patch: Optional[str] = None,
    mode: str = "ranked",
    item_names: Optional[Mapping[int, str]] = None,
    share_url: Optional[str] = None,
) -> str:
    """
    Plain-text summary of a build for copy/paste.

    Example:
        Ahri • Patch 14.3 • Ranked • Mid
        Boots: Sorcerer's Shoes
        Core: Luden's Companion, Shadowflame
        Winrate: 54% • Games: 210 • Score: 1
    """
    names = item_names or {}

    def items_text(ids: Sequence[int]) -> str:
        if not ids:
            return PLACEHOLDER
        return ", ".join(names.get(i, str(i)) for i in ids)

    boots = [entry.boots] if entry.boots else []
    full = list(entry.display_items)

    lines = [
        f"{champ_name} • Patch {patch or PLACEHOLDER} • {'Ranked' if mode == 'ranked' else 'Casual'} • {short_role(role)}",
        f"Boots: {items_text(boots)}",
        f"Core: {items_text(entry.core)}",
        f"Items: {items_text(full)}" if full else "",
        f"Winrate: {_format_pct(entry.winrate)} • Games: {entry.games} • Score: {round(entry.score or 0)}",
        f"Summoners: {', '.join(str(s) for s in entry.summoners)}" if entry.summoners else "",
        f"Runes: {entry.runes_sig}" if entry.runes_sig else "",
        share_url or "",
    ]
    return "\n".join(line for line in lines if line)
