"""
Player Identity Helpers - Pure Function Utility
===============================================
Riot ID / OSRS display-name normalisation, Riot platform routing and a
cheap user-agent bot check. Centralised so routes and services agree on
what a valid lookup looks like.
"""

import re
from typing import Literal, Optional
from urllib.parse import unquote

Cluster = Literal['americas', 'europe', 'asia', 'sea']

PLATFORMS = (
    "na1", "br1", "la1", "la2", "oc1",
    "euw1", "eun1", "tr1", "ru",
    "kr", "jp1",
    "ph2", "sg2", "th2", "tw2", "vn2",
)

CLUSTERS = ("americas", "europe", "asia", "sea")

_AMERICAS = frozenset({"na1", "br1", "la1", "la2"})
_EUROPE = frozenset({"euw1", "eun1", "tr1", "ru"})
_ASIA = frozenset({"kr", "jp1"})

_BOT_NEEDLES = (
    "bot", "crawler", "spider", "scrape", "scanner", "headless",
    "lighthouse", "pagespeed", "prerender", "ahrefs", "semrush",
    "dataforseo", "serpapi", "facebookexternalhit", "slurp",
    "yandex", "baidu", "whatsapp", "telegram",
)

_OSRS_NAME_RE = re.compile(r'^[a-zA-Z0-9 _-]+$')
OSRS_NAME_MAX = 12


def is_platform(value: Optional[str]) -> bool:
    return value in PLATFORMS


def platform_to_cluster(platform: str) -> Cluster:
    """
    Map a Riot platform id to its regional routing cluster.

    AMERICAS = NA/BR/LATAM, EUROPE = EU/TR/RU, ASIA = KR/JP,
    SEA = PH/SG/TH/TW/VN (and OCE).

    Example:
        >>> platform_to_cluster("euw1")
        'europe'
    """
    p = (platform or "").lower()
    if p in _AMERICAS:
        return 'americas'
    if p in _EUROPE:
        return 'europe'
    if p in _ASIA:
        return 'asia'
    return 'sea'


def safe_decode(raw: Optional[str]) -> str:
    """URL-decode path segments; '+' counts as a space."""
    out = unquote(str(raw or ""))
    return out.replace("+", " ").strip()


def normalize_game_name(name: str) -> str:
    return re.sub(r'\s+', ' ', name or "").strip()


def normalize_tag_line(tag: str) -> str:
    tag = re.sub(r'^#+', '', tag or "")
    return re.sub(r'\s+', '', tag).strip()


def looks_valid_riot_id(game_name: str, tag_line: str) -> bool:
    """Lightweight sanity check; Riot remains the final authority."""
    if not game_name or not tag_line:
        return False
    if not 2 <= len(game_name) <= 24:
        return False
    if not 2 <= len(tag_line) <= 10:
        return False
    return True


def slugify_riot_id(game_name: str, tag_line: str) -> str:
    """
    Example:
        >>> slugify_riot_id("Hide on bush", "KR1")
        'hide-on-bush--kr1'
    """
    gn = re.sub(r'\s+', '-', game_name.lower().strip())
    gn = re.sub(r'[^a-z0-9\-_.]', '', gn)
    tg = re.sub(r'[^a-z0-9]', '', tag_line.lower().strip())
    return f"{gn}--{tg}"


def normalize_osrs_player(raw: Optional[str]) -> Optional[str]:
    """Collapse whitespace and reject names OSRS would never accept."""
    name = re.sub(r'\s+', ' ', raw or "").strip()
    if not name or len(name) > OSRS_NAME_MAX:
        return None
    if not _OSRS_NAME_RE.match(name):
        return None
    return name


def is_likely_bot_user_agent(user_agent: Optional[str]) -> bool:
    """An empty user agent is treated as a bot."""
    ua = (user_agent or "").lower()
    if not ua:
        return True
    return any(needle in ua for needle in _BOT_NEEDLES)
