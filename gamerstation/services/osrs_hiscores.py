"""
OSRS Hiscores Import
====================
Fetches the hiscores "lite" CSV and pulls the four combat levels the DPS
calculator needs.

Lite format: one ``rank,level,xp`` line per skill in the order
Overall, Attack, Defence, Strength, Hitpoints, Ranged, Prayer, Magic, ...
"""

import logging
from dataclasses import asdict, dataclass
from typing import Dict, Optional

import requests

from gamerstation.core import config
from gamerstation.services.errors import UpstreamError

logger = logging.getLogger(__name__)

_SKILL_LINES = {
    "attack": 1,
    "strength": 3,
    "ranged": 5,
    "magic": 7,
}


@dataclass
class CombatSkills:
    attack: int = 1
    strength: int = 1
    ranged: int = 1
    magic: int = 1

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def parse_combat_skills(text: str) -> CombatSkills:
    """
    Unparseable or missing lines default to level 1.

    Example:
        >>> parse_combat_skills("1,2277,1\\n5,99,13034431\\n")
        CombatSkills(attack=99, strength=1, ranged=1, magic=1)
    """
    lines = text.strip().split("\n")

    def level_at(idx: int) -> int:
        line = lines[idx] if idx < len(lines) else ""
        parts = line.split(",")
        try:
            return int(parts[1])
        except (IndexError, ValueError):
            return 1

    return CombatSkills(**{skill: level_at(idx) for skill, idx in _SKILL_LINES.items()})


def fetch_combat_skills(player: str, session: Optional[requests.Session] = None) -> CombatSkills:
    """
    Args:
        player: Already-normalised OSRS display name.

    Raises:
        UpstreamError: network failure, non-2xx, or empty body (unknown
            players come back as 404).
    """
    http = session or requests
    try:
        res = http.get(
            config.OSRS_HISCORES_URL,
            params={"player": player},
            headers={"User-Agent": "GamerStation (osrs hiscores import)", "Accept": "text/plain"},
            timeout=config.HTTP_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.warning("[osrs] hiscores network error for %s: %s", player, e)
        raise UpstreamError("Upstream network error.") from e

    text = res.text or ""
    if not res.ok or not text.strip():
        logger.info("[osrs] hiscores %d for %s", res.status_code, player)
        raise UpstreamError("Could not load hiscores.")

    return parse_combat_skills(text)
