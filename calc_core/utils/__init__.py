"""
Calc Core Utilities - Numeric helpers and player identity normalisation.
"""

from calc_core.utils.numeric import (
    PLACEHOLDER,
    clamp,
    finite_or_none,
    fmt,
    fmt_pct,
    is_finite,
    num0,
)
from calc_core.utils.identity import (
    CLUSTERS,
    PLATFORMS,
    is_likely_bot_user_agent,
    is_platform,
    looks_valid_riot_id,
    normalize_game_name,
    normalize_osrs_player,
    normalize_tag_line,
    platform_to_cluster,
    safe_decode,
    slugify_riot_id,
)

__all__ = [
    "PLACEHOLDER",
    "clamp",
    "finite_or_none",
    "fmt",
    "fmt_pct",
    "is_finite",
    "num0",
    "CLUSTERS",
    "PLATFORMS",
    "is_likely_bot_user_agent",
    "is_platform",
    "looks_valid_riot_id",
    "normalize_game_name",
    "normalize_osrs_player",
    "normalize_tag_line",
    "platform_to_cluster",
    "safe_decode",
    "slugify_riot_id",
]
