"""
GamerStation Calc Core - Platform-Agnostic Formula Engine

This package contains the pure functions behind every calculator.

NO FRAMEWORK OR I/O IMPORTS ALLOWED:
- No fastapi, requests, cachetools
- No file or network access

All functions must be pure: data-in, data-out.
"""

__version__ = "1.0.0"
__author__ = "GamerStation Team"

from calc_core.engines import (
    compute_osrs_dps,
    compute_fight,
    compute_ability_packet,
    compute_cod_ttk,
    compute_fortnite_ttk,
    compute_catch_chance,
)

from calc_core.calculators import (
    wilson_lower_bound,
    pick_best_build,
    summarize_matches,
)

from calc_core.utils import (
    clamp,
    fmt,
    num0,
    platform_to_cluster,
)

__all__ = [
    # Engines
    "compute_osrs_dps",
    "compute_fight",
    "compute_ability_packet",
    "compute_cod_ttk",
    "compute_fortnite_ttk",
    "compute_catch_chance",
    # Calculators
    "wilson_lower_bound",
    "pick_best_build",
    "summarize_matches",
    # Utils
    "clamp",
    "fmt",
    "num0",
    "platform_to_cluster",
]
