"""
Calc Core Engines - Per-Game Damage Math

These engines contain the formula core of every calculator.
They must remain platform-agnostic with no I/O or framework dependencies.
"""

from calc_core.engines.osrs_dps import OsrsInputs, OsrsResult, Style, compute_osrs_dps, hit_chance
from calc_core.engines.lol_damage import (
    FightInputs,
    KillCheck,
    compute_ability_packet,
    compute_fight,
    damage_multiplier_from_resist,
    effective_hp,
    item_totals,
)
from calc_core.engines.shooter_ttk import compute_cod_ttk, compute_fortnite_ttk
from calc_core.engines.catch_rate import compute_catch_chance
from calc_core.engines.wow_stat_impact import compute_stat_impact, weights_for

__all__ = [
    "OsrsInputs",
    "OsrsResult",
    "Style",
    "compute_osrs_dps",
    "hit_chance",
    "FightInputs",
    "KillCheck",
    "compute_ability_packet",
    "compute_fight",
    "damage_multiplier_from_resist",
    "effective_hp",
    "item_totals",
    "compute_cod_ttk",
    "compute_fortnite_ttk",
    "compute_catch_chance",
    "compute_stat_impact",
    "weights_for",
]
