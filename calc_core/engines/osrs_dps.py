"""
OSRS DPS Engine - Pure Function
===============================
Old School RuneScape damage-per-second and time-to-kill baseline.

Accuracy is the standard attack-roll vs defence-roll comparison, damage is
the max-hit formula with prayer and potion boosts. Magic uses a powered
staff baseline curve derived from the magic level.
"""

import math
from dataclasses import dataclass
from enum import Enum

from calc_core.utils.numeric import clamp


class Style(str, Enum):
    """Combat style."""
    MELEE = "melee"
    RANGED = "ranged"
    MAGIC = "magic"


# Strength prayers
MELEE_STRENGTH_PRAYERS = {
    "none": 1.0,
    "burst_of_strength": 1.05,
    "superhuman_strength": 1.10,
    "ultimate_strength": 1.15,
    "chivalry": 1.18,
    "piety": 1.23,
}

# Only chivalry/piety boost attack as well
MELEE_ATTACK_PRAYERS = {
    "chivalry": 1.15,
    "piety": 1.20,
}

RANGED_PRAYERS = {
    "none": 1.0,
    "sharp_eye": 1.05,
    "hawk_eye": 1.10,
    "eagle_eye": 1.15,
    "rigour": 1.23,
}

MAGIC_PRAYERS = {
    "none": 1.0,
    "mystic_will": 1.05,
    "mystic_lore": 1.10,
    "mystic_might": 1.15,
    "augury": 1.25,
}

POTIONS = (
    "none",
    "super_combat",
    "ranging",
    "magic",
    "divine_super_combat",
    "divine_ranging",
    "divine_magic",
)

TICK_SECONDS = 0.6


@dataclass
class OsrsInputs:
    """Calculator inputs. Bonuses are the ones relevant to the chosen style."""
    style: Style = Style.MELEE

    atk_level: int = 75
    str_level: int = 75
    rng_level: int = 75
    mag_level: int = 75

    attack_bonus: int = 100
    strength_bonus: int = 80
    ranged_strength: int = 80
    magic_damage_pct: float = 0.0  # 15 means +15%

    speed_ticks: int = 4

    melee_prayer: str = "none"
    ranged_prayer: str = "none"
    magic_prayer: str = "none"
    potion: str = "none"

    target_hp: int = 150
    target_def_level: int = 100
    target_def_bonus: int = 100


@dataclass
class OsrsResult:
    attack_roll: int
    defense_roll: int
    p_hit: float
    eff_acc: int
    eff_dmg: int
    max_hit: int
    avg_hit_on_success: float
    expected_per_swing: float
    seconds_per_attack: float
    dps: float
    ttk_seconds: float


def melee_strength_prayer_mult(prayer: str) -> float:
    return MELEE_STRENGTH_PRAYERS.get(prayer, 1.0)


def melee_attack_prayer_mult(prayer: str) -> float:
    return MELEE_ATTACK_PRAYERS.get(prayer, 1.0)


def ranged_prayer_mult(prayer: str) -> float:
    return RANGED_PRAYERS.get(prayer, 1.0)


def magic_prayer_mult(prayer: str) -> float:
    return MAGIC_PRAYERS.get(prayer, 1.0)


def boosted_melee(base: int, potion: str) -> int:
    if potion in ("super_combat", "divine_super_combat"):
        return math.floor(base * 1.15 + 5)
    return base


def boosted_ranged(base: int, potion: str) -> int:
    if potion in ("ranging", "divine_ranging"):
        return math.floor(base * 1.10 + 4)
    return base


def boosted_magic(base: int, potion: str) -> int:
    if potion in ("magic", "divine_magic"):
        return math.floor(base * 1.10 + 4)
    return base


def effective_level(base_level: int, prayer_mult: float, style_bonus: int = 0) -> int:
    """floor(level * prayer) + style bonus + 8"""
    return math.floor(base_level * prayer_mult) + style_bonus + 8


def hit_chance(attack_roll: float, defense_roll: float) -> float:
    """
    Probability that an attack lands.

    Returns 0 when either roll is non-positive. The result always lies in
    ``[0, 1]``.

    Example:
        >>> hit_chance(20000, 10000)
        0.74996...
        >>> hit_chance(0, 10000)
        0
    """
    if attack_roll <= 0 or defense_roll <= 0:
        return 0
    if attack_roll > defense_roll:
        return 1 - (defense_roll + 2) / (2 * (attack_roll + 1))
    return attack_roll / (2 * (defense_roll + 1))


def melee_max_hit(eff_str: int, strength_bonus: int) -> int:
    return math.floor(0.5 + eff_str * (strength_bonus + 64) / 640)


def ranged_max_hit(eff_rng: int, ranged_strength: int) -> int:
    return math.floor(0.5 + eff_rng * (ranged_strength + 64) / 640)


def powered_staff_base_max_hit(mag_level: int) -> int:
    """Baseline curve, not a real weapon: level 75 -> 21, level 99 -> 24."""
    return math.floor(10 + clamp(mag_level, 1, 120) * 0.15)


def magic_max_hit(base_max: int, magic_damage_pct: float) -> int:
    return math.floor(base_max * (1 + magic_damage_pct / 100))


def defense_roll_for(target_def_level: int, target_def_bonus: int) -> int:
    return (target_def_level + 9) * (target_def_bonus + 64)


def compute_osrs_dps(inputs: OsrsInputs) -> OsrsResult:
    """
    Compute DPS and time-to-kill for one style.

    Expected damage per swing is ``p_hit * max_hit / 2`` (hits roll
    uniformly between 0 and max). Time-to-kill is infinite when DPS is 0.

    Example:
        >>> r = compute_osrs_dps(OsrsInputs(atk_level=75, strength_bonus=80,
        ...                                 speed_ticks=4, target_hp=150))
        >>> r.max_hit
        19
    """
    style = Style(inputs.style)
    style_bonus_acc = 0
    style_bonus_dmg = 0

    atk = boosted_melee(inputs.atk_level, inputs.potion)
    strength = boosted_melee(inputs.str_level, inputs.potion)
    rng = boosted_ranged(inputs.rng_level, inputs.potion)
    mag = boosted_magic(inputs.mag_level, inputs.potion)

    defense_roll = defense_roll_for(inputs.target_def_level, inputs.target_def_bonus)

    if style is Style.MELEE:
        eff_acc = effective_level(atk, melee_attack_prayer_mult(inputs.melee_prayer), style_bonus_acc)
        eff_dmg = effective_level(strength, melee_strength_prayer_mult(inputs.melee_prayer), style_bonus_dmg)
        max_hit = melee_max_hit(eff_dmg, inputs.strength_bonus)
    elif style is Style.RANGED:
        pray = ranged_prayer_mult(inputs.ranged_prayer)
        eff_acc = effective_level(rng, pray, style_bonus_acc)
        eff_dmg = effective_level(rng, pray, style_bonus_dmg)
        max_hit = ranged_max_hit(eff_dmg, inputs.ranged_strength)
    else:
        eff_acc = effective_level(mag, magic_prayer_mult(inputs.magic_prayer), style_bonus_acc)
        # damage scaling is tied to effective magic in this baseline
        eff_dmg = eff_acc
        max_hit = magic_max_hit(powered_staff_base_max_hit(mag), inputs.magic_damage_pct)

    attack_roll = eff_acc * (inputs.attack_bonus + 64)

    p_hit = clamp(hit_chance(attack_roll, defense_roll), 0, 1)
    avg_hit_on_success = max_hit / 2
    expected_per_swing = p_hit * avg_hit_on_success

    seconds_per_attack = inputs.speed_ticks * TICK_SECONDS
    dps = expected_per_swing / seconds_per_attack if seconds_per_attack > 0 else 0.0
    ttk_seconds = inputs.target_hp / dps if dps > 0 else math.inf

    return OsrsResult(
        attack_roll=attack_roll,
        defense_roll=defense_roll,
        p_hit=p_hit,
        eff_acc=eff_acc,
        eff_dmg=eff_dmg,
        max_hit=max_hit,
        avg_hit_on_success=avg_hit_on_success,
        expected_per_swing=expected_per_swing,
        seconds_per_attack=seconds_per_attack,
        dps=dps,
        ttk_seconds=ttk_seconds,
    )
