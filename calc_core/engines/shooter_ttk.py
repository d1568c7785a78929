"""
Shooter TTK Engine - Pure Functions
===================================
Shots-to-kill and time-to-kill for Call of Duty and Fortnite.

Timing model for both games: the first shot lands at t=0, every following
shot one fire interval later, so ``ttk = (shots - 1) / shots_per_second``.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from calc_core.utils.numeric import clamp

NAN = float('nan')


# ---------------------------------------------------------------------------
# Call of Duty
# ---------------------------------------------------------------------------

COD_BASE_HP = 100
COD_PLATE_HP = 50
COD_MAX_PLATES = 3

COD_CLASSES = {
    "ar": "Assault Rifles",
    "smg": "SMGs",
    "lmg": "LMGs",
}


@dataclass(frozen=True)
class DamageBreakpoint:
    meters: float
    damage: float


@dataclass(frozen=True)
class CodWeapon:
    id: str
    name: str
    weapon_class: str
    rpm: float
    damage: float
    headshot_mult: float = 1.0
    meta: bool = False
    damage_profile: Tuple[DamageBreakpoint, ...] = ()

    def profile(self) -> Tuple[DamageBreakpoint, ...]:
        """Damage falloff; a flat weapon is a single breakpoint at 0 m."""
        if self.damage_profile:
            return self.damage_profile
        return (DamageBreakpoint(0, self.damage),)


# Starter list; placeholder stats until verified numbers land.
COD_WEAPONS: List[CodWeapon] = [
    CodWeapon("m15-mod0", "M15 MOD 0", "ar", rpm=720, damage=32, meta=True),
    CodWeapon("ak-27", "AK-27", "ar", rpm=650, damage=35, meta=True),
    CodWeapon("warden-308", "Warden 308", "ar", rpm=520, damage=42, meta=True),
    CodWeapon("dravec-45", "Dravec 45", "smg", rpm=900, damage=27, meta=True),
    CodWeapon("rk-9", "RK-9", "smg", rpm=950, damage=26, meta=True),
    CodWeapon("xr-3-ion", "XR-3 ION", "lmg", rpm=700, damage=30, meta=True),
    CodWeapon("ar-1", "AR-Alpha", "ar", rpm=780, damage=30),
    CodWeapon("smg-1", "SMG-Vector", "smg", rpm=980, damage=24),
    CodWeapon("lmg-1", "LMG-Titan", "lmg", rpm=620, damage=33),
]


def cod_weapons_by_class(weapon_class: str) -> List[CodWeapon]:
    """Meta weapons first, then alphabetical (case-insensitive)."""
    weapons = [w for w in COD_WEAPONS if w.weapon_class == weapon_class]
    return sorted(weapons, key=lambda w: (not w.meta, w.name.lower()))


def get_cod_weapon(weapon_id: str) -> Optional[CodWeapon]:
    for weapon in COD_WEAPONS:
        if weapon.id == weapon_id:
            return weapon
    return None


def damage_at_meters(profile: Sequence[DamageBreakpoint], meters: float) -> float:
    """
    Damage of the last breakpoint at or below ``meters``.

    The profile must be sorted by distance. Distances before the first
    breakpoint use the first breakpoint's damage.

    Example:
        >>> p = [DamageBreakpoint(0, 40), DamageBreakpoint(15, 32), DamageBreakpoint(30, 27)]
        >>> damage_at_meters(p, 20)
        32
    """
    if not profile:
        return 0
    chosen = profile[0].damage
    for point in profile:
        if meters >= point.meters:
            chosen = point.damage
        else:
            break
    return chosen


def distance_bucket(meters: float) -> str:
    """Attachment damage buckets: dmg10 / dmg25 / dmg50."""
    if meters <= 10:
        return "dmg10"
    if meters <= 25:
        return "dmg25"
    return "dmg50"


@dataclass(frozen=True)
class BarrelAdds:
    """Flat damage a barrel attachment adds per distance bucket."""
    dmg10: float = 0.0
    dmg25: float = 0.0
    dmg50: float = 0.0

    def for_bucket(self, bucket: str) -> float:
        return getattr(self, bucket, 0.0)


def cod_total_hp(mode: str, plates: int) -> int:
    """Multiplayer is a flat 100; Warzone adds 50 per plate (0..3)."""
    if mode == "wz":
        return COD_BASE_HP + int(clamp(plates, 0, COD_MAX_PLATES)) * COD_PLATE_HP
    return COD_BASE_HP


def shots_to_kill(hp: float, damage: float) -> int:
    """0 when a shot does no damage."""
    if damage <= 0:
        return 0
    return math.ceil(hp / damage)


def ttk_ms(shots: int, rpm: float) -> float:
    """(shots - 1) fire intervals in milliseconds; NaN when undefined."""
    shots_per_second = rpm / 60
    if shots <= 0 or shots_per_second <= 0:
        return NAN
    return (shots - 1) / shots_per_second * 1000


def effective_shots(shots: int, accuracy_pct: float) -> int:
    """Shots fired (hits and misses) at a given accuracy, 1..100 %."""
    if shots <= 0:
        return 0
    acc = clamp(accuracy_pct, 1, 100) / 100
    return math.ceil(shots / acc)


@dataclass
class CodTtkResult:
    weapon_id: str
    total_hp: int
    rpm: float
    bucket: str
    base_damage: float
    damage_per_shot: float
    shots_to_kill: int
    ttk_ms: float
    accuracy_pct: float
    effective_shots: int
    ttk_ms_with_accuracy: float


def compute_cod_ttk(
    weapon: CodWeapon,
    distance_m: float = 25,
    mode: str = "mp",
    plates: int = 3,
    accuracy_pct: float = 100,
    rpm_override: Optional[float] = None,
    barrel: Optional[BarrelAdds] = None,
) -> CodTtkResult:
    """
    Shots and time to kill for one weapon at one distance.

    Damage per shot is the profile damage plus the barrel's bucket add
    (floored at 0), scaled by the weapon's headshot multiplier (1..5).
    """
    total_hp = cod_total_hp(mode, plates)
    rpm = weapon.rpm if rpm_override is None else clamp(rpm_override, 1, 3000)

    bucket = distance_bucket(distance_m)
    base = damage_at_meters(weapon.profile(), distance_m)
    add = barrel.for_bucket(bucket) if barrel else 0.0
    damage = max(0.0, base + add) * clamp(weapon.headshot_mult, 1, 5)

    stk = shots_to_kill(total_hp, damage)
    acc = clamp(accuracy_pct, 1, 100)
    shots_fired = effective_shots(stk, acc)

    return CodTtkResult(
        weapon_id=weapon.id,
        total_hp=total_hp,
        rpm=rpm,
        bucket=bucket,
        base_damage=base,
        damage_per_shot=damage,
        shots_to_kill=stk,
        ttk_ms=ttk_ms(stk, rpm),
        accuracy_pct=acc,
        effective_shots=shots_fired,
        ttk_ms_with_accuracy=ttk_ms(shots_fired, rpm),
    )


# ---------------------------------------------------------------------------
# Fortnite
# ---------------------------------------------------------------------------

FORTNITE_CATEGORIES = {
    "assault_rifle": "Assault Rifles",
    "lmg": "LMGs",
    "smg": "SMGs",
    "shotgun": "Shotguns",
    "pistol": "Pistols",
    "sniper_dmr": "Sniper / DMR",
}

RARITIES = ("common", "uncommon", "rare", "epic", "legendary", "mythic")

FORTNITE_HP_PRESETS = {
    "No shield (100)": 100,
    "50 shield (150)": 150,
    "Full shield (200)": 200,
    "Overshield-ish (250)": 250,
}


def _rarity_table(*values: float) -> Dict[str, float]:
    return dict(zip(RARITIES, values))


@dataclass(frozen=True)
class FortniteWeapon:
    id: str
    name: str
    category: str
    fire_rate: float  # shots / sec
    headshot_mult: float
    damage: Dict[str, float] = field(default_factory=dict)

    def body_damage(self, rarity: str) -> float:
        """0 means the weapon does not drop at that rarity."""
        return self.damage.get(rarity, 0)

    def available_rarities(self) -> List[str]:
        return [r for r in RARITIES if self.damage.get(r, 0) > 0]


FORTNITE_WEAPONS: List[FortniteWeapon] = [
    FortniteWeapon("ar_standard", "Assault Rifle", "assault_rifle", 5.5, 2.0, _rarity_table(30, 31, 33, 35, 36, 37)),
    FortniteWeapon("ar_heavy", "Heavy Assault Rifle", "assault_rifle", 3.75, 2.0, _rarity_table(33, 35, 37, 39, 41, 44)),
    FortniteWeapon("ar_burst", "Burst Assault Rifle", "assault_rifle", 4.0, 2.0, _rarity_table(27, 29, 30, 32, 33, 0)),
    FortniteWeapon("ar_infantry", "Infantry Rifle", "assault_rifle", 4.0, 2.0, _rarity_table(36, 38, 40, 42, 44, 0)),
    FortniteWeapon("ar_tactical", "Tactical Assault Rifle", "assault_rifle", 7.0, 2.0, _rarity_table(0, 0, 22, 23, 24, 0)),
    FortniteWeapon("lmg_standard", "Light Machine Gun", "lmg", 7.0, 2.0, _rarity_table(0, 0, 25, 26, 0, 0)),
    FortniteWeapon("minigun", "Minigun", "lmg", 12.0, 1.5, _rarity_table(0, 0, 0, 20, 21, 21)),
    FortniteWeapon("smg_standard", "Submachine Gun", "smg", 12.0, 2.0, _rarity_table(17, 18, 19, 20, 21, 0)),
    FortniteWeapon("smg_rapid_fire", "Rapid Fire SMG", "smg", 12.0, 1.75, _rarity_table(0, 14, 15, 16, 17, 0)),
    FortniteWeapon("sg_pump", "Pump Shotgun", "shotgun", 0.7, 2.0, _rarity_table(70, 80, 90, 100, 110, 0)),
    FortniteWeapon("sg_tactical", "Tactical Shotgun", "shotgun", 1.3, 2.0, _rarity_table(71, 75, 79, 83, 87, 0)),
    FortniteWeapon("sg_heavy", "Heavy Shotgun", "shotgun", 1.0, 2.5, _rarity_table(0, 0, 70, 74, 77, 0)),
    FortniteWeapon("pistol_standard", "Pistol", "pistol", 6.75, 2.0, _rarity_table(24, 25, 26, 28, 29, 0)),
    FortniteWeapon("hand_cannon", "Hand Cannon", "pistol", 1.8, 2.0, _rarity_table(0, 0, 71, 75, 78, 0)),
    FortniteWeapon("sniper_heavy", "Heavy Sniper Rifle", "sniper_dmr", 0.33, 2.5, _rarity_table(0, 0, 0, 150, 157, 0)),
    FortniteWeapon("sniper_bolt", "Bolt-Action Sniper Rifle", "sniper_dmr", 0.6, 2.5, _rarity_table(95, 100, 105, 110, 116, 0)),
]


def fortnite_weapons_by_category(category: str) -> List[FortniteWeapon]:
    return [w for w in FORTNITE_WEAPONS if w.category == category]


def get_fortnite_weapon(weapon_id: str) -> Optional[FortniteWeapon]:
    for weapon in FORTNITE_WEAPONS:
        if weapon.id == weapon_id:
            return weapon
    return None


def expected_shot_damage(body_damage: float, headshot_mult: float, headshot_pct: float) -> float:
    """
    Body damage blended with headshot damage by headshot rate (0..100 %).

    Example:
        >>> expected_shot_damage(30, 2.0, 50)
        45.0
    """
    hs = clamp(headshot_pct, 0, 100) / 100
    return body_damage * (1 - hs) + body_damage * headshot_mult * hs


@dataclass
class FortniteTtkResult:
    weapon_id: str
    rarity: str
    body_damage: float
    headshot_mult: float
    fire_rate: float
    expected_damage: float
    shots_to_kill: Optional[int]
    ttk_seconds: float


def compute_fortnite_ttk(
    weapon: FortniteWeapon,
    rarity: str = "common",
    target_hp: float = 200,
    headshot_pct: float = 0,
) -> FortniteTtkResult:
    """Shots to kill is None when the weapon does no damage at ``rarity``."""
    body = weapon.body_damage(rarity)
    expected = expected_shot_damage(body, weapon.headshot_mult, headshot_pct)
    stk = math.ceil(target_hp / expected) if expected > 0 else None

    if weapon.fire_rate > 0 and stk is not None:
        ttk = max(0, stk - 1) / weapon.fire_rate
    else:
        ttk = NAN

    return FortniteTtkResult(
        weapon_id=weapon.id,
        rarity=rarity,
        body_damage=body,
        headshot_mult=weapon.headshot_mult,
        fire_rate=weapon.fire_rate,
        expected_damage=expected,
        shots_to_kill=stk,
        ttk_seconds=ttk,
    )
