"""
League of Legends Damage Engine - Pure Functions
================================================
Resist mitigation, effective HP, item stat totals, crit expectation,
burst / DPS / time-to-kill and the "can I kill this target" heuristic.

Conventions:
    - Percentages are 0..100 unless a name says otherwise.
    - NaN means "not enough data". Callers decide how to render it.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional

from calc_core.utils.numeric import clamp, fmt, is_finite

NAN = float('nan')

DamageType = Literal['phys', 'magic', 'true']
FightMode = Literal['burst', 'dps']
UiMode = Literal['simple', 'advanced']

KILLABLE = "✅ Killable"
NOT_KILLABLE = "❌ Not killable"
UNKNOWN = "—"

DEFAULT_CRIT_DAMAGE_MULT = 1.75
MAX_SIMPLE_AUTOS = 50
MAX_ON_HIT_PCT = 50


def damage_multiplier_from_resist(resist: float) -> float:
    """
    Fraction of pre-mitigation damage that gets through armor or magic resist.

    Formula:
        r >= 0:  100 / (100 + r)
        r <  0:  2 - 100 / (100 - r)

    Negative resist amplifies damage (multiplier above 1, capped below 2).

    Example:
        >>> damage_multiplier_from_resist(100)
        0.5
        >>> damage_multiplier_from_resist(-100)
        1.5
    """
    if not is_finite(resist):
        return NAN
    if resist >= 0:
        return 100 / (100 + resist)
    return 2 - 100 / (100 - resist)


def effective_hp(hp: float, resist: float) -> float:
    """Raw damage needed to remove ``hp`` through ``resist``."""
    mult = damage_multiplier_from_resist(resist)
    if not is_finite(mult) or mult <= 0 or not is_finite(hp):
        return NAN
    return hp / mult


def resist_after_penetration(resist: float, pct_pen: float, flat_pen: float) -> float:
    """Percent penetration applies first, then flat. Result may go negative."""
    return resist * (1 - pct_pen / 100) - flat_pen


@dataclass
class ItemTotals:
    """Summed Data Dragon item stats."""
    hp: float = 0.0
    ad: float = 0.0
    ap: float = 0.0
    armor: float = 0.0
    mr: float = 0.0
    ms_flat: float = 0.0
    as_pct: float = 0.0
    crit_chance_pct: float = 0.0
    lethality: float = 0.0
    armor_pen_pct: float = 0.0
    magic_pen_flat: float = 0.0
    magic_pen_pct: float = 0.0
    ability_haste: float = 0.0
    lifesteal_pct: float = 0.0
    omnivamp_pct: float = 0.0


# Data Dragon stat key -> (ItemTotals field, scale). Decimal stats scale to percent.
_ITEM_STAT_KEYS = {
    'FlatHPPoolMod': ('hp', 1),
    'FlatPhysicalDamageMod': ('ad', 1),
    'FlatMagicDamageMod': ('ap', 1),
    'FlatArmorMod': ('armor', 1),
    'FlatSpellBlockMod': ('mr', 1),
    'FlatMovementSpeedMod': ('ms_flat', 1),
    'PercentAttackSpeedMod': ('as_pct', 100),
    'FlatCritChanceMod': ('crit_chance_pct', 100),
    'FlatArmorPenetrationMod': ('lethality', 1),
    'PercentArmorPenetrationMod': ('armor_pen_pct', 100),
    'FlatMagicPenetrationMod': ('magic_pen_flat', 1),
    'PercentMagicPenetrationMod': ('magic_pen_pct', 100),
    'FlatHasteMod': ('ability_haste', 1),
    'PercentLifeStealMod': ('lifesteal_pct', 100),
    'PercentOmnivampMod': ('omnivamp_pct', 100),
}


def item_totals(items: Iterable[Mapping[str, Any]]) -> ItemTotals:
    """
    Sum the stats of selected items.

    Each item is a Data Dragon item row (``{"stats": {...}}``) or a bare
    stats mapping. Unknown keys are ignored.

    Example:
        >>> t = item_totals([{"stats": {"FlatPhysicalDamageMod": 40}},
        ...                  {"stats": {"FlatCritChanceMod": 0.25}}])
        >>> (t.ad, t.crit_chance_pct)
        (40.0, 25.0)
    """
    totals = ItemTotals()
    for item in items:
        stats = item.get('stats', item) if isinstance(item, Mapping) else {}
        if not isinstance(stats, Mapping):
            continue
        for key, (attr, scale) in _ITEM_STAT_KEYS.items():
            value = stats.get(key)
            if is_finite(value):
                setattr(totals, attr, getattr(totals, attr) + float(value) * scale)

    totals.crit_chance_pct = clamp(totals.crit_chance_pct, 0, 100)
    totals.armor_pen_pct = clamp(totals.armor_pen_pct, 0, 100)
    totals.magic_pen_pct = clamp(totals.magic_pen_pct, 0, 100)
    return totals


def expected_crit_multiplier(crit_chance_pct: float, crit_damage_mult: float) -> float:
    """Average auto-attack multiplier: (1 - c) + c * crit_damage."""
    c = clamp(crit_chance_pct / 100, 0, 1)
    cd = clamp(crit_damage_mult, 1.0, 5.0)
    return (1 - c) * 1 + c * cd


def auto_attack_dps(ad: float, attack_speed: float, crit_mult: float) -> float:
    """Auto-attack DPS before resists. NaN without usable AD / AS."""
    if not is_finite(ad) or not is_finite(attack_speed):
        return NAN
    if ad <= 0 or attack_speed <= 0:
        return NAN
    return ad * attack_speed * crit_mult


def one_auto_raw(ad: float, crit_mult: float, on_hit_pct_max_hp: float, target_hp: float) -> float:
    """One auto attack (expected crit) plus %max-HP physical on-hit."""
    if not is_finite(ad):
        return NAN
    on_hit = (clamp(on_hit_pct_max_hp, 0, MAX_ON_HIT_PCT) / 100) * clamp(target_hp, 0, 999999)
    return ad * crit_mult + on_hit


def post_mitigation(
    phys: float,
    magic: float,
    true_dmg: float,
    phys_mult: float,
    magic_mult: float,
) -> float:
    """Combine damage components after resists. True damage ignores resists."""
    phys_part = phys * phys_mult if is_finite(phys_mult) else NAN
    magic_part = magic * magic_mult if is_finite(magic_mult) else NAN
    return phys_part + magic_part + true_dmg


def percent_of_hp(damage: float, target_hp: float) -> float:
    if not is_finite(damage) or not target_hp > 0:
        return NAN
    return damage / target_hp * 100


def time_to_kill(target_hp: float, dps: float) -> float:
    """target HP / DPS, NaN when DPS is not positive."""
    if not is_finite(dps) or dps <= 0:
        return NAN
    return target_hp / dps


def window_damage(dps: float, window_sec: float) -> float:
    if not is_finite(dps) or not is_finite(window_sec) or window_sec <= 0:
        return NAN
    return dps * window_sec


@dataclass
class DamageSummary:
    damage: float
    pct_of_hp: float
    time_to_kill: float = NAN
    window_damage: float = NAN
    window_pct: float = NAN


def compute_burst(
    phys: float,
    magic: float,
    true_dmg: float,
    phys_mult: float,
    magic_mult: float,
    target_hp: float,
) -> DamageSummary:
    post = post_mitigation(phys, magic, true_dmg, phys_mult, magic_mult)
    return DamageSummary(damage=post, pct_of_hp=percent_of_hp(post, target_hp))


def compute_dps(
    phys: float,
    magic: float,
    true_dmg: float,
    phys_mult: float,
    magic_mult: float,
    target_hp: float,
    window_sec: float,
) -> DamageSummary:
    """Same as ``compute_burst`` but per second, plus TTK and window damage."""
    dps = post_mitigation(phys, magic, true_dmg, phys_mult, magic_mult)
    win = window_damage(dps, window_sec)
    return DamageSummary(
        damage=dps,
        pct_of_hp=percent_of_hp(dps, target_hp),
        time_to_kill=time_to_kill(target_hp, dps),
        window_damage=win,
        window_pct=percent_of_hp(win, target_hp),
    )


@dataclass
class KillCheck:
    status: str
    detail: str
    killable: bool = False
    hint: str = ""


def kill_check_burst(burst: float, target_hp: float, label: str = "no items") -> KillCheck:
    """Does a single burst packet kill the target?"""
    if not target_hp > 0:
        return KillCheck(UNKNOWN, "Enter a target HP.")
    if not is_finite(burst):
        return KillCheck(UNKNOWN, "Not enough data.")
    if burst >= target_hp:
        return KillCheck(KILLABLE, f"Burst kills ({label}).", True)
    return KillCheck(NOT_KILLABLE, f"Burst doesn't kill ({label}).")


def kill_check_dps(ttk: float, window_sec: float, target_hp: float, label: str = "no items") -> KillCheck:
    """Does sustained damage kill the target inside the fight window?"""
    if not target_hp > 0:
        return KillCheck(UNKNOWN, "Enter a target HP.")
    if not is_finite(ttk) or not is_finite(window_sec) or window_sec <= 0:
        return KillCheck(UNKNOWN, "Set a window (sec).")
    if ttk <= window_sec:
        return KillCheck(KILLABLE, f"Kills in ~{fmt(ttk, 2)}s ({label}).", True)
    return KillCheck(NOT_KILLABLE, f"Needs ~{fmt(ttk, 2)}s ({label}).")


def kill_check_packet(packet: float, target_hp: float) -> KillCheck:
    """Single ability packet kill check; reports the missing damage."""
    if not target_hp > 0:
        return KillCheck(UNKNOWN, "Set target HP.")
    if not is_finite(packet):
        return KillCheck(UNKNOWN, "Not enough data.")
    if packet >= target_hp:
        return KillCheck(KILLABLE, "Packet kills the target.", True)
    need = target_hp - packet
    return KillCheck(NOT_KILLABLE, f"Needs ~{round(need)} more damage.")


# ---------------------------------------------------------------------------
# Rotation / combo totals
# ---------------------------------------------------------------------------

@dataclass
class CastPacket:
    """Raw damage of one cast. ``key`` is Q/W/E/R or AA."""
    key: str
    phys: float = 0.0
    magic: float = 0.0
    true_dmg: float = 0.0

    @property
    def raw_total(self) -> float:
        return self.phys + self.magic + self.true_dmg


def rotation_totals(
    casts: Iterable[CastPacket],
    auto_phys_raw: float,
    auto_magic_raw: float,
) -> CastPacket:
    """
    Sum a combo. ``AA`` casts take the current auto-attack packet so the
    caller only supplies spell damage.
    """
    total = CastPacket(key="TOTAL")
    aa_phys = auto_phys_raw if is_finite(auto_phys_raw) else 0.0
    aa_magic = max(0.0, auto_magic_raw)
    for cast in casts:
        if cast.key.upper() == "AA":
            total.phys += aa_phys
            total.magic += aa_magic
            continue
        total.phys += cast.phys
        total.magic += cast.magic
        total.true_dmg += cast.true_dmg
    return total


# ---------------------------------------------------------------------------
# Full fight calculator
# ---------------------------------------------------------------------------

@dataclass
class FightInputs:
    # Attacker champion base stats (NaN when no champion selected)
    champ_hp: float = NAN
    champ_armor: float = NAN
    champ_mr: float = NAN
    champ_ad: float = NAN
    champ_as: float = NAN
    items: List[Dict[str, Any]] = field(default_factory=list)

    target_hp: float = 2000.0
    target_armor: float = 80.0
    target_mr: float = 60.0

    on_hit_flat_magic: float = 0.0
    on_hit_pct_target_max_hp_phys: float = 0.0
    crit_damage_mult: float = DEFAULT_CRIT_DAMAGE_MULT

    ui_mode: UiMode = 'simple'
    fight_mode: FightMode = 'burst'

    # Simple mode
    simple_autos: float = 3.0
    simple_window: float = 5.0

    # Advanced mode raw components
    burst_phys_raw: float = 300.0
    burst_magic_raw: float = 0.0
    burst_true_raw: float = 0.0
    dps_phys_raw: float = 0.0
    dps_magic_raw: float = 0.0
    dps_true_raw: float = 0.0
    window_sec: float = 5.0

    rotation: List[CastPacket] = field(default_factory=list)


@dataclass
class FightResult:
    eff_hp: float
    eff_armor: float
    eff_mr: float
    eff_ad: float
    eff_ap: float
    eff_as: float
    bonus_ad: float
    totals: ItemTotals
    target_armor_after_pen: float
    target_mr_after_pen: float
    phys_mult: float
    magic_mult: float
    ehp_phys: float
    ehp_magic: float
    expected_crit_mult: float
    inferred_aa_dps: float
    one_auto_raw: float
    one_auto_post: float
    rotation: Optional[CastPacket]
    damage: float           # burst packet, or DPS in dps mode
    damage_pct: float
    time_to_kill: float
    window_damage: float
    window_pct: float
    kill_check: KillCheck


def _plus(base: float, extra: float) -> float:
    return base + extra if is_finite(base) else NAN


def compute_fight(inputs: FightInputs) -> FightResult:
    """
    Burst / DPS / kill check against one target.

    Simple mode derives everything from auto attacks. Advanced mode takes
    raw damage components (or a rotation) and runs them through the same
    resist math. In DPS mode a rotation is spread over ``window_sec``.
    """
    totals = item_totals(inputs.items)
    t_hp = inputs.target_hp

    eff_hp = _plus(inputs.champ_hp, totals.hp)
    eff_armor = _plus(inputs.champ_armor, totals.armor)
    eff_mr = _plus(inputs.champ_mr, totals.mr)
    eff_ad = _plus(inputs.champ_ad, totals.ad)
    eff_ap = totals.ap  # items only
    eff_as = inputs.champ_as * (1 + totals.as_pct / 100) if is_finite(inputs.champ_as) else NAN

    bonus_ad = max(0.0, eff_ad - inputs.champ_ad) if is_finite(eff_ad) else 0.0

    armor_after = resist_after_penetration(inputs.target_armor, totals.armor_pen_pct, totals.lethality)
    mr_after = resist_after_penetration(inputs.target_mr, totals.magic_pen_pct, totals.magic_pen_flat)
    phys_mult = damage_multiplier_from_resist(armor_after)
    magic_mult = damage_multiplier_from_resist(mr_after)

    crit_mult = expected_crit_multiplier(totals.crit_chance_pct, inputs.crit_damage_mult)
    aa_dps = auto_attack_dps(eff_ad, eff_as, crit_mult)
    auto_raw = one_auto_raw(eff_ad, crit_mult, inputs.on_hit_pct_target_max_hp_phys, t_hp)

    auto_phys_post = auto_raw * phys_mult if is_finite(phys_mult) else NAN
    auto_magic_post = inputs.on_hit_flat_magic * magic_mult if is_finite(magic_mult) else 0.0
    auto_post = auto_phys_post + auto_magic_post

    label = "with items" if inputs.items else "no items"
    rotation = None

    if inputs.ui_mode == 'simple':
        if inputs.fight_mode == 'burst':
            damage = auto_post * clamp(inputs.simple_autos, 0, MAX_SIMPLE_AUTOS) if is_finite(auto_post) else NAN
            ttk = NAN
            win_dmg = NAN
            check = kill_check_burst(damage, t_hp, label)
        else:
            phys_part = aa_dps * phys_mult if is_finite(aa_dps) and is_finite(phys_mult) else NAN
            magic_part = (
                inputs.on_hit_flat_magic * magic_mult * (eff_as if is_finite(eff_as) else 0)
                if is_finite(magic_mult) else 0.0
            )
            damage = phys_part + magic_part
            ttk = time_to_kill(t_hp, damage)
            win_dmg = window_damage(damage, inputs.simple_window)
            check = kill_check_dps(ttk, inputs.simple_window, t_hp, label)
    else:
        if inputs.rotation:
            rotation = rotation_totals(inputs.rotation, auto_raw, inputs.on_hit_flat_magic)
            if inputs.fight_mode == 'burst':
                phys, magic, true_dmg = rotation.phys, rotation.magic, rotation.true_dmg
            elif inputs.window_sec > 0:
                phys = rotation.phys / inputs.window_sec
                magic = rotation.magic / inputs.window_sec
                true_dmg = rotation.true_dmg / inputs.window_sec
            else:
                phys = magic = true_dmg = 0.0
        elif inputs.fight_mode == 'burst':
            phys, magic, true_dmg = inputs.burst_phys_raw, inputs.burst_magic_raw, inputs.burst_true_raw
        else:
            phys, magic, true_dmg = inputs.dps_phys_raw, inputs.dps_magic_raw, inputs.dps_true_raw

        if inputs.fight_mode == 'burst':
            summary = compute_burst(phys, magic, true_dmg, phys_mult, magic_mult, t_hp)
            check = kill_check_burst(summary.damage, t_hp, label)
        else:
            summary = compute_dps(phys, magic, true_dmg, phys_mult, magic_mult, t_hp, inputs.window_sec)
            check = kill_check_dps(summary.time_to_kill, inputs.window_sec, t_hp, label)
        damage = summary.damage
        ttk = summary.time_to_kill
        win_dmg = summary.window_damage

    return FightResult(
        eff_hp=eff_hp,
        eff_armor=eff_armor,
        eff_mr=eff_mr,
        eff_ad=eff_ad,
        eff_ap=eff_ap,
        eff_as=eff_as,
        bonus_ad=bonus_ad,
        totals=totals,
        target_armor_after_pen=armor_after,
        target_mr_after_pen=mr_after,
        phys_mult=phys_mult,
        magic_mult=magic_mult,
        ehp_phys=effective_hp(t_hp, armor_after),
        ehp_magic=effective_hp(t_hp, mr_after),
        expected_crit_mult=crit_mult,
        inferred_aa_dps=aa_dps,
        one_auto_raw=auto_raw,
        one_auto_post=auto_post,
        rotation=rotation,
        damage=damage,
        damage_pct=percent_of_hp(damage, t_hp),
        time_to_kill=ttk,
        window_damage=win_dmg,
        window_pct=percent_of_hp(win_dmg, t_hp),
        kill_check=check,
    )


# ---------------------------------------------------------------------------
# AP / AD single ability packet
# ---------------------------------------------------------------------------

@dataclass
class AbilityResult:
    raw: float
    post: float
    pct_of_hp: float
    resist_mult: float
    raw_delta_ap: float
    raw_delta_ad: float
    post_delta_ap: float
    post_delta_ad: float
    kill_check: KillCheck


def ability_raw_damage(
    base: float,
    ap_ratio: float,
    ad_ratio: float,
    bonus_ad_ratio: float,
    ap: float,
    total_ad: float,
    bonus_ad: float,
) -> float:
    raw = max(0.0, base) + ap_ratio * ap + ad_ratio * total_ad + bonus_ad_ratio * bonus_ad
    return max(0.0, raw) if is_finite(raw) else NAN


def compute_ability_packet(
    base: float,
    ap_ratio: float,
    ad_ratio: float,
    ap: float,
    total_ad: float,
    target_hp: float,
    target_armor: float,
    target_mr: float,
    damage_type: DamageType = 'magic',
    bonus_ad_ratio: float = 0.0,
    bonus_ad: float = 0.0,
    step: float = 10.0,
) -> AbilityResult:
    """
    Damage of one ability and what +``step`` AP or AD would add.

    Example:
        >>> r = compute_ability_packet(80, 0.6, 0, ap=100, total_ad=0,
        ...                            target_hp=1000, target_armor=0, target_mr=0)
        >>> r.raw, r.post_delta_ap
        (140.0, 6.0)
    """
    if damage_type == 'true':
        mult = 1.0
    elif damage_type == 'phys':
        mult = damage_multiplier_from_resist(target_armor)
    else:
        mult = damage_multiplier_from_resist(target_mr)

    raw = ability_raw_damage(base, ap_ratio, ad_ratio, bonus_ad_ratio, ap, total_ad, bonus_ad)
    post = raw * mult if is_finite(raw) and is_finite(mult) else NAN

    raw_ap = ability_raw_damage(base, ap_ratio, ad_ratio, bonus_ad_ratio, ap + step, total_ad, bonus_ad)
    raw_ad = ability_raw_damage(base, ap_ratio, ad_ratio, bonus_ad_ratio, ap, total_ad + step, bonus_ad)
    delta_ap = raw_ap - raw
    delta_ad = raw_ad - raw

    return AbilityResult(
        raw=raw,
        post=post,
        pct_of_hp=percent_of_hp(post, target_hp),
        resist_mult=mult,
        raw_delta_ap=delta_ap,
        raw_delta_ad=delta_ad,
        post_delta_ap=delta_ap * mult if is_finite(mult) else NAN,
        post_delta_ad=delta_ad * mult if is_finite(mult) else NAN,
        kill_check=kill_check_packet(post, target_hp),
    )


# ---------------------------------------------------------------------------
# Champion stat growth
# ---------------------------------------------------------------------------

def stat_at_level(base: float, per_level: float, level: int) -> float:
    return base + per_level * (level - 1)


def attack_speed_at_level(base_as: float, as_per_level_pct: float, level: int) -> float:
    """AS(L) = base * (1 + (pct / 100) * (L - 1))"""
    return base_as * (1 + (as_per_level_pct / 100) * (level - 1))


# Data Dragon champion stat key pairs (base, per level)
_GROWTH_STATS = {
    'hp': ('hp', 'hpperlevel'),
    'mp': ('mp', 'mpperlevel'),
    'armor': ('armor', 'armorperlevel'),
    'mr': ('spellblock', 'spellblockperlevel'),
    'ad': ('attackdamage', 'attackdamageperlevel'),
    'hp_regen': ('hpregen', 'hpregenperlevel'),
    'mp_regen': ('mpregen', 'mpregenperlevel'),
}


def champion_stats_at_level(stats: Mapping[str, Any], level: int) -> Dict[str, Optional[float]]:
    """
    Stats of a Data Dragon champion at ``level`` (clamped to 1..18).

    Stats the payload does not carry come back as None.
    """
    level = int(clamp(level, 1, 18))
    out: Dict[str, Optional[float]] = {}
    for name, (base_key, growth_key) in _GROWTH_STATS.items():
        base = stats.get(base_key)
        if not is_finite(base):
            out[name] = None
            continue
        growth = stats.get(growth_key)
        out[name] = stat_at_level(float(base), float(growth) if is_finite(growth) else 0.0, level)

    base_as = stats.get('attackspeed')
    if is_finite(base_as):
        as_growth = stats.get('attackspeedperlevel')
        out['attack_speed'] = attack_speed_at_level(
            float(base_as), float(as_growth) if is_finite(as_growth) else 0.0, level
        )
    else:
        out['attack_speed'] = None

    for flat_key, name in (('movespeed', 'move_speed'), ('attackrange', 'attack_range')):
        value = stats.get(flat_key)
        out[name] = float(value) if is_finite(value) else None
    return out
