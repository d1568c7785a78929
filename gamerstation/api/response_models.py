"""
Pydantic Response Models for the GamerStation API
=================================================
Schemas for calculator results.

Key Features:
- Null safety: NaN / inf from the formula layer become ``null`` (JSON has
  no NaN), every float field is Optional
- Display strings: a ``display`` block carries the formatted values
  ("—" for unknown) so clients do not re-implement formatting
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator

from calc_core.utils.numeric import finite_or_none


class FiniteModel(BaseModel):
    """Base model mapping non-finite floats to None."""

    @field_validator("*", mode="before")
    @classmethod
    def finite_floats(cls, v):
        if isinstance(v, float):
            return finite_or_none(v)
        return v


class KillCheckResponse(BaseModel):
    status: str
    detail: str
    killable: bool = False
    hint: str = ""


class OsrsDpsResponse(FiniteModel):
    attack_roll: int
    defense_roll: int
    p_hit: Optional[float] = None
    eff_acc: int
    eff_dmg: int
    max_hit: int
    avg_hit_on_success: Optional[float] = None
    expected_per_swing: Optional[float] = None
    seconds_per_attack: Optional[float] = None
    dps: Optional[float] = None
    ttk_seconds: Optional[float] = None
    display: Dict[str, str] = {}


class ItemTotalsResponse(FiniteModel):
    hp: Optional[float] = None
    ad: Optional[float] = None
    ap: Optional[float] = None
    armor: Optional[float] = None
    mr: Optional[float] = None
    ms_flat: Optional[float] = None
    as_pct: Optional[float] = None
    crit_chance_pct: Optional[float] = None
    lethality: Optional[float] = None
    armor_pen_pct: Optional[float] = None
    magic_pen_flat: Optional[float] = None
    magic_pen_pct: Optional[float] = None
    ability_haste: Optional[float] = None
    lifesteal_pct: Optional[float] = None
    omnivamp_pct: Optional[float] = None


class CastResponse(FiniteModel):
    key: str
    phys: Optional[float] = None
    magic: Optional[float] = None
    true_dmg: Optional[float] = None


class LolDamageResponse(FiniteModel):
    eff_hp: Optional[float] = None
    eff_armor: Optional[float] = None
    eff_mr: Optional[float] = None
    eff_ad: Optional[float] = None
    eff_ap: Optional[float] = None
    eff_as: Optional[float] = None
    bonus_ad: Optional[float] = None
    totals: ItemTotalsResponse
    target_armor_after_pen: Optional[float] = None
    target_mr_after_pen: Optional[float] = None
    phys_mult: Optional[float] = None
    magic_mult: Optional[float] = None
    ehp_phys: Optional[float] = None
    ehp_magic: Optional[float] = None
    expected_crit_mult: Optional[float] = None
    inferred_aa_dps: Optional[float] = None
    one_auto_raw: Optional[float] = None
    one_auto_post: Optional[float] = None
    rotation: Optional[CastResponse] = None
    damage: Optional[float] = None
    damage_pct: Optional[float] = None
    time_to_kill: Optional[float] = None
    window_damage: Optional[float] = None
    window_pct: Optional[float] = None
    kill_check: KillCheckResponse
    display: Dict[str, str] = {}


class LolAbilityResponse(FiniteModel):
    raw: Optional[float] = None
    post: Optional[float] = None
    pct_of_hp: Optional[float] = None
    resist_mult: Optional[float] = None
    raw_delta_ap: Optional[float] = None
    raw_delta_ad: Optional[float] = None
    post_delta_ap: Optional[float] = None
    post_delta_ad: Optional[float] = None
    kill_check: KillCheckResponse


class StatsAtLevelResponse(FiniteModel):
    champion: Dict[str, Any]
    level: int
    stats: Dict[str, Optional[float]]


class CodTtkResponse(FiniteModel):
    weapon_id: str
    weapon_name: str
    total_hp: int
    rpm: Optional[float] = None
    bucket: str
    base_damage: Optional[float] = None
    damage_per_shot: Optional[float] = None
    shots_to_kill: int
    ttk_ms: Optional[float] = None
    accuracy_pct: Optional[float] = None
    effective_shots: int
    ttk_ms_with_accuracy: Optional[float] = None


class FortniteTtkResponse(FiniteModel):
    weapon_id: str
    weapon_name: str
    rarity: str
    body_damage: Optional[float] = None
    headshot_mult: Optional[float] = None
    fire_rate: Optional[float] = None
    expected_damage: Optional[float] = None
    shots_to_kill: Optional[int] = None
    ttk_seconds: Optional[float] = None


class CatchResponse(FiniteModel):
    a_value: Optional[float] = None
    ball_mult: Optional[float] = None
    status_mult: Optional[float] = None
    chance: Optional[float] = None
    expected_balls: Optional[float] = None
    display: Dict[str, str] = {}


class StatImpactEntryResponse(FiniteModel):
    stat: str
    rating: Optional[float] = None
    weight: Optional[float] = None
    value: Optional[float] = None
    score100: Optional[float] = None


class StatPer100Response(FiniteModel):
    stat: str
    units: Optional[float] = None


class WowStatImpactResponse(FiniteModel):
    spec: str
    spec_label: str
    content_type: str
    weights_version: str
    weights: Dict[str, float]
    best_stat: str
    entries: List[StatImpactEntryResponse]
    per100: List[StatPer100Response]
    display: Dict[str, str] = {}


class WowSpecListResponse(BaseModel):
    weights_version: str
    content_types: Dict[str, str]
    groups: List[Dict[str, Any]]


class WeaponListResponse(BaseModel):
    groups: Dict[str, str]
    weapons: List[Dict[str, Any]]
    hp_presets: Dict[str, int] = {}
