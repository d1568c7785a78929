"""
Pydantic Request Models for the GamerStation API
================================================
Input validation for calculator bodies and data-route query parameters.

Key Features:
- Clamping: calculator numbers are pulled into range instead of rejected
  (a level of 120 becomes 99, a negative accuracy becomes 1)
- Enum validation: styles, balls, statuses, rarities
- Only structurally wrong input (unknown enum values, non-numeric strings)
  produces a 422

Usage:
    from fastapi import Depends
    from gamerstation.api.query_models import MetaQuery

    @router.get("/meta")
    def get_meta(query: MetaQuery = Depends()):
        ...
"""

from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, Field, field_validator

from calc_core.engines.catch_rate import RULESETS, Ball, Status
from calc_core.engines.lol_damage import CastPacket
from calc_core.engines.osrs_dps import POTIONS, Style
from calc_core.engines.shooter_ttk import RARITIES
from calc_core.engines.wow_stat_impact import CONTENT_TYPES, DEFAULT_CONTENT_TYPE, DEFAULT_SPEC
from calc_core.utils.numeric import clamp

NAN = float("nan")


def _clamped(lo: float, hi: float) -> AfterValidator:
    """Clamp into [lo, hi], keeping int fields int."""
    return AfterValidator(lambda v: type(v)(clamp(v, lo, hi)))


OsrsLevel = Annotated[int, _clamped(1, 99)]
OsrsBonus = Annotated[int, _clamped(-200, 400)]
TargetHp = Annotated[float, _clamped(1, 20000)]
Resist = Annotated[float, _clamped(-100, 1000)]
RawDamage = Annotated[float, _clamped(0, 100000)]
Seconds = Annotated[float, _clamped(0, 60)]
Percent = Annotated[float, _clamped(0, 100)]


# ---------------------------------------------------------------------------
# OSRS
# ---------------------------------------------------------------------------

class OsrsDpsRequest(BaseModel):
    """OSRS DPS calculator inputs."""
    style: Style = Style.MELEE

    atk_level: OsrsLevel = 75
    str_level: OsrsLevel = 75
    rng_level: OsrsLevel = 75
    mag_level: OsrsLevel = 75

    attack_bonus: OsrsBonus = 100
    strength_bonus: OsrsBonus = 80
    ranged_strength: OsrsBonus = 80
    magic_damage_pct: Annotated[float, _clamped(0, 200)] = 0.0

    speed_ticks: Annotated[int, _clamped(2, 7)] = 4

    melee_prayer: str = "none"
    ranged_prayer: str = "none"
    magic_prayer: str = "none"
    potion: str = "none"

    target_hp: Annotated[int, _clamped(1, 5000)] = 150
    target_def_level: Annotated[int, _clamped(1, 400)] = 100
    target_def_bonus: OsrsBonus = 100

    @field_validator("potion")
    @classmethod
    def known_potion(cls, v):
        # unknown potion names fall back to no boost
        return v if v in POTIONS else "none"


# ---------------------------------------------------------------------------
# League of Legends
# ---------------------------------------------------------------------------

class CastModel(BaseModel):
    key: str = Field(..., min_length=1, max_length=4, description="Q/W/E/R or AA")
    phys: RawDamage = 0.0
    magic: RawDamage = 0.0
    true_dmg: RawDamage = 0.0

    def to_packet(self) -> CastPacket:
        return CastPacket(key=self.key.upper(), phys=self.phys, magic=self.magic, true_dmg=self.true_dmg)


class LolDamageRequest(BaseModel):
    """
    Burst / DPS / kill check inputs.

    ``items`` are Data Dragon item rows (only their ``stats`` are read).
    Champion stats left out are treated as "no champion selected".
    """
    champ_hp: Optional[float] = None
    champ_armor: Optional[float] = None
    champ_mr: Optional[float] = None
    champ_ad: Optional[float] = None
    champ_as: Optional[float] = None
    items: List[Dict[str, Any]] = Field(default_factory=list, max_length=6)

    target_hp: TargetHp = 2000.0
    target_armor: Resist = 80.0
    target_mr: Resist = 60.0

    on_hit_flat_magic: Annotated[float, _clamped(0, 10000)] = 0.0
    on_hit_pct_target_max_hp_phys: Annotated[float, _clamped(0, 50)] = 0.0
    crit_damage_mult: Annotated[float, _clamped(1, 5)] = 1.75

    ui_mode: Literal["simple", "advanced"] = "simple"
    fight_mode: Literal["burst", "dps"] = "burst"

    simple_autos: Annotated[float, _clamped(0, 50)] = 3.0
    simple_window: Seconds = 5.0

    burst_phys_raw: RawDamage = 300.0
    burst_magic_raw: RawDamage = 0.0
    burst_true_raw: RawDamage = 0.0
    dps_phys_raw: RawDamage = 0.0
    dps_magic_raw: RawDamage = 0.0
    dps_true_raw: RawDamage = 0.0
    window_sec: Seconds = 5.0

    rotation: List[CastModel] = Field(default_factory=list, max_length=30)

    def champ_stat(self, name: str) -> float:
        v = getattr(self, name)
        return NAN if v is None else float(v)


class LolAbilityRequest(BaseModel):
    """Single ability packet (AP/AD calculator)."""
    base: RawDamage = Field(80.0, description="Base damage at the chosen rank")
    ap_ratio: Annotated[float, _clamped(0, 10)] = 0.6
    ad_ratio: Annotated[float, _clamped(0, 10)] = 0.0
    bonus_ad_ratio: Annotated[float, _clamped(0, 10)] = 0.0
    ap: RawDamage = 100.0
    total_ad: RawDamage = 0.0
    bonus_ad: RawDamage = 0.0
    damage_type: Literal["phys", "magic", "true"] = "magic"
    target_hp: TargetHp = 2000.0
    target_armor: Resist = 80.0
    target_mr: Resist = 60.0


class StatsAtLevelQuery(BaseModel):
    champ: str = Field(..., min_length=1, max_length=40, description="Champion id, key or name")
    level: Annotated[int, _clamped(1, 18)] = Field(1, description="Champion level (clamped 1-18)")


# ---------------------------------------------------------------------------
# Shooters
# ---------------------------------------------------------------------------

class BarrelModel(BaseModel):
    dmg10: float = 0.0
    dmg25: float = 0.0
    dmg50: float = 0.0


class CodTtkRequest(BaseModel):
    weapon_id: str = Field(..., min_length=1, max_length=40)
    distance_m: Annotated[float, _clamped(0, 500)] = 25.0
    mode: Literal["mp", "wz"] = "mp"
    plates: Annotated[int, _clamped(0, 3)] = 3
    accuracy_pct: Annotated[float, _clamped(1, 100)] = 100.0
    rpm_override: Optional[float] = Field(None, gt=0, le=3000)
    barrel: Optional[BarrelModel] = None


class FortniteTtkRequest(BaseModel):
    weapon_id: str = Field(..., min_length=1, max_length=40)
    rarity: str = "common"
    target_hp: Annotated[float, _clamped(1, 1000)] = 200.0
    headshot_pct: Percent = 0.0

    @field_validator("rarity")
    @classmethod
    def known_rarity(cls, v):
        v = v.strip().lower()
        if v not in RARITIES:
            raise ValueError(f"rarity must be one of {', '.join(RARITIES)}")
        return v


# ---------------------------------------------------------------------------
# Pokemon
# ---------------------------------------------------------------------------

class CatchRequest(BaseModel):
    capture_rate: Annotated[int, _clamped(1, 255)] = Field(45, description="Species catch rate")
    hp_pct: Annotated[float, _clamped(1, 100)] = Field(100.0, description="Remaining HP in percent")
    ball: Ball = Ball.POKE
    status: Status = Status.NONE
    turn: Annotated[int, _clamped(1, 100)] = 1
    ruleset: str = "gen5plus"

    @field_validator("ruleset")
    @classmethod
    def known_ruleset(cls, v):
        if v not in RULESETS:
            raise ValueError(f"ruleset must be one of {', '.join(RULESETS)}")
        return v


# ---------------------------------------------------------------------------
# World of Warcraft
# ---------------------------------------------------------------------------

Rating = Annotated[float, _clamped(0, 100000)]
StatWeight = Annotated[float, _clamped(0, 10)]


class StatRatingsModel(BaseModel):
    crit: Rating = 0.0
    haste: Rating = 0.0
    mastery: Rating = 0.0
    vers: Rating = 0.0


class StatWeightsModel(BaseModel):
    crit: StatWeight = 1.0
    haste: StatWeight = 1.0
    mastery: StatWeight = 1.0
    vers: StatWeight = 1.0


class WowStatImpactRequest(BaseModel):
    """
    Stat impact inputs.

    ``ratings`` are typed in by hand, or taken from ``character`` (the
    ``secondary`` block of /api/wow-character-stats) when given.
    ``weights`` overrides the specialization weight table.
    """
    spec: str = Field(DEFAULT_SPEC, min_length=1, max_length=40)
    content_type: str = DEFAULT_CONTENT_TYPE
    ratings: StatRatingsModel = Field(default_factory=StatRatingsModel)
    character: Optional[Dict[str, Any]] = None
    weights: Optional[StatWeightsModel] = None

    @field_validator("content_type")
    @classmethod
    def known_content_type(cls, v):
        if v not in CONTENT_TYPES:
            raise ValueError(f"content_type must be one of {', '.join(CONTENT_TYPES)}")
        return v


# ---------------------------------------------------------------------------
# Data routes
# ---------------------------------------------------------------------------

class MetaQuery(BaseModel):
    """Mirrors the meta page deep-link state (?mode=&patch=&role=&champ=)."""
    mode: Literal["ranked", "casual"] = "ranked"
    patch: Optional[str] = Field(None, pattern=r"^\d+\.\d+$")
    role: str = Field("ALL", max_length=10)
    champ: Optional[str] = Field(None, max_length=40)

    @field_validator("champ")
    @classmethod
    def strip_champ(cls, v):
        if v is None:
            return None
        return v.strip() or None
