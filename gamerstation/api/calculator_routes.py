"""
Calculator API Routes
=====================
Thin HTTP wrappers over ``calc_core``: validate/clamp the body, run the pure
function, serialise the dataclass result.

Endpoints:
    POST /api/calculators/osrs/dps
    POST /api/calculators/lol/damage
    POST /api/calculators/lol/ability
    GET  /api/calculators/lol/stats-at-level
    POST /api/calculators/cod/ttk
    GET  /api/calculators/cod/weapons
    POST /api/calculators/fortnite/ttk
    GET  /api/calculators/fortnite/weapons
    POST /api/calculators/pokemon/catch
    POST /api/calculators/wow/stat-impact
    GET  /api/calculators/wow/specs
"""

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from calc_core.engines.catch_rate import compute_catch_chance
from calc_core.engines.lol_damage import (
    FightInputs,
    champion_stats_at_level,
    compute_ability_packet,
    compute_fight,
)
from calc_core.engines.osrs_dps import OsrsInputs, compute_osrs_dps
from calc_core.engines.shooter_ttk import (
    COD_CLASSES,
    FORTNITE_CATEGORIES,
    FORTNITE_HP_PRESETS,
    BarrelAdds,
    compute_cod_ttk,
    compute_fortnite_ttk,
    cod_weapons_by_class,
    fortnite_weapons_by_category,
    get_cod_weapon,
    get_fortnite_weapon,
)
from calc_core.engines.wow_stat_impact import (
    CONTENT_TYPES,
    SPEC_DEFS,
    WEIGHTS_VERSION,
    compute_stat_impact,
    grouped_specs,
    priority_line,
    ratings_from_character,
    weights_for,
)
from calc_core.utils.numeric import fmt, fmt_pct
from gamerstation.api.query_models import (
    CatchRequest,
    CodTtkRequest,
    FortniteTtkRequest,
    LolAbilityRequest,
    LolDamageRequest,
    OsrsDpsRequest,
    StatsAtLevelQuery,
    WowStatImpactRequest,
)
from gamerstation.api.response_models import (
    CatchResponse,
    CodTtkResponse,
    FortniteTtkResponse,
    LolAbilityResponse,
    LolDamageResponse,
    OsrsDpsResponse,
    StatsAtLevelResponse,
    WeaponListResponse,
    WowSpecListResponse,
    WowStatImpactResponse,
)
from gamerstation.services.ddragon_service import get_ddragon_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/calculators", tags=["calculators"])


# ================== OSRS ==================

@router.post("/osrs/dps", response_model=OsrsDpsResponse)
def osrs_dps(body: OsrsDpsRequest):
    """Expected DPS and time-to-kill for one combat style."""
    result = compute_osrs_dps(OsrsInputs(**body.model_dump()))
    return OsrsDpsResponse(
        **asdict(result),
        display={
            "p_hit": fmt_pct(result.p_hit),
            "dps": fmt(result.dps, 3),
            "ttk_seconds": fmt(result.ttk_seconds, 1),
        },
    )


# ================== LEAGUE OF LEGENDS ==================

@router.post("/lol/damage", response_model=LolDamageResponse)
def lol_damage(body: LolDamageRequest):
    """
    Burst / DPS / kill check against one target.

    Simple mode uses auto attacks only; advanced mode takes raw damage
    components or a Q/W/E/R/AA rotation.
    """
    inputs = FightInputs(
        champ_hp=body.champ_stat("champ_hp"),
        champ_armor=body.champ_stat("champ_armor"),
        champ_mr=body.champ_stat("champ_mr"),
        champ_ad=body.champ_stat("champ_ad"),
        champ_as=body.champ_stat("champ_as"),
        items=body.items,
        target_hp=body.target_hp,
        target_armor=body.target_armor,
        target_mr=body.target_mr,
        on_hit_flat_magic=body.on_hit_flat_magic,
        on_hit_pct_target_max_hp_phys=body.on_hit_pct_target_max_hp_phys,
        crit_damage_mult=body.crit_damage_mult,
        ui_mode=body.ui_mode,
        fight_mode=body.fight_mode,
        simple_autos=body.simple_autos,
        simple_window=body.simple_window,
        burst_phys_raw=body.burst_phys_raw,
        burst_magic_raw=body.burst_magic_raw,
        burst_true_raw=body.burst_true_raw,
        dps_phys_raw=body.dps_phys_raw,
        dps_magic_raw=body.dps_magic_raw,
        dps_true_raw=body.dps_true_raw,
        window_sec=body.window_sec,
        rotation=[cast.to_packet() for cast in body.rotation],
    )
    result = compute_fight(inputs)
    return LolDamageResponse(
        **asdict(result),
        display={
            "damage": fmt(result.damage, 1),
            "damage_pct": fmt(result.damage_pct, 1),
            "time_to_kill": fmt(result.time_to_kill, 2),
            "ehp_phys": fmt(result.ehp_phys, 0),
            "ehp_magic": fmt(result.ehp_magic, 0),
        },
    )


@router.post("/lol/ability", response_model=LolAbilityResponse)
def lol_ability(body: LolAbilityRequest):
    """One ability's damage and the marginal value of +10 AP / +10 AD."""
    result = compute_ability_packet(
        base=body.base,
        ap_ratio=body.ap_ratio,
        ad_ratio=body.ad_ratio,
        ap=body.ap,
        total_ad=body.total_ad,
        target_hp=body.target_hp,
        target_armor=body.target_armor,
        target_mr=body.target_mr,
        damage_type=body.damage_type,
        bonus_ad_ratio=body.bonus_ad_ratio,
        bonus_ad=body.bonus_ad,
    )
    return LolAbilityResponse(**asdict(result))


@router.get("/lol/stats-at-level", response_model=StatsAtLevelResponse)
def lol_stats_at_level(query: StatsAtLevelQuery = Depends()):
    """Champion base stats grown to ``level`` (Data Dragon growth)."""
    champ = get_ddragon_service().find_champion(query.champ)
    if champ is None:
        raise HTTPException(status_code=404, detail=f"Unknown champion: {query.champ}")
    return StatsAtLevelResponse(
        champion={k: champ.get(k) for k in ("id", "key", "name", "title")},
        level=query.level,
        stats=champion_stats_at_level(champ.get("stats") or {}, query.level),
    )


# ================== SHOOTERS ==================

@router.post("/cod/ttk", response_model=CodTtkResponse)
def cod_ttk(body: CodTtkRequest):
    weapon = get_cod_weapon(body.weapon_id)
    if weapon is None:
        raise HTTPException(status_code=404, detail=f"Unknown weapon: {body.weapon_id}")
    barrel = BarrelAdds(**body.barrel.model_dump()) if body.barrel else None
    result = compute_cod_ttk(
        weapon,
        distance_m=body.distance_m,
        mode=body.mode,
        plates=body.plates,
        accuracy_pct=body.accuracy_pct,
        rpm_override=body.rpm_override,
        barrel=barrel,
    )
    return CodTtkResponse(**asdict(result), weapon_name=weapon.name)


@router.get("/cod/weapons", response_model=WeaponListResponse)
def cod_weapons(weapon_class: Optional[str] = Query(None, alias="class")):
    """COD weapons grouped by class, meta first then alphabetical."""
    classes = [weapon_class] if weapon_class else list(COD_CLASSES)
    if any(c not in COD_CLASSES for c in classes):
        raise HTTPException(status_code=400, detail=f"Unknown class: {weapon_class}")
    weapons = []
    for c in classes:
        for w in cod_weapons_by_class(c):
            weapons.append({
                "id": w.id,
                "name": w.name,
                "class": w.weapon_class,
                "rpm": w.rpm,
                "damage": w.damage,
                "headshot_mult": w.headshot_mult,
                "meta": w.meta,
            })
    return WeaponListResponse(groups=dict(COD_CLASSES), weapons=weapons)


@router.post("/fortnite/ttk", response_model=FortniteTtkResponse)
def fortnite_ttk(body: FortniteTtkRequest):
    weapon = get_fortnite_weapon(body.weapon_id)
    if weapon is None:
        raise HTTPException(status_code=404, detail=f"Unknown weapon: {body.weapon_id}")
    result = compute_fortnite_ttk(weapon, body.rarity, body.target_hp, body.headshot_pct)
    return FortniteTtkResponse(**asdict(result), weapon_name=weapon.name)


@router.get("/fortnite/weapons", response_model=WeaponListResponse)
def fortnite_weapons(category: Optional[str] = None):
    categories = [category] if category else list(FORTNITE_CATEGORIES)
    if any(c not in FORTNITE_CATEGORIES for c in categories):
        raise HTTPException(status_code=400, detail=f"Unknown category: {category}")
    weapons = []
    for c in categories:
        for w in fortnite_weapons_by_category(c):
            weapons.append({
                "id": w.id,
                "name": w.name,
                "category": w.category,
                "fire_rate": w.fire_rate,
                "headshot_mult": w.headshot_mult,
                "damage": dict(w.damage),
                "rarities": w.available_rarities(),
            })
    return WeaponListResponse(
        groups=dict(FORTNITE_CATEGORIES),
        hp_presets=dict(FORTNITE_HP_PRESETS),
        weapons=weapons,
    )


# ================== POKEMON ==================

@router.post("/pokemon/catch", response_model=CatchResponse)
def pokemon_catch(body: CatchRequest):
    result = compute_catch_chance(
        capture_rate=body.capture_rate,
        hp_remaining=body.hp_pct / 100,
        ball=body.ball,
        status=body.status,
        turn=body.turn,
        ruleset=body.ruleset,
    )
    return CatchResponse(
        **asdict(result),
        display={
            "chance": fmt_pct(result.chance),
            "expected_balls": fmt(result.expected_balls, 1),
        },
    )


# ================== WORLD OF WARCRAFT ==================

@router.post("/wow/stat-impact", response_model=WowStatImpactResponse)
def wow_stat_impact(body: WowStatImpactRequest):
    """
    Which secondary stat to invest in next.

    Ratings come from ``character`` (imported stats) when present, else from
    the typed-in ``ratings``. Explicit ``weights`` replace the specialization table, so
    an unknown spec is only a 404 without them.
    """
    spec_def = SPEC_DEFS.get(body.spec)
    if body.weights is not None:
        weights = body.weights.model_dump()
    elif spec_def is not None:
        weights = weights_for(body.spec, body.content_type)
    else:
        raise HTTPException(status_code=404, detail=f"Unknown spec: {body.spec}")

    if body.character is not None:
        ratings = ratings_from_character(body.character.get("secondary") or body.character)
    else:
        ratings = body.ratings.model_dump()

    result = compute_stat_impact(ratings, weights)
    return WowStatImpactResponse(
        spec=body.spec,
        spec_label=f"{spec_def.label} {spec_def.group}" if spec_def else "Custom",
        content_type=body.content_type,
        weights_version=WEIGHTS_VERSION,
        weights=weights,
        best_stat=result.best_stat,
        entries=[asdict(e) for e in result.entries],
        per100=[asdict(p) for p in result.per100],
        display={
            "best_stat": result.best_stat.upper(),
            "priority": priority_line(result.entries),
            "content_type": CONTENT_TYPES[body.content_type],
        },
    )


@router.get("/wow/specs", response_model=WowSpecListResponse)
def wow_specs():
    """Spec dropdown: classes and specs alphabetical, plus content types."""
    return WowSpecListResponse(
        weights_version=WEIGHTS_VERSION,
        content_types=dict(CONTENT_TYPES),
        groups=grouped_specs(),
    )
