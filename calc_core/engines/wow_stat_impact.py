"""
WoW Stat Impact Engine - Pure Functions
=======================================
"What should I invest into next?" for the four secondary stats.

Each rating is normalised by the largest current rating, so a character's
existing distribution does not drown out the specialization's stat identity, then
scaled by the specialization weight for the chosen content type.

Weight table patch checklist:
    1) update the numbers below
    2) bump ``WEIGHTS_VERSION``
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from calc_core.utils.numeric import is_finite

WEIGHTS_VERSION = "v1-starter"

STAT_KEYS = ("crit", "haste", "mastery", "vers")
CONTENT_TYPES = {
    "raid_st": "Raid ST",
    "mplus_aoe": "Mythic+ AoE",
}

# Character-stats secondary field per stat key
RATING_FIELDS = {
    "crit": "crit_rating",
    "haste": "haste_rating",
    "mastery": "mastery_rating",
    "vers": "versatility_rating",
}


@dataclass(frozen=True)
class SpecDef:
    group: str
    label: str
    weights: Dict[str, Dict[str, float]]


def _spec(group: str, label: str, raid_st: Tuple[float, ...], mplus_aoe: Tuple[float, ...]) -> SpecDef:
    # tuples are (haste, crit, mastery, vers)
    def as_dict(w):
        return dict(zip(("haste", "crit", "mastery", "vers"), w))
    return SpecDef(group, label, {"raid_st": as_dict(raid_st), "mplus_aoe": as_dict(mplus_aoe)})


SPEC_DEFS: Dict[str, SpecDef] = {
    "dk_frost": _spec("Death Knight", "Frost", (0.85, 0.9, 1.0, 0.85), (0.95, 0.85, 1.0, 0.9)),
    "dk_unholy": _spec("Death Knight", "Unholy", (1.0, 0.85, 0.95, 0.85), (1.05, 0.8, 0.95, 0.9)),
    "dh_havoc": _spec("Demon Hunter", "Havoc", (0.9, 1.0, 0.85, 0.85), (0.95, 0.95, 0.85, 0.9)),
    "druid_balance": _spec("Druid", "Balance", (0.9, 0.9, 1.0, 0.85), (0.95, 0.85, 1.05, 0.9)),
    "druid_feral": _spec("Druid", "Feral", (0.85, 1.0, 0.9, 0.85), (0.9, 0.95, 0.95, 0.9)),
    "evoker_devastation": _spec("Evoker", "Devastation", (0.9, 0.95, 1.0, 0.85), (0.95, 0.9, 1.05, 0.9)),
    "evoker_augmentation": _spec("Evoker", "Augmentation", (1.0, 0.9, 0.95, 0.85), (1.05, 0.85, 0.95, 0.9)),
    "hunter_bm": _spec("Hunter", "Beast Mastery", (1.05, 0.8, 0.9, 0.85), (1.1, 0.75, 0.95, 0.85)),
    "hunter_mm": _spec("Hunter", "Marksmanship", (0.75, 1.05, 0.95, 0.8), (0.85, 0.95, 1.0, 0.85)),
    "hunter_sv": _spec("Hunter", "Survival", (0.95, 0.9, 0.9, 0.85), (1.0, 0.85, 0.95, 0.9)),
    "mage_arcane": _spec("Mage", "Arcane", (0.85, 0.85, 1.05, 0.85), (0.9, 0.8, 1.05, 0.9)),
    "mage_fire": _spec("Mage", "Fire", (0.9, 1.05, 0.65, 0.8), (1.0, 0.85, 0.55, 0.85)),
    "mage_frost": _spec("Mage", "Frost", (0.85, 0.75, 1.05, 0.8), (0.95, 0.7, 0.95, 0.85)),
    "monk_windwalker": _spec("Monk", "Windwalker", (0.85, 0.95, 0.95, 0.85), (0.9, 0.9, 1.0, 0.9)),
    "paladin_retribution": _spec("Paladin", "Retribution", (0.9, 0.95, 1.0, 0.85), (0.95, 0.9, 1.0, 0.9)),
    "priest_shadow": _spec("Priest", "Shadow", (1.0, 0.85, 0.95, 0.85), (1.05, 0.8, 0.95, 0.9)),
    "rogue_assassination": _spec("Rogue", "Assassination", (0.9, 1.0, 0.9, 0.85), (0.95, 0.95, 0.95, 0.9)),
    "rogue_outlaw": _spec("Rogue", "Outlaw", (1.0, 0.9, 0.75, 0.85), (1.05, 0.85, 0.7, 0.9)),
    "rogue_subtlety": _spec("Rogue", "Subtlety", (0.85, 1.0, 0.95, 0.85), (0.9, 0.95, 1.0, 0.9)),
    "shaman_elemental": _spec("Shaman", "Elemental", (0.9, 0.9, 1.0, 0.85), (0.95, 0.85, 1.05, 0.9)),
    "shaman_enhancement": _spec("Shaman", "Enhancement", (0.95, 0.9, 0.95, 0.85), (1.0, 0.85, 1.0, 0.9)),
    "warlock_affliction": _spec("Warlock", "Affliction", (1.0, 0.85, 0.95, 0.85), (1.05, 0.8, 1.0, 0.9)),
    "warlock_demonology": _spec("Warlock", "Demonology", (0.9, 0.85, 1.05, 0.85), (0.95, 0.8, 1.05, 0.9)),
    "warlock_destruction": _spec("Warlock", "Destruction", (0.85, 1.0, 0.95, 0.85), (0.9, 0.95, 1.0, 0.9)),
    "warrior_arms": _spec("Warrior", "Arms", (0.7, 0.95, 1.05, 0.85), (0.8, 0.9, 1.0, 0.9)),
    "warrior_fury": _spec("Warrior", "Fury", (1.05, 0.9, 0.8, 0.85), (1.1, 0.85, 0.75, 0.9)),
}

DEFAULT_SPEC = "mage_fire"
DEFAULT_CONTENT_TYPE = "raid_st"
EQUAL_WEIGHTS = {k: 1.0 for k in STAT_KEYS}


@dataclass
class StatImpactEntry:
    stat: str
    rating: float
    weight: float
    value: float
    score100: float = 0.0


@dataclass
class StatPer100:
    stat: str
    units: float


@dataclass
class StatImpactResult:
    best_stat: str
    entries: List[StatImpactEntry] = field(default_factory=list)
    per100: List[StatPer100] = field(default_factory=list)


def _safe(v) -> float:
    return float(v) if is_finite(v) else 0.0


def weights_for(spec: str, content_type: str = DEFAULT_CONTENT_TYPE) -> Optional[Dict[str, float]]:
    """Spec weights for one content type, or None for an unknown spec/content type."""
    spec_def = SPEC_DEFS.get(spec)
    if spec_def is None:
        return None
    w = spec_def.weights.get(content_type)
    return dict(w) if w is not None else None


def grouped_specs() -> List[Dict]:
    """Specs grouped by class, groups and labels alphabetical (dropdown order)."""
    groups: Dict[str, List[Dict[str, str]]] = {}
    for key, spec_def in SPEC_DEFS.items():
        groups.setdefault(spec_def.group, []).append({"key": key, "label": spec_def.label})
    return [
        {"group": group, "specs": sorted(specs, key=lambda s: s["label"])}
        for group, specs in sorted(groups.items())
    ]


def ratings_from_character(secondary: Mapping) -> Dict[str, float]:
    """Secondary ratings from imported character stats; missing values count as 0."""
    return {k: _safe((secondary or {}).get(f)) for k, f in RATING_FIELDS.items()}


def compute_stat_impact(ratings: Mapping, weights: Optional[Mapping] = None) -> StatImpactResult:
    """
    Rank the secondary stats by weighted, max-normalised rating.

    Formula:
        value(stat)    = rating / max(all ratings, 1) * weight
        score100(stat) = value / top value * 100   (0 when the top value is 0)
        per100(stat)   = weight * 100

    Entries keep ``STAT_KEYS`` order on ties, so all-zero ratings pick crit.

    Example:
        >>> r = compute_stat_impact({"crit": 1000, "haste": 500, "mastery": 0, "vers": 0})
        >>> r.best_stat, r.entries[1].score100
        ('crit', 50.0)
    """
    w = {k: _safe((weights or EQUAL_WEIGHTS).get(k)) for k in STAT_KEYS}
    r = {k: max(0.0, _safe(ratings.get(k))) for k in STAT_KEYS}
    max_rating = max(max(r.values()), 1.0)

    entries = [
        StatImpactEntry(stat=k, rating=r[k], weight=w[k], value=r[k] / max_rating * w[k])
        for k in STAT_KEYS
    ]
    entries.sort(key=lambda e: -e.value)

    top_value = entries[0].value
    for e in entries:
        e.score100 = e.value / top_value * 100 if top_value > 0 else 0.0

    per100 = sorted(
        (StatPer100(stat=k, units=w[k] * 100) for k in STAT_KEYS),
        key=lambda p: -p.units,
    )
    return StatImpactResult(best_stat=entries[0].stat, entries=entries, per100=per100)


def priority_line(entries: List[StatImpactEntry]) -> str:
    """``"CRIT > HASTE > VERS > MASTERY"``"""
    return " > ".join(e.stat.upper() for e in entries)
