"""
Data Dragon Service
===================
LoL patch version and champion data.

Version lookup order:
    1. Blob mirror    (BLOB_BASE_URL/data/lol/version.json)
    2. Local disk     (DATA_DIR/lol/version.json)
    3. Data Dragon realms (na, euw, kr), highest version wins
    4. "unknown"
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import requests

from calc_core.utils.numeric import is_finite
from gamerstation.core import config
from gamerstation.services.errors import UpstreamError
from gamerstation.services.response_cache import get_cache

logger = logging.getLogger(__name__)

VERSION_PATH = "data/lol/version.json"
REALMS = ("na", "euw", "kr")
COMMUNITY_DRAGON_CHAMPION_URL = (
    "https://raw.communitydragon.org/latest/plugins/rcp-be-lol-game-data/global/default/v1/champions/{key}.json"
)
SPELL_SLOTS = ("Q", "W", "E", "R")
_VERSION_KEY = "ddragon:version"

_NON_DAMAGE_HINTS = ("cooldown", "cost", "mana", "cd")


def compare_versions(a: Optional[str], b: Optional[str]) -> int:
    """
    Numeric dotted-version comparison. Non-numeric parts count as 0.

    Example:
        >>> compare_versions("14.10.1", "14.9.1")
        1
    """
    def parts(v: Optional[str]) -> List[int]:
        out = []
        for x in str(v or "").split("."):
            try:
                out.append(int(x))
            except ValueError:
                out.append(0)
        return out

    pa, pb = parts(a), parts(b)
    n = max(len(pa), len(pb))
    pa += [0] * (n - len(pa))
    pb += [0] * (n - len(pb))
    for da, db in zip(pa, pb):
        if da > db:
            return 1
        if da < db:
            return -1
    return 0


def _normalize(x: Any) -> Optional[str]:
    v = str(x if x is not None else "").strip()
    return v or None


def _pick(payload: Optional[Dict]) -> Tuple[Optional[str], Optional[str]]:
    """(patch, ddragon) from a version.json payload."""
    if not payload:
        return None, None
    patch = _normalize(payload.get("patch")) or _normalize(payload.get("version"))
    ddragon = (
        _normalize(payload.get("ddragon"))
        or _normalize(payload.get("version"))
        or _normalize(payload.get("patch"))
    )
    return patch, ddragon


class DDragonService:
    def __init__(self, session: Optional[requests.Session] = None, data_dir: Optional[Path] = None):
        self.session = session or requests.Session()
        self.data_dir = Path(data_dir) if data_dir else config.DATA_DIR
        self.cache = get_cache("ddragon", config.VERSION_CACHE_TTL)
        self.champion_cache = get_cache("champions", config.CHAMPION_CACHE_TTL)

    # ------------------------------------------------------------------
    # Version sources
    # ------------------------------------------------------------------

    def _get_json(self, url: str) -> Optional[Any]:
        try:
            res = self.session.get(url, timeout=config.HTTP_TIMEOUT, headers={"User-Agent": config.USER_AGENT})
        except requests.RequestException as e:
            logger.warning("[ddragon] GET %s failed: %s", url, e)
            return None
        if not res.ok:
            logger.debug("[ddragon] GET %s -> %d", url, res.status_code)
            return None
        try:
            return res.json()
        except ValueError:
            logger.warning("[ddragon] GET %s returned invalid JSON", url)
            return None

    def read_from_blob(self) -> Optional[Dict]:
        if not config.BLOB_BASE_URL or not config.flag("FEATURE_BLOB_VERSION"):
            return None
        payload = self._get_json(f"{config.BLOB_BASE_URL}/{VERSION_PATH}")
        return payload if isinstance(payload, dict) else None

    def read_from_disk(self) -> Optional[Dict]:
        path = self.data_dir / "lol" / "version.json"
        try:
            with open(path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, ValueError) as e:
            logger.debug("[ddragon] no usable %s: %s", path, e)
            return None
        return payload if isinstance(payload, dict) else None

    def read_from_realms(self) -> Optional[Dict]:
        best: Optional[Dict[str, Optional[str]]] = None
        for region in REALMS:
            payload = self._get_json(f"{config.DDRAGON_BASE_URL}/realms/{region}.json")
            if not isinstance(payload, dict):
                continue
            v = payload.get("v") if isinstance(payload.get("v"), str) else None
            dd = payload.get("dd") if isinstance(payload.get("dd"), str) else None
            if v and (best is None or compare_versions(v, best["v"]) > 0):
                best = {"region": region, "v": v, "dd": dd}

        if not best:
            return None
        return {
            "patch": best["v"],
            "ddragon": best["dd"] or best["v"],
            "version": best["dd"] or best["v"],
            "chosenRealm": best["region"],
            "updatedAt": datetime.now(timezone.utc).isoformat(),
            "source": "ddragon-realms-fallback",
        }

    def get_lol_version(self) -> Dict[str, Any]:
        """Resolved patch info with ``source`` and ``fallback_used``."""
        key = _VERSION_KEY
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        result = None
        for source, reader, fallback in (
            ("blob", self.read_from_blob, False),
            ("disk", self.read_from_disk, True),
            ("realms", self.read_from_realms, True),
        ):
            payload = reader()
            patch, ddragon = _pick(payload)
            if patch:
                result = {
                    "patch": patch,
                    "ddragon": ddragon,
                    "version": _normalize(payload.get("version")) or ddragon or patch,
                    "chosen_realm": payload.get("chosenRealm"),
                    "fallback_used": fallback,
                    "source": source,
                }
                break

        if result is None:
            logger.warning("[ddragon] every version source failed, reporting unknown")
            # not cached so the next request retries upstream
            return {
                "patch": "unknown",
                "ddragon": "unknown",
                "version": "unknown",
                "chosen_realm": None,
                "fallback_used": True,
                "source": "none",
            }

        logger.info("[ddragon] version %s from %s", result["patch"], result["source"])
        self.cache.set(key, result)
        return result

    # ------------------------------------------------------------------
    # Champions
    # ------------------------------------------------------------------

    def get_champion_list(self, version: Optional[str] = None) -> Dict[str, Dict]:
        """Data Dragon ``champion.json`` data keyed by champion id."""
        version = version or self.get_lol_version()["ddragon"]
        if not version or version == "unknown":
            raise UpstreamError("Data Dragon version unavailable")

        cache_key = self.champion_cache.make_key("champions", version)

        def load():
            payload = self._get_json(f"{config.DDRAGON_BASE_URL}/cdn/{version}/data/en_US/champion.json")
            if not isinstance(payload, dict):
                return None
            return payload.get("data") or None

        data = self.champion_cache.get_or_set(cache_key, load)
        if data is None:
            raise UpstreamError(f"Data Dragon champion list unavailable for {version}")
        return data

    def find_champion(self, champ: str, version: Optional[str] = None) -> Optional[Dict]:
        """Look up by id ("Ahri"), numeric key ("103") or display name."""
        needle = str(champ or "").strip().lower()
        if not needle:
            return None
        for champ_id, row in self.get_champion_list(version).items():
            if needle in (champ_id.lower(), str(row.get("key", "")).lower(), str(row.get("name", "")).lower()):
                return row
        return None

    def get_champion_detail(self, key: str) -> Dict[str, Any]:
        """
        CommunityDragon champion payload plus a normalised per-spell damage
        table, with local overrides from ``spells_overrides.json`` applied last.

        Raises:
            UpstreamError: CommunityDragon is unreachable or returned an error.
        """
        cache_key = self.champion_cache.make_key("champion", key)
        cached = self.champion_cache.get(cache_key)
        if cached is not None:
            return cached

        url = COMMUNITY_DRAGON_CHAMPION_URL.format(key=quote(str(key), safe=""))
        try:
            res = self.session.get(url, timeout=config.HTTP_TIMEOUT)
        except requests.RequestException as e:
            raise UpstreamError(f"CommunityDragon fetch failed: {e}") from e
        if res.status_code == 404:
            raise LookupError(f"Unknown champion key {key}")
        if not res.ok:
            raise UpstreamError(f"CommunityDragon fetch failed with {res.status_code}")

        try:
            champ = res.json()
        except ValueError as e:
            raise UpstreamError(f"CommunityDragon returned invalid JSON: {e}") from e
        normalized = normalize_champion(champ, key)
        apply_spell_overrides(normalized, key, self.load_spell_overrides())

        result = {"normalized": normalized, "raw": champ}
        self.champion_cache.set(cache_key, result)
        return result

    def load_spell_overrides(self) -> Dict[str, Any]:
        path = self.data_dir / "lol" / "spells_overrides.json"
        try:
            with open(path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, ValueError):
            return {}
        return payload if isinstance(payload, dict) else {}


# ---------------------------------------------------------------------------
# Champion normalisation helpers
# ---------------------------------------------------------------------------

def normalize_spell_type(spell: Dict[str, Any]) -> str:
    dt = spell.get("damageType") or spell.get("damage_type") or spell.get("damageTypeName") or ""
    d = str(dt).lower()
    if "physical" in d:
        return "phys"
    if "magic" in d:
        return "magic"
    if "true" in d:
        return "true"
    return "mixed"


def _finite_list(values: Any) -> Optional[List[float]]:
    if not isinstance(values, list):
        return None
    out = []
    for v in values:
        try:
            n = float(v)
        except (TypeError, ValueError):
            return None
        if n != n or n in (float("inf"), float("-inf")):
            return None
        out.append(n)
    return out


def _pick_from_calc_object(obj: Dict[str, Any]) -> Optional[List[float]]:
    best: Optional[Tuple[List[float], int]] = None
    for k, v in obj.items():
        if not isinstance(v, dict):
            continue
        nums = _finite_list(v.get("values") if isinstance(v.get("values"), list) else v.get("effect"))
        if not nums or len(nums) < 2:
            continue
        lk = k.lower()
        if any(hint in lk for hint in _NON_DAMAGE_HINTS):
            continue
        if not any(n != 0 for n in nums):
            continue
        looks_damage = "damage" in lk or "damage" in str(v.get("name", "")).lower()
        score = len(nums) + (10 if looks_damage else 0)
        if best is None or score > best[1]:
            best = (nums, score)
    return best[0] if best else None


def extract_base_by_rank(spell: Dict[str, Any]) -> Optional[List[float]]:
    """Best-effort per-rank base damage from a CommunityDragon spell."""
    candidates = []
    for key in ("spellCalculations", "calculations"):
        if isinstance(spell.get(key), dict):
            candidates.append(spell[key])
    m_spell = spell.get("mSpell")
    if isinstance(m_spell, dict):
        for key in ("spellCalculations", "calculations"):
            if isinstance(m_spell.get(key), dict):
                candidates.append(m_spell[key])
    if isinstance(spell.get("values"), dict):
        candidates.append(spell["values"])

    for obj in candidates:
        picked = _pick_from_calc_object(obj)
        if picked:
            return picked

    for maybe in spell.get("effectAmounts") or []:
        nums = _finite_list(maybe)
        if nums and len(nums) >= 3 and any(n != 0 for n in nums):
            return nums
    return None


def normalize_champion(champ: Dict[str, Any], key: str) -> Dict[str, Any]:
    try:
        numeric_key: Any = int(key)
    except (TypeError, ValueError):
        numeric_key = key

    spell_damage: Dict[str, Dict[str, Any]] = {}
    for spell in champ.get("spells") or []:
        slot = str(spell.get("spellKey") or "").upper()
        if slot not in SPELL_SLOTS:
            continue
        spell_damage[slot] = {
            "name": spell.get("name") or slot,
            "type": normalize_spell_type(spell),
            "base": extract_base_by_rank(spell),
            "max_rank": spell.get("maxLevel") or spell.get("maxrank") or (3 if slot == "R" else 5),
        }

    return {
        "id": champ.get("id"),
        "name": champ.get("name"),
        "alias": champ.get("alias"),
        "title": champ.get("title"),
        "key": numeric_key,
        "spell_damage": spell_damage,
    }


def apply_spell_overrides(normalized: Dict[str, Any], key: str, overrides: Dict[str, Any]):
    """Merge per-slot overrides into ``normalized`` in place. Override wins."""
    champ_overrides = overrides.get(str(key))
    if not isinstance(champ_overrides, dict):
        return

    for slot in SPELL_SLOTS:
        o = champ_overrides.get(slot)
        if not isinstance(o, dict):
            continue
        current = normalized["spell_damage"].get(slot) or {
            "name": slot,
            "type": "mixed",
            "base": None,
            "max_rank": 3 if slot == "R" else 5,
        }
        merged = {**current, **{k: v for k, v in o.items() if k not in ("base", "maxRank")}}
        if isinstance(o.get("base"), list):
            merged["base"] = [float(x) for x in o["base"] if is_finite(x)]
        if isinstance(o.get("maxRank"), int):
            merged["max_rank"] = o["maxRank"]
        normalized["spell_damage"][slot] = merged


_service: Optional[DDragonService] = None


def get_ddragon_service() -> DDragonService:
    global _service
    if _service is None:
        _service = DDragonService()
    return _service
