"""
Meta Builds Service
===================
Read side of the meta-build browser.

The offline scraper writes ``meta_builds_<mode>.json`` with the shape::

    {
      "generatedAt": "...", "minDisplaySample": 25, "bayesK": 100, ...,
      "patches": {
        "14.3": {
          "103": {"MIDDLE": [ {boots, core, games, wins, winrate, score, buildSig, ...}, ... ]}
        }
      }
    }

Champions are keyed by their numeric Data Dragon key. The JSON is read from
the blob mirror when ``BLOB_BASE_URL`` is set, else from ``DATA_DIR/lol``,
and cached for 5 minutes per mode.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from calc_core.calculators.build_ranking import (
    DEFAULT_MIN_DISPLAY_SAMPLE,
    FALLBACK_MIN_GAMES,
    ROLES,
    MetaRoleEntry,
    is_stat_sig,
    normalize_role,
    patch_sort_key,
    pick_best_build,
    pick_best_role,
    wilson_lower_bound,
)
from gamerstation.core import config
from gamerstation.services.ddragon_service import DDragonService, get_ddragon_service
from gamerstation.services.errors import UpstreamError
from gamerstation.services.response_cache import get_cache

logger = logging.getLogger(__name__)

MODES = ("ranked", "casual")
ROLE_ALL = "ALL"


def meta_path(mode: str) -> str:
    return f"data/lol/meta_builds_{mode}.json"


def sorted_patches(meta: Dict[str, Any]) -> List[str]:
    """Patch keys newest first ("14.10" before "14.9")."""
    return sorted((meta.get("patches") or {}).keys(), key=patch_sort_key, reverse=True)


def parse_role_map(raw: Optional[Dict[str, Any]]) -> Dict[str, List[MetaRoleEntry]]:
    """Role -> builds; unknown roles and malformed rows are dropped."""
    out: Dict[str, List[MetaRoleEntry]] = {}
    for role_name, rows in (raw or {}).items():
        role = normalize_role(role_name)
        if role is None or not isinstance(rows, list):
            continue
        entries = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            try:
                entries.append(MetaRoleEntry.from_dict(row))
            except (TypeError, ValueError) as e:
                logger.debug("[meta] skipped malformed build row %r: %s", row, e)
        if entries:
            out[role] = entries
    return out


def _entry_dict(entry: MetaRoleEntry, min_display_sample: int) -> Dict[str, Any]:
    return {
        "boots": entry.boots,
        "core": list(entry.core),
        "items": list(entry.display_items),
        "summoners": list(entry.summoners),
        "runes_sig": entry.runes_sig,
        "games": entry.games,
        "wins": entry.wins,
        "winrate": entry.winrate,
        "score": entry.score,
        "build_sig": entry.build_sig,
        "wilson_lb": round(wilson_lower_bound(entry.winrate, entry.games), 4),
        "stat_sig": is_stat_sig(entry, min_display_sample),
    }


class MetaBuildsService:
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        ddragon: Optional[DDragonService] = None,
        data_dir=None,
    ):
        self.session = session or requests.Session()
        self.ddragon = ddragon
        self.data_dir = Path(data_dir) if data_dir else config.DATA_DIR
        self.cache = get_cache("meta", config.META_CACHE_TTL)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _read_blob(self, mode: str) -> Optional[Dict[str, Any]]:
        if not config.BLOB_BASE_URL:
            return None
        url = f"{config.BLOB_BASE_URL}/{meta_path(mode)}"
        try:
            res = self.session.get(url, timeout=config.HTTP_TIMEOUT)
        except requests.RequestException as e:
            logger.warning("[meta] blob fetch failed for %s: %s", mode, e)
            return None
        if not res.ok:
            logger.warning("[meta] blob %s -> %d", url, res.status_code)
            return None
        try:
            payload = res.json()
        except ValueError:
            return None
        return payload if isinstance(payload, dict) and "patches" in payload else None

    def _read_disk(self, mode: str) -> Optional[Dict[str, Any]]:
        path = self.data_dir / "lol" / f"meta_builds_{mode}.json"
        try:
            with open(path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("[meta] could not read %s: %s", path, e)
            return None
        return payload if isinstance(payload, dict) and "patches" in payload else None

    def load(self, mode: str) -> Dict[str, Any]:
        """
        Raw meta JSON for ``mode``.

        Raises:
            ValueError: unknown mode.
            UpstreamError: neither the blob mirror nor the local file is usable.
        """
        if mode not in MODES:
            raise ValueError(f"Invalid mode: {mode}")

        def load():
            return self._read_blob(mode) or self._read_disk(mode)

        meta = self.cache.get_or_set(self.cache.make_key("meta", mode), load)
        if meta is None:
            raise UpstreamError(f"Failed to load meta json for {mode}")
        return meta

    def list_patches(self, mode: str) -> List[str]:
        return sorted_patches(self.load(mode))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _champion_key(self, champ: Optional[str]) -> Optional[str]:
        """Numeric key from a key, id ("Ahri") or name; None when unresolvable."""
        needle = str(champ or "").strip()
        if not needle:
            return None
        if needle.isdigit():
            return needle
        ddragon = self.ddragon or get_ddragon_service()
        try:
            row = ddragon.find_champion(needle)
        except UpstreamError as e:
            logger.warning("[meta] champion lookup unavailable for %r: %s", needle, e)
            return None
        return str(row["key"]) if row and row.get("key") is not None else None

    def query(
        self,
        mode: str = "ranked",
        patch: Optional[str] = None,
        role: str = ROLE_ALL,
        champ: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Best builds per champion for one patch.

        Args:
            mode:  "ranked" or "casual"
            patch: Patch key; newest when missing or not in the dataset
            role:  "ALL" or a role name/alias; filters champions to those
                   with a viable build in that role
            champ: Numeric key, champion id or name

        Returns:
            {"mode", "patch", "patches", "role", "min_display_sample", "champions": [...]}
        """
        meta = self.load(mode)
        patches = sorted_patches(meta)
        chosen = patch if patch and patch in (meta.get("patches") or {}) else (patches[0] if patches else None)
        min_display = int(meta.get("minDisplaySample") or DEFAULT_MIN_DISPLAY_SAMPLE)

        role_filter = ROLE_ALL if str(role or ROLE_ALL).upper() == ROLE_ALL else normalize_role(role)
        if role_filter is None:
            raise ValueError(f"Invalid role: {role}")

        champ_map = (meta.get("patches") or {}).get(chosen) or {}
        only_key = None
        if champ:
            only_key = self._champion_key(champ)
            if only_key is None:
                champ_map = {}

        champions = []
        for champ_key in sorted(champ_map.keys(), key=lambda k: int(k) if str(k).isdigit() else 0):
            if only_key is not None and str(champ_key) != only_key:
                continue
            role_map = parse_role_map(champ_map[champ_key])

            best_by_role = {}
            for r in ROLES:
                best = pick_best_build(role_map.get(r), min_display, FALLBACK_MIN_GAMES)
                if best is not None:
                    best_by_role[r] = best

            if role_filter != ROLE_ALL and role_filter not in best_by_role:
                continue

            overall = pick_best_role(role_map, min_display)
            champions.append({
                "champ_key": str(champ_key),
                "best": (
                    {"role": overall[0], **_entry_dict(overall[1], min_display)} if overall else None
                ),
                "roles": {
                    r: {
                        "best": _entry_dict(best_by_role[r], min_display) if r in best_by_role else None,
                        "builds": [_entry_dict(e, min_display) for e in role_map[r]],
                    }
                    for r in ROLES
                    if r in role_map
                },
            })

        logger.debug("[meta] %s patch=%s role=%s champ=%s -> %d champions",
                     mode, chosen, role_filter, champ, len(champions))
        return {
            "mode": mode,
            "patch": chosen,
            "patches": patches,
            "role": role_filter,
            "min_display_sample": min_display,
            "generated_at": meta.get("generatedAt"),
            "champions": champions,
        }


_service: Optional[MetaBuildsService] = None


def get_meta_builds_service() -> MetaBuildsService:
    global _service
    if _service is None:
        _service = MetaBuildsService()
    return _service
