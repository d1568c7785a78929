"""
Blizzard (Battle.net) Client
============================
Client-credentials OAuth plus the two WoW lookups the site needs:
realm index (Data API) and character statistics (Profile API).

Tokens are cached per region and reused until 60s before expiry.
"""

import logging
import threading
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from gamerstation.core import config
from gamerstation.services.errors import BlizzardApiError, MissingCredentialsError
from gamerstation.services.response_cache import get_cache

logger = logging.getLogger(__name__)

REGIONS = ("us", "eu", "kr", "tw")
TOKEN_REFRESH_MARGIN_S = 60


def api_host(region: str) -> str:
    return f"https://{region}.api.blizzard.com"


def oauth_host(region: str) -> str:
    return f"https://{region}.battle.net"


def locale_for(region: str) -> str:
    return "en_GB" if region == "eu" else "en_US"


def dynamic_namespace(region: str) -> str:
    return f"dynamic-{region}"


def profile_namespace(region: str) -> str:
    return f"profile-{region}"


@dataclass
class WowRealm:
    name: str
    slug: str


@dataclass
class WowCharacterStats:
    region: str
    realm_slug: str
    name: str
    level: Optional[int]
    primary: Dict[str, Optional[float]]
    secondary: Dict[str, Optional[float]]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class BlizzardClient:
    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()
        self._tokens: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()
        self.realm_cache = get_cache("wow_realms", config.REALM_CACHE_TTL)

    # ------------------------------------------------------------------
    # OAuth
    # ------------------------------------------------------------------

    def get_access_token(self, region: str) -> str:
        """
        Application (client credentials) token for ``region``.

        Raises:
            MissingCredentialsError: BNET_CLIENT_ID / BNET_CLIENT_SECRET unset.
            BlizzardApiError: token endpoint rejected the request.
        """
        client_id, client_secret = config.get_bnet_credentials()
        if not client_id or not client_secret:
            raise MissingCredentialsError("Missing env var: BNET_CLIENT_ID / BNET_CLIENT_SECRET")

        now = time.time()
        with self._lock:
            hit = self._tokens.get(region)
            if hit and hit["expires_at"] - TOKEN_REFRESH_MARGIN_S > now:
                return hit["token"]

        try:
            res = self.session.post(
                f"{oauth_host(region)}/oauth/token",
                data={"grant_type": "client_credentials"},
                auth=(client_id, client_secret),
                timeout=config.HTTP_TIMEOUT,
            )
        except requests.RequestException as e:
            raise BlizzardApiError(f"Blizzard token request failed: {e}") from e

        if not res.ok:
            raise BlizzardApiError(f"Blizzard token error ({res.status_code}): {res.text[:200]}", res.status_code)

        try:
            payload = res.json()
            token = payload["access_token"]
        except (ValueError, KeyError, TypeError) as e:
            raise BlizzardApiError(f"Blizzard token response malformed: {e}", 502) from e
        with self._lock:
            self._tokens[region] = {
                "token": token,
                "expires_at": now + float(payload.get("expires_in", 0)),
            }
        logger.info("[blizzard] new access token for %s", region)
        return token

    def _get(self, region: str, url: str, what: str) -> Any:
        token = self.get_access_token(region)
        try:
            res = self.session.get(
                url,
                headers={"Authorization": f"Bearer {token}", "Accept-Encoding": "gzip, deflate, br"},
                timeout=config.HTTP_TIMEOUT,
            )
        except requests.RequestException as e:
            raise BlizzardApiError(f"{what} request failed: {e}") from e
        if not res.ok:
            raise BlizzardApiError(f"{what} error ({res.status_code}): {res.text[:200]}", res.status_code)
        try:
            return res.json()
        except ValueError as e:
            raise BlizzardApiError(f"{what} returned invalid JSON: {e}", 502) from e

    # ------------------------------------------------------------------
    # Data API
    # ------------------------------------------------------------------

    def fetch_realms(self, region: str) -> List[WowRealm]:
        """Realm index for ``region`` sorted by name. Cached for 24h."""
        if region not in REGIONS:
            raise ValueError(f"Invalid region: {region}")

        def load():
            url = (
                f"{api_host(region)}/data/wow/realm/index"
                f"?namespace={dynamic_namespace(region)}&locale={locale_for(region)}"
            )
            data = self._get(region, url, "Realm index")
            realms = []
            for r in data.get("realms") or []:
                name = str(r.get("name") or "").strip()
                slug = str(r.get("slug") or "").strip()
                if name and slug:
                    realms.append(WowRealm(name=name, slug=slug))
            realms.sort(key=lambda r: r.name.lower())
            logger.info("[blizzard] %d realms for %s", len(realms), region)
            return realms

        return self.realm_cache.get_or_set(self.realm_cache.make_key("realms", region), load)

    # ------------------------------------------------------------------
    # Profile API
    # ------------------------------------------------------------------

    def fetch_character_stats(self, region: str, realm_slug: str, name: str) -> WowCharacterStats:
        """Character statistics reduced to the stats the stat-impact tools use."""
        if region not in REGIONS:
            raise ValueError(f"Invalid region: {region}")
        realm_slug = realm_slug.strip().lower()
        name = name.strip().lower()

        url = (
            f"{api_host(region)}/profile/wow/character/{quote(realm_slug, safe='')}/{quote(name, safe='')}"
            f"/statistics?namespace={profile_namespace(region)}&locale={locale_for(region)}"
        )
        data = self._get(region, url, "WoW stats")

        # melee vs spell keys vary by class; take whichever exists
        crit = data.get("melee_crit") or data.get("spell_crit") or data.get("crit") or {}
        haste = data.get("melee_haste") or data.get("spell_haste") or data.get("haste") or {}
        mastery = data.get("mastery") or {}

        def effective(key: str) -> Optional[float]:
            return (data.get(key) or {}).get("effective")

        return WowCharacterStats(
            region=region,
            realm_slug=realm_slug,
            name=name,
            level=data.get("level") if isinstance(data.get("level"), int) else None,
            primary={
                "strength": effective("strength"),
                "agility": effective("agility"),
                "intellect": effective("intellect"),
                "stamina": effective("stamina"),
            },
            secondary={
                "crit_rating": crit.get("rating"),
                "crit_pct": crit.get("value"),
                "haste_rating": haste.get("rating"),
                "haste_pct": haste.get("value"),
                "mastery_rating": mastery.get("rating"),
                "mastery_pct": mastery.get("value"),
                "versatility_rating": data.get("versatility"),
                "versatility_damage_done_bonus_pct": data.get("versatile_damage_done_bonus"),
                "versatility_damage_taken_reduction_pct": data.get("versatile_damage_taken_reduction_bonus"),
            },
        )


_client: Optional[BlizzardClient] = None


def get_blizzard_client() -> BlizzardClient:
    global _client
    if _client is None:
        _client = BlizzardClient()
    return _client
