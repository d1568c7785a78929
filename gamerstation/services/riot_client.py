"""
Riot API Hardened Client
========================
requests-based client for the Riot Games developer API with:

  - X-Riot-Token auth, key read from the environment at call time
  - Retries (4 attempts total) with exponential backoff + jitter
    (min(4000, 250 * 2^i) ms + 0..120 ms), honouring Retry-After (capped 10s)
  - Retry on 429 / 500 / 502 / 503 / 504 and network errors
  - 404 -> None ("not found" is a normal answer)
  - Soft-fail by default: UI reads get None instead of an exception
  - Circuit breaker: opens after 5 consecutive hard failures, resets after 60s

Usage:
    from gamerstation.services.riot_client import get_riot_client
    client = get_riot_client()
    account = client.get_account_by_riot_id("europe", "Name", "EUW")
"""

import logging
import random
import threading
import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from gamerstation.core.config import HTTP_TIMEOUT, get_riot_api_key
from gamerstation.services.errors import CircuitOpenError, MissingCredentialsError, RiotHttpError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Retry / circuit-breaker config
# ---------------------------------------------------------------------------
_DEFAULT_ATTEMPTS = 4
_BASE_BACKOFF_MS = 250
_MAX_BACKOFF_MS = 4000
_MAX_JITTER_MS = 120
_MAX_RETRY_AFTER_MS = 10_000
_CIRCUIT_OPEN_AFTER = 5    # consecutive failures before opening circuit
_CIRCUIT_RESET_AFTER = 60  # seconds before attempting reset

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


def riot_host_for_platform(platform: str) -> str:
    return f"https://{platform}.api.riotgames.com"


def riot_host_for_cluster(cluster: str) -> str:
    return f"https://{cluster}.api.riotgames.com"


def backoff_ms(attempt_index: int, base_ms: int = _BASE_BACKOFF_MS) -> float:
    """Exponential part of the wait before retry ``attempt_index + 1``."""
    return min(_MAX_BACKOFF_MS, base_ms * (2 ** attempt_index))


def parse_retry_after_ms(response: requests.Response) -> Optional[float]:
    """Retry-After in ms, capped at 10s. None when absent or invalid."""
    raw = response.headers.get("Retry-After")
    if not raw:
        return None
    try:
        seconds = float(raw)
    except ValueError:
        return None
    if seconds <= 0:
        return None
    return min(_MAX_RETRY_AFTER_MS, seconds * 1000)


class RiotClient:
    """
    Hardened Riot API client.

    One instance is shared per process (``get_riot_client``); the circuit
    breaker state is guarded by a lock because FastAPI runs sync handlers
    in a thread pool.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        attempts: int = _DEFAULT_ATTEMPTS,
        backoff_base_ms: int = _BASE_BACKOFF_MS,
        timeout: float = HTTP_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self._api_key = api_key
        self.attempts = max(1, attempts)
        self.backoff_base_ms = max(0, backoff_base_ms)
        self.timeout = timeout
        self.session = session or requests.Session()
        self._lock = threading.Lock()
        self._consecutive_failures = 0
        self._circuit_open_at: Optional[float] = None

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def _key(self) -> str:
        key = self._api_key or get_riot_api_key()
        if not key:
            raise MissingCredentialsError("Missing RIOT_API_KEY")
        return key

    # ------------------------------------------------------------------
    # Circuit breaker
    # ------------------------------------------------------------------

    def _is_circuit_open(self) -> bool:
        with self._lock:
            if self._circuit_open_at is None:
                return False
            if time.time() - self._circuit_open_at > _CIRCUIT_RESET_AFTER:
                logger.info("[riot] Circuit breaker reset, attempting recovery")
                self._circuit_open_at = None
                self._consecutive_failures = 0
                return False
            return True

    def _record_success(self):
        with self._lock:
            self._consecutive_failures = 0
            self._circuit_open_at = None

    def _record_failure(self, err: Exception):
        with self._lock:
            self._consecutive_failures += 1
            failures = self._consecutive_failures
            if failures >= _CIRCUIT_OPEN_AFTER and self._circuit_open_at is None:
                self._circuit_open_at = time.time()
                logger.error(
                    "[riot] Circuit OPEN after %d consecutive failures. Will retry after %ds.",
                    failures, _CIRCUIT_RESET_AFTER,
                )
        logger.warning("[riot] failure #%d: %s", failures, err)

    def _wait(self, attempt_index: int, retry_after_ms: Optional[float] = None):
        if retry_after_ms is not None:
            wait_ms = retry_after_ms
        else:
            wait_ms = backoff_ms(attempt_index, self.backoff_base_ms) + random.randint(0, _MAX_JITTER_MS)
        time.sleep(wait_ms / 1000)

    # ------------------------------------------------------------------
    # Core retry wrapper
    # ------------------------------------------------------------------

    def fetch_json(self, url: str, soft_fail: bool = True, attempts: Optional[int] = None) -> Optional[Any]:
        """
        GET ``url`` and decode JSON.

        Returns:
            Decoded JSON, or None on 404 / soft failure.

        Raises:
            MissingCredentialsError: RIOT_API_KEY is not configured (always raised).
            RiotHttpError / CircuitOpenError / requests.RequestException:
                only when ``soft_fail`` is False.
        """
        key = self._key()

        if self._is_circuit_open():
            err = CircuitOpenError("Riot API circuit breaker is open, too many recent failures")
            if soft_fail:
                logger.warning("[riot] skipped %s (circuit open)", url)
                return None
            raise err

        total = max(1, attempts or self.attempts)
        headers = {"X-Riot-Token": key}

        for i in range(total):
            last_attempt = i == total - 1
            try:
                response = self.session.get(url, headers=headers, timeout=self.timeout)
            except requests.RequestException as e:
                if not last_attempt:
                    logger.debug("[riot] network error (attempt %d/%d): %s", i + 1, total, e)
                    self._wait(i)
                    continue
                self._record_failure(e)
                if soft_fail:
                    logger.warning("[riot] fetch failed (soft): %s: %s", url, e)
                    return None
                raise

            if response.ok:
                try:
                    payload = response.json()
                except ValueError as e:
                    # 2xx with an undecodable body is reported as a bad gateway
                    err = RiotHttpError(url, 502, f"invalid JSON: {e}")
                    self._record_failure(err)
                    if soft_fail:
                        logger.warning("[riot] %s", err)
                        return None
                    raise err from e
                self._record_success()
                return payload

            if response.status_code == 404:
                self._record_success()
                return None

            if response.status_code in RETRYABLE_STATUSES and not last_attempt:
                logger.debug("[riot] %d from %s (attempt %d/%d)", response.status_code, url, i + 1, total)
                self._wait(i, parse_retry_after_ms(response))
                continue

            err = RiotHttpError(url, response.status_code, response.text)
            if response.status_code in RETRYABLE_STATUSES:
                self._record_failure(err)
            if soft_fail:
                logger.warning("[riot] %s", err)
                return None
            raise err

        return None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_account_by_riot_id(self, cluster: str, game_name: str, tag_line: str, **kw) -> Optional[Dict]:
        url = (
            f"{riot_host_for_cluster(cluster)}/riot/account/v1/accounts/by-riot-id/"
            f"{quote(game_name, safe='')}/{quote(tag_line, safe='')}"
        )
        return self.fetch_json(url, **kw)

    def get_account_by_puuid(self, cluster: str, puuid: str, **kw) -> Optional[Dict]:
        url = f"{riot_host_for_cluster(cluster)}/riot/account/v1/accounts/by-puuid/{quote(puuid, safe='')}"
        return self.fetch_json(url, **kw)

    def get_summoner_by_name(self, platform: str, name: str, **kw) -> Optional[Dict]:
        url = f"{riot_host_for_platform(platform)}/lol/summoner/v4/summoners/by-name/{quote(name, safe='')}"
        return self.fetch_json(url, **kw)

    def get_summoner_by_puuid(self, platform: str, puuid: str, **kw) -> Optional[Dict]:
        url = f"{riot_host_for_platform(platform)}/lol/summoner/v4/summoners/by-puuid/{quote(puuid, safe='')}"
        return self.fetch_json(url, **kw)

    def get_league_entries(self, platform: str, puuid: str, **kw) -> List[Dict]:
        url = f"{riot_host_for_platform(platform)}/lol/league/v4/entries/by-puuid/{quote(puuid, safe='')}"
        return self.fetch_json(url, **kw) or []

    def get_match_ids(self, cluster: str, puuid: str, count: int = 20, **kw) -> List[str]:
        url = (
            f"{riot_host_for_cluster(cluster)}/lol/match/v5/matches/by-puuid/"
            f"{quote(puuid, safe='')}/ids?start=0&count={count}"
        )
        return self.fetch_json(url, **kw) or []

    def get_match(self, cluster: str, match_id: str, **kw) -> Optional[Dict]:
        url = f"{riot_host_for_cluster(cluster)}/lol/match/v5/matches/{quote(match_id, safe='')}"
        return self.fetch_json(url, **kw)

    def get_circuit_status(self) -> Dict:
        """Return circuit breaker diagnostics."""
        open_ = self._is_circuit_open()
        return {
            "circuit_open": open_,
            "consecutive_failures": self._consecutive_failures,
            "open_since": self._circuit_open_at,
            "resets_after_s": _CIRCUIT_RESET_AFTER,
        }


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

_client: Optional[RiotClient] = None
_client_lock = threading.Lock()


def get_riot_client() -> RiotClient:
    global _client
    with _client_lock:
        if _client is None:
            _client = RiotClient()
            logger.info("[riot] RiotClient initialised")
        return _client


def reset_riot_client():
    """Drop the shared client (tests)."""
    global _client
    with _client_lock:
        _client = None
