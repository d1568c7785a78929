"""
Riot API Client Tests
=====================
Retry, backoff, soft-fail and circuit-breaker behaviour against a mocked
requests session. ``time.sleep`` is patched so retries run instantly.
"""

import unittest
from unittest.mock import MagicMock, patch

import requests

from gamerstation.services.errors import CircuitOpenError, MissingCredentialsError, RiotHttpError
from gamerstation.services.riot_client import (
    RiotClient,
    backoff_ms,
    parse_retry_after_ms,
    riot_host_for_cluster,
)


def _resp(status=200, payload=None, headers=None, text=""):
    res = MagicMock()
    res.status_code = status
    res.ok = 200 <= status < 300
    res.headers = headers or {}
    res.text = text
    res.json.return_value = payload
    return res


URL = f"{riot_host_for_cluster('europe')}/riot/account/v1/accounts/by-riot-id/Name/EUW"


@patch("gamerstation.services.riot_client.time.sleep")
class TestRiotClientRetries(unittest.TestCase):

    def setUp(self):
        self.session = MagicMock()
        self.client = RiotClient(api_key="RGAPI-test", session=self.session)

    def test_success_sends_token(self, _sleep):
        self.session.get.return_value = _resp(200, {"puuid": "abc"})
        self.assertEqual(self.client.fetch_json(URL), {"puuid": "abc"})
        _, kwargs = self.session.get.call_args
        self.assertEqual(kwargs["headers"], {"X-Riot-Token": "RGAPI-test"})

    def test_404_is_none_without_retry(self, sleep):
        self.session.get.return_value = _resp(404)
        self.assertIsNone(self.client.fetch_json(URL, soft_fail=False))
        self.assertEqual(self.session.get.call_count, 1)
        sleep.assert_not_called()

    def test_429_honours_retry_after(self, sleep):
        self.session.get.side_effect = [
            _resp(429, headers={"Retry-After": "1"}),
            _resp(200, {"ok": True}),
        ]
        self.assertEqual(self.client.fetch_json(URL), {"ok": True})
        sleep.assert_called_once_with(1.0)

    def test_retryable_exhausted_soft_fail(self, sleep):
        self.session.get.return_value = _resp(503)
        self.assertIsNone(self.client.fetch_json(URL))
        self.assertEqual(self.session.get.call_count, 4)
        self.assertEqual(sleep.call_count, 3)

    def test_retryable_exhausted_hard_fail(self, _sleep):
        self.session.get.return_value = _resp(500, text="boom")
        with self.assertRaises(RiotHttpError) as ctx:
            self.client.fetch_json(URL, soft_fail=False)
        self.assertEqual(ctx.exception.status, 500)
        self.assertEqual(ctx.exception.body_text, "boom")

    def test_non_retryable_status_fails_fast(self, sleep):
        self.session.get.return_value = _resp(403)
        self.assertIsNone(self.client.fetch_json(URL))
        self.assertEqual(self.session.get.call_count, 1)
        sleep.assert_not_called()

    def test_network_error(self, _sleep):
        self.session.get.side_effect = requests.ConnectionError("reset")
        self.assertIsNone(self.client.fetch_json(URL))
        self.assertEqual(self.session.get.call_count, 4)

        self.session.get.reset_mock()
        with self.assertRaises(requests.ConnectionError):
            self.client.fetch_json(URL, soft_fail=False)

    def test_backoff_grows_between_attempts(self, sleep):
        self.session.get.return_value = _resp(502)
        with patch("gamerstation.services.riot_client.random.randint", return_value=0):
            self.client.fetch_json(URL)
        waits = [c.args[0] for c in sleep.call_args_list]
        self.assertEqual(waits, [0.25, 0.5, 1.0])

    def test_invalid_json_is_a_failure(self, sleep):
        res = _resp(200, text="<html>maintenance</html>")
        res.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
        self.session.get.return_value = res
        self.assertIsNone(self.client.fetch_json(URL))
        self.assertEqual(self.session.get.call_count, 1)
        sleep.assert_not_called()

        with self.assertRaises(RiotHttpError) as ctx:
            self.client.fetch_json(URL, soft_fail=False)
        self.assertEqual(ctx.exception.status, 502)
        self.assertIn("invalid JSON", ctx.exception.body_text)


@patch("gamerstation.services.riot_client.time.sleep")
class TestRiotCircuitBreaker(unittest.TestCase):

    def test_opens_after_consecutive_failures(self, _sleep):
        session = MagicMock()
        session.get.return_value = _resp(500)
        client = RiotClient(api_key="k", attempts=1, session=session)

        for _ in range(5):
            client.fetch_json(URL)
        self.assertTrue(client.get_circuit_status()["circuit_open"])

        session.get.reset_mock()
        self.assertIsNone(client.fetch_json(URL))
        session.get.assert_not_called()
        with self.assertRaises(CircuitOpenError):
            client.fetch_json(URL, soft_fail=False)

    def test_success_resets_failure_count(self, _sleep):
        session = MagicMock()
        session.get.side_effect = [_resp(500)] * 3 + [_resp(200, {})]
        client = RiotClient(api_key="k", attempts=1, session=session)
        for _ in range(4):
            client.fetch_json(URL)
        status = client.get_circuit_status()
        self.assertFalse(status["circuit_open"])
        self.assertEqual(status["consecutive_failures"], 0)

    def test_resets_after_cooldown(self, _sleep):
        session = MagicMock()
        session.get.return_value = _resp(500)
        client = RiotClient(api_key="k", attempts=1, session=session)
        with patch("gamerstation.services.riot_client.time.time", return_value=1000.0):
            for _ in range(5):
                client.fetch_json(URL)
            self.assertTrue(client.get_circuit_status()["circuit_open"])
        with patch("gamerstation.services.riot_client.time.time", return_value=1061.0):
            self.assertFalse(client.get_circuit_status()["circuit_open"])


class TestRiotClientHelpers(unittest.TestCase):

    def test_missing_key_always_raises(self):
        client = RiotClient(session=MagicMock())
        with patch("gamerstation.services.riot_client.get_riot_api_key", return_value=None):
            with self.assertRaises(MissingCredentialsError):
                client.fetch_json(URL, soft_fail=True)

    def test_backoff_ms(self):
        self.assertEqual(backoff_ms(0), 250)
        self.assertEqual(backoff_ms(2), 1000)
        self.assertEqual(backoff_ms(5), 4000)

    def test_parse_retry_after(self):
        self.assertEqual(parse_retry_after_ms(_resp(429, headers={"Retry-After": "2"})), 2000)
        self.assertEqual(parse_retry_after_ms(_resp(429, headers={"Retry-After": "30"})), 10_000)
        self.assertIsNone(parse_retry_after_ms(_resp(429, headers={"Retry-After": "soon"})))
        self.assertIsNone(parse_retry_after_ms(_resp(429)))

    def test_league_entries_default_to_empty_list(self):
        session = MagicMock()
        session.get.return_value = _resp(404)
        client = RiotClient(api_key="k", session=session)
        self.assertEqual(client.get_league_entries("euw1", "p"), [])
        self.assertEqual(client.get_match_ids("europe", "p"), [])
        url = session.get.call_args.args[0]
        self.assertIn("/lol/match/v5/matches/by-puuid/p/ids?start=0&count=20", url)


if __name__ == "__main__":
    unittest.main()
