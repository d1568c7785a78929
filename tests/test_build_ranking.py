"""
Meta build ranking and match summary tests.
"""

import pytest

from calc_core.calculators.build_ranking import (
    BuildTally,
    MetaRoleEntry,
    bayes_score,
    build_share_text,
    build_sig,
    extract_boots_and_core,
    is_stat_sig,
    normalize_role,
    patch_from_game_version,
    patch_sort_key,
    pick_best_build,
    pick_best_role,
    top_builds_for_role,
    wilson_lower_bound,
)
from calc_core.calculators.match_summary import (
    derive_dd_version,
    kda,
    match_row_for,
    pick_ranked,
    summarize_matches,
)


def _entry(games, winrate, sig="b=0|c=1", score=0.5, low_sample=False):
    return MetaRoleEntry(
        boots=None,
        core=(1,),
        games=games,
        wins=round(games * winrate),
        winrate=winrate,
        score=score,
        build_sig=sig,
        low_sample=low_sample,
    )


def _participant(puuid, champ, win, k=5, d=2, a=7, cs=150, gold=10000):
    return {
        "puuid": puuid,
        "championName": champ,
        "win": win,
        "kills": k,
        "deaths": d,
        "assists": a,
        "totalMinionsKilled": cs,
        "neutralMinionsKilled": 10,
        "goldEarned": gold,
        "totalDamageDealtToChampions": 20000,
        "visionScore": 30,
        "teamPosition": "MIDDLE",
        "item0": 3020,
        "item1": 6655,
    }


def _match(match_id, *participants, version="14.10.585.123"):
    return {
        "metadata": {"matchId": match_id},
        "info": {
            "gameCreation": 1715800000000,
            "gameDuration": 1800,
            "gameMode": "CLASSIC",
            "queueId": 420,
            "gameVersion": version,
            "participants": list(participants),
        },
    }


# ─── Wilson / Bayes ─────────────────────────────────────────────────────────

def test_wilson_lower_bound():
    assert wilson_lower_bound(0.6, 100) == pytest.approx(0.502, abs=1e-3)
    assert wilson_lower_bound(1.0, 0) == -1
    assert wilson_lower_bound(float("nan"), 10) == -1
    assert wilson_lower_bound(1.0, 3) < wilson_lower_bound(0.55, 400)


@pytest.mark.parametrize("p", [0.0, 0.1, 0.35, 0.5, 0.62, 0.9, 1.0])
def test_wilson_lower_bound_grows_with_sample(p):
    sizes = [1, 2, 5, 10, 25, 50, 100, 250, 1000, 10_000, 100_000]
    bounds = [wilson_lower_bound(p, n) for n in sizes]
    for smaller, larger in zip(bounds, bounds[1:]):
        assert larger >= smaller - 1e-12
    for lb in bounds:
        assert 0 - 1e-12 <= lb <= p + 1e-12


@pytest.mark.parametrize("p", [0.05, 0.5, 0.73, 1.0])
def test_wilson_lower_bound_converges_to_rate(p):
    assert wilson_lower_bound(p, 100_000_000) == pytest.approx(p, abs=1e-3)


def test_bayes_score():
    assert bayes_score(0, 0) == 0.5
    assert bayes_score(60, 100, k=100) == pytest.approx(0.55)


# ─── Best build selection ───────────────────────────────────────────────────

def test_large_sample_beats_small_perfect_record():
    tiny = _entry(3, 1.0, "tiny")
    big = _entry(400, 0.55, "big")
    small = _entry(30, 0.6, "small")
    assert pick_best_build([tiny, small, big]).build_sig == "big"


def test_fallback_pool_when_nothing_reaches_preferred_min():
    a = _entry(12, 0.58, "a")
    b = _entry(15, 0.6, "b")
    best = pick_best_build([a, b], preferred_min=25, fallback_min=10)
    assert best is not None
    assert best.build_sig in ("a", "b")


def test_nothing_viable():
    assert pick_best_build([_entry(5, 1.0)]) is None
    assert pick_best_build([]) is None
    assert pick_best_build(None) is None


def test_tie_breaks_on_games_then_score():
    a = _entry(100, 0.5, "a", score=0.4)
    b = _entry(100, 0.5, "b", score=0.6)
    assert pick_best_build([a, b]).build_sig == "b"


def test_pick_best_role():
    role_map = {
        "TOP": [_entry(200, 0.48, "top")],
        "MIDDLE": [_entry(300, 0.56, "mid")],
    }
    role, entry = pick_best_role(role_map)
    assert role == "MIDDLE"
    assert entry.build_sig == "mid"
    assert pick_best_role({}) is None


def test_stat_sig():
    assert is_stat_sig(_entry(25, 0.5))
    assert not is_stat_sig(_entry(24, 0.5))
    assert not is_stat_sig(_entry(100, 0.5, low_sample=True))
    assert not is_stat_sig(None)


# ─── Parsing helpers ────────────────────────────────────────────────────────

def test_entry_from_dict_derives_winrate():
    e = MetaRoleEntry.from_dict({"games": 10, "wins": 5, "core": ["3071"], "buildSig": "x"})
    assert e.winrate == 0.5
    assert e.core == (3071,)
    assert e.boots is None
    assert e.display_items == (3071,)


def test_patch_helpers():
    assert patch_sort_key("14.10") > patch_sort_key("14.9")
    assert patch_sort_key("garbage") == 0
    assert patch_from_game_version("14.3.562.1234") == "14.3"
    assert patch_from_game_version("") == "unknown"


def test_normalize_role_aliases():
    assert normalize_role("mid") == "MIDDLE"
    assert normalize_role("SUPPORT") == "UTILITY"
    assert normalize_role("bot") == "BOTTOM"
    assert normalize_role("xyz") is None
    assert normalize_role(None) is None


def test_extract_boots_and_core():
    parts = extract_boots_and_core({
        "item0": 3020, "item1": 6655, "item2": 6655, "item3": 0,
        "item4": 4645, "item5": 3089,
        "summoner1Id": 14, "summoner2Id": 4,
    })
    assert parts.boots == 3020
    assert parts.core == [6655, 4645, 3089]
    assert parts.summoners == [4, 14]
    assert parts.items == [3020, 6655, 4645, 3089]
    assert parts.sig == build_sig(3020, [6655, 4645, 3089]) == "b=3020|c=6655,4645,3089"


def test_top_builds_suppresses_small_samples():
    common = BuildTally(build=extract_boots_and_core({"item0": 3047, "item1": 6692}))
    rare = BuildTally(build=extract_boots_and_core({"item0": 3111, "item1": 3071}))
    for i in range(40):
        common.add(i % 2 == 0)
    for _ in range(5):
        rare.add(True)

    rows = top_builds_for_role({common.build.sig: common, rare.build.sig: rare}, min_display_sample=25)
    assert [r.build_sig for r in rows] == [common.build.sig]
    assert rows[0].games == 40
    assert rows[0].winrate == 0.5


def test_share_text():
    e = MetaRoleEntry(boots=3020, core=(6655, 4645), games=210, wins=113, winrate=0.538, score=1.2, build_sig="s")
    text = build_share_text("Ahri", "MIDDLE", e, patch="14.3", item_names={3020: "Sorcerer's Shoes"})
    lines = text.split("\n")
    assert lines[0] == "Ahri • Patch 14.3 • Ranked • Mid"
    assert lines[1] == "Boots: Sorcerer's Shoes"
    assert "Core: 6655, 4645" in text
    assert "Winrate: 54% • Games: 210 • Score: 1" in text


# ─── Match summary ──────────────────────────────────────────────────────────

def test_kda():
    assert kda(10, 2, 5) == "7.50"
    assert kda(3, 0, 4) == "7.00"


def test_derive_dd_version():
    assert derive_dd_version("15.3.123.456") == "15.3.1"
    assert derive_dd_version("15") is None
    assert derive_dd_version(None) is None


def test_pick_ranked_prefers_solo():
    flex = {"queueType": "RANKED_FLEX_SR", "tier": "GOLD"}
    solo = {"queueType": "RANKED_SOLO_5x5", "tier": "PLATINUM"}
    assert pick_ranked([flex, solo]) is solo
    assert pick_ranked([flex]) is flex
    assert pick_ranked([]) is None


def test_match_row_for_player():
    match = _match("EUW1_1", _participant("me", "Ahri", True), _participant("other", "Zed", False))
    row = match_row_for(match, "me")
    assert row.match_id == "EUW1_1"
    assert row.champ == "Ahri"
    assert row.cs == 160
    assert row.kda == "6.00"
    assert row.items == [3020, 6655, 0, 0, 0, 0, 0]
    assert match_row_for(match, "nobody") is None


def test_summarize_matches():
    rows = [
        match_row_for(_match("1", _participant("me", "Ahri", True)), "me"),
        match_row_for(_match("2", _participant("me", "Ahri", False, gold=12000)), "me"),
        match_row_for(_match("3", _participant("me", "Zed", True)), "me"),
    ]
    s = summarize_matches(rows)
    assert s.games == 3
    assert s.wins == 2
    assert s.losses == 1
    assert s.win_rate == 67
    assert s.avg_gold == 10667
    assert s.top_champs[0] == {"champ": "Ahri", "games": 2}


def test_summarize_empty_history():
    s = summarize_matches([])
    assert s.games == 0
    assert s.win_rate == 0
    assert s.kda == "0.00"
    assert s.avg_cs == 0
