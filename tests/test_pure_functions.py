"""
Calc Core Pure Function Tests
=============================
Formula tests for every calculator engine. No I/O, no framework.
"""

import math
import unittest

import calc_core.engines
import calc_core.utils
from calc_core.engines.catch_rate import (
    Ball,
    Status,
    ball_multiplier,
    capture_probability,
    compute_catch_chance,
    modified_catch_rate,
    status_multiplier,
)
from calc_core.engines.lol_damage import (
    KILLABLE,
    NOT_KILLABLE,
    UNKNOWN,
    CastPacket,
    FightInputs,
    champion_stats_at_level,
    compute_ability_packet,
    compute_fight,
    damage_multiplier_from_resist,
    effective_hp,
    expected_crit_multiplier,
    item_totals,
    resist_after_penetration,
)
from calc_core.engines.osrs_dps import (
    OsrsInputs,
    Style,
    compute_osrs_dps,
    hit_chance,
)
from calc_core.engines.shooter_ttk import (
    BarrelAdds,
    DamageBreakpoint,
    compute_cod_ttk,
    compute_fortnite_ttk,
    cod_total_hp,
    cod_weapons_by_class,
    damage_at_meters,
    distance_bucket,
    expected_shot_damage,
    get_cod_weapon,
    get_fortnite_weapon,
)
from calc_core.engines.wow_stat_impact import (
    SPEC_DEFS,
    STAT_KEYS,
    compute_stat_impact,
    grouped_specs,
    priority_line,
    ratings_from_character,
    weights_for,
)
from calc_core.utils.identity import (
    is_likely_bot_user_agent,
    looks_valid_riot_id,
    normalize_osrs_player,
    normalize_tag_line,
    platform_to_cluster,
    safe_decode,
    slugify_riot_id,
)
from calc_core.utils.numeric import PLACEHOLDER, finite_or_none, fmt, fmt_pct, num0


class TestNumericHelpers(unittest.TestCase):

    def test_num0_treats_blank_as_zero(self):
        self.assertEqual(num0(""), 0.0)
        self.assertEqual(num0(None), 0.0)
        self.assertEqual(num0("abc"), 0.0)
        self.assertEqual(num0("inf"), 0.0)
        self.assertEqual(num0("12.5"), 12.5)

    def test_fmt_placeholder_for_non_finite(self):
        self.assertEqual(fmt(3.14159, 2), "3.14")
        self.assertEqual(fmt(float("nan")), PLACEHOLDER)
        self.assertEqual(fmt(math.inf), PLACEHOLDER)
        self.assertEqual(fmt(None), PLACEHOLDER)

    def test_fmt_pct(self):
        self.assertEqual(fmt_pct(0.456), "46%")
        self.assertEqual(fmt_pct(float("nan")), PLACEHOLDER)

    def test_package_exports_resolve(self):
        for package in (calc_core.utils, calc_core.engines):
            for name in package.__all__:
                self.assertTrue(hasattr(package, name), name)

    def test_finite_or_none(self):
        self.assertIsNone(finite_or_none(math.inf))
        self.assertIsNone(finite_or_none(float("nan")))
        self.assertEqual(finite_or_none(2), 2.0)


class TestIdentity(unittest.TestCase):

    def test_platform_to_cluster(self):
        self.assertEqual(platform_to_cluster("na1"), "americas")
        self.assertEqual(platform_to_cluster("euw1"), "europe")
        self.assertEqual(platform_to_cluster("KR"), "asia")
        self.assertEqual(platform_to_cluster("oc1"), "sea")
        self.assertEqual(platform_to_cluster("vn2"), "sea")

    def test_safe_decode_and_normalise(self):
        self.assertEqual(safe_decode("Hide%20on+bush"), "Hide on bush")
        self.assertEqual(normalize_tag_line("#KR1 "), "KR1")
        self.assertEqual(normalize_tag_line("##E U W"), "EUW")

    def test_riot_id_sanity(self):
        self.assertTrue(looks_valid_riot_id("Faker", "KR1"))
        self.assertFalse(looks_valid_riot_id("F", "KR1"))
        self.assertFalse(looks_valid_riot_id("Faker", "K"))
        self.assertFalse(looks_valid_riot_id("x" * 25, "KR1"))

    def test_slugify(self):
        self.assertEqual(slugify_riot_id("Hide on bush", "KR1"), "hide-on-bush--kr1")

    def test_osrs_player_names(self):
        self.assertEqual(normalize_osrs_player("  Zezima  "), "Zezima")
        self.assertEqual(normalize_osrs_player("Iron   Man"), "Iron Man")
        self.assertIsNone(normalize_osrs_player("x" * 13))
        self.assertIsNone(normalize_osrs_player("bad!name"))
        self.assertIsNone(normalize_osrs_player(""))

    def test_bot_user_agents(self):
        self.assertTrue(is_likely_bot_user_agent(""))
        self.assertTrue(is_likely_bot_user_agent(None))
        self.assertTrue(is_likely_bot_user_agent("Mozilla/5.0 (compatible; Googlebot/2.1)"))
        self.assertTrue(is_likely_bot_user_agent("facebookexternalhit/1.1"))
        self.assertFalse(is_likely_bot_user_agent(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/124.0 Safari/537.36"
        ))


class TestOsrsDps(unittest.TestCase):

    def test_hit_chance_branches(self):
        self.assertAlmostEqual(hit_chance(20000, 10000), 1 - 10002 / 40002)
        self.assertAlmostEqual(hit_chance(10000, 20000), 10000 / 40002)
        self.assertEqual(hit_chance(0, 10000), 0)
        self.assertEqual(hit_chance(10000, 0), 0)

    def test_hit_chance_stays_in_unit_interval(self):
        rolls = [-500, 0, 1, 2, 10, 99, 100, 101, 1000, 12345, 50000, 250000]
        for attack in rolls:
            for defense in rolls:
                chance = hit_chance(attack, defense)
                self.assertGreaterEqual(chance, 0, (attack, defense))
                self.assertLessEqual(chance, 1, (attack, defense))

    def test_hit_chance_rises_with_attack_roll(self):
        attacks = [1, 50, 999, 1000, 1001, 1002, 5000, 100000]
        for defense in (1, 1000, 40000):
            chances = [hit_chance(a, defense) for a in attacks]
            for lower, higher in zip(chances, chances[1:]):
                self.assertGreaterEqual(higher, lower - 1e-12)

    def test_default_melee(self):
        r = compute_osrs_dps(OsrsInputs())
        self.assertEqual(r.eff_acc, 83)
        self.assertEqual(r.max_hit, 19)
        self.assertEqual(r.attack_roll, 83 * 164)
        self.assertEqual(r.defense_roll, 109 * 164)
        self.assertAlmostEqual(r.p_hit, 13612 / (2 * 17877))
        self.assertAlmostEqual(r.seconds_per_attack, 2.4)
        self.assertAlmostEqual(r.dps, r.p_hit * 9.5 / 2.4)
        self.assertAlmostEqual(r.ttk_seconds, 150 / r.dps)

    def test_piety_boosts_attack_and_strength(self):
        r = compute_osrs_dps(OsrsInputs(melee_prayer="piety"))
        self.assertEqual(r.eff_acc, 98)
        self.assertEqual(r.eff_dmg, 100)
        self.assertEqual(r.max_hit, 23)

    def test_super_combat_potion(self):
        r = compute_osrs_dps(OsrsInputs(potion="super_combat"))
        self.assertEqual(r.eff_acc, 91 + 8)

    def test_magic_baseline(self):
        r = compute_osrs_dps(OsrsInputs(style=Style.MAGIC, mag_level=75, magic_damage_pct=15))
        self.assertEqual(r.max_hit, 24)
        r99 = compute_osrs_dps(OsrsInputs(style=Style.MAGIC, mag_level=99))
        self.assertEqual(r99.max_hit, 24)

    def test_ranged_rigour(self):
        r = compute_osrs_dps(OsrsInputs(style=Style.RANGED, ranged_prayer="rigour"))
        self.assertEqual(r.eff_acc, 92 + 8)

    def test_zero_dps_means_infinite_ttk(self):
        r = compute_osrs_dps(OsrsInputs(attack_bonus=-64))
        self.assertEqual(r.p_hit, 0)
        self.assertEqual(r.dps, 0)
        self.assertTrue(math.isinf(r.ttk_seconds))


class TestLolDamage(unittest.TestCase):

    def test_resist_multiplier(self):
        self.assertEqual(damage_multiplier_from_resist(0), 1)
        self.assertEqual(damage_multiplier_from_resist(100), 0.5)
        self.assertEqual(damage_multiplier_from_resist(-100), 1.5)
        self.assertTrue(math.isnan(damage_multiplier_from_resist(float("nan"))))

    def test_resist_multiplier_falls_as_resist_rises(self):
        resists = [0, 1, 5, 25, 50, 99.5, 100, 150, 300, 1000, 10_000]
        mults = [damage_multiplier_from_resist(r) for r in resists]
        for prev, cur in zip(mults, mults[1:]):
            self.assertLess(cur, prev)
        for m in mults:
            self.assertGreater(m, 0)
            self.assertLessEqual(m, 1)

    def test_negative_resist_amplifies(self):
        for r in (-0.5, -1, -10, -37, -100, -250, -5000):
            m = damage_multiplier_from_resist(r)
            self.assertAlmostEqual(m, 2 - 100 / (100 - r))
            self.assertGreater(m, 1)
            self.assertLess(m, 2)

    def test_effective_hp(self):
        self.assertEqual(effective_hp(1000, 100), 2000)
        self.assertTrue(math.isnan(effective_hp(float("nan"), 100)))

    def test_penetration_order(self):
        # percent first, then flat
        self.assertAlmostEqual(resist_after_penetration(100, 30, 10), 60)
        self.assertAlmostEqual(resist_after_penetration(10, 0, 18), -8)

    def test_item_totals(self):
        t = item_totals([
            {"stats": {"FlatPhysicalDamageMod": 40}},
            {"stats": {"FlatCritChanceMod": 0.25, "PercentAttackSpeedMod": 0.3}},
            {"FlatCritChanceMod": 0.9},
        ])
        self.assertEqual(t.ad, 40.0)
        self.assertAlmostEqual(t.as_pct, 30.0)
        self.assertEqual(t.crit_chance_pct, 100)

    def test_expected_crit(self):
        self.assertAlmostEqual(expected_crit_multiplier(25, 1.75), 1.1875)
        self.assertEqual(expected_crit_multiplier(0, 1.75), 1)

    def test_simple_burst_autos(self):
        r = compute_fight(FightInputs(
            champ_ad=60, champ_as=0.625, target_hp=1000, target_armor=0, simple_autos=3,
        ))
        self.assertAlmostEqual(r.damage, 180)
        self.assertAlmostEqual(r.damage_pct, 18)
        self.assertEqual(r.kill_check.status, NOT_KILLABLE)

        kill = compute_fight(FightInputs(champ_ad=60, champ_as=0.625, target_hp=150, target_armor=0))
        self.assertTrue(kill.kill_check.killable)
        self.assertEqual(kill.kill_check.status, KILLABLE)

    def test_no_champion_is_unknown(self):
        r = compute_fight(FightInputs())
        self.assertTrue(math.isnan(r.damage))
        self.assertEqual(r.kill_check.status, UNKNOWN)

    def test_advanced_burst(self):
        r = compute_fight(FightInputs(
            ui_mode="advanced", fight_mode="burst",
            burst_phys_raw=300, target_armor=100, target_hp=2000,
        ))
        self.assertAlmostEqual(r.damage, 150)

    def test_advanced_dps_window(self):
        r = compute_fight(FightInputs(
            ui_mode="advanced", fight_mode="dps",
            dps_phys_raw=200, target_armor=0, target_hp=2000, window_sec=5,
        ))
        self.assertAlmostEqual(r.damage, 200)
        self.assertAlmostEqual(r.time_to_kill, 10)
        self.assertAlmostEqual(r.window_damage, 1000)
        self.assertEqual(r.kill_check.status, NOT_KILLABLE)
        self.assertIn("10.00s", r.kill_check.detail)

    def test_rotation_uses_auto_packet(self):
        r = compute_fight(FightInputs(
            champ_ad=100, champ_as=0.7, ui_mode="advanced", fight_mode="burst",
            target_armor=0, target_mr=0, target_hp=2000,
            rotation=[CastPacket("Q", magic=200), CastPacket("AA")],
        ))
        self.assertAlmostEqual(r.rotation.phys, 100)
        self.assertAlmostEqual(r.rotation.magic, 200)
        self.assertAlmostEqual(r.damage, 300)

    def test_ability_packet(self):
        r = compute_ability_packet(80, 0.6, 0, ap=100, total_ad=0, target_hp=1000, target_armor=0, target_mr=0)
        self.assertAlmostEqual(r.raw, 140)
        self.assertAlmostEqual(r.post_delta_ap, 6)
        self.assertAlmostEqual(r.raw_delta_ad, 0)
        self.assertIn("860", r.kill_check.detail)

    def test_true_damage_ignores_resists(self):
        r = compute_ability_packet(100, 0, 0, ap=0, total_ad=0, target_hp=1000,
                                   target_armor=300, target_mr=300, damage_type="true")
        self.assertEqual(r.post, 100)

    def test_stats_at_level(self):
        stats = {"hp": 600, "hpperlevel": 100, "attackspeed": 0.625, "attackspeedperlevel": 2.0, "movespeed": 330}
        out = champion_stats_at_level(stats, 18)
        self.assertEqual(out["hp"], 2300)
        self.assertAlmostEqual(out["attack_speed"], 0.8375)
        self.assertEqual(out["move_speed"], 330.0)
        self.assertIsNone(out["mp"])
        self.assertEqual(champion_stats_at_level(stats, 25)["hp"], 2300)


class TestShooterTtk(unittest.TestCase):

    def test_damage_at_meters(self):
        p = [DamageBreakpoint(0, 40), DamageBreakpoint(15, 32), DamageBreakpoint(30, 27)]
        self.assertEqual(damage_at_meters(p, 5), 40)
        self.assertEqual(damage_at_meters(p, 20), 32)
        self.assertEqual(damage_at_meters(p, 100), 27)
        self.assertEqual(damage_at_meters([], 10), 0)

    def test_distance_bucket(self):
        self.assertEqual(distance_bucket(10), "dmg10")
        self.assertEqual(distance_bucket(25), "dmg25")
        self.assertEqual(distance_bucket(26), "dmg50")

    def test_cod_total_hp(self):
        self.assertEqual(cod_total_hp("mp", 3), 100)
        self.assertEqual(cod_total_hp("wz", 3), 250)
        self.assertEqual(cod_total_hp("wz", 9), 250)

    def test_cod_ttk(self):
        weapon = get_cod_weapon("m15-mod0")
        r = compute_cod_ttk(weapon)
        self.assertEqual(r.shots_to_kill, 4)
        self.assertAlmostEqual(r.ttk_ms, 250.0)

        r = compute_cod_ttk(weapon, accuracy_pct=50)
        self.assertEqual(r.effective_shots, 8)
        self.assertAlmostEqual(r.ttk_ms_with_accuracy, 7 / 12 * 1000)

        r = compute_cod_ttk(weapon, mode="wz", plates=3)
        self.assertEqual(r.shots_to_kill, 8)

    def test_cod_barrel_bucket(self):
        weapon = get_cod_weapon("m15-mod0")
        r = compute_cod_ttk(weapon, distance_m=20, barrel=BarrelAdds(dmg25=3))
        self.assertEqual(r.bucket, "dmg25")
        self.assertEqual(r.damage_per_shot, 35)
        self.assertEqual(r.shots_to_kill, 3)

    def test_cod_class_order(self):
        names = [w.name for w in cod_weapons_by_class("ar")]
        self.assertEqual(names, ["AK-27", "M15 MOD 0", "Warden 308", "AR-Alpha"])

    def test_fortnite(self):
        self.assertEqual(expected_shot_damage(30, 2.0, 50), 45.0)
        r = compute_fortnite_ttk(get_fortnite_weapon("ar_standard"), "common", 200, 50)
        self.assertEqual(r.shots_to_kill, 5)
        self.assertAlmostEqual(r.ttk_seconds, 4 / 5.5)

    def test_fortnite_missing_rarity(self):
        r = compute_fortnite_ttk(get_fortnite_weapon("ar_burst"), "mythic")
        self.assertIsNone(r.shots_to_kill)
        self.assertTrue(math.isnan(r.ttk_seconds))
        self.assertEqual(get_fortnite_weapon("ar_tactical").available_rarities(), ["rare", "epic", "legendary"])


class TestCatchRate(unittest.TestCase):

    def test_multipliers(self):
        self.assertEqual(status_multiplier(Status.SLEEP), 2.0)
        self.assertEqual(status_multiplier(Status.BURN), 1.5)
        self.assertEqual(status_multiplier(Status.NONE), 1.0)
        self.assertEqual(ball_multiplier(Ball.QUICK, 1), 5.0)
        self.assertEqual(ball_multiplier(Ball.QUICK, 2), 1.0)
        self.assertEqual(ball_multiplier(Ball.TIMER, 11), 4.0)
        self.assertEqual(ball_multiplier(Ball.POKE), 1.0)

    def test_modified_rate(self):
        self.assertAlmostEqual(modified_catch_rate(45, 1.0, 1, 1), 15)
        self.assertEqual(modified_catch_rate(255, 0, 2, 2), 255)

    def test_capture_probability_bounds(self):
        self.assertEqual(capture_probability(255), 1.0)
        self.assertEqual(capture_probability(0), 0.0)
        p = capture_probability(15)
        self.assertGreater(p, 0.05)
        self.assertLess(p, 0.07)

    def test_master_ball_always_catches(self):
        r = compute_catch_chance(3, 1.0, Ball.MASTER)
        self.assertEqual(r.chance, 1.0)
        self.assertEqual(r.expected_balls, 1.0)

    def test_lower_hp_and_status_help(self):
        full = compute_catch_chance(45, 1.0)
        low = compute_catch_chance(45, 0.1, status=Status.SLEEP)
        self.assertGreater(low.chance, full.chance)

    def test_unknown_ruleset_falls_back(self):
        r = compute_catch_chance(45, 1.0, ruleset="gen99")
        self.assertEqual(r.chance, compute_catch_chance(45, 1.0).chance)


class TestWowStatImpact(unittest.TestCase):

    def test_even_ratings_follow_spec_weights(self):
        ratings = {"crit": 1000, "haste": 1000, "mastery": 1000, "vers": 1000}
        r = compute_stat_impact(ratings, weights_for("mage_fire", "raid_st"))
        self.assertEqual(r.best_stat, "crit")
        self.assertEqual([e.stat for e in r.entries], ["crit", "haste", "vers", "mastery"])
        self.assertAlmostEqual(r.entries[0].value, 1.05)
        self.assertAlmostEqual(r.entries[1].score100, 0.9 / 1.05 * 100)
        self.assertEqual([p.stat for p in r.per100], ["crit", "haste", "vers", "mastery"])
        self.assertAlmostEqual(r.per100[-1].units, 65)

    def test_ratings_normalised_by_largest(self):
        r = compute_stat_impact({"crit": 2000, "haste": 1000, "mastery": 0, "vers": 500})
        by_stat = {e.stat: e for e in r.entries}
        self.assertEqual(by_stat["crit"].value, 1.0)
        self.assertEqual(by_stat["haste"].score100, 50.0)
        self.assertEqual(by_stat["vers"].score100, 25.0)
        self.assertEqual(by_stat["mastery"].score100, 0.0)

    def test_low_weight_can_lose_to_lower_rating(self):
        # mastery is Fire's weakest stat in M+
        r = compute_stat_impact(
            {"crit": 0, "haste": 800, "mastery": 1000, "vers": 0},
            weights_for("mage_fire", "mplus_aoe"),
        )
        self.assertEqual(r.best_stat, "haste")
        self.assertAlmostEqual(r.entries[0].value, 0.8)

    def test_all_zero_ratings(self):
        r = compute_stat_impact({"crit": 0, "haste": 0, "mastery": 0, "vers": 0})
        self.assertEqual(r.best_stat, "crit")
        self.assertTrue(all(e.score100 == 0 for e in r.entries))

    def test_missing_and_bad_ratings_count_as_zero(self):
        r = compute_stat_impact({"haste": float("nan"), "mastery": -50, "vers": 10})
        self.assertEqual(r.best_stat, "vers")
        self.assertEqual({e.stat: e.rating for e in r.entries}["mastery"], 0)

    def test_weights_lookup(self):
        self.assertEqual(weights_for("mage_fire", "mplus_aoe")["mastery"], 0.55)
        self.assertIsNone(weights_for("mage_chronomancer"))
        self.assertIsNone(weights_for("mage_fire", "pvp"))
        for spec_def in SPEC_DEFS.values():
            for w in spec_def.weights.values():
                self.assertEqual(sorted(w), sorted(STAT_KEYS))

    def test_ratings_from_character(self):
        secondary = {
            "crit_rating": 500,
            "haste_rating": None,
            "mastery_rating": float("nan"),
            "versatility_rating": 300,
            "crit_pct": 22.1,
        }
        self.assertEqual(
            ratings_from_character(secondary),
            {"crit": 500, "haste": 0, "mastery": 0, "vers": 300},
        )

    def test_grouped_specs(self):
        groups = grouped_specs()
        self.assertEqual(groups[0]["group"], "Death Knight")
        hunter = next(g for g in groups if g["group"] == "Hunter")
        self.assertEqual([s["label"] for s in hunter["specs"]], ["Beast Mastery", "Marksmanship", "Survival"])
        self.assertEqual(sum(len(g["specs"]) for g in groups), len(SPEC_DEFS))

    def test_priority_line(self):
        r = compute_stat_impact({"crit": 100, "haste": 400, "mastery": 300, "vers": 200})
        self.assertEqual(priority_line(r.entries), "HASTE > MASTERY > VERS > CRIT")


if __name__ == "__main__":
    unittest.main()
