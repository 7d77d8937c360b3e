import json
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import SimpleTestCase

from builder.services.finder import (
    BuildTemplate,
    PriceTables,
    UserProfile,
    budget_score,
    calculate_accurate_price,
    calculate_build_score,
    fallback_price,
    load_price_tables,
    load_templates,
    match_price,
    rank,
    scoring_weights,
    use_case_score,
)


def template(name="Test Build", **overrides):
    data = {
        "name": name,
        "basePrice": 1000,
        "category": "Testing",
        "specs": {"cpu": "Ryzen 7", "gpu": "RTX 4070"},
        "targetUseCase": ["gaming", "4k_ultra", "competitive"],
        "performanceScore": 100,
        "valueScore": 70,
        "futureProofScore": 95,
        "powerEfficiency": 60,
    }
    data.update(overrides)
    return BuildTemplate.from_dict(data)


class PackagedDataTests(SimpleTestCase):
    def test_templates_load(self):
        templates = load_templates()
        self.assertEqual(len(templates), 10)
        self.assertEqual(templates[0].name, "Gaming Beast 4K")
        self.assertEqual(templates[0].base_price, 4200)
        self.assertIn("4k_ultra", templates[0].target_use_case)

    def test_price_tables_load(self):
        tables = load_price_tables()
        self.assertEqual(tables.lookup["gpu"][0].name, "RTX 4090 24GB")
        self.assertEqual(tables.fallback_defaults["cooling"], 0)
        self.assertAlmostEqual(sum(tables.fixed.values()), 489.97)


class PricingTests(SimpleTestCase):
    def setUp(self):
        packaged = load_price_tables()
        self.tables = PriceTables(
            lookup={
                "cpu": PriceTables.from_dict(
                    {"lookup": {"cpu": [{"name": "Ryzen 7 9800X3D", "price": 449.99}]}}
                ).lookup["cpu"],
                "gpu": PriceTables.from_dict(
                    {"lookup": {"gpu": [{"name": "RTX 4070 Super 12GB", "price": 599.99}]}}
                ).lookup["gpu"],
            },
            fallback_rules=packaged.fallback_rules,
            fallback_defaults=packaged.fallback_defaults,
            fixed=packaged.fixed,
        )

    def test_match_is_case_insensitive_and_bidirectional(self):
        self.assertEqual(match_price("gpu", "rtx 4060", self.tables).price, 599.99)
        # spec's first word found inside the entry name
        self.assertEqual(match_price("cpu", "Ryzen", self.tables).price, 449.99)
        self.assertIsNone(match_price("gpu", "Radeon 7900 XTX", self.tables))
        self.assertIsNone(match_price("ram", "32GB DDR5", self.tables))

    def test_fallback_rules_are_ordered_and_case_sensitive(self):
        self.assertEqual(fallback_price("gpu", "Some 4070 Ti", self.tables), 799.99)
        self.assertEqual(fallback_price("gpu", "Some 4070 ti", self.tables), 599.99)
        self.assertEqual(fallback_price("storage", "2TB Gen5", self.tables), 349.99)
        self.assertEqual(fallback_price("storage", "2TB Gen4", self.tables), 279.99)
        self.assertEqual(fallback_price("cooling", "Stock", self.tables), 0)
        self.assertEqual(fallback_price("cpu", "Anything", self.tables), 189.99)

    def test_accurate_price(self):
        specs = {
            "cpu": "Ryzen 7 9800X3D",
            "gpu": "RTX 4070 Super",
            "ram": "32GB DDR5",
            "storage": "2TB NVMe Gen5",
            "cooling": "Stock",
        }
        price, unmatched = calculate_accurate_price(specs, self.tables)
        # 449.99 + 599.99 + 189.99 + 349.99 + 0 + 489.97 = 2079.93
        self.assertEqual(price, 2080)
        self.assertEqual(unmatched, ["ram", "storage", "cooling"])

    def test_missing_spec_contributes_nothing(self):
        price, unmatched = calculate_accurate_price({}, self.tables)
        self.assertEqual(price, 490)
        self.assertEqual(unmatched, ["cpu", "gpu", "ram", "storage", "cooling"])


class ScoringTests(SimpleTestCase):
    def test_budget_steps(self):
        self.assertEqual(budget_score(5000, 1400), 100)
        self.assertEqual(budget_score(950, 1000), 90)
        self.assertEqual(budget_score(800, 1000), 70)
        self.assertEqual(budget_score(600, 1000), 40)
        self.assertEqual(budget_score(599, 1000), 10)
        self.assertEqual(budget_score(100, 0), 100)

    def test_use_case_score_caps_at_100(self):
        build = template()
        self.assertEqual(use_case_score(UserProfile(purpose="gaming"), build), 50)
        self.assertEqual(
            use_case_score(
                UserProfile(purpose="gaming", gaming_detail="4k_ultra"), build
            ),
            100,
        )
        self.assertEqual(use_case_score(UserProfile(purpose="home"), build), 0)

    def test_weights(self):
        base = scoring_weights(UserProfile(budget=2000))
        self.assertAlmostEqual(base["performance"], 0.20)
        self.assertAlmostEqual(base["value"], 0.15)

        boosted = scoring_weights(
            UserProfile(budget=1000, creative_detail="3d_rendering")
        )
        self.assertAlmostEqual(boosted["performance"], 0.30)
        self.assertAlmostEqual(boosted["value"], 0.25)

        ambitious = scoring_weights(
            UserProfile(budget=2000, performance_ambition="maximum")
        )
        self.assertAlmostEqual(ambitious["performance"], 0.30)

    def test_composite_score(self):
        profile = UserProfile(budget=5000, purpose="gaming", gaming_detail="4k_ultra")
        # 100*.3 + 100*.25 + 100*.3 + 70*.15 + 95*.1
        self.assertEqual(calculate_build_score(template(), profile, 4000), 105)

    def test_score_rounds_half_up(self):
        build = template(
            targetUseCase=["home"],
            performanceScore=55,
            valueScore=100,
            futureProofScore=45,
        )
        # 30 + 0 + 11 + 15 + 4.5 = 60.5
        self.assertEqual(
            calculate_build_score(build, UserProfile(budget=1500), 1000), 61
        )

    def test_profile_defaults(self):
        profile = UserProfile.from_answers({"gaming_detail": ""})
        self.assertEqual(profile.budget, 1500)
        self.assertEqual(profile.purpose, "gaming")
        self.assertIsNone(profile.gaming_detail)


class RankTests(SimpleTestCase):
    def setUp(self):
        self.templates = load_templates()
        self.tables = load_price_tables()

    def test_top_three_sorted_and_labelled(self):
        profile = UserProfile(budget=2500, purpose="gaming", gaming_detail="1440p_high")
        builds = rank(profile, self.templates, self.tables)
        self.assertEqual(len(builds), 3)
        scores = [b.score for b in builds]
        self.assertEqual(scores, sorted(scores, reverse=True))
        self.assertEqual(
            [b.label for b in builds],
            ["Best Match", "Great Value", "Alternative Option"],
        )

    def test_rank_is_deterministic(self):
        profile = UserProfile(budget=1200, purpose="creative")
        first = [b.to_dict() for b in rank(profile, self.templates, self.tables)]
        second = [b.to_dict() for b in rank(profile, self.templates, self.tables)]
        self.assertEqual(first, second)

    def test_ties_keep_template_order(self):
        twins = [template("A"), template("B"), template("C"), template("D")]
        builds = rank(UserProfile(), twins, self.tables)
        self.assertEqual([b.template.name for b in builds], ["A", "B", "C"])

    def test_fewer_templates_than_three(self):
        builds = rank(UserProfile(), [template()], self.tables)
        self.assertEqual(len(builds), 1)
        self.assertEqual(builds[0].label, "Best Match")
        self.assertEqual(builds[0].adjusted_price, 1000)

    def test_unmatched_specs_are_logged(self):
        odd = template(specs={"cpu": "Ryzen 7"})
        with self.assertLogs("builder.services.finder", level="WARNING") as logs:
            builds = rank(UserProfile(), [odd], self.tables)
        self.assertEqual(
            builds[0].unmatched_specs, ["gpu", "ram", "storage", "cooling"]
        )
        self.assertTrue(any("no price table entry" in m for m in logs.output))


class RecommendBuildsCommandTests(SimpleTestCase):
    def test_prints_ranked_builds(self):
        out = StringIO()
        call_command(
            "recommend_builds", "--budget", "3000", "--purpose", "creative",
            stdout=out,
        )
        output = out.getvalue()
        self.assertIn("Best Match", output)
        self.assertIn("Ranked 3 build(s) for creative", output)

    def test_json_output(self):
        out = StringIO()
        call_command("recommend_builds", "--json", stdout=out)
        builds = json.loads(out.getvalue())
        self.assertEqual(len(builds), 3)
        self.assertEqual(builds[0]["label"], "Best Match")

    def test_invalid_purpose(self):
        with self.assertRaises(CommandError):
            call_command("recommend_builds", "--purpose", "sleeping", stdout=StringIO())
