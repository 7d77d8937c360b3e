from django.test import SimpleTestCase

from builder.services import selection as reducer
from builder.services.compatibility import (
    CRITICAL,
    WARNING,
    filter_choices,
    incompatibility_details,
    validate,
)
from builder.services.totals import estimated_power_draw, total_price
from hardware.records import build_catalog


def make_catalog():
    return build_catalog(
        {
            "cpu": [
                {"id": "cpu-am5", "name": "Ryzen 7 9700X", "price": 349.99,
                 "socket": "AM5", "tdp": 125, "generation": "Zen 5"},
                {"id": "cpu-intel", "name": "Core i5-14400F", "price": 189.99,
                 "socket": "LGA1700", "tdp": 65},
                {"id": "cpu-bare", "name": "Mystery CPU", "price": 99.0},
            ],
            "motherboard": [
                {"id": "mb-am5", "name": "B650 Board", "price": 179.99,
                 "socket": "AM5", "formFactor": "ATX", "ramSupport": "DDR5"},
                {"id": "mb-intel", "name": "Z790 Board", "price": 249.99,
                 "socket": "LGA1700", "formFactor": "E-ATX",
                 "ramSupport": ["DDR4", "DDR5"]},
                {"id": "mb-old", "name": "X570 Board", "price": 129.99,
                 "socket": "AM5", "formFactor": "Micro-ATX",
                 "ramSupport": "DDR4", "compatibility": ["Zen 4"]},
            ],
            "ram": [
                {"id": "ram-ddr5", "name": "32GB DDR5", "price": 159.99,
                 "type": "DDR5"},
                {"id": "ram-ddr4", "name": "16GB DDR4", "price": 59.99,
                 "type": "DDR4"},
            ],
            "gpu": [
                {"id": "gpu-long", "name": "RTX 4090", "price": 1599.99,
                 "power": 450, "length": 336},
                {"id": "gpu-short", "name": "RTX 4060", "price": 299.99,
                 "power": 115, "length": 240},
                {"id": "gpu-unknown", "name": "Mystery GPU", "price": None},
            ],
            "case": [
                {"id": "case-small", "name": "Compact", "price": 79.99,
                 "compatibility": ["Micro-ATX", "Mini-ITX"],
                 "maxGpuLength": 300, "maxCpuCoolerHeight": 150,
                 "maxPsuLength": 150},
                {"id": "case-big", "name": "Full Tower", "price": 179.99,
                 "compatibility": ["ATX", "E-ATX", "Micro-ATX"],
                 "maxGpuLength": 420, "maxCpuCoolerHeight": 185,
                 "maxPsuLength": 220},
            ],
            "psu": [
                {"id": "psu-750", "name": "750W Gold", "price": 129.99,
                 "wattage": 750, "length": 160},
                {"id": "psu-900", "name": "900W Gold", "price": 169.99,
                 "wattage": 900, "length": 140},
            ],
            "cooling": [
                {"id": "cool-tall", "name": "Tower Air", "price": 89.99,
                 "type": "Air", "height": 165, "tdpSupport": 220},
                {"id": "cool-aio", "name": "240mm AIO", "price": 109.99,
                 "type": "Liquid", "height": 400, "tdpSupport": 100},
            ],
            "mouse": [
                {"id": "m1", "name": "Glide", "price": 49.99},
                {"id": "m2", "name": "Glide Pro", "price": 79.99},
            ],
            "keyboard": [
                {"id": "k1", "name": "Clicky", "price": 99.99,
                 "colour": ["Black", "White"],
                 "pricesByOption": {"colour": {"White": 109.99}}},
            ],
        }
    )


def titles(issues):
    return [i.title for i in issues]


class ValidatorTests(SimpleTestCase):
    def setUp(self):
        self.catalog = make_catalog()

    def test_socket_mismatch_is_single_critical_issue(self):
        selection = {"cpu": "cpu-am5", "motherboard": "mb-intel"}
        issues = validate(selection, self.catalog)
        self.assertEqual(len(issues), 1)
        self.assertEqual(issues[0].severity, CRITICAL)
        self.assertEqual(issues[0].title, "CPU & Motherboard Socket Mismatch")
        self.assertEqual(
            issues[0].affected_components, ["Ryzen 7 9700X", "Z790 Board"]
        )

        for removed in ("cpu", "motherboard"):
            remaining = {k: v for k, v in selection.items() if k != removed}
            self.assertEqual(validate(remaining, self.catalog), [])

    def test_missing_socket_skips_rule(self):
        issues = validate(
            {"cpu": "cpu-bare", "motherboard": "mb-intel"}, self.catalog
        )
        self.assertEqual(issues, [])

    def test_unknown_ids_are_treated_as_unselected(self):
        issues = validate(
            {"cpu": "nope", "motherboard": "mb-intel", "gpu": ""}, self.catalog
        )
        self.assertEqual(issues, [])

    def test_validation_is_order_independent(self):
        first = {}
        for category, cid in [
            ("cpu", "cpu-am5"),
            ("case", "case-small"),
            ("gpu", "gpu-long"),
            ("motherboard", "mb-old"),
        ]:
            first = reducer.dispatch(first, reducer.Select(category, cid))
        second = {}
        for category, cid in [
            ("motherboard", "mb-old"),
            ("gpu", "gpu-long"),
            ("case", "case-small"),
            ("cpu", "cpu-am5"),
        ]:
            second = reducer.dispatch(second, reducer.Select(category, cid))
        self.assertEqual(
            validate(first, self.catalog), validate(second, self.catalog)
        )

    def test_psu_sizing_warning(self):
        selection = {
            "cpu": "cpu-am5",
            "gpu": "gpu-long",
            "psu": "psu-750",
            "motherboard": "mb-intel",
        }
        issues = validate(selection, self.catalog)
        psu_issues = [i for i in issues if i.title == "Insufficient PSU Wattage"]
        self.assertEqual(len(psu_issues), 1)
        self.assertEqual(psu_issues[0].severity, WARNING)
        self.assertIn("725W", psu_issues[0].description)
        self.assertIn("870W", psu_issues[0].description)

        upgraded = dict(selection, psu="psu-900")
        upgraded_issues = validate(upgraded, self.catalog)
        self.assertNotIn("Insufficient PSU Wattage", titles(upgraded_issues))
        self.assertEqual(
            upgraded_issues,
            [i for i in issues if i.title != "Insufficient PSU Wattage"],
        )

    def test_psu_rule_needs_cpu_gpu_and_psu(self):
        issues = validate({"gpu": "gpu-long", "psu": "psu-750"}, self.catalog)
        self.assertEqual(issues, [])

    def test_checks_run_in_fixed_order(self):
        selection = {
            "cpu": "cpu-am5",
            "motherboard": "mb-old",
            "ram": "ram-ddr5",
            "case": "case-small",
            "gpu": "gpu-long",
            "psu": "psu-750",
            "cooling": "cool-tall",
        }
        self.assertEqual(
            titles(validate(selection, self.catalog)),
            [
                "CPU Generation Compatibility",
                "RAM Type Incompatibility",
                "GPU Too Large for Case",
                "Insufficient PSU Wattage",
                "CPU Cooler Too Tall",
                "PSU Too Long for Case",
            ],
        )

    def test_form_factor_is_case_insensitive(self):
        ok = validate({"motherboard": "mb-old", "case": "case-small"}, self.catalog)
        self.assertEqual(ok, [])
        bad = validate(
            {"motherboard": "mb-intel", "case": "case-small"}, self.catalog
        )
        self.assertEqual(titles(bad), ["Motherboard & Case Size Mismatch"])

    def test_ram_support_list_and_string(self):
        self.assertEqual(
            validate({"ram": "ram-ddr4", "motherboard": "mb-intel"}, self.catalog),
            [],
        )
        issues = validate(
            {"ram": "ram-ddr4", "motherboard": "mb-am5"}, self.catalog
        )
        self.assertEqual(titles(issues), ["RAM Type Incompatibility"])

    def test_cooler_height_only_applies_to_air(self):
        tall = validate({"cooling": "cool-tall", "case": "case-small"}, self.catalog)
        self.assertEqual(titles(tall), ["CPU Cooler Too Tall"])
        liquid = validate({"cooling": "cool-aio", "case": "case-small"}, self.catalog)
        self.assertEqual(liquid, [])

    def test_cooler_tdp_warning(self):
        issues = validate({"cpu": "cpu-am5", "cooling": "cool-aio"}, self.catalog)
        self.assertEqual(titles(issues), ["CPU Cooler May Be Inadequate"])
        self.assertEqual(issues[0].severity, WARNING)


class FilterTests(SimpleTestCase):
    def setUp(self):
        self.catalog = make_catalog()

    def test_empty_selection_is_identity(self):
        for category in ("cpu", "gpu", "case"):
            self.assertEqual(
                filter_choices(category, {}, self.catalog),
                self.catalog[category],
            )

    def test_case_narrows_gpus_and_keeps_unknown_lengths(self):
        choices = filter_choices("gpu", {"case": "case-small"}, self.catalog)
        self.assertEqual(
            [c.id for c in choices], ["gpu-short", "gpu-unknown"]
        )

    def test_gpu_narrows_cases(self):
        choices = filter_choices("case", {"gpu": "gpu-long"}, self.catalog)
        self.assertEqual([c.id for c in choices], ["case-big"])

    def test_socket_filter_both_ways(self):
        cpus = filter_choices("cpu", {"motherboard": "mb-intel"}, self.catalog)
        self.assertEqual([c.id for c in cpus], ["cpu-intel", "cpu-bare"])
        boards = filter_choices("motherboard", {"cpu": "cpu-am5"}, self.catalog)
        self.assertEqual([c.id for c in boards], ["mb-am5", "mb-old"])

    def test_liquid_cooler_ignores_case_height(self):
        coolers = filter_choices("cooling", {"case": "case-small"}, self.catalog)
        self.assertEqual([c.id for c in coolers], ["cool-aio"])

    def test_filtered_candidates_pass_validation(self):
        selection = {"case": "case-small", "motherboard": "mb-old"}
        for category in ("gpu", "psu", "cooling", "ram", "cpu"):
            for candidate in filter_choices(category, selection, self.catalog):
                trial = dict(selection, **{category: candidate.id})
                critical = [
                    i for i in validate(trial, self.catalog)
                    if i.severity == CRITICAL
                ]
                self.assertEqual(critical, [], (category, candidate.id))

    def test_incompatibility_details(self):
        details = incompatibility_details(
            "cpu", {"motherboard": "mb-intel"}, self.catalog
        )
        self.assertEqual(len(details), 1)
        self.assertEqual(details[0]["id"], "cpu-am5")
        self.assertEqual(
            details[0]["issues"],
            ["Socket mismatch: AM5 CPU cannot fit in LGA1700 motherboard socket"],
        )
        self.assertEqual(incompatibility_details("cpu", {}, self.catalog), [])


class TotalsTests(SimpleTestCase):
    def setUp(self):
        self.catalog = make_catalog()

    def test_total_sums_main_and_peripherals(self):
        selection = {"cpu": "cpu-am5", "gpu": "gpu-short"}
        peripherals = {"mouse": ["m1", "m2"]}
        self.assertAlmostEqual(
            total_price(selection, peripherals, self.catalog),
            349.99 + 299.99 + 49.99 + 79.99,
        )

    def test_unknown_ids_and_missing_prices_add_nothing(self):
        selection = {"cpu": "missing", "gpu": "gpu-unknown"}
        self.assertEqual(total_price(selection, {"mouse": ["zzz"]}, self.catalog), 0)

    def test_total_is_additive(self):
        selection = {"cpu": "cpu-am5", "case": "case-big", "psu": "psu-750"}
        base = total_price(selection, {}, self.catalog)
        with_mouse = total_price(selection, {"mouse": ["m1"]}, self.catalog)
        self.assertGreaterEqual(with_mouse, base)

        without_case = reducer.dispatch(selection, reducer.Remove("case"))
        self.assertAlmostEqual(
            base - total_price(without_case, {}, self.catalog), 179.99
        )

    def test_selected_options_use_override_price(self):
        total = total_price(
            {}, {"keyboard": ["k1"]}, self.catalog,
            {"keyboard": {"colour": "White"}},
        )
        self.assertAlmostEqual(total, 109.99)

    def test_power_draw_defaults(self):
        self.assertEqual(
            estimated_power_draw({"cpu": "cpu-am5", "gpu": "gpu-long"}, self.catalog),
            725,
        )
        # missing tdp/power fall back to 65/150
        self.assertEqual(
            estimated_power_draw(
                {"cpu": "cpu-bare", "gpu": "gpu-unknown"}, self.catalog
            ),
            65 + 150 + 150,
        )
        self.assertEqual(estimated_power_draw({}, self.catalog), 150)

    def test_zero_power_values_use_defaults(self):
        catalog = build_catalog(
            {
                "cpu": [{"id": "c0", "name": "Zero TDP", "tdp": 0}],
                "gpu": [{"id": "g0", "name": "Zero Power", "power": "0W"}],
                "psu": [{"id": "p0", "name": "400W", "wattage": 400}],
            }
        )
        selection = {"cpu": "c0", "gpu": "g0", "psu": "p0"}
        self.assertEqual(estimated_power_draw(selection, catalog), 65 + 150 + 150)
        # 365W estimated -> 438W recommended, so a 400W unit still warns
        self.assertEqual(
            titles(validate(selection, catalog)), ["Insufficient PSU Wattage"]
        )
