import json

from django.test import Client, TestCase
from django.urls import reverse

from hardware.models import Component


class BuilderViewTests(TestCase):
    def setUp(self):
        Component.objects.create(
            category="cpu", external_id="cpu-am5", name="Ryzen 7 9700X",
            price="349.99", specs={"socket": "AM5", "tdp": 125},
        )
        Component.objects.create(
            category="cpu", external_id="cpu-intel", name="Core i5-14400F",
            price="189.99", specs={"socket": "LGA1700", "tdp": 65},
            position=1,
        )
        Component.objects.create(
            category="motherboard", external_id="mb-am5", name="B650 Board",
            price="179.99", specs={"socket": "AM5", "formFactor": "ATX"},
        )
        Component.objects.create(
            category="motherboard", external_id="mb-intel", name="Z790 Board",
            price="249.99", specs={"socket": "LGA1700"}, position=1,
        )
        Component.objects.create(
            category="gpu", external_id="gpu-1", name="RTX 4090",
            price="1599.99", specs={"power": 450, "length": 336},
        )
        Component.objects.create(
            category="psu", external_id="psu-750", name="750W Gold",
            price="129.99", specs={"wattage": 750},
        )
        Component.objects.create(
            category="mouse", external_id="m1", name="Glide", price="49.99",
            specs={"colour": ["Black", "White"]},
            prices_by_option={"colour": {"White": 59.99}},
        )
        self.client = Client()

    def _dispatch(self, payload):
        return self.client.post(
            reverse("update_selection"),
            data=json.dumps(payload),
            content_type="application/json",
        )

    def test_unknown_category_is_rejected(self):
        resp = self.client.get(reverse("component_choices", args=["toaster"]))
        self.assertEqual(resp.status_code, 400)

    def test_choices_are_filtered_by_selection(self):
        resp = self.client.get(reverse("component_choices", args=["motherboard"]))
        self.assertEqual(len(resp.json()["components"]), 2)

        self.assertEqual(
            self._dispatch(
                {"type": "SELECT", "category": "cpu", "id": "cpu-am5"}
            ).status_code,
            200,
        )
        data = self.client.get(
            reverse("component_choices", args=["motherboard"])
        ).json()
        self.assertEqual([c["id"] for c in data["components"]], ["mb-am5"])
        self.assertEqual(data["incompatible"][0]["id"], "mb-intel")
        self.assertEqual(data["total"], 2)

    def test_selection_dispatch(self):
        resp = self._dispatch({"type": "SELECT", "category": "cpu", "id": "cpu-am5"})
        self.assertEqual(resp.json(), {"selection": {"cpu": "cpu-am5"}, "count": 1})
        resp = self._dispatch(
            {"type": "IMPORT", "payload": {"gpu": "gpu-1", "ram": ""}}
        )
        self.assertEqual(
            resp.json()["selection"], {"cpu": "cpu-am5", "gpu": "gpu-1"}
        )
        resp = self._dispatch({"type": "RESET"})
        self.assertEqual(resp.json()["count"], 0)

    def test_bad_selection_requests(self):
        resp = self.client.post(
            reverse("update_selection"), data="{not json",
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self._dispatch({"type": "EXPLODE"}).status_code, 400)
        self.assertEqual(
            self._dispatch(
                {"type": "SELECT", "category": "toaster", "id": "1"}
            ).status_code,
            400,
        )
        self.assertEqual(
            self.client.get(reverse("update_selection")).status_code, 405
        )

    def test_summary_reports_issues_totals_and_power(self):
        self._dispatch({"type": "SELECT", "category": "cpu", "id": "cpu-am5"})
        self._dispatch(
            {"type": "SELECT", "category": "motherboard", "id": "mb-intel"}
        )
        self._dispatch({"type": "SELECT", "category": "gpu", "id": "gpu-1"})
        self._dispatch({"type": "SELECT", "category": "psu", "id": "psu-750"})
        self.client.post(
            reverse("toggle_peripheral"),
            data=json.dumps({"category": "mouse", "id": "m1"}),
            content_type="application/json",
        )

        data = self.client.get(reverse("build_summary")).json()
        self.assertEqual(
            [i["title"] for i in data["issues"]],
            ["CPU & Motherboard Socket Mismatch", "Insufficient PSU Wattage"],
        )
        self.assertAlmostEqual(
            data["total_price"], 349.99 + 249.99 + 1599.99 + 129.99 + 49.99
        )
        self.assertEqual(data["estimated_power"], 725)
        self.assertFalse(data["complete"])

    def test_selected_options_change_price(self):
        self._dispatch(
            {"type": "SELECT", "category": "cpu", "id": "cpu-am5"}
        )
        session = self.client.session
        session["selected_options"] = {"mouse": {"colour": "White"}}
        session["selected_peripherals"] = {"mouse": ["m1"]}
        session.save()
        data = self.client.get(reverse("build_summary")).json()
        self.assertAlmostEqual(data["total_price"], 349.99 + 59.99)

    def test_select_rejects_non_string_options(self):
        for options in ({"colour": ["White"]}, ["White"], {"colour": 3}):
            resp = self._dispatch(
                {"type": "SELECT", "category": "cpu", "id": "cpu-am5",
                 "options": options}
            )
            self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.client.get(reverse("build_summary")).status_code, 200)

        ok = self._dispatch(
            {"type": "SELECT", "category": "cpu", "id": "cpu-am5",
             "options": {"edition": "Boxed"}}
        )
        self.assertEqual(ok.status_code, 200)
        self.assertEqual(
            self.client.session["selected_options"], {"cpu": {"edition": "Boxed"}}
        )

    def test_stale_list_option_falls_back_to_base_price(self):
        session = self.client.session
        session["selected_options"] = {"mouse": {"colour": ["White"]}}
        session["selected_peripherals"] = {"mouse": ["m1"]}
        session.save()
        resp = self.client.get(reverse("build_summary"))
        self.assertEqual(resp.status_code, 200)
        self.assertAlmostEqual(resp.json()["total_price"], 49.99)

    def test_bulk_payloads_only_take_main_categories(self):
        self.client.post(
            reverse("toggle_peripheral"),
            data=json.dumps({"category": "mouse", "id": "m1"}),
            content_type="application/json",
        )
        for action_type in ("SET_ALL", "IMPORT"):
            for payload in ({"mouse": "m1", "bogus": "x"}, {"cpu": 5}):
                resp = self._dispatch({"type": action_type, "payload": payload})
                self.assertEqual(resp.status_code, 400)

        data = self.client.get(reverse("build_summary")).json()
        self.assertEqual(self.client.session.get("selected_components", {}), {})
        self.assertAlmostEqual(data["total_price"], 49.99)

    def test_toggle_peripheral(self):
        url = reverse("toggle_peripheral")
        body = json.dumps({"category": "mouse", "id": "m1"})
        first = self.client.post(url, data=body, content_type="application/json")
        self.assertEqual(first.json(), {"peripherals": {"mouse": ["m1"]}})
        second = self.client.post(url, data=body, content_type="application/json")
        self.assertEqual(second.json(), {"peripherals": {}})

        bad = self.client.post(
            url, data=json.dumps({"category": "cpu", "id": "cpu-am5"}),
            content_type="application/json",
        )
        self.assertEqual(bad.status_code, 400)

    def test_resolve_option(self):
        url = reverse("resolve_option", args=["mouse", "m1"])
        self.assertAlmostEqual(self.client.get(url).json()["price"], 49.99)
        data = self.client.get(url, {"colour": "White"}).json()
        self.assertAlmostEqual(data["price"], 59.99)
        self.assertEqual(len(data["images"]), 4)

        missing = self.client.get(reverse("resolve_option", args=["mouse", "zz"]))
        self.assertEqual(missing.status_code, 400)


class FinderViewTests(TestCase):
    def test_recommendations(self):
        resp = self.client.post(
            reverse("recommend_builds"),
            {"budget": "2500", "purpose": "gaming", "gaming_detail": "1440p_high"},
        )
        self.assertEqual(resp.status_code, 200)
        builds = resp.json()["builds"]
        self.assertEqual(len(builds), 3)
        self.assertEqual(builds[0]["label"], "Best Match")
        self.assertEqual(resp.json()["profile"]["budget"], 2500.0)

    def test_defaults_when_empty(self):
        resp = self.client.post(reverse("recommend_builds"), {})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["profile"]["purpose"], "gaming")
        self.assertEqual(resp.json()["profile"]["budget"], 1500)

    def test_invalid_profile(self):
        resp = self.client.post(
            reverse("recommend_builds"), {"budget": "lots", "purpose": "sleeping"}
        )
        self.assertEqual(resp.status_code, 400)
        errors = resp.json()["errors"]
        self.assertIn("budget", errors)
        self.assertIn("purpose", errors)
