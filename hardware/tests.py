import json
import os
import tempfile
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import SimpleTestCase, TestCase

from hardware.catalog import fetch_components, load_catalog
from hardware.models import Component
from hardware.records import (
    CaseRecord,
    CPURecord,
    PeripheralRecord,
    build_catalog,
    find_component,
    option_values,
    record_from_dict,
    to_number,
)


class RecordParsingTests(SimpleTestCase):
    def test_to_number_handles_units_and_unknowns(self):
        self.assertEqual(to_number("320mm"), 320.0)
        self.assertEqual(to_number("1,000W"), 1000.0)
        self.assertEqual(to_number(65), 65.0)
        self.assertIsNone(to_number(None))
        self.assertIsNone(to_number("n/a"))
        self.assertIsNone(to_number(True))

    def test_case_record_normalizes_fields(self):
        case = record_from_dict(
            "case",
            {
                "id": 7,
                "name": "Airflow Mid",
                "price": "89.99",
                "compatibility": ["ATX", "Micro-ATX"],
                "maxGpuLength": "360mm",
                "maxCpuCoolerHeight": 165,
                "ean": "5012345678900",
            },
        )
        self.assertIsInstance(case, CaseRecord)
        self.assertEqual(case.id, "7")
        self.assertEqual(case.price, 89.99)
        self.assertEqual(case.compatibility, ("atx", "micro-atx"))
        self.assertEqual(case.max_gpu_length, 360.0)
        self.assertEqual(case.max_cpu_cooler_height, 165.0)
        # absent numbers stay unknown rather than zero
        self.assertIsNone(case.max_psu_length)
        self.assertEqual(case.identifier, "5012345678900")

    def test_cpu_record_casts_counts_and_drops_unknown_keys(self):
        cpu = record_from_dict(
            "cpu",
            {"id": "c1", "name": "Ryzen 7", "cores": "8", "tdp": "120W", "foo": 1},
        )
        self.assertIsInstance(cpu, CPURecord)
        self.assertEqual(cpu.cores, 8)
        self.assertEqual(cpu.tdp, 120.0)
        self.assertFalse(hasattr(cpu, "foo"))

    def test_option_fields_are_detected(self):
        self.assertEqual(option_values(["Black", "White"]), ("Black", "White"))
        self.assertEqual(option_values("S, M, L"), ("S", "M", "L"))
        self.assertIsNone(option_values(["Black"]))
        self.assertIsNone(option_values("Black"))

        mouse = record_from_dict(
            "mouse", {"id": "m1", "name": "Glide", "type": "Wired, Wireless"}
        )
        self.assertIsInstance(mouse, PeripheralRecord)
        self.assertEqual(mouse.options, {"type": ("Wired", "Wireless")})
        self.assertEqual(mouse.type, "Wired")

    def test_named_records_build_for_every_category(self):
        raw = {
            category: [{"id": "x1", "name": f"Named {category}", "price": 10}]
            for category in ("case", "motherboard", "cpu", "ram", "gpu",
                             "storage", "psu", "cooling", "mouse")
        }
        catalog = build_catalog(raw)
        for category, records in catalog.items():
            self.assertEqual(records[0].name, f"Named {category}")
            self.assertEqual(records[0].price, 10.0)

    def test_find_component(self):
        catalog = build_catalog(
            {"gpu": [{"id": "g1", "name": "RTX"}, {"id": "g2", "name": "RX"}]}
        )
        self.assertEqual(find_component(catalog, "gpu", "g2").name, "RX")
        self.assertIsNone(find_component(catalog, "gpu", "missing"))
        self.assertIsNone(find_component(catalog, "gpu", ""))
        self.assertIsNone(find_component(catalog, "cpu", "g1"))


class CatalogProviderTests(TestCase):
    def setUp(self):
        Component.objects.create(
            category="cpu",
            external_id="cpu-2",
            name="Second CPU",
            price="249.99",
            specs={"socket": "AM5", "tdp": 105},
            position=1,
        )
        Component.objects.create(
            category="cpu",
            external_id="cpu-1",
            name="First CPU",
            price="199.99",
            specs={"socket": "AM5", "tdp": 65},
            position=0,
        )
        Component.objects.create(
            category="case", external_id="case-1", name="Tower", price=None
        )

    def test_fetch_components_keeps_catalog_order(self):
        records = fetch_components("cpu")
        self.assertEqual([r.id for r in records], ["cpu-1", "cpu-2"])
        self.assertEqual(records[0].price, 199.99)
        self.assertEqual(records[0].socket, "AM5")

    def test_component_to_record_keeps_name(self):
        record = Component.objects.get(external_id="cpu-1").to_record()
        self.assertEqual(record.name, "First CPU")
        self.assertEqual(record.tdp, 65.0)

    def test_load_catalog_includes_empty_categories(self):
        catalog = load_catalog(["cpu", "case", "gpu"])
        self.assertEqual(len(catalog["cpu"]), 2)
        self.assertIsNone(catalog["case"][0].price)
        self.assertEqual(catalog["gpu"], [])


class ImportCatalogCommandTests(TestCase):
    def _write(self, suffix, content):
        fd, path = tempfile.mkstemp(suffix=suffix)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        self.addCleanup(os.remove, path)
        return path

    def test_imports_json_catalog(self):
        path = self._write(
            ".json",
            json.dumps(
                {
                    "cpu": [
                        {
                            "id": "r7",
                            "name": "Ryzen 7 9700X",
                            "price": 349.99,
                            "socket": "AM5",
                            "tdp": 65,
                        }
                    ],
                    "gpu": [
                        {
                            "id": "g1",
                            "name": "RTX 4070",
                            "price": 599.99,
                            "length": "300mm",
                            "pricesByOption": {"colour": {"White": 619.99}},
                        }
                    ],
                }
            ),
        )
        out = StringIO()
        call_command("import_catalog", "--file", path, stdout=out)
        self.assertIn("2 created", out.getvalue())

        gpu = Component.objects.get(category="gpu", external_id="g1")
        self.assertEqual(gpu.prices_by_option, {"colour": {"White": 619.99}})
        record = gpu.to_record()
        self.assertEqual(record.length, 300.0)

        # a second run updates rather than duplicates
        call_command("import_catalog", "--file", path, stdout=StringIO())
        self.assertEqual(Component.objects.count(), 2)

    def test_imports_csv_with_require_price(self):
        path = self._write(
            ".csv",
            "id,name,price,wattage\n"
            "p1,Quiet 750,129.99,750W\n"
            "p2,No Price PSU,,650\n",
        )
        out = StringIO()
        call_command(
            "import_catalog",
            "--file",
            path,
            "--category",
            "psu",
            "--require-price",
            stdout=out,
        )
        self.assertIn("Row 2 skipped: missing/zero price", out.getvalue())
        psu = Component.objects.get(category="psu")
        self.assertEqual(psu.to_record().wattage, 750.0)

    def test_dry_run_writes_nothing(self):
        path = self._write(".json", json.dumps({"ram": [{"id": "m", "name": "16GB"}]}))
        out = StringIO()
        call_command("import_catalog", "--file", path, "--dry-run", stdout=out)
        self.assertIn("[DRY-RUN]", out.getvalue())
        self.assertFalse(Component.objects.exists())

    def test_csv_requires_category(self):
        path = self._write(".csv", "id,name\nx,Y\n")
        with self.assertRaises(CommandError):
            call_command("import_catalog", "--file", path, stdout=StringIO())
