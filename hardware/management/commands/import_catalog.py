import csv
import json
import re
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError
from django.utils.text import slugify

from hardware.models import CATEGORY_CHOICES, Component
from hardware.records import FIELD_ALIASES

CATEGORIES = {c for c, _ in CATEGORY_CHOICES}

# Spreadsheet / CMS column names -> Component fields
COLUMN_ALIASES = {
    "id": "external_id",
    "ID": "external_id",
    "Name": "name",
    "Brand": "brand",
    "Price": "price",
    "EAN": "ean",
    "identifier": "ean",
    "Images": "images",
    "pricesByOption": "prices_by_option",
    "imagesByOption": "images_by_option",
}

MODEL_FIELDS = {
    "external_id",
    "name",
    "brand",
    "price",
    "ean",
    "images",
    "prices_by_option",
    "images_by_option",
}

JSON_FIELDS = {"images", "prices_by_option", "images_by_option"}

EMPTY_VALUES = ("", None, "N/A")


def clean_number(value) -> str:
    if value is None:
        return ""
    s = str(value).strip().replace(",", "")
    m = re.search(r"[-+]?\d*\.?\d+", s)
    return m.group(0) if m else ""


def cast_price(value):
    if value in EMPTY_VALUES:
        return None
    if isinstance(value, (int, float)):
        return round(float(value), 2)
    raw = clean_number(value)
    return round(float(raw), 2) if raw else None


def parse_json_field(field, value):
    """CSV cells carry JSON for nested fields; image lists may also be
    comma separated."""
    if not isinstance(value, str):
        return value
    text = value.strip()
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        if field == "images":
            return [v.strip() for v in text.split(",") if v.strip()]
        return None


def normalize_row(row: dict) -> dict:
    """Split a raw row into Component fields plus a ``specs`` dict."""
    data, specs = {}, {}
    for key, value in row.items():
        if key is None or value in EMPTY_VALUES:
            continue
        key = key.strip()
        field = COLUMN_ALIASES.get(key, key)
        if field in MODEL_FIELDS:
            if field == "price":
                value = cast_price(value)
            elif field in JSON_FIELDS:
                value = parse_json_field(field, value)
            elif field in ("external_id", "name", "brand", "ean"):
                value = str(value).strip()
            if value not in EMPTY_VALUES:
                data[field] = value
        else:
            specs[FIELD_ALIASES.get(key, key)] = value
    if not data.get("external_id") and data.get("name"):
        data["external_id"] = slugify(data["name"])
    data["specs"] = specs
    return data


def has_price(data: dict) -> bool:
    price = data.get("price")
    return price is not None and price > 0


def read_rows(path: Path, category):
    """Yield ``(category, row)`` pairs from a JSON or CSV catalog file."""
    if path.suffix.lower() == ".json":
        with open(path, encoding="utf-8") as f:
            payload = json.load(f)
        if isinstance(payload, dict):
            for cat, items in payload.items():
                if category and cat != category:
                    continue
                for item in items or []:
                    yield cat, item
        elif isinstance(payload, list):
            if not category:
                raise CommandError("--category is required for a JSON list")
            for item in payload:
                yield category, item
        else:
            raise CommandError("JSON catalog must be an object or a list")
        return
    if not category:
        raise CommandError("--category is required for CSV files")
    with open(path, newline="", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            yield category, row


class Command(BaseCommand):
    help = (
        "Import catalog components from a CSV file (one category) or a JSON "
        "file ({category: [...]} or a list with --category)."
    )

    def add_arguments(self, parser):
        parser.add_argument("--file", required=True, dest="path")
        parser.add_argument("--category")
        parser.add_argument("--dry-run", action="store_true")
        parser.add_argument("--require-price", action="store_true")

    def handle(self, *args, **options):
        path = Path(options["path"])
        category = (options.get("category") or "").lower() or None
        dry_run = options["dry_run"]
        require_price = options["require_price"]

        if not path.exists():
            raise CommandError(f"File {path} not found")
        if category and category not in CATEGORIES:
            raise CommandError(f"Unknown category {category}")

        count = created = updated = skipped = 0
        positions = {}

        for row_idx, (cat, row) in enumerate(
            read_rows(path, category), start=1
        ):
            if cat not in CATEGORIES:
                skipped += 1
                self.stdout.write(f"Row {row_idx} skipped: unknown category {cat}")
                continue
            if not isinstance(row, dict):
                skipped += 1
                self.stdout.write(f"Row {row_idx} skipped: not an object")
                continue

            data = normalize_row(row)

            if require_price and not has_price(data):
                skipped += 1
                self.stdout.write(f"Row {row_idx} skipped: missing/zero price")
                continue

            if not data.get("external_id") or not data.get("name"):
                skipped += 1
                self.stdout.write(f"Row {row_idx} skipped: missing id or name")
                continue

            data["position"] = positions.get(cat, 0)
            positions[cat] = data["position"] + 1
            external_id = data.pop("external_id")

            if dry_run:
                self.stdout.write(
                    f"[DRY-RUN] Row {row_idx} {cat}/{external_id}: {data}"
                )
            else:
                _, created_flag = Component.objects.update_or_create(
                    category=cat, external_id=external_id, defaults=data
                )
                if created_flag:
                    created += 1
                else:
                    updated += 1
            count += 1

        summary = (
            "Processed {} rows from {}: {} created, {} updated, {} skipped"
            .format(count, path.name, created, updated, skipped)
        )
        if dry_run:
            self.stdout.write(self.style.WARNING("[DRY-RUN] " + summary))
        else:
            self.stdout.write(self.style.SUCCESS(summary))
