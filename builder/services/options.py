"""Option/price resolution for components with sub-option variants.

A component may override its base price, identifier (EAN) and images per
selected option value (colour, size, storage variant, ...).
"""
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from hardware.records import OPTION_FIELDS, ComponentRecord

# Order in which option keys may override price and identifier.
PRICE_PRECEDENCE = ("size", "storage", "colour", "color", "type", "style")

PLACEHOLDER_IMAGE = "/static/builder/img/placeholder-component.svg"
PLACEHOLDER_IMAGES = (PLACEHOLDER_IMAGE,) * 4

ALIASES = {"colour": "color", "color": "colour"}


@dataclass(frozen=True)
class ResolvedOption:
    price: Optional[float]
    identifier: Optional[str]
    images: Tuple[str, ...]


def _override_entry(overrides: Mapping, key: str, value: str):
    """Return the override entry for ``key=value``, trying the colour alias
    only when ``key`` itself has no override table."""
    table = overrides.get(key)
    if table is None and key in ALIASES:
        table = overrides.get(ALIASES[key])
    if not table or value not in table:
        return None
    return table[value]


def _entry_price(entry):
    if isinstance(entry, dict):
        return entry.get("price")
    return entry


def _entry_identifier(entry):
    if isinstance(entry, dict):
        return entry.get("identifier") or entry.get("ean")
    return None


def resolve_price(
    component: ComponentRecord, selected_options: Mapping[str, str]
) -> Tuple[Optional[float], Optional[str]]:
    overrides = component.prices_by_option or {}
    for key in PRICE_PRECEDENCE:
        value = (selected_options or {}).get(key)
        if not value or not isinstance(value, str):
            continue
        entry = _override_entry(overrides, key, value)
        if entry is None:
            continue
        price = _entry_price(entry)
        identifier = _entry_identifier(entry) or component.identifier
        return (
            float(price) if price is not None else component.price,
            identifier,
        )
    return component.price, component.identifier


def resolve_images(
    component: ComponentRecord, selected_options: Mapping[str, str]
) -> Tuple[str, ...]:
    overrides = component.images_by_option or {}
    for key in declared_option_keys(component):
        value = (selected_options or {}).get(key)
        if not value or not isinstance(value, str):
            continue
        for lookup in (key, ALIASES.get(key)):
            if not lookup:
                continue
            images = (overrides.get(lookup) or {}).get(value)
            if images:
                return tuple(images)
    if component.images:
        return tuple(component.images)
    return PLACEHOLDER_IMAGES


def resolve(
    component: ComponentRecord, selected_options: Mapping[str, str] = None
) -> ResolvedOption:
    selected_options = selected_options or {}
    price, identifier = resolve_price(component, selected_options)
    return ResolvedOption(
        price=price,
        identifier=identifier,
        images=resolve_images(component, selected_options),
    )


def declared_option_keys(component: ComponentRecord) -> List[str]:
    keys = [k for k in OPTION_FIELDS if k in (component.options or {})]
    # colour wins over color when both are declared
    if "colour" in keys and "color" in keys:
        keys.remove("color")
    return keys


def available_options(component: ComponentRecord) -> Dict[str, Tuple[str, ...]]:
    return {k: component.options[k] for k in declared_option_keys(component)}


def default_options(component: ComponentRecord) -> Dict[str, str]:
    return {k: v[0] for k, v in available_options(component).items() if v}


def has_multiple_prices(component: ComponentRecord) -> bool:
    prices = set()
    for table in (component.prices_by_option or {}).values():
        if not isinstance(table, dict):
            continue
        for entry in table.values():
            price = _entry_price(entry)
            if isinstance(price, (int, float)):
                prices.add(float(price))
    return len(prices) > 1
