import logging
from typing import Dict, Iterable, Mapping, Optional

from hardware.records import Catalog, find_component

from .compatibility import estimate_power
from .options import resolve_price

logger = logging.getLogger(__name__)


def component_price(
    catalog: Catalog,
    category: str,
    component_id,
    selected_options: Optional[Mapping[str, str]] = None,
) -> float:
    component = find_component(catalog, category, component_id)
    if component is None:
        return 0.0
    price, _ = resolve_price(component, selected_options or {})
    return float(price or 0)


def total_price(
    selection: Mapping[str, str],
    peripherals: Mapping[str, Iterable[str]],
    catalog: Catalog,
    selected_options: Optional[Dict[str, Mapping[str, str]]] = None,
) -> float:
    """Sum of resolved prices for the main build plus every peripheral.

    ``selected_options`` maps a category to that component's chosen option
    values; unknown ids and unpriced components add nothing.
    """
    selected_options = selected_options or {}
    total = 0.0
    for category, component_id in (selection or {}).items():
        total += component_price(
            catalog, category, component_id, selected_options.get(category)
        )
    for category, ids in (peripherals or {}).items():
        for component_id in ids or ():
            total += component_price(
                catalog, category, component_id, selected_options.get(category)
            )
    logger.debug("Total price %.2f", total)
    return round(total, 2)


def estimated_power_draw(selection: Mapping[str, str], catalog: Catalog) -> float:
    selection = selection or {}
    cpu = find_component(catalog, "cpu", selection.get("cpu"))
    gpu = find_component(catalog, "gpu", selection.get("gpu"))
    return estimate_power(cpu, gpu)
