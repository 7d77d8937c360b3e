"""Catalog provider backed by the ``Component`` table.

The decision layer never queries the database itself; callers load a
catalog snapshot here and pass it explicitly.
"""
import logging
from typing import Iterable, List, Optional

from .models import Component
from .records import (
    PERIPHERAL_CATEGORIES,
    REQUIRED_CATEGORIES,
    Catalog,
    ComponentRecord,
)

logger = logging.getLogger(__name__)


def fetch_components(category: str) -> List[ComponentRecord]:
    records = [
        c.to_record() for c in Component.objects.filter(category=category)
    ]
    logger.debug("Fetched %d %s records", len(records), category)
    return records


def load_catalog(categories: Optional[Iterable[str]] = None) -> Catalog:
    wanted = (
        list(categories)
        if categories is not None
        else list(REQUIRED_CATEGORIES + PERIPHERAL_CATEGORIES)
    )
    catalog = {category: [] for category in wanted}
    for c in Component.objects.filter(category__in=wanted):
        catalog[c.category].append(c.to_record())
    return catalog
