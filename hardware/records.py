import re
from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional, Tuple, Union

REQUIRED_CATEGORIES = (
    "case",
    "motherboard",
    "cpu",
    "ram",
    "gpu",
    "storage",
    "psu",
    "cooling",
)

PERIPHERAL_CATEGORIES = (
    "keyboard",
    "mouse",
    "monitor",
    "headset",
    "speakers",
    "webcam",
    "microphone",
    "mousepad",
    "gamepad",
    "software",
    "os",
)

# Declaration order used when walking a component's own option fields.
OPTION_FIELDS = ("colour", "color", "size", "style", "storage", "type")

# Catalog/CMS spellings -> record field names
FIELD_ALIASES = {
    "ean": "identifier",
    "identifier": "identifier",
    "formFactor": "form_factor",
    "ramSupport": "ram_support",
    "maxRam": "max_ram",
    "maxGpuLength": "max_gpu_length",
    "maxCpuCoolerHeight": "max_cpu_cooler_height",
    "maxPsuLength": "max_psu_length",
    "tdpSupport": "tdp_support",
    "radiatorSize": "radiator_size",
    "pricesByOption": "prices_by_option",
    "imagesByOption": "images_by_option",
    "processorGeneration": "generation",
}

PriceOverride = Union[float, Dict[str, object]]


@dataclass(frozen=True)
class ComponentRecord:
    id: str
    category: str
    name: str
    price: Optional[float] = None
    brand: Optional[str] = None
    identifier: Optional[str] = None
    images: Tuple[str, ...] = ()
    options: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    prices_by_option: Dict[str, Dict[str, PriceOverride]] = field(
        default_factory=dict
    )
    images_by_option: Dict[str, Dict[str, List[str]]] = field(
        default_factory=dict
    )


@dataclass(frozen=True)
class CaseRecord(ComponentRecord):
    form_factor: Optional[str] = None
    compatibility: Optional[Tuple[str, ...]] = None
    max_gpu_length: Optional[float] = None
    max_cpu_cooler_height: Optional[float] = None
    max_psu_length: Optional[float] = None


@dataclass(frozen=True)
class MotherboardRecord(ComponentRecord):
    socket: Optional[str] = None
    chipset: Optional[str] = None
    form_factor: Optional[str] = None
    ram_support: Optional[Union[str, Tuple[str, ...]]] = None
    max_ram: Optional[float] = None
    compatibility: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class CPURecord(ComponentRecord):
    socket: Optional[str] = None
    generation: Optional[str] = None
    tdp: Optional[float] = None
    cores: Optional[int] = None
    threads: Optional[int] = None


@dataclass(frozen=True)
class RAMRecord(ComponentRecord):
    type: Optional[str] = None
    capacity: Optional[float] = None
    speed: Optional[str] = None


@dataclass(frozen=True)
class GPURecord(ComponentRecord):
    vram: Optional[float] = None
    power: Optional[float] = None
    length: Optional[float] = None


@dataclass(frozen=True)
class StorageRecord(ComponentRecord):
    capacity: Optional[float] = None
    interface: Optional[str] = None
    type: Optional[str] = None


@dataclass(frozen=True)
class PSURecord(ComponentRecord):
    wattage: Optional[float] = None
    length: Optional[float] = None
    efficiency: Optional[str] = None
    modular: Optional[str] = None


@dataclass(frozen=True)
class CoolingRecord(ComponentRecord):
    type: Optional[str] = None
    height: Optional[float] = None
    tdp_support: Optional[float] = None
    radiator_size: Optional[str] = None


@dataclass(frozen=True)
class PeripheralRecord(ComponentRecord):
    type: Optional[str] = None


RECORD_TYPES = {
    "case": CaseRecord,
    "motherboard": MotherboardRecord,
    "cpu": CPURecord,
    "ram": RAMRecord,
    "gpu": GPURecord,
    "storage": StorageRecord,
    "psu": PSURecord,
    "cooling": CoolingRecord,
}

NUMERIC_FIELDS = {
    "price",
    "max_gpu_length",
    "max_cpu_cooler_height",
    "max_psu_length",
    "max_ram",
    "tdp",
    "vram",
    "power",
    "length",
    "wattage",
    "height",
    "tdp_support",
    "capacity",
}

INT_FIELDS = {"cores", "threads"}

LIST_FIELDS = {"compatibility"}

Catalog = Dict[str, List[ComponentRecord]]


def record_type_for(category: str):
    return RECORD_TYPES.get(category, PeripheralRecord)


def to_number(value) -> Optional[float]:
    """Parse a catalog number, returning None when it is unknown.

    Accepts plain numbers and strings such as '320mm' or '1,000'.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    s = str(value).strip().replace(",", "")
    m = re.search(r"[-+]?\d*\.?\d+", s)
    if not m:
        return None
    return float(m.group(0))


def split_values(value) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(v).strip() for v in value if str(v).strip())
    return tuple(v.strip() for v in str(value).split(",") if v.strip())


def option_values(value) -> Optional[Tuple[str, ...]]:
    """Return the choices of a declared option field, or None.

    A field counts as an option when it holds more than one value, either
    as a list or as a comma separated string.
    """
    if isinstance(value, (list, tuple)):
        values = split_values(value)
        return values if len(values) > 1 else None
    if isinstance(value, str) and "," in value:
        return split_values(value)
    return None


def _scalar(value):
    if isinstance(value, (list, tuple)):
        return str(value[0]) if value else None
    if isinstance(value, str) and "," in value:
        parts = split_values(value)
        return parts[0] if parts else None
    return value


def _image_list(value) -> Tuple[str, ...]:
    images = []
    for img in value or ():
        if isinstance(img, dict):
            url = img.get("url") or img.get("src")
            if url:
                images.append(str(url))
        elif img:
            images.append(str(img))
    return tuple(images)


def record_from_dict(category: str, data: dict) -> ComponentRecord:
    """Build the typed record for ``category`` from a raw catalog dict.

    Unknown keys are dropped; absent numeric fields stay None.
    """
    record_cls = record_type_for(category)
    allowed = {f.name for f in fields(record_cls)}
    normalized = {}
    for key, value in (data or {}).items():
        name = FIELD_ALIASES.get(key, key)
        normalized[name] = value

    options = {}
    for opt in OPTION_FIELDS:
        values = option_values(normalized.get(opt))
        if values:
            options[opt] = values

    kwargs = {}
    for name in allowed:
        if name in ("id", "category", "name", "options"):
            continue
        if name not in normalized:
            continue
        value = normalized[name]
        if name == "images":
            kwargs[name] = _image_list(value)
        elif name in ("prices_by_option", "images_by_option"):
            kwargs[name] = dict(value or {})
        elif name in NUMERIC_FIELDS:
            kwargs[name] = to_number(value)
        elif name in INT_FIELDS:
            num = to_number(value)
            kwargs[name] = int(num) if num is not None else None
        elif name in LIST_FIELDS:
            kwargs[name] = (
                split_values(value) if value not in (None, "") else None
            )
        elif name == "ram_support" and isinstance(value, (list, tuple)):
            kwargs[name] = split_values(value)
        elif name in OPTION_FIELDS:
            scalar = _scalar(value)
            kwargs[name] = str(scalar) if scalar not in (None, "") else None
        elif value in ("", None):
            kwargs[name] = None
        else:
            kwargs[name] = str(value) if name != "ram_support" else value

    # Form factors are compared lower-case on the case side.
    if category == "case" and kwargs.get("compatibility"):
        kwargs["compatibility"] = tuple(
            v.lower() for v in kwargs["compatibility"]
        )

    return record_cls(
        id=str(normalized.get("id", "")),
        category=category,
        name=str(normalized.get("name") or ""),
        options=options,
        **kwargs,
    )


def build_catalog(raw: Dict[str, List[dict]]) -> Catalog:
    """Turn a ``{category: [dict, ...]}`` payload into a catalog."""
    return {
        category: [record_from_dict(category, item) for item in items or []]
        for category, items in (raw or {}).items()
    }


def find_component(
    catalog: Catalog, category: str, component_id
) -> Optional[ComponentRecord]:
    if not component_id:
        return None
    for component in catalog.get(category) or ():
        if component.id == str(component_id):
            return component
    return None


def display_name(component: Optional[ComponentRecord]) -> str:
    if component is None:
        return "<None>"
    return component.name or f"{component.category} #{component.id}"
