import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from hardware.records import (
    Catalog,
    ComponentRecord,
    display_name,
    find_component,
)

logger = logging.getLogger(__name__)

CRITICAL = "critical"
WARNING = "warning"

DEFAULT_CPU_TDP = 65
DEFAULT_GPU_POWER = 150
BASE_SYSTEM_POWER = 150  # board, drives, fans and peripherals
PSU_HEADROOM = 1.2


@dataclass(frozen=True)
class CompatibilityIssue:
    severity: str
    title: str
    description: str
    recommendation: str
    affected_components: List[str] = field(default_factory=list)


def round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


# --- Predicates (True means the pair conflicts) ---
def _known(*values) -> bool:
    return all(v is not None and v != "" for v in values)


def socket_conflict(cpu, mobo) -> bool:
    if not _known(cpu.socket, mobo.socket):
        return False
    return cpu.socket != mobo.socket


def generation_conflict(cpu, mobo) -> bool:
    if not cpu.generation or mobo.compatibility is None:
        return False
    return cpu.generation not in mobo.compatibility


def ram_supported(ram, mobo) -> bool:
    """List support is checked by membership, string support by substring.
    Unknown support data (or an unknown RAM type) counts as compatible."""
    support = mobo.ram_support
    if not ram.type or support is None:
        return True
    if isinstance(support, (list, tuple)):
        return ram.type in support
    return ram.type in str(support)


def ram_conflict(ram, mobo) -> bool:
    return not ram_supported(ram, mobo)


def form_factor_conflict(mobo, case) -> bool:
    if case.compatibility is None or not mobo.form_factor:
        return False
    return mobo.form_factor.lower() not in case.compatibility


def gpu_clearance_conflict(gpu, case) -> bool:
    if not _known(gpu.length, case.max_gpu_length):
        return False
    return gpu.length > case.max_gpu_length


def cooler_height_conflict(cooling, case) -> bool:
    if cooling.type != "Air":
        return False
    if not _known(cooling.height, case.max_cpu_cooler_height):
        return False
    return cooling.height > case.max_cpu_cooler_height


def cooler_tdp_conflict(cpu, cooling) -> bool:
    if not _known(cpu.tdp, cooling.tdp_support):
        return False
    return cpu.tdp > cooling.tdp_support


def psu_length_conflict(psu, case) -> bool:
    if not _known(psu.length, case.max_psu_length):
        return False
    return psu.length > case.max_psu_length


# --- Issue builders ---
def _socket_issue(cpu, mobo):
    return CompatibilityIssue(
        severity=CRITICAL,
        title="CPU & Motherboard Socket Mismatch",
        description=(
            f"The {cpu.name} uses {cpu.socket} socket, but the {mobo.name} "
            f"has {mobo.socket} socket. These components are not compatible."
        ),
        recommendation=(
            "Please select a CPU and motherboard with matching sockets."
        ),
        affected_components=[cpu.name, mobo.name],
    )


def _generation_issue(cpu, mobo):
    return CompatibilityIssue(
        severity=WARNING,
        title="CPU Generation Compatibility",
        description=(
            f"The {mobo.name} may not fully support the {cpu.name} without "
            "a BIOS update."
        ),
        recommendation=(
            "Ensure the motherboard BIOS is updated to support this CPU "
            "generation."
        ),
        affected_components=[cpu.name, mobo.name],
    )


def _format_support(support) -> str:
    if isinstance(support, (list, tuple)):
        return ", ".join(support)
    return str(support)


def _ram_issue(ram, mobo):
    return CompatibilityIssue(
        severity=CRITICAL,
        title="RAM Type Incompatibility",
        description=(
            f"The {mobo.name} supports {_format_support(mobo.ram_support)}, "
            f"but you've selected {ram.type} memory."
        ),
        recommendation=(
            "Select memory that matches the motherboard's supported type."
        ),
        affected_components=[ram.name, mobo.name],
    )


def _form_factor_issue(mobo, case):
    return CompatibilityIssue(
        severity=CRITICAL,
        title="Motherboard & Case Size Mismatch",
        description=(
            f"The {mobo.name} ({mobo.form_factor}) will not fit in the "
            f"{case.name} case."
        ),
        recommendation=(
            "Select a case that supports your motherboard form factor."
        ),
        affected_components=[mobo.name, case.name],
    )


def _gpu_clearance_issue(gpu, case):
    return CompatibilityIssue(
        severity=CRITICAL,
        title="GPU Too Large for Case",
        description=(
            f"The {gpu.name} ({gpu.length:g}mm) exceeds the {case.name} "
            f"maximum GPU clearance ({case.max_gpu_length:g}mm)."
        ),
        recommendation="Select a larger case or a more compact graphics card.",
        affected_components=[gpu.name, case.name],
    )


def _cooler_height_issue(cooling, case):
    return CompatibilityIssue(
        severity=CRITICAL,
        title="CPU Cooler Too Tall",
        description=(
            f"The {cooling.name} ({cooling.height:g}mm) exceeds the "
            f"{case.name} maximum CPU cooler height "
            f"({case.max_cpu_cooler_height:g}mm)."
        ),
        recommendation="Select a lower profile cooler or a larger case.",
        affected_components=[cooling.name, case.name],
    )


def _cooler_tdp_issue(cpu, cooling):
    return CompatibilityIssue(
        severity=WARNING,
        title="CPU Cooler May Be Inadequate",
        description=(
            f"The {cpu.name} has a {cpu.tdp:g}W TDP, but the {cooling.name} "
            f"is rated for {cooling.tdp_support:g}W."
        ),
        recommendation=(
            "Consider a more powerful cooling solution for optimal "
            "temperatures."
        ),
        affected_components=[cpu.name, cooling.name],
    )


def _psu_length_issue(psu, case):
    return CompatibilityIssue(
        severity=CRITICAL,
        title="PSU Too Long for Case",
        description=(
            f"The {psu.name} ({psu.length:g}mm) exceeds the {case.name} "
            f"maximum PSU length ({case.max_psu_length:g}mm)."
        ),
        recommendation="Select a more compact power supply or a larger case.",
        affected_components=[psu.name, case.name],
    )


# --- Rejection reasons shown next to filtered-out candidates ---
def _socket_reason(cpu, mobo):
    return (
        f"Socket mismatch: {cpu.socket} CPU cannot fit in {mobo.socket} "
        "motherboard socket"
    )


def _ram_reason(ram, mobo):
    return (
        f"Memory type mismatch: {ram.type} RAM not supported by motherboard "
        f"(supports: {_format_support(mobo.ram_support)})"
    )


def _form_factor_reason(mobo, case):
    return (
        f"Form factor mismatch: {mobo.form_factor} motherboard won't fit in "
        f"{case.name} (supports: {', '.join(case.compatibility or ())})"
    )


def _gpu_clearance_reason(gpu, case):
    return (
        f"GPU clearance: {gpu.length:g}mm GPU too long for "
        f"{case.max_gpu_length:g}mm case clearance"
    )


def _cooler_height_reason(cooling, case):
    return (
        f"Cooler clearance: {cooling.height:g}mm cooler too tall for "
        f"{case.max_cpu_cooler_height:g}mm case clearance"
    )


def _psu_length_reason(psu, case):
    return (
        f"PSU clearance: {psu.length:g}mm PSU too long for "
        f"{case.max_psu_length:g}mm case clearance"
    )


@dataclass(frozen=True)
class PairRule:
    """A constraint between two categories, usable from either side."""

    key: str
    categories: Tuple[str, str]
    severity: str
    conflict: Callable[[ComponentRecord, ComponentRecord], bool]
    issue: Callable[[ComponentRecord, ComponentRecord], CompatibilityIssue]
    reason: Optional[Callable[[ComponentRecord, ComponentRecord], str]] = None

    def check(self, first, second) -> Optional[CompatibilityIssue]:
        if first is None or second is None:
            return None
        if self.conflict(first, second):
            return self.issue(first, second)
        return None


SOCKET_RULE = PairRule(
    "socket", ("cpu", "motherboard"), CRITICAL,
    socket_conflict, _socket_issue, _socket_reason,
)
GENERATION_RULE = PairRule(
    "generation", ("cpu", "motherboard"), WARNING,
    generation_conflict, _generation_issue,
)
RAM_RULE = PairRule(
    "ram_type", ("ram", "motherboard"), CRITICAL,
    ram_conflict, _ram_issue, _ram_reason,
)
FORM_FACTOR_RULE = PairRule(
    "form_factor", ("motherboard", "case"), CRITICAL,
    form_factor_conflict, _form_factor_issue, _form_factor_reason,
)
GPU_CLEARANCE_RULE = PairRule(
    "gpu_clearance", ("gpu", "case"), CRITICAL,
    gpu_clearance_conflict, _gpu_clearance_issue, _gpu_clearance_reason,
)
COOLER_HEIGHT_RULE = PairRule(
    "cooler_height", ("cooling", "case"), CRITICAL,
    cooler_height_conflict, _cooler_height_issue, _cooler_height_reason,
)
COOLER_TDP_RULE = PairRule(
    "cooler_tdp", ("cpu", "cooling"), WARNING,
    cooler_tdp_conflict, _cooler_tdp_issue,
)
PSU_LENGTH_RULE = PairRule(
    "psu_length", ("psu", "case"), CRITICAL,
    psu_length_conflict, _psu_length_issue, _psu_length_reason,
)

# Hard constraints used to steer selection before the fact.
FILTER_RULES = (
    SOCKET_RULE,
    RAM_RULE,
    FORM_FACTOR_RULE,
    GPU_CLEARANCE_RULE,
    COOLER_HEIGHT_RULE,
    PSU_LENGTH_RULE,
)


def estimate_power(cpu, gpu) -> float:
    """Estimated draw of a cpu/gpu pair plus the fixed system baseline.
    A missing component contributes nothing; a missing or non-positive
    value uses the documented default."""
    total = BASE_SYSTEM_POWER
    if cpu is not None:
        total += cpu.tdp if cpu.tdp and cpu.tdp > 0 else DEFAULT_CPU_TDP
    if gpu is not None:
        total += gpu.power if gpu.power and gpu.power > 0 else DEFAULT_GPU_POWER
    return total


def psu_wattage_issue(cpu, gpu, psu) -> Optional[CompatibilityIssue]:
    if cpu is None or gpu is None or psu is None or psu.wattage is None:
        return None
    estimated = estimate_power(cpu, gpu)
    recommended = round_half_up(estimated * PSU_HEADROOM)
    if psu.wattage >= recommended:
        return None
    return CompatibilityIssue(
        severity=WARNING,
        title="Insufficient PSU Wattage",
        description=(
            f"Your system may consume up to {round_half_up(estimated)}W, but "
            f"the {psu.name} only provides {psu.wattage:g}W. We recommend "
            f"{recommended}W for optimal performance."
        ),
        recommendation=(
            "Consider upgrading to a higher wattage power supply for better "
            "efficiency and headroom."
        ),
        affected_components=[cpu.name, gpu.name, psu.name],
    )


def selected_components(
    selection: Mapping[str, str], catalog: Catalog
) -> Dict[str, ComponentRecord]:
    """Resolve selected ids; unknown ids are treated as unselected."""
    resolved = {}
    for category, component_id in (selection or {}).items():
        component = find_component(catalog, category, component_id)
        if component is not None:
            resolved[category] = component
        elif component_id:
            logger.debug(
                "Selected %s id=%s not in catalog; skipping",
                category,
                component_id,
            )
    return resolved


def validate(
    selection: Mapping[str, str], catalog: Catalog
) -> List[CompatibilityIssue]:
    parts = selected_components(selection, catalog)

    def pair(rule):
        a, b = rule.categories
        return rule.check(parts.get(a), parts.get(b))

    checks = [
        lambda: pair(SOCKET_RULE),
        lambda: pair(GENERATION_RULE),
        lambda: pair(RAM_RULE),
        lambda: pair(FORM_FACTOR_RULE),
        lambda: pair(GPU_CLEARANCE_RULE),
        lambda: psu_wattage_issue(
            parts.get("cpu"), parts.get("gpu"), parts.get("psu")
        ),
        lambda: pair(COOLER_HEIGHT_RULE),
        lambda: pair(COOLER_TDP_RULE),
        lambda: pair(PSU_LENGTH_RULE),
    ]
    issues = []
    for check in checks:
        issue = check()
        if issue is not None:
            issues.append(issue)
    return issues


def _candidate_conflicts(
    category: str, candidate: ComponentRecord, parts: Dict[str, ComponentRecord]
) -> List[Tuple[PairRule, ComponentRecord, ComponentRecord]]:
    conflicts = []
    for rule in FILTER_RULES:
        first, second = rule.categories
        if category == first:
            other = parts.get(second)
            pair = (candidate, other)
        elif category == second:
            other = parts.get(first)
            pair = (other, candidate)
        else:
            continue
        if other is None:
            continue
        if rule.conflict(*pair):
            conflicts.append((rule, pair[0], pair[1]))
    return conflicts


def filter_choices(
    category: str, selection: Mapping[str, str], catalog: Catalog
) -> List[ComponentRecord]:
    candidates = list(catalog.get(category) or [])
    if not selection:
        return candidates
    parts = selected_components(selection, catalog)
    kept = []
    for candidate in candidates:
        conflicts = _candidate_conflicts(category, candidate, parts)
        if conflicts:
            logger.debug(
                "Rejecting %s=%s: %s",
                category,
                display_name(candidate),
                ", ".join(rule.key for rule, _, _ in conflicts),
            )
            continue
        kept.append(candidate)
    return kept


def incompatibility_details(
    category: str, selection: Mapping[str, str], catalog: Catalog
) -> List[dict]:
    """Explain why each filtered-out candidate of ``category`` was rejected."""
    if not selection:
        return []
    parts = selected_components(selection, catalog)
    details = []
    for candidate in catalog.get(category) or []:
        conflicts = _candidate_conflicts(category, candidate, parts)
        if not conflicts:
            continue
        details.append(
            {
                "id": candidate.id,
                "name": candidate.name,
                "issues": [
                    rule.reason(first, second)
                    for rule, first, second in conflicts
                ],
            }
        )
    return details
