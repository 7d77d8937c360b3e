import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping

from hardware.records import REQUIRED_CATEGORIES

logger = logging.getLogger(__name__)

SelectedComponentIds = Dict[str, str]
SelectedPeripherals = Dict[str, List[str]]


class InvalidAction(ValueError):
    pass


@dataclass(frozen=True)
class Select:
    category: str
    id: str


@dataclass(frozen=True)
class Remove:
    category: str


@dataclass(frozen=True)
class Reset:
    pass


@dataclass(frozen=True)
class SetAll:
    payload: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Import:
    payload: Mapping[str, str] = field(default_factory=dict)


def dispatch(state: Mapping[str, str], action) -> SelectedComponentIds:
    """Apply ``action`` to ``state`` and return the new selection.

    The incoming state is never mutated.
    """
    state = dict(state or {})
    if isinstance(action, Select):
        state[action.category] = action.id
        return state
    if isinstance(action, Remove):
        state.pop(action.category, None)
        return state
    if isinstance(action, Reset):
        return {}
    if isinstance(action, SetAll):
        return dict(action.payload or {})
    if isinstance(action, Import):
        state.update(action.payload or {})
        return {k: v for k, v in state.items() if v}
    logger.debug("Ignoring unknown action %r", action)
    return state


def selected_count(state: Mapping[str, str]) -> int:
    return len(state or {})


def _payload(data) -> dict:
    """Only main categories may appear, each mapped to a string id (or a
    falsy value, which IMPORT strips)."""
    payload = data.get("payload") or {}
    if not isinstance(payload, dict):
        raise InvalidAction("payload must be an object")
    for category, component_id in payload.items():
        if category not in REQUIRED_CATEGORIES:
            raise InvalidAction(f"Unknown component type: {category}")
        if component_id and not isinstance(component_id, str):
            raise InvalidAction(f"Component id for {category} must be a string")
    return payload


def action_from_payload(data) -> object:
    """Parse a JSON action such as ``{"type": "SELECT", "category": ..., "id": ...}``."""
    if not isinstance(data, dict):
        raise InvalidAction("action must be an object")
    kind = str(data.get("type") or "").upper()
    if kind == "SELECT":
        category, component_id = data.get("category"), data.get("id")
        if not category or not component_id:
            raise InvalidAction("SELECT needs category and id")
        return Select(str(category), str(component_id))
    if kind == "REMOVE":
        if not data.get("category"):
            raise InvalidAction("REMOVE needs category")
        return Remove(str(data["category"]))
    if kind == "RESET":
        return Reset()
    if kind == "SET_ALL":
        return SetAll(_payload(data))
    if kind == "IMPORT":
        return Import(_payload(data))
    raise InvalidAction(f"Unknown action type: {kind or '<missing>'}")


def toggle_peripheral(
    peripherals: Mapping[str, List[str]], category: str, component_id: str
) -> SelectedPeripherals:
    """Add ``component_id`` to a peripheral category, or remove it if present."""
    result = {k: list(v) for k, v in (peripherals or {}).items()}
    ids = result.get(category, [])
    if component_id in ids:
        ids = [i for i in ids if i != component_id]
    else:
        ids = ids + [component_id]
    if ids:
        result[category] = ids
    else:
        result.pop(category, None)
    return result
