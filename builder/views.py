import json
import logging
from dataclasses import asdict

from django.conf import settings
from django.http import HttpResponseBadRequest, JsonResponse
from django.views.decorators.http import require_GET, require_POST

from hardware.catalog import load_catalog
from hardware.records import (
    PERIPHERAL_CATEGORIES,
    REQUIRED_CATEGORIES,
    find_component,
)

from .forms import FinderForm
from .services import options as option_service
from .services.compatibility import (
    filter_choices,
    incompatibility_details,
    validate,
)
from .services.finder import load_price_tables, load_templates, rank
from .services.selection import (
    InvalidAction,
    Remove,
    Reset,
    Select,
    SetAll,
    action_from_payload,
    dispatch,
    selected_count,
    toggle_peripheral,
)
from .services.totals import estimated_power_draw, total_price

logger = logging.getLogger(__name__)

SELECTION_KEY = "selected_components"
PERIPHERALS_KEY = "selected_peripherals"
OPTIONS_KEY = "selected_options"

ALL_CATEGORIES = REQUIRED_CATEGORIES + PERIPHERAL_CATEGORIES


def _session_state(request):
    return (
        request.session.get(SELECTION_KEY, {}) or {},
        request.session.get(PERIPHERALS_KEY, {}) or {},
        request.session.get(OPTIONS_KEY, {}) or {},
    )


def _json_body(request):
    try:
        return json.loads(request.body.decode("utf-8") or "{}")
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None


def _valid_options(opts) -> bool:
    return isinstance(opts, dict) and all(
        isinstance(k, str) and isinstance(v, str) for k, v in opts.items()
    )


def serialize_component(component, selected_options=None):
    resolved = option_service.resolve(component, selected_options or {})
    data = asdict(component)
    data.update(
        {
            "price": resolved.price,
            "base_price": component.price,
            "identifier": resolved.identifier,
            "images": list(resolved.images),
            "available_options": option_service.available_options(component),
            "has_multiple_prices": option_service.has_multiple_prices(
                component
            ),
        }
    )
    return data


@require_GET
def component_choices(request, category):
    category = category.lower()
    if category not in ALL_CATEGORIES:
        return HttpResponseBadRequest("Unknown component type")
    selection, _, selected_options = _session_state(request)
    catalog = load_catalog()
    # the category being chosen never constrains itself
    others = {k: v for k, v in selection.items() if k != category}
    choices = filter_choices(category, others, catalog)
    return JsonResponse(
        {
            "category": category,
            "components": [
                serialize_component(c, selected_options.get(category))
                for c in choices
            ],
            "incompatible": incompatibility_details(
                category, others, catalog
            ),
            "total": len(catalog.get(category) or []),
        }
    )


@require_POST
def update_selection(request):
    data = _json_body(request)
    if data is None:
        return HttpResponseBadRequest("Malformed JSON body")
    try:
        action = action_from_payload(data)
    except InvalidAction as exc:
        return HttpResponseBadRequest(str(exc))
    if isinstance(action, (Select, Remove)) and (
        action.category not in REQUIRED_CATEGORIES
    ):
        return HttpResponseBadRequest("Unknown component type")

    opts = data.get("options") if isinstance(action, Select) else None
    if opts is not None and not _valid_options(opts):
        return HttpResponseBadRequest("options must map names to strings")

    selection, _, selected_options = _session_state(request)
    selection = dispatch(selection, action)
    selected_options = dict(selected_options)
    if isinstance(action, Select):
        if opts:
            selected_options[action.category] = opts
        else:
            selected_options.pop(action.category, None)
    elif isinstance(action, Remove):
        selected_options.pop(action.category, None)
    elif isinstance(action, (Reset, SetAll)):
        selected_options = {}
    else:
        selected_options = {
            k: v for k, v in selected_options.items() if k in selection
        }

    request.session[SELECTION_KEY] = selection
    request.session[OPTIONS_KEY] = selected_options
    logger.info("Selection updated: %d components", selected_count(selection))
    return JsonResponse(
        {"selection": selection, "count": selected_count(selection)}
    )


@require_POST
def toggle_peripheral_view(request):
    data = _json_body(request)
    if not isinstance(data, dict):
        return HttpResponseBadRequest("Malformed JSON body")
    category = str(data.get("category") or "").lower()
    component_id = data.get("id")
    if category not in PERIPHERAL_CATEGORIES or not component_id:
        return HttpResponseBadRequest("Unknown peripheral type or missing id")
    _, peripherals, _ = _session_state(request)
    peripherals = toggle_peripheral(peripherals, category, str(component_id))
    request.session[PERIPHERALS_KEY] = peripherals
    return JsonResponse({"peripherals": peripherals})


@require_GET
def build_summary(request):
    selection, peripherals, selected_options = _session_state(request)
    catalog = load_catalog()
    issues = validate(selection, catalog)
    return JsonResponse(
        {
            "selection": selection,
            "peripherals": peripherals,
            "count": selected_count(selection),
            "complete": all(c in selection for c in REQUIRED_CATEGORIES),
            "issues": [asdict(i) for i in issues],
            "total_price": total_price(
                selection, peripherals, catalog, selected_options
            ),
            "estimated_power": estimated_power_draw(selection, catalog),
        }
    )


@require_GET
def resolve_option(request, category, component_id):
    category = category.lower()
    if category not in ALL_CATEGORIES:
        return HttpResponseBadRequest("Unknown component type")
    catalog = load_catalog([category])
    component = find_component(catalog, category, component_id)
    if component is None:
        return HttpResponseBadRequest("Component not found")
    selected = {k: v for k, v in request.GET.items() if v}
    resolved = option_service.resolve(component, selected)
    return JsonResponse(
        {
            "id": component.id,
            "category": category,
            "price": resolved.price,
            "identifier": resolved.identifier,
            "images": list(resolved.images),
        }
    )


@require_POST
def recommend_builds(request):
    form = FinderForm(request.POST)
    if not form.is_valid():
        return JsonResponse({"errors": form.errors.get_json_data()}, status=400)
    profile = form.to_profile()
    templates = load_templates(getattr(settings, "BUILDER_TEMPLATES_PATH", None))
    tables = load_price_tables(
        getattr(settings, "BUILDER_PRICE_TABLES_PATH", None)
    )
    builds = rank(profile, templates, tables)
    return JsonResponse(
        {
            "profile": asdict(profile),
            "builds": [b.to_dict() for b in builds],
        }
    )
