"""Build finder: scores hand-authored build templates against a user profile.

Templates and price tables are plain data loaded from JSON, so ``rank`` is
a pure function of ``(profile, templates, price_tables)``.
"""
import json
import logging
import math
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .compatibility import round_half_up

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent.parent / "data"
DEFAULT_TEMPLATES_PATH = DATA_DIR / "build_templates.json"
DEFAULT_PRICE_TABLES_PATH = DATA_DIR / "price_tables.json"

PRICED_PARTS = ("cpu", "gpu", "ram", "storage", "cooling")

DEFAULT_BUDGET = 1500
DEFAULT_PURPOSE = "gaming"

BASE_WEIGHTS = {
    "budget": 0.30,
    "use_case": 0.25,
    "performance": 0.20,
    "value": 0.15,
    "future_proof": 0.10,
}
WEIGHT_BOOST = 0.10
VALUE_BUDGET_THRESHOLD = 1500

# (minimum budget ratio, score), checked top-down
BUDGET_STEPS = ((1.1, 100), (0.95, 90), (0.8, 70), (0.6, 40))
BUDGET_FLOOR_SCORE = 10

USE_CASE_MATCH_POINTS = 50
USE_CASE_MAX = 100

RANK_LABELS = ("Best Match", "Great Value", "Alternative Option")
TOP_N = 3

PURPOSE_CHOICES = [
    ("gaming", "Gaming"),
    ("creative", "Creative Work"),
    ("content_creation", "Content Creation"),
    ("professional", "Professional"),
    ("development", "Development"),
    ("home", "Home & Office"),
]
GAMING_DETAIL_CHOICES = [
    ("1080p_budget", "1080p Gaming"),
    ("1440p_high", "1440p High Refresh"),
    ("4k_ultra", "4K Ultra"),
    ("competitive", "Competitive / eSports"),
]
CREATIVE_DETAIL_CHOICES = [
    ("video_editing", "Video Editing"),
    ("3d_rendering", "3D Rendering"),
    ("streaming", "Streaming"),
    ("photo_editing", "Photo Editing"),
]
CONTENT_CREATION_DETAIL_CHOICES = [
    ("streaming", "Streaming"),
    ("youtube", "YouTube"),
    ("podcasting", "Podcasting"),
    ("social_media", "Social Media"),
]
PERFORMANCE_AMBITION_CHOICES = [
    ("maximum", "Maximum"),
    ("high", "High"),
    ("balanced", "Balanced"),
    ("efficient", "Efficient"),
]


@dataclass(frozen=True)
class UserProfile:
    budget: float = DEFAULT_BUDGET
    purpose: str = DEFAULT_PURPOSE
    gaming_detail: Optional[str] = None
    creative_detail: Optional[str] = None
    content_creation_detail: Optional[str] = None
    performance_ambition: Optional[str] = None

    @classmethod
    def from_answers(cls, answers: dict) -> "UserProfile":
        """Build a profile from questionnaire answers, applying defaults."""
        answers = answers or {}
        return cls(
            budget=float(answers.get("budget") or DEFAULT_BUDGET),
            purpose=answers.get("purpose") or DEFAULT_PURPOSE,
            gaming_detail=answers.get("gaming_detail") or None,
            creative_detail=answers.get("creative_detail") or None,
            content_creation_detail=(
                answers.get("content_creation_detail") or None
            ),
            performance_ambition=answers.get("performance_ambition") or None,
        )

    def details(self) -> List[str]:
        return [
            d
            for d in (
                self.purpose,
                self.gaming_detail,
                self.creative_detail,
                self.content_creation_detail,
            )
            if d
        ]


@dataclass(frozen=True)
class BuildTemplate:
    name: str
    base_price: float
    category: str
    specs: Dict[str, str]
    target_use_case: Tuple[str, ...]
    performance_score: int
    value_score: int
    future_proof_score: int
    power_efficiency: int
    description: str = ""
    features: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "BuildTemplate":
        return cls(
            name=data["name"],
            base_price=float(data.get("basePrice", 0)),
            category=data.get("category", ""),
            description=data.get("description", ""),
            specs=dict(data.get("specs") or {}),
            features=tuple(data.get("features") or ()),
            target_use_case=tuple(data.get("targetUseCase") or ()),
            performance_score=int(data.get("performanceScore", 0)),
            value_score=int(data.get("valueScore", 0)),
            future_proof_score=int(data.get("futureProofScore", 0)),
            power_efficiency=int(data.get("powerEfficiency", 0)),
        )


@dataclass(frozen=True)
class PriceEntry:
    name: str
    price: float
    tier: str = ""


@dataclass(frozen=True)
class FallbackRule:
    keywords: Tuple[str, ...]
    price: float

    def matches(self, spec: str) -> bool:
        return all(k in spec for k in self.keywords)


@dataclass(frozen=True)
class PriceTables:
    lookup: Dict[str, Tuple[PriceEntry, ...]]
    fallback_rules: Dict[str, Tuple[FallbackRule, ...]]
    fallback_defaults: Dict[str, float]
    fixed: Dict[str, float]

    @classmethod
    def from_dict(cls, data: dict) -> "PriceTables":
        lookup = {
            part: tuple(
                PriceEntry(
                    name=e["name"],
                    price=float(e["price"]),
                    tier=e.get("tier", ""),
                )
                for e in entries
            )
            for part, entries in (data.get("lookup") or {}).items()
        }
        rules, defaults = {}, {}
        for part, table in (data.get("fallback") or {}).items():
            rules[part] = tuple(
                FallbackRule(tuple(r["keywords"]), float(r["price"]))
                for r in table.get("rules") or ()
            )
            defaults[part] = float(table.get("default", 0))
        fixed = {k: float(v) for k, v in (data.get("fixed") or {}).items()}
        return cls(lookup, rules, defaults, fixed)


@dataclass
class ScoredBuild:
    template: BuildTemplate
    score: int
    accurate_price: int
    adjusted_price: float
    budget_score: int
    use_case_score: int
    label: str = ""
    unmatched_specs: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = asdict(self.template)
        data.update(
            {
                "score": self.score,
                "price": self.accurate_price,
                "accurate_price": self.accurate_price,
                "adjusted_price": self.adjusted_price,
                "budget_score": self.budget_score,
                "use_case_score": self.use_case_score,
                "label": self.label,
                "unmatched_specs": list(self.unmatched_specs),
            }
        )
        return data


# --- Loading ---
def _read_json(path):
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)


def load_templates(path=None) -> List[BuildTemplate]:
    path = Path(path) if path else DEFAULT_TEMPLATES_PATH
    templates = [BuildTemplate.from_dict(d) for d in _read_json(path)]
    logger.debug("Loaded %d build templates from %s", len(templates), path)
    return templates


def load_price_tables(path=None) -> PriceTables:
    path = Path(path) if path else DEFAULT_PRICE_TABLES_PATH
    return PriceTables.from_dict(_read_json(path))


# --- Pricing ---
def _first_token(text: str) -> str:
    return text.lower().split(" ")[0]


def match_price(part: str, spec: str, tables: PriceTables) -> Optional[PriceEntry]:
    """First lookup entry where either name contains the other's first word.

    Comparison is case-insensitive in both directions. This is a loose
    heuristic; two entries sharing a leading word always resolve to the
    earlier one.
    """
    spec_lower = spec.lower()
    for entry in tables.lookup.get(part, ()):
        name_lower = entry.name.lower()
        if _first_token(entry.name) in spec_lower or (
            _first_token(spec) in name_lower
        ):
            return entry
    return None


def fallback_price(part: str, spec: str, tables: PriceTables) -> float:
    for rule in tables.fallback_rules.get(part, ()):
        if rule.matches(spec):
            return rule.price
    return tables.fallback_defaults.get(part, 0.0)


def calculate_accurate_price(
    specs: Dict[str, str], tables: PriceTables
) -> Tuple[int, List[str]]:
    """Return ``(accurate_price, unmatched_specs)`` for a template's specs."""
    total = 0.0
    unmatched = []
    for part in PRICED_PARTS:
        spec = (specs or {}).get(part)
        if not spec:
            unmatched.append(part)
            continue
        entry = match_price(part, spec, tables)
        if entry is not None:
            total += entry.price
            continue
        price = fallback_price(part, spec, tables)
        logger.debug("No %s lookup match for %r; fallback %.2f", part, spec, price)
        unmatched.append(part)
        total += price
    total += sum(tables.fixed.values())
    return round_half_up(total), unmatched


# --- Scoring ---
def budget_score(budget: float, accurate_price: float) -> int:
    ratio = budget / accurate_price if accurate_price > 0 else math.inf
    for threshold, score in BUDGET_STEPS:
        if ratio >= threshold:
            return score
    return BUDGET_FLOOR_SCORE


def use_case_score(profile: UserProfile, template: BuildTemplate) -> int:
    score = 0
    for detail in profile.details():
        if detail in template.target_use_case:
            score += USE_CASE_MATCH_POINTS
    return min(score, USE_CASE_MAX)


def scoring_weights(profile: UserProfile) -> Dict[str, float]:
    weights = dict(BASE_WEIGHTS)
    if (
        profile.performance_ambition == "maximum"
        or profile.gaming_detail == "4k_ultra"
        or profile.creative_detail == "3d_rendering"
    ):
        weights["performance"] += WEIGHT_BOOST
    if profile.budget < VALUE_BUDGET_THRESHOLD:
        weights["value"] += WEIGHT_BOOST
    return weights


def calculate_build_score(
    template: BuildTemplate, profile: UserProfile, accurate_price: float
) -> int:
    weights = scoring_weights(profile)
    raw = (
        budget_score(profile.budget, accurate_price) * weights["budget"]
        + use_case_score(profile, template) * weights["use_case"]
        + template.performance_score * weights["performance"]
        + template.value_score * weights["value"]
        + template.future_proof_score * weights["future_proof"]
    )
    # trim float noise from the weight sums before rounding
    return round_half_up(round(raw, 6))


def score_template(
    profile: UserProfile, template: BuildTemplate, tables: PriceTables
) -> ScoredBuild:
    accurate_price, unmatched = calculate_accurate_price(template.specs, tables)
    for part in unmatched:
        logger.warning(
            "Template %r: %s spec %r has no price table entry",
            template.name,
            part,
            template.specs.get(part),
        )
    return ScoredBuild(
        template=template,
        score=calculate_build_score(template, profile, accurate_price),
        accurate_price=accurate_price,
        adjusted_price=min(template.base_price, profile.budget),
        budget_score=budget_score(profile.budget, accurate_price),
        use_case_score=use_case_score(profile, template),
        unmatched_specs=unmatched,
    )


def rank(
    profile: UserProfile,
    templates: List[BuildTemplate],
    price_tables: PriceTables,
) -> List[ScoredBuild]:
    scored = [score_template(profile, t, price_tables) for t in templates]
    # sorted() is stable, so ties keep template order
    top = sorted(scored, key=lambda b: b.score, reverse=True)[:TOP_N]
    for index, build in enumerate(top):
        build.label = RANK_LABELS[index]
    return top
