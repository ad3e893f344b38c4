"""
Category scoring module.

Scores a property snapshot on four dimensions (energy, yield, HOA,
location). Each dimension combines several factors, each rated 0-10,
into one weighted category score and a traffic light status.

The preview used during pre-check is the same algorithm with a reduced
weight table: factors it does not weigh are simply left out.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Optional

from .errors import InsufficientDataError, ValidationError
from .snapshot import EnergyClass, HeatingType, LocationInputs, PropertySnapshot

logger = logging.getLogger(__name__)


class ScoreCategory(Enum):
    """The four assessed dimensions."""

    ENERGY = "energy"
    YIELD = "yield"
    HOA = "hoa"
    LOCATION = "location"


class TrafficLight(Enum):
    """Tri-state summary of a category score."""

    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


class ScoringMode(Enum):
    """Which weight table to apply."""

    FULL = "full"  # Detailed assessment view
    PREVIEW = "preview"  # Lightweight pre-check preview


MAX_FACTOR_SCORE = 10.0
NEUTRAL_SCORE = 5.0

GREEN_THRESHOLD = 7.0
YELLOW_THRESHOLD = 4.0

# Factor weights per mode and category; each category sums to 1.0
FACTOR_WEIGHTS: dict[ScoringMode, dict[ScoreCategory, dict[str, float]]] = {
    ScoringMode.FULL: {
        ScoreCategory.ENERGY: {
            "energy_class": 0.3,
            "consumption": 0.3,
            "heating_type": 0.2,
            "building_age": 0.2,
        },
        ScoreCategory.YIELD: {
            "gross_rental_yield": 0.4,
            "market_comparison": 0.2,
            "price_per_sqm": 0.2,
            "renovation_ratio": 0.2,
        },
        ScoreCategory.HOA: {
            "monthly_fees_per_sqm": 0.4,
            "reserve_adequacy": 0.3,
            "management_quality": 0.2,
            "building_condition": 0.1,
        },
        ScoreCategory.LOCATION: {
            "public_transport": 0.3,
            "amenities": 0.3,
            "market_trend": 0.2,
            "demographics": 0.2,
        },
    },
    ScoringMode.PREVIEW: {
        ScoreCategory.ENERGY: {
            "energy_class": 0.5,
            "building_age": 0.5,
        },
        ScoreCategory.YIELD: {
            "gross_rental_yield": 0.5,
            "price_per_sqm": 0.25,
            "renovation_ratio": 0.25,
        },
        ScoreCategory.HOA: {
            "monthly_fees_per_sqm": 0.6,
            "reserve_adequacy": 0.4,
        },
        ScoreCategory.LOCATION: {
            "public_transport": 0.3,
            "amenities": 0.3,
            "market_trend": 0.2,
            "demographics": 0.2,
        },
    },
}

ENERGY_CLASS_SCORES = {
    EnergyClass.A_PLUS: 10,
    EnergyClass.A: 9,
    EnergyClass.B: 8,
    EnergyClass.C: 6,
    EnergyClass.D: 4,
    EnergyClass.E: 2,
    EnergyClass.F: 1,
    EnergyClass.G: 0,
    EnergyClass.H: 0,
}

HEATING_TYPE_SCORES = {
    HeatingType.HEAT_PUMP.value.lower(): 10,
    HeatingType.SOLAR.value.lower(): 10,
    HeatingType.DISTRICT_HEATING.value.lower(): 9,
    HeatingType.GAS.value.lower(): 6,
    HeatingType.ELECTRIC.value.lower(): 4,
    HeatingType.OIL.value.lower(): 3,
}

# (upper bound inclusive, score), checked in order
CONSUMPTION_BANDS = [(50, 10), (75, 8), (100, 6), (150, 4), (200, 2)]
BUILDING_AGE_BANDS = [(5, 10), (15, 8), (30, 6), (50, 4)]
HOA_FEE_BANDS = [(2, 10), (4, 7), (6, 4)]
RENOVATION_RATIO_BANDS = [(0.10, 10), (0.20, 7), (0.30, 4)]

# (lower bound inclusive, score), checked in order
GROSS_YIELD_BANDS = [(6.0, 10), (4.0, 6), (2.0, 3)]
RESERVE_BANDS = [(1.0, 10), (0.5, 6)]

# City price thresholds in EUR/m²: (good, fair)
CITY_PRICE_THRESHOLDS = {
    "munich": (6000, 8000),
    "berlin": (4000, 6000),
    "hamburg": (4500, 6500),
}
DEFAULT_PRICE_THRESHOLDS = (3500, 5000)

# Placeholders for qualitative inputs without a data source yet
MARKET_COMPARISON_DEFAULT = 7.0
MANAGEMENT_QUALITY_DEFAULT = 8.0
BUILDING_CONDITION_DEFAULT = 7.0

# City-keyed location ratings used when no location data is supplied.
# Munich composes to 8.1, every other city to 6.0.
CITY_LOCATION_DEFAULTS = {
    "munich": LocationInputs(public_transport=8, amenities=9, market_trend=8, demographics=7),
}
DEFAULT_LOCATION = LocationInputs(public_transport=6, amenities=6, market_trend=6, demographics=6)


@dataclass(frozen=True)
class ScoreFactor:
    """A single measured attribute and its 0-10 sub-score."""

    name: str
    raw_value: Any
    score: float
    weight: float
    max_score: float = MAX_FACTOR_SCORE
    explanation: str = ""

    @property
    def weighted_score(self) -> float:
        return self.score * self.weight

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "raw_value": self.raw_value,
            "score": self.score,
            "max_score": self.max_score,
            "weight": self.weight,
            "weighted_score": round(self.weighted_score, 3),
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class CategoryScore:
    """Weighted score and traffic light for one category."""

    category: ScoreCategory
    weighted_score: float
    max_weighted_score: float
    status: TrafficLight
    factors: tuple[ScoreFactor, ...] = field(default_factory=tuple)

    def factor(self, name: str) -> Optional[ScoreFactor]:
        """Look up a factor by name."""
        for f in self.factors:
            if f.name == name:
                return f
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "category": self.category.value,
            "weighted_score": round(self.weighted_score, 2),
            "max_weighted_score": round(self.max_weighted_score, 2),
            "status": self.status.value,
            "factors": [f.to_dict() for f in self.factors],
        }


def derive_status(score: float) -> TrafficLight:
    """Map a weighted score to a traffic light (>=7 green, >=4 yellow)."""
    if score >= GREEN_THRESHOLD:
        return TrafficLight.GREEN
    elif score >= YELLOW_THRESHOLD:
        return TrafficLight.YELLOW
    else:
        return TrafficLight.RED


def _upper_band(value: float, bands: list[tuple[float, int]], fallback: int) -> int:
    for bound, score in bands:
        if value <= bound:
            return score
    return fallback


def _lower_band(value: float, bands: list[tuple[float, int]], fallback: int) -> int:
    for bound, score in bands:
        if value >= bound:
            return score
    return fallback


def energy_class_score(energy_class: Optional[EnergyClass]) -> float:
    if energy_class is None:
        return NEUTRAL_SCORE
    return ENERGY_CLASS_SCORES[energy_class]


def consumption_score(consumption: Optional[float]) -> float:
    if consumption is None:
        return NEUTRAL_SCORE
    return _upper_band(consumption, CONSUMPTION_BANDS, 0)


def heating_type_score(heating_type: Optional[str]) -> float:
    """Known systems use the lookup table; anything else is neutral."""
    if not heating_type:
        return NEUTRAL_SCORE
    return HEATING_TYPE_SCORES.get(heating_type.strip().lower(), NEUTRAL_SCORE)


def building_age_score(construction_year: Optional[int], as_of_year: int) -> float:
    if not construction_year:
        return NEUTRAL_SCORE
    age = max(0, as_of_year - construction_year)
    return _upper_band(age, BUILDING_AGE_BANDS, 2)


def gross_yield_score(gross_yield: float) -> float:
    return _lower_band(gross_yield, GROSS_YIELD_BANDS, 0)


def price_thresholds(city: str) -> tuple[int, int]:
    """Return (good, fair) EUR/m² thresholds for a city."""
    return CITY_PRICE_THRESHOLDS.get((city or "").strip().lower(), DEFAULT_PRICE_THRESHOLDS)


def price_per_sqm_score(price_per_sqm: float, city: str) -> float:
    good, fair = price_thresholds(city)
    if price_per_sqm <= good:
        return 10
    elif price_per_sqm <= fair:
        return 6
    else:
        return 2


def renovation_ratio_score(ratio: float) -> float:
    return _upper_band(ratio, RENOVATION_RATIO_BANDS, 0)


def hoa_fees_score(fees_per_sqm: float, zero_is_neutral: bool = False) -> float:
    if zero_is_neutral and fees_per_sqm == 0:
        return NEUTRAL_SCORE
    return _upper_band(fees_per_sqm, HOA_FEE_BANDS, 0)


def reserve_score(reserve: float) -> float:
    return _lower_band(reserve, RESERVE_BANDS, 2)


def location_inputs_for(snapshot: PropertySnapshot) -> tuple[LocationInputs, bool]:
    """Return the location ratings to use and whether they are city defaults."""
    if snapshot.location is not None:
        return snapshot.location, False
    city_key = (snapshot.city or "").strip().lower()
    return CITY_LOCATION_DEFAULTS.get(city_key, DEFAULT_LOCATION), True


def _check_external_score(name: str, value: float) -> float:
    if value < 0 or value > MAX_FACTOR_SCORE:
        raise ValidationError(name, f"Score must be between 0 and {MAX_FACTOR_SCORE:g}", value)
    return float(value)


def _build_category(
    category: ScoreCategory,
    candidates: dict[str, tuple[Any, float, str]],
    mode: ScoringMode,
) -> CategoryScore:
    """
    Combine candidate factors into a CategoryScore.

    Only factors present in the mode's weight table are kept, in table order.
    """
    weights = FACTOR_WEIGHTS[mode][category]
    factors = []
    for name, weight in weights.items():
        raw_value, score, explanation = candidates[name]
        factors.append(ScoreFactor(
            name=name,
            raw_value=raw_value,
            score=float(score),
            weight=weight,
            explanation=explanation,
        ))

    weighted = round(sum(f.weighted_score for f in factors), 6)
    max_weighted = round(sum(f.max_score * f.weight for f in factors), 6)

    result = CategoryScore(
        category=category,
        weighted_score=weighted,
        max_weighted_score=max_weighted,
        status=derive_status(weighted),
        factors=tuple(factors),
    )
    logger.debug(
        "Scored %s (%s): %.2f -> %s", category.value, mode.value, weighted, result.status.value
    )
    return result


def _require_minimal_data(snapshot: PropertySnapshot) -> None:
    if not snapshot.has_minimal_data:
        raise InsufficientDataError(snapshot.missing_fields)


def score_energy(
    snapshot: PropertySnapshot,
    mode: ScoringMode = ScoringMode.FULL,
    as_of: Optional[date] = None,
) -> CategoryScore:
    """Score energy efficiency. Needs no financial data."""
    energy = snapshot.energy
    as_of_year = (as_of or date.today()).year

    energy_class = energy.energy_class.value if energy.energy_class else None
    candidates = {
        "energy_class": (
            energy_class,
            energy_class_score(energy.energy_class),
            f"Energy class {energy_class}" if energy_class else "Energy class unknown",
        ),
        "consumption": (
            energy.consumption,
            consumption_score(energy.consumption),
            f"{energy.consumption:.0f} kWh/m² per year" if energy.consumption is not None
            else "Consumption unknown",
        ),
        "heating_type": (
            energy.heating_type,
            heating_type_score(energy.heating_type),
            f"Heating: {energy.heating_type}" if energy.heating_type else "Heating type unknown",
        ),
        "building_age": (
            energy.construction_year,
            building_age_score(energy.construction_year, as_of_year),
            f"Built {energy.construction_year}" if energy.construction_year
            else "Construction year unknown",
        ),
    }
    return _build_category(ScoreCategory.ENERGY, candidates, mode)


def score_yield(snapshot: PropertySnapshot, mode: ScoringMode = ScoringMode.FULL) -> CategoryScore:
    """
    Score rental yield.

    Raises:
        InsufficientDataError: If living area or purchase price is missing
    """
    _require_minimal_data(snapshot)

    gross_yield = snapshot.gross_yield or 0.0
    price_per_sqm = snapshot.price_per_sqm
    ratio = snapshot.renovation_ratio

    if snapshot.market_comparison is not None:
        market = _check_external_score("market_comparison", snapshot.market_comparison)
        market_explanation = "Market comparison supplied"
    else:
        market = MARKET_COMPARISON_DEFAULT
        market_explanation = "No market comparison data, default applied"

    good, fair = price_thresholds(snapshot.city)
    candidates = {
        "gross_rental_yield": (
            round(gross_yield, 4),
            gross_yield_score(gross_yield),
            f"Gross yield {gross_yield:.2f}% on €{snapshot.total_investment:,.0f} investment",
        ),
        "market_comparison": (None, market, market_explanation),
        "price_per_sqm": (
            round(price_per_sqm, 2),
            price_per_sqm_score(price_per_sqm, snapshot.city),
            f"€{price_per_sqm:,.0f}/m² (good ≤ €{good:,}, fair ≤ €{fair:,})",
        ),
        "renovation_ratio": (
            round(ratio, 4),
            renovation_ratio_score(ratio),
            f"Renovation budget is {ratio:.0%} of purchase price",
        ),
    }
    return _build_category(ScoreCategory.YIELD, candidates, mode)


def score_hoa(snapshot: PropertySnapshot, mode: ScoringMode = ScoringMode.FULL) -> CategoryScore:
    """
    Score HOA cost burden.

    Raises:
        InsufficientDataError: If living area or purchase price is missing
    """
    _require_minimal_data(snapshot)

    hoa = snapshot.hoa
    monthly = hoa.landlord + hoa.reserve
    per_sqm = monthly / snapshot.living_area

    if hoa.management_quality is not None:
        management = _check_external_score("hoa.management_quality", hoa.management_quality)
        management_explanation = "Management rating supplied"
    else:
        management = MANAGEMENT_QUALITY_DEFAULT
        management_explanation = "No management rating, default applied"

    if hoa.building_condition is not None:
        condition = _check_external_score("hoa.building_condition", hoa.building_condition)
        condition_explanation = "Building condition rating supplied"
    else:
        condition = BUILDING_CONDITION_DEFAULT
        condition_explanation = "No building condition rating, default applied"

    candidates = {
        "monthly_fees_per_sqm": (
            round(per_sqm, 4),
            hoa_fees_score(per_sqm, zero_is_neutral=mode == ScoringMode.PREVIEW),
            f"€{monthly:,.2f}/month landlord-borne (€{per_sqm:.2f}/m²)",
        ),
        "reserve_adequacy": (
            hoa.reserve,
            reserve_score(hoa.reserve),
            f"Reserve contribution €{hoa.reserve:,.2f}",
        ),
        "management_quality": (hoa.management_quality, management, management_explanation),
        "building_condition": (hoa.building_condition, condition, condition_explanation),
    }
    return _build_category(ScoreCategory.HOA, candidates, mode)


def score_location(
    snapshot: PropertySnapshot, mode: ScoringMode = ScoringMode.FULL
) -> CategoryScore:
    """Score location from supplied ratings or the city default."""
    inputs, is_default = location_inputs_for(snapshot)
    source = f"default for {snapshot.city or 'unknown city'}" if is_default else "supplied"

    candidates = {
        name: (
            None if is_default else value,
            _check_external_score(f"location.{name}", value),
            f"Rating {value:g}/10 ({source})",
        )
        for name, value in (
            ("public_transport", inputs.public_transport),
            ("amenities", inputs.amenities),
            ("market_trend", inputs.market_trend),
            ("demographics", inputs.demographics),
        )
    }
    return _build_category(ScoreCategory.LOCATION, candidates, mode)


def compute_category_scores(
    snapshot: PropertySnapshot,
    mode: ScoringMode = ScoringMode.FULL,
    as_of: Optional[date] = None,
) -> list[CategoryScore]:
    """
    Score a snapshot on all four categories.

    Args:
        snapshot: The property snapshot
        mode: Weight table to apply
        as_of: Reference date for building age (defaults to today)

    Returns:
        CategoryScores in order energy, yield, hoa, location

    Raises:
        InsufficientDataError: If living area or purchase price is missing
    """
    _require_minimal_data(snapshot)

    return [
        score_energy(snapshot, mode, as_of),
        score_yield(snapshot, mode),
        score_hoa(snapshot, mode),
        score_location(snapshot, mode),
    ]


def check_weight_tables() -> None:
    """Verify every category's weights sum to 1.0."""
    for mode, categories in FACTOR_WEIGHTS.items():
        for category, weights in categories.items():
            total = sum(weights.values())
            if abs(total - 1.0) > 1e-9:
                raise ValueError(
                    f"Weights for {category.value} ({mode.value}) sum to {total}, expected 1.0"
                )


check_weight_tables()
