"""
Traffic light aggregation.

Reduces the four category scores to an overall investment verdict,
and combines per-unit scores of a multi-family building into
investment-weighted and worst-case building scores.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from .scoring import CategoryScore, ScoreCategory, TrafficLight, derive_status

logger = logging.getLogger(__name__)


class OverallAssessment(Enum):
    """Overall investment verdict."""

    GOOD = "good"
    ATTENTION = "attention"  # Two or more yellow lights
    CRITICAL = "critical"  # At least one red light


@dataclass(frozen=True)
class AssessmentSummary:
    """Overall verdict plus per-category display data."""

    overall: OverallAssessment
    green_count: int
    yellow_count: int
    red_count: int
    categories: dict[ScoreCategory, CategoryScore] = field(default_factory=dict)

    @property
    def statuses(self) -> dict[ScoreCategory, TrafficLight]:
        return {category: score.status for category, score in self.categories.items()}

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "overall": self.overall.value,
            "green_count": self.green_count,
            "yellow_count": self.yellow_count,
            "red_count": self.red_count,
            "categories": {
                category.value: {
                    "score": round(score.weighted_score, 2),
                    "max_score": round(score.max_weighted_score, 2),
                    "status": score.status.value,
                }
                for category, score in self.categories.items()
            },
        }


def _index_by_category(scores: Iterable[CategoryScore]) -> dict[ScoreCategory, CategoryScore]:
    indexed: dict[ScoreCategory, CategoryScore] = {}
    for score in scores:
        if score.category in indexed:
            raise ValueError(f"Duplicate category score for '{score.category.value}'")
        indexed[score.category] = score

    missing = [c.value for c in ScoreCategory if c not in indexed]
    if missing:
        raise ValueError(f"Missing category scores: {', '.join(missing)}")

    # Canonical order regardless of input order
    return {category: indexed[category] for category in ScoreCategory}


def overall_from_statuses(statuses: Iterable[TrafficLight]) -> OverallAssessment:
    """Any red -> critical; else two or more yellow -> attention; else good."""
    counts = Counter(statuses)
    if counts[TrafficLight.RED] > 0:
        return OverallAssessment.CRITICAL
    elif counts[TrafficLight.YELLOW] >= 2:
        return OverallAssessment.ATTENTION
    else:
        return OverallAssessment.GOOD


def aggregate_assessment(scores: Iterable[CategoryScore]) -> AssessmentSummary:
    """
    Combine four category scores into an overall assessment.

    Input order does not matter.

    Raises:
        ValueError: If a category is missing or given twice
    """
    categories = _index_by_category(scores)
    counts = Counter(score.status for score in categories.values())

    summary = AssessmentSummary(
        overall=overall_from_statuses(counts.elements()),
        green_count=counts[TrafficLight.GREEN],
        yellow_count=counts[TrafficLight.YELLOW],
        red_count=counts[TrafficLight.RED],
        categories=categories,
    )
    logger.debug(
        "Assessment %s (green=%d yellow=%d red=%d)",
        summary.overall.value, summary.green_count, summary.yellow_count, summary.red_count,
    )
    return summary


# --- Multi-unit buildings ---

@dataclass(frozen=True)
class UnitAssessment:
    """Scores of one unit within a building, with its investment size."""

    unit_id: str
    scores: tuple[CategoryScore, ...]
    investment: float
    living_area: float = 0.0
    monthly_rent: float = 0.0


@dataclass(frozen=True)
class BuildingCategory:
    """Aggregated score and status for one category across units."""

    score: float
    status: TrafficLight

    def to_dict(self) -> dict:
        return {"score": round(self.score, 2), "status": self.status.value}


@dataclass
class BuildingAssessment:
    """Aggregate traffic lights for a multi-family building."""

    weighted: dict[ScoreCategory, BuildingCategory]
    worst: dict[ScoreCategory, BuildingCategory]
    weighted_overall: OverallAssessment
    worst_overall: OverallAssessment
    aggregate_yield: float
    total_area: float
    total_investment: float
    unit_count: int

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "weighted": {c.value: b.to_dict() for c, b in self.weighted.items()},
            "worst": {c.value: b.to_dict() for c, b in self.worst.items()},
            "weighted_overall": self.weighted_overall.value,
            "worst_overall": self.worst_overall.value,
            "aggregate_yield": round(self.aggregate_yield, 2),
            "total_area": self.total_area,
            "total_investment": self.total_investment,
            "unit_count": self.unit_count,
        }


def aggregate_units(
    units: list[UnitAssessment],
    building_renovation_budget: float = 0.0,
) -> BuildingAssessment:
    """
    Aggregate per-unit category scores for a building.

    Weighted scores weigh each unit by its share of total investment;
    worst-case scores take the minimum across units. The aggregate
    yield includes the building-level renovation budget.

    Raises:
        ValueError: If no units are given
    """
    if not units:
        raise ValueError("At least one unit is required for building aggregation")

    indexed = [_index_by_category(unit.scores) for unit in units]
    total_investment = sum(unit.investment for unit in units)
    total_area = sum(unit.living_area for unit in units)

    weighted: dict[ScoreCategory, BuildingCategory] = {}
    worst: dict[ScoreCategory, BuildingCategory] = {}
    for category in ScoreCategory:
        if total_investment > 0:
            w_score = sum(
                scores[category].weighted_score * unit.investment / total_investment
                for unit, scores in zip(units, indexed)
            )
        else:
            w_score = 0.0
        w_score = round(w_score, 6)
        weighted[category] = BuildingCategory(w_score, derive_status(w_score))

        min_score = min(scores[category].weighted_score for scores in indexed)
        worst[category] = BuildingCategory(min_score, derive_status(min_score))

    building_investment = total_investment + building_renovation_budget
    total_rent = sum(unit.monthly_rent for unit in units)
    aggregate_yield = total_rent * 12 / building_investment * 100 if building_investment > 0 else 0.0

    return BuildingAssessment(
        weighted=weighted,
        worst=worst,
        weighted_overall=overall_from_statuses(b.status for b in weighted.values()),
        worst_overall=overall_from_statuses(b.status for b in worst.values()),
        aggregate_yield=aggregate_yield,
        total_area=total_area,
        total_investment=total_investment,
        unit_count=len(units),
    )
