"""
Renovation and furnishing budget estimation.

Renovation cost is a flat rate per m² for each selected trade.
Furnishing cost comes from a furniture catalogue priced by quality level.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from .errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Trade:
    """A renovation trade and its estimated cost."""

    trade_id: str
    name: str
    cost_per_sqm: float  # EUR/m²
    description: str = ""


TRADES: tuple[Trade, ...] = (
    Trade("electrical", "Electrical", 50, "Wiring, outlets, lighting"),
    Trade("plumbing", "Plumbing", 60, "Pipes, fixtures, drainage"),
    Trade("painting", "Painting", 25, "Walls, ceilings, trim"),
    Trade("flooring", "Flooring", 70, "Hardwood, tiles, carpet"),
    Trade("kitchen", "Kitchen", 150, "Cabinets, countertops, appliances"),
    Trade("bathroom", "Bathroom", 120, "Fixtures, tiles, vanity"),
    Trade("windows", "Windows & Doors", 80, "Replacement, repair"),
    Trade("heating", "Heating/Cooling", 90, "HVAC system, radiators"),
    Trade("carpentry", "Carpentry", 40, "Built-ins, trim work"),
    Trade("furniture", "Furnishing", 100, "Complete furniture package"),
    Trade("landscaping", "Landscaping", 30, "Garden, outdoor areas"),
)

TRADES_BY_ID = {trade.trade_id: trade for trade in TRADES}


@dataclass(frozen=True)
class TradeCost:
    """Cost line for one selected trade."""

    trade_id: str
    name: str
    cost_per_sqm: float
    amount: float

    def to_dict(self) -> dict:
        return {
            "trade_id": self.trade_id,
            "name": self.name,
            "cost_per_sqm": self.cost_per_sqm,
            "amount": round(self.amount, 2),
        }


@dataclass(frozen=True)
class RenovationEstimate:
    """
    Renovation budget estimate.

    ``reliable`` is False when the living area was missing, in which case
    the total is 0 regardless of the trade selection.
    """

    total: float
    per_trade: tuple[TradeCost, ...]
    living_area: float
    reliable: bool = True
    warning: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "total": round(self.total, 2),
            "per_trade": [t.to_dict() for t in self.per_trade],
            "living_area": self.living_area,
            "reliable": self.reliable,
            "warning": self.warning,
        }


def _resolve_trades(trade_ids: Iterable[str]) -> list[Trade]:
    """Resolve and de-duplicate trade ids, in catalogue order."""
    selected = set(trade_ids)
    unknown = sorted(selected - TRADES_BY_ID.keys())
    if unknown:
        raise ValidationError("trades", f"Unknown trade(s): {', '.join(unknown)}", unknown)
    return [trade for trade in TRADES if trade.trade_id in selected]


def estimate_renovation_budget(trade_ids: Iterable[str], living_area: float) -> RenovationEstimate:
    """
    Estimate renovation cost for the selected trades.

    Args:
        trade_ids: Selected trade identifiers
        living_area: Living area in m²

    Returns:
        RenovationEstimate with total and per-trade breakdown

    Raises:
        ValidationError: If a trade id is unknown
    """
    trades = _resolve_trades(trade_ids)

    if not living_area or living_area <= 0:
        logger.warning("Renovation estimate requested without living area")
        return RenovationEstimate(
            total=0.0,
            per_trade=tuple(
                TradeCost(t.trade_id, t.name, t.cost_per_sqm, 0.0) for t in trades
            ),
            living_area=living_area or 0.0,
            reliable=False,
            warning="Living area is required for a renovation estimate",
        )

    per_trade = tuple(
        TradeCost(t.trade_id, t.name, t.cost_per_sqm, t.cost_per_sqm * living_area)
        for t in trades
    )
    return RenovationEstimate(
        total=sum(line.amount for line in per_trade),
        per_trade=per_trade,
        living_area=living_area,
    )


def describe_renovation(trade_ids: Iterable[str]) -> str:
    """Generate a construction description from the selected trades."""
    trades = _resolve_trades(trade_ids)
    if not trades:
        return ""
    names = ", ".join(t.name for t in trades)
    return (
        f"Comprehensive renovation including: {names}. "
        "This renovation will modernize the property and improve its energy efficiency, "
        "market value, and rental potential."
    )


# --- Furnishing ---

class QualityLevel(Enum):
    """Furnishing quality; picks a point in each item's price range."""

    BASIC = "basic"
    STANDARD = "standard"
    PREMIUM = "premium"


class FurnitureCategory(Enum):
    BEDROOM = "bedroom"
    LIVING = "living"
    KITCHEN = "kitchen"
    BATHROOM = "bathroom"
    OFFICE = "office"
    OTHER = "other"


@dataclass(frozen=True)
class FurnitureItem:
    """Catalogue item with a price range in EUR."""

    item_id: str
    name: str
    category: FurnitureCategory
    price_min: float
    price_max: float
    quantity: int = 1
    selected: bool = True

    def unit_price(self, quality: QualityLevel) -> float:
        if quality == QualityLevel.BASIC:
            return self.price_min
        elif quality == QualityLevel.PREMIUM:
            return self.price_max
        return (self.price_min + self.price_max) / 2


FURNITURE_CATALOGUE: tuple[FurnitureItem, ...] = (
    FurnitureItem("bed", "Bed", FurnitureCategory.BEDROOM, 400, 800),
    FurnitureItem("mattress", "Mattress", FurnitureCategory.BEDROOM, 200, 500),
    FurnitureItem("wardrobe", "Wardrobe", FurnitureCategory.BEDROOM, 300, 700),
    FurnitureItem("nightstand", "Nightstand", FurnitureCategory.BEDROOM, 50, 150, quantity=2),
    FurnitureItem("sofa", "Sofa", FurnitureCategory.LIVING, 500, 1200),
    FurnitureItem("coffee-table", "Coffee Table", FurnitureCategory.LIVING, 100, 300),
    FurnitureItem("tv-stand", "TV Stand", FurnitureCategory.LIVING, 150, 400),
    FurnitureItem("bookshelf", "Bookshelf", FurnitureCategory.LIVING, 100, 300, selected=False),
    FurnitureItem("dining-table", "Dining Table", FurnitureCategory.KITCHEN, 200, 500),
    FurnitureItem("dining-chairs", "Dining Chairs", FurnitureCategory.KITCHEN, 50, 150, quantity=4),
    FurnitureItem("kitchen-appliances", "Small Appliances", FurnitureCategory.KITCHEN, 200, 400),
    FurnitureItem("bathroom-cabinet", "Bathroom Cabinet", FurnitureCategory.BATHROOM, 100, 300,
                  selected=False),
    FurnitureItem("mirror", "Mirror", FurnitureCategory.BATHROOM, 50, 150, selected=False),
    FurnitureItem("desk", "Desk", FurnitureCategory.OFFICE, 150, 400, selected=False),
    FurnitureItem("office-chair", "Office Chair", FurnitureCategory.OFFICE, 100, 300,
                  selected=False),
    FurnitureItem("curtains", "Curtains", FurnitureCategory.OTHER, 30, 100, quantity=4),
    FurnitureItem("lamps", "Lamps", FurnitureCategory.OTHER, 30, 80, quantity=5),
    FurnitureItem("decoration", "Decoration", FurnitureCategory.OTHER, 200, 500),
)


@dataclass
class FurnishingEstimate:
    """Furnishing budget with line items."""

    total: float
    quality: QualityLevel
    lines: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total": round(self.total, 2),
            "quality": self.quality.value,
            "lines": self.lines,
        }


def estimate_furnishing_budget(
    quality: QualityLevel = QualityLevel.STANDARD,
    rooms: int = 2,
    shared_letting: bool = False,
    items: Optional[Iterable[FurnitureItem]] = None,
) -> FurnishingEstimate:
    """
    Estimate the furnishing budget from the furniture catalogue.

    For shared lettings every bedroom item is needed once per letting
    room (all rooms except the common living room).

    Args:
        quality: Price point within each item's range
        rooms: Number of rooms in the unit
        shared_letting: Whether the unit is let per room
        items: Custom item list (defaults to the catalogue's selected items)
    """
    if rooms < 1:
        raise ValidationError("rooms", "At least one room is required", rooms)

    catalogue = list(items) if items is not None else list(FURNITURE_CATALOGUE)
    total = 0.0
    lines = []
    for item in catalogue:
        quantity = item.quantity
        if shared_letting and item.category == FurnitureCategory.BEDROOM:
            quantity = max(rooms - 1, 1)
        elif not item.selected:
            continue

        amount = item.unit_price(quality) * quantity
        total += amount
        lines.append({
            "item_id": item.item_id,
            "name": item.name,
            "category": item.category.value,
            "quantity": quantity,
            "unit_price": item.unit_price(quality),
            "amount": amount,
        })

    return FurnishingEstimate(total=total, quality=quality, lines=lines)
