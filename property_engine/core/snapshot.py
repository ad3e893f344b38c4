"""
Property snapshot data model.

Defines the read-only input the category scorers work on: energy data,
financials, rental income and HOA cost split for a single unit.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .errors import ValidationError


class EnergyClass(Enum):
    """Energy performance certificate class."""

    A_PLUS = "A+"
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    F = "F"
    G = "G"
    H = "H"


class HeatingType(Enum):
    """Heating systems with a known efficiency rating."""

    HEAT_PUMP = "Heat Pump"
    DISTRICT_HEATING = "District Heating"
    SOLAR = "Solar"
    GAS = "Gas"
    OIL = "Oil"
    ELECTRIC = "Electric"


class RentalStrategy(Enum):
    """How the unit is let."""

    STANDARD = "standard"
    WG = "wg"  # Shared flat, rented per room


class VacancyStatus(Enum):
    """Whether the unit currently has a tenant."""

    VACANT = "vacant"
    RENTED = "rented"


@dataclass(frozen=True)
class WGRoom:
    """A single room in a shared-flat letting."""

    name: str
    size: float = 0.0  # m²
    rent: float = 0.0  # EUR per month


@dataclass(frozen=True)
class EnergyProfile:
    """Energy-related attributes of the building."""

    energy_class: Optional[EnergyClass] = None
    consumption: Optional[float] = None  # kWh/m² per year
    heating_type: Optional[str] = None
    construction_year: Optional[int] = None


@dataclass(frozen=True)
class FinancialDetails:
    """Acquisition and capex figures (EUR)."""

    purchase_price: float = 0.0
    renovation_budget: float = 0.0
    furnishing_budget: float = 0.0

    @property
    def total_investment(self) -> float:
        return self.purchase_price + self.renovation_budget + self.furnishing_budget


@dataclass(frozen=True)
class RentalDetails:
    """Rental income assumptions."""

    strategy: RentalStrategy = RentalStrategy.STANDARD
    planned_rent: float = 0.0  # Monthly, standard letting
    wg_rooms: tuple[WGRoom, ...] = ()
    vacancy_status: VacancyStatus = VacancyStatus.VACANT
    current_rent: Optional[float] = None  # Monthly, when already rented

    @property
    def monthly_rent(self) -> float:
        """Monthly rent the yield calculation should use."""
        if self.vacancy_status == VacancyStatus.RENTED and self.current_rent is not None:
            return self.current_rent
        if self.strategy == RentalStrategy.WG:
            return sum(room.rent for room in self.wg_rooms)
        return self.planned_rent


@dataclass(frozen=True)
class HOACosts:
    """
    Monthly homeowners' association costs.

    Management quality and building condition are qualitative 0-10
    ratings supplied by the caller; None means no data.
    """

    landlord: float = 0.0  # Landlord-borne, not recoverable
    tenant: float = 0.0  # Passed through to the tenant
    reserve: float = 0.0  # Maintenance reserve contribution
    management_quality: Optional[float] = None
    building_condition: Optional[float] = None


@dataclass(frozen=True)
class LocationInputs:
    """Externally supplied location ratings (0-10 each)."""

    public_transport: float
    amenities: float
    market_trend: float
    demographics: float


@dataclass(frozen=True)
class PropertySnapshot:
    """
    Immutable snapshot of a property unit.

    Callers build a fresh snapshot on every input change; the engine
    never mutates it.
    """

    property_id: str = ""
    city: str = ""
    living_area: float = 0.0  # m²

    energy: EnergyProfile = field(default_factory=EnergyProfile)
    financial: FinancialDetails = field(default_factory=FinancialDetails)
    rental: RentalDetails = field(default_factory=RentalDetails)
    hoa: HOACosts = field(default_factory=HOACosts)

    # External inputs (None = not available, defaults apply)
    location: Optional[LocationInputs] = None
    market_comparison: Optional[float] = None

    @property
    def has_minimal_data(self) -> bool:
        """Living area and purchase price are both required before scoring."""
        return self.living_area > 0 and self.financial.purchase_price > 0

    @property
    def missing_fields(self) -> list[str]:
        missing = []
        if not self.living_area or self.living_area <= 0:
            missing.append("living_area")
        if not self.financial.purchase_price or self.financial.purchase_price <= 0:
            missing.append("purchase_price")
        return missing

    @property
    def monthly_rent(self) -> float:
        return self.rental.monthly_rent

    @property
    def annual_rent(self) -> float:
        return self.rental.monthly_rent * 12

    @property
    def total_investment(self) -> float:
        return self.financial.total_investment

    @property
    def gross_yield(self) -> Optional[float]:
        """Gross rental yield in percent, or None without investment data."""
        if self.total_investment <= 0:
            return None
        return self.annual_rent / self.total_investment * 100

    @property
    def price_per_sqm(self) -> Optional[float]:
        if self.living_area <= 0:
            return None
        return self.financial.purchase_price / self.living_area

    @property
    def renovation_ratio(self) -> Optional[float]:
        if self.financial.purchase_price <= 0:
            return None
        return self.financial.renovation_budget / self.financial.purchase_price

    def to_dict(self) -> dict:
        """Convert snapshot to dictionary representation."""
        return {
            "property_id": self.property_id,
            "city": self.city,
            "living_area": self.living_area,
            "energy": {
                "energy_class": self.energy.energy_class.value if self.energy.energy_class else None,
                "consumption": self.energy.consumption,
                "heating_type": self.energy.heating_type,
                "construction_year": self.energy.construction_year,
            },
            "financial": {
                "purchase_price": self.financial.purchase_price,
                "renovation_budget": self.financial.renovation_budget,
                "furnishing_budget": self.financial.furnishing_budget,
            },
            "rental": {
                "strategy": self.rental.strategy.value,
                "planned_rent": self.rental.planned_rent,
                "wg_rooms": [
                    {"name": r.name, "size": r.size, "rent": r.rent}
                    for r in self.rental.wg_rooms
                ],
                "vacancy_status": self.rental.vacancy_status.value,
                "current_rent": self.rental.current_rent,
            },
            "hoa": {
                "landlord": self.hoa.landlord,
                "tenant": self.hoa.tenant,
                "reserve": self.hoa.reserve,
                "management_quality": self.hoa.management_quality,
                "building_condition": self.hoa.building_condition,
            },
            "location": {
                "public_transport": self.location.public_transport,
                "amenities": self.location.amenities,
                "market_trend": self.location.market_trend,
                "demographics": self.location.demographics,
            } if self.location else None,
            "market_comparison": self.market_comparison,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PropertySnapshot":
        """Create snapshot from dictionary representation."""
        energy_data = data.get("energy") or {}
        energy = EnergyProfile(
            energy_class=_parse_enum(
                EnergyClass, energy_data.get("energy_class"), "energy.energy_class"
            ),
            consumption=_parse_number(energy_data.get("consumption"), "energy.consumption"),
            heating_type=energy_data.get("heating_type") or None,
            construction_year=_parse_year(energy_data.get("construction_year")),
        )

        fin_data = data.get("financial") or {}
        financial = FinancialDetails(
            purchase_price=_parse_number(
                fin_data.get("purchase_price"), "financial.purchase_price", 0.0
            ),
            renovation_budget=_parse_number(
                fin_data.get("renovation_budget"), "financial.renovation_budget", 0.0
            ),
            furnishing_budget=_parse_number(
                fin_data.get("furnishing_budget"), "financial.furnishing_budget", 0.0
            ),
        )

        rental_data = data.get("rental") or {}
        rental = RentalDetails(
            strategy=_parse_enum(
                RentalStrategy, rental_data.get("strategy"), "rental.strategy"
            ) or RentalStrategy.STANDARD,
            planned_rent=_parse_number(
                rental_data.get("planned_rent"), "rental.planned_rent", 0.0
            ),
            wg_rooms=tuple(
                WGRoom(
                    name=room.get("name") or f"Room {idx + 1}",
                    size=_parse_number(room.get("size"), f"rental.wg_rooms[{idx}].size", 0.0),
                    rent=_parse_number(room.get("rent"), f"rental.wg_rooms[{idx}].rent", 0.0),
                )
                for idx, room in enumerate(rental_data.get("wg_rooms") or [])
            ),
            vacancy_status=_parse_enum(
                VacancyStatus, rental_data.get("vacancy_status"), "rental.vacancy_status"
            ) or VacancyStatus.VACANT,
            current_rent=_parse_number(rental_data.get("current_rent"), "rental.current_rent"),
        )

        hoa_data = data.get("hoa") or {}
        hoa = HOACosts(
            landlord=_parse_number(hoa_data.get("landlord"), "hoa.landlord", 0.0),
            tenant=_parse_number(hoa_data.get("tenant"), "hoa.tenant", 0.0),
            reserve=_parse_number(hoa_data.get("reserve"), "hoa.reserve", 0.0),
            management_quality=_parse_number(
                hoa_data.get("management_quality"), "hoa.management_quality"
            ),
            building_condition=_parse_number(
                hoa_data.get("building_condition"), "hoa.building_condition"
            ),
        )

        location = None
        loc_data = data.get("location")
        if loc_data:
            values = {}
            for name in ("public_transport", "amenities", "market_trend", "demographics"):
                value = _parse_number(loc_data.get(name), f"location.{name}")
                if value is None:
                    raise ValidationError(f"location.{name}", "Field is required")
                values[name] = value
            location = LocationInputs(**values)

        return cls(
            property_id=data.get("property_id", ""),
            city=data.get("city", ""),
            living_area=_parse_number(data.get("living_area"), "living_area", 0.0),
            energy=energy,
            financial=financial,
            rental=rental,
            hoa=hoa,
            location=location,
            market_comparison=_parse_number(data.get("market_comparison"), "market_comparison"),
        )


def _parse_enum(enum_cls, raw, field_name: str):
    """Parse an optional enum value, raising ValidationError on unknown values."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, enum_cls):
        return raw
    try:
        return enum_cls(raw)
    except ValueError as e:
        valid = ", ".join(m.value for m in enum_cls)
        raise ValidationError(field_name, f"Must be one of: {valid}", raw) from e


def _parse_number(raw, field_name: str, default: Optional[float] = None) -> Optional[float]:
    """Parse an optional numeric value, accepting numeric strings."""
    if raw is None or raw == "":
        return default
    if isinstance(raw, bool):
        raise ValidationError(field_name, "Must be a number", raw)
    try:
        return float(raw)
    except (TypeError, ValueError) as e:
        raise ValidationError(field_name, "Must be a number", raw) from e


def _parse_year(raw) -> Optional[int]:
    year = _parse_number(raw, "energy.construction_year")
    if not year:
        return None
    if year != int(year):
        raise ValidationError("energy.construction_year", "Must be a whole year", raw)
    return int(year)
