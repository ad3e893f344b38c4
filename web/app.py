"""
Property Lifecycle Engine - FastAPI Web Application

Thin HTTP surface over the engine: traffic light assessment, building
aggregation, phase state, budget estimates and the notary workflow.
"""

import logging
from datetime import date, datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from property_engine import __version__
from property_engine.api import AppointmentStorage
from property_engine.config import settings
from property_engine.core.notary import now_like
from property_engine.core import (
    AppointmentNotFoundError,
    ConcurrentModificationError,
    EngineError,
    EnergyClass,
    HeatingType,
    InsufficientDataError,
    InvalidTransitionError,
    NotaryInfo,
    NotaryStatus,
    PropertySnapshot,
    QualityLevel,
    RentalStrategy,
    ScoringMode,
    TRADES,
    UnitAssessment,
    VacancyStatus,
    ValidationError,
    aggregate_assessment,
    aggregate_units,
    build_phase_schedule,
    compute_category_scores,
    days_in_current_phase,
    derive_phase_state,
    describe_renovation,
    estimate_furnishing_budget,
    estimate_renovation_budget,
    is_phase_overdue,
    timeline_steps,
    validate_snapshot,
)

logger = logging.getLogger(__name__)


def _setup_logging() -> None:
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


_setup_logging()

# Initialize FastAPI app
app = FastAPI(
    title="Property Lifecycle Engine",
    description="Traffic light assessment, lifecycle phases and notary workflow API",
    version=__version__,
)

# Global storage instance
_storage: Optional[AppointmentStorage] = None


def get_storage() -> AppointmentStorage:
    """Get or create the global storage instance."""
    global _storage
    if _storage is None:
        _storage = AppointmentStorage()
    return _storage


# Most specific first
_ERROR_STATUS: list[tuple[type, int]] = [
    (AppointmentNotFoundError, 404),
    (ConcurrentModificationError, 409),
    (InvalidTransitionError, 409),
    (InsufficientDataError, 422),
]


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError):
    """Map engine failures to 4xx responses with the error code."""
    status_code = next(
        (code for error_type, code in _ERROR_STATUS if isinstance(exc, error_type)),
        400,
    )
    logger.info("%s %s -> %d %s", request.method, request.url.path, status_code, exc.code)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# Pydantic models for request/response
class EnergyInput(BaseModel):
    energy_class: Optional[str] = None  # Checked by the engine for a field-level error
    consumption: Optional[float] = None
    heating_type: Optional[str] = None
    construction_year: Optional[int] = None


class FinancialInput(BaseModel):
    purchase_price: float = 0
    renovation_budget: float = 0
    furnishing_budget: float = 0


class WGRoomInput(BaseModel):
    name: Optional[str] = None
    size: float = 0
    rent: float = 0


class RentalInput(BaseModel):
    strategy: Optional[str] = None
    planned_rent: float = 0
    wg_rooms: list[WGRoomInput] = []
    vacancy_status: Optional[str] = None
    current_rent: Optional[float] = None


class HOAInput(BaseModel):
    landlord: float = 0
    tenant: float = 0
    reserve: float = 0
    management_quality: Optional[float] = None
    building_condition: Optional[float] = None


class LocationInput(BaseModel):
    public_transport: float
    amenities: float
    market_trend: float
    demographics: float


class SnapshotInput(BaseModel):
    property_id: str = ""
    city: str = ""
    living_area: float = 0
    energy: EnergyInput = EnergyInput()
    financial: FinancialInput = FinancialInput()
    rental: RentalInput = RentalInput()
    hoa: HOAInput = HOAInput()
    location: Optional[LocationInput] = None
    market_comparison: Optional[float] = None


class AssessmentRequest(SnapshotInput):
    as_of: Optional[date] = None


class UnitInput(SnapshotInput):
    unit_id: str


class BuildingRequest(BaseModel):
    units: list[UnitInput]
    renovation_budget: float = 0
    mode: ScoringMode = ScoringMode.FULL
    as_of: Optional[date] = None


class RenovationRequest(BaseModel):
    trades: list[str]
    living_area: float = 0


class FurnishingRequest(BaseModel):
    quality: QualityLevel = QualityLevel.STANDARD
    rooms: int = 2
    shared_letting: bool = False


class ProposeRequest(BaseModel):
    dates: list[datetime]
    notary_name: str = ""
    notary_contact: str = ""
    message: str = ""
    supersede: bool = False
    expected_version: Optional[int] = None


class SelectRequest(BaseModel):
    date: datetime
    expected_version: Optional[int] = None


class TransitionRequest(BaseModel):
    expected_version: Optional[int] = None
    notes: str = ""


class SyncRequest(BaseModel):
    payload: dict
    synced_at: datetime
    partner: str = "blackvesto"


# Routes

@app.get("/api/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok", "version": __version__, "appointments": get_storage().count()}


@app.get("/api/enums")
async def get_enums():
    """Get available enum values for form dropdowns."""
    return {
        "energy_classes": [e.value for e in EnergyClass],
        "heating_types": [e.value for e in HeatingType],
        "rental_strategies": [e.value for e in RentalStrategy],
        "vacancy_statuses": [e.value for e in VacancyStatus],
        "scoring_modes": [e.value for e in ScoringMode],
        "quality_levels": [e.value for e in QualityLevel],
        "notary_statuses": [e.value for e in NotaryStatus],
        "trades": [
            {"id": t.trade_id, "name": t.name, "cost_per_sqm": t.cost_per_sqm}
            for t in TRADES
        ],
    }


@app.post("/api/assessment")
async def assess_property(data: AssessmentRequest, mode: ScoringMode = ScoringMode.FULL):
    """Score a property snapshot and aggregate the traffic lights."""
    snapshot = _snapshot_from_input(data)
    validation = validate_snapshot(snapshot)
    validation.raise_for_errors()

    scores = compute_category_scores(snapshot, mode=mode, as_of=data.as_of)
    summary = aggregate_assessment(scores)

    return {
        "property_id": snapshot.property_id,
        "mode": mode.value,
        "gross_yield": round(snapshot.gross_yield, 2) if snapshot.gross_yield is not None else None,
        "total_investment": snapshot.total_investment,
        "scores": [s.to_dict() for s in scores],
        "summary": summary.to_dict(),
        "warnings": validation.warnings,
    }


@app.post("/api/buildings/assessment")
async def assess_building(data: BuildingRequest):
    """Aggregate per-unit scores for a multi-family building."""
    if not data.units:
        raise ValidationError("units", "At least one unit is required")

    units = []
    for unit_input in data.units:
        snapshot = _snapshot_from_input(unit_input)
        validate_snapshot(snapshot).raise_for_errors()
        units.append(UnitAssessment(
            unit_id=unit_input.unit_id,
            scores=tuple(compute_category_scores(snapshot, mode=data.mode, as_of=data.as_of)),
            investment=snapshot.total_investment,
            living_area=snapshot.living_area,
            monthly_rent=snapshot.monthly_rent,
        ))

    return aggregate_units(units, building_renovation_budget=data.renovation_budget).to_dict()


@app.get("/api/phases/{phase}")
async def get_phase_state(
    phase: int,
    phase_started_at: Optional[datetime] = None,
    lifecycle_start: Optional[datetime] = None,
):
    """Derive phase display state, elapsed time and planned schedule."""
    result = derive_phase_state(phase).to_dict()

    if phase_started_at is not None:
        days = days_in_current_phase(phase_started_at, now_like(phase_started_at))
        result["days_in_phase"] = days
        result["overdue"] = is_phase_overdue(phase, days)

    if lifecycle_start is not None:
        result["schedule"] = build_phase_schedule(lifecycle_start, phase).to_dict()

    return result


@app.post("/api/renovation")
async def estimate_renovation(data: RenovationRequest):
    """Estimate the renovation budget for the selected trades."""
    estimate = estimate_renovation_budget(data.trades, data.living_area)
    result = estimate.to_dict()
    result["description"] = describe_renovation(data.trades)
    return result


@app.post("/api/furnishing")
async def estimate_furnishing(data: FurnishingRequest):
    """Estimate the furnishing budget from the catalogue."""
    return estimate_furnishing_budget(
        quality=data.quality,
        rooms=data.rooms,
        shared_letting=data.shared_letting,
    ).to_dict()


@app.get("/api/notary/{property_id}")
async def get_notary_appointment(property_id: str):
    """Get the notary appointment and its timeline."""
    appointment = get_storage().require(property_id)
    return _appointment_response(appointment)


@app.post("/api/notary/{property_id}/propose")
async def propose_dates(property_id: str, data: ProposeRequest):
    """Propose (or supersede) three notary dates."""
    appointment = get_storage().propose(
        property_id,
        data.dates,
        NotaryInfo(name=data.notary_name, contact=data.notary_contact),
        expected_version=data.expected_version,
        supersede=data.supersede,
        message=data.message,
    )
    return _appointment_response(appointment)


@app.post("/api/notary/{property_id}/select")
async def select_date(property_id: str, data: SelectRequest):
    """Record the customer's date choice."""
    appointment = get_storage().select(
        property_id, data.date, expected_version=data.expected_version
    )
    return _appointment_response(appointment)


@app.post("/api/notary/{property_id}/confirm")
async def confirm_appointment(property_id: str, data: TransitionRequest):
    """Backoffice confirmation of the selected date."""
    appointment = get_storage().confirm(property_id, expected_version=data.expected_version)
    return _appointment_response(appointment)


@app.post("/api/notary/{property_id}/documents")
async def prepare_documents(property_id: str, data: TransitionRequest):
    """Mark the sale documents as prepared."""
    appointment = get_storage().prepare_documents(
        property_id, expected_version=data.expected_version
    )
    return _appointment_response(appointment)


@app.post("/api/notary/{property_id}/complete")
async def complete_sale(property_id: str, data: TransitionRequest):
    """Finalize the sale."""
    appointment = get_storage().complete(
        property_id, expected_version=data.expected_version, notes=data.notes
    )
    return _appointment_response(appointment)


@app.post("/api/notary/{property_id}/sync")
async def sync_appointment(property_id: str, data: SyncRequest):
    """Ingest appointment state from the partner synchronization feed."""
    appointment = get_storage().sync(
        property_id, data.payload, data.synced_at, partner=data.partner
    )
    return _appointment_response(appointment)


# Helper functions

def _snapshot_from_input(data: SnapshotInput) -> PropertySnapshot:
    """Convert request data to a snapshot, filling in the default city."""
    snapshot_data = data.model_dump(exclude={"as_of", "unit_id"})
    if not snapshot_data.get("city"):
        snapshot_data["city"] = settings.default_city
    if not snapshot_data.get("property_id") and isinstance(data, UnitInput):
        snapshot_data["property_id"] = data.unit_id
    return PropertySnapshot.from_dict(snapshot_data)


def _appointment_response(appointment) -> dict:
    result = appointment.to_dict()
    result["timeline"] = [step.to_dict() for step in timeline_steps(appointment)]
    return result


# Run with: uvicorn web.app:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
