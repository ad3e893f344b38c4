"""
Core modules for the Property Lifecycle Engine.

Assessment:
- snapshot: Property snapshot data model
- validation: Input validation rules
- scoring: Category scores (energy, yield, HOA, location)
- traffic_light: Overall verdict and multi-unit building aggregation

Lifecycle:
- phases: Six-phase lifecycle state and schedule
- renovation: Renovation and furnishing budget estimates
- notary: Notary appointment state machine (PROPOSED → ... → COMPLETED)

All failures derive from errors.EngineError.
"""

from .errors import (
    EngineError,
    ValidationError,
    InsufficientDataError,
    InvalidPhaseError,
    InvalidDateProposalError,
    InvalidSelectionError,
    InvalidTransitionError,
    PartnerManagedError,
    ConcurrentModificationError,
    AppointmentNotFoundError,
)

# Assessment imports
from .snapshot import (
    PropertySnapshot,
    EnergyClass,
    HeatingType,
    RentalStrategy,
    VacancyStatus,
    WGRoom,
    EnergyProfile,
    FinancialDetails,
    RentalDetails,
    HOACosts,
    LocationInputs,
)
from .scoring import (
    ScoreCategory,
    TrafficLight,
    ScoringMode,
    ScoreFactor,
    CategoryScore,
    FACTOR_WEIGHTS,
    derive_status,
    score_energy,
    score_yield,
    score_hoa,
    score_location,
    compute_category_scores,
)
from .traffic_light import (
    OverallAssessment,
    AssessmentSummary,
    UnitAssessment,
    BuildingAssessment,
    aggregate_assessment,
    aggregate_units,
)

# Lifecycle imports
from .phases import (
    PhaseStatus,
    PhaseDefinition,
    PhaseState,
    PhaseSchedule,
    PHASES,
    validate_phase,
    get_phase,
    get_phase_label,
    derive_phase_state,
    advance_phase,
    days_in_current_phase,
    is_phase_overdue,
    build_phase_schedule,
)
from .renovation import (
    Trade,
    TRADES,
    RenovationEstimate,
    QualityLevel,
    FurnitureItem,
    FURNITURE_CATALOGUE,
    FurnishingEstimate,
    estimate_renovation_budget,
    describe_renovation,
    estimate_furnishing_budget,
)
from .notary import (
    NotaryStatus,
    NotaryAction,
    NotaryInfo,
    NotaryAppointment,
    InternalManagement,
    PartnerManagement,
    StateTransition,
    TimelineStep,
    create_appointment,
    propose_notary_dates,
    select_notary_date,
    confirm_notary_appointment,
    mark_documents_prepared,
    complete_appointment,
    timeline_steps,
)
from .validation import (
    ValidationResult,
    validate_snapshot,
    validate_appointment,
    validate_appointment_dict,
)
from .sync import apply_partner_sync

__all__ = [
    # Errors
    "EngineError",
    "ValidationError",
    "InsufficientDataError",
    "InvalidPhaseError",
    "InvalidDateProposalError",
    "InvalidSelectionError",
    "InvalidTransitionError",
    "PartnerManagedError",
    "ConcurrentModificationError",
    "AppointmentNotFoundError",
    # Snapshot
    "PropertySnapshot",
    "EnergyClass",
    "HeatingType",
    "RentalStrategy",
    "VacancyStatus",
    "WGRoom",
    "EnergyProfile",
    "FinancialDetails",
    "RentalDetails",
    "HOACosts",
    "LocationInputs",
    # Scoring
    "ScoreCategory",
    "TrafficLight",
    "ScoringMode",
    "ScoreFactor",
    "CategoryScore",
    "FACTOR_WEIGHTS",
    "derive_status",
    "score_energy",
    "score_yield",
    "score_hoa",
    "score_location",
    "compute_category_scores",
    # Traffic light
    "OverallAssessment",
    "AssessmentSummary",
    "UnitAssessment",
    "BuildingAssessment",
    "aggregate_assessment",
    "aggregate_units",
    # Phases
    "PhaseStatus",
    "PhaseDefinition",
    "PhaseState",
    "PhaseSchedule",
    "PHASES",
    "validate_phase",
    "get_phase",
    "get_phase_label",
    "derive_phase_state",
    "advance_phase",
    "days_in_current_phase",
    "is_phase_overdue",
    "build_phase_schedule",
    # Renovation
    "Trade",
    "TRADES",
    "RenovationEstimate",
    "QualityLevel",
    "FurnitureItem",
    "FURNITURE_CATALOGUE",
    "FurnishingEstimate",
    "estimate_renovation_budget",
    "describe_renovation",
    "estimate_furnishing_budget",
    # Notary
    "NotaryStatus",
    "NotaryAction",
    "NotaryInfo",
    "NotaryAppointment",
    "InternalManagement",
    "PartnerManagement",
    "StateTransition",
    "TimelineStep",
    "create_appointment",
    "propose_notary_dates",
    "select_notary_date",
    "confirm_notary_appointment",
    "mark_documents_prepared",
    "complete_appointment",
    "apply_partner_sync",
    "timeline_steps",
    # Validation
    "ValidationResult",
    "validate_snapshot",
    "validate_appointment",
    "validate_appointment_dict",
]
