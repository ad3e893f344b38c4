"""
Input validation rules for property snapshots and notary appointments.

Snapshots are checked before scoring; appointments are checked on
ingress from the partner synchronization feed, where the engine has
not produced the state through its own transitions.
"""

from dataclasses import dataclass
from datetime import datetime

from .errors import ValidationError
from .notary import REQUIRED_PROPOSALS, NotaryAppointment, NotaryStatus, same_tz_awareness
from .snapshot import EnergyClass, PropertySnapshot, RentalStrategy, VacancyStatus


@dataclass
class ValidationResult:
    """Result of validation operation."""

    is_valid: bool
    errors: list[ValidationError]
    warnings: list[str]

    def __bool__(self) -> bool:
        return self.is_valid

    def raise_for_errors(self) -> None:
        """Raise the first error, if any."""
        if self.errors:
            raise self.errors[0]


def _check_rating(errors: list[ValidationError], field: str, value) -> None:
    if value is not None and not 0 <= value <= 10:
        errors.append(ValidationError(field, "Rating must be between 0 and 10", value))


def validate_snapshot(snapshot: PropertySnapshot) -> ValidationResult:
    """
    Validate a snapshot for correctness and completeness.

    Missing scoring data is not an error here (the scorers report it as
    insufficient data); only malformed values are.

    Returns ValidationResult with any errors found.
    """
    errors: list[ValidationError] = []
    warnings: list[str] = []

    if snapshot.living_area < 0:
        errors.append(ValidationError(
            "living_area",
            "Living area cannot be negative",
            snapshot.living_area
        ))
    elif 0 < snapshot.living_area < 10:
        warnings.append("Living area under 10 m² is unusually small")

    # Financial validation
    fin = snapshot.financial
    for name in ("purchase_price", "renovation_budget", "furnishing_budget"):
        value = getattr(fin, name)
        if value < 0:
            errors.append(ValidationError(f"financial.{name}", "Amount cannot be negative", value))

    if fin.purchase_price > 0 and fin.renovation_budget > fin.purchase_price:
        warnings.append("Renovation budget exceeds purchase price - verify this is correct")

    # Energy validation
    energy = snapshot.energy
    if energy.energy_class is not None and not isinstance(energy.energy_class, EnergyClass):
        errors.append(ValidationError(
            "energy.energy_class",
            f"Invalid energy class: {energy.energy_class}"
        ))
    if energy.consumption is not None and energy.consumption < 0:
        errors.append(ValidationError(
            "energy.consumption",
            "Consumption cannot be negative",
            energy.consumption
        ))
    if energy.construction_year is not None:
        if energy.construction_year > datetime.now().year + 5:
            errors.append(ValidationError(
                "energy.construction_year",
                "Construction year is in the future",
                energy.construction_year
            ))
        elif energy.construction_year < 1800:
            warnings.append("Construction year before 1800 - verify this is correct")

    # Rental validation
    rental = snapshot.rental
    if not isinstance(rental.strategy, RentalStrategy):
        errors.append(ValidationError("rental.strategy", f"Invalid strategy: {rental.strategy}"))
    if not isinstance(rental.vacancy_status, VacancyStatus):
        errors.append(ValidationError(
            "rental.vacancy_status",
            f"Invalid vacancy status: {rental.vacancy_status}"
        ))
    if rental.planned_rent < 0:
        errors.append(ValidationError("rental.planned_rent", "Rent cannot be negative",
                                      rental.planned_rent))
    if rental.current_rent is not None and rental.current_rent < 0:
        errors.append(ValidationError("rental.current_rent", "Rent cannot be negative",
                                      rental.current_rent))
    for idx, room in enumerate(rental.wg_rooms):
        if room.rent < 0:
            errors.append(ValidationError(f"rental.wg_rooms[{idx}].rent",
                                          "Rent cannot be negative", room.rent))
    if rental.strategy == RentalStrategy.WG and not rental.wg_rooms:
        warnings.append("Shared-flat letting without rooms yields no rent")
    if rental.vacancy_status == VacancyStatus.RENTED and rental.current_rent is None:
        warnings.append("Rented unit without current rent - planned rent is used")

    # HOA validation
    hoa = snapshot.hoa
    for name in ("landlord", "tenant", "reserve"):
        value = getattr(hoa, name)
        if value < 0:
            errors.append(ValidationError(f"hoa.{name}", "Amount cannot be negative", value))
    _check_rating(errors, "hoa.management_quality", hoa.management_quality)
    _check_rating(errors, "hoa.building_condition", hoa.building_condition)

    # External ratings
    _check_rating(errors, "market_comparison", snapshot.market_comparison)
    if snapshot.location is not None:
        for name in ("public_transport", "amenities", "market_trend", "demographics"):
            _check_rating(errors, f"location.{name}", getattr(snapshot.location, name))

    return ValidationResult(
        is_valid=len(errors) == 0,
        errors=errors,
        warnings=warnings
    )


def validate_appointment(appointment: NotaryAppointment) -> ValidationResult:
    """
    Validate the invariants of a notary appointment.

    Checks that the confirmation flags, dates and status agree, so that
    externally produced state can be trusted like locally produced state.

    Returns ValidationResult with any errors found.
    """
    errors: list[ValidationError] = []
    warnings: list[str] = []

    if not appointment.property_id:
        errors.append(ValidationError("property_id", "Property ID is required"))

    if not isinstance(appointment.status, NotaryStatus):
        errors.append(ValidationError("status", f"Invalid status: {appointment.status}"))
        return ValidationResult(is_valid=False, errors=errors, warnings=warnings)

    rank = appointment.status.rank
    dates = appointment.proposed_dates

    # Proposals
    if dates and len(dates) != REQUIRED_PROPOSALS:
        errors.append(ValidationError(
            "proposed_dates",
            f"Exactly {REQUIRED_PROPOSALS} dates must be proposed",
            len(dates)
        ))
    if len(set(dates)) != len(dates):
        errors.append(ValidationError("proposed_dates", "Proposed dates must be distinct"))
    if rank >= NotaryStatus.PROPOSED.rank and not dates:
        errors.append(ValidationError(
            "proposed_dates",
            f"Status '{appointment.status.value}' requires proposed dates"
        ))

    # Customer selection
    if appointment.selected_date is not None and appointment.selected_date not in dates:
        errors.append(ValidationError(
            "selected_date",
            "Selected date is not one of the proposed dates",
            appointment.selected_date
        ))
    customer_stage = rank >= NotaryStatus.CUSTOMER_CONFIRMED.rank
    if customer_stage and (appointment.selected_date is None or not appointment.customer_confirmed):
        errors.append(ValidationError(
            "selected_date",
            f"Status '{appointment.status.value}' requires a confirmed customer selection"
        ))
    if not customer_stage and (appointment.selected_date is not None
                               or appointment.customer_confirmed):
        errors.append(ValidationError(
            "customer_confirmed",
            f"Status '{appointment.status.value}' cannot carry a customer selection"
        ))

    # Backoffice confirmation
    backoffice_stage = rank >= NotaryStatus.BACKOFFICE_CONFIRMED.rank
    if backoffice_stage:
        if not appointment.backoffice_confirmed or appointment.confirmed_date is None:
            errors.append(ValidationError(
                "confirmed_date",
                f"Status '{appointment.status.value}' requires a backoffice confirmation"
            ))
        elif appointment.confirmed_date != appointment.selected_date:
            errors.append(ValidationError(
                "confirmed_date",
                "Confirmed date must equal the selected date",
                appointment.confirmed_date
            ))
    elif appointment.backoffice_confirmed or appointment.confirmed_date is not None:
        errors.append(ValidationError(
            "backoffice_confirmed",
            f"Status '{appointment.status.value}' cannot carry a backoffice confirmation"
        ))

    # Documents
    documents_stage = rank >= NotaryStatus.DOCUMENTS_PREPARED.rank
    if documents_stage != appointment.documents_prepared:
        errors.append(ValidationError(
            "documents_prepared",
            f"Flag does not match status '{appointment.status.value}'",
            appointment.documents_prepared
        ))

    if appointment.version < 0:
        errors.append(ValidationError("version", "Version cannot be negative", appointment.version))

    if not appointment.notary_name and rank >= NotaryStatus.BACKOFFICE_CONFIRMED.rank:
        warnings.append("Confirmed appointment without notary name")

    return ValidationResult(
        is_valid=len(errors) == 0,
        errors=errors,
        warnings=warnings
    )


def validate_appointment_dict(data: dict) -> ValidationResult:
    """
    Validate raw appointment data before parsing.

    Used for partner sync payloads.
    """
    errors: list[ValidationError] = []
    warnings: list[str] = []

    if not isinstance(data, dict):
        errors.append(ValidationError("payload", "Payload must be an object"))
        return ValidationResult(is_valid=False, errors=errors, warnings=warnings)

    if not data.get("property_id"):
        errors.append(ValidationError("property_id", "Property ID is required"))

    status = data.get("status")
    valid_statuses = [s.value for s in NotaryStatus]
    if status not in valid_statuses:
        errors.append(ValidationError(
            "status",
            f"Must be one of: {', '.join(valid_statuses)}",
            status
        ))

    proposed = data.get("proposed_dates")
    if proposed is not None and not isinstance(proposed, list):
        errors.append(ValidationError("proposed_dates", "Must be a list of ISO dates", proposed))
    else:
        for raw in proposed or []:
            if not _is_iso_datetime(raw):
                errors.append(ValidationError("proposed_dates", "Invalid ISO date", raw))

    for key in ("selected_date", "confirmed_date"):
        raw = data.get(key)
        if raw is not None and not _is_iso_datetime(raw):
            errors.append(ValidationError(key, "Invalid ISO date", raw))

    if not errors:
        parsed = [
            datetime.fromisoformat(raw)
            for raw in (proposed or []) + [data.get("selected_date"), data.get("confirmed_date")]
            if raw
        ]
        if not same_tz_awareness(*parsed):
            errors.append(ValidationError(
                "proposed_dates",
                "Appointment dates must all be timezone-aware or all naive",
            ))

    return ValidationResult(
        is_valid=len(errors) == 0,
        errors=errors,
        warnings=warnings
    )


def _is_iso_datetime(raw) -> bool:
    if not isinstance(raw, str):
        return False
    try:
        datetime.fromisoformat(raw)
    except ValueError:
        return False
    return True
