"""
Notary appointment workflow.

Coordinates the legal transfer appointment between backoffice staff
and the buyer:

(none) → PROPOSED → CUSTOMER_CONFIRMED → BACKOFFICE_CONFIRMED
       → DOCUMENTS_PREPARED → COMPLETED

Transitions are pure: each returns a new appointment and never mutates
its input. Re-invoking a transition with identical arguments returns
the appointment unchanged; conflicting re-invocations are rejected.
Partner-managed appointments expose the same model but accept no local
transitions; their state arrives through ``sync.apply_partner_sync``.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Sequence, Union

from .errors import (
    InvalidDateProposalError,
    InvalidSelectionError,
    InvalidTransitionError,
    PartnerManagedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

REQUIRED_PROPOSALS = 3


class NotaryStatus(Enum):
    """Workflow states, in order."""

    PREPARATION = "preparation"  # Created, no dates yet
    PROPOSED = "proposed"  # Three dates sent to the customer
    CUSTOMER_CONFIRMED = "customer_confirmed"  # Customer picked a date
    BACKOFFICE_CONFIRMED = "backoffice_confirmed"  # Notary confirmed the date
    DOCUMENTS_PREPARED = "documents_prepared"
    COMPLETED = "completed"  # Sale finalized

    @property
    def rank(self) -> int:
        return STATUS_ORDER.index(self)


STATUS_ORDER = list(NotaryStatus)


class NotaryAction(Enum):
    """Actions that move an appointment between states."""

    PROPOSE_DATES = "propose_dates"
    SUPERSEDE_DATES = "supersede_dates"
    SELECT_DATE = "select_date"
    CONFIRM = "confirm"
    PREPARE_DOCUMENTS = "prepare_documents"
    COMPLETE = "complete"
    SYNC = "sync"  # State received from the partner feed


# Valid local transitions
VALID_TRANSITIONS: dict[NotaryStatus, dict[NotaryAction, NotaryStatus]] = {
    NotaryStatus.PREPARATION: {
        NotaryAction.PROPOSE_DATES: NotaryStatus.PROPOSED,
    },
    NotaryStatus.PROPOSED: {
        NotaryAction.SELECT_DATE: NotaryStatus.CUSTOMER_CONFIRMED,
        NotaryAction.SUPERSEDE_DATES: NotaryStatus.PROPOSED,
    },
    NotaryStatus.CUSTOMER_CONFIRMED: {
        NotaryAction.CONFIRM: NotaryStatus.BACKOFFICE_CONFIRMED,
        NotaryAction.SUPERSEDE_DATES: NotaryStatus.PROPOSED,
    },
    NotaryStatus.BACKOFFICE_CONFIRMED: {
        NotaryAction.PREPARE_DOCUMENTS: NotaryStatus.DOCUMENTS_PREPARED,
    },
    NotaryStatus.DOCUMENTS_PREPARED: {
        NotaryAction.COMPLETE: NotaryStatus.COMPLETED,
    },
    NotaryStatus.COMPLETED: {},
}


@dataclass(frozen=True)
class InternalManagement:
    """Appointment driven by local user actions."""

    @property
    def managed_by(self) -> str:
        return "internal"

    def to_dict(self) -> dict:
        return {"managed_by": self.managed_by}


@dataclass(frozen=True)
class PartnerManagement:
    """Appointment owned by an external sales partner, updated by sync only."""

    partner: str = "blackvesto"
    synced_at: Optional[datetime] = None

    @property
    def managed_by(self) -> str:
        return "partner"

    def to_dict(self) -> dict:
        return {
            "managed_by": self.managed_by,
            "partner": self.partner,
            "synced_at": self.synced_at.isoformat() if self.synced_at else None,
        }


Management = Union[InternalManagement, PartnerManagement]


def management_from_dict(data: Optional[dict]) -> Management:
    if not data or data.get("managed_by", "internal") == "internal":
        return InternalManagement()
    if data["managed_by"] != "partner":
        raise ValidationError("management.managed_by", "Must be 'internal' or 'partner'",
                              data["managed_by"])
    synced_at = data.get("synced_at")
    return PartnerManagement(
        partner=data.get("partner", "blackvesto"),
        synced_at=datetime.fromisoformat(synced_at) if synced_at else None,
    )


@dataclass(frozen=True)
class NotaryInfo:
    """The notary handling the appointment."""

    name: str = ""
    contact: str = ""


@dataclass(frozen=True)
class StateTransition:
    """Record of a state transition in the audit trail."""

    from_status: Optional[NotaryStatus]
    to_status: NotaryStatus
    action: NotaryAction
    timestamp: datetime
    actor: str
    notes: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "from_status": self.from_status.value if self.from_status else None,
            "to_status": self.to_status.value,
            "action": self.action.value,
            "timestamp": self.timestamp.isoformat(),
            "actor": self.actor,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StateTransition":
        return cls(
            from_status=NotaryStatus(data["from_status"]) if data.get("from_status") else None,
            to_status=NotaryStatus(data["to_status"]),
            action=NotaryAction(data["action"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            actor=data.get("actor", ""),
            notes=data.get("notes", ""),
        )


@dataclass(frozen=True)
class NotaryAppointment:
    """
    Notary appointment for one property.

    Never deleted; ``version`` increases with every applied transition
    and is what the store compares for optimistic concurrency.
    """

    appointment_id: str
    property_id: str
    status: NotaryStatus = NotaryStatus.PREPARATION

    proposed_dates: tuple[datetime, ...] = ()
    selected_date: Optional[datetime] = None
    confirmed_date: Optional[datetime] = None

    notary_name: str = ""
    notary_contact: str = ""
    message: str = ""  # Note sent to the customer with the proposals

    customer_confirmed: bool = False
    backoffice_confirmed: bool = False
    documents_prepared: bool = False

    management: Management = field(default_factory=InternalManagement)
    version: int = 0

    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    history: tuple[StateTransition, ...] = ()

    @property
    def is_partner_managed(self) -> bool:
        return isinstance(self.management, PartnerManagement)

    @property
    def is_completed(self) -> bool:
        return self.status == NotaryStatus.COMPLETED

    def get_valid_actions(self) -> list[NotaryAction]:
        """Local actions allowed from the current state."""
        if self.is_partner_managed:
            return []
        return list(VALID_TRANSITIONS.get(self.status, {}).keys())

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "appointment_id": self.appointment_id,
            "property_id": self.property_id,
            "status": self.status.value,
            "proposed_dates": [d.isoformat() for d in self.proposed_dates],
            "selected_date": self.selected_date.isoformat() if self.selected_date else None,
            "confirmed_date": self.confirmed_date.isoformat() if self.confirmed_date else None,
            "notary_name": self.notary_name,
            "notary_contact": self.notary_contact,
            "message": self.message,
            "customer_confirmed": self.customer_confirmed,
            "backoffice_confirmed": self.backoffice_confirmed,
            "documents_prepared": self.documents_prepared,
            "management": self.management.to_dict(),
            "version": self.version,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "valid_actions": [a.value for a in self.get_valid_actions()],
            "history": [t.to_dict() for t in self.history],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "NotaryAppointment":
        """Create appointment from dictionary representation."""
        def _dt(value):
            return datetime.fromisoformat(value) if value else None

        try:
            status = NotaryStatus(data.get("status", "preparation"))
        except ValueError as e:
            raise ValidationError("status", "Unknown appointment status", data.get("status")) from e

        proposed = [datetime.fromisoformat(d) for d in data.get("proposed_dates") or []]
        if not same_tz_awareness(*proposed):
            raise ValidationError(
                "proposed_dates", "Dates must all be timezone-aware or all naive",
                data.get("proposed_dates"),
            )

        appointment = cls(
            appointment_id=data.get("appointment_id") or f"notary-{data['property_id']}",
            property_id=data["property_id"],
            status=status,
            proposed_dates=tuple(sorted(proposed)),
            selected_date=_dt(data.get("selected_date")),
            confirmed_date=_dt(data.get("confirmed_date")),
            notary_name=data.get("notary_name", ""),
            notary_contact=data.get("notary_contact", ""),
            message=data.get("message", ""),
            customer_confirmed=bool(data.get("customer_confirmed", False)),
            backoffice_confirmed=bool(data.get("backoffice_confirmed", False)),
            documents_prepared=bool(data.get("documents_prepared", False)),
            management=management_from_dict(data.get("management")),
            version=data.get("version", 0),
            history=tuple(StateTransition.from_dict(h) for h in data.get("history", [])),
        )

        if data.get("created_at"):
            appointment = replace(appointment, created_at=_dt(data["created_at"]))
        if data.get("updated_at"):
            appointment = replace(appointment, updated_at=_dt(data["updated_at"]))

        return appointment


def same_tz_awareness(*values: Optional[datetime]) -> bool:
    """True when the given datetimes are all naive or all timezone-aware."""
    kinds = {v.utcoffset() is not None for v in values if v is not None}
    return len(kinds) <= 1


def now_like(reference: Optional[datetime]) -> datetime:
    """Current time, timezone-aware if the reference date is."""
    if reference is not None and reference.tzinfo is not None:
        return datetime.now(tz=reference.tzinfo)
    return datetime.now()


def create_appointment(
    property_id: str,
    notary: Optional[NotaryInfo] = None,
    management: Optional[Management] = None,
    now: Optional[datetime] = None,
) -> NotaryAppointment:
    """
    Factory function to create a new appointment in PREPARATION.

    Args:
        property_id: The property being sold
        notary: Optional notary details
        management: Internal (default) or partner-managed

    Returns:
        New NotaryAppointment
    """
    if not property_id:
        raise ValidationError("property_id", "Property ID is required")

    now = now or datetime.now()
    notary = notary or NotaryInfo()
    return NotaryAppointment(
        appointment_id=f"notary-{property_id}",
        property_id=property_id,
        notary_name=notary.name,
        notary_contact=notary.contact,
        management=management or InternalManagement(),
        created_at=now,
        updated_at=now,
    )


def _guard_local(appointment: NotaryAppointment, action: NotaryAction) -> None:
    if isinstance(appointment.management, PartnerManagement):
        raise PartnerManagedError(
            appointment.status.value, action.value, appointment.management.partner
        )


def _transition(
    appointment: NotaryAppointment,
    action: NotaryAction,
    actor: str,
    now: datetime,
    notes: str = "",
    **changes,
) -> NotaryAppointment:
    """Apply a validated transition, returning the new appointment."""
    valid = VALID_TRANSITIONS.get(appointment.status, {})
    if action not in valid:
        raise InvalidTransitionError(appointment.status.value, action.value)

    new_status = valid[action]
    record = StateTransition(
        from_status=appointment.status,
        to_status=new_status,
        action=action,
        timestamp=now,
        actor=actor,
        notes=notes,
    )
    updated = replace(
        appointment,
        status=new_status,
        version=appointment.version + 1,
        updated_at=now,
        history=appointment.history + (record,),
        **changes,
    )
    logger.info(
        "Appointment %s: %s -> %s (%s by %s)",
        appointment.appointment_id, appointment.status.value, new_status.value,
        action.value, actor,
    )
    return updated


def validate_proposal(dates: Sequence[datetime], now: datetime) -> tuple[datetime, ...]:
    """
    Check a date proposal and return it in canonical (sorted) form.

    Raises:
        InvalidDateProposalError: Not exactly 3 distinct dates, not all in the
            future, or naive and timezone-aware values mixed
    """
    if not same_tz_awareness(*dates, now):
        raise InvalidDateProposalError(
            "Proposed dates must all be timezone-aware or all naive, like the current time"
        )
    if len(dates) != REQUIRED_PROPOSALS:
        raise InvalidDateProposalError(
            f"Exactly {REQUIRED_PROPOSALS} dates must be proposed, got {len(dates)}"
        )
    if len(set(dates)) != len(dates):
        raise InvalidDateProposalError("Proposed dates must be distinct")

    past = [d for d in dates if d <= now]
    if past:
        raise InvalidDateProposalError(
            "Proposed dates must be in the future: "
            + ", ".join(d.isoformat() for d in sorted(past))
        )
    return tuple(sorted(dates))


def propose_notary_dates(
    appointment: Optional[NotaryAppointment],
    dates: Sequence[datetime],
    notary: Optional[NotaryInfo] = None,
    property_id: Optional[str] = None,
    now: Optional[datetime] = None,
    actor: str = "backoffice",
    message: str = "",
    supersede: bool = False,
) -> NotaryAppointment:
    """
    Propose three future dates to the customer.

    Creates the appointment when ``appointment`` is None. Once dates
    exist, different dates are only accepted with ``supersede=True``,
    which also clears any customer selection; superseding is impossible
    after the backoffice has confirmed.

    Raises:
        InvalidDateProposalError: Wrong count, duplicates, past dates or mixed time zones
        InvalidTransitionError: Conflicting proposal or wrong state
        PartnerManagedError: Appointment is partner-managed
    """
    action = NotaryAction.SUPERSEDE_DATES if supersede else NotaryAction.PROPOSE_DATES

    if appointment is None:
        if not property_id:
            raise ValidationError("property_id", "Property ID is required for a new appointment")
        appointment = create_appointment(property_id, notary, now=now)

    _guard_local(appointment, action)

    now = now or now_like(dates[0] if dates else None)
    canonical = validate_proposal(list(dates), now)
    notary = notary or NotaryInfo(appointment.notary_name, appointment.notary_contact)
    same_notary = (
        notary.name == appointment.notary_name and notary.contact == appointment.notary_contact
    )

    if appointment.status == NotaryStatus.PROPOSED:
        if canonical == appointment.proposed_dates and same_notary:
            return appointment
        if not supersede:
            raise InvalidTransitionError(
                appointment.status.value, action.value,
                "dates were already proposed, supersede them explicitly",
            )
    elif appointment.status == NotaryStatus.CUSTOMER_CONFIRMED and not supersede:
        raise InvalidTransitionError(
            appointment.status.value, action.value,
            "customer already selected a date, supersede the proposal explicitly",
        )
    elif appointment.status == NotaryStatus.PREPARATION:
        action = NotaryAction.PROPOSE_DATES

    return _transition(
        appointment,
        action,
        actor,
        now,
        proposed_dates=canonical,
        selected_date=None,
        customer_confirmed=False,
        notary_name=notary.name,
        notary_contact=notary.contact,
        message=message or appointment.message,
    )


def select_notary_date(
    appointment: NotaryAppointment,
    selected: datetime,
    now: Optional[datetime] = None,
    actor: str = "customer",
) -> NotaryAppointment:
    """
    Record the customer's choice among the proposed dates.

    Raises:
        InvalidSelectionError: Date not among the proposals, or already passed
        InvalidTransitionError: No open proposal, or a different date was already chosen
        PartnerManagedError: Appointment is partner-managed
    """
    action = NotaryAction.SELECT_DATE
    _guard_local(appointment, action)

    if appointment.status == NotaryStatus.CUSTOMER_CONFIRMED:
        if appointment.selected_date == selected:
            return appointment
        raise InvalidTransitionError(
            appointment.status.value, action.value, "a different date was already selected"
        )
    if appointment.status != NotaryStatus.PROPOSED:
        raise InvalidTransitionError(appointment.status.value, action.value)

    if selected not in appointment.proposed_dates:
        raise InvalidSelectionError(
            f"{selected.isoformat()} is not one of the proposed dates"
        )

    now = now or now_like(selected)
    if not same_tz_awareness(selected, now):
        raise InvalidSelectionError(
            f"{selected.isoformat()} cannot be compared with the current time {now.isoformat()}"
        )
    if selected <= now:
        raise InvalidSelectionError(f"{selected.isoformat()} has already passed")

    return _transition(
        appointment, action, actor, now,
        selected_date=selected,
        customer_confirmed=True,
    )


def confirm_notary_appointment(
    appointment: NotaryAppointment,
    now: Optional[datetime] = None,
    actor: str = "backoffice",
) -> NotaryAppointment:
    """
    Confirm the selected date with the notary.

    Raises:
        InvalidTransitionError: No date selected yet, or wrong state
        PartnerManagedError: Appointment is partner-managed
    """
    action = NotaryAction.CONFIRM
    _guard_local(appointment, action)

    if appointment.status == NotaryStatus.BACKOFFICE_CONFIRMED:
        return appointment
    if appointment.status in (NotaryStatus.PREPARATION, NotaryStatus.PROPOSED):
        raise InvalidTransitionError(
            appointment.status.value, action.value, "no date has been selected"
        )

    return _transition(
        appointment, action, actor, now or datetime.now(),
        confirmed_date=appointment.selected_date,
        backoffice_confirmed=True,
    )


def mark_documents_prepared(
    appointment: NotaryAppointment,
    now: Optional[datetime] = None,
    actor: str = "backoffice",
) -> NotaryAppointment:
    """
    Mark the sale documents as prepared.

    Raises:
        InvalidTransitionError: Appointment not confirmed yet
        PartnerManagedError: Appointment is partner-managed
    """
    action = NotaryAction.PREPARE_DOCUMENTS
    _guard_local(appointment, action)

    if appointment.status == NotaryStatus.DOCUMENTS_PREPARED:
        return appointment

    return _transition(
        appointment, action, actor, now or datetime.now(),
        documents_prepared=True,
    )


def complete_appointment(
    appointment: NotaryAppointment,
    now: Optional[datetime] = None,
    actor: str = "backoffice",
    notes: str = "",
) -> NotaryAppointment:
    """
    Finalize the sale.

    Raises:
        InvalidTransitionError: Documents not prepared yet
        PartnerManagedError: Appointment is partner-managed
    """
    action = NotaryAction.COMPLETE
    _guard_local(appointment, action)

    if appointment.status == NotaryStatus.COMPLETED:
        return appointment

    return _transition(appointment, action, actor, now or datetime.now(), notes=notes)


@dataclass(frozen=True)
class TimelineStep:
    """Display step of the notary timeline."""

    step_id: str
    label: str
    completed: bool

    def to_dict(self) -> dict:
        return {"id": self.step_id, "label": self.label, "completed": self.completed}


def timeline_steps(appointment: Optional[NotaryAppointment]) -> list[TimelineStep]:
    """Six display steps with completion derived from the appointment."""
    has_dates = bool(appointment and appointment.proposed_dates)
    return [
        TimelineStep("request", "Request Dates", has_dates),
        TimelineStep("propose", "Send Proposals", has_dates),
        TimelineStep("confirm_customer", "Customer Confirms",
                     bool(appointment and appointment.customer_confirmed)),
        TimelineStep("confirm_notary", "Notary Confirms",
                     bool(appointment and appointment.backoffice_confirmed)),
        TimelineStep("prepare_docs", "Prepare Documents",
                     bool(appointment and appointment.documents_prepared)),
        TimelineStep("complete", "Complete Sale",
                     bool(appointment and appointment.is_completed)),
    ]
