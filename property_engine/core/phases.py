"""
Development lifecycle phases.

A property moves through six fixed phases:
Pre-Check → Purchase Decision → Documentation → Marketing →
Buyer & Notary → Handover & Rental

The engine does not decide when a property may advance; it derives
display state from the stored phase number and classifies elapsed time
supplied by the caller.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Optional

from .errors import InvalidPhaseError, InvalidTransitionError, ValidationError


class PhaseStatus(Enum):
    """Display status of a phase relative to the current one."""

    COMPLETED = "completed"
    ACTIVE = "active"
    PENDING = "pending"


@dataclass(frozen=True)
class PhaseDefinition:
    """Static definition of a lifecycle phase."""

    number: int
    name: str
    short_name: str
    planned_days: int  # Scheduling only, never used for scoring
    description: str = ""


PHASES: tuple[PhaseDefinition, ...] = (
    PhaseDefinition(1, "Pre-Check", "Pre-Check", 14,
                    "Initial property evaluation and traffic light assessment"),
    PhaseDefinition(2, "Purchase Decision", "Purchase", 7,
                    "GO/NO-GO decision based on assessment"),
    PhaseDefinition(3, "Documentation", "Documentation", 39,
                    "Complete documentation and prepare for marketing"),
    PhaseDefinition(4, "Marketing", "Marketing", 60,
                    "Active marketing and buyer reservation"),
    PhaseDefinition(5, "Buyer & Notary", "Buyer Process", 30,
                    "Finalize sale with buyer and notary"),
    PhaseDefinition(6, "Handover & Rental", "Handover", 30,
                    "Complete handover and setup rental"),
)

FIRST_PHASE = PHASES[0].number
LAST_PHASE = PHASES[-1].number
PHASE_COUNT = len(PHASES)


@dataclass(frozen=True)
class PhaseEntry:
    """One phase with its derived status."""

    number: int
    name: str
    status: PhaseStatus
    planned_days: int

    def to_dict(self) -> dict:
        return {
            "phase": self.number,
            "name": self.name,
            "status": self.status.value,
            "planned_days": self.planned_days,
        }


@dataclass(frozen=True)
class PhaseState:
    """Derived status of all phases for a given current phase."""

    current_phase: int
    phases: tuple[PhaseEntry, ...]

    @property
    def progress_percent(self) -> float:
        return self.current_phase / PHASE_COUNT * 100

    @property
    def current(self) -> PhaseEntry:
        return self.phases[self.current_phase - 1]

    def status_of(self, phase: int) -> PhaseStatus:
        validate_phase(phase)
        return self.phases[phase - 1].status

    def phases_with_status(self, status: PhaseStatus) -> set[int]:
        return {p.number for p in self.phases if p.status == status}

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "current_phase": self.current_phase,
            "current_phase_name": self.current.name,
            "progress_percent": round(self.progress_percent, 1),
            "phases": [p.to_dict() for p in self.phases],
        }


def validate_phase(phase: Any) -> int:
    """
    Ensure phase is an integer in 1..6.

    Raises:
        InvalidPhaseError: For anything else (no clamping)
    """
    if isinstance(phase, bool) or not isinstance(phase, int):
        raise InvalidPhaseError(phase)
    if phase < FIRST_PHASE or phase > LAST_PHASE:
        raise InvalidPhaseError(phase)
    return phase


def get_phase(phase: int) -> PhaseDefinition:
    """Get the static definition of a phase."""
    return PHASES[validate_phase(phase) - 1]


def get_phase_label(phase: int) -> str:
    return get_phase(phase).name


def derive_phase_state(current_phase: int) -> PhaseState:
    """
    Derive the status of every phase from the current phase number.

    Phases before the current one are completed, the current one is
    active, the rest are pending.

    Raises:
        InvalidPhaseError: If current_phase is outside 1..6
    """
    validate_phase(current_phase)

    entries = []
    for definition in PHASES:
        if definition.number < current_phase:
            status = PhaseStatus.COMPLETED
        elif definition.number == current_phase:
            status = PhaseStatus.ACTIVE
        else:
            status = PhaseStatus.PENDING
        entries.append(PhaseEntry(
            number=definition.number,
            name=definition.name,
            status=status,
            planned_days=definition.planned_days,
        ))

    return PhaseState(current_phase=current_phase, phases=tuple(entries))


def advance_phase(current_phase: int, to_phase: Optional[int] = None) -> int:
    """
    Validate a forward move and return the new phase number.

    Args:
        current_phase: The stored phase
        to_phase: Target phase (defaults to the next one)

    Raises:
        InvalidPhaseError: If either phase is outside 1..6
        InvalidTransitionError: If the move is not strictly forward
    """
    validate_phase(current_phase)
    if to_phase is None:
        if current_phase == LAST_PHASE:
            raise InvalidTransitionError(
                f"phase {current_phase}", "advance", "already in the final phase"
            )
        return current_phase + 1

    validate_phase(to_phase)
    if to_phase <= current_phase:
        raise InvalidTransitionError(
            f"phase {current_phase}", "advance",
            f"phases only move forward (requested phase {to_phase})",
        )
    return to_phase


def days_in_current_phase(phase_started_at: datetime, now: datetime) -> int:
    """
    Whole days (rounded up) elapsed since the phase started.

    Raises:
        ValidationError: Phase start lies after ``now``, or only one of the
            two is timezone-aware
    """
    if (phase_started_at.utcoffset() is None) != (now.utcoffset() is None):
        raise ValidationError(
            "phase_started_at",
            "Phase start and current time must both be naive or both timezone-aware",
            phase_started_at.isoformat(),
        )
    if now < phase_started_at:
        raise ValidationError(
            "phase_started_at", "Phase start lies in the future", phase_started_at.isoformat()
        )
    elapsed = (now - phase_started_at).total_seconds()
    return math.ceil(elapsed / 86400)


def is_phase_overdue(current_phase: int, days_in_phase: int) -> bool:
    """True when elapsed days exceed the phase's planned duration."""
    return days_in_phase > get_phase(current_phase).planned_days


@dataclass(frozen=True)
class ScheduledPhase:
    """Planned window for one phase."""

    number: int
    name: str
    start: datetime
    end: datetime
    status: PhaseStatus

    def to_dict(self) -> dict:
        return {
            "phase": self.number,
            "name": self.name,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "status": self.status.value,
        }


@dataclass
class PhaseSchedule:
    """Planned timeline of all phases from a lifecycle start date."""

    start: datetime
    phases: list[ScheduledPhase] = field(default_factory=list)

    @property
    def end(self) -> datetime:
        return self.phases[-1].end

    @property
    def total_days(self) -> int:
        return (self.end - self.start).days

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "total_days": self.total_days,
            "phases": [p.to_dict() for p in self.phases],
        }


def build_phase_schedule(start: datetime, current_phase: int) -> PhaseSchedule:
    """
    Lay out planned phase windows back to back from ``start``.

    Raises:
        InvalidPhaseError: If current_phase is outside 1..6
    """
    state = derive_phase_state(current_phase)
    schedule = PhaseSchedule(start=start)

    cursor = start
    for definition, entry in zip(PHASES, state.phases):
        end = cursor + timedelta(days=definition.planned_days)
        schedule.phases.append(ScheduledPhase(
            number=definition.number,
            name=definition.name,
            start=cursor,
            end=end,
            status=entry.status,
        ))
        cursor = end

    return schedule
