"""
Typed failures raised by the assessment and lifecycle engine.

Every error is recoverable at the caller boundary. Each one carries a
short ``code`` so presentation layers can map it to user feedback
(e.g. "select exactly 3 dates") without parsing messages.
"""

from typing import Any, Optional


class EngineError(Exception):
    """Base class for all engine failures."""

    code = "engine_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {"error": self.code, "message": self.message}


class ValidationError(EngineError):
    """Raised when an input field is malformed."""

    code = "validation_error"

    def __init__(self, field: str, message: str, value: Any = None):
        self.field = field
        self.value = value
        super().__init__(f"{field}: {message}")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["field"] = self.field
        return data


class InsufficientDataError(EngineError):
    """Scoring attempted without living area and purchase price."""

    code = "insufficient_data"

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(
            f"Cannot compute score, missing required data: {', '.join(missing)}"
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["missing"] = self.missing
        return data


class InvalidPhaseError(EngineError):
    """Phase number outside 1..6."""

    code = "invalid_phase"

    def __init__(self, phase: Any):
        self.phase = phase
        super().__init__(f"Phase must be an integer between 1 and 6, got {phase!r}")


class InvalidDateProposalError(EngineError):
    """Wrong number of proposed dates, duplicates, or dates not in the future."""

    code = "invalid_date_proposal"


class InvalidSelectionError(EngineError):
    """Selected date is not one of the proposed dates."""

    code = "invalid_selection"


class InvalidTransitionError(EngineError):
    """Out-of-order state change or missing prerequisite."""

    code = "invalid_transition"

    def __init__(self, current_state: Optional[str], action: str, reason: str = ""):
        self.current_state = current_state
        self.action = action
        self.reason = reason
        message = f"Cannot perform '{action}' from state '{current_state or 'none'}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class PartnerManagedError(InvalidTransitionError):
    """Local transition attempted on a partner-managed appointment."""

    code = "partner_managed"

    def __init__(self, current_state: Optional[str], action: str, partner: str):
        self.partner = partner
        super().__init__(
            current_state,
            action,
            f"appointment is managed by '{partner}', updates arrive only via synchronization",
        )


class ConcurrentModificationError(EngineError):
    """Appointment changed between read and write."""

    code = "concurrent_modification"

    def __init__(self, appointment_id: str, expected: Any, actual: Any):
        self.appointment_id = appointment_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Appointment '{appointment_id}' was modified concurrently "
            f"(expected {expected}, found {actual})"
        )


class AppointmentNotFoundError(EngineError):
    """No appointment exists for the requested property."""

    code = "not_found"

    def __init__(self, property_id: str):
        self.property_id = property_id
        super().__init__(f"No notary appointment for property '{property_id}'")
