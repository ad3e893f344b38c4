"""
Partner sync ingress.

Appointments handled by an external sales partner never run local
transitions. Their state is pushed wholesale and checked against the
appointment invariants before it replaces what is stored.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from .errors import ValidationError
from .notary import (
    NotaryAction,
    NotaryAppointment,
    PartnerManagement,
    StateTransition,
    create_appointment,
    same_tz_awareness,
)
from .validation import validate_appointment, validate_appointment_dict

logger = logging.getLogger(__name__)


def apply_partner_sync(
    current: Optional[NotaryAppointment],
    payload: dict,
    synced_at: datetime,
    partner: str = "blackvesto",
) -> NotaryAppointment:
    """
    Accept appointment state pushed by an external sales partner.

    The payload replaces the local state wholesale; it does not have to
    be reachable through local transitions, but it must satisfy the
    appointment invariants. Updates not newer than the last sync are
    ignored.

    Args:
        current: Stored appointment, if any
        payload: Appointment fields in ``NotaryAppointment.to_dict`` form
        synced_at: When the partner produced this state
        partner: Name of the sales partner

    Returns:
        The partner-managed appointment now in effect

    Raises:
        ValidationError: Malformed payload, inconsistent appointment state,
            or a sync time that cannot be ordered against the last one
    """
    validate_appointment_dict(payload).raise_for_errors()

    if current is not None:
        if payload["property_id"] != current.property_id:
            raise ValidationError(
                "property_id", "Sync payload belongs to another property", payload["property_id"]
            )
        last_sync = getattr(current.management, "synced_at", None)
        if last_sync is not None:
            if not same_tz_awareness(synced_at, last_sync):
                raise ValidationError(
                    "synced_at",
                    "Sync time must be timezone-aware exactly when the last sync was",
                    synced_at.isoformat(),
                )
            if synced_at <= last_sync:
                logger.warning(
                    "Ignoring stale sync for %s (%s <= %s)",
                    current.appointment_id, synced_at.isoformat(), last_sync.isoformat(),
                )
                return current

    incoming = NotaryAppointment.from_dict(payload)
    base = current or create_appointment(incoming.property_id, now=synced_at)

    history = base.history
    if current is None or current.status != incoming.status:
        history = history + (StateTransition(
            from_status=current.status if current else None,
            to_status=incoming.status,
            action=NotaryAction.SYNC,
            timestamp=synced_at,
            actor=partner,
        ),)

    synced = replace(
        incoming,
        appointment_id=base.appointment_id,
        management=PartnerManagement(partner=partner, synced_at=synced_at),
        version=base.version + 1,
        created_at=base.created_at,
        updated_at=synced_at,
        history=history,
    )

    result = validate_appointment(synced)
    if not result:
        logger.warning(
            "Rejected sync for %s: %s",
            synced.appointment_id, "; ".join(str(e) for e in result.errors),
        )
        result.raise_for_errors()

    logger.info(
        "Synced appointment %s from %s: status %s (version %d)",
        synced.appointment_id, partner, synced.status.value, synced.version,
    )
    return synced
