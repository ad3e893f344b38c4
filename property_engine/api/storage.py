"""
Notary appointment storage with optimistic concurrency.

Appointments are kept in memory, one per property. Every write is a
read-modify-write: the caller states the version (and optionally the
status) it last saw, and the write is refused if the stored
appointment has moved on since.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Optional, Sequence

from property_engine.core import (
    AppointmentNotFoundError,
    ConcurrentModificationError,
    NotaryAppointment,
    NotaryInfo,
    NotaryStatus,
    apply_partner_sync,
    complete_appointment,
    confirm_notary_appointment,
    create_appointment,
    mark_documents_prepared,
    propose_notary_dates,
    select_notary_date,
)
from property_engine.core.notary import PartnerManagement

logger = logging.getLogger(__name__)

Transition = Callable[[Optional[NotaryAppointment]], NotaryAppointment]


class AppointmentStorage:
    """
    In-memory notary appointment storage keyed by property ID.
    """

    def __init__(self):
        self._appointments: dict[str, NotaryAppointment] = {}
        self._lock = threading.Lock()

    def get(self, property_id: str) -> Optional[NotaryAppointment]:
        """Get the appointment for a property."""
        return self._appointments.get(property_id)

    def require(self, property_id: str) -> NotaryAppointment:
        """
        Get the appointment for a property.

        Raises:
            AppointmentNotFoundError: If the property has no appointment
        """
        appointment = self._appointments.get(property_id)
        if appointment is None:
            raise AppointmentNotFoundError(property_id)
        return appointment

    def get_all(self) -> list[NotaryAppointment]:
        """Get all appointments."""
        return list(self._appointments.values())

    def count(self) -> int:
        """Get count of appointments."""
        return len(self._appointments)

    def by_status(self, status: NotaryStatus) -> list[NotaryAppointment]:
        """Get appointments in a specific status."""
        return [a for a in self._appointments.values() if a.status == status]

    def apply(
        self,
        property_id: str,
        transition: Transition,
        expected_version: Optional[int] = None,
        expected_status: Optional[NotaryStatus] = None,
    ) -> NotaryAppointment:
        """
        Apply a transition if the stored appointment is still what the caller saw.

        Args:
            property_id: The property whose appointment changes
            transition: Function from the current appointment (or None) to the new one
            expected_version: Version the caller read (0 when none existed)
            expected_status: Status the caller read

        Returns:
            The stored appointment after the transition

        Raises:
            ConcurrentModificationError: If version or status no longer match
        """
        with self._lock:
            current = self._appointments.get(property_id)
            actual_version = current.version if current else 0
            appointment_id = current.appointment_id if current else f"notary-{property_id}"

            if expected_version is not None and expected_version != actual_version:
                logger.info(
                    "Rejected write to %s: version %d expected, %d stored",
                    appointment_id, expected_version, actual_version,
                )
                raise ConcurrentModificationError(
                    appointment_id, f"version {expected_version}", f"version {actual_version}"
                )

            if expected_status is not None:
                actual_status = current.status if current else None
                if actual_status != expected_status:
                    raise ConcurrentModificationError(
                        appointment_id,
                        f"status {expected_status.value}",
                        f"status {actual_status.value if actual_status else 'none'}",
                    )

            updated = transition(current)
            self._appointments[property_id] = updated
            return updated

    # Workflow operations

    def create(
        self,
        property_id: str,
        notary: Optional[NotaryInfo] = None,
        partner: Optional[str] = None,
    ) -> NotaryAppointment:
        """
        Create an appointment in PREPARATION.

        Raises:
            ValueError: If the property already has an appointment
        """
        management = PartnerManagement(partner=partner) if partner else None

        def _create(current):
            if current is not None:
                raise ValueError(f"Appointment for property '{property_id}' already exists")
            return create_appointment(property_id, notary, management)

        return self.apply(property_id, _create)

    def propose(
        self,
        property_id: str,
        dates: Sequence[datetime],
        notary: Optional[NotaryInfo] = None,
        expected_version: Optional[int] = None,
        supersede: bool = False,
        message: str = "",
        actor: str = "backoffice",
    ) -> NotaryAppointment:
        """Propose (or supersede) three dates for a property."""
        return self.apply(
            property_id,
            lambda current: propose_notary_dates(
                current, dates, notary,
                property_id=property_id,
                supersede=supersede,
                message=message,
                actor=actor,
            ),
            expected_version=expected_version,
        )

    def select(
        self,
        property_id: str,
        selected: datetime,
        expected_version: Optional[int] = None,
        actor: str = "customer",
    ) -> NotaryAppointment:
        """Record the customer's date choice."""
        self.require(property_id)
        return self.apply(
            property_id,
            lambda current: select_notary_date(current, selected, actor=actor),
            expected_version=expected_version,
        )

    def confirm(
        self,
        property_id: str,
        expected_version: Optional[int] = None,
        actor: str = "backoffice",
    ) -> NotaryAppointment:
        """Confirm the selected date."""
        self.require(property_id)
        return self.apply(
            property_id,
            lambda current: confirm_notary_appointment(current, actor=actor),
            expected_version=expected_version,
        )

    def prepare_documents(
        self,
        property_id: str,
        expected_version: Optional[int] = None,
        actor: str = "backoffice",
    ) -> NotaryAppointment:
        """Mark documents as prepared."""
        self.require(property_id)
        return self.apply(
            property_id,
            lambda current: mark_documents_prepared(current, actor=actor),
            expected_version=expected_version,
        )

    def complete(
        self,
        property_id: str,
        expected_version: Optional[int] = None,
        actor: str = "backoffice",
        notes: str = "",
    ) -> NotaryAppointment:
        """Finalize the sale."""
        self.require(property_id)
        return self.apply(
            property_id,
            lambda current: complete_appointment(current, actor=actor, notes=notes),
            expected_version=expected_version,
        )

    def sync(
        self,
        property_id: str,
        payload: dict,
        synced_at: datetime,
        partner: str = "blackvesto",
    ) -> NotaryAppointment:
        """
        Ingest partner state for a property.

        Staleness is decided by ``synced_at``, not by version, so no
        expected version applies.
        """
        payload = {**payload, "property_id": payload.get("property_id", property_id)}
        return self.apply(
            property_id,
            lambda current: apply_partner_sync(current, payload, synced_at, partner),
        )

    def stats(self) -> dict:
        """Get storage statistics."""
        appointments = list(self._appointments.values())
        return {
            "total": len(appointments),
            "by_status": {
                status.value: len([a for a in appointments if a.status == status])
                for status in NotaryStatus
            },
            "partner_managed": len([a for a in appointments if a.is_partner_managed]),
        }
