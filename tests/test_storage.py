"""
Tests for the appointment store and its optimistic concurrency.
"""

import pytest
import threading
from datetime import datetime, timedelta

from property_engine.api import AppointmentStorage
from property_engine.core import (
    NotaryInfo,
    NotaryStatus,
    AppointmentNotFoundError,
    ConcurrentModificationError,
    InvalidTransitionError,
    PartnerManagedError,
)


@pytest.fixture
def storage():
    return AppointmentStorage()


@pytest.fixture
def dates():
    base = datetime.now().replace(microsecond=0) + timedelta(days=10)
    return [base, base + timedelta(days=2), base + timedelta(days=5)]


@pytest.fixture
def selected(storage, dates):
    storage.propose("P-1", dates, NotaryInfo("Dr. Huber"), expected_version=0)
    return storage.select("P-1", dates[0], expected_version=1)


class TestAppointmentStorage:
    """Test basic store operations."""

    def test_propose_creates_appointment(self, storage, dates):
        appointment = storage.propose("P-1", dates, NotaryInfo("Dr. Huber"))

        assert storage.get("P-1") is appointment
        assert storage.count() == 1
        assert storage.by_status(NotaryStatus.PROPOSED) == [appointment]

    def test_require_missing(self, storage):
        with pytest.raises(AppointmentNotFoundError) as exc_info:
            storage.require("P-404")
        assert exc_info.value.code == "not_found"

    def test_select_missing(self, storage, dates):
        with pytest.raises(AppointmentNotFoundError):
            storage.select("P-404", dates[0])

    def test_create_twice(self, storage):
        storage.create("P-1")
        with pytest.raises(ValueError):
            storage.create("P-1")

    def test_full_workflow(self, storage, selected):
        storage.confirm("P-1", expected_version=selected.version)
        storage.prepare_documents("P-1", expected_version=3)
        completed = storage.complete("P-1", expected_version=4)

        assert completed.status == NotaryStatus.COMPLETED
        assert storage.stats()["by_status"]["completed"] == 1

    def test_failed_transition_keeps_state(self, storage, dates):
        proposed = storage.propose("P-1", dates)
        with pytest.raises(InvalidTransitionError):
            storage.confirm("P-1")
        assert storage.get("P-1") is proposed


class TestOptimisticConcurrency:
    """Test version and status checks on write."""

    def test_stale_version_on_first_proposal(self, storage, dates):
        storage.propose("P-1", dates, expected_version=0)
        with pytest.raises(ConcurrentModificationError):
            storage.propose("P-1", dates, expected_version=0)

    def test_second_confirm_with_same_version_conflicts(self, storage, selected):
        storage.confirm("P-1", expected_version=selected.version)
        with pytest.raises(ConcurrentModificationError):
            storage.confirm("P-1", expected_version=selected.version)

    def test_expected_status_mismatch(self, storage, selected):
        with pytest.raises(ConcurrentModificationError):
            storage.apply(
                "P-1",
                lambda current: current,
                expected_status=NotaryStatus.PROPOSED,
            )

    def test_concurrent_confirms(self, storage, selected):
        results = []
        barrier = threading.Barrier(8)

        def confirm():
            barrier.wait()
            try:
                storage.confirm("P-1", expected_version=selected.version)
                results.append("ok")
            except ConcurrentModificationError:
                results.append("conflict")

        threads = [threading.Thread(target=confirm) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count("ok") == 1
        assert results.count("conflict") == 7
        assert storage.get("P-1").version == selected.version + 1


class TestPartnerSync:
    """Test partner sync through the store."""

    def test_sync_then_local_transition(self, storage, dates):
        synced = storage.sync(
            "P-2",
            {
                "status": "customer_confirmed",
                "proposed_dates": [d.isoformat() for d in dates],
                "selected_date": dates[1].isoformat(),
                "customer_confirmed": True,
            },
            synced_at=datetime.now(),
        )

        assert synced.property_id == "P-2"
        assert storage.stats()["partner_managed"] == 1
        with pytest.raises(PartnerManagedError):
            storage.confirm("P-2", expected_version=synced.version)
