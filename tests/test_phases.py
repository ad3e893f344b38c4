"""
Tests for lifecycle phase state.
"""

import pytest
from datetime import datetime, timedelta, timezone

from property_engine.core import (
    PHASES,
    PhaseStatus,
    InvalidPhaseError,
    InvalidTransitionError,
    ValidationError,
    derive_phase_state,
    get_phase_label,
    advance_phase,
    days_in_current_phase,
    is_phase_overdue,
    build_phase_schedule,
)


class TestPhaseState:
    """Test derived phase status."""

    def test_phase_three(self):
        state = derive_phase_state(3)

        assert state.phases_with_status(PhaseStatus.COMPLETED) == {1, 2}
        assert state.phases_with_status(PhaseStatus.ACTIVE) == {3}
        assert state.phases_with_status(PhaseStatus.PENDING) == {4, 5, 6}
        assert state.progress_percent == pytest.approx(50.0)
        assert state.current.name == "Documentation"

    @pytest.mark.parametrize("current", range(1, 7))
    def test_exactly_one_active_phase(self, current):
        state = derive_phase_state(current)
        assert state.phases_with_status(PhaseStatus.ACTIVE) == {current}
        assert all(
            state.status_of(p.number) == PhaseStatus.COMPLETED
            for p in PHASES if p.number < current
        )

    @pytest.mark.parametrize("phase", [0, 7, -1, 2.5, "3", None, True])
    def test_invalid_phase_rejected(self, phase):
        with pytest.raises(InvalidPhaseError):
            derive_phase_state(phase)

    def test_labels(self):
        assert get_phase_label(1) == "Pre-Check"
        assert get_phase_label(6) == "Handover & Rental"

    def test_to_dict(self):
        data = derive_phase_state(6).to_dict()
        assert data["progress_percent"] == 100.0
        assert data["phases"][0]["status"] == "completed"


class TestAdvancePhase:
    """Test forward-only phase moves."""

    def test_next_phase(self):
        assert advance_phase(3) == 4

    def test_skip_forward(self):
        assert advance_phase(2, to_phase=5) == 5

    def test_backwards_rejected(self):
        with pytest.raises(InvalidTransitionError):
            advance_phase(4, to_phase=2)

    def test_same_phase_rejected(self):
        with pytest.raises(InvalidTransitionError):
            advance_phase(4, to_phase=4)

    def test_final_phase(self):
        with pytest.raises(InvalidTransitionError):
            advance_phase(6)


class TestPhaseTiming:
    """Test elapsed time classification and the planned schedule."""

    def test_days_rounded_up(self):
        start = datetime(2026, 3, 1, 8, 0)
        assert days_in_current_phase(start, start + timedelta(hours=36)) == 2
        assert days_in_current_phase(start, start + timedelta(days=3)) == 3

    def test_future_start_rejected(self):
        start = datetime(2026, 3, 10, 8, 0)
        with pytest.raises(ValidationError):
            days_in_current_phase(start, start - timedelta(days=2))

    def test_mixed_timezones_rejected(self):
        start = datetime(2026, 3, 1, 8, 0)
        with pytest.raises(ValidationError):
            days_in_current_phase(start, datetime(2026, 3, 4, tzinfo=timezone.utc))

    def test_overdue(self):
        # Purchase decision is planned for 7 days
        assert is_phase_overdue(2, 8) is True
        assert is_phase_overdue(2, 7) is False

    def test_overdue_rejects_invalid_phase(self):
        with pytest.raises(InvalidPhaseError):
            is_phase_overdue(9, 1)

    def test_schedule(self):
        schedule = build_phase_schedule(datetime(2026, 1, 1), 2)

        assert len(schedule.phases) == 6
        assert schedule.phases[0].end == datetime(2026, 1, 15)
        assert schedule.phases[1].start == schedule.phases[0].end
        assert schedule.total_days == 180
        assert schedule.phases[1].status == PhaseStatus.ACTIVE
