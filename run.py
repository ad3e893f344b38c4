#!/usr/bin/env python3
"""
Property Lifecycle Engine - Demo

Demonstrates the core functionality:

Assessment:
- Snapshot validation
- Category scoring (full and preview weight tables)
- Traffic light aggregation
- Multi-unit building aggregation

Lifecycle:
- Phase state and planned schedule
- Renovation and furnishing budgets
- Notary appointment workflow (PROPOSED → ... → COMPLETED)
- Partner-managed appointments

Run with: python run.py
"""

from datetime import date, datetime, timedelta

from property_engine.api import AppointmentStorage
from property_engine.core import (
    PropertySnapshot,
    EnergyClass,
    EnergyProfile,
    FinancialDetails,
    RentalDetails,
    RentalStrategy,
    HOACosts,
    WGRoom,
    ScoringMode,
    UnitAssessment,
    QualityLevel,
    NotaryInfo,
    InsufficientDataError,
    InvalidDateProposalError,
    InvalidTransitionError,
    ConcurrentModificationError,
    validate_snapshot,
    compute_category_scores,
    aggregate_assessment,
    aggregate_units,
    derive_phase_state,
    build_phase_schedule,
    days_in_current_phase,
    is_phase_overdue,
    estimate_renovation_budget,
    describe_renovation,
    estimate_furnishing_budget,
    timeline_steps,
)

AS_OF = date(2026, 1, 1)


def create_sample_snapshot() -> PropertySnapshot:
    """Create a renovated two-room apartment in Munich."""
    return PropertySnapshot(
        property_id="MUC-SCHWABING-12",
        city="Munich",
        living_area=62,
        energy=EnergyProfile(
            energy_class=EnergyClass.B,
            consumption=68,
            heating_type="District Heating",
            construction_year=2012,
        ),
        financial=FinancialDetails(
            purchase_price=340_000,
            renovation_budget=25_000,
            furnishing_budget=8_000,
        ),
        rental=RentalDetails(planned_rent=1_650),
        hoa=HOACosts(landlord=95, tenant=180, reserve=60),
    )


def create_sample_wg_snapshot() -> PropertySnapshot:
    """Create a shared-flat letting in Leipzig."""
    return PropertySnapshot(
        property_id="LEJ-PLAGWITZ-3",
        city="Leipzig",
        living_area=96,
        energy=EnergyProfile(
            energy_class=EnergyClass.E,
            consumption=165,
            heating_type="Gas",
            construction_year=1962,
        ),
        financial=FinancialDetails(purchase_price=210_000, renovation_budget=55_000),
        rental=RentalDetails(
            strategy=RentalStrategy.WG,
            wg_rooms=(
                WGRoom("Room 1", 16, 520),
                WGRoom("Room 2", 14, 480),
                WGRoom("Room 3", 12, 450),
            ),
        ),
        hoa=HOACosts(landlord=210, tenant=240, reserve=120),
    )


def print_header(title: str) -> None:
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


# =============================================================================
# Assessment Demos
# =============================================================================

def demo_validation():
    """Demonstrate snapshot validation."""
    print_header("ASSESSMENT: VALIDATION DEMO")

    snapshot = create_sample_snapshot()
    result = validate_snapshot(snapshot)
    print(f"\nSnapshot '{snapshot.property_id}' validation:")
    print(f"  Valid: {result.is_valid}")

    print("\n--- Testing invalid snapshot ---")
    invalid = PropertySnapshot(
        property_id="BROKEN-1",
        living_area=-20,  # Invalid: negative
        financial=FinancialDetails(purchase_price=100_000, renovation_budget=150_000),
        hoa=HOACosts(management_quality=14),  # Invalid: > 10
    )
    result = validate_snapshot(invalid)
    print(f"  Valid: {result.is_valid}")
    for err in result.errors:
        print(f"    - {err}")
    for w in result.warnings:
        print(f"    ! {w}")

    print("\n--- Scoring without minimal data ---")
    try:
        compute_category_scores(PropertySnapshot(property_id="EMPTY"), as_of=AS_OF)
    except InsufficientDataError as e:
        print(f"  Caught expected error: {e}")


def demo_scoring():
    """Demonstrate category scoring and the traffic light."""
    print_header("ASSESSMENT: TRAFFIC LIGHT DEMO")

    for snapshot in (create_sample_snapshot(), create_sample_wg_snapshot()):
        print(f"\n{snapshot.property_id} ({snapshot.city})")
        print(f"  Monthly rent: €{snapshot.monthly_rent:,.0f}")
        print(f"  Total investment: €{snapshot.total_investment:,.0f}")
        print(f"  Gross yield: {snapshot.gross_yield:.2f}%")

        for mode in ScoringMode:
            scores = compute_category_scores(snapshot, mode=mode, as_of=AS_OF)
            summary = aggregate_assessment(scores)
            print(f"\n  [{mode.value}] overall: {summary.overall.value.upper()}")
            for score in scores:
                print(
                    f"    {score.category.value:<9} {score.weighted_score:5.2f} "
                    f"{score.status.value}"
                )
                if mode == ScoringMode.FULL:
                    for f in score.factors:
                        print(f"      - {f.name}: {f.score:g} x {f.weight} ({f.explanation})")


def demo_building():
    """Demonstrate multi-unit building aggregation."""
    print_header("ASSESSMENT: BUILDING DEMO")

    units = []
    for snapshot in (create_sample_snapshot(), create_sample_wg_snapshot()):
        units.append(UnitAssessment(
            unit_id=snapshot.property_id,
            scores=tuple(compute_category_scores(snapshot, as_of=AS_OF)),
            investment=snapshot.total_investment,
            living_area=snapshot.living_area,
            monthly_rent=snapshot.monthly_rent,
        ))

    building = aggregate_units(units, building_renovation_budget=40_000)
    print(f"\nUnits: {building.unit_count}, area {building.total_area:g} m²")
    print(f"Aggregate yield: {building.aggregate_yield:.2f}%")
    print(f"{'category':<10}{'weighted':>10}{'worst':>10}")
    for category in building.weighted:
        w = building.weighted[category]
        m = building.worst[category]
        print(f"{category.value:<10}{w.score:>7.2f} {w.status.value[0].upper()}"
              f"{m.score:>7.2f} {m.status.value[0].upper()}")
    print(f"Overall: weighted {building.weighted_overall.value}, "
          f"worst case {building.worst_overall.value}")


# =============================================================================
# Lifecycle Demos
# =============================================================================

def demo_phases():
    """Demonstrate phase state and schedule."""
    print_header("LIFECYCLE: PHASES DEMO")

    state = derive_phase_state(3)
    print(f"\nCurrent phase: {state.current.name} ({state.progress_percent:.0f}%)")
    for entry in state.phases:
        print(f"  {entry.number}. {entry.name:<20} {entry.status.value}")

    started = datetime(2026, 1, 5)
    days = days_in_current_phase(started, datetime(2026, 2, 20))
    print(f"\nDays in phase: {days} (overdue: {is_phase_overdue(3, days)})")

    schedule = build_phase_schedule(datetime(2025, 12, 1), 3)
    print(f"\nPlanned schedule ({schedule.total_days} days):")
    for phase in schedule.phases:
        print(f"  {phase.number}. {phase.start:%Y-%m-%d} → {phase.end:%Y-%m-%d}  {phase.name}")


def demo_budgets():
    """Demonstrate renovation and furnishing estimates."""
    print_header("LIFECYCLE: BUDGET DEMO")

    trades = ["painting", "flooring", "bathroom"]
    estimate = estimate_renovation_budget(trades, 62)
    print(f"\nRenovation for 62 m²: €{estimate.total:,.0f}")
    for line in estimate.per_trade:
        print(f"  - {line.name}: €{line.cost_per_sqm:g}/m² → €{line.amount:,.0f}")
    print(f"  {describe_renovation(trades)}")

    missing = estimate_renovation_budget(trades, 0)
    print(f"\nWithout living area: €{missing.total:,.0f} (reliable: {missing.reliable})")

    for quality in QualityLevel:
        furnishing = estimate_furnishing_budget(quality=quality, rooms=4, shared_letting=True)
        print(f"Furnishing ({quality.value}, 3 letting rooms): €{furnishing.total:,.0f}")


def demo_notary():
    """Demonstrate the notary workflow through the appointment store."""
    print_header("LIFECYCLE: NOTARY WORKFLOW DEMO")

    storage = AppointmentStorage()
    property_id = "MUC-SCHWABING-12"
    base = datetime.now().replace(hour=10, minute=0, second=0, microsecond=0)
    dates = [base + timedelta(days=d) for d in (14, 16, 21)]

    print("\n--- Proposing two dates ---")
    try:
        storage.propose(property_id, dates[:2])
    except InvalidDateProposalError as e:
        print(f"  Caught expected error: {e}")

    notary = NotaryInfo(name="Dr. Huber", contact="+49 89 123456")
    appointment = storage.propose(property_id, dates, notary, expected_version=0)
    print(f"\nProposed: {[d.strftime('%Y-%m-%d') for d in appointment.proposed_dates]}")

    appointment = storage.select(property_id, dates[1], expected_version=appointment.version)
    print(f"Customer selected: {appointment.selected_date:%Y-%m-%d %H:%M}")

    print("\n--- Two users confirming with the same version ---")
    version = appointment.version
    appointment = storage.confirm(property_id, expected_version=version)
    try:
        storage.confirm(property_id, expected_version=version)
    except ConcurrentModificationError as e:
        print(f"  Caught expected error: {e}")

    appointment = storage.prepare_documents(property_id, expected_version=appointment.version)
    appointment = storage.complete(property_id, expected_version=appointment.version)
    print(f"\nStatus: {appointment.status.value} (version {appointment.version})")

    try:
        storage.confirm(property_id)
    except InvalidTransitionError as e:
        print(f"  Caught expected error: {e}")

    print("\n--- Timeline ---")
    for step in timeline_steps(appointment):
        print(f"  [{'x' if step.completed else ' '}] {step.label}")

    print("\n--- Audit Trail ---")
    for i, transition in enumerate(appointment.history, 1):
        from_status = transition.from_status.value if transition.from_status else "none"
        print(f"  {i}. {from_status} → {transition.to_status.value} "
              f"({transition.action.value} by {transition.actor})")

    print("\n--- Partner-managed property ---")
    partner_property = "LEJ-PLAGWITZ-3"
    synced = storage.sync(
        partner_property,
        {
            "status": "customer_confirmed",
            "proposed_dates": [d.isoformat() for d in dates],
            "selected_date": dates[0].isoformat(),
            "customer_confirmed": True,
            "notary_name": "Notariat Leipzig Mitte",
        },
        synced_at=datetime.now(),
    )
    print(f"  Synced status: {synced.status.value} (managed by {synced.management.managed_by})")
    try:
        storage.confirm(partner_property)
    except InvalidTransitionError as e:
        print(f"  Caught expected error: {e}")

    stats = storage.stats()
    print(f"\n  Appointments: {stats['total']}, partner-managed: {stats['partner_managed']}")


def main():
    """Run all demos."""
    print("\n" + "=" * 60)
    print("  PROPERTY LIFECYCLE ENGINE - DEMO")
    print("=" * 60)

    demo_validation()
    demo_scoring()
    demo_building()

    demo_phases()
    demo_budgets()
    demo_notary()

    print("\n" + "=" * 60)
    print("  DEMO COMPLETE")
    print("=" * 60)
    print("\nRun with: python run.py")
    print()


if __name__ == "__main__":
    main()
