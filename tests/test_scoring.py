"""
Tests for category scoring.

Covers the four category scorers, both weight tables, neutral handling
of missing data and the status thresholds.
"""

import pytest
from datetime import date

from property_engine.core import (
    PropertySnapshot,
    EnergyClass,
    EnergyProfile,
    FinancialDetails,
    RentalDetails,
    RentalStrategy,
    VacancyStatus,
    WGRoom,
    HOACosts,
    LocationInputs,
    ScoreCategory,
    TrafficLight,
    ScoringMode,
    FACTOR_WEIGHTS,
    InsufficientDataError,
    ValidationError,
    derive_status,
    score_energy,
    score_yield,
    score_hoa,
    score_location,
    compute_category_scores,
)
from property_engine.core.scoring import building_age_score, heating_type_score, reserve_score

AS_OF = date(2026, 1, 1)


# --- Test Data Fixtures ---

@pytest.fixture
def efficient_snapshot():
    """New-build apartment with a heat pump."""
    return PropertySnapshot(
        property_id="P-1",
        city="Munich",
        living_area=70,
        energy=EnergyProfile(
            energy_class=EnergyClass.A,
            consumption=40,
            heating_type="Heat Pump",
            construction_year=2023,
        ),
        financial=FinancialDetails(purchase_price=420_000),
        rental=RentalDetails(planned_rent=1_800),
    )


@pytest.fixture
def low_yield_snapshot():
    """Expensive renovation with modest rent."""
    return PropertySnapshot(
        property_id="P-2",
        city="Munich",
        living_area=75,
        financial=FinancialDetails(purchase_price=300_000, renovation_budget=90_000),
        rental=RentalDetails(planned_rent=900),
    )


# --- Energy ---

class TestEnergyScore:
    """Test energy efficiency scoring."""

    def test_efficient_building_is_green(self, efficient_snapshot):
        score = score_energy(efficient_snapshot, as_of=AS_OF)

        assert score.factor("energy_class").score == 9
        assert score.factor("consumption").score == 10
        assert score.factor("heating_type").score == 10
        assert score.factor("building_age").score == 10
        assert score.weighted_score == pytest.approx(9.7)
        assert score.status == TrafficLight.GREEN

    def test_missing_energy_data_is_neutral(self):
        score = score_energy(PropertySnapshot(), as_of=AS_OF)

        assert all(f.score == 5 for f in score.factors)
        assert score.weighted_score == pytest.approx(5.0)
        assert score.status == TrafficLight.YELLOW

    def test_heating_type_lookup_ignores_case(self):
        assert heating_type_score("heat pump") == 10
        assert heating_type_score("  OIL ") == 3

    def test_unknown_heating_type_is_neutral(self):
        assert heating_type_score("Wood Pellets") == 5

    def test_building_age_bands(self):
        assert building_age_score(2022, 2026) == 10
        assert building_age_score(2011, 2026) == 8
        assert building_age_score(1996, 2026) == 6
        assert building_age_score(1976, 2026) == 4
        assert building_age_score(1950, 2026) == 2

    def test_preview_uses_class_and_age_only(self, efficient_snapshot):
        score = score_energy(efficient_snapshot, ScoringMode.PREVIEW, as_of=AS_OF)

        assert [f.name for f in score.factors] == ["energy_class", "building_age"]
        assert score.weighted_score == pytest.approx(9.5)


# --- Yield ---

class TestYieldScore:
    """Test rental yield scoring."""

    def test_low_yield_is_not_green(self, low_yield_snapshot):
        assert low_yield_snapshot.gross_yield == pytest.approx(2.769, abs=0.001)

        score = score_yield(low_yield_snapshot)

        assert score.factor("gross_rental_yield").score == 3
        assert score.factor("renovation_ratio").score == 4
        assert score.factor("price_per_sqm").score == 10
        assert score.factor("market_comparison").score == 7
        assert score.weighted_score == pytest.approx(5.4)
        assert score.status != TrafficLight.GREEN

    def test_preview_weights(self, low_yield_snapshot):
        score = score_yield(low_yield_snapshot, ScoringMode.PREVIEW)

        assert score.factor("market_comparison") is None
        assert score.weighted_score == pytest.approx(5.0)

    def test_supplied_market_comparison(self, low_yield_snapshot):
        snapshot = PropertySnapshot(
            city=low_yield_snapshot.city,
            living_area=low_yield_snapshot.living_area,
            financial=low_yield_snapshot.financial,
            rental=low_yield_snapshot.rental,
            market_comparison=2,
        )
        assert score_yield(snapshot).factor("market_comparison").score == 2

    def test_market_comparison_out_of_range(self, low_yield_snapshot):
        snapshot = PropertySnapshot(
            living_area=75,
            financial=low_yield_snapshot.financial,
            market_comparison=11,
        )
        with pytest.raises(ValidationError):
            score_yield(snapshot)

    def test_price_thresholds_depend_on_city(self):
        financial = FinancialDetails(purchase_price=350_000)
        munich = PropertySnapshot(city="Munich", living_area=70, financial=financial)
        other = PropertySnapshot(city="Dresden", living_area=70, financial=financial)

        # 5,000 EUR/m²
        assert score_yield(munich).factor("price_per_sqm").score == 10
        assert score_yield(other).factor("price_per_sqm").score == 6

    def test_requires_minimal_data(self):
        with pytest.raises(InsufficientDataError) as exc_info:
            score_yield(PropertySnapshot(living_area=50))
        assert exc_info.value.missing == ["purchase_price"]


class TestRentalIncome:
    """Test which rent feeds the yield."""

    def test_wg_rent_is_sum_of_rooms(self):
        rental = RentalDetails(
            strategy=RentalStrategy.WG,
            planned_rent=2_000,
            wg_rooms=(WGRoom("A", 14, 500), WGRoom("B", 12, 450)),
        )
        assert rental.monthly_rent == 950

    def test_rented_unit_uses_current_rent(self):
        rental = RentalDetails(
            planned_rent=1_200,
            vacancy_status=VacancyStatus.RENTED,
            current_rent=980,
        )
        assert rental.monthly_rent == 980

    def test_furnishing_counts_towards_investment(self):
        snapshot = PropertySnapshot(
            living_area=50,
            financial=FinancialDetails(100_000, 20_000, 5_000),
            rental=RentalDetails(planned_rent=625),
        )
        assert snapshot.total_investment == 125_000
        assert snapshot.gross_yield == pytest.approx(6.0)


# --- HOA ---

class TestHOAScore:
    """Test HOA cost scoring."""

    def test_moderate_fees(self):
        snapshot = PropertySnapshot(
            living_area=62,
            financial=FinancialDetails(purchase_price=300_000),
            hoa=HOACosts(landlord=95, tenant=180, reserve=60),
        )
        score = score_hoa(snapshot)

        assert score.factor("monthly_fees_per_sqm").score == 7
        assert score.factor("reserve_adequacy").score == 10
        assert score.weighted_score == pytest.approx(8.1)
        assert score.status == TrafficLight.GREEN

    def test_zero_fees_neutral_only_in_preview(self):
        snapshot = PropertySnapshot(
            living_area=62,
            financial=FinancialDetails(purchase_price=300_000),
        )
        assert score_hoa(snapshot).factor("monthly_fees_per_sqm").score == 10
        assert score_hoa(snapshot, ScoringMode.PREVIEW).factor("monthly_fees_per_sqm").score == 5

    def test_reserve_bands(self):
        assert reserve_score(1.0) == 10
        assert reserve_score(0.5) == 6
        assert reserve_score(0.2) == 2

    def test_supplied_ratings_replace_defaults(self):
        snapshot = PropertySnapshot(
            living_area=50,
            financial=FinancialDetails(purchase_price=200_000),
            hoa=HOACosts(landlord=400, reserve=0, management_quality=2, building_condition=3),
        )
        score = score_hoa(snapshot)

        assert score.factor("management_quality").score == 2
        assert score.factor("building_condition").score == 3
        # 8 EUR/m² → 0, no reserve → 2
        assert score.weighted_score == pytest.approx(0 + 0.6 + 0.4 + 0.3)
        assert score.status == TrafficLight.RED


# --- Location ---

class TestLocationScore:
    """Test location scoring."""

    def test_munich_default(self):
        score = score_location(PropertySnapshot(city="Munich"))
        assert score.weighted_score == pytest.approx(8.1)
        assert score.status == TrafficLight.GREEN

    def test_other_city_default(self):
        score = score_location(PropertySnapshot(city="Kassel"))
        assert score.weighted_score == pytest.approx(6.0)
        assert score.status == TrafficLight.YELLOW

    def test_supplied_inputs(self):
        snapshot = PropertySnapshot(
            city="Munich",
            location=LocationInputs(public_transport=2, amenities=3, market_trend=4, demographics=5),
        )
        score = score_location(snapshot)
        assert score.weighted_score == pytest.approx(0.6 + 0.9 + 0.8 + 1.0)

    def test_rejects_out_of_range_rating(self):
        snapshot = PropertySnapshot(
            location=LocationInputs(public_transport=12, amenities=3, market_trend=4, demographics=5),
        )
        with pytest.raises(ValidationError):
            score_location(snapshot)


# --- All categories ---

class TestComputeCategoryScores:
    """Test the combined scorer and its tables."""

    def test_returns_four_categories_in_order(self, efficient_snapshot):
        scores = compute_category_scores(efficient_snapshot, as_of=AS_OF)
        assert [s.category for s in scores] == list(ScoreCategory)

    def test_insufficient_data(self):
        with pytest.raises(InsufficientDataError) as exc_info:
            compute_category_scores(PropertySnapshot(), as_of=AS_OF)
        assert exc_info.value.missing == ["living_area", "purchase_price"]
        assert exc_info.value.code == "insufficient_data"

    @pytest.mark.parametrize("mode", list(ScoringMode))
    def test_weights_sum_to_one(self, mode):
        for category in ScoreCategory:
            assert sum(FACTOR_WEIGHTS[mode][category].values()) == pytest.approx(1.0)

    def test_status_is_monotonic_in_score(self):
        order = [TrafficLight.RED, TrafficLight.YELLOW, TrafficLight.GREEN]
        ranks = [order.index(derive_status(s / 10)) for s in range(0, 101)]
        assert ranks == sorted(ranks)

    def test_threshold_boundaries(self):
        assert derive_status(7.0) == TrafficLight.GREEN
        assert derive_status(6.99) == TrafficLight.YELLOW
        assert derive_status(4.0) == TrafficLight.YELLOW
        assert derive_status(3.99) == TrafficLight.RED
