"""
Tests for renovation and furnishing budget estimates.
"""

import pytest

from property_engine.core import (
    QualityLevel,
    ValidationError,
    estimate_renovation_budget,
    describe_renovation,
    estimate_furnishing_budget,
)


class TestRenovationEstimate:
    """Test the per-trade renovation estimate."""

    def test_total_and_breakdown(self):
        estimate = estimate_renovation_budget({"painting", "kitchen"}, 50)

        assert estimate.total == pytest.approx(8_750)
        assert [t.trade_id for t in estimate.per_trade] == ["painting", "kitchen"]
        assert estimate.per_trade[1].amount == pytest.approx(7_500)
        assert estimate.reliable is True

    @pytest.mark.parametrize("area", [12.5, 48, 85.3])
    def test_linear_in_living_area(self, area):
        trades = ["electrical", "flooring", "bathroom", "windows"]
        single = estimate_renovation_budget(trades, area)
        double = estimate_renovation_budget(trades, area * 2)
        assert double.total == pytest.approx(single.total * 2)

    def test_missing_area_is_unreliable(self):
        estimate = estimate_renovation_budget(["painting"], 0)

        assert estimate.total == 0
        assert estimate.reliable is False
        assert estimate.warning

    def test_no_trades_is_reliable_zero(self):
        estimate = estimate_renovation_budget([], 60)

        assert estimate.total == 0
        assert estimate.reliable is True
        assert estimate.warning is None

    def test_duplicates_counted_once(self):
        estimate = estimate_renovation_budget(["painting", "painting"], 10)
        assert estimate.total == pytest.approx(250)

    def test_unknown_trade(self):
        with pytest.raises(ValidationError) as exc_info:
            estimate_renovation_budget(["roofing"], 50)
        assert exc_info.value.field == "trades"

    def test_description_lists_trades(self):
        text = describe_renovation(["kitchen", "painting"])
        assert "Painting, Kitchen" in text

    def test_description_empty(self):
        assert describe_renovation([]) == ""


class TestFurnishingEstimate:
    """Test the furniture catalogue estimate."""

    def test_basic_quality(self):
        estimate = estimate_furnishing_budget(QualityLevel.BASIC)
        assert estimate.total == pytest.approx(2_820)

    def test_quality_ordering(self):
        totals = [estimate_furnishing_budget(q).total for q in QualityLevel]
        assert totals == sorted(totals)

    def test_standard_is_midpoint(self):
        basic = estimate_furnishing_budget(QualityLevel.BASIC).total
        premium = estimate_furnishing_budget(QualityLevel.PREMIUM).total
        standard = estimate_furnishing_budget(QualityLevel.STANDARD).total
        assert standard == pytest.approx((basic + premium) / 2)

    def test_shared_letting_multiplies_bedroom_items(self):
        estimate = estimate_furnishing_budget(QualityLevel.BASIC, rooms=4, shared_letting=True)

        beds = next(line for line in estimate.lines if line["item_id"] == "bed")
        assert beds["quantity"] == 3
        assert estimate.total == pytest.approx(4_670)

    def test_rooms_required(self):
        with pytest.raises(ValidationError):
            estimate_furnishing_budget(rooms=0)
