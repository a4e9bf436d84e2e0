"""Tests for monthly price computation and currency formatting."""

import pytest

from app.domain.errors import InvalidConfiguration
from app.domain.pricing import PLAN_PRICES, compute_total_price, format_price, unit_price


class TestComputeTotalPrice:
    def test_diet_two_meals_three_days(self):
        price = compute_total_price("diet", ["breakfast", "lunch"], ["monday", "wednesday", "friday"])
        assert price == 774000

    @pytest.mark.parametrize(
        "plan,meals,days,expected",
        [
            ("protein", ["dinner"], ["sunday"], 172000),
            ("royal", ["breakfast", "lunch", "dinner"], ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"], 5418000),
            ("diet", ["lunch"], ["monday", "tuesday"], 258000),
        ],
    )
    def test_matches_formula(self, plan, meals, days, expected):
        assert compute_total_price(plan, meals, days) == expected
        assert expected == round(PLAN_PRICES[plan] * len(meals) * len(days) * 4.3)

    def test_duplicates_are_ignored(self):
        assert compute_total_price("diet", ["lunch", "lunch"], ["monday", "monday"]) == compute_total_price(
            "diet", ["lunch"], ["monday"]
        )

    def test_order_is_irrelevant(self):
        forward = compute_total_price("royal", ["breakfast", "dinner"], ["monday", "friday"])
        backward = compute_total_price("royal", ["dinner", "breakfast"], ["friday", "monday"])
        assert forward == backward

    @pytest.mark.parametrize(
        "plan,meals,days",
        [
            ("diet", [], ["monday"]),
            ("royal", ["lunch"], []),
            (None, ["lunch"], ["monday"]),
            ("", ["lunch"], ["monday"]),
        ],
    )
    def test_incomplete_selection_prices_at_zero(self, plan, meals, days):
        assert compute_total_price(plan, meals, days) == 0

    def test_repeated_calls_are_identical(self):
        args = ("protein", ["breakfast", "lunch"], ["monday", "thursday"])
        assert compute_total_price(*args) == compute_total_price(*args)

    def test_unknown_plan_rejected(self):
        with pytest.raises(InvalidConfiguration):
            compute_total_price("keto", ["lunch"], ["monday"])


class TestUnitPrice:
    def test_known_plans(self):
        assert unit_price("diet") == 30000
        assert unit_price("protein") == 40000
        assert unit_price("royal") == 60000

    def test_unknown_plan_kind(self):
        with pytest.raises(InvalidConfiguration) as excinfo:
            unit_price("vegan")
        assert excinfo.value.kind == "InvalidConfiguration"


class TestFormatPrice:
    def test_rupiah_formatting(self):
        formatted = format_price(774000)
        assert formatted.startswith("Rp")
        assert "774.000" in formatted

    def test_other_locale(self):
        assert format_price(1500, locale="en_US", currency="USD") == "$1,500.00"
