"""Tests for the projection engine."""

from datetime import date
from decimal import Decimal

import pytest

from qbopulse.domain.entities import RecurringExpense
from qbopulse.domain.errors import ValidationError
from qbopulse.domain.projection import ProjectionEngine, clamp_growth, half_over_half_growth
from qbopulse.utils.amount_parser import round2
from qbopulse.utils.date_parser import add_months


def _series(make_fact, revenues, start=date(2023, 1, 1), cogs=0, expenses=0):
    return [make_fact(add_months(start, i), revenue, cogs, expenses) for i, revenue in enumerate(revenues)]


@pytest.fixture
def engine():
    return ProjectionEngine()


class TestGrowthRate:
    """Tests for growth estimation."""

    def test_default_growth_below_twelve_points(self, engine, make_fact):
        facts = _series(make_fact, [10000] * 11)

        assert engine.growth_rate(facts) == pytest.approx(0.05)

    def test_flat_history_has_zero_growth(self, engine, make_fact):
        facts = _series(make_fact, [10000] * 12)

        assert engine.growth_rate(facts) == 0.0

    def test_half_over_half(self, engine, make_fact):
        facts = _series(make_fact, [100] * 6 + [120] * 6)

        assert engine.growth_rate(facts) == pytest.approx(0.20)

    def test_growth_is_clamped(self, engine, make_fact):
        assert engine.growth_rate(_series(make_fact, [100] * 6 + [1000] * 6)) == 0.50
        assert engine.growth_rate(_series(make_fact, [1000] * 6 + [100] * 6)) == -0.30

    def test_zero_first_half(self, make_fact):
        assert half_over_half_growth(_series(make_fact, [0] * 6 + [500] * 6)) == 0.0

    def test_negative_first_half(self, make_fact):
        assert half_over_half_growth(_series(make_fact, [-100] * 6 + [500] * 6)) == 0.0

    def test_odd_length_splits_by_count(self, make_fact):
        facts = _series(make_fact, [100] * 6 + [150] * 7)

        # First 6 against last 7
        assert half_over_half_growth(facts) == pytest.approx((1050 - 600) / 600)

    @pytest.mark.parametrize("raw", [-5.0, -0.31, -0.3, 0.0, 0.5, 0.51, 9.0])
    def test_clamp_bounds(self, raw):
        assert -0.30 <= clamp_growth(raw) <= 0.50

    def test_input_order_does_not_matter(self, engine, make_fact):
        facts = _series(make_fact, [100] * 6 + [120] * 6)

        assert engine.growth_rate(list(reversed(facts))) == pytest.approx(0.20)


class TestSeasonality:
    """Tests for calendar-month seasonality factors."""

    def test_factors_relative_to_overall_average(self, engine, make_fact):
        facts = [
            make_fact(date(2023, 11, 1), 100),
            make_fact(date(2023, 12, 1), 300),
        ]

        factors = engine.seasonality_factors(facts)

        assert factors[11] == pytest.approx(0.5)
        assert factors[12] == pytest.approx(1.5)
        assert factors[1] == 1.0

    def test_averages_repeated_months(self, engine, make_fact):
        facts = [
            make_fact(date(2022, 12, 1), 100),
            make_fact(date(2023, 12, 1), 300),
            make_fact(date(2023, 6, 1), 200),
        ]

        assert engine.seasonality_factors(facts)[12] == pytest.approx(1.0)

    def test_zero_average_gives_neutral_factors(self, engine, make_fact):
        facts = _series(make_fact, [0, 0, 0])

        assert set(engine.seasonality_factors(facts).values()) == {1.0}

    def test_negative_average_gives_neutral_factors(self, engine, make_fact):
        facts = [make_fact(date(2023, 11, 1), -300), make_fact(date(2023, 12, 1), 100)]

        assert set(engine.seasonality_factors(facts).values()) == {1.0}

    def test_negative_average_keeps_projection_sign(self, engine, make_fact):
        facts = [make_fact(date(2023, 11, 1), -300), make_fact(date(2023, 12, 1), 100)]

        assert all(p.revenue < 0 for p in engine.project(facts))


class TestProject:
    """Tests for projected points."""

    def test_always_twelve_points(self, engine, make_fact):
        for length in (1, 5, 12, 100):
            points = engine.project(_series(make_fact, [1000] * length))
            assert len(points) == 12
            assert all(p.is_projected for p in points)

    def test_months_follow_last_observation(self, engine, make_fact):
        points = engine.project(_series(make_fact, [1000] * 3, start=date(2024, 10, 1)))

        assert points[0].month == date(2025, 1, 1)
        assert points[0].label == "Jan '25"
        assert points[-1].month == date(2025, 12, 1)

    def test_default_growth_formula(self, engine, make_fact):
        facts = _series(make_fact, [10000] * 11)

        points = engine.project(facts)

        for i, point in enumerate(points, start=1):
            expected = round2(10000 * (1 + 0.05 / 12) ** i * point.seasonality_factor)
            assert point.revenue == expected
        # Months never observed keep a neutral factor
        assert points[0].seasonality_factor == 1.0

    def test_flat_twelve_months_projects_flat(self, engine, make_fact):
        points = engine.project(_series(make_fact, [10000] * 12))

        assert {p.revenue for p in points} == {Decimal("10000.00")}

    def test_cash_flow_and_net_profit_use_own_averages(self, engine, make_fact):
        facts = _series(make_fact, [1000] * 12, cogs=200, expenses=300)

        point = engine.project(facts)[0]

        assert point.cash_flow == Decimal("500.00")
        assert point.net_profit == Decimal("500.00")

    def test_seasonality_applied(self, engine, make_fact):
        facts = [
            make_fact(date(2024, 11, 1), 100),
            make_fact(date(2024, 12, 1), 300),
        ]

        points = engine.project(facts)
        november = next(p for p in points if p.month.month == 11)

        assert november.seasonality_factor == pytest.approx(0.5)
        assert november.revenue == round2(200 * (1 + 0.05 / 12) ** 11 * 0.5)

    def test_values_are_rounded(self, engine, make_fact):
        points = engine.project(_series(make_fact, [333.33, 1000, 10], cogs=1.11))

        for point in points:
            for value in (point.revenue, point.cash_flow, point.net_profit):
                assert value.as_tuple().exponent == -2

    def test_recurring_expenses_attached_to_month(self, engine, make_fact):
        insurance = RecurringExpense("Annual insurance", Decimal("12000.00"), date(2025, 4, 10))
        facts = _series(make_fact, [1000] * 3, start=date(2024, 10, 1))

        points = engine.project(facts, recurring=[insurance])

        april = next(p for p in points if p.month == date(2025, 4, 1))
        assert april.recurring_expenses == (insurance,)
        assert sum(len(p.recurring_expenses) for p in points) == 1

    def test_empty_history_raises(self, engine):
        with pytest.raises(ValidationError):
            engine.project([])


def test_historical_points(engine, make_fact):
    facts = _series(make_fact, [1000, 2000], cogs=100, expenses=50)

    points = engine.historical_points(reversed(facts))

    assert [p.label for p in points] == ["Jan '23", "Feb '23"]
    assert not any(p.is_projected for p in points)
    assert points[1].cash_flow == Decimal("1850.00")
    assert points[1].seasonality_factor is None
