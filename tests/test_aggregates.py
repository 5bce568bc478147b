from datetime import date

import pytest

from aggregates import (
    CATEGORY_PALETTE,
    available_funds,
    category_slices,
    category_trends,
    comparison_series,
    comparison_window,
    consolidated_assets,
    goal_progress,
    health_score_from_external,
    month_over_month_change,
    net_worth_history,
    score_band,
    score_color,
    total_assets_value,
)
from models import Asset, AssetKind, ComparisonDataPoint, FinancialSnapshot, Goal, ScoreBand, ScoreColor


@pytest.mark.parametrize(
    "score,band",
    [
        (100, ScoreBand.EXCELLENT),
        (80, ScoreBand.EXCELLENT),
        (79, ScoreBand.GOOD),
        (60, ScoreBand.GOOD),
        (59, ScoreBand.FAIR),
        (40, ScoreBand.FAIR),
        (39, ScoreBand.NEEDS_WORK),
        (0, ScoreBand.NEEDS_WORK),
    ],
)
def test_score_band_boundaries(score, band):
    assert score_band(score) == band


@pytest.mark.parametrize(
    "score,color",
    [
        (70, ScoreColor.POSITIVE),
        (69, ScoreColor.WARNING),
        (40, ScoreColor.WARNING),
        (39, ScoreColor.NEGATIVE),
    ],
)
def test_score_color_boundaries(score, color):
    assert score_color(score) == color


def test_external_score_is_clamped():
    assert health_score_from_external(130).score == 100
    assert health_score_from_external(-5).band == ScoreBand.NEEDS_WORK
    health = health_score_from_external(72, "steady")
    assert (health.score, health.band, health.explanation) == (72, ScoreBand.GOOD, "steady")


def test_available_funds_prefers_upstream_balance():
    month = date(2024, 1, 1)
    assert available_funds(FinancialSnapshot(3000, 800, month)) == 2200
    assert available_funds(FinancialSnapshot(3000, 800, month, balance=1900)) == 1900


def _goal(gid, current, target=1000.0, **kwargs):
    return Goal(id=gid, title=gid.title(), target_amount=target, current_amount=current, **kwargs)


def test_consolidated_assets_adds_funded_goals_only():
    real = [Asset(id="a1", kind=AssetKind.PROPERTY, value=150000.0, name="Flat")]
    goals = [_goal("trip", 250.0), _goal("empty", 0.0)]
    targets = [_goal("car", 500.0, target=2000.0)]

    merged = consolidated_assets(real, goals, targets)

    assert [a.id for a in merged] == ["a1", "target-trip", "target-car"]
    car = merged[-1]
    assert car.kind == AssetKind.SAVINGS
    assert car.is_derived_from_goal
    assert car.value == 500.0
    assert car.description == "Target 2,000.00 (25% complete)"
    assert total_assets_value(merged) == pytest.approx(150750.0)


def test_consolidated_assets_keeps_ids_unique():
    real = [
        Asset(id="a1", kind=AssetKind.CASH, value=10.0),
        Asset(id="a1", kind=AssetKind.CASH, value=99.0),
        Asset(id="target-trip", kind=AssetKind.SAVINGS, value=300.0),
    ]
    merged = consolidated_assets(real, [_goal("trip", 250.0)])

    ids = [a.id for a in merged]
    assert ids == ["a1", "target-trip"]
    assert merged[0].value == 10.0
    assert not merged[1].is_derived_from_goal


def test_consolidated_assets_without_goals_is_passthrough():
    real = [Asset(id="x", kind=AssetKind.OTHER, value=1.0)]
    assert consolidated_assets(real) == real


def test_goal_progress_for_savings_goal():
    progress = goal_progress(_goal("trip", 1500.0))
    assert progress.percentage == 100.0
    assert not progress.is_over

    assert goal_progress(_goal("zero", 50.0, target=0.0)).percentage == 0.0


def test_goal_progress_for_spending_limit_matches_category_case_insensitively():
    limit = _goal("food", 0.0, target=400.0, category="Food")
    progress = goal_progress(limit, {"food": 300.0, "Transport": 80.0})
    assert progress.amount == 300.0
    assert progress.percentage == pytest.approx(75.0)
    assert not progress.is_over

    over = goal_progress(limit, {"FOOD ": 450.0})
    assert over.is_over
    assert over.percentage == 100.0


@pytest.mark.parametrize(
    "current,previous,expected",
    [
        (150.0, 100.0, (50.0, 50.0)),
        (50.0, 100.0, (-50.0, -50.0)),
        (80.0, 0.0, (80.0, 100.0)),
        (0.0, 0.0, (0.0, 0.0)),
    ],
)
def test_month_over_month_change(current, previous, expected):
    assert month_over_month_change(current, previous) == pytest.approx(expected)


def test_category_slices_sorted_with_palette():
    slices = category_slices({"Transport": 200.0, "Food": 600.0, "Fun": 200.0})
    assert [s.name for s in slices][0] == "Food"
    assert slices[0].percentage == pytest.approx(60.0)
    assert sum(s.percentage for s in slices) == pytest.approx(100.0)
    assert [s.color for s in slices] == list(CATEGORY_PALETTE[:3])


def test_category_slices_palette_wraps():
    slices = category_slices({f"c{i}": float(20 - i) for i in range(10)})
    assert slices[8].color == CATEGORY_PALETTE[0]


def test_category_slices_empty_and_zero():
    assert category_slices({}) == []
    assert category_slices({"Food": 0.0})[0].percentage == 0.0


def test_category_trends():
    trends = category_trends({"Food": 150.0, "New": 30.0}, {"Food": 100.0, "Gone": 40.0})
    assert trends["Food"].percentage_change == pytest.approx(50.0)
    assert trends["Food"].is_increase
    assert trends["New"].percentage_change == 100.0
    assert trends["Gone"].change == -40.0
    assert not trends["Gone"].is_increase


def _point(month, income, expenses, balance):
    return ComparisonDataPoint(month=date(2024, month, 1), income=income, expenses=expenses, balance=balance)


def test_comparison_series_orders_and_diffs():
    series = comparison_series([_point(3, 120, 60, 60), _point(1, 100, 40, 60), _point(2, 90, 50, 40)])

    assert [p.month.month for p in series] == [1, 2, 3]
    assert (series[0].income_change, series[0].balance_change) == (0, 0)
    assert series[1].income_change == -10
    assert series[2].expenses_change == 10
    assert series[2].balance_change == 20


def test_comparison_window_keeps_trailing_months():
    series = [_point(m, 1, 1, 0) for m in range(1, 13)]
    assert [p.month.month for p in comparison_window(series, 3)] == [10, 11, 12]
    assert len(comparison_window(series, 12)) == 12
    assert comparison_window(series, 0) == []


def test_net_worth_history_accumulates_cash():
    history = net_worth_history([_point(2, 0, 50, -50), _point(1, 300, 100, 200)], total_assets=1000.0)
    assert [p.cash_available for p in history] == [200.0, 150.0]
    assert [p.net_worth for p in history] == [1200.0, 1150.0]
    assert all(p.assets == 1000.0 for p in history)
