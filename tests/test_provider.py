from datetime import date

import pytest

from models import AssetKind, ScoreBand
from provider import (
    fetch_assets,
    fetch_comparison_points,
    fetch_goals,
    fetch_health_score,
    fetch_snapshot,
    fetch_spend_by_category,
    load_dashboard,
    month_key,
    monthly_totals,
    shift_month,
    transactions_to_df,
)


def test_shift_month_crosses_years():
    assert shift_month(date(2024, 1, 15), -1) == date(2023, 12, 1)
    assert shift_month(date(2023, 11, 30), 3) == date(2024, 2, 1)
    assert month_key(date(2024, 3, 9)) == "2024-03"


def test_empty_database_gives_empty_frames(session):
    df = transactions_to_df(session)
    assert df.empty
    assert monthly_totals(df).empty
    snap = fetch_snapshot(session, date(2024, 1, 1))
    assert (snap.income, snap.expenses, snap.balance) == (0.0, 0.0, 0.0)
    assert fetch_health_score(session, date(2024, 1, 1)) is None


def test_goal_transfers_are_netted_into_balance(seeded):
    snap = fetch_snapshot(seeded, date(2024, 1, 17))
    assert snap.month == date(2024, 1, 1)
    assert snap.income == pytest.approx(3000.0)
    assert snap.expenses == pytest.approx(800.0)
    assert snap.balance == pytest.approx(1900.0)


def test_spend_by_category_skips_transfers_and_fills_blank_names(seeded):
    spend = fetch_spend_by_category(seeded, date(2024, 1, 1))
    assert spend == {"Food": 500.0, "Transport": 200.0, "Other": 100.0}
    assert list(spend) == ["Food", "Transport", "Other"]


def test_comparison_points_fill_missing_months(seeded):
    points = fetch_comparison_points(seeded, date(2024, 2, 1), months=3)
    assert [p.month for p in points] == [date(2023, 12, 1), date(2024, 1, 1), date(2024, 2, 1)]
    assert points[0].income == 0.0
    assert points[2].income == pytest.approx(3200.0)
    assert points[2].income_change == pytest.approx(200.0)
    assert points[2].balance == pytest.approx(2600.0)


def test_goals_split_on_target_type(seeded):
    goals, targets = fetch_goals(seeded)
    assert [g.id for g in goals] == ["g2"]
    assert goals[0].is_spending_limit
    assert [t.id for t in targets] == ["g1"]


def test_assets_parse_kind(seeded):
    assets = fetch_assets(seeded)
    assert len(assets) == 1
    assert assets[0].kind == AssetKind.PROPERTY
    assert assets[0].currency == "EUR"


def test_load_dashboard(seeded):
    data = load_dashboard(seeded, date(2024, 2, 1), period=2)

    assert data.available_funds == pytest.approx(2600.0)
    assert data.health.score == 72
    assert data.health.band == ScoreBand.GOOD

    assert [a.id for a in data.assets] == ["a1", "target-g1"]
    assert data.total_assets == pytest.approx(200300.0)

    limit = data.progress["g2"]
    assert limit.amount == pytest.approx(600.0)
    assert limit.is_over
    assert data.progress["g1"].percentage == pytest.approx(15.0)

    assert [s.name for s in data.slices] == ["food"]
    assert data.slices[0].percentage == pytest.approx(100.0)
    assert data.trends["food"].percentage_change == 100.0

    assert len(data.comparison) == 12
    assert [p.month for p in data.window] == [date(2024, 1, 1), date(2024, 2, 1)]
    assert data.net_worth[-1].cash_available == pytest.approx(1900.0 + 2600.0)
