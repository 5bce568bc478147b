from datetime import date

import pytest

from aggregates import health_score_from_external
from chart_geometry import NEGATIVE_BALANCE_COLOR, SERIES_COLORS, bar_groups
from dashboard import (
    cat_spend,
    format_currency,
    format_month,
    health_badge_html,
    income_vs_expense_monthly,
    net_worth_trend,
    ruler_html,
)
from models import CategorySlice, ComparisonDataPoint, DisplayPreferences, NetWorthPoint
from period_slider import ruler_labels

PREFS = DisplayPreferences(currency="EUR", date_format="%b %Y")


def test_format_currency():
    assert format_currency(1234.4, PREFS) == "€1,234"
    assert format_currency(-1234.4, PREFS) == "-€1,234"
    assert format_currency(12.5, DisplayPreferences(currency="usd"), decimals=2) == "$12.50"
    assert format_currency(3, DisplayPreferences(currency="SEK")) == "SEK 3"


def test_format_month():
    assert format_month(date(2024, 2, 1), PREFS) == "Feb 2024"


def test_health_badge_uses_score_colors():
    health = health_score_from_external(72, "Spending is steady")
    html = health_badge_html(72, health)
    assert "#34C759" in html
    assert "Good" in html
    assert "Spending is steady" in html
    assert "#FF3B30" in health_badge_html(10, health, progress=10.0)


def test_ruler_html_bolds_only_the_selected_month():
    html = ruler_html(ruler_labels(5.0))
    assert html.count("font-weight:700") == 1


def test_donut_figure_keeps_slice_order():
    slices = [CategorySlice("Food", 70.0, 700.0, "#3380E6"), CategorySlice("Fun", 30.0, 300.0, "#9966E6")]
    fig = cat_spend(slices, "Fun")
    pie = fig.data[0]
    assert list(pie.labels) == ["Food", "Fun"]
    assert pie.hole == 0.4
    assert pie.direction == "clockwise"
    assert list(pie.marker.colors) == ["#8E8E93", "#9966E6"]


def test_bar_figure_has_a_trace_per_series():
    points = [
        ComparisonDataPoint(date(2024, 1, 1), 1000, 400, 600),
        ComparisonDataPoint(date(2024, 2, 1), 800, 300, 500),
    ]
    fig = income_vs_expense_monthly(bar_groups(points, 200), 200, PREFS)
    assert [t.name for t in fig.data] == ["Income", "Expenses", "Balance"]
    assert list(fig.data[0].x) == ["Jan 2024", "Feb 2024"]
    assert fig.data[0].y[0] == pytest.approx(170)


def test_net_worth_figure_handles_empty_history():
    assert len(net_worth_trend([]).data) == 0
    fig = net_worth_trend([NetWorthPoint(date(2024, 1, 1), 1200.0, 1000.0, 200.0)])
    assert len(fig.data) == 2


def test_bar_figure_colors_deficit_balances():
    points = [
        ComparisonDataPoint(date(2024, 1, 1), 200, 1000, -800),
        ComparisonDataPoint(date(2024, 2, 1), 1000, 200, 800),
    ]
    balance = income_vs_expense_monthly(bar_groups(points, 200), 200, PREFS).data[2]
    assert list(balance.marker.color) == [NEGATIVE_BALANCE_COLOR, SERIES_COLORS["balance"]]
    assert list(balance.customdata) == [-800, 800]
