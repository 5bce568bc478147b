# dashboard.py: streamlit rendering and plotly figures built from the chart geometry

from datetime import date
from typing import Dict, List, Optional, Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from aggregates import month_over_month_change, score_color
from chart_geometry import SERIES, BarGroup, donut_segments
from health_animation import play_frames
from models import (
    Asset,
    CategorySlice,
    DisplayPreferences,
    Goal,
    GoalProgress,
    HealthScore,
    NetWorthPoint,
    ScoreColor,
)
from period_slider import RulerLabel
from provider import DashboardData

CURRENCY_SYMBOLS = {"EUR": "€", "USD": "$", "GBP": "£", "JPY": "¥", "CHF": "CHF "}

SCORE_COLORS = {
    ScoreColor.POSITIVE: "#34C759",
    ScoreColor.WARNING: "#FF9500",
    ScoreColor.NEGATIVE: "#FF3B30",
}

BAND_LABELS = {
    "excellent": "Excellent",
    "good": "Good",
    "fair": "Fair",
    "needs_work": "Needs work",
}

SERIES_NAMES = {"income": "Income", "expenses": "Expenses", "balance": "Balance"}


def format_currency(amount: float, prefs: DisplayPreferences, decimals: int = 0) -> str:
    symbol = CURRENCY_SYMBOLS.get(prefs.currency.upper(), f"{prefs.currency} ")
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.{decimals}f}"


def format_month(value: date, prefs: DisplayPreferences) -> str:
    return value.strftime(prefs.date_format)


def _kpis(data: DashboardData, prefs: DisplayPreferences):
    """
    Top-level KPIs for the selected month.

    Deltas compare against the previous month of the comparison series.
    """
    snap = data.snapshot
    previous = data.comparison[-2] if len(data.comparison) >= 2 else None

    income_delta = expense_delta = None
    if previous is not None:
        _, income_pct = month_over_month_change(snap.income, previous.income)
        _, expense_pct = month_over_month_change(snap.expenses, previous.expenses)
        income_delta = f"{income_pct:+.0f}%"
        expense_delta = f"{expense_pct:+.0f}%"

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("💰 Income", format_currency(snap.income, prefs), delta=income_delta)
    col2.metric("💸 Spent", format_currency(snap.expenses, prefs), delta=expense_delta, delta_color="inverse")
    col3.metric(
        "🛡️ Available",
        format_currency(data.available_funds, prefs),
        help="Income - expenses, after transfers into and out of goals.",
    )
    col4.metric("🏦 Assets", format_currency(data.total_assets, prefs), help="Assets plus funded goals.")


def health_badge_html(displayed: int, health: HealthScore, progress: Optional[float] = None) -> str:
    color = SCORE_COLORS[score_color(displayed)]
    ring = (progress if progress is not None else displayed) / 100.0
    return f"""
    <div style="display:flex;align-items:center;gap:16px;">
        <div style="width:72px;height:72px;border-radius:50%;
                    background:conic-gradient({color} {ring * 360:.1f}deg, rgba(142,142,147,0.2) 0deg);
                    display:flex;align-items:center;justify-content:center;">
            <div style="width:56px;height:56px;border-radius:50%;background:#fff;
                        display:flex;align-items:center;justify-content:center;
                        font-size:22px;font-weight:700;color:{color};">{displayed}</div>
        </div>
        <div>
            <div style="font-weight:600;color:{color};">{BAND_LABELS[health.band.value]}</div>
            <div style="color:#6b7280;font-size:13px;">{health.explanation}</div>
        </div>
    </div>
    """


def render_health_score(health: Optional[HealthScore], state_key: str = "health_displayed"):
    """
    Animated health badge.

    The last displayed value lives in session state: a score that barely
    moved snaps into place, anything else counts up from zero again.
    """
    if health is None:
        st.info("No health score for this month yet.")
        return

    placeholder = st.empty()

    def draw(frame):
        placeholder.markdown(health_badge_html(frame.displayed, health, frame.progress), unsafe_allow_html=True)

    st.session_state[state_key] = play_frames(st.session_state.get(state_key, 0), health.score, draw)


def ruler_html(labels: Sequence[RulerLabel]) -> str:
    cells = []
    for label in labels:
        weight = 700 if label.bold else 400
        cells.append(
            f'<span style="display:inline-block;width:8%;text-align:center;'
            f"font-size:{label.scale:.2f}em;opacity:{label.opacity:.2f};font-weight:{weight};\">"
            f"{label.month}</span>"
        )
    return '<div style="display:flex;justify-content:space-between;">' + "".join(cells) + "</div>"


def render_ruler(labels: Sequence[RulerLabel]):
    st.markdown(ruler_html(labels), unsafe_allow_html=True)


def cat_spend(slices: Sequence[CategorySlice], selected: Optional[str] = None):
    """
    Donut chart of spending by category, largest first, clockwise from the top.
    """
    segments = donut_segments(slices, selected)
    fig = go.Figure(
        go.Pie(
            labels=[s.name for s in segments],
            values=[s.percentage for s in segments],
            customdata=[s.amount for s in segments],
            marker=dict(colors=[s.color for s in segments]),
            pull=[0.06 if s.selected else 0 for s in segments],
            hole=0.4,
            sort=False,
            direction="clockwise",
            rotation=0,
            textinfo="percent+label",
            textposition="inside",
            hovertemplate="%{label}: %{customdata:,.2f}<extra></extra>",
        )
    )
    fig.update_layout(title="Spending by Category", showlegend=False, height=400)
    return fig


def income_vs_expense_monthly(groups: Sequence[BarGroup], chart_height: float, prefs: DisplayPreferences):
    """
    Grouped bars of income, expenses and balance per month.

    Bar heights come straight from the geometry so the minimum slivers and
    the entrance sweep show up exactly as computed.
    """
    months = [format_month(g.month, prefs) for g in groups]
    fig = go.Figure()
    for i, series in enumerate(SERIES):
        bars = [g.bars[i] for g in groups]
        fig.add_trace(
            go.Bar(
                x=months,
                y=[b.height for b in bars],
                customdata=[b.value for b in bars],
                name=SERIES_NAMES[series],
                marker=dict(
                    color=[b.color for b in bars],
                    opacity=[b.opacity for b in bars],
                    line=dict(width=[2 if g.underline else 0 for g in groups], color="#1c1c1e"),
                ),
                hovertemplate="%{x}: %{customdata:,.2f}<extra>" + SERIES_NAMES[series] + "</extra>",
            )
        )

    fig.update_layout(barmode="group", title="Income vs Expenses Trend", height=int(chart_height) + 120)
    fig.update_yaxes(range=[0, chart_height], showticklabels=False, showgrid=False)
    return fig


def net_worth_trend(points: Sequence[NetWorthPoint]):
    """
    Area chart of net worth (assets plus cumulative cash) over the period.
    """
    df = pd.DataFrame(
        [{"Month": p.month, "Net Worth": p.net_worth, "Cash": p.cash_available} for p in points]
    )
    if df.empty:
        return go.Figure(layout=dict(title="Net Worth Growth"))

    fig = px.area(df, x="Month", y="Net Worth", title="Net Worth Growth")
    fig.add_scatter(x=df["Month"], y=df["Cash"], mode="lines", name="Cash", line=dict(dash="dot", color="green"))
    fig.update_layout(height=350)
    return fig


def render_goals(goals: List[Goal], progress: Dict[str, GoalProgress], prefs: DisplayPreferences):
    if not goals:
        st.caption("No goals yet.")
        return
    for goal in goals:
        entry = progress.get(goal.id)
        if entry is None:
            continue
        label = "Limit" if goal.is_spending_limit else "Target"
        st.markdown(
            f"**{goal.title}** · {entry.percentage:.0f}% · "
            f"{format_currency(entry.amount, prefs)} of {format_currency(entry.limit, prefs)} ({label})"
        )
        st.progress(min(entry.percentage / 100.0, 1.0))
        if entry.is_over:
            st.caption(f"🔴 Over the limit by {format_currency(entry.amount - entry.limit, prefs)}")


def render_assets(assets: List[Asset], prefs: DisplayPreferences):
    if not assets:
        st.caption("No assets yet.")
        return
    rows = [
        {
            "Name": a.name or a.id,
            "Type": a.kind.value.title(),
            "Value": format_currency(a.value, prefs),
            "From goal": a.is_derived_from_goal,
            "Note": a.description or "",
        }
        for a in assets
    ]
    st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
