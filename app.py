import logging
import sys
import time
from datetime import date
from pathlib import Path

import streamlit as st

# Add current directory to path
sys.path.append(str(Path(__file__).parent))

from chart_geometry import BarChartController
from config import configure_logging, display_preferences
from dashboard import (
    _kpis,
    cat_spend,
    format_month,
    income_vs_expense_monthly,
    net_worth_trend,
    render_assets,
    render_goals,
    render_health_score,
    render_ruler,
)
from database import SessionLocal, init_db
from health_animation import ANIMATION_TICK_SECONDS
from models import ChartViewState
from period_slider import DEFAULT_PERIOD, PeriodSlider
from provider import load_dashboard, month_start, shift_month

# --- Configuration ---
st.set_page_config(page_title="Finance Overview", layout="wide", page_icon="💰")
configure_logging()
logger = logging.getLogger("finance_app")
prefs = display_preferences()
CHART_HEIGHT = 240.0

# --- Database Session ---
init_db()

if "db" not in st.session_state:
    st.session_state.db = SessionLocal()

def get_db():
    return st.session_state.db

# --- View State ---
if "chart_state" not in st.session_state:
    st.session_state.chart_state = ChartViewState(slider_value=float(DEFAULT_PERIOD)).to_dict()
if "period" not in st.session_state:
    st.session_state.period = DEFAULT_PERIOD

chart = BarChartController(ChartViewState.from_dict(st.session_state.chart_state))

def _reload_period(period: int):
    logger.info("Reloading comparison data for %s months", period)
    st.session_state.period = period

slider = PeriodSlider(on_commit=_reload_period, period=st.session_state.period)

# --- Month Picker ---
st.title("💰 Finance Overview")
months = [shift_month(month_start(date.today()), -i) for i in range(24)]
selected_month = st.selectbox("Month", months, format_func=lambda m: format_month(m, prefs))

try:
    data = load_dashboard(get_db(), selected_month, st.session_state.period)
except Exception as e:
    logger.exception("Dashboard load failed")
    st.error(f"Could not load data: {e}")
    st.stop()

# --- KPIs & Health ---
_kpis(data, prefs)
st.subheader("📈 Financial Health")
render_health_score(data.health)

# --- Category Donut ---
st.subheader("🍩 Spending by Category")
if not data.slices:
    st.info("No expenses this month.")
else:
    names = ["All"] + [s.name for s in data.slices]
    picked = st.selectbox("Highlight category", names, key="category_pick")
    chart.state.selected_category = None if picked == "All" else picked
    st.plotly_chart(cat_spend(data.slices, chart.state.selected_category), use_container_width=True)

# --- Comparison ---
expanded = st.toggle("📊 Compare months", value=chart.state.expanded)
if expanded:
    sweep = chart.expand()
    # The slider only reports a value on release, so every change is a commit.
    released = st.slider("Months back", 1, 12, value=slider.period)
    slider.drag(released)
    slider.end_drag()
    render_ruler(slider.labels())
    chart.state.slider_value = slider.value

    data.period = st.session_state.period
    chart.set_points(data.window)

    month_names = ["None"] + [format_month(p.month, prefs) for p in chart.points]
    current = chart.state.selected_index
    choice = st.selectbox(
        "Highlight month",
        month_names,
        index=0 if current is None else current + 1,
        key="month_pick",
    )
    if choice == "None":
        chart.tap_background()
    elif chart.state.selected_index != month_names.index(choice) - 1:
        chart.tap(month_names.index(choice) - 1)

    summary = chart.summary()
    heading = format_month(summary.month, prefs) if summary.is_month else f"Last {data.period} months"
    st.caption(heading)
    c1, c2, c3 = st.columns(3)
    c1.metric("Income", f"{summary.income:,.0f}")
    c2.metric("Expenses", f"{summary.expenses:,.0f}")
    c3.metric("Balance", f"{summary.balance:,.0f}")

    placeholder = st.empty()
    if sweep:
        started = time.monotonic()
        frame = 0
        while chart.advance_sweep(time.monotonic() - started) < 1.0:
            placeholder.plotly_chart(
                income_vs_expense_monthly(chart.groups(CHART_HEIGHT), CHART_HEIGHT, prefs),
                use_container_width=True,
                key=f"bars_sweep_{frame}",
            )
            frame += 1
            time.sleep(ANIMATION_TICK_SECONDS * 4)
    placeholder.plotly_chart(
        income_vs_expense_monthly(chart.groups(CHART_HEIGHT), CHART_HEIGHT, prefs),
        use_container_width=True,
    )
    st.plotly_chart(net_worth_trend(data.net_worth[-data.period:]), use_container_width=True)
else:
    chart.collapse()

st.session_state.chart_state = chart.state.to_dict()

# --- Goals & Assets ---
col1, col2 = st.columns(2)
with col1:
    st.subheader("🎯 Goals")
    render_goals(data.goals + data.targets, data.progress, prefs)
with col2:
    st.subheader("🏦 Assets")
    render_assets(data.assets, prefs)
