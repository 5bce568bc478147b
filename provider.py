"""Read-only data provider feeding the derived-state engine from the database."""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

import pandas as pd
from sqlalchemy.orm import Session

from aggregates import (
    available_funds,
    category_slices,
    category_trends,
    comparison_series,
    comparison_window,
    consolidated_assets,
    goal_progress,
    health_score_from_external,
    net_worth_history,
    total_assets_value,
)
from database import Asset as AssetRow
from database import Goal as GoalRow
from database import HealthScoreRecord, Transaction
from models import (
    MAX_PERIOD,
    Asset,
    AssetKind,
    CategorySlice,
    CategoryTrend,
    ComparisonDataPoint,
    FinancialSnapshot,
    Goal,
    GoalProgress,
    HealthScore,
    NetWorthPoint,
)
from period_slider import DEFAULT_PERIOD

logger = logging.getLogger(__name__)

COLUMNS = ["Date", "Amount", "Category", "Description", "GoalId", "Month"]
DEFAULT_CATEGORY = "Other"


def month_start(value: date) -> date:
    return date(value.year, value.month, 1)


def shift_month(value: date, months: int) -> date:
    return (pd.Timestamp(month_start(value)) + pd.DateOffset(months=months)).date()


def month_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def transactions_to_df(db: Session, start: Optional[date] = None, end: Optional[date] = None) -> pd.DataFrame:
    """Transactions dated in ``[start, end)`` as a DataFrame with a Month column."""
    query = db.query(Transaction)
    if start is not None:
        query = query.filter(Transaction.date >= start)
    if end is not None:
        query = query.filter(Transaction.date < end)
    txns = query.all()
    if not txns:
        return pd.DataFrame(columns=COLUMNS)

    df = pd.DataFrame(
        [
            {
                "Date": t.date,
                "Amount": t.amount,
                "Category": t.category,
                "Description": t.description or "",
                "GoalId": t.goal_id,
            }
            for t in txns
        ]
    )
    df["Date"] = pd.to_datetime(df["Date"])
    df["Month"] = df["Date"].dt.to_period("M").astype(str)
    df["Amount"] = pd.to_numeric(df["Amount"], errors="coerce").fillna(0.0)
    df["Category"] = df["Category"].fillna(DEFAULT_CATEGORY).astype(str).str.strip().replace("", DEFAULT_CATEGORY)
    return df


def monthly_totals(df: pd.DataFrame) -> pd.DataFrame:
    """
    Income, expenses, goal transfers and balance per month.

    Goal transfers are excluded from income/expenses and netted into the
    balance instead.
    """
    if df.empty:
        return pd.DataFrame(columns=["Income", "Expenses", "Transfers", "Balance"], dtype=float)

    regular = df[df["GoalId"].isna()]
    income = regular[regular["Amount"] > 0].groupby("Month")["Amount"].sum()
    expenses = regular[regular["Amount"] < 0].groupby("Month")["Amount"].sum().abs()
    transfers = df[df["GoalId"].notna()].groupby("Month")["Amount"].sum()

    totals = pd.DataFrame({"Income": income, "Expenses": expenses, "Transfers": transfers}).fillna(0.0)
    totals["Balance"] = totals["Income"] - totals["Expenses"] + totals["Transfers"]
    return totals


def _point_for(totals: pd.DataFrame, month: date) -> ComparisonDataPoint:
    key = month_key(month)
    if key not in totals.index:
        return ComparisonDataPoint(month=month, income=0.0, expenses=0.0, balance=0.0)
    row = totals.loc[key]
    return ComparisonDataPoint(
        month=month,
        income=float(row["Income"]),
        expenses=float(row["Expenses"]),
        balance=float(row["Balance"]),
    )


def fetch_snapshot(db: Session, month: date) -> FinancialSnapshot:
    start = month_start(month)
    point = _point_for(monthly_totals(transactions_to_df(db, start, shift_month(start, 1))), start)
    return FinancialSnapshot(income=point.income, expenses=point.expenses, month=start, balance=point.balance)


def fetch_comparison_points(db: Session, month: date, months: int = MAX_PERIOD) -> List[ComparisonDataPoint]:
    """One point per month ending at ``month``; months without data are zeros."""
    last = month_start(month)
    first = shift_month(last, -(months - 1))
    totals = monthly_totals(transactions_to_df(db, first, shift_month(last, 1)))
    return comparison_series(_point_for(totals, shift_month(first, i)) for i in range(months))


def fetch_spend_by_category(db: Session, month: date) -> Dict[str, float]:
    start = month_start(month)
    df = transactions_to_df(db, start, shift_month(start, 1))
    if df.empty:
        return {}
    spend = df[(df["Amount"] < 0) & df["GoalId"].isna()]
    by_cat = spend.groupby("Category")["Amount"].sum().abs().sort_values(ascending=False)
    return {str(name): float(amount) for name, amount in by_cat.items()}


def fetch_assets(db: Session) -> List[Asset]:
    return [
        Asset(
            id=str(row.id),
            kind=AssetKind.parse(row.kind),
            value=float(row.current_value or 0.0),
            name=row.name or "",
            description=row.description,
            currency=row.currency or "EUR",
        )
        for row in db.query(AssetRow).order_by(AssetRow.name).all()
    ]


def fetch_goals(db: Session) -> Tuple[List[Goal], List[Goal]]:
    """Return ``(goals, targets)``, split on the stored target type."""
    goals, targets = [], []
    for row in db.query(GoalRow).order_by(GoalRow.title).all():
        goal = Goal(
            id=str(row.id),
            title=row.title or "",
            target_amount=float(row.target_amount or 0.0),
            current_amount=float(row.current_amount or 0.0),
            category=row.category or None,
            currency=row.currency or "EUR",
        )
        (goals if (row.target_type or "").lower() == "goal" else targets).append(goal)
    return goals, targets


def fetch_health_score(db: Session, month: date) -> Optional[HealthScore]:
    record = db.query(HealthScoreRecord).filter(HealthScoreRecord.month == month_start(month)).first()
    if record is None:
        return None
    return health_score_from_external(record.score or 0, record.explanation or "")


@dataclass
class DashboardData:
    snapshot: FinancialSnapshot
    available_funds: float
    health: Optional[HealthScore]
    assets: List[Asset]
    total_assets: float
    goals: List[Goal]
    targets: List[Goal]
    progress: Dict[str, GoalProgress]
    slices: List[CategorySlice]
    trends: Dict[str, CategoryTrend]
    comparison: List[ComparisonDataPoint]
    period: int = DEFAULT_PERIOD
    net_worth: List[NetWorthPoint] = field(default_factory=list)

    @property
    def window(self) -> List[ComparisonDataPoint]:
        return comparison_window(self.comparison, self.period)


def load_dashboard(db: Session, month: date, period: int = DEFAULT_PERIOD) -> DashboardData:
    """Everything the finance screen needs for one month, in one pass."""
    snapshot = fetch_snapshot(db, month)
    spend = fetch_spend_by_category(db, month)
    previous_spend = fetch_spend_by_category(db, shift_month(month, -1))
    goals, targets = fetch_goals(db)
    assets = consolidated_assets(fetch_assets(db), goals, targets)
    total = total_assets_value(assets)
    comparison = fetch_comparison_points(db, month)

    logger.info(
        "Loaded dashboard for %s: %d assets, %d categories, %d months",
        month_key(snapshot.month), len(assets), len(spend), len(comparison),
    )
    return DashboardData(
        snapshot=snapshot,
        available_funds=available_funds(snapshot),
        health=fetch_health_score(db, month),
        assets=assets,
        total_assets=total,
        goals=goals,
        targets=targets,
        progress={g.id: goal_progress(g, spend) for g in [*goals, *targets]},
        slices=category_slices(spend),
        trends=category_trends(spend, previous_spend),
        comparison=comparison,
        period=period,
        net_worth=net_worth_history(comparison, total),
    )
