import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from models import (
    MAX_SCORE,
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
    ScoreBand,
    ScoreColor,
)

logger = logging.getLogger(__name__)

# Category colors, assigned by rank (largest slice first)
CATEGORY_PALETTE = (
    "#3380E6",  # Blue
    "#9966E6",  # Purple
    "#66B3E6",  # Light Blue
    "#FF9933",  # Orange
    "#33CC66",  # Green
    "#E64D4D",  # Red
    "#E6B333",  # Yellow
    "#B34DCC",  # Magenta
)

# Slight overshoot allowed from per-slice rounding
_PERCENT_TOLERANCE = 0.5


def available_funds(snapshot: FinancialSnapshot) -> float:
    """
    Money left to spend in the snapshot's month.

    Goal transfers are already netted into ``snapshot.balance`` upstream,
    so that figure is used as-is when present.
    """
    if snapshot.balance is not None:
        return snapshot.balance
    return snapshot.income - snapshot.expenses


def score_band(score: int) -> ScoreBand:
    if score >= 80:
        return ScoreBand.EXCELLENT
    if score >= 60:
        return ScoreBand.GOOD
    if score >= 40:
        return ScoreBand.FAIR
    return ScoreBand.NEEDS_WORK


def score_color(score: int) -> ScoreColor:
    # Three tiers on purpose; not aligned with score_band.
    if score >= 70:
        return ScoreColor.POSITIVE
    if score >= 40:
        return ScoreColor.WARNING
    return ScoreColor.NEGATIVE


def health_score_from_external(score, explanation: str = "") -> HealthScore:
    """Wrap the externally computed 0-100 score with its band."""
    clamped = max(0, min(MAX_SCORE, int(round(score))))
    return HealthScore(score=clamped, band=score_band(clamped), explanation=explanation)


def goal_percentage(goal: Goal) -> float:
    if goal.target_amount <= 0:
        return 0.0
    return min(goal.current_amount / goal.target_amount * 100, 100.0)


def consolidated_assets(
    assets: Sequence[Asset],
    goals: Iterable[Goal] = (),
    targets: Iterable[Goal] = (),
) -> List[Asset]:
    """
    Real assets followed by virtual assets for funded goals and targets.

    A goal gets a virtual asset ``target-<goal id>`` when it holds a positive
    balance and no real asset already uses that id. Output ids are unique.
    """
    result: List[Asset] = []
    seen = set()

    for asset in assets:
        if asset.id in seen:
            logger.warning("Dropping duplicate asset id %s", asset.id)
            continue
        seen.add(asset.id)
        result.append(asset)

    for goal in [*goals, *targets]:
        if goal.current_amount <= 0:
            continue
        asset_id = goal.virtual_asset_id
        if asset_id in seen:
            continue
        seen.add(asset_id)
        result.append(
            Asset(
                id=asset_id,
                kind=AssetKind.SAVINGS,
                value=goal.current_amount,
                name=goal.title,
                description=(
                    f"Target {goal.target_amount:,.2f} "
                    f"({goal_percentage(goal):.0f}% complete)"
                ),
                currency=goal.currency,
                is_derived_from_goal=True,
            )
        )

    return result


def total_assets_value(assets: Iterable[Asset]) -> float:
    return float(sum(a.value for a in assets))


def goal_progress(goal: Goal, spend_by_category: Optional[Mapping[str, float]] = None) -> GoalProgress:
    """Progress of a savings goal, or period spend against a spending limit."""
    if goal.is_spending_limit:
        wanted = goal.category.strip().lower()
        amount = sum(
            float(v) for k, v in (spend_by_category or {}).items() if str(k).strip().lower() == wanted
        )
    else:
        amount = goal.current_amount

    limit = goal.target_amount
    if limit <= 0:
        return GoalProgress(goal_id=goal.id, amount=amount, limit=limit, percentage=0.0)

    return GoalProgress(
        goal_id=goal.id,
        amount=amount,
        limit=limit,
        percentage=min(amount / limit * 100, 100.0),
        is_over=goal.is_spending_limit and amount > limit,
    )


def month_over_month_change(current: float, previous: float) -> Tuple[float, float]:
    """Return ``(change, percentage)`` between two monthly figures."""
    change = current - previous
    if previous <= 0:
        return change, (100.0 if current > 0 else 0.0)
    return change, change / previous * 100.0


def category_slices(spend_by_category: Mapping[str, float]) -> List[CategorySlice]:
    """Expense totals per category as donut slices, largest first."""
    totals = {name: float(amount) for name, amount in spend_by_category.items()}
    total = sum(totals.values())
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)

    slices = [
        CategorySlice(
            name=name,
            percentage=(amount / total * 100) if total > 0 else 0.0,
            amount=amount,
            color=CATEGORY_PALETTE[i % len(CATEGORY_PALETTE)],
        )
        for i, (name, amount) in enumerate(ranked)
    ]

    share = sum(s.percentage for s in slices)
    if share > 100 + _PERCENT_TOLERANCE:
        logger.warning("Category shares sum to %.2f%%", share)
    return slices


def category_trends(
    current: Mapping[str, float],
    previous: Mapping[str, float],
) -> Dict[str, CategoryTrend]:
    trends = {}
    for name in set(current) | set(previous):
        now = float(current.get(name, 0.0))
        before = float(previous.get(name, 0.0))
        if before > 0:
            pct = (now - before) / before * 100.0
        elif now > 0:
            pct = 100.0
        else:
            pct = 0.0
        trends[name] = CategoryTrend(
            current_amount=now,
            previous_amount=before,
            change=now - before,
            percentage_change=pct,
        )
    return trends


def comparison_series(points: Iterable[ComparisonDataPoint]) -> List[ComparisonDataPoint]:
    """Chronological points with month-over-month changes filled in."""
    ordered = sorted(points, key=lambda p: p.month)
    series = []
    for i, point in enumerate(ordered):
        prev = ordered[i - 1] if i > 0 else point
        series.append(
            ComparisonDataPoint(
                month=point.month,
                income=point.income,
                expenses=point.expenses,
                balance=point.balance,
                income_change=point.income - prev.income,
                expenses_change=point.expenses - prev.expenses,
                balance_change=point.balance - prev.balance,
            )
        )
    return series


def comparison_window(points: Sequence[ComparisonDataPoint], period: int) -> List[ComparisonDataPoint]:
    """The trailing ``period`` months of a chronological series."""
    if period <= 0:
        return []
    return list(points)[-period:]


def cumulative_balances(points: Iterable[ComparisonDataPoint]) -> List[float]:
    running = 0.0
    out = []
    for point in sorted(points, key=lambda p: p.month):
        running += point.balance
        out.append(running)
    return out


def net_worth_history(points: Iterable[ComparisonDataPoint], total_assets: float) -> List[NetWorthPoint]:
    """Current asset total plus the running cash balance, month by month."""
    ordered = sorted(points, key=lambda p: p.month)
    return [
        NetWorthPoint(
            month=point.month,
            net_worth=total_assets + cash,
            assets=total_assets,
            cash_available=cash,
        )
        for point, cash in zip(ordered, cumulative_balances(ordered))
    ]
