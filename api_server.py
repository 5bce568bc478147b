"""Lightweight FastAPI server exposing the derived-state engine as JSON tools."""

import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from aggregates import consolidated_assets, health_score_from_external, score_color, total_assets_value
from chart_geometry import bar_groups, donut_segments, period_summary, visible_points
from database import get_db
from models import MAX_PERIOD, MIN_PERIOD, Asset, AssetKind, CategorySlice, ComparisonDataPoint, Goal
from period_slider import DEFAULT_PERIOD, period_for, ruler_labels
from provider import load_dashboard

logger = logging.getLogger(__name__)

app = FastAPI(title="Finance View Engine", version="0.1.0")


class ScoreRequest(BaseModel):
    score: int = Field(..., ge=0, le=100)
    explanation: str = ""


class ScoreResponse(BaseModel):
    score: int
    band: str
    color: str
    explanation: str


@app.post("/tools/score_band", response_model=ScoreResponse)
async def score_band_tool(req: ScoreRequest):
    health = health_score_from_external(req.score, req.explanation)
    return ScoreResponse(
        score=health.score,
        band=health.band.value,
        color=score_color(health.score).value,
        explanation=health.explanation,
    )


class AssetIn(BaseModel):
    id: str
    kind: str = "other"
    value: float
    name: str = ""
    description: Optional[str] = None
    currency: str = "EUR"


class GoalIn(BaseModel):
    id: str
    title: str
    target_amount: float
    current_amount: float
    category: Optional[str] = None
    currency: str = "EUR"


class AssetOut(AssetIn):
    is_derived_from_goal: bool


class ConsolidateRequest(BaseModel):
    assets: List[AssetIn] = []
    goals: List[GoalIn] = []
    targets: List[GoalIn] = []


class ConsolidateResponse(BaseModel):
    assets: List[AssetOut]
    total_value: float


def _asset(a: AssetIn) -> Asset:
    return Asset(
        id=a.id,
        kind=AssetKind.parse(a.kind),
        value=a.value,
        name=a.name,
        description=a.description,
        currency=a.currency,
    )


def _goal(g: GoalIn) -> Goal:
    return Goal(
        id=g.id,
        title=g.title,
        target_amount=g.target_amount,
        current_amount=g.current_amount,
        category=g.category,
        currency=g.currency,
    )


def _asset_out(a: Asset) -> AssetOut:
    return AssetOut(
        id=a.id,
        kind=a.kind.value,
        value=a.value,
        name=a.name,
        description=a.description,
        currency=a.currency,
        is_derived_from_goal=a.is_derived_from_goal,
    )


@app.post("/tools/consolidated_assets", response_model=ConsolidateResponse)
async def consolidated_assets_tool(req: ConsolidateRequest):
    merged = consolidated_assets(
        [_asset(a) for a in req.assets],
        [_goal(g) for g in req.goals],
        [_goal(g) for g in req.targets],
    )
    return ConsolidateResponse(assets=[_asset_out(a) for a in merged], total_value=total_assets_value(merged))


class SliceIn(BaseModel):
    name: str
    percentage: float = Field(..., ge=0, le=100)
    amount: float = 0.0
    color: str = ""


class DonutRequest(BaseModel):
    slices: List[SliceIn]
    selected: Optional[str] = None


class SegmentOut(BaseModel):
    name: str
    start_angle: float
    end_angle: float
    color: str
    selected: bool


@app.post("/tools/donut_segments", response_model=List[SegmentOut])
async def donut_segments_tool(req: DonutRequest):
    slices = [CategorySlice(name=s.name, percentage=s.percentage, amount=s.amount, color=s.color) for s in req.slices]
    return [
        SegmentOut(
            name=seg.name,
            start_angle=seg.start_angle,
            end_angle=seg.end_angle,
            color=seg.color,
            selected=seg.selected,
        )
        for seg in donut_segments(slices, req.selected)
    ]


class PointIn(BaseModel):
    month: date
    income: float
    expenses: float
    balance: float


class BarChartRequest(BaseModel):
    points: List[PointIn]
    chart_height: float = Field(200.0, gt=0)
    animation_progress: float = Field(1.0, ge=0, le=1)
    selected_index: Optional[int] = None


class BarOut(BaseModel):
    series: str
    value: float
    height: float
    color: str
    opacity: float


class GroupOut(BaseModel):
    month: date
    selected: bool
    dimmed: bool
    bars: List[BarOut]


class SummaryOut(BaseModel):
    income: float
    expenses: float
    balance: float
    month: Optional[date] = None


class BarChartResponse(BaseModel):
    groups: List[GroupOut]
    summary: SummaryOut


def _bar_chart(points, chart_height: float, progress: float, selected_index: Optional[int]) -> BarChartResponse:
    shown = visible_points(points)
    if selected_index is not None and not 0 <= selected_index < len(shown):
        selected_index = None
    groups = bar_groups(shown, chart_height, progress, selected_index)
    summary = period_summary(shown, selected_index)
    return BarChartResponse(
        groups=[
            GroupOut(
                month=g.month,
                selected=g.selected,
                dimmed=g.dimmed,
                bars=[BarOut(series=b.series, value=b.value, height=b.height, color=b.color, opacity=b.opacity)
                      for b in g.bars],
            )
            for g in groups
        ],
        summary=SummaryOut(income=summary.income, expenses=summary.expenses, balance=summary.balance,
                           month=summary.month),
    )


@app.post("/tools/bar_chart", response_model=BarChartResponse)
async def bar_chart_tool(req: BarChartRequest):
    points = [ComparisonDataPoint(month=p.month, income=p.income, expenses=p.expenses, balance=p.balance)
              for p in req.points]
    return _bar_chart(points, req.chart_height, req.animation_progress, req.selected_index)


class RulerRequest(BaseModel):
    value: float = Field(..., ge=MIN_PERIOD, le=MAX_PERIOD)


class LabelOut(BaseModel):
    month: int
    selected: bool
    scale: float
    opacity: float


class RulerResponse(BaseModel):
    period: int
    labels: List[LabelOut]


@app.post("/tools/ruler_labels", response_model=RulerResponse)
async def ruler_labels_tool(req: RulerRequest):
    labels = [
        LabelOut(month=label.month, selected=label.selected, scale=label.scale, opacity=label.opacity)
        for label in ruler_labels(req.value)
    ]
    return RulerResponse(period=period_for(req.value), labels=labels)


class DashboardResponse(BaseModel):
    month: date
    income: float
    expenses: float
    available_funds: float
    health: Optional[ScoreResponse]
    assets: List[AssetOut]
    total_assets: float
    slices: List[SliceIn]
    bar_chart: BarChartResponse


@app.get("/tools/dashboard", response_model=DashboardResponse)
async def dashboard_tool(
    month: str,
    period: int = DEFAULT_PERIOD,
    chart_height: float = 200.0,
    db: Session = Depends(get_db),
):
    try:
        selected = datetime.strptime(month, "%Y-%m").date()
    except ValueError:
        raise HTTPException(status_code=400, detail="month must look like YYYY-MM")
    period = max(MIN_PERIOD, min(MAX_PERIOD, period))

    logger.info("Dashboard tool: month=%s period=%s", month, period)
    data = load_dashboard(db, selected, period)

    health = None
    if data.health is not None:
        health = ScoreResponse(
            score=data.health.score,
            band=data.health.band.value,
            color=score_color(data.health.score).value,
            explanation=data.health.explanation,
        )

    return DashboardResponse(
        month=data.snapshot.month,
        income=data.snapshot.income,
        expenses=data.snapshot.expenses,
        available_funds=data.available_funds,
        health=health,
        assets=[_asset_out(a) for a in data.assets],
        total_assets=data.total_assets,
        slices=[SliceIn(name=s.name, percentage=s.percentage, amount=s.amount, color=s.color) for s in data.slices],
        bar_chart=_bar_chart(data.window, chart_height, 1.0, None),
    )


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api_server:app", host="0.0.0.0", port=8001, reload=True)
