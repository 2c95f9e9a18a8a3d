"""
Analytics API Endpoints for BetLedger.

Every endpoint loads the bet history, applies the filter query
parameters and returns one metric group. ``/analytics/snapshot`` returns
all of them at once.
"""

from datetime import date
from typing import List, Optional, Tuple
import logging

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from betledger.analytics.breakdown import calculate_breakdown
from betledger.analytics.financial import calculate_dashboard_metrics
from betledger.analytics.goals import GoalTargets, goal_progress
from betledger.analytics.odds import calculate_odds_metrics
from betledger.analytics.potential import calculate_potential_return
from betledger.analytics.ratios import calculate_performance_metrics
from betledger.analytics.records import BetRecord, FilterContext, normalize_bets
from betledger.analytics.risk import calculate_risk_metrics
from betledger.analytics.snapshot import AnalyticsOptions, build_snapshot
from betledger.analytics.temporal import calculate_temporal_metrics
from betledger.api.dependencies import filter_context, internal_error, limiter
from betledger.core.config import settings
from betledger.core.database.connection import get_db
from betledger.database import repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analytics", tags=["Analytics"])

ReferenceDate = Query(None, description="'Today' for windows and goals (default: server date)")


def analytics_options() -> AnalyticsOptions:
    return AnalyticsOptions(
        min_bucket_samples=settings.MIN_BUCKET_SAMPLES,
        kelly_cap_pct=settings.KELLY_CAP_PCT,
        default_window_days=settings.DEFAULT_WINDOW_DAYS,
    )


async def load_selection(
    db: AsyncSession,
    filters: FilterContext
) -> Tuple[List[BetRecord], List[BetRecord]]:
    """Full normalized history and the filtered selection."""
    history = normalize_bets(await repository.list_all_bets(db))
    return history, filters.apply(history)


@router.get("/dashboard", response_model=dict)
@limiter.limit(settings.RATE_LIMIT)
async def get_dashboard(
    request: Request,
    filters: FilterContext = Depends(filter_context),
    reference_date: Optional[date] = ReferenceDate,
    db: AsyncSession = Depends(get_db)
):
    """Headline KPIs: staked, profit, ROI, win rate, streaks."""
    try:
        history, selected = await load_selection(db, filters)
        metrics = calculate_dashboard_metrics(
            selected, history, filters, reference_date, settings.DEFAULT_WINDOW_DAYS
        )
        return metrics.to_dict()
    except Exception as e:
        raise await internal_error(db, "compute dashboard metrics", e)


@router.get("/performance", response_model=dict)
@limiter.limit(settings.RATE_LIMIT)
async def get_performance(
    request: Request,
    filters: FilterContext = Depends(filter_context),
    reference_date: Optional[date] = ReferenceDate,
    db: AsyncSession = Depends(get_db)
):
    """Yield, Sharpe / Sortino / Calmar, consistency and monthly extremes."""
    try:
        _, selected = await load_selection(db, filters)
        options = analytics_options()
        metrics = calculate_performance_metrics(
            selected, reference_date, options.odds_ranges, options.min_bucket_samples
        )
        return metrics.to_dict()
    except Exception as e:
        raise await internal_error(db, "compute performance metrics", e)


@router.get("/risk", response_model=dict)
@limiter.limit(settings.RATE_LIMIT)
async def get_risk(
    request: Request,
    filters: FilterContext = Depends(filter_context),
    db: AsyncSession = Depends(get_db)
):
    """Drawdown, volatility, VaR / ES, Kelly and the composite risk score."""
    try:
        _, selected = await load_selection(db, filters)
        return calculate_risk_metrics(selected, settings.KELLY_CAP_PCT).to_dict()
    except Exception as e:
        raise await internal_error(db, "compute risk metrics", e)


@router.get("/odds", response_model=dict)
@limiter.limit(settings.RATE_LIMIT)
async def get_odds(
    request: Request,
    filters: FilterContext = Depends(filter_context),
    db: AsyncSession = Depends(get_db)
):
    """Odds buckets and the sweet spot."""
    try:
        _, selected = await load_selection(db, filters)
        options = analytics_options()
        metrics = calculate_odds_metrics(selected, options.odds_ranges, options.min_bucket_samples)
        return metrics.to_dict()
    except Exception as e:
        raise await internal_error(db, "compute odds metrics", e)


@router.get("/temporal", response_model=dict)
@limiter.limit(settings.RATE_LIMIT)
async def get_temporal(
    request: Request,
    filters: FilterContext = Depends(filter_context),
    db: AsyncSession = Depends(get_db)
):
    """Weekday and month aggregation. ``best_hour`` is always unavailable."""
    try:
        _, selected = await load_selection(db, filters)
        return calculate_temporal_metrics(selected).to_dict()
    except Exception as e:
        raise await internal_error(db, "compute temporal metrics", e)


@router.get("/potential", response_model=dict)
@limiter.limit(settings.RATE_LIMIT)
async def get_potential(
    request: Request,
    filters: FilterContext = Depends(filter_context),
    db: AsyncSession = Depends(get_db)
):
    """Exposure and projected return of pending bets."""
    try:
        _, selected = await load_selection(db, filters)
        return calculate_potential_return(selected).to_dict()
    except Exception as e:
        raise await internal_error(db, "compute potential return", e)


@router.get("/goals", response_model=dict)
@limiter.limit(settings.RATE_LIMIT)
async def get_goal_progress(
    request: Request,
    reference_date: Optional[date] = ReferenceDate,
    db: AsyncSession = Depends(get_db)
):
    """Progress towards the daily and monthly goals and the loss limit."""
    try:
        history = normalize_bets(await repository.list_all_bets(db))
        goal = await repository.get_goal(db)
        targets = GoalTargets.from_mapping(goal.to_dict() if goal else None)
        return goal_progress(history, targets, reference_date).to_dict()
    except Exception as e:
        raise await internal_error(db, "compute goal progress", e)


@router.get("/breakdown", response_model=dict)
@limiter.limit(settings.RATE_LIMIT)
async def get_breakdown(
    request: Request,
    filters: FilterContext = Depends(filter_context),
    db: AsyncSession = Depends(get_db)
):
    """Status distribution, profit by group and daily chart series."""
    try:
        _, selected = await load_selection(db, filters)
        return calculate_breakdown(selected).to_dict()
    except Exception as e:
        raise await internal_error(db, "compute breakdown", e)


@router.get("/snapshot", response_model=dict)
@limiter.limit(settings.RATE_LIMIT)
async def get_snapshot(
    request: Request,
    filters: FilterContext = Depends(filter_context),
    reference_date: Optional[date] = ReferenceDate,
    db: AsyncSession = Depends(get_db)
):
    """Every metric group for the selection in one response."""
    try:
        bets = await repository.list_all_bets(db)
        bookies = await repository.list_bookies(db)
        goal = await repository.get_goal(db)
        snapshot = build_snapshot(
            bets,
            filters=filters,
            goal=goal,
            bookies=bookies,
            reference_date=reference_date,
            options=analytics_options(),
        )
        return snapshot.to_dict()
    except Exception as e:
        raise await internal_error(db, "compute snapshot", e)
