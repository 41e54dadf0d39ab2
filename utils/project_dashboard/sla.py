# utils/project_dashboard/sla.py
"""
SLA status engine for project lifecycle stages.

status_indicator() colors a project by how much of its stage SLA budget has
elapsed:

    pct = 100 * floor(days in stage) / sla_budget_days
    pct < 70        -> GREEN
    70 <= pct < 90  -> AMBER
    pct >= 90       -> RED

A missing entry timestamp or budget means no SLA is tracked, which is GREEN.
A budget of 0 (the LOST stage) is treated the same way.
Timestamps are compared as wall time in the configured TIMEZONE.

Everything here is pure given `now`; the stored status_indicator column is
only a cache. The sweep recomputes it and writes back rows that changed.
"""

import logging
import math
from datetime import datetime
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from .constants import (
    ProjectOwner,
    ProjectStage,
    StatusIndicator,
    STAGE_SLA_DAYS,
    SALES_OWNED_STAGES,
    SLA_AMBER_PERCENT,
    SLA_RED_PERCENT,
)
from .classifiers import project_stage
from .fiscal_year import local_now, to_local_series, to_local_timestamp

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 24 * 60 * 60


# =============================================================================
# HELPERS
# =============================================================================

def _budget(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        budget = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(budget) or budget <= 0:
        return None
    return budget


def days_in_stage(stage_entered_at: Any, now: datetime = None) -> Optional[int]:
    """Whole days (floored) since the project entered its stage."""
    entered = to_local_timestamp(stage_entered_at)
    if entered is None:
        return None
    current = to_local_timestamp(now) if now is not None else local_now()
    return math.floor((current - entered).total_seconds() / _SECONDS_PER_DAY)


# =============================================================================
# STATUS INDICATOR
# =============================================================================

def _indicator_for_percent(pct: float) -> StatusIndicator:
    if pct < SLA_AMBER_PERCENT:
        return StatusIndicator.GREEN
    if pct < SLA_RED_PERCENT:
        return StatusIndicator.AMBER
    return StatusIndicator.RED


def sla_percentage(
    stage_entered_at: Any,
    sla_budget_days: Any,
    now: datetime = None
) -> Optional[float]:
    """Percent of the SLA budget used, or None when no SLA is tracked."""
    budget = _budget(sla_budget_days)
    days = days_in_stage(stage_entered_at, now)
    if budget is None or days is None:
        return None
    return 100 * days / budget


def status_indicator(
    stage_entered_at: Any,
    sla_budget_days: Any,
    now: datetime = None
) -> StatusIndicator:
    """
    Traffic-light status for a project's current stage.

    Examples (budget 7 days):
        entered 4 days ago -> 57%  -> GREEN
        entered 5 days ago -> 71%  -> AMBER
        entered 8 days ago -> 114% -> RED
    """
    pct = sla_percentage(stage_entered_at, sla_budget_days, now)
    if pct is None:
        return StatusIndicator.GREEN
    return _indicator_for_percent(pct)


def sla_budget_for_stage(stage: Any) -> Optional[int]:
    """SLA budget in days for a stage; None for no stage or an unknown one."""
    code = project_stage({'stage': stage})
    if code is None:
        return None
    try:
        return STAGE_SLA_DAYS[ProjectStage(code)]
    except ValueError:
        logger.warning(f"No SLA budget for unknown stage: {stage!r}")
        return None


def project_owner(stage: Any) -> ProjectOwner:
    """
    Functional team owning a stage.

    SURVEY / PROPOSAL / APPROVED -> SALES, other stages -> OPS,
    no stage -> SALES.
    """
    code = project_stage({'stage': stage})
    if code is None:
        return ProjectOwner.SALES
    if code in {s.value for s in SALES_OWNED_STAGES}:
        return ProjectOwner.SALES
    return ProjectOwner.OPS


def describe_sla(project: Any, now: datetime = None) -> Dict[str, Any]:
    """
    SLA view of one project row.

    Returns:
        Dict with days_in_stage, days_remaining, sla_percentage, owner and
        status_indicator
    """
    getter = project.get if hasattr(project, 'get') else (lambda k: getattr(project, k, None))
    entered = getter('stage_entered_at')
    budget = _budget(getter('sla_budget_days'))

    days = days_in_stage(entered, now)
    days = days if days is not None else 0
    budget_days = int(budget) if budget is not None else 0

    return {
        'days_in_stage': days,
        'days_remaining': max(0, budget_days - days),
        'sla_percentage': round(100 * days / budget, 1) if budget else 0.0,
        'owner': project_owner(getter('stage')).value,
        'status_indicator': status_indicator(entered, budget, now).value,
    }


# =============================================================================
# STAGE TRANSITION
# =============================================================================

def stage_transition(new_stage: Any, now: datetime = None) -> Dict[str, Any]:
    """
    Field values to store when a project enters a new stage.

    Returns:
        Dict with stage, stage_entered_at, sla_budget_days, status_indicator
    """
    stage = ProjectStage(getattr(new_stage, 'value', str(new_stage)).upper())
    entered = now or local_now().to_pydatetime()
    budget = STAGE_SLA_DAYS[stage]

    return {
        'stage': stage.value,
        'stage_entered_at': entered,
        'sla_budget_days': budget,
        'status_indicator': status_indicator(entered, budget, entered).value,
    }


# =============================================================================
# VECTORISED / SWEEP
# =============================================================================

def _column_or_null(df: pd.DataFrame, name: str) -> pd.Series:
    if name in df.columns:
        return df[name]
    return pd.Series([None] * len(df), index=df.index, dtype=object)


def compute_status_indicators(df: pd.DataFrame, now: datetime = None) -> pd.Series:
    """status_indicator() for every row of a project DataFrame."""
    if df.empty:
        return pd.Series([], index=df.index, dtype=object)

    current = to_local_timestamp(now) if now is not None else local_now()

    entered = to_local_series(_column_or_null(df, 'stage_entered_at'))
    budget = pd.to_numeric(_column_or_null(df, 'sla_budget_days'), errors='coerce')

    days = np.floor((current - entered).dt.total_seconds() / _SECONDS_PER_DAY)
    tracked = entered.notna() & budget.notna() & (budget > 0)
    pct = 100 * days / budget.where(tracked)

    indicators = np.select(
        [~tracked, pct < SLA_AMBER_PERCENT, pct < SLA_RED_PERCENT],
        [StatusIndicator.GREEN.value, StatusIndicator.GREEN.value, StatusIndicator.AMBER.value],
        default=StatusIndicator.RED.value,
    )
    return pd.Series(indicators, index=df.index, dtype=object)


def refresh_status_indicators(df: pd.DataFrame, now: datetime = None) -> pd.DataFrame:
    """
    Recompute indicators and keep only the rows whose cached value changed.

    Returns:
        DataFrame with columns id, status_indicator (new value)
    """
    if df.empty:
        return pd.DataFrame(columns=['id', 'status_indicator'])

    fresh = compute_status_indicators(df, now)
    cached = _column_or_null(df, 'status_indicator')
    changed = fresh != cached

    result = pd.DataFrame({
        'id': df.loc[changed, 'id'],
        'status_indicator': fresh[changed],
    }).reset_index(drop=True)

    logger.info(f"SLA sweep: {len(result)} of {len(df)} indicators changed")
    return result


def run_sla_sweep(queries, now: datetime = None) -> int:
    """
    Periodic sweep: load in-flight projects, write back changed indicators.

    Args:
        queries: ProjectQueries (or any object with get_sla_tracked_projects()
                 and save_status_indicators())

    Returns:
        Number of projects updated
    """
    projects = queries.get_sla_tracked_projects()
    changes = refresh_status_indicators(projects, now)
    if changes.empty:
        return 0
    return queries.save_status_indicators(changes)
