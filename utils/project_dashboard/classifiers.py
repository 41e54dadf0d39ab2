# utils/project_dashboard/classifiers.py
"""
Revenue / Pipeline classification of projects.

Revenue:        status confirmed-or-later, order value present, and stage
                not a pre-sale stage (Survey / Proposal). A missing stage is
                "no stage recorded" and is NOT excluded.
Pipeline:       any status except LOST with an order value present.
Open Pipeline:  Pipeline still in LEAD / SITE_SURVEY / PROPOSAL.

The two classifications overlap and do not cover every project: a LEAD with
no order value is in neither, a live PROPOSAL deal is Pipeline only.

Each rule exists twice with identical semantics:
- is_*() for a single project (dict, pandas row, or object)
- *_predicate() to derive a Predicate from a base (role-scoped) predicate
"""

import logging
from typing import Any, Optional

import pandas as pd

from .constants import (
    REVENUE_STATUSES,
    REVENUE_EXCLUDED_STAGES,
    PIPELINE_EXCLUDED_STATUSES,
    OPEN_PIPELINE_STATUSES,
)
from .predicates import In, NotIn, NotNull, Predicate, normalize_code

logger = logging.getLogger(__name__)


def _sorted_values(members) -> tuple:
    return tuple(sorted(m.value for m in members))


# =============================================================================
# FIELD ACCESS
# =============================================================================

def _field(project: Any, name: str) -> Any:
    if isinstance(project, (dict, pd.Series)):
        value = project.get(name)
    else:
        value = getattr(project, name, None)
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value


def _code(value: Any) -> Optional[str]:
    """Same normalisation as the normalize=True predicate clauses."""
    return normalize_code(value)


def project_stage(project: Any) -> Optional[str]:
    """Stage code of a project, or None when no stage is recorded."""
    return _code(_field(project, 'stage'))


def has_order_value(project: Any) -> bool:
    return _field(project, 'order_value') is not None


# =============================================================================
# SINGLE PROJECT
# =============================================================================

def is_revenue_stage(stage: Any) -> bool:
    """
    Stage rule for Revenue:
        None               -> include
        SURVEY / PROPOSAL  -> exclude
        any other stage    -> include
    """
    code = _code(stage)
    if code is None:
        return True
    if code in {s.value for s in REVENUE_EXCLUDED_STAGES}:
        return False
    return True


def is_revenue(project: Any) -> bool:
    """True if the project counts toward Revenue."""
    status = _code(_field(project, 'status'))
    if status not in {s.value for s in REVENUE_STATUSES}:
        return False
    if not has_order_value(project):
        return False
    return is_revenue_stage(_field(project, 'stage'))


def is_pipeline(project: Any) -> bool:
    """True if the project counts toward Pipeline."""
    status = _code(_field(project, 'status'))
    if status is None or status in {s.value for s in PIPELINE_EXCLUDED_STATUSES}:
        return False
    return has_order_value(project)


def is_open_pipeline(project: Any) -> bool:
    """Pipeline still before confirmation."""
    status = _code(_field(project, 'status'))
    return is_pipeline(project) and status in {s.value for s in OPEN_PIPELINE_STATUSES}


# =============================================================================
# PREDICATES
# =============================================================================

def revenue_predicate(base: Predicate = None) -> Predicate:
    return (base or Predicate()).and_(
        In('status', _sorted_values(REVENUE_STATUSES), normalize=True),
        NotNull('order_value'),
        NotIn('stage', _sorted_values(REVENUE_EXCLUDED_STAGES), keep_null=True, normalize=True),
    )


def pipeline_predicate(base: Predicate = None) -> Predicate:
    return (base or Predicate()).and_(
        NotIn('status', _sorted_values(PIPELINE_EXCLUDED_STATUSES), normalize=True),
        NotNull('order_value'),
    )


def open_pipeline_predicate(base: Predicate = None) -> Predicate:
    return pipeline_predicate(base).and_(
        In('status', _sorted_values(OPEN_PIPELINE_STATUSES), normalize=True),
    )


# =============================================================================
# DATAFRAME HELPERS
# =============================================================================

def classify_projects(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add boolean is_revenue / is_pipeline / is_open_pipeline columns.

    Returns a copy; the input frame is not modified.
    """
    out = df.copy()
    if out.empty:
        for col in ('is_revenue', 'is_pipeline', 'is_open_pipeline'):
            out[col] = pd.Series(dtype=bool)
        return out

    out['is_revenue'] = revenue_predicate().mask(out)
    out['is_pipeline'] = pipeline_predicate().mask(out)
    out['is_open_pipeline'] = open_pipeline_predicate().mask(out)
    return out


__all__ = [
    'is_revenue',
    'is_revenue_stage',
    'is_pipeline',
    'is_open_pipeline',
    'project_stage',
    'revenue_predicate',
    'pipeline_predicate',
    'open_pipeline_predicate',
    'classify_projects',
]
