# utils/project_dashboard/filters.py
"""
FY / Quarter / Month filter composition for the project dashboards.

- PeriodSelection: normalised fy/month/quarter request selections
- parse_period_params(): build a PeriodSelection from repeated query params
- compose_filter(): base predicate + selections -> Predicate
- render_period_filters(): sidebar widgets (Streamlit)

Month / quarter narrowing only applies when exactly one FY is selected.
With zero or several FYs the month codes would be ambiguous across years,
so narrowing is switched off and the wider scope is used.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional

import streamlit as st

from .constants import FY_MONTH_ORDER, MONTH_LABELS, QUARTER_MONTHS
from .periods import (
    DateWindow,
    effective_months,
    month_windows,
    normalize_month_code,
    normalize_quarter_code,
)
from .predicates import AnyDateWindow, In, Predicate

logger = logging.getLogger(__name__)

FISCAL_YEAR_FIELD = 'fiscal_year'
NARROWING_DATE_FIELD = 'confirmation_date'


# =============================================================================
# REQUEST SELECTIONS
# =============================================================================

@dataclass(frozen=True)
class PeriodSelection:
    """
    Normalised period selections from a dashboard request.

    Attributes:
        fiscal_years: FY labels as given (either supported format)
        months: two-digit month codes ('01'-'12')
        quarters: quarter codes ('Q1'-'Q4')
    """
    fiscal_years: tuple = field(default_factory=tuple)
    months: tuple = field(default_factory=tuple)
    quarters: tuple = field(default_factory=tuple)

    @property
    def single_fy(self) -> Optional[str]:
        """The selected FY when exactly one is selected, else None."""
        return self.fiscal_years[0] if len(self.fiscal_years) == 1 else None

    @property
    def effective_months(self) -> List[str]:
        """Effective month codes in fiscal order; empty unless one FY is selected."""
        if self.single_fy is None:
            return []
        months = effective_months(self.quarters, self.months)
        return [m for m in FY_MONTH_ORDER if m in months]

    @property
    def is_narrowed(self) -> bool:
        return bool(self.narrowing_windows())

    def narrowing_windows(self, fy_label: str = None) -> List[DateWindow]:
        """
        Month windows for the effective months, anchored to fy_label
        (defaults to the selected FY). Empty when narrowing is off.
        """
        months = self.effective_months
        if not months:
            return []
        return month_windows(fy_label or self.single_fy, months)

    def to_dict(self) -> dict:
        return {
            'fy': list(self.fiscal_years),
            'month': list(self.months),
            'quarter': list(self.quarters),
            'effectiveMonths': self.effective_months,
            'narrowingActive': self.is_narrowed,
        }


def _unique(values: Iterable[Any]) -> tuple:
    seen = []
    for v in values:
        if v not in seen:
            seen.append(v)
    return tuple(seen)


def _get_all(params: Mapping, key: str) -> List[str]:
    """Repeated query parameter values from st.query_params or a plain dict."""
    if params is None:
        return []
    if hasattr(params, 'get_all'):
        values = params.get_all(key)
    else:
        values = params.get(key, [])
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    return [str(v).strip() for v in values if v is not None and str(v).strip()]


def build_selection(
    fy_selections: Iterable[str] = None,
    month_selections: Iterable[str] = None,
    quarter_selections: Iterable[str] = None
) -> PeriodSelection:
    """Normalise raw selections, dropping unknown month / quarter codes."""
    fys = _unique(str(f).strip() for f in (fy_selections or []) if f and str(f).strip())

    months = []
    for m in (month_selections or []):
        code = normalize_month_code(m)
        if code is None:
            logger.warning(f"Ignoring invalid month selection: {m!r}")
            continue
        months.append(code)

    quarters = []
    for q in (quarter_selections or []):
        code = normalize_quarter_code(q)
        if code is None:
            logger.warning(f"Ignoring invalid quarter selection: {q!r}")
            continue
        quarters.append(code)

    return PeriodSelection(
        fiscal_years=fys,
        months=_unique(months),
        quarters=_unique(quarters),
    )


def parse_period_params(query_params: Mapping) -> PeriodSelection:
    """
    Build a PeriodSelection from `fy`, `month` and `quarter` query params.

    Each parameter may repeat: ?fy=2024-25&quarter=Q1&month=05
    """
    return build_selection(
        _get_all(query_params, 'fy'),
        _get_all(query_params, 'month'),
        _get_all(query_params, 'quarter'),
    )


# =============================================================================
# PREDICATE COMPOSITION
# =============================================================================

def compose_filter(
    base: Predicate,
    fy_selections: Iterable[str] = None,
    month_selections: Iterable[str] = None,
    quarter_selections: Iterable[str] = None
) -> Predicate:
    """
    Compose the dashboard predicate.

    1. FYs selected -> fiscal_year IN fys
    2. Exactly one FY -> effective months as confirmation_date windows
       (04-12 in the FY's first calendar year, 01-03 in its second)

    Narrowing is on confirmation_date only, never created_at.
    """
    selection = build_selection(fy_selections, month_selections, quarter_selections)
    return compose_selection(base, selection)


def compose_selection(base: Predicate, selection: PeriodSelection) -> Predicate:
    """compose_filter() for an already normalised PeriodSelection."""
    predicate = base or Predicate()

    if selection.fiscal_years:
        predicate = predicate.and_(In(FISCAL_YEAR_FIELD, selection.fiscal_years))

    if selection.single_fy is None and (selection.months or selection.quarters):
        logger.info(
            f"Month/quarter narrowing disabled: {len(selection.fiscal_years)} FYs selected"
        )

    windows = selection.narrowing_windows()
    if windows:
        predicate = predicate.and_(AnyDateWindow(NARROWING_DATE_FIELD, tuple(windows)))
    elif selection.effective_months:
        logger.warning(
            f"No month windows for FY {selection.single_fy!r}, narrowing skipped"
        )

    logger.debug(f"Composed predicate with {len(predicate.clauses)} clauses")
    return predicate


def compose_sibling(
    base: Predicate,
    selection: PeriodSelection,
    fy_label: str,
    narrowed: bool = True
) -> Predicate:
    """
    Predicate for another single FY, reusing the selection's month/quarter
    narrowing when `narrowed` is True. Used for prior-year comparison.
    """
    predicate = (base or Predicate()).and_(In(FISCAL_YEAR_FIELD, (fy_label,)))

    windows = selection.narrowing_windows(fy_label) if narrowed else []
    if windows:
        predicate = predicate.and_(AnyDateWindow(NARROWING_DATE_FIELD, tuple(windows)))
    return predicate


# =============================================================================
# SIDEBAR WIDGETS
# =============================================================================

def render_period_filters(
    available_fys: List[str],
    defaults: PeriodSelection = None,
    container=None
) -> PeriodSelection:
    """
    Render FY / Quarter / Month selectors.

    Quarter and Month are disabled unless exactly one FY is selected.
    """
    ctx = container if container else st.sidebar
    defaults = defaults or PeriodSelection()

    fy_options = list(available_fys)
    for fy in defaults.fiscal_years:
        if fy not in fy_options:
            fy_options.append(fy)

    fys = ctx.multiselect(
        "Financial Year",
        options=fy_options,
        default=list(defaults.fiscal_years),
        key="pd_filter_fy",
        placeholder="All FYs",
    )

    narrowing_enabled = len(fys) == 1
    quarters = ctx.multiselect(
        "Quarter",
        options=list(QUARTER_MONTHS.keys()),
        default=list(defaults.quarters) if narrowing_enabled else [],
        key="pd_filter_quarter",
        disabled=not narrowing_enabled,
        placeholder="All quarters",
    )
    months = ctx.multiselect(
        "Month",
        options=FY_MONTH_ORDER,
        default=list(defaults.months) if narrowing_enabled else [],
        format_func=lambda m: MONTH_LABELS.get(m, m),
        key="pd_filter_month",
        disabled=not narrowing_enabled,
        placeholder="All months",
    )

    if not narrowing_enabled:
        ctx.caption("Select exactly one FY to filter by quarter or month")

    return build_selection(fys, months if narrowing_enabled else [], quarters if narrowing_enabled else [])
