# utils/project_dashboard/yoy.py
"""
Year-over-Year comparison shared by every role dashboard.

Only applies when exactly one FY is selected:

- Full-year: the FY series always carries a row for the previous FY, a zero
  row when it has no projects. Skipped when the previous label cannot be
  computed (unrecognised FY format).
- Same-period: when month/quarter narrowing is active, the same narrowing is
  applied to the previous FY and the totals are returned separately as
  previous_year_same_period.

The comparator is parameterised only by the base (role-scoped) predicate and
a project fetcher, so every dashboard gets the same FY semantics.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

import pandas as pd

from .filters import PeriodSelection, compose_sibling
from .fiscal_year import previous_fy
from .metrics import FY_SERIES_COLUMNS, ProjectMetrics
from .predicates import Predicate

logger = logging.getLogger(__name__)

ProjectFetcher = Callable[[Predicate], pd.DataFrame]

# FY row column -> scalar total key
FY_ROW_TOTALS = {
    'total_project_value': 'total_revenue',
    'total_pipeline': 'total_pipeline',
    'total_capacity': 'total_capacity',
    'total_profit': 'total_profit',
}


@dataclass
class YoYResult:
    """
    Attributes:
        previous_fy: previous FY label, None when YoY does not apply
        fy_series: FY rows including the previous FY row
        previous_totals: totals of the comparison period (same period when
                         narrowing is active, else the full previous FY)
        previous_year_same_period: same-period totals, only when narrowed
    """
    previous_fy: Optional[str]
    fy_series: pd.DataFrame
    previous_totals: Optional[Dict] = None
    previous_year_same_period: Optional[Dict] = None
    yoy: Dict = field(default_factory=dict)


def _zero_row(fy_label: str) -> Dict:
    row = {col: 0.0 for col in FY_SERIES_COLUMNS}
    row['fy'] = fy_label
    return row


def _scalar_totals(totals: Dict) -> Dict:
    return {
        'total_revenue': totals.get('total_revenue', 0.0),
        'total_pipeline': totals.get('total_pipeline', 0.0),
        'total_capacity': totals.get('total_capacity', 0.0),
        'total_profit': totals.get('total_profit', 0.0),
    }


class YoYComparator:
    """
    Prior-period comparison for a single selected FY.

    Usage:
        comparator = YoYComparator(queries.get_projects, base_predicate)
        result = comparator.compare(selection, fy_series, current_totals)
    """

    def __init__(self, fetch_projects: ProjectFetcher, base: Predicate = None):
        """
        Args:
            fetch_projects: callable returning project rows for a Predicate
            base: role-scoped base predicate
        """
        self.fetch_projects = fetch_projects
        self.base = base or Predicate()

    @staticmethod
    def previous_fy_for(selection: PeriodSelection) -> Optional[str]:
        """Previous FY label, or None when YoY does not apply."""
        if selection.single_fy is None:
            return None
        label = previous_fy(selection.single_fy)
        return label or None

    # =========================================================================
    # FULL YEAR
    # =========================================================================

    def previous_fy_row(self, previous_label: str) -> Dict:
        """FY row for the whole previous FY; a zero row when it has no data."""
        predicate = compose_sibling(self.base, PeriodSelection(), previous_label, narrowed=False)
        series = ProjectMetrics(self.fetch_projects(predicate)).aggregate_by_fy()

        match = series[series['fy'] == previous_label]
        if match.empty:
            logger.debug(f"No projects in {previous_label}, adding zero row")
            return _zero_row(previous_label)

        return {col: match.iloc[0][col] for col in FY_SERIES_COLUMNS}

    def with_previous_fy_row(
        self,
        fy_series: pd.DataFrame,
        selection: PeriodSelection
    ) -> pd.DataFrame:
        """fy_series plus the previous FY row (if missing), sorted by FY."""
        previous_label = self.previous_fy_for(selection)
        if previous_label is None:
            return fy_series

        if not fy_series.empty and (fy_series['fy'] == previous_label).any():
            return fy_series

        row = self.previous_fy_row(previous_label)
        frame = pd.DataFrame([row], columns=FY_SERIES_COLUMNS)
        if fy_series.empty:
            combined = frame
        else:
            combined = pd.concat([fy_series, frame], ignore_index=True)
        return combined.sort_values('fy').reset_index(drop=True)

    # =========================================================================
    # SAME PERIOD
    # =========================================================================

    def previous_year_same_period(self, selection: PeriodSelection) -> Optional[Dict]:
        """
        Totals for the previous FY with the same month/quarter narrowing.

        None unless exactly one FY is selected and narrowing is active.
        """
        previous_label = self.previous_fy_for(selection)
        if previous_label is None or not selection.is_narrowed:
            return None

        predicate = compose_sibling(self.base, selection, previous_label, narrowed=True)
        totals = ProjectMetrics(self.fetch_projects(predicate)).calculate_totals()
        return _scalar_totals(totals)

    # =========================================================================
    # COMBINED
    # =========================================================================

    def compare(
        self,
        selection: PeriodSelection,
        fy_series: pd.DataFrame,
        current_totals: Dict
    ) -> YoYResult:
        """
        Run both comparisons for a request.

        Args:
            selection: normalised period selection
            fy_series: FY rows of the current (filtered) data
            current_totals: scalar totals of the current data
        """
        previous_label = self.previous_fy_for(selection)
        if previous_label is None:
            if selection.single_fy is not None:
                logger.info(f"YoY unavailable for FY {selection.single_fy!r}")
            return YoYResult(previous_fy=None, fy_series=fy_series)

        series = self.with_previous_fy_row(fy_series, selection)
        same_period = self.previous_year_same_period(selection)

        if same_period is not None:
            previous_totals = same_period
        else:
            row = series[series['fy'] == previous_label].iloc[0]
            previous_totals = {key: float(row[col]) for col, key in FY_ROW_TOTALS.items()}

        return YoYResult(
            previous_fy=previous_label,
            fy_series=series,
            previous_totals=previous_totals,
            previous_year_same_period=same_period,
            yoy=ProjectMetrics.calculate_yoy_comparison(current_totals, previous_totals),
        )
