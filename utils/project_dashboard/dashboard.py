# utils/project_dashboard/dashboard.py
"""
Dashboard response assembly.

One request = role + dashboard + period selection. The flow is the same for
every role view:

    AccessControl.base_predicate()
        -> compose_selection()      (FY / month / quarter)
        -> fetch project rows
        -> ProjectMetrics           (totals, FY series, breakdowns, SLA)
        -> YoYComparator            (previous FY row, same-period totals)
        -> camelCase response dict
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd

from .access_control import AccessControl
from .filters import PeriodSelection, compose_selection
from .metrics import ProjectMetrics
from .yoy import ProjectFetcher, YoYComparator

logger = logging.getLogger(__name__)

# snake_case total keys -> response keys
RESPONSE_TOTALS = {
    'total_revenue': 'totalRevenue',
    'total_pipeline': 'totalPipeline',
    'total_capacity': 'totalCapacity',
    'total_profit': 'totalProfit',
}

FY_ROW_KEYS = {
    'fy': 'fy',
    'total_project_value': 'totalProjectValue',
    'total_profit': 'totalProfit',
    'total_capacity': 'totalCapacity',
    'total_pipeline': 'totalPipeline',
}


def _fy_rows(series: pd.DataFrame) -> List[Dict]:
    rows = []
    for record in series.to_dict('records'):
        row = {}
        for col, key in FY_ROW_KEYS.items():
            value = record.get(col)
            row[key] = value if col == 'fy' else float(value or 0.0)
        rows.append(row)
    return rows


def _camel_totals(totals: Optional[Dict]) -> Optional[Dict]:
    if totals is None:
        return None
    return {key: float(totals.get(col, 0.0)) for col, key in RESPONSE_TOTALS.items()}


def _camel_yoy(yoy: Dict) -> Dict:
    result = {}
    for col, key in RESPONSE_TOTALS.items():
        result[key] = yoy.get(f'{col}_yoy')
        result[f'{key}Abs'] = yoy.get(f'{col}_yoy_abs')
    return result


class ProjectDashboard:
    """
    Assemble dashboard payloads for one user.

    Usage:
        access = AccessControl(st.session_state.user_role, st.session_state.user_id)
        board = ProjectDashboard(queries.get_projects, access)
        payload = board.build('sales', selection)
    """

    def __init__(self, fetch_projects: ProjectFetcher, access: AccessControl):
        self.fetch_projects = fetch_projects
        self.access = access

    def build(
        self,
        dashboard: str,
        selection: PeriodSelection = None,
        now: datetime = None
    ) -> Dict:
        """
        Build the response for a role view.

        Raises:
            PermissionError: dashboard not available to the user's role
        """
        if not self.access.can_view_dashboard(dashboard):
            raise PermissionError(
                f"Role {self.access.user_role or 'UNKNOWN'} cannot view the {dashboard} dashboard"
            )

        selection = selection or PeriodSelection()
        base = self.access.base_predicate(dashboard)
        predicate = compose_selection(base, selection)

        metrics = ProjectMetrics(self.fetch_projects(predicate))
        totals = metrics.calculate_totals()
        fy_series = metrics.aggregate_by_fy()

        comparison = YoYComparator(self.fetch_projects, base).compare(selection, fy_series, totals)

        response = {
            'dashboard': dashboard,
            'totalRevenue': totals['total_revenue'],
            'totalPipeline': totals['total_pipeline'],
            'openPipeline': totals['open_pipeline'],
            'totalCapacity': totals['total_capacity'],
            'totalProfit': totals['total_profit'],
            'projectCount': totals['project_count'],
            'projectValueProfitByFY': _fy_rows(comparison.fy_series),
            'previousFY': comparison.previous_fy,
            'yoy': _camel_yoy(comparison.yoy),
            'pipelineByStage': metrics.pipeline_by_stage(),
            'sla': metrics.sla_summary(now),
            'revenueBySalesperson': metrics.revenue_by_salesperson(),
            'revenueByLeadSource': metrics.revenue_by_lead_source(),
            'filters': selection.to_dict(),
        }

        if comparison.previous_year_same_period is not None:
            response['previousYearSamePeriod'] = _camel_totals(comparison.previous_year_same_period)

        logger.info(
            f"Built {dashboard} dashboard: {totals['project_count']} projects, "
            f"previous FY {comparison.previous_fy}"
        )
        return response


def build_dashboard(
    fetch_projects: ProjectFetcher,
    access: AccessControl,
    dashboard: str,
    selection: PeriodSelection = None,
    now: datetime = None
) -> Dict:
    """Functional shortcut for ProjectDashboard(...).build(...)."""
    return ProjectDashboard(fetch_projects, access).build(dashboard, selection, now)
