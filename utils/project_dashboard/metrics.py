# utils/project_dashboard/metrics.py
"""
KPI Calculations for the Project Dashboards

Handles all metric calculations over an already filtered project DataFrame:
- Scalar totals (Revenue, Pipeline, Open Pipeline, Capacity, Profit)
- FY series (one row per fiscal year)
- YoY growth percentages
- Breakdowns by stage / salesperson / lead source
- SLA summary (counts by indicator, overdue list)

Revenue, Capacity and Profit are summed over Revenue-classified projects.
Pipeline and Open Pipeline are summed over their own classifications.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd

from .constants import ProjectStage, StatusIndicator, OVERDUE_LIST_LIMIT
from .classifiers import classify_projects
from .predicates import normalize_code
from .sla import compute_status_indicators, describe_sla

logger = logging.getLogger(__name__)

TOTAL_KEYS = ['total_revenue', 'total_pipeline', 'total_capacity', 'total_profit']

FY_SERIES_COLUMNS = ['fy', 'total_project_value', 'total_profit', 'total_capacity', 'total_pipeline']

STAGE_ORDER = [s.value for s in ProjectStage]


def _numeric(df: pd.DataFrame, column: str) -> pd.Series:
    if column not in df.columns:
        return pd.Series(0.0, index=df.index)
    return pd.to_numeric(df[column], errors='coerce').fillna(0.0)


class ProjectMetrics:
    """
    KPI calculations for the project dashboards.

    Usage:
        metrics = ProjectMetrics(projects_df)

        totals = metrics.calculate_totals()
        fy_rows = metrics.aggregate_by_fy()
        yoy = ProjectMetrics.calculate_yoy_comparison(totals, previous_totals)
    """

    def __init__(self, projects_df: pd.DataFrame):
        """
        Initialize with data.

        Args:
            projects_df: Project rows already narrowed by the dashboard predicate
        """
        self.projects_df = projects_df if projects_df is not None else pd.DataFrame()
        self._classified: Optional[pd.DataFrame] = None

    @property
    def classified(self) -> pd.DataFrame:
        """Projects with is_revenue / is_pipeline / is_open_pipeline flags."""
        if self._classified is None:
            self._classified = classify_projects(self.projects_df)
        return self._classified

    # =========================================================================
    # SCALAR TOTALS
    # =========================================================================

    def calculate_totals(self) -> Dict:
        """
        Scalar totals for the KPI tiles.

        Returns:
            Dict with total_revenue, total_pipeline, open_pipeline,
            total_capacity, total_profit and project counts
        """
        df = self.classified

        if df.empty:
            return self._get_empty_totals()

        revenue = df[df['is_revenue']]
        pipeline = df[df['is_pipeline']]
        open_pipeline = df[df['is_open_pipeline']]

        return {
            'total_revenue': float(_numeric(revenue, 'order_value').sum()),
            'total_pipeline': float(_numeric(pipeline, 'order_value').sum()),
            'open_pipeline': float(_numeric(open_pipeline, 'order_value').sum()),
            'total_capacity': float(_numeric(revenue, 'system_capacity_kw').sum()),
            'total_profit': float(_numeric(revenue, 'gross_profit').sum()),
            'project_count': int(len(df)),
            'revenue_project_count': int(len(revenue)),
            'pipeline_project_count': int(len(pipeline)),
        }

    @staticmethod
    def _get_empty_totals() -> Dict:
        """Return empty totals dict."""
        return {
            'total_revenue': 0.0,
            'total_pipeline': 0.0,
            'open_pipeline': 0.0,
            'total_capacity': 0.0,
            'total_profit': 0.0,
            'project_count': 0,
            'revenue_project_count': 0,
            'pipeline_project_count': 0,
        }

    # =========================================================================
    # FY SERIES
    # =========================================================================

    def aggregate_by_fy(self) -> pd.DataFrame:
        """
        One row per fiscal year present in the data.

        Returns:
            DataFrame with columns fy, total_project_value, total_profit,
            total_capacity, total_pipeline sorted by fy
        """
        df = self.classified

        if df.empty or 'fiscal_year' not in df.columns:
            return pd.DataFrame(columns=FY_SERIES_COLUMNS)

        df = df[df['fiscal_year'].notna()]
        if df.empty:
            return pd.DataFrame(columns=FY_SERIES_COLUMNS)

        order_value = _numeric(df, 'order_value')
        frame = pd.DataFrame({
            'fy': df['fiscal_year'].astype(str),
            'total_project_value': order_value.where(df['is_revenue'], 0.0),
            'total_profit': _numeric(df, 'gross_profit').where(df['is_revenue'], 0.0),
            'total_capacity': _numeric(df, 'system_capacity_kw').where(df['is_revenue'], 0.0),
            'total_pipeline': order_value.where(df['is_pipeline'], 0.0),
        })

        series = frame.groupby('fy', as_index=False).sum()
        return series.sort_values('fy').reset_index(drop=True)

    # =========================================================================
    # YoY COMPARISON
    # =========================================================================

    @staticmethod
    def calculate_yoy_comparison(current_metrics: Dict, previous_metrics: Optional[Dict]) -> Dict:
        """
        Calculate YoY growth for the scalar totals.

        Growth is None (shown as N/A) when the previous value is missing or
        zero.

        Returns:
            Dict with {key}_yoy (percent, 1 dp) and {key}_yoy_abs per total
        """
        yoy = {}
        previous_metrics = previous_metrics or {}

        for key in TOTAL_KEYS:
            current = current_metrics.get(key) or 0
            previous = previous_metrics.get(key)

            if previous is None or previous == 0:
                yoy[f'{key}_yoy'] = None
                yoy[f'{key}_yoy_abs'] = None
            else:
                growth = (current - previous) / abs(previous) * 100
                yoy[f'{key}_yoy'] = round(growth, 1)
                yoy[f'{key}_yoy_abs'] = current - previous

        return yoy

    # =========================================================================
    # BREAKDOWNS
    # =========================================================================

    def pipeline_by_stage(self) -> List[Dict]:
        """Count and order value per recorded stage, in lifecycle order."""
        df = self.projects_df
        if df.empty or 'stage' not in df.columns:
            return []

        staged = df.assign(stage=df['stage'].map(normalize_code))
        staged = staged[staged['stage'].notna()].copy()
        if staged.empty:
            return []

        staged['value'] = _numeric(staged, 'order_value')
        grouped = staged.groupby('stage').agg(
            n_projects=('value', 'size'),
            value=('value', 'sum'),
        ).reset_index()

        grouped['order'] = grouped['stage'].apply(
            lambda s: STAGE_ORDER.index(s) if s in STAGE_ORDER else len(STAGE_ORDER)
        )
        grouped = grouped.sort_values(['order', 'stage'])

        return [
            {'stage': row.stage, 'count': int(row.n_projects), 'value': float(row.value)}
            for row in grouped.itertuples(index=False)
        ]

    def revenue_by_salesperson(self) -> List[Dict]:
        """Revenue per salesperson, highest first."""
        df = self.classified
        if df.empty or 'salesperson_id' not in df.columns:
            return []

        revenue = df[df['is_revenue'] & df['salesperson_id'].notna()].copy()
        if revenue.empty:
            return []

        revenue['value'] = _numeric(revenue, 'order_value')
        if 'salesperson_name' not in revenue.columns:
            revenue['salesperson_name'] = None
        revenue['salesperson_name'] = revenue['salesperson_name'].fillna('Unknown')

        grouped = revenue.groupby(['salesperson_id', 'salesperson_name']).agg(
            total=('value', 'sum'),
            n_projects=('value', 'size'),
        ).reset_index().sort_values('total', ascending=False)

        return [
            {
                'salesperson_id': row.salesperson_id,
                'salesperson_name': row.salesperson_name,
                'total_order_value': float(row.total),
                'project_count': int(row.n_projects),
            }
            for row in grouped.itertuples(index=False)
        ]

    def revenue_by_lead_source(self) -> List[Dict]:
        """Revenue per lead source; missing source is grouped as 'Unknown'."""
        df = self.classified
        if df.empty:
            return []

        revenue = df[df['is_revenue']].copy()
        if revenue.empty:
            return []

        if 'lead_source' not in revenue.columns:
            revenue['lead_source'] = None
        revenue['lead_source'] = revenue['lead_source'].fillna('Unknown')
        revenue['value'] = _numeric(revenue, 'order_value')

        grouped = revenue.groupby('lead_source').agg(
            total=('value', 'sum'),
            n_projects=('value', 'size'),
        ).reset_index().sort_values('total', ascending=False)

        return [
            {'lead_source': row.lead_source, 'revenue': float(row.total), 'count': int(row.n_projects)}
            for row in grouped.itertuples(index=False)
        ]

    # =========================================================================
    # SLA SUMMARY
    # =========================================================================

    def sla_summary(self, now: datetime = None) -> Dict:
        """
        Indicator counts for projects with a recorded stage, plus the overdue
        (RED) list. Indicators are recomputed, not read from the cache column.
        """
        df = self.projects_df
        counts = {s.value: 0 for s in StatusIndicator}

        if df.empty or 'stage' not in df.columns:
            return {'by_status': counts, 'overdue': [], 'at_risk': 0}

        staged = df[df['stage'].notna()].copy()
        if staged.empty:
            return {'by_status': counts, 'overdue': [], 'at_risk': 0}

        staged['fresh_indicator'] = compute_status_indicators(staged, now)
        for indicator, count in staged['fresh_indicator'].value_counts().items():
            counts[indicator] = int(count)

        overdue = []
        red = staged[staged['fresh_indicator'] == StatusIndicator.RED.value]
        for _, row in red.head(OVERDUE_LIST_LIMIT).iterrows():
            sla = describe_sla(row, now)
            customer = row.get('customer_name')
            overdue.append({
                'id': row.get('id'),
                'customer_name': customer if pd.notna(customer) else 'Unknown',
                'stage': row.get('stage'),
                'days_in_stage': sla['days_in_stage'],
                'days_remaining': sla['days_remaining'],
                'sla_percentage': sla['sla_percentage'],
                'owner': sla['owner'],
            })

        return {
            'by_status': counts,
            'overdue': overdue,
            'at_risk': counts[StatusIndicator.RED.value],
        }
