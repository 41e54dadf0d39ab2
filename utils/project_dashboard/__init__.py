# utils/project_dashboard/__init__.py
"""
Project Dashboard Module

Temporal aggregation and classification engine behind the sales, operations,
finance and management dashboards.

Components:
- fiscal_year: April-March FY labels and previous FY
- periods: quarter / month resolution and month date windows
- predicates: immutable filter clauses (pandas masks + SQL)
- filters: FY / month / quarter selection and predicate composition
- classifiers: Revenue / Pipeline / Open Pipeline rules
- sla: stage SLA traffic light, stage transitions and sweep
- metrics: totals, FY series, breakdowns
- yoy: previous FY and same-period comparison
- access_control: role-scoped base predicate
- queries: SQL data loading with caching
- dashboard: response assembly
- charts: Altair visualizations

Usage:
    from utils.project_dashboard import (
        AccessControl,
        ProjectQueries,
        ProjectDashboard,
        parse_period_params,
    )
"""

from .access_control import AccessControl
from .queries import ProjectQueries
from .metrics import ProjectMetrics
from .yoy import YoYComparator, YoYResult
from .dashboard import ProjectDashboard, build_dashboard
from .charts import ProjectCharts
from .filters import (
    PeriodSelection,
    build_selection,
    compose_filter,
    compose_selection,
    parse_period_params,
    render_period_filters,
)
from .fiscal_year import fy_for_date, previous_fy
from .periods import effective_months, month_window
from .predicates import Predicate
from .classifiers import (
    is_revenue,
    is_pipeline,
    is_open_pipeline,
    revenue_predicate,
    pipeline_predicate,
)
from .sla import (
    status_indicator,
    stage_transition,
    refresh_status_indicators,
    run_sla_sweep,
)

# Constants
from .constants import (
    COLORS,
    ProjectStatus,
    ProjectStage,
    StatusIndicator,
    DASHBOARD_ROLES,
    FULL_ACCESS_ROLES,
    STAGE_SLA_DAYS,
)

__all__ = [
    # Classes
    'AccessControl',
    'ProjectQueries',
    'ProjectMetrics',
    'YoYComparator',
    'YoYResult',
    'ProjectDashboard',
    'ProjectCharts',
    'PeriodSelection',
    'Predicate',

    # Functions
    'build_dashboard',
    'build_selection',
    'compose_filter',
    'compose_selection',
    'parse_period_params',
    'render_period_filters',
    'fy_for_date',
    'previous_fy',
    'effective_months',
    'month_window',
    'is_revenue',
    'is_pipeline',
    'is_open_pipeline',
    'revenue_predicate',
    'pipeline_predicate',
    'status_indicator',
    'stage_transition',
    'refresh_status_indicators',
    'run_sla_sweep',

    # Constants
    'COLORS',
    'ProjectStatus',
    'ProjectStage',
    'StatusIndicator',
    'DASHBOARD_ROLES',
    'FULL_ACCESS_ROLES',
    'STAGE_SLA_DAYS',
]

__version__ = '1.0.0'
