# utils/project_dashboard/constants.py
"""
Constants for Project Dashboard Module

Centralized configuration for:
- Role definitions
- Project status / stage enumerations
- Revenue / pipeline classification sets
- Fiscal calendar (quarters, month order)
- SLA budgets and thresholds
- Color schemes and chart settings
"""

from enum import Enum

# =====================================================================
# ROLE DEFINITIONS
# =====================================================================

ROLE_ADMIN = 'ADMIN'
ROLE_MANAGEMENT = 'MANAGEMENT'
ROLE_SALES = 'SALES'
ROLE_OPERATIONS = 'OPERATIONS'
ROLE_FINANCE = 'FINANCE'

# Full access: can view every project
FULL_ACCESS_ROLES = [ROLE_ADMIN, ROLE_MANAGEMENT, ROLE_FINANCE]

# Dashboards a role may open
DASHBOARD_ROLES = {
    'sales': [ROLE_ADMIN, ROLE_MANAGEMENT, ROLE_SALES],
    'operations': [ROLE_ADMIN, ROLE_MANAGEMENT, ROLE_OPERATIONS],
    'finance': [ROLE_ADMIN, ROLE_MANAGEMENT, ROLE_FINANCE],
    'management': [ROLE_ADMIN, ROLE_MANAGEMENT],
}

# Column used to scope a restricted role on a given dashboard
ROLE_SCOPE_COLUMNS = {
    ('sales', ROLE_SALES): 'salesperson_id',
    ('operations', ROLE_OPERATIONS): 'assigned_ops_id',
}

# =====================================================================
# PROJECT STATUS / STAGE
# =====================================================================


class ProjectStatus(str, Enum):
    LEAD = 'LEAD'
    SITE_SURVEY = 'SITE_SURVEY'
    PROPOSAL = 'PROPOSAL'
    CONFIRMED = 'CONFIRMED'
    UNDER_INSTALLATION = 'UNDER_INSTALLATION'
    SUBMITTED_FOR_SUBSIDY = 'SUBMITTED_FOR_SUBSIDY'
    COMPLETED = 'COMPLETED'
    COMPLETED_SUBSIDY_CREDITED = 'COMPLETED_SUBSIDY_CREDITED'
    LOST = 'LOST'


class ProjectStage(str, Enum):
    SURVEY = 'SURVEY'
    PROPOSAL = 'PROPOSAL'
    APPROVED = 'APPROVED'
    INSTALLATION = 'INSTALLATION'
    BILLING = 'BILLING'
    LIVE = 'LIVE'
    AMC = 'AMC'
    LOST = 'LOST'


class StatusIndicator(str, Enum):
    GREEN = 'GREEN'
    AMBER = 'AMBER'
    RED = 'RED'


class ProjectOwner(str, Enum):
    SALES = 'SALES'
    OPS = 'OPS'


# =====================================================================
# CLASSIFICATION SETS
# =====================================================================

# Confirmed-or-later statuses that count toward Revenue.
# SUBMITTED_FOR_SUBSIDY is intentionally absent.
REVENUE_STATUSES = frozenset({
    ProjectStatus.CONFIRMED,
    ProjectStatus.UNDER_INSTALLATION,
    ProjectStatus.COMPLETED,
    ProjectStatus.COMPLETED_SUBSIDY_CREDITED,
})

# Pre-sale stages that never count as Revenue, even on a confirmed status
REVENUE_EXCLUDED_STAGES = frozenset({
    ProjectStage.SURVEY,
    ProjectStage.PROPOSAL,
})

# Pipeline = everything except LOST
PIPELINE_EXCLUDED_STATUSES = frozenset({ProjectStatus.LOST})

# Open Pipeline = Pipeline still before confirmation
OPEN_PIPELINE_STATUSES = frozenset({
    ProjectStatus.LEAD,
    ProjectStatus.SITE_SURVEY,
    ProjectStatus.PROPOSAL,
})

# =====================================================================
# FISCAL CALENDAR (India, April - March)
# =====================================================================

FY_START_MONTH = 4

QUARTER_MONTHS = {
    'Q1': ('04', '05', '06'),
    'Q2': ('07', '08', '09'),
    'Q3': ('10', '11', '12'),
    'Q4': ('01', '02', '03'),
}

# Months in FY order, as shown in the filter sidebar
FY_MONTH_ORDER = ['04', '05', '06', '07', '08', '09', '10', '11', '12', '01', '02', '03']

MONTH_LABELS = {
    '01': 'January', '02': 'February', '03': 'March', '04': 'April',
    '05': 'May', '06': 'June', '07': 'July', '08': 'August',
    '09': 'September', '10': 'October', '11': 'November', '12': 'December',
}

# Dates outside this range are treated as invalid input
MIN_VALID_YEAR = 1900
MAX_VALID_YEAR = 2100

# =====================================================================
# SLA
# =====================================================================

# Days a project is expected to stay in each stage
STAGE_SLA_DAYS = {
    ProjectStage.SURVEY: 7,
    ProjectStage.PROPOSAL: 14,
    ProjectStage.APPROVED: 5,
    ProjectStage.INSTALLATION: 30,
    ProjectStage.BILLING: 7,
    ProjectStage.LIVE: 3,
    ProjectStage.AMC: 365,
    ProjectStage.LOST: 0,
}

SALES_OWNED_STAGES = frozenset({
    ProjectStage.SURVEY,
    ProjectStage.PROPOSAL,
    ProjectStage.APPROVED,
})

# Percent of SLA budget consumed: < AMBER is GREEN, < RED is AMBER, else RED
SLA_AMBER_PERCENT = 70
SLA_RED_PERCENT = 90

STATUS_INDICATOR_ORDER = [s.value for s in StatusIndicator]

# =====================================================================
# COLOR SCHEME
# =====================================================================

COLORS = {
    "revenue": "#FFA500",              # Orange
    "pipeline": "#1f77b4",             # Blue
    "profit": "#2ca02c",               # Green
    "capacity": "#800080",             # Purple

    # YoY Comparison
    "current_year": "#1f77b4",
    "previous_year": "#aec7e8",
    "yoy_positive": "#28a745",
    "yoy_negative": "#dc3545",

    # SLA
    "GREEN": "#28a745",
    "AMBER": "#ffb300",
    "RED": "#dc3545",

    "text_light": "#6c757d",
}

# =====================================================================
# CHART DIMENSIONS
# =====================================================================

CHART_HEIGHT = 360
PIE_CHART_HEIGHT = 300

# =====================================================================
# CACHE SETTINGS
# =====================================================================

CACHE_TTL_SECONDS = 300  # 5 minutes

# Max rows shown in the overdue (RED) list
OVERDUE_LIST_LIMIT = 20
