# tests/conftest.py
from datetime import datetime, timedelta

import pandas as pd
import pytest

from utils.project_dashboard.predicates import Predicate

NOW = datetime(2025, 6, 15, 12, 0)


def _entered(days):
    return NOW - timedelta(days=days) if days is not None else None


# id, status, stage, fy, confirmation_date, order_value, gross_profit, capacity,
# salesperson, ops, lead_source, days in stage, sla budget, cached indicator
ROWS = [
    ('P1', 'CONFIRMED', 'INSTALLATION', '2024-25', '2024-05-10', 100000, 20000, 10, 'u1', 'o1', 'Referral', 10, 30, 'GREEN'),
    ('P2', 'COMPLETED', 'LIVE', '2024-25', '2025-02-05', 200000, 50000, 20, 'u2', 'o1', 'Website', 3, 3, 'AMBER'),
    ('P3', 'PROPOSAL', 'PROPOSAL', '2024-25', None, 50000, None, 5, 'u1', None, None, 10, 14, 'GREEN'),
    ('P4', 'CONFIRMED', 'PROPOSAL', '2024-25', '2024-06-20', 30000, 5000, 3, 'u2', None, 'Website', 1, 14, 'GREEN'),
    ('P5', 'LOST', 'LOST', '2024-25', '2024-05-15', 40000, None, 4, 'u1', None, 'Referral', 20, 0, 'GREEN'),
    ('P6', 'UNDER_INSTALLATION', None, '2023-24', '2023-05-20', 80000, 10000, 8, 'u1', 'o2', None, None, None, None),
    ('P7', 'LEAD', 'SURVEY', '2023-24', None, None, None, None, 'u2', None, 'Website', 6, 7, 'GREEN'),
    ('P8', 'COMPLETED_SUBSIDY_CREDITED', 'AMC', '2023-24', '2024-01-10', 120000, 30000, 12, 'u2', 'o2', 'Website', 100, 365, 'GREEN'),
    ('P9', 'SUBMITTED_FOR_SUBSIDY', 'BILLING', '2024-25', '2024-08-01', 60000, 9000, 6, 'u1', 'o1', 'Referral', 8, 7, 'RED'),
]

SALESPERSON_NAMES = {'u1': 'Asha', 'u2': 'Ravi'}


def make_projects(rows=ROWS) -> pd.DataFrame:
    records = []
    for (pid, status, stage, fy, confirmed, value, profit, capacity,
         salesperson, ops, source, days, budget, indicator) in rows:
        records.append({
            'id': pid,
            'customer_name': f"Customer {pid}",
            'salesperson_id': salesperson,
            'salesperson_name': SALESPERSON_NAMES.get(salesperson),
            'assigned_ops_id': ops,
            'status': status,
            'stage': stage,
            'fiscal_year': fy,
            'confirmation_date': pd.to_datetime(confirmed) if confirmed else pd.NaT,
            'order_value': value,
            'gross_profit': profit,
            'system_capacity_kw': capacity,
            'lead_source': source,
            'stage_entered_at': _entered(days),
            'sla_budget_days': budget,
            'status_indicator': indicator,
        })
    return pd.DataFrame(records)


class FrameSource:
    """In-memory project source with the ProjectQueries.get_projects signature."""

    def __init__(self, df: pd.DataFrame):
        self.df = df
        self.calls = []

    def get_projects(self, predicate: Predicate) -> pd.DataFrame:
        self.calls.append(predicate)
        return predicate.apply(self.df)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def projects_df():
    return make_projects()


@pytest.fixture
def source(projects_df):
    return FrameSource(projects_df)
