# tests/test_queries.py
from contextlib import contextmanager
from datetime import date, datetime

import pandas as pd
import pytest

from utils.project_dashboard import queries as queries_module
from utils.project_dashboard.filters import build_selection, compose_selection
from utils.project_dashboard.predicates import Equals, Predicate
from utils.project_dashboard.queries import ProjectQueries, build_projects_query


def test_build_projects_query_qualifies_columns():
    base = Predicate().and_(Equals('salesperson_id', 'u1'))
    predicate = compose_selection(base, build_selection(['2024-25'], ['05']))

    sql, params = build_projects_query(predicate)

    assert "WHERE p.salesperson_id = :p0 AND p.fiscal_year IN :p1" in sql
    assert "p.confirmation_date >= :p2_0_start" in sql
    assert params == {
        'p0': 'u1',
        'p1': ('2024-25',),
        'p2_0_start': date(2024, 5, 1),
        'p2_0_end': date(2024, 6, 1),
    }


def test_build_projects_query_empty_predicate():
    sql, params = build_projects_query(Predicate())
    assert "WHERE 1 = 1" in sql
    assert params == {}


def test_build_projects_query_rejects_unknown_field():
    with pytest.raises(ValueError):
        build_projects_query(Predicate().and_(Equals('password_hash', 'x')))


def test_available_fiscal_years_newest_first(monkeypatch):
    queries = ProjectQueries(use_cache=False)
    monkeypatch.setattr(
        queries, '_execute_query',
        lambda query, params, name: pd.DataFrame({'fiscal_year': ['2023-24', '2024-2025', '2022-23 ']})
    )
    assert queries.get_available_fiscal_years() == ['2024-2025', '2023-24', '2022-23']


def test_save_status_indicators_skips_empty():
    assert ProjectQueries().save_status_indicators(pd.DataFrame(columns=['id', 'status_indicator'])) == 0


def test_save_status_indicators_writes_rows(monkeypatch):
    calls = []

    def fake_execute_many(query, rows):
        calls.append((query, rows))
        return len(rows)

    monkeypatch.setattr(queries_module, 'execute_many', fake_execute_many)

    changes = pd.DataFrame({'id': ['P2', 'P3'], 'status_indicator': ['RED', 'AMBER']})
    assert ProjectQueries().save_status_indicators(changes) == 2
    assert calls[0][1] == [
        {'id': 'P2', 'status_indicator': 'RED'},
        {'id': 'P3', 'status_indicator': 'AMBER'},
    ]


class FakeResult:
    def __init__(self, row):
        self.row = row

    def fetchone(self):
        return self.row


class FakeConnection:
    def __init__(self, current_stage):
        self.current_stage = current_stage
        self.executed = []

    def execute(self, statement, params):
        self.executed.append((str(statement), params))
        if str(statement).strip().startswith("SELECT"):
            return FakeResult((self.current_stage,) if self.current_stage is not None else None)
        return FakeResult(None)


def _patch_transaction(monkeypatch, conn):
    @contextmanager
    def fake_transaction():
        yield conn

    monkeypatch.setattr(queries_module, 'get_transaction', fake_transaction)


def test_update_project_stage_writes_audit_log(monkeypatch):
    conn = FakeConnection('PROPOSAL')
    _patch_transaction(monkeypatch, conn)
    now = datetime(2025, 6, 15, 12, 0)

    fields = ProjectQueries().update_project_stage('P3', 'approved', 'u9', now)

    assert fields == {
        'stage': 'APPROVED',
        'stage_entered_at': now,
        'sla_budget_days': 5,
        'status_indicator': 'GREEN',
    }
    update_sql, update_params = conn.executed[1]
    assert "UPDATE projects" in update_sql
    assert update_params['id'] == 'P3'

    audit_sql, audit_params = conn.executed[2]
    assert "INSERT INTO audit_logs" in audit_sql
    assert "'stage_changed'" in audit_sql
    assert audit_params['old_value'] == 'PROPOSAL'
    assert audit_params['new_value'] == 'APPROVED'
    assert audit_params['user_id'] == 'u9'


def test_update_project_stage_missing_project(monkeypatch):
    conn = FakeConnection(None)
    _patch_transaction(monkeypatch, conn)

    with pytest.raises(ValueError, match="Project not found"):
        ProjectQueries().update_project_stage('NOPE', 'LIVE', 'u9')
    assert len(conn.executed) == 1
