# tests/test_classifiers.py
import pandas as pd
import pytest

from utils.project_dashboard.classifiers import (
    classify_projects,
    is_open_pipeline,
    is_pipeline,
    is_revenue,
    is_revenue_stage,
    pipeline_predicate,
    revenue_predicate,
)
from utils.project_dashboard.constants import ProjectStage, ProjectStatus
from utils.project_dashboard.predicates import Equals, Predicate


@pytest.mark.parametrize("stage, expected", [
    (None, True),
    (ProjectStage.SURVEY, False),
    ('PROPOSAL', False),
    ('installation', True),
    ('LIVE', True),
])
def test_revenue_stage_rule(stage, expected):
    assert is_revenue_stage(stage) is expected


def test_confirmed_without_stage_is_revenue():
    project = {'status': 'CONFIRMED', 'stage': None, 'order_value': 1000}
    assert is_revenue(project)


def test_confirmed_in_proposal_stage_is_not_revenue():
    project = {'status': ProjectStatus.CONFIRMED, 'stage': ProjectStage.PROPOSAL, 'order_value': 1000}
    assert not is_revenue(project)
    assert is_pipeline(project)


def test_submitted_for_subsidy_is_not_revenue():
    project = {'status': 'SUBMITTED_FOR_SUBSIDY', 'stage': 'BILLING', 'order_value': 1000}
    assert not is_revenue(project)
    assert is_pipeline(project)


def test_missing_order_value_is_neither():
    project = {'status': 'COMPLETED', 'stage': 'LIVE', 'order_value': None}
    assert not is_revenue(project)
    assert not is_pipeline(project)


def test_lead_without_value_is_neither():
    assert not is_revenue({'status': 'LEAD', 'order_value': None})
    assert not is_pipeline({'status': 'LEAD', 'order_value': None})


def test_lost_is_never_pipeline():
    assert not is_pipeline({'status': 'LOST', 'order_value': 5000})


def test_open_pipeline():
    assert is_open_pipeline({'status': 'SITE_SURVEY', 'order_value': 10})
    assert not is_open_pipeline({'status': 'CONFIRMED', 'order_value': 10})


MIXED_CASE_ROWS = pd.DataFrame([
    {'id': 'M1', 'status': 'confirmed', 'stage': None, 'order_value': 100},
    {'id': 'M2', 'status': 'CONFIRMED', 'stage': 'proposal', 'order_value': 50},
    {'id': 'M3', 'status': ' site_survey ', 'stage': 'Survey', 'order_value': 75},
    {'id': 'M4', 'status': 'lost', 'stage': '', 'order_value': 20},
    {'id': 'M5', 'status': '', 'stage': 'live', 'order_value': 10},
])


@pytest.mark.parametrize('frame', ['fixture', 'mixed_case'])
def test_row_and_frame_rules_agree(frame, projects_df):
    df = projects_df if frame == 'fixture' else MIXED_CASE_ROWS
    classified = classify_projects(df)
    for _, row in df.iterrows():
        flags = classified.loc[classified['id'] == row['id']].iloc[0]
        assert flags['is_revenue'] == is_revenue(row), row['id']
        assert flags['is_pipeline'] == is_pipeline(row), row['id']
        assert flags['is_open_pipeline'] == is_open_pipeline(row), row['id']


def test_status_and_stage_codes_ignore_case():
    classified = classify_projects(MIXED_CASE_ROWS).set_index('id')

    assert classified['is_revenue'].to_dict() == {'M1': True, 'M2': False, 'M3': False, 'M4': False, 'M5': False}
    assert classified['is_pipeline'].to_dict() == {'M1': True, 'M2': True, 'M3': True, 'M4': False, 'M5': False}
    assert classified['is_open_pipeline'].to_dict() == {'M1': False, 'M2': False, 'M3': True, 'M4': False, 'M5': False}


def test_classified_sets(projects_df):
    classified = classify_projects(projects_df)
    assert classified.loc[classified['is_revenue'], 'id'].tolist() == ['P1', 'P2', 'P6', 'P8']
    assert classified.loc[classified['is_pipeline'], 'id'].tolist() == ['P1', 'P2', 'P3', 'P4', 'P6', 'P8', 'P9']
    assert classified.loc[classified['is_open_pipeline'], 'id'].tolist() == ['P3']


def test_classify_does_not_modify_input(projects_df):
    classify_projects(projects_df)
    assert 'is_revenue' not in projects_df.columns


def test_classify_empty_frame():
    out = classify_projects(pd.DataFrame())
    assert list(out.columns) == ['is_revenue', 'is_pipeline', 'is_open_pipeline']


def test_predicates_extend_base():
    base = Predicate().and_(Equals('salesperson_id', 'u1'))
    revenue = revenue_predicate(base)
    pipeline = pipeline_predicate(base)

    assert revenue.clauses[0] == base.clauses[0]
    assert pipeline.clauses[0] == base.clauses[0]
    assert len(base.clauses) == 1


def test_revenue_predicate_sql_keeps_null_stage():
    sql, params = revenue_predicate().to_sql()
    assert "NULLIF(UPPER(TRIM(status)), '') IN :p0" in sql
    assert "order_value IS NOT NULL" in sql
    assert "(NULLIF(UPPER(TRIM(stage)), '') IS NULL OR NULLIF(UPPER(TRIM(stage)), '') NOT IN :p2)" in sql
    assert params['p2'] == ('PROPOSAL', 'SURVEY')
