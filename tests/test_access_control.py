# tests/test_access_control.py
import pytest

from utils.project_dashboard.access_control import AccessControl
from utils.project_dashboard.predicates import Equals, In, Predicate


@pytest.mark.parametrize("role", ['ADMIN', 'MANAGEMENT', 'FINANCE'])
def test_full_access_roles_are_unscoped(role):
    access = AccessControl(role, 'x1')
    assert access.can_view_all()
    assert access.base_predicate('finance') == Predicate()


def test_sales_scoped_to_own_projects():
    access = AccessControl('sales', 'u1')
    assert access.user_role == 'SALES'
    assert access.get_access_level('sales') == 'self'
    assert access.base_predicate('sales').clauses == (Equals('salesperson_id', 'u1'),)


def test_operations_scoped_to_assigned_projects():
    access = AccessControl('OPERATIONS', 'o1')
    assert access.base_predicate('operations').clauses == (Equals('assigned_ops_id', 'o1'),)


def test_scoped_role_without_user_sees_nothing(projects_df):
    access = AccessControl('SALES', None)
    predicate = access.base_predicate('sales')

    assert predicate.clauses == (In('salesperson_id', ()),)
    assert predicate.apply(projects_df).empty


def test_dashboard_availability():
    assert AccessControl('SALES', 'u1').available_dashboards() == ['sales']
    assert AccessControl('OPERATIONS', 'o1').available_dashboards() == ['operations']
    assert AccessControl('FINANCE', 'f1').available_dashboards() == ['finance']
    assert AccessControl('ADMIN', 'a1').available_dashboards() == ['sales', 'operations', 'finance', 'management']


def test_unknown_role_has_no_access():
    access = AccessControl('', None)
    assert access.available_dashboards() == []
    assert access.get_access_level('sales') == 'none'


def test_scoped_predicate_filters_frame(projects_df):
    predicate = AccessControl('SALES', 'u1').base_predicate('sales')
    assert predicate.apply(projects_df)['id'].tolist() == ['P1', 'P3', 'P5', 'P6', 'P9']
