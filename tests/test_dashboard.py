# tests/test_dashboard.py
import pytest

from utils.project_dashboard.access_control import AccessControl
from utils.project_dashboard.dashboard import build_dashboard
from utils.project_dashboard.filters import build_selection


def test_single_fy_full_year(source, now):
    payload = build_dashboard(
        source.get_projects, AccessControl('MANAGEMENT', 'm1'), 'management',
        build_selection(['2024-25']), now
    )

    assert payload['totalRevenue'] == 300000
    assert payload['totalPipeline'] == 440000
    assert payload['openPipeline'] == 50000
    assert payload['totalCapacity'] == 30
    assert payload['totalProfit'] == 70000

    assert [row['fy'] for row in payload['projectValueProfitByFY']] == ['2023-24', '2024-25']
    assert payload['projectValueProfitByFY'][0] == {
        'fy': '2023-24',
        'totalProjectValue': 200000.0,
        'totalProfit': 40000.0,
        'totalCapacity': 20.0,
        'totalPipeline': 200000.0,
    }
    assert 'previousYearSamePeriod' not in payload
    assert payload['previousFY'] == '2023-24'
    assert payload['yoy']['totalRevenue'] == 50.0
    assert payload['yoy']['totalRevenueAbs'] == 100000


def test_narrowed_selection_has_same_period(source, now):
    payload = build_dashboard(
        source.get_projects, AccessControl('FINANCE', 'f1'), 'finance',
        build_selection(['2024-25'], ['05', '06'], ['Q1']), now
    )

    assert payload['totalRevenue'] == 100000
    assert payload['totalPipeline'] == 130000
    assert payload['previousYearSamePeriod'] == {
        'totalRevenue': 80000.0,
        'totalPipeline': 80000.0,
        'totalCapacity': 8.0,
        'totalProfit': 10000.0,
    }
    assert payload['filters']['effectiveMonths'] == ['05', '06']
    assert payload['filters']['narrowingActive'] is True


def test_several_fys_ignore_narrowing(source, now):
    payload = build_dashboard(
        source.get_projects, AccessControl('ADMIN', 'a1'), 'management',
        build_selection(['2024-25', '2023-24'], ['05'], ['Q1']), now
    )

    assert payload['totalRevenue'] == 500000
    assert payload['previousFY'] is None
    assert 'previousYearSamePeriod' not in payload
    assert payload['filters']['narrowingActive'] is False
    assert all(value is None for value in payload['yoy'].values())


def test_sales_view_is_scoped(source, now):
    payload = build_dashboard(
        source.get_projects, AccessControl('SALES', 'u1'), 'sales',
        build_selection(['2024-25']), now
    )

    assert payload['totalRevenue'] == 100000
    assert payload['totalPipeline'] == 210000
    assert payload['projectCount'] == 4
    assert [r['salesperson_id'] for r in payload['revenueBySalesperson']] == ['u1']


def test_role_cannot_open_other_dashboard(source):
    with pytest.raises(PermissionError):
        build_dashboard(source.get_projects, AccessControl('SALES', 'u1'), 'finance')


def test_no_selection_covers_everything(source, now):
    payload = build_dashboard(source.get_projects, AccessControl('ADMIN', 'a1'), 'management', now=now)

    assert payload['projectCount'] == 9
    assert payload['sla']['by_status'] == {'GREEN': 4, 'AMBER': 2, 'RED': 2}
    assert payload['pipelineByStage'][0]['stage'] == 'SURVEY'
    assert payload['revenueByLeadSource'][0]['lead_source'] == 'Website'
