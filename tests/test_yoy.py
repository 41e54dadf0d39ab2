# tests/test_yoy.py
from utils.project_dashboard.filters import build_selection, compose_selection
from utils.project_dashboard.metrics import ProjectMetrics
from utils.project_dashboard.predicates import Equals, Predicate
from utils.project_dashboard.yoy import YoYComparator


def _current(source, selection, base=None):
    predicate = compose_selection(base or Predicate(), selection)
    metrics = ProjectMetrics(source.get_projects(predicate))
    return metrics.calculate_totals(), metrics.aggregate_by_fy()


def test_full_year_adds_previous_fy_row(source):
    selection = build_selection(['2024-25'])
    totals, series = _current(source, selection)

    result = YoYComparator(source.get_projects).compare(selection, series, totals)

    assert result.previous_fy == '2023-24'
    assert result.fy_series['fy'].tolist() == ['2023-24', '2024-25']
    assert result.previous_year_same_period is None
    assert result.previous_totals['total_revenue'] == 200000
    assert result.yoy['total_revenue_yoy'] == 50.0


def test_previous_fy_row_is_never_narrowed(source):
    selection = build_selection(['2024-25'], [], ['Q1'])
    totals, series = _current(source, selection)

    result = YoYComparator(source.get_projects).compare(selection, series, totals)
    previous_row = result.fy_series[result.fy_series['fy'] == '2023-24'].iloc[0]

    assert previous_row['total_project_value'] == 200000


def test_same_period_uses_identical_narrowing(source):
    selection = build_selection(['2024-25'], [], ['Q1'])
    totals, series = _current(source, selection)

    result = YoYComparator(source.get_projects).compare(selection, series, totals)

    assert totals['total_revenue'] == 100000
    assert result.previous_year_same_period == {
        'total_revenue': 80000.0,
        'total_pipeline': 80000.0,
        'total_capacity': 8.0,
        'total_profit': 10000.0,
    }
    assert result.yoy['total_revenue_yoy'] == 25.0


def test_same_period_q4_crosses_calendar_year(source):
    selection = build_selection(['2024-25'], [], ['Q4'])
    totals, series = _current(source, selection)

    result = YoYComparator(source.get_projects).compare(selection, series, totals)

    assert totals['total_revenue'] == 200000
    assert result.previous_year_same_period['total_revenue'] == 120000


def test_zero_row_when_previous_fy_has_no_data(source):
    selection = build_selection(['2023-24'])
    totals, series = _current(source, selection)

    result = YoYComparator(source.get_projects).compare(selection, series, totals)

    assert result.fy_series['fy'].tolist() == ['2022-23', '2023-24']
    zero = result.fy_series.iloc[0]
    assert zero['total_project_value'] == 0
    assert zero['total_pipeline'] == 0
    assert result.yoy['total_revenue_yoy'] is None


def test_no_comparison_for_several_fys(source):
    selection = build_selection(['2024-25', '2023-24'], [], ['Q1'])
    totals, series = _current(source, selection)

    result = YoYComparator(source.get_projects).compare(selection, series, totals)

    assert result.previous_fy is None
    assert result.previous_year_same_period is None
    assert result.fy_series is series
    assert result.yoy == {}


def test_no_comparison_for_unrecognised_fy(source):
    selection = build_selection(['FY24'])
    totals, series = _current(source, selection)

    result = YoYComparator(source.get_projects).compare(selection, series, totals)

    assert result.previous_fy is None
    assert result.fy_series.empty


def test_previous_label_keeps_format(source):
    selection = build_selection(['2024-2025'])
    totals, series = _current(source, selection)

    result = YoYComparator(source.get_projects).compare(selection, series, totals)
    assert result.previous_fy == '2023-2024'


def test_comparison_respects_base_predicate(source):
    base = Predicate().and_(Equals('salesperson_id', 'u2'))
    selection = build_selection(['2024-25'])
    totals, series = _current(source, selection, base)

    result = YoYComparator(source.get_projects, base).compare(selection, series, totals)

    # u2 in 2023-24: P8 only
    assert result.previous_totals['total_revenue'] == 120000
    for predicate in source.calls:
        assert predicate.clauses[0] == Equals('salesperson_id', 'u2')
