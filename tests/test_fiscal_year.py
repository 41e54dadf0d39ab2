# tests/test_fiscal_year.py
from datetime import date, datetime

import pandas as pd
import pytest

from utils.project_dashboard.fiscal_year import (
    fy_for_date,
    fy_start_year,
    parse_fy_label,
    previous_fy,
    to_valid_date,
)


@pytest.mark.parametrize("value, expected", [
    (date(2025, 3, 31), '2024-25'),
    (date(2025, 4, 1), '2025-26'),
    (date(2024, 12, 31), '2024-25'),
    (date(2000, 1, 15), '1999-00'),
    (datetime(2099, 4, 2, 10, 30), '2099-00'),
    ('2024-07-15', '2024-25'),
    (pd.Timestamp('2023-04-01'), '2023-24'),
])
def test_fy_for_date(value, expected):
    assert fy_for_date(value) == expected


@pytest.mark.parametrize("value", [None, '', 'not a date', '1850-06-01', '2150-06-01', float('nan')])
def test_fy_for_date_invalid_returns_none(value):
    assert fy_for_date(value) is None


def test_to_valid_date_strips_time():
    assert to_valid_date(datetime(2024, 5, 10, 23, 59)) == date(2024, 5, 10)


@pytest.mark.parametrize("label, expected", [
    ('2024-25', '2023-24'),
    ('2024-2025', '2023-2024'),
    ('2000-01', '1999-00'),
    (' 2024-25 ', '2023-24'),
])
def test_previous_fy(label, expected):
    assert previous_fy(label) == expected


@pytest.mark.parametrize("label", ['FY24', '2024/25', '24-25', '', None, '2024-256'])
def test_previous_fy_unrecognised_is_empty(label):
    assert previous_fy(label) == ''


def test_parse_fy_label_formats():
    assert parse_fy_label('2024-25') == (2024, 25, False)
    assert parse_fy_label('2024-2025') == (2024, 2025, True)
    assert parse_fy_label('garbage') is None


def test_fy_start_year():
    assert fy_start_year('2024-25') == 2024
    assert fy_start_year('2024-2025') == 2024
    assert fy_start_year('bad') is None


def test_fy_label_then_previous_is_one_year_earlier():
    label = fy_for_date(date(2025, 1, 20))
    assert label == '2024-25'
    assert previous_fy(label) == fy_for_date(date(2024, 1, 20))
