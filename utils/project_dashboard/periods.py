# utils/project_dashboard/periods.py
"""
Quarter / Month resolution on the Indian fiscal calendar.

Q1 = Apr-Jun, Q2 = Jul-Sep, Q3 = Oct-Dec, Q4 = Jan-Mar (next calendar year).

Month codes are not FY-qualified, so they are only meaningful when exactly
one FY is selected. Callers enforce that rule (see filters.compose_filter).
"""

import logging
from datetime import date
from typing import Iterable, List, Optional, Set, Tuple

from .constants import (
    QUARTER_MONTHS,
    FY_START_MONTH,
    FY_MONTH_ORDER,
    MIN_VALID_YEAR,
    MAX_VALID_YEAR,
)
from .fiscal_year import fy_start_year

logger = logging.getLogger(__name__)

DateWindow = Tuple[date, date]


def normalize_month_code(value) -> Optional[str]:
    """'4', '04', 4 -> '04'. Anything outside 1-12 -> None."""
    if value is None:
        return None
    try:
        month = int(str(value).strip())
    except ValueError:
        return None
    if 1 <= month <= 12:
        return f"{month:02d}"
    return None


def normalize_quarter_code(value) -> Optional[str]:
    """'q1', ' Q1 ' -> 'Q1'. Unknown codes -> None."""
    if value is None:
        return None
    code = str(value).strip().upper()
    return code if code in QUARTER_MONTHS else None


def months_for_quarters(quarters: Iterable[str]) -> Set[str]:
    """Union of the constituent month codes of the given quarters."""
    months = set()
    for quarter in quarters:
        code = normalize_quarter_code(quarter)
        if code is None:
            logger.warning(f"Ignoring unknown quarter code: {quarter!r}")
            continue
        months.update(QUARTER_MONTHS[code])
    return months


def effective_months(
    quarter_selections: Iterable[str],
    month_selections: Iterable[str]
) -> Set[str]:
    """
    Month codes left after combining quarter and month selections.

    - quarters + months: intersection (months outside the quarters are dropped)
    - quarters only:     every month of the selected quarters
    - no quarters:       the month selection as given

    Examples:
        >>> effective_months(['Q1'], ['05', '10'])
        {'05'}
        >>> effective_months(['Q1'], [])
        {'04', '05', '06'}
    """
    quarters = [q for q in (quarter_selections or []) if normalize_quarter_code(q)]
    months = set()
    for m in (month_selections or []):
        code = normalize_month_code(m)
        if code is None:
            logger.warning(f"Ignoring invalid month code: {m!r}")
            continue
        months.add(code)

    if quarters:
        quarter_months = months_for_quarters(quarters)
        if months:
            return quarter_months & months
        return quarter_months

    return months


def calendar_year_for_month(start_year: int, month_code: str) -> int:
    """Months 04-12 fall in the FY's first calendar year, 01-03 in its second."""
    return start_year if int(month_code) >= FY_START_MONTH else start_year + 1


def month_window(fy_label: str, month_code: str) -> Optional[DateWindow]:
    """
    Half-open [start, end) date window for one month of an FY.

        month_window('2024-25', '05') -> (2024-05-01, 2024-06-01)
        month_window('2024-25', '02') -> (2025-02-01, 2025-03-01)
    """
    start_year = fy_start_year(fy_label)
    code = normalize_month_code(month_code)
    if start_year is None or code is None:
        return None

    year = calendar_year_for_month(start_year, code)
    if not (MIN_VALID_YEAR <= year <= MAX_VALID_YEAR):
        return None

    month = int(code)
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


def month_windows(fy_label: str, month_codes: Iterable[str]) -> List[DateWindow]:
    """Windows for several months, in fiscal order. Invalid entries are skipped."""
    ordered = sorted(
        {c for c in (normalize_month_code(m) for m in month_codes) if c},
        key=FY_MONTH_ORDER.index
    )
    windows = []
    for code in ordered:
        window = month_window(fy_label, code)
        if window is not None:
            windows.append(window)
    return windows
