# utils/project_dashboard/fiscal_year.py
"""
Indian Financial Year (April - March) helpers.

Two label formats are accepted everywhere:
- "YYYY-YY"   e.g. 2024-25
- "YYYY-YYYY" e.g. 2024-2025

A project's stored label is authoritative. These helpers only derive a label
from a date (at create/edit time) and compute the sibling label used for YoY.
"""

import logging
import re
from datetime import date
from typing import Any, Optional, Tuple

import pandas as pd

from ..config import config
from .constants import FY_START_MONTH, MIN_VALID_YEAR, MAX_VALID_YEAR

logger = logging.getLogger(__name__)

_TWO_DIGIT_FY = re.compile(r'^(\d{4})-(\d{2})$')
_FOUR_DIGIT_FY = re.compile(r'^(\d{4})-(\d{4})$')


def to_valid_date(value: Any) -> Optional[date]:
    """
    Coerce a date-like value to a date.

    Returns None for missing or unparseable values and for years outside
    1900-2100.
    """
    if value is None:
        return None

    try:
        ts = pd.to_datetime(value, errors='coerce')
    except (TypeError, ValueError):
        return None

    if ts is None or pd.isna(ts):
        return None

    if not (MIN_VALID_YEAR <= ts.year <= MAX_VALID_YEAR):
        logger.debug(f"Date out of range: {value}")
        return None

    return date(ts.year, ts.month, ts.day)


# =============================================================================
# LOCAL TIME
# =============================================================================

def local_now() -> pd.Timestamp:
    """Current wall-clock time in the configured TIMEZONE, tz-naive."""
    return pd.Timestamp.now(tz=config.timezone).tz_localize(None)


def to_local_timestamp(value: Any) -> Optional[pd.Timestamp]:
    """
    Parse one timestamp as local wall time.

    Aware values are converted to the configured TIMEZONE; naive values are
    taken as already local. Missing or unparseable values give None.
    """
    if value is None:
        return None
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError):
        return None
    if pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert(config.timezone).tz_localize(None)
    return ts


def to_local_series(values: pd.Series) -> pd.Series:
    """to_local_timestamp() over a column; result is datetime64 with NaT for bad values."""
    if pd.api.types.is_datetime64_any_dtype(values):
        dates = values
    else:
        # per value, so one column may mix date-only, datetime and offset strings
        dates = pd.to_datetime(values.map(to_local_timestamp), errors='coerce', format='mixed')

    if getattr(dates.dt, 'tz', None) is not None:
        dates = dates.dt.tz_convert(config.timezone).dt.tz_localize(None)
    return dates


def fy_for_date(value: Any) -> Optional[str]:
    """
    Derive the FY label ("YYYY-YY") for a calendar date.

    Examples:
        >>> fy_for_date(date(2025, 3, 31))
        '2024-25'
        >>> fy_for_date(date(2025, 4, 1))
        '2025-26'

    Returns None when the date is absent or invalid; callers treat that as
    "unknown" rather than picking a default.
    """
    d = to_valid_date(value)
    if d is None:
        return None

    if d.month >= FY_START_MONTH:
        start = d.year
    else:
        start = d.year - 1

    return f"{start}-{(start + 1) % 100:02d}"


def parse_fy_label(label: Any) -> Optional[Tuple[int, int, bool]]:
    """
    Parse an FY label.

    Returns:
        Tuple of (start, end, four_digit) or None if the label matches neither
        supported format. For "YYYY-YY" the end is the two-digit suffix.
    """
    if label is None:
        return None

    s = str(label).strip()

    match = _TWO_DIGIT_FY.match(s)
    if match:
        return int(match.group(1)), int(match.group(2)), False

    match = _FOUR_DIGIT_FY.match(s)
    if match:
        return int(match.group(1)), int(match.group(2)), True

    return None


def previous_fy(label: Any) -> str:
    """
    FY label one year earlier, in the same format as the input.

        "2024-25"   -> "2023-24"
        "2024-2025" -> "2023-2024"
        "garbage"   -> ""

    An empty string means "YoY unavailable", not an error.
    """
    parsed = parse_fy_label(label)
    if parsed is None:
        logger.warning(f"Unrecognised FY label, no previous FY: {label!r}")
        return ''

    start, end, four_digit = parsed

    if four_digit:
        return f"{start - 1}-{end - 1}"

    return f"{start - 1}-{(end - 1) % 100:02d}"


def fy_start_year(label: Any) -> Optional[int]:
    """Calendar year in which the FY starts (April 1), or None."""
    parsed = parse_fy_label(label)
    if parsed is None:
        return None
    return parsed[0]
