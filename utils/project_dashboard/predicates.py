# utils/project_dashboard/predicates.py
"""
Immutable "where" descriptions for project queries.

A Predicate is a conjunction of clauses. Builders never mutate a predicate;
`and_()` returns a new one, so a role-scoped base predicate can be shared by
every derived Revenue / Pipeline / YoY predicate.

Each clause evaluates two ways with the same semantics:
- mask(df):  boolean Series over a project DataFrame
- to_sql():  parameterised SQL fragment for sqlalchemy.text()

Usage:
    base = Predicate().and_(Equals('salesperson_id', user_id))
    fy = base.and_(In('fiscal_year', ['2024-25']))

    df = fy.apply(projects_df)
    where_sql, params = fy.to_sql()
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, Tuple

import pandas as pd

from .fiscal_year import to_local_series

logger = logging.getLogger(__name__)


def _plain(value: Any) -> Any:
    """Enum members -> their stored value."""
    return value.value if isinstance(value, Enum) else value


def normalize_code(value: Any) -> Any:
    """Enum member or raw string -> trimmed upper-case code; blank or missing -> None."""
    value = _plain(value)
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    code = str(value).strip().upper()
    return code or None


def _column(df: pd.DataFrame, field: str, normalize: bool = False) -> pd.Series:
    if field not in df.columns:
        logger.warning(f"Column '{field}' not found in DataFrame, treating as NULL")
        return pd.Series([None] * len(df), index=df.index, dtype=object)
    if normalize:
        return df[field].map(normalize_code)
    return df[field]


def _sql_column(field: str, normalize: bool) -> str:
    return f"NULLIF(UPPER(TRIM({field})), '')" if normalize else field


def _clause_values(values, normalize: bool) -> tuple:
    if normalize:
        return tuple(normalize_code(v) for v in values)
    return tuple(_plain(v) for v in values)


# =============================================================================
# CLAUSES
# =============================================================================

@dataclass(frozen=True)
class Equals:
    field: str
    value: Any

    def mask(self, df: pd.DataFrame) -> pd.Series:
        col = _column(df, self.field)
        return col.notna() & (col == _plain(self.value))

    def to_sql(self, key: str) -> Tuple[str, Dict[str, Any]]:
        return f"{self.field} = :{key}", {key: _plain(self.value)}


@dataclass(frozen=True)
class In:
    """
    Membership test.

    normalize=True compares trimmed upper-case codes, with blank as NULL,
    so 'confirmed ' matches CONFIRMED in both mask() and to_sql().
    """
    field: str
    values: Tuple[Any, ...]
    normalize: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'values', _clause_values(self.values, self.normalize))

    def mask(self, df: pd.DataFrame) -> pd.Series:
        return _column(df, self.field, self.normalize).isin(self.values)

    def to_sql(self, key: str) -> Tuple[str, Dict[str, Any]]:
        if not self.values:
            return "1 = 0", {}
        return f"{_sql_column(self.field, self.normalize)} IN :{key}", {key: self.values}


@dataclass(frozen=True)
class NotIn:
    """
    Exclusion with explicit NULL handling.

    keep_null=True:  NULL rows pass (absence means "nothing to exclude")
    keep_null=False: NULL rows fail
    normalize:       as for In
    """
    field: str
    values: Tuple[Any, ...]
    keep_null: bool = False
    normalize: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'values', _clause_values(self.values, self.normalize))

    def mask(self, df: pd.DataFrame) -> pd.Series:
        col = _column(df, self.field, self.normalize)
        # isin() is False for NULL, so NULL rows count as "outside"
        outside = ~col.isin(self.values)
        if self.keep_null:
            return outside
        return col.notna() & outside

    def to_sql(self, key: str) -> Tuple[str, Dict[str, Any]]:
        column = _sql_column(self.field, self.normalize)
        if not self.values:
            sql = "1 = 1" if self.keep_null else f"{column} IS NOT NULL"
            return sql, {}
        sql = f"{column} NOT IN :{key}"
        if self.keep_null:
            sql = f"({column} IS NULL OR {sql})"
        return sql, {key: self.values}


@dataclass(frozen=True)
class NotNull:
    field: str

    def mask(self, df: pd.DataFrame) -> pd.Series:
        return _column(df, self.field).notna()

    def to_sql(self, key: str) -> Tuple[str, Dict[str, Any]]:
        return f"{self.field} IS NOT NULL", {}


@dataclass(frozen=True)
class AnyDateWindow:
    """
    Field falls inside any of the half-open [start, end) windows.

    Windows are local calendar dates: aware timestamps are compared in the
    configured TIMEZONE. Unparseable or missing dates match no window.
    """
    field: str
    windows: Tuple[Tuple[date, date], ...]

    def __post_init__(self):
        object.__setattr__(self, 'windows', tuple(tuple(w) for w in self.windows))

    def mask(self, df: pd.DataFrame) -> pd.Series:
        dates = to_local_series(_column(df, self.field))

        result = pd.Series(False, index=df.index)
        for start, end in self.windows:
            result |= (dates >= pd.Timestamp(start)) & (dates < pd.Timestamp(end))
        return result

    def to_sql(self, key: str) -> Tuple[str, Dict[str, Any]]:
        if not self.windows:
            return "1 = 0", {}

        parts = []
        params = {}
        for idx, (start, end) in enumerate(self.windows):
            start_key = f"{key}_{idx}_start"
            end_key = f"{key}_{idx}_end"
            parts.append(f"({self.field} >= :{start_key} AND {self.field} < :{end_key})")
            params[start_key] = start
            params[end_key] = end
        return "(" + " OR ".join(parts) + ")", params


# =============================================================================
# PREDICATE
# =============================================================================

@dataclass(frozen=True)
class Predicate:
    """Conjunction of clauses. An empty predicate matches every row."""
    clauses: Tuple[Any, ...] = ()

    def and_(self, *clauses) -> 'Predicate':
        """Return a new predicate with extra clauses ANDed in."""
        return Predicate(self.clauses + tuple(c for c in clauses if c is not None))

    def mask(self, df: pd.DataFrame) -> pd.Series:
        result = pd.Series(True, index=df.index)
        for clause in self.clauses:
            result &= clause.mask(df)
        return result

    def apply(self, df: pd.DataFrame) -> pd.DataFrame:
        """Rows of df matching every clause."""
        if df.empty or not self.clauses:
            return df
        return df[self.mask(df)]

    def to_sql(self) -> Tuple[str, Dict[str, Any]]:
        """
        Render as a WHERE body.

        Returns:
            Tuple of (sql, params); "1 = 1" for an empty predicate
        """
        if not self.clauses:
            return "1 = 1", {}

        parts = []
        params = {}
        for idx, clause in enumerate(self.clauses):
            sql, clause_params = clause.to_sql(f"p{idx}")
            parts.append(sql)
            params.update(clause_params)
        return " AND ".join(parts), params

    def has_field(self, field: str) -> bool:
        return any(getattr(c, 'field', None) == field for c in self.clauses)
