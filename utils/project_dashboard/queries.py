# utils/project_dashboard/queries.py
"""
SQL Queries and Data Loading for the Project Dashboards

Handles all database interactions:
- Project rows for a composed Predicate (projects + customer + salesperson)
- Available fiscal years for the filter sidebar
- SLA sweep reads / write-back of changed status indicators
- Stage transitions with audit log

All reads take a Predicate already scoped by AccessControl.
Uses @st.cache_data for the dashboard read path.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List

import pandas as pd
import streamlit as st
from sqlalchemy import text

from utils.db import execute_many, get_db_engine, get_transaction
from .constants import CACHE_TTL_SECONDS
from .fiscal_year import fy_start_year
from .predicates import Predicate
from .sla import stage_transition

logger = logging.getLogger(__name__)

PROJECT_COLUMNS_SQL = """
    SELECT
        p.id,
        p.customer_id,
        c.customer_name,
        p.salesperson_id,
        u.name AS salesperson_name,
        p.assigned_ops_id,
        p.project_status AS status,
        p.project_stage AS stage,
        p.fiscal_year,
        p.confirmation_date,
        p.created_at,
        p.order_value,
        p.gross_profit,
        p.system_capacity_kw,
        p.lead_source,
        p.stage_entered_at,
        p.sla_budget_days,
        p.status_indicator
    FROM projects p
    LEFT JOIN customers c ON p.customer_id = c.id
    LEFT JOIN users u ON p.salesperson_id = u.id
"""

# Predicate fields -> SQL columns of the query above
FIELD_COLUMNS = {
    'status': 'p.project_status',
    'stage': 'p.project_stage',
    'fiscal_year': 'p.fiscal_year',
    'confirmation_date': 'p.confirmation_date',
    'order_value': 'p.order_value',
    'gross_profit': 'p.gross_profit',
    'system_capacity_kw': 'p.system_capacity_kw',
    'salesperson_id': 'p.salesperson_id',
    'assigned_ops_id': 'p.assigned_ops_id',
    'stage_entered_at': 'p.stage_entered_at',
    'sla_budget_days': 'p.sla_budget_days',
    'status_indicator': 'p.status_indicator',
}


def _qualify(predicate: Predicate) -> Predicate:
    """Rewrite clause fields to qualified SQL column names."""
    clauses = []
    for clause in predicate.clauses:
        column = FIELD_COLUMNS.get(clause.field)
        if column is None:
            raise ValueError(f"Field not queryable: {clause.field}")
        clauses.append(replace(clause, field=column))
    return Predicate(tuple(clauses))


def build_projects_query(predicate: Predicate):
    """
    SQL and params for a project listing.

    Returns:
        Tuple of (sql, params)
    """
    where_sql, params = _qualify(predicate).to_sql()
    sql = f"{PROJECT_COLUMNS_SQL} WHERE {where_sql} ORDER BY p.confirmation_date DESC"
    return sql, params


class ProjectQueries:
    """
    Data loading class for the project dashboards.

    Usage:
        access = AccessControl(user_role, user_id)
        queries = ProjectQueries()

        base = access.base_predicate('sales')
        projects_df = queries.get_projects(compose_filter(base, fys, months, quarters))
    """

    def __init__(self, use_cache: bool = True):
        """
        Args:
            use_cache: serve get_projects() through st.cache_data
        """
        self.use_cache = use_cache
        self._engine = None

    @property
    def engine(self):
        """Lazy load database engine."""
        if self._engine is None:
            self._engine = get_db_engine()
        return self._engine

    # =========================================================================
    # PROJECTS
    # =========================================================================

    def get_projects(self, predicate: Predicate) -> pd.DataFrame:
        """
        Load project rows matching a predicate.

        Args:
            predicate: composed dashboard predicate

        Returns:
            DataFrame with one row per project
        """
        sql, params = build_projects_query(predicate)

        if self.use_cache:
            return _get_projects_cached(sql, tuple(sorted(params.items())))

        return self._execute_query(sql, params, "projects")

    def get_available_fiscal_years(self) -> List[str]:
        """FY labels present in the data, newest first."""
        query = """
            SELECT DISTINCT fiscal_year
            FROM projects
            WHERE fiscal_year IS NOT NULL AND fiscal_year <> ''
        """
        df = self._execute_query(query, {}, "available_fiscal_years")
        if df.empty:
            return []

        labels = df['fiscal_year'].astype(str).str.strip().tolist()
        return sorted(labels, key=lambda fy: (fy_start_year(fy) or 0, fy), reverse=True)

    # =========================================================================
    # SLA
    # =========================================================================

    def get_sla_tracked_projects(self) -> pd.DataFrame:
        """Projects with a stage, an entry timestamp and an SLA budget."""
        query = """
            SELECT id, project_stage AS stage, stage_entered_at,
                   sla_budget_days, status_indicator
            FROM projects
            WHERE project_stage IS NOT NULL
              AND stage_entered_at IS NOT NULL
              AND sla_budget_days IS NOT NULL
        """
        return self._execute_query(query, {}, "sla_tracked_projects")

    def save_status_indicators(self, changes: pd.DataFrame) -> int:
        """
        Write back recomputed indicators.

        Args:
            changes: DataFrame with id and status_indicator columns

        Returns:
            Number of rows updated
        """
        if changes.empty:
            return 0

        query = """
            UPDATE projects
            SET status_indicator = :status_indicator
            WHERE id = :id
        """
        total = execute_many(query, changes[['id', 'status_indicator']].to_dict('records'))

        logger.info(f"Saved {total} status indicators")
        return total

    def update_project_stage(
        self,
        project_id: Any,
        new_stage: Any,
        user_id: Any,
        now: datetime = None
    ) -> Dict:
        """
        Move a project to a new stage and restart its SLA clock.

        Raises:
            ValueError: project not found or unknown stage
        """
        fields = stage_transition(new_stage, now)

        with get_transaction() as conn:
            current = conn.execute(
                text("SELECT project_stage FROM projects WHERE id = :id"),
                {'id': project_id}
            ).fetchone()

            if current is None:
                raise ValueError(f"Project not found: {project_id}")

            conn.execute(text("""
                UPDATE projects
                SET project_stage = :stage,
                    stage_entered_at = :stage_entered_at,
                    sla_budget_days = :sla_budget_days,
                    status_indicator = :status_indicator
                WHERE id = :id
            """), {**fields, 'id': project_id})

            conn.execute(text("""
                INSERT INTO audit_logs
                    (project_id, user_id, action, field, old_value, new_value, remarks, created_at)
                VALUES
                    (:project_id, :user_id, 'stage_changed', 'project_stage',
                     :old_value, :new_value, :remarks, :created_at)
            """), {
                'project_id': project_id,
                'user_id': user_id,
                'old_value': current[0] or '',
                'new_value': fields['stage'],
                'remarks': f"Stage changed to {fields['stage']}",
                'created_at': fields['stage_entered_at'],
            })

        logger.info(f"Project {project_id} moved to stage {fields['stage']}")
        return fields

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _execute_query(
        self,
        query: str,
        params: dict,
        query_name: str = "query"
    ) -> pd.DataFrame:
        """
        Execute SQL query and return DataFrame.

        Args:
            query: SQL query string
            params: Query parameters
            query_name: Name for logging

        Returns:
            DataFrame with results (empty on error)
        """
        try:
            logger.debug(f"Executing {query_name}")
            df = pd.read_sql(text(query), self.engine, params=params)
            logger.debug(f"{query_name} returned {len(df)} rows")
            return df
        except Exception as e:
            logger.error(f"Error executing {query_name}: {e}")
            return pd.DataFrame()


# =============================================================================
# CACHED QUERY FUNCTIONS (Module-level for st.cache_data)
# =============================================================================

@st.cache_data(ttl=CACHE_TTL_SECONDS)
def _get_projects_cached(sql: str, params_items: tuple) -> pd.DataFrame:
    """
    Cached project listing.
    Note: params passed as a sorted tuple of items for cache key stability.
    """
    try:
        return pd.read_sql(text(sql), get_db_engine(), params=dict(params_items))
    except Exception as e:
        logger.error(f"Error executing cached projects query: {e}")
        return pd.DataFrame()
