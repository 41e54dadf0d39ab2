# utils/project_dashboard/access_control.py
"""
Role-based Access Control for the Project Dashboards

Maps the logged-in user to the base predicate every dashboard query starts
from:
- ADMIN / MANAGEMENT / FINANCE: all projects
- SALES on the sales dashboard: own projects (salesperson_id)
- OPERATIONS on the operations dashboard: assigned projects (assigned_ops_id)

The base predicate is then narrowed by FY / month / quarter filters and the
Revenue / Pipeline classifiers; it is never mutated.
"""

import logging
from typing import List, Optional

from .constants import (
    DASHBOARD_ROLES,
    FULL_ACCESS_ROLES,
    ROLE_SCOPE_COLUMNS,
)
from .predicates import Equals, In, Predicate

logger = logging.getLogger(__name__)


class AccessControl:
    """
    Manage data access based on user role.

    Usage:
        access = AccessControl(
            user_role=st.session_state.user_role,
            user_id=st.session_state.user_id
        )

        dashboards = access.available_dashboards()
        base = access.base_predicate('sales')
    """

    def __init__(self, user_role: str, user_id: Optional[str]):
        """
        Initialize access control.

        Args:
            user_role: User's role from session (e.g. 'ADMIN', 'SALES')
            user_id: User's id from session
        """
        self.user_role = user_role.upper() if user_role else ''
        self.user_id = user_id

        logger.info(f"AccessControl initialized: role={self.user_role}, user_id={self.user_id}")

    # =========================================================================
    # ACCESS LEVEL DETERMINATION
    # =========================================================================

    def get_access_level(self, dashboard: str = 'sales') -> str:
        """
        Determine access level for a dashboard.

        Returns:
            'full' - all projects
            'self' - projects scoped to the user
            'none' - dashboard not available to the role
        """
        if not self.can_view_dashboard(dashboard):
            return 'none'
        if (dashboard, self.user_role) in ROLE_SCOPE_COLUMNS:
            return 'self'
        return 'full'

    def can_view_all(self) -> bool:
        """Check if user has full access to all projects."""
        return self.user_role in FULL_ACCESS_ROLES

    def can_view_dashboard(self, dashboard: str) -> bool:
        return self.user_role in DASHBOARD_ROLES.get(dashboard, [])

    def available_dashboards(self) -> List[str]:
        return [name for name in DASHBOARD_ROLES if self.can_view_dashboard(name)]

    # =========================================================================
    # BASE PREDICATE
    # =========================================================================

    def base_predicate(self, dashboard: str = 'sales') -> Predicate:
        """
        Role-scoped starting predicate for a dashboard.

        A restricted role without a user id gets a predicate that matches
        nothing rather than everything.
        """
        column = ROLE_SCOPE_COLUMNS.get((dashboard, self.user_role))
        if column is None:
            return Predicate()

        if not self.user_id:
            logger.warning(f"No user_id for scoped role {self.user_role}, returning empty scope")
            return Predicate().and_(In(column, ()))

        return Predicate().and_(Equals(column, self.user_id))
