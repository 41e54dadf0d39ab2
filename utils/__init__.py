# utils/__init__.py
"""
Shared utilities for the Solar Project Dashboards.

- auth: login and session handling
- config: settings from .env or Streamlit secrets
- db: pooled MySQL engine and query helpers
- project_dashboard: FY / classification / SLA engine and dashboards

Pages import from the submodules directly:
    from utils.auth import AuthManager
    from utils.db import check_db_connection
    from utils.config import config
"""

__version__ = '2.0.0'
