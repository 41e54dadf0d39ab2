# utils/db.py
"""
MySQL access for the Solar Project Dashboards.

- One pooled SQLAlchemy engine per process, created on first use
- Health check and pool statistics for the login page / admin panel
- Small helpers used by auth and the project queries:
  execute_query, execute_update, execute_many, get_transaction
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote_plus

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import QueuePool

from .config import config

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_engine_lock = threading.Lock()


def build_db_url(db_config: Dict[str, Any], mask_password: bool = False) -> str:
    """mysql+pymysql URL for a DatabaseConfig dict."""
    password = "***" if mask_password else quote_plus(str(db_config["password"]))
    return (
        f"mysql+pymysql://{db_config['user']}:{password}"
        f"@{db_config['host']}:{db_config['port']}/{db_config['database']}"
    )


def get_db_engine() -> Engine:
    """
    Shared engine, created on first call.

    Raises:
        ValueError: database settings missing
    """
    global _engine

    if _engine is None:
        with _engine_lock:
            if _engine is None:
                db_config = config.validate_db_config()
                pool_size = config.get_app_setting("DB_POOL_SIZE", 5)
                pool_recycle = config.get_app_setting("DB_POOL_RECYCLE", 3600)

                logger.info(f"🔌 Connecting to {build_db_url(db_config, mask_password=True)}")
                _engine = create_engine(
                    build_db_url(db_config),
                    poolclass=QueuePool,
                    pool_size=pool_size,
                    max_overflow=10,
                    pool_timeout=30,
                    pool_recycle=pool_recycle,
                    pool_pre_ping=True,
                    echo=config.get_app_setting("ENABLE_DEBUG_MODE", False),
                )
                logger.info(f"✅ Engine ready (pool_size={pool_size}, recycle={pool_recycle}s)")

    return _engine


def check_db_connection() -> Tuple[bool, Optional[str]]:
    """
    Run SELECT 1 against the projects database.

    Returns:
        Tuple of (is_connected, message shown to the user or None)
    """
    try:
        with get_db_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True, None
    except ValueError as e:
        logger.error(f"❌ Database not configured: {e}")
        return False, str(e)
    except OperationalError as e:
        logger.error(f"❌ Database connection failed: {e}")
        return False, "Cannot connect to database. Please check your network/VPN connection."
    except Exception as e:
        logger.error(f"❌ Database error: {e}")
        return False, f"Database error: {str(e)}"


def get_connection_pool_status() -> Dict[str, Any]:
    """Pool counters for the admin panel; does not create the engine."""
    if _engine is None:
        return {"status": "not_initialized"}

    pool = _engine.pool
    return {
        "status": "active",
        "pool_size": pool.size(),
        "checked_in": pool.checkedin(),
        "checked_out": pool.checkedout(),
        "overflow": pool.overflow(),
    }


@contextmanager
def get_transaction():
    """
    Connection with an open transaction: commit on success, rollback on error.

    Usage:
        with get_transaction() as conn:
            conn.execute(text("UPDATE projects ..."), params)
            conn.execute(text("INSERT INTO audit_logs ..."), params)
    """
    with get_db_engine().begin() as conn:
        yield conn


def execute_query(query: str, params: Dict = None) -> List[Dict]:
    """SELECT -> list of row dicts."""
    with get_db_engine().connect() as conn:
        result = conn.execute(text(query), params or {})
        return [dict(row._mapping) for row in result]


def execute_update(query: str, params: Dict = None) -> int:
    """Single INSERT / UPDATE / DELETE in its own transaction; affected rows."""
    with get_transaction() as conn:
        return conn.execute(text(query), params or {}).rowcount


def execute_many(query: str, params_list: List[Dict]) -> int:
    """One statement per parameter set, all in one transaction; total affected rows."""
    total_rows = 0
    with get_transaction() as conn:
        for params in params_list:
            total_rows += conn.execute(text(query), params).rowcount
    return total_rows


__all__ = [
    'get_db_engine',
    'build_db_url',
    'check_db_connection',
    'get_connection_pool_status',
    'get_transaction',
    'execute_query',
    'execute_update',
    'execute_many',
]
