# utils/config.py
"""
Settings for the Solar Project Dashboards.

Two sources, picked once at startup:
- Streamlit Cloud: st.secrets, with [DB_CONFIG] and [APP] tables
- Local: environment variables, seeded from a .env file if present

Database settings are only checked when the engine is first created, so the
FY / classification / SLA modules import without a database.
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import Any, Callable, Dict, Mapping, Tuple
from dataclasses import dataclass, asdict

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = "solar_epc"
DEFAULT_TIMEZONE = "Asia/Kolkata"


def _as_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


# key -> (default, parser)
APP_SETTINGS: Dict[str, Tuple[Any, Callable[[Any], Any]]] = {
    "SESSION_TIMEOUT_HOURS": (8, int),
    "DB_POOL_SIZE": (5, int),
    "DB_POOL_RECYCLE": (3600, int),
    "CACHE_TTL_SECONDS": (300, int),
    "TIMEZONE": (DEFAULT_TIMEZONE, str),
    "ENABLE_SLA_SWEEP": (True, lambda v: _as_bool(v, True)),
    "ENABLE_DEBUG_MODE": (False, _as_bool),
}


def _cloud_secrets():
    """st.secrets when running on Streamlit Cloud, else None."""
    try:
        import streamlit as st
        if hasattr(st, 'secrets') and len(st.secrets) > 0:
            return st.secrets
    except Exception:
        # no secrets.toml outside Streamlit Cloud
        return None
    return None


@dataclass
class DatabaseConfig:
    """MySQL connection settings for the projects database."""
    host: str
    port: int
    user: str
    password: str
    database: str = DEFAULT_DATABASE

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def is_configured(self) -> bool:
        return bool(self.host and self.user and self.password)

    @classmethod
    def from_secrets(cls, section: Mapping) -> 'DatabaseConfig':
        return cls(
            host=section.get("host", ""),
            port=int(section.get("port", 3306)),
            user=section.get("user", ""),
            password=section.get("password", ""),
            database=section.get("database", DEFAULT_DATABASE),
        )

    @classmethod
    def from_env(cls, env: Mapping) -> 'DatabaseConfig':
        return cls(
            host=env.get("DB_HOST", ""),
            port=int(env.get("DB_PORT", "3306")),
            user=env.get("DB_USER", ""),
            password=env.get("DB_PASSWORD", ""),
            database=env.get("DB_NAME", env.get("DB_DATABASE", DEFAULT_DATABASE)),
        )


class Config:
    """
    Process-wide settings (singleton).

    Usage:
        from utils.config import config

        ttl = config.get_app_setting("CACHE_TTL_SECONDS", 300)
        if config.is_feature_enabled("SLA_SWEEP"):
            ...
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        secrets = _cloud_secrets()
        self.is_cloud = secrets is not None
        if self.is_cloud:
            self._db_config = DatabaseConfig.from_secrets(secrets.get("DB_CONFIG", {}))
            app_settings = dict(secrets.get("APP", {}))
            logger.info("☁️ Settings from Streamlit secrets")
        else:
            self._load_dotenv()
            self._db_config = DatabaseConfig.from_env(os.environ)
            app_settings = os.environ
            logger.info("💻 Settings from environment")

        self._app_config = self._parse_app_settings(app_settings)
        self._initialized = True

        if self._db_config.is_configured():
            logger.info(f"✅ Database: {self._db_config.host}/{self._db_config.database}")
        else:
            logger.warning("⚠️ Database: not configured")

    @staticmethod
    def _load_dotenv():
        for env_path in (Path.cwd() / ".env", Path(__file__).parent.parent / ".env"):
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded .env from: {env_path}")
                return

    @staticmethod
    def _parse_app_settings(settings: Mapping) -> Dict[str, Any]:
        parsed = {}
        for key, (default, parse) in APP_SETTINGS.items():
            raw = settings.get(key)
            if raw is None or raw == "":
                parsed[key] = default
                continue
            try:
                parsed[key] = parse(raw)
            except (TypeError, ValueError):
                logger.warning(f"Invalid {key}={raw!r}, using default {default!r}")
                parsed[key] = default
        return parsed

    # ==================== GETTERS ====================

    def get_db_config(self) -> Dict[str, Any]:
        return self._db_config.to_dict()

    def validate_db_config(self) -> Dict[str, Any]:
        """
        Database settings, checked for required values.

        Raises:
            ValueError: host, user or password missing
        """
        if not self._db_config.is_configured():
            logger.error("Missing required database configuration")
            raise ValueError("Missing required database configuration. Please check .env file.")
        return self.get_db_config()

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        return self._app_config.get(key, default)

    def is_feature_enabled(self, feature: str) -> bool:
        return self._app_config.get(f"ENABLE_{feature.upper()}", True)

    @property
    def timezone(self) -> str:
        """IANA zone for calendar dates and SLA clocks."""
        return self._app_config.get("TIMEZONE") or DEFAULT_TIMEZONE


config = Config()

__all__ = [
    'config',
    'Config',
    'DatabaseConfig',
    'APP_SETTINGS',
]
