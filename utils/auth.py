# utils/auth.py
"""
Login and session handling for the Solar Project Dashboards.

Users live in the `users` table with a salted SHA-256 password hash.
Roles: ADMIN, MANAGEMENT, SALES, OPERATIONS, FINANCE (stored upper-case in
the session; the dashboards scope data by role and user id).
"""

import streamlit as st
import hashlib
import secrets
from dataclasses import dataclass, asdict, field
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple
import logging
from .db import execute_query, execute_update
from .config import config

logger = logging.getLogger(__name__)

INVALID_LOGIN = "Invalid username or password"


@dataclass
class SessionUser:
    """Logged-in user as kept in st.session_state."""
    user_id: str
    username: str
    user_email: Optional[str]
    user_role: str
    user_fullname: str
    login_time: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'SessionUser':
        return cls(
            user_id=str(row['id']),
            username=row['username'],
            user_email=row.get('email'),
            user_role=(row.get('role') or '').strip().upper(),
            user_fullname=row.get('name') or row['username'],
        )


SESSION_KEYS = ['authenticated', 'debug_mode'] + list(SessionUser.__dataclass_fields__)


def hash_password(password: str, salt: str = None) -> Tuple[str, str]:
    """SHA-256 of password + salt; a new 32-byte hex salt when none is given."""
    salt = salt or secrets.token_hex(32)
    return hashlib.sha256((password + salt).encode()).hexdigest(), salt


def verify_password(password: str, stored_hash: str, salt: str) -> bool:
    pwd_hash, _ = hash_password(password, salt or '')
    return secrets.compare_digest(pwd_hash, stored_hash or '')


class AuthManager:
    """Authenticate against `users` and keep the result in the Streamlit session."""

    def __init__(self):
        self.session_timeout = timedelta(
            hours=config.get_app_setting("SESSION_TIMEOUT_HOURS", 8)
        )

    def authenticate(self, username: str, password: str) -> Tuple[bool, Any]:
        """
        Check credentials.

        Returns:
            (True, SessionUser) or (False, {"error": message})
        """
        try:
            rows = execute_query("""
                SELECT id, username, name, email, role,
                       password_hash, password_salt, is_active
                FROM users
                WHERE username = :username
            """, {'username': username})
        except Exception as e:
            logger.error(f"Authentication error: {e}")
            return False, {"error": "Authentication failed. Please try again."}

        if not rows:
            logger.warning(f"Login attempt for non-existent user: {username}")
            return False, {"error": INVALID_LOGIN}

        row = rows[0]
        if not row['is_active']:
            logger.warning(f"Login attempt for inactive user: {username}")
            return False, {"error": "Account is inactive. Please contact administrator."}

        if not verify_password(password, row['password_hash'], row['password_salt']):
            logger.warning(f"Invalid password for user: {username}")
            return False, {"error": INVALID_LOGIN}

        try:
            execute_update("UPDATE users SET last_login = NOW() WHERE id = :user_id", {'user_id': row['id']})
        except Exception as e:
            logger.warning(f"Could not update last_login: {e}")

        user = SessionUser.from_row(row)
        logger.info(f"User {username} authenticated ({user.user_role})")
        return True, user

    # ==================== SESSION ====================

    def login(self, user: SessionUser):
        for key, value in asdict(user).items():
            st.session_state[key] = value
        st.session_state.authenticated = True
        st.session_state.debug_mode = config.get_app_setting("ENABLE_DEBUG_MODE", False)
        logger.info(f"User {user.username} ({user.user_role}) logged in")

    def logout(self):
        """Clear the session and cached query results."""
        username = st.session_state.get('username', 'Unknown')
        for key in SESSION_KEYS:
            st.session_state.pop(key, None)
        st.cache_data.clear()
        logger.info(f"User {username} logged out")

    def check_session(self) -> bool:
        """True while logged in; logs out once the session timeout has passed."""
        if not st.session_state.get('authenticated'):
            return False

        login_time = st.session_state.get('login_time')
        if login_time and datetime.now() - login_time > self.session_timeout:
            logger.info(f"Session expired for user: {st.session_state.get('username')}")
            self.logout()
            return False
        return True

    # ==================== CURRENT USER ====================

    def get_user_id(self) -> Optional[str]:
        return st.session_state.get('user_id')

    def get_user_role(self) -> Optional[str]:
        return st.session_state.get('user_role')

    def get_user_display_name(self) -> str:
        return st.session_state.get('user_fullname') or st.session_state.get('username', 'User')

    def is_admin(self) -> bool:
        return self.get_user_role() == 'ADMIN'


__all__ = [
    'AuthManager',
    'SessionUser',
    'hash_password',
    'verify_password',
]
