# app.py
"""
Solar Project Dashboards - Main Entry Point

Version: 2.0.0
"""

import streamlit as st
from utils.auth import AuthManager
from utils.config import config
from utils.db import check_db_connection
from utils.project_dashboard import AccessControl, ProjectQueries, run_sla_sweep
import logging

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.get_app_setting("ENABLE_DEBUG_MODE", False) else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ==================== PAGE CONFIGURATION ====================

APP_NAME = "Solar Project Dashboards"
APP_ICON = "☀️"
APP_VERSION = "2.0.0"

DASHBOARD_DESCRIPTIONS = {
    'sales': ("💼 Sales", "Revenue, pipeline and lead sources for your projects."),
    'operations': ("🛠️ Operations", "Installation progress and stage SLA status of assigned projects."),
    'finance': ("💰 Finance", "Project value, profit and capacity by financial year."),
    'management': ("📈 Management", "Company-wide KPIs with year-over-year comparison."),
}

st.set_page_config(
    page_title=APP_NAME,
    page_icon=APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

# ==================== CUSTOM CSS ====================

st.markdown("""
<style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        margin-bottom: 0.5rem;
        color: #FFA500;
    }

    .sub-header {
        font-size: 1.1rem;
        color: #666;
        margin-bottom: 2rem;
    }

    .info-card {
        background: #f8f9fa;
        padding: 1.25rem;
        border-radius: 0.5rem;
        border-left: 4px solid #FFA500;
        margin-bottom: 1rem;
    }

    .footer {
        text-align: center;
        color: #888;
        padding: 1rem;
        margin-top: 3rem;
        border-top: 1px solid #eee;
        font-size: 0.9rem;
    }
</style>
""", unsafe_allow_html=True)

# ==================== INITIALIZATION ====================

auth = AuthManager()

# ==================== HELPER FUNCTIONS ====================

def show_login_page():
    """Display the login page"""
    st.markdown(f'<p class="main-header">{APP_ICON} {APP_NAME}</p>', unsafe_allow_html=True)
    st.markdown('<p class="sub-header">Solar EPC project pipeline, revenue and SLA tracking</p>', unsafe_allow_html=True)

    db_ok, db_error = check_db_connection()
    if not db_ok:
        st.error(f"⚠️ {db_error}")
        st.info("Please check your network connection or contact IT support.")
        return

    col1, col2, col3 = st.columns([1, 2, 1])

    with col2:
        with st.form("login_form", clear_on_submit=False):
            st.markdown("#### 🔐 Login")

            username = st.text_input("Username", placeholder="Enter your username", key="login_username")
            password = st.text_input("Password", type="password", placeholder="Enter your password", key="login_password")

            submit = st.form_submit_button("🔑 Login", type="primary", use_container_width=True)

            if submit:
                if not username or not password:
                    st.warning("Please enter both username and password")
                else:
                    with st.spinner("Authenticating..."):
                        success, result = auth.authenticate(username, password)

                    if success:
                        auth.login(result)
                        st.success("✅ Login successful!")
                        st.rerun()
                    else:
                        st.error(result.get("error", "Authentication failed"))


def show_admin_panel():
    """Pool status and manual SLA sweep."""
    from utils.db import get_connection_pool_status

    with st.expander("🔧 System Status (Admin Only)"):
        pool_status = get_connection_pool_status()

        col1, col2, col3 = st.columns(3)
        with col1:
            st.metric("DB Status", pool_status.get("status", "OK"))
        with col2:
            st.metric("Connections Used", pool_status.get("checked_out", 0))
        with col3:
            st.metric("Available", pool_status.get("checked_in", 0))

        if config.is_feature_enabled("SLA_SWEEP"):
            st.markdown("---")
            st.caption("Recompute stage SLA indicators for every in-flight project")
            if st.button("🚦 Run SLA sweep"):
                try:
                    updated = run_sla_sweep(ProjectQueries(use_cache=False))
                    st.success(f"SLA sweep complete: {updated} projects updated")
                    st.cache_data.clear()
                except Exception as e:
                    logger.error(f"SLA sweep failed: {e}")
                    st.error(f"SLA sweep failed: {e}")


def show_main_app():
    """Display the main application after login"""
    access = AccessControl(auth.get_user_role(), auth.get_user_id())

    with st.sidebar:
        st.markdown(f"### 👤 {auth.get_user_display_name()}")

        if access.can_view_all():
            st.success("🔓 Full Access")
        else:
            st.warning("👤 Personal Access")

        st.caption(f"Role: {access.user_role}")
        st.markdown("---")

        if st.button("🚪 Logout", use_container_width=True):
            auth.logout()
            st.rerun()

    st.markdown(f"## Welcome, {auth.get_user_display_name()}! 👋")
    st.caption("Open the Project Dashboard page from the sidebar menu.")

    st.markdown("### 📊 Available Dashboards")

    dashboards = access.available_dashboards()
    if not dashboards:
        st.info("No dashboards are available for your role.")

    for name in dashboards:
        title, description = DASHBOARD_DESCRIPTIONS[name]
        scope = "your projects" if access.get_access_level(name) == 'self' else "all projects"
        st.markdown(f"""
        <div class="info-card">
            <strong>{title}</strong> <span style="color: #999;">({scope})</span><br>
            <span style="color: #666;">{description}</span>
        </div>
        """, unsafe_allow_html=True)

    if auth.is_admin():
        st.markdown("---")
        show_admin_panel()

    st.markdown(f"""
    <div class="footer">
        <strong>{APP_NAME}</strong> v{APP_VERSION}
    </div>
    """, unsafe_allow_html=True)


# ==================== MAIN ====================

def main():
    """Main application entry point"""
    if not auth.check_session():
        show_login_page()
    else:
        show_main_app()


if __name__ == "__main__":
    main()
