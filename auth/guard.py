import logging

import streamlit as st

from auth.login import Role, authenticate, credentials_from_settings

logger = logging.getLogger(__name__)


# =====================================================
# 1️⃣ Current role from the session
# =====================================================
def get_current_role():
    role = st.session_state.get("role")
    return Role(role) if role else None


# =====================================================
# 2️⃣ Login form
# =====================================================
def login_ui(settings) -> None:
    st.title(f"📶 {settings.company_name}")
    st.markdown("### Dashboard Login")

    with st.form("login_form"):
        username = st.text_input("Username", placeholder="admin / collector")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in")

    if submitted:
        role = authenticate(username, password, credentials_from_settings(settings))
        if role is None:
            st.error("Invalid username or password.")
            return

        logger.info("Login as %s", role.value)
        st.session_state["role"] = role.value
        st.rerun()


# =====================================================
# 3️⃣ Require login
# =====================================================
def require_login(settings) -> Role:
    role = get_current_role()

    if role is None:
        login_ui(settings)
        st.stop()

    return role


def logout() -> None:
    for key in ("role", "cache", "view"):
        st.session_state.pop(key, None)
