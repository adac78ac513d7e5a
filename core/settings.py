# core/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Optional

import streamlit as st


# =====================================================
# Lookup: st.secrets -> environment -> default
# =====================================================
def get_setting(key: str, default: Any = None) -> Any:
    """
    Reads a setting from Streamlit secrets, then the environment.
    A missing secrets.toml is not an error: local runs and tests rely on env.
    """
    try:
        if key in st.secrets:
            return st.secrets[key]
    except (FileNotFoundError, KeyError):
        pass

    return os.environ.get(key, default)


@dataclass(frozen=True)
class Settings:
    backend: str = "workbook"                  # workbook | memory | http
    workbook_path: str = "data/wifinet.xlsx"
    apps_script_url: Optional[str] = None
    http_timeout: float = 30.0
    timezone: str = "Asia/Manila"

    company_name: str = "WiFiNet"
    currency: str = "₱"
    reminder_window_days: int = 3

    admin_user: str = "admin"
    admin_password: str = "admin"
    collector_user: str = "collector"
    collector_password: str = "collector"

    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None

    log_level: str = "INFO"


def load_settings() -> Settings:
    d = Settings()

    return Settings(
        backend=str(get_setting("BACKEND", d.backend)).lower(),
        workbook_path=str(get_setting("WORKBOOK_PATH", d.workbook_path)),
        apps_script_url=get_setting("APPS_SCRIPT_URL") or None,
        http_timeout=float(get_setting("HTTP_TIMEOUT", d.http_timeout)),
        timezone=str(get_setting("TIMEZONE", d.timezone)),
        company_name=str(get_setting("COMPANY_NAME", d.company_name)),
        currency=str(get_setting("CURRENCY", d.currency)),
        reminder_window_days=int(get_setting("REMINDER_WINDOW_DAYS", d.reminder_window_days)),
        admin_user=str(get_setting("ADMIN_USER", d.admin_user)),
        admin_password=str(get_setting("ADMIN_PASSWORD", d.admin_password)),
        collector_user=str(get_setting("COLLECTOR_USER", d.collector_user)),
        collector_password=str(get_setting("COLLECTOR_PASSWORD", d.collector_password)),
        smtp_user=get_setting("SMTP_USER") or None,
        smtp_password=get_setting("SMTP_APP_PASSWORD") or None,
        log_level=str(get_setting("LOG_LEVEL", d.log_level)).upper(),
    )
