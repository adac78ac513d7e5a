import json
import logging

import pytest

from auth.login import (
    DASHBOARD,
    DUE_DATES,
    PAYMENTS,
    USERS,
    Role,
    allowed_views,
    authenticate,
    credentials_from_settings,
    default_view,
    resolve_view,
)
from core.logging_setup import setup_logging
from core.settings import Settings, load_settings


# =====================================================
# Login
# =====================================================
def test_default_credentials():
    assert authenticate("admin", "admin") is Role.ADMIN
    assert authenticate(" collector ", "collector") is Role.COLLECTOR


@pytest.mark.parametrize("username, password", [
    ("admin", "wrong"),
    ("", ""),
    (None, None),
    ("Admin", "admin"),
])
def test_bad_credentials(username, password):
    assert authenticate(username, password) is None


def test_credentials_from_settings():
    creds = credentials_from_settings(Settings(admin_user="boss", admin_password="s3cret"))

    assert authenticate("boss", "s3cret", creds) is Role.ADMIN
    assert authenticate("admin", "admin", creds) is None


def test_views_per_role():
    assert allowed_views(Role.ADMIN) == [DASHBOARD, USERS, "plans", PAYMENTS, DUE_DATES]
    assert allowed_views(Role.COLLECTOR) == [PAYMENTS]
    assert default_view(Role.ADMIN) == DASHBOARD
    assert default_view(Role.COLLECTOR) == PAYMENTS


def test_collector_is_kept_on_payments():
    assert resolve_view(Role.COLLECTOR, DASHBOARD) == PAYMENTS
    assert resolve_view(Role.COLLECTOR, None) == PAYMENTS
    assert resolve_view(Role.ADMIN, DUE_DATES) == DUE_DATES


# =====================================================
# Settings
# =====================================================
def test_settings_defaults(monkeypatch):
    for key in ("BACKEND", "APPS_SCRIPT_URL", "SMTP_USER", "REMINDER_WINDOW_DAYS"):
        monkeypatch.delenv(key, raising=False)

    settings = load_settings()

    assert settings.backend == "workbook"
    assert settings.apps_script_url is None
    assert settings.smtp_user is None
    assert settings.reminder_window_days == 3


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("BACKEND", "HTTP")
    monkeypatch.setenv("APPS_SCRIPT_URL", "https://script.example/exec")
    monkeypatch.setenv("HTTP_TIMEOUT", "12.5")
    monkeypatch.setenv("REMINDER_WINDOW_DAYS", "5")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.backend == "http"
    assert settings.apps_script_url == "https://script.example/exec"
    assert settings.http_timeout == 12.5
    assert settings.reminder_window_days == 5
    assert settings.log_level == "DEBUG"


# =====================================================
# Logging
# =====================================================
def test_setup_logging_json():
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level

    try:
        setup_logging("debug", json_output=True)
        setup_logging("debug", json_output=True)

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        record = logging.LogRecord("shim", logging.INFO, __file__, 1, "hello", args=(), exc_info=None)
        payload = json.loads(root.handlers[0].formatter.format(record))
        assert payload == {"lvl": "INFO", "logger": "shim", "msg": "hello"}
    finally:
        root.handlers = original_handlers
        root.setLevel(original_level)
