"""Shared fixtures: settings tuned so no test waits on real delays."""

from __future__ import annotations

import pytest

from backend.config import Settings


@pytest.fixture()
def fast_settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Settings with zero back-off / settle time and no proxy."""
    monkeypatch.delenv("VERCEL_ENV", raising=False)
    return Settings(
        request_timeout=5.0,
        max_retries=3,
        retry_base_delay=0.0,
        use_headless=True,
        browser_engines=["chromium", "firefox"],
        headless_env="local",
        browser_navigation_timeout=5.0,
        browser_session_timeout=5.0,
        browser_settle_min=0.0,
        browser_settle_max=0.0,
        acquire_timeout=30.0,
        proxy_server=None,
        proxy_username=None,
        proxy_password=None,
    )
