"""Tests for the headless browser fetcher.

Playwright is never launched: ``backend.scraper.browser.async_playwright`` is
replaced by a factory returning fake driver / browser / context / page objects
built from ``MagicMock`` and ``AsyncMock``.  Every test that gets past launch
checks that ``browser.close`` was awaited.
"""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from backend.config import Settings
from backend.scraper.browser import (
    SANDBOX_ARGS,
    ChromiumEngine,
    FirefoxEngine,
    fetch_rendered,
    get_engine,
)
from backend.scraper.models import FetchNetworkError, FetchSuccess

_URL = "https://example.com/"
_HTML = "<html><head><title>Rendered</title></head><body><p>Hello</p></body></html>"


def _fake_driver(goto: Any = None, status: int = 200) -> SimpleNamespace:
    """Build a fake Playwright driver; returns handles to the interesting parts."""
    page = MagicMock()
    page.goto = goto or AsyncMock(return_value=SimpleNamespace(status=status))
    page.content = AsyncMock(return_value=_HTML)
    page.mouse.move = AsyncMock()
    page.mouse.wheel = AsyncMock()

    context = MagicMock()
    context.add_init_script = AsyncMock()
    context.new_page = AsyncMock(return_value=page)

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    pw = MagicMock()
    pw.chromium.launch = AsyncMock(return_value=browser)
    pw.firefox.launch = AsyncMock(return_value=browser)

    manager = MagicMock()
    manager.__aenter__ = AsyncMock(return_value=pw)
    manager.__aexit__ = AsyncMock(return_value=False)

    return SimpleNamespace(
        factory=MagicMock(return_value=manager),
        manager=manager,
        pw=pw,
        browser=browser,
        context=context,
        page=page,
    )


def _patched(fake: SimpleNamespace):
    return patch("backend.scraper.browser.async_playwright", fake.factory)


class TestEngines:
    def test_get_engine(self) -> None:
        assert isinstance(get_engine("chromium"), ChromiumEngine)
        assert isinstance(get_engine(" Firefox "), FirefoxEngine)

    def test_unknown_engine_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown browser engine"):
            get_engine("netscape")

    def test_chromium_disables_automation_flags(self, fast_settings: Settings) -> None:
        options = ChromiumEngine().launch_options(fast_settings)
        assert options["headless"] is True
        assert "--disable-blink-features=AutomationControlled" in options["args"]
        assert options["ignore_default_args"] == ["--enable-automation"]

    def test_sandbox_kept_locally(self, fast_settings: Settings) -> None:
        args = ChromiumEngine().launch_options(fast_settings)["args"]
        assert not set(SANDBOX_ARGS) & set(args)

    def test_sandbox_disabled_in_container(self, fast_settings: Settings) -> None:
        fast_settings.headless_env = "container"
        args = ChromiumEngine().launch_options(fast_settings)["args"]
        assert set(SANDBOX_ARGS) <= set(args)

    def test_serverless_marker_counts_as_container(
        self, fast_settings: Settings, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("VERCEL_ENV", "production")
        assert fast_settings.constrained_env is True

    def test_proxy_applied_at_launch(self, fast_settings: Settings) -> None:
        fast_settings.proxy_server = "http://proxy.local:8080"
        fast_settings.proxy_username = "user"
        fast_settings.proxy_password = "secret"
        options = FirefoxEngine().launch_options(fast_settings)
        assert options["proxy"] == {
            "server": "http://proxy.local:8080",
            "username": "user",
            "password": "secret",
        }
        assert options["firefox_user_prefs"]["dom.webdriver.enabled"] is False

    def test_engine_user_agents_match_engine(self) -> None:
        assert all("Firefox" in ua for ua in FirefoxEngine().user_agents)
        assert not any("Firefox" in ua for ua in ChromiumEngine().user_agents)


class TestFetchRendered:
    async def test_success_returns_rendered_html(self, fast_settings: Settings) -> None:
        fake = _fake_driver()
        with _patched(fake):
            outcome = await fetch_rendered(_URL, get_engine("chromium"), fast_settings)

        assert outcome == FetchSuccess(html=_HTML, status_code=200, strategy="headless-chromium")
        fake.browser.close.assert_awaited_once()
        _, kwargs = fake.page.goto.call_args
        assert kwargs["wait_until"] == "networkidle"
        assert kwargs["timeout"] == fast_settings.browser_navigation_timeout * 1000

    async def test_context_gets_identity_and_viewport(self, fast_settings: Settings) -> None:
        fake = _fake_driver()
        with _patched(fake):
            await fetch_rendered(_URL, get_engine("chromium"), fast_settings)

        _, kwargs = fake.browser.new_context.call_args
        assert "Mozilla/5.0" in kwargs["user_agent"]
        assert kwargs["viewport"]["width"] >= 1280
        fake.context.add_init_script.assert_awaited_once()

    async def test_firefox_engine_uses_firefox_browser(self, fast_settings: Settings) -> None:
        fake = _fake_driver()
        with _patched(fake):
            outcome = await fetch_rendered(_URL, get_engine("firefox"), fast_settings)

        fake.pw.firefox.launch.assert_awaited_once()
        fake.pw.chromium.launch.assert_not_called()
        assert outcome.strategy == "headless-firefox"

    async def test_navigation_timeout_closes_browser(self, fast_settings: Settings) -> None:
        goto = AsyncMock(side_effect=PlaywrightTimeoutError("Timeout 5000ms exceeded"))
        fake = _fake_driver(goto=goto)
        with _patched(fake):
            outcome = await fetch_rendered(_URL, get_engine("chromium"), fast_settings)

        assert isinstance(outcome, FetchNetworkError)
        assert outcome.strategy == "headless-chromium"
        fake.browser.close.assert_awaited_once()
        fake.manager.__aexit__.assert_awaited_once()

    async def test_unexpected_error_is_network_error_and_closes_browser(
        self, fast_settings: Settings
    ) -> None:
        fake = _fake_driver()
        fake.page.content = AsyncMock(side_effect=RuntimeError("renderer crashed"))
        with _patched(fake):
            outcome = await fetch_rendered(_URL, get_engine("chromium"), fast_settings)

        assert isinstance(outcome, FetchNetworkError)
        assert isinstance(outcome.cause, RuntimeError)
        assert outcome.strategy == "headless-chromium"
        fake.browser.close.assert_awaited_once()

    async def test_session_timeout_cancels_and_closes_browser(self, fast_settings: Settings) -> None:
        async def _hang(*args: Any, **kwargs: Any) -> None:
            await asyncio.sleep(10)

        fast_settings.browser_session_timeout = 0.05
        fake = _fake_driver(goto=AsyncMock(side_effect=_hang))
        with _patched(fake):
            outcome = await fetch_rendered(_URL, get_engine("chromium"), fast_settings)

        assert isinstance(outcome, FetchNetworkError)
        fake.browser.close.assert_awaited_once()

    async def test_launch_failure_is_network_error(self, fast_settings: Settings) -> None:
        fake = _fake_driver()
        fake.pw.chromium.launch = AsyncMock(side_effect=PlaywrightError("Executable doesn't exist"))
        with _patched(fake):
            outcome = await fetch_rendered(_URL, get_engine("chromium"), fast_settings)

        assert isinstance(outcome, FetchNetworkError)
        fake.browser.close.assert_not_called()

    async def test_interaction_failures_are_swallowed(self, fast_settings: Settings) -> None:
        fake = _fake_driver()
        fake.page.mouse.move = AsyncMock(side_effect=PlaywrightError("target closed"))
        fake.page.mouse.wheel = AsyncMock(side_effect=PlaywrightError("target closed"))
        with _patched(fake):
            outcome = await fetch_rendered(_URL, get_engine("chromium"), fast_settings)

        assert isinstance(outcome, FetchSuccess)
        fake.page.mouse.move.assert_awaited_once()
        fake.page.mouse.wheel.assert_awaited_once()
        fake.browser.close.assert_awaited_once()

    async def test_missing_response_defaults_to_200(self, fast_settings: Settings) -> None:
        fake = _fake_driver(goto=AsyncMock(return_value=None))
        with _patched(fake):
            outcome = await fetch_rendered(_URL, get_engine("chromium"), fast_settings)

        assert isinstance(outcome, FetchSuccess)
        assert outcome.status_code == 200

    async def test_each_call_launches_its_own_browser(self, fast_settings: Settings) -> None:
        fake = _fake_driver()
        with _patched(fake):
            await fetch_rendered(_URL, get_engine("chromium"), fast_settings)
            await fetch_rendered(_URL, get_engine("chromium"), fast_settings)

        assert fake.pw.chromium.launch.await_count == 2
        assert fake.browser.close.await_count == 2
