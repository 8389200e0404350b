"""Headless browser acquisition via Playwright.

The heaviest strategy: a real browser engine renders the page so that
client-side challenges get a chance to resolve.  Two engines are available
behind one :class:`BrowserEngine` interface, Chromium and Firefox; both
produce the same :data:`~backend.scraper.models.FetchOutcome`.

Every call launches its own browser and closes it before returning, on
success, on error and on cancellation alike.  Nothing is shared between
calls.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from backend.config import Settings, settings
from backend.scraper.identity import USER_AGENTS, draw_identity
from backend.scraper.models import FetchNetworkError, FetchOutcome, FetchSuccess, Identity

logger = logging.getLogger(__name__)

# Common desktop resolutions; one is picked per session.
VIEWPORTS: List[Dict[str, int]] = [
    {"width": 1920, "height": 1080},
    {"width": 1680, "height": 1050},
    {"width": 1536, "height": 864},
    {"width": 1440, "height": 900},
    {"width": 1366, "height": 768},
]

SANDBOX_ARGS = ["--no-sandbox", "--disable-setuid-sandbox", "--disable-dev-shm-usage"]

_HIDE_WEBDRIVER = (
    "Object.defineProperty(navigator, 'webdriver', {get: () => undefined});"
)


class BrowserEngine:
    """One Playwright browser type plus its launch-time hardening."""

    name = ""

    @property
    def strategy(self) -> str:
        return f"headless-{self.name}"

    @property
    def user_agents(self) -> tuple[str, ...]:
        return USER_AGENTS

    def launch_options(self, config: Settings) -> Dict[str, Any]:
        options: Dict[str, Any] = {"headless": True}
        if config.proxy_server:
            proxy = {"server": config.proxy_server}
            if config.proxy_username and config.proxy_password:
                proxy["username"] = config.proxy_username
                proxy["password"] = config.proxy_password
            options["proxy"] = proxy
        return options

    def context_options(self, identity: Identity, viewport: Dict[str, int]) -> Dict[str, Any]:
        return {
            "user_agent": identity.user_agent,
            "viewport": viewport,
            "locale": "en-US",
            "timezone_id": "America/New_York",
            "extra_http_headers": {
                "Accept": identity.headers["Accept"],
                "Accept-Language": identity.headers["Accept-Language"],
            },
        }

    async def launch(self, playwright: Any, config: Settings) -> Any:
        browser_type = getattr(playwright, self.name)
        return await browser_type.launch(**self.launch_options(config))


class ChromiumEngine(BrowserEngine):
    name = "chromium"

    @property
    def user_agents(self) -> tuple[str, ...]:
        return tuple(ua for ua in USER_AGENTS if "Firefox" not in ua)

    def launch_options(self, config: Settings) -> Dict[str, Any]:
        options = super().launch_options(config)
        args = [
            "--disable-blink-features=AutomationControlled",
            "--disable-infobars",
            "--window-position=0,0",
        ]
        if config.constrained_env:
            args.extend(SANDBOX_ARGS)
        options["args"] = args
        options["ignore_default_args"] = ["--enable-automation"]
        return options


class FirefoxEngine(BrowserEngine):
    name = "firefox"

    @property
    def user_agents(self) -> tuple[str, ...]:
        return tuple(ua for ua in USER_AGENTS if "Firefox" in ua)

    def launch_options(self, config: Settings) -> Dict[str, Any]:
        options = super().launch_options(config)
        options["firefox_user_prefs"] = {
            "dom.webdriver.enabled": False,
            "useAutomationExtension": False,
        }
        return options


ENGINES: Dict[str, BrowserEngine] = {
    "chromium": ChromiumEngine(),
    "firefox": FirefoxEngine(),
}


def get_engine(name: str) -> BrowserEngine:
    """Return the engine registered as *name* (case-insensitive)."""
    try:
        return ENGINES[name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown browser engine {name!r}. Choose from: {', '.join(ENGINES)}"
        ) from None


# ---------------------------------------------------------------------------
# Session helpers
# ---------------------------------------------------------------------------

async def _humanize(page: Any, viewport: Dict[str, int]) -> None:
    """Move the pointer and scroll a little.  Failures are logged, never raised."""
    actions = (
        (
            "pointer move",
            lambda: page.mouse.move(
                random.randint(100, viewport["width"] - 100),
                random.randint(100, viewport["height"] - 100),
                steps=random.randint(5, 15),
            ),
        ),
        ("scroll", lambda: page.mouse.wheel(0, random.randint(200, 600))),
    )
    for label, action in actions:
        try:
            await action()
        except Exception as exc:  # noqa: BLE001
            logger.debug("Best-effort %s failed: %s", label, exc)


async def _close_browser(browser: Any) -> None:
    try:
        await browser.close()
    except PlaywrightError as exc:
        logger.warning("Browser close failed: %s", exc)


async def _render(url: str, engine: BrowserEngine, config: Settings) -> FetchSuccess:
    identity = draw_identity(pool=engine.user_agents)
    viewport = random.choice(VIEWPORTS)

    async with async_playwright() as pw:
        browser = await engine.launch(pw, config)
        try:
            context = await browser.new_context(**engine.context_options(identity, viewport))
            await context.add_init_script(_HIDE_WEBDRIVER)
            page = await context.new_page()

            logger.info("%s: navigating to %s", engine.strategy, url)
            # "networkidle" rather than "load": challenge pages often keep
            # background requests open forever.
            response = await page.goto(
                url,
                wait_until="networkidle",
                timeout=config.browser_navigation_timeout * 1000,
            )

            await asyncio.sleep(random.uniform(config.browser_settle_min, config.browser_settle_max))
            await _humanize(page, viewport)

            html = await page.content()
        finally:
            await _close_browser(browser)

    status = response.status if response is not None else 200
    logger.info("%s: retrieved %d chars from %s (HTTP %d)", engine.strategy, len(html), url, status)
    return FetchSuccess(html=html, status_code=status, strategy=engine.strategy)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def fetch_rendered(
    url: str,
    engine: BrowserEngine,
    config: Optional[Settings] = None,
) -> FetchOutcome:
    """Render *url* in a fresh headless *engine* browser and return its HTML.

    The whole session is bounded by ``browser_session_timeout``.  Launch and
    navigation failures (including timeouts and unexpected driver errors)
    are reported as ``FetchNetworkError`` so the next engine can be tried;
    the browser is closed either way.  Cancellation still propagates.
    """
    config = config or settings
    try:
        return await asyncio.wait_for(
            _render(url, engine, config),
            timeout=config.browser_session_timeout,
        )
    except asyncio.TimeoutError as exc:
        logger.warning("%s: session for %s exceeded %.0fs", engine.strategy, url,
                       config.browser_session_timeout)
        return FetchNetworkError(cause=exc, strategy=engine.strategy)
    except PlaywrightError as exc:
        logger.warning("%s: failed to fetch %s: %s", engine.strategy, url, exc)
        return FetchNetworkError(cause=exc, strategy=engine.strategy)
    except Exception as exc:  # noqa: BLE001
        logger.exception("%s: unexpected failure while rendering %s", engine.strategy, url)
        return FetchNetworkError(cause=exc, strategy=engine.strategy)
