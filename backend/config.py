"""Centralised settings for the page acquisition backend.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import quote, urlsplit, urlunsplit

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str) -> list[str]:
    raw = os.environ.get(name, default)
    return [part.strip().lower() for part in raw.split(",") if part.strip()]


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Direct fetch
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "15.0"))
    )
    max_retries: int = field(
        default_factory=lambda: int(os.environ.get("MAX_RETRIES", "3"))
    )
    retry_base_delay: float = field(
        default_factory=lambda: float(os.environ.get("RETRY_BASE_DELAY", "1.0"))
    )

    # ------------------------------------------------------------------
    # Headless browser
    # ------------------------------------------------------------------
    use_headless: bool = field(
        default_factory=lambda: _env_bool("USE_HEADLESS", "true")
    )
    browser_engines: list[str] = field(
        default_factory=lambda: _env_list("BROWSER_ENGINES", "chromium,firefox")
    )
    headless_env: str = field(
        default_factory=lambda: os.environ.get("HEADLESS_ENV", "local").strip().lower()
    )
    browser_navigation_timeout: float = field(
        default_factory=lambda: float(os.environ.get("BROWSER_NAVIGATION_TIMEOUT", "30.0"))
    )
    browser_session_timeout: float = field(
        default_factory=lambda: float(os.environ.get("BROWSER_SESSION_TIMEOUT", "45.0"))
    )
    browser_settle_min: float = field(
        default_factory=lambda: float(os.environ.get("BROWSER_SETTLE_MIN", "5.0"))
    )
    browser_settle_max: float = field(
        default_factory=lambda: float(os.environ.get("BROWSER_SETTLE_MAX", "8.0"))
    )

    # ------------------------------------------------------------------
    # Whole-request deadline
    # ------------------------------------------------------------------
    acquire_timeout: float = field(
        default_factory=lambda: float(os.environ.get("ACQUIRE_TIMEOUT", "240.0"))
    )

    # ------------------------------------------------------------------
    # Proxy (optional, shared by the direct fetch and the browser)
    # ------------------------------------------------------------------
    proxy_server: str | None = field(
        default_factory=lambda: os.environ.get("PROXY_SERVER") or None
    )
    proxy_username: str | None = field(
        default_factory=lambda: os.environ.get("PROXY_USERNAME") or None
    )
    proxy_password: str | None = field(
        default_factory=lambda: os.environ.get("PROXY_PASSWORD") or None
    )

    # ------------------------------------------------------------------
    # Report model
    # ------------------------------------------------------------------
    llm_provider: str = field(
        default_factory=lambda: os.environ.get("LLM_PROVIDER", "ollama")
    )
    ollama_chat_model: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_CHAT_MODEL", "ministral-3:8b")
    )
    openai_chat_model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_CHAT_MODEL", "gpt-4o-mini")
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO").upper()
    )

    @property
    def constrained_env(self) -> bool:
        """``True`` when the browser must run without a sandbox.

        Serverless hosts (``VERCEL_ENV``) and containers lack the kernel
        features Chromium's sandbox relies on.
        """
        return self.headless_env == "container" or bool(os.environ.get("VERCEL_ENV"))

    @property
    def worst_case_duration(self) -> float:
        """Seconds a request can take before ``acquire_timeout`` is applied.

        Every direct attempt times out, every back-off is waited out, and every
        configured engine runs a full session.
        """
        attempts = max(1, self.max_retries)
        backoff = sum(n * self.retry_base_delay for n in range(1, attempts))
        direct = attempts * self.request_timeout + backoff
        headless = len(self.browser_engines) * self.browser_session_timeout if self.use_headless else 0.0
        return direct + headless

    @property
    def proxy_url(self) -> str | None:
        """Proxy URL for ``httpx`` with credentials embedded, or ``None``."""
        if not self.proxy_server:
            return None
        if not (self.proxy_username and self.proxy_password):
            return self.proxy_server
        parts = urlsplit(self.proxy_server)
        userinfo = f"{quote(self.proxy_username, safe='')}:{quote(self.proxy_password, safe='')}"
        return urlunsplit(
            (parts.scheme, f"{userinfo}@{parts.netloc}", parts.path, parts.query, parts.fragment)
        )


# Module-level singleton; import this everywhere:
#   from backend.config import settings
settings = Settings()
