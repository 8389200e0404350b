"""Process-wide logging setup shared by the CLI and the HTTP app."""

from __future__ import annotations

import logging

from backend.config import settings

_NOISY_LOGGERS = ("httpx", "httpcore", "asyncio", "playwright")


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger once and quiet chatty third-party loggers.

    Idempotent: when the host application already installed handlers, only
    the third-party levels are adjusted.
    """
    root = logging.getLogger()
    if not root.handlers:
        name = (level or settings.log_level).upper()
        logging.basicConfig(
            level=getattr(logging, name, logging.INFO),
            format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
