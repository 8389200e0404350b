"""Browser-like request identities drawn per attempt from a fixed pool."""

from __future__ import annotations

import random
from typing import Collection

from backend.scraper.models import Identity

USER_AGENTS = (
    # Chrome on Windows / macOS / Linux
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    # Edge on Windows
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36 Edg/119.0.0.0",
    # Safari on macOS
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Safari/605.1.15",
    # Firefox on Windows / macOS
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:121.0) Gecko/20100101 Firefox/121.0",
)

_BASE_HEADERS = {
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,"
        "image/webp,image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.7"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate, br",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}


def build_identity(user_agent: str) -> Identity:
    """Return an :class:`Identity` presenting *user_agent* with browser headers."""
    headers = {"User-Agent": user_agent, **_BASE_HEADERS}
    return Identity(user_agent=user_agent, headers=headers)


def draw_identity(
    used: Collection[str] = (),
    pool: tuple[str, ...] = USER_AGENTS,
) -> Identity:
    """Draw a random identity whose user agent is not in *used*.

    Once every agent in *pool* has been used the whole pool is eligible
    again.  The draw is stateless so concurrent requests share nothing.
    """
    candidates = [ua for ua in pool if ua not in used] or list(pool)
    return build_identity(random.choice(candidates))
