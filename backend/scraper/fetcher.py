"""Direct HTTP acquisition: one plain GET, and a retry loop around it.

Neither function raises for network or HTTP problems.  Both report a
:data:`~backend.scraper.models.FetchOutcome` so the orchestrator can decide
whether to escalate to a headless browser.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx

from backend.scraper.identity import draw_identity
from backend.scraper.models import (
    FetchBlocked,
    FetchHttpError,
    FetchNetworkError,
    FetchOutcome,
    FetchSuccess,
    Identity,
)

logger = logging.getLogger(__name__)

# Status codes that usually mean "bot defenses said no" rather than "gone".
BLOCK_STATUS_CODES = frozenset({403, 429, 503})


async def fetch_direct(
    url: str,
    identity: Identity,
    *,
    timeout: float = 15.0,
    proxy: Optional[str] = None,
) -> FetchOutcome:
    """Issue a single GET for *url* presenting *identity*.

    Returns:
        ``FetchSuccess`` for 2xx, ``FetchBlocked`` for 403/429/503,
        ``FetchHttpError`` for any other status, and ``FetchNetworkError``
        when no response was received at all.
    """
    try:
        async with httpx.AsyncClient(
            headers=identity.headers,
            timeout=timeout,
            follow_redirects=True,
            proxy=proxy,
        ) as client:
            response = await client.get(url)
    except httpx.TransportError as exc:
        logger.info("Direct fetch of %s failed: %s", url, exc)
        return FetchNetworkError(cause=exc)

    status = response.status_code
    if response.is_success:
        return FetchSuccess(html=response.text, status_code=status)
    if status in BLOCK_STATUS_CODES:
        return FetchBlocked(status_code=status)
    return FetchHttpError(status_code=status)


async def fetch_with_retries(
    url: str,
    *,
    max_retries: int = 3,
    base_delay: float = 1.0,
    timeout: float = 15.0,
    proxy: Optional[str] = None,
) -> FetchOutcome:
    """Call :func:`fetch_direct` up to *max_retries* times with fresh identities.

    Blocked and network outcomes are retried with a different identity after
    a linear back-off of ``attempt * base_delay`` seconds.  A non-retryable
    HTTP status ends the loop at once.  When every attempt fails the last
    outcome is returned, so callers can tell "blocked every time" from
    "unreachable".
    """
    attempts = max(1, max_retries)
    used: list[str] = []
    outcome: FetchOutcome = FetchNetworkError(cause=RuntimeError("no attempt made"))

    for attempt in range(1, attempts + 1):
        identity = draw_identity(used)
        used.append(identity.user_agent)
        logger.debug("Direct fetch attempt %d/%d for %s", attempt, attempts, url)
        outcome = await fetch_direct(url, identity, timeout=timeout, proxy=proxy)

        if isinstance(outcome, (FetchSuccess, FetchHttpError)):
            return outcome

        if attempt < attempts:
            delay = attempt * base_delay
            logger.warning(
                "Direct fetch of %s %s (attempt %d), retrying in %.1fs with a new identity",
                url,
                f"blocked with {outcome.status_code}"
                if isinstance(outcome, FetchBlocked)
                else "hit a network error",
                attempt,
                delay,
            )
            await asyncio.sleep(delay)

    return outcome
