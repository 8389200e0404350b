"""Acquisition orchestrator: the escalation ladder from URL to content.

``acquire`` drives one request through an explicit state machine::

    START → TRY_DIRECT ─ success ─────────────────→ CHECKPOINT → EXTRACT
                  └─ blocked / error → TRY_HEADLESS ─ success ─┘
                                             └─ all failed → FAIL

All progress lives in a per-call :class:`_Attempt` record, so concurrent
requests share nothing.  Only this module turns fetch outcomes into terminal
errors.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import urlsplit

from backend.config import Settings, settings
from backend.scraper.browser import fetch_rendered, get_engine
from backend.scraper.checkpoint import detect_checkpoint, page_title
from backend.scraper.errors import (
    AllStrategiesExhaustedError,
    InvalidInputError,
    SecurityCheckpointError,
)
from backend.scraper.extractor import extract_content
from backend.scraper.fetcher import fetch_with_retries
from backend.scraper.models import (
    AcquisitionResult,
    CheckpointVerdict,
    FetchNetworkError,
    FetchOutcome,
    FetchSuccess,
)

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


class Stage(str, Enum):
    START = "start"
    TRY_DIRECT = "try_direct"
    TRY_HEADLESS = "try_headless"
    CHECKPOINT = "checkpoint"
    EXTRACT = "extract"
    FAIL = "fail"
    DONE = "done"


@dataclass
class _Attempt:
    """Mutable progress of a single acquisition request."""

    raw_url: str
    url: str = ""
    stage: Stage = Stage.START
    success: Optional[FetchSuccess] = None
    last_outcome: Optional[FetchOutcome] = None
    last_status: Optional[int] = None
    verdict: Optional[CheckpointVerdict] = None
    result: Optional[AcquisitionResult] = None

    def record(self, outcome: FetchOutcome) -> None:
        self.last_outcome = outcome
        status = getattr(outcome, "status_code", None)
        if status is not None:
            self.last_status = status


def normalize_url(raw_url: Optional[str]) -> str:
    """Return *raw_url* trimmed and with an explicit ``http(s)://`` scheme.

    Raises:
        InvalidInputError: If *raw_url* is missing, blank or has no host.
    """
    trimmed = (raw_url or "").strip()
    if not trimmed:
        raise InvalidInputError("URL is required")
    url = trimmed if _SCHEME_RE.match(trimmed) else f"https://{trimmed}"
    if not urlsplit(url).hostname:
        raise InvalidInputError(f"'{trimmed}' is not a valid website address")
    return url


def _usable(outcome: FetchOutcome) -> bool:
    """A rendered page counts as obtained when it is OK or a recognisable checkpoint."""
    if not isinstance(outcome, FetchSuccess):
        return False
    if outcome.status_code < 400:
        return True
    return detect_checkpoint(outcome.html, page_title(outcome.html)).is_checkpoint


# ---------------------------------------------------------------------------
# Stage handlers
# ---------------------------------------------------------------------------

async def _try_direct(attempt: _Attempt, config: Settings) -> Stage:
    outcome = await fetch_with_retries(
        attempt.url,
        max_retries=config.max_retries,
        base_delay=config.retry_base_delay,
        timeout=config.request_timeout,
        proxy=config.proxy_url,
    )
    attempt.record(outcome)
    if isinstance(outcome, FetchSuccess):
        attempt.success = outcome
        return Stage.CHECKPOINT

    logger.info("Direct fetch of %s did not succeed (%s), escalating", attempt.url,
                type(outcome).__name__)
    return Stage.TRY_HEADLESS


async def _try_headless(attempt: _Attempt, config: Settings) -> Stage:
    if not config.use_headless:
        return Stage.FAIL

    for name in config.browser_engines:
        engine = get_engine(name)
        outcome = await fetch_rendered(attempt.url, engine, config)
        attempt.record(outcome)
        if _usable(outcome):
            attempt.success = outcome  # type: ignore[assignment]
            return Stage.CHECKPOINT
        logger.info("%s did not obtain %s", engine.strategy, attempt.url)

    return Stage.FAIL


def _check(attempt: _Attempt) -> Stage:
    html = attempt.success.html  # type: ignore[union-attr]
    verdict = detect_checkpoint(html, page_title(html))
    if verdict.is_checkpoint:
        attempt.verdict = verdict
        logger.info("Security checkpoint detected for %s: %s", attempt.url, verdict.kind.value)
        raise SecurityCheckpointError(verdict, attempt.url)
    return Stage.EXTRACT


def _extract(attempt: _Attempt) -> Stage:
    success = attempt.success
    extracted = extract_content(success.html, attempt.url)  # type: ignore[union-attr]
    attempt.result = AcquisitionResult(
        url=attempt.url,
        title=extracted.title,
        description=extracted.description,
        content=extracted.content,
        extraction_method=f"{success.strategy}+{extracted.method.value}",  # type: ignore[union-attr]
    )
    return Stage.DONE


def _fail(attempt: _Attempt) -> AllStrategiesExhaustedError:
    received_response = attempt.last_status is not None
    unreachable = isinstance(attempt.last_outcome, FetchNetworkError) and not received_response
    return AllStrategiesExhaustedError(
        attempt.url,
        last_status=attempt.last_status,
        network_unreachable=unreachable,
    )


async def _run(attempt: _Attempt, config: Settings) -> AcquisitionResult:
    attempt.stage = Stage.TRY_DIRECT
    while True:
        logger.debug("acquire %s: %s", attempt.url, attempt.stage.value)
        if attempt.stage is Stage.TRY_DIRECT:
            attempt.stage = await _try_direct(attempt, config)
        elif attempt.stage is Stage.TRY_HEADLESS:
            attempt.stage = await _try_headless(attempt, config)
        elif attempt.stage is Stage.CHECKPOINT:
            attempt.stage = _check(attempt)
        elif attempt.stage is Stage.EXTRACT:
            attempt.stage = _extract(attempt)
        elif attempt.stage is Stage.DONE:
            return attempt.result  # type: ignore[return-value]
        else:
            raise _fail(attempt)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def acquire(raw_url: Optional[str], config: Optional[Settings] = None) -> AcquisitionResult:
    """Fetch *raw_url* with escalating strategies and extract its content.

    Args:
        raw_url: User-supplied address; ``https://`` is prefixed when no
            scheme is present.
        config: Settings override (defaults to the module singleton).

    Returns:
        The normalised :class:`AcquisitionResult`.

    Raises:
        InvalidInputError: *raw_url* is empty.
        SecurityCheckpointError: The obtained page is a bot-defense challenge.
        AllStrategiesExhaustedError: No strategy obtained the page, or the
            overall ``acquire_timeout`` expired.
    """
    config = config or settings
    attempt = _Attempt(raw_url=raw_url or "")
    attempt.url = normalize_url(raw_url)
    logger.info("Acquiring %s", attempt.url)

    try:
        return await asyncio.wait_for(_run(attempt, config), timeout=config.acquire_timeout)
    except asyncio.TimeoutError:
        logger.warning("Acquisition of %s exceeded %.0fs", attempt.url, config.acquire_timeout)
        raise AllStrategiesExhaustedError(
            attempt.url,
            last_status=attempt.last_status,
            message=f"Timed out after {config.acquire_timeout:.0f}s while fetching {attempt.url}.",
        ) from None


def acquire_sync(raw_url: Optional[str], config: Optional[Settings] = None) -> AcquisitionResult:
    """Blocking wrapper around :func:`acquire` for synchronous callers."""
    return asyncio.run(acquire(raw_url, config))
