"""Data models for the acquisition pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Union


@dataclass(frozen=True)
class Identity:
    """The request signature presented to the target server for one attempt."""

    user_agent: str
    headers: Dict[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Fetch outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FetchSuccess:
    html: str
    status_code: int
    strategy: str = "fetch"


@dataclass(frozen=True)
class FetchBlocked:
    """403 / 429 / 503: a provisional bot-defense signal, not a hard failure."""

    status_code: int
    strategy: str = "fetch"


@dataclass(frozen=True)
class FetchHttpError:
    """Any other non-2xx status; passed through and never retried."""

    status_code: int
    strategy: str = "fetch"


@dataclass(frozen=True)
class FetchNetworkError:
    """No HTTP response at all (DNS, connect, TLS, timeout, browser crash)."""

    cause: BaseException
    strategy: str = "fetch"


FetchOutcome = Union[FetchSuccess, FetchBlocked, FetchHttpError, FetchNetworkError]


# ---------------------------------------------------------------------------
# Checkpoint detection
# ---------------------------------------------------------------------------

class CheckpointKind(str, Enum):
    VERCEL_SECURITY = "Vercel Security"
    CLOUDFLARE_PROTECTION = "Cloudflare Protection"
    ACCESS_DENIED = "Access Denied"
    RATE_LIMITED = "Rate Limited"
    BOT_PROTECTION = "Bot Protection"
    NONE = ""


@dataclass(frozen=True)
class CheckpointVerdict:
    is_checkpoint: bool
    kind: CheckpointKind
    message: str


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

class ExtractionMethod(str, Enum):
    READABILITY = "readability"
    HEURISTIC_FALLBACK = "heuristic-fallback"


@dataclass
class ExtractedContent:
    """Normalised readable content pulled out of one HTML document."""

    title: str
    description: str
    content: str
    method: ExtractionMethod


@dataclass
class AcquisitionResult:
    """Top-level success value returned by :func:`~backend.scraper.acquire`."""

    url: str
    title: str
    description: str
    content: str
    extraction_method: str

    def to_dict(self) -> Dict[str, str]:
        """Public payload handed to the report collaborator and API callers."""
        return {
            "url": self.url,
            "title": self.title,
            "description": self.description,
            "content": self.content,
        }
