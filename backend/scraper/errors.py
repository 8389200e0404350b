"""Terminal failures raised by the acquisition orchestrator.

Lower layers never raise these: fetchers report :mod:`~backend.scraper.models`
outcomes and the orchestrator alone decides when a request has failed.
Every error carries a machine-readable ``kind`` and a human-readable
``suggestion``; internal details stay in the logs.
"""

from __future__ import annotations

from typing import Any

from backend.scraper.models import CheckpointVerdict


class AcquisitionError(Exception):
    kind = "ACQUISITION_FAILED"
    suggestion = ""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if suggestion is not None:
            self.suggestion = suggestion

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message, "type": self.kind}
        if self.suggestion:
            payload["suggestion"] = self.suggestion
        return payload


class InvalidInputError(AcquisitionError):
    kind = "INVALID_INPUT"
    suggestion = "Provide a website address such as example.com."


class SecurityCheckpointError(AcquisitionError):
    """The final HTML is a challenge / interstitial page, not real content."""

    kind = "SECURITY_CHECKPOINT"
    suggestion = "Try visiting the site directly in your browser first."

    def __init__(self, verdict: CheckpointVerdict, url: str) -> None:
        super().__init__(verdict.message)
        self.verdict = verdict
        self.url = url

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["checkpointType"] = self.verdict.kind.value
        return payload


class AllStrategiesExhaustedError(AcquisitionError):
    """Every fetch strategy failed or was blocked."""

    kind = "SCRAPING_BLOCKED"
    suggestion = (
        "Please try again later or access the website directly in your browser."
    )

    def __init__(
        self,
        url: str,
        last_status: int | None = None,
        network_unreachable: bool = False,
        message: str | None = None,
    ) -> None:
        if message is None:
            if network_unreachable:
                message = f"The website at {url} could not be reached."
            else:
                message = (
                    "This website is protected by advanced bot detection that "
                    "could not be bypassed."
                )
            if last_status is not None:
                message += f" (last HTTP status: {last_status})"
        super().__init__(message)
        self.url = url
        self.last_status = last_status
        self.network_unreachable = network_unreachable

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.last_status is not None:
            payload["status"] = self.last_status
        return payload
