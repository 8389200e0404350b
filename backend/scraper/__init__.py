"""Scraper package — adaptive page acquisition & content extraction."""

from backend.scraper.checkpoint import detect_checkpoint
from backend.scraper.errors import (
    AcquisitionError,
    AllStrategiesExhaustedError,
    InvalidInputError,
    SecurityCheckpointError,
)
from backend.scraper.extractor import extract_content
from backend.scraper.models import AcquisitionResult, CheckpointKind, ExtractedContent
from backend.scraper.orchestrator import acquire, acquire_sync, normalize_url

__all__ = [
    "acquire",
    "acquire_sync",
    "normalize_url",
    "detect_checkpoint",
    "extract_content",
    "AcquisitionResult",
    "ExtractedContent",
    "CheckpointKind",
    "AcquisitionError",
    "InvalidInputError",
    "SecurityCheckpointError",
    "AllStrategiesExhaustedError",
]
