"""Content extraction: turns raw HTML into :class:`ExtractedContent`."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import trafilatura
from bs4 import BeautifulSoup

from backend.scraper.models import ExtractedContent, ExtractionMethod

logger = logging.getLogger(__name__)

MIN_CONTENT_LENGTH = 100
MAX_CONTENT_LENGTH = 3000
MAX_DESCRIPTION_LENGTH = 500
NO_TITLE = "No title found"

_STRIP_TAGS = ["script", "style", "nav", "header", "footer", "aside", "noscript"]

# Candidate main-content containers, most specific first.
CONTENT_SELECTORS: List[str] = [
    "main",
    "[role=main]",
    "#content",
    "#main-content",
    ".main-content",
    ".content",
    ".post-content",
    ".entry-content",
    ".article-body",
    "article",
    "section",
]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _collapse(text: Optional[str]) -> str:
    """Collapse every whitespace run in *text* to a single space."""
    return " ".join((text or "").split())


def _clip(text: str, limit: int) -> str:
    return text[:limit].strip()


def _meta(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return ""
    return _collapse(tag.get("content"))


def _primary_extract(html: str, url: str) -> Optional[Dict[str, Any]]:
    """Run trafilatura's readability-style extraction.

    Returns a dict with ``title``, ``text`` and ``description`` keys, or
    ``None`` when no article was found.
    """
    try:
        result = trafilatura.bare_extraction(
            html,
            url=url,
            with_metadata=True,
            include_comments=False,
            include_tables=True,
        )
    except Exception as exc:  # noqa: BLE001
        logger.info("Primary extraction raised for %s: %s", url, exc)
        return None
    if result is None:
        return None
    if not isinstance(result, dict):
        result = result.as_dict()
    return {
        "title": result.get("title") or "",
        "text": result.get("text") or "",
        "description": result.get("description") or "",
    }


def _heuristic_content(soup: BeautifulSoup) -> str:
    """Scan known content containers, then fall back to paragraph text.

    *soup* must already have non-content tags removed.
    """
    for selector in CONTENT_SELECTORS:
        container = soup.select_one(selector)
        if container is None:
            continue
        text = _collapse(container.get_text(separator=" "))
        if len(text) > MIN_CONTENT_LENGTH:
            return text

    parts: List[str] = []
    length = 0
    for p in soup.find_all("p"):
        text = _collapse(p.get_text(separator=" "))
        if not text:
            continue
        parts.append(text)
        length += len(text) + 1
        if length >= MAX_CONTENT_LENGTH:
            break
    if parts:
        return " ".join(parts)

    body = soup.body or soup
    return _collapse(body.get_text(separator=" "))


def _first_text(soup: BeautifulSoup, name: str) -> str:
    for tag in soup.find_all(name):
        text = _collapse(tag.get_text(separator=" "))
        if text:
            return text
    return ""


def _first_paragraph(soup: BeautifulSoup) -> str:
    """First non-empty ``<p>`` of the main content, else of the whole page.

    Call after chrome (nav, header, footer, aside) has been stripped.
    """
    for container in soup.select("main, [role=main], article"):
        text = _first_text(container, "p")
        if text:
            return text
    return _first_text(soup, "p")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_content(html: str, url: str) -> ExtractedContent:
    """Extract title, description and readable body text from *html*.

    Tries ``trafilatura`` first.  Its result is only accepted when it found
    more than ``MIN_CONTENT_LENGTH`` characters of text; otherwise a
    BeautifulSoup heuristic (content containers, then paragraphs) is used
    and the result is marked as a heuristic fallback.
    """
    soup = BeautifulSoup(html or "", "html.parser")

    # Metadata is read before any tags are stripped.
    title_tag = soup.find("title")
    doc_title = _collapse(title_tag.get_text()) if title_tag else ""
    h1_title = _first_text(soup, "h1")
    og_title = _meta(soup, property="og:title")
    meta_description = _meta(soup, name="description")
    og_description = _meta(soup, property="og:description")

    for tag in soup(_STRIP_TAGS):
        tag.decompose()
    first_paragraph = _first_paragraph(soup)

    primary = _primary_extract(html or "", url)
    primary_text = _collapse(primary["text"]) if primary else ""

    if primary and len(primary_text) > MIN_CONTENT_LENGTH:
        method = ExtractionMethod.READABILITY
        content = primary_text
        primary_title = _collapse(primary["title"])
        excerpt = _collapse(primary["description"])
    else:
        logger.debug("Primary extraction too short for %s, using heuristic fallback", url)
        method = ExtractionMethod.HEURISTIC_FALLBACK
        content = _heuristic_content(soup)
        primary_title = ""
        excerpt = ""

    title = primary_title or doc_title or h1_title or og_title or NO_TITLE
    description = (
        excerpt
        or meta_description
        or og_description
        or first_paragraph
        or content
    )

    return ExtractedContent(
        title=title,
        description=_clip(description, MAX_DESCRIPTION_LENGTH),
        content=_clip(content, MAX_CONTENT_LENGTH),
        method=method,
    )
