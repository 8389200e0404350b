"""Bot-defense checkpoint detection.

A fetch can "succeed" and still hand back an interstitial challenge page
instead of the site.  :func:`detect_checkpoint` classifies such pages from the
final HTML and page title using an ordered rule table: the most specific
vendor rules come first because one challenge page usually matches several
rule sets.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Tuple

from backend.scraper.models import CheckpointKind, CheckpointVerdict


@dataclass(frozen=True)
class CheckpointRule:
    kind: CheckpointKind
    patterns: Tuple[str, ...]
    message: str


CHECKPOINT_RULES: Tuple[CheckpointRule, ...] = (
    CheckpointRule(
        kind=CheckpointKind.VERCEL_SECURITY,
        patterns=(
            "vercel security checkpoint",
            "failed to verify your browser",
        ),
        message=(
            "This website uses Vercel's security protection that blocks automated "
            "access. Try visiting the site directly in your browser first."
        ),
    ),
    CheckpointRule(
        kind=CheckpointKind.CLOUDFLARE_PROTECTION,
        patterns=(
            "just a moment...",
            "checking your browser",
            "please wait while we check your browser",
            "attention required! | cloudflare",
            "cf-browser-verification",
            "cf-challenge",
            "challenges.cloudflare.com",
            "cf-ray",
            "ray id:",
        ),
        message=(
            "This website uses Cloudflare's bot protection. The site may be "
            "temporarily blocking automated requests."
        ),
    ),
    CheckpointRule(
        kind=CheckpointKind.ACCESS_DENIED,
        patterns=(
            "access denied",
            "403 forbidden",
            "you don't have permission to access",
        ),
        message="Access to this website is currently restricted or blocked.",
    ),
    CheckpointRule(
        kind=CheckpointKind.RATE_LIMITED,
        patterns=(
            "rate limit exceeded",
            "too many requests",
            "429 too many",
        ),
        message="This website is rate limiting requests. Please try again later.",
    ),
    CheckpointRule(
        kind=CheckpointKind.BOT_PROTECTION,
        patterns=(
            "are you a robot",
            "verify you are human",
            "verify you are a human",
            "px-captcha",
            "captcha-delivery.com",
            "_incapsula_resource",
            "ddos protection by",
        ),
        message=(
            "This website requires a human verification step that automated "
            "access cannot complete."
        ),
    ),
)

NO_CHECKPOINT = CheckpointVerdict(is_checkpoint=False, kind=CheckpointKind.NONE, message="")

_TITLE_RE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)
_H1_RE = re.compile(r"<h1[^>]*>(.*?)</h1>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")


def page_title(html: str) -> str:
    """Return the ``<title>`` text of *html*, else its first ``<h1>``, else ``""``."""
    for pattern in (_TITLE_RE, _H1_RE):
        match = pattern.search(html)
        if match:
            text = " ".join(_TAG_RE.sub(" ", match.group(1)).split())
            if text:
                return text
    return ""


def detect_checkpoint(
    html: str,
    title: str,
    rules: Tuple[CheckpointRule, ...] = CHECKPOINT_RULES,
) -> CheckpointVerdict:
    """Classify *html* / *title* as a checkpoint page, or not.

    Pure and case-insensitive; the first rule with a pattern present in either
    input wins.
    """
    lower_html = (html or "").lower()
    lower_title = (title or "").lower()
    for rule in rules:
        if any(p in lower_html or p in lower_title for p in rule.patterns):
            return CheckpointVerdict(is_checkpoint=True, kind=rule.kind, message=rule.message)
    return NO_CHECKPOINT
