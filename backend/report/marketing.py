"""Social-media marketing report for an acquired page.

``generate_marketing_report`` hands the page's url/title/description/content
to the configured LLM with a fixed prompt template and parses the JSON object
it returns.  It is one synchronous call: there is no retry, and output that is
not a JSON object raises :class:`ReportParseError` instead of being patched
up.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Mapping

from backend.config import settings

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)

REPORT_PROMPT = """\
Analyze this website/product and create a comprehensive social media marketing strategy report in JSON format.

Website Data:
- URL: {url}
- Title: {title}
- Description: {description}
- Content: {content}

Generate a detailed marketing report with the following structure (return as valid JSON):

{{
  "productName": "Extract or infer the product/company name",
  "category": "What type of product/service this is (SaaS, E-commerce, Service, etc.)",
  "userPersona": {{
    "demographics": "Who the target users are",
    "whereTheyHangOut": "Main social platforms and communities they use",
    "mindset": "Their attitudes, behaviors, and mental state"
  }},
  "painPoints": ["3-5 main problems the target audience faces that this product solves"],
  "valueProposition": "A clear, compelling one-line value prop",
  "contentPillars": [
    {{"pillar": "Education", "description": "Educational content strategy"}},
    {{"pillar": "Social Proof", "description": "Social proof content strategy"}},
    {{"pillar": "Behind the Scenes", "description": "Behind the scenes content strategy"}},
    {{"pillar": "Relatable/Motivational", "description": "Relatable and motivational content strategy"}}
  ],
  "postTypes": ["5-7 specific post formats, including platform-specific ones"],
  "weeklyCalendar": {{
    "monday": "Content type and brief description",
    "wednesday": "Content type and brief description",
    "friday": "Content type and brief description",
    "sunday": "Content type and brief description"
  }},
  "hashtagStyle": {{
    "tone": "Describe the overall tone and style",
    "exampleHashtags": ["#relevant", "#hashtags"]
  }},
  "engagementStrategy": ["3-5 specific engagement tactics"],
  "metricsToTrack": ["4-5 key metrics, both vanity and business"],
  "keyTakeaway": "One powerful, actionable insight or strategy tip"
}}

Make this highly specific and actionable for this particular business. Focus on understanding their unique value proposition and target audience based on the website content provided.
Respond with the JSON object only.
"""


class ReportError(Exception):
    """Base class for report generation failures."""


class ReportInputError(ReportError):
    """The page data lacks the fields a report needs."""


class ReportParseError(ReportError):
    """The model's output was not a JSON object."""

    def __init__(self, message: str, raw: str) -> None:
        super().__init__(message)
        self.raw = raw


# ---------------------------------------------------------------------------
# LLM helper
# ---------------------------------------------------------------------------

def _get_llm() -> Any:
    """Return a JSON-mode LangChain chat model based on ``settings``."""
    if settings.llm_provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=settings.openai_chat_model,
            temperature=0.7,
            model_kwargs={"response_format": {"type": "json_object"}},
        )

    from langchain_ollama import ChatOllama

    return ChatOllama(model=settings.ollama_chat_model, temperature=0.7, format="json")


def parse_report(text: str) -> dict[str, Any]:
    """Parse the model's reply into a dict, tolerating a Markdown code fence.

    Raises:
        ReportParseError: If *text* is not a JSON object.
    """
    cleaned = text.strip()
    fenced = _FENCE_RE.match(cleaned)
    if fenced:
        cleaned = fenced.group(1)
    try:
        report = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ReportParseError("AI response was not in valid JSON format", raw=text) from exc
    if not isinstance(report, dict):
        raise ReportParseError("AI response was not a JSON object", raw=text)
    return report


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def generate_marketing_report(data: Mapping[str, Any]) -> dict[str, Any]:
    """Ask the LLM for a marketing report about the page described by *data*.

    Args:
        data: ``url``, ``title``, ``description`` and ``content`` of an
            acquired page (see :meth:`AcquisitionResult.to_dict`).

    Returns:
        The parsed report object.

    Raises:
        ReportInputError: *data* has no title or no content.
        ReportParseError: The LLM reply is not a JSON object.
    """
    if not data or not data.get("title") or not data.get("content"):
        raise ReportInputError("Invalid data provided")

    prompt = REPORT_PROMPT.format(
        url=data.get("url", ""),
        title=data["title"],
        description=data.get("description", ""),
        content=data["content"],
    )

    logger.info("Generating marketing report for %s", data.get("url", "(unknown url)"))
    llm = _get_llm()
    response = llm.invoke(prompt)
    text = response.content if hasattr(response, "content") else str(response)

    try:
        return parse_report(text)
    except ReportParseError:
        logger.error("Unparseable report response: %.500s", text)
        raise
