"""Tests for the Typer CLI."""

from __future__ import annotations

import json
from unittest.mock import patch

from typer.testing import CliRunner

from backend.report.marketing import ReportParseError
from backend.scraper.errors import AllStrategiesExhaustedError
from backend.scraper.models import AcquisitionResult
from cli.main import app

runner = CliRunner()

_RESULT = AcquisitionResult(
    url="https://acme.example",
    title="Acme",
    description="Widgets.",
    content="We build widgets.",
    extraction_method="headless-chromium+readability",
)


def test_scrape_prints_content() -> None:
    with patch("cli.main.acquire_sync", return_value=_RESULT) as acquire:
        result = runner.invoke(app, ["scrape", "--url", "acme.example"])

    assert result.exit_code == 0
    assert "Acme" in result.stdout
    assert "headless-chromium+readability" in result.stdout
    assert "We build widgets." in result.stdout
    acquire.assert_called_once_with("acme.example")


def test_scrape_json_output() -> None:
    with patch("cli.main.acquire_sync", return_value=_RESULT):
        result = runner.invoke(app, ["scrape", "--url", "acme.example", "--json"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout[result.stdout.index("{"):])
    assert payload["title"] == "Acme"
    assert payload["extractionMethod"] == "headless-chromium+readability"


def test_scrape_failure_exits_nonzero() -> None:
    error = AllStrategiesExhaustedError("https://down.example", network_unreachable=True)
    with patch("cli.main.acquire_sync", side_effect=error):
        result = runner.invoke(app, ["scrape", "--url", "down.example"])

    assert result.exit_code == 1
    assert "SCRAPING_BLOCKED" in result.output


def test_report_prints_json() -> None:
    with patch("cli.main.acquire_sync", return_value=_RESULT), \
            patch("backend.report.marketing.generate_marketing_report",
                  return_value={"productName": "Acme"}) as generate:
        result = runner.invoke(app, ["report", "--url", "acme.example"])

    assert result.exit_code == 0
    assert '"productName": "Acme"' in result.stdout
    generate.assert_called_once_with(_RESULT.to_dict())


def test_report_parse_failure_exits_nonzero() -> None:
    error = ReportParseError("AI response was not in valid JSON format", raw="nope")
    with patch("cli.main.acquire_sync", return_value=_RESULT), \
            patch("backend.report.marketing.generate_marketing_report", side_effect=error):
        result = runner.invoke(app, ["report", "--url", "acme.example"])

    assert result.exit_code == 1
    assert "not in valid JSON" in result.output
