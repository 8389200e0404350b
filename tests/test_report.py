"""Tests for the marketing report collaborator.

LLM calls are mocked: ``backend.report.marketing._get_llm`` returns a
``MagicMock`` whose ``.invoke()`` returns a fake ``AIMessage``-like object.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from backend.report.marketing import (
    ReportInputError,
    ReportParseError,
    generate_marketing_report,
    parse_report,
)

_DATA = {
    "url": "https://acme.example",
    "title": "Acme",
    "description": "Widgets for workshops.",
    "content": "We build widgets for every workshop in the country.",
}


def _fake_llm(content: str) -> MagicMock:
    llm = MagicMock()
    llm.invoke.return_value = SimpleNamespace(content=content)
    return llm


class TestGenerateMarketingReport:
    def test_returns_parsed_report(self) -> None:
        llm = _fake_llm('{"productName": "Acme", "category": "E-commerce"}')
        with patch("backend.report.marketing._get_llm", return_value=llm):
            report = generate_marketing_report(_DATA)

        assert report == {"productName": "Acme", "category": "E-commerce"}

    def test_prompt_contains_page_data(self) -> None:
        llm = _fake_llm("{}")
        with patch("backend.report.marketing._get_llm", return_value=llm):
            generate_marketing_report(_DATA)

        prompt = llm.invoke.call_args.args[0]
        for value in _DATA.values():
            assert value in prompt
        assert '"productName"' in prompt
        assert '"weeklyCalendar"' in prompt

    def test_invalid_json_surfaces_parse_error_without_retry(self) -> None:
        llm = _fake_llm("Sure! Here is your report: productName = Acme")
        with patch("backend.report.marketing._get_llm", return_value=llm):
            with pytest.raises(ReportParseError) as excinfo:
                generate_marketing_report(_DATA)

        assert llm.invoke.call_count == 1
        assert "productName = Acme" in excinfo.value.raw

    @pytest.mark.parametrize("missing", ["title", "content"])
    def test_missing_fields_rejected_before_llm_call(self, missing: str) -> None:
        data = {**_DATA, missing: ""}
        with patch("backend.report.marketing._get_llm") as get_llm:
            with pytest.raises(ReportInputError):
                generate_marketing_report(data)

        get_llm.assert_not_called()


class TestParseReport:
    def test_plain_object(self) -> None:
        assert parse_report('  {"a": 1}\n') == {"a": 1}

    def test_code_fence_tolerated(self) -> None:
        assert parse_report('```json\n{"a": 1}\n```') == {"a": 1}

    def test_array_rejected(self) -> None:
        with pytest.raises(ReportParseError):
            parse_report("[1, 2, 3]")

    def test_truncated_json_rejected(self) -> None:
        with pytest.raises(ReportParseError):
            parse_report('{"productName": "Ac')
