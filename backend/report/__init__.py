"""Marketing report generation from acquired page content."""

from backend.report.marketing import (
    ReportError,
    ReportInputError,
    ReportParseError,
    generate_marketing_report,
)

__all__ = ["generate_marketing_report", "ReportError", "ReportInputError", "ReportParseError"]
