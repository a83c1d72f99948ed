"""Reporting module -- stage aggregates, charts and report exports."""

from keyword_journey.modules.reporting.report_renderer import JourneyReportRenderer
from keyword_journey.modules.reporting.stage_metrics import (
    calculate_stage_data,
    parse_number,
    scatter_points,
    summarize_totals,
    top_keywords,
)

__all__ = [
    "JourneyReportRenderer",
    "calculate_stage_data",
    "parse_number",
    "scatter_points",
    "summarize_totals",
    "top_keywords",
]
