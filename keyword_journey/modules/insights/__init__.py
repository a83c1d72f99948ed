"""Insights module -- LLM marketing, budget, landing, DA and SA strategies."""

from keyword_journey.modules.insights.generator import (
    InsightGenerator,
    build_data_context,
    build_prompts,
)
from keyword_journey.modules.insights.prompts import INSIGHT_TYPES

__all__ = ["InsightGenerator", "build_data_context", "build_prompts", "INSIGHT_TYPES"]
