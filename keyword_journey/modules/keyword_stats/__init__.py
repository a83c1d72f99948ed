"""Keyword Stats module -- related-keyword lookups and brand comparisons."""

from keyword_journey.modules.keyword_stats.service import (
    KeywordStatsService,
    dummy_keyword_rows,
    fallback_keyword_row,
)
from keyword_journey.modules.keyword_stats.brands import BrandComparison, compare_brands

__all__ = [
    "KeywordStatsService",
    "dummy_keyword_rows",
    "fallback_keyword_row",
    "BrandComparison",
    "compare_brands",
]
