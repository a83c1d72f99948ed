"""Per-stage aggregation of keyword statistics for charts, tables and reports.

Keyword rows are the dicts returned by the Naver keyword tool, optionally
annotated with a ``buyerJourney`` key holding a stage label.
"""

import logging
from typing import Any, Optional

from keyword_journey.modules.buyer_journey.stages import STAGE_LABELS
from keyword_journey.utils.helpers import parse_stat_number

logger = logging.getLogger(__name__)

STAGE_KEY = "buyerJourney"

METRIC_LABELS = {
    "count": "키워드 개수",
    "searchTotal": "검색수 합계",
    "searchPc": "PC 검색수",
    "searchMobile": "모바일 검색수",
    "clickTotal": "클릭수 합계",
    "clickPc": "PC 클릭수",
    "clickMobile": "모바일 클릭수",
}

NUMERIC_FIELDS = [
    "monthlyPcQcCnt",
    "monthlyMobileQcCnt",
    "monthlyAvePcClkCnt",
    "monthlyAveMobileClkCnt",
    "monthlyAvePcCtr",
    "monthlyAveMobileCtr",
    "plAvgDepth",
]

COMPETITION_LEVELS = ["low", "mid", "high"]


def parse_number(value: Any) -> float:
    """Parse a statistic for charting; ``"<10"`` counts as 5."""
    return parse_stat_number(value, below_threshold=5)


def _search_pc(row: dict) -> float:
    return parse_number(row.get("monthlyPcQcCnt", 0))


def _search_mobile(row: dict) -> float:
    return parse_number(row.get("monthlyMobileQcCnt", 0))


def _click_pc(row: dict) -> float:
    return parse_number(row.get("monthlyAvePcClkCnt", 0))


def _click_mobile(row: dict) -> float:
    return parse_number(row.get("monthlyAveMobileClkCnt", 0))


# ------------------------------------------------------------------
# Table helpers
# ------------------------------------------------------------------

def filter_keywords(
    keywords: list[dict], text: str = "", stage: Optional[str] = None
) -> list[dict]:
    """Case-insensitive substring filter on ``relKeyword`` plus an optional stage."""
    needle = text.strip().lower()
    out = []
    for row in keywords:
        if needle and needle not in str(row.get("relKeyword", "")).lower():
            continue
        if stage and stage != "all" and row.get(STAGE_KEY) != stage:
            continue
        out.append(row)
    return out


def sort_keywords(keywords: list[dict], field: str, descending: bool = False) -> list[dict]:
    """Stable sort by ``field``; numeric statistics compare as numbers."""
    if not field:
        return list(keywords)
    if field in NUMERIC_FIELDS:
        def key(row):
            return parse_stat_number(row.get(field, 0))
    else:
        def key(row):
            return str(row.get(field) or "")
    return sorted(keywords, key=key, reverse=descending)


def stage_summary(keywords: list[dict]) -> dict[str, int]:
    """Keyword count for every stage, in stage order, zeros included."""
    summary = {label: 0 for label in STAGE_LABELS}
    for row in keywords:
        stage = row.get(STAGE_KEY)
        if stage in summary:
            summary[stage] += 1
    return summary


def summarize_totals(keywords: list[dict]) -> dict[str, Any]:
    """Values for the totals row under the keyword table.

    Volumes are summed with ``"<10"`` read as 10, CTR and ad depth are plain
    means, and competition is a count per level.
    """
    count = len(keywords)
    totals = {
        "count": count,
        "monthlyPcQcCnt": 0.0,
        "monthlyMobileQcCnt": 0.0,
        "monthlyAvePcClkCnt": 0.0,
        "monthlyAveMobileClkCnt": 0.0,
        "monthlyAvePcCtr": 0.0,
        "monthlyAveMobileCtr": 0.0,
        "plAvgDepth": 0.0,
    }
    for row in keywords:
        for field in NUMERIC_FIELDS:
            totals[field] += parse_stat_number(row.get(field, 0))

    if count:
        for field in ("monthlyAvePcCtr", "monthlyAveMobileCtr", "plAvgDepth"):
            totals[field] = totals[field] / count

    totals["competition"] = {
        level: sum(1 for row in keywords if row.get("compIdx") == level)
        for level in COMPETITION_LEVELS
    }
    totals["totalSearch"] = totals["monthlyPcQcCnt"] + totals["monthlyMobileQcCnt"]
    return totals


# ------------------------------------------------------------------
# Journey report aggregates
# ------------------------------------------------------------------

def calculate_stage_data(keywords: list[dict]) -> list[dict[str, Any]]:
    """Aggregate count, search and click volume per stage.

    Stages without keywords are omitted; the remaining ones keep stage order.
    """
    stage_data = []
    for stage in STAGE_LABELS:
        in_stage = [row for row in keywords if row.get(STAGE_KEY) == stage]
        if not in_stage:
            continue
        search_pc = sum(_search_pc(row) for row in in_stage)
        search_mobile = sum(_search_mobile(row) for row in in_stage)
        click_pc = sum(_click_pc(row) for row in in_stage)
        click_mobile = sum(_click_mobile(row) for row in in_stage)
        stage_data.append({
            "name": stage,
            "count": len(in_stage),
            "searchTotal": search_pc + search_mobile,
            "searchPc": search_pc,
            "searchMobile": search_mobile,
            "clickTotal": click_pc + click_mobile,
            "clickPc": click_pc,
            "clickMobile": click_mobile,
        })
    logger.debug("Stage data computed for %d active stages", len(stage_data))
    return stage_data


def scatter_points(
    keywords: list[dict], distribution: str = "search", stage: str = "all"
) -> list[dict[str, Any]]:
    """PC/mobile points for classified keywords.

    Args:
        keywords: Keyword rows.
        distribution: ``"search"`` for query volume, ``"click"`` for clicks.
        stage: A stage label, or ``"all"``.
    """
    if distribution not in ("search", "click"):
        raise ValueError("distribution must be 'search' or 'click'")

    points = []
    for row in keywords:
        row_stage = row.get(STAGE_KEY)
        if not row_stage:
            continue
        if stage != "all" and row_stage != stage:
            continue
        if distribution == "search":
            pc, mobile = _search_pc(row), _search_mobile(row)
        else:
            pc, mobile = _click_pc(row), _click_mobile(row)
        points.append({
            "keyword": row.get("relKeyword", ""),
            "stage": row_stage,
            "pc": pc,
            "mobile": mobile,
            "total": pc + mobile,
        })
    return points


def top_keywords(
    keywords: list[dict], n: int = 5, distribution: str = "search", stage: str = "all"
) -> list[dict[str, Any]]:
    """The ``n`` largest scatter points by total."""
    points = scatter_points(keywords, distribution, stage)
    return sorted(points, key=lambda p: p["total"], reverse=True)[:n]


def journey_overview(keywords: list[dict]) -> dict[str, Any]:
    """Headline numbers: analyzed keywords, active stages and total search volume."""
    classified = [row for row in keywords if row.get(STAGE_KEY)]
    active = {row[STAGE_KEY] for row in classified}
    return {
        "analyzedKeywords": len(classified),
        "activeStages": sum(1 for label in STAGE_LABELS if label in active),
        "totalSearch": sum(_search_pc(r) + _search_mobile(r) for r in classified),
    }
