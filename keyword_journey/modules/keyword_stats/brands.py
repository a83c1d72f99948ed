"""Brand comparison: aggregate keyword statistics per brand seed."""

import logging
from dataclasses import dataclass, field
from typing import Any

from keyword_journey.utils.helpers import parse_stat_number

logger = logging.getLogger(__name__)

MIN_BRANDS = 2
MAX_BRANDS = 5
TOP_KEYWORDS = 20


@dataclass
class BrandComparison:
    """Aggregated statistics for one brand keyword."""
    brand: str
    keywords: list[dict[str, Any]] = field(default_factory=list)
    total_search_volume: float = 0.0
    total_click_volume: float = 0.0
    avg_ctr: float = 0.0
    avg_position: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "brand": self.brand,
            "keywords": self.keywords,
            "totalSearchVolume": self.total_search_volume,
            "totalClickVolume": self.total_click_volume,
            "avgCtr": round(self.avg_ctr, 2),
            "avgPosition": round(self.avg_position, 1),
        }


def summarize_brand(brand: str, rows: list[dict[str, Any]]) -> BrandComparison:
    """Sum volumes and average CTR/ad depth over all related keywords of a brand.

    Only the first twenty keywords are kept for display; totals use every row.
    """
    total_search = 0.0
    total_click = 0.0
    ctr_sum = 0.0
    depth_sum = 0.0
    for row in rows:
        total_search += parse_stat_number(row.get("monthlyPcQcCnt", "0"))
        total_search += parse_stat_number(row.get("monthlyMobileQcCnt", "0"))
        total_click += parse_stat_number(row.get("monthlyAvePcClkCnt", "0"))
        total_click += parse_stat_number(row.get("monthlyAveMobileClkCnt", "0"))
        pc_ctr = parse_stat_number(row.get("monthlyAvePcCtr", "0"))
        mobile_ctr = parse_stat_number(row.get("monthlyAveMobileCtr", "0"))
        ctr_sum += (pc_ctr + mobile_ctr) / 2
        depth_sum += parse_stat_number(row.get("plAvgDepth", "0"))

    count = len(rows)
    kept = []
    for row in rows[:TOP_KEYWORDS]:
        item = dict(row)
        item["relKeyword"] = item.get("relKeyword") or brand
        kept.append(item)

    summary = BrandComparison(
        brand=brand,
        keywords=kept,
        total_search_volume=total_search,
        total_click_volume=total_click,
        avg_ctr=ctr_sum / count if count else 0.0,
        avg_position=depth_sum / count if count else 0.0,
    )
    logger.debug(
        "Brand %r: %d keywords, search=%.0f click=%.0f",
        brand, count, total_search, total_click,
    )
    return summary


def clean_brand_inputs(brands: list[str]) -> list[str]:
    """Drop blank entries and surrounding whitespace.

    Raises:
        ValueError: when fewer than two or more than five brands remain.
    """
    cleaned = [b.strip() for b in brands if b and b.strip()]
    if len(cleaned) < MIN_BRANDS:
        raise ValueError("최소 2개 이상의 브랜드 키워드를 입력해주세요.")
    if len(cleaned) > MAX_BRANDS:
        raise ValueError("브랜드는 최대 5개까지 비교할 수 있습니다.")
    return cleaned


async def compare_brands(stats_service, brands: list[str]) -> list[BrandComparison]:
    """Look up every brand concurrently and summarize each one, in input order."""
    cleaned = clean_brand_inputs(brands)
    rows_by_brand = await stats_service.fetch_many(cleaned, include_detail=True)
    return [summarize_brand(brand, rows_by_brand.get(brand, [])) for brand in cleaned]
