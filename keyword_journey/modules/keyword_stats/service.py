"""Keyword statistics service: Naver lookups with dummy and fallback rows."""

import asyncio
import logging
from typing import Any, Optional

from keyword_journey.integrations.naver_searchad import NaverSearchAdClient

logger = logging.getLogger(__name__)


def dummy_keyword_rows(keyword: str) -> list[dict[str, str]]:
    """Fixed sample rows returned when Naver credentials are not configured."""
    return [
        {
            "relKeyword": keyword,
            "monthlyPcQcCnt": "1234",
            "monthlyMobileQcCnt": "5678",
            "monthlyAvePcClkCnt": "123.4",
            "monthlyAveMobileClkCnt": "567.8",
            "monthlyAvePcCtr": "10.5",
            "monthlyAveMobileCtr": "8.3",
            "plAvgDepth": "2.1",
            "compIdx": "low",
        },
        {
            "relKeyword": keyword + " 추천",
            "monthlyPcQcCnt": "890",
            "monthlyMobileQcCnt": "2345",
            "monthlyAvePcClkCnt": "89.0",
            "monthlyAveMobileClkCnt": "234.5",
            "monthlyAvePcCtr": "7.2",
            "monthlyAveMobileCtr": "9.1",
            "plAvgDepth": "3.5",
            "compIdx": "mid",
        },
        {
            "relKeyword": keyword + " 가격",
            "monthlyPcQcCnt": "456",
            "monthlyMobileQcCnt": "1890",
            "monthlyAvePcClkCnt": "45.6",
            "monthlyAveMobileClkCnt": "189.0",
            "monthlyAvePcCtr": "5.8",
            "monthlyAveMobileCtr": "6.4",
            "plAvgDepth": "4.2",
            "compIdx": "high",
        },
        {
            "relKeyword": keyword + " 후기",
            "monthlyPcQcCnt": "<10",
            "monthlyMobileQcCnt": "3456",
            "monthlyAvePcClkCnt": "0",
            "monthlyAveMobileClkCnt": "345.6",
            "monthlyAvePcCtr": "0",
            "monthlyAveMobileCtr": "11.2",
            "plAvgDepth": "1.8",
            "compIdx": "low",
        },
        {
            "relKeyword": keyword + " 비교",
            "monthlyPcQcCnt": "789",
            "monthlyMobileQcCnt": "4567",
            "monthlyAvePcClkCnt": "78.9",
            "monthlyAveMobileClkCnt": "456.7",
            "monthlyAvePcCtr": "8.9",
            "monthlyAveMobileCtr": "10.3",
            "plAvgDepth": "2.9",
            "compIdx": "mid",
        },
    ]


def fallback_keyword_row(keyword: str) -> dict[str, str]:
    """Single zeroed row returned when the Naver API call fails."""
    return {
        "relKeyword": keyword,
        "monthlyPcQcCnt": "N/A",
        "monthlyMobileQcCnt": "N/A",
        "monthlyAvePcClkCnt": "0",
        "monthlyAveMobileClkCnt": "0",
        "monthlyAvePcCtr": "0",
        "monthlyAveMobileCtr": "0",
        "plAvgDepth": "0",
        "compIdx": "low",
    }


class KeywordStatsService:
    """Fetch related keywords for a seed; never raises for provider failures.

    Usage::

        service = KeywordStatsService(NaverSearchAdClient())
        rows = await service.fetch_keywords("카페", include_detail=True)
    """

    def __init__(self, client: Optional[NaverSearchAdClient] = None):
        self._client = client or NaverSearchAdClient()

    @property
    def is_configured(self) -> bool:
        return self._client.is_configured

    async def fetch_keywords(
        self, keyword: str, include_detail: bool = True
    ) -> list[dict[str, Any]]:
        if not self._client.is_configured:
            logger.warning("Naver API credentials not configured. Returning dummy data.")
            return dummy_keyword_rows(keyword)

        try:
            return await self._client.get_related_keywords(
                keyword, show_detail=include_detail, include_hint_keywords=True,
            )
        except Exception as exc:
            logger.error("Naver API error for %r: %s", keyword, exc)
            return [fallback_keyword_row(keyword)]

    async def fetch_many(
        self, keywords: list[str], include_detail: bool = True
    ) -> dict[str, list[dict[str, Any]]]:
        """Fetch several seeds concurrently, keyed by seed keyword."""
        rows = await asyncio.gather(
            *(self.fetch_keywords(kw, include_detail) for kw in keywords)
        )
        return dict(zip(keywords, rows))
