"""Naver Search Ad API integration for related-keyword traffic statistics."""

import base64
import hashlib
import hmac
import logging
import os
import time
from typing import Any, Optional

import httpx

from keyword_journey.exceptions import ConfigurationError, NaverAPIError

logger = logging.getLogger(__name__)

NAVER_SEARCHAD_BASE_URL = "https://api.searchad.naver.com"
KEYWORDS_TOOL_PATH = "/keywordstool"

STAT_FIELDS = [
    "relKeyword",
    "monthlyPcQcCnt",
    "monthlyMobileQcCnt",
    "monthlyAvePcClkCnt",
    "monthlyAveMobileClkCnt",
    "monthlyAvePcCtr",
    "monthlyAveMobileCtr",
    "plAvgDepth",
    "compIdx",
]


def generate_signature(timestamp: str, method: str, path: str, secret_key: str) -> str:
    """Sign ``"{timestamp}.{METHOD}.{path}"`` with HMAC-SHA256 and base64-encode it.

    ``path`` must not include the query string.
    """
    message = timestamp + "." + method.upper() + "." + path
    digest = hmac.new(
        secret_key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def _mask(value: str, keep: int = 10) -> str:
    return value[:keep] + "..." if value else ""


class NaverSearchAdClient:
    """Client for the Naver Search Ad keyword tool.

    Usage::

        client = NaverSearchAdClient(api_key="...", secret_key="...", customer_id="...")
        rows = await client.get_related_keywords("카페", show_detail=True)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        customer_id: Optional[str] = None,
        base_url: str = NAVER_SEARCHAD_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key or os.getenv("NAVER_API_KEY", "")
        self._secret_key = secret_key or os.getenv("NAVER_SECRET_KEY", "")
        self._customer_id = customer_id or os.getenv("NAVER_CUSTOMER_ID", "")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key and self._secret_key and self._customer_id)

    def build_headers(self, method: str, path: str, timestamp: Optional[str] = None) -> dict[str, str]:
        """Build the signed request headers for ``method`` and ``path``."""
        if not self.is_configured:
            raise ConfigurationError(
                "NAVER_API_KEY, NAVER_SECRET_KEY and NAVER_CUSTOMER_ID are required."
            )
        ts = timestamp or str(int(time.time() * 1000))
        return {
            "X-Timestamp": ts,
            "X-API-KEY": self._api_key,
            "X-Customer": str(self._customer_id),
            "X-Signature": generate_signature(ts, method, path, self._secret_key),
            "Content-Type": "application/json",
        }

    async def get_related_keywords(
        self,
        hint_keywords: str,
        show_detail: bool = True,
        include_hint_keywords: bool = True,
        **extra_params: Any,
    ) -> list[dict[str, Any]]:
        """Fetch related keywords and monthly statistics for ``hint_keywords``.

        Raises:
            NaverAPIError: on a non-2xx response or a body that is not JSON.
        """
        params: dict[str, str] = {
            "hintKeywords": hint_keywords,
            "showDetail": "1" if show_detail else "0",
            "includeHintKeywords": "1" if include_hint_keywords else "0",
        }
        for key, value in extra_params.items():
            if value is not None:
                params[key] = str(value)

        headers = self.build_headers("GET", KEYWORDS_TOOL_PATH)
        logger.info(
            "Naver keywordstool request: hint=%r key=%s signature=%s",
            hint_keywords, _mask(headers["X-API-KEY"]), _mask(headers["X-Signature"]),
        )

        async with httpx.AsyncClient(
            base_url=self._base_url, timeout=self._timeout, transport=self._transport
        ) as client:
            response = await client.get(KEYWORDS_TOOL_PATH, params=params, headers=headers)

        logger.debug("Naver API response status: %d", response.status_code)
        if response.is_error:
            logger.error("Naver API error response: %s", response.text[:500])
            raise NaverAPIError(
                "API request failed: " + str(response.status_code) + " "
                + response.reason_phrase + " - " + response.text[:200],
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as exc:
            logger.error("Failed to parse Naver response: %s", response.text[:500])
            raise NaverAPIError("Invalid JSON response from API") from exc

        keyword_list = data.get("keywordList") if isinstance(data, dict) else None
        return keyword_list or []
