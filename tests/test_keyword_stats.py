"""Tests for the Naver Search Ad client, the keyword stats service and brand comparison."""

import base64
import hashlib
import hmac

import httpx
import pytest

from keyword_journey.exceptions import ConfigurationError, NaverAPIError
from keyword_journey.integrations.naver_searchad import (
    KEYWORDS_TOOL_PATH,
    NaverSearchAdClient,
    generate_signature,
)
from keyword_journey.modules.keyword_stats.brands import (
    clean_brand_inputs,
    compare_brands,
    summarize_brand,
)
from keyword_journey.modules.keyword_stats.service import (
    KeywordStatsService,
    dummy_keyword_rows,
    fallback_keyword_row,
)

SAMPLE_LIST = [
    {
        "relKeyword": "카페",
        "monthlyPcQcCnt": 12000,
        "monthlyMobileQcCnt": 56000,
        "monthlyAvePcClkCnt": 12.3,
        "monthlyAveMobileClkCnt": 45.6,
        "monthlyAvePcCtr": 0.1,
        "monthlyAveMobileCtr": 0.08,
        "plAvgDepth": 15,
        "compIdx": "high",
    }
]


def _client(handler, **kwargs):
    params = dict(api_key="license", secret_key="secret", customer_id="1234567")
    params.update(kwargs)
    return NaverSearchAdClient(transport=httpx.MockTransport(handler), **params)


# ===========================================================================
# Signing
# ===========================================================================
class TestSignature:

    def test_matches_hmac_sha256(self):
        expected = base64.b64encode(
            hmac.new(b"secret", b"1700000000000.GET./keywordstool", hashlib.sha256).digest()
        ).decode()
        assert generate_signature("1700000000000", "GET", "/keywordstool", "secret") == expected

    def test_method_uppercased(self):
        assert generate_signature("1", "get", "/p", "s") == generate_signature("1", "GET", "/p", "s")

    def test_changes_with_timestamp(self):
        assert generate_signature("1", "GET", "/p", "s") != generate_signature("2", "GET", "/p", "s")


class TestNaverSearchAdClient:

    def test_not_configured_without_env(self):
        client = NaverSearchAdClient()
        assert not client.is_configured
        with pytest.raises(ConfigurationError):
            client.build_headers("GET", KEYWORDS_TOOL_PATH)

    def test_reads_env(self, monkeypatch):
        monkeypatch.setenv("NAVER_API_KEY", "k")
        monkeypatch.setenv("NAVER_SECRET_KEY", "s")
        monkeypatch.setenv("NAVER_CUSTOMER_ID", "c")
        assert NaverSearchAdClient().is_configured

    def test_headers(self):
        client = NaverSearchAdClient(api_key="license", secret_key="secret", customer_id="1234567")
        headers = client.build_headers("GET", KEYWORDS_TOOL_PATH, timestamp="1700000000000")

        assert headers["X-Timestamp"] == "1700000000000"
        assert headers["X-API-KEY"] == "license"
        assert headers["X-Customer"] == "1234567"
        assert headers["X-Signature"] == generate_signature(
            "1700000000000", "GET", KEYWORDS_TOOL_PATH, "secret"
        )
        assert headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_get_related_keywords(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            seen["headers"] = request.headers
            return httpx.Response(200, json={"keywordList": SAMPLE_LIST})

        rows = await _client(handler).get_related_keywords("카페", show_detail=False)

        assert rows == SAMPLE_LIST
        assert seen["path"] == "/keywordstool"
        assert seen["params"] == {"hintKeywords": "카페", "showDetail": "0", "includeHintKeywords": "1"}
        ts = seen["headers"]["x-timestamp"]
        assert seen["headers"]["x-signature"] == generate_signature(ts, "GET", "/keywordstool", "secret")

    @pytest.mark.asyncio
    async def test_missing_keyword_list(self):
        rows = await _client(lambda request: httpx.Response(200, json={})).get_related_keywords("카페")
        assert rows == []

    @pytest.mark.asyncio
    async def test_error_status(self):
        def handler(request):
            return httpx.Response(403, text='{"title":"Forbidden"}')

        with pytest.raises(NaverAPIError) as exc_info:
            await _client(handler).get_related_keywords("카페")

        assert exc_info.value.status_code == 403
        assert str(exc_info.value).startswith("API request failed: 403 Forbidden")

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        with pytest.raises(NaverAPIError, match="Invalid JSON"):
            await _client(lambda request: httpx.Response(200, text="<html>")).get_related_keywords("카페")


# ===========================================================================
# Service
# ===========================================================================
class TestKeywordStatsService:

    @pytest.mark.asyncio
    async def test_dummy_rows_without_credentials(self):
        service = KeywordStatsService()
        rows = await service.fetch_keywords("캠핑")

        assert not service.is_configured
        assert rows == dummy_keyword_rows("캠핑")
        assert len(rows) == 5
        assert rows[0]["relKeyword"] == "캠핑"
        assert rows[3]["monthlyPcQcCnt"] == "<10"

    @pytest.mark.asyncio
    async def test_live_rows(self):
        service = KeywordStatsService(_client(lambda r: httpx.Response(200, json={"keywordList": SAMPLE_LIST})))
        assert await service.fetch_keywords("카페") == SAMPLE_LIST

    @pytest.mark.asyncio
    async def test_detail_flag_forwarded(self):
        seen = {}

        def handler(request):
            seen["showDetail"] = request.url.params["showDetail"]
            return httpx.Response(200, json={"keywordList": []})

        await KeywordStatsService(_client(handler)).fetch_keywords("카페", include_detail=True)
        assert seen["showDetail"] == "1"

    @pytest.mark.asyncio
    async def test_api_error_returns_fallback_row(self):
        service = KeywordStatsService(_client(lambda r: httpx.Response(500, text="boom")))
        rows = await service.fetch_keywords("카페")

        assert rows == [fallback_keyword_row("카페")]
        assert rows[0]["monthlyPcQcCnt"] == "N/A"

    @pytest.mark.asyncio
    async def test_fetch_many(self):
        result = await KeywordStatsService().fetch_many(["A", "B"])
        assert list(result) == ["A", "B"]
        assert result["B"][0]["relKeyword"] == "B"


# ===========================================================================
# Brand comparison
# ===========================================================================
class TestBrandComparison:

    def test_summarize_dummy_rows(self):
        summary = summarize_brand("A", dummy_keyword_rows("A"))

        assert summary.total_search_volume == pytest.approx(3379 + 17936)
        assert summary.total_click_volume == pytest.approx(336.9 + 1793.6)
        assert summary.avg_ctr == pytest.approx(7.77)
        assert summary.avg_position == pytest.approx(2.9)
        assert len(summary.keywords) == 5

    def test_keeps_top_twenty(self):
        rows = [{"relKeyword": "k" + str(i), "monthlyPcQcCnt": "1"} for i in range(30)]
        summary = summarize_brand("k", rows)

        assert len(summary.keywords) == 20
        assert summary.total_search_volume == 30

    def test_empty_rows(self):
        summary = summarize_brand("없음", [])
        assert summary.avg_ctr == 0.0
        assert summary.to_dict()["keywords"] == []

    def test_to_dict_is_camel_case(self):
        data = summarize_brand("A", dummy_keyword_rows("A")).to_dict()
        assert set(data) == {
            "brand", "keywords", "totalSearchVolume", "totalClickVolume", "avgCtr", "avgPosition",
        }
        assert data["avgCtr"] == pytest.approx(7.77)

    def test_clean_inputs(self):
        assert clean_brand_inputs([" 나이키 ", "", "아디다스", "  "]) == ["나이키", "아디다스"]

    @pytest.mark.parametrize("brands, message", [
        (["나이키", ""], "최소 2개"),
        (["a", "b", "c", "d", "e", "f"], "최대 5개"),
    ])
    def test_clean_inputs_bounds(self, brands, message):
        with pytest.raises(ValueError, match=message):
            clean_brand_inputs(brands)

    @pytest.mark.asyncio
    async def test_compare_brands_in_input_order(self):
        results = await compare_brands(KeywordStatsService(), ["나이키", "아디다스", "뉴발란스"])

        assert [c.brand for c in results] == ["나이키", "아디다스", "뉴발란스"]
        assert results[1].keywords[0]["relKeyword"] == "아디다스"
