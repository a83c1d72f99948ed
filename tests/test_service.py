"""Tests for the journey analysis service and the OpenAI backend request shapes."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from keyword_journey.exceptions import BatchRequestError, ConfigurationError
from keyword_journey.modules.buyer_journey.backend import (
    CHAT_ENDPOINT,
    RESPONSES_ENDPOINT,
    OpenAIJourneyBackend,
    build_backend_request,
    extract_response_text,
    is_reasoning_model,
)
from keyword_journey.modules.buyer_journey.classifier import BatchClassifier, RetryPolicy
from keyword_journey.modules.buyer_journey.models import ClassificationResult
from keyword_journey.modules.buyer_journey.prompts import PERSONA
from keyword_journey.modules.buyer_journey.service import (
    DEFAULT_MODEL,
    JourneyAnalysisService,
    annotate_keywords,
    classify_dummy,
    validate_keywords,
)
from keyword_journey.modules.buyer_journey.stages import JourneyStage


# ===========================================================================
# Service
# ===========================================================================
class TestValidateKeywords:

    @pytest.mark.parametrize("value, expected", [
        (["카페"], True),
        ([], False),
        (None, False),
        ("카페", False),
        ({"keywords": ["카페"]}, False),
    ])
    def test_validate(self, value, expected):
        assert validate_keywords(value) is expected


class TestJourneyAnalysisService:

    @pytest.mark.asyncio
    async def test_dummy_mode(self):
        service = JourneyAnalysisService()
        analysis = await service.analyze(["카페 비교", "카페"], "gpt-4.1")
        payload = analysis.to_response()

        assert not service.is_configured
        assert payload["source"] == "dummy"
        assert payload["results"] == [
            {"keyword": "카페 비교", "stage": "대안 평가"},
            {"keyword": "카페", "stage": "정보 탐색"},
        ]
        assert "model" not in payload
        assert "더미 데이터" in payload["message"]

    @pytest.mark.asyncio
    async def test_classified_response(self, fake_backend_cls):
        service = JourneyAnalysisService(BatchClassifier(fake_backend_cls(), batch_size=2))
        analysis = await service.analyze(["카페 가격", "카페 후기", "카페 주문"], "gpt-4.1")
        payload = analysis.to_response()

        assert payload["source"] == "openai"
        assert payload["model"] == "gpt-4.1"
        assert payload["totalBatches"] == 2
        assert payload["totalKeywords"] == 3
        assert payload["message"] == "gpt-4.1을 사용하여 2개 배치를 병렬 처리했습니다."
        assert [r["stage"] for r in payload["results"]] == ["구매 결정", "구매 후 행동", "구매 행동"]

    @pytest.mark.asyncio
    async def test_default_model_when_blank(self, fake_backend_cls):
        backend = fake_backend_cls()
        analysis = await JourneyAnalysisService(BatchClassifier(backend)).analyze(["카페"], "")
        assert analysis.model == DEFAULT_MODEL
        assert backend.calls[0][3] == DEFAULT_MODEL

    @pytest.mark.asyncio
    async def test_batch_failures_stay_openai_source(self, fake_backend_cls, recorded_delays):
        _, sleep = recorded_delays
        classifier = BatchClassifier(
            fake_backend_cls(failures={0: 99}), retry_policy=RetryPolicy(sleep=sleep)
        )
        analysis = await JourneyAnalysisService(classifier).analyze(["카페 가격"], "gpt-4.1")

        assert analysis.source == "openai"
        assert analysis.results[0].stage is JourneyStage.INFORMATION_SEARCH

    @pytest.mark.asyncio
    async def test_total_failure_falls_back(self):
        classifier = MagicMock()
        classifier.batch_size = 50
        classifier.classify = AsyncMock(side_effect=RuntimeError("dispatch exploded"))

        analysis = await JourneyAnalysisService(classifier).analyze(["카페 가격", "카페"], "gpt-4.1")
        payload = analysis.to_response()

        assert payload["source"] == "fallback"
        assert payload["error"] == "dispatch exploded"
        assert payload["message"] == "배치 처리 실패로 기본값을 사용합니다."
        assert [r["stage"] for r in payload["results"]] == ["정보 탐색", "정보 탐색"]

    def test_classify_dummy_preserves_order(self):
        results = classify_dummy(["카페 후기", "카페 뜻"])
        assert [r.stage for r in results] == [JourneyStage.POST_PURCHASE, JourneyStage.PROBLEM_RECOGNITION]


class TestAnnotateKeywords:

    def test_attaches_stage_by_keyword(self):
        rows = [{"relKeyword": "카페"}, {"relKeyword": "카페 가격", "buyerJourney": "구매 행동"}]
        results = [
            ClassificationResult("카페 가격", JourneyStage.PURCHASE_DECISION),
            ClassificationResult("카페", JourneyStage.INFORMATION_SEARCH),
        ]

        annotated = annotate_keywords(rows, results)

        assert annotated[0]["buyerJourney"] == "정보 탐색"
        assert annotated[1]["buyerJourney"] == "구매 결정"
        assert "buyerJourney" not in rows[0]

    def test_unmatched_row_loses_stale_stage(self):
        annotated = annotate_keywords([{"relKeyword": "x", "buyerJourney": "구매 행동"}], [])
        assert "buyerJourney" not in annotated[0]


# ===========================================================================
# Backend request shapes
# ===========================================================================
class TestBuildBackendRequest:

    def test_reasoning_family(self):
        assert is_reasoning_model("gpt-5")
        assert is_reasoning_model("gpt-5-nano")
        assert not is_reasoning_model("gpt-4.1")

    @pytest.mark.parametrize("model, effort, verbosity", [
        ("gpt-5", "medium", "high"),
        ("gpt-5-mini", "low", "high"),
        ("gpt-5-nano", "low", "medium"),
    ])
    def test_responses_request(self, model, effort, verbosity):
        request = build_backend_request(model, "PROMPT")

        assert request.endpoint == RESPONSES_ENDPOINT
        assert request.body["model"] == model
        assert request.body["input"] == PERSONA + "\n\nPROMPT"
        assert request.body["reasoning"] == {"effort": effort}
        assert request.body["text"] == {"verbosity": verbosity}
        assert "temperature" not in request.body

    @pytest.mark.parametrize("model", ["gpt-4.1", "some-unknown-model"])
    def test_chat_request(self, model):
        request = build_backend_request(model, "PROMPT", temperature=0.3, max_tokens=2000)

        assert request.endpoint == CHAT_ENDPOINT
        assert request.body["messages"] == [
            {"role": "system", "content": PERSONA},
            {"role": "user", "content": "PROMPT"},
        ]
        assert request.body["temperature"] == 0.3
        assert request.body["max_tokens"] == 2000

    def test_extract_response_text(self):
        chat = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="a|정보 탐색"))])
        assert extract_response_text(CHAT_ENDPOINT, chat) == "a|정보 탐색"
        assert extract_response_text(CHAT_ENDPOINT, SimpleNamespace(choices=[])) == ""
        assert extract_response_text(RESPONSES_ENDPOINT, SimpleNamespace(output_text="b|구매 행동")) == "b|구매 행동"


class TestOpenAIJourneyBackend:

    def _client(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="카페|정보 탐색"))]
        ))
        client.responses.create = AsyncMock(return_value=SimpleNamespace(output_text="카페|구매 결정"))
        return client

    def test_requires_key(self):
        with pytest.raises(ConfigurationError):
            OpenAIJourneyBackend()

    @pytest.mark.asyncio
    async def test_chat_model(self):
        client = self._client()
        text = await OpenAIJourneyBackend(client=client)(["카페"], "gpt-4.1", 0, 0)

        assert text == "카페|정보 탐색"
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4.1"
        assert "1. 카페" in kwargs["messages"][1]["content"]
        client.responses.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_reasoning_model(self):
        client = self._client()
        text = await OpenAIJourneyBackend(client=client)(["카페"], "gpt-5-nano", 0, 1)

        assert text == "카페|구매 결정"
        assert client.responses.create.call_args.kwargs["reasoning"] == {"effort": "low"}

    @pytest.mark.asyncio
    async def test_status_error_becomes_batch_error(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        response = httpx.Response(500, request=request)
        client = self._client()
        client.chat.completions.create = AsyncMock(
            side_effect=openai.APIStatusError("server error", response=response, body=None)
        )

        with pytest.raises(BatchRequestError) as exc_info:
            await OpenAIJourneyBackend(client=client)(["카페"], "gpt-4.1", 2, 0)

        assert exc_info.value.status_code == 500
        assert exc_info.value.batch_index == 2
        assert str(exc_info.value) == "Batch 3 failed: 500 Internal Server Error"
