"""Shared pytest fixtures for Keyword Journey tests."""

import asyncio
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Ensure project root is on sys.path so 'keyword_journey' is importable.
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from keyword_journey.exceptions import BatchRequestError
from keyword_journey.modules.buyer_journey.stages import classify_by_rules

CREDENTIAL_VARS = (
    "OPENAI_API_KEY",
    "GEMINI_API_KEY",
    "NAVER_API_KEY",
    "NAVER_SECRET_KEY",
    "NAVER_CUSTOMER_ID",
)


class FakeBackend:
    """Scripted classification backend.

    ``failures`` maps a batch index to how many leading attempts raise a 500;
    answers otherwise follow the rule table, or ``responder`` when given.
    """

    def __init__(self, failures=None, responder=None):
        self.failures = failures or {}
        self.responder = responder
        self.calls = []
        self.active = 0
        self.max_active = 0

    async def __call__(self, keywords, model, batch_index, attempt):
        self.calls.append((batch_index, attempt, list(keywords), model))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            # let other batches start before this one finishes
            await asyncio.sleep(0)
            if attempt < self.failures.get(batch_index, 0):
                raise BatchRequestError(batch_index, 500, "Internal Server Error")
            if self.responder is not None:
                return self.responder(keywords)
            return "\n".join(kw + "|" + classify_by_rules(kw).value for kw in keywords)
        finally:
            self.active -= 1

    def attempts_for(self, batch_index):
        return [attempt for idx, attempt, _, _ in self.calls if idx == batch_index]


@pytest.fixture(autouse=True)
def _clear_credentials(monkeypatch):
    """Autouse fixture: no test sees real API credentials from the environment."""
    for name in CREDENTIAL_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def fake_backend_cls():
    return FakeBackend


@pytest.fixture()
def recorded_delays():
    """A list that collects every backoff delay, plus a sleep that appends to it."""
    delays = []

    async def _sleep(seconds):
        delays.append(seconds)

    return delays, _sleep


@pytest.fixture()
def mock_llm_client():
    """Return a mock LLMClient that answers every prompt with canned JSON."""
    client = MagicMock()
    client.is_configured = True
    client.generate_json_completion = AsyncMock(
        return_value='{"summary": "검색 광고 중심 전략", "stages": {"정보 탐색": {"strategy": "블로그"}}}'
    )
    return client


@pytest.fixture()
def classified_rows():
    """Keyword rows as annotated by the dashboard after classification."""
    return [
        {
            "relKeyword": "캠핑의자",
            "monthlyPcQcCnt": "1200",
            "monthlyMobileQcCnt": "4800",
            "monthlyAvePcClkCnt": "30.5",
            "monthlyAveMobileClkCnt": "120.5",
            "monthlyAvePcCtr": "2.5",
            "monthlyAveMobileCtr": "3.5",
            "plAvgDepth": "10",
            "compIdx": "high",
            "buyerJourney": "정보 탐색",
        },
        {
            "relKeyword": "캠핑의자 추천",
            "monthlyPcQcCnt": "<10",
            "monthlyMobileQcCnt": "300",
            "monthlyAvePcClkCnt": "0",
            "monthlyAveMobileClkCnt": "12",
            "monthlyAvePcCtr": "0",
            "monthlyAveMobileCtr": "4",
            "plAvgDepth": "6",
            "compIdx": "mid",
            "buyerJourney": "정보 탐색",
        },
        {
            "relKeyword": "캠핑의자 가격",
            "monthlyPcQcCnt": "500",
            "monthlyMobileQcCnt": "1500",
            "monthlyAvePcClkCnt": "20",
            "monthlyAveMobileClkCnt": "80",
            "monthlyAvePcCtr": "4",
            "monthlyAveMobileCtr": "5",
            "plAvgDepth": "8",
            "compIdx": "high",
            "buyerJourney": "구매 결정",
        },
        {
            "relKeyword": "캠핑의자 후기",
            "monthlyPcQcCnt": "100",
            "monthlyMobileQcCnt": "900",
            "monthlyAvePcClkCnt": "1",
            "monthlyAveMobileClkCnt": "9",
            "monthlyAvePcCtr": "1",
            "monthlyAveMobileCtr": "1",
            "plAvgDepth": "4",
            "compIdx": "low",
            "buyerJourney": "구매 후 행동",
        },
    ]


@pytest.fixture()
def journey_app(tmp_path):
    """A KeywordJourneyApp on the real settings.yaml and an empty .env."""
    from keyword_journey.app import DEFAULT_CONFIG_PATH, KeywordJourneyApp

    app = KeywordJourneyApp(config_path=str(DEFAULT_CONFIG_PATH), env_path=str(tmp_path / ".env"))
    app.initialize()
    return app
