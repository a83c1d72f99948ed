"""Buyer-journey analysis service: dummy mode, batched classification, and total fallback."""

import logging
from typing import Any, Optional

from keyword_journey.modules.buyer_journey.classifier import BatchClassifier, chunk_keywords
from keyword_journey.modules.buyer_journey.models import ClassificationResult, JourneyAnalysis
from keyword_journey.modules.buyer_journey.stages import classify_by_rules

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-5-nano"

AVAILABLE_MODELS = [
    ("gpt-5", "GPT-5"),
    ("gpt-5-mini", "GPT-5 Mini"),
    ("gpt-5-nano", "GPT-5 Nano"),
    ("gpt-4.1", "GPT-4.1"),
]

SOURCE_OPENAI = "openai"
SOURCE_DUMMY = "dummy"
SOURCE_FALLBACK = "fallback"


def validate_keywords(keywords: Any) -> bool:
    """True when ``keywords`` is a non-empty list."""
    return isinstance(keywords, list) and len(keywords) > 0


def classify_dummy(keywords: list[str]) -> list[ClassificationResult]:
    """Rule-based stages for when no LLM credential is configured."""
    return [
        ClassificationResult(keyword=kw, stage=classify_by_rules(kw))
        for kw in keywords
    ]


def annotate_keywords(
    rows: list[dict[str, Any]], results: list[ClassificationResult]
) -> list[dict[str, Any]]:
    """Copy keyword rows and attach each one's stage under ``buyerJourney``.

    Rows are matched on ``relKeyword``; rows with no result get no stage.
    """
    stages: dict[str, str] = {}
    for result in results:
        stages.setdefault(result.keyword, result.stage.value)
    annotated = []
    for row in rows:
        item = dict(row)
        stage = stages.get(str(row.get("relKeyword", "")))
        if stage:
            item["buyerJourney"] = stage
        else:
            item.pop("buyerJourney", None)
        annotated.append(item)
    return annotated


class JourneyAnalysisService:
    """Entry point used by the API, CLI and dashboard.

    With no classifier (no OpenAI key) it answers from the rule table. With a
    classifier it runs the batched pipeline, and if the concurrent dispatch
    itself blows up it still returns the default stage for every keyword.

    Usage::

        service = JourneyAnalysisService(classifier=BatchClassifier(backend))
        analysis = await service.analyze(["카페", "카페 가격"], model="gpt-4.1")
        payload = analysis.to_response()
    """

    def __init__(self, classifier: Optional[BatchClassifier] = None):
        self._classifier = classifier

    @property
    def is_configured(self) -> bool:
        return self._classifier is not None

    async def analyze(
        self, keywords: list[str], model: str = DEFAULT_MODEL
    ) -> JourneyAnalysis:
        keywords = [str(kw) for kw in keywords]
        model = model or DEFAULT_MODEL

        if self._classifier is None:
            logger.warning("OpenAI API key not configured. Returning rule-based dummy stages.")
            return JourneyAnalysis(
                results=classify_dummy(keywords),
                source=SOURCE_DUMMY,
                message="OpenAI API 키가 설정되지 않아 더미 데이터를 사용합니다.",
            )

        batch_count = len(chunk_keywords(keywords, self._classifier.batch_size))
        logger.info(
            "Processing %d keywords in batches of %d using %s",
            len(keywords), self._classifier.batch_size, model,
        )
        try:
            results = await self._classifier.classify(keywords, model)
        except Exception as exc:
            logger.error("Batch processing error: %s", exc, exc_info=True)
            return JourneyAnalysis(
                results=[ClassificationResult.fallback(kw) for kw in keywords],
                source=SOURCE_FALLBACK,
                message="배치 처리 실패로 기본값을 사용합니다.",
                error=str(exc) or exc.__class__.__name__,
            )

        return JourneyAnalysis(
            results=results,
            source=SOURCE_OPENAI,
            model=model,
            total_batches=batch_count,
            total_keywords=len(keywords),
            message=model + "을 사용하여 " + str(batch_count) + "개 배치를 병렬 처리했습니다.",
        )
