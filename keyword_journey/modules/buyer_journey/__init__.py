"""Buyer Journey module -- six-stage taxonomy and the batched LLM classifier."""

from keyword_journey.modules.buyer_journey.stages import (
    DEFAULT_STAGE,
    JourneyStage,
    classify_by_rules,
)
from keyword_journey.modules.buyer_journey.models import ClassificationResult, JourneyAnalysis
from keyword_journey.modules.buyer_journey.backend import OpenAIJourneyBackend
from keyword_journey.modules.buyer_journey.classifier import BatchClassifier, RetryPolicy
from keyword_journey.modules.buyer_journey.service import (
    AVAILABLE_MODELS,
    DEFAULT_MODEL,
    JourneyAnalysisService,
    annotate_keywords,
)

__all__ = [
    "AVAILABLE_MODELS",
    "DEFAULT_MODEL",
    "annotate_keywords",
    "DEFAULT_STAGE",
    "JourneyStage",
    "classify_by_rules",
    "ClassificationResult",
    "JourneyAnalysis",
    "OpenAIJourneyBackend",
    "BatchClassifier",
    "RetryPolicy",
    "JourneyAnalysisService",
]
