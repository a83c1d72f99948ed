"""Plain data types passed between the classifier, the service layer and callers."""

from dataclasses import dataclass, field
from typing import Any, Optional

from keyword_journey.modules.buyer_journey.stages import DEFAULT_STAGE, JourneyStage


@dataclass(frozen=True)
class ClassificationResult:
    """One keyword and its buyer-journey stage.

    ``classified`` is False when the stage is the fallback default rather than
    an answer from the backend or the rule table.
    """
    keyword: str
    stage: JourneyStage
    classified: bool = True

    @classmethod
    def fallback(cls, keyword: str) -> "ClassificationResult":
        return cls(keyword=keyword, stage=DEFAULT_STAGE, classified=False)

    def to_dict(self) -> dict[str, str]:
        return {"keyword": self.keyword, "stage": self.stage.value}


@dataclass
class ParseOutcome:
    """Parsed batch results plus diagnostics about what did not line up."""
    results: list[ClassificationResult]
    parsed_lines: int = 0
    unmatched: list[str] = field(default_factory=list)
    invalid_stages: list[str] = field(default_factory=list)


@dataclass
class BatchOutcome:
    """Terminal state of one batch: succeeded or fell back."""
    batch_index: int
    results: list[ClassificationResult]
    attempts: int
    fell_back: bool = False
    last_error: Optional[str] = None


@dataclass
class JourneyAnalysis:
    """Everything the classification endpoint reports back to its caller."""
    results: list[ClassificationResult]
    source: str
    message: str
    model: Optional[str] = None
    total_batches: Optional[int] = None
    total_keywords: Optional[int] = None
    error: Optional[str] = None

    def to_response(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "results": [r.to_dict() for r in self.results],
            "source": self.source,
        }
        if self.model is not None:
            payload["model"] = self.model
        if self.total_batches is not None:
            payload["totalBatches"] = self.total_batches
        if self.total_keywords is not None:
            payload["totalKeywords"] = self.total_keywords
        payload["message"] = self.message
        if self.error is not None:
            payload["error"] = self.error
        return payload
