"""Buyer-journey stage taxonomy and the rule-based stage matcher used in dummy mode."""

import logging
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class JourneyStage(str, Enum):
    """The six buyer-journey stages. Values are the labels the LLM answers with."""

    PROBLEM_RECOGNITION = "문제 인식"
    INFORMATION_SEARCH = "정보 탐색"
    ALTERNATIVE_EVALUATION = "대안 평가"
    PURCHASE_DECISION = "구매 결정"
    PURCHASE_ACTION = "구매 행동"
    POST_PURCHASE = "구매 후 행동"

    @classmethod
    def from_label(cls, label: str) -> Optional["JourneyStage"]:
        """Return the stage whose label equals ``label`` (trimmed), or None."""
        cleaned = (label or "").strip()
        for stage in cls:
            if stage.value == cleaned:
                return stage
        return None

    @property
    def english_name(self) -> str:
        return _ENGLISH_NAMES[self]


DEFAULT_STAGE = JourneyStage.INFORMATION_SEARCH

STAGE_ORDER: list[JourneyStage] = list(JourneyStage)

STAGE_LABELS: list[str] = [stage.value for stage in JourneyStage]

_ENGLISH_NAMES = {
    JourneyStage.PROBLEM_RECOGNITION: "Problem Recognition",
    JourneyStage.INFORMATION_SEARCH: "Information Search",
    JourneyStage.ALTERNATIVE_EVALUATION: "Alternative Evaluation",
    JourneyStage.PURCHASE_DECISION: "Purchase Decision",
    JourneyStage.PURCHASE_ACTION: "Purchase Action",
    JourneyStage.POST_PURCHASE: "Post-Purchase Behavior",
}

STAGE_COLORS = {
    JourneyStage.PROBLEM_RECOGNITION.value: "#3B82F6",
    JourneyStage.INFORMATION_SEARCH.value: "#06B6D4",
    JourneyStage.ALTERNATIVE_EVALUATION.value: "#8B5CF6",
    JourneyStage.PURCHASE_DECISION.value: "#F59E0B",
    JourneyStage.PURCHASE_ACTION.value: "#10B981",
    JourneyStage.POST_PURCHASE.value: "#6B7280",
}

# Checked top to bottom; the first row with a matching cue wins.
STAGE_RULES: list[tuple[JourneyStage, tuple[str, ...]]] = [
    (JourneyStage.PROBLEM_RECOGNITION, ("이란", "뜻", "개념", "문제점")),
    (JourneyStage.INFORMATION_SEARCH, ("추천", "종류", "방법", "정보")),
    (JourneyStage.ALTERNATIVE_EVALUATION, ("비교", "vs", "차이", "장단점")),
    (JourneyStage.PURCHASE_DECISION, ("가격", "할인", "최저가", "비용")),
    (JourneyStage.PURCHASE_ACTION, ("구매", "구입", "주문", "예약")),
    (JourneyStage.POST_PURCHASE, ("후기", "리뷰", "평가", "만족")),
]


def classify_by_rules(keyword: str) -> JourneyStage:
    """Assign a stage from substring cues in the keyword.

    Examples:
        >>> classify_by_rules("카페 비교").value
        '대안 평가'
        >>> classify_by_rules("카페").value
        '정보 탐색'
    """
    lowered = keyword.lower()
    for stage, cues in STAGE_RULES:
        if any(cue in lowered for cue in cues):
            return stage
    return DEFAULT_STAGE
