"""Marketing insight generation from stage-classified keyword rows."""

import logging
from typing import Any, Optional

from keyword_journey.exceptions import InvalidInsightTypeError
from keyword_journey.integrations.llm_client import LLMClient, parse_json_content
from keyword_journey.modules.buyer_journey.stages import STAGE_LABELS
from keyword_journey.modules.insights.prompts import INSIGHT_PROMPTS, INSIGHT_TYPES
from keyword_journey.modules.reporting.stage_metrics import STAGE_KEY

logger = logging.getLogger(__name__)

INSIGHT_MODEL = "gpt-4.1"
INSIGHT_TEMPERATURE = 0.7
INSIGHT_MAX_TOKENS = 2000
SAMPLE_SIZE = 5


def group_by_stage(keywords: list[dict]) -> dict[str, list[dict]]:
    """Bucket keyword rows by ``buyerJourney``; every stage is present."""
    grouped: dict[str, list[dict]] = {label: [] for label in STAGE_LABELS}
    for row in keywords:
        stage = row.get(STAGE_KEY)
        if stage in grouped:
            grouped[stage].append(row)
    return grouped


def build_data_context(keywords: list[dict]) -> str:
    """Summarize the keyword set for the prompt: counts, then up to five samples per stage."""
    grouped = group_by_stage(keywords)
    lines = ["", "구매여정 단계별 키워드 분포:"]
    for stage, rows in grouped.items():
        lines.append("- " + stage + ": " + str(len(rows)) + "개 키워드")
    lines.append("")
    lines.append("주요 키워드 샘플:")
    for stage, rows in grouped.items():
        sample = ", ".join(str(r.get("relKeyword", "")) for r in rows[:SAMPLE_SIZE])
        lines.append(stage + ": " + sample)
    lines.append("")
    return "\n".join(lines)


def build_prompts(insight_type: str, keywords: list[dict]) -> tuple[str, str]:
    """Return ``(system_prompt, user_prompt)`` for ``insight_type``.

    Raises:
        InvalidInsightTypeError: for a type outside marketing/budget/landing/da/sa.
    """
    if insight_type not in INSIGHT_PROMPTS:
        raise InvalidInsightTypeError("Invalid insight type")
    system_prompt, user_template = INSIGHT_PROMPTS[insight_type]
    return system_prompt, user_template.format(data_context=build_data_context(keywords))


class InsightGenerator:
    """Turns classified keywords into structured marketing insights.

    Usage::

        generator = InsightGenerator(LLMClient())
        insight = await generator.generate(annotated_rows, "budget")
    """

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        model: str = INSIGHT_MODEL,
        temperature: float = INSIGHT_TEMPERATURE,
        max_tokens: int = INSIGHT_MAX_TOKENS,
    ):
        self._llm = llm_client or LLMClient(openai_model=model)
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def is_configured(self) -> bool:
        return self._llm.is_configured

    async def generate(self, keywords: list[dict], insight_type: str) -> Any:
        """Generate one insight.

        Returns the parsed JSON object, or the raw completion text when it is
        not valid JSON. Provider errors propagate to the caller.
        """
        system_prompt, user_prompt = build_prompts(insight_type, keywords)
        logger.info(
            "Generating %s insight for %d keywords with %s",
            insight_type, len(keywords), self._model,
        )
        content = await self._llm.generate_json_completion(
            system_prompt,
            user_prompt,
            model=self._model,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
        )
        try:
            return parse_json_content(content)
        except ValueError as exc:
            logger.error("Error parsing %s insight JSON: %s", insight_type, exc)
            return content
