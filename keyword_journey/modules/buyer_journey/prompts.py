"""Prompt text for buyer-journey classification."""

PERSONA = "당신은 마케팅 전문가입니다. 키워드를 보고 구매여정 단계를 정확하게 분류해주세요."

TAXONOMY = (
    "다음 키워드들을 6단계 구매여정 단계 중 하나로 분류해주세요.\n\n"
    "구매여정 6단계:\n"
    "1. 문제 인식: 니즈나 문제를 처음 인식하는 단계 (예: \"카페란\", \"창업이란\", \"문제점\")\n"
    "2. 정보 탐색: 해결책을 찾기 위해 정보를 수집하는 단계 (예: \"카페 추천\", \"창업 방법\", \"종류\")\n"
    "3. 대안 평가: 여러 대안을 비교 검토하는 단계 (예: \"카페 비교\", \"A vs B\", \"장단점\")\n"
    "4. 구매 결정: 특정 제품/서비스 구매를 결정하는 단계 (예: \"카페 가격\", \"비용\", \"할인\")\n"
    "5. 구매 행동: 실제 구매 행동이 일어나는 단계 (예: \"카페 구매\", \"주문\", \"예약\")\n"
    "6. 구매 후 행동: 구매 후 만족도를 평가하는 단계 (예: \"카페 후기\", \"리뷰\", \"평가\")"
)

RESPONSE_FORMAT = (
    "각 키워드에 대해 반드시 다음 형식으로만 응답해주세요:\n"
    "키워드명|단계명\n\n"
    "정확한 예시:\n"
    "카페 추천|정보 탐색\n"
    "카페 창업 비용|구매 결정\n"
    "카페 후기|구매 후 행동"
)


def build_batch_prompt(keywords: list[str]) -> str:
    """Build the taxonomy prompt with the batch keywords as a numbered list."""
    numbered = "\n".join(
        str(i + 1) + ". " + kw for i, kw in enumerate(keywords)
    )
    return (
        TAXONOMY + "\n\n"
        "다음 키워드들을 분석해주세요:\n"
        + numbered + "\n\n"
        + RESPONSE_FORMAT
    )
