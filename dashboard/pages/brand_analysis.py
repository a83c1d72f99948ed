"""Brand Analysis dashboard page: side-by-side keyword statistics for 2-5 brands."""

import logging
import sys
from pathlib import Path

import streamlit as st

_project_root = Path(__file__).parent.parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from keyword_journey.app import KeywordJourneyApp
from keyword_journey.modules.keyword_stats.brands import MAX_BRANDS, compare_brands
from keyword_journey.modules.reporting.charts import brand_comparison_bars
from keyword_journey.utils.async_runner import run_sync
from keyword_journey.utils.helpers import format_number, format_stat

logger = logging.getLogger(__name__)

BRAND_METRICS = {
    "total_search_volume": "총 검색량",
    "total_click_volume": "총 클릭수",
    "avg_ctr": "평균 클릭률",
    "avg_position": "평균 광고 노출 깊이",
}


def _run_async(coro):
    """Run an async coroutine from synchronous Streamlit context.

    The cached services hold pooled async clients, so every call goes to the
    same long-lived loop.
    """
    return run_sync(coro)


@st.cache_resource
def _get_journey_app() -> KeywordJourneyApp:
    journey_app = KeywordJourneyApp()
    journey_app.initialize()
    return journey_app


def render_brand_analysis_page() -> None:
    """Render the Brand Analysis page."""
    st.title("🏷️ 브랜드 비교 분석")
    st.markdown("브랜드 키워드별 연관 키워드 검색량과 클릭 지표를 비교합니다.")

    journey_app = _get_journey_app()

    with st.form("brand_form"):
        cols = st.columns(MAX_BRANDS)
        inputs = []
        for i, col in enumerate(cols):
            with col:
                inputs.append(st.text_input("브랜드 " + str(i + 1), key="brand_input_" + str(i)))
        submitted = st.form_submit_button("📊 비교 분석", use_container_width=True)

    if submitted:
        try:
            with st.spinner("브랜드 키워드를 조회하는 중..."):
                st.session_state["brand_results"] = _run_async(
                    compare_brands(journey_app.stats_service, inputs)
                )
        except ValueError as exc:
            st.warning(str(exc))
        if not journey_app.stats_service.is_configured:
            st.info("네이버 API 키가 설정되지 않아 샘플 데이터를 표시합니다.")

    results = st.session_state.get("brand_results")
    if not results:
        return

    st.markdown("### 요약")
    cols = st.columns(len(results))
    for col, comparison in zip(cols, results):
        with col:
            st.markdown("**" + comparison.brand + "**")
            st.metric("총 검색량", format_number(comparison.total_search_volume))
            st.metric("총 클릭수", format_number(comparison.total_click_volume))
            st.metric("평균 클릭률", f"{comparison.avg_ctr:.2f}%")
            st.metric("평균 노출 깊이", f"{comparison.avg_position:.1f}")

    metric = st.selectbox("비교 지표", list(BRAND_METRICS), format_func=BRAND_METRICS.get, key="brand_metric")
    st.plotly_chart(brand_comparison_bars(results, metric), use_container_width=True)

    st.markdown("### 브랜드별 상위 키워드")
    tabs = st.tabs([c.brand for c in results])
    for tab, comparison in zip(tabs, results):
        with tab:
            st.dataframe(
                [
                    {
                        "키워드": row.get("relKeyword", ""),
                        "PC 검색수": format_stat(row.get("monthlyPcQcCnt", "")),
                        "모바일 검색수": format_stat(row.get("monthlyMobileQcCnt", "")),
                        "PC 클릭률": str(row.get("monthlyAvePcCtr", "")) + "%",
                        "모바일 클릭률": str(row.get("monthlyAveMobileCtr", "")) + "%",
                        "경쟁도": row.get("compIdx", ""),
                    }
                    for row in comparison.keywords
                ],
                use_container_width=True,
                hide_index=True,
            )
