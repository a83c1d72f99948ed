"""Keyword Research dashboard page.

Seed keyword search against Naver, buyer-journey classification, a
filterable/sortable keyword table, the journey report charts, AI insights
and data export.
"""

import json
import logging
import sys
from pathlib import Path

import streamlit as st

# Ensure project root is on the path
_project_root = Path(__file__).parent.parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from keyword_journey.app import KeywordJourneyApp
from keyword_journey.modules.buyer_journey.service import annotate_keywords
from keyword_journey.modules.buyer_journey.stages import STAGE_COLORS, STAGE_LABELS
from keyword_journey.modules.insights.prompts import INSIGHT_TYPES
from keyword_journey.modules.reporting import charts
from keyword_journey.modules.reporting.report_renderer import INSIGHT_TITLES, JourneyReportRenderer
from keyword_journey.modules.reporting.stage_metrics import (
    METRIC_LABELS,
    filter_keywords,
    journey_overview,
    sort_keywords,
    stage_summary,
    summarize_totals,
)
from keyword_journey.utils.async_runner import run_sync
from keyword_journey.utils.helpers import format_stat, safe_filename

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "": "정렬 안 함",
    "relKeyword": "키워드",
    "buyerJourney": "구매여정 단계",
    "monthlyPcQcCnt": "PC 검색수",
    "monthlyMobileQcCnt": "모바일 검색수",
    "monthlyAvePcClkCnt": "PC 클릭수",
    "monthlyAveMobileClkCnt": "모바일 클릭수",
    "monthlyAvePcCtr": "PC 클릭률",
    "monthlyAveMobileCtr": "모바일 클릭률",
    "plAvgDepth": "광고 노출 깊이",
    "compIdx": "경쟁도",
}

COMPETITION_LABELS = {"low": "낮음", "mid": "보통", "high": "높음"}


# ------------------------------------------------------------------
# Async helper
# ------------------------------------------------------------------

def _run_async(coro):
    """Run an async coroutine from synchronous Streamlit context.

    The cached services hold pooled async clients, so every call goes to the
    same long-lived loop.
    """
    return run_sync(coro)


# ------------------------------------------------------------------
# Cached resource factories
# ------------------------------------------------------------------

@st.cache_resource
def _get_journey_app() -> KeywordJourneyApp:
    journey_app = KeywordJourneyApp()
    journey_app.initialize()
    return journey_app


@st.cache_resource
def _get_renderer() -> JourneyReportRenderer:
    return JourneyReportRenderer()


# ------------------------------------------------------------------
# Section renderers
# ------------------------------------------------------------------

def _render_search_form(journey_app: KeywordJourneyApp) -> None:
    with st.form("kj_search_form"):
        col1, col2 = st.columns([4, 1])
        with col1:
            keyword = st.text_input("검색할 키워드", placeholder="예: 캠핑의자", key="kj_seed")
        with col2:
            include_detail = st.checkbox("상세 통계", value=True, key="kj_detail")
        submitted = st.form_submit_button("\U0001f50d 키워드 검색", use_container_width=True)

    if not submitted:
        return
    if not keyword.strip():
        st.warning("키워드를 입력해주세요.")
        return

    with st.spinner("연관 키워드를 조회하는 중..."):
        rows = _run_async(journey_app.stats_service.fetch_keywords(keyword.strip(), include_detail))
    st.session_state["kj_keywords"] = rows
    st.session_state["kj_seed_keyword"] = keyword.strip()
    st.session_state.pop("kj_insights", None)
    st.session_state.pop("kj_analysis_model", None)
    if not journey_app.stats_service.is_configured:
        st.info("네이버 API 키가 설정되지 않아 샘플 데이터를 표시합니다.")
    st.success(str(len(rows)) + "개의 연관 키워드를 찾았습니다.")


def _render_analysis_controls(journey_app: KeywordJourneyApp) -> None:
    rows = st.session_state["kj_keywords"]
    model_ids = [m for m, _ in journey_app.available_models]
    labels = dict(journey_app.available_models)
    default = journey_app.default_model
    col1, col2 = st.columns([2, 1])
    with col1:
        model = st.selectbox(
            "분석 모델",
            model_ids,
            index=model_ids.index(default) if default in model_ids else 0,
            format_func=lambda m: labels.get(m, m),
            key="kj_model",
        )
    with col2:
        st.write("")
        run = st.button("\U0001f9ed 구매여정 분석", use_container_width=True, type="primary")

    if not run:
        return

    keywords = [str(row.get("relKeyword", "")) for row in rows]
    with st.spinner(str(len(keywords)) + "개 키워드를 분석하는 중..."):
        analysis = _run_async(journey_app.journey_service.analyze(keywords, model))
    st.session_state["kj_keywords"] = annotate_keywords(rows, analysis.results)
    st.session_state["kj_analysis_model"] = analysis.model
    st.session_state.pop("kj_insights", None)

    if analysis.source == "openai":
        st.success(analysis.message)
    elif analysis.source == "dummy":
        st.info(analysis.message)
    else:
        st.warning(analysis.message + " (" + (analysis.error or "") + ")")


def _stage_badges_html(summary: dict[str, int]) -> str:
    parts = []
    for stage, count in summary.items():
        if not count:
            continue
        color = STAGE_COLORS[stage]
        parts.append(
            '<span style="display:inline-block;margin:2px 6px 2px 0;padding:3px 10px;'
            "border-radius:12px;font-size:13px;color:#fff;background:" + color + ';">'
            + stage + " " + str(count) + "</span>"
        )
    return "".join(parts)


def _render_keyword_table() -> None:
    rows = st.session_state["kj_keywords"]

    col_f1, col_f2, col_f3, col_f4 = st.columns([2, 1, 1, 1])
    with col_f1:
        text = st.text_input("키워드 필터", key="kj_filter_text")
    with col_f2:
        stage = st.selectbox("단계 필터", ["all"] + STAGE_LABELS,
                             format_func=lambda s: "전체" if s == "all" else s, key="kj_filter_stage")
    with col_f3:
        sort_field = st.selectbox("정렬", list(SORT_FIELDS), format_func=SORT_FIELDS.get, key="kj_sort")
    with col_f4:
        descending = st.toggle("내림차순", value=True, key="kj_sort_desc")

    filtered = filter_keywords(rows, text, stage)
    shown = sort_keywords(filtered, sort_field, descending)

    caption = "**" + str(len(rows)) + "개 키워드**"
    if len(filtered) != len(rows):
        caption += " (필터링된 결과: " + str(len(filtered)) + "개)"
    st.markdown(caption)

    if any(row.get("buyerJourney") for row in filtered):
        st.markdown(_stage_badges_html(stage_summary(filtered)), unsafe_allow_html=True)

    totals = summarize_totals(filtered)
    competition = totals["competition"]
    table_rows = [{
        "키워드": "합계 (" + str(totals["count"]) + "개)",
        "구매여정 단계": "-",
        "PC 검색수": format_stat(totals["monthlyPcQcCnt"], integer=True),
        "모바일 검색수": format_stat(totals["monthlyMobileQcCnt"], integer=True),
        "PC 클릭수": format_stat(totals["monthlyAvePcClkCnt"], integer=True),
        "모바일 클릭수": format_stat(totals["monthlyAveMobileClkCnt"], integer=True),
        "PC 클릭률": f"{totals['monthlyAvePcCtr']:.2f}%",
        "모바일 클릭률": f"{totals['monthlyAveMobileCtr']:.2f}%",
        "광고 노출 깊이": f"{totals['plAvgDepth']:.1f}",
        "경쟁도": " ".join(
            COMPETITION_LABELS[level] + "(" + str(n) + ")" for level, n in competition.items() if n
        ),
    }]
    for row in shown:
        table_rows.append({
            "키워드": row.get("relKeyword", ""),
            "구매여정 단계": row.get("buyerJourney", "-"),
            "PC 검색수": format_stat(row.get("monthlyPcQcCnt", "")),
            "모바일 검색수": format_stat(row.get("monthlyMobileQcCnt", "")),
            "PC 클릭수": format_stat(row.get("monthlyAvePcClkCnt", ""), integer=True),
            "모바일 클릭수": format_stat(row.get("monthlyAveMobileClkCnt", ""), integer=True),
            "PC 클릭률": str(row.get("monthlyAvePcCtr", "")) + "%",
            "모바일 클릭률": str(row.get("monthlyAveMobileCtr", "")) + "%",
            "광고 노출 깊이": str(row.get("plAvgDepth", "")),
            "경쟁도": COMPETITION_LABELS.get(row.get("compIdx"), row.get("compIdx", "")),
        })
    st.dataframe(table_rows, use_container_width=True, hide_index=True)


def _render_charts_tab() -> None:
    rows = st.session_state["kj_keywords"]
    if not any(row.get("buyerJourney") for row in rows):
        st.info("구매여정 분석을 먼저 실행해주세요.")
        return

    overview = journey_overview(rows)
    c1, c2, c3 = st.columns(3)
    c1.metric("분석된 키워드", overview["analyzedKeywords"])
    c2.metric("활성 구매여정 단계", overview["activeStages"])
    c3.metric("총 검색량", format_stat(overview["totalSearch"], integer=True))

    metric = st.selectbox("지표", list(METRIC_LABELS), format_func=METRIC_LABELS.get, key="kj_pie_metric")
    st.plotly_chart(charts.stage_distribution_pie(rows, metric), use_container_width=True)

    col1, col2 = st.columns(2)
    with col1:
        distribution = st.radio(
            "분포 유형", ["search", "click"],
            format_func=lambda d: "검색수" if d == "search" else "클릭수",
            horizontal=True, key="kj_distribution",
        )
    with col2:
        stage = st.selectbox("단계", ["all"] + STAGE_LABELS,
                             format_func=lambda s: "전체" if s == "all" else s, key="kj_scatter_stage")
    st.plotly_chart(charts.pc_mobile_scatter(rows, distribution, stage), use_container_width=True)
    st.plotly_chart(charts.top_keywords_bar(rows, 5, distribution, stage), use_container_width=True)


def _render_insights_tab(journey_app: KeywordJourneyApp) -> None:
    rows = st.session_state["kj_keywords"]
    if not any(row.get("buyerJourney") for row in rows):
        st.info("구매여정 분석을 먼저 실행해주세요.")
        return

    insights = st.session_state.setdefault("kj_insights", {})
    insight_type = st.radio(
        "인사이트 유형", INSIGHT_TYPES, format_func=INSIGHT_TITLES.get,
        horizontal=True, key="kj_insight_type",
    )
    if st.button("✨ 인사이트 생성", key="kj_generate_insight"):
        with st.spinner(INSIGHT_TITLES[insight_type] + " 인사이트를 생성하는 중..."):
            try:
                insights[insight_type] = _run_async(
                    journey_app.insight_generator.generate(rows, insight_type)
                )
            except Exception as exc:
                logger.error("Insight generation failed: %s", exc)
                st.error("인사이트 생성 중 오류가 발생했습니다. API 키를 확인해주세요.")

    insight = insights.get(insight_type)
    if insight is None:
        return
    if not isinstance(insight, dict):
        st.write(insight)
        return

    summary = insight.get("summary")
    if summary:
        st.info(summary)
    for stage, detail in (insight.get("stages") or insight.get("stageAllocation") or {}).items():
        with st.expander(stage, expanded=False):
            st.json(detail)
    extra = {k: v for k, v in insight.items() if k not in ("summary", "stages", "stageAllocation")}
    if extra:
        st.json(extra)


def _render_export_tab() -> None:
    rows = st.session_state["kj_keywords"]
    seed = st.session_state.get("kj_seed_keyword", "")
    insights = st.session_state.get("kj_insights") or {}
    renderer = _get_renderer()
    base = "keyword_journey_" + safe_filename(seed)

    col1, col2, col3 = st.columns(3)
    with col1:
        st.markdown("**Keywords CSV**")
        st.download_button(
            "⬇️ Download CSV",
            data=renderer.render_csv_bytes(rows),
            file_name=base + ".csv",
            mime="text/csv",
            key="kj_export_csv",
            use_container_width=True,
        )
    with col2:
        st.markdown("**Full JSON**")
        st.download_button(
            "⬇️ Download JSON",
            data=renderer.render_json_bytes(rows, seed, insights),
            file_name=base + ".json",
            mime="application/json",
            key="kj_export_json",
            use_container_width=True,
        )
    with col3:
        st.markdown("**HTML Report**")
        theme = st.selectbox("Theme", list(JourneyReportRenderer.THEMES), key="kj_export_theme")
        html = renderer.render_html(
            rows, seed, insights=insights,
            model=st.session_state.get("kj_analysis_model"), template=theme,
        )
        st.download_button(
            "⬇️ Download HTML",
            data=html.encode("utf-8"),
            file_name=base + ".html",
            mime="text/html",
            key="kj_export_html",
            use_container_width=True,
        )

    with st.expander("Raw data"):
        st.code(json.dumps(rows[:20], ensure_ascii=False, indent=2), language="json")


# ------------------------------------------------------------------
# Main page render function
# ------------------------------------------------------------------

def render_keywords_page() -> None:
    """Render the complete Keyword Research page."""
    st.title("\U0001f50d 키워드 구매여정 분석")
    st.markdown("네이버 검색광고 연관 키워드를 조회하고 6단계 구매여정으로 분류합니다.")

    journey_app = _get_journey_app()
    _render_search_form(journey_app)

    if not st.session_state.get("kj_keywords"):
        st.info("☝ 키워드를 입력하고 \"키워드 검색\"을 눌러 시작하세요.")
        return

    _render_analysis_controls(journey_app)
    _render_keyword_table()

    tabs = st.tabs([
        "\U0001f4ca 차트",
        "\U0001f4a1 AI 인사이트",
        "\U0001f4e5 내보내기",
    ])
    with tabs[0]:
        _render_charts_tab()
    with tabs[1]:
        _render_insights_tab(journey_app)
    with tabs[2]:
        _render_export_tab()


if __name__ == "__main__":
    render_keywords_page()
