"""
report_renderer.py - Buyer Journey Report Rendering

Renders a keyword research session (keyword rows annotated with buyer-journey
stages, plus any generated insights) into a themed standalone HTML page, JSON
and CSV.
"""

import csv
import html
import io
import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from keyword_journey.modules.buyer_journey.stages import STAGE_COLORS, STAGE_LABELS
from keyword_journey.modules.reporting.stage_metrics import (
    STAGE_KEY,
    calculate_stage_data,
    journey_overview,
    summarize_totals,
    top_keywords,
)
from keyword_journey.utils.helpers import format_stat

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    ("relKeyword", "키워드"),
    ("buyerJourney", "구매여정 단계"),
    ("monthlyPcQcCnt", "PC 검색수"),
    ("monthlyMobileQcCnt", "모바일 검색수"),
    ("monthlyAvePcClkCnt", "PC 클릭수"),
    ("monthlyAveMobileClkCnt", "모바일 클릭수"),
    ("monthlyAvePcCtr", "PC 클릭률"),
    ("monthlyAveMobileCtr", "모바일 클릭률"),
    ("plAvgDepth", "광고 노출 깊이"),
    ("compIdx", "경쟁도"),
]

INSIGHT_TITLES = {
    "marketing": "마케팅 전략",
    "budget": "예산 배분",
    "landing": "랜딩 페이지 전략",
    "da": "DA 광고 전략",
    "sa": "SA 광고 전략",
}

COMPETITION_LABELS = {"low": "낮음", "mid": "보통", "high": "높음"}


def _esc(value: Any) -> str:
    return html.escape(str(value), quote=True)


class JourneyReportRenderer:
    """Renders keyword/journey data into downloadable report formats.

    Usage::

        renderer = JourneyReportRenderer()
        page = renderer.render_html(rows, seed_keyword="카페", insights={"sa": {...}})
        data = renderer.render_csv_bytes(rows)
    """

    THEMES = {
        "professional": {
            "bg": "#f8fafc",
            "text": "#1e293b",
            "primary": "#2563eb",
            "card_bg": "#ffffff",
            "border": "#e2e8f0",
            "muted": "#64748b",
            "header_bg": "#1e40af",
            "header_text": "#ffffff",
        },
        "modern": {
            "bg": "#0f172a",
            "text": "#e2e8f0",
            "primary": "#38bdf8",
            "card_bg": "#1e293b",
            "border": "#334155",
            "muted": "#94a3b8",
            "header_bg": "#020617",
            "header_text": "#f1f5f9",
        },
        "minimal": {
            "bg": "#ffffff",
            "text": "#334155",
            "primary": "#64748b",
            "card_bg": "#ffffff",
            "border": "#e2e8f0",
            "muted": "#94a3b8",
            "header_bg": "#f8fafc",
            "header_text": "#1e293b",
        },
    }

    def __init__(self, title: str = "Keyword Journey"):
        self._title = title

    # ------------------------------------------------------------------
    # Public rendering methods
    # ------------------------------------------------------------------

    def render_html(
        self,
        keywords: list[dict],
        seed_keyword: str = "",
        insights: Optional[dict[str, Any]] = None,
        model: Optional[str] = None,
        template: str = "professional",
    ) -> str:
        """Generate a self-contained HTML report with embedded CSS."""
        logger.info("Rendering HTML journey report (%d keywords, theme=%s)", len(keywords), template)
        theme = self._get_theme_colors(template)
        generated_at = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")

        parts = []
        parts.append(self._build_html_head(theme, seed_keyword))
        parts.append(self._build_header_html(theme, seed_keyword, model))
        parts.append(self._build_overview_html(theme, keywords))

        stage_data = calculate_stage_data(keywords)
        if stage_data:
            parts.append(self._build_stage_cards_html(theme, stage_data))
            parts.append(self._build_top_keywords_html(theme, keywords))
            for stage in STAGE_LABELS:
                rows = [row for row in keywords if row.get(STAGE_KEY) == stage]
                if rows:
                    parts.append(self._build_keyword_table_html(theme, stage, rows))
        else:
            parts.append(self._build_keyword_table_html(theme, "전체 키워드", keywords))

        for insight_type, insight in (insights or {}).items():
            if insight:
                parts.append(self._build_insight_html(theme, insight_type, insight))

        parts.append('<div class="footer">Generated by ' + _esc(self._title) + " on " + generated_at + "</div>")
        parts.append("</div></body></html>")

        page = "\n".join(parts)
        logger.info("HTML report rendered successfully (%d chars)", len(page))
        return page

    def render_json(
        self,
        keywords: list[dict],
        seed_keyword: str = "",
        insights: Optional[dict[str, Any]] = None,
    ) -> str:
        """Export keywords, stage aggregates and insights as pretty-printed JSON."""
        payload = {
            "seedKeyword": seed_keyword,
            "generatedAt": datetime.now(timezone.utc).isoformat(),
            "overview": journey_overview(keywords),
            "stageData": calculate_stage_data(keywords),
            "keywords": keywords,
        }
        if insights:
            payload["insights"] = insights
        return json.dumps(payload, indent=2, default=str, ensure_ascii=False)

    def render_json_bytes(self, keywords: list[dict], seed_keyword: str = "",
                          insights: Optional[dict[str, Any]] = None) -> bytes:
        return self.render_json(keywords, seed_keyword, insights).encode("utf-8")

    @staticmethod
    def render_csv_bytes(keywords: list[dict]) -> bytes:
        """Keyword rows as CSV bytes (UTF-8 with BOM so spreadsheet apps read Hangul)."""
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow([label for _, label in CSV_COLUMNS])
        for row in keywords:
            writer.writerow([row.get(key, "") for key, _ in CSV_COLUMNS])
        return output.getvalue().encode("utf-8-sig")

    # ------------------------------------------------------------------
    # Private helper methods
    # ------------------------------------------------------------------

    def _get_theme_colors(self, template: str) -> dict:
        if template in self.THEMES:
            return dict(self.THEMES[template])
        logger.warning("Unknown template '%s', falling back to 'professional'", template)
        return dict(self.THEMES["professional"])

    def _build_html_head(self, theme: dict, seed_keyword: str) -> str:
        bg = theme["bg"]
        card_bg = theme["card_bg"]
        border = theme["border"]
        muted = theme["muted"]

        css = []
        css.append("* { margin:0; padding:0; box-sizing:border-box; }")
        css.append("body { font-family: 'Pretendard', 'Noto Sans KR', system-ui, sans-serif; ")
        css.append("background-color: " + bg + "; color: " + theme["text"] + "; line-height: 1.6; }")
        css.append(".report-container { max-width: 1200px; margin: 0 auto; padding: 30px; }")
        css.append(".header { padding: 30px; border-radius: 12px; margin-bottom: 30px; }")
        css.append(".section { background: " + card_bg + "; border: 1px solid " + border + "; ")
        css.append("border-radius: 10px; padding: 25px; margin-bottom: 25px; }")
        css.append(".section-title { font-size: 20px; font-weight: 700; margin-bottom: 18px; ")
        css.append("padding-bottom: 12px; border-bottom: 2px solid " + theme["primary"] + "; }")
        css.append(".card-grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(170px, 1fr)); gap: 16px; margin-bottom: 25px; }")
        css.append(".stage-card { background: " + card_bg + "; border: 1px solid " + border + "; border-radius: 10px; padding: 18px; }")
        css.append(".stage-name { font-weight: 700; font-size: 15px; }")
        css.append(".metric-label { font-size: 12px; color: " + muted + "; }")
        css.append(".metric-value { font-size: 24px; font-weight: 800; }")
        css.append("table { width: 100%; border-collapse: collapse; margin: 12px 0; }")
        css.append("th { background: " + bg + "; padding: 10px 14px; text-align: left; font-size: 12px; color: " + muted + "; }")
        css.append("td { padding: 8px 14px; border-bottom: 1px solid " + border + "; font-size: 14px; }")
        css.append("td.num { text-align: right; font-variant-numeric: tabular-nums; }")
        css.append(".badge { display: inline-block; padding: 2px 10px; border-radius: 20px; font-size: 12px; font-weight: 600; color: #fff; }")
        css.append(".insight dl { margin-left: 12px; } .insight dt { font-weight: 600; margin-top: 8px; }")
        css.append(".insight dd { margin-left: 16px; } .insight li { margin-left: 20px; }")
        css.append(".footer { text-align: center; padding: 20px; color: " + muted + "; font-size: 12px; }")
        css.append("@media print { .section { break-inside: avoid; } .header { print-color-adjust: exact; } }")

        title = "구매여정 분석 리포트"
        if seed_keyword:
            title += " - " + seed_keyword

        head = []
        head.append("<!DOCTYPE html>")
        head.append('<html lang="ko">')
        head.append("<head>")
        head.append('<meta charset="UTF-8">')
        head.append('<meta name="viewport" content="width=device-width, initial-scale=1.0">')
        head.append("<title>" + _esc(title) + "</title>")
        head.append("<style>")
        head.append("\n".join(css))
        head.append("</style>")
        head.append("</head>")
        head.append("<body>")
        head.append('<div class="report-container">')
        return "\n".join(head)

    def _build_header_html(self, theme: dict, seed_keyword: str, model: Optional[str]) -> str:
        color = theme["header_text"]
        parts = []
        parts.append('<div class="header" style="background-color: ' + theme["header_bg"] + "; color: " + color + ';">')
        parts.append('<h1 style="font-size:26px;">' + _esc(self._title) + "</h1>")
        parts.append('<p style="opacity:0.85;">구매여정 분석 리포트</p>')
        if seed_keyword:
            parts.append('<h2 style="font-size:22px; margin-top:10px;">' + _esc(seed_keyword) + "</h2>")
        if model:
            parts.append('<p style="font-size:13px; opacity:0.85;">분석 모델: ' + _esc(model) + "</p>")
        parts.append("</div>")
        return "\n".join(parts)

    def _build_overview_html(self, theme: dict, keywords: list[dict]) -> str:
        overview = journey_overview(keywords)
        totals = summarize_totals(keywords)
        cards = [
            ("전체 키워드", format_stat(totals["count"])),
            ("분석된 키워드", format_stat(overview["analyzedKeywords"])),
            ("활성 구매여정 단계", format_stat(overview["activeStages"])),
            ("총 검색량", format_stat(totals["totalSearch"], integer=True)),
        ]
        parts = ['<div class="card-grid">']
        for label, value in cards:
            parts.append('<div class="stage-card">')
            parts.append('<div class="metric-label">' + label + "</div>")
            parts.append('<div class="metric-value" style="color:' + theme["primary"] + ';">' + value + "</div>")
            parts.append("</div>")
        parts.append("</div>")
        return "\n".join(parts)

    def _build_stage_cards_html(self, theme: dict, stage_data: list[dict]) -> str:
        parts = ['<div class="section">']
        parts.append('<h2 class="section-title">단계별 분포</h2>')
        parts.append('<div class="card-grid">')
        for stage in stage_data:
            color = STAGE_COLORS.get(stage["name"], theme["primary"])
            parts.append('<div class="stage-card" style="border-top:4px solid ' + color + ';">')
            parts.append('<div class="stage-name" style="color:' + color + ';">' + _esc(stage["name"]) + "</div>")
            parts.append('<div class="metric-value">' + str(stage["count"]) + "</div>")
            parts.append('<div class="metric-label">검색수 ' + format_stat(stage["searchTotal"], integer=True)
                         + " · 클릭수 " + format_stat(stage["clickTotal"], integer=True) + "</div>")
            parts.append("</div>")
        parts.append("</div></div>")
        return "\n".join(parts)

    def _build_top_keywords_html(self, theme: dict, keywords: list[dict]) -> str:
        parts = ['<div class="section">']
        parts.append('<h2 class="section-title">검색량 상위 키워드</h2>')
        parts.append("<table><tr><th>#</th><th>키워드</th><th>단계</th><th>PC</th><th>모바일</th><th>합계</th></tr>")
        for idx, point in enumerate(top_keywords(keywords, n=5), 1):
            parts.append(
                "<tr><td>" + str(idx) + "</td><td>" + _esc(point["keyword"]) + "</td><td>"
                + self._stage_badge(point["stage"]) + '</td><td class="num">'
                + format_stat(point["pc"], integer=True) + '</td><td class="num">'
                + format_stat(point["mobile"], integer=True) + '</td><td class="num">'
                + format_stat(point["total"], integer=True) + "</td></tr>"
            )
        parts.append("</table></div>")
        return "\n".join(parts)

    def _build_keyword_table_html(self, theme: dict, title: str, rows: list[dict]) -> str:
        color = STAGE_COLORS.get(title, theme["primary"])
        parts = ['<div class="section">']
        parts.append('<h2 class="section-title" style="color:' + color + ';">'
                     + _esc(title) + " (" + str(len(rows)) + ")</h2>")
        parts.append("<table><tr>")
        for key, label in CSV_COLUMNS:
            if key != STAGE_KEY:
                parts.append("<th>" + label + "</th>")
        parts.append("</tr>")
        for row in rows:
            parts.append("<tr>")
            parts.append("<td>" + _esc(row.get("relKeyword", "")) + "</td>")
            for key, _ in CSV_COLUMNS[2:]:
                value = row.get(key, "")
                if key == "compIdx":
                    parts.append("<td>" + _esc(COMPETITION_LABELS.get(value, value)) + "</td>")
                else:
                    parts.append('<td class="num">' + _esc(format_stat(value)) + "</td>")
            parts.append("</tr>")
        parts.append("</table></div>")
        return "\n".join(parts)

    def _build_insight_html(self, theme: dict, insight_type: str, insight: Any) -> str:
        parts = ['<div class="section insight">']
        parts.append('<h2 class="section-title">AI 인사이트: '
                     + _esc(INSIGHT_TITLES.get(insight_type, insight_type)) + "</h2>")
        parts.append(self._render_value_html(insight))
        parts.append("</div>")
        return "\n".join(parts)

    def _render_value_html(self, value: Any) -> str:
        """Render parsed insight JSON as nested definition/bullet lists."""
        if isinstance(value, dict):
            items = []
            for key, sub in value.items():
                items.append("<dt>" + _esc(key) + "</dt><dd>" + self._render_value_html(sub) + "</dd>")
            return "<dl>" + "".join(items) + "</dl>"
        if isinstance(value, list):
            return "<ul>" + "".join("<li>" + self._render_value_html(v) + "</li>" for v in value) + "</ul>"
        text = _esc(value)
        return "<p>" + text.replace("\n", "<br>") + "</p>"

    @staticmethod
    def _stage_badge(stage: str) -> str:
        color = STAGE_COLORS.get(stage, "#64748b")
        return '<span class="badge" style="background:' + color + ';">' + _esc(stage) + "</span>"
