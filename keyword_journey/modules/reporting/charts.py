"""Plotly figure builders for the journey report and brand comparison views."""

import logging

import plotly.graph_objects as go

from keyword_journey.modules.buyer_journey.stages import STAGE_COLORS, STAGE_LABELS
from keyword_journey.modules.reporting.stage_metrics import (
    METRIC_LABELS,
    calculate_stage_data,
    scatter_points,
    top_keywords,
)

logger = logging.getLogger(__name__)

BRAND_PALETTE = ["#3b82f6", "#ef4444", "#10b981", "#f59e0b", "#8b5cf6"]

_LAYOUT = dict(
    template="plotly_white",
    margin=dict(l=40, r=20, t=50, b=40),
)


def stage_distribution_pie(keywords: list[dict], metric: str = "count") -> go.Figure:
    """Donut of the chosen metric across active stages."""
    if metric not in METRIC_LABELS:
        raise ValueError("Unknown metric: " + metric)
    stage_data = calculate_stage_data(keywords)

    fig = go.Figure(
        go.Pie(
            labels=[s["name"] for s in stage_data],
            values=[s[metric] for s in stage_data],
            marker=dict(colors=[STAGE_COLORS[s["name"]] for s in stage_data]),
            hole=0.45,
            sort=False,
            textinfo="label+percent",
            hovertemplate="%{label}<br>" + METRIC_LABELS[metric] + ": %{value:,}<extra></extra>",
        )
    )
    fig.update_layout(
        title=dict(text="구매여정 단계별 " + METRIC_LABELS[metric], font=dict(size=16)),
        height=420,
        showlegend=True,
        **_LAYOUT,
    )
    return fig


def pc_mobile_scatter(
    keywords: list[dict], distribution: str = "search", stage: str = "all"
) -> go.Figure:
    """PC vs mobile volume, one trace per stage so the legend toggles stages."""
    points = scatter_points(keywords, distribution, stage)
    unit = "검색수" if distribution == "search" else "클릭수"

    fig = go.Figure()
    for label in STAGE_LABELS:
        stage_points = [p for p in points if p["stage"] == label]
        if not stage_points:
            continue
        fig.add_trace(
            go.Scatter(
                x=[p["pc"] for p in stage_points],
                y=[p["mobile"] for p in stage_points],
                mode="markers",
                name=label,
                text=[p["keyword"] for p in stage_points],
                marker=dict(size=10, color=STAGE_COLORS[label], opacity=0.75),
                hovertemplate="%{text}<br>PC: %{x:,}<br>모바일: %{y:,}<extra>" + label + "</extra>",
            )
        )
    fig.update_layout(
        title=dict(text="PC vs 모바일 " + unit + " 분포", font=dict(size=16)),
        xaxis_title="PC " + unit,
        yaxis_title="모바일 " + unit,
        height=420,
        **_LAYOUT,
    )
    return fig


def top_keywords_bar(
    keywords: list[dict], n: int = 5, distribution: str = "search", stage: str = "all"
) -> go.Figure:
    """Horizontal stacked PC/mobile bars for the top keywords by total."""
    points = top_keywords(keywords, n, distribution, stage)
    labels = [p["keyword"] for p in reversed(points)]

    fig = go.Figure()
    for name, key, color in [("PC", "pc", "#3b82f6"), ("모바일", "mobile", "#10b981")]:
        fig.add_trace(
            go.Bar(
                y=labels,
                x=[p[key] for p in reversed(points)],
                name=name,
                orientation="h",
                marker_color=color,
            )
        )
    fig.update_layout(
        title=dict(text="상위 " + str(n) + "개 키워드", font=dict(size=16)),
        barmode="stack",
        height=max(260, 60 * len(points) + 120),
        **_LAYOUT,
    )
    return fig


def brand_comparison_bars(comparisons: list, metric: str) -> go.Figure:
    """One bar per brand for ``metric`` (a ``BrandComparison`` attribute name)."""
    titles = {
        "total_search_volume": "총 검색량",
        "total_click_volume": "총 클릭수",
        "avg_ctr": "평균 클릭률 (%)",
        "avg_position": "평균 광고 노출 깊이",
    }
    if metric not in titles:
        raise ValueError("Unknown brand metric: " + metric)

    brands = [c.brand for c in comparisons]
    values = [getattr(c, metric) for c in comparisons]
    colors = [BRAND_PALETTE[i % len(BRAND_PALETTE)] for i in range(len(brands))]

    fig = go.Figure(
        go.Bar(
            x=brands,
            y=values,
            marker_color=colors,
            text=[f"{v:,.1f}" if metric.startswith("avg") else f"{v:,.0f}" for v in values],
            textposition="outside",
        )
    )
    fig.update_layout(
        title=dict(text=titles[metric], font=dict(size=16)),
        height=360,
        showlegend=False,
        **_LAYOUT,
    )
    return fig
