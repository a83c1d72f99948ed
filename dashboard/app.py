"""Keyword Journey Dashboard

Main Streamlit application with sidebar navigation.
Run with: streamlit run dashboard/app.py
"""

import logging
import streamlit as st
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

logger = logging.getLogger(__name__)

# Page config
st.set_page_config(
    page_title="Keyword Journey Dashboard",
    page_icon="🧭",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS
st.markdown("""
<style>
    [data-testid="stSidebar"] {
        background: linear-gradient(180deg, #0f172a 0%, #1e293b 100%);
    }
    [data-testid="stSidebar"] * {
        color: #e2e8f0 !important;
    }
    [data-testid="stSidebar"] .stButton > button {
        width: 100%;
        text-align: left;
        padding: 12px 16px;
        border-radius: 10px;
        border: none;
        background: transparent;
        font-size: 0.95rem;
        margin-bottom: 4px;
    }
    [data-testid="stSidebar"] .stButton > button:hover {
        background: rgba(59, 130, 246, 0.2) !important;
    }
    [data-testid="stSidebar"] .stButton > button[kind="primary"] {
        background: rgba(59, 130, 246, 0.3) !important;
        border-left: 3px solid #3b82f6 !important;
    }
    .main .block-container { padding-top: 2rem; }
</style>
""", unsafe_allow_html=True)

STATUS_ICONS = {"ok": "🟢", "warning": "🟡", "error": "🔴"}


@st.cache_resource
def _configure_logging() -> str:
    """Apply LOG_LEVEL or app.log_level; re-applied when Settings clears the resource cache."""
    from keyword_journey.app import KeywordJourneyApp

    journey_app = KeywordJourneyApp()
    journey_app.initialize()
    level = journey_app.log_level
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger().setLevel(level)
    return level


def main():
    _configure_logging()
    if "current_page" not in st.session_state:
        st.session_state.current_page = "overview"

    with st.sidebar:
        st.markdown("### 🧭 Keyword Journey")
        st.markdown("---")

        pages = {
            "overview": ("🏠", "Overview"),
            "keywords": ("🔍", "Keyword Research"),
            "brands": ("🏷️", "Brand Analysis"),
        }

        for page_id, (icon, label) in pages.items():
            is_active = st.session_state.current_page == page_id
            if st.button(
                f"{icon}  {label}",
                key=f"nav_{page_id}",
                type="primary" if is_active else "secondary",
                use_container_width=True,
            ):
                st.session_state.current_page = page_id
                st.rerun()

        st.markdown("---")

        if st.button(
            "⚙️  Settings & API Keys",
            key="nav_settings",
            type="primary" if st.session_state.current_page == "settings" else "secondary",
            use_container_width=True,
        ):
            st.session_state.current_page = "settings"
            st.rerun()

    page = st.session_state.current_page

    if page == "settings":
        from pages.settings import render_settings_page
        render_settings_page()
    elif page == "keywords":
        from pages.keywords import render_keywords_page
        render_keywords_page()
    elif page == "brands":
        from pages.brand_analysis import render_brand_analysis_page
        render_brand_analysis_page()
    else:
        render_overview()


def render_overview():
    st.title("🧭 Keyword Journey")
    st.markdown("네이버 연관 키워드를 6단계 구매여정(문제 인식 → 구매 후 행동)으로 분류하고 인사이트를 생성합니다.")

    try:
        from keyword_journey.app import KeywordJourneyApp

        journey_app = KeywordJourneyApp()
        journey_app.initialize()
        status = journey_app.get_status()

        cols = st.columns(len(status))
        for col, (name, info) in zip(cols, status.items()):
            with col:
                st.metric(
                    name.upper(),
                    STATUS_ICONS.get(info["status"], "⚪") + " " + info["status"],
                    help=info["details"],
                )
                st.caption(info["details"])

        if status["openai"]["status"] != "ok" or status["naver"]["status"] != "ok":
            st.info(
                "👋 **Getting Started:** Go to **⚙️ Settings & API Keys** in the sidebar "
                "to configure your API keys. Without them the dashboard uses sample data."
            )

    except Exception as exc:
        logger.error("Overview error: %s", exc)
        st.error("An error occurred loading the dashboard overview.")

    st.markdown("### ⚡ Quick Actions")
    c1, c2 = st.columns(2)
    with c1:
        if st.button("🔍 Keyword Research", use_container_width=True):
            st.session_state.current_page = "keywords"
            st.rerun()
    with c2:
        if st.button("🏷️ Brand Analysis", use_container_width=True):
            st.session_state.current_page = "brands"
            st.rerun()


if __name__ == "__main__":
    main()
