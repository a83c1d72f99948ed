"""Settings & API Keys Management Page.

Edits the OpenAI, Gemini and Naver Search Ad credentials stored in .env
and tests each connection.
"""

import streamlit as st
import sys
import os
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from keyword_journey.integrations.llm_client import LLMClient
from keyword_journey.integrations.naver_searchad import NaverSearchAdClient
from keyword_journey.utils.async_runner import run_sync
from keyword_journey.utils.env_manager import EnvManager

LOG_LEVELS = ["INFO", "DEBUG", "WARNING", "ERROR"]


def get_manager() -> EnvManager:
    """Get EnvManager instance."""
    return EnvManager(str(project_root / ".env"))


def _run_async(coro):
    return run_sync(coro)


def test_openai_key(api_key: str) -> tuple[bool, str]:
    """List models with the given key."""
    client = LLMClient(openai_api_key=api_key, gemini_api_key="", cache_enabled=False)
    if _run_async(client.test_connection()):
        return True, "Connected! Model: " + client.model
    return False, "Connection failed. Check the key."


def test_naver_keys(api_key: str, secret_key: str, customer_id: str) -> tuple[bool, str]:
    """Run a real keywordstool lookup for a fixed seed."""
    client = NaverSearchAdClient(api_key=api_key, secret_key=secret_key, customer_id=customer_id)
    try:
        rows = _run_async(client.get_related_keywords("캠핑", show_detail=False))
    except Exception as e:
        return False, f"Error: {str(e)[:100]}"
    return True, f"Connected! {len(rows)} related keywords returned."


def _status_badge(is_configured: bool, is_required: bool) -> str:
    if is_configured:
        bg, fg, text = "#dcfce7", "#16a34a", "✅ Active"
    elif is_required:
        bg, fg, text = "#fee2e2", "#dc2626", "🔴 Required"
    else:
        bg, fg, text = "#f1f5f9", "#64748b", "⚪ Optional"
    return (
        f'<div style="background:{bg}; color:{fg}; padding:6px 12px; border-radius:8px; '
        f'text-align:center; font-weight:600; font-size:0.8rem; margin-top:28px;">{text}</div>'
    )


def render_settings_page():
    """Render the Settings & API Keys page."""

    st.markdown("""
    <div style="background: linear-gradient(135deg, #1e3a5f, #2563eb); padding: 24px 30px;
                border-radius: 14px; margin-bottom: 24px;">
        <h1 style="color: white; margin: 0;">⚙️ Settings & API Keys</h1>
        <p style="color: rgba(255,255,255,0.8); margin: 6px 0 0 0;">
            Configure OpenAI and Naver Search Ad credentials and test each connection.
        </p>
    </div>
    """, unsafe_allow_html=True)

    manager = get_manager()
    manager.ensure_env_exists()
    env_vars = manager.load_env()
    status = manager.get_status()

    total_keys = len(manager.API_KEY_REGISTRY)
    configured = sum(1 for s in status.values() if s.get("configured"))
    required_keys = [k for k, m in manager.API_KEY_REGISTRY.items() if m.get("required")]
    required_configured = sum(1 for k in required_keys if status.get(k, {}).get("configured"))

    c1, c2, c3 = st.columns(3)
    with c1:
        st.metric("🔑 Total Keys", f"{configured}/{total_keys}")
    with c2:
        st.metric("🔴 Required", f"{required_configured}/{len(required_keys)}")
    with c3:
        mode = "Live" if manager.is_openai_configured() and manager.is_naver_configured() else "Sample data"
        st.metric("🧭 Mode", mode)

    st.markdown("---")

    cat_keys: dict[str, list[str]] = {}
    for key, meta in manager.API_KEY_REGISTRY.items():
        cat_keys.setdefault(meta["category"], []).append(key)

    new_values: dict[str, str] = {}

    for category in manager.get_categories():
        keys = cat_keys.get(category, [])
        cat_configured = sum(1 for k in keys if status.get(k, {}).get("configured"))

        with st.expander(f"**{category}** ({cat_configured}/{len(keys)} configured)", expanded=True):
            for key in keys:
                meta = manager.API_KEY_REGISTRY[key]
                current_value = env_vars.get(key, "")

                col_status, col_input = st.columns([0.6, 2.8])
                with col_status:
                    st.markdown(
                        _status_badge(bool(current_value), meta.get("required", False)),
                        unsafe_allow_html=True,
                    )
                with col_input:
                    label = f"{meta['icon']} {meta['label']}"
                    help_text = meta["description"]
                    if meta.get("docs_url"):
                        help_text += f" | [Docs]({meta['docs_url']})"

                    if key == "LOG_LEVEL":
                        new_values[key] = st.selectbox(
                            label,
                            LOG_LEVELS,
                            index=LOG_LEVELS.index(current_value) if current_value in LOG_LEVELS else 0,
                            key=f"input_{key}",
                            help=help_text,
                        )
                    else:
                        new_values[key] = st.text_input(
                            label,
                            value=current_value,
                            type="password" if meta.get("is_secret") else "default",
                            key=f"input_{key}",
                            help=help_text,
                            placeholder=f"Enter {meta['label']}...",
                        )

            if category == "AI / LLM" and new_values.get("OPENAI_API_KEY"):
                if st.button("🧪 Test OpenAI", key="test_openai"):
                    with st.spinner("Testing..."):
                        success, msg = test_openai_key(new_values["OPENAI_API_KEY"])
                    (st.success if success else st.error)(msg)

            if category == "Naver Search Ad":
                naver = [new_values.get(k, "") for k in ("NAVER_API_KEY", "NAVER_SECRET_KEY", "NAVER_CUSTOMER_ID")]
                if all(naver) and st.button("🧪 Test Naver", key="test_naver"):
                    with st.spinner("Testing..."):
                        success, msg = test_naver_keys(*naver)
                    (st.success if success else st.error)(msg)

    st.markdown("---")

    col_save, col_reset, _ = st.columns([1, 1, 3])
    with col_save:
        if st.button("💾 Save All Settings", type="primary", use_container_width=True):
            all_values = dict(env_vars)
            all_values.update(new_values)
            all_values = {k: v for k, v in all_values.items() if v}
            manager.save_env(all_values)

            for k, v in all_values.items():
                os.environ[k] = v
            for k in manager.API_KEY_REGISTRY:
                if k not in all_values:
                    os.environ.pop(k, None)

            # services built with the old keys are cached by the other pages
            st.cache_resource.clear()
            st.success("✅ All settings saved successfully!", icon="💾")
            st.rerun()

    with col_reset:
        if st.button("🔄 Reload", use_container_width=True):
            st.rerun()

    with st.expander("ℹ️ **Help & Information**", expanded=False):
        st.markdown("""
        - Without an **OpenAI** key, keywords are classified with a local rule table.
        - Without **Naver** credentials, keyword search returns sample data.
        - **Gemini** is only used as a fallback when an insight request to OpenAI fails.
        - Keys are stored locally in `.env`; a `.env.backup` copy is written before each save.
        """)


if __name__ == "__main__":
    render_settings_page()
