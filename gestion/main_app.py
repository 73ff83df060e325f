# gestion/main_app.py
# Streamlit entry point: `streamlit run gestion/main_app.py`

from gestion.core.logging import configure_logging

# Configure logging before importing modules that use it
configure_logging()

import logging

import streamlit as st

from gestion.config import load_api_config
from gestion.resources import RESOURCES
from gestion.services.settings_store import load_account
from gestion.ui.helpers import get_storage, release_pages

logger = logging.getLogger(__name__)


def run_home() -> None:
    st.set_page_config(page_title="Gestion", page_icon="📦", layout="wide")
    st.title("📦 Gestion")
    st.write("Manage the product catalog, stock and customers.")
    st.divider()

    release_pages(st.session_state)

    config = load_api_config()
    if config is None:
        st.error(
            "API configuration missing. Set API_BASE_URL or an [api] section in secrets.toml."
        )
        st.stop()
    logger.debug("Home page using %s", config.base_url)
    st.caption(f"Connected to {config.base_url} as application '{config.application_name}'.")

    account = load_account(get_storage())
    if account:
        st.write(f"Signed in as **{account.get('name') or account.get('email', '')}**")
    else:
        st.info("No stored account. Requests are sent without a signed-in user.")

    st.subheader("Modules")
    cols = st.columns(3)
    for index, resource in enumerate(RESOURCES.values()):
        with cols[index % 3]:
            st.markdown(f"**{resource.icon} {resource.title}**")
            st.caption(resource.description)


run_home()
