# gestion/pages/14_Settings.py
from gestion.core.logging import configure_logging

configure_logging()

import streamlit as st

from gestion.core.constants import REFRESH_INTERVAL_OPTIONS
from gestion.core.logging import active_log_file, clear_logs, read_recent_logs
from gestion.services.option_cache import clear_options
from gestion.services.settings_store import (
    clear_inventory_settings,
    load_inventory_settings,
    update_inventory_settings,
)
from gestion.ui.helpers import get_storage, release_pages, show_success

storage = get_storage()
release_pages(st.session_state)

st.title("⚙️ Settings")
st.divider()

# --- INVENTORY DASHBOARD ---
st.subheader("📊 Inventory dashboard")
settings = load_inventory_settings(storage)
labels = dict(REFRESH_INTERVAL_OPTIONS)
with st.form("settings_refresh_form"):
    choice = st.selectbox(
        "Automatic refresh",
        options=list(labels),
        index=list(labels).index(settings.refresh_interval),
        format_func=lambda value: labels[value],
    )
    save_col, reset_col = st.columns(2)
    saved = save_col.form_submit_button("💾 Save", use_container_width=True)
    reset = reset_col.form_submit_button("Reset to default", use_container_width=True)
if saved:
    update_inventory_settings(storage, refresh_interval=choice)
    show_success("Settings updated")
elif reset:
    clear_inventory_settings(storage)
    show_success("Settings reset")

st.divider()

# --- CACHED DROPDOWN OPTIONS ---
st.subheader("🗂️ Cached options")
st.caption("Dropdown lists are cached for five minutes.")
if st.button("Clear cached options"):
    clear_options()
    show_success("Cached options cleared")

st.divider()

# --- LOGS ---
st.subheader("📝 Recent logs")
log_path = active_log_file()
if log_path.exists():
    preview = read_recent_logs()
    if preview:
        st.code(preview)
    else:
        st.write("Log file is empty.")
    log_col, clear_col = st.columns(2)
    log_col.download_button(
        "Download Logs",
        data=log_path.read_bytes(),
        file_name=log_path.name,
        mime="text/plain",
    )
    if clear_col.button("Clear Logs"):
        clear_logs()
        st.toast("Logs cleared")
        st.rerun()
else:
    st.write("Log file not found.")
