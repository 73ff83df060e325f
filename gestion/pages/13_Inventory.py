# gestion/pages/13_Inventory.py
from gestion.core.logging import configure_logging

configure_logging()

import streamlit as st

from gestion.core.constants import REFRESH_INTERVAL_OPTIONS, RETRY_LABEL
from gestion.core.errors import AuthenticationError
from gestion.services.inventory_dashboard import (
    MODAL_SETTINGS,
    STOCK_ALERT_COLUMNS,
    STOCK_ALERTS,
    SUMMARY,
    TOP_PRODUCT_COLUMNS,
    TOP_PRODUCTS,
    InventoryDashboard,
    SectionMode,
    section_mode,
)
from gestion.ui.helpers import (
    StreamlitNotifier,
    activate_page,
    get_client,
    get_storage,
    handle_auth_error,
)
from gestion.ui.list_view import render_list
from gestion.ui.modal import show_modal

# --- Session State (page_ keys are dropped when another page is shown) ---
dashboard: InventoryDashboard = activate_page(
    st.session_state,
    "page_inventory",
    lambda: InventoryDashboard(get_client(), StreamlitNotifier(), get_storage()),
)


def render_summary() -> None:
    mode = section_mode(dashboard.state.api(SUMMARY))
    if mode is SectionMode.LOADING:
        st.info("Loading summary…")
        return
    if mode is SectionMode.ERROR:
        st.error("Could not load the inventory summary")
        if st.button(RETRY_LABEL, key="inventory_summary_retry_btn"):
            dashboard.fetch_summary()
            st.rerun()
        return
    summary = dashboard.summary
    cols = st.columns(4)
    cols[0].metric("Total products", summary.total_products)
    cols[1].metric("Total stock", summary.total_stock)
    cols[2].metric("Low stock", summary.low_stock_count)
    cols[3].metric("Out of stock", summary.out_of_stock_count)


def render_stock_alerts() -> None:
    st.subheader("⚠️ Stock alerts")
    table = dashboard.state.table(STOCK_ALERTS)
    render_list(
        load=dashboard.state.api(STOCK_ALERTS),
        rows=table.rows,
        pagination=table.pagination,
        columns=STOCK_ALERT_COLUMNS,
        key="inventory_alerts",
        on_page=lambda page: dashboard.fetch_table(STOCK_ALERTS, page),
        on_retry=lambda: dashboard.fetch_table(STOCK_ALERTS, table.pagination.page),
        empty_message="No products are below their minimum stock.",
        error_title="Could not load stock alerts",
    )


def render_top_products() -> None:
    st.subheader("🏆 Top products")
    table = dashboard.state.table(TOP_PRODUCTS)
    render_list(
        load=dashboard.state.api(TOP_PRODUCTS),
        rows=table.rows,
        pagination=table.pagination,
        columns=TOP_PRODUCT_COLUMNS,
        key="inventory_top",
        on_page=lambda page: dashboard.fetch_table(TOP_PRODUCTS, page),
        on_retry=lambda: dashboard.fetch_table(TOP_PRODUCTS, table.pagination.page),
        empty_message="No sales recorded yet.",
        error_title="Could not load top products",
    )


def render_settings_body() -> None:
    labels = dict(REFRESH_INTERVAL_OPTIONS)
    current = dashboard.settings.refresh_interval
    choice = st.radio(
        "Automatic refresh",
        options=list(labels),
        index=list(labels).index(current) if current in labels else 0,
        format_func=lambda value: labels[value],
        key="inventory_refresh_choice",
    )
    if st.button("💾 Save", type="primary", key="inventory_settings_save_btn"):
        dashboard.update_refresh_interval(choice)
        st.rerun()


@st.fragment(run_every=dashboard.settings.refresh_seconds)
def render_dashboard() -> None:
    # Timed reruns execute only this function, outside the page-level handler.
    try:
        if dashboard.is_due():
            dashboard.load_data()
        render_summary()
        st.divider()
        alerts_col, top_col = st.columns(2)
        with alerts_col:
            render_stock_alerts()
        with top_col:
            render_top_products()
    except AuthenticationError as exc:
        handle_auth_error(exc)


st.title("📊 Inventory")
st.write("Stock levels, products running low and best sellers.")

try:
    if dashboard.last_loaded is None:
        dashboard.load_data()
    _, settings_col, refresh_col = st.columns([4, 1, 1])
    with settings_col:
        if st.button("⚙️ Settings", key="inventory_settings_btn"):
            dashboard.open_settings()
    with refresh_col:
        if st.button("🔄 Refresh", key="inventory_refresh_btn"):
            dashboard.load_data()
    st.divider()
    render_dashboard()

    if dashboard.state.is_open(MODAL_SETTINGS):
        show_modal(
            "Inventory settings",
            render_settings_body,
            key="inventory_settings",
            on_close=dashboard.close_settings,
        )
except AuthenticationError as exc:
    handle_auth_error(exc)
