"""Table and pagination rendering driven by ``(LoadState, rows, pagination)``.

:func:`list_view_mode` is the pure decision of what to show; the
``render_*`` functions draw it with Streamlit and report user intent
(page change, retry, create) back through callbacks.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Sequence

import pandas as pd
import streamlit as st

from gestion.core.constants import LOADING_LABEL, RETRY_LABEL
from gestion.core.load_state import LoadState
from gestion.core.pagination import Pagination
from gestion.resources import Column


class ListMode(str, Enum):
    LOADING = "loading"
    ERROR = "error"
    EMPTY = "empty"
    ROWS = "rows"


@dataclass(frozen=True)
class ListView:
    mode: ListMode
    show_pagination: bool = False


def list_view_mode(
    load: LoadState, rows: Sequence[Any], pagination: Pagination
) -> ListView:
    # Nothing has been fetched yet while idle, so it renders like loading.
    if load in (LoadState.IDLE, LoadState.LOADING):
        return ListView(ListMode.LOADING)
    if load is LoadState.ERROR:
        return ListView(ListMode.ERROR)
    if not rows:
        return ListView(ListMode.EMPTY)
    return ListView(ListMode.ROWS, show_pagination=pagination.total_pages > 1)


def rows_to_dataframe(rows: Sequence[Mapping[str, Any]], columns: Sequence[Column]) -> pd.DataFrame:
    """Project API rows onto the display columns."""

    records = [{column.header: column.value(row) for column in columns} for row in rows]
    return pd.DataFrame(records, columns=[column.header for column in columns])


def render_pagination(
    pagination: Pagination, on_page: Callable[[int], Any], *, key: str
) -> None:
    pages = pagination.pages
    cols = st.columns(len(pages) + 3)
    if cols[0].button(
        "⬅️ Previous", key=f"{key}_prev_btn", disabled=not pagination.has_prev
    ):
        on_page(pagination.page - 1)
        st.rerun()
    for col, number in zip(cols[1:], pages):
        if col.button(
            str(number),
            key=f"{key}_page_{number}_btn",
            type="primary" if number == pagination.page else "secondary",
        ):
            on_page(number)
            st.rerun()
    if cols[len(pages) + 1].button(
        "Next ➡️", key=f"{key}_next_btn", disabled=not pagination.has_next
    ):
        on_page(pagination.page + 1)
        st.rerun()
    cols[len(pages) + 2].write(
        f"Page {pagination.page} of {pagination.total_pages} · {pagination.total_items} items"
    )


def render_list(
    *,
    load: LoadState,
    rows: Sequence[Mapping[str, Any]],
    pagination: Pagination,
    columns: Sequence[Column],
    key: str,
    on_page: Callable[[int], Any],
    on_retry: Callable[[], Any],
    empty_message: str = "No records found.",
    on_create: Optional[Callable[[], Any]] = None,
    create_label: str = "➕ Create",
    error_title: str = "Could not load the data",
) -> Optional[pd.DataFrame]:
    """Draw the table for the current state and return the displayed frame."""

    view = list_view_mode(load, rows, pagination)
    if view.mode is ListMode.LOADING:
        st.info(LOADING_LABEL)
        return None
    if view.mode is ListMode.ERROR:
        st.error(error_title)
        if st.button(RETRY_LABEL, key=f"{key}_retry_btn"):
            on_retry()
            st.rerun()
        return None
    if view.mode is ListMode.EMPTY:
        st.info(empty_message)
        if on_create is not None and st.button(
            create_label, key=f"{key}_empty_create_btn", type="primary"
        ):
            on_create()
            st.rerun()
        return None

    df = rows_to_dataframe(rows, columns)
    st.dataframe(df, use_container_width=True, hide_index=True)
    if view.show_pagination:
        render_pagination(pagination, on_page, key=key)
    return df


def dataframe_to_csv(df: pd.DataFrame) -> bytes:
    return df.to_csv(index=False).encode("utf-8")


def render_csv_download(df: Optional[pd.DataFrame], *, file_name: str, key: str) -> None:
    """Offer the currently displayed page as a CSV file."""
    if df is None or df.empty:
        return
    st.download_button(
        "⬇️ Download page as CSV",
        data=dataframe_to_csv(df),
        file_name=file_name,
        mime="text/csv",
        key=f"{key}_csv_btn",
    )
