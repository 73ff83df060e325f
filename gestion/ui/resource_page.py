"""Streamlit rendering of a list + filter + CRUD page for one resource."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

import streamlit as st

from gestion.core.constants import (
    API_PAGINATION,
    BUTTON_DELETE,
    BUTTON_UPSERT,
    MODAL_DELETE,
    MODAL_UPSERT,
    SELECTION_DELETE,
    SELECTION_ROW,
)
from gestion.core.errors import AuthenticationError
from gestion.resources import FormField, ResourceDefinition, get_resource
from gestion.services.resource_page import ResourcePage

from .helpers import StreamlitNotifier, activate_page, get_client, handle_auth_error
from .list_view import render_csv_download, render_list
from .modal import show_modal

PER_PAGE_OPTIONS = [5, 10, 20, 50]

PageExtras = Callable[[ResourcePage], Any]


def get_page(resource: ResourceDefinition) -> ResourcePage:
    """Return the controller for ``resource``, fresh on every visit to its page."""

    return activate_page(
        st.session_state,
        f"page_{resource.key}",
        lambda: ResourcePage(resource, get_client(), StreamlitNotifier()),
    )


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        except ValueError:
            return None
    return None


def _option_labels(page: ResourcePage, source: str) -> Dict[str, str]:
    source_resource = get_resource(source)
    labels: Dict[str, str] = {}
    for row in page.state.async_selections[source].items:
        row_id = source_resource.row_id(row)
        if row_id is not None:
            labels[row_id] = source_resource.row_label(row)
    return labels


def render_field(page: ResourcePage, field: FormField, value: Any, *, key: str) -> Any:
    """Draw one widget for ``field`` and return its current value."""

    if field.kind == "textarea":
        return st.text_area(field.label, value=value or "", key=key, help=field.help)
    if field.kind in ("number", "integer"):
        step = 1 if field.kind == "integer" else 0.01
        number = value if isinstance(value, (int, float)) else None
        if number is not None:
            # number_input rejects mixing int and float arguments
            number = int(number) if field.kind == "integer" else float(number)
        return st.number_input(
            field.label, value=number, step=step, key=key, help=field.help
        )
    if field.kind == "date":
        return st.date_input(
            field.label, value=_as_date(value), key=key, help=field.help
        )
    if field.kind == "checkbox":
        return st.checkbox(field.label, value=bool(value), key=key, help=field.help)
    if field.kind == "select":
        if field.source:
            labels = _option_labels(page, field.source)
            options: Sequence[Any] = [""] + list(labels)
            fmt = lambda option: labels.get(option, "—") if option else "—"
        else:
            labels = {}
            options = list(field.options)
            if "" not in options and value in (None, ""):
                options = [""] + options
            fmt = lambda option: str(option) if option else "—"
        current = value if value in options else options[0]
        return st.selectbox(
            field.label,
            options=options,
            index=list(options).index(current),
            format_func=fmt,
            key=key,
            help=field.help,
        )
    if isinstance(value, (list, tuple)):
        value = ", ".join(str(item) for item in value)
    return st.text_input(field.label, value=value or "", key=key, help=field.help)


def _render_filters(page: ResourcePage) -> None:
    resource = page.resource
    with st.form(f"{resource.key}_filter_form"):
        values: Dict[str, Any] = {}
        cols = st.columns(max(1, min(len(resource.filter_fields), 4)))
        for index, field in enumerate(resource.filter_fields):
            with cols[index % len(cols)]:
                current = page.filters.draft.get(field.name)
                value = render_field(
                    page, field, current, key=f"{resource.key}_filter_{field.name}"
                )
                # An unticked checkbox means "do not filter".
                if field.kind == "checkbox" and not value:
                    value = None
                values[field.name] = value
        submit_col, clear_col = st.columns(2)
        submitted = submit_col.form_submit_button("🔍 Search", use_container_width=True)
        cleared = clear_col.form_submit_button("Clear", use_container_width=True)
    if submitted:
        result = page.submit_filters(values)
        for field_name, message in result.errors.items():
            st.warning(f"{field_name}: {message}")
    elif cleared:
        for field in resource.filter_fields:
            st.session_state.pop(f"{resource.key}_filter_{field.name}", None)
        page.clear_filters()
        st.rerun()


def _render_upsert_body(page: ResourcePage) -> None:
    resource = page.resource
    form = page.form
    busy = page.state.button(BUTTON_UPSERT)
    suffix = form.values.get("id") or "new"
    with st.form(f"{resource.key}_upsert_form"):
        values: Dict[str, Any] = {}
        for field in resource.form_fields:
            values[field.name] = render_field(
                page,
                field,
                form.values.get(field.name),
                key=f"{resource.key}_upsert_{suffix}_{field.name}",
            )
            if field.name in form.errors:
                st.caption(f":red[{form.errors[field.name]}]")
        for field_name, message in form.errors.items():
            if field_name not in {f.name for f in resource.form_fields}:
                st.caption(f":red[{message}]")
        save = st.form_submit_button(
            "💾 Update" if form.is_editing else "💾 Create",
            type="primary",
            disabled=busy,
        )
    if save and page.submit_upsert(values):
        st.rerun()


def _render_delete_body(page: ResourcePage) -> None:
    resource = page.resource
    row = page.state.selection(SELECTION_DELETE)
    busy = page.state.button(BUTTON_DELETE)
    st.write(
        f"Delete {resource.singular} **{resource.row_label(row)}**? This action cannot be undone."
    )
    confirm_col, cancel_col = st.columns(2)
    if confirm_col.button(
        "🗑️ Delete", key=f"{resource.key}_confirm_delete_btn", type="primary", disabled=busy
    ):
        if page.confirm_delete():
            st.rerun()
    if cancel_col.button("Cancel", key=f"{resource.key}_cancel_delete_btn"):
        page.close_delete()
        st.rerun()


def _render_row_actions(page: ResourcePage, rows: Sequence[Mapping[str, Any]]) -> None:
    resource = page.resource
    labels = {resource.row_id(row): resource.row_label(row) for row in rows}
    labels.pop(None, None)
    if not labels:
        return
    select_col, edit_col, delete_col = st.columns([3, 1, 1])
    with select_col:
        chosen = st.selectbox(
            f"Select {resource.singular}",
            options=list(labels),
            format_func=lambda row_id: labels.get(row_id, row_id),
            key=f"{resource.key}_row_select",
        )
    row = next((r for r in rows if resource.row_id(r) == chosen), None)
    if row is None:
        return
    if edit_col.button("✏️ Edit", key=f"{resource.key}_edit_btn", use_container_width=True):
        page.open_edit(row)
        st.rerun()
    if delete_col.button("🗑️ Delete", key=f"{resource.key}_delete_btn", use_container_width=True):
        page.open_delete(row)
        st.rerun()


def _render(page: ResourcePage, extras: Optional[PageExtras] = None) -> None:
    resource = page.resource
    st.title(f"{resource.icon} {resource.title}")
    st.write(resource.description)
    st.divider()

    page.mount()
    page.load_all_options()

    _render_filters(page)

    if extras is not None:
        extras(page)

    top_col, per_page_col = st.columns([3, 1])
    with top_col:
        if not resource.read_only and st.button(
            f"➕ New {resource.singular}", key=f"{resource.key}_create_btn"
        ):
            page.open_create()
            st.rerun()
    with per_page_col:
        per_page = st.selectbox(
            "Items per page:",
            options=PER_PAGE_OPTIONS,
            index=PER_PAGE_OPTIONS.index(page.per_page)
            if page.per_page in PER_PAGE_OPTIONS
            else 0,
            key=f"{resource.key}_per_page",
        )
        if per_page != page.per_page:
            page.change_per_page(per_page)
            st.rerun()

    table = page.state.table()
    df = render_list(
        load=page.state.api(API_PAGINATION),
        rows=table.rows,
        pagination=table.pagination,
        columns=resource.columns,
        key=resource.key,
        on_page=page.change_page,
        on_retry=page.retry_list,
        empty_message=f"There are no {resource.title.lower()} yet.",
        on_create=None if resource.read_only else page.open_create,
        create_label=f"➕ New {resource.singular}",
    )
    if df is not None:
        if not resource.read_only:
            _render_row_actions(page, table.rows)
        render_csv_download(
            df, file_name=f"{resource.key}_page_{table.pagination.page}.csv", key=resource.key
        )

    state = page.state
    if state.is_open(MODAL_UPSERT):
        editing = state.selection(SELECTION_ROW) is not None
        title = f"Edit {resource.singular}" if editing else f"New {resource.singular}"
        show_modal(
            title,
            lambda: _render_upsert_body(page),
            key=f"{resource.key}_upsert",
            load=state.modal,
            on_retry=page.retry_detail,
            on_close=page.close_upsert,
            width="large",
        )
    elif state.is_open(MODAL_DELETE):
        show_modal(
            f"Delete {resource.singular}",
            lambda: _render_delete_body(page),
            key=f"{resource.key}_delete",
            on_close=page.close_delete,
        )


def render_resource_page(resource_key: str, extras: Optional[PageExtras] = None) -> None:
    """Entry point used by every resource page script.

    ``extras`` draws resource-specific tools, such as the product import,
    between the filters and the table.
    """

    resource = get_resource(resource_key)
    page = get_page(resource)
    try:
        _render(page, extras)
    except AuthenticationError as exc:
        handle_auth_error(exc)
