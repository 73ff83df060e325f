"""Spreadsheet import panel drawn above the products table."""

from __future__ import annotations

from typing import Mapping

import pandas as pd
import streamlit as st

from gestion.services.product_import import (
    ALLOWED_TYPES,
    API_IMPORT,
    API_TEMPLATE,
    TEMPLATE_FILE_NAME,
    ImportResult,
    ProductImport,
)
from gestion.services.resource_page import ResourcePage

from .helpers import StreamlitNotifier, get_client

IMPORT_KEY = "page_products_import"


def get_importer(page: ResourcePage) -> ProductImport:
    """Return the importer kept next to the products controller."""

    importer = st.session_state.get(IMPORT_KEY)
    if importer is None:
        importer = ProductImport(
            get_client(),
            StreamlitNotifier(),
            on_imported=lambda: page.fetch_list(page.page),
        )
        st.session_state[IMPORT_KEY] = importer
    return importer


def _render_result(result: ImportResult) -> None:
    if result.summary:
        cols = st.columns(max(1, min(len(result.summary), 4)))
        for index, (label, value) in enumerate(result.summary.items()):
            cols[index % len(cols)].metric(str(label).capitalize(), value)
    if result.errors:
        st.warning(f"{len(result.errors)} rows were rejected.")
        if all(isinstance(error, Mapping) for error in result.errors):
            st.dataframe(pd.DataFrame(result.errors), hide_index=True, use_container_width=True)
        else:
            for error in result.errors:
                st.caption(f":red[{error}]")


def render_product_import(page: ResourcePage) -> None:
    importer = get_importer(page)
    state = importer.state
    with st.expander("📤 Import products"):
        template_col, upload_col = st.columns([1, 2])
        with template_col:
            if importer.template:
                st.download_button(
                    "📥 Download template",
                    data=importer.template,
                    file_name=TEMPLATE_FILE_NAME,
                    mime=ALLOWED_TYPES[".xlsx"],
                    key="products_template_download",
                    use_container_width=True,
                )
            elif st.button(
                "📄 Get template",
                key="products_template_btn",
                disabled=state.button(API_TEMPLATE),
                use_container_width=True,
            ):
                importer.download_template()
                st.rerun()
        with upload_col:
            upload = st.file_uploader(
                "Spreadsheet",
                type=[suffix.lstrip(".") for suffix in ALLOWED_TYPES],
                key="products_import_file",
            )
            if st.button(
                "Import",
                key="products_import_btn",
                type="primary",
                disabled=upload is None or state.button(API_IMPORT),
            ):
                importer.import_file(upload.name, upload.getvalue())
        if importer.result is not None:
            _render_result(importer.result)
