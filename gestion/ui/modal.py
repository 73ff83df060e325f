"""Dialog wrapper whose body follows the load state of its prerequisite."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

import streamlit as st

from gestion.core.constants import (
    LOADING_LABEL,
    MODAL_ERROR_DESCRIPTION,
    MODAL_ERROR_TITLE,
    RETRY_LABEL,
)
from gestion.core.load_state import LoadState


class ModalMode(str, Enum):
    CONTENT = "content"
    IDLE = "idle"
    NOTHING = "nothing"
    LOADING = "loading"
    ERROR = "error"


@dataclass(frozen=True)
class ModalContent:
    mode: ModalMode
    show_retry: bool = False


def modal_content(
    load: Optional[LoadState], *, has_idle: bool = False, has_retry: bool = False
) -> ModalContent:
    """Decide what the dialog body shows.

    ``load`` is ``None`` for dialogs without an asynchronous prerequisite,
    such as confirmations, which always show their content.
    """

    if load is None or load is LoadState.OK:
        return ModalContent(ModalMode.CONTENT)
    if load is LoadState.IDLE:
        return ModalContent(ModalMode.IDLE if has_idle else ModalMode.NOTHING)
    if load is LoadState.LOADING:
        return ModalContent(ModalMode.LOADING)
    return ModalContent(ModalMode.ERROR, show_retry=has_retry)


def render_modal_body(
    load: Optional[LoadState],
    content: Callable[[], Any],
    *,
    key: str,
    on_retry: Optional[Callable[[], Any]] = None,
    idle: Optional[Callable[[], Any]] = None,
) -> None:
    decision = modal_content(load, has_idle=idle is not None, has_retry=on_retry is not None)
    if decision.mode is ModalMode.CONTENT:
        content()
    elif decision.mode is ModalMode.IDLE:
        idle()  # type: ignore[misc]
    elif decision.mode is ModalMode.LOADING:
        st.info(f"⏳ {LOADING_LABEL}")
    elif decision.mode is ModalMode.ERROR:
        st.error(f"**{MODAL_ERROR_TITLE}**\n\n{MODAL_ERROR_DESCRIPTION}")
        if decision.show_retry and st.button(RETRY_LABEL, key=f"{key}_retry_btn"):
            on_retry()  # type: ignore[misc]
            st.rerun()


def show_modal(
    title: str,
    content: Callable[[], Any],
    *,
    key: str,
    on_close: Callable[[], Any],
    load: Optional[LoadState] = None,
    on_retry: Optional[Callable[[], Any]] = None,
    idle: Optional[Callable[[], Any]] = None,
    dismissible: bool = True,
    width: str = "medium",
) -> None:
    """Open a Streamlit dialog; dismissing it calls ``on_close``."""

    @st.dialog(
        title,
        width=width,
        dismissible=dismissible,
        on_dismiss=(lambda: on_close()) if dismissible else "ignore",
    )
    def _dialog() -> None:
        render_modal_body(load, content, key=key, on_retry=on_retry, idle=idle)

    _dialog()
