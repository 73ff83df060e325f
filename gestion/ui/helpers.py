from __future__ import annotations

import logging
from typing import Any, Callable, List, MutableMapping, TypeVar

import streamlit as st

from gestion.config import STORAGE_FILE, load_api_config
from gestion.core.errors import ApiError, AuthenticationError
from gestion.services.api_client import ApiClient
from gestion.services.settings_store import LocalStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Page controllers are stored as page_<name>; the last page shown is tracked
# so leaving it discards its controllers.
PAGE_PREFIX = "page_"
ACTIVE_PAGE_KEY = "_active_page"


def show_success(msg: str) -> None:
    """Display a success message using toast if available."""
    if hasattr(st, "toast"):
        st.toast(msg, icon="✅")
    else:
        st.success(msg)


def show_info(msg: str) -> None:
    if hasattr(st, "toast"):
        st.toast(msg, icon="ℹ️")
    else:
        st.info(msg)


def show_warning(msg: str) -> None:
    """Display a warning message using toast if available."""
    if hasattr(st, "toast"):
        st.toast(msg, icon="⚠️")
    else:
        st.warning(msg)


def show_error(msg: str) -> None:
    """Display an error message using toast if available."""
    if hasattr(st, "toast"):
        st.toast(msg, icon="❌")
    else:
        st.error(msg)


def format_error(error: ApiError) -> str:
    """Return ``code: message`` followed by one line per field error."""
    lines = [str(error)]
    lines.extend(
        f"• {field}: {message}" for field, message in error.errors_by_field().items()
    )
    return "\n".join(lines)


def notify_error(error: ApiError) -> None:
    show_error(format_error(error))


class StreamlitNotifier:
    """Routes page notifications to Streamlit toasts."""

    def success(self, message: str) -> None:
        show_success(message)

    def info(self, message: str) -> None:
        show_info(message)

    def error(self, error: ApiError) -> None:
        notify_error(error)


@st.cache_resource
def get_storage() -> LocalStore:
    return LocalStore(STORAGE_FILE)


def get_client() -> ApiClient:
    """Return the session's API client, stopping the page when unconfigured."""

    client = st.session_state.get("api_client")
    if client is None:
        config = load_api_config()
        if config is None:
            st.error(
                "API configuration missing. Set API_BASE_URL or an [api] section in secrets.toml."
            )
            st.stop()
        client = ApiClient(config, storage=get_storage())
        st.session_state.api_client = client
    return client


def release_pages(state: MutableMapping[str, Any]) -> List[str]:
    """Unmount and drop every page controller kept in ``state``.

    Controllers live under ``page_*`` keys. Returns the dropped keys.
    """

    dropped = [key for key in list(state) if key.startswith(PAGE_PREFIX)]
    for key in dropped:
        unmount = getattr(state.pop(key), "unmount", None)
        if unmount is not None:
            unmount()
    state.pop(ACTIVE_PAGE_KEY, None)
    return dropped


def activate_page(state: MutableMapping[str, Any], key: str, factory: Callable[[], T]) -> T:
    """Return the controller stored at ``key``, building it on first use.

    Coming from another page unmounts that page's controllers, so every
    visit starts from an idle controller and fetches again.
    """

    if state.get(ACTIVE_PAGE_KEY) != key:
        dropped = release_pages(state)
        if dropped:
            logger.debug("Left %s for %s", ", ".join(dropped), key)
        state[ACTIVE_PAGE_KEY] = key
    if key not in state:
        state[key] = factory()
    return state[key]


def handle_auth_error(error: AuthenticationError) -> None:
    """Drop every page controller and send the user back to the home page."""

    release_pages(st.session_state)
    show_warning(f"Session expired. {error.message}")
    st.switch_page("main_app.py")
