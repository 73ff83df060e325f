"""Fetch-and-render cycle and CRUD sequencing for one resource page.

:class:`ResourcePage` performs the remote calls of a list + filter + CRUD
page and records every outcome in its :class:`~gestion.core.controller.Store`.
It never renders anything: toasts go through the injected notifier and the
Streamlit layer reads :attr:`ResourcePage.state` to decide what to draw.

Every call is tagged with a request ticket, so a response that was
superseded by a newer request for the same operation, or that arrives after
:meth:`ResourcePage.unmount`, is dropped without touching the state.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Tuple

from gestion.core.constants import (
    API_DELETE,
    API_DETAIL,
    API_PAGINATION,
    API_UPSERT,
    BUTTON_DELETE,
    BUTTON_UPSERT,
    DEFAULT_TABLE,
    MODAL_DELETE,
    MODAL_UPSERT,
    SELECTION_DELETE,
    SELECTION_ROW,
)
from gestion.core.controller import (
    ControllerState,
    SetApi,
    SetAsyncSelection,
    SetButton,
    SetModal,
    SetSelection,
    SetTable,
    Store,
)
from gestion.core.errors import ApiError, AuthenticationError
from gestion.core.load_state import LoadState
from gestion.forms.base import FilterForm, FormResult, UpsertForm
from gestion.resources import ResourceDefinition, get_resource

from . import resource_service
from .option_cache import cached_options

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def success(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def error(self, error: ApiError) -> None: ...


class ResourcePage:
    def __init__(
        self,
        resource: ResourceDefinition,
        client,
        notifier: Notifier,
        *,
        store: Optional[Store] = None,
        option_loader: Optional[Callable[..., List[Dict[str, Any]]]] = None,
    ) -> None:
        self.resource = resource
        self.client = client
        self.notifier = notifier
        self.store = store or Store(resource.controller_schema())
        self.filters = FilterForm(resource.filter_schema)
        self.form = UpsertForm(resource.upsert_schema)
        self.option_loader = option_loader or cached_options
        self.last_list_request: Optional[Tuple[Dict[str, Any], int]] = None

    @property
    def state(self) -> ControllerState:
        return self.store.state

    @property
    def page(self) -> int:
        return self.state.table().pagination.page

    @property
    def per_page(self) -> int:
        return self.state.table().pagination.per_page

    def _report(self, error: ApiError) -> None:
        if isinstance(error, AuthenticationError):
            raise error
        self.notifier.error(error)

    # ─────────────────────────────────────────────────────
    # LIST
    # ─────────────────────────────────────────────────────
    def mount(self) -> None:
        """Run the first fetch when the page is shown for the first time."""
        if self.state.api(API_PAGINATION) is LoadState.IDLE:
            self.fetch_list(1)

    def fetch_list(self, page: int) -> bool:
        """Fetch ``page`` with the last submitted filters."""
        return self._fetch(self.filters.query(), page)

    def retry_list(self) -> bool:
        """Re-issue the last list request unchanged."""
        if self.last_list_request is None:
            return self.fetch_list(self.page)
        filters, page = self.last_list_request
        return self._fetch(dict(filters), page)

    def _fetch(self, filters: Dict[str, Any], page: int) -> bool:
        ticket = self.store.begin_request(API_PAGINATION)
        self.store.dispatch(
            SetApi(API_PAGINATION, LoadState.LOADING),
            SetTable(DEFAULT_TABLE, pagination={"page": page}),
        )
        self.last_list_request = (dict(filters), page)
        try:
            rows, pagination = resource_service.list_rows(
                self.client, self.resource, filters, page, self.per_page
            )
        except ApiError as exc:
            if self.store.resolve(ticket, SetApi(API_PAGINATION, LoadState.ERROR)):
                self._report(exc)
            return False
        return self.store.resolve(
            ticket,
            SetApi(API_PAGINATION, LoadState.OK),
            SetTable(DEFAULT_TABLE, rows=rows, pagination=pagination.to_payload()),
        )

    def change_page(self, page: int) -> bool:
        return self.fetch_list(page)

    def change_per_page(self, per_page: int) -> bool:
        self.store.set_table(DEFAULT_TABLE, pagination={"perPage": per_page})
        return self.fetch_list(1)

    def submit_filters(self, values: Optional[Mapping[str, Any]] = None) -> FormResult:
        result = self.filters.submit(values)
        if result.valid:
            self.fetch_list(1)
        return result

    def clear_filters(self) -> bool:
        self.filters.clear()
        return self.fetch_list(1)

    # ─────────────────────────────────────────────────────
    # UPSERT
    # ─────────────────────────────────────────────────────
    def open_create(self) -> bool:
        if self.resource.read_only or self.state.button(BUTTON_UPSERT):
            return False
        self.store.invalidate(API_DETAIL)
        self.form.reset()
        self.store.dispatch(
            SetSelection(SELECTION_ROW, None),
            SetModal(MODAL_UPSERT, True, LoadState.OK),
        )
        return True

    def open_edit(self, row: Mapping[str, Any]) -> bool:
        if self.resource.read_only or self.state.button(BUTTON_UPSERT):
            return False
        if row.get("isEditable") is False:
            self.notifier.info(f"This {self.resource.singular} cannot be edited.")
            return False
        self.store.dispatch(
            SetSelection(SELECTION_ROW, dict(row)),
            SetModal(MODAL_UPSERT, True, LoadState.LOADING),
        )
        return self._load_detail()

    def retry_detail(self) -> bool:
        if self.state.selection(SELECTION_ROW) is None:
            return False
        self.store.set_modal(MODAL_UPSERT, True, LoadState.LOADING)
        return self._load_detail()

    def _load_detail(self) -> bool:
        row_id = self.resource.row_id(self.state.selection(SELECTION_ROW))
        ticket = self.store.begin_request(API_DETAIL)
        self.store.set_api(API_DETAIL, LoadState.LOADING)
        try:
            detail = resource_service.get_detail(self.client, self.resource, row_id)
        except ApiError as exc:
            if self.store.resolve(
                ticket,
                SetApi(API_DETAIL, LoadState.ERROR),
                SetModal(MODAL_UPSERT, True, LoadState.ERROR),
            ):
                self._report(exc)
            return False
        if not self.store.is_current(ticket):
            return False
        self.form.populate(detail)
        return self.store.resolve(
            ticket,
            SetApi(API_DETAIL, LoadState.OK),
            SetModal(MODAL_UPSERT, True, LoadState.OK),
        )

    def close_upsert(self) -> None:
        self.store.invalidate(API_DETAIL)
        self.store.dispatch(
            SetModal(MODAL_UPSERT, False),
            SetSelection(SELECTION_ROW, None),
        )
        self.form.reset()

    def submit_upsert(self, values: Optional[Mapping[str, Any]] = None) -> bool:
        """Validate and send the dialog's values.

        A submission while the previous one is still in flight is dropped.
        """

        if self.state.button(BUTTON_UPSERT):
            logger.debug("Ignoring %s upsert while one is in flight", self.resource.key)
            return False
        if values:
            self.form.update(**values)
        result = self.form.validate()
        if not result.valid:
            return False

        payload = result.model.to_payload()
        updating = bool(result.model.id)
        ticket = self.store.begin_request(API_UPSERT)
        self.store.dispatch(
            SetApi(API_UPSERT, LoadState.LOADING),
            SetButton(BUTTON_UPSERT, True),
        )
        try:
            envelope = resource_service.upsert(self.client, self.resource, payload)
        except ApiError as exc:
            if self.store.resolve(ticket, SetApi(API_UPSERT, LoadState.ERROR)):
                self.form.apply_server_errors(exc)
                if not self.form.errors:
                    self._report(exc)
            return False
        finally:
            self.store.set_button(BUTTON_UPSERT, False)

        if not self.store.resolve(
            ticket,
            SetApi(API_UPSERT, LoadState.OK),
            SetModal(MODAL_UPSERT, False),
            SetSelection(SELECTION_ROW, None),
        ):
            return False
        self.notifier.success(self._success_message(envelope, updating))
        self.form.reset()
        self.fetch_list(self.page)
        return True

    def _success_message(self, envelope: Mapping[str, Any], updating: bool) -> str:
        message = envelope.get("message") if isinstance(envelope, Mapping) else None
        if message:
            return str(message)
        verb = "updated" if updating else "created"
        return f"{self.resource.singular.capitalize()} {verb} successfully"

    # ─────────────────────────────────────────────────────
    # DELETE
    # ─────────────────────────────────────────────────────
    def open_delete(self, row: Mapping[str, Any]) -> bool:
        if self.resource.read_only or self.state.button(BUTTON_DELETE):
            return False
        if row.get("isDeletable") is False:
            self.notifier.info(f"This {self.resource.singular} cannot be deleted.")
            return False
        self.store.dispatch(
            SetSelection(SELECTION_DELETE, dict(row)),
            SetModal(MODAL_DELETE, True),
        )
        return True

    def close_delete(self) -> None:
        self.store.dispatch(
            SetModal(MODAL_DELETE, False),
            SetSelection(SELECTION_DELETE, None),
        )

    def confirm_delete(self) -> bool:
        if self.state.button(BUTTON_DELETE):
            logger.debug("Ignoring %s delete while one is in flight", self.resource.key)
            return False
        row = self.state.selection(SELECTION_DELETE)
        row_id = self.resource.row_id(row)
        if row_id is None:
            return False

        ticket = self.store.begin_request(API_DELETE)
        self.store.dispatch(
            SetApi(API_DELETE, LoadState.LOADING),
            SetButton(BUTTON_DELETE, True),
        )
        try:
            envelope = resource_service.delete(self.client, self.resource, row_id)
        except ApiError as exc:
            if self.store.resolve(ticket, SetApi(API_DELETE, LoadState.ERROR)):
                self._report(exc)
            return False
        finally:
            self.store.set_button(BUTTON_DELETE, False)

        if not self.store.resolve(
            ticket,
            SetApi(API_DELETE, LoadState.OK),
            SetModal(MODAL_DELETE, False),
            SetSelection(SELECTION_DELETE, None),
        ):
            return False
        message = envelope.get("message") or (
            f"{self.resource.singular.capitalize()} deleted successfully"
        )
        self.notifier.success(str(message))
        self.fetch_list(self.page)
        return True

    # ─────────────────────────────────────────────────────
    # DROPDOWN OPTIONS
    # ─────────────────────────────────────────────────────
    def load_options(self, source_key: str, *, force: bool = False) -> bool:
        """Fill the async selection ``source_key`` from that resource's list."""

        source = get_resource(source_key)
        namespace = getattr(getattr(self.client, "config", None), "base_url", "")
        ticket = self.store.begin_request(f"options:{source_key}")
        self.store.dispatch(SetAsyncSelection(source_key, load=LoadState.LOADING))
        try:
            items = self.option_loader(
                namespace,
                source_key,
                lambda: resource_service.list_options(self.client, source),
                force=force,
            )
        except ApiError as exc:
            if self.store.resolve(
                ticket, SetAsyncSelection(source_key, load=LoadState.ERROR)
            ):
                self._report(exc)
            return False
        return self.store.resolve(
            ticket, SetAsyncSelection(source_key, items=items, load=LoadState.OK)
        )

    def load_all_options(self) -> None:
        for source_key in self.resource.option_sources:
            if self.state.async_selections[source_key].load is LoadState.IDLE:
                self.load_options(source_key)

    def unmount(self) -> None:
        self.store.unmount()


__all__ = ["Notifier", "ResourcePage"]
