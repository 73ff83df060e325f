"""Inventory overview: stock summary, low-stock alerts and top sellers.

The dashboard has three independent asynchronous operations sharing one
:class:`~gestion.core.controller.Store`. A failure in one of them marks only
that operation as errored; the other sections keep rendering.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping

from gestion.core.controller import ControllerSchema, SetApi, SetTable, Store
from gestion.core.errors import ApiError, AuthenticationError
from gestion.core.load_state import LoadState
from gestion.resources import Column

from .settings_store import (
    InventorySettings,
    LocalStore,
    load_inventory_settings,
    update_inventory_settings,
)

logger = logging.getLogger(__name__)

SUMMARY = "summary"
STOCK_ALERTS = "stockAlerts"
TOP_PRODUCTS = "topProducts"
MODAL_SETTINGS = "settings"

SUMMARY_PATH = "/inventory/summary"
PRODUCTS_BY_TYPE_PATH = "/inventory/products-by-type"

# table key -> "type" sent to the products-by-type endpoint
TABLE_TYPES = {STOCK_ALERTS: "alert", TOP_PRODUCTS: "top-sales"}

STOCK_ALERT_COLUMNS = (
    Column("product", "Product"),
    Column("category", "Category"),
    Column("currentStock", "Current stock"),
    Column("minStock", "Minimum stock"),
    Column("level", "Status"),
)

TOP_PRODUCT_COLUMNS = (
    Column("product", "Product"),
    Column("brand", "Brand"),
    Column("category", "Category"),
    Column("totalSold", "Units sold"),
    Column("revenue", "Revenue"),
)

DASHBOARD_SCHEMA = ControllerSchema(
    apis=(SUMMARY, STOCK_ALERTS, TOP_PRODUCTS),
    modals=(MODAL_SETTINGS,),
    buttons=(),
    selections=(),
    tables=(STOCK_ALERTS, TOP_PRODUCTS),
)


@dataclass(frozen=True)
class InventorySummary:
    total_products: int = 0
    total_stock: int = 0
    low_stock_count: int = 0
    out_of_stock_count: int = 0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "InventorySummary":
        def number(key: str) -> int:
            try:
                return int(payload.get(key) or 0)
            except (TypeError, ValueError):
                return 0

        return cls(
            total_products=number("totalProducts"),
            total_stock=number("totalStock"),
            low_stock_count=number("lowStockCount"),
            out_of_stock_count=number("outOfStockCount"),
        )


class SectionMode(str, Enum):
    LOADING = "loading"
    ERROR = "error"
    CONTENT = "content"


def section_mode(load: LoadState) -> SectionMode:
    """Decide what a dashboard section shows for its load state.

    Figures are only drawn once they have loaded; before the first fetch the
    section shows the loading placeholder.
    """

    if load is LoadState.OK:
        return SectionMode.CONTENT
    if load is LoadState.ERROR:
        return SectionMode.ERROR
    return SectionMode.LOADING


def alert_level(row: Mapping[str, Any]) -> str:
    """Classify a stock alert by current stock as a share of the minimum."""

    try:
        current = float(row.get("currentStock") or 0)
        minimum = float(row.get("minStock") or 0)
    except (TypeError, ValueError):
        return "Out of stock"
    percentage = current / minimum * 100 if minimum > 0 else 0
    if percentage == 0:
        return "Out of stock"
    if percentage < 50:
        return "Critical"
    return "Low"


class InventoryDashboard:
    def __init__(self, client, notifier, storage: LocalStore, *, store: Store | None = None):
        self.client = client
        self.notifier = notifier
        self.storage = storage
        self.store = store or Store(DASHBOARD_SCHEMA)
        self.summary = InventorySummary()
        self.settings = load_inventory_settings(storage)
        self.last_loaded: float | None = None

    @property
    def state(self):
        return self.store.state

    def _report(self, error: ApiError) -> None:
        if isinstance(error, AuthenticationError):
            raise error
        self.notifier.error(error)

    def _fail(self, ticket, name: str, error: ApiError) -> bool:
        if self.store.resolve(ticket, SetApi(name, LoadState.ERROR)):
            self._report(error)
        return False

    def load_data(self) -> None:
        """Refresh every section, keeping each table on its current page."""
        self.last_loaded = time.monotonic()
        self.fetch_summary()
        for table in TABLE_TYPES:
            self.fetch_table(table, self.state.table(table).pagination.page)

    def is_due(self, now: float | None = None) -> bool:
        """Whether the polling interval has elapsed since the last load."""
        seconds = self.settings.refresh_seconds
        if seconds is None:
            return False
        if self.last_loaded is None:
            return True
        now = time.monotonic() if now is None else now
        return now - self.last_loaded >= seconds

    def fetch_summary(self) -> bool:
        ticket = self.store.begin_request(SUMMARY)
        self.store.set_api(SUMMARY, LoadState.LOADING)
        try:
            body = self.client.get(SUMMARY_PATH)
        except ApiError as exc:
            return self._fail(ticket, SUMMARY, exc)
        if not isinstance(body, Mapping):
            malformed = ApiError("Malformed inventory summary", code="BAD_RESPONSE")
            return self._fail(ticket, SUMMARY, malformed)
        if not self.store.is_current(ticket):
            return False
        data = body.get("data") if isinstance(body.get("data"), Mapping) else body
        self.summary = InventorySummary.from_payload(data)
        return self.store.resolve(ticket, SetApi(SUMMARY, LoadState.OK))

    def fetch_table(self, table: str, page: int) -> bool:
        ticket = self.store.begin_request(table)
        self.store.dispatch(
            SetApi(table, LoadState.LOADING),
            SetTable(table, pagination={"page": page}),
        )
        request: Dict[str, Any] = {
            "type": TABLE_TYPES[table],
            "page": page,
            "perPage": self.state.table(table).pagination.per_page,
        }
        try:
            body = self.client.post(PRODUCTS_BY_TYPE_PATH, request)
        except ApiError as exc:
            return self._fail(ticket, table, exc)
        if not isinstance(body, Mapping):
            malformed = ApiError("Malformed product list", code="BAD_RESPONSE")
            return self._fail(ticket, table, malformed)
        rows = body.get("data") or []
        if not isinstance(rows, list):
            logger.warning("Ignoring malformed %s rows", table)
            rows = []
        if table == STOCK_ALERTS:
            rows = [{**row, "level": alert_level(row)} for row in rows]
        return self.store.resolve(
            ticket,
            SetApi(table, LoadState.OK),
            SetTable(table, rows=rows, pagination=body.get("pagination") or {}),
        )

    def open_settings(self) -> None:
        self.store.set_modal(MODAL_SETTINGS, True)

    def close_settings(self) -> None:
        self.store.set_modal(MODAL_SETTINGS, False)

    def update_refresh_interval(self, interval: int) -> InventorySettings:
        self.settings = update_inventory_settings(self.storage, refresh_interval=interval)
        logger.info("Inventory refresh interval set to %s ms", interval)
        self.notifier.success("Settings updated")
        self.close_settings()
        return self.settings

    def unmount(self) -> None:
        self.store.unmount()


__all__ = [
    "DASHBOARD_SCHEMA",
    "InventoryDashboard",
    "InventorySummary",
    "STOCK_ALERTS",
    "SectionMode",
    "STOCK_ALERT_COLUMNS",
    "SUMMARY",
    "TOP_PRODUCTS",
    "TOP_PRODUCT_COLUMNS",
    "alert_level",
    "section_mode",
]
