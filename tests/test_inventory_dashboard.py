import json

import pytest

from conftest import list_body

from gestion.core.errors import ApiError
from gestion.core.load_state import LoadState
from gestion.services.inventory_dashboard import (
    STOCK_ALERTS,
    SUMMARY,
    TOP_PRODUCTS,
    InventoryDashboard,
    InventorySummary,
    SectionMode,
    alert_level,
    section_mode,
)
from gestion.services.settings_store import LocalStore


@pytest.fixture
def storage(tmp_path):
    return LocalStore(tmp_path / "storage.json")


@pytest.fixture
def dashboard(client, notifier, storage):
    return InventoryDashboard(client, notifier, storage)


def by_type(alerts, top):
    def reply(payload):
        return alerts if payload["type"] == "alert" else top

    return reply


def test_load_data_fills_every_section(dashboard, client):
    client.reply(
        "GET",
        "/inventory/summary",
        {"totalProducts": 12, "totalStock": 340, "lowStockCount": 3, "outOfStockCount": 1},
    )
    client.reply(
        "POST",
        "/inventory/products-by-type",
        by_type(
            list_body([{"product": "Milk", "currentStock": 0, "minStock": 5}]),
            list_body([{"product": "Bread", "totalSold": 40}]),
        ),
    )

    dashboard.load_data()

    assert dashboard.summary == InventorySummary(12, 340, 3, 1)
    state = dashboard.state
    assert {state.api(name) for name in (SUMMARY, STOCK_ALERTS, TOP_PRODUCTS)} == {LoadState.OK}
    assert state.table(STOCK_ALERTS).rows[0]["level"] == "Out of stock"
    assert state.table(TOP_PRODUCTS).rows[0]["product"] == "Bread"
    assert ("POST", "/inventory/products-by-type", {"type": "alert", "page": 1, "perPage": 10}) in client.calls
    assert ("POST", "/inventory/products-by-type", {"type": "top-sales", "page": 1, "perPage": 10}) in client.calls


def test_one_failing_section_does_not_block_the_others(dashboard, client, notifier):
    client.reply("GET", "/inventory/summary", ApiError("boom"))
    client.reply(
        "POST",
        "/inventory/products-by-type",
        by_type(list_body([]), list_body([{"product": "Bread"}])),
    )

    dashboard.load_data()

    assert dashboard.state.api(SUMMARY) is LoadState.ERROR
    assert dashboard.state.api(TOP_PRODUCTS) is LoadState.OK
    assert len(notifier.errors) == 1


def test_table_page_change(dashboard, client):
    client.reply(
        "POST",
        "/inventory/products-by-type",
        lambda payload: list_body([{"product": "x"}], page=payload["page"], total_items=25),
    )
    dashboard.fetch_table(TOP_PRODUCTS, 3)
    pagination = dashboard.state.table(TOP_PRODUCTS).pagination
    assert pagination.page == 3
    assert not pagination.has_next


@pytest.mark.parametrize(
    "row,level",
    [
        ({"currentStock": 0, "minStock": 10}, "Out of stock"),
        ({"currentStock": 4, "minStock": 10}, "Critical"),
        ({"currentStock": 7, "minStock": 10}, "Low"),
        ({"currentStock": 3, "minStock": 0}, "Out of stock"),
    ],
)
def test_alert_level(row, level):
    assert alert_level(row) == level


def test_refresh_interval_is_persisted(dashboard, storage, notifier):
    dashboard.open_settings()
    settings = dashboard.update_refresh_interval(60_000)
    assert settings.refresh_seconds == 60
    assert json.loads(storage.get_item("inventory_settings")) == {"refreshInterval": 60_000}
    assert not dashboard.state.is_open("settings")
    assert notifier.successes == ["Settings updated"]


def test_is_due_follows_refresh_interval(dashboard, client):
    client.reply("GET", "/inventory/summary", {})
    client.reply("POST", "/inventory/products-by-type", list_body([]))

    assert not dashboard.is_due()
    dashboard.update_refresh_interval(5_000)
    assert dashboard.is_due()

    dashboard.load_data()
    assert not dashboard.is_due(now=dashboard.last_loaded + 1)
    assert dashboard.is_due(now=dashboard.last_loaded + 5)


@pytest.mark.parametrize(
    "load,mode",
    [
        (LoadState.IDLE, SectionMode.LOADING),
        (LoadState.LOADING, SectionMode.LOADING),
        (LoadState.ERROR, SectionMode.ERROR),
        (LoadState.OK, SectionMode.CONTENT),
    ],
)
def test_section_mode(load, mode):
    assert section_mode(load) is mode


def test_summary_is_hidden_until_loaded(dashboard):
    assert section_mode(dashboard.state.api(SUMMARY)) is SectionMode.LOADING


def test_malformed_summary_is_an_error(dashboard, client, notifier):
    client.reply("GET", "/inventory/summary", ["not", "a", "summary"])

    assert dashboard.fetch_summary() is False

    assert section_mode(dashboard.state.api(SUMMARY)) is SectionMode.ERROR
    assert notifier.errors[0].code == "BAD_RESPONSE"


def test_summary_retry_after_failure(dashboard, client):
    client.reply(
        "GET",
        "/inventory/summary",
        ApiError("boom"),
        {"data": {"totalProducts": 2, "totalStock": 5, "lowStockCount": 0, "outOfStockCount": 0}},
    )
    dashboard.fetch_summary()
    assert dashboard.fetch_summary() is True
    assert dashboard.summary.total_products == 2
    assert dashboard.state.api(SUMMARY) is LoadState.OK


def test_malformed_table_is_an_error(dashboard, client):
    client.reply("POST", "/inventory/products-by-type", "oops")
    assert dashboard.fetch_table(TOP_PRODUCTS, 1) is False
    assert dashboard.state.api(TOP_PRODUCTS) is LoadState.ERROR
