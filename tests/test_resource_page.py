import pytest

from conftest import list_body

from gestion.core.errors import ApiError, AuthenticationError
from gestion.core.load_state import LoadState
from gestion.resources import BRANDS, CUSTOMERS, MOVEMENTS, PRODUCTS, SUPPLIERS
from gestion.services.resource_page import ResourcePage


def make_rows(count, start=1):
    return [
        {"id": str(i), "name": f"Brand {i}", "isEditable": True, "isDeletable": True}
        for i in range(start, start + count)
    ]


@pytest.fixture
def page(client, notifier):
    return ResourcePage(BRANDS, client, notifier)


def test_first_page_is_loaded_on_mount(page, client):
    client.reply("POST", "/brands", list_body(make_rows(5)))

    page.mount()

    assert client.calls == [("POST", "/brands", {"page": 1, "perPage": 10})]
    state = page.state
    assert state.api("pagination") is LoadState.OK
    assert len(state.table().rows) == 5
    assert state.table().pagination.total_pages == 1
    assert not state.table().pagination.has_next


def test_mount_does_not_refetch(page, client):
    client.reply("POST", "/brands", list_body(make_rows(2)))
    page.mount()
    page.mount()
    assert len(client.calls) == 1


def test_list_failure_then_retry_repeats_the_request(page, client, notifier):
    failure = ApiError.from_payload({"error": {"code": "SERVER_ERROR", "message": "boom"}})
    client.reply("POST", "/brands", failure, list_body(make_rows(1)))
    page.submit_filters({"name": "Acme"})

    assert page.state.api("pagination") is LoadState.ERROR
    assert [str(e) for e in notifier.errors] == ["SERVER_ERROR: boom"]

    # edited but unsubmitted filters must not leak into the retry
    page.filters.edit(name="Other")
    page.retry_list()

    assert client.calls[0] == client.calls[1]
    assert client.calls[1][2] == {"name": "Acme", "page": 1, "perPage": 10}
    assert page.state.api("pagination") is LoadState.OK


def test_page_change_keeps_submitted_filters(page, client):
    client.reply(
        "POST",
        "/brands",
        lambda payload: list_body(make_rows(10), page=payload["page"], total_items=30),
    )
    page.submit_filters({"name": "Acme"})
    page.filters.edit(name="Unsubmitted")
    page.change_page(2)

    assert client.calls[-1][2] == {"name": "Acme", "page": 2, "perPage": 10}
    pagination = page.state.table().pagination
    assert pagination.page == 2
    assert pagination.has_prev and pagination.has_next


def test_per_page_change_and_clear_reset_to_first_page(page, client):
    client.reply(
        "POST",
        "/brands",
        lambda payload: list_body(
            make_rows(5), page=payload["page"], per_page=payload["perPage"], total_items=50
        ),
    )
    page.submit_filters({"name": "Acme"})
    page.change_page(3)
    page.change_per_page(20)
    assert client.calls[-1][2] == {"name": "Acme", "page": 1, "perPage": 20}

    page.change_page(2)
    page.clear_filters()
    assert client.calls[-1][2] == {"page": 1, "perPage": 20}


def test_pagination_is_computed_when_missing(page, client):
    client.reply("POST", "/brands", {"data": make_rows(3)})
    page.fetch_list(1)
    pagination = page.state.table().pagination
    assert pagination.total_items == 3
    assert pagination.total_pages == 1


def test_stale_list_response_is_discarded(page, client):
    def slow_first_page(payload):
        if payload["page"] == 1:
            # user moves to page 2 before page 1 answers
            page.change_page(2)
            return list_body(make_rows(10), page=1, total_items=20)
        return list_body(make_rows(10, start=11), page=2, total_items=20)

    client.reply("POST", "/brands", slow_first_page)

    assert page.fetch_list(1) is False
    table = page.state.table()
    assert table.pagination.page == 2
    assert table.rows[0]["id"] == "11"


def test_response_after_unmount_is_discarded(page, client):
    def leave_page(payload):
        page.unmount()
        return list_body(make_rows(3))

    client.reply("POST", "/brands", leave_page)
    assert page.fetch_list(1) is False
    assert page.state.table().rows == ()
    assert page.state.api("pagination") is LoadState.LOADING


def test_edit_loads_detail_then_submit_refetches_current_page(page, client, notifier):
    client.reply(
        "POST",
        "/brands",
        lambda payload: list_body(make_rows(10), page=payload["page"], total_items=30),
    )
    client.reply("GET", "/brands/42", {"data": {"id": "42", "name": "Acme", "description": "x"}})
    client.reply("POST", "/brand-upsert", {"data": {"id": "42"}})
    page.change_page(2)

    row = {"id": "42", "name": "Acme"}

    page.open_edit(row)
    state = page.state
    assert state.selection("row") == row
    assert state.is_open("upsert")
    assert state.modal is LoadState.OK
    assert page.form.values["name"] == "Acme"

    page.form.update(name="Acme Corp")
    assert page.submit_upsert() is True

    state = page.state
    assert not state.is_open("upsert")
    assert state.selection("row") is None
    assert state.button("upsert") is False
    assert client.calls[-2] == (
        "POST",
        "/brand-upsert",
        {"id": "42", "name": "Acme Corp", "description": "x"},
    )
    assert client.calls[-1] == ("POST", "/brands", {"page": 2, "perPage": 10})
    assert notifier.successes == ["Brand updated successfully"]


def test_edit_modal_is_loading_while_detail_is_pending(page, client):
    seen = {}

    def capture(_):
        seen["modal"] = page.state.modal
        seen["open"] = page.state.is_open("upsert")
        return {"data": {"id": "42", "name": "Acme"}}

    client.reply("GET", "/brands/42", capture)
    page.open_edit({"id": "42"})
    assert seen == {"modal": LoadState.LOADING, "open": True}


def test_detail_failure_can_be_retried(page, client, notifier):
    client.reply(
        "GET",
        "/brands/7",
        ApiError("Timeout", code="TIMEOUT"),
        {"data": {"id": "7", "name": "Retried"}},
    )
    page.open_edit({"id": "7"})
    assert page.state.modal is LoadState.ERROR
    assert page.state.api("detail") is LoadState.ERROR
    assert len(notifier.errors) == 1

    page.retry_detail()
    assert page.state.modal is LoadState.OK
    assert page.form.values["name"] == "Retried"


def test_closing_during_detail_fetch_ignores_late_response(page, client):
    def close_first(_):
        page.close_upsert()
        return {"data": {"id": "9", "name": "Late"}}

    client.reply("GET", "/brands/9", close_first)
    assert page.open_edit({"id": "9"}) is False
    assert page.state.open_modal is None
    assert page.form.values["name"] == ""


def test_create_opens_ready_modal_with_defaults(page, client, notifier):
    client.reply("POST", "/brand-upsert", {"data": {"id": "1"}})
    client.reply("POST", "/brands", list_body(make_rows(1)))
    page.form.update(name="leftover")

    page.open_create()
    assert page.state.is_open("upsert")
    assert page.state.modal is LoadState.OK
    assert page.state.selection("row") is None
    assert page.form.values["name"] == ""

    assert page.submit_upsert({"name": "New brand"})
    assert notifier.successes == ["Brand created successfully"]
    assert ("GET", "/brands/1", None) not in client.calls


def test_invalid_form_is_not_submitted(page, client):
    page.open_create()
    assert page.submit_upsert() is False
    assert "name" in page.form.errors
    assert client.calls == []
    assert page.state.is_open("upsert")


def test_server_validation_errors_stay_on_the_form(page, client, notifier):
    client.reply(
        "POST",
        "/brand-upsert",
        ApiError.from_payload({"errors": [{"field": "name", "message": "Already exists"}]}),
    )
    page.open_create()
    assert page.submit_upsert({"name": "Acme"}) is False

    state = page.state
    assert state.api("upsert") is LoadState.ERROR
    assert state.is_open("upsert")
    assert state.modal is LoadState.OK
    assert state.button("upsert") is False
    assert page.form.errors == {"name": "Already exists"}
    assert notifier.errors == []


def test_server_error_without_fields_is_notified(page, client, notifier):
    client.reply("POST", "/brand-upsert", ApiError("Down", code="SERVER_ERROR"))
    page.open_create()
    page.submit_upsert({"name": "Acme"})
    assert [e.code for e in notifier.errors] == ["SERVER_ERROR"]
    assert page.state.is_open("upsert")


def test_submit_is_ignored_while_busy(page, client):
    page.open_create()
    page.store.set_button("upsert", True)
    assert page.submit_upsert({"name": "Acme"}) is False
    assert client.calls == []


def test_button_is_busy_during_submit(page, client):
    seen = []

    def capture(_):
        seen.append(page.state.button("upsert"))
        return {}

    client.reply("POST", "/brand-upsert", capture)
    client.reply("POST", "/brands", list_body([]))
    page.open_create()
    page.submit_upsert({"name": "Acme"})
    assert seen == [True]
    assert page.state.button("upsert") is False


def test_latest_delete_selection_wins(page, client, notifier):
    client.reply("DELETE", "/brands/B", {"message": "Brand removed"})
    client.reply("POST", "/brands", list_body([]))

    page.open_delete({"id": "A", "name": "A"})
    page.open_delete({"id": "B", "name": "B"})
    assert page.state.selection("delete") == {"id": "B", "name": "B"}

    assert page.confirm_delete() is True
    assert ("DELETE", "/brands/B", None) in client.calls
    assert ("DELETE", "/brands/A", None) not in client.calls
    assert not page.state.is_open("delete")
    assert page.state.selection("delete") is None
    assert notifier.successes == ["Brand removed"]


def test_delete_failure_keeps_dialog_open(page, client, notifier):
    client.reply("DELETE", "/brands/A", ApiError("In use", code="CONFLICT"))
    page.open_delete({"id": "A"})
    assert page.confirm_delete() is False
    assert page.state.is_open("delete")
    assert page.state.api("delete") is LoadState.ERROR
    assert page.state.button("delete") is False
    assert notifier.errors[0].code == "CONFLICT"


def test_non_deletable_and_non_editable_rows_are_refused(page, client, notifier):
    assert page.open_delete({"id": "A", "isDeletable": False}) is False
    assert page.open_edit({"id": "A", "isEditable": False}) is False
    assert page.state.open_modal is None
    assert len(notifier.infos) == 2
    assert client.calls == []


def test_authentication_errors_propagate(page, client):
    client.reply("POST", "/brands", AuthenticationError("Expired", status=401))
    with pytest.raises(AuthenticationError):
        page.fetch_list(1)
    assert page.state.api("pagination") is LoadState.ERROR


def test_create_and_update_paths_are_used_without_upsert_endpoint(client, notifier):
    page = ResourcePage(SUPPLIERS, client, notifier)
    client.reply("POST", "/inventory/suppliers", {})
    client.reply("PUT", "/inventory/suppliers/s1", {})
    client.reply("POST", "/inventory/suppliers/list", list_body([]))

    page.open_create()
    assert page.submit_upsert({"code": "ACME", "name": "Acme"})
    page.form.reset({"id": "s1", "code": "ACME", "name": "Acme"})
    page.store.set_modal("upsert", True)
    assert page.submit_upsert()

    methods = [(method, path) for method, path, _ in client.calls]
    assert ("POST", "/inventory/suppliers") in methods
    assert ("PUT", "/inventory/suppliers/s1") in methods


def test_dropdown_options_are_loaded_and_cached(client, notifier):
    page = ResourcePage(PRODUCTS, client, notifier)
    client.reply("POST", "/brands", list_body([{"id": "b1", "name": "Acme"}]))

    assert page.load_options("brands")
    assert page.load_options("brands")

    options = page.state.async_selections["brands"]
    assert options.load is LoadState.OK
    assert options.items == ({"id": "b1", "name": "Acme"},)
    assert client.calls == [("POST", "/brands", {"page": 1, "perPage": 100})]

    page.load_options("brands", force=True)
    assert len(client.calls) == 2


def test_dropdown_failure_marks_selection_errored(client, notifier):
    page = ResourcePage(PRODUCTS, client, notifier)
    client.reply("POST", "/units", ApiError("boom"))
    assert page.load_options("units") is False
    assert page.state.async_selections["units"].load is LoadState.ERROR


def test_edit_is_ignored_while_saving(page, client):
    page.open_create()
    page.store.set_button("upsert", True)
    assert page.open_edit({"id": "A", "name": "A"}) is False
    assert page.open_create() is False
    assert page.state.selection("row") is None
    assert client.calls == []


def test_delete_is_ignored_while_deleting(page, client):
    page.store.set_button("delete", True)
    assert page.open_delete({"id": "A"}) is False
    assert not page.state.is_open("delete")


def test_read_only_resource_refuses_writes(client, notifier):
    page = ResourcePage(MOVEMENTS, client, notifier)
    row = {"_id": "m1", "batch": "B-1", "type": "increment"}
    assert page.open_create() is False
    assert page.open_edit(row) is False
    assert page.open_delete(row) is False
    assert page.state.open_modal is None
    assert client.calls == []


def test_rows_without_pagination_are_paged_locally(page, client):
    client.reply("POST", "/brands", {"data": make_rows(25)})
    page.fetch_list(3)
    table = page.state.table()
    assert [row["id"] for row in table.rows] == ["21", "22", "23", "24", "25"]
    assert table.pagination.page == 3
    assert table.pagination.total_pages == 3
    assert not table.pagination.has_next


def test_detail_without_data_envelope(client, notifier):
    page = ResourcePage(CUSTOMERS, client, notifier)
    client.reply(
        "GET",
        "/customers/c1",
        {"_id": "c1", "firstName": "Ana", "address": {"city": "Lima"}},
    )
    assert page.open_edit({"_id": "c1", "fullName": "Ana Diaz"})
    assert page.form.values["id"] == "c1"
    assert page.form.values["city"] == "Lima"
    assert page.state.modal is LoadState.OK


def test_empty_detail_is_an_error(page, client, notifier):
    client.reply("GET", "/brands/A", {"data": {}})
    assert page.open_edit({"id": "A"}) is False
    assert page.state.modal is LoadState.ERROR
    assert notifier.errors[0].code == "BAD_RESPONSE"
