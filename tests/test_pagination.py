import pytest

from gestion.core.pagination import (
    PaginatedCollection,
    Pagination,
    get_pages,
    paginate_rows,
)


@pytest.mark.parametrize(
    "page,total_pages,expected",
    [
        (1, 10, [1, 2, 3]),
        (10, 10, [8, 9, 10]),
        (5, 10, [4, 5, 6]),
        (2, 2, [1, 2]),
        (1, 3, [1, 2, 3]),
        (1, 0, []),
    ],
)
def test_get_pages(page, total_pages, expected):
    assert get_pages(page, total_pages) == expected


def test_flags_follow_page_and_total_pages():
    pagination = Pagination(page=2, per_page=10, total_items=30, total_pages=3)
    assert pagination.has_prev
    assert pagination.has_next

    last = pagination.merge({"page": 3})
    assert last.has_prev
    assert not last.has_next


def test_merge_ignores_contradicting_flags():
    pagination = Pagination(page=1, total_pages=1).merge(
        {"hasNext": True, "hasPrev": True, "totalItems": 4}
    )
    assert pagination.total_items == 4
    assert not pagination.has_next
    assert not pagination.has_prev


def test_merge_keeps_unspecified_fields():
    pagination = Pagination(page=3, per_page=20, total_items=100, total_pages=5)
    merged = pagination.merge({"page": 4})
    assert merged == Pagination(page=4, per_page=20, total_items=100, total_pages=5)


def test_merge_accepts_snake_case_and_clamps():
    merged = Pagination().merge({"per_page": 0, "total_items": -3, "page": "x"})
    assert merged.per_page == 1
    assert merged.total_items == 0
    assert merged.page == 1


def test_merge_without_known_keys_returns_same_instance():
    pagination = Pagination(page=2)
    assert pagination.merge({"unknown": 1}) is pagination


def test_compute_never_reports_zero_pages():
    pagination = Pagination.compute(total_items=0, page=1, per_page=10)
    assert pagination.total_pages == 1
    assert pagination.page == 1
    assert not pagination.has_next


def test_compute_clamps_page():
    pagination = Pagination.compute(total_items=25, page=9, per_page=10)
    assert pagination.total_pages == 3
    assert pagination.page == 3
    assert pagination.has_prev
    assert not pagination.has_next


def test_payload_round_trip_uses_camel_case():
    payload = Pagination(page=2, per_page=5, total_items=12, total_pages=3).to_payload()
    assert payload == {
        "page": 2,
        "perPage": 5,
        "totalItems": 12,
        "totalPages": 3,
        "hasNext": True,
        "hasPrev": True,
    }
    assert Pagination.from_payload(payload).to_payload() == payload


def test_paginate_rows_slices_locally():
    rows = list(range(23))
    collection = paginate_rows(rows, page=3, per_page=10)
    assert collection.rows == (20, 21, 22)
    assert collection.pagination.total_pages == 3
    assert not collection.pagination.has_next


def test_collection_updates_are_immutable():
    collection = PaginatedCollection()
    updated = collection.with_rows([{"id": 1}]).with_pagination({"totalItems": 1})
    assert collection.is_empty
    assert not updated.is_empty
    assert updated.pagination.total_items == 1
