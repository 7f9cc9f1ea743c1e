"""Tests for pagination arithmetic."""

from app.utils.pagination import calculate_pagination


def test_middle_page():
    p = calculate_pagination(2, 10, 35)
    assert p.total_pages == 4
    assert p.offset == 10
    assert p.has_next and p.has_prev
    assert p.next_page == 3 and p.prev_page == 1
    assert p.to_meta() == {"showing": "11-20 of 35", "first": 1, "last": 4}


def test_last_page_is_partial():
    p = calculate_pagination(4, 10, 35)
    assert p.has_next is False
    assert p.next_page is None
    assert p.to_meta()["showing"] == "31-35 of 35"


def test_limits_are_normalized():
    assert calculate_pagination(1, 500, 1000).items_per_page == 100
    assert calculate_pagination(1, 0, 5).items_per_page == 10
    assert calculate_pagination(1, None, 5).items_per_page == 10
    assert calculate_pagination(0, 10, 5).current_page == 1


def test_empty_result_set():
    p = calculate_pagination(1, 10, 0)
    assert p.total_pages == 0
    assert p.has_next is False
    assert p.has_prev is False
    assert p.to_response()["total_items"] == 0
