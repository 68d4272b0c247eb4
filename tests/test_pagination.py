"""Tests for pagination clamping."""

import pytest

from gametracker.core.pagination import build_pagination, clamp_pagination


@pytest.mark.parametrize(
    ("page", "limit", "expected"),
    [
        (None, None, (1, 20)),
        (3, 10, (3, 10)),
        ("2", "15", (2, 15)),
        (0, 0, (1, 20)),
        (-4, -1, (1, 1)),
        ("abc", "xyz", (1, 20)),
        (1, 1000, (1, 100)),
    ],
)
def test_clamp_pagination(page, limit, expected) -> None:
    params = clamp_pagination(page, limit)
    assert (params.page, params.limit) == expected


def test_clamp_pagination_custom_max() -> None:
    assert clamp_pagination(1, 80, max_limit=50).limit == 50


def test_offset() -> None:
    assert clamp_pagination(3, 20).offset == 40


def test_build_pagination() -> None:
    """Test total pages and navigation flags."""
    meta = build_pagination(clamp_pagination(2, 10), total_count=25)
    assert meta.total_pages == 3
    assert meta.has_next is True
    assert meta.has_prev is True

    last = build_pagination(clamp_pagination(3, 10), total_count=25)
    assert last.has_next is False

    empty = build_pagination(clamp_pagination(1, 10), total_count=0)
    assert empty.total_pages == 0
    assert empty.has_next is False
    assert empty.has_prev is False
