"""Tests for page-shape detection and page collection (core/pagination.py)."""

import math

import pytest

from core.pagination import (
    MAX_ITEMS,
    PAGE_DELAY_SECONDS,
    PageShape,
    classify_page,
    collect_pages,
    normalize_page_size,
    page_items,
)


@pytest.mark.parametrize(
    "page, shape",
    [
        ([1, 2], PageShape.SEQUENCE),
        ([], PageShape.SEQUENCE),
        ({"items": [1]}, PageShape.ITEMS_WRAPPER),
        ({"items": [1], "data": [2]}, PageShape.ITEMS_WRAPPER),
        ({"data": [], "pagination": {"total": 0}}, PageShape.DATA_WRAPPER),
        ({"items": "nope", "data": [1]}, PageShape.DATA_WRAPPER),
        ({"status": "ok"}, PageShape.UNRECOGNIZED),
        ({"data": {"nested": []}}, PageShape.UNRECOGNIZED),
        (None, PageShape.UNRECOGNIZED),
        ("text", PageShape.UNRECOGNIZED),
    ],
)
def test_classify_page(page, shape):
    assert classify_page(page) is shape


def test_page_items_refuses_unrecognized_pages():
    with pytest.raises(ValueError):
        page_items({"status": "ok"}, PageShape.UNRECOGNIZED)


@pytest.mark.parametrize("limit, expected", [(None, 100), (0, 100), (1, 1), (50, 50), (100, 100), (500, 100), (-3, 1)])
def test_normalize_page_size(limit, expected):
    assert normalize_page_size(limit) == expected


class FullPages:
    """Fetcher that always returns a full page and records the offsets asked for."""

    def __init__(self) -> None:
        self.calls: list[tuple[int, int]] = []

    async def __call__(self, offset: int, limit: int) -> list[int]:
        self.calls.append((offset, limit))
        return list(range(offset, offset + limit))


@pytest.mark.parametrize("page_size", [1, 7, 33, 100])
async def test_collection_is_bounded(page_size):
    fetch = FullPages()

    result = await collect_pages(fetch, page_size=page_size, delay=0)

    assert len(result) <= MAX_ITEMS
    assert len(fetch.calls) <= math.ceil(MAX_ITEMS / page_size) + 1
    offsets = [offset for offset, _ in fetch.calls]
    assert offsets == sorted(offsets)
    assert result == list(range(len(result)))


async def test_unrecognized_page_discards_collected_items():
    pages = [[1, 2], {"status": "degraded"}]

    async def fetch(offset, limit):
        return pages.pop(0)

    assert await collect_pages(fetch, page_size=2, delay=0) == {"status": "degraded"}


async def test_empty_first_page_stops_immediately():
    fetch_calls = []

    async def fetch(offset, limit):
        fetch_calls.append(offset)
        return {"data": []}

    assert await collect_pages(fetch, offset=10, page_size=5, delay=0) == []
    assert fetch_calls == [10]


class RecordingSleep:
    def __init__(self) -> None:
        self.pauses: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.pauses.append(seconds)


async def test_pauses_between_pages_but_not_after_the_last():
    pages = [[1, 2], [3, 4], [5]]
    sleep = RecordingSleep()

    async def fetch(offset, limit):
        return pages.pop(0)

    result = await collect_pages(fetch, page_size=2, sleep=sleep)

    assert result == [1, 2, 3, 4, 5]
    assert sleep.pauses == [PAGE_DELAY_SECONDS, PAGE_DELAY_SECONDS]


async def test_no_pause_after_the_cap_is_reached():
    fetch = FullPages()
    sleep = RecordingSleep()

    result = await collect_pages(fetch, page_size=100, sleep=sleep)

    assert len(result) == MAX_ITEMS
    assert len(fetch.calls) == 10
    assert sleep.pauses == [PAGE_DELAY_SECONDS] * 9


async def test_single_short_page_never_pauses():
    sleep = RecordingSleep()

    async def fetch(offset, limit):
        return {"items": [1]}

    assert await collect_pages(fetch, page_size=10, sleep=sleep) == [1]
    assert sleep.pauses == []
