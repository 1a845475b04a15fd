# =============================================================================
# core/pagination.py  -  Walking offset/limit pages into one bounded list
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Given a way to fetch one page, keeps fetching until the listing is
#   exhausted or MAX_ITEMS have been collected, and returns a single flat list.
#
# PAGE SHAPES:
#   The Veeam API isn't uniform.  A page can be:
#     - a bare JSON array                    -> PageShape.SEQUENCE
#     - {"items": [...], ...}                -> PageShape.ITEMS_WRAPPER
#     - {"data": [...], "pagination": ...}   -> PageShape.DATA_WRAPPER
#     - anything else                        -> PageShape.UNRECOGNIZED
#
#   An UNRECOGNIZED page ends aggregation immediately and is returned as-is.
#   We can't iterate a shape we don't understand, and the raw page is more
#   useful to the agent than an empty list.
# =============================================================================

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

MAX_ITEMS = 1000
MAX_PAGE_SIZE = 100
PAGE_DELAY_SECONDS = 0.05


class PageShape(Enum):
    SEQUENCE = "sequence"
    ITEMS_WRAPPER = "items"
    DATA_WRAPPER = "data"
    UNRECOGNIZED = "unrecognized"


def classify_page(page: Any) -> PageShape:
    """Tell which of the known listing shapes `page` has."""
    if isinstance(page, list):
        return PageShape.SEQUENCE
    if isinstance(page, dict):
        if isinstance(page.get("items"), list):
            return PageShape.ITEMS_WRAPPER
        if isinstance(page.get("data"), list):
            return PageShape.DATA_WRAPPER
    return PageShape.UNRECOGNIZED


def page_items(page: Any, shape: PageShape) -> list:
    if shape is PageShape.SEQUENCE:
        return page
    if shape is PageShape.ITEMS_WRAPPER:
        return page["items"]
    if shape is PageShape.DATA_WRAPPER:
        return page["data"]
    raise ValueError("page has no recognizable item list")


def normalize_page_size(limit: Optional[int]) -> int:
    """Clamp a caller's limit into [1, MAX_PAGE_SIZE]; default MAX_PAGE_SIZE."""
    if not limit:
        return MAX_PAGE_SIZE
    return min(max(1, limit), MAX_PAGE_SIZE)


async def collect_pages(
    fetch_page: Callable[[int, int], Awaitable[Any]],
    offset: int = 0,
    page_size: int = MAX_PAGE_SIZE,
    delay: float = PAGE_DELAY_SECONDS,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> Any:
    """Fetch consecutive pages and flatten them.

    Pages are requested one at a time, in increasing offset order, with a
    short pause in between so we don't hammer the backup server.

    Args:
        fetch_page: ``await fetch_page(offset, limit)`` returns one raw page.
        offset: Where to start.
        page_size: Items requested per page.
        delay: Seconds to sleep between page requests.
        sleep: Awaitable sleeper (tests pass a recording fake).

    Returns:
        Up to MAX_ITEMS items in upstream order, or the first page whose
        shape is unrecognized (verbatim).
    """
    collected: list = []
    pages = 0
    while True:
        page = await fetch_page(offset, page_size)
        pages += 1
        shape = classify_page(page)
        if shape is PageShape.UNRECOGNIZED:
            logger.info("Page at offset %d has no item list; returning it unmodified", offset)
            return page

        items = page_items(page, shape)
        collected.extend(items)
        if len(collected) >= MAX_ITEMS or len(items) < page_size:
            break

        offset += page_size
        await sleep(delay)

    logger.debug("Collected %d items over %d pages", len(collected), pages)
    return collected[:MAX_ITEMS]
