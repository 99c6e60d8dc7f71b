"""
Pagination helpers for the DeepSource MCP Server.

DeepSource exposes both legacy offset pagination and Relay cursor
pagination. This module reconciles the two into one parameter set with a
single active direction, and drives sequential multi-page fetches.
"""

import math
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Dict, List, Mapping, NamedTuple, Optional, Union

from loguru import logger

from .constants import PAGINATION
from .models import PageInfo, PaginatedResponse, PaginationParams


PageFetcher = Callable[[Optional[str], int], Awaitable[PaginatedResponse]]


def _to_non_negative_int(value: Any) -> int:
    """Coerce to a floored integer; anything non-numeric becomes 0."""
    if isinstance(value, bool):
        value = int(value)
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    if not math.isfinite(number):
        return 0
    return max(0, math.floor(number))


def normalize_pagination_params(
    params: Union[PaginationParams, Mapping[str, Any], None] = None
) -> PaginationParams:
    """
    Normalize pagination input so exactly one Relay direction is active.

    Rules, in order:
        1. ``offset`` becomes a non-negative int; ``first``/``last`` become
           ints of at least 1 when provided.
        2. ``after``/``before`` are coerced to strings.
        3. With ``before``: ``last`` falls back to ``first``, then 10, and
           ``first`` is cleared.
        4. With ``last`` but no ``before``: ``first`` is cleared and a
           warning is logged.
        5. Otherwise ``first`` defaults to 10 and ``last`` is cleared.

    ``offset`` and ``after`` pass through. The input is never mutated.

    Args:
        params: Pagination parameters or a plain mapping

    Returns:
        A new, normalized PaginationParams
    """
    if params is None:
        params = PaginationParams()
    elif not isinstance(params, PaginationParams):
        params = PaginationParams.from_dict(dict(params))

    offset = params.offset
    first = params.first
    last = params.last
    after = params.after
    before = params.before

    if offset is not None:
        offset = _to_non_negative_int(offset)
    if first is not None:
        first = max(1, _to_non_negative_int(first))
    if last is not None:
        last = max(1, _to_non_negative_int(last))

    if after is not None and not isinstance(after, str):
        after = str(after)
    if before is not None and not isinstance(before, str):
        before = str(before)

    if before:
        last = last if last is not None else (first if first is not None else PAGINATION.DEFAULT_PAGE_SIZE)
        first = None
    elif last is not None:
        logger.warning(
            'Non-standard pagination: Using "last=N" without "before" cursor is not recommended'
        )
        first = None
    else:
        first = first if first is not None else PAGINATION.DEFAULT_PAGE_SIZE
        last = None

    return replace(params, offset=offset, first=first, last=last, after=after, before=before)


def create_empty_paginated_response() -> PaginatedResponse:
    """Return the canonical empty page."""
    return PaginatedResponse.empty()


def is_valid_cursor(cursor: Any) -> bool:
    """Check that a cursor is a non-empty string."""
    return isinstance(cursor, str) and bool(cursor.strip())


class PaginationPlan(NamedTuple):
    """Normalized params plus the multi-page settings that never go upstream."""
    params: PaginationParams
    max_pages: Optional[int]
    page_size: int


def process_pagination_params(
    params: Union[PaginationParams, Mapping[str, Any], None]
) -> PaginationPlan:
    """
    Resolve ``page_size``/``max_pages`` and normalize the rest.

    ``page_size`` is an alias for ``first`` and only applies when ``first``
    is unset. ``max_pages`` of ``None`` means a single-page request; when
    set, pages of ``page_size`` (or ``first``, or 50) are fetched.
    """
    if params is None:
        params = PaginationParams()
    elif not isinstance(params, PaginationParams):
        params = PaginationParams.from_dict(dict(params))

    if params.page_size is not None and params.first is None:
        params = replace(params, first=params.page_size)

    max_pages = None
    if params.max_pages is not None:
        max_pages = max(1, _to_non_negative_int(params.max_pages))

    page_size = PAGINATION.MULTI_PAGE_SIZE
    if params.first is not None:
        page_size = max(1, _to_non_negative_int(params.first))

    return PaginationPlan(normalize_pagination_params(params), max_pages, page_size)


def merge_responses(responses: List[PaginatedResponse]) -> PaginatedResponse:
    """
    Merge sequential pages into one response.

    Items keep their page order. ``hasPreviousPage``/``startCursor`` come
    from the first page; ``hasNextPage``/``endCursor`` and ``totalCount``
    from the last.
    """
    if not responses:
        return create_empty_paginated_response()

    items: List[Any] = []
    for response in responses:
        items.extend(response.items)

    first_page, last_page = responses[0], responses[-1]
    return PaginatedResponse(
        items=items,
        page_info=PageInfo(
            has_next_page=last_page.page_info.has_next_page,
            has_previous_page=first_page.page_info.has_previous_page,
            start_cursor=first_page.page_info.start_cursor,
            end_cursor=last_page.page_info.end_cursor,
        ),
        total_count=last_page.total_count,
    )


@dataclass(frozen=True)
class MultiPageResult:
    """Outcome of :func:`fetch_multiple_pages`."""
    response: PaginatedResponse
    pages_fetched: int
    limit_reached: bool
    page_size: int


async def fetch_multiple_pages(
    fetcher: PageFetcher,
    max_pages: int = PAGINATION.DEFAULT_MAX_PAGES,
    page_size: int = PAGINATION.MULTI_PAGE_SIZE,
    start_cursor: Optional[str] = None,
) -> MultiPageResult:
    """
    Fetch pages one after another until exhausted or ``max_pages`` is hit.

    Args:
        fetcher: Coroutine function taking (cursor, page_size)
        max_pages: Upper bound on requests issued
        page_size: Items requested per page
        start_cursor: Cursor to resume from

    Returns:
        MultiPageResult with the merged response
    """
    pages: List[PaginatedResponse] = []
    cursor = start_cursor

    while len(pages) < max_pages:
        page = await fetcher(cursor, page_size)
        pages.append(page)

        next_cursor = page.page_info.end_cursor
        if not page.page_info.has_next_page or not is_valid_cursor(next_cursor):
            break
        if next_cursor == cursor:
            logger.warning(f"Pagination cursor did not advance ({cursor}), stopping")
            break
        cursor = next_cursor

    merged = merge_responses(pages)
    limit_reached = len(pages) >= max_pages and merged.page_info.has_next_page
    if limit_reached:
        logger.info(f"Stopped after {len(pages)} pages; more results are available")

    return MultiPageResult(
        response=merged,
        pages_fetched=len(pages),
        limit_reached=limit_reached,
        page_size=page_size,
    )


async def paginate(
    plan: PaginationPlan,
    fetch_page: Callable[[PaginationParams], Awaitable[PaginatedResponse]],
) -> PaginatedResponse:
    """
    Run a list request as planned: one page, or forward pages up to ``max_pages``.

    Multi-page fetches always move forward from ``after``; ``offset`` and
    backward cursors are dropped for them.
    """
    if not plan.max_pages:
        return await fetch_page(plan.params)

    async def fetcher(cursor: Optional[str], size: int) -> PaginatedResponse:
        return await fetch_page(
            replace(plan.params, offset=None, first=size, after=cursor, before=None, last=None)
        )

    result = await fetch_multiple_pages(
        fetcher,
        max_pages=plan.max_pages,
        page_size=plan.page_size,
        start_cursor=plan.params.after,
    )
    logger.debug(f"Fetched {result.pages_fetched} page(s) of up to {result.page_size} items")
    return result.response


def pagination_metadata(
    response: PaginatedResponse,
    page_size: Optional[int] = None,
    pages_fetched: Optional[int] = None,
    limit_reached: bool = False,
) -> Dict[str, Any]:
    """Summarize a page for callers that want to continue paging."""
    metadata: Dict[str, Any] = {
        "has_more_pages": response.page_info.has_next_page,
        "page_size": page_size if page_size is not None else len(response.items),
        "total_count": response.total_count,
    }
    if response.page_info.end_cursor:
        metadata["next_cursor"] = response.page_info.end_cursor
    if response.page_info.start_cursor:
        metadata["previous_cursor"] = response.page_info.start_cursor
    if pages_fetched is not None:
        metadata["pages_fetched"] = pages_fetched
    if limit_reached:
        metadata["limit_reached"] = True
    return metadata


def create_pagination_help() -> str:
    """Usage notes appended to paginated tool descriptions."""
    return (
        "Pagination: use `first` (with optional `after` cursor) to page forward, "
        "or `last` with a `before` cursor to page backward. Cursors come from "
        "pageInfo.endCursor / pageInfo.startCursor. `page_size` is an alias for "
        "`first`; set `max_pages` to fetch several pages in one call."
    )
