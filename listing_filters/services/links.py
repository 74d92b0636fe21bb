"""
URL descriptors for sort headers and pagination controls.

These helpers only build ``ListingUrl`` values from a rendered
``FilterViewState``; turning them into strings is the job of the HTTP
adapter (see ``listing_filters.integrations.starlette.listing_url_path``).
"""

from typing import Any

from pydantic import BaseModel

from listing_filters.constants import (
    LIMIT_PARAM,
    PAGE_PARAM,
    SORT_ASC,
    SORT_DESC,
    SORT_DIR_PARAM,
    SORT_FIELD_PARAM,
)
from listing_filters.schemas.request import ListingUrl
from listing_filters.schemas.state import FilterViewState


class PageLink(BaseModel):  # type: ignore[misc]
    """One numbered link of the pagination control."""

    page: int
    url: ListingUrl
    active: bool = False


class PaginationLinks(BaseModel):  # type: ignore[misc]
    """Links of the pagination control; first/prev/next/last may be absent."""

    first: ListingUrl | None = None
    prev: ListingUrl | None = None
    pages: list[PageLink] = []
    next: ListingUrl | None = None
    last: ListingUrl | None = None
    current_page: int = 1
    base_url: ListingUrl
    total: int = 0
    from_: int = 0
    to: int = 0


def filter_url(state: FilterViewState, with_limit: bool = True) -> ListingUrl:
    """
    URL of the current listing: slug, pass-through params and limit.

    The limit is only spelled out when it differs from the default.
    """
    query: dict[str, Any] = {}
    if (
        with_limit
        and state.pagination is not None
        and state.active_limit is not None
        and state.active_limit != state.pagination.default_limit
    ):
        query[LIMIT_PARAM] = state.active_limit

    return ListingUrl.for_scope(
        state.scope,
        slugged_filter=state.slug,
        params=dict(state.pass_params),
        query=query,
    )


def _is_default_sort(state: FilterViewState, field: str, direction: str) -> bool:
    return state.default_sort is not None and tuple(state.default_sort) == (
        field,
        direction,
    )


def sort_url(state: FilterViewState, field: str | None = None) -> ListingUrl:
    """
    URL sorting the listing by ``field``.

    Clicking the active ascending field switches to descending, anything
    else sorts ascending. Without ``field`` the URL keeps the active sort.
    The default sort is never spelled out, and ``d`` is omitted for
    ascending order.
    """
    url = filter_url(state)

    if field is None:
        if not state.active_sort:
            return url
        field, direction = next(iter(state.active_sort.items()))
    elif state.active_sort.get(field) == SORT_ASC:
        direction = SORT_DESC
    else:
        direction = SORT_ASC

    if _is_default_sort(state, field, direction):
        return url

    url.query[SORT_FIELD_PARAM] = field
    if direction != SORT_ASC:
        url.query[SORT_DIR_PARAM] = direction
    return url


def page_url(state: FilterViewState, page: int) -> ListingUrl:
    """URL of one page of the listing; page 1 carries no page parameter."""
    url = sort_url(state)
    if page > 1:
        url.query[PAGE_PARAM] = page
    return url


def page_window(page: int, pages: int, max_page_numbers: int) -> range:
    """
    Page numbers to show around the current page.

    Example:
        >>> list(page_window(10, 20, 5))
        [8, 9, 10, 11, 12]
        >>> list(page_window(1, 3, 10))
        [1, 2, 3]
    """
    on_left = max_page_numbers // 2
    on_right = max_page_numbers - on_left - 1
    first, last = page - on_left, page + on_right
    if first < 1:
        first, last = 1, max_page_numbers
    if last > pages:
        last = pages
        first = last + 1 - max_page_numbers
    first = max(first, 1)
    return range(first, last + 1)


def pagination_links(
    state: FilterViewState, max_page_numbers: int = 10
) -> PaginationLinks | None:
    """
    Build every link of the pagination control.

    Args:
        state: Rendered filter state.
        max_page_numbers: Upper bound on numbered page links.

    Returns:
        The links, or None when the listing is not paginated.
    """
    pagination = state.pagination
    if pagination is None:
        return None

    page, pages = pagination.page, pagination.pages
    links = PaginationLinks(
        pages=[
            PageLink(page=number, url=page_url(state, number), active=number == page)
            for number in page_window(page, pages, max_page_numbers)
        ],
        current_page=page,
        base_url=filter_url(state, with_limit=False),
        total=pagination.total,
        from_=pagination.from_,
        to=pagination.to,
    )
    if page > 1:
        links.first = page_url(state, 1)
        links.prev = page_url(state, page - 1)
    if page < pages:
        links.next = page_url(state, page + 1)
        links.last = page_url(state, pages)
    return links
