"""
Page window arithmetic for listing pages.

Pure functions, no database access: the row total is counted elsewhere
(see ``listing_filters.storage.pagination.offset``) and passed in.
"""

import math
from collections.abc import Collection, Mapping
from typing import Any

from listing_filters.schemas.state import PaginationState


def parse_int(value: Any) -> int | None:
    """
    Read an integer query parameter.

    Returns None for missing or non-numeric values, so that garbage such as
    ``?p=abc`` behaves like an absent parameter.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def select_limit(
    requested: Any,
    allowed: Collection[int],
    default: int,
    remembered: Any = None,
) -> int:
    """
    Choose the page size of the request.

    The requested limit wins when it is one of the allowed limits, then a
    remembered limit (also only when it is still allowed), then the
    declared default.

    Args:
        requested: Value of the ``l`` query parameter.
        allowed: Limits offered by the endpoint.
        default: Declared default limit.
        remembered: Limit remembered in the session, if any.

    Returns:
        A member of ``allowed`` or ``default``.
    """
    for candidate in (requested, remembered):
        limit = parse_int(candidate)
        if limit is not None and limit in allowed:
            return limit
    return default


def calculate_pagination(
    limit: int,
    requested_page: Any,
    total: int,
    default_limit: int | None = None,
    limits: Collection[int] = (),
    pass_params: Mapping[str, Any] | None = None,
) -> PaginationState:
    """
    Compute the page window for a chosen limit and a row total.

    Args:
        limit: Rows per page, already selected.
        requested_page: Value of the ``p`` query parameter.
        total: Number of rows matching the filter.
        default_limit: Declared default limit, reported for rendering.
        limits: Allowed limits, reported for rendering.
        pass_params: Route parameters to keep in page links.

    Returns:
        PaginationState with the clamped page and display bounds.

    Example:
        >>> state = calculate_pagination(10, 99, 95)
        >>> state.page, state.pages, state.from_, state.to
        (10, 10, 91, 95)
    """
    pages = math.ceil(total / limit) if total > 0 else 1

    page = parse_int(requested_page) or 1
    page = max(1, min(page, pages))

    offset = (page - 1) * limit if page > 1 else 0

    if total == 0:
        first, last = 0, 0
    else:
        first = offset + 1
        last = min(first + limit - 1, total)

    return PaginationState(
        page=page,
        pages=pages,
        limit=limit,
        total=total,
        offset=offset,
        from_=first,
        to=last,
        default_limit=default_limit or limit,
        limits=tuple(limits),
        pass_params=dict(pass_params or {}),
    )


def paginate(
    requested_limit: Any,
    allowed_limits: Collection[int],
    default_limit: int,
    requested_page: Any,
    total: int,
    remembered_limit: Any = None,
    pass_params: Mapping[str, Any] | None = None,
) -> PaginationState:
    """
    Select the limit and compute the page window in one step.

    Example:
        >>> state = paginate("10", [10, 20], 20, "1", 95)
        >>> state.limit, state.pages, state.from_, state.to
        (10, 10, 1, 10)
    """
    limit = select_limit(
        requested_limit, allowed_limits, default_limit, remembered_limit
    )
    return calculate_pagination(
        limit,
        requested_page,
        total,
        default_limit=default_limit,
        limits=allowed_limits,
        pass_params=pass_params,
    )
