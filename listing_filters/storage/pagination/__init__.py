"""
Pagination for listing pages.

The calculator does the page arithmetic on plain numbers; the offset module
counts rows and windows SQLAlchemy queries.

Example:
    ```python
    from listing_filters.storage.pagination import (
        SessionQueryCounter,
        apply_window,
        paginate,
    )

    total = await SessionQueryCounter(session).count(query)
    state = paginate(request_limit, [10, 20, 50], 20, request_page, total)
    rows = await session.exec(apply_window(query, state))
    ```
"""

from listing_filters.storage.pagination.calculator import (
    calculate_pagination,
    paginate,
    parse_int,
    select_limit,
)
from listing_filters.storage.pagination.offset import (
    SessionQueryCounter,
    apply_window,
    build_count_query,
)

__all__ = [
    "SessionQueryCounter",
    "apply_window",
    "build_count_query",
    "calculate_pagination",
    "paginate",
    "parse_int",
    "select_limit",
]
