"""
Offset-based windowing of listing queries.

Counts the rows of a filtered query and applies LIMIT/OFFSET from a
computed ``PaginationState``.
"""

from collections.abc import Sequence
from typing import Any

from sqlalchemy import Select
from sqlmodel import func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from listing_filters.schemas.state import PaginationState


def build_count_query(
    query: Select[Any],
    count_columns: Sequence[Any] | None = None,
) -> Select[Any]:
    """
    Build ``SELECT count(*) FROM (<query>)`` for a listing query.

    ORDER BY is stripped since it does not change the count. When
    ``count_columns`` is given, the inner query selects only those columns,
    which keeps the subquery cheap for wide or eagerly-loaded selects.

    Args:
        query: The filtered (not yet windowed) data query.
        count_columns: Optional replacement for the selected columns.

    Returns:
        The count query.
    """
    inner = query.order_by(None)
    if count_columns:
        inner = inner.with_only_columns(*count_columns)
    return select(func.count()).select_from(inner.subquery())


class SessionQueryCounter:
    """
    Count rows of listing queries through a SQLModel async session.

    Example:
        ```python
        async with async_session() as session:
            counter = SessionQueryCounter(session)
            total = await counter.count(select(Post).where(Post.published))
        ```
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize the counter.

        Args:
            session: SQLModel async session for database queries.
        """
        self.session = session

    async def count(
        self,
        query: Select[Any],
        count_columns: Sequence[Any] | None = None,
    ) -> int:
        """
        Count the rows the query would return.

        Raises:
            SQLAlchemyError: If the count query fails.
        """
        result = await self.session.exec(
            build_count_query(query, count_columns)
        )
        return result.one()


def apply_window(query: Select[Any], state: PaginationState) -> Select[Any]:
    """Apply LIMIT/OFFSET of the page window to the data query."""
    return query.offset(state.offset).limit(state.limit)
