"""
Repository for slug records.

Every lookup is restricted to one endpoint scope. A scope without a plugin
matches records whose plugin column is NULL.

Example:
    ```python
    from listing_filters.repositories.slugged_filter_repository import (
        SluggedFilterRepository,
    )
    from listing_filters.storage.db import async_session

    async with async_session() as session:
        repo = SluggedFilterRepository(session)
        slug = await repo.find_slug(scope, '{"status":"active"}')
    ```
"""

from typing import Any

from sqlalchemy import ColumnElement
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from listing_filters.models.slugged_filter import SluggedFilter
from listing_filters.repositories.base import BaseRepository
from listing_filters.schemas.scope import Scope


def scope_clause(scope: Scope) -> list[ColumnElement[bool]]:
    """WHERE clauses restricting slug records to one endpoint scope."""
    if scope.plugin is None:
        plugin_clause = SluggedFilter.plugin.is_(None)  # type: ignore[union-attr]
    else:
        plugin_clause = SluggedFilter.plugin == scope.plugin
    return [
        plugin_clause,
        SluggedFilter.controller == scope.controller,
        SluggedFilter.action == scope.action,
    ]


class SluggedFilterRepository(BaseRepository[SluggedFilter]):
    """
    Repository for SluggedFilter operations.

    Provides the generic operations of BaseRepository plus the scoped
    lookups used by the slug store.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize SluggedFilter repository.

        Args:
            session: Database session for executing queries.
        """
        super().__init__(session, SluggedFilter)

    async def find_slug(self, scope: Scope, filter_data: str) -> str | None:
        """
        Find the slug of encoded filter data within a scope.

        Args:
            scope: Endpoint scope.
            filter_data: JSON-encoded filter data, compared verbatim.

        Returns:
            The oldest matching slug, None if there is none.
        """
        stmt = (
            select(SluggedFilter.slug)
            .where(*scope_clause(scope))
            .where(SluggedFilter.filter_data == filter_data)
            .order_by(SluggedFilter.id)
        )
        result = await self.session.exec(stmt)
        return result.first()

    async def find_filter_data(self, scope: Scope, slug: str) -> str | None:
        """
        Find the stored filter data of a slug within a scope.

        Returns:
            The JSON text as stored, None if the slug is unknown.
        """
        stmt = (
            select(SluggedFilter.filter_data)
            .where(*scope_clause(scope))
            .where(SluggedFilter.slug == slug)
        )
        result = await self.session.exec(stmt)
        return result.first()

    async def slug_exists(self, scope: Scope, slug: str) -> bool:
        """Check whether the slug is already taken within the scope."""
        stmt = (
            select(SluggedFilter.id)
            .where(*scope_clause(scope))
            .where(SluggedFilter.slug == slug)
        )
        result = await self.session.exec(stmt)
        return result.first() is not None

    async def add(
        self, scope: Scope, slug: str, filter_data: str
    ) -> SluggedFilter:
        """
        Persist a new slug record.

        Raises:
            SQLAlchemyError: If the insert fails.
        """
        return await self.create(
            SluggedFilter(
                plugin=scope.plugin,
                controller=scope.controller,
                action=scope.action,
                slug=slug,
                filter_data=filter_data,
            )
        )

    async def list_slugs(self, **filters: Any) -> list[SluggedFilter]:
        """All slug records matching the given columns, oldest first."""
        records = await self.get_all(**filters)
        return sorted(records, key=lambda record: record.id or 0)
