"""
Protocol classes for the collaborators of the filter layer.

Protocols define interfaces without requiring explicit inheritance. Any class
that implements the required methods is considered compatible, so tests can
pass in-memory implementations and applications can bring their own session
or persistence backends.

Example:
    ```python
    from listing_filters.protocols import SessionStore


    async def forget_limit(store: SessionStore, path: str) -> None:
        # Works with DictSessionStore, RedisSessionStore or any other store
        await store.delete(path)
    ```
"""

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from sqlalchemy import Select

from listing_filters.models.slugged_filter import SluggedFilter
from listing_filters.schemas.scope import Scope


@runtime_checkable
class SessionStore(Protocol):
    """
    Key-value store for per-user "last view" state.

    Paths are dot-joined strings such as ``FILTER_.posts.index``. Each
    operation is atomic on its own; nothing spans several paths.
    """

    async def read(self, path: str) -> Any:
        """
        Read the value stored under the path.

        Returns:
            The stored value, or None if the path is absent.
        """
        ...

    async def write(self, path: str, value: Any) -> None:
        """Store a JSON-serialisable value under the path."""
        ...

    async def delete(self, path: str) -> None:
        """Remove the path; missing paths are ignored."""
        ...


@runtime_checkable
class SlugRepository(Protocol):
    """
    Persistence of slug records.

    Implemented by
    ``listing_filters.repositories.slugged_filter_repository.SluggedFilterRepository``.
    """

    async def find_slug(self, scope: Scope, filter_data: str) -> str | None:
        """
        Find the slug stored for encoded filter data within a scope.

        Returns:
            The slug if found, None otherwise.
        """
        ...

    async def find_filter_data(self, scope: Scope, slug: str) -> str | None:
        """
        Find the encoded filter data of a slug within a scope.

        Returns:
            The stored JSON text if found, None otherwise.
        """
        ...

    async def slug_exists(self, scope: Scope, slug: str) -> bool:
        """Check whether the slug is already used within the scope."""
        ...

    async def add(
        self, scope: Scope, slug: str, filter_data: str
    ) -> SluggedFilter:
        """Persist a new slug record."""
        ...


@runtime_checkable
class QueryCounter(Protocol):
    """Counts the rows a listing query would return."""

    async def count(
        self,
        query: Select[Any],
        count_columns: Sequence[Any] | None = None,
    ) -> int:
        """
        Count rows of the filtered query.

        Args:
            query: The filtered, not yet windowed, data query.
            count_columns: Optional replacement for the selected columns.
        """
        ...
