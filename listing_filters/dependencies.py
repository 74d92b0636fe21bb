"""
Dependency injection helpers for FastAPI listing endpoints.

Example:
    ```python
    from fastapi import APIRouter, Request
    from listing_filters.dependencies import SessionDep, SlugStoreDep

    router = APIRouter()

    @router.get("/posts", name="posts.index")
    async def index(request: Request, db: SessionDep, slugs: SlugStoreDep):
        ...
    ```
"""

from typing import Annotated

from fastapi import Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from listing_filters.repositories.slugged_filter_repository import (
    SluggedFilterRepository,
)
from listing_filters.services.slug_store import SlugStore
from listing_filters.storage.db import get_session

# ============================================================================
# Database Session Dependencies
# ============================================================================

SessionDep = Annotated[AsyncSession, Depends(get_session)]


# ============================================================================
# Slug Store Dependencies
# ============================================================================


def get_slug_repository(session: SessionDep) -> SluggedFilterRepository:
    """
    Get slug repository bound to the request's database session.

    Args:
        session: Database session from dependency injection.

    Returns:
        SluggedFilterRepository instance.
    """
    return SluggedFilterRepository(session)


def get_slug_store(
    repository: Annotated[
        SluggedFilterRepository, Depends(get_slug_repository)
    ],
) -> SlugStore:
    """
    Get slug store for the request.

    Can be overridden in tests using app.dependency_overrides.

    Returns:
        SlugStore over the request's slug repository.
    """
    return SlugStore(repository)


SlugRepoDep = Annotated[SluggedFilterRepository, Depends(get_slug_repository)]
SlugStoreDep = Annotated[SlugStore, Depends(get_slug_store)]
