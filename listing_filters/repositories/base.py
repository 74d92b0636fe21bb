"""
Base repository with common data access operations.

The Repository pattern separates data access logic from the filter logic,
making it easier to test and maintain. Repositories encapsulate all
database operations for a specific entity.

Example:
    ```python
    from listing_filters.repositories.base import BaseRepository
    from listing_filters.models.slugged_filter import SluggedFilter


    class SluggedFilterRepository(BaseRepository[SluggedFilter]):
        def __init__(self, session: AsyncSession):
            super().__init__(session, SluggedFilter)
    ```
"""

from typing import Any, Generic, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from listing_filters.logging import logger

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base repository providing common operations.

    Type Parameters:
        T: The SQLModel type this repository manages.

    Attributes:
        session: The database session for executing queries.
        model: The SQLModel class this repository manages.
    """

    def __init__(self, session: AsyncSession, model: Type[T]):
        """
        Initialize repository with session and model.

        Args:
            session: Database session for executing queries.
            model: The SQLModel class to manage.
        """
        self.session = session
        self.model = model

    async def get_all(self, **filters: Any) -> list[T]:
        """
        Get all entities matching the provided filters.

        Args:
            **filters: Field name and value pairs to filter by. None values
                are ignored.
                Example: get_all(controller="posts", action="index")

        Returns:
            List of entities matching all filters.

        Raises:
            SQLAlchemyError: If database query fails.
        """
        try:
            stmt = select(self.model)
            for key, value in filters.items():
                if value is not None:
                    stmt = stmt.where(getattr(self.model, key) == value)
            result = await self.session.exec(stmt)
            return list(result.all())
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving {self.model.__name__}: {e}")
            raise

    async def create(self, entity: T) -> T:
        """
        Create new entity in database.

        Args:
            entity: The entity instance to create.

        Returns:
            The created entity with generated fields populated.

        Raises:
            SQLAlchemyError: If database operation fails.
        """
        try:
            self.session.add(entity)
            await self.session.flush()
            await self.session.refresh(entity)
            return entity
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Error creating {self.model.__name__}: {e}")
            raise
