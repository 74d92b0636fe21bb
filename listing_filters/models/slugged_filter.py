"""Persisted slug records for bookmarkable filter combinations."""

from datetime import UTC, datetime

from sqlalchemy import CHAR, Column, DateTime, Index, Text, UniqueConstraint
from sqlmodel import Field, SQLModel

from listing_filters.constants import SLUG_LENGTH
from listing_filters.schemas.scope import Scope


class SluggedFilter(SQLModel, table=True):
    """
    One filter combination of one listing endpoint, addressed by a slug.

    Attributes:
        id: Primary key identifier
        plugin: Optional namespace of the endpoint
        controller: Controller of the endpoint
        action: Action of the endpoint
        slug: Random slug, unique within the endpoint scope
        filter_data: JSON-encoded field -> value mapping
        created: UTC timestamp of creation
    """

    __tablename__ = "slugged_filters"
    __table_args__ = (
        UniqueConstraint(
            "plugin", "controller", "action", "slug", name="uq_slugged_filter_slug"
        ),
        # Forward lookup: scope + encoded filter data -> slug
        Index(
            "idx_slugged_filter_data",
            "plugin",
            "controller",
            "action",
            "filter_data",
        ),
        {"extend_existing": True},
    )

    id: int | None = Field(default=None, primary_key=True)
    plugin: str | None = Field(default=None, max_length=255)
    controller: str = Field(max_length=255)
    action: str = Field(max_length=255)
    slug: str = Field(
        sa_column=Column(CHAR(SLUG_LENGTH), nullable=False),
    )
    filter_data: str = Field(sa_column=Column(Text, nullable=False))
    created: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    @property
    def scope(self) -> Scope:
        """Endpoint scope of this record."""
        return Scope(
            plugin=self.plugin, controller=self.controller, action=self.action
        )
