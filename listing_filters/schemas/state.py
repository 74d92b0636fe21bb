"""Per-request filter, sort and pagination state."""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import ColumnElement

from listing_filters.schemas.scope import Scope
from listing_filters.schemas.specs import (
    DefaultSort,
    FilterFieldSpec,
    SortFieldSpec,
)


@dataclass
class QueryOptions:
    """Predicates and ordering to apply to the caller's data query."""

    conditions: list[ColumnElement[bool]] = field(default_factory=list)
    having: ColumnElement[bool] | None = None
    order: list[str] = field(default_factory=list)


@dataclass
class CompiledFilters:
    """Result of compiling submitted filter values."""

    conditions: list[ColumnElement[bool]] = field(default_factory=list)
    having: ColumnElement[bool] | None = None
    active_filters: dict[str, Any] = field(default_factory=dict)


@dataclass
class ResolvedSort:
    """Result of resolving the requested sort."""

    order: list[str] = field(default_factory=list)
    active_sort: dict[str, str] = field(default_factory=dict)


class PaginationState(BaseModel):  # type: ignore[misc]
    """
    Page window of one listing request.

    ``from_``/``to`` are 1-based inclusive display bounds, both 0 when there
    are no rows. ``pages`` is at least 1.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    page: int = Field(ge=1)
    pages: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0)
    offset: int = Field(ge=0)
    from_: int = Field(alias="from", ge=0)
    to: int = Field(ge=0)
    default_limit: int = Field(ge=1)
    limits: tuple[int, ...] = ()
    pass_params: dict[str, Any] = Field(default_factory=dict)


class FilterViewState(BaseModel):  # type: ignore[misc]
    """Consolidated state handed to the rendering layer."""

    scope: Scope
    slug: str | None = None
    active_filters: dict[str, Any] = Field(default_factory=dict)
    filter_fields: dict[str, FilterFieldSpec] = Field(default_factory=dict)
    active_sort: dict[str, str] = Field(default_factory=dict)
    sort_fields: dict[str, SortFieldSpec] = Field(default_factory=dict)
    default_sort: DefaultSort | None = None
    pagination: PaginationState | None = None
    active_limit: int | None = None
    pass_params: dict[str, Any] = Field(default_factory=dict)
