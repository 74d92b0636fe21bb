"""
Typed declarations of filterable, sortable and paginated listing endpoints.

A controller declares its listing behaviour once, as an
``EndpointDeclaration``. Declarations are validated when they are built, so
a malformed declaration fails at startup instead of on the first request.

Example:
    ```python
    from listing_filters.schemas.specs import EndpointDeclaration

    posts = EndpointDeclaration(
        filter_fields={
            "status": {"operator": "=", "columns": "p.status", "actions": ["index"]},
            "q": {"operator": "like", "columns": ["p.title", "p.body"], "actions": ["index"]},
        },
        sort_fields={
            "title": {"column": "p.title", "default": "asc", "actions": ["index"]},
        },
        limits={"index": {"default": 20, "limits": [10, 20, 50]}},
    )
    ```
"""

from enum import Enum
from typing import Any, Literal, NamedTuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    field_validator,
    model_validator,
)

from listing_filters.constants import SORT_DIRECTIONS
from listing_filters.settings import app_settings


class FilterOperator(str, Enum):
    """How a submitted filter value turns into a query predicate."""

    EQUALS = "="
    GREATER_THAN = ">"
    GREATER_OR_EQUAL = ">="
    LESS_THAN = "<"
    LESS_OR_EQUAL = "<="
    NOT_EQUALS = "<>"
    IN = "IN"
    LIKE = "like"
    HAVING = "having"
    CUSTOM = "custom"
    DATE_RANGE = "date_range"


_OPERATOR_ALIASES = {
    "equals": FilterOperator.EQUALS,
    "greaterThan": FilterOperator.GREATER_THAN,
    "greaterOrEqual": FilterOperator.GREATER_OR_EQUAL,
    "lessThan": FilterOperator.LESS_THAN,
    "lessOrEqual": FilterOperator.LESS_OR_EQUAL,
    "notEquals": FilterOperator.NOT_EQUALS,
    "!=": FilterOperator.NOT_EQUALS,
    "in": FilterOperator.IN,
    "dateRange": FilterOperator.DATE_RANGE,
}

# Operators that compare exactly one column against the submitted value
SINGLE_COLUMN_OPERATORS = frozenset(
    {
        FilterOperator.EQUALS,
        FilterOperator.GREATER_THAN,
        FilterOperator.GREATER_OR_EQUAL,
        FilterOperator.LESS_THAN,
        FilterOperator.LESS_OR_EQUAL,
        FilterOperator.NOT_EQUALS,
        FilterOperator.IN,
        FilterOperator.HAVING,
    }
)


def _as_tuple(value: Any) -> Any:
    if isinstance(value, str):
        return (value,)
    return value


class FilterFieldSpec(BaseModel):  # type: ignore[misc]
    """
    Declaration of a single filter field.

    Attributes:
        operator: Kind of predicate to build.
        columns: Target column expression(s). Caller-declared and trusted.
        actions: Actions of the controller the field applies to.
        if_value_is: Only contribute a predicate when the submitted value
            equals this value.
        custom_conditions: For ``custom`` fields, a static fragment or a
            callable taking the submitted value and returning one.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    operator: FilterOperator
    columns: tuple[str, ...] = ()
    actions: frozenset[str] = frozenset()
    if_value_is: Any = None
    custom_conditions: Any = None

    @field_validator("operator", mode="before")
    @classmethod
    def _resolve_operator_alias(cls, value: Any) -> Any:
        if isinstance(value, str) and value in _OPERATOR_ALIASES:
            return _OPERATOR_ALIASES[value]
        return value

    @field_validator("columns", "actions", mode="before")
    @classmethod
    def _wrap_single_value(cls, value: Any) -> Any:
        return _as_tuple(value)

    @model_validator(mode="after")
    def _check_operator_requirements(self) -> "FilterFieldSpec":
        if self.operator == FilterOperator.LIKE and not self.columns:
            raise ValueError("like filters need at least one column")
        if self.operator in SINGLE_COLUMN_OPERATORS and len(self.columns) != 1:
            raise ValueError(
                f"'{self.operator.value}' filters need exactly one column"
            )
        if (
            self.operator == FilterOperator.CUSTOM
            and self.custom_conditions is None
        ):
            raise ValueError(
                "custom filters need a static fragment or a generator"
            )
        return self

    def applies_to(self, action: str) -> bool:
        """Check whether this field is enabled for the given action."""
        return action in self.actions


class SortFieldSpec(BaseModel):  # type: ignore[misc]
    """
    Declaration of a single sortable field.

    Exactly one of ``column`` and ``custom`` must be given. ``custom``
    entries are order expressions containing the ``:dir`` placeholder.
    """

    model_config = ConfigDict(frozen=True)

    column: str | None = None
    custom: tuple[str, ...] | None = None
    default: Literal["asc", "desc"] | None = None
    actions: frozenset[str] = frozenset()

    @field_validator("custom", "actions", mode="before")
    @classmethod
    def _wrap_single_value(cls, value: Any) -> Any:
        return _as_tuple(value)

    @field_validator("default", mode="before")
    @classmethod
    def _lowercase_direction(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.lower()
            if value not in SORT_DIRECTIONS:
                raise ValueError("default sort direction must be asc or desc")
        return value

    @model_validator(mode="after")
    def _check_target(self) -> "SortFieldSpec":
        if (self.column is None) == (not self.custom):
            raise ValueError(
                "sort fields need either a column or custom order expressions"
            )
        return self

    def applies_to(self, action: str) -> bool:
        """Check whether this field is enabled for the given action."""
        return action in self.actions


class PaginationSpec(BaseModel):  # type: ignore[misc]
    """
    Pagination defaults of one action.

    ``default`` falls back to the ``DEFAULT_PAGE_LIMIT`` setting when the
    action does not declare one.
    """

    model_config = ConfigDict(frozen=True)

    default: PositiveInt = Field(
        default_factory=lambda: app_settings.DEFAULT_PAGE_LIMIT
    )
    limits: tuple[PositiveInt, ...] = ()


class DefaultSort(NamedTuple):
    """Sort applied when the request does not ask for one."""

    field: str
    direction: str


class EndpointDeclaration(BaseModel):  # type: ignore[misc]
    """
    Everything a controller declares about its listing actions.

    Attributes:
        filter_fields: Filter field name -> declaration.
        sort_fields: Sort field name -> declaration.
        limits: Action -> pagination defaults.
        pass_params: Action -> route parameter names to carry into
            generated URLs.
    """

    model_config = ConfigDict(frozen=True)

    filter_fields: dict[str, FilterFieldSpec] = Field(default_factory=dict)
    sort_fields: dict[str, SortFieldSpec] = Field(default_factory=dict)
    limits: dict[str, PaginationSpec] = Field(default_factory=dict)
    pass_params: dict[str, tuple[str, ...]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _single_default_sort_per_action(self) -> "EndpointDeclaration":
        seen: dict[str, str] = {}
        for name, spec in self.sort_fields.items():
            if spec.default is None:
                continue
            for action in spec.actions:
                if action in seen:
                    raise ValueError(
                        f"action '{action}' declares more than one default "
                        f"sort ('{seen[action]}' and '{name}')"
                    )
                seen[action] = name
        return self

    def filter_fields_for(self, action: str) -> dict[str, FilterFieldSpec]:
        """Filter fields enabled for the action, in declaration order."""
        return {
            name: spec
            for name, spec in self.filter_fields.items()
            if spec.applies_to(action)
        }

    def sort_fields_for(self, action: str) -> dict[str, SortFieldSpec]:
        """Sort fields enabled for the action, in declaration order."""
        return {
            name: spec
            for name, spec in self.sort_fields.items()
            if spec.applies_to(action)
        }

    def default_sort_for(self, action: str) -> DefaultSort | None:
        """The action's default sort, if one of its sort fields has one."""
        for name, spec in self.sort_fields_for(action).items():
            if spec.default is not None:
                return DefaultSort(name, spec.default)
        return None

    def pagination_for(self, action: str) -> PaginationSpec | None:
        """Pagination defaults of the action, if it is paginated."""
        return self.limits.get(action)

    def pass_params_for(self, action: str) -> tuple[str, ...]:
        """Route parameters that generated URLs of the action keep."""
        return self.pass_params.get(action, ())
