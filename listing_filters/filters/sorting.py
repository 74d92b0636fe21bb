"""Resolve the requested sort into order expressions."""

from collections.abc import Mapping

from listing_filters.constants import SORT_ASC, SORT_DIR_PLACEHOLDER, SORT_DIRECTIONS
from listing_filters.schemas.specs import DefaultSort, SortFieldSpec
from listing_filters.schemas.state import ResolvedSort


def normalize_direction(direction: str | None) -> str:
    """
    Lowercase a requested direction, falling back to ascending.

    Example:
        >>> normalize_direction("DESC")
        'desc'
        >>> normalize_direction("sideways")
        'asc'
    """
    if isinstance(direction, str) and direction.lower() in SORT_DIRECTIONS:
        return direction.lower()
    return SORT_ASC


def order_expressions(spec: SortFieldSpec, direction: str) -> list[str]:
    """Order terms of one sort field in the given direction."""
    if spec.custom:
        return [
            expression.replace(SORT_DIR_PLACEHOLDER, direction)
            for expression in spec.custom
        ]
    return [f"{spec.column} {direction}"]


def resolve_sort(
    sort_specs: Mapping[str, SortFieldSpec],
    requested_field: str | None,
    requested_dir: str | None,
    default_sort: DefaultSort | None,
) -> ResolvedSort:
    """
    Pick the single active sort field and build its order expressions.

    A requested field that is not declared, or that is not a single field
    name (a repeated ``s`` parameter), is treated like no requested field at
    all, so the default sort applies.

    Args:
        sort_specs: Declared sort fields of the current action.
        requested_field: Value of the ``s`` query parameter.
        requested_dir: Value of the ``d`` query parameter.
        default_sort: The action's default sort, if any.

    Returns:
        ResolvedSort with order expressions and ``{field: direction}``, both
        empty when nothing is sorted.
    """
    if isinstance(requested_field, str) and requested_field in sort_specs:
        field, direction = requested_field, normalize_direction(requested_dir)
    elif default_sort is not None and default_sort.field in sort_specs:
        field, direction = default_sort.field, default_sort.direction
    else:
        return ResolvedSort()

    return ResolvedSort(
        order=order_expressions(sort_specs[field], direction),
        active_sort={field: direction},
    )
