"""
Compile submitted filter values into SQLAlchemy predicates.

Columns come from the endpoint declaration and are trusted; submitted
values are never interpolated into SQL text, they always end up as bound
parameters.

Example:
    >>> from listing_filters.schemas.specs import FilterFieldSpec
    >>> specs = {"status": FilterFieldSpec(operator="=", columns="t.status")}
    >>> compiled = compile_filters(specs, {"status": "active"})
    >>> str(compiled.conditions[0].compile(compile_kwargs={"literal_binds": True}))
    "t.status = 'active'"
    >>> compiled.active_filters
    {'status': 'active'}
"""

import operator
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import (
    ColumnElement,
    String,
    and_,
    literal_column,
    or_,
)

from listing_filters.schemas.specs import FilterFieldSpec, FilterOperator
from listing_filters.schemas.state import CompiledFilters

# "price >=", "name LIKE", "status" ...
_CONDITION_KEY = re.compile(
    r"^\s*(?P<column>.+?)(?:\s+(?P<op>=|!=|<>|>=|<=|>|<|LIKE|NOT LIKE|IN|NOT IN))?\s*$",
    re.IGNORECASE,
)

_MAPPING_OPERATORS: dict[str, Callable[[Any, Any], ColumnElement[bool]]] = {
    "=": operator.eq,
    "!=": operator.ne,
    "<>": operator.ne,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
    "LIKE": lambda col, value: col.like(value),
    "NOT LIKE": lambda col, value: col.not_like(value),
    "IN": lambda col, value: col.in_(_as_list(value)),
    "NOT IN": lambda col, value: col.not_in(_as_list(value)),
}


@dataclass
class FilterContribution:
    """What a single filter field adds to the query."""

    conditions: list[ColumnElement[bool]] = field(default_factory=list)
    having: ColumnElement[bool] | None = None
    fragment: dict[str, Any] | None = None


def is_empty(value: Any) -> bool:
    """Check whether a submitted value counts as "not filled in"."""
    return value is None or value == "" or value == [] or value == ()


def column(name: str, text_value: bool = False) -> ColumnElement[Any]:
    """Render a caller-declared column expression."""
    if text_value:
        return literal_column(name, type_=String())
    return literal_column(name)


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def _scalar(value: Any) -> Any:
    # A repeated form key arrives as a list; single-value operators use the last one.
    if isinstance(value, (list, tuple)):
        return value[-1]
    return value


def _contains(name: str, value: Any) -> ColumnElement[bool]:
    return column(name, text_value=True).contains(
        str(_scalar(value)), autoescape=True
    )


def _comparison(
    op: Callable[[Any, Any], ColumnElement[bool]],
) -> Callable[[FilterFieldSpec, Any], FilterContribution]:
    def compile_comparison(
        spec: FilterFieldSpec, value: Any
    ) -> FilterContribution:
        return FilterContribution(
            conditions=[op(column(spec.columns[0]), _scalar(value))]
        )

    return compile_comparison


def _compile_in(spec: FilterFieldSpec, value: Any) -> FilterContribution:
    return FilterContribution(
        conditions=[column(spec.columns[0]).in_(_as_list(value))]
    )


def _compile_like(spec: FilterFieldSpec, value: Any) -> FilterContribution:
    predicates = [_contains(name, value) for name in spec.columns]
    if len(predicates) > 1:
        return FilterContribution(conditions=[or_(*predicates)])
    return FilterContribution(conditions=predicates)


def _compile_having(spec: FilterFieldSpec, value: Any) -> FilterContribution:
    return FilterContribution(having=_contains(spec.columns[0], value))


def _compile_custom(spec: FilterFieldSpec, value: Any) -> FilterContribution:
    fragment = spec.custom_conditions
    if callable(fragment):
        fragment = fragment(value)
    if fragment is None:
        return FilterContribution()
    if isinstance(fragment, ColumnElement):
        return FilterContribution(conditions=[fragment])
    if isinstance(fragment, Mapping):
        return FilterContribution(fragment=dict(fragment))
    if isinstance(fragment, Sequence) and not isinstance(fragment, str):
        return FilterContribution(conditions=list(fragment))
    raise TypeError(
        f"Unsupported custom condition fragment: {type(fragment).__name__}"
    )


def _compile_date_range(
    spec: FilterFieldSpec, value: Any
) -> FilterContribution:
    # Reserved; range values are accepted and shown but not filtered on yet.
    return FilterContribution()


_COMPILERS: dict[
    FilterOperator, Callable[[FilterFieldSpec, Any], FilterContribution]
] = {
    FilterOperator.EQUALS: _comparison(operator.eq),
    FilterOperator.GREATER_THAN: _comparison(operator.gt),
    FilterOperator.GREATER_OR_EQUAL: _comparison(operator.ge),
    FilterOperator.LESS_THAN: _comparison(operator.lt),
    FilterOperator.LESS_OR_EQUAL: _comparison(operator.le),
    FilterOperator.NOT_EQUALS: _comparison(operator.ne),
    FilterOperator.IN: _compile_in,
    FilterOperator.LIKE: _compile_like,
    FilterOperator.HAVING: _compile_having,
    FilterOperator.CUSTOM: _compile_custom,
    FilterOperator.DATE_RANGE: _compile_date_range,
}


def compile_field(spec: FilterFieldSpec, value: Any) -> FilterContribution:
    """
    Compile one submitted value against its field declaration.

    A field with ``if_value_is`` whose value does not match contributes
    nothing.

    Args:
        spec: The field declaration.
        value: The non-empty submitted value.

    Returns:
        The predicates contributed by the field.
    """
    if spec.if_value_is is not None and spec.if_value_is != value:
        return FilterContribution()
    return _COMPILERS[spec.operator](spec, value)


def deep_merge(base: dict[str, Any], extra: Mapping[str, Any]) -> dict[str, Any]:
    """
    Merge ``extra`` into a copy of ``base``.

    Nested mappings are merged recursively, lists are concatenated and any
    other value in ``extra`` replaces the one in ``base``.
    """
    merged = dict(base)
    for key, value in extra.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(dict(current), value)
        elif isinstance(current, list) and isinstance(value, list):
            merged[key] = current + value
        else:
            merged[key] = value
    return merged


def conditions_from_mapping(
    fragment: Mapping[str, Any],
) -> list[ColumnElement[bool]]:
    """
    Turn a ``{"column [operator]": value}`` fragment into predicates.

    ``OR``/``AND`` keys group nested fragments (a mapping or a list of
    mappings and expressions). Values without an operator compare with
    ``=``, list values with ``IN`` and None with ``IS NULL``.

    Example:
        >>> conds = conditions_from_mapping({"price >=": 10, "OR": {"a": 1, "b": 2}})
        >>> [str(c.compile(compile_kwargs={"literal_binds": True})) for c in conds]
        ['price >= 10', 'a = 1 OR b = 2']
    """
    conditions: list[ColumnElement[bool]] = []
    for key, value in fragment.items():
        group = key.strip().upper()
        if group in ("OR", "AND"):
            members = _group_members(value)
            if members:
                combine = or_ if group == "OR" else and_
                conditions.append(combine(*members))
            continue

        match = _CONDITION_KEY.match(key)
        if match is None:
            raise ValueError(f"Invalid condition key: {key!r}")
        col = column(match.group("column"))
        op = (match.group("op") or "").upper()
        if not op:
            if value is None:
                conditions.append(col.is_(None))
                continue
            op = "IN" if isinstance(value, (list, tuple)) else "="
        conditions.append(_MAPPING_OPERATORS[op](col, value))
    return conditions


def _group_members(value: Any) -> list[ColumnElement[bool]]:
    if isinstance(value, Mapping):
        return conditions_from_mapping(value)
    members: list[ColumnElement[bool]] = []
    for item in _as_list(value):
        if isinstance(item, Mapping):
            members.extend(conditions_from_mapping(item))
        else:
            members.append(item)
    return members


def compile_filters(
    field_specs: Mapping[str, FilterFieldSpec],
    submitted: Mapping[str, Any],
) -> CompiledFilters:
    """
    Compile submitted values into predicates and the active filter map.

    Fields are visited in submission order. Undeclared fields and empty
    values are ignored. Every declared, non-empty field is recorded in
    ``active_filters`` with its raw value, including fields whose
    ``if_value_is`` predicate did not match, so forms can redisplay them.

    Args:
        field_specs: Declared filter fields of the current action.
        submitted: Submitted field values.

    Returns:
        CompiledFilters with WHERE predicates, the optional HAVING
        predicate and the active filters.
    """
    compiled = CompiledFilters()
    fragment: dict[str, Any] = {}

    for name, value in submitted.items():
        spec = field_specs.get(name)
        if spec is None or is_empty(value):
            continue

        contribution = compile_field(spec, value)
        compiled.conditions.extend(contribution.conditions)
        if contribution.having is not None:
            compiled.having = contribution.having
        if contribution.fragment:
            fragment = deep_merge(fragment, contribution.fragment)

        compiled.active_filters[name] = value

    compiled.conditions.extend(conditions_from_mapping(fragment))
    return compiled
