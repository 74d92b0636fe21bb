"""
Tests for the filter condition compiler.

These tests verify which predicate each operator produces, that empty and
undeclared values are skipped, and that submitted values always stay bound
parameters.
"""

import pytest
from sqlalchemy import literal_column

from listing_filters.filters.compiler import (
    compile_field,
    compile_filters,
    conditions_from_mapping,
    deep_merge,
    is_empty,
)
from listing_filters.schemas.specs import FilterFieldSpec


def render(expression) -> str:
    """Render an expression with its values inlined, for assertions."""
    return str(expression.compile(compile_kwargs={"literal_binds": True}))


@pytest.fixture
def index_fields(posts_declaration):
    return posts_declaration.filter_fields_for("index")


class TestComparisonOperators:
    """Tests for the single-column comparison operators."""

    def test_equals_produces_column_comparison(self):
        """Test that an equals field compares its column to the value."""
        specs = {"status": FilterFieldSpec(operator="equals", columns="t.status")}

        compiled = compile_filters(specs, {"status": "active"})

        assert [render(c) for c in compiled.conditions] == ["t.status = 'active'"]
        assert compiled.active_filters == {"status": "active"}

    def test_empty_value_produces_nothing(self):
        """Test that an empty string yields no condition and no active filter."""
        specs = {"status": FilterFieldSpec(operator="equals", columns="t.status")}

        compiled = compile_filters(specs, {"status": ""})

        assert compiled.conditions == []
        assert compiled.active_filters == {}

    @pytest.mark.parametrize(
        "operator,expected",
        [
            (">", "t.price > '10'"),
            (">=", "t.price >= '10'"),
            ("<", "t.price < '10'"),
            ("<=", "t.price <= '10'"),
            ("<>", "t.price != '10'"),
        ],
    )
    def test_comparison_operators(self, operator, expected):
        """Test each comparison operator against a submitted string."""
        spec = FilterFieldSpec(operator=operator, columns="t.price")

        contribution = compile_field(spec, "10")

        assert [render(c) for c in contribution.conditions] == [expected]

    def test_in_coerces_scalar_to_list(self):
        """Test that a scalar IN value becomes a one-element list."""
        spec = FilterFieldSpec(operator="IN", columns="t.tag_id")

        contribution = compile_field(spec, "7")

        assert render(contribution.conditions[0]) == "t.tag_id IN ('7')"

    def test_in_with_list(self):
        """Test IN with several submitted values."""
        spec = FilterFieldSpec(operator="in", columns="t.tag_id")

        contribution = compile_field(spec, [1, 2, 3])

        assert render(contribution.conditions[0]) == "t.tag_id IN (1, 2, 3)"


class TestLikeAndHaving:
    """Tests for substring matching operators."""

    def test_like_single_column(self):
        """Test that a single-column like field emits one LIKE predicate."""
        spec = FilterFieldSpec(operator="like", columns="p.title")

        contribution = compile_field(spec, "news")

        assert len(contribution.conditions) == 1
        sql = render(contribution.conditions[0])
        assert sql.startswith("p.title LIKE")
        assert "news" in sql
        assert " OR " not in sql

    def test_like_multiple_columns_are_ored(self):
        """Test that several like columns are grouped with OR."""
        spec = FilterFieldSpec(operator="like", columns=["p.title", "p.body"])

        contribution = compile_field(spec, "news")

        assert len(contribution.conditions) == 1
        sql = render(contribution.conditions[0])
        assert "p.title LIKE" in sql
        assert "p.body LIKE" in sql
        assert " OR " in sql

    def test_like_escapes_wildcards(self):
        """Test that % and _ in the value match literally."""
        spec = FilterFieldSpec(operator="like", columns="p.title")

        contribution = compile_field(spec, "50%_off")
        params = contribution.conditions[0].compile().params

        assert list(params.values()) == ["50/%/_off"]

    def test_having_replaces_previous_having(self):
        """Test that only the last having field is kept."""
        specs = {
            "author": FilterFieldSpec(operator="having", columns="a.name"),
            "editor": FilterFieldSpec(operator="having", columns="e.name"),
        }

        compiled = compile_filters(specs, {"author": "ann", "editor": "bob"})

        assert compiled.conditions == []
        assert render(compiled.having).startswith("e.name LIKE")
        assert compiled.active_filters == {"author": "ann", "editor": "bob"}

    def test_repeated_like_value_uses_last(self):
        """Test that a repeated form key searches for its last value."""
        spec = FilterFieldSpec(operator="like", columns="p.title")

        contribution = compile_field(spec, ["a", "b"])
        params = contribution.conditions[0].compile().params

        assert list(params.values()) == ["b"]

    def test_repeated_comparison_value_uses_last(self):
        spec = FilterFieldSpec(operator="=", columns="t.status")

        contribution = compile_field(spec, ["draft", "active"])

        assert render(contribution.conditions[0]) == "t.status = 'active'"


class TestIfValueIs:
    """Tests for the if_value_is predicate on regular operators."""

    @pytest.fixture
    def specs(self):
        return {
            "status": FilterFieldSpec(
                operator="=", columns="p.status", if_value_is="active"
            ),
            "q": FilterFieldSpec(
                operator="like", columns="p.title", if_value_is="news"
            ),
        }

    def test_equals_when_value_matches(self, specs):
        compiled = compile_filters(specs, {"status": "active"})

        assert [render(c) for c in compiled.conditions] == ["p.status = 'active'"]
        assert compiled.active_filters == {"status": "active"}

    def test_equals_when_value_does_not_match(self, specs):
        """Test that an unmet predicate filters nothing but stays active."""
        compiled = compile_filters(specs, {"status": "draft"})

        assert compiled.conditions == []
        assert compiled.active_filters == {"status": "draft"}

    def test_like_when_value_matches(self, specs):
        compiled = compile_filters(specs, {"q": "news"})

        assert len(compiled.conditions) == 1
        assert render(compiled.conditions[0]).startswith("p.title LIKE")
        assert compiled.active_filters == {"q": "news"}

    def test_like_when_value_does_not_match(self, specs):
        compiled = compile_filters(specs, {"q": "sports"})

        assert compiled.conditions == []
        assert compiled.active_filters == {"q": "sports"}


class TestCustomAndDateRange:
    """Tests for custom fragments and the reserved date range operator."""

    def test_custom_static_fragment_when_value_matches(self, index_fields):
        """Test that a matching if_value_is adds the static fragment."""
        compiled = compile_filters(index_fields, {"featured": "1"})

        assert [render(c) for c in compiled.conditions] == ["p.featured = true"]

    def test_custom_skipped_when_value_does_not_match(self, index_fields):
        """Test that an unmet if_value_is contributes no condition."""
        compiled = compile_filters(index_fields, {"featured": "0"})

        assert compiled.conditions == []
        assert compiled.active_filters == {"featured": "0"}

    def test_custom_generator_receives_value(self):
        """Test that a callable fragment is called with the submitted value."""
        spec = FilterFieldSpec(
            operator="custom",
            custom_conditions=lambda value: {"p.year >=": int(value)},
        )

        contribution = compile_field(spec, "2020")

        assert contribution.fragment == {"p.year >=": 2020}

    def test_custom_generator_may_return_expression(self):
        """Test that a generator may return a SQLAlchemy expression."""
        spec = FilterFieldSpec(
            operator="custom",
            custom_conditions=lambda value: literal_column("p.views") > int(value),
        )

        contribution = compile_field(spec, "100")

        assert [render(c) for c in contribution.conditions] == ["p.views > 100"]

    def test_custom_fragments_are_deep_merged(self):
        """Test that OR groups of several custom fields are combined."""
        specs = {
            "mine": FilterFieldSpec(
                operator="custom", custom_conditions={"OR": [{"p.author_id": 1}]}
            ),
            "drafts": FilterFieldSpec(
                operator="custom", custom_conditions={"OR": [{"p.status": "draft"}]}
            ),
        }

        compiled = compile_filters(specs, {"mine": "1", "drafts": "1"})

        assert [render(c) for c in compiled.conditions] == [
            "p.author_id = 1 OR p.status = 'draft'"
        ]

    def test_date_range_is_reserved(self, index_fields):
        """Test that date range fields are shown but do not filter."""
        compiled = compile_filters(index_fields, {"published": "2024-01-01"})

        assert compiled.conditions == []
        assert compiled.active_filters == {"published": "2024-01-01"}


class TestCompileFilters:
    """Tests for compiling a whole submission."""

    def test_undeclared_fields_are_ignored(self, index_fields):
        """Test that fields without a declaration are skipped."""
        compiled = compile_filters(index_fields, {"password": "x", "status": "a"})

        assert list(compiled.active_filters) == ["status"]
        assert len(compiled.conditions) == 1

    def test_active_filters_keep_submission_order(self, index_fields):
        """Test that active filters follow the order of the submission."""
        compiled = compile_filters(
            index_fields, {"q": "news", "tags": ["1", "2"], "status": "live"}
        )

        assert list(compiled.active_filters) == ["q", "tags", "status"]
        assert compiled.active_filters["tags"] == ["1", "2"]

    @pytest.mark.parametrize(
        "payload",
        [
            "active' OR '1'='1",
            '"; DROP TABLE posts; --',
            "x) OR (1=1",
        ],
    )
    def test_injection_payloads_stay_bound_parameters(self, index_fields, payload):
        """Test that hostile values never become part of the SQL text."""
        compiled = compile_filters(index_fields, {"status": payload, "q": payload})

        for condition in compiled.conditions:
            statement = condition.compile()
            assert payload not in str(statement)
            assert any(payload in str(value) for value in statement.params.values())


class TestConditionMapping:
    """Tests for materialising mapping fragments."""

    def test_operator_keys(self):
        """Test keys carrying an explicit operator."""
        conditions = conditions_from_mapping(
            {"p.price >=": 10, "p.name LIKE": "a%", "p.id NOT IN": [1, 2]}
        )

        rendered = [render(c) for c in conditions]
        assert rendered[:2] == ["p.price >= 10", "p.name LIKE 'a%'"]
        assert "p.id NOT IN (1, 2)" in rendered[2]

    def test_plain_keys(self):
        """Test plain keys with scalar, list and None values."""
        conditions = conditions_from_mapping(
            {"p.status": "live", "p.tag_id": [3, 4], "p.deleted": None}
        )

        assert [render(c) for c in conditions] == [
            "p.status = 'live'",
            "p.tag_id IN (3, 4)",
            "p.deleted IS NULL",
        ]

    def test_and_group(self):
        """Test an explicit AND group."""
        conditions = conditions_from_mapping({"AND": {"a": 1, "b": 2}})

        assert [render(c) for c in conditions] == ["a = 1 AND b = 2"]


class TestHelpers:
    """Tests for compiler helpers."""

    @pytest.mark.parametrize("value", ["", None, [], ()])
    def test_is_empty_true(self, value):
        assert is_empty(value) is True

    @pytest.mark.parametrize("value", ["0", 0, False, ["x"], "a"])
    def test_is_empty_false(self, value):
        assert is_empty(value) is False

    def test_deep_merge(self):
        """Test that mappings merge, lists concatenate and scalars overwrite."""
        merged = deep_merge(
            {"OR": [1], "nested": {"a": 1}, "x": 1},
            {"OR": [2], "nested": {"b": 2}, "x": 2},
        )

        assert merged == {"OR": [1, 2], "nested": {"a": 1, "b": 2}, "x": 2}
