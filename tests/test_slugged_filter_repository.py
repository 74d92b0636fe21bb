"""
Tests for SluggedFilterRepository with a mocked database session.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from listing_filters.models.slugged_filter import SluggedFilter
from listing_filters.repositories.slugged_filter_repository import (
    SluggedFilterRepository,
    scope_clause,
)
from listing_filters.schemas.scope import Scope
from tests.mocks.repository_mocks import create_mock_session, mock_exec_result


def executed_sql(session) -> str:
    statement = session.exec.call_args.args[0]
    return str(statement.compile(compile_kwargs={"literal_binds": True}))


class TestScopeClause:
    """Tests for scope_clause."""

    def test_without_plugin_matches_null(self):
        clauses = scope_clause(Scope(controller="posts", action="index"))

        assert str(clauses[0]) == "slugged_filters.plugin IS NULL"

    def test_with_plugin_compares_value(self):
        clauses = scope_clause(
            Scope(plugin="blog", controller="posts", action="index")
        )

        assert str(clauses[0]).startswith("slugged_filters.plugin = ")


class TestSluggedFilterRepository:
    """Tests for SluggedFilterRepository."""

    @pytest.fixture
    def session(self):
        return create_mock_session()

    @pytest.fixture
    def repository(self, session):
        return SluggedFilterRepository(session)

    @pytest.mark.asyncio
    async def test_find_slug(self, repository, session, posts_scope):
        """Test that the oldest slug of the encoded data is looked up."""
        session.exec.return_value = mock_exec_result(first="abcdefghikmnop")

        slug = await repository.find_slug(posts_scope, '{"status":"active"}')

        assert slug == "abcdefghikmnop"
        sql = executed_sql(session)
        assert "slugged_filters.plugin IS NULL" in sql
        assert "slugged_filters.controller = 'posts'" in sql
        assert "slugged_filters.action = 'index'" in sql
        assert "ORDER BY slugged_filters.id" in sql

    @pytest.mark.asyncio
    async def test_find_filter_data_miss(self, repository, session, posts_scope):
        session.exec.return_value = mock_exec_result(first=None)

        assert await repository.find_filter_data(posts_scope, "zzzzzzzzzzzzzz") is None
        assert "slugged_filters.slug = 'zzzzzzzzzzzzzz'" in executed_sql(session)

    @pytest.mark.asyncio
    async def test_slug_exists(self, repository, session, posts_scope):
        session.exec.return_value = mock_exec_result(first=3)

        assert await repository.slug_exists(posts_scope, "abcdefghikmnop") is True

    @pytest.mark.asyncio
    async def test_add_persists_record(self, repository, session):
        """Test that add flushes a record carrying the scope."""
        scope = Scope(plugin="blog", controller="posts", action="index")

        record = await repository.add(scope, "abcdefghikmnop", '{"q":"x"}')

        session.add.assert_called_once_with(record)
        session.flush.assert_awaited_once()
        session.refresh.assert_awaited_once_with(record)
        assert record.scope == scope
        assert record.filter_data == '{"q":"x"}'

    @pytest.mark.asyncio
    async def test_add_rolls_back_on_error(self, repository, session, posts_scope):
        """Test that a failing insert is rolled back and re-raised."""
        session.flush.side_effect = IntegrityError("INSERT", {}, Exception("dup"))

        with pytest.raises(IntegrityError):
            await repository.add(posts_scope, "abcdefghikmnop", "{}")

        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_list_slugs_sorted_by_id(self, repository, session):
        records = [
            SluggedFilter(id=2, controller="posts", action="index", slug="b", filter_data="{}"),
            SluggedFilter(id=1, controller="posts", action="index", slug="a", filter_data="{}"),
        ]
        session.exec.return_value = mock_exec_result(all_=records)

        result = await repository.list_slugs(controller="posts", plugin=None)

        assert [r.id for r in result] == [1, 2]
        sql = executed_sql(session)
        assert "slugged_filters.controller = 'posts'" in sql
        assert "plugin" not in sql.split("WHERE", 1)[1]
