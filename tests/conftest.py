"""
Pytest configuration and fixtures for testing.

This module provides shared fixtures for endpoint declarations, scopes,
session stores and the in-memory slug repository.
"""

import os
import random
import tempfile

import pytest

# Set required environment variables for testing before importing package modules
os.environ.setdefault("DB_USER", "test-user")
os.environ.setdefault("DB_PASSWORD", "test-password")
os.environ.setdefault(
    "LOG_FILE_PATH",
    os.path.join(tempfile.gettempdir(), "listing_filters_test_errors.log"),
)

from listing_filters.schemas.request import FilterRequest  # noqa: E402
from listing_filters.schemas.scope import Scope  # noqa: E402
from listing_filters.schemas.specs import EndpointDeclaration  # noqa: E402
from listing_filters.services.slug_store import SlugStore  # noqa: E402
from listing_filters.storage.session import DictSessionStore  # noqa: E402
from tests.mocks.repository_mocks import (  # noqa: E402
    InMemorySluggedFilterRepository,
)


def make_posts_declaration() -> EndpointDeclaration:
    """
    Declaration of a typical blog post listing.

    ``index`` is filtered, sorted and paginated; ``archive`` is only
    sorted; ``view`` declares nothing.
    """
    return EndpointDeclaration(
        filter_fields={
            "status": {"operator": "=", "columns": "p.status", "actions": ["index"]},
            "q": {
                "operator": "like",
                "columns": ["p.title", "p.body"],
                "actions": ["index"],
            },
            "tags": {"operator": "IN", "columns": "p.tag_id", "actions": ["index"]},
            "author": {
                "operator": "having",
                "columns": "a.name",
                "actions": ["index"],
            },
            "featured": {
                "operator": "custom",
                "if_value_is": "1",
                "custom_conditions": {"p.featured": True},
                "actions": ["index"],
            },
            "published": {"operator": "date_range", "actions": ["index"]},
        },
        sort_fields={
            "title": {"column": "p.title", "default": "asc", "actions": ["index"]},
            "created": {
                "custom": ["p.created :dir", "p.id :dir"],
                "actions": ["index", "archive"],
            },
        },
        limits={"index": {"default": 20, "limits": [10, 20, 50]}},
        pass_params={"index": ["category"]},
    )


@pytest.fixture
def posts_declaration():
    """
    Provides the blog post listing declaration.

    Returns:
        EndpointDeclaration: Declaration with filter, sort and pagination
    """
    return make_posts_declaration()


@pytest.fixture
def posts_scope():
    """
    Provides the scope of the post index listing.

    Returns:
        Scope: posts/index without plugin
    """
    return Scope(controller="posts", action="index")


@pytest.fixture
def session_store():
    """
    Provides an empty dict-backed session store.

    Returns:
        DictSessionStore: Session store over a fresh dict
    """
    return DictSessionStore({})


@pytest.fixture
def slug_repository():
    """
    Provides an empty in-memory slug repository.

    Returns:
        InMemorySluggedFilterRepository: Repository without records
    """
    return InMemorySluggedFilterRepository()


@pytest.fixture
def slug_store(slug_repository):
    """
    Provides a slug store with a seeded random source.

    Args:
        slug_repository: Fixture providing the in-memory repository

    Returns:
        SlugStore: Slug store over the in-memory repository
    """
    return SlugStore(slug_repository, rng=random.Random(1234), canonical=True)


@pytest.fixture
def make_request(posts_scope):
    """
    Provides a factory for filter requests on the post index.

    Returns:
        Callable: Factory accepting FilterRequest keyword arguments
    """

    def factory(**kwargs):
        kwargs.setdefault("scope", posts_scope)
        return FilterRequest(**kwargs)

    return factory
