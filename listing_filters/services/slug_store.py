"""
Slug interning for filter combinations.

A filter combination (field -> value mapping) of one listing endpoint is
stored once and addressed by a short random slug, so that filtered listings
get short, bookmarkable URLs.

Example:
    ```python
    from listing_filters.repositories.slugged_filter_repository import (
        SluggedFilterRepository,
    )
    from listing_filters.services.slug_store import SlugStore

    async with async_session() as session:
        store = SlugStore(SluggedFilterRepository(session))
        slug = await store.intern(scope, {"status": "active"})
        data = await store.find_filter_data(scope, slug)
        await session.commit()
    ```
"""

import json
import random
import secrets
from collections.abc import Mapping
from typing import Any

from listing_filters.constants import (
    MAX_SLUG_GENERATION_ATTEMPTS,
    SLUG_ALPHABET,
    SLUG_LENGTH,
)
from listing_filters.exceptions import FilterDataDecodeError, SlugGenerationError
from listing_filters.logging import logger
from listing_filters.protocols import SlugRepository
from listing_filters.schemas.scope import Scope
from listing_filters.settings import app_settings
from listing_filters.utils.metrics import MetricsCollector


def encode_filter_data(
    filter_data: Mapping[str, Any], canonical: bool | None = None
) -> str:
    """
    Encode filter data into its stored JSON form.

    The output is compact JSON. With ``canonical`` (the default, from
    FILTER_CANONICAL_KEYS) keys are sorted, so combinations built in a
    different key order encode identically. Without it, keys keep the
    caller's insertion order.

    Example:
        >>> encode_filter_data({"b": 1, "a": "x"})
        '{"a":"x","b":1}'
        >>> encode_filter_data({"b": 1, "a": "x"}, canonical=False)
        '{"b":1,"a":"x"}'
    """
    if canonical is None:
        canonical = app_settings.FILTER_CANONICAL_KEYS
    return json.dumps(
        dict(filter_data),
        sort_keys=canonical,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def decode_filter_data(encoded: str) -> dict[str, Any]:
    """
    Decode stored filter data.

    Raises:
        FilterDataDecodeError: If the text is not JSON or not a JSON object.
    """
    try:
        decoded = json.loads(encoded)
    except (TypeError, ValueError) as ex:
        raise FilterDataDecodeError(
            f"Stored filter data is not valid JSON: {ex}"
        ) from ex
    if not isinstance(decoded, dict):
        raise FilterDataDecodeError(
            f"Stored filter data is a {type(decoded).__name__}, expected an object"
        )
    return decoded


class SlugStore:
    """
    Find and create slugs for filter combinations.

    Attributes:
        repository: Persistence of slug records.
        rng: Random source used to draw slug characters.
        canonical: Whether keys are sorted before encoding.
    """

    def __init__(
        self,
        repository: SlugRepository,
        rng: random.Random | None = None,
        canonical: bool | None = None,
        max_attempts: int = MAX_SLUG_GENERATION_ATTEMPTS,
    ):
        """
        Initialize the slug store.

        Args:
            repository: Persistence of slug records.
            rng: Random source, defaults to the OS random source.
            canonical: Key canonicalisation, defaults to
                app_settings.FILTER_CANONICAL_KEYS.
            max_attempts: Upper bound on candidate slugs per creation.
        """
        self.repository = repository
        self.rng = rng or secrets.SystemRandom()
        self.canonical = (
            app_settings.FILTER_CANONICAL_KEYS if canonical is None else canonical
        )
        self.max_attempts = max_attempts

    def encode(self, filter_data: Mapping[str, Any]) -> str:
        return encode_filter_data(filter_data, canonical=self.canonical)

    def generate_slug(self) -> str:
        """Draw a random slug of SLUG_LENGTH characters from SLUG_ALPHABET."""
        return "".join(
            self.rng.choice(SLUG_ALPHABET) for _ in range(SLUG_LENGTH)
        )

    async def find_slug(
        self, scope: Scope, filter_data: Mapping[str, Any]
    ) -> str | None:
        """
        Find the slug of a filter combination.

        Args:
            scope: Endpoint scope.
            filter_data: Field -> value mapping.

        Returns:
            The slug, or None if the combination was never stored.
        """
        slug = await self.repository.find_slug(scope, self.encode(filter_data))
        MetricsCollector.record_slug_lookup("slug", hit=slug is not None)
        return slug

    async def find_filter_data(
        self, scope: Scope, slug: str
    ) -> dict[str, Any] | None:
        """
        Find the filter combination stored for a slug.

        Args:
            scope: Endpoint scope.
            slug: Slug taken from the request.

        Returns:
            The decoded field -> value mapping, or None for unknown slugs.

        Raises:
            FilterDataDecodeError: If the stored data is malformed.
        """
        encoded = await self.repository.find_filter_data(scope, slug)
        MetricsCollector.record_slug_lookup("filter_data", hit=encoded is not None)
        if encoded is None:
            logger.info(f"No filter data stored for slug '{slug}'")
            return None
        return decode_filter_data(encoded)

    async def create_slug(
        self, scope: Scope, filter_data: Mapping[str, Any]
    ) -> str:
        """
        Store a filter combination under a new slug.

        Candidates are drawn until one is unused within the scope. Two
        concurrent creations of the same combination may both succeed and
        yield two slugs; lookups then return the older one.

        Args:
            scope: Endpoint scope.
            filter_data: Field -> value mapping.

        Returns:
            The new slug.

        Raises:
            SlugGenerationError: If no free slug was found within
                ``max_attempts`` candidates.
        """
        encoded = self.encode(filter_data)
        for _ in range(self.max_attempts):
            slug = self.generate_slug()
            if not await self.repository.slug_exists(scope, slug):
                break
            MetricsCollector.record_slug_collision()
            logger.warning(f"Slug '{slug}' already taken, generating another")
        else:
            raise SlugGenerationError(
                f"No free slug found after {self.max_attempts} attempts"
            )

        await self.repository.add(scope, slug, encoded)
        MetricsCollector.record_slug_created()
        logger.info(
            f"Created slug '{slug}' for "
            f"{scope.plugin or ''}/{scope.controller}/{scope.action}"
        )
        return slug

    async def intern(
        self, scope: Scope, filter_data: Mapping[str, Any]
    ) -> str:
        """Return the existing slug of the combination, creating one if needed."""
        slug = await self.find_slug(scope, filter_data)
        if slug is None:
            slug = await self.create_slug(scope, filter_data)
        return slug
