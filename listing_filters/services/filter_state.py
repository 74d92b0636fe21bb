"""
Request lifecycle of a filterable, sortable, paginated listing.

``ListingFilter`` runs the filter layer for one request in explicit phases
that the caller invokes from its own handler:

1. ``resolve()`` looks up the slug carried by the URL and restores the
   stored filter combination.
2. ``compute_options()`` compiles conditions and ordering. On a filter form
   submission it interns the submitted combination and returns the URL to
   redirect to instead.
3. ``apply(query)`` and ``paginate(query)`` shape the caller's data query.
4. ``finalize()`` remembers the view in the session and returns the state
   for rendering.

Example:
    ```python
    listing = ListingFilter(
        filter_request,
        POSTS_LISTING,
        session_store,
        slug_store=SlugStore(SluggedFilterRepository(db)),
        counter=SessionQueryCounter(db),
    )
    await listing.resolve()
    if (redirect := await listing.compute_options()) is not None:
        return redirect_to(request, redirect)

    query = listing.apply(select(Post))
    query, pagination = await listing.paginate(query)
    posts = (await db.exec(query)).all()
    view_state = await listing.finalize()
    ```
"""

from enum import Enum
from typing import Any

from sqlalchemy import Select, text

from listing_filters.constants import (
    FILTER_SESSION_PREFIX,
    LIMIT_PARAM,
    LIMIT_SESSION_PREFIX,
    PAGE_PARAM,
    SESSION_SLUG_KEY,
    SORT_DIR_PARAM,
    SORT_FIELD_PARAM,
)
from listing_filters.exceptions import (
    FilterConfigurationError,
    FilterDataDecodeError,
)
from listing_filters.filters.compiler import compile_filters, is_empty
from listing_filters.filters.sorting import resolve_sort
from listing_filters.logging import logger, set_log_context
from listing_filters.protocols import QueryCounter, SessionStore
from listing_filters.schemas.request import FilterRequest, ListingUrl
from listing_filters.schemas.specs import EndpointDeclaration
from listing_filters.schemas.state import (
    FilterViewState,
    PaginationState,
    QueryOptions,
)
from listing_filters.services.slug_store import SlugStore
from listing_filters.settings import app_settings
from listing_filters.storage.pagination.calculator import (
    calculate_pagination,
    parse_int,
    select_limit,
)
from listing_filters.storage.pagination.offset import apply_window
from listing_filters.utils.metrics import MetricsCollector


class FilterPhase(str, Enum):
    """Lifecycle phases of a listing request."""

    INITIALIZED = "initialized"
    SLUG_RESOLVED = "slug_resolved"
    OPTIONS_COMPUTED = "options_computed"
    REDIRECT_ISSUED = "redirect_issued"
    RENDER_PREPARED = "render_prepared"


def sort_differs_from_default(
    active_sort: dict[str, str], default_sort: tuple[str, str] | None
) -> bool:
    """Check whether the active sort has to be spelled out in URLs."""
    if not active_sort:
        return False
    if default_sort is None:
        return True
    return tuple(next(iter(active_sort.items()))) != tuple(default_sort)


class ListingFilter:
    """
    Filter, sort and pagination state of one listing request.

    Instances are request-scoped and must not be shared between requests.

    Attributes:
        request: Framework-neutral view of the request.
        declaration: What the controller declares for its listings.
        session: Store remembering the last view per endpoint.
        slug_store: Slug interning, needed when filtering is declared.
        counter: Row counter, needed when pagination is declared and no
            total is passed to ``paginate``.
        phase: Current lifecycle phase.
        slug: Slug of the active filter combination, if any.
        submitted: Effective filter values (restored slug data overridden
            by the submitted form).
    """

    def __init__(
        self,
        request: FilterRequest,
        declaration: EndpointDeclaration,
        session: SessionStore,
        slug_store: SlugStore | None = None,
        counter: QueryCounter | None = None,
        remember_page: bool | None = None,
    ):
        self.request = request
        self.declaration = declaration
        self.session = session
        self.slug_store = slug_store
        self.counter = counter
        self.remember_page = (
            app_settings.FILTER_REMEMBER_PAGE
            if remember_page is None
            else remember_page
        )

        self.scope = request.scope
        action = self.scope.action
        set_log_context(
            plugin=self.scope.plugin,
            controller=self.scope.controller,
            action=action,
        )
        self.filter_fields = declaration.filter_fields_for(action)
        self.sort_fields = declaration.sort_fields_for(action)
        self.default_sort = declaration.default_sort_for(action)
        self.pagination_spec = declaration.pagination_for(action)
        self.pass_params = self._extract_pass_params()

        self.phase = FilterPhase.INITIALIZED
        self.slug: str | None = None
        self.submitted: dict[str, Any] = dict(request.data)
        self.options = QueryOptions()
        self.active_filters: dict[str, Any] = {}
        self.active_sort: dict[str, str] = {}
        self.page = 1
        self.pagination: PaginationState | None = None
        self.active_limit: int | None = None

    @property
    def filter_enabled(self) -> bool:
        return bool(self.filter_fields)

    @property
    def sort_enabled(self) -> bool:
        return bool(self.sort_fields)

    @property
    def pagination_enabled(self) -> bool:
        return self.pagination_spec is not None

    @property
    def enabled(self) -> bool:
        """Whether the current action declares any listing behaviour."""
        return (
            self.filter_enabled or self.sort_enabled or self.pagination_enabled
        )

    def _extract_pass_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {}
        for name in self.declaration.pass_params_for(self.scope.action):
            value = self.request.route_params.get(name)
            if is_empty(value):
                value = self.request.get_query(name)
            if not is_empty(value):
                params[name] = value
        return params

    def _session_path(self, prefix: str) -> str:
        return self.scope.session_path(prefix)

    async def resolve(self) -> None:
        """
        Restore the filter combination of the slug carried by the URL.

        Unknown slugs and unreadable stored data leave the listing
        unfiltered. Database errors propagate.

        Raises:
            FilterConfigurationError: If the URL carries a slug but no slug
                store was given.
        """
        slug = self.request.slugged_filter
        if not self.filter_enabled or not slug:
            return
        if self.slug_store is None:
            raise FilterConfigurationError(
                "A slug store is required to resolve slugged filters"
            )

        try:
            filter_data = await self.slug_store.find_filter_data(
                self.scope, slug
            )
        except FilterDataDecodeError as ex:
            logger.error(f"Ignoring slug '{slug}': {ex.message}")
            return

        if not filter_data:
            return

        self.submitted = {**filter_data, **self.request.data}
        self.slug = slug
        set_log_context(slug=slug)
        self.phase = FilterPhase.SLUG_RESOLVED

    async def compute_options(self) -> ListingUrl | None:
        """
        Compile conditions and ordering of the request.

        Returns:
            On a form submission to a filterable action, the URL the client
            has to be redirected to. None otherwise.
        """
        if not self.enabled:
            self.phase = FilterPhase.OPTIONS_COMPUTED
            return None

        if self.filter_enabled and self.request.is_post:
            return await self._redirect_url()

        if self.filter_enabled:
            compiled = compile_filters(self.filter_fields, self.submitted)
            self.options.conditions = compiled.conditions
            self.options.having = compiled.having
            self.active_filters = compiled.active_filters

        if self.sort_enabled:
            resolved = resolve_sort(
                self.sort_fields,
                self.request.get_query(SORT_FIELD_PARAM),
                self.request.get_query(SORT_DIR_PARAM),
                self.default_sort,
            )
            self.options.order = resolved.order
            self.active_sort = resolved.active_sort

        self.page = parse_int(self.request.get_query(PAGE_PARAM)) or 1
        self.phase = FilterPhase.OPTIONS_COMPUTED
        return None

    async def _redirect_url(self) -> ListingUrl:
        filter_data = {
            name: self.submitted[name]
            for name in self.filter_fields
            if not is_empty(self.submitted.get(name))
        }

        url = ListingUrl.for_scope(self.scope, params=dict(self.pass_params))
        query: dict[str, Any] = {}
        if filter_data:
            if self.slug_store is None:
                raise FilterConfigurationError(
                    "A slug store is required to redirect filter submissions"
                )
            url.slugged_filter = await self.slug_store.intern(
                self.scope, filter_data
            )
            query = {
                key: value
                for key, value in self.request.query.items()
                if key not in (PAGE_PARAM, SORT_FIELD_PARAM, SORT_DIR_PARAM)
            }

        if self.sort_enabled:
            resolved = resolve_sort(
                self.sort_fields,
                self.request.get_query(SORT_FIELD_PARAM),
                self.request.get_query(SORT_DIR_PARAM),
                self.default_sort,
            )
            if sort_differs_from_default(resolved.active_sort, self.default_sort):
                field, direction = next(iter(resolved.active_sort.items()))
                query[SORT_FIELD_PARAM] = field
                query[SORT_DIR_PARAM] = direction

        url.query = query
        self.phase = FilterPhase.REDIRECT_ISSUED
        MetricsCollector.record_redirect()
        logger.debug(
            f"Redirecting filter submission to slug '{url.slugged_filter or ''}'"
        )
        return url

    def apply(self, query: Select[Any]) -> Select[Any]:
        """
        Apply the compiled conditions and ordering to the data query.

        Args:
            query: The caller's unfiltered select.

        Returns:
            The query with WHERE, HAVING and ORDER BY added.
        """
        if self.options.conditions:
            query = query.where(*self.options.conditions)
        if self.options.having is not None:
            query = query.having(self.options.having)
        if self.options.order:
            query = query.order_by(*(text(term) for term in self.options.order))
        return query

    async def paginate(
        self,
        query: Select[Any],
        count_columns: list[Any] | None = None,
        total: int | None = None,
    ) -> tuple[Select[Any], PaginationState | None]:
        """
        Window the data query to the requested page.

        The limit is the requested ``l`` when allowed, else the limit
        remembered for this endpoint, else the declared default.

        Args:
            query: The filtered data query.
            count_columns: Columns to count over instead of the selected ones.
            total: Precomputed row total; skips the count query.

        Returns:
            Tuple of (windowed query, pagination state). The query is
            returned unchanged with None when the action is not paginated.

        Raises:
            FilterConfigurationError: If rows have to be counted and no
                counter was given.
        """
        spec = self.pagination_spec
        if spec is None:
            return query, None

        remembered = await self.session.read(
            self._session_path(LIMIT_SESSION_PREFIX)
        )
        limit = select_limit(
            self.request.get_query(LIMIT_PARAM),
            spec.limits,
            spec.default,
            remembered,
        )

        if total is None:
            if self.counter is None:
                raise FilterConfigurationError(
                    "A query counter or a precomputed total is required to paginate"
                )
            total = await self.counter.count(query, count_columns)

        state = calculate_pagination(
            limit,
            self.page,
            total,
            default_limit=spec.default,
            limits=spec.limits,
            pass_params=self.pass_params,
        )
        self.pagination = state
        self.active_limit = limit
        return apply_window(query, state), state

    async def finalize(self) -> FilterViewState:
        """
        Remember the current view and build the state for rendering.

        Writes ``FILTER_<scope>`` (slug, non-default sort and page) and
        ``LIMIT_<scope>`` (only a non-default limit). Empty entries are
        deleted.

        Raises:
            FilterConfigurationError: If the request was already answered
                with a redirect.
        """
        if self.phase == FilterPhase.REDIRECT_ISSUED:
            raise FilterConfigurationError(
                "finalize() called on a redirected filter submission"
            )

        view_state = FilterViewState(
            scope=self.scope,
            slug=self.slug,
            active_filters=self.active_filters,
            filter_fields=self.filter_fields,
            active_sort=self.active_sort,
            sort_fields=self.sort_fields,
            default_sort=self.default_sort,
            pagination=self.pagination,
            active_limit=self.active_limit,
            pass_params=self.pass_params,
        )
        if not self.enabled:
            return view_state

        filter_options: dict[str, Any] = {}
        if self.slug:
            filter_options[SESSION_SLUG_KEY] = self.slug
        if sort_differs_from_default(self.active_sort, self.default_sort):
            field, direction = next(iter(self.active_sort.items()))
            filter_options[SORT_FIELD_PARAM] = field
            filter_options[SORT_DIR_PARAM] = direction
        if (
            self.pagination is not None
            and self.pagination.page != 1
            and self.remember_page
        ):
            filter_options[PAGE_PARAM] = self.pagination.page

        if self.pagination_enabled:
            limit_path = self._session_path(LIMIT_SESSION_PREFIX)
            if (
                self.active_limit is not None
                and self.active_limit != self.pagination_spec.default
            ):
                await self.session.write(limit_path, self.active_limit)
            else:
                await self.session.delete(limit_path)

        filter_path = self._session_path(FILTER_SESSION_PREFIX)
        if filter_options:
            await self.session.write(filter_path, filter_options)
        else:
            await self.session.delete(filter_path)

        self.phase = FilterPhase.RENDER_PREPARED
        return view_state
