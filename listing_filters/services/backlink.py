"""Links back to a listing in the state the user last left it."""

from listing_filters.constants import FILTER_SESSION_PREFIX, SESSION_SLUG_KEY
from listing_filters.exceptions import FilterConfigurationError
from listing_filters.protocols import SessionStore
from listing_filters.schemas.request import ListingUrl
from listing_filters.schemas.scope import Scope


async def get_backlink(
    target: ListingUrl,
    session: SessionStore,
    current_scope: Scope | None = None,
) -> ListingUrl:
    """
    Fold the remembered filter state of a listing into a URL.

    When the target names no controller, plugin and controller are taken
    from the current request. The remembered slug becomes the URL's slug,
    everything else (sort, page) is merged into its query. The session is
    only read.

    Args:
        target: The listing to link to.
        session: Session of the current user.
        current_scope: Scope of the current request.

    Returns:
        A copy of ``target`` with the remembered state applied, or the
        completed target unchanged when nothing is remembered.

    Raises:
        FilterConfigurationError: If the target names no controller and
            there is no current request scope to take it from.

    Example:
        ```python
        back = await get_backlink(
            ListingUrl(action="index"), session_store, current_scope=scope
        )
        # back.slugged_filter == "abcdefghikmnop", back.query == {"s": "title", "d": "desc"}
        ```
    """
    plugin, controller = target.plugin, target.controller
    if controller is None:
        if current_scope is None:
            raise FilterConfigurationError(
                "A backlink without a controller needs the current request scope"
            )
        plugin, controller = current_scope.plugin, current_scope.controller

    scope = Scope(plugin=plugin, controller=controller, action=target.action)
    url = target.model_copy(
        update={"plugin": scope.plugin, "controller": scope.controller}
    )

    filter_options = await session.read(scope.session_path(FILTER_SESSION_PREFIX))
    if not isinstance(filter_options, dict) or not filter_options:
        return url

    options = dict(filter_options)
    slug = options.pop(SESSION_SLUG_KEY, None)
    return url.model_copy(
        update={
            "slugged_filter": slug or url.slugged_filter,
            "query": {**url.query, **options},
        }
    )
