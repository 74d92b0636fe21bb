"""
Starlette/FastAPI adapter of the filter layer.

Translates Starlette requests into ``FilterRequest`` values and
``ListingUrl`` descriptors back into paths and redirects.

Listing routes are looked up by name. An endpoint serves two routes: the
plain listing, named after its scope, and the filtered listing carrying the
``{slugged_filter}`` path parameter, named with a ``_filtered`` suffix:

    ```python
    @router.api_route("/posts", methods=["GET", "POST"], name="posts.index")
    @router.api_route(
        "/posts/f/{slugged_filter}",
        methods=["GET", "POST"],
        name="posts.index_filtered",
    )
    async def index(request: Request, db: SessionDep): ...
    ```
"""

import uuid
from typing import Any
from urllib.parse import urlencode

from starlette.datastructures import ImmutableMultiDict
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response
from starlette.routing import BaseRoute

from listing_filters.constants import SLUG_ROUTE_PARAM
from listing_filters.logging import clear_log_context, set_correlation_id
from listing_filters.schemas.request import FilterRequest, ListingUrl
from listing_filters.schemas.scope import Scope
from listing_filters.storage.session import DictSessionStore

FILTERED_ROUTE_SUFFIX = "_filtered"


def _flatten(values: ImmutableMultiDict) -> dict[str, Any]:
    """Collapse a multi-dict, keeping repeated keys as lists."""
    flat: dict[str, Any] = {}
    for key in values.keys():
        items = values.getlist(key)
        flat[key] = items if len(items) > 1 else items[0]
    return flat


async def build_filter_request(
    request: Request,
    *,
    controller: str,
    action: str,
    plugin: str | None = None,
) -> FilterRequest:
    """
    Build the framework-neutral view of a Starlette request.

    Form data is only read for POST requests.

    Args:
        request: The incoming request.
        controller: Controller name of the listing endpoint.
        action: Action name of the listing endpoint.
        plugin: Optional namespace of the endpoint.

    Returns:
        FilterRequest with query, form and path parameters.
    """
    is_post = request.method == "POST"
    data: dict[str, Any] = {}
    if is_post:
        form = await request.form()
        data = {
            key: value
            for key, value in _flatten(form).items()
            if isinstance(value, (str, list))
        }

    return FilterRequest(
        scope=Scope(plugin=plugin, controller=controller, action=action),
        query=_flatten(request.query_params),
        data=data,
        route_params=dict(request.path_params),
        is_post=is_post,
    )


def session_store_for(request: Request) -> DictSessionStore:
    """
    Session store over the cookie session of the request.

    Requires Starlette's ``SessionMiddleware``.
    """
    return DictSessionStore(request.session)


def route_name(url: ListingUrl) -> str:
    """
    Route name of a listing URL.

    Example:
        >>> route_name(ListingUrl(controller="posts", action="index", slugged_filter="x"))
        'posts.index_filtered'
    """
    name = ".".join(
        part for part in (url.plugin, url.controller, url.action) if part
    )
    if url.slugged_filter:
        name += FILTERED_ROUTE_SUFFIX
    return name


def _route_param_names(routes: list[BaseRoute], name: str) -> set[str] | None:
    for route in routes:
        if getattr(route, "name", None) == name:
            return set(getattr(route, "param_convertors", {}))
    return None


def listing_url_path(request: Request, url: ListingUrl) -> str:
    """
    Resolve a listing URL descriptor into a path with query string.

    Pass-through params become path parameters when the route declares
    them and query parameters otherwise.

    Args:
        request: Any request of the application (used for route lookup).
        url: Descriptor to resolve.

    Returns:
        The path, followed by ``?query`` when the URL has query parameters.

    Raises:
        starlette.routing.NoMatchFound: If no route matches the name and
            path parameters.
    """
    name = route_name(url)
    declared = _route_param_names(request.app.routes, name)

    path_params: dict[str, str] = {}
    query: dict[str, Any] = {}
    for key, value in url.params.items():
        if declared is None or key in declared:
            path_params[key] = str(value)
        else:
            query[key] = value
    if url.slugged_filter:
        path_params[SLUG_ROUTE_PARAM] = url.slugged_filter
    query.update(url.query)

    path = str(request.app.url_path_for(name, **path_params))
    if query:
        path = f"{path}?{urlencode(query, doseq=True)}"
    return path


def redirect_to(request: Request, url: ListingUrl) -> RedirectResponse:
    """Redirect (303 See Other) a filter form submission to its listing URL."""
    return RedirectResponse(listing_url_path(request, url), status_code=303)


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Attach a correlation ID to every request for log correlation.

    Takes the ID from the X-Correlation-ID header or generates an 8-char
    one, stores it for the logging formatters and echoes it in the response
    headers.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        cid = request.headers.get("X-Correlation-ID", str(uuid.uuid4())[:8])
        cid = cid[:8]

        request.state.request_id = cid
        set_correlation_id(cid)
        clear_log_context()

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = cid
        return response
