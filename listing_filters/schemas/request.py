"""Framework-neutral views of the incoming request and of generated URLs."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from listing_filters.constants import SLUG_ROUTE_PARAM
from listing_filters.schemas.scope import Scope


class FilterRequest(BaseModel):  # type: ignore[misc]
    """
    What the filter layer needs to know about the current request.

    Attributes:
        scope: Endpoint identity (plugin, controller, action).
        query: Query string parameters.
        data: Submitted body data (form fields).
        route_params: Route/path parameters, including the slug parameter.
        is_post: Whether the request submits data.
    """

    model_config = ConfigDict(frozen=True)

    scope: Scope
    query: dict[str, Any] = Field(default_factory=dict)
    data: dict[str, Any] = Field(default_factory=dict)
    route_params: dict[str, Any] = Field(default_factory=dict)
    is_post: bool = False

    @property
    def slugged_filter(self) -> str:
        """Slug carried by the route, or an empty string."""
        return self.route_params.get(SLUG_ROUTE_PARAM) or ""

    def get_query(self, name: str, default: Any = None) -> Any:
        """Read a query parameter."""
        return self.query.get(name, default)


class ListingUrl(BaseModel):  # type: ignore[misc]
    """
    Descriptor of a listing URL, resolved to a real URL by the HTTP adapter.

    ``plugin`` and ``controller`` may be left unset on backlink targets, in
    which case they are taken from the current request.
    """

    plugin: str | None = None
    controller: str | None = None
    action: str
    slugged_filter: str | None = None
    params: dict[str, Any] = Field(default_factory=dict)
    query: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def for_scope(cls, scope: Scope, **kwargs: Any) -> "ListingUrl":
        """Build a URL pointing at the given endpoint."""
        return cls(
            plugin=scope.plugin,
            controller=scope.controller,
            action=scope.action,
            **kwargs,
        )
