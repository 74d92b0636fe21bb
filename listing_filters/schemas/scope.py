"""Endpoint identity used to namespace slugs and remembered session state."""

from pydantic import BaseModel, ConfigDict, field_validator


class Scope(BaseModel):  # type: ignore[misc]
    """
    The (plugin, controller, action) triple of a listing endpoint.

    ``plugin`` is an optional namespace; an empty string is normalised to
    None so that "no plugin" has a single representation.

    Example:
        >>> scope = Scope(controller="posts", action="index")
        >>> scope.session_path("FILTER_")
        'FILTER_.posts.index'
    """

    model_config = ConfigDict(frozen=True)

    plugin: str | None = None
    controller: str
    action: str

    @field_validator("plugin", mode="before")
    @classmethod
    def _empty_plugin_is_none(cls, value: str | None) -> str | None:
        return value or None

    def session_path(self, prefix: str) -> str:
        """
        Build the dot-joined session path for this scope.

        Args:
            prefix: Key prefix such as ``FILTER_`` or ``LIMIT_``.

        Returns:
            Path of the form ``<prefix><plugin>.<controller>.<action>``.
        """
        return ".".join(
            [f"{prefix}{self.plugin or ''}", self.controller, self.action]
        )
