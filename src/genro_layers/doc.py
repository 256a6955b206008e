"""Fluent builder for documentation fragments.

``Doc`` collects an OpenAPI operation and the components it depends on, and
exposes them as one fragment via ``doc``::

    fragment = (
        Doc()
        .security_scheme("BearerAuth", type="http", scheme="bearer", bearerFormat="JWT")
        .security("BearerAuth")
        .tags("user", "main")
        .infer(lambda d: d.parameter(d.ref("securitySchemes/BearerAuth")))
        .doc
    )

Fragments built this way are plain dicts and merge like any other.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

__all__ = ["Doc"]


class Doc:
    """Chainable builder for an operation fragment plus its components."""

    __slots__ = ("operation", "components")

    def __init__(
        self,
        operation: dict[str, Any] | None = None,
        components: dict[str, Any] | None = None,
    ) -> None:
        self.operation: dict[str, Any] = dict(operation or {})
        self.components: dict[str, Any] = dict(components or {})

    @property
    def doc(self) -> dict[str, Any]:
        """The fragment: operation keys plus ``components`` when not empty."""
        fragment = dict(self.operation)
        if self.components:
            fragment["components"] = self.components
        return fragment

    def infer(self, callback: Callable[[Doc], Doc | None]) -> Doc:
        """Run ``callback`` on this builder and return its result (or self)."""
        return callback(self) or self

    def summary(self, summary: str) -> Doc:
        self.operation["summary"] = summary
        return self

    def description(self, description: str) -> Doc:
        self.operation["description"] = description
        return self

    def tags(self, *tags: str) -> Doc:
        self.operation["tags"] = list(tags)
        return self

    def operation_id(self, operation_id: str) -> Doc:
        self.operation["operationId"] = operation_id
        return self

    def deprecated(self, deprecated: bool = True) -> Doc:
        self.operation["deprecated"] = deprecated
        return self

    def parameter(self, options: dict[str, Any]) -> Doc:
        """Append a parameter object (or a ``$ref``)."""
        self.operation["parameters"] = [*self.operation.get("parameters", []), options]
        return self

    def request_body(
        self,
        schema: dict[str, Any],
        *,
        content_type: str = "application/json",
        required: bool = True,
        description: str | None = None,
    ) -> Doc:
        body: dict[str, Any] = {"required": required, "content": {content_type: {"schema": schema}}}
        if description:
            body["description"] = description
        self.operation["requestBody"] = body
        return self

    def response(
        self,
        status: int | str,
        description: str,
        schema: dict[str, Any] | None = None,
        *,
        content_type: str = "application/json",
    ) -> Doc:
        response: dict[str, Any] = {"description": description}
        if schema is not None:
            response["content"] = {content_type: {"schema": schema}}
        self.operation.setdefault("responses", {})[str(status)] = response
        return self

    def ref(self, ref: str) -> dict[str, str]:
        """Return a ``$ref`` object pointing into ``#/components/``."""
        return {"$ref": "#/components/" + ref.lstrip("/")}

    def security(self, scheme: str, *scopes: str) -> Doc:
        """Require ``scheme`` (with optional scopes) for this operation."""
        self.operation["security"] = [*self.operation.get("security", []), {scheme: list(scopes)}]
        return self

    def security_scheme(self, name: str, **options: Any) -> Doc:
        """Declare a security scheme under ``components.securitySchemes``."""
        schemes = dict(self.components.get("securitySchemes", {}))
        schemes[name] = options
        self.components["securitySchemes"] = schemes
        return self

    def schema(self, name: str, schema: dict[str, Any]) -> Doc:
        """Declare a reusable schema under ``components.schemas``."""
        schemas = dict(self.components.get("schemas", {}))
        schemas[name] = schema
        self.components["schemas"] = schemas
        return self
