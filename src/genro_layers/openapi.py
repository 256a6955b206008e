"""OpenAPI definition assembly for Genro Layers.

Turns the flattened routes of a layer into one OpenAPI definition dict. Only
the document is produced here; serving it as JSON, Markdown or an interactive
UI is left to the consumer.

Assembly rules
--------------
- every route with an OpenAPI operation method contributes
  ``paths[route.openapi_path][route.method]`` (``all`` and ``use`` routes are
  skipped);
- the route fragment's ``components`` are pulled out of the operation and
  merged into the document-level ``components``;
- ``default_responses`` are merged beneath each operation's ``responses``, so
  responses declared by the route win; status codes are compared as strings
  so ``500`` and ``"500"`` are the same response;
- all merges use ``join_object`` semantics: lists concatenate and dedup,
  records merge recursively.

Example::

    router = create()
    router.define_openapi(info={"title": "Shop", "version": "2.0.0"})
    router.get("/items", doc_summary="List items").handler(list_items)
    definition = router.openapi()
    definition["paths"]["/items"]["get"]["summary"]  # "List items"
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from pydantic import validate_call

from genro_layers.core.entries import Route
from genro_layers.core.merge import join_object

__all__ = ["OpenAPIBuilder", "OpenAPIOptions", "build_options", "status_keys"]

logger = logging.getLogger("genro_layers")


@dataclass
class OpenAPIOptions:
    """Document-level options; see ``Router.define_openapi``."""

    openapi: str = "3.0.0"
    info: dict[str, Any] = field(default_factory=lambda: {"title": "API", "version": "1.0.0"})
    servers: list[dict[str, Any]] = field(default_factory=list)
    path: str = "/doc"
    paths: dict[str, Any] = field(default_factory=dict)
    components: dict[str, Any] = field(default_factory=dict)
    default_responses: dict[str, Any] = field(default_factory=dict)


def status_keys(responses: dict[Any, Any] | None) -> dict[str, Any]:
    """Return ``responses`` keyed by string status codes (``500`` becomes ``"500"``)."""
    if not isinstance(responses, dict):
        return {}
    return {str(status): response for status, response in responses.items()}


@validate_call
def build_options(
    openapi: str = "3.0.0",
    info: dict[str, Any] | None = None,
    servers: list[dict[str, Any]] | None = None,
    path: str = "/doc",
    paths: dict[str, Any] | None = None,
    components: dict[str, Any] | None = None,
    default_responses: dict[Any, Any] | None = None,
) -> OpenAPIOptions:
    """Validate document-level options and fill in the defaults.

    Raises:
        pydantic.ValidationError: if an argument has the wrong shape.
    """
    options = OpenAPIOptions(openapi=openapi, path=path)
    if info is not None:
        options.info = info
    options.servers = servers or []
    options.paths = paths or {}
    options.components = components or {}
    options.default_responses = status_keys(default_responses)
    return options


class OpenAPIBuilder:
    """Static helpers assembling an OpenAPI definition from routes."""

    OPERATION_METHODS: frozenset[str] = frozenset(
        {"get", "put", "post", "delete", "options", "head", "patch", "trace"}
    )

    @staticmethod
    def operation(route: Route, default_responses: dict[Any, Any] | None = None) -> tuple[dict[str, Any], dict[str, Any]]:
        """Split a route fragment into (operation, components).

        Returns:
            The operation object with default responses merged in, and the
            components the route contributes to the document.
        """
        operation = dict(route.doc)
        components = operation.pop("components", None) or {}
        responses = join_object(status_keys(default_responses), status_keys(operation.get("responses")))
        if responses:
            operation["responses"] = responses
        return operation, components

    @staticmethod
    def definition(routes: Iterable[Route], options: OpenAPIOptions | None = None) -> dict[str, Any]:
        """Build the whole-API definition dict."""
        options = options or OpenAPIOptions()
        document: dict[str, Any] = {
            "paths": dict(options.paths),
            "components": dict(options.components),
        }
        for route in routes:
            if route.method not in OpenAPIBuilder.OPERATION_METHODS:
                logger.debug("Route %s %s has no OpenAPI operation, skipped", route.method, route.path)
                continue
            operation, components = OpenAPIBuilder.operation(route, options.default_responses)
            document = join_object(
                document,
                {
                    "paths": {route.openapi_path: {route.method: operation}},
                    "components": components,
                },
            )

        definition: dict[str, Any] = {"openapi": options.openapi, "info": dict(options.info)}
        if options.servers:
            definition["servers"] = list(options.servers)
        definition["paths"] = document.get("paths", {})
        if document.get("components"):
            definition["components"] = document["components"]
        return definition
