"""Genro Traversal - resource-tree traversal router for Python.

Converts a request path into a chain of typed resource instances, then
dispatches the handlers registered for the leaf resource, its path name,
the HTTP method and the type of its parent.

Public exports:
    - ``Traversal``: Registry, chain builder and per-request entry point
    - ``Resource``: Base class for resource types
    - ``ResourceNode``: Leaf resource plus unresolved path segments
    - ``PathEntry``: Handlers registered for one path key
    - ``build_resource_url``: Rebuild the URL of a resource
    - Error classes from ``genro_traversal.exceptions``

Built-in plugins (logging) are auto-registered on first import.

Example::

    from genro_traversal import Resource, Traversal

    traversal = Traversal()

    @traversal.resource("root")
    class Root(Resource):
        children = {"projects": "projects"}

    traversal.register_resource("projects", {"child": "project"})
    traversal.register_resource("project", {})
    traversal.set_root_resource("root")

    @traversal.path("project", method="get")
    def show(request, response, next):
        response.body = request.resource.key
"""

from importlib import import_module

__version__ = "0.3.0"

from .core import PathEntry, Resource, ResourceNode, Traversal, build_resource_url
from .exceptions import (
    InvalidHandlerType,
    MissingHandlers,
    RegistryFrozen,
    RootNotSet,
    TraversalError,
    UnregisteredResource,
)

# Import plugins to trigger auto-registration (lazy to avoid cycles)
for _plugin in ("logging",):
    import_module(f"{__name__}.plugins.{_plugin}")
del _plugin

__all__ = [
    "Traversal",
    "Resource",
    "ResourceNode",
    "PathEntry",
    "build_resource_url",
    "TraversalError",
    "UnregisteredResource",
    "RootNotSet",
    "MissingHandlers",
    "InvalidHandlerType",
    "RegistryFrozen",
]
