# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Traversal - resource registry, chain builder and dispatcher.

This module exposes :class:`Traversal`, the object a host application
builds once at startup, fills with resource types and path handlers, and
then calls once per request.

Constructor
-----------
::

    Traversal(name=None, *, plugins=None)

- ``name``: optional label used in logs and ``repr``.
- ``plugins``: plugin names (list or comma-separated string) attached
  through ``plug()``.

Registration phase
------------------
- ``register_resource(id, definition)`` / ``@resource(id)``: store a resource
  type (last write wins). See :mod:`genro_traversal.core.resource`.
- ``set_root_resource(id)``: fix the entry type of every chain.
- ``register_resource_path(id, *handlers, name, parent, method, **options)``
  / ``@path(id, ...)``: store handlers in the path table. Options named
  ``<plugin>_<key>`` configure a plugin for this entry only; ``meta_<key>``
  options land in ``entry.metadata["meta"]``.
- ``freeze()``: close the registration phase; later registrations raise
  ``RegistryFrozen``. ``clear()`` empties everything and reopens it.

Request phase
-------------
- ``build_chain(path)``: greedy, leftmost-first walk from a fresh root
  instance. Returns a :class:`ResourceNode` with the leaf and the
  unresolved segments; never backtracks.
- ``dispatch(node, request, response, next)``: look up the handlers for the
  leaf and run them as a continuation chain ending in ``next``.
- ``middleware(request, response, next)`` (also ``__call__``): both steps
  for a request exposing ``path`` and ``method``; it sets ``resource``,
  ``pathname``, ``subpath`` and ``build_resource_url`` on the request.

Registry and path table are meant to be read-only once requests flow;
``freeze()`` enforces that.

Example::

    traversal = Traversal()
    traversal.register_resource("root", {"children": {"users": "users"}})
    traversal.register_resource("users", {"child": "user"})
    traversal.register_resource("user", {"child_validate": lambda self, key: key.isdigit()})
    traversal.set_root_resource("root")

    @traversal.path("user", method="get")
    def show_user(request, response, next):
        response.body = f"user {request.resource.key}"

    traversal.middleware(request, response, not_found)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from genro_toolbox import dictExtract

from genro_traversal.exceptions import (
    InvalidHandlerType,
    MissingHandlers,
    RegistryFrozen,
    RootNotSet,
    UnregisteredResource,
)
from genro_traversal.plugins._base_plugin import BasePlugin

from .dispatcher import run_chain
from .path_table import PathEntry, PathTable
from .resource import Resource, build_resource_class
from .resource_node import ResourceNode, build_resource_url

__all__ = ["Traversal"]

logger = logging.getLogger("genro_traversal")

_PLUGIN_REGISTRY: dict[str, type[BasePlugin]] = {}


class Traversal:
    """Registry of resource types and path handlers, plus the request entry point.

    Responsibilities:
        - Register resource types and the root type
        - Register handler sequences per (resource, name, parent, method)
        - Build resource chains from request paths
        - Dispatch the matching handlers as a continuation chain
        - Wrap dispatched handlers with attached plugins
    """

    __slots__ = (
        "name",
        "_resources",
        "_root",
        "_paths",
        "_plugins",
        "_plugins_by_name",
        "_frozen",
    )

    def __init__(self, name: str | None = None, *, plugins: str | Iterable[str] | None = None):
        self.name = name
        self._resources: dict[str, type[Resource]] = {}
        self._root: type[Resource] | None = None
        self._paths = PathTable()
        self._plugins: list[BasePlugin] = []
        self._plugins_by_name: dict[str, BasePlugin] = {}
        self._frozen = False
        if isinstance(plugins, str):
            plugins = [chunk.strip() for chunk in plugins.split(",") if chunk.strip()]
        for plugin in plugins or ():
            self.plug(plugin)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def resources(self) -> dict[str, type[Resource]]:
        """Return a copy of the registered resource types."""
        return dict(self._resources)

    @property
    def root(self) -> type[Resource] | None:
        return self._root

    @property
    def paths(self) -> list[PathEntry]:
        """Return all registered path entries."""
        return list(self._paths)

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ------------------------------------------------------------------
    # Resource type registry
    # ------------------------------------------------------------------
    def register_resource(self, resource_id: str, definition: Any) -> type[Resource]:
        """Register a resource type under ``resource_id``.

        Args:
            resource_id: Unique name of the resource type.
            definition: A ``Resource`` subclass or a mapping of attributes.

        Returns:
            The generated resource class.

        Raises:
            RegistryFrozen: After ``freeze()``.
            TypeError: If ``definition`` has an unsupported type.
            pydantic.ValidationError: If ``child``/``children`` are malformed.
        """
        self._check_not_frozen("register_resource")
        factory = build_resource_class(resource_id, definition, self)
        if resource_id in self._resources:
            logger.debug("Resource %r re-registered on %r", resource_id, self)
        self._resources[resource_id] = factory
        return factory

    def resource(self, resource_id: str) -> Callable[[type[Resource]], type[Resource]]:
        """Class decorator form of ``register_resource``.

        The decorated class is returned unchanged; the registry keeps a
        generated subclass bound to this traversal.
        """

        def decorator(cls: type[Resource]) -> type[Resource]:
            self.register_resource(resource_id, cls)
            return cls

        return decorator

    def check_resource(self, resource_id: str) -> type[Resource]:
        """Return the resource class for ``resource_id``.

        Raises:
            UnregisteredResource: If ``resource_id`` is not registered.
        """
        factory = self._resources.get(resource_id)
        if factory is None:
            raise UnregisteredResource(resource_id)
        return factory

    def set_root_resource(self, resource_id: str) -> None:
        """Use ``resource_id`` as the entry type of every chain."""
        self._check_not_frozen("set_root_resource")
        self._root = self.check_resource(resource_id)

    def init_resource(
        self,
        resource_id: str,
        key: str | None = None,
        parent: Resource | None = None,
        options: Any = None,
    ) -> Resource:
        """Build an initialised instance of ``resource_id`` outside of traversal."""
        return self._instantiate(self.check_resource(resource_id), key, parent, options)

    def _instantiate(
        self,
        factory: type[Resource],
        key: str | None,
        parent: Resource | None,
        options: Any,
    ) -> Resource:
        instance = factory(key, parent, options)
        instance.init()
        return instance

    def clear(self) -> None:
        """Remove registered resources, paths and root; reopen registration."""
        self._resources = {}
        self._paths.clear()
        self._root = None
        self._frozen = False

    def freeze(self) -> Traversal:
        """Close the registration phase. Returns self."""
        self._frozen = True
        return self

    def _check_not_frozen(self, operation: str) -> None:
        if self._frozen:
            raise RegistryFrozen(operation)

    # ------------------------------------------------------------------
    # Path handler table
    # ------------------------------------------------------------------
    def register_resource_path(
        self,
        resource_id: str,
        *handlers: Callable,
        name: str | None = None,
        parent: str | None = None,
        method: str | None = None,
        **options: Any,
    ) -> PathEntry:
        """Register ``handlers`` for a resource path.

        Args:
            resource_id: Resource the handlers serve.
            *handlers: Handler callables, run in order.
            name: Path name (first unresolved segment), default ``"index"``.
            parent: Required immediate parent resource id, default any.
            method: HTTP method (case-insensitive), default any.
            **options: ``<plugin>_<key>`` plugin options, ``meta_<key>``
                metadata, anything else stored in ``entry.metadata``.

        Returns:
            The stored PathEntry.

        Raises:
            RegistryFrozen: After ``freeze()``.
            RootNotSet: If no root resource was set.
            UnregisteredResource: If ``resource_id`` or ``parent`` is unknown.
            MissingHandlers: If no handler is given.
            InvalidHandlerType: If a handler is not callable.
            pydantic.ValidationError: If plugin options do not match the
                plugin's ``configure()`` signature.
        """
        self._check_not_frozen("register_resource_path")
        if self._root is None:
            raise RootNotSet()
        self.check_resource(resource_id)
        if parent:
            self.check_resource(parent)
        if not handlers:
            raise MissingHandlers(resource_id)
        for handler in handlers:
            if not callable(handler):
                raise InvalidHandlerType(handler)

        name, parent, method = PathTable.normalize(name, parent, method)
        entry = PathEntry(
            resource=resource_id,
            name=name,
            parent=parent,
            method=method,
            handlers=tuple(handlers),
            metadata=self._split_path_options(options),
        )
        for plugin in self._plugins:
            self._validate_plugin_options(plugin, entry)
        self._paths.add(entry)
        for plugin in self._plugins:
            plugin.on_register(self, entry)
        logger.debug("Registered path %s (%d handlers)", entry.label, len(entry.handlers))
        return entry

    def path(
        self,
        resource_id: str,
        *,
        name: str | None = None,
        parent: str | None = None,
        method: str | None = None,
        **options: Any,
    ) -> Callable[[Callable], Callable]:
        """Decorator registering a single handler for a resource path.

        Example::

            @traversal.path("task", name="edit", method="post")
            def save_task(request, response, next):
                ...
        """

        def decorator(func: Callable) -> Callable:
            self.register_resource_path(
                resource_id, func, name=name, parent=parent, method=method, **options
            )
            return func

        return decorator

    def _split_path_options(self, options: dict[str, Any]) -> dict[str, Any]:
        metadata: dict[str, Any] = {}
        plugin_config: dict[str, dict[str, Any]] = {}
        for plugin_name in _PLUGIN_REGISTRY:
            plugin_options = dictExtract(options, f"{plugin_name}_", pop=True, slice_prefix=True)
            if plugin_options:
                plugin_config[plugin_name] = plugin_options
        if plugin_config:
            metadata["plugin_config"] = plugin_config
        meta = dictExtract(options, "meta_", pop=True, slice_prefix=True)
        if meta:
            metadata["meta"] = meta
        metadata.update(options)
        return metadata

    def find_path_entry(
        self,
        resource_id: str,
        *,
        name: str | None = None,
        parent: str | None = None,
        method: str | None = None,
    ) -> PathEntry | None:
        """Return the most specific PathEntry for the given key, or None."""
        return self._paths.lookup(resource_id, name=name, parent=parent, method=method)

    def get_resource_path(
        self,
        resource_id: str,
        *,
        name: str | None = None,
        parent: str | None = None,
        method: str | None = None,
    ) -> list[Callable] | None:
        """Return the handler sequence of the most specific match, or None."""
        entry = self.find_path_entry(resource_id, name=name, parent=parent, method=method)
        return list(entry.handlers) if entry is not None else None

    # ------------------------------------------------------------------
    # Chain builder
    # ------------------------------------------------------------------
    def build_chain(self, path: str, options: Any = None) -> ResourceNode:
        """Build the resource chain for ``path``.

        Args:
            path: Slash-delimited request path. Empty segments are dropped.
            options: Options given to the root instance.

        Returns:
            ResourceNode whose ``resource`` is the deepest resource that
            claimed its segment and whose ``subpath`` lists the first
            unclaimed segment followed by the rest of the path.

        Raises:
            RootNotSet: If no root resource was set.
            UnregisteredResource: If a matched child id is not registered.
        """
        if self._root is None:
            raise RootNotSet()
        segments = [segment for segment in path.split("/") if segment]
        resource = self._instantiate(self._root, None, None, options)
        consumed: list[str] = []
        while segments:
            child = resource.get(segments[0])
            if child is None:
                logger.debug("Segment %r not claimed by %r", segments[0], resource)
                break
            consumed.append(segments.pop(0))
            resource = child
        return ResourceNode(resource, subpath=segments, path="/".join(consumed))

    # ------------------------------------------------------------------
    # Dispatcher
    # ------------------------------------------------------------------
    def dispatch(
        self,
        node: ResourceNode,
        request: Any,
        response: Any,
        next: Callable[[], Any],  # noqa: A002 - connect-style name
    ) -> None:
        """Run the handlers matching ``node``, ending in ``next``.

        The lookup key is the leaf resource id, ``node.pathname`` (or
        ``"index"``), ``request.method`` and the id of the leaf's parent.
        Without a match ``next`` is called directly.
        """
        leaf = node.resource
        entry = self.find_path_entry(
            leaf.resource,
            name=node.pathname,
            method=getattr(request, "method", None),
            parent=leaf.parent.resource if leaf.parent is not None else None,
        )
        if entry is None:
            logger.debug("No path entry for %r (name=%r)", leaf, node.pathname)
            next()
            return
        handlers = [self._wrap_handler(entry, handler) for handler in entry.handlers]
        run_chain(handlers, request, response, next)

    def middleware(
        self,
        request: Any,
        response: Any,
        next: Callable[[], Any],  # noqa: A002
    ) -> None:
        """Per-request entry point for connect-style hosts.

        ``request`` must expose ``path`` and ``method``. The resolved leaf,
        the unresolved segments and a URL builder are attached to it before
        the handlers run.
        """
        node = self.build_chain(request.path)
        request.resource = node.resource
        request.pathname = node.pathname
        request.subpath = list(node.subpath)
        request.build_resource_url = build_resource_url
        self.dispatch(node, request, response, next)

    __call__ = middleware

    @staticmethod
    def build_resource_url(resource: Resource, pathname: str | None = None) -> str:
        """See :func:`genro_traversal.core.resource_node.build_resource_url`."""
        return build_resource_url(resource, pathname)

    # ------------------------------------------------------------------
    # Plugins
    # ------------------------------------------------------------------
    @classmethod
    def register_plugin(cls, plugin_class: type[BasePlugin], name: str | None = None) -> None:
        """Register a plugin class globally.

        Args:
            plugin_class: A BasePlugin subclass with plugin_code defined.
            name: Optional override name. If provided, overwrites any existing
                  registration. If not provided, uses plugin_code and raises
                  if already registered with a different class.

        Raises:
            TypeError: If plugin_class is not a BasePlugin subclass.
            ValueError: If plugin_code is missing or name collision occurs.
        """
        if not isinstance(plugin_class, type) or not issubclass(plugin_class, BasePlugin):
            raise TypeError("plugin_class must be a BasePlugin subclass")
        if not getattr(plugin_class, "plugin_code", None):
            raise ValueError(
                f"Plugin {plugin_class.__name__} not following standards: missing plugin_code"
            )
        code = name or plugin_class.plugin_code
        if name is None:
            existing = _PLUGIN_REGISTRY.get(code)
            if existing is not None and existing is not plugin_class:
                raise ValueError(f"Plugin '{code}' already registered")
        _PLUGIN_REGISTRY[code] = plugin_class

    @classmethod
    def available_plugins(cls) -> dict[str, type[BasePlugin]]:
        """Return a copy of the global plugin registry."""
        return dict(_PLUGIN_REGISTRY)

    def plug(self, plugin: str, **config: Any) -> Traversal:
        """Attach a plugin by name (previously registered globally).

        Returns:
            self (for method chaining).

        Raises:
            TypeError: If plugin is not a string.
            ValueError: If plugin is not registered or already attached.
            RegistryFrozen: If the traversal was frozen.
        """
        self._check_not_frozen("plug")
        if not isinstance(plugin, str):
            raise TypeError(
                f"Plugin must be referenced by name string, got {type(plugin).__name__}"
            )
        plugin_class = _PLUGIN_REGISTRY.get(plugin)
        if plugin_class is None:
            available = ", ".join(sorted(_PLUGIN_REGISTRY)) or "none"
            raise ValueError(
                f"Unknown plugin '{plugin}'. Register it first. Available plugins: {available}"
            )
        if plugin in self._plugins_by_name:
            raise ValueError(f"Plugin '{plugin}' is already attached to this traversal")
        instance = plugin_class(self, **config)
        for entry in self._paths:
            self._validate_plugin_options(instance, entry)
        self._plugins.append(instance)
        self._plugins_by_name[plugin] = instance
        for entry in self._paths:
            instance.on_register(self, entry)
        return self

    def _validate_plugin_options(self, plugin: BasePlugin, entry: PathEntry) -> None:
        plugin_options = entry.metadata.get("plugin_config", {}).get(plugin.name)
        if plugin_options:
            plugin.validate_options(**plugin_options)

    def iter_plugins(self) -> list[BasePlugin]:
        """Return attached plugin instances in application order."""
        return list(self._plugins)

    def get_plugin(self, name: str) -> BasePlugin:
        plugin = self._plugins_by_name.get(name)
        if plugin is None:
            raise AttributeError(f"No plugin named '{name}' attached to traversal '{self.name}'")
        return plugin

    def _wrap_handler(self, entry: PathEntry, handler: Callable) -> Callable:
        wrapped = handler
        for plugin in reversed(self._plugins):
            if plugin.is_enabled(entry):
                wrapped = plugin.wrap_handler(self, entry, wrapped)
        return wrapped

    def __repr__(self) -> str:
        return f"Traversal(name={self.name!r}, resources={len(self._resources)})"
