# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Resource - runtime node of the traversal tree.

A ``Resource`` is created per request for every path segment the tree can
claim, plus one root instance. It carries the segment that produced it
(``key``), the instance that created it (``parent``), opaque ``options``
and the id of the resource type it was built from (``resource``).

Resource types
--------------
A resource type is a ``Resource`` subclass generated by
``Traversal.register_resource(id, definition)``. The definition is either:

- a ``Resource`` subclass, used as base of the generated class; or
- a mapping of attributes. ``child``, ``children``, ``child_validate`` and
  ``init`` are validated with :class:`ResourceDefinition`; every other key
  is copied verbatim into the class namespace, so functions become methods
  receiving the instance as first argument.

The generated class gets ``resource`` (its id) and ``_traversal`` (the
registry that owns it). The same definition may be registered under several
ids or on several registries.

Children
--------
``children`` maps literal segments to resource ids and is always tried
first. ``child`` names a single dynamically-keyed resource id; a segment is
accepted for it when ``child_validate(segment)`` is true (default: any
non-empty segment). Ids are only dereferenced when a segment matches, so
types may reference each other regardless of registration order.

Lifecycle
---------
Instances are built by the registry: ``cls(key, parent, options)`` followed
by exactly one ``init()`` call, so ``init`` may rely on ``self.key`` and
``self.parent``.

Example::

    traversal.register_resource("users", {"child": "user"})
    traversal.register_resource(
        "user",
        {"child_validate": lambda self, key: key.isdigit()},
    )

    @traversal.resource("root")
    class Root(Resource):
        children = {"users": "users"}
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from genro_toolbox.typeutils import safe_is_instance
from pydantic import BaseModel

from .resource_node import build_resource_url

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from .traversal import Traversal

__all__ = ["Resource", "ResourceDefinition", "build_resource_class"]


class ResourceDefinition(BaseModel):
    """Declared shape of a resource type, checked at registration time."""

    child: str | None = None
    children: dict[str, str] | None = None
    child_validate: Callable[..., Any] | None = None
    init: Callable[..., Any] | None = None


class Resource:
    """Base behaviour shared by every registered resource type.

    Attributes:
        key: Path segment that produced this node (``None`` for the root).
        parent: Resource that created this node (``None`` for the root).
        options: Opaque data given at creation time.
        resource: Id of the resource type (class attribute).
    """

    resource: str | None = None
    child: str | None = None
    children: Mapping[str, str] | None = None
    _traversal: Traversal | None = None

    def __init__(
        self,
        key: str | None = None,
        parent: Resource | None = None,
        options: Any = None,
    ) -> None:
        if parent is not None and not safe_is_instance(
            parent, "genro_traversal.core.resource.Resource"
        ):
            raise TypeError(
                f"Resource parent must be a Resource instance, got {type(parent).__name__}"
            )
        self.key = key
        self.parent = parent
        self.options = options if options is not None else {}

    def child_validate(self, key: str) -> bool:
        """Return True if ``key`` may instantiate the dynamic ``child`` type."""
        return bool(key)

    def init(self) -> None:
        """Hook run once right after construction."""

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------
    def get(self, key: str) -> Resource | None:
        """Resolve one path segment into a child resource.

        Args:
            key: The path segment to resolve.

        Returns:
            The initialised child resource, or None when neither ``children``
            nor ``child`` claims the segment.

        Raises:
            UnregisteredResource: If the matching child id is not registered.
        """
        resource_id = self._child_resource_id(key)
        if resource_id is None:
            return None
        if self._traversal is None:
            raise RuntimeError(f"{type(self).__name__} is not bound to a Traversal")
        return self._traversal.init_resource(resource_id, key, self)

    def _child_resource_id(self, key: str) -> str | None:
        if self.children and key in self.children:
            return self.children[key]
        if self.child and self.child_validate(key):
            return self.child
        return None

    def iter_parents(self) -> Iterator[Resource]:
        """Yield ancestors, nearest first."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def traverse_to(self, resource_id: str) -> Resource | None:
        """Return the nearest ancestor built from ``resource_id`` (self excluded)."""
        for ancestor in self.iter_parents():
            if ancestor.resource == resource_id:
                return ancestor
        return None

    def url(self, pathname: str | None = None) -> str:
        """Return the URL of this resource, optionally followed by ``pathname``."""
        return build_resource_url(self, pathname)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} resource={self.resource!r} key={self.key!r}>"


def build_resource_class(
    resource_id: str, definition: Any, traversal: Traversal
) -> type[Resource]:
    """Build the constructible class registered under ``resource_id``.

    Raises:
        TypeError: If ``definition`` is neither a Resource subclass nor a mapping.
        pydantic.ValidationError: If the declared shape is invalid.
    """
    namespace: dict[str, Any] = {}
    if isinstance(definition, type) and issubclass(definition, Resource):
        ResourceDefinition.model_validate(
            {"child": definition.child, "children": definition.children}
        )
        base: type[Resource] = definition
    elif isinstance(definition, Mapping):
        declared = {k: definition[k] for k in ResourceDefinition.model_fields if k in definition}
        shape = ResourceDefinition.model_validate(declared)
        namespace.update({k: v for k, v in definition.items() if k not in declared})
        for field_name in declared:
            value = getattr(shape, field_name)
            if value is not None:
                namespace[field_name] = value
        base = Resource
    else:
        raise TypeError(
            f"Resource definition for '{resource_id}' must be a Resource subclass "
            f"or a mapping, got {type(definition).__name__}"
        )
    namespace.update(
        {
            "resource": resource_id,
            "_traversal": traversal,
            "__module__": base.__module__,
            "__qualname__": base.__qualname__,
        }
    )
    return type(base.__name__, (base,), namespace)
