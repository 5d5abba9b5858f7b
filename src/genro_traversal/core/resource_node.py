"""ResourceNode - result of building a resource chain from a path.

ResourceNode wraps the leaf resource reached by ``Traversal.build_chain()``
together with the path segments the tree could not claim.

Example::

    node = traversal.build_chain("/users/42/edit")
    node.resource      # <Resource resource='user' key='42'>
    node.subpath       # ['edit']
    node.pathname      # 'edit'
    node.url()         # '/users/42'
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from genro_toolbox.typeutils import safe_is_instance

if TYPE_CHECKING:  # pragma: no cover
    from .resource import Resource

__all__ = ["ResourceNode", "build_resource_url"]


def build_resource_url(resource: Resource, pathname: str | None = None) -> str:
    """Rebuild the URL of ``resource`` from the keys of its parent chain.

    Args:
        resource: Any resource of a built chain.
        pathname: Optional trailing segment appended after the keys.

    Returns:
        The ``/``-joined keys from root to ``resource``, prefixed with ``/``.
        Empty keys (the root) are skipped, so the root alone gives ``"/"``.
    """
    if not safe_is_instance(resource, "genro_traversal.core.resource.Resource"):
        raise TypeError(f"build_resource_url() requires a Resource, got {type(resource).__name__}")
    parts: list[str] = [pathname] if pathname else []
    node: Resource | None = resource
    while node is not None:
        if node.key:
            parts.insert(0, str(node.key))
        node = node.parent
    return "/" + "/".join(parts)


class ResourceNode:
    """Leaf of a resource chain plus the unresolved part of the path.

    Attributes:
        resource: Deepest resource that claimed its segment (the root if none did).
        subpath: Unresolved segments, the first unmatched one included.
        path: Consumed segments joined with ``/``.
    """

    __slots__ = ("resource", "subpath", "path")

    def __init__(
        self,
        resource: Resource,
        *,
        subpath: list[str] | None = None,
        path: str = "",
    ) -> None:
        self.resource = resource
        self.subpath: list[str] = subpath if subpath is not None else []
        self.path = path

    @property
    def pathname(self) -> str | None:
        """First unresolved segment, or None when the whole path was consumed."""
        return self.subpath[0] if self.subpath else None

    @property
    def resolved(self) -> bool:
        return not self.subpath

    def url(self, pathname: str | None = None) -> str:
        return build_resource_url(self.resource, pathname)

    def to_dict(self) -> dict[str, Any]:
        """Return node data as dict."""
        return {
            "resource": self.resource.resource,
            "path": self.path,
            "subpath": list(self.subpath),
        }

    def __eq__(self, other: object) -> bool:
        if isinstance(other, dict):
            return self.to_dict() == other
        if isinstance(other, ResourceNode):
            return self.to_dict() == other.to_dict()
        return NotImplemented

    def __repr__(self) -> str:
        return f"ResourceNode(resource={self.resource.resource!r}, path={self.path!r}, subpath={self.subpath!r})"
