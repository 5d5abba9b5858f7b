"""Core runtime aggregator for Genro Traversal.

Exposes the runtime building blocks from a single module.

Public API:
    - ``Traversal``: Resource registry, chain builder and dispatcher
    - ``Resource``: Base class of every resource type
    - ``ResourceDefinition``: Declared shape of a resource type
    - ``ResourceNode``: Result of ``Traversal.build_chain()``
    - ``PathEntry`` / ``PathTable``: Path handler table
    - ``HandlerChain``: Continuation chain runner
    - ``build_resource_url``: URL reconstruction from a resource

Importing this module performs only imports; it does not register plugins
or build any Traversal.
"""

from .dispatcher import HandlerChain, run_chain
from .path_table import ALL, DEFAULT_NAME, PathEntry, PathTable
from .resource import Resource, ResourceDefinition
from .resource_node import ResourceNode, build_resource_url
from .traversal import Traversal

__all__ = [
    "ALL",
    "DEFAULT_NAME",
    "HandlerChain",
    "PathEntry",
    "PathTable",
    "Resource",
    "ResourceDefinition",
    "ResourceNode",
    "Traversal",
    "build_resource_url",
    "run_chain",
]
