# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Path handler table for Genro Traversal.

Handlers are stored under a four-level key::

    resource id -> name -> parent id -> method -> PathEntry

``name`` defaults to ``"index"``; ``parent`` and ``method`` default to the
wildcard ``"all"``. Methods are stored lower-case.

Lookup
------
``name`` must match exactly. Parent and method degrade to the wildcard, the
parent being the more significant of the two. Buckets are tried in order:

1. (parent, method)
2. (parent, all)
3. (all, method)
4. (all, all)

The first bucket holding an entry wins; if none does, lookup returns None.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

__all__ = ["ALL", "DEFAULT_NAME", "PathEntry", "PathTable"]

ALL = "all"
DEFAULT_NAME = "index"


@dataclass
class PathEntry:
    """Handlers registered for one (resource, name, parent, method) key.

    Attributes:
        resource: Target resource id.
        name: Path name (first unresolved segment), ``"index"`` by default.
        parent: Immediate parent resource id, or ``"all"``.
        method: Lower-case HTTP method, or ``"all"``.
        handlers: Ordered handler callables.
        metadata: Extra data; ``plugin_config`` holds per-plugin options.
    """

    resource: str
    name: str
    parent: str
    method: str
    handlers: tuple[Callable, ...]
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str, str, str]:
        return (self.resource, self.name, self.parent, self.method)

    @property
    def label(self) -> str:
        """Short human readable identifier, e.g. ``"task:edit GET"``."""
        label = f"{self.resource}:{self.name}"
        if self.parent != ALL:
            label = f"{self.parent}/{label}"
        if self.method != ALL:
            label = f"{label} {self.method.upper()}"
        return label


class PathTable:
    """Four-level lookup table of PathEntry objects."""

    __slots__ = ("_paths",)

    def __init__(self) -> None:
        self._paths: dict[str, dict[str, dict[str, dict[str, PathEntry]]]] = {}

    @staticmethod
    def normalize(
        name: str | None = None,
        parent: str | None = None,
        method: str | None = None,
    ) -> tuple[str, str, str]:
        """Apply defaults to a (name, parent, method) triple."""
        return (name or DEFAULT_NAME, parent or ALL, method.lower() if method else ALL)

    def add(self, entry: PathEntry) -> PathEntry:
        """Store ``entry``, replacing any entry with the same key."""
        by_name = self._paths.setdefault(entry.resource, {})
        by_parent = by_name.setdefault(entry.name, {})
        by_parent.setdefault(entry.parent, {})[entry.method] = entry
        return entry

    def lookup(
        self,
        resource: str,
        *,
        name: str | None = None,
        parent: str | None = None,
        method: str | None = None,
    ) -> PathEntry | None:
        """Return the most specific entry for the given key, or None."""
        name, parent, method = self.normalize(name, parent, method)
        by_parent = self._paths.get(resource, {}).get(name)
        if not by_parent:
            return None
        parents = (parent, ALL) if parent != ALL else (ALL,)
        methods = (method, ALL) if method != ALL else (ALL,)
        for parent_key in parents:
            by_method = by_parent.get(parent_key)
            if not by_method:
                continue
            for method_key in methods:
                entry = by_method.get(method_key)
                if entry is not None:
                    return entry
        return None

    def clear(self) -> None:
        self._paths = {}

    def __iter__(self) -> Iterator[PathEntry]:
        for by_name in self._paths.values():
            for by_parent in by_name.values():
                for by_method in by_parent.values():
                    yield from by_method.values()

    def __len__(self) -> int:
        return sum(1 for _ in self)
