# Copyright 2025 Softwell S.r.l. - All Rights Reserved
# SPDX-License-Identifier: Apache-2.0
"""Exceptions for Genro Traversal.

All exceptions raised by the registration API derive from ``TraversalError``
and also from the builtin they refine, so callers may catch either.

They signal configuration or logic errors and are raised synchronously.
An unresolved path segment or a missing path entry is never an error: the
dispatcher falls through to the host's ``next`` continuation instead.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "TraversalError",
    "UnregisteredResource",
    "RootNotSet",
    "MissingHandlers",
    "InvalidHandlerType",
    "RegistryFrozen",
]


class TraversalError(Exception):
    """Base class for every Genro Traversal error."""


class UnregisteredResource(TraversalError, LookupError):
    """Raised when a resource id is not present in the registry.

    Any reference counts: a ``child``/``children`` target met during
    traversal, a root, a path target or a path parent.

    Attributes:
        resource_id: The id that could not be found.
    """

    def __init__(self, resource_id: str) -> None:
        self.resource_id = resource_id
        super().__init__(f"there is no registered resource: {resource_id}")


class RootNotSet(TraversalError, RuntimeError):
    """Raised when a root resource is needed but ``set_root_resource`` was never called."""

    def __init__(self) -> None:
        super().__init__("root resource hasn't been set yet")


class MissingHandlers(TraversalError, ValueError):
    """Raised when a resource path is registered without handlers.

    Attributes:
        resource_id: Target resource of the rejected registration.
    """

    def __init__(self, resource_id: str) -> None:
        self.resource_id = resource_id
        super().__init__(f"register_resource_path('{resource_id}') requires handler callables")


class InvalidHandlerType(TraversalError, TypeError):
    """Raised when a path handler is not callable.

    Attributes:
        handler: The offending object.
    """

    def __init__(self, handler: Any) -> None:
        self.handler = handler
        super().__init__(
            f"register_resource_path() requires callable handlers, got {type(handler).__name__}"
        )


class RegistryFrozen(TraversalError, RuntimeError):
    """Raised when registration is attempted after ``Traversal.freeze()``.

    Attributes:
        operation: Name of the rejected registration call.
    """

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"{operation}() rejected: registration phase is over")
