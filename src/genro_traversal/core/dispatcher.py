# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Continuation-chain execution of path handlers.

Handlers follow the connect-style signature::

    def handler(request, response, next): ...

Every handler but the last receives the chain itself as ``next``: calling it
advances to the following handler. The last handler receives the host's
``next`` continuation, so control leaves the chain once it is exhausted.

The chain is an ordered tuple plus an index cursor. Calling ``advance()``
runs the handler at the cursor right away, inside the caller, so a handler
can guard or post-process everything downstream of its ``next()`` call. The
call depth is bounded by the number of registered handlers. A handler may
also keep ``next`` and call it later; the chain resumes from the cursor.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

__all__ = ["HandlerChain", "run_chain"]


class HandlerChain:
    """Ordered handlers driven by an index cursor."""

    __slots__ = ("_handlers", "_request", "_response", "_next", "_cursor")

    def __init__(
        self,
        handlers: Sequence[Callable],
        request: Any,
        response: Any,
        next: Callable[[], Any],  # noqa: A002 - connect-style name
    ) -> None:
        self._handlers = tuple(handlers)
        self._request = request
        self._response = response
        self._next = next
        self._cursor = 0

    @property
    def cursor(self) -> int:
        """Number of handlers already invoked."""
        return self._cursor

    @property
    def exhausted(self) -> bool:
        return self._cursor >= len(self._handlers)

    def __call__(self) -> None:
        """Run the next handler (the ``next`` given to non-last handlers).

        A no-op once every handler has been invoked.
        """
        if self.exhausted:
            return
        handler = self._handlers[self._cursor]
        self._cursor += 1
        continuation = self._next if self.exhausted else self
        handler(self._request, self._response, continuation)


def run_chain(
    handlers: Sequence[Callable],
    request: Any,
    response: Any,
    next: Callable[[], Any],  # noqa: A002
) -> None:
    """Run ``handlers`` as a continuation chain ending in ``next``.

    An empty sequence hands control straight to ``next``.
    """
    if not handlers:
        next()
        return
    HandlerChain(handlers, request, response, next)()
