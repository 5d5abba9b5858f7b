"""Logging plugin for Genro Traversal.

Wraps dispatched handlers with configurable logging messages including timing.

Configuration
-------------
Accepted keys (traversal-level or per-path):
    - ``enabled``: Gate the plugin entirely (default True)
    - ``before``: Log "start" message (default True)
    - ``after``: Log "end" message with timing (default True)
    - ``log``: Use logger.info() when the logger has handlers (default True)
    - ``print``: Always use print() (default False)

The timing covers the handler call, including every downstream handler it
reaches through ``next()``.

Example::

    from genro_traversal import Traversal

    traversal = Traversal(plugins="logging")
    traversal.register_resource_path("task", show_task, method="get")

    # Or configure per-path:
    traversal.register_resource_path("task", fast, name="ping", logging_after=False)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from functools import wraps

from genro_traversal.core.path_table import PathEntry
from genro_traversal.core.traversal import Traversal
from genro_traversal.plugins._base_plugin import BasePlugin


class LoggingPlugin(BasePlugin):
    """Logging plugin with configurable start/end messages and timing."""

    plugin_code = "logging"
    plugin_description = "Logs dispatched handlers with timing"

    __slots__ = ("_logger",)

    def __init__(self, traversal, *, logger: logging.Logger | None = None, **cfg):
        self._logger = logger or logging.getLogger("genro_traversal")
        super().__init__(traversal, **cfg)

    def configure(  # type: ignore[override]
        self,
        enabled: bool = True,
        before: bool = True,
        after: bool = True,
        log: bool = True,
        print: bool = False,  # noqa: A002 - shadowing builtin intentionally
    ):
        """Configure logging plugin options.

        Args:
            enabled: Enable/disable the plugin entirely.
            before: Log "{handler} start" before execution.
            after: Log "{handler} end (X ms)" after execution.
            log: Use logger.info() when handlers available.
            print: Always use print() instead of logger.
        """
        pass  # Storage is handled by the wrapper

    def _emit(self, message: str, *, cfg: dict):
        """Emit a log message via configured sink."""
        if cfg["print"]:
            print(message)
            return
        if cfg["log"]:
            if self._logger.hasHandlers():
                self._logger.info(message)
            else:
                print(message)

    def wrap_handler(self, traversal, entry: PathEntry, call_next: Callable):
        """Wrap handler with start/end logging and timing."""
        cfg = self._effective_config(entry)
        label = f"{entry.label} {getattr(call_next, '__name__', type(call_next).__name__)}"

        @wraps(call_next)
        def logged(request, response, next):  # noqa: A002
            if cfg["before"]:
                self._emit(f"{label} start", cfg=cfg)
            t0 = time.perf_counter()
            call_next(request, response, next)
            elapsed = (time.perf_counter() - t0) * 1000
            if cfg["after"]:
                self._emit(f"{label} end ({elapsed:.2f} ms)", cfg=cfg)

        return logged

    def _effective_config(self, entry: PathEntry) -> dict:
        """Get effective configuration for an entry, merging defaults."""
        defaults = {"enabled": True, "before": True, "after": True, "log": True, "print": False}
        cfg = defaults | self.configuration(entry)

        def to_bool(key: str) -> bool:
            val = cfg.get(key)
            return defaults[key] if val is None else bool(val)

        return {key: to_bool(key) for key in defaults}


Traversal.register_plugin(LoggingPlugin)
