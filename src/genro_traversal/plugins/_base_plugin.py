"""Plugin contract definitions for Genro Traversal.

Plugins wrap the handlers a ``Traversal`` dispatches and can react to path
registrations.

``BasePlugin``
    Base class every plugin must subclass. Provides:
        - Configuration helpers (global config plus per-path overrides)
        - Optional hooks ``on_register`` and ``wrap_handler``

    Required class attributes:
        - ``plugin_code``: unique identifier used for registration (e.g. "logging")
        - ``plugin_description``: human-readable description of the plugin

    Constructor signature: ``BasePlugin(traversal, **config)``

Per-path configuration
----------------------
Keyword options named ``<plugin_code>_<key>`` given to
``Traversal.register_resource_path`` are stored in the entry metadata under
``plugin_config`` and merged over the global config by
``configuration(entry)``. A per-path ``<plugin_code>_flags`` string is parsed
like the ``flags`` argument of ``configure()``.

Example::

    from genro_traversal.plugins._base_plugin import BasePlugin

    class StampPlugin(BasePlugin):
        plugin_code = "stamp"
        plugin_description = "Stamps the response"

        def configure(self, enabled: bool = True, value: str = "x"):
            pass  # Storage handled by wrapper

        def wrap_handler(self, traversal, entry, call_next):
            value = self.configuration(entry)["value"]

            def wrapper(request, response, next):
                response.stamp = value
                call_next(request, response, next)

            return wrapper
"""

from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import TYPE_CHECKING, Any

from pydantic import validate_call

if TYPE_CHECKING:  # pragma: no cover
    from genro_traversal.core.path_table import PathEntry

__all__ = ["BasePlugin"]


def _wrap_configure(original_configure: Callable) -> Callable:
    """Wrap a plugin's configure() method to handle flags, validation and storage."""
    validated = validate_call(original_configure)

    @wraps(original_configure)
    def wrapper(self: BasePlugin, *, flags: str | None = None, **kwargs: Any) -> None:
        if flags:
            kwargs.update(self._parse_flags(flags))
        validated(self, **kwargs)
        self._config.update(kwargs)

    wrapper._validator = validated  # type: ignore[attr-defined]
    return wrapper


class BasePlugin:
    """Hook interface and configuration helpers for traversal plugins.

    Subclass this to create custom plugins. Override the hooks you need
    and define your configuration schema in ``configure()``.
    """

    __slots__ = ("name", "_traversal", "_config")

    plugin_code: str = ""
    plugin_description: str = ""

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "configure" in cls.__dict__:
            cls.configure = _wrap_configure(cls.__dict__["configure"])  # type: ignore[method-assign]

    def __init__(self, traversal: Any, **config: Any):
        self.name = self.plugin_code
        self._traversal = traversal
        self._config: dict[str, Any] = {"enabled": True}
        self.configure(**config)

    def configuration(self, entry: PathEntry | None = None) -> dict[str, Any]:
        """Read merged configuration (global + optional per-path override)."""
        merged = dict(self._config)
        if entry is not None:
            overrides = dict(entry.metadata.get("plugin_config", {}).get(self.name, {}))
            flags = overrides.pop("flags", None)
            if isinstance(flags, str):
                merged.update(self._parse_flags(flags))
            merged.update(overrides)
        return merged

    def is_enabled(self, entry: PathEntry | None = None) -> bool:
        return bool(self.configuration(entry).get("enabled", True))

    def validate_options(self, **options: Any) -> None:
        """Validate per-path options against the ``configure()`` signature.

        Raises:
            pydantic.ValidationError: On unknown keys or wrong types.
        """
        validator = getattr(type(self).configure, "_validator", None)
        if validator is None:
            return
        flags = options.pop("flags", None)
        if isinstance(flags, str):
            options.update(self._parse_flags(flags))
        elif flags is not None:
            options["flags"] = flags
        validator(self, **options)

    def _parse_flags(self, flags: str) -> dict[str, bool]:
        """Parse flag string like "enabled,before:off" into boolean dict."""
        mapping: dict[str, bool] = {}
        for chunk in flags.split(","):
            chunk = chunk.strip()
            if not chunk:
                continue
            if ":" in chunk:
                name, value = chunk.split(":", 1)
                mapping[name.strip()] = value.strip().lower() != "off"
            else:
                mapping[chunk] = True
        return mapping

    # =========================================================================
    # METHODS TO OVERRIDE IN CUSTOM PLUGINS
    # =========================================================================

    def configure(self, *, flags: str | None = None) -> None:
        """Override to define accepted configuration parameters.

        Define your plugin's configuration options as method parameters.
        The wrapper added by ``__init_subclass__`` handles:
            - Parsing ``flags`` (e.g. "enabled,before:off") into booleans
            - Pydantic validation via ``@validate_call``
            - Writing to the plugin's config store

        Example::

            def configure(self, enabled: bool = True, threshold: int = 10):
                pass  # Storage is handled by the wrapper
        """
        if flags:
            self._config.update(self._parse_flags(flags))

    def on_register(self, traversal: Any, entry: PathEntry) -> None:
        """Override to run logic when a resource path is registered.

        Called once per entry, after plugin-scoped options were validated.
        Plugins attached later are called for the entries already present.
        """

    def wrap_handler(self, traversal: Any, entry: PathEntry, call_next: Callable) -> Callable:
        """Override to wrap a handler before it is dispatched.

        Return a callable with the handler signature
        ``(request, response, next)`` that eventually calls
        ``call_next(request, response, next)``.
        """
        return call_next
