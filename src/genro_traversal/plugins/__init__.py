"""Plugin package for Genro Traversal.

This package contains built-in plugins for the Traversal dispatcher.

Note: Do not import concrete plugins here to keep imports side-effect free.
Concrete plugin modules (logging) self-register when imported via the main
genro_traversal package.
"""

__all__: list[str] = []
