"""
apisurface — Declared interface surface of the Dropbox API, as Python.

Namespaces (team folders, file requests, Paper docs and the types they
import) are declared with @struct, @union and route() and held in the
schema registry. The engine encodes/decodes wire values, checks the schema
structurally and traces type references; generators render it as Stone
IDL or JSON descriptors.

Usage:
    from apisurface.engine.registry import load_builtin_surface
    registry = load_builtin_surface()
    registry.resolve("team/team_folder/list")
"""

__version__ = "1.0.0"
__all__ = ["engine", "decorators", "namespaces", "generators", "cli"]
