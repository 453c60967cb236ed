"""apisurface Engine — Types, registry, codec, validator, schema graph, config, logging."""

from apisurface.engine.errors import (  # noqa: F401
    SurfaceConfigError,
    SurfaceError,
    SurfaceMatchError,
    SurfaceObjectNotFoundError,
    SurfaceSchemaError,
    SurfaceValidationError,
)
from apisurface.engine.registry import SchemaRegistry, load_builtin_surface, schema_registry  # noqa: F401
from apisurface.engine.types import Struct, Tag, Union  # noqa: F401

__all__ = [
    "SchemaRegistry",
    "Struct",
    "SurfaceConfigError",
    "SurfaceError",
    "SurfaceMatchError",
    "SurfaceObjectNotFoundError",
    "SurfaceSchemaError",
    "SurfaceValidationError",
    "Tag",
    "Union",
    "load_builtin_surface",
    "schema_registry",
]
