"""Declaration decorators — @struct, @union, route(), declare_namespace()."""

from apisurface.decorators.core import (  # noqa: F401
    Namespace,
    Route,
    declare_namespace,
    route,
    struct,
    union,
)

__all__ = ["Namespace", "Route", "declare_namespace", "route", "struct", "union"]
