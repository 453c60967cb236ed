"""
apisurface Decorators — @struct, @union, route(), declare_namespace().

These declarations:
1. Register the class / route in the SchemaRegistry
2. Attach the registry ref and namespace to the declared object
3. Do NOT implement any behaviour — the surface is served elsewhere

The namespace of a declaration is taken from an explicit ``namespace=``
argument or from the ``NAMESPACE`` constant of the declaring module.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from apisurface.engine.errors import SurfaceSchemaError
from apisurface.engine.introspect import is_declared_type, list_item
from apisurface.engine.registry import RegisteredObject, SchemaRegistry, schema_registry
from apisurface.engine.types import Struct, Union

logger = logging.getLogger("apisurface.decorators")

# Route attribute → allowed values, or the type any value must have
ROUTE_ATTRS: Dict[str, Any] = {
    "auth": {"user", "team", "app", "noauth"},
    "style": {"rpc", "download", "upload"},
    "host": {"api", "content", "notify"},
    "scope": str,
    "owner": str,
    "is_preview": bool,
    "allow_app_folder_app": bool,
    "select_admin_mode": {"whole_team", "team_admin"},
}

DEFAULT_ROUTE_ATTRS = {"auth": "user", "style": "rpc", "host": "api"}


@dataclass
class Namespace:
    """A declared namespace."""

    name: str
    doc: str = ""

    @property
    def ref(self) -> str:
        return self.name


@dataclass
class Route:
    """
    A declared remote operation: argument, result and error types plus attributes.

    ``None`` for arg/result/error means Void.
    """

    namespace: str
    name: str
    arg_type: Any = None
    result_type: Any = None
    error_type: Any = None
    version: int = 1
    doc: str = ""
    attrs: Dict[str, Any] = field(default_factory=dict)
    deprecated_by: Optional[str] = None
    deprecated: bool = False

    @property
    def ref(self) -> str:
        base = f"{self.namespace}/{self.name}"
        return f"{base}:{self.version}" if self.version > 1 else base

    @property
    def url_path(self) -> str:
        suffix = f"_v{self.version}" if self.version > 1 else ""
        return f"/2/{self.namespace}/{self.name}{suffix}"

    @property
    def auth(self) -> str:
        return self.attrs.get("auth", DEFAULT_ROUTE_ATTRS["auth"])

    @property
    def style(self) -> str:
        return self.attrs.get("style", DEFAULT_ROUTE_ATTRS["style"])

    def __repr__(self) -> str:
        return f"<Route {self.ref}>"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _infer_namespace(module_path: str) -> str:
    """Namespace from the declaring module's NAMESPACE constant, else its last dotted part."""
    module = sys.modules.get(module_path)
    declared = getattr(module, "NAMESPACE", None) if module is not None else None
    if declared:
        return declared
    return module_path.rsplit(".", 1)[-1]


def _caller_module(depth: int = 2) -> str:
    """Module name of the code calling the function that calls this helper."""
    return sys._getframe(depth).f_globals.get("__name__", "")


def _register_type(
    cls: type,
    kind: str,
    namespace: Optional[str],
    registry: Optional[SchemaRegistry],
    metadata: Dict[str, Any],
) -> type:
    """Attach ref/namespace to a declared class and register it."""
    reg = registry if registry is not None else schema_registry
    ns = namespace or _infer_namespace(cls.__module__)
    ref = f"{ns}.{cls.__name__}"

    cls.__surface_ref__ = ref
    cls.__surface_namespace__ = ns

    reg.register(RegisteredObject(
        ref=ref,
        kind=kind,
        namespace=ns,
        name=cls.__name__,
        target=cls,
        metadata=metadata,
        module_path=cls.__module__,
    ))
    logger.debug(f"Registered {kind}: {ref}")
    return cls


# ---------------------------------------------------------------------------
# declare_namespace()
# ---------------------------------------------------------------------------

def declare_namespace(
    name: str,
    doc: str = "",
    registry: Optional[SchemaRegistry] = None,
) -> Namespace:
    """Register a namespace. Called once at the top of each namespace module."""
    reg = registry if registry is not None else schema_registry
    ns = Namespace(name=name, doc=doc)
    existing = reg.resolve(name)
    if existing is not None and existing.kind == "namespace":
        return existing.target
    reg.register(RegisteredObject(
        ref=name,
        kind="namespace",
        namespace=name,
        name=name,
        target=ns,
        metadata={"doc": doc},
        module_path=_caller_module(),
    ))
    return ns


# ---------------------------------------------------------------------------
# @struct
# ---------------------------------------------------------------------------

def struct(
    cls: Optional[type] = None,
    *,
    namespace: Optional[str] = None,
    registry: Optional[SchemaRegistry] = None,
) -> Any:
    """
    Decorator for struct declarations — Struct (pydantic) subclasses.

    Can be used bare (@struct) or with args (@struct(namespace="team")).
    """
    def decorator(klass: type) -> type:
        if not (isinstance(klass, type) and issubclass(klass, Struct)):
            raise SurfaceSchemaError(
                f"@struct requires a Struct subclass, got {klass!r}",
                kind="struct",
            )
        return _register_type(klass, "struct", namespace, registry, {})

    if cls is not None:
        return decorator(cls)
    return decorator


# ---------------------------------------------------------------------------
# @union
# ---------------------------------------------------------------------------

def union(
    cls: Optional[type] = None,
    *,
    namespace: Optional[str] = None,
    registry: Optional[SchemaRegistry] = None,
) -> Any:
    """Decorator for union declarations — Union subclasses with Tag members."""
    def decorator(klass: type) -> type:
        if not (isinstance(klass, type) and issubclass(klass, Union)):
            raise SurfaceSchemaError(
                f"@union requires a Union subclass, got {klass!r}",
                kind="union",
            )
        metadata = {"closed": not klass.is_open(), "tags": klass.tag_names()}
        return _register_type(klass, "union", namespace, registry, metadata)

    if cls is not None:
        return decorator(cls)
    return decorator


# ---------------------------------------------------------------------------
# route()
# ---------------------------------------------------------------------------

def _check_route_type(route_name: str, role: str, tp: Any) -> None:
    if tp is None or is_declared_type(tp):
        return
    item = list_item(tp)
    if item is not None and is_declared_type(item):
        return
    raise SurfaceSchemaError(
        f"Route '{route_name}' {role} type must be a Struct, a Union, a List of them or None, got {tp!r}",
        kind="route",
    )


def _check_attrs(route_name: str, attrs: Dict[str, Any]) -> None:
    for key, value in attrs.items():
        allowed = ROUTE_ATTRS.get(key)
        if allowed is None:
            raise SurfaceSchemaError(
                f"Unknown attribute '{key}' on route '{route_name}'",
                kind="route",
            )
        if isinstance(allowed, type):
            if not isinstance(value, allowed):
                raise SurfaceSchemaError(
                    f"Attribute '{key}' on route '{route_name}' must be {allowed.__name__}",
                    kind="route",
                )
        elif value not in allowed:
            raise SurfaceSchemaError(
                f"Attribute '{key}' on route '{route_name}' must be one of {sorted(allowed)}, got {value!r}",
                kind="route",
            )


def route(
    name: str,
    arg: Any = None,
    result: Any = None,
    error: Any = None,
    *,
    version: int = 1,
    doc: str = "",
    deprecated_by: Optional[str] = None,
    deprecated: bool = False,
    namespace: Optional[str] = None,
    registry: Optional[SchemaRegistry] = None,
    **attrs: Any,
) -> Route:
    """
    Declare a route. Not a decorator — routes have no body.

    Args:
        name: Route name within the namespace (e.g., "team_folder/archive").
        arg, result, error: Struct/Union classes, or None for Void.
        version: Route version; versions > 1 get a ":N" ref and "_vN" path.
        deprecated_by: Ref of the route replacing this one (implies deprecated).
        **attrs: auth, style, host, scope, owner, is_preview,
                 allow_app_folder_app, select_admin_mode.
    """
    if version < 1:
        raise SurfaceSchemaError(f"Route '{name}' version must be >= 1", kind="route")
    for role, tp in (("argument", arg), ("result", result), ("error", error)):
        _check_route_type(name, role, tp)
    if error is not None and not (isinstance(error, type) and issubclass(error, Union)):
        raise SurfaceSchemaError(
            f"Route '{name}' error type must be a Union, got {error!r}",
            kind="route",
        )
    _check_attrs(name, attrs)

    reg = registry if registry is not None else schema_registry
    ns = namespace or _infer_namespace(_caller_module())

    r = Route(
        namespace=ns,
        name=name,
        arg_type=arg,
        result_type=result,
        error_type=error,
        version=version,
        doc=doc,
        attrs={**DEFAULT_ROUTE_ATTRS, **attrs},
        deprecated_by=deprecated_by,
        deprecated=deprecated or deprecated_by is not None,
    )
    reg.register(RegisteredObject(
        ref=r.ref,
        kind="route",
        namespace=ns,
        name=name,
        target=r,
        metadata={"version": version, "attrs": r.attrs},
        module_path=_caller_module(),
    ))
    logger.debug(f"Registered route: {r.ref}")
    return r
