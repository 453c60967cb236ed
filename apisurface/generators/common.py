"""Helpers shared by the generators: namespace contents, imports, default values."""

from __future__ import annotations

import textwrap
from datetime import datetime
from typing import Any, List, Optional

from apisurface.engine.dependency import own_tags
from apisurface.engine.introspect import FieldSpec, referenced_types, struct_fields
from apisurface.engine.registry import SchemaRegistry
from apisurface.engine.types import Union, format_timestamp, struct_parent, union_parent


def namespace_doc(registry: SchemaRegistry, namespace: str) -> str:
    obj = registry.resolve(namespace)
    if obj is None or obj.kind != "namespace":
        return ""
    return obj.target.doc


def parent_of(tp: type) -> Optional[type]:
    return union_parent(tp) if issubclass(tp, Union) else struct_parent(tp)


def namespace_imports(registry: SchemaRegistry, namespace: str) -> List[str]:
    """Other namespaces whose types the given namespace references."""
    referenced: List[type] = []
    for route in registry.get_routes(namespace):
        for tp in (route.arg_type, route.result_type, route.error_type):
            referenced.extend(referenced_types(tp))
    for tp in registry.get_types(namespace):
        parent = parent_of(tp)
        if parent is not None:
            referenced.append(parent)
        if issubclass(tp, Union):
            for spec in own_tags(tp).values():
                referenced.extend(referenced_types(spec.payload))
        else:
            for spec in struct_fields(tp, own=True):
                referenced.extend(referenced_types(spec.annotation))

    imports = []
    for tp in referenced:
        ns = tp.__dict__.get("__surface_namespace__")
        if ns and ns != namespace and ns not in imports:
            imports.append(ns)
    return sorted(imports)


def default_value(spec: FieldSpec) -> Any:
    """JSON-compatible default of a field (union defaults become their tag name)."""
    value = spec.default
    if isinstance(value, Union):
        return value.tag
    if isinstance(value, datetime):
        return format_timestamp(value)
    return value


def wrap_doc(doc: str, width: int = 72) -> List[str]:
    doc = " ".join(doc.split())
    return textwrap.wrap(doc, width=width) if doc else []
