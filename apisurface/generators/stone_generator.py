"""
apisurface Stone Generator — Renders each namespace as Stone IDL text.

Output:
    {output_dir}/{namespace}.stone

Layout per namespace: the namespace header and doc, imports, then types and
routes in declaration order. Extending types list only the fields/tags they
add; closed unions are written as ``union_closed``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from apisurface.decorators.core import DEFAULT_ROUTE_ATTRS
from apisurface.engine.dependency import own_tags
from apisurface.engine.introspect import FieldSpec, doc_of, idl_name, list_item, struct_fields, unwrap_optional
from apisurface.engine.logging import log, log_generation
from apisurface.engine.registry import SchemaRegistry
from apisurface.engine.types import Union
from apisurface.generators.common import (
    default_value,
    namespace_doc,
    namespace_imports,
    parent_of,
    wrap_doc,
)

logger = logging.getLogger("apisurface.generators.stone_generator")

INDENT = "    "

_LIST_CONSTRAINTS = {"min_length": "min_items", "max_length": "max_items"}


def _literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return json.dumps(value)
    if value is None:
        return "null"
    return str(value)


def _doc_lines(doc: str, depth: int) -> List[str]:
    lines = wrap_doc(doc.replace('"', '\\"'), width=76 - len(INDENT) * depth)
    if not lines:
        return []
    pad = INDENT * depth
    lines[0] = '"' + lines[0]
    lines[-1] = lines[-1] + '"'
    return [pad + line for line in lines]


def field_type(spec: FieldSpec, namespace: str) -> str:
    """IDL type of a field including its constraints, e.g. ``UInt32(min_value=1)``."""
    inner, optional = unwrap_optional(spec.annotation)
    base = idl_name(inner, namespace)
    constraints = spec.constraints
    if constraints:
        if list_item(inner) is not None:
            args = [f"{_LIST_CONSTRAINTS.get(k, k)}={_literal(v)}" for k, v in constraints.items()]
            base = base[:-1] + ", " + ", ".join(args) + ")"
        else:
            args = [f"{k}={_literal(v)}" for k, v in constraints.items()]
            base = f"{base}({', '.join(args)})"
    return base + ("?" if optional else "")


class StoneGenerator:
    """
    Writes one ``.stone`` file per namespace.

    Usage:
        gen = StoneGenerator(schema_registry, output_dir=".apisurface/generated/stone")
        count = gen.generate_all()
    """

    def __init__(self, registry: SchemaRegistry, output_dir: str = ""):
        self.registry = registry
        self.output_dir = Path(output_dir) if output_dir else Path(".apisurface/generated/stone")

    def generate_all(self, namespaces: Optional[List[str]] = None) -> int:
        """
        Render every (or the given) namespace.

        Returns:
            Number of files generated.
        """
        count = 0
        for ns in namespaces or self.registry.namespaces():
            self.generate_namespace(ns)
            count += 1
        return count

    def generate_namespace(self, namespace: str) -> Path:
        text = self.render_namespace(namespace)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.output_dir / f"{namespace}.stone"
        output_path.write_text(text, encoding="utf-8")

        objects = len(self.registry.get_by_namespace(namespace))
        log(log_generation("stone", namespace, str(output_path), objects))
        logger.info(f"Generated Stone: {output_path}")
        return output_path

    # -----------------------------------------------------------------------
    # Rendering
    # -----------------------------------------------------------------------

    def render_namespace(self, namespace: str) -> str:
        out: List[str] = [f"namespace {namespace}"]
        out.extend(_doc_lines(namespace_doc(self.registry, namespace), 1))
        out.append("")

        imports = namespace_imports(self.registry, namespace)
        if imports:
            out.extend(f"import {ns}" for ns in imports)
            out.append("")

        for obj in self.registry.get_by_namespace(namespace):
            if obj.kind == "struct":
                out.extend(self.render_struct(obj.target, namespace))
            elif obj.kind == "union":
                out.extend(self.render_union(obj.target, namespace))
            elif obj.kind == "route":
                out.extend(self.render_route(obj.target))
            else:
                continue
            out.append("")

        return "\n".join(out).rstrip() + "\n"

    def _header(self, keyword: str, tp: type, namespace: str) -> List[str]:
        parent = parent_of(tp)
        header = f"{keyword} {tp.__name__}"
        if parent is not None:
            header += f" extends {idl_name(parent, namespace)}"
        lines = [header]
        doc = _doc_lines(doc_of(tp), 1)
        if doc:
            lines.extend(doc)
            lines.append("")
        return lines

    def render_struct(self, tp: type, namespace: str) -> List[str]:
        lines = self._header("struct", tp, namespace)
        fields = struct_fields(tp, own=True)
        for spec in fields:
            line = f"{INDENT}{spec.name} {field_type(spec, namespace)}"
            if spec.has_default:
                value = default_value(spec)
                line += f" = {value if isinstance(spec.default, Union) else _literal(value)}"
            lines.append(line)
            lines.extend(_doc_lines(spec.description, 2))
        if not fields and lines[-1] == "":
            lines.pop()
        return lines

    def render_union(self, tp: type, namespace: str) -> List[str]:
        keyword = "union" if tp.is_open() else "union_closed"
        lines = self._header(keyword, tp, namespace)
        tags = own_tags(tp)
        for name, spec in tags.items():
            line = f"{INDENT}{name}"
            if not spec.is_void:
                line += f" {idl_name(spec.payload, namespace)}"
            if spec.catch_all:
                line += "*"
            lines.append(line)
            lines.extend(_doc_lines(spec.doc, 2))
        if not tags and lines[-1] == "":
            lines.pop()
        return lines

    def render_route(self, route: Any) -> List[str]:
        ns = route.namespace
        name = route.name if route.version == 1 else f"{route.name}:{route.version}"
        header = (
            f"route {name} ({idl_name(route.arg_type, ns)}, "
            f"{idl_name(route.result_type, ns)}, {idl_name(route.error_type, ns)})"
        )
        if route.deprecated_by:
            header += f" deprecated by {route.deprecated_by}"
        elif route.deprecated:
            header += " deprecated"

        lines = [header]
        lines.extend(_doc_lines(route.doc, 1))

        attrs: Dict[str, Any] = {
            k: v for k, v in route.attrs.items()
            if DEFAULT_ROUTE_ATTRS.get(k) != v
        }
        if attrs:
            lines.append("")
            lines.append(f"{INDENT}attrs")
            for key, value in attrs.items():
                lines.append(f"{INDENT * 2}{key} = {_literal(value)}")
        return lines
