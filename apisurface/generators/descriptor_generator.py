"""
apisurface Descriptor Generator — Machine-readable JSON description of each namespace.

Output:
    {output_dir}/{namespace}.json

    {
      "namespace": "team",
      "doc": "...",
      "imports": ["async", "files"],
      "types": [{"name", "ref", "kind", "extends", "open", "fields" | "tags", ...}],
      "routes": [{"ref", "name", "version", "url_path", "arg", "result", "error", "attrs", ...}]
    }

Types list their full field/tag set (inherited ones included) so consumers
need not resolve ``extends`` themselves.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from apisurface.engine.introspect import doc_of, idl_name, struct_fields
from apisurface.engine.logging import log, log_generation
from apisurface.engine.registry import SchemaRegistry
from apisurface.engine.types import Union, surface_ref
from apisurface.generators.common import default_value, namespace_doc, namespace_imports, parent_of

logger = logging.getLogger("apisurface.generators.descriptor_generator")


class DescriptorGenerator:
    """
    Writes one JSON descriptor per namespace.

    Usage:
        gen = DescriptorGenerator(schema_registry, output_dir=".apisurface/generated/descriptor")
        count = gen.generate_all()
    """

    def __init__(self, registry: SchemaRegistry, output_dir: str = ""):
        self.registry = registry
        self.output_dir = Path(output_dir) if output_dir else Path(".apisurface/generated/descriptor")

    def generate_all(self, namespaces: Optional[List[str]] = None) -> int:
        """
        Describe every (or the given) namespace.

        Returns:
            Number of files generated.
        """
        count = 0
        for ns in namespaces or self.registry.namespaces():
            self.generate_namespace(ns)
            count += 1
        return count

    def generate_namespace(self, namespace: str) -> Path:
        data = self.describe_namespace(namespace)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.output_dir / f"{namespace}.json"
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=str)
            f.write("\n")

        objects = len(data["types"]) + len(data["routes"])
        log(log_generation("descriptor", namespace, str(output_path), objects))
        logger.info(f"Generated descriptor: {output_path}")
        return output_path

    # -----------------------------------------------------------------------
    # Description
    # -----------------------------------------------------------------------

    def describe_namespace(self, namespace: str) -> Dict[str, Any]:
        return {
            "namespace": namespace,
            "doc": namespace_doc(self.registry, namespace),
            "imports": namespace_imports(self.registry, namespace),
            "types": [self.describe_type(tp) for tp in self.registry.get_types(namespace)],
            "routes": [self.describe_route(r) for r in self.registry.get_routes(namespace)],
        }

    def describe_type(self, tp: type) -> Dict[str, Any]:
        ns = tp.__surface_namespace__
        parent = parent_of(tp)
        data: Dict[str, Any] = {
            "name": tp.__name__,
            "ref": surface_ref(tp),
            "kind": "union" if issubclass(tp, Union) else "struct",
            "doc": doc_of(tp),
            "extends": surface_ref(parent) if parent is not None else None,
        }
        if issubclass(tp, Union):
            data["open"] = tp.is_open()
            data["tags"] = [
                {
                    "name": name,
                    "type": None if spec.is_void else idl_name(spec.payload, ns),
                    "doc": spec.doc,
                    "catch_all": spec.catch_all,
                }
                for name, spec in ((n, tp.get_tag(n)) for n in tp.tag_names())
            ]
        else:
            data["fields"] = [
                {
                    "name": spec.name,
                    "type": idl_name(spec.annotation, ns),
                    "required": spec.required,
                    "default": default_value(spec) if spec.has_default else None,
                    "description": spec.description,
                    "constraints": spec.constraints,
                }
                for spec in struct_fields(tp)
            ]
        return data

    def describe_route(self, route: Any) -> Dict[str, Any]:
        ns = route.namespace
        return {
            "ref": route.ref,
            "name": route.name,
            "version": route.version,
            "url_path": route.url_path,
            "arg": idl_name(route.arg_type, ns),
            "result": idl_name(route.result_type, ns),
            "error": idl_name(route.error_type, ns),
            "attrs": dict(route.attrs),
            "deprecated": route.deprecated,
            "deprecated_by": route.deprecated_by,
            "doc": route.doc,
        }
