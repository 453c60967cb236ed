"""
apisurface Schema Graph — NetworkX-based type-reference graph.

Implements:
- SchemaGraph: DiGraph of routes and declared types built from a registry
- Impact analysis (direct + transitive dependents, affected routes)
- Reachability of types from routes
- JSON export of the graph

Edges point from the referencing object to the referenced one:
    route  → arg / result / error types
    struct → field types
    union  → tag payload types
    subtype → supertype ("extends")
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import networkx as nx

from apisurface.engine.introspect import referenced_types, struct_fields
from apisurface.engine.registry import SchemaRegistry
from apisurface.engine.types import Union, struct_parent, surface_ref, union_parent

logger = logging.getLogger("apisurface.engine.dependency")


def node_ref(tp: type) -> str:
    """Registry ref of a declared type; unregistered classes get a ``?`` ref."""
    return surface_ref(tp) or f"?{tp.__module__}.{tp.__qualname__}"


def own_tags(cls: type) -> Dict[str, Any]:
    """Tags a union declares itself (not inherited, no implicit catch-all)."""
    return {
        name: spec for name, spec in cls._tags.items()
        if spec.owner is cls and not (spec.catch_all and spec.is_void)
    }


class SchemaGraph:
    """
    In-memory reference graph backed by NetworkX DiGraph.

    Nodes: route refs ("team/team_folder/list") and type refs
    ("team.TeamFolderMetadata"). Node attributes: kind, namespace, registered.
    Edge attributes: relation (arg | result | error | field | tag | extends)
    and via (field or tag name).
    """

    def __init__(self):
        self._graph = nx.DiGraph()

    @classmethod
    def from_registry(
        cls,
        registry: SchemaRegistry,
        namespaces: Optional[List[str]] = None,
    ) -> "SchemaGraph":
        """Build the graph of every route and type registered (optionally per namespace)."""
        graph = cls()
        wanted = set(namespaces) if namespaces else None

        for obj in registry.get_all():
            if wanted is not None and obj.namespace not in wanted:
                continue
            if obj.kind == "route":
                graph.add_route(obj.target)
            elif obj.kind in ("struct", "union"):
                graph.add_type(obj.target)

        logger.debug(
            f"Schema graph built: {graph.node_count} nodes, {graph.edge_count} edges"
        )
        return graph

    # -----------------------------------------------------------------------
    # Construction
    # -----------------------------------------------------------------------

    def _add_node(self, ref: str, kind: str, namespace: Optional[str], registered: bool = True) -> None:
        if self._graph.has_node(ref):
            return
        self._graph.add_node(ref, kind=kind, namespace=namespace, registered=registered)

    def _add_type_node(self, tp: type) -> str:
        ref = node_ref(tp)
        kind = "union" if issubclass(tp, Union) else "struct"
        self._add_node(
            ref,
            kind=kind,
            namespace=tp.__dict__.get("__surface_namespace__"),
            registered=surface_ref(tp) is not None,
        )
        return ref

    def _add_edge(self, source: str, target_type: type, relation: str, via: str = "") -> None:
        target = self._add_type_node(target_type)
        if not self._graph.has_edge(source, target):
            self._graph.add_edge(source, target, relation=relation, via=via)

    def add_route(self, route: Any) -> None:
        self._add_node(route.ref, kind="route", namespace=route.namespace)
        for relation, tp in (
            ("arg", route.arg_type),
            ("result", route.result_type),
            ("error", route.error_type),
        ):
            for referenced in referenced_types(tp):
                self._add_edge(route.ref, referenced, relation)

    def add_type(self, tp: type) -> None:
        ref = self._add_type_node(tp)
        if issubclass(tp, Union):
            for name, spec in own_tags(tp).items():
                for referenced in referenced_types(spec.payload):
                    self._add_edge(ref, referenced, "tag", name)
            parent = union_parent(tp)
        else:
            for spec in struct_fields(tp, own=True):
                for referenced in referenced_types(spec.annotation):
                    self._add_edge(ref, referenced, "field", spec.name)
            parent = struct_parent(tp)
        if parent is not None:
            self._add_edge(ref, parent, "extends")

    # -----------------------------------------------------------------------
    # Query operations
    # -----------------------------------------------------------------------

    def has_node(self, ref: str) -> bool:
        return self._graph.has_node(ref)

    def node(self, ref: str) -> Dict[str, Any]:
        return dict(self._graph.nodes[ref]) if self._graph.has_node(ref) else {}

    def get_direct_dependencies(self, ref: str) -> List[Dict[str, str]]:
        """Objects ``ref`` references directly."""
        if not self._graph.has_node(ref):
            return []
        deps = []
        for target in self._graph.successors(ref):
            edge = self._graph[ref][target]
            deps.append({
                "ref": target,
                "kind": self._graph.nodes[target].get("kind", "unknown"),
                "relation": edge.get("relation", ""),
                "via": edge.get("via", ""),
            })
        return deps

    def get_direct_dependents(self, ref: str) -> List[Dict[str, str]]:
        """Objects that reference ``ref`` directly."""
        if not self._graph.has_node(ref):
            return []
        deps = []
        for source in self._graph.predecessors(ref):
            edge = self._graph[source][ref]
            deps.append({
                "ref": source,
                "kind": self._graph.nodes[source].get("kind", "unknown"),
                "relation": edge.get("relation", ""),
                "via": edge.get("via", ""),
            })
        return deps

    def get_transitive_dependencies(self, ref: str) -> Set[str]:
        """Everything ``ref`` transitively references."""
        if not self._graph.has_node(ref):
            return set()
        return set(nx.descendants(self._graph, ref))

    def get_transitive_dependents(self, ref: str) -> Set[str]:
        """Everything that transitively references ``ref``."""
        if not self._graph.has_node(ref):
            return set()
        return set(nx.ancestors(self._graph, ref))

    def routes(self) -> List[str]:
        return [n for n, kind in self._graph.nodes(data="kind") if kind == "route"]

    def types(self) -> List[str]:
        return [n for n, kind in self._graph.nodes(data="kind") if kind in ("struct", "union")]

    def affected_routes(self, type_ref: str) -> List[str]:
        """Routes whose wire shape changes when ``type_ref`` changes."""
        return sorted(
            r for r in self.get_transitive_dependents(type_ref)
            if self._graph.nodes[r].get("kind") == "route"
        )

    def reachable_types(self) -> Set[str]:
        """Types reachable from at least one route."""
        reachable: Set[str] = set()
        for route_ref in self.routes():
            reachable |= self.get_transitive_dependencies(route_ref)
        return {r for r in reachable if self._graph.nodes[r].get("kind") != "route"}

    def unresolved(self) -> List[str]:
        """Referenced types that are not registered."""
        return sorted(n for n, registered in self._graph.nodes(data="registered") if not registered)

    def detect_cycles(self) -> List[List[str]]:
        """Reference cycles (recursive types)."""
        return [sorted(c) for c in nx.simple_cycles(self._graph)]

    # -----------------------------------------------------------------------
    # Impact Analysis
    # -----------------------------------------------------------------------

    def impact_analysis(self, ref: str) -> Dict[str, Any]:
        """
        Analyze the impact of changing a type (or route).

        Returns:
            Dict with direct_dependents, transitive_dependents, affected
            routes, per-kind breakdown and a recommendation line.
        """
        direct = self.get_direct_dependents(ref)
        transitive = self.get_transitive_dependents(ref)

        routes = sorted(r for r in transitive if self._graph.nodes[r].get("kind") == "route")
        structs = sorted(r for r in transitive if self._graph.nodes[r].get("kind") == "struct")
        unions = sorted(r for r in transitive if self._graph.nodes[r].get("kind") == "union")
        namespaces = sorted({
            self._graph.nodes[r].get("namespace") for r in transitive
            if self._graph.nodes[r].get("namespace")
        })

        total = len(transitive)
        parts = []
        if routes:
            parts.append(f"{len(routes)} route(s)")
        if structs:
            parts.append(f"{len(structs)} struct(s)")
        if unions:
            parts.append(f"{len(unions)} union(s)")

        recommendation = (
            f"Changing {ref} affects {total} object(s)"
            + (f" across {', '.join(parts)}" if parts else "")
            + "."
        )

        return {
            "object_ref": ref,
            "direct_dependents": sorted(d["ref"] for d in direct),
            "transitive_dependents": sorted(transitive),
            "total_impact": total,
            "affected_routes": routes,
            "namespaces": namespaces,
            "breakdown": {
                "routes": routes,
                "structs": structs,
                "unions": unions,
            },
            "recommendation": recommendation,
        }

    # -----------------------------------------------------------------------
    # Export
    # -----------------------------------------------------------------------

    def to_json(self, path: Optional[str] = None) -> Dict[str, Any]:
        """
        Serialize the graph as ``{"nodes": [...], "edges": [...]}``.

        Args:
            path: If given, also write the JSON to this file.
        """
        data = {
            "nodes": [
                {"ref": ref, **attrs} for ref, attrs in sorted(self._graph.nodes(data=True))
            ],
            "edges": [
                {"source": s, "target": t, **attrs}
                for s, t, attrs in sorted(self._graph.edges(data=True), key=lambda e: (e[0], e[1]))
            ],
        }
        if path is not None:
            out = Path(path)
            out.parent.mkdir(parents=True, exist_ok=True)
            with open(out, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, default=str)
        return data

    # -----------------------------------------------------------------------
    # Statistics
    # -----------------------------------------------------------------------

    @property
    def node_count(self) -> int:
        return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    def stats(self) -> Dict[str, Any]:
        """Return summary statistics about the graph."""
        return {
            "nodes": self.node_count,
            "edges": self.edge_count,
            "routes": len(self.routes()),
            "types": len(self.types()),
            "cycles": len(self.detect_cycles()),
            "unresolved": len(self.unresolved()),
        }
