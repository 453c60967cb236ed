"""
apisurface Schema Registry — Register, discover, and retrieve declarations by kind+namespace+name.

The registry is the COMPILED STATE layer — filled when the namespace modules
are imported. Everything else (codec, validator, graph, generators) reads
the declared surface from here.

Object kinds: namespace, struct, union, route

Refs:
    namespace   "team"
    struct      "team.TeamFolderMetadata"
    union       "team.TeamFolderStatus"
    route       "team/team_folder/archive", "file_requests/list:2"
"""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set

from apisurface.engine.errors import SurfaceObjectNotFoundError, SurfaceSchemaError

logger = logging.getLogger("apisurface.engine.registry")

# Valid object kinds
OBJECT_KINDS = frozenset({"namespace", "struct", "union", "route"})

# Namespace name → declaring module
BUILTIN_NAMESPACES = {
    "async": "apisurface.namespaces.async_jobs",
    "files": "apisurface.namespaces.files",
    "sharing": "apisurface.namespaces.sharing",
    "team": "apisurface.namespaces.team",
    "file_requests": "apisurface.namespaces.file_requests",
    "paper": "apisurface.namespaces.paper",
}

# Declaring module → its declarations (ref → object), in declaration order.
# Filled on first import so other registries can load a namespace later.
_MODULE_DECLARATIONS: Dict[str, Dict[str, "RegisteredObject"]] = {}


@dataclass
class RegisteredObject:
    """Metadata for a registered declaration."""

    ref: str                  # e.g., "team.TeamFolderMetadata"
    kind: str                 # e.g., "struct"
    namespace: str            # e.g., "team"
    name: str                 # e.g., "TeamFolderMetadata" or "team_folder/archive"
    target: Any = None        # The declared class, Route, or Namespace object
    metadata: Dict[str, Any] = field(default_factory=dict)
    module_path: str = ""

    @property
    def category(self) -> str:
        """Plural kind, used for log directories and summaries."""
        return {
            "namespace": "namespaces",
            "struct": "structs",
            "union": "unions",
            "route": "routes",
        }.get(self.kind, self.kind)


class SchemaRegistry:
    """
    In-memory registry with lookup by ref, kind, and namespace.

    Usage:
        registry = SchemaRegistry()
        registry.register(obj)
        meta = registry.resolve("team.TeamFolderMetadata")
        routes = registry.get_routes("team")
    """

    def __init__(self):
        # Primary index: ref → RegisteredObject
        self._objects: Dict[str, RegisteredObject] = {}

        # Secondary indexes for fast lookup
        self._by_kind: Dict[str, Dict[str, RegisteredObject]] = {}       # kind → {ref: obj}
        self._by_namespace: Dict[str, Dict[str, RegisteredObject]] = {}  # ns → {ref: obj}

    def register(self, obj: RegisteredObject) -> None:
        """Register a declaration. A different object under a taken ref is an error."""
        if obj.kind not in OBJECT_KINDS:
            raise ValueError(f"Invalid object kind: {obj.kind}. Valid: {sorted(OBJECT_KINDS)}")

        existing = self._objects.get(obj.ref)
        if existing is not None:
            if existing.target is obj.target:
                return
            raise SurfaceSchemaError(
                f"Duplicate declaration: {obj.ref}",
                ref=obj.ref,
                kind=obj.kind,
            )

        self._objects[obj.ref] = obj
        self._by_kind.setdefault(obj.kind, {})[obj.ref] = obj
        self._by_namespace.setdefault(obj.namespace, {})[obj.ref] = obj
        if obj.module_path in BUILTIN_NAMESPACES.values():
            _MODULE_DECLARATIONS.setdefault(obj.module_path, {}).setdefault(obj.ref, obj)

        logger.debug(f"Registered: {obj.ref} ({obj.kind})")

    def unregister(self, ref: str) -> None:
        """Remove a declaration from the registry."""
        obj = self._objects.pop(ref, None)
        if obj is None:
            return
        self._by_kind.get(obj.kind, {}).pop(ref, None)
        self._by_namespace.get(obj.namespace, {}).pop(ref, None)

    def resolve(self, ref: str) -> Optional[RegisteredObject]:
        """
        Resolve a ref string to its registered object.

        Args:
            ref: Fully-qualified reference (e.g., "team.TeamFolderStatus")

        Returns:
            RegisteredObject or None if not found.
        """
        return self._objects.get(ref)

    def resolve_or_raise(self, ref: str) -> RegisteredObject:
        """Resolve or raise SurfaceObjectNotFoundError."""
        obj = self.resolve(ref)
        if obj is None:
            raise SurfaceObjectNotFoundError(f"Object not found: {ref}", ref=ref)
        return obj

    def get_by_kind(self, kind: str, namespace: Optional[str] = None) -> List[RegisteredObject]:
        """Get all objects of a given kind, optionally filtered by namespace."""
        objs = list(self._by_kind.get(kind, {}).values())
        if namespace:
            objs = [o for o in objs if o.namespace == namespace]
        return objs

    def get_by_namespace(self, namespace: str) -> List[RegisteredObject]:
        """Get all objects declared in a namespace."""
        return list(self._by_namespace.get(namespace, {}).values())

    def get_routes(self, namespace: Optional[str] = None) -> List[Any]:
        """Route objects, in declaration order."""
        return [o.target for o in self.get_by_kind("route", namespace)]

    def get_types(self, namespace: Optional[str] = None) -> List[type]:
        """Struct and union classes, in declaration order."""
        return [
            o.target for o in self._objects.values()
            if o.kind in ("struct", "union") and (namespace is None or o.namespace == namespace)
        ]

    def get_all(self) -> List[RegisteredObject]:
        return list(self._objects.values())

    def get_all_refs(self) -> Set[str]:
        return set(self._objects.keys())

    def contains(self, ref: str) -> bool:
        return ref in self._objects

    def namespaces(self) -> List[str]:
        """Namespaces with at least one declaration, in first-seen order."""
        return [ns for ns, objs in self._by_namespace.items() if objs]

    @property
    def count(self) -> int:
        """Total number of registered objects."""
        return len(self._objects)

    def clear(self) -> None:
        """Clear all registrations."""
        self._objects.clear()
        self._by_kind.clear()
        self._by_namespace.clear()

    def load_namespaces(self, names: Optional[Iterable[str]] = None) -> int:
        """
        Load the given built-in namespaces into this registry.

        The declaring module is imported once (its declarations land in the
        global ``schema_registry``); the recorded declarations are then
        registered here, so private or cleared registries can be refilled.
        Loading is idempotent.

        Returns:
            Number of namespaces loaded.
        """
        names = list(names) if names is not None else list(BUILTIN_NAMESPACES)
        count = 0
        for name in names:
            module_path = BUILTIN_NAMESPACES.get(name)
            if module_path is None:
                raise SurfaceObjectNotFoundError(f"Unknown namespace: {name}", ref=name, kind="namespace")
            importlib.import_module(module_path)
            for obj in _MODULE_DECLARATIONS.get(module_path, {}).values():
                self.register(obj)
            count += 1
        logger.info(f"Loaded {count} namespaces: {', '.join(names)}")
        return count

    def to_summary(self) -> Dict[str, int]:
        """Get a summary of registered objects by kind."""
        summary = {}
        for kind in sorted(OBJECT_KINDS):
            n = len(self._by_kind.get(kind, {}))
            if n > 0:
                summary[kind] = n
        return summary


# Global registry singleton
schema_registry = SchemaRegistry()


def load_builtin_surface(names: Optional[Iterable[str]] = None) -> SchemaRegistry:
    """Load the built-in namespaces and return the global registry."""
    schema_registry.load_namespaces(names)
    return schema_registry
