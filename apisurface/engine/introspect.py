"""
Annotation helpers shared by the validator, the dependency graph and the generators.
"""

from __future__ import annotations

import inspect
import types
import typing
from dataclasses import dataclass, field
from datetime import datetime
from typing import Annotated, Any, Dict, List, Optional, Tuple, get_args, get_origin

from pydantic_core import PydanticUndefined

from apisurface.engine.types import IdlType, Struct, Union, struct_parent, surface_ref

_PRIMITIVE_NAMES = {
    str: "String",
    bool: "Boolean",
    int: "Int64",
    float: "Float64",
    datetime: "Timestamp",
    type(None): "Void",
}

# Natural value range of the integer primitives; bounds equal to these are implicit
_NATURAL_BOUNDS = {
    "Int32": (-(2 ** 31), 2 ** 31 - 1),
    "Int64": (-(2 ** 63), 2 ** 63 - 1),
    "UInt32": (0, 2 ** 32 - 1),
    "UInt64": (0, 2 ** 64 - 1),
}


@dataclass
class FieldSpec:
    """Declared field of a struct, as seen by tooling."""

    name: str
    annotation: Any
    required: bool
    default: Any = None
    description: str = ""
    constraints: Dict[str, Any] = field(default_factory=dict)

    @property
    def optional(self) -> bool:
        return unwrap_optional(self.annotation)[1]

    @property
    def has_default(self) -> bool:
        return not self.required and self.default is not None


def unwrap_optional(annotation: Any) -> Tuple[Any, bool]:
    """Split ``Optional[X]`` into ``(X, True)``; other annotations pass through."""
    origin = get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1 and len(get_args(annotation)) == 2:
            return args[0], True
    return annotation, False


def strip_annotated(annotation: Any) -> Tuple[Any, Tuple[Any, ...]]:
    if get_origin(annotation) is Annotated:
        args = get_args(annotation)
        return args[0], tuple(args[1:])
    return annotation, ()


def list_item(annotation: Any) -> Optional[Any]:
    """Item type of ``List[X]``, else None."""
    base, _ = strip_annotated(annotation)
    if get_origin(base) in (list, List):
        args = get_args(base)
        return args[0] if args else Any
    return None


def is_declared_type(tp: Any) -> bool:
    return (
        isinstance(tp, type)
        and issubclass(tp, (Struct, Union))
        and tp not in (Struct, Union)
    )


def referenced_types(annotation: Any) -> List[type]:
    """All Struct/Union classes mentioned anywhere inside an annotation."""
    found: List[type] = []

    def _walk(tp: Any) -> None:
        if is_declared_type(tp):
            if tp not in found:
                found.append(tp)
            return
        if get_origin(tp) is Annotated:
            _walk(get_args(tp)[0])
            return
        for arg in get_args(tp):
            _walk(arg)

    _walk(annotation)
    return found


def idl_name(annotation: Any, current_namespace: Optional[str] = None) -> str:
    """Render an annotation as an IDL type name (``String``, ``List(team.Foo)?``...)."""
    if annotation is None:
        return "Void"

    inner, optional = unwrap_optional(annotation)
    if optional:
        return idl_name(inner, current_namespace) + "?"

    base, metadata = strip_annotated(annotation)
    for meta in metadata:
        if isinstance(meta, IdlType):
            return meta.name
    if metadata:
        return idl_name(base, current_namespace)

    item = list_item(annotation)
    if item is not None:
        return f"List({idl_name(item, current_namespace)})"

    if is_declared_type(annotation):
        ns = annotation.__dict__.get("__surface_namespace__")
        if ns and ns != current_namespace:
            return f"{ns}.{annotation.__name__}"
        return annotation.__name__

    if annotation in _PRIMITIVE_NAMES:
        return _PRIMITIVE_NAMES[annotation]
    return getattr(annotation, "__name__", repr(annotation))


def _raw_annotation(cls: type, name: str) -> Any:
    """Field annotation with Annotated metadata preserved."""
    for klass in cls.__mro__:
        if not (isinstance(klass, type) and issubclass(klass, Struct)) or klass is Struct:
            continue
        annotations = inspect.get_annotations(klass, eval_str=True)
        if name in annotations:
            return annotations[name]
    return cls.model_fields[name].annotation


def _constraints(field_info: Any, annotation: Any) -> Dict[str, Any]:
    """Tightest length/value/pattern constraints on a field."""
    found: Dict[str, Any] = {}
    for meta in field_info.metadata:
        for attr, key in (
            ("min_length", "min_length"),
            ("max_length", "max_length"),
            ("ge", "min_value"),
            ("le", "max_value"),
            ("pattern", "pattern"),
        ):
            value = getattr(meta, attr, None)
            if value is None:
                continue
            if key == "min_value":
                found[key] = max(found.get(key, value), value)
            elif key == "max_value":
                found[key] = min(found.get(key, value), value)
            else:
                found[key] = value

    name = idl_name(unwrap_optional(annotation)[0])
    lower, upper = _NATURAL_BOUNDS.get(name, (None, None))
    if found.get("min_value") == lower:
        found.pop("min_value", None)
    if found.get("max_value") == upper:
        found.pop("max_value", None)
    return found


def struct_fields(cls: type, own: bool = False) -> List[FieldSpec]:
    """
    Declared fields of a struct, supertype fields first.

    Args:
        cls: Struct subclass.
        own: Only the fields the class adds over the struct it extends.
    """
    parent = struct_parent(cls)
    inherited = set(parent.model_fields) if (own and parent is not None) else set()

    specs = []
    for name, info in cls.model_fields.items():
        if name in inherited:
            continue
        annotation = _raw_annotation(cls, name)
        required = info.is_required()
        default = None if info.default is PydanticUndefined else info.default
        specs.append(FieldSpec(
            name=name,
            annotation=annotation,
            required=required,
            default=default,
            description=info.description or "",
            constraints=_constraints(info, annotation),
        ))
    return specs


def find_field(cls: Any, name: str) -> Optional[FieldSpec]:
    if not (isinstance(cls, type) and issubclass(cls, Struct)):
        return None
    for spec in struct_fields(cls):
        if spec.name == name:
            return spec
    return None


def type_ref(tp: Any) -> Optional[str]:
    """Registry ref of a declared type, or None for primitives / Void."""
    if is_declared_type(tp):
        return surface_ref(tp)
    return None


def doc_of(cls: type) -> str:
    """Class docstring, not inherited."""
    return inspect.cleandoc(cls.__dict__.get("__doc__") or "")
