"""
apisurface Types — the building blocks every declaration is made of.

Provides:
    - Primitive aliases (String, Int32, UInt64, Timestamp, ...) carrying their IDL name
    - Struct: pydantic model; subclassing a Struct extends it
    - Union: tagged alternative; subclassing a Union extends its tag set
    - Tag: a union member, void or carrying a payload type

Open unions (the default) carry an implicit catch-all tag ``other`` that
absorbs tags unknown to this version of the surface.
"""

from __future__ import annotations

import functools
import logging
from datetime import datetime, timezone
from typing import Annotated, Any, Callable, Dict, List, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    PlainSerializer,
    TypeAdapter,
    ValidationError,
)
from pydantic_core import core_schema

from apisurface.engine.errors import (
    SurfaceMatchError,
    SurfaceSchemaError,
    SurfaceValidationError,
)

logger = logging.getLogger("apisurface.engine.types")

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Union attributes a tag may not shadow
RESERVED_TAG_NAMES = frozenset({
    "tag", "value", "get_value", "match", "is_tag", "to_wire",
    "tag_names", "get_tag", "is_open",
})


# ---------------------------------------------------------------------------
# Primitive aliases
# ---------------------------------------------------------------------------

class IdlType:
    """Marker placed in Annotated metadata to remember the IDL primitive name."""

    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return f"IdlType({self.name})"


def _parse_timestamp(value: Any) -> Any:
    """Accept the wire timestamp format; anything else goes to pydantic."""
    if isinstance(value, str):
        try:
            return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
        except ValueError:
            return value
    return value


def format_timestamp(value: datetime) -> str:
    """Render a datetime in the wire format (UTC, second precision)."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(TIMESTAMP_FORMAT)


def _int_range(name: str, lower: int, upper: int) -> AfterValidator:
    """Natural range of an integer primitive, checked apart from any field-level ge/le."""
    def check(value: int) -> int:
        if value < lower or value > upper:
            raise ValueError(f"{value} is out of range for {name} [{lower}, {upper}]")
        return value

    return AfterValidator(check)


String = Annotated[str, IdlType("String")]
Boolean = Annotated[bool, IdlType("Boolean")]
Float64 = Annotated[float, IdlType("Float64")]
Int32 = Annotated[int, IdlType("Int32"), _int_range("Int32", -(2 ** 31), 2 ** 31 - 1)]
Int64 = Annotated[int, IdlType("Int64"), _int_range("Int64", -(2 ** 63), 2 ** 63 - 1)]
UInt32 = Annotated[int, IdlType("UInt32"), _int_range("UInt32", 0, 2 ** 32 - 1)]
UInt64 = Annotated[int, IdlType("UInt64"), _int_range("UInt64", 0, 2 ** 64 - 1)]
Timestamp = Annotated[
    datetime,
    IdlType("Timestamp"),
    BeforeValidator(_parse_timestamp),
    PlainSerializer(format_timestamp, return_type=str, when_used="json"),
]


def surface_ref(cls: Any) -> Optional[str]:
    """Registry ref of a declared class (not inherited from a parent)."""
    if not isinstance(cls, type):
        return None
    return cls.__dict__.get("__surface_ref__")


# ---------------------------------------------------------------------------
# Struct
# ---------------------------------------------------------------------------

class Struct(BaseModel):
    """
    Base class for declared structs.

    Unknown fields are ignored on input so that newer servers can add fields
    without breaking older consumers.
    """

    model_config = ConfigDict(
        extra="ignore",
        validate_assignment=True,
        populate_by_name=True,
    )

    __surface_ref__ = None
    __surface_namespace__ = None

    def to_wire(self) -> Dict[str, Any]:
        """JSON-compatible dict; unset optional fields are omitted."""
        return self.model_dump(mode="json", exclude_none=True)


def struct_parent(cls: type) -> Optional[type]:
    """The struct a struct class extends, if any."""
    for base in cls.__bases__:
        if isinstance(base, type) and issubclass(base, Struct) and base is not Struct:
            return base
    return None


# ---------------------------------------------------------------------------
# Union
# ---------------------------------------------------------------------------

class Tag:
    """
    A union member.

    ``Tag()`` declares a void member, ``Tag(SomeType)`` one carrying a payload.
    Reading a void tag from the union class yields an instance; reading a
    payload tag yields a constructor taking the payload.
    """

    def __init__(self, payload: Any = None, doc: str = "", catch_all: bool = False):
        self.payload = payload
        self.doc = doc
        self.catch_all = catch_all
        self.name: Optional[str] = None
        self.owner: Optional[type] = None
        self._adapter: Optional[TypeAdapter] = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name
        self.owner = owner

    def __get__(self, instance: Any, owner: type) -> Any:
        if self.is_void:
            return owner(self.name)
        return functools.partial(owner, self.name)

    @property
    def is_void(self) -> bool:
        return self.payload is None

    def adapter(self) -> TypeAdapter:
        if self._adapter is None:
            self._adapter = TypeAdapter(self.payload)
        return self._adapter

    def validate(self, value: Any, union_name: str = "") -> Any:
        """Coerce a payload value into the declared payload type."""
        try:
            return self.adapter().validate_python(value)
        except ValidationError as e:
            raise SurfaceValidationError(
                f"Invalid payload for tag '{self.name}' of {union_name or 'union'}",
                kind="union",
                tag=self.name,
                validation_errors=e.errors(include_url=False),
            ) from e

    def __repr__(self) -> str:
        return f"<Tag {self.name} payload={self.payload!r}>"


def struct_payload_class(payload: Any) -> Optional[type]:
    """Return the Struct class of a (possibly Optional) payload, else None."""
    from apisurface.engine.introspect import unwrap_optional

    inner, _ = unwrap_optional(payload)
    if isinstance(inner, type) and issubclass(inner, Struct):
        return inner
    return None


class Union:
    """
    Base class for declared unions.

    Usage:
        class TeamFolderStatus(Union):
            active = Tag()
            archived = Tag()

        status = TeamFolderStatus.active
        status.is_active()                       # True
        status.match(active=lambda: 1, other=lambda u: 0)
    """

    __surface_ref__ = None
    __surface_namespace__ = None

    _tags: Dict[str, Tag] = {}
    _closed: bool = False

    def __init_subclass__(cls, closed: Optional[bool] = None, **kwargs: Any):
        super().__init_subclass__(**kwargs)
        parent_closed = cls._closed
        if closed is not None:
            if closed and not parent_closed and cls.__bases__[0] is not Union:
                raise SurfaceSchemaError(
                    f"Closed union {cls.__name__} cannot extend an open union",
                    kind="union",
                )
            cls._closed = closed

        tags: Dict[str, Tag] = {}
        for klass in reversed(cls.__mro__):
            for name, attr in vars(klass).items():
                if isinstance(attr, Tag):
                    if name in RESERVED_TAG_NAMES:
                        raise SurfaceSchemaError(
                            f"Tag name '{name}' on {cls.__name__} shadows a Union attribute",
                            kind="union",
                        )
                    tags[name] = attr

        if not cls._closed:
            catch_all = tags.pop("other", None)
            if catch_all is None:
                catch_all = Tag(catch_all=True)
                catch_all.__set_name__(cls, "other")
                setattr(cls, "other", catch_all)
            catch_all.catch_all = True
            tags["other"] = catch_all
        cls._tags = tags

    def __init__(self, tag: str, value: Any = None):
        cls = type(self)
        spec = cls._tags.get(tag)
        if spec is None:
            raise SurfaceValidationError(
                f"Unknown tag '{tag}' for union {cls.__name__}",
                ref=surface_ref(cls),
                kind="union",
                tag=tag,
            )
        if spec.is_void:
            if value is not None:
                raise SurfaceValidationError(
                    f"Tag '{tag}' of {cls.__name__} takes no value",
                    ref=surface_ref(cls),
                    kind="union",
                    tag=tag,
                )
        else:
            value = spec.validate(value, cls.__name__)
        self._tag = tag
        self._value = value

    # -- introspection ------------------------------------------------------

    @classmethod
    def tag_names(cls) -> List[str]:
        return list(cls._tags)

    @classmethod
    def get_tag(cls, name: str) -> Optional[Tag]:
        return cls._tags.get(name)

    @classmethod
    def is_open(cls) -> bool:
        return not cls._closed

    @property
    def tag(self) -> str:
        return self._tag

    @property
    def value(self) -> Any:
        return self._value

    def is_tag(self, name: str) -> bool:
        return self._tag == name

    def get_value(self) -> Any:
        """Payload of the current tag; void tags have none."""
        if type(self)._tags[self._tag].is_void:
            raise AttributeError(f"Tag '{self._tag}' of {type(self).__name__} is void")
        return self._value

    def __getattr__(self, name: str) -> Any:
        if name.startswith("is_") and name[3:] in type(self)._tags:
            tag_name = name[3:]
            return lambda: self._tag == tag_name
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    # -- matching -----------------------------------------------------------

    def match(self, **handlers: Callable[..., Any]) -> Any:
        """
        Dispatch on the current tag.

        Payload-tag handlers receive the payload, void-tag handlers receive
        nothing. The catch-all handlers ``other`` and ``default`` receive the
        union itself. Open unions must be given one of them; closed unions
        must cover every tag unless ``default`` is given.
        """
        cls = type(self)
        undeclared = sorted(set(handlers) - set(cls._tags) - {"default", "other"})
        if undeclared:
            raise SurfaceMatchError(
                f"Handlers given for undeclared tags of {cls.__name__}: {undeclared}",
                ref=surface_ref(cls),
                kind="union",
            )

        fallback = handlers.get("default")
        if cls.is_open() and fallback is None:
            fallback = handlers.get("other")
            if fallback is None:
                raise SurfaceMatchError(
                    f"Open union {cls.__name__} requires an 'other' or 'default' handler",
                    ref=surface_ref(cls),
                    kind="union",
                    missing_tags=["other"],
                )
        if not cls.is_open() and fallback is None:
            missing = [t for t in cls._tags if t not in handlers]
            if missing:
                raise SurfaceMatchError(
                    f"Match on closed union {cls.__name__} does not cover: {missing}",
                    ref=surface_ref(cls),
                    kind="union",
                    missing_tags=missing,
                )

        handler = handlers.get(self._tag)
        if handler is None or self._tag == "other":
            return (handler or fallback)(self)
        if cls._tags[self._tag].is_void:
            return handler()
        return handler(self._value)

    # -- wire ---------------------------------------------------------------

    def to_wire(self) -> Dict[str, Any]:
        spec = type(self)._tags[self._tag]
        out: Dict[str, Any] = {".tag": self._tag}
        if spec.is_void or self._value is None:
            return out
        if isinstance(self._value, Struct):
            out.update(self._value.to_wire())
        else:
            out[self._tag] = spec.adapter().dump_python(
                self._value, mode="json", exclude_none=True
            )
        return out

    @classmethod
    def from_wire(cls, data: Any) -> "Union":
        """Build an instance from a wire value (tag string or tagged dict)."""
        if isinstance(data, cls):
            return data
        if isinstance(data, Union) and issubclass(cls, type(data)):
            # A supertype value is a valid value of the extending union
            return cls(data.tag, data.value)
        if isinstance(data, str):
            tag, body = data, None
        elif isinstance(data, dict):
            tag = data.get(".tag")
            if not isinstance(tag, str):
                raise SurfaceValidationError(
                    f"Missing '.tag' decoding union {cls.__name__}",
                    ref=surface_ref(cls),
                    kind="union",
                )
            body = data
        else:
            raise SurfaceValidationError(
                f"Cannot decode {type(data).__name__} as union {cls.__name__}",
                ref=surface_ref(cls),
                kind="union",
            )

        spec = cls._tags.get(tag)
        if spec is None:
            if cls.is_open():
                logger.debug(f"Unknown tag '{tag}' for {cls.__name__} decoded as 'other'")
                return cls("other")
            raise SurfaceValidationError(
                f"Unknown tag '{tag}' for closed union {cls.__name__}",
                ref=surface_ref(cls),
                kind="union",
                tag=tag,
            )
        if spec.is_void:
            return cls(tag)

        if struct_payload_class(spec.payload) is not None:
            from apisurface.engine.introspect import unwrap_optional

            fields = {k: v for k, v in (body or {}).items() if k != ".tag"}
            # An empty struct body is absent only when the payload is Optional
            if not fields and unwrap_optional(spec.payload)[1]:
                return cls(tag, None)
            return cls(tag, fields)
        if body is None:
            return cls(tag, None)
        return cls(tag, body.get(tag))

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> Any:
        return core_schema.no_info_plain_validator_function(
            cls.from_wire,
            serialization=core_schema.plain_serializer_function_ser_schema(
                _union_to_wire, when_used="json-unless-none"
            ),
        )

    # -- dunder -------------------------------------------------------------

    def __eq__(self, other: Any) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._tag == other._tag and self._value == other._value

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._tag))

    def __repr__(self) -> str:
        if type(self)._tags[self._tag].is_void:
            return f"{type(self).__name__}.{self._tag}"
        return f"{type(self).__name__}({self._tag!r}, {self._value!r})"


def _union_to_wire(value: Union) -> Dict[str, Any]:
    return value.to_wire()


def union_parent(cls: type) -> Optional[type]:
    """The union a union class extends, if any."""
    for base in cls.__bases__:
        if isinstance(base, type) and issubclass(base, Union) and base is not Union:
            return base
    return None
