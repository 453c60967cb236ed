"""
apisurface Codec — JSON wire encoding of declared values.

Wire conventions:
    struct          {"field": value, ...}          None fields omitted
    void tag        {".tag": "archived"}           bare "archived" accepted on decode
    struct payload  {".tag": "complete", ...struct fields}
    other payload   {".tag": "async_job_id", "async_job_id": "dbjid:..."}
    timestamp       "2024-01-31T12:00:00Z"

Unknown tags decode to ``other`` on open unions and fail on closed ones.
Decode failures raise SurfaceValidationError and are written to the codec
log category of the offending type.

Usage:
    from apisurface.engine import codec
    meta = codec.decode(TeamFolderMetadata, payload)
    body = codec.encode_arg(team.team_folder_rename, {"team_folder_id": "123", "name": "Q3"})
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import TypeAdapter, ValidationError

from apisurface.engine.errors import SurfaceValidationError
from apisurface.engine.introspect import is_declared_type, list_item, strip_annotated, unwrap_optional
from apisurface.engine.logging import log, log_codec_failure
from apisurface.engine.types import Struct, Union, surface_ref

logger = logging.getLogger("apisurface.engine.codec")


_ADAPTERS: Dict[Any, TypeAdapter] = {}


def _adapter(tp: Any) -> TypeAdapter:
    try:
        return _ADAPTERS[tp]
    except KeyError:
        adapter = _ADAPTERS[tp] = TypeAdapter(tp)
        return adapter
    except TypeError:
        # unhashable annotation metadata
        return TypeAdapter(tp)


def _describe(tp: Any) -> tuple:
    """(ref, kind) used to file log entries about a type."""
    base, _ = unwrap_optional(tp)
    base, _ = strip_annotated(base)
    item = list_item(base)
    if item is not None:
        base = item
    if is_declared_type(base):
        kind = "union" if issubclass(base, Union) else "struct"
        return surface_ref(base) or base.__name__, kind
    return getattr(base, "__name__", repr(base)), "system"


def _fail(
    tp: Any,
    direction: str,
    message: str,
    validation_errors: Optional[list] = None,
    route_ref: Optional[str] = None,
    cause: Optional[BaseException] = None,
) -> SurfaceValidationError:
    ref, kind = _describe(tp)
    logger.warning(f"{direction} failed for {ref}: {message}")
    log(log_codec_failure(
        object_ref=ref,
        object_kind=kind,
        direction=direction,
        error=message,
        validation_errors=validation_errors,
        route_ref=route_ref,
    ))
    err = SurfaceValidationError(
        message,
        ref=ref,
        kind=kind,
        direction=direction,
        route=route_ref,
        validation_errors=validation_errors,
    )
    err.__cause__ = cause
    return err


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------

def encode(value: Any, tp: Any = None, *, route_ref: Optional[str] = None) -> Any:
    """
    Encode a value to its JSON-compatible wire form.

    Args:
        value: Struct/Union instance, list of them, or a raw value.
        tp: Declared type; when given, the value is validated against it
            first (so plain dicts are accepted).
    """
    if value is None:
        return None
    if tp is None:
        if isinstance(value, (Struct, Union)):
            return value.to_wire()
        if isinstance(value, list):
            return [encode(v) for v in value]
        return _adapter(type(value)).dump_python(value, mode="json")

    try:
        adapter = _adapter(tp)
        return adapter.dump_python(adapter.validate_python(value), mode="json", exclude_none=True)
    except ValidationError as e:
        raise _fail(tp, "encode", f"Cannot encode value as {_describe(tp)[0]}",
                    e.errors(include_url=False), route_ref, e)
    except SurfaceValidationError as e:
        raise _fail(tp, "encode", e.message, e.validation_errors, route_ref, e)


def decode(tp: Any, data: Any, *, route_ref: Optional[str] = None) -> Any:
    """
    Decode a wire value into the declared type ``tp`` (None means Void).

    Raises:
        SurfaceValidationError: The value does not match the type.
    """
    if tp is None:
        if data not in (None, {}):
            raise _fail(tp, "decode", f"Expected no value, got {type(data).__name__}", route_ref=route_ref)
        return None
    try:
        return _adapter(tp).validate_python(data)
    except ValidationError as e:
        raise _fail(tp, "decode", f"Cannot decode value as {_describe(tp)[0]}",
                    e.errors(include_url=False), route_ref, e)
    except SurfaceValidationError as e:
        raise _fail(tp, "decode", e.message, e.validation_errors, route_ref, e)


def dumps(value: Any, tp: Any = None, indent: Optional[int] = None) -> str:
    """Encode to a JSON string."""
    return json.dumps(encode(value, tp), indent=indent, sort_keys=indent is not None)


def loads(tp: Any, text: Any) -> Any:
    """Decode a JSON document (str, or bytes in a UTF encoding) into the declared type ``tp``."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise _fail(tp, "decode", f"Invalid JSON: {e.msg}", cause=e)
    except UnicodeDecodeError as e:
        raise _fail(tp, "decode", f"Invalid JSON encoding: {e.reason}", cause=e)
    return decode(tp, data)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

def error_summary(error: Union) -> str:
    """Slash-joined tag path of an error, e.g. ``access_error/no_access/``."""
    parts = []
    current: Any = error
    while isinstance(current, Union):
        parts.append(current.tag)
        current = current.value
    return "/".join(parts) + "/"


@dataclass
class RouteErrorEnvelope:
    """An error response of a route: the decoded error union plus its summary."""

    route_ref: str
    error: Optional[Union]
    error_summary: str = ""
    user_message: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"error_summary": self.error_summary}
        if self.error is not None:
            out["error"] = self.error.to_wire()
        if self.user_message is not None:
            out["user_message"] = {"locale": "en", "text": self.user_message}
        return out


def encode_arg(route: Any, value: Any) -> Any:
    """Validate and encode the argument of a route call."""
    if route.arg_type is None:
        if value not in (None, {}):
            raise _fail(None, "encode", f"Route {route.ref} takes no argument", route_ref=route.ref)
        return None
    return encode(value, route.arg_type, route_ref=route.ref)


def decode_result(route: Any, data: Any) -> Any:
    """Decode the successful response body of a route."""
    return decode(route.result_type, data, route_ref=route.ref)


def decode_error(route: Any, data: Any) -> RouteErrorEnvelope:
    """
    Decode an error response of a route.

    Accepts either the bare error union value or the response envelope
    ``{"error_summary": ..., "error": ..., "user_message": {...}}``.
    """
    summary = None
    user_message = None
    if isinstance(data, dict) and "error" in data and ".tag" not in data:
        summary = data.get("error_summary")
        message = data.get("user_message")
        if isinstance(message, dict):
            user_message = message.get("text")
        elif isinstance(message, str):
            user_message = message
        data = data["error"]

    if route.error_type is None:
        return RouteErrorEnvelope(route_ref=route.ref, error=None,
                                  error_summary=summary or "", user_message=user_message)

    error = decode(route.error_type, data, route_ref=route.ref)
    return RouteErrorEnvelope(
        route_ref=route.ref,
        error=error,
        error_summary=summary or error_summary(error),
        user_message=user_message,
    )
