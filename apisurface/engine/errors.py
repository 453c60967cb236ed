"""
apisurface Error Hierarchy — Structured exceptions raised by the schema engine.

These are library failures (bad declarations, undecodable wire values), not the
declared error unions of the API surface itself. Every error serialises its
context to JSON so it can be written to the structured log files.

Hierarchy:
    SurfaceError
    ├── SurfaceSchemaError          — Malformed or inconsistent declarations
    ├── SurfaceValidationError      — Wire value does not match a declared type
    ├── SurfaceMatchError           — Union match without fallback / coverage
    ├── SurfaceObjectNotFoundError  — Reference not found in the registry
    └── SurfaceConfigError          — Invalid apisurface.yaml
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class SurfaceError(Exception):
    """
    Base error for all apisurface failures.
    All context is serialisable to JSON.
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.ref: Optional[str] = context.get("ref")
        self.kind: Optional[str] = context.get("kind")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict for logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "ref": self.ref,
            "kind": self.kind,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("ref", "kind")
            },
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.ref:
            parts.append(f"ref={self.ref}")
        return " | ".join(parts)


class SurfaceSchemaError(SurfaceError):
    """
    A declaration is malformed or the schema is inconsistent.
    Carries the list of offending issues when raised by the validator.
    """

    def __init__(self, message: str, **context: Any):
        self.issues: List[Dict[str, Any]] = context.get("issues") or []
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["issues"] = self.issues
        return d


class SurfaceValidationError(SurfaceError, ValueError):
    """
    A wire value failed to decode into (or encode from) a declared type.
    Includes field-level error details from pydantic.

    Also a ValueError so that pydantic folds it into a ValidationError when
    raised from inside a field validator.
    """

    def __init__(self, message: str, **context: Any):
        self.validation_errors: Optional[list] = context.get("validation_errors")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["validation_errors"] = self.validation_errors
        return d


class SurfaceMatchError(SurfaceError):
    """Union match missing the catch-all handler or an explicit tag handler."""

    def __init__(self, message: str, **context: Any):
        self.missing_tags: List[str] = context.get("missing_tags") or []
        super().__init__(message, **context)


class SurfaceObjectNotFoundError(SurfaceError):
    """Reference not found in the schema registry."""
    pass


class SurfaceConfigError(SurfaceError):
    """Configuration error — invalid apisurface.yaml."""
    pass
