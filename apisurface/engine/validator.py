"""
apisurface Schema Validator — Structural checks over the declared surface.

Each check yields ValidationIssue(code, ref, message, severity):

    unresolved_reference   a route or type references an unregistered type
    union_extension        a union drops or changes a tag of the union it extends
    error_fallback         a route error union is closed (no catch-all tag)
    pagination_shape       a result struct carries a cursor without has_more, or vice versa
    continuation_pairing   a ".../continue" route does not match its base route
    optimistic_update      a route that can fail with a revision conflict takes no revision
    launch_poll_pairing    a launching route has no matching ".../check" poll route
    deprecation_target     deprecated_by names no registered route
    unused_type            a type no route reaches (info)

Usage:
    report = SchemaValidator(schema_registry, config).validate(["team"])
    if not report.ok:
        for issue in report.errors: ...
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from apisurface.engine.config import SurfaceConfig
from apisurface.engine.dependency import SchemaGraph
from apisurface.engine.errors import SurfaceSchemaError
from apisurface.engine.introspect import find_field, idl_name, struct_fields, unwrap_optional
from apisurface.engine.logging import log, log_validation_issue, log_validation_run
from apisurface.engine.registry import SchemaRegistry, schema_registry
from apisurface.engine.types import Struct, Union, surface_ref, union_parent

logger = logging.getLogger("apisurface.engine.validator")

SEVERITIES = ("error", "warning", "info")

LAUNCH_BASE_REF = "async.LaunchResultBase"
POLL_BASE_REF = "async.PollResultBase"


@dataclass
class ValidationIssue:
    """One finding of the validator."""

    code: str
    ref: str
    message: str
    severity: str = "error"
    kind: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "code": self.code,
            "ref": self.ref,
            "message": self.message,
            "severity": self.severity,
        }

    def __str__(self) -> str:
        return f"[{self.severity.upper()}] {self.code}: {self.ref}: {self.message}"


@dataclass
class ValidationReport:
    """All issues of one validator run."""

    namespaces: List[str] = field(default_factory=list)
    issues: List[ValidationIssue] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == "warning"]

    @property
    def infos(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == "info"]

    @property
    def ok(self) -> bool:
        return not self.errors

    def by_code(self, code: str) -> List[ValidationIssue]:
        return [i for i in self.issues if i.code == code]

    def for_ref(self, ref: str) -> List[ValidationIssue]:
        return [i for i in self.issues if i.ref == ref]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "namespaces": self.namespaces,
            "ok": self.ok,
            "counts": {
                "errors": len(self.errors),
                "warnings": len(self.warnings),
                "infos": len(self.infos),
            },
            "issues": [i.to_dict() for i in self.issues],
        }

    def summary(self) -> str:
        return (
            f"{len(self.errors)} error(s), {len(self.warnings)} warning(s), "
            f"{len(self.infos)} info(s) in {', '.join(self.namespaces) or 'no namespaces'}"
        )


class SchemaValidator:
    """
    Runs the structural checks against a registry.

    Args:
        registry: Registry to check (default: the global schema_registry).
        config: SurfaceConfig; its ``validation`` section tunes the checks.
    """

    def __init__(
        self,
        registry: Optional[SchemaRegistry] = None,
        config: Optional[SurfaceConfig] = None,
    ):
        self.registry = registry if registry is not None else schema_registry
        self.config = config if config is not None else SurfaceConfig()
        self.settings = self.config.validation
        self._issues: List[ValidationIssue] = []
        self._graph: Optional[SchemaGraph] = None

    # -----------------------------------------------------------------------
    # Entry points
    # -----------------------------------------------------------------------

    def validate(self, namespaces: Optional[Iterable[str]] = None) -> ValidationReport:
        """Run every check over the given namespaces (default: all registered)."""
        started = time.perf_counter()
        selected = list(namespaces) if namespaces else self.registry.namespaces()
        self._issues = []
        self._graph = SchemaGraph.from_registry(self.registry)

        routes = [r for r in self.registry.get_routes() if r.namespace in selected]
        types = [t for t in self.registry.get_types() if t.__surface_namespace__ in selected]

        self._check_unresolved(selected)
        self._check_union_extension(types)
        self._check_error_fallback(routes)
        self._check_pagination_shape(routes)
        self._check_continuation_pairing(routes)
        self._check_optimistic_update(routes)
        self._check_launch_poll_pairing(routes)
        self._check_deprecation_target(routes)
        if self.settings.report_unused_types:
            self._check_unused_types(types)

        report = ValidationReport(
            namespaces=selected,
            issues=list(self._issues),
            duration_ms=(time.perf_counter() - started) * 1000,
        )
        for issue in report.issues:
            log(log_validation_issue(issue.code, issue.ref, issue.kind, issue.message, issue.severity))
        log(log_validation_run(
            selected, len(report.errors), len(report.warnings), len(report.infos), report.duration_ms,
        ))
        logger.info(f"Validation finished: {report.summary()}")
        return report

    def validate_or_raise(self, namespaces: Optional[Iterable[str]] = None) -> ValidationReport:
        """Like validate(), but raise SurfaceSchemaError when any error-level issue is found."""
        report = self.validate(namespaces)
        if not report.ok:
            raise SurfaceSchemaError(
                f"Schema validation failed: {report.summary()}",
                issues=[i.to_dict() for i in report.errors],
            )
        return report

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    def _add(self, code: str, ref: str, message: str, severity: str = "error", kind: str = "") -> None:
        if not kind:
            obj = self.registry.resolve(ref)
            kind = obj.kind if obj is not None else ""
        self._issues.append(ValidationIssue(code=code, ref=ref, message=message, severity=severity, kind=kind))
        logger.debug(f"{severity}: {code} {ref}: {message}")

    def _base_routes(self, namespace: str, name: str) -> List[Any]:
        return [
            r for r in self.registry.get_routes(namespace)
            if r.name == name
        ]

    def _registered_type(self, ref: str) -> Optional[type]:
        obj = self.registry.resolve(ref)
        return obj.target if obj is not None and obj.kind in ("struct", "union") else None

    def _has_cursor_tag(self, union: Any, depth: int = 0) -> bool:
        """True if the union (or a union payload of one of its tags) names a cursor failure."""
        if depth > 3 or not (isinstance(union, type) and issubclass(union, Union)):
            return False
        for name in union.tag_names():
            if "cursor" in name:
                return True
            payload, _ = unwrap_optional(union.get_tag(name).payload)
            if self._has_cursor_tag(payload, depth + 1):
                return True
        return False

    # -----------------------------------------------------------------------
    # Checks
    # -----------------------------------------------------------------------

    def _check_unresolved(self, selected: List[str]) -> None:
        for missing in self._graph.unresolved():
            for dep in self._graph.get_direct_dependents(missing):
                if self._graph.node(dep["ref"]).get("namespace") not in selected:
                    continue
                via = f" ({dep['relation']} {dep['via']})" if dep["via"] else f" ({dep['relation']})"
                self._add(
                    "unresolved_reference",
                    dep["ref"],
                    f"references unregistered type {missing.lstrip('?')}{via}",
                    kind=dep["kind"],
                )

    def _check_union_extension(self, types: List[type]) -> None:
        for tp in types:
            if not issubclass(tp, Union):
                continue
            parent = union_parent(tp)
            if parent is None:
                continue
            for name in parent.tag_names():
                parent_tag = parent.get_tag(name)
                tag = tp.get_tag(name)
                if tag is None:
                    if parent_tag.catch_all:
                        continue
                    self._add(
                        "union_extension", tp.__surface_ref__,
                        f"drops tag '{name}' of the extended union {parent.__name__}",
                    )
                elif tag.payload != parent_tag.payload:
                    self._add(
                        "union_extension", tp.__surface_ref__,
                        f"tag '{name}' changes payload {idl_name(parent_tag.payload)} "
                        f"of {parent.__name__} to {idl_name(tag.payload)}",
                    )

    def _check_error_fallback(self, routes: List[Any]) -> None:
        severity = "error" if self.settings.require_open_errors else "warning"
        for route in routes:
            error = route.error_type
            if error is not None and not error.is_open():
                self._add(
                    "error_fallback", route.ref,
                    f"error union {error.__name__} is closed; clients get no fallback for new tags",
                    severity=severity,
                )

    def _check_pagination_shape(self, routes: List[Any]) -> None:
        cursor_fields = self.settings.cursor_fields
        has_more = self.settings.has_more_field
        seen = set()
        for route in routes:
            result = route.result_type
            if not (isinstance(result, type) and issubclass(result, Struct)) or result in seen:
                continue
            seen.add(result)
            names = {f.name: f for f in struct_fields(result)}
            cursor = next((n for n in cursor_fields if n in names), None)
            flag = names.get(has_more)
            ref = surface_ref(result) or result.__name__
            if cursor and flag is None:
                self._add("pagination_shape", ref, f"carries '{cursor}' but no '{has_more}' flag")
            elif flag is not None and not cursor:
                self._add("pagination_shape", ref, f"carries '{has_more}' but no cursor field")
            elif flag is not None and idl_name(flag.annotation) != "Boolean":
                self._add(
                    "pagination_shape", ref,
                    f"'{has_more}' must be Boolean, is {idl_name(flag.annotation)}",
                )

    def _check_continuation_pairing(self, routes: List[Any]) -> None:
        suffix = self.settings.continue_suffix
        for route in routes:
            if not route.name.endswith(suffix):
                continue
            base_name = route.name[: -len(suffix)]
            bases = self._base_routes(route.namespace, base_name)
            if not bases:
                self._add("continuation_pairing", route.ref, f"has no base route '{base_name}'")
                continue

            if not any(find_field(route.arg_type, n) for n in self.settings.cursor_fields):
                self._add(
                    "continuation_pairing", route.ref,
                    f"argument takes none of the cursor fields {self.settings.cursor_fields}",
                )
            if not any(b.result_type == route.result_type for b in bases):
                self._add(
                    "continuation_pairing", route.ref,
                    f"result {idl_name(route.result_type)} differs from every version of '{base_name}'",
                )
            if route.error_type is None or not self._has_cursor_tag(route.error_type):
                self._add(
                    "continuation_pairing", route.ref,
                    "error union has no cursor failure tag",
                )

    def _check_optimistic_update(self, routes: List[Any]) -> None:
        conflict_tags = set(self.settings.conflict_tags)
        for route in routes:
            error = route.error_type
            if error is None:
                continue
            conflicts = conflict_tags.intersection(error.tag_names())
            if not conflicts:
                continue
            fields = [find_field(route.arg_type, n) for n in self.settings.revision_fields]
            if not any(f is not None and f.required for f in fields):
                self._add(
                    "optimistic_update", route.ref,
                    f"error union has {sorted(conflicts)} but the argument requires none of "
                    f"{self.settings.revision_fields}",
                )

    def _check_launch_poll_pairing(self, routes: List[Any]) -> None:
        launch_base = self._registered_type(LAUNCH_BASE_REF)
        poll_base = self._registered_type(POLL_BASE_REF)
        if launch_base is None or poll_base is None:
            return

        for route in routes:
            result = route.result_type
            if not (isinstance(result, type) and issubclass(result, launch_base)):
                continue
            poll_name = route.name + self.settings.poll_suffix
            polls = self._base_routes(route.namespace, poll_name)
            if not polls:
                self._add("launch_poll_pairing", route.ref, f"launches a job but has no '{poll_name}' route")
                continue

            complete = result.get_tag("complete")
            for poll in polls:
                poll_result = poll.result_type
                if not (isinstance(poll_result, type) and issubclass(poll_result, poll_base)):
                    self._add(
                        "launch_poll_pairing", poll.ref,
                        f"result {idl_name(poll_result)} does not extend {poll_base.__name__}",
                    )
                    continue
                if not find_field(poll.arg_type, "async_job_id"):
                    self._add("launch_poll_pairing", poll.ref, "argument has no 'async_job_id'")
                poll_complete = poll_result.get_tag("complete")
                if complete is None or poll_complete is None:
                    continue
                if complete.payload != poll_complete.payload:
                    self._add(
                        "launch_poll_pairing", poll.ref,
                        f"'complete' carries {idl_name(poll_complete.payload)} but {route.ref} "
                        f"completes with {idl_name(complete.payload)}",
                    )

    def _check_deprecation_target(self, routes: List[Any]) -> None:
        for route in routes:
            target = route.deprecated_by
            if target is None:
                continue
            candidates = [self.registry.resolve(target), self.registry.resolve(f"{route.namespace}/{target}")]
            if not any(obj is not None and obj.kind == "route" for obj in candidates):
                self._add("deprecation_target", route.ref, f"deprecated_by '{target}' is not a registered route")

    def _check_unused_types(self, types: List[type]) -> None:
        reachable = self._graph.reachable_types()
        for tp in types:
            ref = tp.__surface_ref__
            if ref not in reachable:
                self._add("unused_type", ref, "is not reachable from any route", severity="info")
