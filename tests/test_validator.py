"""Unit tests for apisurface.engine.validator — SchemaValidator checks."""

from typing import List, Optional

import pytest

from apisurface.decorators import route, struct, union
from apisurface.engine.config import SurfaceConfig, ValidationConfig
from apisurface.engine.errors import SurfaceSchemaError
from apisurface.engine.logging import init_logging
from apisurface.engine.registry import RegisteredObject
from apisurface.engine.types import Boolean, Int32, Int64, String, Struct, Tag, Union
from apisurface.engine.validator import SchemaValidator, ValidationIssue, ValidationReport
from apisurface.namespaces import async_jobs

NS = "demo"


def _validator(registry, **settings) -> SchemaValidator:
    settings.setdefault("report_unused_types", False)
    return SchemaValidator(registry, SurfaceConfig(validation=ValidationConfig(**settings)))


def _register_async_bases(registry) -> None:
    for cls in (async_jobs.LaunchResultBase, async_jobs.PollResultBase, async_jobs.PollError):
        registry.register(RegisteredObject(
            ref=cls.__surface_ref__, kind="union", namespace="async", name=cls.__name__, target=cls,
        ))
    registry.register(RegisteredObject(
        ref="async.PollArg", kind="struct", namespace="async", name="PollArg", target=async_jobs.PollArg,
    ))


class TestReport:
    def test_counts_and_ok(self):
        report = ValidationReport(namespaces=["demo"], issues=[
            ValidationIssue("a", "demo.X", "m", "error"),
            ValidationIssue("b", "demo.Y", "m", "warning"),
            ValidationIssue("c", "demo.Y", "m", "info"),
        ])
        assert not report.ok
        assert len(report.errors) == 1
        assert [i.code for i in report.for_ref("demo.Y")] == ["b", "c"]
        assert report.to_dict()["counts"] == {"errors": 1, "warnings": 1, "infos": 1}
        assert report.summary().startswith("1 error(s), 1 warning(s), 1 info(s)")

    def test_issue_str(self):
        issue = ValidationIssue("unused_type", "demo.X", "is not reachable", "info")
        assert str(issue) == "[INFO] unused_type: demo.X: is not reachable"


class TestBuiltinSurface:
    def test_builtin_surface_is_valid(self, surface):
        report = SchemaValidator(surface).validate()
        assert report.ok, [str(i) for i in report.errors]
        assert report.warnings == []

    def test_single_namespace(self, surface):
        report = SchemaValidator(surface).validate(["team"])
        assert report.namespaces == ["team"]
        assert report.ok

    def test_validation_logged(self, surface, log_dir):
        file_logger = init_logging(log_dir=str(log_dir))
        SchemaValidator(surface).validate(["file_requests"])
        runs = file_logger.query("system", "validation")
        assert runs[0]["event"] == "validation_run"
        assert runs[0]["namespaces"] == ["file_requests"]
        assert runs[0]["errors"] == 0


class TestUnresolved:
    def test_field_references_unregistered_type(self, registry):
        class Inner(Struct):
            x: Int32

        @struct(namespace=NS, registry=registry)
        class Outer(Struct):
            inner: Inner

        route("get", None, Outer, None, namespace=NS, registry=registry)
        issues = _validator(registry).validate().by_code("unresolved_reference")
        assert [i.ref for i in issues] == ["demo.Outer"]
        assert "Inner" in issues[0].message
        assert "field inner" in issues[0].message

    def test_route_references_unregistered_type(self, registry):
        class Arg(Struct):
            x: Int32

        route("get", Arg, None, None, namespace=NS, registry=registry)
        issues = _validator(registry).validate().by_code("unresolved_reference")
        assert issues[0].ref == "demo/get"
        assert issues[0].kind == "route"


class TestUnionExtension:
    def test_changed_payload(self, registry):
        @union(namespace=NS, registry=registry)
        class Base(Union):
            a = Tag()

        @union(namespace=NS, registry=registry)
        class Extended(Base):
            a = Tag(Int32)

        issues = _validator(registry).validate().by_code("union_extension")
        assert [i.ref for i in issues] == ["demo.Extended"]
        assert "changes payload" in issues[0].message

    def test_dropped_tag(self, registry):
        @union(namespace=NS, registry=registry)
        class Base(Union):
            a = Tag()
            b = Tag()

        @union(namespace=NS, registry=registry)
        class Extended(Base):
            c = Tag()

        Extended._tags = {k: v for k, v in Extended._tags.items() if k != "b"}
        issues = _validator(registry).validate().by_code("union_extension")
        assert "drops tag 'b'" in issues[0].message

    def test_inherited_tags_pass(self, registry):
        @union(namespace=NS, registry=registry)
        class Base(Union):
            a = Tag(String)

        @union(namespace=NS, registry=registry)
        class Extended(Base):
            b = Tag()

        assert _validator(registry).validate().by_code("union_extension") == []


class TestErrorFallback:
    def setup_method(self):
        class ClosedError(Union, closed=True):
            failed = Tag()

        self.ClosedError = ClosedError

    def test_closed_error_warns(self, registry):
        union(namespace=NS, registry=registry)(self.ClosedError)
        route("do", None, None, self.ClosedError, namespace=NS, registry=registry)
        report = _validator(registry).validate()
        assert report.ok
        assert [i.code for i in report.warnings] == ["error_fallback"]

    def test_closed_error_fails_when_required_open(self, registry):
        union(namespace=NS, registry=registry)(self.ClosedError)
        route("do", None, None, self.ClosedError, namespace=NS, registry=registry)
        report = _validator(registry, require_open_errors=True).validate()
        assert not report.ok
        assert report.errors[0].code == "error_fallback"


class TestPaginationShape:
    def test_cursor_without_has_more(self, registry):
        @struct(namespace=NS, registry=registry)
        class Page(Struct):
            items: List[String]
            cursor: String

        route("list", None, Page, None, namespace=NS, registry=registry)
        issues = _validator(registry).validate().by_code("pagination_shape")
        assert [i.ref for i in issues] == ["demo.Page"]
        assert "no 'has_more'" in issues[0].message

    def test_has_more_without_cursor(self, registry):
        @struct(namespace=NS, registry=registry)
        class Page(Struct):
            items: List[String]
            has_more: Boolean

        route("list", None, Page, None, namespace=NS, registry=registry)
        issues = _validator(registry).validate().by_code("pagination_shape")
        assert "no cursor field" in issues[0].message

    def test_has_more_must_be_boolean(self, registry):
        @struct(namespace=NS, registry=registry)
        class Page(Struct):
            cursor: String
            has_more: Int32

        route("list", None, Page, None, namespace=NS, registry=registry)
        issues = _validator(registry).validate().by_code("pagination_shape")
        assert "must be Boolean" in issues[0].message

    def test_configured_field_names(self, registry):
        @struct(namespace=NS, registry=registry)
        class Page(Struct):
            token: String
            more: Boolean

        route("list", None, Page, None, namespace=NS, registry=registry)
        report = _validator(registry, cursor_fields=["token"], has_more_field="more").validate()
        assert report.by_code("pagination_shape") == []


class TestContinuationPairing:
    def _declare_base(self, registry):
        @struct(namespace=NS, registry=registry)
        class Page(Struct):
            items: List[String]
            cursor: String
            has_more: Boolean

        route("items", None, Page, None, namespace=NS, registry=registry)
        return Page

    def test_matching_continuation(self, registry):
        page = self._declare_base(registry)

        @struct(namespace=NS, registry=registry)
        class ContinueArg(Struct):
            cursor: String

        @union(namespace=NS, registry=registry)
        class CursorError(Union):
            expired_cursor = Tag()

        @union(namespace=NS, registry=registry)
        class ContinueError(Union):
            lookup = Tag(CursorError)

        route("items/continue", ContinueArg, page, ContinueError, namespace=NS, registry=registry)
        assert _validator(registry).validate().by_code("continuation_pairing") == []

    def test_mismatched_continuation(self, registry):
        self._declare_base(registry)

        @struct(namespace=NS, registry=registry)
        class OtherPage(Struct):
            items: List[String]
            cursor: String
            has_more: Boolean

        @struct(namespace=NS, registry=registry)
        class ContinueArg(Struct):
            token: String

        @union(namespace=NS, registry=registry)
        class ContinueError(Union):
            invalid_token = Tag()

        route("items/continue", ContinueArg, OtherPage, ContinueError, namespace=NS, registry=registry)
        issues = _validator(registry).validate().by_code("continuation_pairing")
        assert len(issues) == 3
        assert all(i.ref == "demo/items/continue" for i in issues)

    def test_orphan_continuation(self, registry):
        @struct(namespace=NS, registry=registry)
        class ContinueArg(Struct):
            cursor: String

        route("items/continue", ContinueArg, None, None, namespace=NS, registry=registry)
        issues = _validator(registry).validate().by_code("continuation_pairing")
        assert issues[0].message == "has no base route 'items'"


class TestOptimisticUpdate:
    def setup_method(self):
        class UpdateError(Union):
            revision_mismatch = Tag()

        self.UpdateError = UpdateError

    def _run(self, registry, arg):
        struct(namespace=NS, registry=registry)(arg)
        union(namespace=NS, registry=registry)(self.UpdateError)
        route("update", arg, None, self.UpdateError, namespace=NS, registry=registry)
        return _validator(registry).validate().by_code("optimistic_update")

    def test_missing_revision(self, registry):
        class UpdateArg(Struct):
            doc_id: String

        issues = self._run(registry, UpdateArg)
        assert [i.ref for i in issues] == ["demo/update"]

    def test_optional_revision_is_not_enough(self, registry):
        class UpdateArg(Struct):
            doc_id: String
            revision: Optional[Int64] = None

        assert len(self._run(registry, UpdateArg)) == 1

    def test_required_revision(self, registry):
        class UpdateArg(Struct):
            doc_id: String
            revision: Int64

        assert self._run(registry, UpdateArg) == []


class TestLaunchPollPairing:
    def _declare_launch(self, registry):
        _register_async_bases(registry)

        @struct(namespace=NS, registry=registry)
        class Job(Struct):
            name: String

        @union(namespace=NS, registry=registry)
        class JobLaunch(async_jobs.LaunchResultBase):
            complete = Tag(Job)

        route("job/start", None, JobLaunch, None, namespace=NS, registry=registry)
        return Job

    def test_missing_poll_route(self, registry):
        self._declare_launch(registry)
        issues = _validator(registry).validate().by_code("launch_poll_pairing")
        assert [i.ref for i in issues] == ["demo/job/start"]
        assert "job/start/check" in issues[0].message

    def test_matching_poll_route(self, registry):
        job = self._declare_launch(registry)

        @union(namespace=NS, registry=registry)
        class JobStatus(async_jobs.PollResultBase):
            complete = Tag(job)

        route("job/start/check", async_jobs.PollArg, JobStatus, async_jobs.PollError,
              namespace=NS, registry=registry)
        report = _validator(registry).validate()
        assert report.by_code("launch_poll_pairing") == []
        assert report.ok

    def test_poll_completes_with_other_payload(self, registry):
        self._declare_launch(registry)

        @struct(namespace=NS, registry=registry)
        class Other(Struct):
            id: String

        @union(namespace=NS, registry=registry)
        class JobStatus(async_jobs.PollResultBase):
            complete = Tag(Other)

        route("job/start/check", async_jobs.PollArg, JobStatus, None, namespace=NS, registry=registry)
        issues = _validator(registry).validate().by_code("launch_poll_pairing")
        assert [i.ref for i in issues] == ["demo/job/start/check"]
        assert "'complete' carries" in issues[0].message

    def test_poll_result_must_extend_poll_base(self, registry):
        job = self._declare_launch(registry)
        route("job/start/check", async_jobs.PollArg, job, None, namespace=NS, registry=registry)
        issues = _validator(registry).validate().by_code("launch_poll_pairing")
        assert "does not extend PollResultBase" in issues[0].message


class TestDeprecationTarget:
    def test_unknown_target(self, registry):
        route("items", None, None, None, deprecated_by="items:2", namespace=NS, registry=registry)
        issues = _validator(registry).validate().by_code("deprecation_target")
        assert [i.ref for i in issues] == ["demo/items"]

    def test_relative_target(self, registry):
        route("items", None, None, None, deprecated_by="items:2", namespace=NS, registry=registry)
        route("items", None, None, None, version=2, namespace=NS, registry=registry)
        assert _validator(registry).validate().by_code("deprecation_target") == []

    def test_absolute_target(self, registry):
        route("items", None, None, None, deprecated_by="demo/items:2", namespace=NS, registry=registry)
        route("items", None, None, None, version=2, namespace=NS, registry=registry)
        assert _validator(registry).validate().by_code("deprecation_target") == []


class TestUnusedTypes:
    def test_unreachable_type_reported_as_info(self, registry):
        @struct(namespace=NS, registry=registry)
        class Used(Struct):
            x: Int32

        @struct(namespace=NS, registry=registry)
        class Unused(Struct):
            y: Int32

        route("get", None, Used, None, namespace=NS, registry=registry)
        report = _validator(registry, report_unused_types=True).validate()
        assert [i.ref for i in report.by_code("unused_type")] == ["demo.Unused"]
        assert report.ok

    def test_disabled(self, registry):
        @struct(namespace=NS, registry=registry)
        class Unused(Struct):
            y: Int32

        assert _validator(registry).validate().infos == []


class TestValidateOrRaise:
    def test_raises_with_issues(self, registry):
        @struct(namespace=NS, registry=registry)
        class Page(Struct):
            cursor: String

        route("list", None, Page, None, namespace=NS, registry=registry)
        with pytest.raises(SurfaceSchemaError) as exc:
            _validator(registry).validate_or_raise()
        assert exc.value.issues[0]["code"] == "pagination_shape"

    def test_returns_report_when_ok(self, registry):
        route("ping", None, None, None, namespace=NS, registry=registry)
        assert _validator(registry).validate_or_raise().ok
