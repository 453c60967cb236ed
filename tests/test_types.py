"""Unit tests for apisurface.engine.types — Struct, Union, Tag, primitive aliases."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from pydantic import Field, ValidationError

from apisurface.engine.errors import SurfaceMatchError, SurfaceSchemaError, SurfaceValidationError
from apisurface.engine.types import (
    Boolean,
    Int32,
    String,
    Struct,
    Tag,
    Timestamp,
    UInt32,
    Union,
    format_timestamp,
    struct_parent,
    union_parent,
)


class Status(Union):
    active = Tag()
    archived = Tag()


class Lookup(Union):
    malformed_path = Tag(Optional[String])
    not_found = Tag()


class Closed(Union, closed=True):
    one = Tag()
    two = Tag(Int32)


class Child(Closed):
    three = Tag()


class Point(Struct):
    x: Int32
    y: Int32 = 0
    label: Optional[String] = None


class Point3(Point):
    z: Int32 = 0


class Wrapper(Union):
    point = Tag(Point)
    count = Tag(UInt32)


class Holder(Struct):
    status: Status
    wrapper: Optional[Wrapper] = None


class Stamp(Struct):
    at: Timestamp


class Page(Struct):
    limit: UInt32 = Field(default=100, ge=1, le=1000)
    offset: Int32 = Field(default=0, ge=-(2 ** 40))


class Options(Struct):
    verbose: Optional[Boolean] = None


class Outcome(Union):
    done = Tag(Options)
    skipped = Tag(Optional[Options])


class TestPrimitives:
    def test_int32_bounds(self):
        assert Point(x=2 ** 31 - 1).x == 2 ** 31 - 1
        with pytest.raises(ValidationError):
            Point(x=2 ** 31)

    def test_uint32_rejects_negative(self):
        with pytest.raises(SurfaceValidationError):
            Wrapper.count(-1)

    def test_field_bounds_tighter_than_primitive(self):
        assert Page(limit=1000).limit == 1000
        with pytest.raises(ValidationError):
            Page(limit=0)
        with pytest.raises(ValidationError):
            Page(limit=1001)

    def test_primitive_range_kept_under_wider_field_bounds(self):
        assert Page(offset=-(2 ** 31)).offset == -(2 ** 31)
        with pytest.raises(ValidationError, match="out of range for Int32"):
            Page(offset=-(2 ** 31) - 1)

    def test_timestamp_parses_wire_format(self):
        stamp = Stamp(at="2024-01-31T12:00:00Z")
        assert stamp.at == datetime(2024, 1, 31, 12, 0, tzinfo=timezone.utc)

    def test_timestamp_serializes_wire_format(self):
        stamp = Stamp(at=datetime(2024, 1, 31, 12, 0, 5, tzinfo=timezone.utc))
        assert stamp.to_wire() == {"at": "2024-01-31T12:00:05Z"}

    def test_format_timestamp_converts_to_utc(self):
        plus_two = timezone(timedelta(hours=2))
        assert format_timestamp(datetime(2024, 1, 1, 2, 0, tzinfo=plus_two)) == "2024-01-01T00:00:00Z"


class TestStruct:
    def test_to_wire_omits_none(self):
        assert Point(x=1).to_wire() == {"x": 1, "y": 0}

    def test_unknown_fields_ignored(self):
        p = Point(x=1, colour="red")
        assert not hasattr(p, "colour")
        assert "colour" not in p.to_wire()

    def test_assignment_is_validated(self):
        p = Point(x=1)
        with pytest.raises(ValidationError):
            p.x = 2 ** 40

    def test_extension_carries_parent_fields(self):
        p = Point3(x=1, z=3)
        assert p.to_wire() == {"x": 1, "y": 0, "z": 3}
        assert struct_parent(Point3) is Point
        assert struct_parent(Point) is None


class TestUnionBasics:
    def test_void_tag_attribute_is_instance(self):
        status = Status.active
        assert isinstance(status, Status)
        assert status.tag == "active"
        assert status.is_active()
        assert not status.is_archived()

    def test_open_union_has_catch_all_last(self):
        assert Status.tag_names() == ["active", "archived", "other"]
        assert Status.is_open()
        assert Status.get_tag("other").catch_all

    def test_closed_union_has_no_catch_all(self):
        assert Closed.tag_names() == ["one", "two"]
        assert not Closed.is_open()

    def test_extension_inherits_tags_and_closedness(self):
        assert Child.tag_names() == ["one", "two", "three"]
        assert not Child.is_open()
        assert union_parent(Child) is Closed

    def test_payload_constructor(self):
        assert Wrapper.count(3).value == 3
        assert Wrapper.point({"x": 1}).value == Point(x=1)

    def test_optional_payload(self):
        assert Lookup.malformed_path(None).value is None
        assert Lookup.malformed_path("/a").get_value() == "/a"

    def test_void_tag_rejects_value(self):
        with pytest.raises(SurfaceValidationError, match="takes no value"):
            Status("active", 1)

    def test_unknown_tag_rejected(self):
        with pytest.raises(SurfaceValidationError, match="Unknown tag"):
            Status("bogus")

    def test_get_value_on_void_tag(self):
        with pytest.raises(AttributeError):
            Status.active.get_value()

    def test_equality_and_hash(self):
        assert Status.active == Status("active")
        assert Status.active != Status.archived
        assert len({Status.active, Status("active"), Status.archived}) == 2
        assert Wrapper.count(1) != Wrapper.count(2)

    def test_repr(self):
        assert repr(Status.active) == "Status.active"
        assert repr(Wrapper.count(2)) == "Wrapper('count', 2)"

    def test_reserved_tag_name(self):
        with pytest.raises(SurfaceSchemaError, match="shadows"):
            class Bad(Union):
                value = Tag()

    def test_closed_cannot_extend_open(self):
        with pytest.raises(SurfaceSchemaError, match="cannot extend an open union"):
            class Bad(Status, closed=True):
                deleted = Tag()


class TestMatch:
    def test_open_union_requires_fallback(self):
        with pytest.raises(SurfaceMatchError) as exc:
            Status.active.match(active=lambda: 1, archived=lambda: 2)
        assert exc.value.missing_tags == ["other"]

    def test_dispatch_void(self):
        result = Status.archived.match(active=lambda: 1, archived=lambda: 2, other=lambda u: 0)
        assert result == 2

    def test_other_handler_receives_union(self):
        result = Status("other").match(active=lambda: 1, other=lambda u: u.tag)
        assert result == "other"

    def test_default_handler(self):
        assert Status.archived.match(active=lambda: 1, default=lambda u: u.tag) == "archived"

    def test_closed_union_requires_coverage(self):
        with pytest.raises(SurfaceMatchError) as exc:
            Closed.one.match(one=lambda: 1)
        assert exc.value.missing_tags == ["two"]

    def test_closed_union_full_coverage(self):
        assert Closed.two(5).match(one=lambda: 0, two=lambda v: v * 2) == 10

    def test_undeclared_handler(self):
        with pytest.raises(SurfaceMatchError, match="undeclared"):
            Status.active.match(bogus=lambda: 1, other=lambda u: 0)


class TestUnionWire:
    def test_void_to_wire(self):
        assert Status.archived.to_wire() == {".tag": "archived"}

    def test_struct_payload_flattened(self):
        assert Wrapper.point(Point(x=1)).to_wire() == {".tag": "point", "x": 1, "y": 0}

    def test_primitive_payload_keyed_by_tag(self):
        assert Wrapper.count(3).to_wire() == {".tag": "count", "count": 3}

    def test_from_bare_string(self):
        assert Status.from_wire("active") == Status.active

    def test_unknown_tag_on_open_union(self):
        assert Status.from_wire({".tag": "deleted"}).is_other()

    def test_unknown_tag_on_closed_union(self):
        with pytest.raises(SurfaceValidationError, match="closed union"):
            Closed.from_wire({".tag": "four"})

    def test_missing_tag(self):
        with pytest.raises(SurfaceValidationError, match="Missing '.tag'"):
            Status.from_wire({"active": True})

    def test_struct_payload_from_wire(self):
        assert Wrapper.from_wire({".tag": "point", "x": 2}).value == Point(x=2)

    def test_optional_payload_absent(self):
        assert Lookup.from_wire({".tag": "malformed_path"}).value is None

    def test_empty_struct_payload_round_trip(self):
        done = Outcome.done(Options())
        assert done.to_wire() == {".tag": "done"}
        assert Outcome.from_wire(done.to_wire()) == done
        assert Outcome.from_wire("done").value == Options()

    def test_optional_struct_payload_absent(self):
        assert Outcome.from_wire({".tag": "skipped"}).value is None
        assert Outcome.from_wire({".tag": "skipped", "verbose": True}).value == Options(verbose=True)

    def test_required_struct_fields_still_checked(self):
        with pytest.raises(SurfaceValidationError, match="Invalid payload"):
            Wrapper.from_wire({".tag": "point"})

    def test_supertype_value_accepted(self):
        child = Child.from_wire(Closed.one)
        assert isinstance(child, Child)
        assert child.is_one()

    def test_union_as_struct_field(self):
        assert Holder(status={".tag": "archived"}).status == Status.archived
        assert Holder(status="active").to_wire() == {"status": {".tag": "active"}}

    def test_nested_union_serialization(self):
        holder = Holder(status=Status.active, wrapper=Wrapper.count(2))
        assert holder.to_wire() == {
            "status": {".tag": "active"},
            "wrapper": {".tag": "count", "count": 2},
        }
