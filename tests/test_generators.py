"""Unit tests for apisurface.generators — Stone IDL and JSON descriptors."""

import json
from typing import List, Optional

import pytest
from pydantic import Field

from apisurface.decorators import declare_namespace, route, struct, union
from apisurface.engine.introspect import find_field
from apisurface.engine.logging import init_logging
from apisurface.engine.types import Boolean, Int32, String, Struct, Tag, Union
from apisurface.generators import GENERATORS, DescriptorGenerator, StoneGenerator
from apisurface.generators.common import namespace_imports, wrap_doc
from apisurface.generators.stone_generator import field_type


@pytest.fixture
def demo(registry):
    """A small namespace exercising every construct the generators render."""
    declare_namespace("demo", doc="Demo namespace.", registry=registry)

    @union(namespace="demo", registry=registry)
    class Colour(Union):
        """A colour."""

        red = Tag(doc="Warm.")
        blue = Tag()

    @union(namespace="demo", registry=registry)
    class Shade(Colour):
        green = Tag()

    @struct(namespace="demo", registry=registry)
    class Item(Struct):
        """An item."""

        name: String = Field(min_length=1, description="Item name.")
        colour: Colour = Field(default=Colour.red, description="Item colour.")
        count: Int32 = Field(default=0, ge=0)
        tags: List[String] = Field(default_factory=list, max_length=5)
        note: Optional[String] = None

    @struct(namespace="demo", registry=registry)
    class Special(Item):
        special: Boolean = True

    @union(namespace="demo", registry=registry)
    class Outcome(Union, closed=True):
        found = Tag(Item)
        missing = Tag(String)

    @union(namespace="demo", registry=registry)
    class ItemError(Union):
        not_found = Tag()

    route("items/get", Item, Outcome, ItemError, namespace="demo", registry=registry, doc="Fetch an item.")
    route("items/get", Item, Special, ItemError, version=2, namespace="demo", registry=registry,
          auth="team", scope="items.read")
    route("items/old", None, None, None, deprecated_by="items/get:2", namespace="demo", registry=registry)
    route("items/gone", None, None, None, deprecated=True, namespace="demo", registry=registry)
    return registry


class TestCommon:
    def test_wrap_doc(self):
        assert wrap_doc("") == []
        assert wrap_doc("a  b\n c") == ["a b c"]

    def test_namespace_imports(self, surface):
        assert namespace_imports(surface, "team") == ["async", "files"]
        assert namespace_imports(surface, "async") == []

    def test_generator_table(self):
        assert GENERATORS == {"stone": StoneGenerator, "descriptor": DescriptorGenerator}


class TestStoneGenerator:
    def test_namespace_header(self, demo):
        text = StoneGenerator(demo).render_namespace("demo")
        assert text.startswith('namespace demo\n    "Demo namespace."\n')
        assert text.endswith("\n")
        assert "import " not in text

    def test_union(self, demo):
        text = StoneGenerator(demo).render_namespace("demo")
        assert 'union Colour\n    "A colour."\n\n    red\n        "Warm."\n    blue\n' in text
        assert "union Shade extends Colour\n    green\n" in text
        assert "union_closed Outcome\n    found Item\n    missing String\n" in text

    def test_struct_fields(self, demo):
        text = StoneGenerator(demo).render_namespace("demo")
        assert "struct Item\n" in text
        assert "    name String(min_length=1)\n" in text
        assert "    colour Colour = red\n" in text
        assert "    count Int32(min_value=0) = 0\n" in text
        assert "    tags List(String, max_items=5)\n" in text
        assert "    note String?\n" in text

    def test_struct_extension_lists_own_fields(self, demo):
        text = StoneGenerator(demo).render_namespace("demo")
        assert "struct Special extends Item\n    special Boolean = true\n" in text

    def test_routes(self, demo):
        text = StoneGenerator(demo).render_namespace("demo")
        assert 'route items/get (Item, Outcome, ItemError)\n    "Fetch an item."\n' in text
        assert 'route items/get:2 (Item, Special, ItemError)\n\n    attrs\n        auth = "team"\n' in text
        assert '        scope = "items.read"\n' in text
        assert "route items/old (Void, Void, Void) deprecated by items/get:2\n" in text
        assert "route items/gone (Void, Void, Void) deprecated\n" in text

    def test_field_type_helper(self, demo):
        item = demo.resolve("demo.Item").target
        assert field_type(find_field(item, "note"), "demo") == "String?"

    def test_builtin_team(self, surface):
        text = StoneGenerator(surface).render_namespace("team")
        assert "import async\nimport files\n" in text
        assert "union_closed TeamFolderGetInfoItem\n" in text
        assert "struct TeamFolderArchiveArg extends TeamFolderIdArg\n" in text
        assert "union_closed TeamFolderArchiveLaunch extends async.LaunchResultBase\n" in text
        assert "    limit UInt32(min_value=1, max_value=1000) = 1000\n" in text

    def test_builtin_file_requests(self, surface):
        text = StoneGenerator(surface).render_namespace("file_requests")
        assert "route list:2 (ListFileRequestsArg, ListFileRequestsV2Result, ListFileRequestsError)" in text
        assert "    deadline UpdateFileRequestDeadline = no_update\n" in text

    def test_builtin_paper_deprecated(self, surface):
        text = StoneGenerator(surface).render_namespace("paper")
        assert "route docs/archive (RefPaperDoc, Void, DocLookupError) deprecated\n" in text
        assert "route docs/users/add (AddPaperDocUser, List(AddPaperDocUserMemberResult), DocLookupError)" in text

    def test_generate_writes_file(self, demo, tmp_path, log_dir):
        file_logger = init_logging(log_dir=str(log_dir))
        gen = StoneGenerator(demo, output_dir=str(tmp_path / "stone"))
        path = gen.generate_namespace("demo")
        assert path == tmp_path / "stone" / "demo.stone"
        assert path.read_text(encoding="utf-8") == gen.render_namespace("demo")

        entries = file_logger.query("namespaces", "generation")
        assert entries[0]["generator"] == "stone"
        assert entries[0]["object_ref"] == "demo"

    def test_generate_all(self, demo, tmp_path):
        assert StoneGenerator(demo, output_dir=str(tmp_path)).generate_all() == 1
        assert (tmp_path / "demo.stone").exists()


class TestDescriptorGenerator:
    def test_describe_union(self, demo):
        data = DescriptorGenerator(demo).describe_type(demo.resolve("demo.Shade").target)
        assert data["ref"] == "demo.Shade"
        assert data["kind"] == "union"
        assert data["extends"] == "demo.Colour"
        assert data["open"] is True
        assert [t["name"] for t in data["tags"]] == ["red", "blue", "green", "other"]
        assert data["tags"][-1]["catch_all"] is True

    def test_describe_struct_includes_inherited_fields(self, demo):
        data = DescriptorGenerator(demo).describe_type(demo.resolve("demo.Special").target)
        assert [f["name"] for f in data["fields"]] == ["name", "colour", "count", "tags", "note", "special"]
        colour = data["fields"][1]
        assert colour == {
            "name": "colour",
            "type": "Colour",
            "required": False,
            "default": "red",
            "description": "Item colour.",
            "constraints": {},
        }
        assert data["fields"][0]["required"] is True
        assert data["fields"][0]["constraints"] == {"min_length": 1}

    def test_describe_route(self, demo):
        data = DescriptorGenerator(demo).describe_route(demo.resolve("demo/items/get:2").target)
        assert data["ref"] == "demo/items/get:2"
        assert data["url_path"] == "/2/demo/items/get_v2"
        assert data["version"] == 2
        assert data["attrs"] == {"auth": "team", "style": "rpc", "host": "api", "scope": "items.read"}
        assert data["deprecated"] is False

    def test_describe_namespace(self, surface):
        data = DescriptorGenerator(surface).describe_namespace("file_requests")
        assert data["namespace"] == "file_requests"
        assert len(data["routes"]) == 9
        refs = [r["ref"] for r in data["routes"]]
        assert "file_requests/list:2" in refs

    def test_generate_writes_json(self, surface, tmp_path):
        gen = DescriptorGenerator(surface, output_dir=str(tmp_path))
        path = gen.generate_namespace("team")
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["imports"] == ["async", "files"]
        status = next(t for t in data["types"] if t["name"] == "TeamFolderStatus")
        assert [t["name"] for t in status["tags"]] == ["active", "archived", "archive_in_progress", "other"]
