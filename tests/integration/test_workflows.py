"""
Integration tests — Cross-module workflows.

These tests verify that the apisurface subsystems work together: a project
config selects namespaces, the validator and graph read the loaded registry,
generators write artifacts, and the codec logs through the file logger.
"""

import json

import pytest

from apisurface.engine import codec
from apisurface.engine.config import load_config
from apisurface.engine.dependency import SchemaGraph
from apisurface.engine.errors import SurfaceValidationError
from apisurface.engine.logging import init_logging, shutdown_logging
from apisurface.engine.registry import load_builtin_surface
from apisurface.engine.validator import SchemaValidator
from apisurface.generators import GENERATORS
from apisurface.namespaces import team


@pytest.fixture
def loaded(integration_project, monkeypatch):
    """Config + registry + file logger for the integration project."""
    monkeypatch.chdir(integration_project)
    config = load_config()
    registry = load_builtin_surface(config.namespaces)
    file_logger = init_logging(config)
    yield config, registry, file_logger
    shutdown_logging()


@pytest.mark.integration
class TestConfigToValidation:
    def test_configured_namespaces_validate(self, loaded):
        config, registry, file_logger = loaded
        report = SchemaValidator(registry, config).validate(config.namespaces)
        assert report.ok
        assert report.namespaces == ["async", "files", "team", "file_requests"]

        runs = file_logger.query("system", "validation")
        assert runs[0]["event"] == "validation_run"
        assert runs[0]["namespaces"] == config.namespaces
        assert runs[0]["errors"] == 0


@pytest.mark.integration
class TestRegistryWithDependencyGraph:
    def test_cross_namespace_impact(self, loaded):
        _, registry, _ = loaded
        graph = SchemaGraph.from_registry(registry)

        impact = graph.impact_analysis("async.LaunchResultBase")
        assert "team/team_folder/archive" in impact["affected_routes"]
        assert "team" in impact["namespaces"]
        assert impact["recommendation"].startswith("Changing async.LaunchResultBase affects")

    def test_graph_has_no_unresolved_refs(self, loaded):
        _, registry, _ = loaded
        assert SchemaGraph.from_registry(registry).unresolved() == []


@pytest.mark.integration
class TestGenerateArtifacts:
    def test_generate_and_read_back(self, loaded):
        config, registry, file_logger = loaded
        written = []
        for fmt in config.generate.formats:
            generator = GENERATORS[fmt](registry, output_dir=f"{config.generate.output_dir}/{fmt}")
            written.append(generator.generate_namespace("file_requests"))

        stone, descriptor = written
        assert stone.read_text(encoding="utf-8").startswith("namespace file_requests\n")
        data = json.loads(descriptor.read_text(encoding="utf-8"))
        assert data["namespace"] == "file_requests"
        assert len(data["routes"]) == 9

        entries = file_logger.query("namespaces", "generation")
        assert {e["generator"] for e in entries} == {"stone", "descriptor"}
        assert all(e["event"] == "generated" for e in entries)


@pytest.mark.integration
class TestRouteRoundTrip:
    def test_list_continue_flow(self, loaded):
        _, registry, _ = loaded
        list_route = registry.resolve("team/team_folder/list").target
        continue_route = registry.resolve("team/team_folder/list/continue").target

        assert codec.encode_arg(list_route, {"limit": 2}) == {"limit": 2}
        page = codec.decode_result(list_route, {
            "team_folders": [{
                "team_folder_id": "123",
                "name": "Marketing",
                "status": {".tag": "archive_in_progress"},
                "is_team_shared_dropbox": False,
                "sync_setting": {".tag": "not_synced"},
                "content_sync_settings": [],
            }],
            "cursor": "ZtkX9_EHj3x7PMkVuFIhwKYXEpwpLwyxp9vMKomUhllil9q7eWiAu",
            "has_more": True,
        })
        assert page.has_more is True
        status = page.team_folders[0].status
        assert status.match(
            active=lambda: "active",
            archive_in_progress=lambda: "busy",
            other=lambda u: "unknown",
        ) == "busy"

        body = codec.encode_arg(continue_route, {"cursor": page.cursor})
        assert body == {"cursor": page.cursor}

    def test_error_envelope_and_failure_log(self, loaded):
        _, registry, file_logger = loaded
        list_route = registry.resolve("team/team_folder/list").target

        envelope = codec.decode_error(list_route, {
            "error_summary": "access_error/no_access/...",
            "error": {".tag": "access_error", "access_error": {".tag": "no_access"}},
        })
        assert envelope.error.tag == "access_error"
        assert envelope.error.value == team.TeamFolderAccessError.no_access

        with pytest.raises(SurfaceValidationError):
            codec.decode_result(list_route, {"cursor": "abc"})
        failures = file_logger.query("structs", "codec")
        assert failures[0]["object_ref"] == "team.TeamFolderListResult"
        assert failures[0]["route_ref"] == "team/team_folder/list"
