"""
Integration test fixtures — a full project tree on disk.

These tests drive several subsystems together (config, registry, validator,
graph, generators, codec, file logging) against the built-in surface.
Mark with @pytest.mark.integration to skip in unit-only runs.

Run: pytest tests/integration/ -v -m integration
"""

from __future__ import annotations

import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: cross-module workflow over the full surface")


@pytest.fixture
def integration_project(tmp_path):
    """
    Create a project tree with apisurface.yaml that loads the team and
    file_requests namespaces (and their imports) and logs to disk.
    """
    root = tmp_path / "project"
    root.mkdir()
    (root / "apisurface.yaml").write_text(
        "surface:\n"
        "  name: IntegrationSurface\n"
        "  environment: dev\n"
        "namespaces:\n"
        "  - async\n"
        "  - files\n"
        "  - team\n"
        "  - file_requests\n"
        "logging:\n"
        "  level: INFO\n"
        "  directory: " + str(root / "logs") + "\n"
        "validation:\n"
        "  report_unused_types: true\n"
        "generate:\n"
        "  output_dir: " + str(root / "out") + "\n"
        "  formats:\n"
        "    - stone\n"
        "    - descriptor\n",
        encoding="utf-8",
    )
    return root
