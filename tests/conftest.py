"""
apisurface Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

from pathlib import Path

import pytest

from apisurface.engine.registry import SchemaRegistry, load_builtin_surface


# ---------------------------------------------------------------------------
# Global singletons — reset between tests
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_globals():
    """Reset the loaded config and the global file logger around every test."""
    import apisurface.engine.config as cfg_mod
    import apisurface.engine.logging as log_mod

    cfg_mod._config = None
    log_mod._file_logger = None
    yield
    cfg_mod._config = None
    log_mod._file_logger = None


@pytest.fixture
def registry():
    """A private registry; declarations made with registry=... land here only."""
    return SchemaRegistry()


@pytest.fixture(scope="session")
def surface():
    """The global registry with every built-in namespace loaded."""
    return load_builtin_surface()


@pytest.fixture
def project_root(tmp_path):
    """
    Create a minimal project tree with apisurface.yaml.
    Returns the root Path.
    """
    root = tmp_path / "project"
    root.mkdir()
    (root / "apisurface.yaml").write_text(
        "surface:\n"
        "  name: Test surface\n"
        "  environment: dev\n"
        "namespaces:\n"
        "  - async\n"
        "  - files\n"
        "  - sharing\n"
        "  - team\n"
        "  - file_requests\n"
        "  - paper\n"
        "logging:\n"
        "  level: DEBUG\n"
        "  directory: logs\n"
        "  file_logging: true\n"
        "validation:\n"
        "  report_unused_types: false\n"
        "generate:\n"
        "  output_dir: generated\n",
        encoding="utf-8",
    )
    return root


@pytest.fixture
def log_dir(tmp_path) -> Path:
    return tmp_path / "logs"
