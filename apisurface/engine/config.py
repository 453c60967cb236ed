"""
apisurface Configuration — Load and validate apisurface.yaml.

Usage:
    from apisurface.engine.config import load_config, get_config, get_project_root
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from apisurface.engine.errors import SurfaceConfigError

CONFIG_FILENAME = "apisurface.yaml"

DEFAULT_NAMESPACES = ["async", "files", "sharing", "team", "file_requests", "paper"]


# ---------------------------------------------------------------------------
# Pydantic models for apisurface.yaml
# ---------------------------------------------------------------------------

class SurfaceSection(BaseModel):
    name: str = "Dropbox API surface"
    environment: str = "dev"

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".apisurface/logs"
    file_logging: bool = True

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level '{v}'")
        return v


class ValidationConfig(BaseModel):
    require_open_errors: bool = False
    report_unused_types: bool = True
    cursor_fields: List[str] = Field(default_factory=lambda: ["cursor"])
    has_more_field: str = "has_more"
    conflict_tags: List[str] = Field(default_factory=lambda: ["revision_mismatch"])
    revision_fields: List[str] = Field(default_factory=lambda: ["revision", "version"])
    continue_suffix: str = "/continue"
    poll_suffix: str = "/check"


class GenerateConfig(BaseModel):
    output_dir: str = ".apisurface/generated"
    formats: List[str] = Field(default_factory=lambda: ["stone", "descriptor"])

    @field_validator("formats")
    @classmethod
    def validate_formats(cls, v: List[str]) -> List[str]:
        unknown = [f for f in v if f not in ("stone", "descriptor")]
        if unknown:
            raise ValueError(f"unknown generate formats: {unknown}")
        return v


class SurfaceConfig(BaseModel):
    """Root model for apisurface.yaml."""
    surface: SurfaceSection = SurfaceSection()
    namespaces: List[str] = Field(default_factory=lambda: list(DEFAULT_NAMESPACES))
    logging: LoggingConfig = LoggingConfig()
    validation: ValidationConfig = ValidationConfig()
    generate: GenerateConfig = GenerateConfig()

    @property
    def environment(self) -> str:
        return self.surface.environment


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_config: Optional[SurfaceConfig] = None


def _find_project_root() -> Path:
    """Find the project root by looking for apisurface.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILENAME).exists():
            return parent
    return current


def get_project_root() -> Path:
    """Return the project root directory."""
    return _find_project_root()


def load_config(config_path: Optional[str] = None) -> SurfaceConfig:
    """
    Load and validate apisurface.yaml.

    Args:
        config_path: Explicit path to apisurface.yaml. If None, auto-discovers.

    Returns:
        Validated SurfaceConfig instance. Defaults when the file is missing.

    Raises:
        SurfaceConfigError: The file is not valid YAML or fails validation.
    """
    global _config

    if config_path is None:
        config_path = str(_find_project_root() / CONFIG_FILENAME)

    path = Path(config_path)
    if not path.exists():
        _config = SurfaceConfig()
        return _config

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise SurfaceConfigError(f"Invalid YAML in {path}: {e}", path=str(path)) from e

    if not isinstance(raw, dict):
        raise SurfaceConfigError(f"{path} must contain a mapping", path=str(path))

    try:
        _config = SurfaceConfig(**raw)
    except ValidationError as e:
        raise SurfaceConfigError(
            f"Invalid configuration in {path}",
            path=str(path),
            errors=e.errors(include_url=False),
        ) from e
    return _config


def get_config() -> SurfaceConfig:
    """Get the currently loaded config, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the loaded config; the next get_config() reloads it."""
    global _config
    _config = None
