"""
Settings for documentation generation.

Values resolve in this order:

1. Explicit overrides passed to `load_settings`
2. Environment variables (SWAGDOC_API_VERSION, SWAGDOC_PRODUCES, ...)
3. `swagdoc.toml`, or the `[tool.swagdoc]` table of `pyproject.toml`
4. Built-in defaults
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from swagdoc.errors import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "SWAGDOC_"
CONFIG_FILENAME = "swagdoc.toml"

_LIST_FIELDS = ("produces", "consumes", "protocols", "security_dependencies")


class Settings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    api_version: str = "1.0"
    base_path: str = "/"
    produces: list[str] = Field(default_factory=lambda: ["application/json"])
    consumes: list[str] = Field(default_factory=lambda: ["application/json"])
    protocols: list[str] = Field(default_factory=lambda: ["http"])
    # Depends(...) targets that mark an operation as secured
    security_dependencies: list[str] = Field(
        default_factory=lambda: ["oauth2_scheme", "get_current_user", "api_key_header"]
    )
    ordering: Literal["path", "position"] = "path"
    max_files: Optional[int] = None

    @field_validator(*_LIST_FIELDS, mode="before")
    @classmethod
    def _split_csv(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [v.strip() for v in value.split(",") if v.strip()]
        return value


def _read_file_config(repo_root: Path, config_path: Optional[Path]) -> dict[str, Any]:
    if config_path is not None:
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
        return _load_toml(config_path)

    own = repo_root / CONFIG_FILENAME
    if own.is_file():
        return _load_toml(own)

    pyproject = repo_root / "pyproject.toml"
    if pyproject.is_file():
        data = _load_toml(pyproject)
        return dict(data.get("tool", {}).get("swagdoc", {}))

    return {}


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as fh:
            data = tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Could not read {path}: {exc}") from exc
    logger.debug("Loaded config from %s", path)
    return data


def _read_env(environ: Mapping[str, str]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for name in Settings.model_fields:
        key = ENV_PREFIX + name.upper()
        if key in environ:
            out[name] = environ[key]
    return out


def load_settings(
    repo_root: Path,
    config_path: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    data = _read_file_config(repo_root, config_path)
    data.update(_read_env(os.environ if environ is None else environ))
    data.update({k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        return Settings(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid swagdoc configuration: {exc}") from exc
