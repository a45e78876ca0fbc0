from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import BackupError

DEFAULT_API_URL = "https://api.github.com"


class ConfigurationError(BackupError):
    """Raised when the backup configuration is missing or invalid."""


def expand_path(value: str) -> Path:
    return Path(os.path.expandvars(value)).expanduser().absolute()


class BackupConfig(BaseModel):
    git_access_token: str = Field(..., repr=False, description="GitHub OAuth2 access token.")
    target_organization_name: str = Field(..., description="Login of the organization to back up.")
    backup_dir: Optional[Path] = Field(
        default=None,
        description="Destination directory. A timestamped one under project_root is used when omitted.",
    )
    ssh_key_path: Optional[Path] = None
    api_url: str = DEFAULT_API_URL
    project_root: Path = Field(default_factory=Path.cwd)
    log_level: str = "INFO"

    @field_validator("git_access_token", "target_organization_name")
    @classmethod
    def _require_value(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @field_validator("backup_dir", "ssh_key_path", mode="before")
    @classmethod
    def _expand_optional_path(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return expand_path(str(value))

    @field_validator("project_root", mode="before")
    @classmethod
    def _expand_project_root(cls, value: Any) -> Any:
        if value is None or value == "":
            return Path.cwd()
        return expand_path(str(value))

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        return value.upper()


def read_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Unable to read configuration file {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")

    token_env = raw.pop("git_access_token_env", None)
    if token_env and not raw.get("git_access_token"):
        raw["git_access_token"] = os.getenv(token_env)
    return raw


def load_config(overrides: Dict[str, Any], path: Optional[Path] = None) -> BackupConfig:
    """Merge the optional YAML file with explicit overrides into a BackupConfig.

    Overrides that are ``None`` leave the file value in place.
    """
    values: Dict[str, Any] = read_config_file(path) if path else {}
    values.update({key: value for key, value in overrides.items() if value is not None})

    for required in ("git_access_token", "target_organization_name"):
        if not values.get(required):
            raise ConfigurationError(f"Missing required setting '{required}'")

    try:
        return BackupConfig.model_validate(values)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc
