from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

CONFIG_FILENAME = "impactmap.toml"

DEFAULT_MANIFEST_NAME = ".impactmap.yml"

OutputFormat = Literal["text", "json", "jsonl"]


class ImpactMapConfig(BaseModel):
    """Configuration for impactmap resolution and output."""

    model_config = ConfigDict(extra="forbid")

    manifest_name: str = Field(
        default=DEFAULT_MANIFEST_NAME,
        description="File name that marks a directory as an application",
    )
    default_reference: str = Field(
        default="main",
        description="Reference a diff is taken against when none is given",
    )
    output_format: OutputFormat = Field(
        default="text",
        description="Default output format for describe commands",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Glob patterns for changed paths to ignore before attribution",
    )

    @field_validator("manifest_name")
    @classmethod
    def validate_manifest_name(cls, v: Any) -> Any:
        """Manifest name must be a bare file name.

        Note: a name containing a separator could never match a tree entry.
        """
        if not isinstance(v, str) or not v.strip():
            msg = "manifest_name must be a non-empty file name"
            raise ValueError(msg)
        if "/" in v or "\\" in v:
            msg = f"manifest_name '{v}' must not contain a path separator"
            raise ValueError(msg)
        return v

    @field_validator("default_reference")
    @classmethod
    def validate_default_reference(cls, v: str) -> str:
        if not v.strip():
            msg = "default_reference must be a non-empty reference"
            raise ValueError(msg)
        return v


class ConfigError(Exception):
    """Raised when config file exists but cannot be parsed."""


def load_config(root: Path) -> ImpactMapConfig:
    """Load configuration from impactmap.toml if it exists."""
    config_path = Path(root) / CONFIG_FILENAME

    if not config_path.is_file():
        return ImpactMapConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return ImpactMapConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e
