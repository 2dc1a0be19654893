"""Manifest models for application specifications."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class BuildCmd(BaseModel):
    """A single build step. impactmap never runs or interprets it."""

    model_config = ConfigDict(frozen=True)

    cmd: str
    args: list[str] = Field(default_factory=list)


class AppSpec(BaseModel):
    """Raw contents of one application manifest."""

    name: str = Field(description="Application name, unique within a snapshot")
    build: dict[str, BuildCmd] = Field(
        default_factory=dict,
        description="Build step name -> build command",
    )
    dependencies: list[str] = Field(
        default_factory=list,
        description="Names of applications this application requires",
    )
    properties: dict[str, Any] = Field(
        default_factory=dict,
        description="Free-form properties passed through unchanged",
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        name = v.strip()
        if not name:
            msg = "name must be a non-empty string"
            raise ValueError(msg)
        return name

    @field_validator("build", "dependencies", "properties", mode="before")
    @classmethod
    def empty_as_default(cls, v: Any, info: ValidationInfo) -> Any:
        """YAML keys written without a value load as None."""
        if v is None:
            return [] if info.field_name == "dependencies" else {}
        return v


__all__ = ["AppSpec", "BuildCmd"]
