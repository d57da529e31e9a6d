"""Validation and analysis result models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from persistx.typing.models.definition import FormDefinition


class ValidationIssue(BaseModel):
    """One rule violation for one field."""

    model_config = ConfigDict(extra="forbid")

    field: str
    message: str


class ValidationResult(BaseModel):
    """Outcome of `validate_payload`; never raised."""

    model_config = ConfigDict(extra="forbid")

    ok: bool
    errors: list[ValidationIssue] = Field(default_factory=list)


class AnalyzeResult(BaseModel):
    """Side-effect free preview of the save pipeline."""

    model_config = ConfigDict(extra="forbid")

    definition: FormDefinition
    version: int
    validation: ValidationResult
    normalized: dict[str, Any]
    mapped: dict[str, Any]
    unknown_in_payload: list[str] = Field(default_factory=list)


class ModelValidationResult(BaseModel):
    """Outcome of checking a payload against a caller-supplied pydantic model."""

    model_config = ConfigDict(extra="forbid")

    ok: bool
    data: Any = Field(default=None, description="Validated model instance when `ok`.")
    issues: list[dict[str, Any]] = Field(default_factory=list)
