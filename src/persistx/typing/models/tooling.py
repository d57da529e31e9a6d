"""Schema evolution tooling models."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RenameSuggestion(BaseModel):
    """Proposed alias mapping from a removed key to an added key."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    from_key: str
    to_key: str
    score: float
    ambiguous: bool = False


class RemapRecord(BaseModel):
    """Payload key folded into a canonical key during migration."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    from_key: str
    to_key: str


class MigrationOutcome(BaseModel):
    """Migrated payload plus bookkeeping for the report."""

    model_config = ConfigDict(extra="forbid")

    output: dict[str, Any]
    kept: list[str] = Field(default_factory=list)
    remapped: list[RemapRecord] = Field(default_factory=list)
    dropped: list[str] = Field(default_factory=list)


class FormDiff(BaseModel):
    """Rename analysis of one form between two versions."""

    model_config = ConfigDict(extra="forbid")

    form_key: str
    from_version: int
    to_version: int
    removed: list[str] = Field(default_factory=list)
    added: list[str] = Field(default_factory=list)
    suggestions: list[RenameSuggestion] = Field(default_factory=list)
    accepted: list[RenameSuggestion] = Field(default_factory=list)


class DiffOptions(BaseModel):
    """Inputs of the rename suggestion workflow."""

    model_config = ConfigDict(extra="forbid")

    file: Path
    cwd: Path | None = None
    apply: bool = False
    yes: bool = False
    force_yes: bool = False
    min_score: float = Field(default=0.70, ge=0.0, le=1.0)
    strict: bool = False
    form: str | None = None
    from_version: int | None = Field(default=None, ge=1)
    to_version: int | None = Field(default=None, ge=1)


class MigrateOptions(BaseModel):
    """Inputs of the payload migration workflow."""

    model_config = ConfigDict(extra="forbid")

    file: Path
    cwd: Path | None = None
    form: str
    input: Path
    out: Path | None = None
    from_version: int | None = Field(default=None, ge=1)
    to_version: int | None = Field(default=None, ge=1)
    apply: bool = False
    keep_unknown: bool = False
    report: bool = False
