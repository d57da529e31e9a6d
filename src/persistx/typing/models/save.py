"""Save request/result and adapter contract models."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field

from persistx.typing.enums import WriteMode
from persistx.typing.models.definition import AutoIdStrategy, FixedIdStrategy

AdapterIdStrategy = Annotated[AutoIdStrategy | FixedIdStrategy, Field(discriminator="kind")]


class SaveContext(BaseModel):
    """Caller context forwarded to hooks and id resolution."""

    model_config = ConfigDict(extra="forbid")

    uid: str | None = None
    now_iso: str | None = None


class DocOverride(BaseModel):
    """Per-call override of the definition's storage location."""

    model_config = ConfigDict(extra="forbid")

    collection: str | None = None


class SaveRequest(BaseModel):
    """Input of `Engine.save`."""

    model_config = ConfigDict(extra="forbid")

    form_key: str
    payload: dict[str, Any] = Field(default_factory=dict)
    schema_version: int | None = Field(default=None, description="Defaults to the latest registered version.")
    mode: WriteMode | None = Field(default=None, description="Defaults to the definition write mode.")
    doc: DocOverride | None = None
    context: SaveContext = Field(default_factory=SaveContext)


class AdapterSaveRequest(BaseModel):
    """Adapter-facing write request produced by the pipeline."""

    model_config = ConfigDict(extra="forbid")

    form_key: str | None = None
    collection: str
    id_strategy: AdapterIdStrategy
    mode: WriteMode
    data: dict[str, Any]
    schema_version: int


class SaveResult(BaseModel):
    """Outcome of a successful adapter write."""

    model_config = ConfigDict(extra="forbid")

    collection: str
    id: str
    mode: WriteMode
    schema_version: int
    saved_at: str
