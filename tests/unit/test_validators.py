from __future__ import annotations

import asyncio
from typing import Literal

import pytest
from pydantic import BaseModel, Field

from persistx.adapters import MemoryAdapter
from persistx.engine import Engine
from persistx.exceptions import HookFailedError
from persistx.hooks import HookInput, HookRegistry
from persistx.registry import DefinitionRegistry
from persistx.validators import validate_with_model


class _Pet(BaseModel):
    petName: str = Field(min_length=1)  # noqa: N815
    petType: Literal["Cat", "Dog"]  # noqa: N815


def test_validate_with_model_returns_instance() -> None:
    result = validate_with_model(_Pet, {"petName": "Rex", "petType": "Dog"})

    assert result.ok is True
    assert result.data == _Pet(petName="Rex", petType="Dog")
    assert result.issues == []


def test_validate_with_model_collects_issues() -> None:
    result = validate_with_model(_Pet, {"petName": ""})

    assert result.ok is False
    assert result.data is None
    assert [issue["loc"] for issue in result.issues] == [("petName",), ("petType",)]
    assert [issue["type"] for issue in result.issues] == ["string_too_short", "missing"]


def test_validate_with_model_rejects_non_object() -> None:
    result = validate_with_model(_Pet, ["Rex"])

    assert result.ok is False
    assert result.issues[0]["type"] == "model_type"


def test_model_check_inside_hook_blocks_save(pet_v1) -> None:
    def _strict_pet(hook_input: HookInput) -> None:
        result = validate_with_model(_Pet, hook_input.payload)
        if not result.ok:
            raise ValueError(f"{len(result.issues)} issue(s)")

    definition = {**pet_v1, "hooks": [{"key": "beforeSave", "name": "strictPet"}]}
    adapter = MemoryAdapter()
    engine = Engine(
        adapter=adapter,
        registry=DefinitionRegistry([definition]),
        hooks=HookRegistry({"strictPet": _strict_pet}),
    )

    with pytest.raises(HookFailedError, match="1 issue"):
        asyncio.run(engine.upsert("petProfile", {"petName": "Rex", "petType": "Lizard"}, uid="u"))
    assert adapter.db == {}
