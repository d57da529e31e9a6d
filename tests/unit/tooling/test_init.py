from __future__ import annotations

import io
import json
from typing import TYPE_CHECKING

import pytest

from persistx.exceptions import SchemaFileError
from persistx.registry import DefinitionRegistry
from persistx.schema_store import load_definitions_from_file
from persistx.tooling.init import build_starter_schema, run_init

if TYPE_CHECKING:
    from pathlib import Path


def test_starter_schema_declares_two_versions_per_form() -> None:
    schema = build_starter_schema()

    assert schema["persistx"] == 1
    assert [(item["formKey"], item["version"]) for item in schema["definitions"]] == [
        ("petProfile", 1),
        ("petProfile", 2),
        ("profile", 1),
        ("profile", 2),
    ]


def test_run_init_writes_loadable_schema(tmp_path: Path) -> None:
    out = io.StringIO()
    target = run_init(tmp_path / "definitions" / "schema.json", out=out)

    assert target.is_file()
    assert out.getvalue() == f"created: {target}\n"

    registry = DefinitionRegistry(load_definitions_from_file(target))
    assert registry.get_latest("petProfile").version == 2
    assert registry.get("profile", 1).get_field("phoneNumber") is not None


def test_run_init_refuses_to_overwrite(tmp_path: Path) -> None:
    target = tmp_path / "schema.json"
    target.write_text("[]", encoding="utf-8")

    with pytest.raises(SchemaFileError, match="use --force to overwrite"):
        run_init(target, out=io.StringIO())
    assert target.read_text(encoding="utf-8") == "[]"


def test_run_init_force_overwrites(tmp_path: Path) -> None:
    target = tmp_path / "schema.json"
    target.write_text("[]", encoding="utf-8")

    run_init(target, force=True, out=io.StringIO())

    assert len(json.loads(target.read_text(encoding="utf-8"))["definitions"]) == 4
