"""Starter schema file generation."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, TextIO

from persistx import logger
from persistx.exceptions import SchemaFileError
from persistx.schema_store import SCHEMA_FILE_VERSION, dump_json


def _required_string(key: str) -> dict[str, Any]:
    return {"key": key, "type": "string", "rules": [{"kind": "required"}]}


def _definition(form_key: str, version: int, collection: str, fields: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "formKey": form_key,
        "version": version,
        "collection": collection,
        "docIdStrategy": {"kind": "uid"},
        "writeMode": "upsert",
        "allowUnknownFields": False,
        "fields": fields,
    }


def build_starter_schema() -> dict[str, Any]:
    """Return a two-form, two-version schema showing one rename per form.

    `petProfile` renames `petType` to `type` in v2 and `profile` renames
    `phoneNumber` to `phone`.

    Returns:
        dict[str, Any]: Schema document in the `{persistx, definitions}` shape.
    """
    age = {"key": "age", "type": "number", "nullable": True}
    return {
        "persistx": SCHEMA_FILE_VERSION,
        "definitions": [
            _definition(
                "petProfile",
                1,
                "petProfiles",
                [_required_string("petName"), _required_string("petType"), dict(age)],
            ),
            _definition(
                "petProfile",
                2,
                "petProfiles",
                [_required_string("petName"), _required_string("type"), dict(age)],
            ),
            _definition(
                "profile",
                1,
                "profiles",
                [
                    _required_string("firstName"),
                    _required_string("lastName"),
                    {"key": "phoneNumber", "type": "string", "nullable": True},
                ],
            ),
            _definition(
                "profile",
                2,
                "profiles",
                [
                    _required_string("firstName"),
                    _required_string("lastName"),
                    {"key": "phone", "type": "string", "nullable": True},
                ],
            ),
        ],
    }


def run_init(file: Path, *, force: bool = False, out: TextIO | None = None) -> Path:
    """Write the starter schema file.

    Args:
        file (Path): Destination, relative to the working directory.
        force (bool): Overwrite an existing file.
        out (TextIO | None): Progress stream, standard output by default.

    Raises:
        SchemaFileError: If the file exists and `force` is not set.

    Returns:
        Path: Absolute path of the written file.
    """
    target = (Path.cwd() / file).resolve()
    if target.exists() and not force:
        raise SchemaFileError(message=f"Schema file already exists: {target} (use --force to overwrite)")

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(dump_json(build_starter_schema()), encoding="utf-8")
    logger.info("Starter schema written", extra={"schema_path": str(target)})
    print(f"created: {target}", file=out or sys.stdout)
    return target
