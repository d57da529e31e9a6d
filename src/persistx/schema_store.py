"""Schema file loading, definition parsing and round-trip writing."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, cast

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from persistx import logger
from persistx.exceptions import DefinitionInvalidError, SchemaFileError
from persistx.typing.enums import SchemaShape
from persistx.typing.models import FormDefinition

SCHEMA_FILE_VERSION = 1


class SchemaFile(BaseModel):
    """Raw schema document kept untyped for lossless rewriting."""

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    path: Path | None = None
    raw: Any = Field(description="Parsed JSON document, a list or an envelope object.")
    shape: SchemaShape

    @property
    def definitions(self) -> list[Any]:
        """Return the raw definitions array, shared with `raw`."""
        if self.shape == SchemaShape.ARRAY:
            return cast("list[Any]", self.raw)
        return cast("list[Any]", self.raw["definitions"])

    def definition_entries(self) -> list[dict[str, Any]]:
        """Return raw entries that look like definitions.

        Entries without `formKey`, `version` or `fields` are skipped.

        Returns:
            list[dict[str, Any]]: Candidate definition objects, in file order.
        """
        entries: list[dict[str, Any]] = []
        for index, entry in enumerate(self.definitions):
            if not isinstance(entry, dict) or not entry.get("formKey") or not entry.get("version"):
                logger.debug("Skipping schema entry", extra={"index": index, "reason": "missing formKey/version"})
                continue
            if "fields" not in entry:
                logger.debug("Skipping schema entry", extra={"index": index, "reason": "missing fields"})
                continue
            entries.append(entry)
        return entries

    def find_entry(self, form_key: str, version: int) -> dict[str, Any] | None:
        """Return the raw definition object for a form version."""
        for entry in self.definitions:
            if isinstance(entry, dict) and entry.get("formKey") == form_key and entry.get("version") == version:
                return entry
        return None


def parse_schema_document(document: object, *, path: Path | None = None) -> SchemaFile:
    """Wrap a parsed JSON document, detecting its top-level shape.

    Args:
        document (object): Parsed JSON value.
        path (Path | None): Source path, used in messages.

    Raises:
        SchemaFileError: If the document is neither an array nor a `{definitions: []}` object.

    Returns:
        SchemaFile: Wrapped document.
    """
    source = str(path) if path else "<memory>"
    if isinstance(document, list):
        return SchemaFile(path=path, raw=document, shape=SchemaShape.ARRAY)
    if isinstance(document, dict):
        if not isinstance(document.get("definitions"), list):
            raise SchemaFileError(message=f'Schema must contain "definitions": [] ({source})')
        return SchemaFile(path=path, raw=document, shape=SchemaShape.ENVELOPE)
    raise SchemaFileError(message=f"Schema must be an array or {{ definitions: [] }}: {source}")


def read_json_file(path: Path) -> Any:
    """Read and parse a JSON file.

    Args:
        path (Path): File path.

    Raises:
        SchemaFileError: If the file is missing or not valid JSON.

    Returns:
        Any: Parsed JSON value.
    """
    if not path.is_file():
        raise SchemaFileError(message=f"File not found: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SchemaFileError(message=f"Invalid JSON: {path} ({exc})") from exc


def dump_json(document: Any) -> str:
    """Serialize a JSON document with 2-space indentation and a trailing newline."""
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def read_schema_file(path: Path) -> SchemaFile:
    """Load a schema file in either supported shape.

    Args:
        path (Path): Schema file path.

    Returns:
        SchemaFile: Raw document plus shape.
    """
    if not path.is_file():
        raise SchemaFileError(message=f"Schema file not found: {path}")
    return parse_schema_document(read_json_file(path), path=path)


def write_schema_file(schema_file: SchemaFile, path: Path | None = None) -> Path:
    """Write a schema document back, keeping its original shape.

    Args:
        schema_file (SchemaFile): Document to write.
        path (Path | None): Destination, defaults to the path it was read from.

    Raises:
        SchemaFileError: If no destination is known.

    Returns:
        Path: Written file path.
    """
    target = path or schema_file.path
    if target is None:
        raise SchemaFileError(message="No destination path for schema file")
    target.write_text(dump_json(schema_file.raw), encoding="utf-8")
    logger.info("Schema written", extra={"schema_path": str(target), "shape": schema_file.shape.value})
    return target


def parse_definition(entry: FormDefinition | Mapping[str, Any]) -> FormDefinition:
    """Parse one definition at the load boundary.

    Args:
        entry (FormDefinition | Mapping[str, Any]): Typed definition or raw JSON object.

    Raises:
        DefinitionInvalidError: If the definition is structurally invalid.

    Returns:
        FormDefinition: Validated definition.
    """
    if not isinstance(entry, FormDefinition | Mapping):
        raise DefinitionInvalidError("Form definition must be an object", {"entry": repr(entry)})
    try:
        return FormDefinition.model_validate(entry)
    except ValidationError as exc:
        raise _definition_error(entry, exc) from exc


def load_definitions(definitions: Iterable[FormDefinition | Mapping[str, Any]]) -> list[FormDefinition]:
    """Validate in-memory definitions, failing on the first invalid one.

    Args:
        definitions (Iterable[FormDefinition | Mapping[str, Any]]): Definitions to load.

    Returns:
        list[FormDefinition]: Validated definitions, in input order.
    """
    return [parse_definition(entry) for entry in definitions]


def load_definitions_from_file(path: Path) -> list[FormDefinition]:
    """Load and validate every definition of a schema file.

    Args:
        path (Path): Schema file path.

    Returns:
        list[FormDefinition]: Validated definitions.
    """
    return load_definitions(read_schema_file(path).definitions)


def load_definitions_from_dir(dir_path: Path) -> list[FormDefinition]:
    """Load every `*.json` schema file of a directory, sorted by file name.

    Args:
        dir_path (Path): Directory holding schema files.

    Raises:
        SchemaFileError: If the path is not a directory.

    Returns:
        list[FormDefinition]: Validated definitions of all files, flattened.
    """
    if not dir_path.is_dir():
        raise SchemaFileError(message=f"Definitions path is not a directory: {dir_path}")

    definitions: list[FormDefinition] = []
    for file_path in sorted(dir_path.iterdir()):
        if not file_path.is_file() or file_path.suffix.lower() != ".json":
            continue
        definitions.extend(load_definitions_from_file(file_path))
    return definitions


def _definition_error(entry: FormDefinition | Mapping[str, Any], exc: ValidationError) -> DefinitionInvalidError:
    """Convert a pydantic validation error into `DefinitionInvalidError`.

    Args:
        entry (FormDefinition | Mapping[str, Any]): Offending definition.
        exc (ValidationError): Pydantic error.

    Returns:
        DefinitionInvalidError: Error naming the first failing location.
    """
    if isinstance(entry, FormDefinition):
        form_key, version = entry.form_key, entry.version
    else:
        form_key, version = entry.get("formKey", entry.get("form_key")), entry.get("version")

    first = exc.errors(include_url=False)[0]
    location = ".".join(str(part) for part in first["loc"]) or "definition"
    message = str(first["msg"]).removeprefix("Value error, ")
    return DefinitionInvalidError(
        f"Invalid form definition {form_key}@{version}: {location}: {message}",
        {
            "form_key": form_key,
            "version": version,
            "errors": exc.errors(include_url=False, include_context=False),
        },
    )
