"""Offline migration of stored payloads to a newer definition shape."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

from persistx import logger
from persistx.exceptions import SchemaFileError
from persistx.schema_store import dump_json, parse_definition, read_json_file, read_schema_file
from persistx.tooling.diff import resolve_base_dir
from persistx.typing.models import MigrationOutcome, RemapRecord

if TYPE_CHECKING:
    from collections.abc import Mapping

    from persistx.typing.models import FormDefinition, MigrateOptions

UNKNOWN_BUCKET = "_unknown"


def build_alias_map(definition: FormDefinition) -> dict[str, str]:
    """Map every key a definition accepts to its field's canonical key.

    Args:
        definition (FormDefinition): Target definition.

    Returns:
        dict[str, str]: Incoming key (canonical or alias) to canonical key.
    """
    alias_map: dict[str, str] = {}
    for field in definition.fields:
        alias_map[field.key] = field.key
        for alias in field.aliases:
            alias_map[alias] = field.key
    return alias_map


def migrate_payload(
    payload: Mapping[str, Any],
    definition: FormDefinition,
    *,
    keep_unknown: bool = False,
) -> MigrationOutcome:
    """Rewrite a payload's keys into the canonical keys of a target definition.

    Keys the definition does not accept are dropped, or collected under
    `_unknown` when `keep_unknown` is set.

    Args:
        payload (Mapping[str, Any]): Stored payload.
        definition (FormDefinition): Target definition.
        keep_unknown (bool): Keep unaccepted keys under `_unknown`.

    Returns:
        MigrationOutcome: Migrated payload with kept, remapped and dropped keys.
    """
    alias_map = build_alias_map(definition)
    output: dict[str, Any] = {}
    unknown: dict[str, Any] = {}
    remapped: list[RemapRecord] = []
    dropped: list[str] = []

    for key, value in payload.items():
        canonical = alias_map.get(key)
        if canonical is None:
            if keep_unknown:
                unknown[key] = value
            else:
                dropped.append(key)
            continue
        if canonical != key:
            remapped.append(RemapRecord(from_key=key, to_key=canonical))
        output[canonical] = value

    if keep_unknown and unknown:
        output[UNKNOWN_BUCKET] = unknown

    return MigrationOutcome(
        output=output,
        kept=[key for key in output if key != UNKNOWN_BUCKET],
        remapped=remapped,
        dropped=dropped,
    )


def format_report(outcome: MigrationOutcome, *, index: int, from_version: int, to_version: int) -> str:
    """Render the per-payload migration report."""
    lines = [
        f"\n[migrate report #{index}] v{from_version} -> v{to_version}",
        f"  kept keys: {len(outcome.kept)}",
        f"  remapped: {len(outcome.remapped)}",
        f"  dropped: {len(outcome.dropped)}",
    ]
    if outcome.remapped:
        lines.append("  remapped list: " + ", ".join(f"{item.from_key}->{item.to_key}" for item in outcome.remapped))
    if outcome.dropped:
        lines.append("  dropped list: " + ", ".join(outcome.dropped))
    return "\n".join(lines)


def _select_versions(
    definitions: list[FormDefinition],
    options: MigrateOptions,
) -> tuple[FormDefinition, FormDefinition]:
    if not definitions:
        raise SchemaFileError(message=f'No definitions for formKey="{options.form}"')

    definitions = sorted(definitions, key=lambda definition: definition.version)
    from_version = options.from_version or definitions[0].version
    to_version = options.to_version or definitions[-1].version

    from_def = next((item for item in definitions if item.version == from_version), None)
    if from_def is None:
        raise SchemaFileError(message=f"from version not found: {options.form}@{from_version}")
    to_def = next((item for item in definitions if item.version == to_version), None)
    if to_def is None:
        raise SchemaFileError(message=f"to version not found: {options.form}@{to_version}")
    return from_def, to_def


def run_migrate(
    options: MigrateOptions,
    *,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> Any:
    """Migrate a JSON file of payloads to a target version of one form.

    The input holds a single payload object or an array of them; the output
    mirrors that shape. Without `apply` the result is only previewed.

    Args:
        options (MigrateOptions): Command options.
        out (TextIO | None): Preview and progress stream, standard output by default.
        err (TextIO | None): Report stream, standard error by default.

    Raises:
        SchemaFileError: If a file is missing, a version is unknown or a payload is not an object.

    Returns:
        Any: Migrated payload or list of payloads.
    """
    out_stream = out or sys.stdout
    err_stream = err or sys.stderr
    base = resolve_base_dir(options.cwd)

    schema_path = (base / options.file).resolve()
    if not schema_path.is_file():
        raise SchemaFileError(message=f"Schema file not found: {schema_path}")
    input_path = (base / options.input).resolve()
    if not input_path.is_file():
        raise SchemaFileError(message=f"Input file not found: {input_path}")

    schema = read_schema_file(schema_path)
    definitions = [
        parse_definition(entry) for entry in schema.definition_entries() if entry.get("formKey") == options.form
    ]
    from_def, to_def = _select_versions(definitions, options)

    document = read_json_file(input_path)
    payloads = document if isinstance(document, list) else [document]

    migrated: list[dict[str, Any]] = []
    for index, payload in enumerate(payloads):
        if not isinstance(payload, dict):
            raise SchemaFileError(message=f"Payload #{index} is not a JSON object: {input_path}")
        outcome = migrate_payload(payload, to_def, keep_unknown=options.keep_unknown)
        if options.report:
            print(
                format_report(outcome, index=index, from_version=from_def.version, to_version=to_def.version),
                file=err_stream,
            )
        migrated.append(outcome.output)

    result: Any = migrated if isinstance(document, list) else migrated[0]
    logger.debug("Payloads migrated", extra={"form": options.form, "payloads": len(migrated)})

    if not options.apply:
        print(f"\n=== migrate {options.form}: v{from_def.version} -> v{to_def.version} (preview) ===", file=out_stream)
        print(dump_json(result), end="", file=out_stream)
        print("\nTip: add --apply to write output", file=out_stream)
        return result

    out_path = (base / (options.out or Path(f"{options.input}.migrated.json"))).resolve()
    out_path.write_text(dump_json(result), encoding="utf-8")
    logger.info("Migrated payloads written", extra={"output_path": str(out_path)})
    print(f"\nwrote: {out_path}", file=out_stream)
    return result
