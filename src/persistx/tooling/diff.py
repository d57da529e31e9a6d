"""Rename suggestions between schema versions and alias application."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

from persistx import logger
from persistx.exceptions import SchemaFileError
from persistx.schema_store import parse_definition, read_schema_file, write_schema_file
from persistx.settings import DEFAULT_MIN_SCORE
from persistx.tooling.decisions import StreamDecisionProvider
from persistx.tooling.similarity import is_generic_key, similarity
from persistx.typing.models import FormDiff, RenameSuggestion

if TYPE_CHECKING:
    from persistx.typing.models import DiffOptions, FormDefinition
    from persistx.typing.protocol import DecisionProvider

AMBIGUITY_MARGIN = 0.06
AMBIGUITY_CEILING = 0.95
STRICT_GENERIC_MIN_SCORE = 0.78
STRICT_GENERIC_BLOCK_SCORE = 0.9
SAFE_DEFAULT_SCORE = 0.88


def field_key_changes(from_def: FormDefinition, to_def: FormDefinition) -> tuple[list[str], list[str]]:
    """Return keys only in the older version and keys only in the newer one.

    Args:
        from_def (FormDefinition): Older definition.
        to_def (FormDefinition): Newer definition.

    Returns:
        tuple[list[str], list[str]]: `(removed, added)`, each in field order.
    """
    from_keys = list(dict.fromkeys(field.key for field in from_def.fields))
    to_keys = list(dict.fromkeys(field.key for field in to_def.fields))
    removed = [key for key in from_keys if key not in to_keys]
    added = [key for key in to_keys if key not in from_keys]
    return removed, added


def rank_candidates(removed_key: str, added_keys: list[str]) -> list[tuple[str, float]]:
    """Score every added key against a removed key, best first."""
    scored = [(added_key, similarity(removed_key, added_key)) for added_key in added_keys]
    return sorted(scored, key=lambda item: item[1], reverse=True)


def suggest_renames(
    from_def: FormDefinition,
    to_def: FormDefinition,
    *,
    min_score: float = DEFAULT_MIN_SCORE,
    strict: bool = False,
) -> list[RenameSuggestion]:
    """Propose alias mappings for fields renamed between two versions.

    Each removed key is paired with its best-scoring added key. Suggestions
    below the minimum score are dropped; in strict mode a generic target needs
    at least `STRICT_GENERIC_MIN_SCORE`. Targets are then assigned greedily in
    descending score order, so each added key is claimed at most once.

    Args:
        from_def (FormDefinition): Older definition.
        to_def (FormDefinition): Newer definition.
        min_score (float): Minimum score for a suggestion.
        strict (bool): Tighten thresholds for generic targets.

    Returns:
        list[RenameSuggestion]: Suggestions sorted by descending score.
    """
    removed, added = field_key_changes(from_def, to_def)
    if not removed or not added:
        return []

    candidates: list[RenameSuggestion] = []
    for removed_key in removed:
        ranked = rank_candidates(removed_key, added)
        best_key, best_score = ranked[0]
        ambiguous = (
            len(ranked) > 1 and best_score - ranked[1][1] < AMBIGUITY_MARGIN and best_score < AMBIGUITY_CEILING
        )

        threshold = max(min_score, STRICT_GENERIC_MIN_SCORE) if strict and is_generic_key(best_key) else min_score
        if best_score >= threshold:
            candidates.append(
                RenameSuggestion(from_key=removed_key, to_key=best_key, score=best_score, ambiguous=ambiguous),
            )

    claimed: set[str] = set()
    suggestions: list[RenameSuggestion] = []
    for suggestion in sorted(candidates, key=lambda item: item.score, reverse=True):
        if suggestion.to_key in claimed:
            continue
        claimed.add(suggestion.to_key)
        suggestions.append(suggestion)
    return suggestions


def is_hard_blocked(suggestion: RenameSuggestion, *, strict: bool) -> bool:
    """Return whether a suggestion must never be accepted by default."""
    if suggestion.ambiguous:
        return True
    return strict and is_generic_key(suggestion.to_key) and suggestion.score < STRICT_GENERIC_BLOCK_SCORE


def default_answer(suggestion: RenameSuggestion, *, strict: bool) -> bool:
    """Return the prompt default: yes only for safe, high-scoring suggestions."""
    return not is_hard_blocked(suggestion, strict=strict) and suggestion.score >= SAFE_DEFAULT_SCORE


def format_question(suggestion: RenameSuggestion, *, strict: bool) -> str:
    """Build the operator prompt, tagging the reasons a suggestion is blocked."""
    details = [f"score={suggestion.score:.2f}"]
    if is_hard_blocked(suggestion, strict=strict):
        if suggestion.ambiguous:
            details.append("ambiguous")
        if is_generic_key(suggestion.to_key):
            details.append("generic-target")
    return f'Map "{suggestion.from_key}" -> "{suggestion.to_key}" ? ({", ".join(details)})'


def accept_suggestion(
    suggestion: RenameSuggestion,
    *,
    strict: bool,
    decisions: DecisionProvider | None,
    force: bool = False,
) -> bool:
    """Decide whether a suggestion is accepted.

    Without a decision provider the run is non-interactive: anything not hard
    blocked is accepted, and `force` accepts everything.

    Args:
        suggestion (RenameSuggestion): Suggestion to decide on.
        strict (bool): Strict mode flag.
        decisions (DecisionProvider | None): Operator, or None for non-interactive runs.
        force (bool): Accept hard-blocked suggestions in non-interactive runs.

    Returns:
        bool: Whether the alias mapping is accepted.
    """
    if decisions is None:
        return force or not is_hard_blocked(suggestion, strict=strict)
    return decisions.ask_yes_no(
        format_question(suggestion, strict=strict),
        default_answer(suggestion, strict=strict),
    )


def apply_alias_mapping(
    definitions: list[Any],
    form_key: str,
    version: int,
    to_key: str,
    from_key: str,
) -> bool:
    """Add `from_key` to the aliases of field `to_key` in a raw definitions array.

    Args:
        definitions (list[Any]): Raw definitions, mutated in place.
        form_key (str): Target form key.
        version (int): Target version.
        to_key (str): Field receiving the alias.
        from_key (str): Alias to add.

    Raises:
        SchemaFileError: If the definition or the field does not exist.

    Returns:
        bool: False when the alias was already declared.
    """
    target = next(
        (
            entry
            for entry in definitions
            if isinstance(entry, dict) and entry.get("formKey") == form_key and entry.get("version") == version
        ),
        None,
    )
    if target is None:
        raise SchemaFileError(message=f"Cannot apply mapping: target def not found for {form_key}@{version}")

    field = next(
        (item for item in target.get("fields") or [] if isinstance(item, dict) and item.get("key") == to_key),
        None,
    )
    if field is None:
        raise SchemaFileError(message=f'Cannot apply mapping: field "{to_key}" not found in {form_key}@{version}')

    aliases = field.get("aliases")
    if not isinstance(aliases, list):
        aliases = []
    field["aliases"] = aliases
    if from_key in aliases:
        return False
    aliases.append(from_key)
    return True


def resolve_base_dir(cwd: Path | None) -> Path:
    """Return the directory relative paths are resolved against."""
    return (Path.cwd() / cwd).resolve() if cwd else Path.cwd()


def _group_by_form(definitions: list[FormDefinition], form: str | None) -> dict[str, list[FormDefinition]]:
    grouped: dict[str, list[FormDefinition]] = {}
    for definition in definitions:
        if form and definition.form_key != form:
            continue
        grouped.setdefault(definition.form_key, []).append(definition)
    return grouped


def run_diff(
    options: DiffOptions,
    *,
    decisions: DecisionProvider | None = None,
    out: TextIO | None = None,
) -> list[FormDiff]:
    """Suggest renames for every form of a schema file and optionally record them as aliases.

    For each form key the two most recent versions are compared unless
    `from_version`/`to_version` are given. With `apply`, accepted suggestions
    are added to the newer version's aliases and the file is rewritten once,
    after every decision is made.

    Args:
        options (DiffOptions): Command options.
        decisions (DecisionProvider | None): Operator for interactive runs; stdin/stdout when omitted.
        out (TextIO | None): Progress stream, standard output by default.

    Raises:
        SchemaFileError: If the schema file is missing or malformed.

    Returns:
        list[FormDiff]: One entry per compared form.
    """
    stream = out or sys.stdout
    file_path = (resolve_base_dir(options.cwd) / options.file).resolve()
    if not file_path.is_file():
        raise SchemaFileError(message=f"Schema file not found: {file_path}")

    schema = read_schema_file(file_path)
    definitions = [parse_definition(entry) for entry in schema.definition_entries()]
    by_form = _group_by_form(definitions, options.form)

    if not by_form:
        print("No definitions found (or formKey filter did not match).", file=stream)
        return []

    if options.yes:
        decisions = None
    elif decisions is None:
        decisions = StreamDecisionProvider(output_stream=stream)

    results: list[FormDiff] = []
    changed = False
    for form_key, versions in by_form.items():
        versions.sort(key=lambda definition: definition.version)
        from_version = options.from_version or (versions[-2].version if len(versions) >= 2 else None)  # noqa: PLR2004
        to_version = options.to_version or versions[-1].version

        if from_version is None:
            print(f"\n[{form_key}] Skipping (need at least 2 versions, or pass --from/--to).", file=stream)
            continue

        from_def = next((item for item in versions if item.version == from_version), None)
        to_def = next((item for item in versions if item.version == to_version), None)
        if from_def is None or to_def is None:
            print(
                f"\n[{form_key}] Skipping (version not found). from={from_version} to={to_version}",
                file=stream,
            )
            continue

        print(f"\n=== {form_key}: v{from_version} -> v{to_version} ===", file=stream)
        removed, added = field_key_changes(from_def, to_def)
        suggestions = suggest_renames(from_def, to_def, min_score=options.min_score, strict=options.strict)
        form_diff = FormDiff(
            form_key=form_key,
            from_version=from_version,
            to_version=to_version,
            removed=removed,
            added=added,
            suggestions=suggestions,
        )
        results.append(form_diff)

        if not suggestions:
            print("No rename suggestions found.", file=stream)
            continue

        for suggestion in suggestions:
            accepted = accept_suggestion(
                suggestion,
                strict=options.strict,
                decisions=decisions,
                force=options.force_yes,
            )
            if not accepted:
                continue

            form_diff.accepted.append(suggestion)
            print(f"  accepted: {suggestion.from_key} -> {suggestion.to_key}", file=stream)
            if options.apply:
                apply_alias_mapping(schema.definitions, form_key, to_version, suggestion.to_key, suggestion.from_key)
                changed = True

        logger.debug(
            "Diff completed",
            extra={"form": form_key, "suggestions": len(suggestions), "accepted": len(form_diff.accepted)},
        )

    if options.apply:
        if changed:
            written = write_schema_file(schema, file_path)
            print(f"\nwrote: {written}", file=stream)
        else:
            print("\nNothing to write.", file=stream)

    print("\nDone.", file=stream)
    return results
