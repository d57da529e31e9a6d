"""Payload validation against field rules."""

from __future__ import annotations

import math
import re
from datetime import date
from typing import TYPE_CHECKING, Any

from persistx.processing.values import UNDEFINED, is_plain_object, resolve_field_value
from persistx.typing.enums import FieldType, RuleKind
from persistx.typing.models import MaxRule, MinRule, RegexRule, ValidationIssue, ValidationResult

if TYPE_CHECKING:
    from persistx.typing.models import FieldDefinition, FormDefinition


def validate_payload(definition: FormDefinition, payload: object) -> ValidationResult:
    """Check a raw payload against every field of a definition.

    Errors accumulate across fields. A field that is missing while required,
    or whose value has the wrong type, reports that single error and skips its
    remaining rules. Non-mapping payloads are treated as empty.

    Args:
        definition (FormDefinition): Target definition.
        payload (object): Raw incoming payload.

    Returns:
        ValidationResult: `ok` plus the per-field issues, in field order.
    """
    values: dict[str, Any] = payload if is_plain_object(payload) else {}  # type: ignore[assignment]
    errors: list[ValidationIssue] = []
    for field_def in definition.fields:
        errors.extend(_validate_field(field_def, resolve_field_value(field_def, values)))
    return ValidationResult(ok=not errors, errors=errors)


def _validate_field(field_def: FieldDefinition, value: Any) -> list[ValidationIssue]:
    """Validate one resolved field value.

    Args:
        field_def (FieldDefinition): Field descriptor.
        value (Any): Resolved value, possibly `UNDEFINED`.

    Returns:
        list[ValidationIssue]: Issues for this field.
    """
    is_blank = isinstance(value, str) and value == "" and not field_def.nullable
    is_missing = value is UNDEFINED or value is None or is_blank

    if field_def.has_rule(RuleKind.REQUIRED) and is_missing:
        return [ValidationIssue(field=field_def.key, message="Required")]

    if value is UNDEFINED or value is None:
        return []

    if not _is_type_ok(field_def.type, value):
        return [ValidationIssue(field=field_def.key, message=f"Expected {field_def.type.value}")]

    messages: list[str] = []
    for rule in field_def.rules:
        match rule:
            case MinRule() if _is_number(value) and value < rule.value:
                messages.append(rule.message or f"Min {_fmt(rule.value)}")
            case MaxRule() if _is_number(value) and value > rule.value:
                messages.append(rule.message or f"Max {_fmt(rule.value)}")
            case RegexRule() if isinstance(value, str) and re.search(rule.value, value) is None:
                messages.append(rule.message or "Invalid format")
            case _:
                pass
    return [ValidationIssue(field=field_def.key, message=message) for message in messages]


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _is_type_ok(field_type: FieldType, value: object) -> bool:
    """Return whether a value matches a declared primitive type."""
    match field_type:
        case FieldType.STRING:
            return isinstance(value, str)
        case FieldType.NUMBER:
            return _is_number(value) and (isinstance(value, int) or math.isfinite(value))  # type: ignore[arg-type]
        case FieldType.BOOLEAN:
            return isinstance(value, bool)
        case FieldType.DATE:
            return isinstance(value, str | date)
        case FieldType.OBJECT:
            return is_plain_object(value)
        case FieldType.ARRAY:
            return isinstance(value, list | tuple)
    return True


def _fmt(bound: float) -> str:
    """Render a numeric bound without a spurious `.0`."""
    if isinstance(bound, float) and bound.is_integer():
        return str(int(bound))
    return str(bound)
