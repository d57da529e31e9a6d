"""Mapping of normalized payloads onto the stored document shape."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from persistx.exceptions import UnknownFieldError
from persistx.processing.values import UNDEFINED, is_plain_object, resolve_field_value

if TYPE_CHECKING:
    from collections.abc import Mapping

    from persistx.typing.models import FormDefinition


def find_unknown_keys(definition: FormDefinition, payload: Mapping[str, Any]) -> list[str]:
    """Return payload keys that are neither a field key nor an alias, in payload order.

    Args:
        definition (FormDefinition): Target definition.
        payload (Mapping[str, Any]): Incoming payload.

    Returns:
        list[str]: Undeclared keys.
    """
    allowed = definition.allowed_keys()
    return [key for key in payload if key not in allowed]


def map_payload(
    definition: FormDefinition,
    payload: Mapping[str, Any],
    *,
    check_unknown: bool = True,
) -> dict[str, Any]:
    """Build the output document for a normalized payload.

    Args:
        definition (FormDefinition): Target definition.
        payload (Mapping[str, Any]): Normalized payload.
        check_unknown (bool): Enforce `allow_unknown_fields=False`; previews disable it.

    Raises:
        UnknownFieldError: If unknown fields are forbidden and the payload holds one.

    Returns:
        dict[str, Any]: Document with every non-ignored, defined field written at its path.
    """
    if check_unknown and definition.allow_unknown_fields is False:
        unknown = find_unknown_keys(definition, payload)
        if unknown:
            raise UnknownFieldError(unknown[0], definition.form_key, definition.version)

    out: dict[str, Any] = {}
    for field_def in definition.fields:
        if field_def.ignore:
            continue
        value = resolve_field_value(field_def, payload)
        if value is UNDEFINED:
            continue
        set_dot_path(out, field_def.target_path, value)
    return out


def set_dot_path(target: dict[str, Any], path: str, value: Any) -> None:
    """Write a value at a dot-separated path, creating intermediate objects.

    An intermediate segment holding anything other than an object is replaced
    by a fresh object.

    Args:
        target (dict[str, Any]): Document to write into.
        path (str): Dot-separated path such as `owner.address.city`.
        value (Any): Value written at the last segment.
    """
    *parents, leaf = path.split(".")
    current = target
    for segment in parents:
        existing = current.get(segment)
        if not is_plain_object(existing):
            existing = {}
            current[segment] = existing
        current = existing
    current[leaf] = value
