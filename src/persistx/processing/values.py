"""Payload value helpers shared by the pipeline stages."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    from collections.abc import Mapping

    from persistx.typing.models import FieldDefinition


class _Undefined(Enum):
    """Marker for a value that is absent, as opposed to an explicit `None`."""

    UNDEFINED = "UNDEFINED"

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED: Final = _Undefined.UNDEFINED


def is_plain_object(value: object) -> bool:
    """Return whether a value is a JSON-object-like mapping."""
    return isinstance(value, dict)


def resolve_field_value(field_def: FieldDefinition, payload: Mapping[str, Any]) -> Any:
    """Resolve a field value from its canonical key, then its aliases in order.

    The first key holding a defined value wins; `None` counts as defined.

    Args:
        field_def (FieldDefinition): Field descriptor.
        payload (Mapping[str, Any]): Incoming payload.

    Returns:
        Any: The resolved value, or `UNDEFINED` when no key supplies one.
    """
    for key in field_def.incoming_keys:
        value = payload.get(key, UNDEFINED)
        if value is not UNDEFINED:
            return value
    return UNDEFINED
