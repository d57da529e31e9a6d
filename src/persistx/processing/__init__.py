"""Save pipeline processing stages."""

from persistx.processing.mapping import find_unknown_keys, map_payload, set_dot_path
from persistx.processing.normalization import NormalizeOptions, normalize_payload
from persistx.processing.validation import validate_payload
from persistx.processing.values import UNDEFINED, resolve_field_value

__all__ = [
    "UNDEFINED",
    "NormalizeOptions",
    "find_unknown_keys",
    "map_payload",
    "normalize_payload",
    "resolve_field_value",
    "set_dot_path",
    "validate_payload",
]
