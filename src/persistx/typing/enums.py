"""Project enums."""

from __future__ import annotations

from enum import StrEnum


class _EnumMixin(StrEnum):
    """Shared conversion helpers for user-facing enums."""

    @classmethod
    def from_str(cls, value: str) -> _EnumMixin:
        """Parse enum from string.

        Args:
            value: Raw string value.

        Raises:
            ValueError: If the value is not supported.

        Returns:
            _EnumMixin: Parsed enum value.
        """
        try:
            return cls(value)
        except ValueError as exc:
            supported = ", ".join(member.value for member in cls)
            message = f"Unsupported {cls.__name__} value '{value}'. Expected one of: {supported}"
            raise ValueError(message) from exc

    def to_str(self) -> str:
        """Return string representation.

        Returns:
            str: Enum string value.
        """
        return self.value


class WriteMode(_EnumMixin):
    """Existence precondition applied at the storage boundary."""

    CREATE = "create"
    UPDATE = "update"
    UPSERT = "upsert"


class FieldType(_EnumMixin):
    """Primitive type expected for a field value."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    OBJECT = "object"
    ARRAY = "array"


class RuleKind(_EnumMixin):
    """Field rule discriminator."""

    REQUIRED = "required"
    MIN = "min"
    MAX = "max"
    REGEX = "regex"


class HookStage(_EnumMixin):
    """Named points of the save pipeline, in execution order."""

    BEFORE_VALIDATE = "beforeValidate"
    AFTER_VALIDATE = "afterValidate"
    BEFORE_NORMALIZE = "beforeNormalize"
    AFTER_NORMALIZE = "afterNormalize"
    BEFORE_MAP = "beforeMap"
    AFTER_MAP = "afterMap"
    BEFORE_SAVE = "beforeSave"
    AFTER_SAVE = "afterSave"


class ErrorCode(_EnumMixin):
    """Closed set of save-pipeline error codes."""

    DEFINITION_NOT_FOUND = "DEFINITION_NOT_FOUND"
    DEFINITION_INVALID = "DEFINITION_INVALID"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    UNKNOWN_FIELD = "UNKNOWN_FIELD"
    DOC_ID_RESOLUTION_FAILED = "DOC_ID_RESOLUTION_FAILED"
    HOOK_FAILED = "HOOK_FAILED"


class SchemaShape(_EnumMixin):
    """Top-level layout of a schema file."""

    ARRAY = "array"
    ENVELOPE = "envelope"
