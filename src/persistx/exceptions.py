"""Package exceptions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from persistx.typing.enums import ErrorCode


class PackageError(Exception):
    """Root exception for the package."""


@dataclass(frozen=True)
class SettingsError(PackageError):
    """Raised when settings cannot be loaded or validated."""

    message: str = "Failed to load settings"
    exc: BaseException | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.exc}" if self.exc else self.message


@dataclass(frozen=True)
class AsyncExecutionError(PackageError):
    """Raised when an async operation fails in compatibility runner."""

    result: BaseException
    message: str = "Async operation failed"

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.result}"


@dataclass(frozen=True)
class SchemaFileError(PackageError):
    """Raised when a schema or payload file cannot be read, parsed or written."""

    message: str

    def __str__(self) -> str:
        """Return error message payload."""
        return self.message


@dataclass(frozen=True)
class UsageError(PackageError):
    """Raised when command-line options are out of range or inconsistent."""

    message: str

    def __str__(self) -> str:
        """Return error message payload."""
        return self.message


@dataclass(frozen=True)
class AdapterError(PackageError):
    """Raised by storage adapters when a write precondition is violated."""

    message: str
    collection: str | None = None
    document_id: str | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return self.message


class DocumentExistsError(AdapterError):
    """Raised when `create` targets an existing document."""


class DocumentNotFoundError(AdapterError):
    """Raised when `update` targets a missing document."""


@dataclass(frozen=True)
class PersistxError(PackageError):
    """Root of the save-pipeline error family.

    Every member carries a closed `ErrorCode`, a human-readable message and an
    optional structured details mapping.
    """

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Return error message payload."""
        return self.message


class DefinitionNotFoundError(PersistxError):
    """Raised when no definition exists for the requested form version."""

    def __init__(self, form_key: str, version: int) -> None:
        super().__init__(
            code=ErrorCode.DEFINITION_NOT_FOUND,
            message=f"Form definition not found: {form_key}@{version}",
            details={"form_key": form_key, "version": version},
        )


class DefinitionInvalidError(PersistxError):
    """Raised when a form definition fails structural checks."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code=ErrorCode.DEFINITION_INVALID, message=message, details=details or {})


class ValidationFailedError(PersistxError):
    """Raised when a payload does not satisfy its definition's field rules."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code=ErrorCode.VALIDATION_FAILED, message=message, details=details or {})

    @property
    def errors(self) -> list[Any]:
        """Return the per-field validation issues."""
        return list(self.details.get("errors", []))


class UnknownFieldError(PersistxError):
    """Raised when a payload key is not declared and unknown fields are forbidden."""

    def __init__(self, field_name: str, form_key: str, version: int) -> None:
        super().__init__(
            code=ErrorCode.UNKNOWN_FIELD,
            message=f'Unknown field "{field_name}" for {form_key}@{version}',
            details={"field": field_name, "form_key": form_key, "version": version},
        )

    @property
    def field_name(self) -> str:
        """Return the offending payload key."""
        return str(self.details["field"])


class DocIdResolutionError(PersistxError):
    """Raised when the document id cannot be derived from the id strategy."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code=ErrorCode.DOC_ID_RESOLUTION_FAILED, message=message, details=details or {})


class HookFailedError(PersistxError):
    """Raised when a hook handler raises during a save."""

    def __init__(self, hook_name: str, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code=ErrorCode.HOOK_FAILED,
            message=f'Hook "{hook_name}" failed: {message}',
            details={"hook_name": hook_name, **(details or {})},
        )
