"""Core domain model exports."""

from persistx.typing.models.definition import (
    AutoIdStrategy,
    DefinitionMeta,
    DocIdStrategy,
    FieldDefinition,
    FieldRule,
    FixedIdStrategy,
    FormDefinition,
    HookRef,
    MaxRule,
    MinRule,
    PayloadIdStrategy,
    RegexRule,
    RequiredRule,
    UidIdStrategy,
)
from persistx.typing.models.save import (
    AdapterIdStrategy,
    AdapterSaveRequest,
    DocOverride,
    SaveContext,
    SaveRequest,
    SaveResult,
)
from persistx.typing.models.tooling import (
    DiffOptions,
    FormDiff,
    MigrateOptions,
    MigrationOutcome,
    RemapRecord,
    RenameSuggestion,
)
from persistx.typing.models.validation import (
    AnalyzeResult,
    ModelValidationResult,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    "AdapterIdStrategy",
    "AdapterSaveRequest",
    "AnalyzeResult",
    "AutoIdStrategy",
    "DefinitionMeta",
    "DiffOptions",
    "DocIdStrategy",
    "DocOverride",
    "FieldDefinition",
    "FieldRule",
    "FixedIdStrategy",
    "FormDiff",
    "FormDefinition",
    "HookRef",
    "MaxRule",
    "MigrateOptions",
    "MigrationOutcome",
    "MinRule",
    "ModelValidationResult",
    "PayloadIdStrategy",
    "RegexRule",
    "RemapRecord",
    "RenameSuggestion",
    "RequiredRule",
    "SaveContext",
    "SaveRequest",
    "SaveResult",
    "UidIdStrategy",
    "ValidationIssue",
    "ValidationResult",
]
