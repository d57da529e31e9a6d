"""Typing-centric domain modules."""

from persistx.typing.enums import ErrorCode, FieldType, HookStage, RuleKind, SchemaShape, WriteMode
from persistx.typing.models import (
    AdapterSaveRequest,
    AnalyzeResult,
    FieldDefinition,
    FormDefinition,
    HookRef,
    MigrationOutcome,
    RemapRecord,
    RenameSuggestion,
    SaveContext,
    SaveRequest,
    SaveResult,
    ValidationIssue,
    ValidationResult,
)
from persistx.typing.protocol import DecisionProvider, Hook, StorageAdapter

__all__ = [
    "AdapterSaveRequest",
    "AnalyzeResult",
    "DecisionProvider",
    "ErrorCode",
    "FieldDefinition",
    "FieldType",
    "FormDefinition",
    "Hook",
    "HookRef",
    "HookStage",
    "MigrationOutcome",
    "RemapRecord",
    "RenameSuggestion",
    "RuleKind",
    "SaveContext",
    "SaveRequest",
    "SaveResult",
    "SchemaShape",
    "StorageAdapter",
    "ValidationIssue",
    "ValidationResult",
    "WriteMode",
]
