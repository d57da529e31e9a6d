"""PersistX package."""

from persistx.async_runner import run_async
from persistx.exceptions import (
    AdapterError,
    AsyncExecutionError,
    DefinitionInvalidError,
    DefinitionNotFoundError,
    DocIdResolutionError,
    HookFailedError,
    PackageError,
    PersistxError,
    SchemaFileError,
    SettingsError,
    UnknownFieldError,
    UsageError,
    ValidationFailedError,
)
from persistx.logging import configure_logging, get_logger
from persistx.settings import Settings, get_settings

__version__ = "0.1.0"

# Initialize package logger at import time via `get_logger`.
logger = get_logger("persistx")

__all__ = [
    "AdapterError",
    "AsyncExecutionError",
    "DefinitionInvalidError",
    "DefinitionNotFoundError",
    "DocIdResolutionError",
    "HookFailedError",
    "PackageError",
    "PersistxError",
    "SchemaFileError",
    "Settings",
    "SettingsError",
    "UnknownFieldError",
    "UsageError",
    "ValidationFailedError",
    "__version__",
    "configure_logging",
    "get_logger",
    "get_settings",
    "logger",
    "run_async",
]
