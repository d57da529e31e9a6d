"""Structlog configuration for package-wide logging.

Logs always go to standard error (plus an optional file) so that command
results written to standard output stay pipeable.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any, TextIO

import structlog

from persistx.settings import Settings, get_settings

if TYPE_CHECKING:
    from structlog.typing import EventDict

_LOGGING_CONFIGURED = False


def _rename_event_key(
    logger: logging.Logger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Normalize structlog payload keys.

    Args:
        logger: The logger instance (unused).
        method_name: The logging method name (unused).
        event_dict: The original event dictionary.

    Returns:
        The modified event dictionary with "message" key instead of "event".
    """
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


def _merge_extra(
    logger: logging.Logger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Flatten stdlib-style `extra={...}` keyword payloads into the event.

    Args:
        logger: The logger instance (unused).
        method_name: The logging method name (unused).
        event_dict: The original event dictionary.

    Returns:
        The event dictionary with `extra` items promoted to top-level keys.
    """
    extra = event_dict.pop("extra", None)
    if isinstance(extra, dict):
        for key, value in extra.items():
            event_dict.setdefault(key, value)
    return event_dict


def configure_logging(
    *,
    settings: Settings | None = None,
    force: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog and stdlib logging once for the package.

    Args:
        settings: Settings providing level, format and optional log file.
        force: Reconfigure even when logging was already configured.
        stream: Console stream, standard error by default.
    """
    global _LOGGING_CONFIGURED  # noqa: PLW0603

    if _LOGGING_CONFIGURED and not force:
        return

    config = settings or get_settings()
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(stream or sys.stderr)]
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file, encoding="utf-8"))

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=handlers,
        force=force,
    )

    renderer: Any = structlog.processors.JSONRenderer()
    if not config.log_json:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            _merge_extra,
            _rename_event_key,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _LOGGING_CONFIGURED = True


def get_logger(name: str = "persistx", **initial_values: Any) -> structlog.BoundLogger:
    """Return package logger, configuring logging lazily.

    Args:
        name: Logger name.
        **initial_values: Key/values bound to every event of the returned logger.

    Returns:
        structlog.BoundLogger: The bound logger.
    """
    if not _LOGGING_CONFIGURED:
        configure_logging()
    return structlog.get_logger(name, **initial_values)
