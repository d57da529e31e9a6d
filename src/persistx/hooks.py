"""Hook registry and per-stage hook execution."""

from __future__ import annotations

import inspect
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from persistx import logger
from persistx.exceptions import HookFailedError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Mapping

    from persistx.typing.enums import HookStage, WriteMode
    from persistx.typing.models import FormDefinition, HookRef, SaveRequest, SaveResult
    from persistx.typing.protocol import Hook


@dataclass(frozen=True)
class HookContext:
    """Per-save context shared by every hook of one save call."""

    form_key: str
    schema_version: int
    mode: WriteMode
    now_iso: str
    uid: str | None = None
    save: Callable[[SaveRequest], Awaitable[SaveResult]] | None = None


@dataclass(frozen=True)
class SavedDocument:
    """Location of the written document, available to `afterSave` hooks."""

    collection: str
    id: str
    saved_at: str


@dataclass
class HookInput:
    """Values visible to a hook handler.

    `payload`, `normalized` and `mapped` are the live pipeline objects, so a
    handler may adjust them in place before the next stage consumes them.
    """

    definition: FormDefinition
    context: HookContext
    payload: dict[str, Any]
    normalized: dict[str, Any] | None = None
    mapped: dict[str, Any] | None = None
    result: SavedDocument | None = None
    config: dict[str, Any] | None = None


class HookRegistry:
    """Handlers addressable by the names used in definitions."""

    def __init__(self, handlers: Mapping[str, Hook] | None = None) -> None:
        self._handlers: Mapping[str, Hook] = MappingProxyType(dict(handlers or {}))

    def get(self, name: str) -> Hook | None:
        """Return the handler registered under a name."""
        return self._handlers.get(name)

    def names(self) -> list[str]:
        """Return registered handler names."""
        return list(self._handlers)

    def unresolved(self, definitions: Iterable[FormDefinition]) -> list[tuple[str, HookRef]]:
        """Return hook references whose handler name is not registered.

        Args:
            definitions: Definitions to inspect.

        Returns:
            list[tuple[str, HookRef]]: `(formKey@version, hook reference)` pairs.
        """
        return [
            (definition.ref, hook_ref)
            for definition in definitions
            for hook_ref in definition.hooks
            if hook_ref.name not in self._handlers
        ]


async def run_hook_stage(stage: HookStage, registry: HookRegistry, hook_input: HookInput) -> None:
    """Run every hook a definition declares for one stage, in declaration order.

    References to unregistered handler names are skipped. Handlers may be
    plain functions or coroutines; each one is awaited before the next runs.

    Args:
        stage (HookStage): Stage being executed.
        registry (HookRegistry): Handler lookup.
        hook_input (HookInput): Values shared with the handlers.

    Raises:
        HookFailedError: If a handler raises; later handlers and stages do not run.
    """
    for hook_ref in hook_input.definition.hooks:
        if hook_ref.key != stage:
            continue
        handler = registry.get(hook_ref.name)
        if handler is None:
            continue

        logger.debug("Running hook", extra={"stage": stage.value, "hook": hook_ref.name})
        try:
            outcome = handler(replace(hook_input, config=hook_ref.config))
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as exc:
            logger.warning(
                "Hook failed",
                extra={"stage": stage.value, "hook": hook_ref.name, "form": hook_input.definition.ref},
            )
            raise HookFailedError(
                hook_ref.name,
                str(exc) or type(exc).__name__,
                {"stage": stage.value, "form_key": hook_input.context.form_key},
            ) from exc
