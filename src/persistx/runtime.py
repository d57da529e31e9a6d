"""Registry/engine bundles and schema snapshot swapping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from persistx import logger
from persistx.adapters.memory import MemoryAdapter
from persistx.engine import Engine
from persistx.registry import DefinitionRegistry
from persistx.schema_store import parse_schema_document

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from persistx.hooks import HookRegistry
    from persistx.processing.normalization import NormalizeOptions
    from persistx.typing.models import FormDefinition
    from persistx.typing.protocol import StorageAdapter


@dataclass(frozen=True)
class Runtime:
    """A registry and the engine built on it."""

    registry: DefinitionRegistry
    engine: Engine
    adapter: StorageAdapter

    @classmethod
    def from_definitions(
        cls,
        definitions: Iterable[FormDefinition | Mapping[str, Any]],
        *,
        adapter: StorageAdapter | None = None,
        hooks: HookRegistry | None = None,
        normalize: NormalizeOptions | None = None,
    ) -> Runtime:
        """Build a runtime, defaulting to an in-memory adapter.

        Args:
            definitions: Definitions to register.
            adapter: Storage backend.
            hooks: Hook handlers.
            normalize: Normalization switches.

        Returns:
            Runtime: New registry and engine.
        """
        registry = DefinitionRegistry(definitions)
        store = adapter if adapter is not None else MemoryAdapter()
        engine = Engine(adapter=store, registry=registry, hooks=hooks, normalize=normalize)
        return cls(registry=registry, engine=engine, adapter=store)

    @classmethod
    def from_snapshot(cls, snapshot: object, **kwargs: Any) -> Runtime:
        """Build a runtime from a parsed schema document in either shape."""
        return cls.from_definitions(parse_schema_document(snapshot).definitions, **kwargs)


class RuntimeHandle:
    """Single reference to the active runtime.

    `reload` builds a complete new runtime first and only then replaces the
    reference, so a failed reload leaves the previous runtime active and no
    caller ever sees a half-built registry.
    """

    def __init__(self, runtime: Runtime) -> None:
        self._runtime = runtime

    @property
    def current(self) -> Runtime:
        """Return the active runtime."""
        return self._runtime

    def reload(
        self,
        definitions: Iterable[FormDefinition | Mapping[str, Any]],
        *,
        hooks: HookRegistry | None = None,
        normalize: NormalizeOptions | None = None,
    ) -> Runtime:
        """Swap in a runtime built from new definitions, keeping the same adapter.

        Args:
            definitions: New definition set.
            hooks: Hook handlers, defaulting to the active engine's.
            normalize: Normalization switches, defaulting to the active engine's.

        Returns:
            Runtime: The newly active runtime.
        """
        previous = self._runtime
        fresh = Runtime.from_definitions(
            definitions,
            adapter=previous.adapter,
            hooks=hooks or previous.engine.hooks,
            normalize=normalize or previous.engine.normalize_options,
        )
        self._runtime = fresh
        logger.info("Runtime reloaded", extra={"definitions": len(fresh.registry)})
        return fresh
