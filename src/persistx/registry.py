"""Immutable lookup of form definitions by form key and version."""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from persistx.exceptions import DefinitionInvalidError
from persistx.schema_store import load_definitions, load_definitions_from_dir, load_definitions_from_file

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping
    from pathlib import Path

    from persistx.typing.models import FormDefinition


class DefinitionRegistry:
    """Definitions indexed by `(form_key, version)`.

    Construction validates every definition and fails on the first invalid
    one. The registry is never mutated afterwards; a changed schema means a
    new registry.
    """

    __slots__ = ("_by_ref", "_latest")

    def __init__(self, definitions: Iterable[FormDefinition | Mapping[str, Any]]) -> None:
        by_ref: dict[tuple[str, int], FormDefinition] = {}
        latest: dict[str, FormDefinition] = {}

        for definition in load_definitions(definitions):
            ref = (definition.form_key, definition.version)
            if ref in by_ref:
                raise DefinitionInvalidError(
                    f"Duplicate form definition {definition.ref}",
                    {"form_key": definition.form_key, "version": definition.version},
                )
            by_ref[ref] = definition

            current = latest.get(definition.form_key)
            if current is None or definition.version > current.version:
                latest[definition.form_key] = definition

        self._by_ref = MappingProxyType(by_ref)
        self._latest = MappingProxyType(latest)

    @classmethod
    def from_file(cls, path: Path) -> DefinitionRegistry:
        """Build a registry from a schema file in either shape."""
        return cls(load_definitions_from_file(path))

    @classmethod
    def from_dir(cls, dir_path: Path) -> DefinitionRegistry:
        """Build a registry from every JSON schema file of a directory."""
        return cls(load_definitions_from_dir(dir_path))

    def get(self, form_key: str, version: int) -> FormDefinition | None:
        """Return the definition of one form version, if registered."""
        return self._by_ref.get((form_key, version))

    def get_latest(self, form_key: str) -> FormDefinition | None:
        """Return the highest registered version of a form, if any."""
        return self._latest.get(form_key)

    def get_latest_version(self, form_key: str) -> int | None:
        """Return the highest registered version number of a form, if any."""
        latest = self._latest.get(form_key)
        return latest.version if latest else None

    def form_keys(self) -> list[str]:
        """Return registered form keys in registration order."""
        return list(self._latest)

    def versions(self, form_key: str) -> list[int]:
        """Return the registered versions of a form, ascending."""
        return sorted(version for key, version in self._by_ref if key == form_key)

    def __iter__(self) -> Iterator[FormDefinition]:
        return iter(self._by_ref.values())

    def __len__(self) -> int:
        return len(self._by_ref)

    def __contains__(self, ref: object) -> bool:
        return ref in self._by_ref
