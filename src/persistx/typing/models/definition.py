"""Form definition models parsed from schema files."""

from __future__ import annotations

import re
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from persistx.typing.enums import FieldType, HookStage, RuleKind, WriteMode


class _SchemaModel(BaseModel):
    """Base for models mirroring the camelCase schema file format."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True, frozen=True)


class RequiredRule(_SchemaModel):
    """Value must be present (not undefined, null, or empty unless nullable).

    `message` is accepted for schema compatibility; the reported error is always `Required`.
    """

    kind: Literal["required"] = "required"
    message: str | None = None


class MinRule(_SchemaModel):
    """Numeric lower bound."""

    kind: Literal["min"] = "min"
    value: int | float
    message: str | None = None


class MaxRule(_SchemaModel):
    """Numeric upper bound."""

    kind: Literal["max"] = "max"
    value: int | float
    message: str | None = None


class RegexRule(_SchemaModel):
    """String pattern searched within the value."""

    kind: Literal["regex"] = "regex"
    value: str
    message: str | None = None

    @field_validator("value")
    @classmethod
    def _validate_pattern(cls, value: str) -> str:
        """Ensure the pattern compiles.

        Args:
            value (str): Raw pattern.

        Raises:
            ValueError: If the pattern is not a valid regular expression.

        Returns:
            str: The unchanged pattern.
        """
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"Invalid regex pattern {value!r}: {exc}") from exc
        return value


FieldRule = Annotated[RequiredRule | MinRule | MaxRule | RegexRule, Field(discriminator="kind")]


class AutoIdStrategy(_SchemaModel):
    """Let the adapter generate the document id."""

    kind: Literal["auto"] = "auto"


class FixedIdStrategy(_SchemaModel):
    """Always write to the same literal document id."""

    kind: Literal["fixed"] = "fixed"
    id: str = Field(min_length=1)


class PayloadIdStrategy(_SchemaModel):
    """Read the document id from a normalized payload key."""

    kind: Literal["payload"] = "payload"
    key: str = Field(min_length=1)


class UidIdStrategy(_SchemaModel):
    """Use the caller-supplied uid as document id."""

    kind: Literal["uid"] = "uid"


DocIdStrategy = Annotated[
    AutoIdStrategy | FixedIdStrategy | PayloadIdStrategy | UidIdStrategy,
    Field(discriminator="kind"),
]


class HookRef(_SchemaModel):
    """Reference from a definition to a named hook handler."""

    key: HookStage
    name: str = Field(min_length=1)
    config: dict[str, Any] | None = None


class DefinitionMeta(_SchemaModel):
    """Descriptive metadata, ignored by the pipeline."""

    title: str | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)


class FieldDefinition(_SchemaModel):
    """Single field of a form definition."""

    key: str = Field(min_length=1)
    aliases: list[str] = Field(default_factory=list)
    type: FieldType
    path: str | None = None
    nullable: bool = False
    rules: list[FieldRule] = Field(default_factory=list)
    ignore: bool = False

    @field_validator("aliases")
    @classmethod
    def _validate_aliases(cls, value: list[str]) -> list[str]:
        """Reject blank aliases.

        Args:
            value (list[str]): Declared aliases.

        Raises:
            ValueError: If an alias is empty or whitespace.

        Returns:
            list[str]: The unchanged aliases.
        """
        for alias in value:
            if not alias.strip():
                raise ValueError("field.aliases must contain non-empty strings")
        return value

    @property
    def target_path(self) -> str:
        """Return the dot-path written in the output document."""
        return self.path or self.key

    @property
    def incoming_keys(self) -> list[str]:
        """Return the canonical key followed by aliases, in lookup order."""
        return [self.key, *self.aliases]

    def has_rule(self, kind: RuleKind) -> bool:
        """Return whether a rule of the given kind is declared."""
        return any(rule.kind == kind for rule in self.rules)


class FormDefinition(_SchemaModel):
    """One schema version of one logical form."""

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        revalidate_instances="always",
    )

    form_key: str = Field(min_length=1)
    version: int = Field(ge=1, strict=True)
    collection: str = Field(min_length=1)
    doc_id_strategy: DocIdStrategy
    write_mode: WriteMode
    fields: list[FieldDefinition]
    allow_unknown_fields: bool = True
    hooks: list[HookRef] = Field(default_factory=list)
    meta: DefinitionMeta | None = None

    @model_validator(mode="after")
    def _validate_incoming_keys(self) -> FormDefinition:
        """Ensure field keys and aliases never collide within the definition.

        Raises:
            ValueError: If a key or alias is declared twice.

        Returns:
            FormDefinition: The validated definition.
        """
        seen: set[str] = set()
        for field_def in self.fields:
            if field_def.key in seen:
                raise ValueError(f'Duplicate field key "{field_def.key}"')
            seen.add(field_def.key)
            for alias in field_def.aliases:
                if alias in seen:
                    raise ValueError(f'Duplicate field alias "{alias}" (conflicts within definition)')
                seen.add(alias)
        return self

    @property
    def ref(self) -> str:
        """Return the `formKey@version` label."""
        return f"{self.form_key}@{self.version}"

    def allowed_keys(self) -> set[str]:
        """Return every incoming key accepted by the definition."""
        return {key for field_def in self.fields for key in field_def.incoming_keys}

    def get_field(self, key: str) -> FieldDefinition | None:
        """Return the field declared under a canonical key."""
        return next((field_def for field_def in self.fields if field_def.key == key), None)

