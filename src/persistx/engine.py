"""Save orchestration: hooks, validation, normalization, mapping and storage."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from persistx import logger
from persistx.async_runner import run_async
from persistx.exceptions import DefinitionNotFoundError, DocIdResolutionError, ValidationFailedError
from persistx.hooks import HookContext, HookInput, HookRegistry, SavedDocument, run_hook_stage
from persistx.processing.mapping import find_unknown_keys, map_payload
from persistx.processing.normalization import NormalizeOptions, normalize_payload, to_iso_string
from persistx.processing.validation import validate_payload
from persistx.typing.enums import HookStage, WriteMode
from persistx.typing.models import (
    AdapterIdStrategy,
    AdapterSaveRequest,
    AnalyzeResult,
    AutoIdStrategy,
    FixedIdStrategy,
    FormDefinition,
    PayloadIdStrategy,
    SaveContext,
    SaveRequest,
    SaveResult,
    UidIdStrategy,
)

if TYPE_CHECKING:
    from persistx.registry import DefinitionRegistry
    from persistx.settings import Settings
    from persistx.typing.protocol import StorageAdapter


class Engine:
    """Runs the save pipeline for definitions of one registry.

    The engine keeps no per-call state; everything a save needs lives in the
    call itself. Switching schemas means building a new registry and engine.
    """

    def __init__(
        self,
        *,
        adapter: StorageAdapter,
        registry: DefinitionRegistry,
        hooks: HookRegistry | None = None,
        normalize: NormalizeOptions | None = None,
    ) -> None:
        self.adapter = adapter
        self.registry = registry
        self.hooks = hooks or HookRegistry()
        self.normalize_options = normalize or NormalizeOptions()

        for ref, hook_ref in self.hooks.unresolved(registry):
            logger.warning(
                "Hook handler not registered; references to it are skipped",
                extra={"form": ref, "stage": hook_ref.key.value, "hook": hook_ref.name},
            )

    @classmethod
    def from_settings(
        cls,
        *,
        adapter: StorageAdapter,
        registry: DefinitionRegistry,
        hooks: HookRegistry | None = None,
        settings: Settings | None = None,
    ) -> Engine:
        """Build an engine whose normalization switches come from settings.

        Args:
            adapter (StorageAdapter): Storage backend.
            registry (DefinitionRegistry): Definitions.
            hooks (HookRegistry | None): Hook handlers.
            settings (Settings | None): Runtime settings, loaded when omitted.

        Returns:
            Engine: Configured engine.
        """
        if settings is None:
            from persistx.settings import get_settings  # noqa: PLC0415

            settings = get_settings()
        return cls(
            adapter=adapter,
            registry=registry,
            hooks=hooks,
            normalize=NormalizeOptions.from_settings(settings),
        )

    def resolve_definition(self, form_key: str, schema_version: int | None = None) -> FormDefinition:
        """Return the requested definition, or the latest one when no version is given.

        Args:
            form_key (str): Form key.
            schema_version (int | None): Explicit version.

        Raises:
            DefinitionNotFoundError: If the form or version is not registered.

        Returns:
            FormDefinition: Resolved definition.
        """
        version = schema_version if schema_version is not None else self.registry.get_latest_version(form_key)
        if version is None:
            raise DefinitionNotFoundError(form_key, -1)
        definition = self.registry.get(form_key, version)
        if definition is None:
            raise DefinitionNotFoundError(form_key, version)
        return definition

    async def save(self, request: SaveRequest) -> SaveResult:
        """Run the full pipeline for one payload and write it through the adapter.

        Stages run strictly in order: beforeValidate, validation, afterValidate,
        beforeNormalize, normalization, afterNormalize, beforeMap, mapping,
        afterMap, document id resolution, beforeSave, adapter write, afterSave.

        Args:
            request (SaveRequest): Form key, payload and optional overrides.

        Raises:
            ValidationFailedError: If the payload breaks field rules.

        Returns:
            SaveResult: Adapter outcome.
        """
        definition = self.resolve_definition(request.form_key, request.schema_version)
        version = definition.version
        mode = request.mode or definition.write_mode
        log = logger.bind(form=definition.ref, mode=mode.value)

        context = HookContext(
            form_key=request.form_key,
            schema_version=version,
            mode=mode,
            now_iso=request.context.now_iso or to_iso_string(datetime.now(UTC)),
            uid=request.context.uid,
            save=self.save,
        )
        payload = request.payload
        hook_input = HookInput(definition=definition, context=context, payload=payload)

        await run_hook_stage(HookStage.BEFORE_VALIDATE, self.hooks, hook_input)
        validation = validate_payload(definition, payload)
        if not validation.ok:
            log.info("Validation failed", extra={"errors": len(validation.errors)})
            raise ValidationFailedError(
                "Validation failed",
                {
                    "errors": validation.errors,
                    "form_key": request.form_key,
                    "version": version,
                },
            )
        await run_hook_stage(HookStage.AFTER_VALIDATE, self.hooks, hook_input)

        await run_hook_stage(HookStage.BEFORE_NORMALIZE, self.hooks, hook_input)
        normalized = normalize_payload(payload, self.normalize_options)
        hook_input.normalized = normalized
        await run_hook_stage(HookStage.AFTER_NORMALIZE, self.hooks, hook_input)

        await run_hook_stage(HookStage.BEFORE_MAP, self.hooks, hook_input)
        data = map_payload(definition, normalized)
        hook_input.mapped = data
        await run_hook_stage(HookStage.AFTER_MAP, self.hooks, hook_input)

        collection = (request.doc.collection if request.doc else None) or definition.collection
        id_strategy = resolve_id_strategy(definition, normalized, request.context.uid)

        await run_hook_stage(HookStage.BEFORE_SAVE, self.hooks, hook_input)
        result = await self.adapter.save(
            AdapterSaveRequest(
                form_key=request.form_key,
                collection=collection,
                id_strategy=id_strategy,
                mode=mode,
                data=data,
                schema_version=version,
            ),
        )
        log.debug("Document saved", extra={"collection": result.collection, "id": result.id})

        hook_input.result = SavedDocument(collection=result.collection, id=result.id, saved_at=result.saved_at)
        await run_hook_stage(HookStage.AFTER_SAVE, self.hooks, hook_input)
        return result

    def save_sync(self, request: SaveRequest) -> SaveResult:
        """Run `save` from synchronous code.

        Args:
            request (SaveRequest): Save request.

        Returns:
            SaveResult: Adapter outcome.
        """
        return run_async(self.save(request))

    async def submit(
        self,
        form_key: str,
        payload: dict[str, Any],
        *,
        uid: str | None = None,
        schema_version: int | None = None,
        mode: WriteMode | None = None,
    ) -> SaveResult:
        """Save with the definition's write mode unless `mode` overrides it."""
        return await self.save(
            SaveRequest(
                form_key=form_key,
                payload=payload,
                schema_version=schema_version,
                mode=mode,
                context=SaveContext(uid=uid),
            ),
        )

    async def create(
        self,
        form_key: str,
        payload: dict[str, Any],
        *,
        uid: str | None = None,
        schema_version: int | None = None,
    ) -> SaveResult:
        """Save in `create` mode."""
        return await self.submit(form_key, payload, uid=uid, schema_version=schema_version, mode=WriteMode.CREATE)

    async def update(
        self,
        form_key: str,
        payload: dict[str, Any],
        *,
        uid: str | None = None,
        schema_version: int | None = None,
    ) -> SaveResult:
        """Save in `update` mode."""
        return await self.submit(form_key, payload, uid=uid, schema_version=schema_version, mode=WriteMode.UPDATE)

    async def upsert(
        self,
        form_key: str,
        payload: dict[str, Any],
        *,
        uid: str | None = None,
        schema_version: int | None = None,
    ) -> SaveResult:
        """Save in `upsert` mode."""
        return await self.submit(form_key, payload, uid=uid, schema_version=schema_version, mode=WriteMode.UPSERT)

    def analyze(self, form_key: str, payload: dict[str, Any], schema_version: int | None = None) -> AnalyzeResult:
        """Preview validation, normalization and mapping without hooks or storage.

        Unknown keys are reported instead of raised, so the preview works for
        definitions that forbid them.

        Args:
            form_key (str): Form key.
            payload (dict[str, Any]): Raw payload.
            schema_version (int | None): Explicit version, latest when omitted.

        Returns:
            AnalyzeResult: Every intermediate value of the pipeline.
        """
        definition = self.resolve_definition(form_key, schema_version)
        normalized = normalize_payload(payload, self.normalize_options)
        return AnalyzeResult(
            definition=definition,
            version=definition.version,
            validation=validate_payload(definition, payload),
            normalized=normalized,
            mapped=map_payload(definition, normalized, check_unknown=False),
            unknown_in_payload=find_unknown_keys(definition, payload if isinstance(payload, dict) else {}),
        )


def resolve_id_strategy(
    definition: FormDefinition,
    normalized: dict[str, Any],
    uid: str | None,
) -> AdapterIdStrategy:
    """Derive the adapter id strategy from the definition's document id strategy.

    Args:
        definition (FormDefinition): Definition being saved.
        normalized (dict[str, Any]): Normalized payload.
        uid (str | None): Caller uid.

    Raises:
        DocIdResolutionError: If the payload key or uid required by the strategy is missing.

    Returns:
        AdapterIdStrategy: `auto`, or `fixed` with the resolved id.
    """
    details = {"form_key": definition.form_key, "version": definition.version}
    match definition.doc_id_strategy:
        case FixedIdStrategy(id=doc_id):
            return FixedIdStrategy(id=doc_id)
        case PayloadIdStrategy(key=key):
            value = normalized.get(key)
            if not isinstance(value, str) or not value:
                raise DocIdResolutionError(f'docIdStrategy.payload key "{key}" missing', details)
            return FixedIdStrategy(id=value)
        case UidIdStrategy():
            if not uid:
                raise DocIdResolutionError("docIdStrategy.uid requires context.uid", details)
            return FixedIdStrategy(id=uid)
        case _:
            return AutoIdStrategy()
