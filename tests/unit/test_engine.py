from __future__ import annotations

import asyncio
from typing import Any

import pytest

from persistx.adapters import MemoryAdapter
from persistx.engine import Engine, resolve_id_strategy
from persistx.exceptions import (
    DefinitionNotFoundError,
    DocIdResolutionError,
    DocumentExistsError,
    HookFailedError,
    UnknownFieldError,
    ValidationFailedError,
)
from persistx.hooks import HookInput, HookRegistry
from persistx.processing.normalization import NormalizeOptions
from persistx.registry import DefinitionRegistry
from persistx.settings import Settings
from persistx.typing.enums import HookStage, WriteMode
from persistx.typing.models import (
    AutoIdStrategy,
    DocOverride,
    FixedIdStrategy,
    FormDefinition,
    SaveContext,
    SaveRequest,
)


def _contact(**overrides: Any) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "formKey": "contact",
        "version": 1,
        "collection": "contacts",
        "docIdStrategy": {"kind": "payload", "key": "email"},
        "writeMode": "create",
        "fields": [
            {"key": "email", "type": "string", "rules": [{"kind": "required"}]},
            {"key": "name", "type": "string", "path": "profile.name"},
        ],
    }
    raw.update(overrides)
    return raw


def _engine(*definitions: dict[str, Any], hooks: HookRegistry | None = None) -> tuple[Engine, MemoryAdapter]:
    adapter = MemoryAdapter()
    engine = Engine(adapter=adapter, registry=DefinitionRegistry(definitions), hooks=hooks)
    return engine, adapter


def test_save_runs_full_pipeline(pet_v1, pet_v2) -> None:
    engine, adapter = _engine(pet_v1, pet_v2)

    result = asyncio.run(engine.upsert("petProfile", {"petName": " Fluffy ", "petType": "Cat"}, uid="user-1"))

    assert result.collection == "petProfiles"
    assert result.id == "user-1"
    assert result.schema_version == 2
    assert result.mode == WriteMode.UPSERT
    assert adapter.get("petProfiles", "user-1") == {"petName": "Fluffy", "type": "Cat"}


def test_save_uses_requested_schema_version(pet_v1, pet_v2) -> None:
    engine, adapter = _engine(pet_v1, pet_v2)

    asyncio.run(engine.submit("petProfile", {"petName": "Rex", "petType": "Dog"}, uid="u", schema_version=1))

    assert adapter.get("petProfiles", "u") == {"petName": "Rex", "petType": "Dog"}


def test_save_fails_for_unknown_definition(pet_v1) -> None:
    engine, _ = _engine(pet_v1)

    with pytest.raises(DefinitionNotFoundError, match="petProfile@7"):
        asyncio.run(engine.submit("petProfile", {}, schema_version=7))
    with pytest.raises(DefinitionNotFoundError):
        asyncio.run(engine.submit("profile", {}))


def test_validation_failure_carries_errors_and_skips_storage(pet_v1) -> None:
    engine, adapter = _engine(pet_v1)

    with pytest.raises(ValidationFailedError) as exc_info:
        asyncio.run(engine.upsert("petProfile", {"petType": "Cat"}, uid="u"))

    assert [issue.field for issue in exc_info.value.errors] == ["petName"]
    assert exc_info.value.details["version"] == 1
    assert adapter.db == {}


def test_unknown_field_is_raised_after_validation(pet_v1) -> None:
    engine, _ = _engine(pet_v1)

    with pytest.raises(ValidationFailedError):
        asyncio.run(engine.upsert("petProfile", {"color": "red"}, uid="u"))
    with pytest.raises(UnknownFieldError, match='"color"'):
        asyncio.run(engine.upsert("petProfile", {"petName": "Rex", "petType": "Dog", "color": "red"}, uid="u"))


def test_write_mode_defaults_to_definition_and_can_be_overridden() -> None:
    engine, adapter = _engine(_contact())

    first = asyncio.run(engine.submit("contact", {"email": "a@b.c", "name": "Ann"}))
    assert first.mode == WriteMode.CREATE
    with pytest.raises(DocumentExistsError):
        asyncio.run(engine.submit("contact", {"email": "a@b.c"}))

    asyncio.run(engine.update("contact", {"email": "a@b.c", "name": "Anna"}))
    assert adapter.get("contacts", "a@b.c") == {"email": "a@b.c", "profile": {"name": "Anna"}}


def test_doc_override_changes_collection() -> None:
    engine, adapter = _engine(_contact())

    request = SaveRequest(form_key="contact", payload={"email": "a@b.c"}, doc=DocOverride(collection="archive"))
    result = asyncio.run(engine.save(request))

    assert result.collection == "archive"
    assert adapter.get("archive", "a@b.c") == {"email": "a@b.c"}


@pytest.mark.parametrize(
    ("strategy", "normalized", "uid", "expected"),
    [
        ({"kind": "auto"}, {}, None, AutoIdStrategy()),
        ({"kind": "fixed", "id": "singleton"}, {}, None, FixedIdStrategy(id="singleton")),
        ({"kind": "payload", "key": "email"}, {"email": "a@b.c"}, None, FixedIdStrategy(id="a@b.c")),
        ({"kind": "uid"}, {}, "user-9", FixedIdStrategy(id="user-9")),
    ],
)
def test_resolve_id_strategy(strategy: dict, normalized: dict, uid: str | None, expected: object) -> None:
    definition = FormDefinition.model_validate(_contact(docIdStrategy=strategy))

    assert resolve_id_strategy(definition, normalized, uid) == expected


@pytest.mark.parametrize(
    ("strategy", "normalized", "uid"),
    [
        ({"kind": "payload", "key": "email"}, {}, "u"),
        ({"kind": "payload", "key": "email"}, {"email": ""}, "u"),
        ({"kind": "payload", "key": "email"}, {"email": 42}, "u"),
        ({"kind": "uid"}, {"email": "a@b.c"}, None),
        ({"kind": "uid"}, {}, ""),
    ],
)
def test_resolve_id_strategy_failures(strategy: dict, normalized: dict, uid: str | None) -> None:
    definition = FormDefinition.model_validate(_contact(docIdStrategy=strategy))

    with pytest.raises(DocIdResolutionError):
        resolve_id_strategy(definition, normalized, uid)


def test_hooks_run_in_stage_order(pet_v1) -> None:
    seen: list[str] = []

    def _recorder(hook_input: HookInput) -> None:
        stage = hook_input.config["stage"] if hook_input.config else "?"
        seen.append(stage)
        if stage == HookStage.AFTER_SAVE:
            assert hook_input.result is not None
            assert hook_input.result.id == "u"
        if stage == HookStage.AFTER_MAP:
            assert hook_input.mapped == {"petName": "Rex", "petType": "Dog"}

    hooks = [{"key": stage.value, "name": "recorder", "config": {"stage": stage.value}} for stage in reversed(HookStage)]
    engine, _ = _engine({**pet_v1, "hooks": hooks}, hooks=HookRegistry({"recorder": _recorder}))

    asyncio.run(engine.upsert("petProfile", {"petName": "Rex", "petType": "Dog"}, uid="u"))

    assert seen == [stage.value for stage in HookStage]


def test_hook_failure_aborts_before_storage(pet_v1) -> None:
    def _reject(hook_input: HookInput) -> None:
        raise PermissionError("not allowed")

    definition = {**pet_v1, "hooks": [{"key": "beforeSave", "name": "reject"}]}
    engine, adapter = _engine(definition, hooks=HookRegistry({"reject": _reject}))

    with pytest.raises(HookFailedError, match='Hook "reject" failed: not allowed'):
        asyncio.run(engine.upsert("petProfile", {"petName": "Rex", "petType": "Dog"}, uid="u"))
    assert adapter.db == {}


def test_after_save_failure_keeps_the_write(pet_v1) -> None:
    async def _notify(hook_input: HookInput) -> None:
        raise RuntimeError("mail server down")

    definition = {**pet_v1, "hooks": [{"key": "afterSave", "name": "notify"}]}
    engine, adapter = _engine(definition, hooks=HookRegistry({"notify": _notify}))

    with pytest.raises(HookFailedError):
        asyncio.run(engine.upsert("petProfile", {"petName": "Rex", "petType": "Dog"}, uid="u"))
    assert adapter.get("petProfiles", "u") == {"petName": "Rex", "petType": "Dog"}


def test_hook_can_perform_nested_save(pet_v1) -> None:
    audit = {
        "formKey": "audit",
        "version": 1,
        "collection": "audits",
        "docIdStrategy": {"kind": "auto"},
        "writeMode": "create",
        "fields": [{"key": "target", "type": "string"}, {"key": "at", "type": "string"}],
    }

    async def _audit(hook_input: HookInput) -> None:
        assert hook_input.context.save is not None
        assert hook_input.result is not None
        await hook_input.context.save(
            SaveRequest(
                form_key="audit",
                payload={"target": hook_input.result.id, "at": hook_input.context.now_iso},
            ),
        )

    definition = {**pet_v1, "hooks": [{"key": "afterSave", "name": "audit"}]}
    engine, adapter = _engine(definition, audit, hooks=HookRegistry({"audit": _audit}))

    request = SaveRequest(
        form_key="petProfile",
        payload={"petName": "Rex", "petType": "Dog"},
        context=SaveContext(uid="u", now_iso="2024-01-01T00:00:00.000Z"),
    )
    asyncio.run(engine.save(request))

    assert list(adapter.db["audits"].values()) == [{"target": "u", "at": "2024-01-01T00:00:00.000Z"}]


def test_unresolved_hooks_are_reported_and_skipped(pet_v1, mocker) -> None:
    engine_logger = mocker.patch("persistx.engine.logger")
    definition = {**pet_v1, "hooks": [{"key": "beforeSave", "name": "ghost"}]}

    engine, adapter = _engine(definition)
    asyncio.run(engine.upsert("petProfile", {"petName": "Rex", "petType": "Dog"}, uid="u"))

    engine_logger.warning.assert_called_once()
    assert adapter.get("petProfiles", "u") is not None


def test_save_sync_runs_without_event_loop(pet_v1) -> None:
    engine, _ = _engine(pet_v1)

    result = engine.save_sync(
        SaveRequest(form_key="petProfile", payload={"petName": "Rex", "petType": "Dog"}, context=SaveContext(uid="u")),
    )

    assert result.id == "u"


def test_save_sync_inside_running_loop_raises_validation_error(pet_v1) -> None:
    engine, adapter = _engine(pet_v1)

    async def _caller() -> None:
        engine.save_sync(SaveRequest(form_key="petProfile", payload={}, context=SaveContext(uid="u")))

    with pytest.raises(ValidationFailedError):
        asyncio.run(_caller())
    assert adapter.db == {}


def test_analyze_previews_without_side_effects(pet_v1) -> None:
    engine, adapter = _engine(pet_v1)

    result = engine.analyze("petProfile", {"petName": " Rex ", "color": "red"})

    assert result.version == 1
    assert result.validation.ok is False
    assert result.normalized == {"petName": "Rex", "color": "red"}
    assert result.mapped == {"petName": "Rex"}
    assert result.unknown_in_payload == ["color"]
    assert adapter.db == {}


def test_engine_from_settings_uses_normalization_switches(pet_v1) -> None:
    engine = Engine.from_settings(
        adapter=MemoryAdapter(),
        registry=DefinitionRegistry([pet_v1]),
        settings=Settings(trim_strings=False),
    )

    assert engine.normalize_options == NormalizeOptions(trim_strings=False)
    assert engine.analyze("petProfile", {"petName": " Rex "}).normalized == {"petName": " Rex "}
