from __future__ import annotations

import io
import json

from persistx import logger as package_logger
from persistx.logging import configure_logging, get_logger
from persistx.settings import Settings


def test_stdlib_logger_is_configured(capsys) -> None:
    configure_logging(settings=Settings(log_json=False, log_level="INFO"), force=True)
    logger = get_logger("tests")
    logger.info("hello")

    captured = capsys.readouterr()
    assert "hello" in captured.err.lower()
    assert "hello" not in captured.out.lower()


def test_json_logs_flatten_extra() -> None:
    stream = io.StringIO()
    configure_logging(settings=Settings(log_json=True, log_level="INFO"), force=True, stream=stream)

    get_logger("tests-json").info("Schema written", extra={"schema_path": "schema.json"})

    record = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert record["message"] == "Schema written"
    assert record["schema_path"] == "schema.json"
    assert record["level"] == "info"

    configure_logging(settings=Settings(log_json=False, log_level="WARNING"), force=True)


def test_package_logger_created_on_import() -> None:
    assert callable(getattr(package_logger, "info", None))
