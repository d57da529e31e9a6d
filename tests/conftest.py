"""Pytest marker auto-assignment by folder and shared definition fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from persistx import logger


def _mark_tests_by_directory(
    config: pytest.Config,
    items: list[pytest.Item],
    marker: str,
) -> None:
    """Mark collected tests located under tests/<marker>/."""
    target_dir = Path(config.rootpath) / "tests" / marker
    target_dir = target_dir.resolve()

    for item in items:
        try:
            path = Path(str(item.fspath)).resolve()
        except Exception:
            logger.warning(
                f"Could not resolve path for test item {item.name!s}; skipping {marker!s} marker assignment",
            )
            continue

        if path == target_dir or target_dir in path.parents:
            item.add_marker(getattr(pytest.mark, marker))


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    """Apply directory-based markers to test items."""
    _mark_tests_by_directory(config, items, "unit")
    _mark_tests_by_directory(config, items, "integration")
    _mark_tests_by_directory(config, items, "end2end")


@pytest.fixture
def pet_v1() -> dict[str, Any]:
    """Raw `petProfile` v1 definition."""
    return {
        "formKey": "petProfile",
        "version": 1,
        "collection": "petProfiles",
        "docIdStrategy": {"kind": "uid"},
        "writeMode": "upsert",
        "allowUnknownFields": False,
        "fields": [
            {"key": "petName", "type": "string", "rules": [{"kind": "required"}]},
            {"key": "petType", "type": "string", "rules": [{"kind": "required"}]},
        ],
    }


@pytest.fixture
def pet_v2() -> dict[str, Any]:
    """Raw `petProfile` v2 definition, with `petType` renamed to `type`."""
    return {
        "formKey": "petProfile",
        "version": 2,
        "collection": "petProfiles",
        "docIdStrategy": {"kind": "uid"},
        "writeMode": "upsert",
        "allowUnknownFields": False,
        "fields": [
            {"key": "petName", "type": "string", "rules": [{"kind": "required"}]},
            {"key": "type", "type": "string", "aliases": ["petType"], "rules": [{"kind": "required"}]},
        ],
    }
