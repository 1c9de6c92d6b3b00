"""
Pytest configuration and shared fixtures for pkgforge tests.

This module provides reusable fixtures and test utilities used across
the test suite.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from pkgforge.catalog import MemoryCatalog
from pkgforge.logging import SilentLogger, set_global_logger


@pytest.fixture(autouse=True)
def silent_global_logger():
    """Reset the global logger so CLI tests do not leak verbosity."""
    set_global_logger(SilentLogger())
    yield
    set_global_logger(SilentLogger())


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("test.yaml", {"key": "value"})
    """

    def _create(filename: str, data: dict[str, Any]) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(data, f)
        return path

    return _create


@pytest.fixture
def sample_catalog_data() -> dict[str, Any]:
    """
    Provide a small catalog mapping.

    gettext depends on libiconv; gettext has two versions.
    """
    return {
        "packages": {
            "libiconv": {"versions": {"1.7-3": {}}},
            "gettext": {
                "versions": {
                    "0.10.40-1": {"depends": ["libiconv"]},
                    "0.10.40-2": {"depends": ["libiconv"]},
                }
            },
        }
    }


@pytest.fixture
def make_catalog():
    """
    Factory fixture for in-memory catalogs.

    Usage:
        catalog = make_catalog({
            "A": ("1.0-1", ["B"]),
            "B": ("1.0-1", []),
        }, installed={"B"})

    Each entry maps a package name to (version, depends). Names listed in
    ``installed``, ``present`` or ``fetched`` get that flag seeded.
    """

    def _create(
        packages: dict[str, tuple[str, list[str]]],
        *,
        installed: set[str] = frozenset(),
        present: set[str] = frozenset(),
        fetched: set[str] = frozenset(),
        fail: dict[str, str] | None = None,
    ) -> MemoryCatalog:
        catalog = MemoryCatalog()
        fail = fail or {}
        for name, (version, depends) in packages.items():
            catalog.add_unit(
                name,
                version,
                depends,
                fail=fail.get(name),
                fetched=True if name in fetched or name in installed else None,
                present=True if name in present or name in installed else None,
                installed=True if name in installed else None,
            )
        return catalog

    return _create
