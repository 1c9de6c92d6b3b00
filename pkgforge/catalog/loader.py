# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Load a MemoryCatalog from a YAML catalog file.

Catalog format:

    packages:
      libiconv:
        versions:
          "1.7-3": {}
      gettext:
        versions:
          "0.10.40-1":
            depends: [libiconv]
          "0.10.40-2":
            depends: [libiconv]
            fail: compile      # optional, simulates a failing phase

Version keys must be quoted so YAML keeps them as strings ("1.10" would
otherwise load as the float 1.1).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from pkgforge.catalog.memory import MemoryCatalog
from pkgforge.exceptions import ConfigError
from pkgforge.logging import get_global_logger
from pkgforge.state import StateTracker
from pkgforge.versioning import VersionComparator


def _load_yaml_file(p: Path) -> Any:
    """Loads a YAML file and returns the parsed Python object.

    Raises:
        ConfigError: When file does not exist, invalid YAML, or empty files.
    """
    if not p.exists():
        raise ConfigError(f"catalog file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    if data is None:
        raise ConfigError(f"YAML file is empty: {p}")
    return data


def _read_depends(where: str, entry: dict[str, Any]) -> list[str]:
    depends = entry.get("depends", []) or []
    if not isinstance(depends, list) or not all(isinstance(d, str) for d in depends):
        raise ConfigError(f"{where}: 'depends' must be a list of package names")
    return [d.strip() for d in depends if d.strip()]


def populate_catalog(catalog: MemoryCatalog, data: dict[str, Any], source: str) -> None:
    """Register every package/version described by a parsed catalog mapping.

    Args:
        catalog: Catalog to fill.
        data: Parsed YAML mapping with a top-level "packages" key.
        source: Name used in error messages (usually the file path).

    Raises:
        ConfigError: On structural problems.
    """
    packages = data.get("packages")
    if not isinstance(packages, dict):
        raise ConfigError(f"{source}: top-level 'packages' mapping is required")

    for name, pkg in packages.items():
        where = f"{source}: package {name!r}"
        if not isinstance(pkg, dict) or not isinstance(pkg.get("versions"), dict):
            raise ConfigError(f"{where}: 'versions' mapping is required")
        catalog.add_package(str(name))
        for version, entry in pkg["versions"].items():
            if not isinstance(version, str):
                raise ConfigError(
                    f"{where}: version {version!r} must be a quoted string"
                )
            if not version.strip():
                raise ConfigError(f"{where}: version must be non-empty")
            entry = entry or {}
            if not isinstance(entry, dict):
                raise ConfigError(f"{where}: version {version!r} must be a mapping")
            catalog.add_unit(
                str(name),
                version,
                _read_depends(f"{where} {version}", entry),
                fail=entry.get("fail"),
            )


def load_catalog(
    catalog_path: Path,
    *,
    tracker: StateTracker | None = None,
    comparator: VersionComparator | None = None,
) -> MemoryCatalog:
    """Read a catalog YAML file into a MemoryCatalog.

    Args:
        catalog_path: Path to the catalog YAML file.
        tracker: State tracker for unit flags; in-memory when omitted.
        comparator: Version comparator shared with the resolver.

    Returns:
        The populated catalog.

    Raises:
        ConfigError: If the file is missing, unparsable or malformed.
    """
    logger = get_global_logger()
    logger.verbose("CATALOG", f"Reading package info from {catalog_path}")

    data = _load_yaml_file(catalog_path)
    if not isinstance(data, dict):
        raise ConfigError(f"top-level YAML must be a mapping (dict): {catalog_path}")

    catalog = MemoryCatalog(comparator=comparator, tracker=tracker)
    populate_catalog(catalog, data, str(catalog_path))
    logger.verbose("CATALOG", f"Loaded {len(catalog.package_names())} package(s)")
    return catalog
