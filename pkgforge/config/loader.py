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

"""Configuration loading and merging for pkgforge.

The effective configuration is the built-in defaults with the user's
``pkgforge.yaml`` merged on top.

Config File Lookup:
    1. The path given with ``--config`` (must exist)
    2. The first ``pkgforge.yaml`` found walking upward from the working
       directory
    3. None: built-in defaults only

Merge Behavior:
    The loader performs deep merging with "last wins" semantics:

    - **Dicts**: Recursively merged (keys from overlay override base)
    - **Lists**: Completely replaced (NOT appended/extended)
    - **Scalars**: Overwritten (strings, numbers, booleans)

Path Resolution:
    Relative paths are resolved against the directory of the config file
    (or the working directory when there is none). Currently resolved:

    - catalog.path
    - state.path

Error Handling:
    - ConfigError: Missing explicit config file, YAML parse errors, empty
        files, or invalid structure
    - All errors are chained with "from err" for better debugging

Example:
    Basic usage:
        ```python
        from pathlib import Path
        from pkgforge.config import load_config

        cfg = load_config(Path("pkgforge.yaml"))
        print(cfg["catalog"]["path"])  # /abs/path/to/catalog.yaml
        ```
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from pkgforge.exceptions import ConfigError
from pkgforge.logging import get_global_logger

CONFIG_FILENAME = "pkgforge.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "catalog": {"path": "catalog.yaml"},
    "state": {"path": "state/units.json"},
    "prompt": {"assume_yes": False},
}

# -------------------------------
# Data types
# -------------------------------


@dataclass(frozen=True)
class LoadContext:
    """Metadata describing how the config was resolved."""

    config_path: Path | None
    base_dir: Path


# -------------------------------
# YAML helpers
# -------------------------------


def _load_yaml_file(p: Path) -> Any:
    """Loads a YAML file and returns the parsed Python object.

    Raises:
        ConfigError: When file does not exist, invalid YAML (parse error), or empty files.
    """
    if not p.exists():
        raise ConfigError(f"file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    if data is None:
        raise ConfigError(f"YAML file is empty: {p}")
    return data


# -------------------------------
# Merge logic
# -------------------------------


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Deep-merges two dicts with "overlay wins" semantics.

    This function does not mutate inputs; returns a new dict.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            # Replace lists and scalars entirely
            result[k] = v
    return result


# -------------------------------
# Config discovery
# -------------------------------


def _find_config_file(start_dir: Path) -> Path | None:
    """Walks upward from start_dir looking for a pkgforge.yaml file."""
    for parent in [start_dir] + list(start_dir.parents):
        candidate = parent / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


# -------------------------------
# Path resolution
# -------------------------------


def _resolve_known_paths(cfg: dict[str, Any], base_dir: Path) -> None:
    """Resolves relative catalog/state paths against base_dir, in place.

    Raises:
        ConfigError: If a path field is not a non-empty string.
    """
    for section in ("catalog", "state"):
        raw_path = cfg.get(section, {}).get("path")
        if not isinstance(raw_path, str) or not raw_path:
            raise ConfigError(f"'{section}.path' must be a non-empty string")
        p = Path(raw_path).expanduser()
        if not p.is_absolute():
            p = (base_dir / p).resolve()
        cfg[section]["path"] = str(p)


# -------------------------------
# Public API
# -------------------------------


def load_config(
    config_path: Path | None = None,
    *,
    start_dir: Path | None = None,
) -> dict[str, Any]:
    """Load the effective pkgforge configuration.

    Args:
        config_path: Explicit config file. Must exist when given.
        start_dir: Where to start looking for pkgforge.yaml when no explicit
            path is given. Defaults to the working directory.

    Returns:
        Merged configuration dict with absolute catalog.path and state.path.

    Raises:
        ConfigError: On a missing explicit file, YAML errors or bad structure.
    """
    logger = get_global_logger()
    start_dir = (start_dir or Path.cwd()).resolve()

    if config_path is None:
        config_path = _find_config_file(start_dir)
    else:
        config_path = config_path.resolve()

    merged = copy.deepcopy(DEFAULT_CONFIG)
    if config_path is not None:
        logger.verbose("CONFIG", f"Loading: {config_path}")
        user_cfg = _load_yaml_file(config_path)
        if not isinstance(user_cfg, dict):
            raise ConfigError(
                f"top-level YAML must be a mapping (dict): {config_path}"
            )
        merged = _deep_merge_dicts(merged, user_cfg)
    else:
        logger.verbose("CONFIG", "No config file found, using defaults")

    for section in DEFAULT_CONFIG:
        if not isinstance(merged.get(section), dict):
            raise ConfigError(f"'{section}' must be a mapping")

    context = LoadContext(
        config_path=config_path,
        base_dir=config_path.parent if config_path else start_dir,
    )
    _resolve_known_paths(merged, context.base_dir)

    logger.debug("CONFIG", "--- Effective Configuration ---")
    for line in yaml.safe_dump(merged, default_flow_style=False).splitlines():
        logger.debug("CONFIG", line)

    return merged
