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

"""Unit state tracking implementation for pkgforge.

This module implements the persistence layer that remembers, per package
version, how far it has progressed on this machine:

- fetched: source archives are available locally
- present: a binary package was built but is not necessarily installed
- installed: the unit is installed and active

Key Features:

- JSON-based state storage (fast parsing, standard library)
- Auto-creation of state files and directories
- Corrupted files are backed up and replaced by a fresh state

Example:
    High-level API with StateTracker:
        ```python
        from pathlib import Path
        from pkgforge.state import StateTracker

        tracker = StateTracker(Path("state/units.json"))
        tracker.load()

        if not tracker.get_flags("gettext", "0.10.40-1")["fetched"]:
            ...
        tracker.set_flags("gettext", "0.10.40-1", fetched=True)
        tracker.save()
        ```

    Low-level API with functions:
        ```python
        from pathlib import Path
        from pkgforge.state import load_state, save_state

        state = load_state(Path("state/units.json"))
        # ... modify state dict ...
        save_state(state, Path("state/units.json"))
        ```
"""

from __future__ import annotations

from datetime import UTC, datetime
import json
from pathlib import Path
from typing import Any

from pkgforge import __version__
from pkgforge.exceptions import StateError

UNIT_FLAGS = ("fetched", "present", "installed")


class StateTracker:
    """Manages per-unit state with automatic persistence.

    Attributes:
        state_file: Path to the JSON state file, or None to keep state in
            memory only.
        state: In-memory state dictionary.
    """

    def __init__(self, state_file: Path | None = None):
        """Initialize state tracker.

        Args:
            state_file: Path to JSON state file. Created if it doesn't exist.
                None keeps all state in memory.
        """
        self.state_file = state_file
        self.state: dict[str, Any] = create_default_state()

    def load(self) -> dict[str, Any]:
        """Load state from file.

        Creates default state structure if file doesn't exist.
        Handles corrupted files by creating backup and starting fresh.

        Returns:
            Loaded state dictionary.

        Raises:
            StateError: If the file was corrupted (it is backed up first).
        """
        if self.state_file is None:
            return self.state

        try:
            self.state = load_state(self.state_file)
        except FileNotFoundError:
            # First run, create default state
            self.state = create_default_state()
            self.save()
        except json.JSONDecodeError as err:
            backup = self.state_file.with_suffix(".json.backup")
            self.state_file.rename(backup)
            self.state = create_default_state()
            self.save()
            raise StateError(
                f"Corrupted state file backed up to {backup}. "
                f"Created fresh state file."
            ) from err

        self.state.setdefault("units", {})
        return self.state

    def save(self) -> None:
        """Save current state to file.

        Updates metadata.last_updated timestamp automatically. Does nothing
        for an in-memory tracker.

        Raises:
            StateError: If the file cannot be written.
        """
        self.state.setdefault("metadata", {})
        self.state["metadata"]["last_updated"] = datetime.now(UTC).isoformat()

        if self.state_file is None:
            return
        try:
            save_state(self.state, self.state_file)
        except OSError as err:
            raise StateError(f"Cannot write state file {self.state_file}: {err}") from err

    def get_flags(self, name: str, version: str) -> dict[str, bool]:
        """Return the state flags of one unit, all False if unknown."""
        entry = self.state.get("units", {}).get(name, {}).get(version, {})
        return {flag: bool(entry.get(flag, False)) for flag in UNIT_FLAGS}

    def set_flags(self, name: str, version: str, **flags: bool) -> None:
        """Update state flags of one unit.

        Args:
            name: Package name.
            version: Full version string.
            **flags: Any of fetched, present, installed.

        Raises:
            ValueError: If an unknown flag is given.
        """
        unknown = set(flags) - set(UNIT_FLAGS)
        if unknown:
            raise ValueError(f"unknown unit flags: {sorted(unknown)}")
        units = self.state.setdefault("units", {})
        entry = units.setdefault(name, {}).setdefault(version, {})
        entry.update(flags)

    def installed_versions(self, name: str) -> list[str]:
        """Return the versions of a package that are marked installed."""
        versions = self.state.get("units", {}).get(name, {})
        return [v for v, entry in versions.items() if entry.get("installed")]


def create_default_state() -> dict[str, Any]:
    """Create a default empty state structure.

    Returns:
        Empty state with metadata section.
    """
    return {
        "metadata": {
            "pkgforge_version": __version__,
            "schema_version": "1",
            "last_updated": datetime.now(UTC).isoformat(),
        },
        "units": {},
    }


def load_state(state_file: Path) -> dict[str, Any]:
    """Load state from JSON file.

    Args:
        state_file: Path to JSON state file.

    Returns:
        Loaded state dictionary.

    Raises:
        FileNotFoundError: If state file doesn't exist.
        json.JSONDecodeError: If file contains invalid JSON.
    """
    with open(state_file, encoding="utf-8") as f:
        return json.load(f)


def save_state(state: dict[str, Any], state_file: Path) -> None:
    """Save state to JSON file with pretty-printing.

    Creates parent directories if needed. Uses 2-space indentation
    and sorted keys for consistent diffs.

    Args:
        state: State dictionary to save.
        state_file: Path to JSON state file.
    """
    state_file.parent.mkdir(parents=True, exist_ok=True)

    with open(state_file, "w", encoding="utf-8") as f:
        json.dump(state, f, indent=2, sort_keys=True)
        f.write("\n")
