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

"""In-memory reference catalog.

Packages and units are registered programmatically or loaded from YAML by
pkgforge.catalog.loader. Phase operations do not run any commands; each
one is a state transition on the unit, persisted through a StateTracker
and appended to the catalog journal:

- fetch: marks the unit fetched
- unpack, patch, compile, install: require the unit to be fetched
- build: marks the unit present
- activate: requires the unit to be present, marks it installed
- deactivate: marks it not installed

A unit registered with ``fail="<phase>"`` raises PhaseExecutionError from
that phase, which is how failure handling is exercised.

Example:
    ```python
    from pkgforge.catalog import MemoryCatalog

    catalog = MemoryCatalog()
    catalog.add_unit("libiconv", "1.7-3")
    catalog.add_unit("gettext", "0.10.40-1", depends=["libiconv"])

    unit = catalog.match_specifier("gettext")
    unit.dependency_names()  # ["libiconv"]
    ```
"""

from __future__ import annotations

from typing import Iterable

from pkgforge.catalog.base import PHASES
from pkgforge.exceptions import ConfigError, PhaseExecutionError
from pkgforge.logging import get_global_logger
from pkgforge.state import StateTracker
from pkgforge.versioning import VersionComparator


class MemoryUnit:
    """One version of a package held by a MemoryCatalog."""

    def __init__(
        self,
        catalog: MemoryCatalog,
        name: str,
        version: str,
        depends: Iterable[str] = (),
        fail: str | None = None,
    ) -> None:
        self._catalog = catalog
        self._name = name
        self._version = version
        self._depends: list[str] = []
        for dep in depends:
            if dep not in self._depends:
                self._depends.append(dep)
        self.fail = fail

    def __repr__(self) -> str:
        return f"MemoryUnit({self._name!r}, {self._version!r})"

    def __str__(self) -> str:
        return f"{self._name}-{self._version}"

    @property
    def name(self) -> str:
        return self._name

    def full_version(self) -> str:
        return self._version

    def dependency_names(self) -> list[str]:
        return list(self._depends)

    # State queries

    def _flags(self) -> dict[str, bool]:
        return self._catalog.tracker.get_flags(self._name, self._version)

    def is_installed(self) -> bool:
        return self._flags()["installed"]

    def is_present(self) -> bool:
        return self._flags()["present"]

    def is_fetched(self) -> bool:
        return self._flags()["fetched"]

    # Phase operations

    def _run_phase(self, phase: str, **flags: bool) -> None:
        logger = get_global_logger()
        if self.fail == phase:
            raise PhaseExecutionError(phase, str(self), "simulated failure")
        logger.verbose("PHASE", f"{phase} {self}")
        if flags:
            self._catalog.tracker.set_flags(self._name, self._version, **flags)
            self._catalog.tracker.save()
        self._catalog.journal.append((phase, self._name, self._version))

    def _require_fetched(self, phase: str) -> None:
        if not self.is_fetched():
            raise PhaseExecutionError(phase, str(self), "source not fetched")

    def fetch(self) -> None:
        self._run_phase("fetch", fetched=True)

    def unpack(self) -> None:
        self._require_fetched("unpack")
        self._run_phase("unpack")

    def patch(self) -> None:
        self._require_fetched("patch")
        self._run_phase("patch")

    def compile(self) -> None:
        self._require_fetched("compile")
        self._run_phase("compile")

    def install(self) -> None:
        self._require_fetched("install")
        self._run_phase("install")

    def build(self) -> None:
        self._run_phase("build", present=True)

    def activate(self) -> None:
        if not self.is_present():
            raise PhaseExecutionError("activate", str(self), "no binary package built")
        self._run_phase("activate", installed=True)

    def deactivate(self) -> None:
        self._run_phase("deactivate", installed=False)


class MemoryPackage:
    """All registered versions of one package name."""

    def __init__(self, catalog: MemoryCatalog, name: str) -> None:
        self._catalog = catalog
        self._name = name
        self._units: dict[str, MemoryUnit] = {}

    def __repr__(self) -> str:
        return f"MemoryPackage({self._name!r}, versions={list(self._units)!r})"

    @property
    def name(self) -> str:
        return self._name

    def add_version(
        self, version: str, depends: Iterable[str] = (), fail: str | None = None
    ) -> MemoryUnit:
        if fail is not None and fail not in PHASES:
            raise ConfigError(
                f"unknown phase {fail!r} for {self._name}-{version}; "
                f"expected one of: {', '.join(PHASES)}"
            )
        unit = MemoryUnit(self._catalog, self._name, version, depends, fail)
        self._units[version] = unit
        return unit

    def versions(self) -> list[str]:
        return list(self._units)

    def installed_versions(self) -> list[str]:
        installed = self._catalog.tracker.installed_versions(self._name)
        return [v for v in self._units if v in installed]

    def is_any_installed(self) -> bool:
        return any(unit.is_installed() for unit in self._units.values())

    def version(self, version: str) -> MemoryUnit:
        """Return the unit for an exact version string.

        Raises:
            KeyError: If the version is not registered.
        """
        return self._units[version]

    def find_version(self, version: str) -> MemoryUnit | None:
        """Return the unit whose version compares equal, e.g. "1.0" for "1.0-0"."""
        if version in self._units:
            return self._units[version]
        for v, unit in self._units.items():
            if self._catalog.comparator.compare(v, "=", version):
                return unit
        return None


class MemoryCatalog:
    """Reference Catalog implementation backed by dictionaries.

    Attributes:
        comparator: Version comparator used to pick the newest version.
        tracker: State tracker holding fetched/present/installed flags.
        journal: Completed phase operations as (phase, name, version).
    """

    def __init__(
        self,
        comparator: VersionComparator | None = None,
        tracker: StateTracker | None = None,
    ) -> None:
        self.comparator = comparator or VersionComparator()
        self.tracker = tracker or StateTracker()
        self.journal: list[tuple[str, str, str]] = []
        self._packages: dict[str, MemoryPackage] = {}

    def add_package(self, name: str) -> MemoryPackage:
        if name not in self._packages:
            self._packages[name] = MemoryPackage(self, name)
        return self._packages[name]

    def add_unit(
        self,
        name: str,
        version: str,
        depends: Iterable[str] = (),
        *,
        fail: str | None = None,
        fetched: bool | None = None,
        present: bool | None = None,
        installed: bool | None = None,
    ) -> MemoryUnit:
        """Register a unit, optionally seeding its state flags.

        Flags left as None keep whatever the tracker already records.
        """
        unit = self.add_package(name).add_version(version, depends, fail)
        seed = {
            flag: value
            for flag, value in (
                ("fetched", fetched),
                ("present", present),
                ("installed", installed),
            )
            if value is not None
        }
        if seed:
            self.tracker.set_flags(name, version, **seed)
        return unit

    def package_names(self) -> list[str]:
        return sorted(self._packages)

    def get_package(self, name: str) -> MemoryPackage | None:
        return self._packages.get(name)

    def match_specifier(self, specifier: str) -> MemoryUnit | None:
        """Resolve a specifier to a unit.

        A bare package name resolves to its newest version. Otherwise the
        specifier is split at each hyphen in turn into "name-version".
        """
        package = self._packages.get(specifier)
        if package is not None:
            newest = self.comparator.latest(package.versions())
            return package.version(newest) if newest is not None else None

        idx = specifier.find("-")
        while idx != -1:
            package = self._packages.get(specifier[:idx])
            version = specifier[idx + 1 :]
            if package is not None and version:
                unit = package.find_version(version)
                if unit is not None:
                    return unit
            idx = specifier.find("-", idx + 1)
        return None
