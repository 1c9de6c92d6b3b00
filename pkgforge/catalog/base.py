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

"""Catalog interfaces consumed by the resolver and scheduler.

The graph builder and the scheduler never look inside package metadata
themselves. They talk to three small interfaces:

- Catalog: finds packages by name and units by specifier
- Package: lists the versions of one package and which are installed
- Unit: one version of one package, with its dependencies, its state
  queries and its phase operations

Phase operations either complete or raise. A raised exception aborts the
whole operation; implementations should raise PhaseExecutionError so the
phase and unit are reported, but anything else is wrapped by the scheduler.

Any object with matching methods satisfies these protocols; the reference
implementation lives in pkgforge.catalog.memory.
"""

from __future__ import annotations

from typing import Protocol

PHASES = (
    "fetch",
    "unpack",
    "patch",
    "compile",
    "install",
    "build",
    "activate",
    "deactivate",
)

BUILD_PHASES = ("unpack", "patch", "compile", "install", "build")


class Unit(Protocol):
    """A specific buildable/installable version of a named package."""

    @property
    def name(self) -> str: ...

    def full_version(self) -> str:
        """Return the full version string, e.g. "1:0.10.40-2"."""
        ...

    def is_installed(self) -> bool: ...

    def is_present(self) -> bool:
        """True if a binary package was built but not necessarily installed."""
        ...

    def is_fetched(self) -> bool: ...

    def dependency_names(self) -> list[str]:
        """Return declared dependency names in declaration order."""
        ...

    def fetch(self) -> None: ...

    def unpack(self) -> None: ...

    def patch(self) -> None: ...

    def compile(self) -> None: ...

    def install(self) -> None: ...

    def build(self) -> None: ...

    def activate(self) -> None: ...

    def deactivate(self) -> None: ...


class Package(Protocol):
    """All known versions of one package name."""

    @property
    def name(self) -> str: ...

    def versions(self) -> list[str]: ...

    def installed_versions(self) -> list[str]: ...

    def version(self, version: str) -> Unit: ...

    def is_any_installed(self) -> bool: ...


class Catalog(Protocol):
    """Resolves names and specifiers to packages and units."""

    def package_names(self) -> list[str]: ...

    def get_package(self, name: str) -> Package | None: ...

    def match_specifier(self, specifier: str) -> Unit | None:
        """Resolve "name" to its newest unit, or "name-version" to that unit."""
        ...


def unit_label(unit: Unit) -> str:
    """Display name of a unit, "name-version"."""
    return f"{unit.name}-{unit.full_version()}"
