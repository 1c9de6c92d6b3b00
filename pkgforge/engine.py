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

"""Command orchestration for pkgforge.

This module maps every user-facing command onto the resolver and the
scheduler, or onto a single phase for the commands that bypass them:

- install, build, update: resolve the graph with the matching
  OperationKind, then run the scheduler
- update-all: update every package that has any version installed
- fetch: fetch the units matching the given specifiers
- fetch-all: fetch the newest version of every package
- fetch-missing: like fetch-all, skipping units already fetched
- activate, deactivate: run that phase on the matching units

Commands form a closed enum; run_command dispatches on the enum member.

Design Principles:

- Functions return structured data (dataclasses) for easy testing
- Error handling uses exceptions; CLI layer formats for user display
- One VersionComparator per command run, shared by catalog and resolver

Example:
    Programmatic usage:
        ```python
        from pathlib import Path
        from pkgforge.catalog import load_catalog
        from pkgforge.engine import Command, run_command

        catalog = load_catalog(Path("catalog.yaml"))
        result = run_command(
            Command.INSTALL, ["gettext"], catalog, confirm=lambda names: True
        )
        print(result.report.built)  # ["libiconv-1.7-3", "gettext-0.10.40-2"]
        ```
"""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from pkgforge.catalog.base import Catalog, Unit, unit_label
from pkgforge.exceptions import UnresolvedSpecifierError, UsageError
from pkgforge.graph import DependencyGraphBuilder, OperationKind, OperationRequest
from pkgforge.logging import get_global_logger
from pkgforge.prompt import make_confirm
from pkgforge.results import InstallResult, PhaseResult
from pkgforge.scheduler import ConfirmFn, InstallationScheduler, run_phase
from pkgforge.versioning import VersionComparator


class Command(Enum):
    """User-facing commands."""

    INSTALL = "install"
    BUILD = "build"
    UPDATE = "update"
    UPDATE_ALL = "update-all"
    FETCH = "fetch"
    FETCH_ALL = "fetch-all"
    FETCH_MISSING = "fetch-missing"
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"

    @classmethod
    def from_name(cls, name: str) -> Command:
        """Look up a command by name or alias.

        Raises:
            UsageError: If the name is unknown.
        """
        name = COMMAND_ALIASES.get(name, name)
        try:
            return cls(name)
        except ValueError:
            raise UsageError(f"unknown command: {name}") from None

    @property
    def takes_specifiers(self) -> bool:
        return self not in (Command.UPDATE_ALL, Command.FETCH_ALL, Command.FETCH_MISSING)


COMMAND_ALIASES = {
    "enable": "activate",
    "use": "activate",
    "disable": "deactivate",
    "unuse": "deactivate",
}

_KIND_BY_COMMAND = {
    Command.INSTALL: OperationKind.INSTALL,
    Command.BUILD: OperationKind.BUILD,
    Command.UPDATE: OperationKind.UPDATE,
}


def expand_packages(specifiers: Sequence[str], catalog: Catalog) -> list[Unit]:
    """Match every specifier to a unit.

    Raises:
        UnresolvedSpecifierError: If any specifier matches nothing.
    """
    units = []
    for spec in specifiers:
        unit = catalog.match_specifier(spec)
        if unit is None:
            raise UnresolvedSpecifierError(spec)
        units.append(unit)
    return units


def real_install(
    kind: OperationKind,
    specifiers: Sequence[str],
    catalog: Catalog,
    *,
    confirm: ConfirmFn | None = None,
    comparator: VersionComparator | None = None,
) -> InstallResult:
    """Resolve and build the requested packages and their dependencies.

    Args:
        kind: Install, Build or Update.
        specifiers: Package specifiers ("name" or "name-version").
        catalog: Package catalog.
        confirm: Callback approving additional packages. Defaults to an
            interactive prompt.
        comparator: Version comparator for this run.

    Returns:
        InstallResult. Status is "nothing-to-do" when every requested
        package was already installed (or present, for build).

    Raises:
        ResolutionError: If the graph cannot be built.
        UserAbortError: If additional packages were declined.
        PhaseExecutionError: If any phase failed.
        CyclicDependencyError: If the build pass stalled.
    """
    logger = get_global_logger()
    request = OperationRequest(kind, tuple(specifiers))

    graph = DependencyGraphBuilder(comparator=comparator).build(request, catalog)
    if not len(graph):
        print("No packages to install.")
        return InstallResult(
            kind=kind.value,
            requested=list(specifiers),
            nodes=[],
            report=None,
            status="nothing-to-do",
        )

    logger.verbose("GRAPH", f"Resolved {len(graph)} package(s): {', '.join(graph.names())}")
    report = InstallationScheduler().run(graph, confirm or make_confirm())
    return InstallResult(
        kind=kind.value,
        requested=list(specifiers),
        nodes=graph.names(),
        report=report,
        status="success",
    )


def update_all(
    catalog: Catalog,
    *,
    confirm: ConfirmFn | None = None,
    comparator: VersionComparator | None = None,
) -> InstallResult:
    """Update every package that has at least one version installed."""
    names = []
    for name in catalog.package_names():
        package = catalog.get_package(name)
        if package is not None and package.is_any_installed():
            names.append(name)
    return real_install(
        OperationKind.UPDATE, names, catalog, confirm=confirm, comparator=comparator
    )


def _run_on_units(phase: str, units: Sequence[Unit]) -> PhaseResult:
    done = []
    for unit in units:
        run_phase(unit, phase)
        done.append(unit_label(unit))
    return PhaseResult(phase=phase, units=done, skipped=[], status="success")


def fetch_packages(specifiers: Sequence[str], catalog: Catalog) -> PhaseResult:
    """Fetch the units matching the specifiers, fetched or not."""
    return _run_on_units("fetch", expand_packages(specifiers, catalog))


def _newest_units(catalog: Catalog, comparator: VersionComparator) -> list[Unit]:
    units = []
    for name in catalog.package_names():
        package = catalog.get_package(name)
        if package is None:
            continue
        version = comparator.latest(package.versions())
        if version is not None:
            units.append(package.version(version))
    return units


def fetch_all(
    catalog: Catalog, *, comparator: VersionComparator | None = None
) -> PhaseResult:
    """Fetch the newest version of every package in the catalog."""
    units = _newest_units(catalog, comparator or VersionComparator())
    return _run_on_units("fetch", units)


def fetch_missing(
    catalog: Catalog, *, comparator: VersionComparator | None = None
) -> PhaseResult:
    """Fetch the newest version of every package that is not fetched yet."""
    units = _newest_units(catalog, comparator or VersionComparator())
    skipped = [unit_label(u) for u in units if u.is_fetched()]
    result = _run_on_units("fetch", [u for u in units if not u.is_fetched()])
    return PhaseResult(
        phase=result.phase,
        units=result.units,
        skipped=skipped,
        status=result.status,
    )


def activate_packages(specifiers: Sequence[str], catalog: Catalog) -> PhaseResult:
    """Activate the units matching the specifiers."""
    return _run_on_units("activate", expand_packages(specifiers, catalog))


def deactivate_packages(specifiers: Sequence[str], catalog: Catalog) -> PhaseResult:
    """Deactivate the units matching the specifiers."""
    return _run_on_units("deactivate", expand_packages(specifiers, catalog))


def run_command(
    command: Command,
    specifiers: Sequence[str],
    catalog: Catalog,
    *,
    confirm: ConfirmFn | None = None,
    comparator: VersionComparator | None = None,
) -> InstallResult | PhaseResult:
    """Run one command to completion.

    Raises:
        UsageError: If a command that needs specifiers got none, or one
            that takes none got some.
        PkgForgeError: Whatever the command itself raises.
    """
    if command.takes_specifiers and not specifiers:
        raise UsageError(f"no package specified for command '{command.value}'!")
    if not command.takes_specifiers and specifiers:
        raise UsageError(f"command '{command.value}' does not take package names")

    if command in _KIND_BY_COMMAND:
        return real_install(
            _KIND_BY_COMMAND[command],
            specifiers,
            catalog,
            confirm=confirm,
            comparator=comparator,
        )
    if command is Command.UPDATE_ALL:
        return update_all(catalog, confirm=confirm, comparator=comparator)
    if command is Command.FETCH:
        return fetch_packages(specifiers, catalog)
    if command is Command.FETCH_ALL:
        return fetch_all(catalog, comparator=comparator)
    if command is Command.FETCH_MISSING:
        return fetch_missing(catalog, comparator=comparator)
    if command is Command.ACTIVATE:
        return activate_packages(specifiers, catalog)
    if command is Command.DEACTIVATE:
        return deactivate_packages(specifiers, catalog)
    raise UsageError(f"unknown command: {command}")
