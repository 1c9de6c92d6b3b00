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

"""Public API return types for pkgforge.

This module defines dataclasses for return values from public API functions:
the scheduler report and the results of the engine commands.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values. Units are listed by their "name-version" label.

Note:
    Only public API return types belong in this module. Domain types
    (like DependencyNode or VersionString) stay co-located with their logic.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ScheduleReport:
    """What the installation scheduler did.

    Attributes:
        additional: Names of packages pulled in as dependencies.
        fetched: Units whose fetch phase ran.
        built: Units built, in build order.
        activated: Units activated after building.
        deactivated: Previously installed units that were deactivated.
        passes: Number of scans the build pass needed.
    """

    additional: list[str]
    fetched: list[str]
    built: list[str]
    activated: list[str]
    deactivated: list[str]
    passes: int


@dataclass(frozen=True)
class InstallResult:
    """Result from an install, build or update command.

    Attributes:
        kind: Operation kind ("install", "build" or "update").
        requested: Specifiers as given.
        nodes: Names of all packages in the resolution graph.
        report: Scheduler report, None when there was nothing to do.
        status: "success" or "nothing-to-do".
    """

    kind: str
    requested: list[str]
    nodes: list[str]
    report: ScheduleReport | None
    status: str


@dataclass(frozen=True)
class PhaseResult:
    """Result from a command that runs a single phase on selected units.

    Used by fetch, fetch-all, fetch-missing, activate and deactivate.

    Attributes:
        phase: Phase that was run.
        units: Units the phase ran on.
        skipped: Units that were selected but needed nothing.
        status: Always "success" when returned.
    """

    phase: str
    units: list[str]
    skipped: list[str]
    status: str
