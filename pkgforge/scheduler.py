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

"""Installation scheduler: drives a resolved graph through its phases.

The scheduler consumes a complete ResolutionGraph and runs three passes:

1. Confirmation: if dependencies pull in additional packages, the confirm
   callback sees their sorted names. Declining raises UserAbortError before
   anything else happens.
2. Fetch: every node that is not installed and not yet fetched is fetched.
3. Build: the nodes are scanned in name order, again and again, until all
   are installed. A node is eligible once all of its dependencies are
   installed; it then goes through unpack, patch, compile, install and
   build, and unless activation is suppressed every other installed
   version of the package is deactivated before the new one is activated.

Any failure aborts the whole operation. Nodes completed before the failure
stay installed; nothing is rolled back and nothing is retried.

A scan that installs nothing while nodes remain means the rest can never
become eligible (a dependency cycle). That raises CyclicDependencyError
instead of scanning forever.
"""

from __future__ import annotations

from typing import Callable

from pkgforge.catalog.base import BUILD_PHASES, Unit, unit_label
from pkgforge.exceptions import (
    CyclicDependencyError,
    PhaseExecutionError,
    PkgForgeError,
    UserAbortError,
)
from pkgforge.graph import DependencyNode, ResolutionGraph
from pkgforge.logging import Logger, get_global_logger
from pkgforge.results import ScheduleReport

ConfirmFn = Callable[[list[str]], bool]


def run_phase(unit: Unit, phase: str) -> None:
    """Invoke one phase operation on a unit.

    Raises:
        PhaseExecutionError: If the phase fails. Errors that are not
            already pkgforge errors are wrapped, with the cause chained.
    """
    try:
        getattr(unit, phase)()
    except PkgForgeError:
        raise
    except Exception as err:
        raise PhaseExecutionError(phase, unit_label(unit), str(err)) from err


class InstallationScheduler:
    """Runs the confirm, fetch and build passes over a ResolutionGraph."""

    def __init__(self, logger: Logger | None = None) -> None:
        self.logger = logger or get_global_logger()
        self._fetched: list[str] = []
        self._built: list[str] = []
        self._activated: list[str] = []
        self._deactivated: list[str] = []

    def run(self, graph: ResolutionGraph, confirm: ConfirmFn) -> ScheduleReport:
        """Drive every node of the graph to the installed state.

        Args:
            graph: Completed graph from DependencyGraphBuilder.
            confirm: Called with the sorted additional package names;
                returns False to abort.

        Returns:
            ScheduleReport describing every side effect performed.

        Raises:
            UserAbortError: Additional packages were declined.
            PhaseExecutionError: A phase failed.
            CyclicDependencyError: The build pass stopped making progress.
        """
        self._fetched, self._built = [], []
        self._activated, self._deactivated = [], []

        self.logger.step(1, 3, "Checking dependencies...")
        additional = graph.additional_packages()
        if additional and not confirm(additional):
            raise UserAbortError("Dependencies not satisfied")

        self.logger.step(2, 3, "Fetching sources...")
        self._fetch_pass(graph)

        self.logger.step(3, 3, "Building packages...")
        passes = self._build_pass(graph)

        return ScheduleReport(
            additional=additional,
            fetched=list(self._fetched),
            built=list(self._built),
            activated=list(self._activated),
            deactivated=list(self._deactivated),
            passes=passes,
        )

    def _fetch_pass(self, graph: ResolutionGraph) -> None:
        for node in graph.nodes():
            if node.status.already_installed:
                continue
            if node.unit.is_fetched():
                self.logger.debug("FETCH", f"{unit_label(node.unit)} already fetched")
                continue
            self.logger.verbose("FETCH", unit_label(node.unit))
            run_phase(node.unit, "fetch")
            self._fetched.append(unit_label(node.unit))

    def _build_pass(self, graph: ResolutionGraph) -> int:
        passes = 0
        while True:
            passes += 1
            all_installed = True
            progress = False
            for node in graph.nodes():
                if node.status.already_installed:
                    continue
                all_installed = False
                if not self._is_eligible(graph, node):
                    continue
                self._build_node(node)
                progress = True

            if all_installed:
                return passes
            if not progress:
                raise CyclicDependencyError(
                    [n.name for n in graph.nodes() if not n.status.already_installed]
                )
            self.logger.debug("BUILD", f"scan {passes} done, rescanning")

    @staticmethod
    def _is_eligible(graph: ResolutionGraph, node: DependencyNode) -> bool:
        return all(graph[dep].status.already_installed for dep in node.edges)

    def _build_node(self, node: DependencyNode) -> None:
        unit = node.unit
        label = unit_label(unit)
        self.logger.verbose("BUILD", label)

        for phase in BUILD_PHASES:
            run_phase(unit, phase)
        self._built.append(label)

        if not node.status.suppress_activation:
            for version in node.package.installed_versions():
                if version != unit.full_version():
                    old = node.package.version(version)
                    self.logger.verbose("BUILD", f"deactivating {unit_label(old)}")
                    run_phase(old, "deactivate")
                    self._deactivated.append(unit_label(old))
            run_phase(unit, "activate")
            self._activated.append(label)

        node.status.built_this_run = True
        node.status.already_installed = True
