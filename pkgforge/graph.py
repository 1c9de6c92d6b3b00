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

"""Dependency graph construction for install, build and update runs.

Given the requested specifiers and an operation kind, the builder grows a
graph of DependencyNode objects by repeated catalog lookups:

1. Every explicit specifier is matched to a unit. Duplicate requests are
   reported and ignored. Targets that are already installed, or (for
   build) already present, are skipped without creating a node.
2. A worklist expands each node once: pick the unit (newest installed
   version, else newest available), stop at installed units, otherwise add
   an edge per declared dependency and enqueue the names seen for the first
   time.

Nodes are kept in an arena keyed by package name and edges are stored as
names, so a dependency shared by several packages is a single node with
several incoming edges, and cycles do not cause re-expansion.

Example:
    ```python
    from pkgforge.graph import DependencyGraphBuilder, OperationKind, OperationRequest

    request = OperationRequest(OperationKind.INSTALL, ("gettext",))
    graph = DependencyGraphBuilder().build(request, catalog)
    graph.additional_packages()  # ["libiconv"]
    ```
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator
import warnings

from pkgforge.catalog.base import Catalog, Package, Unit
from pkgforge.exceptions import (
    DuplicateRequestWarning,
    NoVersionAvailableError,
    ResolutionError,
    UnknownPackageError,
    UnresolvedSpecifierError,
)
from pkgforge.logging import Logger, get_global_logger
from pkgforge.versioning import VersionComparator

# ----------------------------
# Request types
# ----------------------------


class OperationKind(Enum):
    """Mode of a multi-package operation."""

    INSTALL = "install"
    BUILD = "build"
    UPDATE = "update"

    @property
    def skips_present(self) -> bool:
        """Build leaves explicit targets alone once their binary package exists."""
        return self is OperationKind.BUILD

    @property
    def suppresses_activation(self) -> bool:
        """Build only produces binary packages for explicit targets."""
        return self is OperationKind.BUILD


@dataclass(frozen=True)
class OperationRequest:
    """What the user asked for: an operation kind and package specifiers."""

    kind: OperationKind
    specifiers: tuple[str, ...]


# ----------------------------
# Graph types
# ----------------------------


@dataclass
class NodeStatus:
    """Per-node bookkeeping flags for one run."""

    requested_explicitly: bool = False
    already_installed: bool = False
    built_this_run: bool = False
    suppress_activation: bool = False


@dataclass
class DependencyNode:
    """One package name referenced during a resolution run.

    Attributes:
        name: Package name, also the key in the ResolutionGraph.
        package: Catalog package, resolved lazily during expansion.
        unit: Chosen version of the package, resolved lazily.
        status: Bookkeeping flags.
        edges: Names of the dependencies, in declaration order, unique.
    """

    name: str
    package: Package | None = None
    unit: Unit | None = None
    status: NodeStatus = field(default_factory=NodeStatus)
    edges: list[str] = field(default_factory=list)

    def add_edge(self, name: str) -> None:
        if name not in self.edges:
            self.edges.append(name)

    @property
    def is_additional(self) -> bool:
        """True for packages pulled in only as dependencies that still need work."""
        return not (self.status.requested_explicitly or self.status.already_installed)


class ResolutionGraph:
    """Arena of DependencyNode objects keyed by package name.

    Iteration is always in sorted name order so scheduling is deterministic.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, DependencyNode] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._nodes

    def __getitem__(self, name: str) -> DependencyNode:
        return self._nodes[name]

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[DependencyNode]:
        return iter(self.nodes())

    def add_node(self, node: DependencyNode) -> DependencyNode:
        if node.name in self._nodes:
            raise ValueError(f"node already exists: {node.name}")
        self._nodes[node.name] = node
        return node

    def names(self) -> list[str]:
        return sorted(self._nodes)

    def nodes(self) -> list[DependencyNode]:
        return [self._nodes[name] for name in self.names()]

    def additional_packages(self) -> list[str]:
        """Names of nodes neither requested explicitly nor already installed."""
        return [node.name for node in self.nodes() if node.is_additional]

    def incoming(self, name: str) -> list[str]:
        """Names of the nodes that have an edge to ``name``."""
        return [node.name for node in self.nodes() if name in node.edges]

    def check_edges(self) -> None:
        """Verify that every edge points at a node in the graph.

        Raises:
            ResolutionError: If a dangling edge is found.
        """
        for node in self._nodes.values():
            for dep in node.edges:
                if dep not in self._nodes:
                    raise ResolutionError(
                        f"dangling dependency edge {node.name} -> {dep}"
                    )


# ----------------------------
# Builder
# ----------------------------


class DependencyGraphBuilder:
    """Grows a ResolutionGraph from an OperationRequest."""

    def __init__(
        self,
        comparator: VersionComparator | None = None,
        logger: Logger | None = None,
    ) -> None:
        self.comparator = comparator or VersionComparator()
        self.logger = logger or get_global_logger()

    def build(self, request: OperationRequest, catalog: Catalog) -> ResolutionGraph:
        """Resolve the request into a complete dependency graph.

        Args:
            request: Operation kind and explicit specifiers.
            catalog: Catalog to resolve names and specifiers against.

        Returns:
            The graph. It is empty if every explicit target was skipped.

        Raises:
            UnresolvedSpecifierError: An explicit specifier matches nothing.
            UnknownPackageError: A dependency names an unknown package.
            NoVersionAvailableError: A package has no versions at all.
        """
        graph = ResolutionGraph()
        queue: deque[str] = deque()

        for spec in request.specifiers:
            unit = catalog.match_specifier(spec)
            if unit is None:
                raise UnresolvedSpecifierError(spec)

            name = unit.name
            if name in graph:
                message = f"Duplicate request for package '{name}' ignored."
                self.logger.warning(message)
                warnings.warn(message, DuplicateRequestWarning, stacklevel=2)
                continue
            if unit.is_installed():
                self.logger.verbose("GRAPH", f"{name} {unit.full_version()} is installed")
                continue
            if request.kind.skips_present and unit.is_present():
                self.logger.verbose("GRAPH", f"{name} {unit.full_version()} is present")
                continue

            graph.add_node(
                DependencyNode(
                    name=name,
                    unit=unit,
                    status=NodeStatus(
                        requested_explicitly=True,
                        suppress_activation=request.kind.suppresses_activation,
                    ),
                )
            )
            queue.append(name)

        while queue:
            self._expand(graph, graph[queue.popleft()], catalog, queue)

        graph.check_edges()
        return graph

    def _expand(
        self,
        graph: ResolutionGraph,
        node: DependencyNode,
        catalog: Catalog,
        queue: deque[str],
    ) -> None:
        if node.package is None:
            node.package = catalog.get_package(node.name)
            if node.package is None:
                raise UnknownPackageError(node.name)

        if node.unit is None:
            node.unit = self._pick_unit(node.package)

        if node.unit.is_installed():
            # Installed units are leaves: their dependencies are not examined
            node.status.already_installed = True
            self.logger.debug("GRAPH", f"{node.name}: installed, not expanding")
            return

        deps = node.unit.dependency_names()
        self.logger.debug(
            "GRAPH", f"{node.name} {node.unit.full_version()} -> {', '.join(deps) or '-'}"
        )
        for dep in deps:
            if dep not in graph:
                graph.add_node(DependencyNode(name=dep))
                queue.append(dep)
            node.add_edge(dep)

    def _pick_unit(self, package: Package) -> Unit:
        """Prefer the newest installed version, else the newest available one."""
        version = self.comparator.latest(package.installed_versions())
        if version is None:
            version = self.comparator.latest(package.versions())
        if version is None:
            raise NoVersionAvailableError(package.name)
        return package.version(version)


def build_graph(
    request: OperationRequest,
    catalog: Catalog,
    *,
    comparator: VersionComparator | None = None,
) -> ResolutionGraph:
    """Build a ResolutionGraph with a fresh DependencyGraphBuilder."""
    return DependencyGraphBuilder(comparator=comparator).build(request, catalog)
