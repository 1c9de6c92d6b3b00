"""
Tests for pkgforge.graph module.

Tests dependency graph construction including:
- Node deduplication for shared dependencies
- Additional package computation
- Duplicate request handling
- Skipping installed and present targets
- Resolution errors
"""

from __future__ import annotations

import pytest

from pkgforge.exceptions import (
    DuplicateRequestWarning,
    NoVersionAvailableError,
    ResolutionError,
    UnknownPackageError,
    UnresolvedSpecifierError,
)
from pkgforge.graph import (
    DependencyGraphBuilder,
    DependencyNode,
    OperationKind,
    OperationRequest,
    ResolutionGraph,
    build_graph,
)

pytestmark = pytest.mark.unit


def _request(kind, *specs):
    return OperationRequest(kind, tuple(specs))


class TestOperationKind:
    """Tests for per-kind behavior flags."""

    def test_only_build_skips_present_and_suppresses_activation(self):
        """Test the two properties across all kinds."""
        assert OperationKind.BUILD.skips_present
        assert OperationKind.BUILD.suppresses_activation
        for kind in (OperationKind.INSTALL, OperationKind.UPDATE):
            assert not kind.skips_present
            assert not kind.suppresses_activation


class TestResolutionGraph:
    """Tests for the node arena."""

    def test_add_node_twice_raises(self):
        """Test that a name maps to exactly one node."""
        graph = ResolutionGraph()
        graph.add_node(DependencyNode(name="A"))
        with pytest.raises(ValueError):
            graph.add_node(DependencyNode(name="A"))

    def test_iteration_is_sorted(self):
        """Test deterministic name ordering."""
        graph = ResolutionGraph()
        for name in ("c", "a", "b"):
            graph.add_node(DependencyNode(name=name))
        assert [n.name for n in graph] == ["a", "b", "c"]

    def test_dangling_edge_detected(self):
        """Test that check_edges rejects edges to missing nodes."""
        graph = ResolutionGraph()
        node = graph.add_node(DependencyNode(name="A"))
        node.add_edge("B")
        with pytest.raises(ResolutionError, match="dangling"):
            graph.check_edges()

    def test_add_edge_dedups(self):
        """Test that repeated edges are stored once."""
        node = DependencyNode(name="A")
        node.add_edge("B")
        node.add_edge("B")
        assert node.edges == ["B"]


class TestGraphBuilder:
    """Tests for DependencyGraphBuilder.build."""

    def test_shared_dependency_is_one_node(self, make_catalog):
        """Test that C reached from A and B is a single node with two parents."""
        catalog = make_catalog(
            {
                "A": ("1.0-1", ["B", "C"]),
                "B": ("1.0-1", ["C"]),
                "C": ("1.0-1", []),
            }
        )
        graph = build_graph(_request(OperationKind.INSTALL, "A"), catalog)

        assert graph.names() == ["A", "B", "C"]
        assert graph["A"].edges == ["B", "C"]
        assert graph.incoming("C") == ["A", "B"]

    def test_additional_packages(self, make_catalog):
        """Test that dependencies needing work are additional, installed ones not."""
        catalog = make_catalog(
            {
                "A": ("1.0-1", ["B", "C"]),
                "B": ("1.0-1", []),
                "C": ("1.0-1", []),
            },
            installed={"C"},
        )
        graph = build_graph(_request(OperationKind.INSTALL, "A"), catalog)

        assert graph.additional_packages() == ["B"]
        assert graph["C"].status.already_installed
        assert graph["A"].status.requested_explicitly

    def test_installed_node_is_a_leaf(self, make_catalog):
        """Test that dependencies of installed units are not examined."""
        catalog = make_catalog(
            {
                "A": ("1.0-1", ["B"]),
                "B": ("1.0-1", ["Z"]),
            },
            installed={"B"},
        )
        # Z is not in the catalog; expanding B would raise
        graph = build_graph(_request(OperationKind.INSTALL, "A"), catalog)
        assert graph.names() == ["A", "B"]
        assert graph["B"].edges == []

    def test_duplicate_request_warns_and_is_ignored(self, make_catalog):
        """Test that a repeated explicit package is reported once and skipped."""
        catalog = make_catalog({"A": ("1.0-1", [])})
        with pytest.warns(DuplicateRequestWarning, match="Duplicate request for package 'A'"):
            graph = build_graph(_request(OperationKind.INSTALL, "A", "A"), catalog)
        assert graph.names() == ["A"]

    def test_duplicate_reported_through_logger(self, make_catalog):
        """Test that the builder also reports duplicates through its logger."""

        class Recorder:
            def __init__(self):
                self.warnings = []

            def step(self, step, total, message):
                pass

            def warning(self, message):
                self.warnings.append(message)

            def verbose(self, prefix, message):
                pass

            def debug(self, prefix, message):
                pass

        catalog = make_catalog({"A": ("1.0-1", [])})
        logger = Recorder()
        with pytest.warns(DuplicateRequestWarning):
            DependencyGraphBuilder(logger=logger).build(
                _request(OperationKind.INSTALL, "A", "A-1.0-1"), catalog
            )
        assert logger.warnings == ["Duplicate request for package 'A' ignored."]

    def test_installed_target_skipped(self, make_catalog):
        """Test that an installed explicit target produces no node."""
        catalog = make_catalog({"A": ("1.0-1", [])}, installed={"A"})
        graph = build_graph(_request(OperationKind.INSTALL, "A"), catalog)
        assert len(graph) == 0

    def test_present_target_skipped_only_for_build(self, make_catalog):
        """Test that present targets are skipped by build but not by install."""
        catalog = make_catalog({"A": ("1.0-1", [])}, present={"A"})

        assert len(build_graph(_request(OperationKind.BUILD, "A"), catalog)) == 0
        assert build_graph(_request(OperationKind.INSTALL, "A"), catalog).names() == ["A"]

    def test_build_suppresses_activation_of_targets_only(self, make_catalog):
        """Test that only explicit build targets skip activation."""
        catalog = make_catalog({"A": ("1.0-1", ["B"]), "B": ("1.0-1", [])})
        graph = build_graph(_request(OperationKind.BUILD, "A"), catalog)

        assert graph["A"].status.suppress_activation
        assert not graph["B"].status.suppress_activation

    def test_explicit_version_is_kept(self, make_catalog):
        """Test that a name-version specifier pins the explicit unit."""
        catalog = make_catalog({"A": ("1.0-1", [])})
        catalog.add_unit("A", "2.0-1")
        graph = build_graph(_request(OperationKind.INSTALL, "A-1.0-1"), catalog)
        assert graph["A"].unit.full_version() == "1.0-1"

    def test_dependency_prefers_installed_version(self, make_catalog):
        """Test that a dependency resolves to its newest installed version."""
        catalog = make_catalog({"A": ("1.0-1", ["B"])})
        catalog.add_unit("B", "1.0-1", fetched=True, present=True, installed=True)
        catalog.add_unit("B", "2.0-1")
        graph = build_graph(_request(OperationKind.INSTALL, "A"), catalog)
        assert graph["B"].unit.full_version() == "1.0-1"
        assert graph.additional_packages() == []

    def test_dependency_uses_newest_available(self, make_catalog):
        """Test that without an installed version the newest one is picked."""
        catalog = make_catalog({"A": ("1.0-1", ["B"])})
        catalog.add_unit("B", "1.10-1")
        catalog.add_unit("B", "1.9-1")
        graph = build_graph(_request(OperationKind.INSTALL, "A"), catalog)
        assert graph["B"].unit.full_version() == "1.10-1"

    def test_cycle_does_not_loop(self, make_catalog):
        """Test that a dependency cycle still yields a finite graph."""
        catalog = make_catalog({"A": ("1.0-1", ["B"]), "B": ("1.0-1", ["A"])})
        graph = build_graph(_request(OperationKind.INSTALL, "A"), catalog)
        assert graph["A"].edges == ["B"]
        assert graph["B"].edges == ["A"]


class TestGraphBuilderErrors:
    """Tests for resolution failures."""

    def test_unresolved_specifier(self, make_catalog):
        """Test that an unknown explicit specifier is fatal."""
        catalog = make_catalog({"A": ("1.0-1", [])})
        with pytest.raises(UnresolvedSpecifierError, match="no package found for specification 'nope'!"):
            build_graph(_request(OperationKind.INSTALL, "nope"), catalog)

    def test_unknown_dependency(self, make_catalog):
        """Test that a dependency on an unknown package is fatal."""
        catalog = make_catalog({"A": ("1.0-1", ["ghost"])})
        with pytest.raises(UnknownPackageError, match="ghost"):
            build_graph(_request(OperationKind.INSTALL, "A"), catalog)

    def test_no_version_available(self, make_catalog):
        """Test that a dependency with no versions is fatal."""
        catalog = make_catalog({"A": ("1.0-1", ["empty"])})
        catalog.add_package("empty")
        with pytest.raises(NoVersionAvailableError, match="no version info available for 'empty'"):
            build_graph(_request(OperationKind.INSTALL, "A"), catalog)

    def test_errors_are_resolution_errors(self, make_catalog):
        """Test the common base class."""
        catalog = make_catalog({"A": ("1.0-1", ["ghost"])})
        with pytest.raises(ResolutionError):
            build_graph(_request(OperationKind.INSTALL, "A"), catalog)
