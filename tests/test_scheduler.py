"""
Tests for pkgforge.scheduler module.

Tests the installation passes including:
- Confirmation of additional packages
- Fetching only what is missing
- Dependency-first build ordering
- Deactivation of superseded versions
- Failure and cycle handling
"""

from __future__ import annotations

import pytest

from pkgforge.exceptions import (
    CyclicDependencyError,
    PhaseExecutionError,
    UserAbortError,
)
from pkgforge.graph import OperationKind, OperationRequest, build_graph
from pkgforge.scheduler import InstallationScheduler, run_phase

pytestmark = pytest.mark.unit


def _graph(catalog, kind, *specs):
    return build_graph(OperationRequest(kind, tuple(specs)), catalog)


def _yes(names):
    return True


class TestConfirmation:
    """Tests for the confirmation pass."""

    def test_confirm_receives_additional_names(self, make_catalog):
        """Test that confirm sees the sorted dependency-only packages."""
        catalog = make_catalog(
            {"A": ("1.0-1", ["C", "B"]), "B": ("1.0-1", []), "C": ("1.0-1", [])}
        )
        seen = []

        def confirm(names):
            seen.append(names)
            return True

        InstallationScheduler().run(_graph(catalog, OperationKind.INSTALL, "A"), confirm)
        assert seen == [["B", "C"]]

    def test_no_prompt_without_additional_packages(self, make_catalog):
        """Test that confirm is not called when nothing extra is needed."""
        catalog = make_catalog({"A": ("1.0-1", [])})

        def confirm(names):
            raise AssertionError("confirm should not be called")

        report = InstallationScheduler().run(
            _graph(catalog, OperationKind.INSTALL, "A"), confirm
        )
        assert report.additional == []

    def test_decline_aborts_before_any_phase(self, make_catalog):
        """Test that declining performs no side effects at all."""
        catalog = make_catalog({"A": ("1.0-1", ["B"]), "B": ("1.0-1", [])})
        graph = _graph(catalog, OperationKind.INSTALL, "A")

        with pytest.raises(UserAbortError, match="Dependencies not satisfied"):
            InstallationScheduler().run(graph, lambda names: False)
        assert catalog.journal == []


class TestInstallPasses:
    """Tests for the fetch and build passes."""

    def test_dependency_built_first(self, make_catalog):
        """Test end-to-end install of A depending on B."""
        catalog = make_catalog({"A": ("1.0-1", ["B"]), "B": ("1.0-1", [])})
        report = InstallationScheduler().run(
            _graph(catalog, OperationKind.INSTALL, "A"), _yes
        )

        assert report.fetched == ["A-1.0-1", "B-1.0-1"]
        assert report.built == ["B-1.0-1", "A-1.0-1"]
        assert report.activated == ["B-1.0-1", "A-1.0-1"]
        assert report.passes == 3
        assert catalog.match_specifier("A").is_installed()
        assert catalog.match_specifier("B").is_installed()

    def test_phase_order_per_unit(self, make_catalog):
        """Test that each unit runs the build phases then activate."""
        catalog = make_catalog({"A": ("1.0-1", [])})
        InstallationScheduler().run(_graph(catalog, OperationKind.INSTALL, "A"), _yes)

        phases = [phase for phase, name, version in catalog.journal]
        assert phases == [
            "fetch",
            "unpack",
            "patch",
            "compile",
            "install",
            "build",
            "activate",
        ]

    def test_already_fetched_not_refetched(self, make_catalog):
        """Test that the fetch pass skips fetched units."""
        catalog = make_catalog({"A": ("1.0-1", [])}, fetched={"A"})
        report = InstallationScheduler().run(
            _graph(catalog, OperationKind.INSTALL, "A"), _yes
        )
        assert report.fetched == []
        assert ("fetch", "A", "1.0-1") not in catalog.journal

    def test_installed_dependency_untouched(self, make_catalog):
        """Test that installed dependencies are neither fetched nor built."""
        catalog = make_catalog(
            {"A": ("1.0-1", ["B"]), "B": ("1.0-1", [])}, installed={"B"}
        )
        report = InstallationScheduler().run(
            _graph(catalog, OperationKind.INSTALL, "A"), _yes
        )
        assert report.built == ["A-1.0-1"]
        assert all(name != "B" for _, name, _ in catalog.journal)

    def test_diamond_builds_shared_dependency_once(self, make_catalog):
        """Test that a shared dependency is built exactly once."""
        catalog = make_catalog(
            {
                "A": ("1.0-1", ["B", "C"]),
                "B": ("1.0-1", ["D"]),
                "C": ("1.0-1", ["D"]),
                "D": ("1.0-1", []),
            }
        )
        report = InstallationScheduler().run(
            _graph(catalog, OperationKind.INSTALL, "A"), _yes
        )
        assert report.built.count("D-1.0-1") == 1
        assert report.built.index("D-1.0-1") < report.built.index("B-1.0-1")
        assert report.built.index("D-1.0-1") < report.built.index("C-1.0-1")
        assert report.built[-1] == "A-1.0-1"

    def test_old_version_deactivated_before_activation(self, make_catalog):
        """Test replacing an installed version of the same package."""
        catalog = make_catalog({"A": ("1.0-1", [])}, installed={"A"})
        catalog.add_unit("A", "2.0-1")

        report = InstallationScheduler().run(
            _graph(catalog, OperationKind.INSTALL, "A-2.0-1"), _yes
        )

        assert report.deactivated == ["A-1.0-1"]
        deactivate = catalog.journal.index(("deactivate", "A", "1.0-1"))
        activate = catalog.journal.index(("activate", "A", "2.0-1"))
        assert deactivate < activate
        assert catalog.get_package("A").installed_versions() == ["2.0-1"]

    def test_build_does_not_activate_target(self, make_catalog):
        """Test that build leaves the explicit target inactive."""
        catalog = make_catalog({"A": ("1.0-1", ["B"]), "B": ("1.0-1", [])})
        report = InstallationScheduler().run(
            _graph(catalog, OperationKind.BUILD, "A"), _yes
        )

        unit = catalog.match_specifier("A")
        assert unit.is_present()
        assert not unit.is_installed()
        assert report.activated == ["B-1.0-1"]


class TestFailures:
    """Tests for aborting on failure."""

    def test_failure_keeps_completed_nodes(self, make_catalog):
        """Test that earlier nodes stay installed when a later one fails."""
        catalog = make_catalog(
            {"A": ("1.0-1", []), "C": ("1.0-1", [])}, fail={"C": "compile"}
        )
        graph = _graph(catalog, OperationKind.INSTALL, "A", "C")

        with pytest.raises(PhaseExecutionError, match="phase 'compile' failed for C-1.0-1"):
            InstallationScheduler().run(graph, _yes)

        assert catalog.match_specifier("A").is_installed()
        assert not catalog.match_specifier("C").is_installed()

    def test_failed_dependency_blocks_dependent(self, make_catalog):
        """Test that the dependent is never built when its dependency fails."""
        catalog = make_catalog(
            {"A": ("1.0-1", ["B"]), "B": ("1.0-1", [])}, fail={"B": "patch"}
        )
        with pytest.raises(PhaseExecutionError):
            InstallationScheduler().run(_graph(catalog, OperationKind.INSTALL, "A"), _yes)
        assert ("unpack", "A", "1.0-1") not in catalog.journal

    def test_fetch_failure_aborts(self, make_catalog):
        """Test that a fetch failure stops before building."""
        catalog = make_catalog({"A": ("1.0-1", [])}, fail={"A": "fetch"})
        with pytest.raises(PhaseExecutionError, match="fetch"):
            InstallationScheduler().run(_graph(catalog, OperationKind.INSTALL, "A"), _yes)
        assert catalog.journal == []

    def test_cycle_raises(self, make_catalog):
        """Test that a dependency cycle stops the build pass."""
        catalog = make_catalog({"A": ("1.0-1", ["B"]), "B": ("1.0-1", ["A"])})
        with pytest.raises(CyclicDependencyError) as exc_info:
            InstallationScheduler().run(_graph(catalog, OperationKind.INSTALL, "A"), _yes)
        assert exc_info.value.remaining == ["A", "B"]


class TestRunPhase:
    """Tests for the single-phase helper."""

    def test_foreign_exception_is_wrapped(self):
        """Test that non-pkgforge errors become PhaseExecutionError."""

        class BrokenUnit:
            name = "broken"

            def full_version(self):
                return "1.0"

            def fetch(self):
                raise OSError("disk full")

        with pytest.raises(PhaseExecutionError, match="disk full") as exc_info:
            run_phase(BrokenUnit(), "fetch")
        assert isinstance(exc_info.value.__cause__, OSError)
        assert exc_info.value.unit == "broken-1.0"
