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

"""Command-line interface for pkgforge.

This module provides the main CLI entry point for the pkgforge tool.

Commands:

    install: Build and activate packages plus their missing dependencies
    build: Build binary packages without activating the targets
    update: Like install, for packages that may already have versions
    update-all: Update every package that has any version installed
    fetch: Fetch sources for the given packages
    fetch-all: Fetch the newest version of every package
    fetch-missing: Fetch the newest version of every package not yet fetched
    activate (enable, use): Activate built packages
    deactivate (disable, unuse): Deactivate installed packages
    vercmp: Compare two version strings

Example:
    Install a package:
        ```bash
        $ pkgforge install gettext
        ```

    Install a specific version without prompting:
        ```bash
        $ pkgforge install -y gettext-0.10.40-2
        ```

    Compare versions in a shell script:
        ```bash
        $ pkgforge vercmp 1:0.9 ">>" 2.0 && echo newer
        ```

Exit Codes:

- 0: Success (for vercmp: the relation holds)
- 1: Error (for vercmp: the relation does not hold)
- 2: vercmp usage error (unknown operator or malformed version)

Note:
    Every command except vercmp reads pkgforge.yaml, the unit state file
    and the catalog before running. Verbose mode shows full tracebacks on
    errors. Debug mode implies verbose mode and dumps the configuration.
"""

from __future__ import annotations

import argparse
from importlib.metadata import version
from pathlib import Path
import sys
import traceback
import warnings

from pkgforge.catalog import load_catalog
from pkgforge.config import load_config
from pkgforge.engine import Command, run_command
from pkgforge.exceptions import (
    DuplicateRequestWarning,
    MalformedVersionError,
    PkgForgeError,
    UsageError,
)
from pkgforge.logging import get_logger, set_global_logger
from pkgforge.prompt import make_confirm
from pkgforge.results import InstallResult, PhaseResult
from pkgforge.state import StateTracker
from pkgforge.versioning import OPERATORS, VersionComparator


def _print_install_result(result: InstallResult) -> None:
    print("=" * 70)
    print(f"{result.kind.upper()} RESULTS")
    print("=" * 70)
    print(f"Requested:    {' '.join(result.requested) or '-'}")
    print(f"Packages:     {' '.join(result.nodes) or '-'}")
    if result.report is not None:
        report = result.report
        print(f"Additional:   {' '.join(report.additional) or '-'}")
        print(f"Fetched:      {' '.join(report.fetched) or '-'}")
        print(f"Built:        {' '.join(report.built) or '-'}")
        print(f"Activated:    {' '.join(report.activated) or '-'}")
        if report.deactivated:
            print(f"Deactivated:  {' '.join(report.deactivated)}")
    print(f"Status:       {result.status}")
    print("=" * 70)


def _print_phase_result(result: PhaseResult) -> None:
    print("=" * 70)
    print(f"{result.phase.upper()} RESULTS")
    print("=" * 70)
    print(f"Units:        {' '.join(result.units) or '-'}")
    if result.skipped:
        print(f"Skipped:      {' '.join(result.skipped)}")
    print(f"Status:       {result.status}")
    print("=" * 70)


def cmd_operation(args: argparse.Namespace) -> int:
    """Handler for every package command (install, build, fetch, ...).

    Loads the configuration, the unit state and the catalog, then runs the
    command through the engine.

    Args:
        args: Parsed command-line arguments containing the command name,
            package specifiers and flags.

    Returns:
        Exit code (0 for success, 1 for failure).

    Note:
        Phase operations update the unit state file as they complete.
        Nothing is rolled back when a later phase fails.
    """
    # Configure global logger
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)

    try:
        command = Command.from_name(args.command)
        cfg = load_config(Path(args.config) if args.config else None)

        tracker = StateTracker(Path(cfg["state"]["path"]))
        tracker.load()

        print("Reading package info...")
        comparator = VersionComparator()
        catalog = load_catalog(
            Path(cfg["catalog"]["path"]), tracker=tracker, comparator=comparator
        )

        assume_yes = args.yes or bool(cfg["prompt"].get("assume_yes", False))
        # Duplicate requests are already reported through the logger
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", DuplicateRequestWarning)
            result = run_command(
                command,
                args.packages,
                catalog,
                confirm=make_confirm(assume_yes),
                comparator=comparator,
            )
    except PkgForgeError as err:
        print(f"Failed: {err}")
        if args.verbose or args.debug:
            traceback.print_exc()
        return 1

    print()
    if isinstance(result, InstallResult):
        _print_install_result(result)
    else:
        _print_phase_result(result)
    print()
    print("Done.")
    return 0


def cmd_vercmp(args: argparse.Namespace) -> int:
    """Handler for 'pkgforge vercmp' command.

    Args:
        args: Parsed command-line arguments containing v1, op and v2.

    Returns:
        0 if the relation holds, 1 if it does not, 2 on bad input. For
        "<=>" the comparison result is printed and 0 is returned.
    """
    comparator = VersionComparator()
    try:
        outcome = comparator.compare(args.v1, args.op, args.v2)
    except (UsageError, MalformedVersionError) as err:
        print(f"Error: {err}", file=sys.stderr)
        return 2

    if args.op == "<=>":
        print(outcome)
        return 0
    return 0 if outcome else 1


def _add_common_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=None,
        help="Path to pkgforge.yaml (default: search upward from the working directory)",
    )
    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Assume yes when asked to install additional packages",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )


_PACKAGE_COMMANDS = [
    ("install", [], "Build and activate packages and their missing dependencies"),
    ("build", [], "Build binary packages without activating the requested ones"),
    ("update", [], "Install the newest versions of packages"),
    ("fetch", [], "Fetch sources for the given packages"),
    ("activate", ["enable", "use"], "Activate built packages"),
    ("deactivate", ["disable", "unuse"], "Deactivate installed packages"),
]

_CATALOG_COMMANDS = [
    ("update-all", "Update every package that has any version installed"),
    ("fetch-all", "Fetch the newest version of every package"),
    ("fetch-missing", "Fetch the newest version of every package not yet fetched"),
]


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser with all subcommands registered."""
    parser = argparse.ArgumentParser(
        prog="pkgforge",
        description="pkgforge - dependency resolution and build scheduling for source packages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"pkgforge {version('pkgforge')}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    for name, aliases, help_text in _PACKAGE_COMMANDS:
        sub = subparsers.add_parser(name, aliases=aliases, help=help_text)
        sub.add_argument(
            "packages",
            nargs="*",
            help="Package specifiers: NAME or NAME-VERSION",
        )
        _add_common_flags(sub)
        sub.set_defaults(func=cmd_operation)

    for name, help_text in _CATALOG_COMMANDS:
        sub = subparsers.add_parser(name, help=help_text)
        _add_common_flags(sub)
        sub.set_defaults(func=cmd_operation, packages=[])

    # 'vercmp' command
    parser_vercmp = subparsers.add_parser(
        "vercmp",
        help="Compare two version strings",
        description=(
            "Exit 0 if 'V1 OP V2' holds and 1 otherwise. "
            "With '<=>' print -1, 0 or 1."
        ),
    )
    parser_vercmp.add_argument("v1", help="First version")
    parser_vercmp.add_argument("op", metavar="op", help=f"One of: {' '.join(OPERATORS)}")
    parser_vercmp.add_argument("v2", help="Second version")
    parser_vercmp.set_defaults(func=cmd_vercmp)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the pkgforge CLI.

    This function is registered as the 'pkgforge' console script in pyproject.toml.
    """
    parser = build_parser()

    # Parse and dispatch
    args = parser.parse_args(argv)

    # Call the appropriate command handler
    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
