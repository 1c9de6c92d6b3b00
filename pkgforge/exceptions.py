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

"""Exception hierarchy for pkgforge.

This module defines a custom exception hierarchy that allows library users
to distinguish between the ways a multi-package operation can fail:

- ConfigError: Configuration-related errors (YAML parse, missing files)
- UsageError: Invalid command usage (unknown operator, missing specifiers)
- MalformedVersionError: A version string cannot be parsed
- ResolutionError: The dependency graph cannot be built
- UserAbortError: The user declined to install additional packages
- PhaseExecutionError: A build phase or (de)activation failed
- CyclicDependencyError: The build pass stopped making progress
- StateError: The unit state file is unusable

All exceptions inherit from PkgForgeError, allowing users to catch every
fatal pkgforge error with a single except clause. Any of them aborts the
whole operation; units that were already built and activated stay in place.

Example:
    Catching specific error types:
        ```python
        from pkgforge.engine import real_install
        from pkgforge.exceptions import ResolutionError, UserAbortError

        try:
            real_install(OperationKind.INSTALL, ["gettext"], catalog)
        except ResolutionError as e:
            print(f"Cannot resolve: {e}")
        except UserAbortError:
            print("Nothing installed")
        ```

    Catching all pkgforge errors:
        ```python
        from pkgforge.exceptions import PkgForgeError

        try:
            run_command(Command.INSTALL, ["gettext"], catalog)
        except PkgForgeError as e:
            print(f"Failed: {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "PkgForgeError",
    "ConfigError",
    "UsageError",
    "MalformedVersionError",
    "ResolutionError",
    "UnresolvedSpecifierError",
    "NoVersionAvailableError",
    "UnknownPackageError",
    "UserAbortError",
    "PhaseExecutionError",
    "CyclicDependencyError",
    "StateError",
    "DuplicateRequestWarning",
]


class PkgForgeError(Exception):
    """Base exception for all pkgforge errors.

    All pkgforge-specific exceptions inherit from this class, allowing users
    to catch all pkgforge errors with a single except clause if needed.
    """

    pass


class ConfigError(PkgForgeError):
    """Raised for configuration-related errors.

    This exception is raised when there are problems with:

    - YAML parsing (syntax errors, invalid structure)
    - Missing configuration or catalog files
    - Invalid catalog entries
    """

    pass


class UsageError(PkgForgeError):
    """Raised when a command or API is invoked incorrectly.

    Examples are an unknown version comparison operator or a command that
    needs package specifiers being called without any.
    """

    pass


class MalformedVersionError(PkgForgeError, ValueError):
    """Raised when a version string cannot be parsed.

    Every non-empty string parses as ``[epoch:]upstream[-revision]``, so in
    practice this is only raised for empty input.
    """

    pass


class ResolutionError(PkgForgeError):
    """Base class for failures while building the dependency graph."""

    pass


class UnresolvedSpecifierError(ResolutionError):
    """Raised when an explicitly requested specifier matches no package."""

    def __init__(self, specifier: str) -> None:
        super().__init__(f"no package found for specification '{specifier}'!")
        self.specifier = specifier


class NoVersionAvailableError(ResolutionError):
    """Raised when a package has neither an installed nor an available version."""

    def __init__(self, name: str) -> None:
        super().__init__(f"no version info available for '{name}'")
        self.name = name


class UnknownPackageError(ResolutionError):
    """Raised when a dependency names a package the catalog does not know."""

    def __init__(self, name: str) -> None:
        super().__init__(f"unknown package '{name}' in dependency list")
        self.name = name


class UserAbortError(PkgForgeError):
    """Raised when the user declines to install additional packages."""

    pass


class PhaseExecutionError(PkgForgeError):
    """Raised when a phase operation on a unit fails.

    Attributes:
        phase: Phase name (e.g., "fetch", "compile", "activate").
        unit: Display name of the unit, "name-version".
    """

    def __init__(self, phase: str, unit: str, reason: str = "") -> None:
        message = f"phase '{phase}' failed for {unit}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.phase = phase
        self.unit = unit


class CyclicDependencyError(PkgForgeError):
    """Raised when a build pass installs nothing while packages remain.

    Attributes:
        remaining: Sorted names of the packages that could not be scheduled.
    """

    def __init__(self, remaining: list[str]) -> None:
        super().__init__(
            "dependency cycle or unsatisfiable dependencies among: "
            + ", ".join(remaining)
        )
        self.remaining = remaining


class StateError(PkgForgeError):
    """Raised when the unit state file cannot be read or written."""

    pass


class DuplicateRequestWarning(UserWarning):
    """Issued when the same package is explicitly requested more than once.

    Non-fatal: the duplicate request is reported and ignored.
    """

    pass
