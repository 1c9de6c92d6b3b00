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

"""Debian-style version comparison for pkgforge.

This module is format-agnostic: it does NOT read package files or talk to
the catalog. It only parses and orders version strings of the form
``[epoch:]upstream[-revision]`` the way dpkg does.

Ordering rules:

- Components are compared in order: epoch, upstream, revision. The first
  component that differs decides.
- Each component is split into alternating runs of non-digits and digits.
  Non-digit runs compare character by character, with every non-letter
  sorting after every letter; when one run is a prefix of the other the
  longer run is greater. Digit runs compare as integers.
- Once either side is exhausted, the remainders are compared as plain
  strings, so "1.0" < "1.0.1".

Results of ``raw_compare`` are memoized per comparator instance. Create one
VersionComparator per command run and pass it to whatever needs ordering.

Example:
    ```python
    from pkgforge.versioning import VersionComparator

    cmp = VersionComparator()
    cmp.compare("1:0.9-1", ">>", "2.0-1")  # True, epoch wins
    cmp.latest(["1.0-1", "1.0-2", "0.9-5"])  # "1.0-2"
    ```
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cmp_to_key
import re
import string
from typing import Callable, Iterable

from pkgforge.exceptions import MalformedVersionError, UsageError

# ----------------------------
# Parsing
# ----------------------------

_FULLVERSION = re.compile(r"(?:([0-9]+):)?(.+?)(?:-([^-]+))?", re.DOTALL)
_NON_DIGIT_RUN = re.compile(r"[^0-9]*")
_DIGIT_RUN = re.compile(r"[0-9]*")

_LETTERS = frozenset(string.ascii_letters)


@dataclass(frozen=True)
class VersionString:
    """A parsed ``[epoch:]upstream[-revision]`` version.

    Attributes:
        epoch: Numeric epoch, 0 when absent.
        upstream: Upstream version; may itself contain hyphens.
        revision: Text after the last hyphen, "0" when absent.
    """

    epoch: int
    upstream: str
    revision: str

    def components(self) -> tuple[str, str, str]:
        """Return the three fields as strings in comparison order."""
        return (str(self.epoch), self.upstream, self.revision)

    def __str__(self) -> str:
        return f"{self.epoch}:{self.upstream}-{self.revision}"


def parse_version(version: str) -> VersionString:
    """Split a full version string into epoch, upstream and revision.

    Args:
        version: Version string such as "2:1.0-3", "1.0-2" or "1.0".

    Returns:
        The parsed VersionString. Missing epoch defaults to 0 and a missing
        revision defaults to "0".

    Raises:
        MalformedVersionError: If the version is empty.

    Example:
        ```python
        parse_version("2:1.0-3")   # VersionString(2, "1.0", "3")
        parse_version("1.0")       # VersionString(0, "1.0", "0")
        parse_version("a-b-c")     # VersionString(0, "a-b", "c")
        ```
    """
    m = _FULLVERSION.fullmatch(version or "")
    if not m:
        raise MalformedVersionError(f"malformed version string: {version!r}")
    epoch, upstream, revision = m.groups()
    return VersionString(
        epoch=int(epoch) if epoch else 0,
        upstream=upstream,
        revision=revision if revision else "0",
    )


# ----------------------------
# Segment comparison
# ----------------------------


def _char_order(c: str) -> int:
    """Ordering weight of one character: letters first, everything else after."""
    if c in _LETTERS:
        return ord(c)
    return ord(c) + 256


def _sign(n: int) -> int:
    return (n > 0) - (n < 0)


def compare_segment(a: str, b: str) -> int:
    """Compare two version fragments (one epoch, upstream or revision).

    Args:
        a: First fragment.
        b: Second fragment.

    Returns:
        -1 if a sorts before b, 0 if they are equal, 1 otherwise.

    Example:
        ```python
        compare_segment("1.0a", "1.0b")    # -1
        compare_segment("1.0", "1.0.1")    # -1
        compare_segment("1.0+x", "1.0a")   # 1, "+" sorts after letters
        compare_segment("010", "10")       # 0
        ```
    """
    while a and b:
        run_a = _NON_DIGIT_RUN.match(a).group()
        run_b = _NON_DIGIT_RUN.match(b).group()
        a = a[len(run_a) :]
        b = b[len(run_b) :]

        for ca, cb in zip(run_a, run_b):
            res = _sign(_char_order(ca) - _char_order(cb))
            if res:
                return res
        # Terminate when exactly one run is exhausted
        res = _sign(len(run_a) - len(run_b))
        if res:
            return res

        if not (a and b):
            break

        num_a = _DIGIT_RUN.match(a).group()
        num_b = _DIGIT_RUN.match(b).group()
        a = a[len(num_a) :]
        b = b[len(num_b) :]
        res = _sign(int(num_a or "0") - int(num_b or "0"))
        if res:
            return res

    # At this point at least one side is exhausted
    return (a > b) - (a < b)


# ----------------------------
# Comparator with memoization
# ----------------------------

_OPERATORS: dict[str, Callable[[int], bool]] = {
    "<<": lambda res: res < 0,
    "<=": lambda res: res <= 0,
    "=": lambda res: res == 0,
    ">=": lambda res: res >= 0,
    ">>": lambda res: res > 0,
}

OPERATORS = tuple(_OPERATORS) + ("<=>",)


class VersionComparator:
    """Compares Debian-style versions and memoizes pairwise results.

    The cache is keyed by the literal pair of strings handed in, so
    "1.0" and "0:1.0-0" get separate entries even though they are equal.
    Storing a result for (a, b) also stores the negated result for (b, a).

    Attributes:
        cache: Mapping of (v1, v2) to -1, 0 or 1.
    """

    def __init__(self) -> None:
        self.cache: dict[tuple[str, str], int] = {}

    def raw_compare(self, v1: str, v2: str) -> int:
        """Three-way comparison of two full version strings.

        Args:
            v1: First version.
            v2: Second version.

        Returns:
            -1, 0 or 1.

        Raises:
            MalformedVersionError: If either version is empty.
        """
        key = (v1, v2)
        if key in self.cache:
            return self.cache[key]

        res = 0
        for seg_a, seg_b in zip(
            parse_version(v1).components(), parse_version(v2).components()
        ):
            res = compare_segment(seg_a, seg_b)
            if res:
                break

        self.cache[key] = res
        self.cache[(v2, v1)] = -res
        return res

    def compare(self, v1: str, op: str, v2: str) -> bool | int:
        """Apply a dpkg relation operator to two versions.

        Args:
            v1: Left-hand version.
            op: One of "<<", "<=", "=", ">=", ">>" or "<=>".
            v2: Right-hand version.

        Returns:
            Whether the relation holds, or the -1/0/1 result for "<=>".

        Raises:
            UsageError: If op is not a known operator.
            MalformedVersionError: If either version is empty.
        """
        if op != "<=>" and op not in _OPERATORS:
            raise UsageError(f'Unknown version comparison operator "{op}"')
        res = self.raw_compare(v1, v2)
        if op == "<=>":
            return res
        return _OPERATORS[op](res)

    def latest(self, versions: Iterable[str | None]) -> str | None:
        """Return the highest version, or None if there is none.

        The first version is the initial candidate and is only replaced by a
        strictly greater one, so among equal versions the first one wins.
        """
        latest: str | None = None
        for v in versions:
            if v is None:
                continue
            if latest is None or self.compare(v, ">>", latest):
                latest = v
        return latest

    def sort_ascending(self, versions: Iterable[str]) -> list[str]:
        """Return the versions sorted lowest to highest (stable)."""
        return sorted(versions, key=cmp_to_key(self.raw_compare))


# ----------------------------
# Convenience wrappers
# ----------------------------


def version_cmp(
    v1: str, op: str, v2: str, *, comparator: VersionComparator | None = None
) -> bool | int:
    """Compare two versions with a dpkg operator.

    Uses a throwaway comparator unless one is passed in.
    """
    return (comparator or VersionComparator()).compare(v1, op, v2)


def latest_version(
    versions: Iterable[str | None], *, comparator: VersionComparator | None = None
) -> str | None:
    """Return the highest of the given versions."""
    return (comparator or VersionComparator()).latest(versions)


def sort_versions(
    versions: Iterable[str], *, comparator: VersionComparator | None = None
) -> list[str]:
    """Return the versions sorted lowest to highest."""
    return (comparator or VersionComparator()).sort_ascending(versions)
