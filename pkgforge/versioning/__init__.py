"""
Version comparison utilities for pkgforge.

This package orders version strings the way dpkg does, which is what every
resolution decision depends on: which version satisfies a request, which
installed version is superseded, which available version is the newest.

Modules
-------
debian : module
    Parsing of ``[epoch:]upstream[-revision]`` strings, segment-wise
    comparison and the memoizing VersionComparator.

Public API
----------
VersionString : dataclass
    Parsed (epoch, upstream, revision) triple.
VersionComparator : class
    Memoizing comparator with compare/latest/sort_ascending.
parse_version : function
    Split a version string into its three components.
compare_segment : function
    Compare one epoch, upstream or revision fragment.
version_cmp, latest_version, sort_versions : functions
    One-shot helpers that use a fresh comparator unless given one.
OPERATORS : tuple
    Supported relation operators.

Examples
--------
    >>> from pkgforge.versioning import version_cmp, latest_version
    >>> version_cmp("1.0-1", "<<", "1.0-2")
    True
    >>> latest_version(["1.0-1", "1.0-2", "0.9-5"])
    '1.0-2'
    >>> version_cmp("1:0.1", ">>", "9.9")
    True

Notes
-----
- Letters sort before any other non-digit character, so "1.0a" < "1.0+b"
- Leading zeros in numeric runs are ignored: "1.010" == "1.10"
- A missing revision is "0", so "1.0" == "1.0-0"
"""

from .debian import (
    OPERATORS,
    VersionComparator,
    VersionString,
    compare_segment,
    latest_version,
    parse_version,
    sort_versions,
    version_cmp,
)

__all__ = [
    "OPERATORS",
    "VersionComparator",
    "VersionString",
    "compare_segment",
    "latest_version",
    "parse_version",
    "sort_versions",
    "version_cmp",
]
