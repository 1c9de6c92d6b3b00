"""
pkgforge - dependency resolution and build scheduling for source packages

A Python library and CLI that takes a request to install, build or update
packages, works out every package that must be built along the way, and
drives each of them through fetch, unpack, patch, compile, install, build
and activate in an order where dependencies always come first.

pkgforge provides:
  - Debian-style version comparison with epochs and revisions
  - Dependency graph resolution against a pluggable package catalog
  - A scheduler that builds dependencies before dependents
  - Confirmation before pulling in additional packages
  - A YAML reference catalog and a JSON unit state file

Quick Start
-----------
Install a package and whatever it needs:

    $ pkgforge install gettext

Compare two versions:

    $ pkgforge vercmp 1.0-1 "<<" 1.0-2

For full CLI documentation:

    $ pkgforge --help

Package Structure
-----------------
cli : module
    Command-line interface with argparse.
engine : module
    Command dispatch and the install/fetch/activate operations.
graph : module
    Dependency graph construction.
scheduler : module
    Confirm, fetch and build passes over a resolved graph.
versioning : package
    Version parsing and comparison.
catalog : package
    Catalog interfaces and the YAML-backed reference catalog.
config : package
    YAML configuration loading and merging.
state : package
    JSON persistence of per-unit fetched/present/installed flags.

Public API
----------
The primary interface is the CLI, but key functions are exported for
programmatic use:

    from pkgforge.engine import Command, run_command
    from pkgforge.graph import build_graph
    from pkgforge.catalog import MemoryCatalog, load_catalog
    from pkgforge.versioning import version_cmp, latest_version

For more details, see the individual module docstrings.

Project Information
-------------------
Author: Roger Cibrian
License: Apache-2.0
"""

__version__ = "0.1.0"
__author__ = "Roger Cibrian"
__license__ = "Apache-2.0"
__description__ = "Dependency resolution and build scheduling for source packages"

# Re-export commonly used functions for convenience
from pkgforge.catalog import MemoryCatalog, load_catalog
from pkgforge.config import load_config
from pkgforge.engine import Command, run_command
from pkgforge.graph import OperationKind, build_graph
from pkgforge.versioning import VersionComparator, latest_version, version_cmp

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "__description__",
    "Command",
    "run_command",
    "OperationKind",
    "build_graph",
    "MemoryCatalog",
    "load_catalog",
    "load_config",
    "VersionComparator",
    "latest_version",
    "version_cmp",
]
