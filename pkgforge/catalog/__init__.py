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

"""Package catalog interfaces and the reference implementation.

Public API:

- Catalog, Package, Unit: Protocols the resolver and scheduler consume
- MemoryCatalog: Dictionary-backed catalog with recorded phase transitions
- load_catalog: Build a MemoryCatalog from a YAML file
- PHASES, BUILD_PHASES: Phase names in execution order
"""

from .base import BUILD_PHASES, PHASES, Catalog, Package, Unit, unit_label
from .loader import load_catalog
from .memory import MemoryCatalog, MemoryPackage, MemoryUnit

__all__ = [
    "BUILD_PHASES",
    "PHASES",
    "Catalog",
    "Package",
    "Unit",
    "unit_label",
    "load_catalog",
    "MemoryCatalog",
    "MemoryPackage",
    "MemoryUnit",
]
