"""
Core functionality exports for enginekeeper.

This module provides convenient access to the core subsystems of enginekeeper.
Importing from here keeps user-facing imports clean and stable:

    from enginekeeper.core import EngineRequirementResolver, RangeCollapser

The resolver and collapser are pure and synchronous; the registry store,
finder and manifest wrap them with I/O.
"""

from __future__ import annotations

from enginekeeper.core.finder import CompatibilityFinder
from enginekeeper.core.manifest import PackageManifest
from enginekeeper.core.collapser import RangeCollapser
from enginekeeper.core.registry import NpmRegistryStore
from enginekeeper.core.resolver import EngineRequirementResolver

__all__ = [
    "EngineRequirementResolver",
    "RangeCollapser",
    "NpmRegistryStore",
    "CompatibilityFinder",
    "PackageManifest",
]
