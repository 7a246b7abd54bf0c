"""
Unified data model exports for enginekeeper.

This module re-exports all core data models to provide a stable and
convenient public API. Users can import models directly from
``enginekeeper.models`` instead of individual submodules.

Example:
    >>> from enginekeeper.models import EngineRequirement, CompatibilityInterval
"""

from __future__ import annotations

from enginekeeper.models.catalog import (
    CompatibilityInterval,
    EngineRequirement,
    RequirementSource,
    VersionCatalogEntry,
    format_intervals,
)
from enginekeeper.models.result import (
    DependencyRequest,
    DependencyResult,
    DependencyStatus,
)

__all__ = [
    "VersionCatalogEntry",
    "EngineRequirement",
    "RequirementSource",
    "CompatibilityInterval",
    "format_intervals",
    "DependencyRequest",
    "DependencyResult",
    "DependencyStatus",
]
