"""
Per-dependency resolution results for enginekeeper.

A batch run produces one :class:`DependencyResult` per requested
dependency, whether it resolved, had no compatible release, or could not
be fetched at all. Failures are data here, not exceptions, so one bad
dependency never hides the others.
"""

from __future__ import annotations

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from enginekeeper.constants import DEPENDENCIES_SECTION
from enginekeeper.models.catalog import CompatibilityInterval, format_intervals


class DependencyStatus(Enum):
    """Outcome of resolving a single dependency."""

    COMPATIBLE = "compatible"
    NO_COMPATIBLE_VERSION = "no-compatible-version"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class DependencyRequest:
    """A dependency to resolve.

    Attributes:
        name: npm package name (scoped names included, e.g. ``@babel/core``).
        group: Manifest section the dependency belongs to.
        current_spec: Specifier currently declared in the manifest, if any.
    """

    name: str
    group: str = DEPENDENCIES_SECTION
    current_spec: Optional[str] = None


@dataclass
class DependencyResult:
    """Resolution outcome for one dependency.

    Attributes:
        name: npm package name.
        group: Manifest section (``dependencies`` / ``devDependencies``).
        status: See :class:`DependencyStatus`.
        intervals: Compatible version intervals, ascending.
        current_spec: Specifier currently declared in the manifest.
        version_count: Number of versions that were considered.
        error: Human-readable failure reason for ``UNAVAILABLE`` results.
    """

    name: str
    group: str
    status: DependencyStatus
    intervals: List[CompatibilityInterval] = field(default_factory=list)
    current_spec: Optional[str] = None
    version_count: int = 0
    error: Optional[str] = None

    @property
    def selected_version(self) -> Optional[str]:
        """Newest compatible version: the upper bound of the last interval."""
        # Deferred: enginekeeper.core imports this module
        from enginekeeper.core.collapser import RangeCollapser

        return RangeCollapser.select_latest(self.intervals)

    @property
    def latest_range(self) -> Optional[str]:
        """The last interval rendered as an npm range."""
        if not self.intervals:
            return None
        return self.intervals[-1].to_range()

    @property
    def range_expression(self) -> str:
        """All intervals joined with ``||``; empty when nothing is compatible."""
        return format_intervals(self.intervals)

    def is_resolved(self) -> bool:
        """Return True when at least one compatible version exists."""
        return self.status is DependencyStatus.COMPATIBLE

    def to_json(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        entry: Dict[str, Any] = {
            "name": self.name,
            "group": self.group,
            "status": self.status.value,
            "intervals": [interval.to_json() for interval in self.intervals],
            "range": self.range_expression or None,
            "selected_version": self.selected_version,
            "versions_considered": self.version_count,
        }
        if self.current_spec is not None:
            entry["current"] = self.current_spec
        if self.error:
            entry["error"] = self.error
        return entry
