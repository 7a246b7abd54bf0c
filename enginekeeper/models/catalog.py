"""
Version catalog and engine requirement models for enginekeeper.

These are the values flowing through the resolution core:

- :class:`VersionCatalogEntry`: raw per-version registry metadata.
- :class:`EngineRequirement`: the Node.js constraint derived for a version,
  tagged with where it came from.
- :class:`CompatibilityInterval`: a run of consecutive versions that all
  accept the target Node.js version.

All of them are frozen; they are created once and never mutated.
"""

from __future__ import annotations

from enum import Enum
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from enginekeeper.constants import RANGE_SEPARATOR


@dataclass(frozen=True)
class VersionCatalogEntry:
    """One published version as reported by the registry.

    Attributes:
        version: Version string (the key under ``versions`` in the packument).
        engine_constraint: ``engines.node`` declared by the package, if any.
        build_runtime_version: ``_nodeVersion`` recorded at publish time.
        build_package_manager_version: ``_npmVersion`` recorded at publish time.
    """

    version: str
    engine_constraint: Optional[str] = None
    build_runtime_version: Optional[str] = None
    build_package_manager_version: Optional[str] = None

    @classmethod
    def from_manifest(cls, version: str, manifest: Any) -> "VersionCatalogEntry":
        """Build an entry from one ``versions[version]`` packument object.

        Tolerates the odd shapes found in old packages: ``engines`` given as
        a list, blank strings, or non-string values all count as absent.
        """
        if not isinstance(manifest, dict):
            return cls(version=version)

        engines = manifest.get("engines")
        engine_node = engines.get("node") if isinstance(engines, dict) else None

        return cls(
            version=version,
            engine_constraint=_clean(engine_node),
            build_runtime_version=_clean(manifest.get("_nodeVersion")),
            build_package_manager_version=_clean(manifest.get("_npmVersion")),
        )


def _clean(value: Any) -> Optional[str]:
    """Return a stripped non-empty string, or ``None``."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


class RequirementSource(Enum):
    """Where an :class:`EngineRequirement` constraint came from."""

    DECLARED_ENGINE = "engines.node"
    INFERRED_FROM_BUILD_RUNTIME = "_nodeVersion"
    DEFAULT_ANY = "default"


@dataclass(frozen=True)
class EngineRequirement:
    """Node.js range required by one package version.

    Attributes:
        version: Package version this requirement belongs to.
        constraint: npm range expression; never empty (at least ``"*"``).
        source: Provenance of ``constraint``.
    """

    version: str
    constraint: str
    source: RequirementSource

    def to_json(self) -> Dict[str, str]:
        """Return a JSON-serializable representation."""
        return {
            "version": self.version,
            "constraint": self.constraint,
            "source": self.source.value,
        }


@dataclass(frozen=True)
class CompatibilityInterval:
    """Closed range ``[lower, upper]`` of consecutive compatible versions.

    ``lower == upper`` for a run of a single version.
    """

    lower: str
    upper: str

    def to_range(self) -> str:
        """Render as an npm range, e.g. ``">=1.0.0 <=1.4.2"``."""
        return f">={self.lower} <={self.upper}"

    def to_json(self) -> Dict[str, str]:
        """Return a JSON-serializable representation."""
        return {"lower": self.lower, "upper": self.upper}

    def __str__(self) -> str:
        return self.to_range()


def format_intervals(intervals: Sequence[CompatibilityInterval]) -> str:
    """Join intervals into one npm range expression (``a || b``).

    Returns an empty string for an empty sequence.
    """
    return RANGE_SEPARATOR.join(interval.to_range() for interval in intervals)
