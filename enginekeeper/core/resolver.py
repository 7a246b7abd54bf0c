"""Engine requirement derivation for enginekeeper.

Turns a package's version catalog into a map of version -> Node.js
constraint.  Two independent steps:

1. **Filter**: drop versions that are not plain ``major.minor.patch``
   (unless all versions were requested) and versions that are not valid
   semantic versions at all.
2. **Derive**: pick each surviving version's constraint by priority:

   a. ``engines.node`` as declared by the package;
   b. ``>=`` the Node.js version it was published with (``_nodeVersion``);
   c. ``*`` when neither signal exists.

Typical usage::

    resolver = EngineRequirementResolver()
    requirements = resolver.resolve(catalog)
    requirements["4.17.21"].constraint      # e.g. ">=0.10.0"
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from enginekeeper.constants import ANY_VERSION_CONSTRAINT
from enginekeeper.models.catalog import (
    EngineRequirement,
    RequirementSource,
    VersionCatalogEntry,
)
from enginekeeper.utils.logger import get_logger
from enginekeeper.utils.version_utils import is_canonical_version, try_parse_version

logger = get_logger("resolver")


class EngineRequirementResolver:
    """Derive an :class:`EngineRequirement` for every catalog version.

    The resolver holds no state; one instance may be shared freely across
    concurrent callers.

    Example::

        >>> resolver = EngineRequirementResolver()
        >>> entry = VersionCatalogEntry("1.0.0", build_runtime_version="12.0.0")
        >>> resolver.resolve([entry])["1.0.0"].constraint
        '>=12.0.0'
    """

    def resolve(
        self,
        catalog: Iterable[VersionCatalogEntry],
        include_all_versions: bool = False,
    ) -> Dict[str, EngineRequirement]:
        """Build the version -> requirement map for ``catalog``.

        Args:
            catalog: Every published version of one package.
            include_all_versions: Keep pre-release and build-tagged versions.

        Returns:
            Mapping keyed by version string.  Empty for an empty catalog.
        """
        return {
            entry.version: self.derive_requirement(entry)
            for entry in self.filter_catalog(catalog, include_all_versions)
        }

    def filter_catalog(
        self,
        catalog: Iterable[VersionCatalogEntry],
        include_all_versions: bool = False,
    ) -> List[VersionCatalogEntry]:
        """Return the catalog entries that take part in resolution.

        Non-canonical versions (``1.0.0-beta.2``, ``2.0.0+build``) are kept
        only when ``include_all_versions`` is set.  Strings that are not
        semantic versions are always dropped so they can never be
        mis-ordered later.
        """
        kept: List[VersionCatalogEntry] = []

        for entry in catalog:
            if not include_all_versions and not is_canonical_version(entry.version):
                continue

            if try_parse_version(entry.version) is None:
                logger.debug("Skipping malformed version %r", entry.version)
                continue

            kept.append(entry)

        return kept

    @staticmethod
    def derive_requirement(entry: VersionCatalogEntry) -> EngineRequirement:
        """Apply the declared -> inferred -> wildcard priority to one entry."""
        if entry.engine_constraint:
            return EngineRequirement(
                version=entry.version,
                constraint=entry.engine_constraint,
                source=RequirementSource.DECLARED_ENGINE,
            )

        if entry.build_runtime_version:
            # Built under Node X: assume X and later work
            return EngineRequirement(
                version=entry.version,
                constraint=f">={entry.build_runtime_version}",
                source=RequirementSource.INFERRED_FROM_BUILD_RUNTIME,
            )

        return EngineRequirement(
            version=entry.version,
            constraint=ANY_VERSION_CONSTRAINT,
            source=RequirementSource.DEFAULT_ANY,
        )
