"""Per-dependency compatibility lookup for enginekeeper.

:class:`CompatibilityFinder` ties the pieces together for a batch of
dependencies:

1. fetch each catalog through the shared
   :class:`~enginekeeper.core.registry.NpmRegistryStore`;
2. derive engine requirements with
   :class:`~enginekeeper.core.resolver.EngineRequirementResolver`;
3. collapse them against the target Node.js version with
   :class:`~enginekeeper.core.collapser.RangeCollapser`.

Dependencies are processed concurrently and independently: a package that
cannot be fetched becomes an ``unavailable`` result and a package with no
compatible release becomes ``no-compatible-version``, while its siblings
resolve normally.

Typical usage::

    async with HTTPClient() as http:
        store  = NpmRegistryStore(http, registry=registry)
        finder = CompatibilityFinder(store, target_version="14.21.3")
        results = await finder.find_all([DependencyRequest("chalk")])

        for result in results:
            print(result.name, result.range_expression, result.selected_version)
"""

from __future__ import annotations

import asyncio
from typing import Any, List, Sequence

from enginekeeper.exceptions import RegistryError
from enginekeeper.core.collapser import RangeCollapser
from enginekeeper.core.registry import NpmRegistryStore
from enginekeeper.core.resolver import EngineRequirementResolver
from enginekeeper.models.result import (
    DependencyRequest,
    DependencyResult,
    DependencyStatus,
)
from enginekeeper.utils.logger import get_logger
from enginekeeper.utils.version_utils import parse_version

logger = get_logger("finder")


class CompatibilityFinder:
    """Resolve compatible version ranges for a batch of dependencies.

    Args:
        registry: Shared catalog store.  **Required**.
        target_version: Node.js version every dependency is checked against.
        include_all_versions: Consider pre-release and build-tagged versions.

    Raises:
        TypeError: If ``registry`` is ``None``.
        MalformedVersionError: If ``target_version`` is not a valid semantic
            version.  Checked up front so a bad target fails the whole run
            once instead of once per dependency.
    """

    def __init__(
        self,
        registry: NpmRegistryStore,
        target_version: str,
        include_all_versions: bool = False,
    ) -> None:
        if registry is None:
            raise TypeError("registry must not be None; pass an NpmRegistryStore")

        parse_version(target_version)

        self.registry: NpmRegistryStore = registry
        self.target_version: str = target_version
        self.include_all_versions: bool = include_all_versions

        self.resolver = EngineRequirementResolver()
        self.collapser = RangeCollapser()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def find(self, request: DependencyRequest) -> DependencyResult:
        """Resolve one dependency.

        Registry failures are reported in the result rather than raised.
        """
        try:
            catalog = await self.registry.get_catalog(request.name)
        except RegistryError as exc:
            logger.warning("Catalog for '%s' unavailable: %s", request.name, exc.message)
            return self.create_unavailable_result(request, exc.message)

        requirements = self.resolver.resolve(catalog, self.include_all_versions)
        intervals = self.collapser.collapse(requirements, self.target_version)

        status = (
            DependencyStatus.COMPATIBLE
            if intervals
            else DependencyStatus.NO_COMPATIBLE_VERSION
        )
        if not intervals:
            logger.info(
                "No release of %s supports Node %s (%d version(s) checked)",
                request.name,
                self.target_version,
                len(requirements),
            )

        return DependencyResult(
            name=request.name,
            group=request.group,
            status=status,
            intervals=intervals,
            current_spec=request.current_spec,
            version_count=len(requirements),
        )

    async def find_all(
        self,
        requests: Sequence[DependencyRequest],
    ) -> List[DependencyResult]:
        """Resolve many dependencies concurrently.

        Returns one result per request, in request order.  Unexpected
        exceptions for a single dependency are logged and turned into
        ``unavailable`` results.
        """
        results = await asyncio.gather(
            *(self.find(request) for request in requests),
            return_exceptions=True,
        )
        return self._process_results(requests, results)

    @staticmethod
    def create_unavailable_result(
        request: DependencyRequest,
        reason: str,
    ) -> DependencyResult:
        """Build the result for a dependency whose catalog could not be read."""
        return DependencyResult(
            name=request.name,
            group=request.group,
            status=DependencyStatus.UNAVAILABLE,
            current_spec=request.current_spec,
            error=reason,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _process_results(
        self,
        requests: Sequence[DependencyRequest],
        results: List[Any],
    ) -> List[DependencyResult]:
        processed: List[DependencyResult] = []

        for request, result in zip(requests, results):
            if isinstance(result, Exception):
                logger.error("Failed to resolve %s: %s", request.name, result)
                processed.append(self.create_unavailable_result(request, str(result)))
            else:
                processed.append(result)

        return processed
