"""npm registry catalog store for enginekeeper.

Fetches full packuments (``GET {registry}/{name}``) and turns their
``versions`` objects into :class:`VersionCatalogEntry` lists.  Each package
is fetched at most once per store instance, with a semaphore bounding the
number of in-flight requests.  Nothing is persisted between invocations.

Typical usage::

    from enginekeeper.utils.http import HTTPClient
    from enginekeeper.core.registry import NpmRegistryStore

    async with HTTPClient() as client:
        store = NpmRegistryStore(client, registry="https://registry.npmjs.org/")
        catalog = await store.get_catalog("lodash")
        print(len(catalog))                 # every published version
"""

from __future__ import annotations

import asyncio
from urllib.parse import quote
from typing import Any, Dict, List, Optional

from enginekeeper.exceptions import NetworkError, RegistryError
from enginekeeper.models.catalog import VersionCatalogEntry
from enginekeeper.utils.http import HTTPClient
from enginekeeper.utils.logger import get_logger
from enginekeeper.constants import DEFAULT_CONCURRENT_LIMIT, DEFAULT_REGISTRY

logger = get_logger("registry")

__all__ = ["NpmRegistryStore", "parse_packument", "package_url"]


def package_url(registry: str, name: str) -> str:
    """Return the packument URL for ``name`` on ``registry``.

    Scoped names keep their ``@`` but have the slash encoded, as the
    public registry expects.

    Example::

        >>> package_url("https://registry.npmjs.org/", "@babel/core")
        'https://registry.npmjs.org/@babel%2Fcore'
    """
    return f"{registry.rstrip('/')}/{quote(name, safe='@')}"


def parse_packument(data: Dict[str, Any]) -> List[VersionCatalogEntry]:
    """Extract catalog entries from a packument.

    A packument without a ``versions`` object (unpublished packages) yields
    an empty catalog.
    """
    versions = data.get("versions")
    if not isinstance(versions, dict):
        return []

    return [
        VersionCatalogEntry.from_manifest(version, manifest)
        for version, manifest in versions.items()
    ]


class NpmRegistryStore:
    """Async-safe, per-invocation cache of npm version catalogs.

    Args:
        http_client: A pre-configured :class:`HTTPClient` instance.
        registry: Registry base URL.
        concurrent_limit: Maximum number of packument fetches in flight.

    Example::

        async with HTTPClient() as client:
            store = NpmRegistryStore(client)
            await store.prefetch(["react", "react-dom"])
            react = await store.get_catalog("react")   # served from cache
    """

    def __init__(
        self,
        http_client: HTTPClient,
        registry: str = DEFAULT_REGISTRY,
        concurrent_limit: int = DEFAULT_CONCURRENT_LIMIT,
    ) -> None:
        self.http_client = http_client
        self.registry = registry
        self._semaphore = asyncio.Semaphore(concurrent_limit)
        self._catalogs: Dict[str, List[VersionCatalogEntry]] = {}
        self._failures: Dict[str, RegistryError] = {}

    async def get_catalog(self, name: str) -> List[VersionCatalogEntry]:
        """Fetch (or return cached) catalog for ``name``.

        Double-checked: a second lookup inside the semaphore keeps
        concurrent callers for the same package down to one request.
        Failures are remembered too, so a package that cannot be fetched
        is requested once per store.

        Raises:
            RegistryError: Unknown package, unreachable registry, or a
                response that is not a JSON object.
        """
        cached = self._lookup(name)
        if cached is not None:
            return cached

        async with self._semaphore:
            cached = self._lookup(name)
            if cached is not None:
                return cached

            try:
                catalog = parse_packument(await self._fetch_packument(name))
            except RegistryError as exc:
                self._failures[name] = exc
                raise
            logger.debug("Fetched %d version(s) of %s", len(catalog), name)

            self._catalogs[name] = catalog
            return catalog

    async def prefetch(self, names: List[str]) -> None:
        """Warm the cache for a batch of packages.

        Per-package failures are not raised here; they are re-raised when
        the caller asks for that package via :meth:`get_catalog`.
        """
        await asyncio.gather(
            *(self.get_catalog(name) for name in names),
            return_exceptions=True,
        )

    def get_cached_catalog(self, name: str) -> List[VersionCatalogEntry]:
        """Return the cached catalog for ``name``, or ``[]`` if not fetched."""
        return self._catalogs.get(name, [])

    def _lookup(self, name: str) -> Optional[List[VersionCatalogEntry]]:
        if name in self._failures:
            raise self._failures[name]
        return self._catalogs.get(name)

    async def _fetch_packument(self, name: str) -> Dict[str, Any]:
        url = package_url(self.registry, name)

        try:
            return await self.http_client.get_json(url)
        except RegistryError as exc:
            raise RegistryError(
                f"Package '{name}' not found in registry",
                package_name=name,
                url=url,
                status_code=exc.status_code,
            ) from exc
        except NetworkError as exc:
            raise RegistryError(
                f"Could not fetch '{name}' from registry: {exc.message}",
                package_name=name,
                url=url,
                status_code=exc.status_code,
            ) from exc
