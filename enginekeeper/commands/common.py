"""Helpers shared by the ``check`` and ``update`` commands.

Both commands accept the same dependency selection and target options,
merge them with the loaded configuration, and run one resolution pass
against the registry.  The pieces live here so the two commands differ
only in what they do with the results.
"""

from __future__ import annotations

from pathlib import Path
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple

import click

from enginekeeper.config import EngineKeeperConfig
from enginekeeper.constants import DEPENDENCIES_SECTION, DEV_DEPENDENCIES_SECTION
from enginekeeper.core import CompatibilityFinder, NpmRegistryStore, PackageManifest
from enginekeeper.exceptions import ManifestError
from enginekeeper.models import DependencyRequest, DependencyResult
from enginekeeper.utils import (
    HTTPClient,
    get_current_node_version,
    get_current_registry,
    get_logger,
    normalize_node_version,
)

logger = get_logger("commands.common")


@dataclass(frozen=True)
class ResolutionSettings:
    """Effective settings for one resolution pass.

    Attributes:
        target_version: Node.js version dependencies are checked against.
        registry: npm registry base URL.
        include_all_versions: Consider pre-release and build-tagged versions.
        timeout: HTTP timeout in seconds.
        concurrent_limit: Maximum concurrent registry fetches.
    """

    target_version: str
    registry: str
    include_all_versions: bool
    timeout: int
    concurrent_limit: int


def dependency_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the dependency selection and target options to a command."""
    options = [
        click.argument(
            "file",
            type=click.Path(dir_okay=False, path_type=Path),
            default="package.json",
        ),
        click.option(
            "--deps",
            "-d",
            multiple=True,
            help="Dependency to resolve (repeatable). Defaults to package.json.",
        ),
        click.option(
            "--dev-deps",
            "-D",
            multiple=True,
            help="Dev dependency to resolve (repeatable).",
        ),
        click.option(
            "--all-versions",
            is_flag=True,
            help="Also consider pre-release and build-tagged versions.",
        ),
        click.option(
            "--node",
            "node_version",
            envvar="ENGINEKEEPER_NODE_VERSION",
            help="Target Node.js version (default: output of `node --version`).",
        ),
        click.option(
            "--registry",
            envvar="ENGINEKEEPER_REGISTRY",
            help="npm registry URL (default: `npm config get registry`).",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def resolve_settings(
    config: EngineKeeperConfig,
    *,
    node_version: Optional[str] = None,
    registry: Optional[str] = None,
    all_versions: bool = False,
) -> ResolutionSettings:
    """Merge command options with configuration and the local environment.

    Command options (including their environment variables) win over the
    configuration file; anything still unset is discovered from the
    installed ``node`` and ``npm``.

    Raises:
        EnvironmentDiscoveryError: No target given and ``node`` is unusable.
    """
    target = node_version or config.node_version
    target = normalize_node_version(target) if target else get_current_node_version()

    registry_url = registry or config.registry or get_current_registry()

    settings = ResolutionSettings(
        target_version=target,
        registry=registry_url,
        include_all_versions=all_versions or config.all_versions,
        timeout=config.timeout,
        concurrent_limit=config.concurrent_limit,
    )
    logger.debug("Resolution settings: %s", settings)
    return settings


def collect_requests(
    file: Path,
    deps: Sequence[str],
    dev_deps: Sequence[str],
    *,
    require_manifest: bool = False,
) -> Tuple[Optional[PackageManifest], List[DependencyRequest]]:
    """Load the manifest (when present) and build the request list.

    Explicit ``deps`` / ``dev_deps`` can be resolved without a manifest
    unless ``require_manifest`` is set.

    Raises:
        ManifestError: The manifest is needed but missing or invalid.
    """
    if file.exists() or require_manifest or not (deps or dev_deps):
        if not file.exists():
            raise ManifestError(f"{file} not found", file_path=str(file))
        manifest = PackageManifest.load(file)
        return manifest, manifest.collect_requests(deps, dev_deps)

    requests = [DependencyRequest(name, DEPENDENCIES_SECTION) for name in deps]
    requests += [DependencyRequest(name, DEV_DEPENDENCIES_SECTION) for name in dev_deps]
    return None, requests


async def resolve_dependencies(
    requests: Sequence[DependencyRequest],
    settings: ResolutionSettings,
) -> List[DependencyResult]:
    """Fetch catalogs and compute compatible ranges for every request."""
    async with HTTPClient(
        timeout=settings.timeout,
        max_concurrency=settings.concurrent_limit,
    ) as http:
        store = NpmRegistryStore(
            http,
            registry=settings.registry,
            concurrent_limit=settings.concurrent_limit,
        )
        finder = CompatibilityFinder(
            store,
            target_version=settings.target_version,
            include_all_versions=settings.include_all_versions,
        )

        # Warm the cache with all packages in one concurrent burst
        await store.prefetch([request.name for request in requests])

        return await finder.find_all(requests)
