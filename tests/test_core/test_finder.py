from __future__ import annotations

from typing import Dict, List
from unittest.mock import AsyncMock, MagicMock

import pytest

from enginekeeper.core.finder import CompatibilityFinder
from enginekeeper.core.registry import NpmRegistryStore
from enginekeeper.exceptions import MalformedVersionError, RegistryError
from enginekeeper.models import (
    CompatibilityInterval,
    DependencyRequest,
    DependencyStatus,
    VersionCatalogEntry,
)


def _store(catalogs: Dict[str, List[VersionCatalogEntry]]) -> MagicMock:
    """Mock registry serving ``catalogs``; unknown names raise RegistryError."""
    store = MagicMock(spec=NpmRegistryStore)

    async def get_catalog(name: str) -> List[VersionCatalogEntry]:
        if name not in catalogs:
            raise RegistryError(
                f"Package '{name}' not found in registry", package_name=name
            )
        return catalogs[name]

    store.get_catalog = AsyncMock(side_effect=get_catalog)
    return store


CATALOGS = {
    "chalk": [
        VersionCatalogEntry("4.1.2", engine_constraint=">=10"),
        VersionCatalogEntry("5.0.0", engine_constraint="^12.17.0 || ^14.13 || >=16.0.0"),
    ],
    "ancient": [VersionCatalogEntry("0.1.0", engine_constraint="0.4.x")],
}


@pytest.mark.unit
class TestCompatibilityFinderInit:
    """Tests for constructor validation."""

    def test_requires_registry(self) -> None:
        with pytest.raises(TypeError):
            CompatibilityFinder(None, target_version="16.0.0")  # type: ignore[arg-type]

    def test_rejects_malformed_target(self) -> None:
        with pytest.raises(MalformedVersionError):
            CompatibilityFinder(_store({}), target_version="latest")

    def test_defaults(self) -> None:
        finder = CompatibilityFinder(_store({}), target_version="16.0.0")

        assert finder.target_version == "16.0.0"
        assert finder.include_all_versions is False


@pytest.mark.unit
class TestFind:
    """Tests for resolving a single dependency."""

    @pytest.mark.asyncio
    async def test_compatible(self) -> None:
        finder = CompatibilityFinder(_store(CATALOGS), target_version="12.0.0")

        result = await finder.find(DependencyRequest("chalk", current_spec="^5.0.0"))

        assert result.status is DependencyStatus.COMPATIBLE
        assert result.intervals == [CompatibilityInterval("4.1.2", "4.1.2")]
        assert result.selected_version == "4.1.2"
        assert result.current_spec == "^5.0.0"
        assert result.version_count == 2

    @pytest.mark.asyncio
    async def test_no_compatible_version(self) -> None:
        finder = CompatibilityFinder(_store(CATALOGS), target_version="18.0.0")

        result = await finder.find(DependencyRequest("ancient"))

        assert result.status is DependencyStatus.NO_COMPATIBLE_VERSION
        assert result.intervals == []
        assert result.selected_version is None
        assert not result.is_resolved()

    @pytest.mark.asyncio
    async def test_unavailable(self) -> None:
        finder = CompatibilityFinder(_store(CATALOGS), target_version="18.0.0")

        result = await finder.find(DependencyRequest("missing", group="devDependencies"))

        assert result.status is DependencyStatus.UNAVAILABLE
        assert result.group == "devDependencies"
        assert result.error == "Package 'missing' not found in registry"

    @pytest.mark.asyncio
    async def test_include_all_versions(self) -> None:
        catalogs = {
            "next": [
                VersionCatalogEntry("1.0.0", engine_constraint=">=20"),
                VersionCatalogEntry("1.1.0-canary.3"),
            ]
        }
        strict = CompatibilityFinder(_store(catalogs), target_version="16.0.0")
        loose = CompatibilityFinder(
            _store(catalogs), target_version="16.0.0", include_all_versions=True
        )

        assert (await strict.find(DependencyRequest("next"))).intervals == []
        assert (await loose.find(DependencyRequest("next"))).selected_version == (
            "1.1.0-canary.3"
        )


@pytest.mark.unit
class TestFindAll:
    """Tests for batch resolution."""

    @pytest.mark.asyncio
    async def test_results_in_request_order(self) -> None:
        finder = CompatibilityFinder(_store(CATALOGS), target_version="16.0.0")
        requests = [
            DependencyRequest("missing"),
            DependencyRequest("chalk"),
            DependencyRequest("ancient", group="devDependencies"),
        ]

        results = await finder.find_all(requests)

        assert [r.name for r in results] == ["missing", "chalk", "ancient"]
        assert [r.status for r in results] == [
            DependencyStatus.UNAVAILABLE,
            DependencyStatus.COMPATIBLE,
            DependencyStatus.NO_COMPATIBLE_VERSION,
        ]
        assert results[1].selected_version == "5.0.0"

    @pytest.mark.asyncio
    async def test_unexpected_error_isolated(self) -> None:
        store = _store(CATALOGS)
        original = store.get_catalog.side_effect

        async def flaky(name: str) -> List[VersionCatalogEntry]:
            if name == "ancient":
                raise RuntimeError("socket exploded")
            return await original(name)

        store.get_catalog.side_effect = flaky
        finder = CompatibilityFinder(store, target_version="16.0.0")

        results = await finder.find_all(
            [DependencyRequest("ancient"), DependencyRequest("chalk")]
        )

        assert results[0].status is DependencyStatus.UNAVAILABLE
        assert results[0].error == "socket exploded"
        assert results[1].is_resolved()

    @pytest.mark.asyncio
    async def test_empty_batch(self) -> None:
        finder = CompatibilityFinder(_store({}), target_version="16.0.0")

        assert await finder.find_all([]) == []


@pytest.mark.unit
class TestCreateUnavailableResult:
    def test_fields(self) -> None:
        request = DependencyRequest("x", group="devDependencies", current_spec="1.0.0")

        result = CompatibilityFinder.create_unavailable_result(request, "offline")

        assert result.status is DependencyStatus.UNAVAILABLE
        assert result.current_spec == "1.0.0"
        assert result.error == "offline"
        assert result.intervals == []
