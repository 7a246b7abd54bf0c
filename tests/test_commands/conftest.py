from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Generator
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from enginekeeper.core.registry import NpmRegistryStore
from enginekeeper.exceptions import RegistryError

#: Packuments served by the fake registry, keyed by package name.
PACKUMENTS: Dict[str, Dict[str, Any]] = {
    "chalk": {
        "versions": {
            "4.1.2": {"engines": {"node": ">=10"}},
            "5.3.0": {"engines": {"node": "^12.17.0 || ^14.13 || >=16.0.0"}},
        }
    },
    "mocha": {
        "versions": {
            "8.4.0": {"engines": {"node": ">= 10.12.0"}},
            "9.2.2": {"engines": {"node": ">= 12.0.0"}},
            "10.0.0-beta.1": {"engines": {"node": ">= 14.0.0"}},
        }
    },
    "left-pad": {"versions": {"1.3.0": {"engines": {"node": ">=99"}}}},
}

REGISTRY = "https://registry.example.org/"


@pytest.fixture
def fake_registry() -> Generator[None, None, None]:
    """Serve PACKUMENTS instead of talking to a real registry."""

    async def fetch(self: NpmRegistryStore, name: str) -> Dict[str, Any]:
        if name not in PACKUMENTS:
            raise RegistryError(
                f"Package '{name}' not found in registry", package_name=name
            )
        return PACKUMENTS[name]

    with patch.object(NpmRegistryStore, "_fetch_packument", new=fetch):
        yield


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A project directory holding a package.json, used as the cwd."""
    manifest = tmp_path / "package.json"
    manifest.write_text(
        json.dumps(
            {
                "name": "demo",
                "dependencies": {"chalk": "^5.3.0"},
                "devDependencies": {"mocha": "^10.2.0"},
            },
            indent=2,
        )
        + "\n",
        encoding="utf-8",
    )
    monkeypatch.chdir(tmp_path)
    for var in ("ENGINEKEEPER_CONFIG", "ENGINEKEEPER_NODE_VERSION", "ENGINEKEEPER_REGISTRY"):
        monkeypatch.delenv(var, raising=False)
    return manifest
