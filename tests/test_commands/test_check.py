from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from enginekeeper.cli import cli

REGISTRY = "https://registry.example.org/"

BASE_ARGS = ["check", "--node", "12.0.0", "--registry", REGISTRY]


@pytest.mark.unit
@pytest.mark.usefixtures("fake_registry")
class TestCheckCommand:
    """Tests for ``enginekeeper check``."""

    def test_simple_format(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(cli, BASE_ARGS + ["-f", "simple"])

        assert result.exit_code == 0, result.output
        assert "chalk range is: >=4.1.2 <=4.1.2" in result.output
        assert "mocha range is: >=8.4.0 <=9.2.2" in result.output

    def test_json_format(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(cli, BASE_ARGS + ["--format", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["node"] == "12.0.0"
        assert data["registry"] == REGISTRY
        by_name = {entry["name"]: entry for entry in data["dependencies"]}
        assert by_name["chalk"]["selected_version"] == "4.1.2"
        assert by_name["chalk"]["current"] == "^5.3.0"
        assert by_name["mocha"]["group"] == "devDependencies"
        assert by_name["mocha"]["intervals"] == [{"lower": "8.4.0", "upper": "9.2.2"}]

    def test_table_format(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(cli, BASE_ARGS)

        assert result.exit_code == 0, result.output
        assert "Node.js Compatibility" in result.output
        assert "chalk" in result.output
        assert "mocha" in result.output

    def test_all_versions_includes_prereleases(
        self, runner: CliRunner, project: Path
    ) -> None:
        result = runner.invoke(
            cli,
            ["check", "--node", "16", "--registry", REGISTRY, "-f", "simple", "--all-versions"],
        )

        assert result.exit_code == 0, result.output
        assert "mocha range is: >=8.4.0 <=10.0.0-beta.1" in result.output

    def test_explicit_deps_without_manifest(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(cli, BASE_ARGS + ["-f", "simple", "-d", "chalk"])

        assert result.exit_code == 0, result.output
        assert "chalk range is: >=4.1.2 <=4.1.2" in result.output
        assert "mocha" not in result.output

    def test_no_compatible_version_exits_nonzero(
        self, runner: CliRunner, project: Path
    ) -> None:
        result = runner.invoke(cli, BASE_ARGS + ["-f", "simple", "-d", "left-pad"])

        assert result.exit_code == 1
        assert "left-pad: no version supports Node.js 12.0.0" in result.output

    def test_unavailable_package_exits_nonzero(
        self, runner: CliRunner, project: Path
    ) -> None:
        result = runner.invoke(cli, BASE_ARGS + ["-f", "simple", "-d", "ghost"])

        assert result.exit_code == 1
        assert "ghost: unavailable" in result.output
        assert "chalk range is:" in result.output

    def test_missing_manifest(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(cli, BASE_ARGS)

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_malformed_target(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(
            cli, ["check", "--node", "latest", "--registry", REGISTRY, "-f", "simple"]
        )

        assert result.exit_code == 1
        assert "[ERROR]" in result.output

    def test_node_version_from_environment(
        self, runner: CliRunner, project: Path
    ) -> None:
        result = runner.invoke(
            cli,
            ["check", "--registry", REGISTRY, "-f", "json"],
            env={"ENGINEKEEPER_NODE_VERSION": "v18"},
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["node"] == "18.0.0"

    def test_node_version_from_config(self, runner: CliRunner, project: Path) -> None:
        (project.parent / "enginekeeper.toml").write_text(
            '[enginekeeper]\nnode_version = "16.20.2"\nregistry = "https://cfg.example/"\n',
            encoding="utf-8",
        )

        result = runner.invoke(cli, ["check", "-f", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["node"] == "16.20.2"
        assert data["registry"] == "https://cfg.example/"
        by_name = {entry["name"]: entry for entry in data["dependencies"]}
        assert by_name["chalk"]["selected_version"] == "5.3.0"
