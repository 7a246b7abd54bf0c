from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import click
import pytest
from click.testing import CliRunner

from enginekeeper.__version__ import __version__
from enginekeeper.cli import cli, main
from enginekeeper.exceptions import EngineKeeperError


@pytest.mark.unit
class TestMainExitCodes:
    """Tests for mapping failures to process exit codes."""

    def test_success(self) -> None:
        with patch("enginekeeper.cli.cli") as mock_cli:
            assert main() == 0
        mock_cli.assert_called_once_with(standalone_mode=False)

    @pytest.mark.parametrize(
        "error, expected",
        [
            (click.exceptions.Abort(), 130),
            (click.UsageError("bad option"), 2),
            (EngineKeeperError("boom"), 1),
            (KeyboardInterrupt(), 130),
            (RuntimeError("unexpected"), 1),
        ],
        ids=["abort", "usage", "application", "interrupt", "unexpected"],
    )
    def test_failures(self, error: BaseException, expected: int) -> None:
        with patch("enginekeeper.cli.cli", side_effect=error):
            assert main() == expected


@pytest.mark.unit
class TestCliGroup:
    """Tests for the global options."""

    def test_version(self) -> None:
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert result.output.strip() == f"enginekeeper {__version__}"

    def test_help_lists_commands(self) -> None:
        result = CliRunner().invoke(cli, ["-h"])

        assert result.exit_code == 0
        assert "check" in result.output
        assert "update" in result.output

    def test_invalid_config_exits_one(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        config = tmp_path / "enginekeeper.toml"
        config.write_text("[enginekeeper]\ntimeout = 0\n", encoding="utf-8")

        result = CliRunner().invoke(cli, ["-c", str(config), "check", "-d", "chalk", "--node", "16"])

        assert result.exit_code == 1
        assert "greater than zero" in result.output

    def test_unknown_config_key(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        (tmp_path / "enginekeeper.toml").write_text(
            "[enginekeeper]\nregistri = 'x'\n", encoding="utf-8"
        )

        result = CliRunner().invoke(cli, ["check", "-d", "chalk", "--node", "16"])

        assert result.exit_code == 1
        assert "Unknown configuration keys: registri" in result.output
