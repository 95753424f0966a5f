"""Tests for the root CLI group and global flags."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from mindmat import __version__
from mindmat.cli import cli
from mindmat.config.discovery import CONFIG_ENV_VAR


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


class TestRootGroup:
    def test_help_lists_commands(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "plan" in result.output
        assert "config" in result.output

    def test_no_subcommand_prints_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "Usage" in result.output

    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_explicit_config_path(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        custom = tmp_path / "conf" / "other.toml"
        custom.parent.mkdir()
        custom.write_text("[materialize]\nbatch_size = 3\n")
        result = cli_runner.invoke(cli, ["--json", "-c", str(custom), "config"])
        assert json.loads(result.output)["data"]["batch_size"] == 3

    def test_config_env_var(
        self, cli_runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        custom = tmp_path / "env.toml"
        custom.write_text("[materialize]\npreload_distance = 12.5\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(custom))
        result = cli_runner.invoke(cli, ["--json", "config"])
        assert json.loads(result.output)["data"]["preload_distance"] == 12.5

    def test_verbose_adds_telemetry_meta(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "-v", "config"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["meta"]["telemetry"]["name"] == "PlanService.describe_config"
