"""Tests for --examples flag on CLI commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from mindmat.cli import cli

EXAMPLES_COMMANDS: list[tuple[list[str], list[str]]] = [
    (["--examples"], ["mindmat plan map.json --advance 2"]),
    (["plan", "--examples"], ["--viewport 0,0", "--ids"]),
    (["config", "--examples"], ["MINDMAT_MATERIALIZE__BATCH_SIZE"]),
]


@pytest.mark.parametrize(
    ("args", "keywords"),
    EXAMPLES_COMMANDS,
    ids=lambda item: "_".join(item) if isinstance(item, list) else None,
)
def test_examples_flag(cli_runner: CliRunner, args: list[str], keywords: list[str]) -> None:
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0, result.output
    assert "Examples for" in result.output
    for keyword in keywords:
        assert keyword in result.output


def test_examples_listed_in_help(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["plan", "--help"])
    assert "--examples" in result.output
