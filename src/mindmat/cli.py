"""Root CLI group for mindmat with global flags and command registration."""

from __future__ import annotations

import click

from mindmat import __version__
from mindmat.commands import register_commands
from mindmat.commands._base import MindmatGroup
from mindmat.commands._context import AppContext
from mindmat.config.settings import MindmatSettings


@click.group(
    cls=MindmatGroup,
    invoke_without_command=True,
    examples="""\
  mindmat plan map.json --advance 2
  mindmat --json config
  mindmat -c ./mindmat.toml plan map.json --viewport 0,0""",
)
@click.version_option(version=__version__, prog_name="mindmat")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug logs and timing.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
) -> None:
    """mindmat — progressive node materialization for large mind maps."""
    ctx.ensure_object(dict)
    try:
        # Unset flags pass None so TOML/env values are not masked.
        settings = MindmatSettings.from_cli(
            config_path=config_path,
            json_output=json_output or None,
            quiet=quiet or None,
            verbose=verbose or None,
            log_json=log_json or None,
        )
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
