"""Subcommand modules for mindmat.

Provides register_commands() which uses deferred imports to keep
``mindmat --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from mindmat.commands.plan import config_cmd, plan

    cli.add_command(plan)
    cli.add_command(config_cmd)
