"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Configures logging and telemetry and centralizes
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import click

from mindmat.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from mindmat.config.settings import MindmatSettings
    from mindmat.engine.hooks import HookDispatcher
    from mindmat.services.result import ServiceResult

logger = logging.getLogger(__name__)


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: MindmatSettings) -> None:
        self.settings = settings
        self._hooks: HookDispatcher | None = None

        from mindmat.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from mindmat.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def hooks(self) -> HookDispatcher:
        """Lazy-init hook dispatcher with entry-point plugins loaded."""
        if self._hooks is None:
            from mindmat.engine.hooks import HookDispatcher

            dispatcher = HookDispatcher()
            count = dispatcher.load_entrypoints()
            logger.debug("Loaded %d entry-point plugin(s)", count)
            self._hooks = dispatcher
        return self._hooks

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
