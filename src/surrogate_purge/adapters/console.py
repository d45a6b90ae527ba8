"""Console implementation of the ``Logger`` port.

Messages go to the terminal through :func:`click.secho` (warnings and errors on
stderr) and are mirrored into the structured log so ``--verbose`` runs keep a
single correlated record of what the user saw.
"""

from __future__ import annotations

import rich_click as click

from ..observability import log_error, log_info, log_warning


class ConsoleLogger:
    """Colourised user-facing output."""

    def info(self, message: str) -> None:
        click.echo(message)
        log_info("console_info", stage="console", key=None, text=message)

    def success(self, message: str) -> None:
        click.secho(message, fg="green")
        log_info("console_success", stage="console", key=None, text=message)

    def warn(self, message: str) -> None:
        click.secho(message, fg="yellow", err=True)
        log_warning("console_warning", stage="console", key=None, text=message)

    def error(self, message: str) -> None:
        click.secho(message, fg="red", err=True)
        log_error("console_error", stage="console", key=None, text=message)
