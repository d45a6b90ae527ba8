"""CLI adapter for ``surrogate_purge`` built on ``lib_cli_exit_tools``.

Purpose
-------
Expose cache purging and the team configuration exchange as a command line
tool. Commands stay thin: they translate options into calls on
:mod:`surrogate_purge.core` and render results.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root group wiring traceback handling, settings and verbosity.
* :func:`cli_purge` – purge surrogate keys, whole services or URLs.
* :func:`cli_setup` – apply a shared setup string.
* :func:`cli_validate_setup` – check a setup string without applying it.
* :func:`cli_generate_setup` – build a setup string from the current environment.
* :func:`cli_status` – report configuration presence and next steps.
* :func:`cli_info` – prints distribution metadata for quick diagnostics.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
Outermost layer. ``lib_cli_exit_tools`` centralises the exit code strategy:
library errors propagate out of the commands and are printed and mapped to a
non-zero exit code there.
"""

from __future__ import annotations

import sys
from importlib import metadata
from pathlib import Path
from typing import Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .adapters.console import ConsoleLogger
from .adapters.env.default import split_list
from .core import (
    PurgeOptions,
    SetupOptions,
    decode_setup_string,
    execute_purge,
    execute_setup,
    generate_setup_string,
    read_settings,
    setup_status,
)
from .domain.settings import ENVIRONMENTS, Settings
from .observability import enable_console_logging

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000
_PROG_NAME: Final[str] = "surrogate-purge"


def _resolve_version() -> str:
    """Return the installed package version, ``"0.0.0"`` when metadata is missing."""

    try:
        return metadata.version("surrogate_purge")
    except metadata.PackageNotFoundError:
        return "0.0.0"


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


@click.group(
    help="Purge Fastly caches by surrogate key and share team configuration safely",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name=_PROG_NAME,
    message="surrogate-purge version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.option(
    "--settings",
    "settings_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="TOML settings file (defaults to the per-user settings file)",
)
@click.option("--verbose", is_flag=True, default=False, help="Log diagnostic events to stderr")
@click.pass_context
def cli(ctx: click.Context, traceback: bool, settings_path: Optional[Path], verbose: bool) -> None:
    """Root command storing the traceback preference and the resolved settings.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``; ``--verbose``
        attaches a stderr handler to the package logger.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback
    if verbose:
        enable_console_logging()
    ctx.obj["settings"] = read_settings(settings_path)


@cli.command("purge", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("keys", nargs=-1)
@click.option(
    "--env",
    "-e",
    type=click.Choice(ENVIRONMENTS, case_sensitive=False),
    default="dev",
    show_default=True,
    help="Deployment environment whose services are purged",
)
@click.option("--services", "-s", default=None, help="Comma-separated service ids overriding the environment")
@click.option("--all", "purge_all", is_flag=True, default=False, help="Purge ALL cached content of the services")
@click.option("--url", "urls", multiple=True, help="Purge a single URL (repeatable)")
@click.option("--dry-run", is_flag=True, default=False, help="Show what would be purged without purging")
@click.pass_context
def cli_purge(
    ctx: click.Context,
    keys: Sequence[str],
    env: str,
    services: Optional[str],
    purge_all: bool,
    urls: Sequence[str],
    dry_run: bool,
) -> None:
    """Purge KEYS (plus the configured default keys) from every service of --env.

    Exits with code 1 when any service reported a failure.
    """

    options = PurgeOptions(
        env=env.lower(),
        services=services,
        dry_run=dry_run,
        purge_all=purge_all,
        urls=tuple(urls),
    )
    report = execute_purge(list(keys), options, ConsoleLogger(), settings=_settings(ctx))
    if not report.success:
        ctx.exit(1)


@cli.command("setup", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("setup_string")
@click.option(
    "--allow-execution",
    is_flag=True,
    default=False,
    help="Append the export commands to your shell startup file instead of printing them",
)
@click.option("--force", is_flag=True, default=False, help="Proceed even when existing values would change")
@click.option("--export-keys", default=None, help="Comma-separated subset of keys to apply")
@click.pass_context
def cli_setup(
    ctx: click.Context,
    setup_string: str,
    allow_execution: bool,
    force: bool,
    export_keys: Optional[str],
) -> None:
    """Apply a SETUP_STRING shared by a teammate.

    Conflicts and an already configured shell file are clean stops; only
    failures exit with a non-zero code.
    """

    options = SetupOptions(
        allow_execution=allow_execution,
        force=force,
        export_keys=tuple(split_list(export_keys)) if export_keys else None,
    )
    outcome = execute_setup(setup_string, options, ConsoleLogger(), settings=_settings(ctx))
    if outcome.is_failure:
        ctx.exit(1)


@cli.command("validate-setup", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("setup_string")
@click.pass_context
def cli_validate_setup(ctx: click.Context, setup_string: str) -> None:
    """Decode and validate SETUP_STRING without applying it.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> result = CliRunner().invoke(cli, ["validate-setup", "eyJGQVNUTFlfREVWX1NFUlZJQ0VfSURTIjoiZGV2LXN2Yy0xIn0="])
    >>> "FASTLY_DEV_SERVICE_IDS" in result.output
    True
    """

    config = decode_setup_string(setup_string, settings=_settings(ctx), logger=ConsoleLogger())
    click.secho("Setup string is valid.", fg="green")
    for key, value in config.provided().without_credentials().items():
        click.echo(f"  {key}={value}")


@cli.command("generate-setup", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option("--keys", "export_keys", default=None, help="Comma-separated subset of variables to include")
@click.pass_context
def cli_generate_setup(ctx: click.Context, export_keys: Optional[str]) -> None:
    """Build a setup string from the configured variables of this shell.

    The API token is never included; every teammate uses their own.
    """

    selected = split_list(export_keys) if export_keys else None
    encoded = generate_setup_string(settings=_settings(ctx), export_keys=selected)
    click.echo("This setup will export:")
    if selected:
        for key in selected:
            click.echo(f"  {key}")
    else:
        click.echo("  All configured service and default key variables")
    click.echo("")
    click.echo("Share this setup string with your team:")
    click.echo("")
    click.echo(f"{_PROG_NAME} setup {encoded}")
    click.echo("")
    click.echo("Or for automatic setup:")
    click.echo(f"{_PROG_NAME} setup {encoded} --allow-execution")


@cli.command("status", context_settings=CLICK_CONTEXT_SETTINGS)
@click.pass_context
def cli_status(ctx: click.Context) -> None:
    """Show which purge settings are configured and what to do next."""

    settings = _settings(ctx)
    status = setup_status(settings=settings)
    click.echo(f"{settings.token_key}: {'set' if status.has_token else 'missing'}")
    for env in ENVIRONMENTS:
        state = "configured" if status.services.get(env) else "not configured"
        click.echo(f"{env} services: {state}")
    click.echo(f"Default keys: {'configured' if status.has_default_keys else 'not configured'}")
    click.echo("")
    if status.is_complete:
        click.secho("Ready to purge.", fg="green")
        return
    if not status.has_dev_services:
        click.echo("Ask a teammate for a setup string and run:")
        click.echo(f"  {_PROG_NAME} setup <setup-string>")
        click.echo(f"Or set {settings.namespace}_DEV_SERVICE_IDS yourself.")
    if not status.has_token:
        click.echo(f"Set your personal API token: export {settings.token_key}=<your-token>")


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata("surrogate_purge")
    except metadata.PackageNotFoundError:
        click.echo("surrogate_purge (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', 'surrogate_purge')}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name=_PROG_NAME,
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
