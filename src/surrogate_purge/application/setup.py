"""Setup orchestration: from a shared setup string to exported variables.

Purpose
-------
Sequence the configuration exchange pipeline end to end:

``decode + validate -> diff -> synthesize -> re-validate -> materialise``

and report every step through the :class:`~surrogate_purge.application.ports.Logger`
port. The orchestrator never exits the process; it returns a
:class:`SetupOutcome` and leaves the exit code to the CLI.

Contents
--------
* :class:`SetupOptions` – caller intent (write vs print, force, key subset).
* :class:`SetupOutcome` – terminal state of one run.
* :func:`execute_setup` – the orchestrator.
* :func:`generate_setup_string` – administrator helper building a string from
  the live environment.

System Role
-----------
Application layer: the live environment, the shell file writer and the target
path are injected by :mod:`surrogate_purge.core`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Sequence

from ..domain.config import Configuration, DiffClassification, is_credential_key
from ..domain.errors import InvalidSetupConfiguration, SecurityValidationError
from ..domain.settings import Settings
from ..observability import log_error, log_info, log_warning, make_event, new_trace_id
from .codec import decode_setup_string, encode_setup_string
from .diff import analyze_environment
from .exports import generate_export_commands
from .ports import Environment, Logger, ShellConfigWriter, ShellEscaper
from .validation import validate_export_commands, validate_setup_config

CREDENTIALS_IGNORED_MESSAGE = (
    "The setup string contains credential entries; they were ignored. "
    "Configure the API token separately."
)


@dataclass(frozen=True, slots=True)
class SetupOptions:
    """Caller intent for one setup run.

    Attributes
    ----------
    allow_execution:
        Append the export block to the shell startup file instead of printing it.
    force:
        Proceed even when live values differ from the proposed ones.
    export_keys:
        Restrict the run to these keys; ``None`` applies every entry.
    """

    allow_execution: bool = False
    force: bool = False
    export_keys: tuple[str, ...] | None = None


class SetupOutcome(Enum):
    """Terminal state of :func:`execute_setup`; only ``FAILED`` is an error."""

    COMPLETED = "completed"
    PRINTED = "printed"
    CONFLICT = "conflict"
    ALREADY_PRESENT = "already_present"
    NOTHING_TO_DO = "nothing_to_do"
    FAILED = "failed"

    @property
    def is_failure(self) -> bool:
        return self is SetupOutcome.FAILED


def execute_setup(
    encoded: str,
    options: SetupOptions,
    logger: Logger,
    *,
    environment: Environment,
    target: Path,
    writer: ShellConfigWriter,
    settings: Settings | None = None,
    shell: str | None = None,
    escaper: ShellEscaper | None = None,
) -> SetupOutcome:
    """Apply the configuration carried by *encoded*.

    Why
    ----
    The setup string comes from a colleague and ends up sourced by the user's
    shell. Every stage either proves the content inert or stops.

    What
    ----
    1. Decode and validate; any failure is reported and ends the run.
    2. Drop credential entries with a warning that names none of them.
    3. Show the diff against the live environment; stop when a live value
       would change and ``options.force`` is false.
    4. Synthesise ``export`` statements and validate them again as text.
    5. Print them together with *target*, or append them to *target* inside a
       marker block unless the marker is already present.

    Parameters
    ----------
    encoded:
        Portable setup string.
    options:
        Caller intent, see :class:`SetupOptions`.
    logger:
        User-facing output sink.
    environment:
        Live environment used for the diff.
    target:
        Shell startup file that receives (or is suggested for) the block.
    writer:
        Appends the marker block in write mode.
    settings / shell / escaper:
        Validation context forwarded to both validation passes.

    Returns
    -------
    SetupOutcome
        The terminal state. Filesystem failures end as ``FAILED`` after the
        commands were printed for manual use.
    """

    active = settings or Settings()
    new_trace_id()
    log_info("setup_started", **make_event("setup", None, {"write": options.allow_execution}))
    logger.info("Starting surrogate-purge setup...")

    try:
        decoded = decode_setup_string(encoded, settings=active, shell=shell, escaper=escaper, logger=logger)
    except InvalidSetupConfiguration as exc:
        log_error("setup_decode_failed", stage="decode", key=None, error=exc.cause)
        logger.error(str(exc))
        return SetupOutcome.FAILED

    config = _applicable_entries(decoded, options, logger)
    if not config:
        logger.info("The setup string contains no values to apply.")
        return SetupOutcome.NOTHING_TO_DO

    diff = analyze_environment(config, environment, settings=active)
    _report_diff(diff, config, logger)
    if diff.has_conflicts and not options.force:
        log_warning("setup_conflict", stage="diff", key=None, changed=[item.key for item in diff.changed_vars])
        logger.warn("Environment variables already set with different values.")
        logger.info("Use --force to override existing configuration")
        logger.info("Or manually check your shell configuration files")
        return SetupOutcome.CONFLICT

    commands = generate_export_commands(config, options.export_keys)
    verdict = validate_export_commands(commands, settings=active, shell=shell, escaper=escaper)
    if not verdict.is_valid:
        log_error("setup_commands_rejected", stage="validate_commands", key=None, errors=len(verdict.errors))
        logger.error("Export command validation failed:")
        for error in verdict.errors:
            logger.error(f"  {error}")
        return SetupOutcome.FAILED
    for warning in verdict.warnings:
        logger.warn(warning)

    if not options.allow_execution:
        _print_commands(commands, target, logger)
        return SetupOutcome.PRINTED
    return _write_commands(commands, target, writer, logger)


def generate_setup_string(
    environment: Environment,
    *,
    settings: Settings | None = None,
    export_keys: Sequence[str] | None = None,
    shell: str | None = None,
) -> str:
    """Encode the provided namespace variables of *environment*.

    Credential keys are never included. The collected configuration passes the
    same validator a recipient will run, so an administrator cannot share a
    string their colleagues would reject.

    Raises
    ------
    InvalidSetupConfiguration
        Nothing under the namespace prefix is set (after filtering).
    SecurityValidationError
        A collected value fails validation.
    """

    active = settings or Settings()
    collected = Configuration(
        {
            key: environment.get(key) or ""
            for key in sorted(environment.keys_with_prefix(active.prefix))
            if not is_credential_key(key)
        }
    )
    config = collected.provided().restricted_to(export_keys)
    if not config:
        raise InvalidSetupConfiguration(f"no {active.prefix}* variables are set in the environment")
    result = validate_setup_config(config, settings=active, shell=shell)
    if not result.is_valid:
        raise SecurityValidationError(result)
    log_info("setup_string_generated", stage="encode", key=None, keys=list(config))
    return encode_setup_string(config)


def _applicable_entries(decoded: Configuration, options: SetupOptions, logger: Logger) -> Configuration:
    """Return the provided, non-credential entries selected by ``export_keys``."""

    config = decoded.provided()
    without_credentials = config.without_credentials()
    if len(without_credentials) != len(config):
        log_warning("setup_credentials_dropped", stage="decode", key=None, count=len(config) - len(without_credentials))
        logger.warn(CREDENTIALS_IGNORED_MESSAGE)
    return without_credentials.restricted_to(options.export_keys)


def _report_diff(diff: DiffClassification, config: Configuration, logger: Logger) -> None:
    if diff.existing_vars:
        logger.info(f"Existing variables: {', '.join(diff.existing_vars)}")
    logger.info("Proposed configuration:")
    for key in diff.new_vars:
        logger.info(f"  + {key}={config[key]}")
    for item in diff.changed_vars:
        logger.info(f"  ~ {item.key}: {item.old} -> {item.new}")
    for key in diff.unchanged_vars:
        logger.info(f"  = {key}={config[key]} (unchanged)")


def _print_commands(commands: Sequence[str], target: Path, logger: Logger) -> None:
    logger.info("Copy and paste the following commands to your terminal:")
    logger.info("")
    for command in commands:
        logger.info(f"  {command}")
    logger.info("")
    logger.info("Or add them to your shell configuration file:")
    logger.info(f"  {target}")
    logger.info("")
    logger.info("After setting up, reload your shell or run:")
    logger.info(f"  source {target}")


def _write_commands(commands: Sequence[str], target: Path, writer: ShellConfigWriter, logger: Logger) -> SetupOutcome:
    try:
        written = writer.append_block(target, commands)
    except OSError as exc:
        log_error("setup_write_failed", stage="materialize", key=None, path=str(target), error=str(exc))
        logger.error(f"Setup failed: {exc}")
        logger.info("")
        logger.info("You can set up manually by running:")
        for command in commands:
            logger.info(f"  {command}")
        return SetupOutcome.FAILED

    if not written:
        logger.warn(f"Configuration already exists in shell config file: {target}")
        return SetupOutcome.ALREADY_PRESENT
    logger.success(f"Environment variables added to {target}")
    logger.success("Setup complete!")
    logger.warn("Important: reload your shell or run:")
    logger.info(f"  source {target}")
    return SetupOutcome.COMPLETED
