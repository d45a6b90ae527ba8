"""Validation passes over configurations and synthesised export commands.

Purpose
-------
Host the two independent validation layers of the configuration exchange:

* :func:`validate_setup_config` checks raw configuration entries (key naming,
  length, security patterns, shell escaping, keywords, role formats).
* :func:`validate_export_commands` re-derives name and value from already
  synthesised ``export`` statements and checks them again, trusting nothing
  from upstream.

Both return a :class:`~surrogate_purge.domain.config.ValidationResult` after
scanning every entry, so callers see all problems at once.
"""

from __future__ import annotations

import re
from typing import Iterable, Mapping

from ..domain.config import ValidationResult
from ..domain.errors import ShellEscapeError
from ..domain.settings import Settings
from ..observability import log_debug
from ..security.escaping import escaper_for
from ..security.formats import is_display_name_field, validate_field_format
from ..security.patterns import (
    check_dangerous_patterns,
    check_shell_injection,
    check_suspicious_keywords,
    requires_escaping,
)
from .ports import ShellEscaper

_EXPORT_PATTERN = re.compile(r'export ([A-Z_][A-Z0-9_]*)="([^"\r\n]*)"')


def key_pattern(settings: Settings) -> re.Pattern[str]:
    """Return the naming contract for keys under the namespace of *settings*.

    >>> bool(key_pattern(Settings()).fullmatch("FASTLY_DEV_SERVICE_IDS"))
    True
    >>> bool(key_pattern(Settings()).fullmatch("FASTLY_dev"))
    False
    """

    return re.compile(rf"{re.escape(settings.prefix)}[A-Z0-9_]+")


def _key_error(key: str, settings: Settings) -> str:
    return (
        f"Invalid environment variable name: '{key}' must start with '{settings.prefix}' "
        "and contain only uppercase letters, digits, and underscores"
    )


def validate_setup_config(
    config: Mapping[str, str],
    *,
    settings: Settings | None = None,
    shell: str | None = None,
    escaper: ShellEscaper | None = None,
) -> ValidationResult:
    """Validate every provided entry of *config*.

    Why
    ----
    A decoded setup string is untrusted input that will be turned into shell
    statements; every value must be proven inert first.

    What
    ----
    For each entry with a non-empty value:

    1. the key must satisfy :func:`key_pattern`; otherwise the entry gets a
       single error and no further checks;
    2. values longer than ``settings.max_value_length`` are an error (checks
       continue);
    3. static security patterns and shell-escaping detection add errors;
    4. keyword hits add warnings;
    5. role format violations add errors.

    Parameters
    ----------
    config:
        Entries to validate.
    settings:
        Namespace, limits and keywords; defaults to :class:`Settings()`.
    shell:
        Shell identifier selecting the escaping family; defaults to
        ``settings.shell`` and then to bash.
    escaper:
        Explicit escaper overriding *shell*.

    Examples
    --------
    >>> validate_setup_config({"FASTLY_DEV_SERVICE_IDS": "dev-svc-1,dev-svc-2"}).is_valid
    True
    >>> result = validate_setup_config({"FASTLY_DEV_SERVICE_IDS": "svc$(whoami)"})
    >>> result.is_valid, len(result.errors) > 1
    (False, True)
    """

    active = settings or Settings()
    active_escaper = escaper or escaper_for(shell or active.shell)
    naming = key_pattern(active)
    errors: list[str] = []
    warnings: list[str] = []

    for key, value in config.items():
        if value is None or value == "":
            continue
        if not isinstance(value, str):
            errors.append(f"Field {key} must be a string")
            continue
        if not isinstance(key, str) or not naming.fullmatch(key):
            errors.append(_key_error(str(key), active))
            continue
        if len(value) > active.max_value_length:
            errors.append(f"Field {key} exceeds maximum length ({active.max_value_length} characters)")

        display_name = is_display_name_field(key)
        errors.extend(check_dangerous_patterns(value, key, display_name=display_name))
        errors.extend(check_shell_injection(value, key, active_escaper, display_name=display_name))
        warnings.extend(check_suspicious_keywords(value, key, active.suspicious_keywords))
        errors.extend(validate_field_format(key, value))

    result = ValidationResult.from_findings(errors, warnings)
    log_debug(
        "setup_config_validated",
        stage="validate",
        key=None,
        entries=len(config),
        errors=len(result.errors),
        warnings=len(result.warnings),
        family=active_escaper.family,
    )
    return result


def validate_export_commands(
    commands: Iterable[str],
    *,
    settings: Settings | None = None,
    shell: str | None = None,
    escaper: ShellEscaper | None = None,
) -> ValidationResult:
    """Validate synthesised ``export NAME="VALUE"`` statements as opaque text.

    Why
    ----
    This is the last gate before commands are printed or written to a shell
    startup file. Even a defect in decoding or synthesis must not be able to
    produce a dangerous command on its own.

    What
    ----
    * Each command must fully match ``export <NAME>="<value>"`` with the closing
      quote as the final character and no quote or line break inside the value;
      anything else "does not match safe export pattern".
    * ``NAME`` must satisfy the namespace naming contract.
    * Values containing backslashes or ``$`` are errors.
    * Values the shell would need to escape produce warnings only.

    Examples
    --------
    >>> validate_export_commands(['export FASTLY_DEV_SERVICE_IDS="svc-1,svc-2"']).is_valid
    True
    >>> result = validate_export_commands(["export NS_TOKEN=test-token-123"], settings=Settings(namespace="NS"))
    >>> result.is_valid, "does not match safe export pattern" in result.errors[0]
    (False, True)
    """

    active = settings or Settings()
    active_escaper = escaper or escaper_for(shell or active.shell)
    naming = key_pattern(active)
    errors: list[str] = []
    warnings: list[str] = []
    count = 0

    for command in commands:
        count += 1
        match = _EXPORT_PATTERN.fullmatch(command)
        if match is None:
            errors.append(f"Invalid command format: '{command}' does not match safe export pattern")
            continue
        name, value = match.group(1), match.group(2)

        if not naming.fullmatch(name):
            errors.append(_key_error(name, active))
        if '"' in value or "\\" in value or "$" in value:
            errors.append(f"Unsafe value in {name}: contains quotes, backslashes, or variable substitution")

        try:
            if requires_escaping(value, active_escaper):
                warnings.append(f"Value for {name} contains shell metacharacters: {value}")
        except ShellEscapeError as exc:
            warnings.append(f"Value for {name} could not be checked for shell metacharacters: {exc}")

    result = ValidationResult.from_findings(errors, warnings)
    log_debug(
        "export_commands_validated",
        stage="validate_commands",
        key=None,
        commands=count,
        errors=len(result.errors),
        warnings=len(result.warnings),
    )
    return result
