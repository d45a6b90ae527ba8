"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by the validators, the codec, the
orchestrators, the adapters and the CLI. The hierarchy lives in the domain
layer so outer layers may depend on it without creating cycles.

Contents
--------
* :class:`SurrogatePurgeError` – umbrella base class.
* :class:`InvalidSetupConfiguration` – malformed portable configuration string.
* :class:`SecurityValidationError` – decoded configuration failed validation.
* :class:`ShellEscapeError` – a shell escaper cannot represent a value.
* :class:`SettingsError` – settings file or overrides are unusable.
* :class:`PurgeError` – purge arguments, discovery, or HTTP failures.

System Role
-----------
Callers catch :class:`SurrogatePurgeError` to handle every library failure
uniformly; the CLI lets them propagate to ``lib_cli_exit_tools`` which prints
the message and maps it to a non-zero exit code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .config import ValidationResult

INVALID_SETUP_LABEL = "Invalid setup configuration"
SECURITY_FAILURE_LABEL = "Security validation failed"


class SurrogatePurgeError(Exception):
    """Base type for all exceptions emitted by ``surrogate_purge``."""


class InvalidSetupConfiguration(SurrogatePurgeError):
    """Raised when a portable configuration string cannot be accepted.

    Why
    ----
    Decoding must never leak raw parser exceptions to the caller. Every failure
    of the decode path is reported with the same generic label followed by a
    short description of the cause.

    Examples
    --------
    >>> str(InvalidSetupConfiguration("payload is not valid base64"))
    'Invalid setup configuration: payload is not valid base64'
    """

    def __init__(self, cause: str) -> None:
        self.cause = cause
        super().__init__(f"{INVALID_SETUP_LABEL}: {cause}")


class SecurityValidationError(InvalidSetupConfiguration):
    """Raised when a configuration fails the security validation pass.

    The full :class:`~surrogate_purge.domain.config.ValidationResult` is kept on
    :attr:`result` so callers can render every finding, not only the message.
    """

    def __init__(self, result: ValidationResult) -> None:
        self.result = result
        super().__init__(f"{SECURITY_FAILURE_LABEL}: {', '.join(result.errors)}")


class ShellEscapeError(SurrogatePurgeError):
    """Raised by a shell escaper that cannot represent a value.

    Never escapes the validation layer: validators catch it and fall back to the
    static metacharacter check.
    """


class SettingsError(SurrogatePurgeError):
    """Signifies that the settings file or an override has an unusable value."""


class PurgeError(SurrogatePurgeError):
    """Raised for purge argument errors, missing configuration, or HTTP failures."""
