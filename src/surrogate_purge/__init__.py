"""Public package surface for ``surrogate_purge``.

The composition root (:mod:`surrogate_purge.core`) owns the wiring; this module
re-exports the stable API together with the value objects, the error taxonomy
and the logging helpers so callers can ``import surrogate_purge`` and stop
there.
"""

from __future__ import annotations

from .core import (
    PurgeOptions,
    PurgeReport,
    SetupOptions,
    SetupOutcome,
    decode_setup_string,
    detect_shell,
    encode_setup_string,
    execute_purge,
    execute_setup,
    generate_setup_string,
    read_settings,
    setup_status,
    validate_export_commands,
    validate_setup_config,
)
from .domain.config import ChangedVar, Configuration, DiffClassification, ValidationResult
from .domain.errors import (
    InvalidSetupConfiguration,
    PurgeError,
    SecurityValidationError,
    SettingsError,
    ShellEscapeError,
    SurrogatePurgeError,
)
from .domain.settings import Settings
from .observability import bind_trace_id, enable_console_logging, get_logger

__all__ = [
    "ChangedVar",
    "Configuration",
    "DiffClassification",
    "InvalidSetupConfiguration",
    "PurgeError",
    "PurgeOptions",
    "PurgeReport",
    "SecurityValidationError",
    "SettingsError",
    "SetupOptions",
    "SetupOutcome",
    "Settings",
    "ShellEscapeError",
    "SurrogatePurgeError",
    "ValidationResult",
    "bind_trace_id",
    "decode_setup_string",
    "detect_shell",
    "enable_console_logging",
    "encode_setup_string",
    "execute_purge",
    "execute_setup",
    "generate_setup_string",
    "get_logger",
    "read_settings",
    "setup_status",
    "validate_export_commands",
    "validate_setup_config",
]
