"""Portable setup string codec.

Purpose
-------
Serialise a :class:`~surrogate_purge.domain.config.Configuration` into a single
transport-safe string that team members can paste into a terminal, and turn
such a string back into a configuration only after it passed validation.

Contents
--------
* :func:`encode_setup_string` – compact JSON, UTF-8, standard base64.
* :func:`decode_setup_string` – strict inverse with the validator as a gate.

System Role
-----------
The decode path is the entry point of untrusted input into the setup
pipeline. Callers never receive an unvalidated configuration: malformed input
raises :class:`InvalidSetupConfiguration`, a failing verdict raises
:class:`SecurityValidationError`.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Mapping

from ..domain.config import Configuration
from ..domain.errors import InvalidSetupConfiguration, SecurityValidationError
from ..domain.settings import Settings
from ..observability import log_debug, log_error, log_warning
from .ports import Logger, ShellEscaper
from .validation import validate_setup_config


def encode_setup_string(config: Mapping[str, str]) -> str:
    """Return the portable string for *config*.

    The JSON text keeps empty values as ``""`` so "empty" and "absent" stay
    distinguishable, and the base64 alphabet keeps the result free of
    separators.

    Examples
    --------
    >>> encoded = encode_setup_string({"FASTLY_DEV_SERVICE_IDS": "dev-svc-1"})
    >>> encoded
    'eyJGQVNUTFlfREVWX1NFUlZJQ0VfSURTIjoiZGV2LXN2Yy0xIn0='
    """

    text = json.dumps(dict(config), separators=(",", ":"), ensure_ascii=False)
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_setup_string(
    encoded: str,
    *,
    settings: Settings | None = None,
    shell: str | None = None,
    escaper: ShellEscaper | None = None,
    logger: Logger | None = None,
) -> Configuration:
    """Decode and validate a portable setup string.

    Why
    ----
    The string comes from another person; its content will become shell
    statements. Validation is therefore part of decoding, not a separate step a
    caller could forget.

    Parameters
    ----------
    encoded:
        Portable string produced by :func:`encode_setup_string`.
    settings / shell / escaper:
        Forwarded to :func:`validate_setup_config`.
    logger:
        Optional user-facing sink receiving validation warnings.

    Returns
    -------
    Configuration
        The validated entries in their original order.

    Raises
    ------
    InvalidSetupConfiguration
        The string is not base64, not UTF-8, not JSON, or not a flat object of
        string values.
    SecurityValidationError
        At least one entry failed validation; the message lists every error.

    Examples
    --------
    >>> decode_setup_string("not base64!!")
    Traceback (most recent call last):
    ...
    surrogate_purge.domain.errors.InvalidSetupConfiguration: Invalid setup configuration: payload is not valid base64
    """

    payload = _parse_payload(encoded)
    result = validate_setup_config(payload, settings=settings, shell=shell, escaper=escaper)
    if not result.is_valid:
        log_error("setup_string_rejected", stage="decode", key=None, errors=len(result.errors))
        raise SecurityValidationError(result)

    if result.warnings:
        log_warning("setup_string_warnings", stage="decode", key=None, warnings=list(result.warnings))
        if logger is not None:
            logger.warn(f"Security warnings: {', '.join(result.warnings)}")

    config = Configuration(payload)
    log_debug("setup_string_decoded", stage="decode", key=None, keys=list(config))
    return config


def _parse_payload(encoded: str) -> dict[str, str]:
    """Turn *encoded* into a ``dict`` of strings or raise ``InvalidSetupConfiguration``."""

    if not isinstance(encoded, str) or not encoded.strip():
        raise InvalidSetupConfiguration("setup string is empty")
    try:
        raw = base64.b64decode(encoded.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidSetupConfiguration("payload is not valid base64") from exc
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidSetupConfiguration("payload is not valid UTF-8 text") from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidSetupConfiguration("payload is not valid JSON") from exc

    if not isinstance(data, dict):
        raise InvalidSetupConfiguration("payload must be a JSON object")
    for key, value in data.items():
        if not isinstance(value, str):
            raise InvalidSetupConfiguration(f"value of '{key}' must be a string")
    return data
