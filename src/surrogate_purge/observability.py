"""Structured logging helpers shared by the setup and purge pipelines.

Purpose
    Keep every diagnostic emission predictable and contextual without forcing
    host applications onto a specific logging backend.

Contents
    - ``TRACE_ID``: context variable storing the active trace identifier.
    - ``get_logger``: returns the package logger (quiet by default).
    - ``bind_trace_id`` / ``new_trace_id``: bind, clear, or mint trace identifiers.
    - ``log_debug`` / ``log_info`` / ``log_warning`` / ``log_error``: emit
      structured entries via a single private emitter.
    - ``make_event``: convenience builder for structured event payloads.
    - ``enable_console_logging``: attach a stderr handler (used by ``--verbose``).

System Integration
    Used by the validators, the codec, the orchestrators and the adapters so all
    diagnostics carry the same trace metadata. Values of credential keys are
    never passed to these helpers; callers log key names and counts only.
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Any, Final, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("surrogate_purge_trace_id", default=None)
"""Current trace identifier propagated through logging helpers."""

_LOGGER: Final[logging.Logger] = logging.getLogger("surrogate_purge")
_LOGGER.addHandler(logging.NullHandler())

_CONSOLE_FORMAT: Final[str] = "%(levelname)s %(name)s: %(message)s %(context)s"


def get_logger() -> logging.Logger:
    """Expose the package logger so applications may attach handlers."""

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Bind or clear the active trace identifier.

    Examples
    --------
    >>> bind_trace_id('abc123')
    >>> TRACE_ID.get()
    'abc123'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


def new_trace_id() -> str:
    """Mint a fresh trace identifier, bind it, and return it.

    Each setup or purge run gets its own identifier so the events of one
    invocation can be correlated.
    """

    trace_id = uuid.uuid4().hex
    bind_trace_id(trace_id)
    return trace_id


def log_debug(message: str, **fields: Any) -> None:
    """Emit a structured debug log entry that includes the trace context."""

    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    """Emit a structured info log entry that includes the trace context."""

    _emit(logging.INFO, message, fields)


def log_warning(message: str, **fields: Any) -> None:
    """Emit a structured warning log entry that includes the trace context."""

    _emit(logging.WARNING, message, fields)


def log_error(message: str, **fields: Any) -> None:
    """Emit a structured error log entry that includes the trace context."""

    _emit(logging.ERROR, message, fields)


def make_event(
    stage: str,
    key: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a structured logging payload for pipeline events.

    Inputs
        stage: Pipeline stage being observed (``decode``, ``diff``, ``purge`` ...).
        key: Configuration key or service identifier concerned, if any.
        payload: Optional mapping with extra diagnostic detail.

    Examples
    --------
    >>> make_event('diff', None, {'changed': 2})
    {'stage': 'diff', 'key': None, 'changed': 2}
    """

    event: dict[str, Any] = {"stage": stage, "key": key}
    if payload:
        event |= dict(payload)
    return event


def enable_console_logging(level: int = logging.DEBUG) -> logging.Handler:
    """Attach a stderr handler to the package logger and return it.

    The handler renders the structured ``context`` next to the message. Calling
    the function twice does not duplicate handlers.
    """

    for handler in _LOGGER.handlers:
        if getattr(handler, "_surrogate_purge_console", False):
            handler.setLevel(level)
            _LOGGER.setLevel(level)
            return handler
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    handler.setLevel(level)
    handler._surrogate_purge_console = True  # type: ignore[attr-defined]
    _LOGGER.addHandler(handler)
    _LOGGER.setLevel(level)
    return handler


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    """Send a log entry through the shared logger with contextual metadata."""

    _LOGGER.log(level, message, extra={"context": _with_trace(fields)})


def _with_trace(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Attach the current trace identifier to the provided structured fields."""

    context = {"trace_id": TRACE_ID.get()}
    context.update(fields)
    return context
