"""Application-layer ports describing collaborator responsibilities.

Purpose
-------
Define the structural contracts the use cases depend on so they can be driven
by the real process environment, console and network in production and by
in-memory fakes in tests.

Contents
--------
* :class:`Environment` – read-only accessor over the live process environment.
* :class:`Logger` – four leveled text sinks used for user-facing reporting.
* :class:`ShellEscaper` – shell-family specific escaping strategy.
* :class:`PurgeClient` – issues purge requests against the CDN API.
* :class:`ShellConfigWriter` – appends marker-delimited blocks to a shell file.
* :class:`ServiceDirectory` – resolves purge targets, default keys and token.

System Role
-----------
These protocols keep Dependency Inversion enforceable: the diff engine never
reads ``os.environ`` directly and the orchestrators never print directly.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..adapters.purge.fastly import PurgeResult


@runtime_checkable
class Environment(Protocol):
    """Read-only view of environment variables.

    Why
    ----
    The live environment is an implicit global input; making it an explicit
    port keeps the diff engine and discovery helpers unit-testable.
    """

    def get(self, key: str) -> str | None:
        """Return the value of *key* or ``None`` when unset."""

    def keys_with_prefix(self, prefix: str) -> Iterable[str]:
        """Yield every set key starting with *prefix*."""


@runtime_checkable
class Logger(Protocol):
    """User-facing reporting sinks."""

    def info(self, message: str) -> None:
        """Report neutral progress information."""

    def success(self, message: str) -> None:
        """Report a completed step."""

    def warn(self, message: str) -> None:
        """Report a recoverable or advisory condition."""

    def error(self, message: str) -> None:
        """Report a failure."""


@runtime_checkable
class ShellEscaper(Protocol):
    """Escape a value for one shell family.

    Escapers return the value unchanged when the shell would treat it
    literally and raise :class:`~surrogate_purge.domain.errors.ShellEscapeError`
    when the value cannot be represented at all.
    """

    family: str

    def escape(self, value: str) -> str:
        """Return *value* escaped for the shell family."""


@runtime_checkable
class PurgeClient(Protocol):
    """Issue purge requests; each call is exactly one request."""

    def purge_keys(self, service_id: str, keys: Sequence[str]) -> PurgeResult:
        """Purge *keys* from *service_id*."""

    def purge_all(self, service_id: str) -> PurgeResult:
        """Purge every cached object of *service_id*."""

    def purge_url(self, url: str) -> PurgeResult:
        """Purge a single cached URL."""

    def close(self) -> None:
        """Release network resources."""


@runtime_checkable
class ShellConfigWriter(Protocol):
    """Append export blocks to a shell startup file."""

    def has_block(self, path: Path) -> bool:
        """Return ``True`` when *path* already contains the begin marker."""

    def append_block(self, path: Path, commands: Sequence[str]) -> bool:
        """Append *commands* inside markers; return ``False`` when already present."""


@runtime_checkable
class ServiceDirectory(Protocol):
    """Resolve purge targets for a deployment environment."""

    def service_ids(self, env: str, override: str | None = None, *, required: bool = True) -> list[str]:
        """Return the service ids of *env*; *override* takes precedence."""

    def service_names(self, env: str) -> list[str]:
        """Return display names aligned with the ids of *env*."""

    def default_keys(self, env: str | None = None) -> list[str]:
        """Return the surrogate keys purged on every key purge."""

    def token(self) -> str | None:
        """Return the API token or ``None``."""
