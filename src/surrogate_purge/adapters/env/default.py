"""Environment variable adapter.

Purpose
-------
Give the application layer read-only access to the process environment and
implement the discovery rules used by the purge commands.

Key behaviours
--------------
* :class:`LiveEnvironment` implements the ``Environment`` port over
  :data:`os.environ` or an injected mapping.
* :meth:`LiveEnvironment.load_overrides` captures ``SURROGATE_PURGE_*``
  variables as settings overrides with light scalar coercion (bools, ints,
  floats, ``null``/``none``).
* :class:`ServiceDiscovery` resolves service ids, display names, default keys
  and the API token, trying legacy naming patterns in a fixed order.
* Emits structured logging via :mod:`surrogate_purge.observability`; values of
  credential keys are never logged.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable, Mapping

from ...application.ports import Environment
from ...domain.config import Configuration, is_credential_key
from ...domain.errors import PurgeError
from ...domain.settings import ENVIRONMENTS, Settings
from ...observability import log_debug

SETTINGS_ENV_SLUG = "surrogate-purge"


def default_env_prefix(slug: str) -> str:
    """Return the canonical environment prefix for *slug*.

    Examples
    --------
    >>> default_env_prefix('surrogate-purge')
    'SURROGATE_PURGE'
    """

    return slug.replace("-", "_").upper()


class LiveEnvironment:
    """Read-only accessor over environment variables."""

    def __init__(self, *, environ: Mapping[str, str] | None = None) -> None:
        """Initialise the accessor with a specific ``environ`` mapping for testability.

        Parameters
        ----------
        environ:
            Mapping to read from. Defaults to :data:`os.environ` (read at call
            time, so later changes are visible).
        """

        self._environ = os.environ if environ is None else environ

    def get(self, key: str) -> str | None:
        return self._environ.get(key)

    def keys_with_prefix(self, prefix: str) -> list[str]:
        return [key for key in self._environ if key.startswith(prefix)]

    def snapshot(self, prefix: str) -> Configuration:
        """Return the set variables under *prefix* (credentials excluded) as a configuration.

        Examples
        --------
        >>> env = LiveEnvironment(environ={"FASTLY_TOKEN": "t", "FASTLY_DEFAULT_KEYS": "a", "HOME": "/h"})
        >>> dict(env.snapshot("FASTLY_"))
        {'FASTLY_DEFAULT_KEYS': 'a'}
        """

        collected = {
            key: self._environ[key]
            for key in sorted(self.keys_with_prefix(prefix))
            if not is_credential_key(key) and self._environ[key]
        }
        log_debug("environment_snapshot", stage="env", key=None, keys=list(collected))
        return Configuration(collected)

    def load_overrides(self, prefix: str) -> dict[str, object]:
        """Return ``{field: value}`` for every variable named ``<prefix>_<FIELD>``.

        Field names are lower-cased and values coerced with :func:`_coerce`.

        Examples
        --------
        >>> env = LiveEnvironment(environ={"SURROGATE_PURGE_MAX_VALUE_LENGTH": "500", "OTHER": "1"})
        >>> env.load_overrides("SURROGATE_PURGE")
        {'max_value_length': 500}
        """

        prefix = f"{prefix}_" if prefix and not prefix.endswith("_") else prefix
        collected: dict[str, object] = {}
        for key, value in self._environ.items():
            if not key.startswith(prefix):
                continue
            stripped = key[len(prefix) :]
            if not stripped:
                continue
            collected[stripped.lower()] = _coerce(value)
        log_debug("settings_overrides_loaded", stage="settings", key=None, fields=sorted(collected))
        return collected


@dataclass(frozen=True, slots=True)
class SetupStatus:
    """Which parts of the purge configuration are present in the environment."""

    has_token: bool
    has_default_keys: bool
    services: Mapping[str, bool]

    @property
    def has_dev_services(self) -> bool:
        return bool(self.services.get("dev"))

    @property
    def is_complete(self) -> bool:
        return self.has_token and self.has_dev_services


class ServiceDiscovery:
    """Resolve purge targets from environment variables.

    Why
    ----
    Teams configured the tool over time with several naming schemes; every
    known scheme is still honoured, newest first.
    """

    def __init__(self, environment: Environment, *, settings: Settings | None = None) -> None:
        self.environment = environment
        self.settings = settings or Settings()

    def _id_patterns(self, env: str) -> tuple[str, ...]:
        ns, upper = self.settings.namespace, env.upper()
        return (
            f"{ns}_{upper}_SERVICE_IDS",
            f"{ns}_{upper}SERVICE_IDS",
            f"{upper}_SERVICE_IDS",
            f"SERVICE_IDS_{upper}",
            f"{ns}_SERVICES_{upper}",
        )

    def _name_patterns(self, env: str) -> tuple[str, ...]:
        ns, upper = self.settings.namespace, env.upper()
        return (
            f"{ns}_{upper}_SERVICE_NAMES",
            f"{ns}_{upper}SERVICE_NAMES",
            f"{upper}_SERVICE_NAMES",
            f"SERVICE_NAMES_{upper}",
            f"{ns}_SERVICES_{upper}_NAMES",
        )

    def _first_list(self, patterns: Iterable[str]) -> tuple[str | None, list[str]]:
        for pattern in patterns:
            items = split_list(self.environment.get(pattern))
            if items:
                return pattern, items
        return None, []

    def suggested_variable(self, env: str) -> str:
        return f"{self.settings.namespace}_{env.upper()}_SERVICE_IDS"

    def service_ids(self, env: str, override: str | None = None, *, required: bool = True) -> list[str]:
        """Return the service ids for *env*; *override* (``--services``) wins.

        Raises
        ------
        PurgeError
            When *override* contains only separators, or when nothing is
            configured and *required* is true.

        Examples
        --------
        >>> discovery = ServiceDiscovery(LiveEnvironment(environ={"DEV_SERVICE_IDS": "a, b"}))
        >>> discovery.service_ids("dev")
        ['a', 'b']
        >>> discovery.service_ids("dev", "x,y")
        ['x', 'y']
        """

        if override is not None and override.strip():
            services = split_list(override)
            if not services:
                raise PurgeError("Services parameter cannot be empty or contain only whitespace")
            return services
        source, services = self._first_list(self._id_patterns(env))
        if services:
            log_debug("service_ids_resolved", stage="discovery", key=source, env=env, count=len(services))
            return services
        if required:
            raise PurgeError(
                f"No service IDs configured for environment: {env}. "
                f"Set {self.suggested_variable(env)} environment variable or use --services parameter."
            )
        return []

    def service_names(self, env: str) -> list[str]:
        return self._first_list(self._name_patterns(env))[1]

    def default_keys(self, env: str | None = None) -> list[str]:
        """Return default surrogate keys; the per-environment list overrides the global one.

        Examples
        --------
        >>> environ = {"FASTLY_DEFAULT_KEYS": "global", "FASTLY_PROD_DEFAULT_KEYS": "prod-a,prod-b"}
        >>> discovery = ServiceDiscovery(LiveEnvironment(environ=environ))
        >>> discovery.default_keys("prod"), discovery.default_keys("dev")
        (['prod-a', 'prod-b'], ['global'])
        """

        ns = self.settings.namespace
        if env:
            specific = split_list(self.environment.get(f"{ns}_{env.upper()}_DEFAULT_KEYS"))
            if specific:
                return specific
        return split_list(self.environment.get(f"{ns}_DEFAULT_KEYS"))

    def token(self) -> str | None:
        return self.environment.get(self.settings.token_key) or None

    def status(self) -> SetupStatus:
        ns = self.settings.namespace
        has_default_keys = any(
            self.environment.get(name)
            for name in (f"{ns}_DEFAULT_KEYS", *(f"{ns}_{env.upper()}_DEFAULT_KEYS" for env in ENVIRONMENTS))
        )
        return SetupStatus(
            has_token=self.token() is not None,
            has_default_keys=bool(has_default_keys),
            services={env: bool(self.service_ids(env, required=False)) for env in ENVIRONMENTS},
        )


def split_list(value: str | None) -> list[str]:
    """Split a comma-separated value, trimming blanks.

    >>> split_list(" a, ,b "), split_list(None)
    (['a', 'b'], [])
    """

    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _coerce(value: str) -> object:
    """Coerce textual environment values to Python primitives where possible.

    Examples
    --------
    >>> _coerce('true'), _coerce('10'), _coerce('3.5'), _coerce('zsh')
    (True, 10, 3.5, 'zsh')
    """

    lowered = value.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    if lowered in {"null", "none"}:
        return None
    try:
        if value.isdigit() or (value.startswith("-") and value[1:].isdigit()):
            return int(value)
        return float(value)
    except ValueError:
        return value
